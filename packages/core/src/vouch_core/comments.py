"""Turn a free-text issue/discussion comment into a trust-list action.

Comment bodies are untrusted. Only the first line is ever evaluated, so a
benign-looking first line cannot smuggle a command in on a later line:

    denounce @spammer
    -github:victim injected      <- ignored

Grammar (case-insensitive, ``KW`` is any configured keyword):

    vouch / denounce:  <ws>* KW [<ws>+ @user] [<ws>+ reason...]
    unvouch:           <ws>* KW [<ws>+ @user] <ws>*

Unvouch is destructive, so anything after the optional ``@user`` makes the
comment a non-command ("unvouch is a strange word" must not remove anyone).
Rules are tried in the order vouch, denounce, unvouch; the first enabled
rule that matches wins.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from vouch_core.errors import ConfigurationError

ACTION_VOUCH = "vouch"
ACTION_DENOUNCE = "denounce"
ACTION_UNVOUCH = "unvouch"

DEFAULT_KEYWORDS = {
    ACTION_VOUCH: ["vouch"],
    ACTION_DENOUNCE: ["denounce"],
    ACTION_UNVOUCH: ["unvouch"],
}


@dataclass(frozen=True)
class ActionRequest:
    action: str | None
    user: str | None = None
    reason: str = ""


NO_ACTION = ActionRequest(action=None)


@dataclass(frozen=True)
class _Rule:
    action: str
    pattern: re.Pattern
    enabled: bool


def _alternation(keywords: list[str], action: str) -> str:
    words = [k.strip().lower() for k in keywords if k and k.strip()]
    if not words:
        raise ConfigurationError(f"At least one {action} keyword is required.")
    # Longest first so "vouch for" wins over "vouch" inside the alternation.
    return "|".join(re.escape(w) for w in sorted(words, key=len, reverse=True))


def _or_default(keywords: list[str] | None, action: str) -> list[str]:
    return DEFAULT_KEYWORDS[action] if keywords is None else keywords


def first_line(body: str | None) -> str:
    lines = (body or "").splitlines()
    return lines[0] if lines else ""


class CommentParser:
    """Ordered set of keyword rules; build once, call parse() per comment."""

    def __init__(
        self,
        vouch_keywords: list[str] | None = None,
        denounce_keywords: list[str] | None = None,
        unvouch_keywords: list[str] | None = None,
        allow_vouch: bool = True,
        allow_denounce: bool = True,
        allow_unvouch: bool = True,
    ):
        vouch = _alternation(_or_default(vouch_keywords, ACTION_VOUCH), ACTION_VOUCH)
        denounce = _alternation(_or_default(denounce_keywords, ACTION_DENOUNCE), ACTION_DENOUNCE)
        unvouch = _alternation(_or_default(unvouch_keywords, ACTION_UNVOUCH), ACTION_UNVOUCH)

        with_reason = r"^\s*(?:{kw})(?:\s+@(?P<user>\S+))?(?:\s+(?P<reason>.*?))?\s*$"
        bare = r"^\s*(?:{kw})(?:\s+@(?P<user>\S+))?\s*$"

        self._rules = (
            _Rule(ACTION_VOUCH, re.compile(with_reason.format(kw=vouch), re.IGNORECASE), allow_vouch),
            _Rule(ACTION_DENOUNCE, re.compile(with_reason.format(kw=denounce), re.IGNORECASE), allow_denounce),
            _Rule(ACTION_UNVOUCH, re.compile(bare.format(kw=unvouch), re.IGNORECASE), allow_unvouch),
        )

    @classmethod
    def from_config(cls, config: dict) -> CommentParser:
        return cls(
            vouch_keywords=config.get("vouch_keywords"),
            denounce_keywords=config.get("denounce_keywords"),
            unvouch_keywords=config.get("unvouch_keywords"),
            allow_vouch=config.get("allow_vouch", True),
            allow_denounce=config.get("allow_denounce", True),
            allow_unvouch=config.get("allow_unvouch", True),
        )

    def parse(self, body: str | None) -> ActionRequest:
        line = first_line(body)
        for rule in self._rules:
            if not rule.enabled:
                continue
            m = rule.pattern.match(line)
            if not m:
                continue
            groups = m.groupdict()
            reason = (groups.get("reason") or "").strip()
            return ActionRequest(action=rule.action, user=groups.get("user"), reason=reason)
        return NO_ACTION


def parse_comment(body: str | None, **kwargs) -> ActionRequest:
    """Convenience wrapper: parse ``body`` with a one-off CommentParser."""
    return CommentParser(**kwargs).parse(body)

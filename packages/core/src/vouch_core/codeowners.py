"""Vouch for everyone named in a CODEOWNERS file.

Ownership implies trust, so owners are added to the trust file, and a prior
denouncement of an owner is replaced by a vouch. The sync never removes
anyone: a user missing from CODEOWNERS may have been vouched for some other
reason.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from vouch_core.records import Record
from vouch_core.trust import VOUCHED, add_user, check_user

logger = logging.getLogger(__name__)

CODEOWNERS_LOCATIONS = (".github/CODEOWNERS", "CODEOWNERS", "docs/CODEOWNERS")
CODEOWNER_DETAILS = "codeowner"


def find_codeowners(root: str = ".", configured: str | None = None) -> Path | None:
    candidates = (configured,) if configured else CODEOWNERS_LOCATIONS
    for candidate in candidates:
        path = Path(root) / candidate
        if path.is_file():
            return path
    return None


def parse_codeowners(text: str) -> dict[str, list[str]]:
    """Group file patterns by owner (``@`` stripped), in first-seen order.

    E-mail owners are skipped; they are not platform handles.
    """
    owners: dict[str, list[str]] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        pattern, *tokens = line.split()
        for token in tokens:
            if token.startswith("#"):
                break
            if not token.startswith("@"):
                continue
            owners.setdefault(token[1:], []).append(pattern)
    return owners


def is_team(owner: str) -> bool:
    return "/" in owner


def expand_owners(owners, team_members: Callable[[str], list[str]]) -> list[str]:
    """Resolve teams to members and merge with direct users, deduplicated case-insensitively."""
    seen: dict[str, str] = {}
    for owner in owners:
        logins = team_members(owner) if is_team(owner) else [owner]
        if is_team(owner):
            logger.debug("Team %s expanded to %d member(s)", owner, len(logins))
        for login in logins:
            seen.setdefault(login.lower(), login)
    return sorted(seen.values(), key=str.lower)


def sync_owners(
    records: list[Record],
    users: list[str],
    default_platform: str | None = None,
    details: str | None = CODEOWNER_DETAILS,
) -> tuple[list[Record], list[str]]:
    """Vouch for every user not already vouched. Returns the new records and the added users."""
    added = []
    for user in users:
        if check_user(records, user, default_platform) == VOUCHED:
            continue
        records = add_user(records, user, default_platform, details)
        added.append(user)
    return records, added

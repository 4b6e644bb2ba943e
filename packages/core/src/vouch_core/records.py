"""Trust file record types.

A trust file is an ordered list of these records. Blank lines and comments
are kept verbatim so a file survives a parse/serialize round trip untouched.
"""

from __future__ import annotations

from dataclasses import dataclass

from vouch_core.handle import Handle, parse_handle

VOUCH = "vouch"
DENOUNCE = "denounce"


@dataclass(frozen=True)
class Blank:
    pass


@dataclass(frozen=True)
class Comment:
    text: str  # full line, including the leading "#"


@dataclass(frozen=True)
class Entry:
    """A vouch or denounce line bound to a handle."""

    kind: str  # VOUCH | DENOUNCE
    platform: str | None
    username: str
    details: str | None = None

    @property
    def handle_text(self) -> str:
        """Raw handle as written in the file, platform prefix included."""
        return f"{self.platform}:{self.username}" if self.platform else self.username

    @property
    def handle(self) -> Handle:
        return Handle(platform=self.platform, username=self.username)

    @classmethod
    def for_user(cls, kind: str, user: str, details: str | None = None) -> Entry:
        handle = parse_handle(user)
        return cls(kind=kind, platform=handle.platform, username=handle.username, details=details)


Record = Blank | Comment | Entry

"""Identity handles of the form ``[platform:]username``."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Handle:
    platform: str | None
    username: str

    @property
    def key(self) -> tuple[str | None, str]:
        """Case-folded comparison key; the stored text keeps its original case."""
        return (self.platform.lower() if self.platform else None, self.username.lower())


def parse_handle(text: str) -> Handle:
    """Split ``text`` on the first ``:`` into platform and username.

    A leading ``@`` is tolerated so handles copied from comments resolve too.
    """
    text = text.strip().lstrip("@")
    if ":" in text:
        platform, username = text.split(":", 1)
        return Handle(platform=platform or None, username=username)
    return Handle(platform=None, username=text)


def match(lookup: Handle, entry: Handle, default_platform: str | None = None) -> bool:
    """Return True if ``entry`` refers to the same identity as ``lookup``.

    The lookup's platform falls back to ``default_platform``; an entry without
    an explicit platform acts as a wildcard and matches any platform.
    """
    if lookup.username.lower() != entry.username.lower():
        return False
    lookup_platform = lookup.platform or default_platform
    entry_platform = entry.platform
    if not lookup_platform or not entry_platform:
        return True
    return lookup_platform.lower() == entry_platform.lower()


def qualify(username: str, platform: str | None) -> str:
    """Prefix a bare platform login with ``platform:``; qualified handles pass through."""
    username = username.strip().lstrip("@")
    if ":" in username or not platform:
        return username
    return f"{platform}:{username}"

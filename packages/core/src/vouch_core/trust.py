"""In-memory operations on a parsed trust file.

Every mutation returns a new record list; the input list is never modified.
Mutations keep at most one entry per identity and re-sort entries, so calling
the same mutation twice yields the same list as calling it once.
"""

from __future__ import annotations

from vouch_core.handle import match, parse_handle
from vouch_core.records import DENOUNCE, VOUCH, Entry, Record

VOUCHED = "vouched"
DENOUNCED = "denounced"
UNKNOWN = "unknown"

_STATUS_BY_KIND = {VOUCH: VOUCHED, DENOUNCE: DENOUNCED}


def check_user(records: list[Record], username: str, default_platform: str | None = None) -> str:
    """Return ``vouched``, ``denounced`` or ``unknown`` for ``username``.

    Entries are scanned in file order and the first match decides.
    """
    lookup = parse_handle(username)
    for record in records:
        if isinstance(record, Entry) and match(lookup, record.handle, default_platform):
            return _STATUS_BY_KIND[record.kind]
    return UNKNOWN


def sort_records(records: list[Record]) -> list[Record]:
    """Move non-entry lines to the top (original order) and sort entries by handle."""
    header = [r for r in records if not isinstance(r, Entry)]
    entries = sorted((r for r in records if isinstance(r, Entry)), key=lambda e: e.handle_text.lower())
    return header + entries


def remove_user(records: list[Record], username: str, default_platform: str | None = None) -> list[Record]:
    lookup = parse_handle(username)
    kept = [r for r in records if not (isinstance(r, Entry) and match(lookup, r.handle, default_platform))]
    return sort_records(kept)


def add_user(
    records: list[Record],
    username: str,
    default_platform: str | None = None,
    details: str | None = None,
) -> list[Record]:
    """Vouch for ``username``, replacing any existing entry for the same identity."""
    kept = remove_user(records, username, default_platform)
    return sort_records(kept + [Entry.for_user(VOUCH, username, details or None)])


def denounce_user(
    records: list[Record],
    username: str,
    reason: str | None = None,
    default_platform: str | None = None,
) -> list[Record]:
    """Denounce ``username``; an empty reason is stored as no details."""
    kept = remove_user(records, username, default_platform)
    return sort_records(kept + [Entry.for_user(DENOUNCE, username, reason or None)])

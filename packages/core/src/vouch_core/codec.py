"""Trust file text <-> record list conversion.

Format, one record per line:

    # comment                 Comment (kept verbatim)
                              Blank
    username                  vouch
    platform:username details vouch with details
    -platform:username reason denounce

There is no escaping: usernames containing ``:``, a leading ``-`` or a
newline cannot be represented.

The round trip ``serialize(parse(text)) == text`` holds for files with LF
line endings and truly empty blank lines. Whitespace-only lines come back
empty (Blank carries no text) and CRLF endings come back as LF.
"""

from __future__ import annotations

from vouch_core.records import DENOUNCE, VOUCH, Blank, Comment, Entry, Record


def parse_line(line: str) -> Record:
    if not line.strip():
        return Blank()
    if line.startswith("#"):
        return Comment(line)

    kind = VOUCH
    if line.startswith("-"):
        kind = DENOUNCE
        line = line[1:]

    handle, sep, details = line.partition(" ")
    platform, colon, username = handle.partition(":")
    if not colon:
        platform, username = None, handle
    return Entry(kind=kind, platform=platform, username=username, details=details if sep else None)


def parse(text: str) -> list[Record]:
    """Parse trust file text into records, preserving order."""
    if not text:
        return []
    lines = text.split("\n")
    if text.endswith("\n"):
        lines.pop()
    return [parse_line(line.rstrip("\r")) for line in lines]


def format_record(record: Record) -> str:
    if isinstance(record, Blank):
        return ""
    if isinstance(record, Comment):
        return record.text
    prefix = "-" if record.kind == DENOUNCE else ""
    suffix = f" {record.details}" if record.details is not None else ""
    return f"{prefix}{record.handle_text}{suffix}"


def serialize(records: list[Record]) -> str:
    """Inverse of parse(): one line per record with a trailing newline."""
    if not records:
        return ""
    return "\n".join(format_record(r) for r in records) + "\n"

"""LocalFileStore: the trust file in a checked-out working copy.

This is the store every mutation goes through: the workflow edits the file
on disk and the ConflictSafeWriter commits and pushes it.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from vouch_core.codec import parse, serialize
from vouch_core.errors import MissingTrustFileError
from vouch_store.base import BaseStore

if TYPE_CHECKING:
    from vouch_core.records import Record

logger = logging.getLogger(__name__)

TEMPLATE_HEADER = """\
# Vouched and denounced users for this project.
#
# One handle per line, in the form [platform:]username, optionally followed
# by a space and free-form details.
#
#   username               vouched
#   github:username        vouched, platform-specific
#   -github:username why   denounced, with a reason
#
# Entries are kept sorted; comments and blank lines stay at the top.
"""


class LocalFileStore(BaseStore):
    """Reads and writes a trust file on the local filesystem.

    ``load_or_init()`` is the entry point for mutation paths: a missing file is
    treated as one containing only TEMPLATE_HEADER. Read-only paths call
    ``load()`` and get MissingTrustFileError instead.
    """

    def __init__(self, path: str, root: str = "."):
        self.relative_path = path
        self._path = Path(root) / path
        self.location = str(self._path)

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.is_file()

    def load(self) -> list[Record]:
        if not self.exists():
            raise MissingTrustFileError(self.location)
        return parse(self._path.read_text(encoding="utf-8"))

    def load_or_init(self) -> list[Record]:
        if not self.exists():
            logger.info("Trust file %s not found; starting from the template header.", self.location)
            return parse(TEMPLATE_HEADER)
        return self.load()

    def save(self, records: list[Record]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(serialize(records), encoding="utf-8")

"""RemoteFileStore: read-only trust file fetched through the contents API.

Used by the gate and check-user commands, which run without a checkout.
Managers files are read by ``vouch_core.workflows.remote_check_vouched``
through the same ``gh.repo`` helpers; vouch_core does not import this package.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from vouch_core.codec import parse
from vouch_core.errors import MissingTrustFileError
from vouch_core.gh.repo import get_default_branch, get_file_content
from vouch_store.base import BaseStore

if TYPE_CHECKING:
    from vouch_core.records import Record

logger = logging.getLogger(__name__)


class RemoteFileStore(BaseStore):
    """Loads a trust file from ``repo`` at ``ref`` (default branch when None)."""

    def __init__(self, client, repo: str, path: str, ref: str | None = None):
        self._client = client
        self._repo = repo
        self._path = path
        self._ref = ref
        self.location = f"{repo}:{path}"

    def _resolved_ref(self) -> str:
        if self._ref is None:
            self._ref = get_default_branch(self._client, self._repo)
        return self._ref

    def load(self) -> list[Record]:
        ref = self._resolved_ref()
        logger.debug("Fetching %s@%s", self.location, ref)
        return parse(get_file_content(self._client, self._repo, self._path, ref))

    def exists(self) -> bool:
        try:
            self.load()
        except MissingTrustFileError:
            return False
        return True

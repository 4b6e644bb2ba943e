"""Abstract trust file store.

Workflows depend on BaseStore rather than on a concrete backend, so the same
gate check runs against a checked-out working copy or a file fetched through
the platform API.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from vouch_core.records import Record


class BaseStore(ABC):
    """Loads and saves a trust file as a list of records.

    ``load()`` is always a fresh read; stores keep no cached copy between
    calls, so every operation starts from the current file content.
    """

    #: Human-readable location used in log and error messages.
    location: str = ""

    @abstractmethod
    def load(self) -> list[Record]:
        """Return the current records.

        Raises MissingTrustFileError when the file does not exist.
        """

    @abstractmethod
    def exists(self) -> bool:
        """Return True if the trust file exists."""

    def save(self, records: list[Record]) -> None:
        """Persist records.

        Optional: read-only stores keep this default, which refuses.
        """
        raise NotImplementedError(f"{type(self).__name__} is read-only")

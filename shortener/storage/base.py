"""
Base storage interface for the Shortener platform.

Purpose:
    Define a small, stable contract that every backend (memory, file,
    PostgreSQL, null) implements, so the manager never changes when the
    persistence medium does.

Uniqueness contract:
    - One record per source URL. A second save for the same source URL raises
      UniquenessViolation(field="source_url", existing=<stored record>).
    - Aliases are unique. A save whose alias is taken raises
      UniquenessViolation(field="alias"); the manager regenerates and retries.

Testing & Coverage:
    Abstract methods are not executed directly in tests and are marked
    `# pragma: no cover`.

LLM Prompt Example:
    "Show how a narrow, explicit storage interface enables dependency
    injection and easy backend swapping without touching service code."
"""

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from ..models import ShortURLRecord, Stats


class BaseStorage(ABC):
    """Abstract base class for storage backends."""

    name = "base"

    @abstractmethod  # pragma: no cover
    def find_by_alias(self, alias: str) -> Optional[ShortURLRecord]:
        """
        Retrieve a record by alias, deleted or not.

        Returns:
            Optional[ShortURLRecord]: the record, or None if the alias was never stored.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def find_by_source_url(self, source_url: str) -> Optional[ShortURLRecord]:
        """Return the record stored for a long URL, or None."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def save(self, record: ShortURLRecord) -> ShortURLRecord:
        """
        Persist a new record.

        Returns:
            ShortURLRecord: the stored record.

        Raises:
            UniquenessViolation: source URL or alias already taken. For a
                source URL conflict `existing` is the pre-existing record,
                not the one just attempted.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def find_by_owner(self, owner_id: str) -> List[ShortURLRecord]:
        """Return every record owned by `owner_id`, deleted ones included."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def mark_deleted(self, owner_id: str, aliases: Iterable[str]) -> int:
        """
        Soft-delete the given aliases that belong to `owner_id`.

        Aliases owned by someone else, unknown aliases and already deleted
        aliases are skipped without error.

        Returns:
            int: number of records that changed state.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def count_resources(self) -> Stats:
        """Return the number of stored records and of distinct owners."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def ping(self) -> None:
        """Liveness check. Raises StorageUnavailable when the backend is not usable."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def truncate(self) -> None:
        """Remove every record. Test and reset tooling only."""
        raise NotImplementedError

    def close(self) -> None:
        """Release files, pools or sockets held by the backend."""
        return None

"""
Storage module for the Shortener platform (in-memory implementation).

Responsibilities:
    - Keep records in a dict keyed by alias
    - Enforce one record per source URL and unique aliases
    - Provide lookup by alias, by source URL and by owner
    - Soft-delete records on behalf of their owner

Design:
    - A read-write lock guards the dict. Lookups take the read side; save and
      mark_deleted take the write side.
    - The duplicate scan and the insert run in the same write critical
      section, so two concurrent saves of one source URL cannot both pass
      the scan.
    - Source URL lookups are a linear scan; this backend targets tests and
      small deployments.

LLM Prompt Example:
    "Explain how this in-memory storage can be swapped for a database-backed
     layer without changing the manager or API code, by adhering to the
     BaseStorage interface."
"""

from typing import Dict, Iterable, List, Optional

from ..errors import UniquenessViolation
from ..models import ShortURLRecord, Stats
from .base import BaseStorage
from .locks import RWLock


class MemoryStorage(BaseStorage):
    name = "memory"

    def __init__(self):
        """
        Initialize an empty store.

        Internal schema:
            self.records = {alias: ShortURLRecord}
        """
        self.records: Dict[str, ShortURLRecord] = {}
        self._lock = RWLock()

    # ---- Unlocked helpers (callers hold the lock) ---------------------------

    def _scan_source_url(self, source_url: str) -> Optional[ShortURLRecord]:
        for record in self.records.values():
            if record.source_url == source_url:
                return record
        return None

    def _check_unique(self, record: ShortURLRecord) -> None:
        existing = self._scan_source_url(record.source_url)
        if existing is not None:
            raise UniquenessViolation(UniquenessViolation.SOURCE_URL, existing)
        if record.alias in self.records:
            raise UniquenessViolation(UniquenessViolation.ALIAS, self.records[record.alias])

    # ---- Contract methods ----------------------------------------------------

    def find_by_alias(self, alias: str) -> Optional[ShortURLRecord]:
        with self._lock.read():
            return self.records.get(alias)

    def find_by_source_url(self, source_url: str) -> Optional[ShortURLRecord]:
        with self._lock.read():
            return self._scan_source_url(source_url)

    def save(self, record: ShortURLRecord) -> ShortURLRecord:
        """
        Insert a record.

        Rules:
            - Same source URL already stored -> UniquenessViolation("source_url", existing).
            - Alias already used by any record -> UniquenessViolation("alias").
        """
        with self._lock.write():
            self._check_unique(record)
            self.records[record.alias] = record
            return record

    def find_by_owner(self, owner_id: str) -> List[ShortURLRecord]:
        with self._lock.read():
            return [r for r in self.records.values() if r.owner_id == owner_id]

    def mark_deleted(self, owner_id: str, aliases: Iterable[str]) -> int:
        changed = 0
        with self._lock.write():
            for alias in aliases:
                record = self.records.get(alias)
                if record is None or record.owner_id != owner_id or record.is_deleted:
                    continue
                self.records[alias] = record.as_deleted()
                changed += 1
        return changed

    def count_resources(self) -> Stats:
        with self._lock.read():
            owners = {r.owner_id for r in self.records.values() if r.owner_id is not None}
            return Stats(urls=len(self.records), users=len(owners))

    def ping(self) -> None:
        return None

    def truncate(self) -> None:
        with self._lock.write():
            self.records.clear()

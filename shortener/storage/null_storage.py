"""
NullStorage – no-op backend.

Satisfies BaseStorage without keeping anything: lookups find nothing, saves
echo their input, counts are zero and the health check always passes. Used
when a backend is explicitly set to "null" and as a stub in tests.
"""

from typing import Iterable, List, Optional

from ..models import ShortURLRecord, Stats
from .base import BaseStorage


class NullStorage(BaseStorage):
    name = "null"

    def find_by_alias(self, alias: str) -> Optional[ShortURLRecord]:
        return None

    def find_by_source_url(self, source_url: str) -> Optional[ShortURLRecord]:
        return None

    def save(self, record: ShortURLRecord) -> ShortURLRecord:
        return record

    def find_by_owner(self, owner_id: str) -> List[ShortURLRecord]:
        return []

    def mark_deleted(self, owner_id: str, aliases: Iterable[str]) -> int:
        return 0

    def count_resources(self) -> Stats:
        return Stats()

    def ping(self) -> None:
        return None

    def truncate(self) -> None:
        return None

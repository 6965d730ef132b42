"""
Domain records shared by the manager, storage backends and the API.
"""

from dataclasses import dataclass, replace
from typing import Optional


@dataclass(frozen=True)
class ShortURLRecord:
    """
    One shortened URL.

    Attributes:
        id: opaque UUID assigned at creation.
        alias: the short lookup key.
        source_url: original long URL (one record per source URL).
        owner_id: optional owning user; None for anonymous records.
        is_deleted: soft-delete flag; deleted records resolve as gone.
    """
    id: str
    alias: str
    source_url: str
    owner_id: Optional[str] = None
    is_deleted: bool = False

    def as_deleted(self) -> "ShortURLRecord":
        return replace(self, is_deleted=True)


@dataclass(frozen=True)
class BatchItem:
    correlation_id: str
    original_url: str


@dataclass(frozen=True)
class BatchResult:
    correlation_id: str
    short_url: str


@dataclass(frozen=True)
class UserURL:
    short_url: str
    original_url: str


@dataclass(frozen=True)
class Stats:
    urls: int = 0
    users: int = 0

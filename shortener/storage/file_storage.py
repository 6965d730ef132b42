"""
FileStorage – JSON-lines backed storage for the Shortener platform
=================================================================

An in-memory index (inherited from MemoryStorage) mirrors an append-only log
file. Every state change is one JSON object on its own line:

    {"user_id": "alice", "uuid": "...", "short_url": "AbC12", "original_url": "https://...", "is_deleted": false}

``short_url`` holds the alias. The field names are the durable format and
must not change.

Startup
-------
The file is replayed line by line into the index. Later lines for the same
alias replace earlier ones, which is how soft deletes survive a restart. A
line that is not a JSON object with the required fields aborts startup with
RestoreFailed: serving from a partially restored dataset is worse than not
starting.

Writes
------
``save`` runs the duplicate scan, the append and the index update under the
write lock. The line is written unbuffered and fsynced before the index changes, so a
failed write leaves the index as it was. The file is cut back to where the
line started and the caller sees WriteFailed.
"""

import errno
import json
import logging
import os
from typing import Any, Dict, Iterable, Optional

from ..errors import RestoreFailed, StorageUnavailable, WriteFailed
from ..models import ShortURLRecord
from .memory_storage import MemoryStorage

log = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("uuid", "short_url", "original_url")


def to_line(record: ShortURLRecord) -> str:
    return json.dumps(
        {
            "user_id": record.owner_id,
            "uuid": record.id,
            "short_url": record.alias,
            "original_url": record.source_url,
            "is_deleted": record.is_deleted,
        },
        ensure_ascii=False,
    )


def _owner_from_line(value: Any) -> Optional[str]:
    # 0 and "" were written for anonymous records by older writers
    if value in (None, 0, ""):
        return None
    return str(value)


def from_line(line: str) -> ShortURLRecord:
    """
    Parse one log line.

    Raises:
        ValueError: not JSON, or a required field is missing.
        TypeError: the line is JSON but not an object.
    """
    data: Dict[str, Any] = json.loads(line)
    if not isinstance(data, dict):
        raise TypeError(f"expected a JSON object, got {type(data).__name__}")
    missing = [f for f in _REQUIRED_FIELDS if f not in data]
    if missing:
        raise ValueError(f"missing fields: {', '.join(missing)}")
    return ShortURLRecord(
        id=str(data["uuid"]),
        alias=str(data["short_url"]),
        source_url=str(data["original_url"]),
        owner_id=_owner_from_line(data.get("user_id")),
        is_deleted=bool(data.get("is_deleted", False)),
    )


class FileStorage(MemoryStorage):
    """File-backed storage.

    Parameters
    ----------
    path : str
        Log file; created if missing.
    """

    name = "file"

    def __init__(self, path: str) -> None:
        super().__init__()
        self.path = path
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        self._restore()
        self._file = open(path, "ab", buffering=0)

    # ---- Internal helpers -------------------------------------------------

    def _restore(self) -> None:
        if not os.path.exists(self.path):
            return
        with open(self.path, "r", encoding="utf-8") as f:
            for line_no, raw in enumerate(f, start=1):
                content = raw.strip()
                if not content:
                    continue
                try:
                    record = from_line(content)
                except (ValueError, TypeError) as e:
                    raise RestoreFailed(self.path, line_no, content, e) from e
                self.records[record.alias] = record
        log.info("Restored %d records from %s", len(self.records), self.path)

    def _append(self, record: ShortURLRecord) -> None:
        offset = self._file.seek(0, os.SEEK_END)
        try:
            data = (to_line(record) + "\n").encode("utf-8")
            written = self._file.write(data)
            if written != len(data):
                raise OSError(errno.EIO, f"short write: {written} of {len(data)} bytes")
            os.fsync(self._file.fileno())
        except (OSError, ValueError) as e:
            self._rollback(offset)
            raise WriteFailed(self.path, e) from e

    def _rollback(self, offset: int) -> None:
        # drop a torn or unsynced line so the next append starts clean
        try:
            self._file.truncate(offset)
            self._file.seek(offset)
        except (OSError, ValueError):
            log.exception("Could not cut %s back to offset %d", self.path, offset)

    # ---- Contract methods -------------------------------------------------

    def save(self, record: ShortURLRecord) -> ShortURLRecord:
        with self._lock.write():
            self._check_unique(record)
            self._append(record)
            self.records[record.alias] = record
            return record

    def mark_deleted(self, owner_id: str, aliases: Iterable[str]) -> int:
        changed = 0
        with self._lock.write():
            for alias in aliases:
                record = self.records.get(alias)
                if record is None or record.owner_id != owner_id or record.is_deleted:
                    continue
                deleted = record.as_deleted()
                self._append(deleted)
                self.records[alias] = deleted
                changed += 1
        return changed

    def ping(self) -> None:
        try:
            os.fstat(self._file.fileno())
        except (OSError, ValueError) as e:
            raise StorageUnavailable(self.name, e) from e

    def truncate(self) -> None:
        with self._lock.write():
            self._file.truncate(0)
            self._file.seek(0)
            self.records.clear()

    def close(self) -> None:
        if not self._file.closed:
            self._file.close()

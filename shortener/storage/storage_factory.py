"""
Storage factory – pick the storage backend from settings
========================================================

Centralizes backend selection so the rest of the app stays ignorant of where
data lives.

- Takes an explicit ``Settings`` object; reads nothing from the environment.
- Imports the PostgreSQL backend **only if** it is selected, so memory/file
  deployments do not need a libpq install.

Backends
--------
- "memory"   : MemoryStorage (default when nothing else is configured)
- "file"     : FileStorage(settings.file_storage_path)
- "postgres" : DBStorage(settings.db_dsn, ...)
- "null"     : NullStorage
"""

import logging
from typing import Optional

from ..config import Settings
from .base import BaseStorage
from .file_storage import FileStorage
from .memory_storage import MemoryStorage
from .null_storage import NullStorage

log = logging.getLogger(__name__)

_ALIASES = {
    "postgresql": "postgres",
    "pg": "postgres",
    "mem": "memory",
}


def get_storage(settings: Settings, backend: Optional[str] = None) -> BaseStorage:
    """
    Return a BaseStorage instance for the configured backend.

    Parameters
    ----------
    settings : Settings
        Process configuration.
    backend : str, optional
        Override of the backend name; defaults to ``settings.resolved_backend``.

    Raises
    ------
    ValueError
        Unknown backend, or a backend missing its connection parameter.
    """
    be = (backend or settings.resolved_backend).strip().lower()
    be = _ALIASES.get(be, be)
    log.info("Selected storage backend: %r", be)

    if be == "memory":
        return MemoryStorage()

    if be == "file":
        if not settings.file_storage_path:
            raise ValueError("file storage path is required for file backend (env SHORTENER_FILE_STORAGE_PATH)")
        return FileStorage(settings.file_storage_path)

    if be == "postgres":
        if not settings.db_dsn:
            raise ValueError("DB_DSN is required for postgres backend (env SHORTENER_DB_DSN)")
        # Local import to avoid hard dependency when not using postgres
        from .db_storage import DBStorage
        return DBStorage(
            dsn=settings.db_dsn,
            conn_try_times=settings.db_conn_try_times,
            conn_try_delay=settings.db_conn_try_delay,
            statement_timeout_ms=settings.db_statement_timeout_ms,
        )

    if be == "null":
        return NullStorage()

    raise ValueError(f"Unknown storage backend: {be!r}")

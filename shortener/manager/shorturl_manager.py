"""
ShortURLManager module for the Shortener platform.

Responsibilities:
    - Validate source URLs (and the configured base URL) before storage is touched
    - Build candidate records from the injected generator
    - Translate storage uniqueness signals into service results:
        * source URL already stored -> AlreadyExists carrying the existing record
        * alias already taken       -> regenerate and retry, bounded
    - Resolve aliases, telling "never existed" apart from "soft-deleted"
    - Best-effort batch creation, owner-scoped deletion, listing and stats

Design notes:
    - Stateless: every piece of shared state lives in the storage backend, so
      one manager instance serves all request threads.
    - The retry loop carries its attempt counter explicitly and is bounded by
      `max_generation_attempts`; a storage double that reports N alias
      collisions and then accepts exercises it directly.

LLM Prompt Example:
    "Explain how a URL shortener can keep one canonical short link per long
    URL while still retrying random alias collisions, and why the two
    conflicts must be told apart."
"""

import logging
from dataclasses import replace
from typing import Iterable, List, Optional
from urllib.parse import urlparse

from ..errors import (
    AlreadyExists,
    Deleted,
    EmptyAlias,
    ExhaustedRetries,
    InvalidBaseURL,
    InvalidSourceURL,
    NotFound,
    ShortenerError,
    StorageError,
    UniquenessViolation,
)
from ..models import BatchItem, BatchResult, ShortURLRecord, Stats, UserURL
from ..storage.base import BaseStorage
from .generator import AliasGenerator

log = logging.getLogger(__name__)


def is_valid_url(url: str) -> bool:
    """True for absolute http/https URLs with a host."""
    if not url:
        return False
    try:
        parsed = urlparse(url)
        host = parsed.hostname
    except ValueError:
        return False
    return parsed.scheme in {"http", "https"} and bool(host)


class ShortURLManager:
    """
    Coordinates creation, lookup and deletion rules for short URLs.
    """

    def __init__(
        self,
        storage: BaseStorage,
        generator: Optional[AliasGenerator] = None,
        base_url: str = "http://localhost:8080",
        max_generation_attempts: int = 5,
    ):
        """
        Args:
            storage (BaseStorage): Backend storage instance.
            generator (Optional[AliasGenerator]): Alias/id source; defaults to 5-char aliases.
            base_url (str): Prefix used to compose full short URLs.
            max_generation_attempts (int): Alias collision retry bound (>= 1).
        """
        self.storage = storage
        self.generator = generator or AliasGenerator()
        self.base_url = base_url.rstrip("/")
        self.max_generation_attempts = max(1, max_generation_attempts)

    # ---------------------------------------------------------------------
    # Helpers
    # ---------------------------------------------------------------------
    def short_url(self, record: ShortURLRecord) -> str:
        return f"{self.base_url}/{record.alias}"

    def _new_candidate(self, source_url: str, owner_id: Optional[str]) -> ShortURLRecord:
        return ShortURLRecord(
            id=self.generator.uuid(),
            alias=self.generator.alias(),
            source_url=source_url,
            owner_id=owner_id,
        )

    def _persist(self, candidate: ShortURLRecord, attempt: int) -> Optional[ShortURLRecord]:
        """
        Run one save attempt.

        Returns:
            The stored record, or None when the alias collided and another
            attempt is needed.

        Raises:
            AlreadyExists: a record for the source URL is already stored.
        """
        try:
            return self.storage.save(candidate)
        except UniquenessViolation as e:
            if e.field != UniquenessViolation.ALIAS:
                existing = e.existing or self.storage.find_by_source_url(candidate.source_url)
                if existing is None:
                    raise
                raise AlreadyExists(existing) from e
            log.debug(
                "Alias %r already taken (attempt %d/%d)",
                candidate.alias, attempt, self.max_generation_attempts,
            )
            return None

    # ---------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------
    def save(self, source_url: str, owner_id: Optional[str] = None) -> ShortURLRecord:
        """
        Create the short URL record for `source_url`.

        Rules:
            - Base URL and source URL are validated first (no storage call on failure).
            - A source URL that is already stored raises AlreadyExists with the
              existing record; the caller decides whether that is a conflict or
              a soft success.
            - Alias collisions are retried with a fresh alias up to
              `max_generation_attempts` times, then ExhaustedRetries.
            - Other storage errors propagate unchanged.

        Raises:
            InvalidBaseURL, InvalidSourceURL, AlreadyExists, ExhaustedRetries
        """
        if not is_valid_url(self.base_url):
            raise InvalidBaseURL(self.base_url)
        if not is_valid_url(source_url):
            raise InvalidSourceURL(source_url)

        candidate = self._new_candidate(source_url, owner_id)
        for attempt in range(1, self.max_generation_attempts + 1):
            stored = self._persist(candidate, attempt)
            if stored is not None:
                return stored
            candidate = replace(candidate, id=self.generator.uuid(), alias=self.generator.alias())

        log.warning("Gave up generating an alias for %r after %d attempts", source_url, self.max_generation_attempts)
        raise ExhaustedRetries(self.max_generation_attempts)

    def find_by_alias(self, alias: str) -> ShortURLRecord:
        """
        Resolve an alias. A raw URL path ("/AbC12") is accepted.

        Raises:
            EmptyAlias: nothing left after stripping the leading slash.
            NotFound: alias was never stored.
            Deleted: alias exists but was soft-deleted.
        """
        alias = (alias or "").lstrip("/")
        if not alias:
            raise EmptyAlias()

        record = self.storage.find_by_alias(alias)
        if record is None:
            raise NotFound(alias)
        if record.is_deleted:
            raise Deleted(alias)
        return record

    def batch_save(self, items: Iterable[BatchItem]) -> List[BatchResult]:
        """
        Shorten many URLs anonymously, best effort.

        Items that fail for any reason (invalid URL, already stored, storage
        error) are logged and left out. Successful items keep input order and
        their caller-supplied correlation id.
        """
        results: List[BatchResult] = []
        for item in items:
            try:
                record = self.save(item.original_url)
            except StorageError as e:
                log.warning("Skipping batch item %r, storage failed: %s", item.correlation_id, e)
                continue
            except ShortenerError as e:
                log.info("Skipping batch item %r: %s", item.correlation_id, e)
                continue
            results.append(BatchResult(correlation_id=item.correlation_id, short_url=self.short_url(record)))
        return results

    def mark_deleted(self, owner_id: Optional[str], aliases: Iterable[str]) -> int:
        """
        Soft-delete the given aliases owned by `owner_id`.

        Aliases owned by someone else look exactly like unknown ones: skipped,
        no error. Deleting twice is a no-op.

        Returns:
            int: records that changed state.
        """
        if not owner_id:
            return 0
        normalized = [a.lstrip("/") for a in aliases if a and a.lstrip("/")]
        if not normalized:
            return 0
        changed = self.storage.mark_deleted(owner_id, normalized)
        log.info("Owner %r deleted %d of %d aliases", owner_id, changed, len(normalized))
        return changed

    def get_user_urls(self, owner_id: str) -> List[UserURL]:
        """Active (non-deleted) short URLs owned by `owner_id`."""
        return [
            UserURL(short_url=self.short_url(r), original_url=r.source_url)
            for r in self.storage.find_by_owner(owner_id)
            if not r.is_deleted
        ]

    def get_stats(self) -> Stats:
        return self.storage.count_resources()

    def ping(self) -> None:
        """Raise StorageUnavailable if the backend is not healthy."""
        self.storage.ping()

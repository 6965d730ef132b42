"""
Exceptions for the Shortener platform.

Two families live here:

- Service errors (``ShortenerError`` subclasses) are what the manager raises
  and what transport layers map to status codes.
- Storage errors (``StorageError`` subclasses) are raised by backends. The
  manager inspects them once: a uniqueness violation becomes either an
  ``AlreadyExists`` or an alias retry, everything else propagates unchanged.
"""

from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .models import ShortURLRecord


class ShortenerError(Exception):
    """Base exception for the shortener service."""


class InvalidConfiguration(ShortenerError):
    """Raised when a component is built with unusable settings."""


class InvalidSourceURL(ShortenerError):
    """Raised when the long URL fails validation."""

    def __init__(self, url: str, reason: str = "invalid source URL, please specify valid URL"):
        self.url = url
        self.reason = reason
        super().__init__(f"{reason}: {url!r}")


class InvalidBaseURL(ShortenerError):
    """Raised when the configured base URL cannot be used to compose links."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"invalid base URL, please specify valid URL: {url!r}")


class EmptyAlias(ShortenerError):
    def __init__(self):
        super().__init__("empty alias, please specify alias")


class AlreadyExists(ShortenerError):
    """
    Raised when a record for the source URL already exists.

    The existing record travels with the error so callers can still answer
    with the canonical short URL (HTTP 409 with a body).
    """

    def __init__(self, record: "ShortURLRecord"):
        self.record = record
        super().__init__(f"short URL already exist for {record.source_url!r}")


class ExhaustedRetries(ShortenerError):
    """Raised when no free alias was found within the attempt bound."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"could not generate a unique alias after {attempts} attempts")


class NotFound(ShortenerError):
    def __init__(self, alias: str):
        self.alias = alias
        super().__init__(f"source URL not found for alias {alias!r}")


class Deleted(ShortenerError):
    """Raised when the alias existed but was soft-deleted (distinct from NotFound)."""

    def __init__(self, alias: str):
        self.alias = alias
        super().__init__(f"short URL {alias!r} was deleted")


# ---------------------------------------------------------------------------
# Storage layer
# ---------------------------------------------------------------------------

class StorageError(ShortenerError):
    """Base class for backend failures."""


class UniquenessViolation(StorageError):
    """
    A save hit a unique constraint.

    Attributes:
        field: ``"source_url"`` or ``"alias"``.
        existing: the conflicting record already stored, when known.
    """

    SOURCE_URL = "source_url"
    ALIAS = "alias"

    def __init__(self, field: str, existing: Optional["ShortURLRecord"] = None):
        self.field = field
        self.existing = existing
        super().__init__(f"record is not unique ({field})")


class RestoreFailed(StorageError):
    """The file backend could not replay its log at startup."""

    def __init__(self, path: str, line_no: int, content: str, cause: Exception):
        self.path = path
        self.line_no = line_no
        self.content = content
        self.cause = cause
        super().__init__(
            f"cannot restore records from file {path} (line {line_no}: {content!r}): {cause}"
        )


class StorageUnavailable(StorageError):
    """Health check failed."""

    def __init__(self, backend: str, cause: Optional[Exception] = None):
        self.backend = backend
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"storage {backend!r} is not healthy{detail}")


class QueryFailed(StorageError):
    """A database statement failed for a reason other than uniqueness."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.original_error = original_error
        super().__init__(f"query to db is failed: {message}")


class WriteFailed(StorageError):
    """The file backend could not append a line; the log was cut back to its previous end."""

    def __init__(self, path: str, cause: Exception):
        self.path = path
        self.cause = cause
        super().__init__(f"cannot write record to file {path}: {cause}")

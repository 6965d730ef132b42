"""
Unit tests for ShortURLManager.

Focus:
    - URL validation happens before any storage call
    - one canonical record per source URL (AlreadyExists carries it)
    - bounded alias collision retry, ExhaustedRetries afterwards
    - alias resolution: EmptyAlias / NotFound / Deleted
    - best-effort batch, owner-scoped delete, listing, stats
"""

from concurrent.futures import ThreadPoolExecutor
import threading

import pytest

from shortener.errors import (
    AlreadyExists,
    Deleted,
    EmptyAlias,
    ExhaustedRetries,
    InvalidBaseURL,
    InvalidSourceURL,
    NotFound,
    QueryFailed,
    UniquenessViolation,
)
from shortener.manager.generator import AliasGenerator
from shortener.manager.shorturl_manager import ShortURLManager, is_valid_url
from shortener.models import BatchItem, BatchResult, ShortURLRecord, Stats, UserURL
from shortener.storage.memory_storage import MemoryStorage
from shortener.storage.null_storage import NullStorage

BASE_URL = "http://short.test"


class CollidingStorage(MemoryStorage):
    """Reports an alias collision for the first `collisions` saves, then behaves normally."""

    def __init__(self, collisions):
        super().__init__()
        self.collisions = collisions
        self.calls = 0

    def save(self, record):
        self.calls += 1
        if self.calls <= self.collisions:
            raise UniquenessViolation(UniquenessViolation.ALIAS)
        return super().save(record)


class BrokenStorage(NullStorage):
    def save(self, record):
        raise QueryFailed("connection reset")


class SequenceGenerator:
    """Hands out predetermined aliases."""

    def __init__(self, aliases):
        self._aliases = iter(aliases)
        self._ids = AliasGenerator()

    def alias(self):
        return next(self._aliases)

    def uuid(self):
        return self._ids.uuid()


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "url, ok",
    [
        ("https://example.com", True),
        ("http://example.com/a/b?q=1#frag", True),
        ("https://localhost:8080/path", True),
        ("", False),
        ("example.com", False),
        ("ftp://example.com/file", False),
        ("http://", False),
        ("not a url", False),
        ("http://[::1", False),
    ],
)
def test_is_valid_url(url, ok):
    assert is_valid_url(url) is ok


def test_invalid_source_url_touches_no_storage():
    storage = CollidingStorage(collisions=0)
    mgr = ShortURLManager(storage=storage, base_url=BASE_URL)
    with pytest.raises(InvalidSourceURL):
        mgr.save("example.com")
    assert storage.calls == 0


def test_invalid_base_url_is_reported():
    mgr = ShortURLManager(storage=MemoryStorage(), base_url="not-a-base")
    with pytest.raises(InvalidBaseURL):
        mgr.save("https://example.com")


# ---------------------------------------------------------------------------
# Save
# ---------------------------------------------------------------------------

def test_save_then_resolve(manager):
    rec = manager.save("https://example.com/some/long/path", owner_id="alice")

    assert len(rec.alias) == 5
    assert rec.alias.isalnum()
    assert rec.owner_id == "alice"
    assert manager.short_url(rec) == f"{BASE_URL}/{rec.alias}"
    assert manager.find_by_alias(rec.alias) == rec


def test_save_same_url_twice_raises_already_exists_with_same_alias(manager, storage):
    first = manager.save("https://example.com")

    with pytest.raises(AlreadyExists) as ei:
        manager.save("https://example.com", owner_id="someone-else")

    assert ei.value.record.alias == first.alias
    assert len(storage.records) == 1


def test_alias_collisions_are_retried():
    storage = CollidingStorage(collisions=3)
    mgr = ShortURLManager(storage=storage, base_url=BASE_URL, max_generation_attempts=5)

    rec = mgr.save("https://retry.example")

    assert storage.calls == 4
    assert storage.find_by_alias(rec.alias) == rec


def test_retry_uses_fresh_alias(storage):
    storage.save(ShortURLRecord(id="id-taken", alias="taken", source_url="https://first.example"))
    mgr = ShortURLManager(
        storage=storage,
        generator=SequenceGenerator(["taken", "taken", "fresh"]),
        base_url=BASE_URL,
    )

    rec = mgr.save("https://second.example")

    assert rec.alias == "fresh"


def test_exhausted_retries():
    storage = CollidingStorage(collisions=100)
    mgr = ShortURLManager(storage=storage, base_url=BASE_URL, max_generation_attempts=3)

    with pytest.raises(ExhaustedRetries) as ei:
        mgr.save("https://never.example")

    assert ei.value.attempts == 3
    assert storage.calls == 3


def test_other_storage_errors_propagate():
    mgr = ShortURLManager(storage=BrokenStorage(), base_url=BASE_URL)
    with pytest.raises(QueryFailed):
        mgr.save("https://example.com")


def test_source_violation_without_existing_record_propagates():
    class Inconsistent(NullStorage):
        def save(self, record):
            raise UniquenessViolation(UniquenessViolation.SOURCE_URL)

    mgr = ShortURLManager(storage=Inconsistent(), base_url=BASE_URL)
    with pytest.raises(UniquenessViolation):
        mgr.save("https://example.com")


def test_concurrent_saves_create_one_record(storage):
    mgr = ShortURLManager(storage=storage, base_url=BASE_URL)
    n = 16
    barrier = threading.Barrier(n)

    def attempt(_):
        barrier.wait()
        try:
            return ("saved", mgr.save("https://race.example").alias)
        except AlreadyExists as e:
            return ("exists", e.record.alias)

    with ThreadPoolExecutor(max_workers=n) as pool:
        outcomes = list(pool.map(attempt, range(n)))

    kinds = [k for k, _ in outcomes]
    assert kinds.count("saved") == 1
    assert kinds.count("exists") == n - 1
    assert len({alias for _, alias in outcomes}) == 1


# ---------------------------------------------------------------------------
# Resolve
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("alias", ["", "/", "//"])
def test_empty_alias(manager, alias):
    with pytest.raises(EmptyAlias):
        manager.find_by_alias(alias)


def test_unknown_alias(manager):
    with pytest.raises(NotFound) as ei:
        manager.find_by_alias("nope1")
    assert ei.value.alias == "nope1"


def test_leading_slash_is_stripped(manager):
    rec = manager.save("https://example.com")
    assert manager.find_by_alias("/" + rec.alias) == rec


def test_deleted_alias_is_distinct_from_unknown(manager):
    rec = manager.save("https://example.com", owner_id="alice")
    assert manager.mark_deleted("alice", [rec.alias]) == 1

    with pytest.raises(Deleted):
        manager.find_by_alias(rec.alias)


# ---------------------------------------------------------------------------
# Batch
# ---------------------------------------------------------------------------

def test_batch_skips_failed_items_and_keeps_order(manager):
    items = [
        BatchItem(correlation_id="c1", original_url="https://one.example"),
        BatchItem(correlation_id="c2", original_url="not-a-url"),
        BatchItem(correlation_id="c3", original_url="https://three.example"),
    ]

    results = manager.batch_save(items)

    assert [r.correlation_id for r in results] == ["c1", "c3"]
    for r in results:
        assert isinstance(r, BatchResult)
        assert r.short_url.startswith(BASE_URL + "/")


def test_batch_skips_already_stored_urls(manager):
    manager.save("https://one.example")
    results = manager.batch_save([BatchItem("c1", "https://one.example"), BatchItem("c2", "https://two.example")])
    assert [r.correlation_id for r in results] == ["c2"]


def test_batch_empty(manager):
    assert manager.batch_save([]) == []


# ---------------------------------------------------------------------------
# Delete / list / stats
# ---------------------------------------------------------------------------

def test_mark_deleted_is_owner_scoped(manager):
    mine = manager.save("https://mine.example", owner_id="alice")
    theirs = manager.save("https://theirs.example", owner_id="bob")

    assert manager.mark_deleted("alice", [mine.alias, theirs.alias, "/unknown"]) == 1
    assert manager.find_by_alias(theirs.alias) == theirs
    # second delete is a no-op
    assert manager.mark_deleted("alice", [mine.alias]) == 0


def test_mark_deleted_without_owner_is_noop(manager):
    rec = manager.save("https://anon.example")
    assert manager.mark_deleted(None, [rec.alias]) == 0
    assert manager.mark_deleted("alice", ["", "/"]) == 0
    assert manager.find_by_alias(rec.alias) == rec


def test_get_user_urls_lists_active_records_only(manager):
    keep = manager.save("https://keep.example", owner_id="alice")
    gone = manager.save("https://gone.example", owner_id="alice")
    manager.save("https://other.example", owner_id="bob")
    manager.mark_deleted("alice", [gone.alias])

    assert manager.get_user_urls("alice") == [
        UserURL(short_url=f"{BASE_URL}/{keep.alias}", original_url="https://keep.example")
    ]
    assert manager.get_user_urls("nobody") == []


def test_get_stats(manager):
    manager.save("https://a.example", owner_id="alice")
    manager.save("https://b.example", owner_id="bob")
    manager.save("https://c.example")
    assert manager.get_stats() == Stats(urls=3, users=2)


def test_ping_delegates_to_storage(manager):
    assert manager.ping() is None

from __future__ import annotations

import json
import threading
from datetime import UTC, datetime, timedelta

from reclaim.models.cache import CacheEntry, RecommendationsPayload
from reclaim.models.enums import ProfileKind
from reclaim.models.profile import ProfileEvidence, Recommendation, UserProfile
from reclaim.services.cache import (
    CATALOG_CACHE_FILE,
    CacheStore,
    recommendations_cache,
    storage_map_cache,
)
from tests.factories import make_dir, make_file
from tests.fs_mock import MemoryFileSystem

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
CACHE_DIR = "/mock/home/.cache/reclaim"


def _store(fs: MemoryFileSystem) -> CacheStore[int]:
    return CacheStore(f"{CACHE_DIR}/ints.json", lambda v: v, int, fs=fs)


def _list_store(fs: MemoryFileSystem) -> CacheStore[list[int]]:
    return CacheStore(f"{CACHE_DIR}/lists.json", list, list, fs=fs)


class TestCacheEntry:
    def test_fresh_at_exact_boundary(self) -> None:
        entry = CacheEntry(key="k", created_at=T0, payload=1)
        assert entry.is_fresh(timedelta(minutes=15), T0 + timedelta(minutes=15))

    def test_stale_after_boundary(self) -> None:
        entry = CacheEntry(key="k", created_at=T0, payload=1)
        assert not entry.is_fresh(timedelta(minutes=15), T0 + timedelta(minutes=15, seconds=1))


class TestCacheStore:
    def test_load_missing_key(self) -> None:
        assert _store(MemoryFileSystem()).load("nope", timedelta(minutes=1), now=T0) is None

    def test_save_then_load(self) -> None:
        fs = MemoryFileSystem()
        store = _store(fs)
        store.save(CacheEntry(key="k", created_at=T0, payload=7))
        entry = store.load("k", timedelta(minutes=15), now=T0 + timedelta(minutes=10))
        assert entry is not None
        assert entry.payload == 7

    def test_stale_entry_evicted_and_persisted(self) -> None:
        fs = MemoryFileSystem()
        store = _store(fs)
        store.save(CacheEntry(key="k", created_at=T0, payload=7))

        assert store.load("k", timedelta(minutes=15), now=T0 + timedelta(minutes=16)) is None
        assert json.loads(fs.read_text(store.path)) == {}

    def test_persisted_across_instances(self) -> None:
        fs = MemoryFileSystem()
        _store(fs).save(CacheEntry(key="k", created_at=T0, payload=3))
        entry = _store(fs).load("k", timedelta(hours=1), now=T0)
        assert entry is not None
        assert entry.payload == 3
        assert entry.created_at == T0

    def test_corrupt_file_is_empty_cache(self) -> None:
        fs = MemoryFileSystem()
        fs.add_file(f"{CACHE_DIR}/ints.json", content="{not json")
        store = _store(fs)
        assert store.load("k", timedelta(hours=1), now=T0) is None
        store.save(CacheEntry(key="k", created_at=T0, payload=1))
        assert store.load("k", timedelta(hours=1), now=T0) is not None

    def test_naive_timestamp_read_as_utc(self, memfs: MemoryFileSystem) -> None:
        record = {"key": "k", "createdAt": "2026-03-01T12:00:00", "payload": 4}
        memfs.add_file(f"{CACHE_DIR}/ints.json", content=json.dumps({"k": record}))

        entry = _store(memfs).load("k", timedelta(hours=1), now=T0 + timedelta(minutes=30))

        assert entry is not None
        assert entry.created_at == T0
        assert _store(memfs).load("k", timedelta(hours=1), now=T0 + timedelta(hours=2)) is None

    def test_loaded_payload_is_a_copy(self) -> None:
        store = _list_store(MemoryFileSystem())
        saved = [1, 2, 3]
        store.save(CacheEntry(key="k", created_at=T0, payload=saved))
        saved.append(4)

        first = store.load("k", timedelta(hours=1), now=T0)
        assert first is not None
        first.payload.clear()

        second = store.load("k", timedelta(hours=1), now=T0)
        assert second is not None
        assert second.payload == [1, 2, 3]

    def test_concurrent_saves_all_persisted(self, memfs: MemoryFileSystem) -> None:
        store = _store(memfs)
        barrier = threading.Barrier(8)

        def worker(n: int) -> None:
            barrier.wait()
            for i in range(10):
                store.save(CacheEntry(key=f"k{n}-{i}", created_at=T0, payload=n * 100 + i))

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(json.loads(memfs.read_text(store.path))) == 80
        fresh = _store(memfs)
        for n in range(8):
            for i in range(10):
                entry = fresh.load(f"k{n}-{i}", timedelta(hours=1), now=T0)
                assert entry is not None
                assert entry.payload == n * 100 + i

    def test_write_failure_keeps_memory_copy(self) -> None:
        fs = MemoryFileSystem()
        fs.fail_writes.add(f"{CACHE_DIR}/ints.json")
        store = _store(fs)
        store.save(CacheEntry(key="k", created_at=T0, payload=9))
        entry = store.load("k", timedelta(hours=1), now=T0)
        assert entry is not None
        assert not fs.exists(f"{CACHE_DIR}/ints.json")

    def test_uses_clock_when_now_omitted(self) -> None:
        fs = MemoryFileSystem()
        store = CacheStore(f"{CACHE_DIR}/ints.json", lambda v: v, int, fs=fs, clock=lambda: T0 + timedelta(days=1))
        store.save(CacheEntry(key="k", created_at=T0, payload=1))
        assert store.load("k", timedelta(hours=1)) is None


class TestDomainStores:
    def test_file_names(self) -> None:
        fs = MemoryFileSystem()
        assert recommendations_cache(CACHE_DIR, fs=fs).path.endswith("recommendations-cache.json")
        assert storage_map_cache(CACHE_DIR, fs=fs).path.endswith("storage-map-cache.json")
        assert CATALOG_CACHE_FILE == "app-catalog-cache.json"

    def test_tilde_cache_dir_expanded(self) -> None:
        store = storage_map_cache("~/.cache/reclaim", fs=MemoryFileSystem())
        assert store.path == "/mock/home/.cache/reclaim/storage-map-cache.json"

    def test_storage_map_tree_persisted(self) -> None:
        fs = MemoryFileSystem()
        tree = make_dir("/r", 30, [make_file("/r/a", 20), make_dir("/r/sub", 10, [make_file("/r/sub/b", 10)])])
        storage_map_cache(CACHE_DIR, fs=fs).save(CacheEntry(key="home|/r", created_at=T0, payload=tree))

        entry = storage_map_cache(CACHE_DIR, fs=fs).load("home|/r", timedelta(minutes=20), now=T0)

        assert entry is not None
        assert entry.payload == tree

    def test_recommendations_persisted(self) -> None:
        fs = MemoryFileSystem()
        payload = RecommendationsPayload(
            profile=UserProfile([ProfileKind.WEB_DEVELOPER], 0.8, [ProfileEvidence("Web tooling", 0.8)]),
            recommendations=[Recommendation("unit:/p", "Cleanup unit: p", "d", "/p", 0.5, 0.9, 0.35)],
        )
        recommendations_cache(CACHE_DIR, fs=fs).save(CacheEntry(key="k", created_at=T0, payload=payload))

        entry = recommendations_cache(CACHE_DIR, fs=fs).load("k", timedelta(minutes=20), now=T0)

        assert entry is not None
        assert entry.payload.profile == payload.profile
        assert entry.payload.recommendations == payload.recommendations

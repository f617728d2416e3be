# Persisted TTL cache.
#
# One CacheStore per domain (app catalog, recommendations, storage map), each
# backed by its own JSON file holding {key: {"key", "createdAt", "payload"}}.
#
# Thread safety model:
#   The in-memory map is the source of truth after construction.  A single
#   lock serialises load/save per store, so there is exactly one writer and
#   readers always observe a fully applied save.  Each mutation rewrites the
#   whole file through FileSystem.write_text_atomic (temp file + rename), so
#   an interrupted process leaves either the old or the new file, never a
#   torn one.

from __future__ import annotations

import json
import logging
import os
import threading
from datetime import UTC, datetime, timedelta
from typing import Any, Callable, Generic, TypeVar

from reclaim.models.apps import InstalledApp
from reclaim.models.cache import CacheEntry, RecommendationsPayload
from reclaim.models.profile import Recommendation, UserProfile
from reclaim.models.scan import DiskNode
from reclaim.services.fs import DEFAULT_FS, FileSystem

logger = logging.getLogger(__name__)

CATALOG_CACHE_FILE = "app-catalog-cache.json"
RECOMMENDATIONS_CACHE_FILE = "recommendations-cache.json"
STORAGE_MAP_CACHE_FILE = "storage-map-cache.json"

Clock = Callable[[], datetime]

T = TypeVar("T")


def utc_now() -> datetime:
    return datetime.now(UTC)


class CacheStore(Generic[T]):
    def __init__(
        self,
        storage_path: str,
        encode: Callable[[T], Any],
        decode: Callable[[Any], T],
        fs: FileSystem = DEFAULT_FS,
        clock: Clock = utc_now,
    ) -> None:
        self._path = fs.expanduser(storage_path)
        self._encode = encode
        self._decode = decode
        self._fs = fs
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, CacheEntry[T]] = self._read()

    @property
    def path(self) -> str:
        return self._path

    def load(self, key: str, max_age: timedelta, now: datetime | None = None) -> CacheEntry[T] | None:
        """Return the entry for *key* unless it is older than *max_age*.

        Stale entries are evicted and the eviction is persisted.
        """
        current = now or self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if not entry.is_fresh(max_age, current):
                del self._entries[key]
                self._persist()
                return None
            return self._copy(entry)

    def save(self, entry: CacheEntry[T]) -> None:
        with self._lock:
            self._entries[entry.key] = self._copy(entry)
            self._persist()

    def _copy(self, entry: CacheEntry[T]) -> CacheEntry[T]:
        # Callers never share payload objects with the store.
        payload = self._decode(self._encode(entry.payload))
        return CacheEntry(key=entry.key, created_at=entry.created_at, payload=payload)

    def _read(self) -> dict[str, CacheEntry[T]]:
        if not self._fs.exists(self._path):
            return {}
        try:
            raw = json.loads(self._fs.read_text(self._path))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable cache file %s: %s", self._path, exc)
            return {}
        if not isinstance(raw, dict):
            return {}

        entries: dict[str, CacheEntry[T]] = {}
        for key, record in raw.items():
            try:
                created_at = datetime.fromisoformat(record["createdAt"])
                if created_at.tzinfo is None:
                    created_at = created_at.replace(tzinfo=UTC)
                entries[key] = CacheEntry(
                    key=str(record["key"]),
                    created_at=created_at,
                    payload=self._decode(record["payload"]),
                )
            except (KeyError, TypeError, ValueError) as exc:
                logger.debug("Dropping malformed cache entry %r: %s", key, exc)
        return entries

    def _persist(self) -> None:
        data = {
            key: {
                "key": entry.key,
                "createdAt": entry.created_at.isoformat(),
                "payload": self._encode(entry.payload),
            }
            for key, entry in self._entries.items()
        }
        try:
            self._fs.write_text_atomic(self._path, json.dumps(data, indent=2, sort_keys=True))
        except OSError as exc:
            # Caching degrades to in-memory only; callers keep working.
            logger.warning("Could not persist cache %s: %s", self._path, exc)


def _encode_apps(apps: list[InstalledApp]) -> list[dict[str, Any]]:
    return [app.to_dict() for app in apps]


def _decode_apps(payload: Any) -> list[InstalledApp]:
    return [InstalledApp.from_dict(x) for x in payload]


def _encode_recommendations(payload: RecommendationsPayload) -> dict[str, Any]:
    return {
        "profile": payload.profile.to_dict(),
        "recommendations": [r.to_dict() for r in payload.recommendations],
    }


def _decode_recommendations(payload: Any) -> RecommendationsPayload:
    return RecommendationsPayload(
        profile=UserProfile.from_dict(payload["profile"]),
        recommendations=[Recommendation.from_dict(x) for x in payload["recommendations"]],
    )


def catalog_cache(
    cache_dir: str, fs: FileSystem = DEFAULT_FS, clock: Clock = utc_now
) -> CacheStore[list[InstalledApp]]:
    return CacheStore(os.path.join(cache_dir, CATALOG_CACHE_FILE), _encode_apps, _decode_apps, fs=fs, clock=clock)


def recommendations_cache(
    cache_dir: str, fs: FileSystem = DEFAULT_FS, clock: Clock = utc_now
) -> CacheStore[RecommendationsPayload]:
    return CacheStore(
        os.path.join(cache_dir, RECOMMENDATIONS_CACHE_FILE),
        _encode_recommendations,
        _decode_recommendations,
        fs=fs,
        clock=clock,
    )


def storage_map_cache(cache_dir: str, fs: FileSystem = DEFAULT_FS, clock: Clock = utc_now) -> CacheStore[DiskNode]:
    return CacheStore(
        os.path.join(cache_dir, STORAGE_MAP_CACHE_FILE),
        DiskNode.to_dict,
        DiskNode.from_dict,
        fs=fs,
        clock=clock,
    )

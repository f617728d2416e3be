from __future__ import annotations

import contextlib
import logging
import os
import plistlib
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from typing import Any, TypeAlias

from result import Err, Ok, Result

from reclaim.config.defaults import DEFAULT_SCAN_ROOTS
from reclaim.models.apps import CatalogFetchInfo, InstalledApp
from reclaim.models.enums import CacheSource
from reclaim.models.cache import CacheEntry
from reclaim.models.scan import ProgressCallback, ScanError, ScanErrorCode
from reclaim.services.cache import CacheStore, Clock, utc_now
from reclaim.services.fs import DEFAULT_FS, FileSystem
from reclaim.services.sizing import SizeAggregator

logger = logging.getLogger(__name__)

BUNDLE_SUFFIX = ".app"
_CASK_MARKER = "Caskroom"

CatalogResult: TypeAlias = Result[list[InstalledApp], ScanError]


def _stem(path: str) -> str:
    return os.path.splitext(os.path.basename(path.rstrip("/")))[0]


class AppCatalogDiscoverer:
    """Finds ``*.app`` bundles under the configured roots and measures them.

    Results are cached per scan configuration; a fresh cache hit performs no
    filesystem work at all.
    """

    def __init__(
        self,
        sizer: SizeAggregator,
        scan_roots: Sequence[str] = DEFAULT_SCAN_ROOTS,
        cache: CacheStore[list[InstalledApp]] | None = None,
        cache_ttl: timedelta = timedelta(minutes=15),
        bundle_depth: int = 2,
        cask_depth: int = 4,
        fs: FileSystem = DEFAULT_FS,
        clock: Clock = utc_now,
    ) -> None:
        self._sizer = sizer
        self._fs = fs
        self._roots = [fs.expanduser(root) for root in scan_roots]
        self._cache = cache
        self._ttl = cache_ttl
        self._bundle_depth = bundle_depth
        self._cask_depth = cask_depth
        self._clock = clock
        self._last_info = CatalogFetchInfo(source=CacheSource.LIVE, fetched_at=datetime.min.replace(tzinfo=UTC))

    @property
    def cache_key(self) -> str:
        return "catalog|" + "|".join(self._roots)

    def latest_fetch_info(self) -> CatalogFetchInfo:
        return self._last_info

    def fetch_catalog(self, progress_callback: ProgressCallback | None = None) -> CatalogResult:
        def emit(message: str, completed: int, total: int) -> None:
            if progress_callback is not None:
                progress_callback(message, completed, total)

        emit("Preparing app catalog scan...", 0, 1)

        if self._cache is not None:
            cached = self._cache.load(self.cache_key, self._ttl, now=self._clock())
            if cached is not None:
                self._last_info = CatalogFetchInfo(source=CacheSource.CACHED, fetched_at=cached.created_at)
                emit("Loaded cached app catalog.", 1, 1)
                return Ok(cached.payload)

        emit("Discovering installed apps...", 0, 1)

        bundles: dict[str, str] = {}
        present = 0
        listed = 0
        for root in self._roots:
            if not self._fs.exists(root):
                continue
            present += 1
            depth = self._cask_depth if _CASK_MARKER in root else self._bundle_depth
            found = self._scan_for_bundles(root, depth)
            if found is None:
                continue
            listed += 1
            for path in found:
                bundles.setdefault(self._fs.realpath(path), path)

        if present and not listed:
            return Err(
                ScanError(
                    code=ScanErrorCode.ROOT_UNREADABLE,
                    path=", ".join(self._roots),
                    message="None of the application roots could be read",
                )
            )

        ordered = sorted(bundles.values(), key=lambda p: (os.path.basename(p).lower(), p))
        total = len(ordered)
        if total == 0:
            emit("No installed apps found in scanned locations.", 1, 1)

        apps: list[InstalledApp] = []
        for index, path in enumerate(ordered):
            emit(f"Measuring {_stem(path)}...", index, total)
            apps.append(self._describe(path))
            emit(f"Processed {index + 1} of {total} apps", index + 1, total)

        generated_at = self._clock()
        if self._cache is not None:
            self._cache.save(CacheEntry(key=self.cache_key, created_at=generated_at, payload=apps))
        self._last_info = CatalogFetchInfo(source=CacheSource.LIVE, fetched_at=generated_at)

        emit("App discovery complete.", max(total, 1), max(total, 1))
        logger.info("Discovered %d apps across %d roots", total, listed)
        return Ok(apps)

    def _scan_for_bundles(self, root: str, max_depth: int) -> list[str] | None:
        """Return bundle paths under *root*, or None when *root* cannot be listed."""
        try:
            top = self._fs.scandir(root)
        except OSError as exc:
            logger.warning("Cannot list application root %s: %s", root, exc)
            return None

        results: list[str] = []
        pending = [(entry, 1) for entry in top]
        while pending:
            entry, depth = pending.pop()
            if entry.is_hidden or entry.stat is None:
                continue
            if entry.name.lower().endswith(BUNDLE_SUFFIX):
                if entry.stat.is_dir or (entry.stat.is_symlink and self._links_to_dir(entry.path)):
                    results.append(entry.path)
                continue
            # Links are matched as bundles but never descended.
            if not entry.stat.is_dir or depth >= max_depth:
                continue
            try:
                children = self._fs.scandir(entry.path)
            except OSError as exc:
                logger.debug("Skipping unreadable directory %s: %s", entry.path, exc)
                continue
            pending.extend((child, depth + 1) for child in children)
        return results

    def _links_to_dir(self, path: str) -> bool:
        try:
            return self._fs.stat(self._fs.realpath(path)).is_dir
        except OSError:
            return False

    def _read_info(self, bundle_path: str) -> dict[str, Any]:
        info_path = os.path.join(bundle_path, "Contents", "Info.plist")
        try:
            info = plistlib.loads(self._fs.read_bytes(info_path))
        except Exception as exc:  # noqa: BLE001
            # Missing or malformed metadata only degrades identity fields.
            logger.debug("Unreadable bundle metadata %s: %s", info_path, exc)
            return {}
        return info if isinstance(info, dict) else {}

    def _describe(self, bundle_path: str) -> InstalledApp:
        # Metadata and size come from the link target; the listed path is kept.
        target = self._fs.realpath(bundle_path)
        info = self._read_info(target)
        name = _stem(bundle_path)

        bundle_id = info.get("CFBundleIdentifier")
        if not isinstance(bundle_id, str) or not bundle_id:
            bundle_id = f"unknown.{name.lower()}"

        display_name = name
        for key in ("CFBundleDisplayName", "CFBundleName"):
            value = info.get(key)
            if isinstance(value, str) and value:
                display_name = value
                break

        executable = info.get("CFBundleExecutable")
        executable_path = (
            os.path.join(bundle_path, "Contents", "MacOS", executable) if isinstance(executable, str) else None
        )

        last_used: datetime | None = None
        with contextlib.suppress(OSError):
            atime = self._fs.stat(target).atime
            if atime > 0:
                last_used = datetime.fromtimestamp(atime, UTC)

        return InstalledApp(
            id=f"{bundle_id}:{bundle_path}",
            bundle_id=bundle_id,
            display_name=display_name,
            bundle_path=bundle_path,
            executable_path=executable_path,
            last_used=last_used,
            bundle_size_bytes=self._sizer.size(target),
        )

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from dataclasses import dataclass

from reclaim.config.defaults import DEFAULT_PACKAGE_EXTENSIONS
from reclaim.models.profile import FileMetadata
from reclaim.services.fs import DEFAULT_FS, FileSystem
from reclaim.services.sizing import is_package, package_matcher

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _Bucket:
    size_bytes: int = 0
    file_count: int = 0
    depth: int = 0


def extension_of(name: str) -> str:
    ext = os.path.splitext(name)[1].lstrip(".").lower()
    return ext or "none"


class MetadataDiscovery:
    """Samples file sizes below a root, bucketed by (parent directory, extension).

    Hidden entries and package directories are skipped.  Sampling stops after
    ``max_samples`` regular files; the largest ``max_buckets`` buckets are kept.
    """

    def __init__(
        self,
        package_extensions: Iterable[str] = DEFAULT_PACKAGE_EXTENSIONS,
        max_buckets: int = 300,
        fs: FileSystem = DEFAULT_FS,
    ) -> None:
        self._packages = package_matcher(package_extensions)
        self._max_buckets = max_buckets
        self._fs = fs

    def collect(self, root: str, max_depth: int = 5, max_samples: int = 2_500) -> list[FileMetadata]:
        if not self._fs.exists(root):
            return []

        buckets: dict[tuple[str, str], _Bucket] = {}
        sampled = 0
        pending: list[tuple[str, int]] = [(root, 0)]
        while pending and sampled < max_samples:
            current, depth = pending.pop()
            try:
                entries = self._fs.scandir(current)
            except OSError as exc:
                logger.debug("Skipping unreadable directory %s: %s", current, exc)
                continue
            child_depth = depth + 1
            dirs: list[str] = []
            for entry in sorted(entries, key=lambda e: e.name):
                if sampled >= max_samples:
                    break
                st = entry.stat
                if entry.is_hidden or st is None:
                    continue
                if st.is_dir:
                    if child_depth < max_depth and not is_package(entry.name, self._packages):
                        dirs.append(entry.path)
                    continue
                if not st.is_file:
                    continue
                sampled += 1
                bucket = buckets.setdefault((current, extension_of(entry.name)), _Bucket())
                bucket.size_bytes += st.size
                bucket.file_count += 1
                bucket.depth = child_depth
            pending.extend((path, child_depth) for path in reversed(dirs))

        samples = [
            FileMetadata(path=parent, size_bytes=b.size_bytes, file_count=b.file_count, depth=b.depth, extension=ext)
            for (parent, ext), b in buckets.items()
        ]
        samples.sort(key=lambda m: (-m.size_bytes, m.path, m.extension))
        return samples[: self._max_buckets]

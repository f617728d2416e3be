from __future__ import annotations

import logging
from collections.abc import Iterable

from reclaim.config.defaults import DEFAULT_PACKAGE_EXTENSIONS
from reclaim.models.scan import SizeStats
from reclaim.services.fs import DEFAULT_FS, FileSystem

logger = logging.getLogger(__name__)


def package_matcher(extensions: Iterable[str]) -> frozenset[str]:
    return frozenset("." + ext.lower().lstrip(".") for ext in extensions)


def is_package(name: str, suffixes: frozenset[str]) -> bool:
    dot = name.rfind(".")
    return dot > 0 and name[dot:].lower() in suffixes


class SizeAggregator:
    """Sums regular-file bytes under a path.

    Hidden entries are skipped and package directories found below the target
    are not descended into, so a bundle's internal structure is never counted
    twice.  Every I/O error makes the affected item contribute zero.
    """

    def __init__(
        self,
        package_extensions: Iterable[str] = DEFAULT_PACKAGE_EXTENSIONS,
        fs: FileSystem = DEFAULT_FS,
    ) -> None:
        self._fs = fs
        self._packages = package_matcher(package_extensions)

    def size(self, path: str) -> int:
        return self.stats(path).size_bytes

    def stats(self, path: str) -> SizeStats:
        try:
            root_stat = self._fs.stat(path)
        except OSError:
            return SizeStats()

        total = 0
        count = 0
        if root_stat.is_dir:
            # Explicit work stack: deep trees never grow the Python call stack.
            pending: list[str] = [path]
            while pending:
                current = pending.pop()
                try:
                    entries = self._fs.scandir(current)
                except OSError as exc:
                    logger.debug("Skipping unreadable directory %s: %s", current, exc)
                    continue
                for entry in entries:
                    if entry.is_hidden:
                        continue
                    st = entry.stat
                    if st is None:
                        continue
                    if st.is_dir:
                        if not is_package(entry.name, self._packages):
                            pending.append(entry.path)
                    elif st.is_file:
                        total += st.size
                        count += 1

        # Single-file "bundles" and plain files fall through to their own size.
        if total == 0 and root_stat.is_file and root_stat.size > 0:
            return SizeStats(size_bytes=root_stat.size, file_count=max(count, 1))
        return SizeStats(size_bytes=total, file_count=count)

# Depth-bounded directory tree scanner.
#
# Architecture:
#   A single explicit work stack of (node, depth, entries) replaces recursion
#   so pathological trees cannot exhaust the Python call stack.  Work is
#   strictly sequential; bounds come from two knobs in ScanOptions:
#     max_depth     directories at this depth become leaves sized by
#                   SizeAggregator instead of being expanded
#     max_children  per-directory fan-out cap (children in name order)
#
# Lifecycle (scan method):
#   1. Validate root path (missing / unstat-able root → Err).
#   2. Non-directory root or max_depth 0 → a single leaf node.
#   3. List the root (unlistable root → Err), then expand directories
#      depth-first, pushing each expanded child with its own listing.
#   4. finalize_sizes sums children into parents bottom-up and sorts
#      children by size descending.

from __future__ import annotations

import logging
import os

from result import Err, Ok

from reclaim.models.scan import (
    DiskNode,
    ProgressCallback,
    ScanError,
    ScanErrorCode,
    ScanOptions,
    ScanResult,
)
from reclaim.services.fs import DEFAULT_FS, DirEntry, FileSystem
from reclaim.services.sizing import SizeAggregator
from reclaim.services.tree import finalize_sizes

logger = logging.getLogger(__name__)


def resolve_root(path: str, fs: FileSystem) -> str | ScanError:
    """Validate and resolve a scan root path.

    Returns the resolved absolute path, or a ``ScanError`` on failure.
    """
    expanded = fs.expanduser(path)
    if not fs.exists(expanded):
        return ScanError(
            code=ScanErrorCode.NOT_FOUND,
            path=expanded,
            message="Path does not exist",
        )

    resolved = fs.absolute(expanded)
    try:
        fs.stat(resolved)
    except OSError as exc:
        return ScanError(
            code=ScanErrorCode.ROOT_STAT_FAILED,
            path=resolved,
            message=f"Cannot stat root: {exc}",
        )
    return resolved


def _node_name(path: str) -> str:
    return os.path.basename(path.rstrip("/")) or path


class DiskTreeScanner:
    def __init__(
        self,
        sizer: SizeAggregator,
        options: ScanOptions | None = None,
        fs: FileSystem = DEFAULT_FS,
    ) -> None:
        self._sizer = sizer
        self._options = options or ScanOptions()
        self._fs = fs

    def _visible(self, entries: list[DirEntry], cap: int) -> list[DirEntry]:
        visible = sorted((e for e in entries if not e.is_hidden), key=lambda e: e.name)
        return visible[:cap]

    def scan(
        self,
        path: str,
        options: ScanOptions | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> ScanResult:
        opts = options or self._options
        resolved = resolve_root(path, self._fs)
        if isinstance(resolved, ScanError):
            return Err(resolved)

        try:
            root_stat = self._fs.stat(resolved)
        except OSError as exc:
            return Err(ScanError(ScanErrorCode.ROOT_STAT_FAILED, resolved, f"Cannot stat root: {exc}"))

        name = _node_name(resolved)
        if not root_stat.is_dir or opts.max_depth <= 0:
            return Ok(DiskNode.leaf(resolved, name, self._sizer.size(resolved), root_stat.is_dir))

        try:
            root_entries = self._fs.scandir(resolved)
        except OSError as exc:
            return Err(ScanError(ScanErrorCode.ROOT_UNREADABLE, resolved, f"Cannot list root: {exc}"))

        root = DiskNode.directory(resolved, name)
        stack: list[tuple[DiskNode, int, list[DirEntry]]] = [(root, 0, root_entries)]
        expanded = 0
        discovered = 1

        while stack:
            node, depth, entries = stack.pop()
            child_depth = depth + 1
            for entry in self._visible(entries, opts.max_children):
                is_dir = entry.stat is not None and entry.stat.is_dir
                if not is_dir or child_depth >= opts.max_depth:
                    node.children.append(
                        DiskNode.leaf(entry.path, entry.name, self._sizer.size(entry.path), is_dir)
                    )
                    continue

                child = DiskNode.directory(entry.path, entry.name)
                node.children.append(child)
                try:
                    child_entries = self._fs.scandir(entry.path)
                except OSError as exc:
                    # Unlistable subdirectory stays an empty, zero-sized node.
                    logger.debug("Skipping unreadable directory %s: %s", entry.path, exc)
                    continue
                stack.append((child, child_depth, child_entries))
                discovered += 1

            expanded += 1
            if progress_callback is not None:
                progress_callback(f"Scanned {node.path}", expanded, discovered)

        finalize_sizes(root)
        return Ok(root)

from __future__ import annotations

from typing import Protocol

from reclaim.models.scan import ProgressCallback, ScanOptions, ScanResult
from reclaim.scan.tree_scanner import DiskTreeScanner, resolve_root


class Scanner(Protocol):
    def scan(
        self,
        path: str,
        options: ScanOptions | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> ScanResult: ...


__all__ = [
    "DiskTreeScanner",
    "Scanner",
    "resolve_root",
]

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Sequence

from reclaim.config.defaults import DEFAULT_PACKAGE_EXTENSIONS, DEFAULT_UNIT_RULES
from reclaim.config.schema import UnitRule
from reclaim.models.enums import SafetyLevel
from reclaim.models.insight import SemanticCleanupUnit
from reclaim.services.fs import DEFAULT_FS, FileSystem
from reclaim.services.sizing import SizeAggregator, is_package, package_matcher

logger = logging.getLogger(__name__)


def match_rule(name: str, rules: Sequence[UnitRule]) -> UnitRule | None:
    """First rule whose marker equals or is contained in the lower-cased *name*."""
    lowered = name.lower()
    for rule in rules:
        if rule.marker in lowered:
            return rule
    return None


class SemanticUnitDetector:
    """Finds bulky, regenerable folders such as ``node_modules`` or checkpoints.

    One bounded walk below the root; a matched folder is measured as a whole
    and never descended into, so nested matches are not double counted.
    """

    def __init__(
        self,
        sizer: SizeAggregator,
        rules: Sequence[UnitRule] | None = None,
        min_bytes: int = 20_000_000,
        max_depth: int = 6,
        package_extensions: Iterable[str] = DEFAULT_PACKAGE_EXTENSIONS,
        fs: FileSystem = DEFAULT_FS,
    ) -> None:
        self._sizer = sizer
        self._rules = list(rules) if rules is not None else [UnitRule(m, r) for m, r in DEFAULT_UNIT_RULES]
        self._min_bytes = min_bytes
        self._max_depth = max_depth
        self._packages = package_matcher(package_extensions)
        self._fs = fs

    def detect_units(self, root: str) -> list[SemanticCleanupUnit]:
        units: list[SemanticCleanupUnit] = []
        for path, rule in self._candidates(root):
            stats = self._sizer.stats(path)
            if stats.size_bytes <= self._min_bytes:
                continue
            units.append(
                SemanticCleanupUnit(
                    id=path,
                    title=os.path.basename(path),
                    path=path,
                    total_bytes=stats.size_bytes,
                    file_count=stats.file_count,
                    reason=rule.reason,
                    risk=SafetyLevel.REVIEW,
                )
            )
        units.sort(key=lambda u: (-u.total_bytes, u.path))
        return units

    def _candidates(self, root: str) -> list[tuple[str, UnitRule]]:
        if not self._fs.exists(root):
            return []
        matches: list[tuple[str, UnitRule]] = []
        pending: list[tuple[str, int]] = [(root, 0)]
        while pending:
            current, depth = pending.pop()
            try:
                entries = self._fs.scandir(current)
            except OSError as exc:
                logger.debug("Skipping unreadable directory %s: %s", current, exc)
                continue
            child_depth = depth + 1
            for entry in entries:
                if entry.is_hidden or entry.stat is None or not entry.stat.is_dir:
                    continue
                rule = match_rule(entry.name, self._rules)
                if rule is not None:
                    matches.append((entry.path, rule))
                    continue
                if child_depth < self._max_depth and not is_package(entry.name, self._packages):
                    pending.append((entry.path, child_depth))
        return matches

from __future__ import annotations

from dataclasses import dataclass, field

from reclaim.models.enums import SafetyLevel


@dataclass(slots=True, frozen=True)
class SemanticCleanupUnit:
    id: str
    title: str
    path: str
    total_bytes: int
    file_count: int
    reason: str
    risk: SafetyLevel = SafetyLevel.REVIEW


@dataclass(slots=True, frozen=True)
class LargeItem:
    id: str
    title: str
    path: str
    size_bytes: int
    is_dir: bool
    source_bundle_id: str | None = None


@dataclass(slots=True, frozen=True)
class DuplicateCandidate:
    id: str
    path: str
    size_bytes: int
    source_bundle_id: str | None = None


@dataclass(slots=True)
class DuplicateGroup:
    id: str
    name: str
    total_bytes: int
    duplicates: list[DuplicateCandidate]

    @property
    def potential_reclaim(self) -> int:
        """Bytes freed by keeping one copy and removing the rest."""
        kept = self.duplicates[0].size_bytes if self.duplicates else 0
        return max(0, self.total_bytes - kept)


@dataclass(slots=True)
class DetectionReport:
    large_items: list[LargeItem] = field(default_factory=list)
    duplicate_groups: list[DuplicateGroup] = field(default_factory=list)

    @property
    def potential_duplicate_reclaim(self) -> int:
        return sum(group.potential_reclaim for group in self.duplicate_groups)

from __future__ import annotations

from dataclasses import dataclass, field

from reclaim.models.apps import Artifact, InstalledApp
from reclaim.models.enums import CleanupMode


@dataclass(slots=True, frozen=True)
class CleanupCandidate:
    app: InstalledApp
    mode: CleanupMode
    selected_artifacts: tuple[Artifact, ...]


@dataclass(slots=True, frozen=True)
class CleanupPlan:
    candidates: tuple[CleanupCandidate, ...]

    def _selected(self) -> list[Artifact]:
        return [artifact for candidate in self.candidates for artifact in candidate.selected_artifacts]

    @property
    def total_bytes(self) -> int:
        return sum(artifact.size_bytes for artifact in self._selected())

    @property
    def file_count(self) -> int:
        return len(self._selected())

    def unique_artifacts(self) -> list[Artifact]:
        """Selected artifacts across all candidates, first occurrence of each path wins."""
        seen: set[str] = set()
        unique: list[Artifact] = []
        for artifact in self._selected():
            if artifact.path in seen:
                continue
            seen.add(artifact.path)
            unique.append(artifact)
        return unique


@dataclass(slots=True, frozen=True)
class CleanupFailure:
    path: str
    reason: str


@dataclass(slots=True)
class CleanupExecutionResult:
    reclaimed_bytes: int = 0
    removed_paths: list[str] = field(default_factory=list)
    failures: list[CleanupFailure] = field(default_factory=list)

    @property
    def is_successful(self) -> bool:
        return not self.failures

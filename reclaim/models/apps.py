from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from reclaim.models.enums import CacheSource, GroupKind, SafetyLevel, safety_for


@dataclass(slots=True, frozen=True)
class Artifact:
    path: str
    group_kind: GroupKind
    safety_level: SafetyLevel
    size_bytes: int
    is_dir: bool

    @classmethod
    def classified(cls, path: str, kind: GroupKind, size_bytes: int, is_dir: bool) -> Artifact:
        return cls(path=path, group_kind=kind, safety_level=safety_for(kind), size_bytes=size_bytes, is_dir=is_dir)

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "groupKind": self.group_kind.value,
            "safetyLevel": self.safety_level.value,
            "sizeBytes": self.size_bytes,
            "isDirectory": self.is_dir,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> Artifact:
        return cls(
            path=str(payload["path"]),
            group_kind=GroupKind(str(payload["groupKind"])),
            safety_level=SafetyLevel(str(payload["safetyLevel"])),
            size_bytes=int(payload["sizeBytes"]),
            is_dir=bool(payload.get("isDirectory", False)),
        )


@dataclass(slots=True)
class ArtifactGroup:
    kind: GroupKind
    artifacts: list[Artifact] = field(default_factory=list)

    @property
    def total_bytes(self) -> int:
        return sum(artifact.size_bytes for artifact in self.artifacts)


@dataclass(slots=True)
class InstalledApp:
    id: str
    bundle_id: str
    display_name: str
    bundle_path: str
    executable_path: str | None = None
    last_used: datetime | None = None
    bundle_size_bytes: int = 0
    artifacts: list[Artifact] = field(default_factory=list)

    @property
    def true_size_bytes(self) -> int:
        return self.bundle_size_bytes + sum(artifact.size_bytes for artifact in self.artifacts)

    @property
    def grouped_artifacts(self) -> list[ArtifactGroup]:
        groups: dict[GroupKind, ArtifactGroup] = {}
        for artifact in self.artifacts:
            groups.setdefault(artifact.group_kind, ArtifactGroup(artifact.group_kind)).artifacts.append(artifact)
        for group in groups.values():
            group.artifacts.sort(key=lambda a: a.size_bytes, reverse=True)
        return sorted(groups.values(), key=lambda g: g.total_bytes, reverse=True)

    def with_artifacts(self, artifacts: list[Artifact]) -> InstalledApp:
        return dataclasses.replace(self, artifacts=list(artifacts))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "bundleId": self.bundle_id,
            "displayName": self.display_name,
            "bundlePath": self.bundle_path,
            "executablePath": self.executable_path,
            "lastUsed": self.last_used.isoformat() if self.last_used else None,
            "bundleSizeBytes": self.bundle_size_bytes,
            "artifacts": [artifact.to_dict() for artifact in self.artifacts],
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> InstalledApp:
        last_used_raw = payload.get("lastUsed")
        executable = payload.get("executablePath")
        return cls(
            id=str(payload["id"]),
            bundle_id=str(payload["bundleId"]),
            display_name=str(payload["displayName"]),
            bundle_path=str(payload["bundlePath"]),
            executable_path=str(executable) if executable is not None else None,
            last_used=datetime.fromisoformat(last_used_raw) if last_used_raw else None,
            bundle_size_bytes=int(payload.get("bundleSizeBytes", 0)),
            artifacts=[Artifact.from_dict(x) for x in payload.get("artifacts", [])],
        )


@dataclass(slots=True, frozen=True)
class CatalogFetchInfo:
    source: CacheSource
    fetched_at: datetime


@dataclass(slots=True, frozen=True)
class SmartCategory:
    """Cross-app byte totals for one artifact kind, split by safety level."""

    kind: GroupKind
    total_bytes: int = 0
    item_count: int = 0
    safe_bytes: int = 0
    review_bytes: int = 0
    risky_bytes: int = 0

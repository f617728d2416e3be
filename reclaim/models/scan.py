from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from result import Result

from reclaim.models.enums import NodeKind


# (message, completed, total)
ProgressCallback = Callable[[str, int, int], None]


@dataclass(slots=True)
class DiskNode:
    path: str
    name: str
    kind: NodeKind
    size_bytes: int
    children: list[DiskNode] = field(default_factory=list)

    @property
    def is_dir(self) -> bool:
        return self.kind is NodeKind.DIRECTORY

    @classmethod
    def leaf(cls, path: str, name: str, size_bytes: int, is_dir: bool) -> DiskNode:
        return cls(
            path=path,
            name=name,
            kind=NodeKind.DIRECTORY if is_dir else NodeKind.FILE,
            size_bytes=size_bytes,
            children=[],
        )

    @classmethod
    def directory(cls, path: str, name: str) -> DiskNode:
        return cls(path=path, name=name, kind=NodeKind.DIRECTORY, size_bytes=0, children=[])

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "name": self.name,
            "kind": self.kind.value,
            "sizeBytes": self.size_bytes,
            "children": [child.to_dict() for child in self.children],
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> DiskNode:
        return cls(
            path=str(payload["path"]),
            name=str(payload["name"]),
            kind=NodeKind(str(payload["kind"])),
            size_bytes=int(payload["sizeBytes"]),
            children=[cls.from_dict(child) for child in payload.get("children", [])],
        )


@dataclass(slots=True, frozen=True)
class SizeStats:
    size_bytes: int = 0
    file_count: int = 0


@dataclass(slots=True)
class ScanOptions:
    max_depth: int = 3
    max_children: int = 200


class ScanErrorCode(str, Enum):
    NOT_FOUND = "not_found"
    ROOT_STAT_FAILED = "root_stat_failed"
    ROOT_UNREADABLE = "root_unreadable"


@dataclass(slots=True, frozen=True)
class ScanError:
    code: ScanErrorCode
    path: str
    message: str


ScanResult = Result[DiskNode, ScanError]

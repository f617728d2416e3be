# Large-item and duplicate-cluster mining.
#
# Inputs are the resolved app catalog plus an optional disk tree from the
# scanner.  No filesystem access happens here: the tree is flattened
# breadth-first under its own depth/visit caps, independent of the caps the
# scanner used to build it.
#
# Duplicates are heuristic.  Two files are "the same" when their normalised
# base names and byte sizes match:
#
#   "Model_v2.safetensors"  -> "model"
#   "report-3f9a2c1d.pdf"   -> "report"
#   "clip 01 02.mov"        -> "clip"
#
# Content is never hashed.

from __future__ import annotations

import os
import re
from collections.abc import Sequence
from dataclasses import dataclass

from reclaim.config.schema import AppConfig
from reclaim.models.apps import InstalledApp
from reclaim.models.insight import DetectionReport, DuplicateCandidate, DuplicateGroup, LargeItem
from reclaim.models.scan import DiskNode
from reclaim.services.tree import flatten_breadth_first

_VERSION_SUFFIX = re.compile(r"(?:[_\-\s](?:v)?\d+|[_\-\s][0-9a-f]{6,})+$")


def normalized_name(path: str) -> str:
    """Lower-cased base name without extension or trailing version/hash runs."""
    base = os.path.splitext(os.path.basename(path))[0].lower()
    reduced = _VERSION_SUFFIX.sub("", base)
    return reduced or base


@dataclass(slots=True, frozen=True)
class DetectionLimits:
    large_item_min_bytes: int = 5_000_000
    large_item_limit: int = 200
    large_item_flatten_depth: int = 5
    large_item_flatten_limit: int = 1_200
    duplicate_min_bytes: int = 5_000_000
    duplicate_materiality_bytes: int = 20_000_000
    duplicate_group_limit: int = 120
    duplicate_flatten_depth: int = 6
    duplicate_flatten_limit: int = 2_000

    @classmethod
    def from_config(cls, config: AppConfig) -> DetectionLimits:
        return cls(
            large_item_min_bytes=config.large_item_min_bytes,
            large_item_limit=config.large_item_limit,
            large_item_flatten_depth=config.large_item_flatten_depth,
            large_item_flatten_limit=config.large_item_flatten_limit,
            duplicate_min_bytes=config.duplicate_min_bytes,
            duplicate_materiality_bytes=config.duplicate_materiality_bytes,
            duplicate_group_limit=config.duplicate_group_limit,
            duplicate_flatten_depth=config.duplicate_flatten_depth,
            duplicate_flatten_limit=config.duplicate_flatten_limit,
        )


class DuplicateAndLargeItemDetector:
    def __init__(self, limits: DetectionLimits | None = None) -> None:
        self._limits = limits or DetectionLimits()

    def detect(self, apps: Sequence[InstalledApp], disk_root: DiskNode | None = None) -> DetectionReport:
        return DetectionReport(
            large_items=self.large_items(apps, disk_root),
            duplicate_groups=self.duplicate_groups(apps, disk_root),
        )

    def large_items(self, apps: Sequence[InstalledApp], disk_root: DiskNode | None = None) -> list[LargeItem]:
        limits = self._limits
        items = [
            LargeItem(
                id=f"bundle:{app.id}",
                title=app.display_name,
                path=app.bundle_path,
                size_bytes=app.bundle_size_bytes,
                is_dir=True,
                source_bundle_id=app.bundle_id,
            )
            for app in apps
        ]
        for app in apps:
            for artifact in app.artifacts:
                items.append(
                    LargeItem(
                        id=f"artifact:{artifact.path}|{app.bundle_id}",
                        title=os.path.basename(artifact.path),
                        path=artifact.path,
                        size_bytes=artifact.size_bytes,
                        is_dir=artifact.is_dir,
                        source_bundle_id=app.bundle_id,
                    )
                )

        if disk_root is not None:
            for node in flatten_breadth_first(
                disk_root, limits.large_item_flatten_depth, limits.large_item_flatten_limit
            ):
                if node.size_bytes <= limits.large_item_min_bytes:
                    continue
                items.append(
                    LargeItem(
                        id=f"disk:{node.path}",
                        title=node.name or "/",
                        path=node.path,
                        size_bytes=node.size_bytes,
                        is_dir=node.is_dir,
                    )
                )

        items.sort(key=lambda item: (-item.size_bytes, item.path))
        return items[: limits.large_item_limit]

    def duplicate_groups(
        self, apps: Sequence[InstalledApp], disk_root: DiskNode | None = None
    ) -> list[DuplicateGroup]:
        limits = self._limits
        candidates = [
            DuplicateCandidate(
                id=f"{artifact.path}|{app.bundle_id}",
                path=artifact.path,
                size_bytes=artifact.size_bytes,
                source_bundle_id=app.bundle_id,
            )
            for app in apps
            for artifact in app.artifacts
            if not artifact.is_dir
        ]

        if disk_root is not None:
            for node in flatten_breadth_first(
                disk_root, limits.duplicate_flatten_depth, limits.duplicate_flatten_limit
            ):
                if node.is_dir or node.size_bytes <= limits.duplicate_min_bytes:
                    continue
                candidates.append(
                    DuplicateCandidate(id=f"disk:{node.path}", path=node.path, size_bytes=node.size_bytes)
                )

        buckets: dict[str, list[DuplicateCandidate]] = {}
        for candidate in candidates:
            key = f"{normalized_name(candidate.path)}|{candidate.size_bytes}"
            buckets.setdefault(key, []).append(candidate)

        groups: list[DuplicateGroup] = []
        for key, members in buckets.items():
            if len(members) < 2:
                continue
            members.sort(key=lambda c: c.path)
            total = sum(c.size_bytes for c in members)
            tied_to_app = any(c.source_bundle_id is not None for c in members)
            if total <= limits.duplicate_materiality_bytes and not tied_to_app:
                continue
            groups.append(DuplicateGroup(id=key, name=key.rsplit("|", 1)[0], total_bytes=total, duplicates=members))

        groups.sort(key=lambda g: (-g.total_bytes, g.id))
        return groups[: limits.duplicate_group_limit]

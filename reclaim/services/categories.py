# Smart categories: every app's artifacts pooled by GroupKind.
#
# Each kind gets one SmartCategory even when empty, so callers can render a
# fixed set of rows.  Apps whose artifacts were never resolved still count
# toward APP_BUNDLE through bundle_size_bytes.

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from reclaim.models.apps import InstalledApp, SmartCategory
from reclaim.models.enums import GroupKind, SafetyLevel, safety_for


@dataclass(slots=True)
class _Totals:
    total: int = 0
    items: int = 0
    safe: int = 0
    review: int = 0
    risky: int = 0

    def add(self, size: int, safety: SafetyLevel) -> None:
        self.total += size
        self.items += 1
        if safety is SafetyLevel.SAFE:
            self.safe += size
        elif safety is SafetyLevel.REVIEW:
            self.review += size
        else:
            self.risky += size


def build_categories(apps: Sequence[InstalledApp]) -> list[SmartCategory]:
    """Largest category first; ties keep GroupKind declaration order."""
    buckets = {kind: _Totals() for kind in GroupKind}
    for app in apps:
        groups = app.grouped_artifacts
        if not any(group.kind is GroupKind.APP_BUNDLE for group in groups):
            buckets[GroupKind.APP_BUNDLE].add(app.bundle_size_bytes, safety_for(GroupKind.APP_BUNDLE))
        for group in groups:
            for artifact in group.artifacts:
                buckets[group.kind].add(artifact.size_bytes, artifact.safety_level)

    categories = [
        SmartCategory(
            kind=kind,
            total_bytes=t.total,
            item_count=t.items,
            safe_bytes=t.safe,
            review_bytes=t.review,
            risky_bytes=t.risky,
        )
        for kind, t in buckets.items()
    ]
    return sorted(categories, key=lambda c: c.total_bytes, reverse=True)


def safe_cleanup_bytes(categories: Sequence[SmartCategory]) -> int:
    return sum(c.safe_bytes for c in categories)


def review_cleanup_bytes(categories: Sequence[SmartCategory]) -> int:
    return sum(c.review_bytes for c in categories)

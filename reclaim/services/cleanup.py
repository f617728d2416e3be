from __future__ import annotations

import logging
from collections.abc import Sequence

from reclaim.models.apps import Artifact, InstalledApp
from reclaim.models.cleanup import (
    CleanupCandidate,
    CleanupExecutionResult,
    CleanupFailure,
    CleanupPlan,
)
from reclaim.models.enums import CleanupMode, GroupKind, SafetyLevel
from reclaim.services.fs import DEFAULT_FS, FileSystem
from reclaim.services.trash import SystemTrash, Trash

logger = logging.getLogger(__name__)


def make_plan(app: InstalledApp, mode: CleanupMode) -> CleanupPlan:
    """Select the artifacts *mode* removes for *app*.  Pure; never fails."""
    if mode is CleanupMode.KEEP_USER_DATA:
        selected = tuple(a for a in app.artifacts if a.group_kind is not GroupKind.USER_DATA)
    else:
        selected = tuple(app.artifacts)
    return CleanupPlan(candidates=(CleanupCandidate(app=app, mode=mode, selected_artifacts=selected),))


def _bulk_plan(app_id: str, display_name: str, artifacts: Sequence[Artifact]) -> CleanupPlan:
    # Artifacts that span apps are carried by one placeholder app.
    if not artifacts:
        return CleanupPlan(candidates=())
    holder = InstalledApp(
        id=app_id, bundle_id=app_id, display_name=display_name, bundle_path="/", artifacts=list(artifacts)
    )
    candidate = CleanupCandidate(app=holder, mode=CleanupMode.REMOVE_EVERYTHING, selected_artifacts=tuple(artifacts))
    return CleanupPlan(candidates=(candidate,))


def make_safe_plan(apps: Sequence[InstalledApp]) -> CleanupPlan:
    """Every SAFE artifact across *apps*, for one-step quick cleaning."""
    safe = [a for app in apps for a in app.artifacts if a.safety_level is SafetyLevel.SAFE]
    return _bulk_plan("quick-clean", "Safe Quick Clean", safe)


def make_orphan_plan(orphans: Sequence[Artifact]) -> CleanupPlan:
    return _bulk_plan("orphans", "Orphaned Data", orphans)


class CleanupExecutor:
    """Moves a plan's artifacts to the trash, one item at a time.

    A failed item is recorded and the batch continues; paths that no longer
    exist are skipped without being reported.
    """

    def __init__(self, trash: Trash | None = None, fs: FileSystem = DEFAULT_FS) -> None:
        self._trash = trash or SystemTrash()
        self._fs = fs

    def execute(self, plan: CleanupPlan) -> CleanupExecutionResult:
        result = CleanupExecutionResult()
        for artifact in plan.unique_artifacts():
            if not self._fs.exists(artifact.path):
                logger.debug("Already gone: %s", artifact.path)
                continue
            try:
                self._trash.move_to_trash(artifact.path)
            except OSError as exc:
                logger.warning("Could not trash %s: %s", artifact.path, exc)
                result.failures.append(CleanupFailure(path=artifact.path, reason=str(exc)))
                continue
            result.reclaimed_bytes += artifact.size_bytes
            result.removed_paths.append(artifact.path)
            logger.info("Moved to trash: %s", artifact.path)
        return result

# Application artifact resolution.
#
# An app leaves files in a fixed set of conventional places.  Those places
# are kept as data below (templates + scanned directories + classification
# rules) rather than code, so the set stays reviewable in one spot:
#
#   _USER_TEMPLATES      relative to ~/Library, formatted with {id}/{name}
#   _SYSTEM_TEMPLATES    relative to /Library
#   _MATCHED_DIRS        directories whose entries are kept when their
#                        lower-cased name contains the lower-cased bundle id
#   _ORPHAN_DIRS         top-level directories mined for leftovers of apps
#                        that are no longer installed
#   _CLASSIFY_RULES      ordered substring rules mapping a path to a GroupKind

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Set

from reclaim.models.apps import Artifact, InstalledApp
from reclaim.models.enums import GroupKind
from reclaim.services.fs import DEFAULT_FS, FileSystem
from reclaim.services.sizing import SizeAggregator

logger = logging.getLogger(__name__)

_USER = "user"
_SYSTEM = "system"

_USER_TEMPLATES: tuple[str, ...] = (
    "Application Support/{id}",
    "Application Support/{name}",
    "Caches/{id}",
    "Caches/{name}",
    "Preferences/{id}.plist",
    "Saved Application State/{id}.savedState",
    "Containers/{id}",
    "HTTPStorages/{id}",
    "WebKit/{id}",
    "Logs/{id}",
    "Logs/{name}",
)

_SYSTEM_TEMPLATES: tuple[str, ...] = (
    "Application Support/{name}",
    "PreferencePanes/{name}.prefPane",
)

_MATCHED_DIRS: tuple[tuple[str, str], ...] = (
    (_USER, "Group Containers"),
    (_USER, "LaunchAgents"),
    (_SYSTEM, "LaunchAgents"),
    (_SYSTEM, "LaunchDaemons"),
)

_ORPHAN_DIRS: tuple[str, ...] = (
    "Containers",
    "Caches",
    "Application Support",
    "Preferences",
)

_CLASSIFY_RULES: tuple[tuple[tuple[str, ...], GroupKind], ...] = (
    (("/Caches/", "/Logs/"), GroupKind.CACHE),
    (("/Preferences/",), GroupKind.PREFERENCES),
    (("/LaunchAgents/", "/LaunchDaemons/", "/PreferencePanes/"), GroupKind.SYSTEM_INTEGRATION),
)


def classify(path: str, bundle_path: str) -> GroupKind:
    if bundle_path and path == bundle_path:
        return GroupKind.APP_BUNDLE
    for needles, kind in _CLASSIFY_RULES:
        if any(needle in path for needle in needles):
            return kind
    return GroupKind.USER_DATA


def extract_bundle_id(name: str, min_length: int) -> str | None:
    """Return a bundle-id-shaped token from a directory entry name, if any."""
    token = name.replace(".plist", "")
    if "." not in token or len(token) <= min_length:
        return None
    return token


class ArtifactResolver:
    def __init__(
        self,
        sizer: SizeAggregator,
        home: str | None = None,
        system_library: str = "/Library",
        orphan_min_id_length: int = 6,
        fs: FileSystem = DEFAULT_FS,
    ) -> None:
        self._sizer = sizer
        self._fs = fs
        self._user_library = os.path.join(home or fs.home(), "Library")
        self._system_library = system_library
        self._orphan_min_id_length = orphan_min_id_length

    def _root(self, which: str) -> str:
        return self._user_library if which == _USER else self._system_library

    def candidate_paths(self, app: InstalledApp) -> list[str]:
        """Every conventional location for *app*, de-duplicated, existing or not."""
        name = os.path.splitext(os.path.basename(app.bundle_path.rstrip("/")))[0]
        values = {"id": app.bundle_id, "name": name}

        paths: dict[str, None] = {app.bundle_path: None}
        for template in _USER_TEMPLATES:
            paths[os.path.join(self._user_library, template.format(**values))] = None
        for template in _SYSTEM_TEMPLATES:
            paths[os.path.join(self._system_library, template.format(**values))] = None
        for which, directory in _MATCHED_DIRS:
            for path in self._matching_entries(os.path.join(self._root(which), directory), app.bundle_id):
                paths[path] = None
        return list(paths)

    def artifacts(self, app: InstalledApp) -> list[Artifact]:
        found: list[Artifact] = []
        for path in self.candidate_paths(app):
            artifact = self._measure(path, app.bundle_path)
            if artifact is not None:
                found.append(artifact)
        return _by_size(found)

    def resolve(self, apps: Iterable[InstalledApp]) -> list[InstalledApp]:
        return [app.with_artifacts(self.artifacts(app)) for app in apps]

    def orphan_artifacts(self, known_ids: Set[str]) -> list[Artifact]:
        found: list[Artifact] = []
        for directory in _ORPHAN_DIRS:
            root = os.path.join(self._user_library, directory)
            if not self._fs.exists(root):
                continue
            try:
                entries = self._fs.scandir(root)
            except OSError as exc:
                logger.debug("Skipping unreadable orphan root %s: %s", root, exc)
                continue
            for entry in entries:
                bundle_id = extract_bundle_id(entry.name, self._orphan_min_id_length)
                if bundle_id is None or bundle_id in known_ids:
                    continue
                artifact = self._measure(entry.path, "")
                if artifact is not None:
                    found.append(artifact)
        return _by_size(found)

    def _measure(self, path: str, bundle_path: str) -> Artifact | None:
        if not self._fs.exists(path):
            return None
        size = self._sizer.size(path)
        if size == 0:
            return None
        try:
            is_dir = self._fs.stat(path).is_dir
        except OSError:
            is_dir = False
        return Artifact.classified(path, classify(path, bundle_path), size, is_dir)

    def _matching_entries(self, directory: str, token: str) -> list[str]:
        if not self._fs.exists(directory):
            return []
        try:
            entries = self._fs.scandir(directory)
        except OSError as exc:
            logger.debug("Skipping unreadable directory %s: %s", directory, exc)
            return []
        needle = token.lower()
        return sorted(entry.path for entry in entries if needle in entry.name.lower())


def _by_size(artifacts: list[Artifact]) -> list[Artifact]:
    return sorted(artifacts, key=lambda a: (-a.size_bytes, a.path))

from __future__ import annotations

from reclaim.models.enums import GroupKind, SafetyLevel
from reclaim.services.artifacts import ArtifactResolver, classify, extract_bundle_id
from reclaim.services.sizing import SizeAggregator
from tests.factories import make_app
from tests.fs_mock import MemoryFileSystem

LIB = "/mock/home/Library"
BUNDLE = "/Applications/Editor.app"


def _resolver(fs: MemoryFileSystem) -> ArtifactResolver:
    return ArtifactResolver(SizeAggregator(fs=fs), fs=fs)


def _editor_fs() -> MemoryFileSystem:
    fs = MemoryFileSystem()
    fs.add_file(f"{BUNDLE}/Contents/MacOS/editor", size=1_000)
    fs.add_file(f"{LIB}/Application Support/com.example.editor/db.sqlite", size=3_000)
    fs.add_file(f"{LIB}/Caches/com.example.editor/blob", size=2_000)
    fs.add_file(f"{LIB}/Preferences/com.example.editor.plist", size=300)
    fs.add_file(f"{LIB}/Logs/Editor/today.log", size=50)
    fs.add_file(f"{LIB}/Group Containers/TEAM1.com.example.editor/shared", size=400)
    fs.add_file("/Library/LaunchAgents/com.example.editor.helper.plist", size=10)
    fs.add_dir(f"{LIB}/Containers/com.example.editor")
    fs.add_file(f"{LIB}/Caches/com.other.app/blob", size=999)
    return fs


class TestClassify:
    def test_bundle_path(self) -> None:
        assert classify(BUNDLE, BUNDLE) is GroupKind.APP_BUNDLE

    def test_caches_and_logs(self) -> None:
        assert classify(f"{LIB}/Caches/x", BUNDLE) is GroupKind.CACHE
        assert classify(f"{LIB}/Logs/x", BUNDLE) is GroupKind.CACHE

    def test_preferences(self) -> None:
        assert classify(f"{LIB}/Preferences/x.plist", BUNDLE) is GroupKind.PREFERENCES

    def test_system_integration(self) -> None:
        assert classify("/Library/LaunchDaemons/x.plist", BUNDLE) is GroupKind.SYSTEM_INTEGRATION
        assert classify("/Library/PreferencePanes/X.prefPane", BUNDLE) is GroupKind.SYSTEM_INTEGRATION

    def test_everything_else_is_user_data(self) -> None:
        assert classify(f"{LIB}/Application Support/x", BUNDLE) is GroupKind.USER_DATA


class TestExtractBundleId:
    def test_plist_suffix_stripped(self) -> None:
        assert extract_bundle_id("com.example.app.plist", 6) == "com.example.app"

    def test_requires_dot(self) -> None:
        assert extract_bundle_id("SomeFolderName", 6) is None

    def test_requires_length_above_minimum(self) -> None:
        assert extract_bundle_id("a.bcde", 6) is None
        assert extract_bundle_id("a.bcdef", 6) == "a.bcdef"


class TestResolve:
    def test_artifacts_classified_and_sorted(self) -> None:
        fs = _editor_fs()
        app = make_app("com.example.editor", "Editor", bundle_size=1_000, bundle_path=BUNDLE)

        artifacts = _resolver(fs).artifacts(app)

        by_path = {a.path: a for a in artifacts}
        assert by_path[BUNDLE].group_kind is GroupKind.APP_BUNDLE
        assert by_path[f"{LIB}/Application Support/com.example.editor"].group_kind is GroupKind.USER_DATA
        assert by_path[f"{LIB}/Caches/com.example.editor"].safety_level is SafetyLevel.SAFE
        assert by_path[f"{LIB}/Preferences/com.example.editor.plist"].group_kind is GroupKind.PREFERENCES
        assert by_path[f"{LIB}/Logs/Editor"].group_kind is GroupKind.CACHE
        assert by_path[f"{LIB}/Group Containers/TEAM1.com.example.editor"].group_kind is GroupKind.USER_DATA
        launch_agent = by_path["/Library/LaunchAgents/com.example.editor.helper.plist"]
        assert launch_agent.safety_level is SafetyLevel.RISKY
        assert launch_agent.is_dir is False

        sizes = [a.size_bytes for a in artifacts]
        assert sizes == sorted(sizes, reverse=True)

    def test_zero_sized_and_unrelated_paths_dropped(self) -> None:
        fs = _editor_fs()
        app = make_app("com.example.editor", "Editor", bundle_path=BUNDLE)
        paths = {a.path for a in _resolver(fs).artifacts(app)}
        assert f"{LIB}/Containers/com.example.editor" not in paths
        assert f"{LIB}/Caches/com.other.app" not in paths

    def test_candidate_paths_deduplicated(self) -> None:
        app = make_app("Editor", "Editor", bundle_path=BUNDLE)
        paths = _resolver(MemoryFileSystem()).candidate_paths(app)
        assert len(paths) == len(set(paths))
        assert paths[0] == BUNDLE
        assert f"{LIB}/Caches/Editor" in paths

    def test_resolve_populates_true_size(self) -> None:
        fs = _editor_fs()
        app = make_app("com.example.editor", "Editor", bundle_size=1_000, bundle_path=BUNDLE)
        [resolved] = _resolver(fs).resolve([app])
        assert resolved.artifacts
        assert app.artifacts == []
        assert resolved.true_size_bytes == 1_000 + sum(a.size_bytes for a in resolved.artifacts)

    def test_unreadable_matched_directory_skipped(self) -> None:
        fs = _editor_fs()
        fs.unreadable.add(f"{LIB}/Group Containers")
        app = make_app("com.example.editor", "Editor", bundle_path=BUNDLE)
        paths = {a.path for a in _resolver(fs).artifacts(app)}
        assert f"{LIB}/Caches/com.example.editor" in paths
        assert not any("Group Containers" in p for p in paths)


class TestOrphans:
    def test_unknown_ids_reported(self) -> None:
        fs = MemoryFileSystem()
        fs.add_file(f"{LIB}/Caches/com.gone.app/blob", size=20)
        fs.add_file(f"{LIB}/Preferences/com.gone.app.plist", size=5)
        fs.add_file(f"{LIB}/Caches/com.example.editor/blob", size=30)
        fs.add_file(f"{LIB}/Caches/a.b/blob", size=40)
        fs.add_file(f"{LIB}/Caches/NoDotsHere/blob", size=50)

        orphans = _resolver(fs).orphan_artifacts({"com.example.editor"})

        assert [o.path for o in orphans] == [
            f"{LIB}/Caches/com.gone.app",
            f"{LIB}/Preferences/com.gone.app.plist",
        ]
        assert orphans[0].group_kind is GroupKind.CACHE
        assert orphans[1].group_kind is GroupKind.PREFERENCES

    def test_missing_library_is_empty(self) -> None:
        assert _resolver(MemoryFileSystem()).orphan_artifacts(set()) == []

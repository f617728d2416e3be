from __future__ import annotations

from reclaim.models.apps import InstalledApp
from reclaim.models.enums import CleanupMode, GroupKind, ProfileKind
from reclaim.models.scan import ScanOptions
from reclaim.scan import DiskTreeScanner
from reclaim.services.cleanup import CleanupExecutor, make_plan
from reclaim.services.duplicates import DuplicateAndLargeItemDetector
from reclaim.services.profile import ProfileInferenceEngine
from reclaim.services.sizing import SizeAggregator
from tests.factories import make_app, make_artifact
from tests.fs_mock import MemoryFileSystem, MemoryTrash

LIB = "/mock/home/Library"


def _notes_app() -> InstalledApp:
    return make_app(
        "com.example.notes",
        "Notes",
        artifacts=[
            make_artifact(f"{LIB}/Caches/com.example.notes", GroupKind.CACHE, 2_000, is_dir=True),
            make_artifact(f"{LIB}/Application Support/com.example.notes", GroupKind.USER_DATA, 3_000, is_dir=True),
            make_artifact(f"{LIB}/Preferences/com.example.notes.plist", GroupKind.PREFERENCES, 3_000),
        ],
    )


class TestUninstallPlanModes:
    def test_remove_everything(self) -> None:
        plan = make_plan(_notes_app(), CleanupMode.REMOVE_EVERYTHING)
        assert plan.total_bytes == 8_000
        assert plan.file_count == 3

    def test_keep_user_data(self) -> None:
        plan = make_plan(_notes_app(), CleanupMode.KEEP_USER_DATA)
        assert plan.total_bytes == 5_000
        assert plan.file_count == 2


class TestDuplicateAcrossApps:
    def test_single_group_for_shared_checkpoint(self) -> None:
        first = make_artifact(f"{LIB}/A/checkpoint.bin", GroupKind.USER_DATA, 2_000)
        second = make_artifact(f"{LIB}/B/checkpoint.bin", GroupKind.USER_DATA, 2_000)
        a = make_app("com.alpha.trainer", artifacts=[first])
        b = make_app("com.beta.trainer", artifacts=[second])

        report = DuplicateAndLargeItemDetector().detect([a, b])

        assert len(report.duplicate_groups) == 1
        group = report.duplicate_groups[0]
        assert group.total_bytes == 4_000
        assert len(group.duplicates) == 2
        assert group.potential_reclaim == 2_000


class TestCleanupWithFailures:
    def test_missing_and_denied_paths(self) -> None:
        fs = MemoryFileSystem()
        app = _notes_app()
        cache, support, prefs = (a.path for a in app.artifacts)
        fs.add_file(f"{cache}/blob", size=2_000)
        fs.add_file(prefs, size=3_000)
        # support was already deleted by the user
        trash = MemoryTrash(fs, fail_on={prefs})

        result = CleanupExecutor(trash=trash, fs=fs).execute(make_plan(app, CleanupMode.REMOVE_EVERYTHING))

        assert result.reclaimed_bytes == 2_000
        assert result.removed_paths == [cache]
        assert [f.path for f in result.failures] == [prefs]
        assert support not in result.removed_paths
        assert support not in {f.path for f in result.failures}
        assert not result.is_successful
        assert fs.exists(prefs)
        assert not fs.exists(cache)


class TestProfileWithoutSignals:
    def test_general_user(self) -> None:
        assert ProfileInferenceEngine().infer_profile([], []).kinds == [ProfileKind.GENERAL_USER]


class TestDepthZeroFileRoot:
    def test_leaf_with_raw_size(self) -> None:
        fs = MemoryFileSystem()
        fs.add_file("/data/archive.tar", size=12_345)
        scanner = DiskTreeScanner(SizeAggregator(fs=fs), fs=fs)

        node = scanner.scan("/data/archive.tar", ScanOptions(max_depth=0)).unwrap()

        assert node.children == []
        assert not node.is_dir
        assert node.size_bytes == 12_345

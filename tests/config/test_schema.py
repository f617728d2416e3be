from __future__ import annotations

import pytest

from reclaim.config.defaults import default_config
from reclaim.config.schema import AppConfig, UnitRule, clamp_field


class TestToDict:
    def test_keys_present(self) -> None:
        d = AppConfig().to_dict()
        for key in (
            "scanRoots",
            "packageExtensions",
            "cacheDir",
            "logLevel",
            "useClassifier",
            "catalogTtlSeconds",
            "treeMaxDepth",
            "duplicateMaterialityBytes",
            "unitMinBytes",
            "unitRules",
        ):
            assert key in d

    def test_default_thresholds(self) -> None:
        d = AppConfig().to_dict()
        assert d["catalogTtlSeconds"] == 900
        assert d["recommendationsTtlSeconds"] == 1200
        assert d["largeItemMinBytes"] == 5_000_000
        assert d["duplicateGroupLimit"] == 120
        assert d["orphanMinIdLength"] == 6


class TestUnitRule:
    def test_to_dict(self) -> None:
        assert UnitRule("dist", "Build artifacts folder.").to_dict() == {
            "marker": "dist",
            "reason": "Build artifacts folder.",
        }

    def test_from_dict_lowercases_marker(self) -> None:
        rule = UnitRule.from_dict({"marker": "DerivedData", "reason": "r"})
        assert rule.marker == "deriveddata"


class TestFromDict:
    def test_numeric_clamping(self) -> None:
        result = AppConfig.from_dict({"treeMaxChildren": 0, "bundleScanDepth": -3}, AppConfig())
        assert result.tree_max_children == 1
        assert result.bundle_scan_depth == 1

    def test_missing_keys_use_defaults(self) -> None:
        defaults = default_config()
        result = AppConfig.from_dict({}, defaults)
        assert result.scan_roots == defaults.scan_roots
        assert result.unit_rules == defaults.unit_rules
        assert result.duplicate_materiality_bytes == 20_000_000

    def test_unit_rules_present(self) -> None:
        payload = {"unitRules": [{"marker": "venv", "reason": "Virtualenv."}]}
        result = AppConfig.from_dict(payload, default_config())
        assert [r.marker for r in result.unit_rules] == ["venv"]

    def test_package_extensions_normalised(self) -> None:
        result = AppConfig.from_dict({"packageExtensions": [".APP", "Bundle"]}, AppConfig())
        assert result.package_extensions == ["app", "bundle"]

    def test_string_flag_rejected(self) -> None:
        with pytest.raises(TypeError, match="useClassifier"):
            AppConfig.from_dict({"useClassifier": "false"}, AppConfig())
        with pytest.raises(TypeError):
            AppConfig.from_dict({"useClassifier": 0}, AppConfig())

    def test_log_level_upper(self) -> None:
        assert AppConfig.from_dict({"logLevel": "debug"}, AppConfig()).log_level == "DEBUG"

    def test_round_trip_through_dict(self) -> None:
        cfg = default_config()
        assert AppConfig.from_dict(cfg.to_dict(), AppConfig()) == cfg


class TestClampField:
    def test_below_minimum(self) -> None:
        assert clamp_field(0, "metadata_max_samples") == 1

    def test_unknown_field_untouched(self) -> None:
        assert clamp_field(-5, "not_a_field") == -5

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# (json_key, attr_name, minimum), used by from_dict and override clamping.
_INT_FIELDS: tuple[tuple[str, str, int], ...] = (
    ("catalogTtlSeconds", "catalog_ttl_seconds", 0),
    ("recommendationsTtlSeconds", "recommendations_ttl_seconds", 0),
    ("storageMapTtlSeconds", "storage_map_ttl_seconds", 0),
    ("bundleScanDepth", "bundle_scan_depth", 1),
    ("caskScanDepth", "cask_scan_depth", 1),
    ("orphanMinIdLength", "orphan_min_id_length", 1),
    ("treeMaxDepth", "tree_max_depth", 0),
    ("treeMaxChildren", "tree_max_children", 1),
    ("largeItemMinBytes", "large_item_min_bytes", 0),
    ("largeItemLimit", "large_item_limit", 1),
    ("largeItemFlattenDepth", "large_item_flatten_depth", 1),
    ("largeItemFlattenLimit", "large_item_flatten_limit", 1),
    ("duplicateMinBytes", "duplicate_min_bytes", 0),
    ("duplicateMaterialityBytes", "duplicate_materiality_bytes", 0),
    ("duplicateGroupLimit", "duplicate_group_limit", 1),
    ("duplicateFlattenDepth", "duplicate_flatten_depth", 1),
    ("duplicateFlattenLimit", "duplicate_flatten_limit", 1),
    ("unitMinBytes", "unit_min_bytes", 0),
    ("unitMaxDepth", "unit_max_depth", 1),
    ("metadataMaxDepth", "metadata_max_depth", 1),
    ("metadataMaxSamples", "metadata_max_samples", 1),
    ("metadataMaxBuckets", "metadata_max_buckets", 1),
    ("recommendationsPerSource", "recommendations_per_source", 1),
)


def clamp_field(value: int, field_name: str) -> int:
    """Clamp *value* to the minimum defined for *field_name* in _INT_FIELDS."""
    for _, attr, minimum in _INT_FIELDS:
        if attr == field_name:
            return max(minimum, value)
    return value


def _get_int(data: dict[str, Any], json_key: str, default: int, minimum: int) -> int:
    return max(minimum, int(data.get(json_key, default)))


def _get_bool(data: dict[str, Any], json_key: str, default: bool) -> bool:
    value = data.get(json_key, default)
    if not isinstance(value, bool):
        raise TypeError(f"{json_key} must be true or false, got {value!r}")
    return value


def _get_str_list(data: dict[str, Any], json_key: str, default: list[str]) -> list[str]:
    raw = data.get(json_key)
    if raw is None:
        return list(default)
    return [str(x) for x in raw]


@dataclass(slots=True)
class UnitRule:
    """A bulky-folder marker matched against lower-cased directory names."""

    marker: str
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {"marker": self.marker, "reason": self.reason}

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> UnitRule:
        return cls(marker=str(payload["marker"]).lower(), reason=str(payload["reason"]))


@dataclass(slots=True)
class AppConfig:
    scan_roots: list[str] = field(default_factory=list)
    package_extensions: list[str] = field(default_factory=list)
    unit_rules: list[UnitRule] = field(default_factory=list)
    cache_dir: str = "~/.cache/reclaim"
    log_level: str = "INFO"
    use_classifier: bool = True
    catalog_ttl_seconds: int = 15 * 60
    recommendations_ttl_seconds: int = 20 * 60
    storage_map_ttl_seconds: int = 20 * 60
    bundle_scan_depth: int = 2
    cask_scan_depth: int = 4
    orphan_min_id_length: int = 6
    tree_max_depth: int = 3
    tree_max_children: int = 200
    large_item_min_bytes: int = 5_000_000
    large_item_limit: int = 200
    large_item_flatten_depth: int = 5
    large_item_flatten_limit: int = 1_200
    duplicate_min_bytes: int = 5_000_000
    duplicate_materiality_bytes: int = 20_000_000
    duplicate_group_limit: int = 120
    duplicate_flatten_depth: int = 6
    duplicate_flatten_limit: int = 2_000
    unit_min_bytes: int = 20_000_000
    unit_max_depth: int = 6
    metadata_max_depth: int = 5
    metadata_max_samples: int = 2_500
    metadata_max_buckets: int = 300
    recommendations_per_source: int = 8

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "scanRoots": list(self.scan_roots),
            "packageExtensions": list(self.package_extensions),
            "cacheDir": self.cache_dir,
            "logLevel": self.log_level,
            "useClassifier": self.use_classifier,
        }
        for json_key, attr, _ in _INT_FIELDS:
            data[json_key] = getattr(self, attr)
        data["unitRules"] = [rule.to_dict() for rule in self.unit_rules]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any], defaults: AppConfig) -> AppConfig:
        rules_raw = data.get("unitRules")
        if rules_raw is not None:
            unit_rules = [UnitRule.from_dict(x) for x in rules_raw]
        else:
            unit_rules = list(defaults.unit_rules)

        int_kwargs: dict[str, int] = {}
        for json_key, attr, minimum in _INT_FIELDS:
            int_kwargs[attr] = _get_int(data, json_key, getattr(defaults, attr), minimum)

        return cls(
            scan_roots=_get_str_list(data, "scanRoots", defaults.scan_roots),
            package_extensions=[
                ext.lower().lstrip(".") for ext in _get_str_list(data, "packageExtensions", defaults.package_extensions)
            ],
            unit_rules=unit_rules,
            cache_dir=str(data.get("cacheDir", defaults.cache_dir)),
            log_level=str(data.get("logLevel", defaults.log_level)).upper(),
            use_classifier=_get_bool(data, "useClassifier", defaults.use_classifier),
            **int_kwargs,
        )

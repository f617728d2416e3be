# Composition root.
#
# Engine wires every service from one AppConfig and runs the cross-service
# flows:
#
#   catalog          fetch_catalog -> resolve_artifacts -> orphans, categories
#   uninstall        plan_cleanup | plan_safe_cleanup | plan_orphan_cleanup
#                    -> execute_cleanup
#   storage map      scope root -> DiskTreeScanner, cached per "<scope>|<root>"
#   recommendations  MetadataDiscovery -> ProfileInferenceEngine
#                    -> SemanticUnitDetector -> RecommendationRanker,
#                    cached per scope, root and an app-size signature
#   duplicates       DuplicateAndLargeItemDetector over apps + disk tree
#
# Only fetch_catalog and storage_map can fail (Result); everything else
# degrades to partial output.

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from result import Err, Ok, Result

from reclaim.config.schema import AppConfig
from reclaim.models.apps import Artifact, InstalledApp, SmartCategory
from reclaim.models.cache import CacheEntry, RecommendationsPayload
from reclaim.models.cleanup import CleanupExecutionResult, CleanupPlan
from reclaim.models.enums import CacheSource, CleanupMode, ScanScope
from reclaim.models.insight import DetectionReport
from reclaim.models.profile import Recommendation, UserProfile
from reclaim.models.scan import DiskNode, ProgressCallback, ScanError, ScanOptions
from reclaim.scan import DiskTreeScanner, Scanner
from reclaim.services.artifacts import ArtifactResolver
from reclaim.services.cache import (
    CacheStore,
    Clock,
    catalog_cache,
    recommendations_cache,
    storage_map_cache,
    utc_now,
)
from reclaim.services.catalog import AppCatalogDiscoverer, CatalogResult
from reclaim.services.categories import build_categories
from reclaim.services.cleanup import CleanupExecutor, make_orphan_plan, make_plan, make_safe_plan
from reclaim.services.duplicates import DetectionLimits, DuplicateAndLargeItemDetector
from reclaim.services.fs import DEFAULT_FS, FileSystem
from reclaim.services.metadata import MetadataDiscovery
from reclaim.services.profile import ProfileClassifier, ProfileInferenceEngine
from reclaim.services.ranking import RecommendationRanker
from reclaim.services.semantic import SemanticUnitDetector
from reclaim.services.sizing import SizeAggregator
from reclaim.services.trash import Trash

logger = logging.getLogger(__name__)

_SCOPE_ROOTS: dict[ScanScope, str] = {
    ScanScope.HOME: "~",
    ScanScope.APPLICATIONS: "/Applications",
    ScanScope.FULL_DISK: "/",
}


def scope_root(scope: ScanScope, fs: FileSystem = DEFAULT_FS) -> str:
    return fs.expanduser(_SCOPE_ROOTS[scope])


def app_signature(apps: Sequence[InstalledApp]) -> str:
    return "|".join(f"{app.id}:{app.true_size_bytes}" for app in sorted(apps, key=lambda a: a.id))


@dataclass(slots=True)
class StorageMapResult:
    root: DiskNode
    source: CacheSource
    generated_at: datetime


@dataclass(slots=True)
class RecommendationsResult:
    profile: UserProfile
    recommendations: list[Recommendation] = field(default_factory=list)
    source: CacheSource = CacheSource.LIVE


class Engine:
    def __init__(
        self,
        config: AppConfig,
        catalog: AppCatalogDiscoverer,
        resolver: ArtifactResolver,
        executor: CleanupExecutor,
        scanner: Scanner,
        detector: DuplicateAndLargeItemDetector,
        metadata: MetadataDiscovery,
        profiler: ProfileInferenceEngine,
        units: SemanticUnitDetector,
        ranker: RecommendationRanker,
        storage_cache: CacheStore[DiskNode] | None = None,
        rec_cache: CacheStore[RecommendationsPayload] | None = None,
        fs: FileSystem = DEFAULT_FS,
        clock: Clock = utc_now,
    ) -> None:
        self.config = config
        self.catalog = catalog
        self.resolver = resolver
        self.executor = executor
        self.scanner = scanner
        self.detector = detector
        self.metadata = metadata
        self.profiler = profiler
        self.units = units
        self.ranker = ranker
        self._storage_cache = storage_cache
        self._rec_cache = rec_cache
        self._fs = fs
        self._clock = clock

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        fs: FileSystem = DEFAULT_FS,
        trash: Trash | None = None,
        classifier: ProfileClassifier | None = None,
        clock: Clock = utc_now,
        home: str | None = None,
        system_library: str = "/Library",
    ) -> Engine:
        sizer = SizeAggregator(config.package_extensions, fs=fs)
        cache_dir = config.cache_dir
        return cls(
            config=config,
            catalog=AppCatalogDiscoverer(
                sizer,
                scan_roots=config.scan_roots,
                cache=catalog_cache(cache_dir, fs=fs, clock=clock),
                cache_ttl=timedelta(seconds=config.catalog_ttl_seconds),
                bundle_depth=config.bundle_scan_depth,
                cask_depth=config.cask_scan_depth,
                fs=fs,
                clock=clock,
            ),
            resolver=ArtifactResolver(
                sizer,
                home=home,
                system_library=system_library,
                orphan_min_id_length=config.orphan_min_id_length,
                fs=fs,
            ),
            executor=CleanupExecutor(trash=trash, fs=fs),
            scanner=DiskTreeScanner(
                sizer,
                ScanOptions(max_depth=config.tree_max_depth, max_children=config.tree_max_children),
                fs=fs,
            ),
            detector=DuplicateAndLargeItemDetector(DetectionLimits.from_config(config)),
            metadata=MetadataDiscovery(config.package_extensions, max_buckets=config.metadata_max_buckets, fs=fs),
            profiler=ProfileInferenceEngine(classifier, use_classifier=config.use_classifier),
            units=SemanticUnitDetector(
                sizer,
                rules=config.unit_rules,
                min_bytes=config.unit_min_bytes,
                max_depth=config.unit_max_depth,
                package_extensions=config.package_extensions,
                fs=fs,
            ),
            ranker=RecommendationRanker(per_source=config.recommendations_per_source),
            storage_cache=storage_map_cache(cache_dir, fs=fs, clock=clock),
            rec_cache=recommendations_cache(cache_dir, fs=fs, clock=clock),
            fs=fs,
            clock=clock,
        )

    # -- apps ---------------------------------------------------------------

    def fetch_catalog(self, progress_callback: ProgressCallback | None = None) -> CatalogResult:
        return self.catalog.fetch_catalog(progress_callback)

    def resolve_artifacts(self, apps: Sequence[InstalledApp]) -> list[InstalledApp]:
        return self.resolver.resolve(apps)

    def orphans(self, apps: Sequence[InstalledApp]) -> list[Artifact]:
        return self.resolver.orphan_artifacts({app.bundle_id for app in apps})

    def plan_cleanup(self, app: InstalledApp, mode: CleanupMode) -> CleanupPlan:
        return make_plan(app, mode)

    def categories(self, apps: Sequence[InstalledApp]) -> list[SmartCategory]:
        return build_categories(apps)

    def plan_safe_cleanup(self, apps: Sequence[InstalledApp]) -> CleanupPlan:
        return make_safe_plan(apps)

    def plan_orphan_cleanup(self, apps: Sequence[InstalledApp]) -> CleanupPlan:
        return make_orphan_plan(self.orphans(apps))

    def execute_cleanup(self, plan: CleanupPlan) -> CleanupExecutionResult:
        result = self.executor.execute(plan)
        logger.info(
            "Cleanup finished: %d removed, %d failed, %d bytes reclaimed",
            len(result.removed_paths),
            len(result.failures),
            result.reclaimed_bytes,
        )
        return result

    # -- disk ---------------------------------------------------------------

    def storage_map(
        self,
        scope: ScanScope,
        force_refresh: bool = False,
        progress_callback: ProgressCallback | None = None,
    ) -> Result[StorageMapResult, ScanError]:
        root_path = scope_root(scope, self._fs)
        key = f"{scope.value}|{root_path}"
        ttl = timedelta(seconds=self.config.storage_map_ttl_seconds)

        if self._storage_cache is not None and not force_refresh:
            cached = self._storage_cache.load(key, ttl, now=self._clock())
            if cached is not None:
                return Ok(
                    StorageMapResult(root=cached.payload, source=CacheSource.CACHED, generated_at=cached.created_at)
                )

        scanned = self.scanner.scan(root_path, progress_callback=progress_callback)
        if scanned.is_err():
            return Err(scanned.unwrap_err())

        root = scanned.unwrap()
        generated_at = self._clock()
        if self._storage_cache is not None:
            self._storage_cache.save(CacheEntry(key=key, created_at=generated_at, payload=root))
        return Ok(StorageMapResult(root=root, source=CacheSource.LIVE, generated_at=generated_at))

    def detect_duplicates(self, apps: Sequence[InstalledApp], disk_root: DiskNode | None = None) -> DetectionReport:
        return self.detector.detect(apps, disk_root)

    # -- recommendations ----------------------------------------------------

    def recommendations(self, apps: Sequence[InstalledApp], scope: ScanScope) -> RecommendationsResult:
        root_path = scope_root(scope, self._fs)
        key = f"{scope.value}|{root_path}|{app_signature(apps)}"
        ttl = timedelta(seconds=self.config.recommendations_ttl_seconds)

        if self._rec_cache is not None:
            cached = self._rec_cache.load(key, ttl, now=self._clock())
            if cached is not None:
                return RecommendationsResult(
                    profile=cached.payload.profile,
                    recommendations=list(cached.payload.recommendations),
                    source=CacheSource.CACHED,
                )

        metadata = self.metadata.collect(
            root_path,
            max_depth=self.config.metadata_max_depth,
            max_samples=self.config.metadata_max_samples,
        )
        profile = self.profiler.infer_profile(apps, metadata)
        units = self.units.detect_units(root_path)
        ranked = self.ranker.rank(profile, apps, units)

        if self._rec_cache is not None:
            payload = RecommendationsPayload(profile=profile, recommendations=ranked)
            self._rec_cache.save(CacheEntry(key=key, created_at=self._clock(), payload=payload))
        return RecommendationsResult(profile=profile, recommendations=ranked, source=CacheSource.LIVE)

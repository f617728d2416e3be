from __future__ import annotations

from collections.abc import Sequence

from reclaim.models.apps import InstalledApp
from reclaim.models.enums import ProfileKind, SafetyLevel
from reclaim.models.insight import SemanticCleanupUnit
from reclaim.models.profile import Recommendation, UserProfile
from reclaim.services.formatting import format_bytes

GIB = 1_073_741_824

_RISK_BY_SAFETY: dict[SafetyLevel, float] = {
    SafetyLevel.SAFE: 0.2,
    SafetyLevel.REVIEW: 0.35,
    SafetyLevel.RISKY: 0.7,
}

_AFFINITY: dict[ProfileKind, tuple[tuple[str, ...], float]] = {
    ProfileKind.IOS_DEVELOPER: (("xcode", "deriveddata", "simulator"), 0.45),
    ProfileKind.WEB_DEVELOPER: (("node_modules", ".next", "dist", "webpack"), 0.45),
    ProfileKind.ML_ENGINEER: (("checkpoint", "tensorboard", "wandb", "model"), 0.48),
    ProfileKind.DESIGNER: (("figma", "adobe", "sketch", "assets"), 0.42),
    ProfileKind.VIDEO_CREATOR: (("final cut", "davinci", "premiere", "render"), 0.42),
    ProfileKind.DATA_SCIENTIST: (("jupyter", "notebook", "dataset", "cache"), 0.40),
    ProfileKind.GENERAL_USER: (("cache", "orphan"), 0.25),
}

APP_RISK = 0.4


def impact_score(size_bytes: int) -> float:
    """Size mapped onto [0.05, 1.0]; 10 GiB and above saturates."""
    return min(max(size_bytes / GIB / 10.0, 0.05), 1.0)


def affinity(profile: UserProfile, recommendation: Recommendation) -> float:
    context = " ".join(
        (recommendation.title.lower(), (recommendation.path or "").lower(), recommendation.detail.lower())
    )
    score = 0.2
    for kind in profile.kinds:
        keywords, boost = _AFFINITY[kind]
        if any(keyword in context for keyword in keywords):
            score += boost
    return min(score, 1.0)


def composite_score(profile: UserProfile, recommendation: Recommendation) -> float:
    return (
        recommendation.impact_score * 0.50
        + recommendation.confidence_score * 0.25
        + affinity(profile, recommendation) * 0.25
        - recommendation.risk_score * 0.15
    )


class RecommendationRanker:
    def __init__(self, per_source: int = 8) -> None:
        self._per_source = per_source

    def rank(
        self,
        profile: UserProfile,
        apps: Sequence[InstalledApp],
        units: Sequence[SemanticCleanupUnit],
    ) -> list[Recommendation]:
        top_apps = sorted(apps, key=lambda a: (-a.true_size_bytes, a.id))[: self._per_source]
        recommendations = [
            Recommendation(
                id=f"app:{app.id}",
                title=f"Review {app.display_name}",
                detail=f"Potential reclaim: {format_bytes(app.true_size_bytes)}. Includes app support artifacts.",
                path=app.bundle_path,
                impact_score=impact_score(app.true_size_bytes),
                confidence_score=min(profile.confidence + 0.10, 0.99),
                risk_score=APP_RISK,
            )
            for app in top_apps
        ]
        recommendations.extend(
            Recommendation(
                id=f"unit:{unit.id}",
                title=f"Cleanup unit: {unit.title}",
                detail=(
                    f"{unit.reason} Estimated reclaim: {format_bytes(unit.total_bytes)} "
                    f"across {unit.file_count} files."
                ),
                path=unit.path,
                impact_score=impact_score(unit.total_bytes),
                confidence_score=min(profile.confidence + 0.15, 0.99),
                risk_score=_RISK_BY_SAFETY[unit.risk],
            )
            for unit in units[: self._per_source]
        )
        return sorted(recommendations, key=lambda r: (-composite_score(profile, r), r.id))

# User profile inference.
#
# Two strategies, tried in order:
#   1. An optional external ProfileClassifier (e.g. a language-model backed
#      plugin).  Disabled by config or by RECLAIM_DISABLE_CLASSIFIER=1.  Any
#      exception, None or kind-less answer falls through to (2).  Answers are
#      normalised: at most two kinds, confidence in [0.5, 1], weights in [0, 1].
#   2. A keyword/metadata heuristic.  Every signal adds a weight to one
#      ProfileKind and records a ProfileEvidence line:
#
#        app corpus    lower-cased "display_name bundle_id" of every app,
#                      matched against _APP_SIGNALS
#        extensions    per-bucket bonus for model/design/video extensions
#        byte volumes  checkpoint, web-build and design-asset totals
#
#      The top two kinds by score win; confidence is the top score's share
#      of the total, clamped to [0.55, 0.99].

from __future__ import annotations

import logging
import os
from collections.abc import Mapping, Sequence
from typing import Protocol

from reclaim.models.apps import InstalledApp
from reclaim.models.enums import ProfileKind
from reclaim.models.profile import FileMetadata, ProfileEvidence, UserProfile
from reclaim.services.formatting import format_bytes

logger = logging.getLogger(__name__)

DISABLE_ENV = "RECLAIM_DISABLE_CLASSIFIER"

_APP_SIGNALS: tuple[tuple[tuple[str, ...], tuple[tuple[ProfileKind, str, float], ...]], ...] = (
    (("xcode",), ((ProfileKind.IOS_DEVELOPER, "Xcode installed", 0.9),)),
    (
        ("webstorm", "vscode", "node"),
        ((ProfileKind.WEB_DEVELOPER, "Web development tooling detected", 0.8),),
    ),
    (
        ("python", "jupyter", "tensorflow", "pytorch"),
        (
            (ProfileKind.ML_ENGINEER, "ML tooling detected", 1.0),
            (ProfileKind.DATA_SCIENTIST, "Data science tooling detected", 0.7),
        ),
    ),
    (("figma", "adobe", "sketch"), ((ProfileKind.DESIGNER, "Design applications detected", 0.9),)),
    (
        ("final cut", "davinci", "premiere"),
        ((ProfileKind.VIDEO_CREATOR, "Video editing software detected", 0.9),),
    ),
)

_EXTENSION_BONUS: tuple[tuple[frozenset[str], float], ...] = (
    (frozenset({"pt", "ckpt", "safetensors", "h5"}), 0.15),
    (frozenset({"psd", "sketch", "fig"}), 0.12),
    (frozenset({"mov", "mp4", "mxf", "r3d"}), 0.10),
)

_CHECKPOINT_PATH_MARKERS = ("checkpoint", "tensorboard", "wandb", "/runs")
_CHECKPOINT_EXTENSIONS = frozenset({"pt", "ckpt", "safetensors"})
_WEB_BUILD_MARKERS = ("node_modules", ".next", "dist")
_DESIGN_EXTENSIONS = frozenset({"psd", "fig", "sketch", "ai", "xd"})

_KIND_ORDER = {kind: index for index, kind in enumerate(ProfileKind)}


class ProfileClassifier(Protocol):
    def classify(self, apps: Sequence[InstalledApp], metadata: Sequence[FileMetadata]) -> UserProfile | None: ...


def _clamp(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)


def normalize_profile(profile: UserProfile) -> UserProfile | None:
    """Bring an externally produced profile into range, or None if it has no kinds."""
    if not profile.kinds:
        return None
    return UserProfile(
        kinds=list(profile.kinds[:2]),
        confidence=max(_clamp(profile.confidence, 0.0, 1.0), 0.5),
        evidence=[ProfileEvidence(e.reason, _clamp(e.weight, 0.0, 1.0)) for e in profile.evidence],
    )


class ProfileInferenceEngine:
    def __init__(
        self,
        classifier: ProfileClassifier | None = None,
        use_classifier: bool = True,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._classifier = classifier
        self._use_classifier = use_classifier
        self._environ = environ if environ is not None else os.environ

    def infer_profile(self, apps: Sequence[InstalledApp], metadata: Sequence[FileMetadata]) -> UserProfile:
        classified = self._try_classifier(apps, metadata)
        if classified is not None:
            return classified
        return infer_heuristically(apps, metadata)

    def _try_classifier(
        self, apps: Sequence[InstalledApp], metadata: Sequence[FileMetadata]
    ) -> UserProfile | None:
        if self._classifier is None or not self._use_classifier:
            return None
        if self._environ.get(DISABLE_ENV) == "1":
            return None
        try:
            profile = self._classifier.classify(apps, metadata)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Profile classifier failed, using heuristics: %s", exc)
            return None
        if profile is None:
            return None
        return normalize_profile(profile)


def infer_heuristically(apps: Sequence[InstalledApp], metadata: Sequence[FileMetadata]) -> UserProfile:
    corpus = " ".join(f"{app.display_name.lower()} {app.bundle_id.lower()}" for app in apps)
    scores: dict[ProfileKind, float] = {}
    evidence: list[ProfileEvidence] = []

    def add(kind: ProfileKind, reason: str, weight: float) -> None:
        scores[kind] = scores.get(kind, 0.0) + weight
        evidence.append(ProfileEvidence(reason=reason, weight=weight))

    for keywords, signals in _APP_SIGNALS:
        if any(keyword in corpus for keyword in keywords):
            for kind, reason, weight in signals:
                add(kind, reason, weight)

    signal = 0.0
    for item in metadata:
        ext = item.extension.lower()
        for extensions, bonus in _EXTENSION_BONUS:
            if ext in extensions:
                signal += bonus
                break
    if signal > 0.3:
        add(ProfileKind.ML_ENGINEER, "Checkpoint-like artifacts detected", min(signal, 1.0))

    checkpoint_bytes = sum(
        item.size_bytes
        for item in metadata
        if any(marker in item.path.lower() for marker in _CHECKPOINT_PATH_MARKERS)
        or item.extension.lower() in _CHECKPOINT_EXTENSIONS
    )
    if checkpoint_bytes > 2_000_000_000:
        add(
            ProfileKind.ML_ENGINEER,
            f"Distributed checkpoint directories detected ({format_bytes(checkpoint_bytes)})",
            max(min(checkpoint_bytes / 20_000_000_000, 1.0), 0.35),
        )

    web_bytes = sum(
        item.size_bytes for item in metadata if any(marker in item.path.lower() for marker in _WEB_BUILD_MARKERS)
    )
    if web_bytes > 1_000_000_000:
        add(
            ProfileKind.WEB_DEVELOPER,
            f"Web build/cache directories detected ({format_bytes(web_bytes)})",
            max(min(web_bytes / 15_000_000_000, 1.0), 0.30),
        )

    design_bytes = sum(item.size_bytes for item in metadata if item.extension.lower() in _DESIGN_EXTENSIONS)
    if design_bytes > 750_000_000:
        add(
            ProfileKind.DESIGNER,
            f"Large design-source assets detected ({format_bytes(design_bytes)})",
            min(design_bytes / 10_000_000_000, 0.8),
        )

    if not scores:
        return UserProfile(
            kinds=[ProfileKind.GENERAL_USER],
            confidence=0.5,
            evidence=[ProfileEvidence(reason="No strong profile indicators found", weight=0.5)],
        )

    ordered = sorted(scores.items(), key=lambda kv: (-kv[1], _KIND_ORDER[kv[0]]))
    total = sum(score for _, score in ordered)
    confidence = _clamp(ordered[0][1] / max(total, 0.1), 0.55, 0.99)
    return UserProfile(
        kinds=[kind for kind, _ in ordered[:2]],
        confidence=confidence,
        evidence=sorted(evidence, key=lambda e: e.weight, reverse=True),
    )

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from reclaim.models.enums import ProfileKind


@dataclass(slots=True, frozen=True)
class FileMetadata:
    """Aggregated sample of files sharing a parent directory and extension."""

    path: str
    size_bytes: int
    file_count: int
    depth: int
    extension: str


@dataclass(slots=True, frozen=True)
class ProfileEvidence:
    reason: str
    weight: float


@dataclass(slots=True)
class UserProfile:
    kinds: list[ProfileKind]
    confidence: float
    evidence: list[ProfileEvidence] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kinds": [kind.value for kind in self.kinds],
            "confidence": self.confidence,
            "evidence": [{"reason": e.reason, "weight": e.weight} for e in self.evidence],
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> UserProfile:
        return cls(
            kinds=[ProfileKind(str(k)) for k in payload["kinds"]],
            confidence=float(payload["confidence"]),
            evidence=[ProfileEvidence(str(e["reason"]), float(e["weight"])) for e in payload.get("evidence", [])],
        )


@dataclass(slots=True, frozen=True)
class Recommendation:
    id: str
    title: str
    detail: str
    path: str | None
    impact_score: float
    confidence_score: float
    risk_score: float
    reversible: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "detail": self.detail,
            "path": self.path,
            "impactScore": self.impact_score,
            "confidenceScore": self.confidence_score,
            "riskScore": self.risk_score,
            "reversible": self.reversible,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> Recommendation:
        path = payload.get("path")
        return cls(
            id=str(payload["id"]),
            title=str(payload["title"]),
            detail=str(payload["detail"]),
            path=str(path) if path is not None else None,
            impact_score=float(payload["impactScore"]),
            confidence_score=float(payload["confidenceScore"]),
            risk_score=float(payload["riskScore"]),
            reversible=bool(payload.get("reversible", True)),
        )

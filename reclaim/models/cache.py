from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Generic, TypeVar

from reclaim.models.profile import Recommendation, UserProfile

T = TypeVar("T")


@dataclass(slots=True, frozen=True)
class CacheEntry(Generic[T]):
    key: str
    created_at: datetime
    payload: T

    def is_fresh(self, max_age: timedelta, now: datetime) -> bool:
        return now - self.created_at <= max_age


@dataclass(slots=True, frozen=True)
class RecommendationsPayload:
    profile: UserProfile
    recommendations: list[Recommendation]

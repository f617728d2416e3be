from __future__ import annotations

from enum import Enum


class NodeKind(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"


class GroupKind(str, Enum):
    APP_BUNDLE = "app_bundle"
    USER_DATA = "user_data"
    CACHE = "cache"
    PREFERENCES = "preferences"
    SYSTEM_INTEGRATION = "system_integration"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


class SafetyLevel(str, Enum):
    SAFE = "safe"
    REVIEW = "review"
    RISKY = "risky"


class CleanupMode(str, Enum):
    REMOVE_EVERYTHING = "remove_everything"
    KEEP_USER_DATA = "keep_user_data"


class ProfileKind(str, Enum):
    IOS_DEVELOPER = "ios_developer"
    WEB_DEVELOPER = "web_developer"
    ML_ENGINEER = "ml_engineer"
    DESIGNER = "designer"
    VIDEO_CREATOR = "video_creator"
    DATA_SCIENTIST = "data_scientist"
    GENERAL_USER = "general_user"


class CacheSource(str, Enum):
    LIVE = "live"
    CACHED = "cached"


class ScanScope(str, Enum):
    HOME = "home"
    APPLICATIONS = "applications"
    FULL_DISK = "full_disk"


_SAFETY_BY_KIND: dict[GroupKind, SafetyLevel] = {
    GroupKind.CACHE: SafetyLevel.SAFE,
    GroupKind.PREFERENCES: SafetyLevel.REVIEW,
    GroupKind.APP_BUNDLE: SafetyLevel.REVIEW,
    GroupKind.USER_DATA: SafetyLevel.REVIEW,
    GroupKind.SYSTEM_INTEGRATION: SafetyLevel.RISKY,
}


def safety_for(kind: GroupKind) -> SafetyLevel:
    return _SAFETY_BY_KIND[kind]

from __future__ import annotations

from reclaim.config.schema import AppConfig, UnitRule

DEFAULT_SCAN_ROOTS: tuple[str, ...] = (
    "/Applications",
    "~/Applications",
    "/opt/homebrew/Caskroom",
)

# Directory extensions treated as opaque packages: sized as a whole when they
# are the target, never descended into when found below a target.
DEFAULT_PACKAGE_EXTENSIONS: tuple[str, ...] = (
    "app",
    "bundle",
    "framework",
    "plugin",
    "prefpane",
    "kext",
    "photoslibrary",
    "xcarchive",
)

# Order matters: the first marker contained in a folder name wins.
DEFAULT_UNIT_RULES: tuple[tuple[str, str], ...] = (
    ("checkpoints", "Training checkpoints can grow quickly."),
    ("node_modules", "Dependency folder is often reproducible."),
    (".next", "Build cache for Next.js projects."),
    (".build", "Build output cache folder."),
    ("deriveddata", "Xcode derived data can be safely regenerated."),
    ("dist", "Build artifacts folder."),
)


def default_config() -> AppConfig:
    return AppConfig(
        scan_roots=list(DEFAULT_SCAN_ROOTS),
        package_extensions=list(DEFAULT_PACKAGE_EXTENSIONS),
        unit_rules=[UnitRule(marker=marker, reason=reason) for marker, reason in DEFAULT_UNIT_RULES],
    )

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping

from result import Err, Ok, Result

from reclaim.config.defaults import default_config
from reclaim.config.schema import AppConfig
from reclaim.services.fs import DEFAULT_FS, FileSystem

logger = logging.getLogger(__name__)

CONFIG_PATH = "~/.config/reclaim/config.json"
CONFIG_ENV = "RECLAIM_CONFIG"

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


def config_path(environ: Mapping[str, str] | None = None) -> str:
    """Config location: ``$RECLAIM_CONFIG`` when set, else the XDG-style default."""
    env = os.environ if environ is None else environ
    return env.get(CONFIG_ENV) or CONFIG_PATH


def load_config(
    path: str | None = None,
    fs: FileSystem = DEFAULT_FS,
    environ: Mapping[str, str] | None = None,
) -> Result[AppConfig, str]:
    resolved = fs.expanduser(path or config_path(environ))
    if not fs.exists(resolved):
        logger.debug("No config at %s, using defaults", resolved)
        return Ok(default_config())

    try:
        payload = json.loads(fs.read_text(resolved))
    except (OSError, ValueError) as exc:
        return Err(f"Failed reading config at {resolved}: {exc}.")
    if not isinstance(payload, dict):
        return Err(f"Config at {resolved} must be a JSON object.")

    try:
        config = AppConfig.from_dict(payload, default_config())
    except (KeyError, TypeError, ValueError) as exc:
        return Err(f"Invalid value in config at {resolved}: {exc}.")
    if config.log_level not in _LOG_LEVELS:
        return Err(f"Unknown logLevel {config.log_level!r} in config at {resolved}.")
    return Ok(config)


def sample_config_json() -> str:
    return json.dumps(default_config().to_dict(), indent=2)


def write_sample_config(path: str | None = None, fs: FileSystem = DEFAULT_FS) -> Result[str, str]:
    """Write the default config to *path* unless a file already exists there.

    Returns the written path.
    """
    resolved = fs.expanduser(path or CONFIG_PATH)
    if fs.exists(resolved):
        return Err(f"Config already exists at {resolved}.")
    try:
        fs.write_text_atomic(resolved, sample_config_json() + "\n")
    except OSError as exc:
        return Err(f"Cannot write config at {resolved}: {exc}.")
    return Ok(resolved)

"""YAML configuration: loading, validation, singleton access and hot reload.

The config file is read with PyYAML and validated by the Pydantic models in
config_schema. Long-running hosts (bot, mini-app) keep one AppConfig in a
lock-guarded singleton and call reload_config_if_changed() between batches
of messages; an edit that fails to load or validate is logged and the
previous config stays in effect.

Usage:
    from taskcapture.config import get_config, reload_config_if_changed

    config = get_config()
    if reload_config_if_changed():
        config = get_config()
"""

import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from taskcapture.config_schema import CURRENT_SCHEMA_VERSION, AppConfig
from taskcapture.core.errors import ConfigLoadError, ConfigValidationError
from taskcapture.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path("config/config.yaml")
CONFIG_PATH_ENV = "TASKCAPTURE_CONFIG_PATH"
EXAMPLE_CONFIG_PATH = Path("config/config.yaml.example")


@dataclass
class _LoadedConfig:
    config: AppConfig
    path: Path
    mtime: float


_lock = threading.Lock()
_loaded: _LoadedConfig | None = None


def _get_config_path() -> Path:
    """Config path from TASKCAPTURE_CONFIG_PATH, else config/config.yaml."""
    return Path(os.environ.get(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH)


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def _describe_error(err: Any) -> str:
    location = ".".join(str(part) for part in err["loc"]) or "(root)"
    if err["type"] == "missing":
        return f"  - {location}: required field is missing"
    if err["type"] == "extra_forbidden":
        return f"  - {location}: unknown field"
    return f"  - {location}: {err['msg']} (got {err.get('input')!r})"


def _read_mapping(path: Path) -> dict[str, Any]:
    """Read a YAML file that must contain a mapping (or nothing).

    Raises:
        ConfigLoadError: Missing file, YAML syntax error or a non-mapping
    """
    if not path.is_file():
        raise ConfigLoadError(
            f"Configuration file not found: {path}\n"
            f"Copy {EXAMPLE_CONFIG_PATH} to {path} and adjust it"
        )

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigLoadError(f"Failed to parse YAML in {path}:\n{e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigLoadError(
            f"Configuration in {path} must be a YAML mapping, not {type(data).__name__}"
        )
    return data


def _build_config(data: dict[str, Any], path: Path) -> AppConfig:
    """Validate parsed YAML into an AppConfig.

    Raises:
        ConfigValidationError: Schema violations (one line per field) or a
            schema_version newer than this release understands
    """
    try:
        config = AppConfig.model_validate(data)
    except ValidationError as e:
        details = "\n".join(_describe_error(err) for err in e.errors())
        raise ConfigValidationError(f"Invalid configuration in {path}:\n{details}") from e

    if config.schema_version > CURRENT_SCHEMA_VERSION:
        raise ConfigValidationError(
            f"{path} uses schema version {config.schema_version}, newer than supported "
            f"version {CURRENT_SCHEMA_VERSION}; upgrade taskcapture to use it"
        )
    return config


def load_config(path: Path | None = None) -> AppConfig:
    """Read and validate a config file, bypassing the singleton.

    Args:
        path: Config file (defaults to TASKCAPTURE_CONFIG_PATH or
            config/config.yaml)

    Returns:
        Validated AppConfig

    Raises:
        ConfigLoadError: If the file cannot be read or parsed
        ConfigValidationError: If the content fails validation
    """
    config_path = path or _get_config_path()
    config = _build_config(_read_mapping(config_path), config_path)

    logger.info(
        "config_loaded",
        path=str(config_path),
        schema_version=config.schema_version,
        custom_folders=len(config.folders),
        split_mode=config.splitter.mode,
    )
    return config


# ---------------------------------------------------------------------------
# Singleton and hot reload
# ---------------------------------------------------------------------------


def get_config() -> AppConfig:
    """Return the process-wide config, loading it on first use.

    Raises:
        ConfigLoadError: If the first load cannot read the file
        ConfigValidationError: If the first load fails validation
    """
    global _loaded

    with _lock:
        if _loaded is None:
            path = _get_config_path()
            config = load_config(path)
            _loaded = _LoadedConfig(config=config, path=path, mtime=path.stat().st_mtime)
        return _loaded.config


def reload_config_if_changed() -> bool:
    """Reload the singleton when its file's mtime has moved forward.

    Returns:
        True when a new config was loaded. False when nothing was loaded
        yet, the file is unchanged or unreadable, or the new content is
        invalid; in the last case the previous config is kept and the
        change is not retried until the file is modified again.
    """
    global _loaded

    with _lock:
        if _loaded is None:
            return False

        try:
            mtime = _loaded.path.stat().st_mtime
        except OSError as e:
            logger.warning("config_stat_failed", path=str(_loaded.path), error=str(e))
            return False

        if mtime <= _loaded.mtime:
            return False

        try:
            config = load_config(_loaded.path)
        except (ConfigLoadError, ConfigValidationError) as e:
            logger.warning("config_reload_rejected", path=str(_loaded.path), error=str(e))
            _loaded.mtime = mtime
            return False

        _loaded = _LoadedConfig(config=config, path=_loaded.path, mtime=mtime)
        logger.info("config_reloaded", path=str(_loaded.path))
        return True


def validate_config_file(path: Path | None = None) -> tuple[bool, str]:
    """Check a config file without touching the singleton.

    Returns:
        (is_valid, message): a short summary when valid, otherwise the
        load or validation error
    """
    try:
        config = load_config(path or _get_config_path())
    except ConfigLoadError as e:
        return (False, f"Load error: {e}")
    except ConfigValidationError as e:
        return (False, f"Validation error: {e}")

    providers = ", ".join(config.splitter.providers) or "none"
    summary = [
        f"Configuration valid (schema version {config.schema_version})",
        f"  - timezone {config.timezone}",
        f"  - {len(config.folders)} custom folders",
        f"  - splitter mode '{config.splitter.mode}' (providers: {providers})",
    ]
    return (True, "\n".join(summary))


def reset_config() -> None:
    """Forget the loaded config (tests use this between cases)."""
    global _loaded
    with _lock:
        _loaded = None

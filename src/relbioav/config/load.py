"""Configuration loading: TOML file discovery and RELBIOAV_* environment overrides."""

from __future__ import annotations
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import structlog
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..contracts.errors import ConfigError
from .model import AppConfig

logger = structlog.get_logger()

ENV_PREFIX = "RELBIOAV_"
CONFIG_ENV = f"{ENV_PREFIX}CONFIG"
LOCAL_CONFIG = Path("relbioav.toml")
USER_CONFIG = Path("~/.relbioav/config.toml")


def default_config() -> AppConfig:
    """Create default configuration."""
    return AppConfig()


def load_config(path: Optional[Union[str, Path]] = None) -> AppConfig:
    """Load configuration from a TOML file, then apply environment overrides.

    Args:
        path: Path to configuration file. If None, the first of these is used:
              - the file named by RELBIOAV_CONFIG
              - relbioav.toml in the current directory
              - ~/.relbioav/config.toml
              and built-in defaults when none exists.

    Returns:
        Loaded and validated configuration

    Raises:
        ConfigError: If the file is missing or invalid, or an override does
            not validate.
    """
    path = Path(path) if path is not None else _find_config_file()

    if path is None:
        config = default_config()
    elif not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")
    else:
        try:
            config = AppConfig.from_toml_file(path)
        except Exception as e:
            raise ConfigError(f"Failed to load config from {path}: {e}") from e

    return apply_env_overrides(config, os.environ)


def _find_config_file() -> Optional[Path]:
    named = os.environ.get(CONFIG_ENV)
    if named:
        return Path(named)
    for candidate in (LOCAL_CONFIG, USER_CONFIG.expanduser()):
        if candidate.exists():
            return candidate
    return None


def apply_env_overrides(config: AppConfig, environ: Mapping[str, str]) -> AppConfig:
    """Return ``config`` with RELBIOAV_<SECTION>_<FIELD> variables applied.

    List fields take comma-separated values (``RELBIOAV_SIMULATION_DROP_SUBJECTS=3,4``),
    mapping fields ``key=value`` pairs (``RELBIOAV_SIMULATION_ALLOCATION=R=1,T=2``).
    Scalars are passed as text and coerced by the config models.

    Raises:
        ConfigError: If an override cannot be parsed or fails validation.
    """
    data = config.model_dump()
    applied: Dict[str, Any] = {}

    for key, raw in environ.items():
        if not key.startswith(ENV_PREFIX) or key == CONFIG_ENV:
            continue
        target = _override_target(config, key[len(ENV_PREFIX):].lower())
        if target is None:
            logger.warning("Ignoring unknown configuration override", variable=key)
            continue
        section, field = target
        data[section][field] = _parse_override(key, raw, getattr(getattr(config, section), field))
        applied[key] = raw

    if not applied:
        return config

    try:
        overridden = AppConfig.model_validate(data)
    except PydanticValidationError as e:
        raise ConfigError(
            f"Invalid environment override: {e}",
            {"overrides": sorted(applied)},
        ) from e
    logger.info("Applied environment overrides", overrides=sorted(applied))
    return overridden


def _override_target(config: AppConfig, name: str):
    section, _, field = name.partition("_")
    model = getattr(config, section, None)
    if not isinstance(model, BaseModel) or field not in type(model).model_fields:
        return None
    return section, field


def _parse_override(key: str, raw: str, current: Any) -> Any:
    if isinstance(current, (list, tuple)):
        if any(isinstance(item, BaseModel) for item in current):
            raise ConfigError(f"{key} cannot be set from the environment; use a config file")
        return [item.strip() for item in raw.split(",") if item.strip()]
    if isinstance(current, dict):
        pairs = {}
        for item in filter(None, (p.strip() for p in raw.split(","))):
            name, sep, value = item.partition("=")
            if not sep:
                raise ConfigError(f"{key} expects key=value pairs, got {item!r}")
            pairs[name.strip()] = value.strip()
        return pairs
    return raw.strip()

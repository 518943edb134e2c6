"""
Configuration -- an explicit value handed to the engine, never a global.

Stored as ``config.yaml`` in the ghm home directory. The caller loads
it, passes it to :class:`ghm.engine.SyncEngine`, and saves it back when
something changes (e.g. a token entered at a prompt).
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, ValidationError

from .errors import ConfigError

logger = logging.getLogger("ghm.config")

CONFIG_FILE = "config.yaml"
TOKEN_ENV_VAR = "GITHUB_TOKEN"


class GHMConfig(BaseModel):
    """Settings shared by every pipeline."""

    github_token: Optional[str] = None
    api_url: str = "https://api.github.com"
    git_base_url: str = "https://github.com"
    timeout: float = 30.0
    git_timeout: float = 120.0


def config_path(home: Path) -> Path:
    return Path(home).expanduser() / CONFIG_FILE


def load_config(home: Path, use_env: bool = True) -> GHMConfig:
    """Load configuration from ``<home>/config.yaml``.

    A missing file yields defaults. ``GITHUB_TOKEN`` in the environment
    overrides the stored token unless ``use_env`` is False.

    Raises:
        ConfigError: If the file exists but cannot be parsed.
    """
    path = config_path(home)
    data: dict = {}
    if path.exists():
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except (yaml.YAMLError, OSError) as exc:
            raise ConfigError(f"Failed to read config at {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"Config at {path} must be a mapping")

    try:
        config = GHMConfig(**data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc

    env_token = os.environ.get(TOKEN_ENV_VAR) if use_env else None
    if env_token:
        logger.debug("Using GitHub token from %s", TOKEN_ENV_VAR)
        config.github_token = env_token
    return config


def save_config(config: GHMConfig, home: Path) -> Path:
    """Write ``config`` to ``<home>/config.yaml``."""
    path = config_path(home)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            yaml.dump(config.model_dump(mode="json"), default_flow_style=False),
            encoding="utf-8",
        )
    except OSError as exc:
        raise ConfigError(f"Failed to write config at {path}: {exc}") from exc
    logger.info("Configuration saved to %s", path)
    return path


def store_config(home: Path, key: str, value: str) -> GHMConfig:
    """Set one configuration key and persist it.

    Raises:
        ConfigError: If ``key`` is unknown or ``value`` is invalid for it.
    """
    if key not in GHMConfig.model_fields:
        raise ConfigError(
            f"Unknown configuration key '{key}'. "
            f"Known keys: {', '.join(GHMConfig.model_fields)}"
        )

    config = load_config(home, use_env=False)
    data = config.model_dump()
    data[key] = value
    try:
        config = GHMConfig(**data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid value for '{key}': {exc}") from exc

    save_config(config, home)
    logger.info("Configuration '%s' saved", key)
    return config

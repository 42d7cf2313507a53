"""
Settings loader — reads the optional settings YAML into a Settings model.

Resolution order (later wins):
    built-in defaults  <  YAML file  <  SLEMP_* environment variables

The YAML path comes from the ``--settings`` CLI option, then the
``SLEMP_SETTINGS`` env var, then ``/etc/slemp/settings.yml`` if it
exists. A missing default file is fine; a missing explicit file is not.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from slemp.core.config.settings import Settings

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_FILE = Path("/etc/slemp/settings.yml")
ENV_PREFIX = "SLEMP_"


class ConfigError(Exception):
    """Raised when the settings file is invalid or missing."""


def _env_overrides(environ: dict[str, str]) -> dict[str, Any]:
    """Collect ``SLEMP_<FIELD>`` overrides for known Settings fields."""
    overrides: dict[str, Any] = {}
    for name, info in Settings.model_fields.items():
        raw = environ.get(f"{ENV_PREFIX}{name.upper()}")
        if raw is None:
            continue
        if info.annotation == list[str]:
            overrides[name] = [part.strip() for part in raw.split(",") if part.strip()]
        else:
            overrides[name] = raw
    return overrides


def load_settings(
    path: Path | None = None,
    environ: dict[str, str] | None = None,
) -> Settings:
    """Load and validate host settings.

    Args:
        path: Explicit YAML path. If None, uses SLEMP_SETTINGS or the
            default file when present.
        environ: Environment mapping (default: ``os.environ``).

    Returns:
        Validated Settings model.

    Raises:
        ConfigError: If an explicit file is missing, or any layer is invalid.
    """
    env = dict(os.environ if environ is None else environ)
    explicit = path is not None or f"{ENV_PREFIX}SETTINGS" in env

    if path is None and env.get(f"{ENV_PREFIX}SETTINGS"):
        path = Path(env[f"{ENV_PREFIX}SETTINGS"])
    if path is None:
        path = DEFAULT_SETTINGS_FILE

    data: dict[str, Any] = {}
    if path.is_file():
        logger.debug("Loading settings from %s", path)
        try:
            raw = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e
        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise ConfigError(f"Expected a mapping in {path}, got {type(raw).__name__}")
        data.update(raw)
    elif explicit:
        raise ConfigError(f"Settings file not found: {path}")

    data.update(_env_overrides(env))

    try:
        settings = Settings.model_validate(data)
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigError(f"Invalid settings: {errors}") from e

    logger.debug("Settings resolved: root=%s lock=%s", settings.project_root, settings.lock_file)
    return settings

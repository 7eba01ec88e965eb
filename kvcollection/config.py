"""Process-wide settings and logging setup for kvcollection."""

import logging
import os
from typing import Any, Mapping, Optional

from .models import CollectionSettings

logger = logging.getLogger(__name__)

ENV_PREFIX = "KVCOLLECTION_"

_settings = CollectionSettings()


def get_settings() -> CollectionSettings:
    """Current settings."""
    return _settings


def configure(**overrides: Any) -> CollectionSettings:
    """Replace settings with a validated copy carrying ``overrides``."""
    global _settings
    _settings = CollectionSettings(**{**_settings.model_dump(), **overrides})
    logger.debug(f"Settings updated: {overrides}")
    return _settings


def reset_settings() -> CollectionSettings:
    """Restore default settings"""
    global _settings
    _settings = CollectionSettings()
    return _settings


def settings_from_env(environ: Optional[Mapping[str, str]] = None) -> CollectionSettings:
    """Build settings from ``KVCOLLECTION_*`` environment variables.

    Unset or empty variables keep their defaults.
    """
    environ = os.environ if environ is None else environ
    values = {}
    for name in CollectionSettings.model_fields:
        raw = environ.get(f"{ENV_PREFIX}{name.upper()}")
        if raw is None or not raw.strip():
            continue
        values[name] = raw.strip()
    return CollectionSettings(**values)


def configure_logging(level: Optional[str] = None) -> None:
    """Set up basic logging for applications and demos.

    The library itself never calls this at import time.
    """
    level = (level or _settings.log_level).upper()
    logging.basicConfig(level=level, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    logging.getLogger("kvcollection").setLevel(level)

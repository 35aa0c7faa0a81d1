"""Settings loading (YAML file, .env, environment)."""
from __future__ import annotations

from .settings import FusionSettings, load_settings

__all__ = ["FusionSettings", "load_settings"]

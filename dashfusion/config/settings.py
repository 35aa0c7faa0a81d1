"""Runtime settings for the dashfusion CLI.

Sources, lowest to highest precedence:
  1. FusionSettings defaults
  2. YAML file (``--config`` or DASHFUSION_CONFIG)
  3. ``.env`` in the working directory (python-dotenv, never overrides the
     real environment)
  4. Environment variables
  5. CLI flags (applied by the CLI on top of the returned object)

Environment variables:
  DASHFUSION_CONFIG             path to a YAML settings file
  DASHFUSION_LOG_LEVEL          DEBUG|INFO|WARNING|ERROR|CRITICAL
  DASHFUSION_JSON_LOGS=1        JSON console logs
  DASHFUSION_LOG_FILE           also log to this file (full format)
  DASHFUSION_INDENT             JSON output indent (0 = compact)
  DASHFUSION_PLACE_NEW_AT_TOP=1 new groups/panels go above existing ones
  DASHFUSION_METRICS_FILE       write Prometheus text metrics here after a run
"""
from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any

import yaml
from dotenv import find_dotenv, load_dotenv

from dashfusion.errors import ConfigError
from dashfusion.utils.env_flags import env_bool, env_int, env_str

logger = logging.getLogger(__name__)

ENV_PREFIX = "DASHFUSION_"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class FusionSettings:
    log_level: str = "INFO"
    json_logs: bool = False
    log_file: str | None = None
    indent: int = 2
    place_new_at_top: bool = False
    metrics_file: str | None = None

    def validate(self) -> FusionSettings:
        if self.log_level.upper() not in LOG_LEVELS:
            raise ConfigError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got {self.log_level!r}")
        self.log_level = self.log_level.upper()
        if self.indent < 0:
            raise ConfigError(f"indent must be >= 0, got {self.indent}")
        return self


_KINDS: dict[str, type] = {
    "log_level": str,
    "json_logs": bool,
    "log_file": str,
    "indent": int,
    "place_new_at_top": bool,
    "metrics_file": str,
}
_OPTIONAL = {"log_file", "metrics_file"}


def _check(key: str, value: Any, origin: str) -> Any:
    if key not in _KINDS:
        raise ConfigError(f"{origin}: unknown setting {key!r}")
    if value is None and key in _OPTIONAL:
        return None
    kind = _KINDS[key]
    # bool is an int subclass; reject it where an int is expected
    if kind is int and isinstance(value, bool):
        raise ConfigError(f"{origin}: {key} must be an integer, got {value!r}")
    if not isinstance(value, kind):
        raise ConfigError(f"{origin}: {key} must be {kind.__name__}, got {type(value).__name__}")
    return value


def load_yaml_settings(path: str | os.PathLike[str]) -> dict[str, Any]:
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Failed reading settings {os.fspath(path)}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {os.fspath(path)}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{os.fspath(path)}: settings must be a mapping")
    origin = os.fspath(path)
    return {str(k): _check(str(k), v, origin) for k, v in data.items()}


def _env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    try:
        for f in fields(FusionSettings):
            name = ENV_PREFIX + f.name.upper()
            kind = _KINDS[f.name]
            if kind is bool:
                value: Any = env_bool(name, environ)
            elif kind is int:
                value = env_int(name, environ)
            else:
                value = env_str(name, environ)
            if value is not None:
                out[f.name] = value
    except ValueError as e:
        raise ConfigError(str(e)) from e
    return out


def load_settings(
    path: str | os.PathLike[str] | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> FusionSettings:
    """Resolve settings from file and environment.

    When ``environ`` is None the process environment is used, after a
    ``.env`` file found from the working directory has been loaded into it.
    """
    if environ is None:
        dotenv_file = find_dotenv(usecwd=True)
        if dotenv_file:
            load_dotenv(dotenv_file, override=False)
            logger.debug("Loaded environment from %s", dotenv_file)
        environ = os.environ
    if path is None:
        path = env_str(ENV_PREFIX + "CONFIG", environ)

    values: dict[str, Any] = {}
    if path:
        values.update(load_yaml_settings(path))
    values.update(_env_overrides(environ))
    return FusionSettings(**values).validate()


__all__ = ["FusionSettings", "load_settings", "load_yaml_settings", "ENV_PREFIX"]

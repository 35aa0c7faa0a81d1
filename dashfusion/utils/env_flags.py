"""Environment flag helpers.

Interprets environment variables as boolean feature flags using the
canonical truthy set {"1","true","yes","on"} (case-insensitive), plus a
strict integer reader used by the settings loader. Every reader takes an
optional ``environ`` mapping so callers (and tests) can pass their own.

Usage examples:
    from dashfusion.utils.env_flags import is_truthy_env
    if is_truthy_env('DASHFUSION_JSON_LOGS'):
        ...
"""
from __future__ import annotations

import os
from collections.abc import Mapping

TRUTHY_SET: set[str] = {"1","true","yes","on"}
FALSY_SET: set[str] = {"0","false","no","off"}

def _get(name: str, environ: Mapping[str, str] | None) -> str | None:
    env = os.environ if environ is None else environ
    v = env.get(name)
    if v is None:
        return None
    v = v.strip()
    return v or None

def is_truthy(value: str | None) -> bool:
    if not value:
        return False
    return value.strip().lower() in TRUTHY_SET

def is_truthy_env(name: str, environ: Mapping[str, str] | None = None) -> bool:
    return is_truthy(_get(name, environ))

def env_bool(name: str, environ: Mapping[str, str] | None = None) -> bool | None:
    """Tri-state read: True/False for a recognised token, None when unset.

    Raises ValueError for a value outside both token sets so a typo is not
    silently read as False.
    """
    raw = _get(name, environ)
    if raw is None:
        return None
    val = raw.lower()
    if val in TRUTHY_SET:
        return True
    if val in FALSY_SET:
        return False
    raise ValueError(f"{name}={raw!r} is not a boolean flag")

def env_int(name: str, environ: Mapping[str, str] | None = None) -> int | None:
    raw = _get(name, environ)
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name}={raw!r} is not an integer") from e

def env_str(name: str, environ: Mapping[str, str] | None = None) -> str | None:
    return _get(name, environ)

__all__ = [
    'TRUTHY_SET',
    'FALSY_SET',
    'is_truthy',
    'is_truthy_env',
    'env_bool',
    'env_int',
    'env_str',
]

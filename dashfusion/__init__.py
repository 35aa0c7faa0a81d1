"""dashfusion: merge Grafana dashboard panels without losing layout work.

Public API:
    from dashfusion import merge_panels_by_group, merge_panels
"""
from __future__ import annotations

from .fusion import merge_panels, merge_panels_by_group, repack
from .version import __version__, get_version

__all__ = ["__version__", "get_version", "merge_panels", "merge_panels_by_group", "repack"]

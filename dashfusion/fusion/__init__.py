"""Panel merge core.

Stable import surface:
    from dashfusion.fusion import merge_panels_by_group, merge_panels, repack
"""
from __future__ import annotations

from .grouping import GroupingReport, group_by_row
from .layout import GRID_WIDTH, repack
from .merge import MergeReport, merge_panels, merge_panels_by_group
from .model import GridPos, Panel, identity_key, panels_equal

__all__ = [
    "GRID_WIDTH",
    "GridPos",
    "GroupingReport",
    "MergeReport",
    "Panel",
    "group_by_row",
    "identity_key",
    "merge_panels",
    "merge_panels_by_group",
    "panels_equal",
    "repack",
]

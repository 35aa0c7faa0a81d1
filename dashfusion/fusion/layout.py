"""Grid repacking.

Left-to-right, top-to-bottom shelf packing on a fixed-width grid. Panels
keep their order and size; only ``x``/``y`` change.
"""
from __future__ import annotations

import copy
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from dashfusion.fusion.model import GridPos, Panel

logger = logging.getLogger(__name__)

GRID_WIDTH = 24


def repack(panels: Iterable[Mapping[str, Any]], grid_width: int = GRID_WIDTH) -> list[Panel]:
    cursor_y = 0
    row_width = 0
    row_max_height = 0
    out: list[Panel] = []
    for panel in panels:
        pos = GridPos.from_panel(panel)
        if row_width + pos.w > grid_width:
            cursor_y += row_max_height
            row_width = 0
            row_max_height = 0
        placed = GridPos(h=pos.h, w=pos.w, x=row_width, y=cursor_y)
        new_panel = copy.deepcopy(dict(panel))
        new_panel["gridPos"] = placed.as_dict()
        out.append(new_panel)
        row_width += pos.w
        row_max_height = max(row_max_height, pos.h)
    logger.debug("Repacked %d panels into %d grid units of height", len(out), cursor_y + row_max_height)
    return out


__all__ = ["GRID_WIDTH", "repack"]

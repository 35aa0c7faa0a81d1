"""Split a flat panel list into row groups.

A row marker (``type == "row"``) opens a group named after its title;
panels before the first marker belong to the ``"none"`` group. Panels a
collapsed row carries in its own ``panels`` field are lifted into the
group, and the marker itself is re-emitted expanded and empty.
"""
from __future__ import annotations

import copy
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from dashfusion.fusion.model import ROW_TYPE, UNGROUPED, Panel, read_str, row_title
from dashfusion.metrics import FusionMetrics

logger = logging.getLogger(__name__)

DROP_MALFORMED_TYPE = "malformed_type"


@dataclass
class GroupingReport:
    dropped: int = 0
    dropped_titles: list[Any] = field(default_factory=list)


def _embedded_panels(row: Mapping[str, Any]) -> list[Panel]:
    nested = row.get("panels")
    if not isinstance(nested, list):
        return []
    # all-or-nothing, like decoding the field into a list of objects
    if not all(isinstance(p, Mapping) for p in nested):
        return []
    return [copy.deepcopy(dict(p)) for p in nested]


def group_by_row(
    panels: Iterable[Mapping[str, Any]],
    *,
    report: GroupingReport | None = None,
    metrics: FusionMetrics | None = None,
) -> tuple[dict[str, list[Panel]], dict[str, Panel]]:
    """Return ``(groups, rows)`` keyed by group name, in first-seen order.

    A panel whose ``type`` is absent or not a string is dropped from both
    mappings. The drop is logged and counted rather than raised so one bad
    panel does not abort the merge.
    """
    groups: dict[str, list[Panel]] = {}
    rows: dict[str, Panel] = {}
    current = UNGROUPED

    for panel in panels:
        ptype = read_str(panel, "type")
        if ptype is None:
            logger.warning(
                "Dropping panel with unreadable type (title=%r, type=%r)",
                panel.get("title"), panel.get("type"),
            )
            if report is not None:
                report.dropped += 1
                report.dropped_titles.append(panel.get("title"))
            if metrics is not None:
                metrics.panels_dropped.labels(reason=DROP_MALFORMED_TYPE).inc()
            continue

        if ptype == ROW_TYPE:
            current = row_title(panel)
            groups.setdefault(current, []).extend(_embedded_panels(panel))
            marker = copy.deepcopy(dict(panel))
            marker["panels"] = []
            marker["collapsed"] = False
            rows[current] = marker
        else:
            groups.setdefault(current, []).append(copy.deepcopy(dict(panel)))

    logger.debug("Grouped %d panel groups (%d rows)", len(groups), len(rows))
    return groups, rows


__all__ = ["GroupingReport", "group_by_row", "DROP_MALFORMED_TYPE"]

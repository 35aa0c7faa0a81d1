"""Panel merge: flat and row-group aware.

``merge_panels`` folds an incoming panel list into a base list. A panel
matches when its (title, type) identity equals a base panel's; the match
takes the incoming content but keeps the base ``id`` and ``gridPos`` so
manual layout work survives. Unmatched panels are appended below the base
panels with a default 6x2 rectangle.

``merge_panels_by_group`` runs that merge per row group, rebuilds the row
markers and repacks the whole grid.

Known, kept behaviours:
  * Every base slot that matches an incoming panel is overwritten, not only
    the first one, so duplicated base panels stay duplicated.
  * The y position for appended panels comes from a running counter that
    grows by the default height per append; it is not recomputed from the
    real stacking. The final repack fixes the coordinates anyway.
"""
from __future__ import annotations

import copy
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from dashfusion.fusion.grouping import GroupingReport, group_by_row
from dashfusion.fusion.layout import GRID_WIDTH, repack
from dashfusion.fusion.model import UNGROUPED, GridPos, Panel, is_row, panels_equal, row_title
from dashfusion.metrics import FusionMetrics

logger = logging.getLogger(__name__)

NEW_PANEL_WIDTH = 6
NEW_PANEL_HEIGHT = 2

# fields a matched base slot keeps over the incoming content
_PRESERVED_FIELDS = ("gridPos", "id")


@dataclass
class MergeReport(GroupingReport):
    """Counters filled in by one merge call (CLI --summary)."""

    matched: int = 0
    appended: int = 0
    new_groups: list[str] = field(default_factory=list)
    shared_groups: list[str] = field(default_factory=list)
    output_panels: int = 0


def _overwrite(slot: Mapping[str, Any], incoming: Mapping[str, Any]) -> Panel:
    replacement = copy.deepcopy(dict(incoming))
    for name in _PRESERVED_FIELDS:
        if name in slot:
            replacement[name] = copy.deepcopy(slot[name])
        else:
            replacement.pop(name, None)
    return replacement


def merge_panels(
    base: Iterable[Mapping[str, Any]],
    incoming: Iterable[Mapping[str, Any]],
    *,
    report: MergeReport | None = None,
    metrics: FusionMetrics | None = None,
) -> list[Panel]:
    """Merge ``incoming`` into ``base`` and return a new list.

    Raises MalformedPanelError when a base panel's gridPos cannot be decoded.
    """
    result: list[Panel] = [copy.deepcopy(dict(p)) for p in base]
    max_bottom = 0
    for panel in result:
        max_bottom = max(max_bottom, GridPos.from_panel(panel).bottom)

    for q in incoming:
        matched = False
        for i, slot in enumerate(result):
            if panels_equal(slot, q):
                result[i] = _overwrite(slot, q)
                matched = True

        if matched:
            logger.debug("Panel %r (%r) matched, content updated", q.get("title"), q.get("type"))
            outcome = "matched"
        else:
            new_panel = copy.deepcopy(dict(q))
            new_panel["gridPos"] = GridPos(
                h=NEW_PANEL_HEIGHT, w=NEW_PANEL_WIDTH, x=0, y=max_bottom + 1,
            ).as_dict()
            result.append(new_panel)
            max_bottom += NEW_PANEL_HEIGHT
            logger.debug("Panel %r (%r) unmatched, appended", q.get("title"), q.get("type"))
            outcome = "appended"

        if report is not None:
            if matched:
                report.matched += 1
            else:
                report.appended += 1
        if metrics is not None:
            metrics.panels_merged.labels(outcome=outcome).inc()

    return result


def merge_panels_by_group(
    ps1: Iterable[Mapping[str, Any]],
    ps2: Iterable[Mapping[str, Any]],
    place_new_at_top: bool = False,
    *,
    grid_width: int = GRID_WIDTH,
    report: MergeReport | None = None,
    metrics: FusionMetrics | None = None,
) -> list[Panel]:
    """Merge two full panel lists group by group, then repack the grid.

    Output order: ungrouped panels first, then the groups only ``ps2`` has
    (its row order) and the groups of ``ps1`` (its row order), with the new
    groups before or after the existing ones depending on
    ``place_new_at_top``.
    """
    ps1 = list(ps1)
    ps2 = list(ps2)
    g1, r1 = group_by_row(ps1, report=report, metrics=metrics)
    g2, r2 = group_by_row(ps2, report=report, metrics=metrics)

    merged: dict[str, list[Panel]] = {}
    for name, base in g1.items():
        if name in g2:
            merged[name] = merge_panels(base, g2[name], report=report, metrics=metrics)
            kind = "shared"
            if report is not None:
                report.shared_groups.append(name)
        else:
            merged[name] = base
            kind = "base_only"
        if metrics is not None:
            metrics.groups_merged.labels(kind=kind).inc()
    for name, incoming in g2.items():
        if name not in merged:
            merged[name] = incoming
            if metrics is not None:
                metrics.groups_merged.labels(kind="incoming_only").inc()

    new_names = [name for name in r2 if name not in r1]
    if report is not None:
        report.new_groups.extend(new_names)

    # ungrouped content is emitted once, at the top
    emitted: set[str] = {UNGROUPED}

    new_block: list[Panel] = []
    for name in new_names:
        new_block.append(r2[name])
        if name not in emitted:
            new_block.extend(merged.get(name, []))
            emitted.add(name)

    existing_block: list[Panel] = []
    headers_seen: set[str] = set()
    for panel in ps1:
        if not is_row(panel):
            continue
        title = row_title(panel)
        if title not in headers_seen:
            if title in r1:
                header = r1[title]
            elif title in r2:
                header = r2[title]
            else:
                header = dict(panel)
            existing_block.append(header)
            headers_seen.add(title)
        if title not in emitted:
            existing_block.extend(merged.get(title, []))
            emitted.add(title)

    assembled = list(merged.get(UNGROUPED, []))
    if place_new_at_top:
        assembled.extend(new_block)
        assembled.extend(existing_block)
    else:
        assembled.extend(existing_block)
        assembled.extend(new_block)

    result = repack(assembled, grid_width=grid_width)
    if report is not None:
        report.output_panels = len(result)
    if metrics is not None:
        metrics.merge_runs.inc()
    logger.info(
        "Merged %d base + %d incoming panels into %d (%d new groups)",
        len(ps1), len(ps2), len(result), len(new_names),
    )
    return result


__all__ = [
    "MergeReport",
    "NEW_PANEL_HEIGHT",
    "NEW_PANEL_WIDTH",
    "merge_panels",
    "merge_panels_by_group",
]

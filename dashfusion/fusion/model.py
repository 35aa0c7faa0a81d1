"""Panel helpers shared by the merge core.

A panel is kept as the plain ``dict`` decoded from the dashboard JSON so
unknown fields travel through untouched. This module only knows the fields
the merge consumes: ``title``/``type`` (identity), ``gridPos`` (layout),
``panels``/``collapsed`` (row markers).
"""
from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from dashfusion.errors import LayoutEncodeError, MalformedPanelError

Panel = dict[str, Any]

ROW_TYPE = "row"
UNGROUPED = "none"

_ABSENT = object()


def _encoded(panel: Mapping[str, Any], field: str) -> str | None:
    value = panel.get(field, _ABSENT)
    if value is _ABSENT:
        return None
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def identity_key(panel: Mapping[str, Any]) -> tuple[str | None, str | None]:
    """(title, type) as compact JSON text; None marks an absent field.

    Values are compared as encoded, not structurally: ``1`` vs ``1.0`` or
    objects with a different key order do not match.
    """
    return _encoded(panel, "title"), _encoded(panel, "type")


def panels_equal(a: Mapping[str, Any], b: Mapping[str, Any]) -> bool:
    return identity_key(a) == identity_key(b)


def read_str(panel: Mapping[str, Any], field: str) -> str | None:
    """Read ``field`` as a string.

    Absent or non-string values give None. JSON null reads as the empty
    string, the same way a null decodes into a string zero value.
    """
    value = panel.get(field, _ABSENT)
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return None


def is_row(panel: Mapping[str, Any]) -> bool:
    return read_str(panel, "type") == ROW_TYPE


def row_title(panel: Mapping[str, Any]) -> str:
    title = read_str(panel, "title")
    return UNGROUPED if title is None else title


def _coord(raw: Mapping[str, Any], key: str) -> int:
    value = raw.get(key, 0)
    if value is None:
        return 0
    # bool is an int subclass but never a valid coordinate
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedPanelError(f"gridPos.{key} must be an integer, got {value!r}")
    if value < 0:
        raise MalformedPanelError(f"gridPos.{key} must not be negative, got {value}")
    return value


@dataclass(frozen=True)
class GridPos:
    h: int = 0
    w: int = 0
    x: int = 0
    y: int = 0

    @classmethod
    def from_panel(cls, panel: Mapping[str, Any]) -> GridPos:
        """Decode ``panel['gridPos']``; a missing rectangle is all zeros."""
        raw = panel.get("gridPos")
        if raw is None:
            return cls()
        if not isinstance(raw, Mapping):
            raise MalformedPanelError(f"gridPos must be an object, got {type(raw).__name__}")
        return cls(h=_coord(raw, "h"), w=_coord(raw, "w"), x=_coord(raw, "x"), y=_coord(raw, "y"))

    @property
    def bottom(self) -> int:
        return self.y + self.h

    def as_dict(self) -> dict[str, int]:
        for key in ("h", "w", "x", "y"):
            value = getattr(self, key)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise LayoutEncodeError(f"cannot encode gridPos.{key}={value!r}")
        return {"h": self.h, "w": self.w, "x": self.x, "y": self.y}


__all__ = [
    "Panel",
    "ROW_TYPE",
    "UNGROUPED",
    "GridPos",
    "identity_key",
    "panels_equal",
    "read_str",
    "is_row",
    "row_title",
]

"""Pytest configuration & shared fixtures for dashfusion.

Responsibilities:
1. Ensure project root on sys.path.
2. Give each test a private prometheus registry.
3. Restore root logging handlers after CLI tests reconfigure logging.
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any

import pytest
from prometheus_client import CollectorRegistry

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from dashfusion.metrics import get_metrics  # noqa: E402


@pytest.fixture()
def registry() -> CollectorRegistry:
    return CollectorRegistry()


@pytest.fixture()
def metrics(registry):
    return get_metrics(registry)


@pytest.fixture(autouse=True)
def _restore_root_logging():
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for h in root.handlers[:]:
        if h not in handlers:
            root.removeHandler(h)
            h.close()
    for h in handlers:
        if h not in root.handlers:
            root.addHandler(h)
    root.setLevel(level)


def make_panel(title: Any, ptype: Any = "graph", *, w: int = 6, h: int = 4, x: int = 0, y: int = 0, **extra: Any) -> dict[str, Any]:
    panel: dict[str, Any] = {"title": title, "type": ptype, "gridPos": {"h": h, "w": w, "x": x, "y": y}}
    panel.update(extra)
    return panel


def make_row(title: Any, *, nested: list[dict[str, Any]] | None = None, collapsed: bool = False, **extra: Any) -> dict[str, Any]:
    row: dict[str, Any] = {"title": title, "type": "row", "collapsed": collapsed,
                           "gridPos": {"h": 1, "w": 24, "x": 0, "y": 0}, "panels": nested or []}
    row.update(extra)
    return row


@pytest.fixture()
def panel():
    return make_panel


@pytest.fixture()
def row():
    return make_row

"""Dashboard and panel-source documents.

Reads the base dashboard and the panel sources from disk (``-`` means
stdin), decodes them into plain panel dicts for the merge core, and writes
the merged result back inside the base dashboard.

A dashboard may be a bare dashboard object or a Grafana API envelope
(``{"dashboard": {...}, "folderUid": ...}``); the envelope is kept on
output. A panel source is either one panel object or an array of them.
"""
from __future__ import annotations

import json
import logging
import os
import stat
import sys
import tempfile
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dashfusion.errors import DocumentReadError, DocumentWriteError, MalformedDocumentError
from dashfusion.fusion.model import Panel

logger = logging.getLogger(__name__)

STDIO = "-"


@dataclass
class DashboardDocument:
    dashboard: dict[str, Any]
    wrapper: dict[str, Any] | None = None


def _read_json(location: str | os.PathLike[str]) -> Any:
    loc = os.fspath(location)
    try:
        if loc == STDIO:
            text = sys.stdin.read()
        else:
            text = Path(loc).read_text(encoding="utf-8")
    except OSError as e:
        raise DocumentReadError(f"Failed reading {loc}: {e}") from e
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedDocumentError(f"Invalid JSON in {loc}: {e}") from e


def load_dashboard(location: str | os.PathLike[str]) -> DashboardDocument:
    data = _read_json(location)
    if not isinstance(data, dict):
        raise MalformedDocumentError(f"{os.fspath(location)}: expected a dashboard object")
    inner = data.get("dashboard")
    if isinstance(inner, dict):
        return DashboardDocument(dashboard=inner, wrapper=data)
    return DashboardDocument(dashboard=data)


def _as_panels(value: Any, where: str) -> list[Panel]:
    if not isinstance(value, list):
        raise MalformedDocumentError(f"{where}: expected an array of panels")
    panels: list[Panel] = []
    for i, item in enumerate(value):
        if not isinstance(item, dict):
            raise MalformedDocumentError(f"{where}[{i}]: expected a panel object, got {type(item).__name__}")
        panels.append(item)
    return panels


def dashboard_panels(dashboard: Mapping[str, Any]) -> list[Panel]:
    """Decode the dashboard's ``panels`` field; missing means no panels."""
    if "panels" not in dashboard or dashboard["panels"] is None:
        return []
    return _as_panels(dashboard["panels"], "dashboard.panels")


def load_panel_source(location: str | os.PathLike[str]) -> list[Panel]:
    data = _read_json(location)
    if isinstance(data, dict):
        return [data]
    return _as_panels(data, os.fspath(location))


def load_panel_sources(locations: Iterable[str | os.PathLike[str]]) -> list[Panel]:
    """Concatenate every source, in argument order."""
    panels: list[Panel] = []
    for loc in locations:
        loaded = load_panel_source(loc)
        logger.debug("Loaded %d panels from %s", len(loaded), os.fspath(loc))
        panels.extend(loaded)
    return panels


def render_dashboard(document: DashboardDocument, panels: Sequence[Panel], *, indent: int | None = 2) -> str:
    dashboard = dict(document.dashboard)
    dashboard["panels"] = list(panels)
    if document.wrapper is not None:
        out: dict[str, Any] = dict(document.wrapper)
        out["dashboard"] = dashboard
    else:
        out = dashboard
    return json.dumps(out, indent=indent, ensure_ascii=False) + "\n"


def _target_mode(path: Path) -> int:
    """Mode of the file being replaced, else what a plain open() would create."""
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def write_dashboard(
    document: DashboardDocument,
    panels: Sequence[Panel],
    destination: str | os.PathLike[str] = STDIO,
    *,
    indent: int | None = 2,
) -> None:
    """Write the merged dashboard to ``destination`` (``-`` is stdout).

    File output goes through a sibling temp file and ``os.replace`` so a
    failed run never leaves a half-written dashboard behind.
    """
    text = render_dashboard(document, panels, indent=indent)
    dest = os.fspath(destination)
    if dest == STDIO:
        sys.stdout.write(text)
        sys.stdout.flush()
        return
    path = Path(dest)
    tmp: str | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(text)
        os.chmod(tmp, _target_mode(path))
        os.replace(tmp, path)
    except OSError as e:
        if tmp is not None and os.path.exists(tmp):
            os.unlink(tmp)
        raise DocumentWriteError(f"Failed writing {dest}: {e}") from e
    logger.info("Wrote %d panels to %s", len(panels), dest)


__all__ = [
    "STDIO",
    "DashboardDocument",
    "dashboard_panels",
    "load_dashboard",
    "load_panel_source",
    "load_panel_sources",
    "render_dashboard",
    "write_dashboard",
]

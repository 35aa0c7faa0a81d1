"""Command line entry point: merge panel sources into a base dashboard.

Usage:
  dashfusion --dashboard base.json --panels new_panels.json [more.json ...] \
      [--output merged.json] [--top] [--summary]

Exit codes:
  0 success
  2 invalid arguments (argparse)
  3 unreadable or malformed input (nothing written)
  4 internal layout failure (nothing written)
  5 invalid configuration
  6 output could not be written
"""
from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence

from dashfusion.config import FusionSettings, load_settings
from dashfusion.documents import (
    STDIO,
    dashboard_panels,
    load_dashboard,
    load_panel_sources,
    write_dashboard,
)
from dashfusion.errors import ConfigError, InputError, InternalError, OutputError
from dashfusion.fusion import MergeReport, merge_panels_by_group
from dashfusion.metrics import dump_metrics, get_metrics
from dashfusion.utils.logging_utils import setup_logging
from dashfusion.version import get_version

logger = logging.getLogger("dashfusion.cli")

EXIT_OK = 0
EXIT_INPUT = 3
EXIT_INTERNAL = 4
EXIT_CONFIG = 5
EXIT_OUTPUT = 6


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="dashfusion",
        description="Merge panels into a Grafana dashboard, keeping the existing layout",
    )
    ap.add_argument('-d', '--dashboard', required=True, help='Base dashboard JSON (- for stdin)')
    ap.add_argument('-p', '--panels', required=True, nargs='+', help='Panel source JSON files (one panel or an array)')
    ap.add_argument('-o', '--output', default=STDIO, help='Output path (default: stdout)')
    ap.add_argument('--top', action='store_true', default=None, help='Place new groups and panels above existing ones')
    ap.add_argument('--indent', type=int, help='JSON indent for the output (0 = compact)')
    ap.add_argument('--config', help='YAML settings file')
    ap.add_argument('--summary', action='store_true', help='Print a merge summary table to stderr')
    ap.add_argument('--metrics-file', help='Write Prometheus text metrics to this path after the run')
    ap.add_argument('--log-level', help='Logging level (default INFO)')
    ap.add_argument('--json-logs', action='store_true', default=None, help='Emit JSON log lines')
    ap.add_argument('--version', action='version', version=f'%(prog)s {get_version()}')
    return ap


def _apply_overrides(settings: FusionSettings, args: argparse.Namespace) -> FusionSettings:
    if args.top is not None:
        settings.place_new_at_top = args.top
    if args.indent is not None:
        settings.indent = args.indent
    if args.metrics_file:
        settings.metrics_file = args.metrics_file
    if args.log_level:
        settings.log_level = args.log_level
    if args.json_logs is not None:
        settings.json_logs = args.json_logs
    return settings.validate()


def render_summary(report: MergeReport) -> None:
    from rich import box
    from rich.console import Console
    from rich.table import Table

    tbl = Table(title="dashfusion merge", box=box.SIMPLE_HEAD)
    tbl.add_column("Metric", style="bold")
    tbl.add_column("Value", justify="right")
    tbl.add_row("Panels matched", str(report.matched))
    tbl.add_row("Panels appended", str(report.appended))
    dropped_style = "[yellow]" if report.dropped else ""
    tbl.add_row("Panels dropped (bad type)", f"{dropped_style}{report.dropped}")
    tbl.add_row("Shared groups", ", ".join(report.shared_groups) or "-")
    tbl.add_row("New groups", ", ".join(report.new_groups) or "-")
    tbl.add_row("Output panels", str(report.output_panels))
    Console(stderr=True).print(tbl)


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = _apply_overrides(load_settings(args.config), args)
    except ConfigError as e:
        print(f"dashfusion: error: {e}", file=sys.stderr)
        return EXIT_CONFIG
    setup_logging(settings.log_level, json_logs=settings.json_logs, log_file=settings.log_file)

    metrics = get_metrics()
    report = MergeReport()
    try:
        document = load_dashboard(args.dashboard)
        base = dashboard_panels(document.dashboard)
        incoming = load_panel_sources(args.panels)
        merged = merge_panels_by_group(
            base, incoming, settings.place_new_at_top, report=report, metrics=metrics,
        )
        write_dashboard(document, merged, args.output, indent=settings.indent or None)
    except InputError as e:
        logger.debug("Input error", exc_info=True)
        print(f"dashfusion: error: {e}", file=sys.stderr)
        return EXIT_INPUT
    except InternalError as e:
        logger.debug("Internal merge failure", exc_info=True)
        print(f"dashfusion: error: internal failure: {e}", file=sys.stderr)
        return EXIT_INTERNAL
    except OutputError as e:
        logger.debug("Output error", exc_info=True)
        print(f"dashfusion: error: {e}", file=sys.stderr)
        return EXIT_OUTPUT

    if report.dropped:
        logger.warning("%d panel(s) dropped because their type could not be read", report.dropped)
    if settings.metrics_file:
        try:
            dump_metrics(settings.metrics_file)
        except OSError as e:
            print(f"dashfusion: error: failed writing metrics {settings.metrics_file}: {e}", file=sys.stderr)
            return EXIT_OUTPUT
    if args.summary:
        render_summary(report)
    return EXIT_OK


if __name__ == '__main__':  # pragma: no cover
    raise SystemExit(main())

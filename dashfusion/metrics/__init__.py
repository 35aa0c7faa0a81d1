"""Prometheus counters for merge runs.

Registered lazily, once per CollectorRegistry. The CLI uses the global
REGISTRY and can dump it with ``--metrics-file``; tests pass a private
registry so counts do not leak between cases.

Metric families:
  dashfusion_merge_runs_total
  dashfusion_panels_merged_total{outcome=matched|appended}
  dashfusion_panels_dropped_total{reason}
  dashfusion_groups_merged_total{kind=shared|base_only|incoming_only}
"""
from __future__ import annotations

import logging
import threading
import weakref
from dataclasses import dataclass

from prometheus_client import REGISTRY, CollectorRegistry, Counter, write_to_textfile

logger = logging.getLogger(__name__)

_LOCK = threading.Lock()
_BY_REGISTRY: weakref.WeakKeyDictionary[CollectorRegistry, FusionMetrics] = weakref.WeakKeyDictionary()


@dataclass(frozen=True)
class FusionMetrics:
    merge_runs: Counter
    panels_merged: Counter
    panels_dropped: Counter
    groups_merged: Counter


def _build(registry: CollectorRegistry) -> FusionMetrics:
    return FusionMetrics(
        merge_runs=Counter(
            'dashfusion_merge_runs', 'Group-aware merges performed', registry=registry,
        ),
        panels_merged=Counter(
            'dashfusion_panels_merged', 'Incoming panels merged by outcome', ['outcome'], registry=registry,
        ),
        panels_dropped=Counter(
            'dashfusion_panels_dropped', 'Panels dropped while grouping by row', ['reason'], registry=registry,
        ),
        groups_merged=Counter(
            'dashfusion_groups_merged', 'Row groups emitted by merge kind', ['kind'], registry=registry,
        ),
    )


def get_metrics(registry: CollectorRegistry | None = None) -> FusionMetrics:
    """Return the FusionMetrics bound to ``registry`` (default: global REGISTRY)."""
    reg = registry if registry is not None else REGISTRY
    with _LOCK:
        metrics = _BY_REGISTRY.get(reg)
        if metrics is None:
            metrics = _build(reg)
            _BY_REGISTRY[reg] = metrics
            logger.debug("Registered dashfusion metrics on registry %r", reg)
        return metrics


def dump_metrics(path: str, registry: CollectorRegistry | None = None) -> None:
    """Write the Prometheus text exposition of ``registry`` to ``path``."""
    write_to_textfile(path, registry if registry is not None else REGISTRY)


__all__ = ["FusionMetrics", "get_metrics", "dump_metrics"]

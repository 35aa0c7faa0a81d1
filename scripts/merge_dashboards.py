#!/usr/bin/env python
"""
Script entrypoint for the dashboard panel merge.

Delegates all logic to dashfusion.cli so `python scripts/merge_dashboards.py`
and the installed `dashfusion` command behave the same.
"""
from __future__ import annotations

import sys
from collections.abc import Sequence
from pathlib import Path

# Support running from a checkout without installing the package.
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from dashfusion.cli import main as _main  # noqa: E402


def main(argv: Sequence[str] | None = None) -> int:
    return _main(sys.argv[1:] if argv is None else argv)


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    raise SystemExit(main(sys.argv[1:]))

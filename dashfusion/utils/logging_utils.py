"""Unified logging setup for dashfusion.

The merged dashboard is written to stdout by default, so every console
handler installed here writes to stderr.
"""
from __future__ import annotations

import json
import logging
import os
import sys

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
# Minimal console format (message only) used for cleaner terminal output.
MINIMAL_CONSOLE_FORMAT = '%(levelname)s %(message)s'


class JsonFormatter(logging.Formatter):
    """One JSON object per record (DASHFUSION_JSON_LOGS=1)."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            'ts': record.created,
            'level': record.levelname,
            'logger': record.name,
            'msg': record.getMessage(),
        }
        if record.exc_info:
            payload['exc_info'] = self.formatException(record.exc_info)
        return json.dumps(payload)


def setup_logging(
    level: str = 'INFO',
    *,
    json_logs: bool = False,
    log_file: str | None = None,
    fmt: str = MINIMAL_CONSOLE_FORMAT,
) -> logging.Logger:
    """Configure root logging.

    Console handler goes to stderr with the minimal format (or JSON when
    json_logs is set). File handler (if enabled) always uses the full
    DEFAULT_FORMAT for diagnostics. Calling this again replaces the
    handlers installed by the previous call.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(log_level)
    # Remove existing handlers to avoid duplication on re-init
    for h in root.handlers[:]:
        root.removeHandler(h)
        h.close()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(log_level)
    if json_logs:
        console.setFormatter(JsonFormatter())
    else:
        console.setFormatter(logging.Formatter(fmt))
    root.addHandler(console)

    if log_file:
        parent = os.path.dirname(log_file)
        if parent:
            os.makedirs(parent, exist_ok=True)
        fh = logging.FileHandler(log_file, encoding='utf-8')
        fh.setLevel(log_level)
        fh.setFormatter(logging.Formatter(DEFAULT_FORMAT))
        root.addHandler(fh)

    return root

__all__ = ["setup_logging", "JsonFormatter", "DEFAULT_FORMAT", "MINIMAL_CONSOLE_FORMAT"]

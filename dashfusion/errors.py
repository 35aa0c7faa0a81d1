"""dashfusion exception hierarchy.

Small, explicit tree so callers can tell malformed input apart from an
internal layout failure:

    FusionError
     +-- ConfigError
     +-- InputError
     |    +-- DocumentReadError
     |    +-- MalformedDocumentError
     |    +-- MalformedPanelError
     +-- OutputError
     |    +-- DocumentWriteError
     +-- InternalError
          +-- LayoutEncodeError
"""
from __future__ import annotations


class FusionError(Exception):
    """Base class for all dashfusion exceptions."""


class ConfigError(FusionError):
    """Configuration issues (unknown keys, wrong types, unreadable file)."""


class InputError(FusionError):
    """Input could not be turned into dashboards/panels. Aborts the merge."""


class DocumentReadError(InputError):
    """A dashboard or panel source could not be read from its location."""


class MalformedDocumentError(InputError):
    """A document decoded but does not have the expected shape."""


class MalformedPanelError(InputError):
    """A panel field consumed by the merge (gridPos) cannot be decoded."""


class OutputError(FusionError):
    """The merged dashboard could not be delivered."""


class DocumentWriteError(OutputError):
    """Writing the merged dashboard to its destination failed."""


class InternalError(FusionError):
    """Invariant violated inside the merge core."""


class LayoutEncodeError(InternalError):
    """A computed grid rectangle cannot be written back into a panel."""


__all__ = [
    "FusionError",
    "ConfigError",
    "InputError",
    "DocumentReadError",
    "MalformedDocumentError",
    "MalformedPanelError",
    "OutputError",
    "DocumentWriteError",
    "InternalError",
    "LayoutEncodeError",
]

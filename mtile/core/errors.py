"""
mtile.core.errors - Error taxonomy.

Every failure the tool knows how to report derives from MtileError.
Startup code lets EnvironmentNotReady end the process; the activation
coordinator catches the rest per activation and keeps serving.
"""

from __future__ import annotations


class MtileError(Exception):
    """Base class for all expected mtile failures."""


# ============================================================================
# Startup-time (fatal for the whole process)
# ============================================================================
class EnvironmentNotReady(MtileError):
    """No X display, missing extension, or a bad configuration directory."""


class ConfigError(EnvironmentNotReady):
    """A configuration file or environment variable holds an invalid value."""


# ============================================================================
# Per-activation (fatal for that activation only)
# ============================================================================
class GeometryParseError(MtileError):
    """A monitor or window record does not match the WxH+X+Y grammar."""


class WindowTypeError(MtileError):
    """The active window declares a type other than NORMAL."""


class DegenerateRegion(MtileError):
    """A region is too small for its segmentation factor (zero-sized cells)."""

    def __init__(self, region: object, columns: int, rows: int) -> None:
        super().__init__(
            f"region {region} cannot be split into {columns}x{rows} cells"
        )
        self.region = region
        self.columns = columns
        self.rows = rows


class NoRegionContainsPointer(MtileError):
    """The pointer lies outside every known region."""

    def __init__(self, x: int, y: int) -> None:
        super().__init__(f"no region contains the pointer at ({x}, {y})")
        self.x = x
        self.y = y


class CollaboratorError(MtileError):
    """A request to the X server failed or returned unusable data."""

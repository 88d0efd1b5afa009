"""
mtile.core - Window access, placement and activation control.

This package contains:
    - errors      : Error taxonomy shared by every module
    - x11         : X server access via python-xlib
    - window      : Input snapshot and per-window carried state
    - enforcer    : Bounded background re-assertion of a placement
    - placement   : PlacementExecutor - idempotent move/resize + calibration
    - activation  : Activator - one full pointer-to-placement pass
    - coordinator : SignalChannel + ActivationCoordinator (single instance)
"""

from mtile.core.errors import (
    CollaboratorError,
    ConfigError,
    DegenerateRegion,
    EnvironmentNotReady,
    GeometryParseError,
    MtileError,
    NoRegionContainsPointer,
    WindowTypeError,
)

__all__ = [
    "CollaboratorError",
    "ConfigError",
    "DegenerateRegion",
    "EnvironmentNotReady",
    "GeometryParseError",
    "MtileError",
    "NoRegionContainsPointer",
    "WindowTypeError",
]

"""
mtile.core.window - Input snapshot and per-window state.

A WindowSnapshot is a one-time read of the active window taken at the
start of an activation.  WindowState is the only data carried between
activations: decoration extents, the last applied move/resize command,
the calibrated position offset and the running enforcer.  The store keeps
state for a single window identity and forgets it as soon as a different
window becomes active.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from mtile.core.errors import WindowTypeError
from mtile.core.x11 import WINDOW_TYPE_NORMAL
from mtile.tiling.rect import Rect

if TYPE_CHECKING:
    from mtile.core.enforcer import Enforcer
    from mtile.core.placement import MoveResize

log = logging.getLogger(__name__)


# ============================================================================
# Snapshot value types
# ============================================================================
@dataclass(frozen=True, slots=True)
class PointerSample:
    x: int
    y: int


@dataclass(frozen=True, slots=True)
class FrameExtents:
    """Decoration insets added by the window manager (_NET_FRAME_EXTENTS)."""

    left: int = 0
    right: int = 0
    top: int = 0
    bottom: int = 0

    @property
    def width(self) -> int:
        return self.left + self.right

    @property
    def height(self) -> int:
        return self.top + self.bottom


@dataclass(frozen=True, slots=True)
class WindowSnapshot:
    """The active window as seen at the start of an activation."""

    wid: int
    title: str
    rect: Rect
    extents: FrameExtents

    @property
    def decoration_top(self) -> int:
        return self.extents.top

    @property
    def decoration_width(self) -> int:
        return self.extents.width

    @property
    def decoration_height(self) -> int:
        return self.extents.height

    def __str__(self) -> str:
        return f"[{self.wid:#010x}] {self.title!r} | {self.rect}"


# ============================================================================
# Carried state
# ============================================================================
class WindowState:
    """
    State kept across activations for one window identity.

    extents is None until the window has been inspected (type check and
    frame extents); offset is None until the first placement has been
    calibrated.
    """

    __slots__ = ("wid", "extents", "last_command", "offset", "enforcer")

    def __init__(self, wid: int) -> None:
        self.wid = wid
        self.extents: Optional[FrameExtents] = None
        self.last_command: Optional[MoveResize] = None
        self.offset: Optional[tuple[int, int]] = None
        self.enforcer: Optional[Enforcer] = None

    @property
    def calibrated(self) -> bool:
        return self.offset is not None

    def __repr__(self) -> str:
        return (
            f"WindowState(wid={self.wid:#010x}, extents={self.extents}, "
            f"last_command={self.last_command}, offset={self.offset})"
        )


class WindowStore:
    """Identity-keyed holder of the current window's WindowState."""

    def __init__(self) -> None:
        self._state: Optional[WindowState] = None

    @property
    def current(self) -> Optional[WindowState]:
        return self._state

    def get(self, wid: int) -> WindowState:
        """
        Return the state for *wid*, discarding state of any other window.

        A switch of identity clears decorations and the last command, and
        asks the previous window's enforcer to stop.
        """
        state = self._state
        if state is not None and state.wid == wid:
            return state

        if state is not None:
            log.debug("Window changed %#010x -> %#010x, state reset", state.wid, wid)
            if state.enforcer is not None:
                state.enforcer.cancel()

        self._state = WindowState(wid)
        return self._state

    def shutdown(self) -> None:
        """Stop any running enforcer and forget the current window."""
        state = self._state
        if state is not None and state.enforcer is not None:
            state.enforcer.cancel_and_wait()
        self._state = None


# ============================================================================
# Snapshot readers
# ============================================================================
def read_pointer(display) -> PointerSample:
    x, y = display.pointer()
    return PointerSample(x, y)


def refresh_snapshot(display, store: WindowStore) -> tuple[WindowSnapshot, WindowState]:
    """
    Read the active window and bring its carried state up to date.

    Windows that have not been inspected yet get their maximized state
    cleared, their type validated and their frame extents recorded.

    Raises:
        WindowTypeError: The window declares a type other than NORMAL.
        CollaboratorError: The X server request failed.
    """
    active = display.active_window()
    state = store.get(active.wid)

    if state.extents is None:
        # Maximized windows refuse moves and only report the top extent
        display.clear_maximized(active.wid)

        attrs = display.window_attributes(active.wid)
        if attrs.window_type is not None and attrs.window_type != WINDOW_TYPE_NORMAL:
            raise WindowTypeError(
                f"window {active.wid:#x} has type {attrs.window_type}, "
                f"expected {WINDOW_TYPE_NORMAL}"
            )

        if attrs.frame_extents is not None:
            state.extents = FrameExtents(*attrs.frame_extents)
        else:
            state.extents = FrameExtents()

    snapshot = WindowSnapshot(
        wid=active.wid,
        title=active.title,
        rect=active.geometry,
        extents=state.extents,
    )
    return snapshot, state

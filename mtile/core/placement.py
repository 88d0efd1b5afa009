"""
mtile.core.placement - Issue the move/resize command for a target rectangle.

The executor turns a final rectangle into a canonical MoveResize
descriptor and sends it to the window manager, with three guarantees:

  1. Idempotence: a descriptor equal to the last one applied to the same
     window is not sent again.
  2. At most one enforcer per window: the previous enforcer is cancelled
     and joined before a new command goes out.
  3. Offset calibration: the first placement of a window is read back and
     the difference between where the client ended up and where it was
     asked to go is stored and subtracted from every later command.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Optional

from mtile.core.enforcer import ENFORCE_DEADLINE, ENFORCE_TICK, Enforcer
from mtile.core.window import WindowSnapshot, WindowState
from mtile.core.x11 import GRAVITY_NORTH_WEST
from mtile.tiling.rect import Rect

log = logging.getLogger(__name__)

# Read-backs allowed for the window manager to apply the first command
CALIBRATION_READS = 5
CALIBRATION_INTERVAL = 0.01


# ============================================================================
# MoveResize descriptor
# ============================================================================
@dataclass(frozen=True, slots=True)
class MoveResize:
    """
    Canonical move/resize command: gravity flag, position and size.

    str() renders it as "gravity,x,y,w,h".
    """

    gravity: int
    x: int
    y: int
    w: int
    h: int

    @classmethod
    def from_rect(cls, rect: Rect, gravity: int = GRAVITY_NORTH_WEST) -> MoveResize:
        return cls(gravity, rect.x, rect.y, rect.w, rect.h)

    @property
    def values(self) -> tuple[int, int, int, int, int]:
        return (self.gravity, self.x, self.y, self.w, self.h)

    def shifted(self, dx: int, dy: int) -> MoveResize:
        return MoveResize(self.gravity, self.x + dx, self.y + dy, self.w, self.h)

    def __str__(self) -> str:
        return ",".join(str(v) for v in self.values)


# ============================================================================
# PlacementExecutor
# ============================================================================
class PlacementExecutor:
    """Sends placements and launches one enforcer after each of them."""

    def __init__(
        self,
        display,
        enforce_deadline: float = ENFORCE_DEADLINE,
        enforce_tick: float = ENFORCE_TICK,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._display = display
        self._enforce_deadline = enforce_deadline
        self._enforce_tick = enforce_tick
        self._sleep = sleep

        # Commands sent to the window manager (enforcer re-sends excluded)
        self.issued = 0

    def place(self, state: WindowState, snapshot: WindowSnapshot, rect: Rect) -> bool:
        """
        Move the window described by *snapshot* to *rect*.

        Returns:
            True if a command was sent, False if it was a no-op.
        """
        descriptor = MoveResize.from_rect(rect)
        if descriptor == state.last_command:
            log.debug("Placement %s unchanged for %#x, skipped", descriptor, snapshot.wid)
            return False

        if state.enforcer is not None:
            state.enforcer.cancel_and_wait()
            state.enforcer = None

        if state.offset is None:
            command = descriptor
            self._issue(snapshot.wid, command)

            offset = self._calibrate(snapshot, rect)
            if offset is not None:
                state.offset = offset
                corrected = descriptor.shifted(-offset[0], -offset[1])
                if corrected != command:
                    log.info(
                        "Window %#x offset calibrated to %s", snapshot.wid, offset
                    )
                    command = corrected
                    self._issue(snapshot.wid, command)
        else:
            command = descriptor.shifted(-state.offset[0], -state.offset[1])
            self._issue(snapshot.wid, command)

        state.last_command = descriptor

        enforcer = Enforcer(
            self._display,
            snapshot.wid,
            rect,
            command,
            snapshot.extents,
            deadline=self._enforce_deadline,
            tick=self._enforce_tick,
        )
        enforcer.start()
        state.enforcer = enforcer

        log.info("PLACE %s -> %s", snapshot, rect)
        return True

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------
    def _issue(self, wid: int, command: MoveResize) -> None:
        self._display.move_resize(wid, *command.values)
        self.issued += 1

    def _calibrate(
        self, snapshot: WindowSnapshot, rect: Rect
    ) -> Optional[tuple[int, int]]:
        """
        Measure where the client landed relative to where it was asked to go.

        A read-back only counts once the window has left the position it
        had before the command, unless that position already is the
        requested one.  Returns None when the window manager has not applied
        the command within the read-back budget (or the window lost focus);
        the window then stays uncalibrated and is measured again next time.
        """
        expected = Rect(
            rect.x + snapshot.extents.left,
            rect.y + snapshot.extents.top,
            rect.w,
            rect.h,
        )
        already_there = snapshot.rect == expected

        for attempt in range(CALIBRATION_READS):
            if attempt:
                self._sleep(CALIBRATION_INTERVAL)

            active = self._display.active_window()
            if active.wid != snapshot.wid:
                return None

            geometry = active.geometry
            if geometry == snapshot.rect and not already_there:
                # Stale read: the command has not been applied yet
                continue
            if geometry.w == rect.w and geometry.h == rect.h:
                return (
                    geometry.x - snapshot.extents.left - rect.x,
                    geometry.y - snapshot.extents.top - rect.y,
                )

        log.debug("Window %#x did not settle, calibration deferred", snapshot.wid)
        return None

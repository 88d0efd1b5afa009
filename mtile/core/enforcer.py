"""
mtile.core.enforcer - Bounded background re-assertion of a placement.

Window managers apply move/resize requests asynchronously and sometimes
answer them with their own animation or size constraints.  After each
placement an Enforcer thread re-reads the window for a short, fixed
period and re-sends the command whenever the window is not where it was
asked to be.  It stops at the deadline, when it is cancelled, or as soon
as a different window becomes active.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from mtile.core.errors import MtileError
from mtile.tiling.rect import Rect

if TYPE_CHECKING:
    from mtile.core.placement import MoveResize
    from mtile.core.window import FrameExtents

log = logging.getLogger(__name__)

# Total run time and interval between checks, in seconds
ENFORCE_DEADLINE = 0.1
ENFORCE_TICK = 0.01


class Enforcer:
    """
    Cancellable handle to one enforcement thread.

    Usage:
        enforcer = Enforcer(display, wid, target, command, extents)
        enforcer.start()
        ...
        enforcer.cancel_and_wait()   # before the next placement
    """

    def __init__(
        self,
        display,
        wid: int,
        target: Rect,
        command: MoveResize,
        extents: FrameExtents,
        deadline: float = ENFORCE_DEADLINE,
        tick: float = ENFORCE_TICK,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._display = display
        self._wid = wid
        self._target = target
        self._command = command
        self._extents = extents
        self._deadline = deadline
        self._tick = tick
        self._clock = clock

        self._cancelled = threading.Event()
        self._thread = threading.Thread(
            target=self._run,
            daemon=True,
            name=f"enforcer-{wid:#x}",
        )

        # Number of corrective commands sent
        self.attempts = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    @property
    def alive(self) -> bool:
        return self._thread.is_alive()

    def start(self) -> None:
        self._thread.start()

    def cancel(self) -> None:
        """Request termination.  Safe if the thread already finished."""
        self._cancelled.set()

    def join(self, timeout: float | None = None) -> None:
        if self._thread.ident is not None:
            self._thread.join(timeout)

    def cancel_and_wait(self) -> None:
        self.cancel()
        self.join()

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------
    def deviates(self, geometry: Rect) -> bool:
        """True if *geometry* (client area) differs from the target."""
        return (
            geometry.w != self._target.w
            or geometry.h != self._target.h
            or geometry.x - self._extents.left != self._target.x
            or geometry.y - self._extents.top != self._target.y
        )

    def _run(self) -> None:
        start = self._clock()
        end = start + self._deadline
        ticks = max(1, round(self._deadline / self._tick))

        try:
            for i in range(1, ticks + 1):
                if self._cancelled.is_set():
                    break

                active = self._display.active_window()
                if active.wid != self._wid:
                    log.debug("Enforcer %#x: window changed, stopping", self._wid)
                    break

                if self.deviates(active.geometry):
                    self._display.move_resize(self._wid, *self._command.values)
                    self.attempts += 1

                if i == ticks or self._clock() >= end:
                    break

                # Sleep to the scheduled tick, not a fixed interval
                delay = start + i * self._tick - self._clock()
                if delay > 0 and self._cancelled.wait(delay):
                    break

        except MtileError as e:
            log.warning("Enforcer %#x stopped: %s", self._wid, e)

        log.debug(
            "Enforcer %#x finished after %d correction(s)", self._wid, self.attempts
        )

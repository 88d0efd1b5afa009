"""
Shared fixtures for the mtile test suite.

FakeDisplay stands in for X11Display: it exposes the same methods and
applies move/resize requests to an in-memory window the way a window
manager would, optionally with a position quirk or not at all.
"""

import threading

import pytest

from mtile.core.x11 import (
    WINDOW_TYPE_NORMAL,
    ActiveWindow,
    MonitorRecord,
    WindowAttributes,
)
from mtile.tiling.rect import Rect


class FakeDisplay:
    """In-memory display with one active window."""

    def __init__(self):
        self.monitor_records = [MonitorRecord("DP-1", "1920x1080+0+0")]
        self.pointer_position = (960, 540)

        self.wid = 0x1400007
        self.title = "terminal"
        self.geometry = Rect(100, 100, 800, 600)
        self.window_type = WINDOW_TYPE_NORMAL
        self.frame_extents = None

        # obedient=False: requests are recorded but never applied
        self.obedient = True
        # Added to the position of every applied request
        self.quirk = (0, 0)
        # lag=True: a request shows up only after the next geometry read
        self.lag = False
        self._pending = None

        self.commands = []
        self.cleared = []
        self.reads = 0
        self.closed = False
        self._lock = threading.Lock()

    # -- X11Display interface ------------------------------------------
    def check_environment(self):
        pass

    def close(self):
        self.closed = True

    def monitors(self):
        return list(self.monitor_records)

    def pointer(self):
        return self.pointer_position

    def active_window(self):
        with self._lock:
            self.reads += 1
            current = ActiveWindow(self.wid, self.title, self.geometry)
            if self._pending is not None:
                self.geometry, self._pending = self._pending, None
            return current

    def window_attributes(self, wid):
        return WindowAttributes(self.window_type, self.frame_extents)

    def move_resize(self, wid, gravity, x, y, w, h):
        with self._lock:
            self.commands.append((wid, gravity, x, y, w, h))
            if not self.obedient or wid != self.wid:
                return
            left, _, top, _ = self.frame_extents or (0, 0, 0, 0)
            landed = Rect(x + left + self.quirk[0], y + top + self.quirk[1], w, h)
            if self.lag:
                self._pending = landed
            else:
                self.geometry = landed

    def clear_maximized(self, wid):
        self.cleared.append(wid)

    # -- Test helpers ----------------------------------------------------
    def switch_window(self, wid, geometry=None):
        with self._lock:
            self.wid = wid
            if geometry is not None:
                self.geometry = geometry


@pytest.fixture
def display():
    return FakeDisplay()


@pytest.fixture
def config_dir(tmp_path):
    path = tmp_path / "config"
    path.mkdir()
    return path

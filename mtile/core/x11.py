"""
mtile.core.x11 - X server access via python-xlib.

Centralizes every request the tool makes to the X server so that no other
module needs to import Xlib directly.  The rest of the code only sees the
small value types defined here and the X11Display methods:

    monitors()            connected RandR outputs as (name, "WxH+X+Y")
    pointer()             absolute pointer position
    active_window()       _NET_ACTIVE_WINDOW identity, title and geometry
    window_attributes()   _NET_WM_WINDOW_TYPE and _NET_FRAME_EXTENTS
    move_resize()         _NET_MOVERESIZE_WINDOW client message
    clear_maximized()     _NET_WM_STATE remove maximized_vert/horz
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional

import Xlib.error
from Xlib import X, display
from Xlib.ext import randr
from Xlib.protocol import event

from mtile.core.errors import CollaboratorError, EnvironmentNotReady
from mtile.tiling.rect import Rect

log = logging.getLogger(__name__)

# ============================================================================
# Constants
# ============================================================================

# _NET_MOVERESIZE_WINDOW flag layout (EWMH): gravity in bits 0-7,
# "value present" bits 8-11 for x/y/width/height, source in bits 12-13.
GRAVITY_NORTH_WEST = 1
MOVERESIZE_ALL_VALUES = 0xF << 8
SOURCE_PAGER = 2 << 12

# _NET_WM_STATE actions
NET_WM_STATE_REMOVE = 0
SOURCE_APPLICATION = 1

WINDOW_TYPE_NORMAL = "_NET_WM_WINDOW_TYPE_NORMAL"

_CLIENT_MESSAGE_MASK = X.SubstructureRedirectMask | X.SubstructureNotifyMask


# ============================================================================
# Value types returned to the rest of the program
# ============================================================================
@dataclass(frozen=True, slots=True)
class MonitorRecord:
    """One connected output.  An empty geometry marks an unusable record."""

    name: str
    geometry: str


@dataclass(frozen=True, slots=True)
class ActiveWindow:
    """The focused top-level window as reported by the window manager."""

    wid: int
    title: str
    geometry: Rect


@dataclass(frozen=True, slots=True)
class WindowAttributes:
    """
    Window-manager metadata for a client window.

    window_type:   first atom name of _NET_WM_WINDOW_TYPE, None if unset.
    frame_extents: (left, right, top, bottom), None if unset.
    """

    window_type: Optional[str]
    frame_extents: Optional[tuple[int, int, int, int]]


# ============================================================================
# X11Display
# ============================================================================
class X11Display:
    """
    Connection to the X server exposing the operations mtile needs.

    All requests are serialized with a lock because the enforcer thread
    and the coordinator thread share the same connection.
    """

    def __init__(self, display_name: Optional[str] = None) -> None:
        try:
            self._display = display.Display(display_name)
        except Xlib.error.DisplayError as e:
            raise EnvironmentNotReady(f"cannot open X display: {e}") from e

        self._root = self._display.screen().root
        self._lock = threading.RLock()
        self._atoms: dict[str, int] = {}

    # ------------------------------------------------------------------
    # Setup checks
    # ------------------------------------------------------------------
    def check_environment(self) -> None:
        """
        Verify the server and window manager support what mtile uses.

        Raises:
            EnvironmentNotReady: RandR is missing or no EWMH window manager
                is running.
        """
        try:
            with self._request("environment check"):
                if not self._display.has_extension("RANDR"):
                    raise EnvironmentNotReady("X server lacks the RandR extension")

                supported = self._root.get_full_property(
                    self._atom("_NET_SUPPORTED"), X.AnyPropertyType
                )
                if supported is None:
                    raise EnvironmentNotReady(
                        "no EWMH compliant window manager is running"
                    )

                needed = ("_NET_ACTIVE_WINDOW", "_NET_MOVERESIZE_WINDOW")
                available = set(supported.value)
                for name in needed:
                    if self._atom(name) not in available:
                        raise EnvironmentNotReady(
                            f"window manager does not support {name}"
                        )
        except CollaboratorError as e:
            raise EnvironmentNotReady(str(e)) from e

    def close(self) -> None:
        with self._lock:
            self._display.close()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _atom(self, name: str) -> int:
        with self._lock:
            atom = self._atoms.get(name)
            if atom is None:
                atom = self._display.get_atom(name)
                self._atoms[name] = atom
        return atom

    @contextmanager
    def _request(self, what: str) -> Iterator[None]:
        """Serialize a request and turn X errors into CollaboratorError."""
        with self._lock:
            try:
                yield
            except (Xlib.error.XError, Xlib.error.ConnectionClosedError) as e:
                raise CollaboratorError(f"{what} failed: {e}") from e

    def _window(self, wid: int):
        return self._display.create_resource_object("window", wid)

    @staticmethod
    def _text(value) -> str:
        if isinstance(value, bytes):
            return value.decode("utf-8", errors="replace")
        return str(value or "")

    # ------------------------------------------------------------------
    # Monitor enumeration
    # ------------------------------------------------------------------
    def monitors(self) -> list[MonitorRecord]:
        """Return every connected output in RandR order."""
        records: list[MonitorRecord] = []

        with self._request("monitor enumeration"):
            resources = self._root.xrandr_get_screen_resources()
            timestamp = resources.config_timestamp

            for output in resources.outputs:
                info = self._display.xrandr_get_output_info(output, timestamp)
                if info.connection != randr.Connected:
                    continue

                name = self._text(info.name)
                geometry = ""
                if info.crtc:
                    crtc = self._display.xrandr_get_crtc_info(info.crtc, timestamp)
                    if crtc.width and crtc.height:
                        geometry = f"{crtc.width}x{crtc.height}+{crtc.x}+{crtc.y}"

                records.append(MonitorRecord(name=name, geometry=geometry))

        return records

    # ------------------------------------------------------------------
    # Pointer
    # ------------------------------------------------------------------
    def pointer(self) -> tuple[int, int]:
        """Absolute pointer position on the root window."""
        with self._request("pointer query"):
            reply = self._root.query_pointer()
        return reply.root_x, reply.root_y

    # ------------------------------------------------------------------
    # Windows
    # ------------------------------------------------------------------
    def active_window(self) -> ActiveWindow:
        """
        Read the active window identity, title and client geometry.

        Raises:
            CollaboratorError: No active window, or the window vanished.
        """
        with self._request("active window query"):
            prop = self._root.get_full_property(
                self._atom("_NET_ACTIVE_WINDOW"), X.AnyPropertyType
            )
            if prop is None or not len(prop.value) or not prop.value[0]:
                raise CollaboratorError("no active window")

            wid = int(prop.value[0])
            win = self._window(wid)

            name = win.get_full_property(
                self._atom("_NET_WM_NAME"), self._atom("UTF8_STRING")
            )
            title = self._text(name.value) if name is not None else self._text(
                win.get_wm_name()
            )

            geom = win.get_geometry()
            origin = self._root.translate_coords(win, 0, 0)

        return ActiveWindow(
            wid=wid,
            title=title,
            geometry=Rect(origin.x, origin.y, geom.width, geom.height),
        )

    def window_attributes(self, wid: int) -> WindowAttributes:
        """Read the window type and frame extents of *wid*."""
        with self._request(f"attribute query for {wid:#x}"):
            win = self._window(wid)

            window_type = None
            prop = win.get_full_property(
                self._atom("_NET_WM_WINDOW_TYPE"), X.AnyPropertyType
            )
            if prop is not None and len(prop.value):
                window_type = self._display.get_atom_name(int(prop.value[0]))

            extents = None
            prop = win.get_full_property(
                self._atom("_NET_FRAME_EXTENTS"), X.AnyPropertyType
            )
            if prop is not None and len(prop.value) >= 4:
                left, right, top, bottom = (int(v) for v in prop.value[:4])
                extents = (left, right, top, bottom)

        return WindowAttributes(window_type=window_type, frame_extents=extents)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def move_resize(
        self, wid: int, gravity: int, x: int, y: int, width: int, height: int
    ) -> None:
        """Ask the window manager to move and resize *wid*."""
        flags = (gravity & 0xFF) | MOVERESIZE_ALL_VALUES | SOURCE_PAGER
        log.debug(
            "x11: _NET_MOVERESIZE_WINDOW %#x %d,%d,%d,%d,%d",
            wid, gravity, x, y, width, height,
        )
        self._send(wid, "_NET_MOVERESIZE_WINDOW", [flags, x, y, width, height])

    def clear_maximized(self, wid: int) -> None:
        """Strip both maximized states so the window can be resized."""
        log.debug("x11: _NET_WM_STATE remove maximized_vert,maximized_horz %#x", wid)
        self._send(
            wid,
            "_NET_WM_STATE",
            [
                NET_WM_STATE_REMOVE,
                self._atom("_NET_WM_STATE_MAXIMIZED_VERT"),
                self._atom("_NET_WM_STATE_MAXIMIZED_HORZ"),
                SOURCE_APPLICATION,
                0,
            ],
        )

    def _send(self, wid: int, message: str, data: list[int]) -> None:
        with self._request(message):
            ev = event.ClientMessage(
                window=self._window(wid),
                client_type=self._atom(message),
                # Format-32 data is packed unsigned
                data=(32, [v & 0xFFFFFFFF for v in data]),
            )
            self._root.send_event(ev, event_mask=_CLIENT_MESSAGE_MASK)
            self._display.sync()

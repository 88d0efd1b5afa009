"""
mtile.core.activation - One full pass from pointer to placed window.

    pointer sample -> regions -> active region -> window snapshot
        -> zone classifier -> margins -> placement (+ enforcer)

The Activator owns the WindowStore, so the only state that survives from
one activation to the next is the per-window state kept there.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from mtile.config.settings import Settings
from mtile.core.placement import PlacementExecutor
from mtile.core.window import (
    PointerSample,
    WindowSnapshot,
    WindowStore,
    read_pointer,
    refresh_snapshot,
)
from mtile.tiling.margins import apply_margins
from mtile.tiling.monitor import Region, build_regions, resolve_active_region
from mtile.tiling.rect import Rect
from mtile.tiling.zones import TileResult, compute_tile

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ActivationResult:
    """What one activation computed and whether it sent a command."""

    pointer: PointerSample
    region: Region
    window: WindowSnapshot
    tile: TileResult
    target: Rect
    moved: bool


class Activator:
    """Runs activations against one display with fixed settings."""

    def __init__(
        self,
        display,
        settings: Settings,
        store: Optional[WindowStore] = None,
        executor: Optional[PlacementExecutor] = None,
    ) -> None:
        self._display = display
        self._settings = settings
        self._store = store if store is not None else WindowStore()
        self._executor = executor if executor is not None else PlacementExecutor(display)

    @property
    def store(self) -> WindowStore:
        return self._store

    def check_regions(self) -> None:
        """Enumerate displays once so that startup fails on bad geometry."""
        registry = build_regions(
            self._display.monitors(),
            self._settings.virtual_displays,
            self._settings.skip_malformed_displays,
        )
        log.info(
            "Regiones: %d fisicas, %d virtuales",
            len(registry.physical),
            len(registry.virtual),
        )

    def activate(self) -> ActivationResult:
        """
        Place the active window according to the pointer position.

        Raises:
            MtileError: Any per-activation failure (see mtile.core.errors).
        """
        settings = self._settings

        pointer = read_pointer(self._display)
        registry = build_regions(
            self._display.monitors(),
            settings.virtual_displays,
            settings.skip_malformed_displays,
        )
        region = resolve_active_region(registry, pointer.x, pointer.y)

        snapshot, state = refresh_snapshot(self._display, self._store)

        tile = compute_tile(region.rect, pointer.x, pointer.y, settings.zones)
        target = apply_margins(
            tile.rect,
            region.rect,
            settings.margins,
            snapshot.decoration_width,
            snapshot.decoration_height,
        )

        if settings.dump_stats:
            log.debug("pointer=%s", pointer)
            for r in registry.virtual + registry.physical:
                log.debug("region=%s", r)
            log.debug("active_region=%s", region)
            log.debug("window=%s state=%r", snapshot, state)
            log.debug("tile=%s target=%s", tile, target)

        moved = self._executor.place(state, snapshot, target)
        return ActivationResult(
            pointer=pointer,
            region=region,
            window=snapshot,
            tile=tile,
            target=target,
            moved=moved,
        )

    def shutdown(self) -> None:
        self._store.shutdown()

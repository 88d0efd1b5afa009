"""
mtile.tiling.monitor - Regiones de pantalla y seleccion de la region activa.

Construye el registro de regiones de una activacion (monitores fisicos
reportados por RandR mas las regiones virtuales configuradas) y elige la
region que contiene al puntero.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from mtile.core.errors import GeometryParseError, NoRegionContainsPointer
from mtile.tiling.rect import Rect

if TYPE_CHECKING:
    from mtile.core.x11 import MonitorRecord

log = logging.getLogger(__name__)


# ============================================================================
# Region
# ============================================================================
@dataclass(frozen=True, slots=True)
class Region:
    """
    Superficie rectangular donde se puede colocar una ventana.

    Atributos:
        ident:   Numero de secuencia (1..N) dentro de su tipo.
        rect:    Area que cubre la region.
        name:    Nombre de la salida (solo monitores fisicos).
        virtual: True si es una subdivision configurada por el usuario.
    """

    ident: int
    rect: Rect
    name: Optional[str] = None
    virtual: bool = False

    @property
    def label(self) -> str:
        if self.virtual:
            return f"vdisplay_{self.ident}"
        return f"display_{self.ident}({self.name})"

    def __str__(self) -> str:
        return f"{self.label} {self.rect}"


@dataclass(frozen=True, slots=True)
class RegionRegistry:
    """Regiones validas para una activacion, en orden de identidad."""

    physical: tuple[Region, ...] = field(default_factory=tuple)
    virtual: tuple[Region, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.physical) + len(self.virtual)


# ============================================================================
# Construccion del registro
# ============================================================================
def build_regions(
    monitors: Iterable[MonitorRecord],
    virtual_rects: Sequence[Rect] = (),
    skip_malformed: bool = True,
) -> RegionRegistry:
    """
    Crea el registro de regiones de la activacion actual.

    Args:
        monitors:       Registros (nombre, "WxH+X+Y") de cada salida conectada.
        virtual_rects:  Regiones virtuales, en el orden en que se declararon.
        skip_malformed: Si True, un registro invalido se reporta y se omite;
                        si False, aborta la construccion.

    Raises:
        GeometryParseError: Registro invalido con skip_malformed=False, o
            ningun monitor utilizable.
    """
    physical: list[Region] = []

    for record in monitors:
        try:
            rect = Rect.parse(record.geometry)
        except GeometryParseError:
            if not skip_malformed:
                raise GeometryParseError(
                    f"failed to read display properties: {record.name} "
                    f"{record.geometry!r}"
                ) from None
            log.warning(
                "failed to read display properties: %s %r",
                record.name,
                record.geometry,
            )
            continue

        region = Region(ident=len(physical) + 1, rect=rect, name=record.name)
        physical.append(region)
        log.debug("Monitor detectado: %s", region)

    if not physical:
        raise GeometryParseError("no usable display found")

    virtual = tuple(
        Region(ident=i, rect=rect, virtual=True)
        for i, rect in enumerate(virtual_rects, start=1)
    )
    for region in virtual:
        log.debug("Region virtual: %s", region)

    return RegionRegistry(physical=tuple(physical), virtual=virtual)


# ============================================================================
# Resolucion de la region activa
# ============================================================================
def _scan(regions: Sequence[Region], px: int, py: int) -> Optional[Region]:
    # De mayor a menor identidad: ante solapamiento gana la mas alta
    for region in reversed(regions):
        if region.rect.contains(px, py):
            return region
    return None


def resolve_active_region(registry: RegionRegistry, px: int, py: int) -> Region:
    """
    Elige la region que contiene al puntero.

    Las regiones virtuales tienen precedencia sobre las fisicas. Dentro de
    cada grupo se recorre desde la identidad mas alta a la mas baja y gana
    la primera que contiene el punto (bordes incluidos).

    Raises:
        NoRegionContainsPointer: Si ninguna region contiene el puntero.
    """
    region = _scan(registry.virtual, px, py) or _scan(registry.physical, px, py)
    if region is None:
        raise NoRegionContainsPointer(px, py)

    log.debug("Region activa: %s (puntero %d,%d)", region, px, py)
    return region

"""
mtile.tiling - Calculo del rectangulo destino a partir del puntero.

Este paquete contiene:
    - rect    : Estructura Rect para geometria de areas
    - monitor : Registro de regiones y resolucion de la region activa
    - zones   : Clasificador recursivo de zonas (grilla + zonas especiales)
    - margins : Ajuste del destino a decoraciones y margenes
"""

from mtile.tiling.rect import Rect
from mtile.tiling.monitor import (
    Region,
    RegionRegistry,
    build_regions,
    resolve_active_region,
)
from mtile.tiling.zones import (
    TileResult,
    Zone,
    ZoneSettings,
    classify,
    compute_tile,
    grid_cell,
)
from mtile.tiling.margins import Margins, apply_margins

__all__ = [
    "Rect",
    "Region",
    "RegionRegistry",
    "build_regions",
    "resolve_active_region",
    "TileResult",
    "Zone",
    "ZoneSettings",
    "classify",
    "compute_tile",
    "grid_cell",
    "Margins",
    "apply_margins",
]

"""
mtile.tiling.zones - Clasificador de zonas (el motor de tiling por puntero).

Dada una region y la posicion del puntero, calcula el rectangulo destino
de la ventana activa:

    1. Divide la region en una grilla columnas x filas y toma la celda
       que contiene al puntero.
    2. Evalua las zonas especiales en orden estricto de prioridad
       (la primera que coincide gana):
         - DOCUMENT   : franja superior de la region raiz (alto completo).
         - FULL       : cuadrado alrededor del centro (region completa).
         - VERTICAL   : franja alrededor de la mitad vertical.
         - HORIZONTAL : franja alrededor de la mitad horizontal.
    3. Si ninguna coincide y queda presupuesto de recursion, repite el
       proceso dentro de la celda con una grilla 2x2.

Politica por nivel de las franjas VERTICAL/HORIZONTAL:
    - Nivel raiz: la celda se re-centra sobre el eje de la franja,
      conservando su tamano.
    - Niveles anidados: la celda se expande hasta llenar la sub-region
      sobre ese eje.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

from mtile.core.errors import DegenerateRegion
from mtile.tiling.rect import Rect

log = logging.getLogger(__name__)


# Alto (px) de la franja superior que activa el modo documento
DOCUMENT_BAND = 100

# Grilla usada en todos los niveles anidados
SUB_COLUMNS = 2
SUB_ROWS = 2


# ============================================================================
# Zone enum
# ============================================================================
class Zone(enum.Enum):
    """Zona que determino el rectangulo final."""
    DOCUMENT = "document"
    FULL = "full"
    VERTICAL = "vertical"
    HORIZONTAL = "horizontal"
    GRID = "grid"


# ============================================================================
# Parametros y resultado
# ============================================================================
@dataclass(frozen=True, slots=True)
class ZoneSettings:
    """
    Parametros del clasificador.

    Atributos:
        split_depth:      Presupuesto de recursion de la llamada raiz.
        columns/rows:     Grilla de la llamada raiz.
        edge_proximity:   Semi-ancho de las franjas VERTICAL/HORIZONTAL.
        corner_proximity: Semi-ancho del cuadrado central (zona FULL).
        document_mode:    Habilita la zona DOCUMENT.
    """

    split_depth: int = 1
    columns: int = 2
    rows: int = 2
    edge_proximity: int = 30
    corner_proximity: int = 30
    document_mode: bool = True


@dataclass(frozen=True, slots=True)
class TileResult:
    """Rectangulo destino, la zona que lo produjo y los niveles evaluados."""

    rect: Rect
    zone: Zone
    depth: int


# ============================================================================
# Grilla base
# ============================================================================
def grid_cell(area: Rect, columns: int, rows: int, px: int, py: int) -> Rect:
    """
    Retorna la celda de la grilla *columns* x *rows* que contiene al puntero.

    Las celdas miden area // columnas (o filas); la ultima columna y la
    ultima fila absorben los pixeles sobrantes.

    Raises:
        DegenerateRegion: Si alguna celda resultaria de tamano cero.
    """
    if columns < 1 or rows < 1:
        raise DegenerateRegion(area, columns, rows)

    cell_w = area.w // columns
    cell_h = area.h // rows
    if cell_w == 0 or cell_h == 0:
        raise DegenerateRegion(area, columns, rows)

    col = min(max((px - area.x) // cell_w, 0), columns - 1)
    row = min(max((py - area.y) // cell_h, 0), rows - 1)

    return area.slice_columns(columns)[col].slice_rows(rows)[row]


def _in_band(offset: int, center: int, size: int) -> bool:
    return center - size < offset < center + size


# ============================================================================
# Clasificador recursivo
# ============================================================================
def classify(
    area: Rect,
    px: int,
    py: int,
    columns: int,
    rows: int,
    budget: int,
    settings: ZoneSettings,
    is_root: bool = True,
    depth: int = 1,
) -> TileResult:
    """
    Calcula el rectangulo destino para el puntero dentro de *area*.

    Args:
        area:     Region (o sub-region sintetica) a dividir.
        px, py:   Posicion absoluta del puntero.
        columns:  Columnas de la grilla de este nivel.
        rows:     Filas de la grilla de este nivel.
        budget:   Niveles de recursion restantes.
        settings: Tamanos de las franjas y modo documento.
        is_root:  True solo en la llamada inicial.
        depth:    Nivel actual (1 en la raiz).

    Returns:
        TileResult del nivel mas profundo evaluado.
    """
    cell = grid_cell(area, columns, rows, px, py)

    # Offsets del puntero y centro, siempre relativos a esta area
    mx = px - area.x
    my = py - area.y
    half_w = area.w // 2
    half_h = area.h // 2

    if is_root and settings.document_mode and my < DOCUMENT_BAND:
        x = cell.x
        third = area.w // 3
        if third < mx < area.w - third:
            x = area.x + half_w - cell.w // 2
        return TileResult(Rect(x, area.y, cell.w, area.h), Zone.DOCUMENT, depth)

    size = settings.corner_proximity
    if _in_band(my, half_h, size) and _in_band(mx, half_w, size):
        return TileResult(area, Zone.FULL, depth)

    size = settings.edge_proximity
    if _in_band(my, half_h, size):
        if is_root:
            rect = cell.replace(y=area.y + half_h - cell.h // 2)
        else:
            rect = cell.replace(y=area.y, h=area.h)
        return TileResult(rect, Zone.VERTICAL, depth)

    if _in_band(mx, half_w, size):
        if is_root:
            rect = cell.replace(x=area.x + half_w - cell.w // 2)
        else:
            rect = cell.replace(x=area.x, w=area.w)
        return TileResult(rect, Zone.HORIZONTAL, depth)

    if budget > 0:
        return classify(
            cell, px, py, SUB_COLUMNS, SUB_ROWS, budget - 1, settings,
            is_root=False, depth=depth + 1,
        )

    return TileResult(cell, Zone.GRID, depth)


def compute_tile(area: Rect, px: int, py: int, settings: ZoneSettings) -> TileResult:
    """Llamada raiz: grilla y presupuesto tomados de *settings*."""
    result = classify(
        area, px, py,
        settings.columns, settings.rows, settings.split_depth, settings,
    )
    log.debug(
        "Tile: %s | zona=%s | nivel=%d | puntero=%d,%d",
        result.rect, result.zone.value, result.depth, px, py,
    )
    return result

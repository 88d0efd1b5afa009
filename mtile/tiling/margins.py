"""
mtile.tiling.margins - Ajuste del rectangulo destino a los margenes.

Resta primero el tamano de las decoraciones (el window manager las dibuja
fuera del area de contenido) y luego recorta cada borde que invade un
margen configurado de la region. Los margenes nunca agrandan el
rectangulo: solo lo desplazan hacia adentro y lo achican.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from mtile.tiling.rect import Rect


@dataclass(frozen=True, slots=True)
class Margins:
    """Margenes opcionales (px) medidos desde cada borde de la region."""

    left: Optional[int] = None
    top: Optional[int] = None
    right: Optional[int] = None
    bottom: Optional[int] = None


def apply_margins(
    target: Rect,
    region: Rect,
    margins: Margins,
    decoration_width: int = 0,
    decoration_height: int = 0,
) -> Rect:
    """
    Ajusta *target* al area util de *region*.

    Args:
        target:            Rectangulo calculado por el clasificador.
        region:            Region activa.
        margins:           Margenes configurados.
        decoration_width:  Bordes izquierdo + derecho de la ventana.
        decoration_height: Barra de titulo + borde inferior.

    Returns:
        Nuevo Rect con el tamano del contenido de la ventana.
    """
    x, y = target.x, target.y
    w = max(0, target.w - decoration_width)
    h = max(0, target.h - decoration_height)

    if margins.left is not None:
        overage = x - (region.x + margins.left)
        if overage < 0:
            x -= overage
            w += overage

    if margins.top is not None:
        overage = y - (region.y + margins.top)
        if overage < 0:
            y -= overage
            h += overage

    if margins.right is not None:
        overage = x + w - (region.x2 - margins.right)
        if overage > 0:
            w -= overage

    if margins.bottom is not None:
        overage = y + h - (region.y2 - margins.bottom)
        if overage > 0:
            h -= overage

    # Un margen mayor que el tile lo colapsa sobre su propio borde
    if w < 0:
        x, w = min(x, target.x2), 0
    if h < 0:
        y, h = min(y, target.y2), 0

    return Rect(x, y, w, h)

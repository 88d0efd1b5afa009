"""
mtile.tiling.rect - Estructura geometrica Rect.

Define un rectangulo inmutable que representa un area de pantalla.
Se usa para describir tanto las regiones (monitores fisicos y virtuales)
como el rectangulo destino calculado para la ventana activa.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from mtile.core.errors import GeometryParseError

# Gramatica "WxH+X+Y" (la misma que usan xrandr y xdotool)
_GEOMETRY_RE = re.compile(r"^\s*(\d+)x(\d+)\+(-?\d+)\+(-?\d+)\s*$")


@dataclass(frozen=True, slots=True)
class Rect:
    """
    Rectangulo inmutable definido por posicion (x, y) y dimensiones (w, h).

    Todas las coordenadas estan en pixeles. El origen (0, 0) es la esquina
    superior-izquierda de la pantalla X.

    Atributos:
        x: Coordenada horizontal de la esquina superior-izquierda.
        y: Coordenada vertical de la esquina superior-izquierda.
        w: Ancho en pixeles.
        h: Alto en pixeles.
    """

    x: int
    y: int
    w: int
    h: int

    def __post_init__(self) -> None:
        if self.w < 0 or self.h < 0:
            raise ValueError(f"Rect con dimensiones negativas: {self.w}x{self.h}")

    # ------------------------------------------------------------------
    # Propiedades derivadas
    # ------------------------------------------------------------------
    @property
    def x2(self) -> int:
        return self.x + self.w

    @property
    def y2(self) -> int:
        return self.y + self.h

    @property
    def center_x(self) -> int:
        return self.x + self.w // 2

    @property
    def center_y(self) -> int:
        return self.y + self.h // 2

    # ------------------------------------------------------------------
    # Consultas
    # ------------------------------------------------------------------
    def contains(self, px: int, py: int) -> bool:
        """True si el punto esta dentro del rectangulo (bordes incluidos)."""
        return self.x <= px <= self.x2 and self.y <= py <= self.y2

    def contains_rect(self, other: Rect) -> bool:
        """True si *other* cabe completo dentro de este rectangulo."""
        return (
            other.x >= self.x
            and other.y >= self.y
            and other.x2 <= self.x2
            and other.y2 <= self.y2
        )

    # ------------------------------------------------------------------
    # Operaciones geometricas
    # ------------------------------------------------------------------
    def slice_rows(self, count: int) -> list[Rect]:
        """
        Divide el rectangulo en *count* filas de igual alto.

        Args:
            count: Numero de filas.

        Returns:
            Lista de Rect, de arriba hacia abajo.
        """
        if count <= 0:
            return []
        if count == 1:
            return [self]

        base_h = self.h // count
        rects: list[Rect] = []
        y = self.y

        for i in range(count):
            # La ultima fila absorbe los pixeles sobrantes
            h = base_h if i < count - 1 else self.h - (y - self.y)
            rects.append(Rect(self.x, y, self.w, h))
            y += h

        return rects

    def slice_columns(self, count: int) -> list[Rect]:
        """
        Divide el rectangulo en *count* columnas de igual ancho.

        Args:
            count: Numero de columnas.

        Returns:
            Lista de Rect, de izquierda a derecha.
        """
        if count <= 0:
            return []
        if count == 1:
            return [self]

        base_w = self.w // count
        rects: list[Rect] = []
        x = self.x

        for i in range(count):
            w = base_w if i < count - 1 else self.w - (x - self.x)
            rects.append(Rect(x, self.y, w, self.h))
            x += w

        return rects

    def replace(
        self,
        x: int | None = None,
        y: int | None = None,
        w: int | None = None,
        h: int | None = None,
    ) -> Rect:
        """Retorna una copia con los campos indicados reemplazados."""
        return Rect(
            self.x if x is None else x,
            self.y if y is None else y,
            self.w if w is None else w,
            self.h if h is None else h,
        )

    # ------------------------------------------------------------------
    # Conversion desde/hacia la gramatica "WxH+X+Y"
    # ------------------------------------------------------------------
    @classmethod
    def parse(cls, text: str) -> Rect:
        """
        Crea un Rect desde una geometria "WxH+X+Y".

        Raises:
            GeometryParseError: Si el texto no respeta la gramatica.
        """
        match = _GEOMETRY_RE.match(text)
        if match is None:
            raise GeometryParseError(f"geometria invalida: {text!r}")
        w, h, x, y = (int(g) for g in match.groups())
        return cls(x, y, w, h)

    # ------------------------------------------------------------------
    # Representacion
    # ------------------------------------------------------------------
    def __str__(self) -> str:
        return f"{self.w}x{self.h}+{self.x}+{self.y}"

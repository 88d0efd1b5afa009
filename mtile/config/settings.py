"""
mtile.config.settings - Configuracion de mtile.

Se carga una sola vez al iniciar, en tres capas (la ultima gana):

    1. Valores por defecto.
    2. Archivo opcional <config_dir>/mtile/config.toml
    3. Variables de entorno MTILE__*

Ejemplo de config.toml:

    split_depth = 2
    display_columns = 3
    edge_proximity_size = 40
    virtual_displays = ["1280x1440+0+0", "1280x1440+1280+0"]

    [margins]
    top = 32
"""

from __future__ import annotations

import logging
import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from mtile.core.errors import ConfigError, EnvironmentNotReady, GeometryParseError
from mtile.tiling.margins import Margins
from mtile.tiling.rect import Rect
from mtile.tiling.zones import ZoneSettings

log = logging.getLogger(__name__)

ENV_PREFIX = "MTILE__"
CONFIG_FILE = Path("mtile") / "config.toml"

# Claves enteras del archivo -> campo de ZoneSettings
_ZONE_KEYS: dict[str, str] = {
    "split_depth": "split_depth",
    "display_columns": "columns",
    "display_rows": "rows",
    "edge_proximity_size": "edge_proximity",
    "corner_proximity_size": "corner_proximity",
}

_MARGIN_SIDES = ("left", "top", "right", "bottom")

_KNOWN_KEYS = frozenset(_ZONE_KEYS) | {
    "disable_document_mode",
    "skip_malformed_displays",
    "virtual_displays",
    "margins",
}


# ============================================================================
# Settings
# ============================================================================
@dataclass(frozen=True, slots=True)
class Settings:
    """
    Configuracion efectiva de una ejecucion.

    Atributos:
        zones:                   Parametros del clasificador de zonas.
        margins:                 Margenes de cada region.
        virtual_displays:        Regiones virtuales en orden de declaracion.
        skip_malformed_displays: Omitir (True) o abortar ante monitores invalidos.
        daemon_mode:             Usar el canal de coordinacion.
        idle_timeout:            Segundos sin senales antes de salir (None = nunca).
        verbose:                 Log de cada comando enviado al servidor X.
        dump_stats:              Log del estado completo de cada activacion.
        config_dir:              Directorio de configuracion usado.
    """

    zones: ZoneSettings = field(default_factory=ZoneSettings)
    margins: Margins = field(default_factory=Margins)
    virtual_displays: tuple[Rect, ...] = ()
    skip_malformed_displays: bool = True
    daemon_mode: bool = True
    idle_timeout: Optional[float] = None
    verbose: bool = False
    dump_stats: bool = False
    config_dir: Optional[Path] = None

    # ------------------------------------------------------------------
    # Carga
    # ------------------------------------------------------------------
    @classmethod
    def load(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """
        Construye la configuracion desde archivo y entorno.

        Raises:
            EnvironmentNotReady: El directorio de configuracion no existe.
            ConfigError: Un valor del archivo o del entorno es invalido.
        """
        env = os.environ if environ is None else environ

        config_dir = resolve_config_dir(env)
        if not config_dir.is_dir():
            raise EnvironmentNotReady(f"bad config directory: {config_dir}")

        data = read_config_file(config_dir / CONFIG_FILE)

        zone_values: dict[str, Any] = {}
        for key, attr in _ZONE_KEYS.items():
            if key in data:
                zone_values[attr] = _as_int(key, data[key])

        document_mode = not bool(data.get("disable_document_mode", False))
        skip_malformed = bool(data.get("skip_malformed_displays", True))

        margin_values: dict[str, Optional[int]] = {}
        margins_table = data.get("margins", {})
        if not isinstance(margins_table, dict):
            raise ConfigError("margins must be a table")
        for side in _MARGIN_SIDES:
            if side in margins_table:
                margin_values[side] = _as_int(f"margins.{side}", margins_table[side])

        virtual = _parse_virtual_displays(data.get("virtual_displays", []))

        # -- Variables de entorno --------------------------------------
        for key, attr in _ZONE_KEYS.items():
            raw = env.get(ENV_PREFIX + key.upper())
            if raw:
                zone_values[attr] = _as_int(ENV_PREFIX + key.upper(), raw)

        if env.get(ENV_PREFIX + "DISABLE_DOCUMENT_MODE"):
            document_mode = False

        for side in _MARGIN_SIDES:
            name = f"{ENV_PREFIX}MARGIN_{side.upper()}"
            raw = env.get(name)
            if raw:
                margin_values[side] = _as_int(name, raw)

        idle_timeout = None
        raw = env.get(ENV_PREFIX + "IDLE_TIMEOUT")
        if raw:
            try:
                idle_timeout = float(raw)
            except ValueError:
                raise ConfigError(f"{ENV_PREFIX}IDLE_TIMEOUT: not a number: {raw!r}") from None

        verbose = bool(env.get(ENV_PREFIX + "VERBOSE"))
        dump_stats = verbose or bool(env.get(ENV_PREFIX + "DUMP_STATS"))

        # La esquina hereda el tamano del borde si no se definio
        zone_values.setdefault(
            "corner_proximity",
            zone_values.get("edge_proximity", ZoneSettings().edge_proximity),
        )

        settings = cls(
            zones=ZoneSettings(document_mode=document_mode, **zone_values),
            margins=Margins(**margin_values),
            virtual_displays=virtual,
            skip_malformed_displays=skip_malformed,
            daemon_mode=not env.get(ENV_PREFIX + "DISABLE_DAEMON_MODE"),
            idle_timeout=idle_timeout,
            verbose=verbose,
            dump_stats=dump_stats,
            config_dir=config_dir,
        )
        settings.validate()
        return settings

    def validate(self) -> None:
        """Raises ConfigError si algun valor esta fuera de rango."""
        z = self.zones
        if z.columns < 1 or z.rows < 1:
            raise ConfigError(f"display grid must be at least 1x1, got {z.columns}x{z.rows}")
        if z.split_depth < 0:
            raise ConfigError(f"split_depth must be >= 0, got {z.split_depth}")
        if z.edge_proximity < 0 or z.corner_proximity < 0:
            raise ConfigError("proximity sizes must be >= 0")
        for side in _MARGIN_SIDES:
            value = getattr(self.margins, side)
            if value is not None and value < 0:
                raise ConfigError(f"margin {side} must be >= 0, got {value}")
        if self.idle_timeout is not None and self.idle_timeout <= 0:
            raise ConfigError("idle timeout must be positive")


# ============================================================================
# Helpers
# ============================================================================
def resolve_config_dir(env: Mapping[str, str]) -> Path:
    """$CONFIG_DIR, si no $XDG_CONFIG_HOME, si no ~/.config"""
    for name in ("CONFIG_DIR", "XDG_CONFIG_HOME"):
        value = env.get(name)
        if value:
            return Path(value)
    return Path(env.get("HOME") or Path.home()) / ".config"


def read_config_file(path: Path) -> dict[str, Any]:
    """Lee el archivo TOML; un archivo ausente equivale a uno vacio."""
    if not path.is_file():
        return {}

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"{path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"cannot read {path}: {e}") from e

    for key in data:
        if key not in _KNOWN_KEYS:
            log.warning("%s: clave desconocida ignorada: %r", path, key)

    log.info("Configuracion cargada: %s", path)
    return data


def _as_int(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{name}: expected an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name}: expected an integer, got {value!r}") from None


def _parse_virtual_displays(entries: Any) -> tuple[Rect, ...]:
    if not isinstance(entries, list):
        raise ConfigError("virtual_displays must be a list of WxH+X+Y strings")

    rects: list[Rect] = []
    for entry in entries:
        try:
            rects.append(Rect.parse(str(entry)))
        except GeometryParseError as e:
            raise ConfigError(f"virtual_displays: {e}") from e
    return tuple(rects)

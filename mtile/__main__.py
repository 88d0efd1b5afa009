"""
mtile - Entry point.

Run with:  python -m mtile   (or the `mtile` console script)

Bind it to a key or mouse button: the first invocation places the active
window and keeps listening; every invocation after that only signals the
running instance.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Mapping

from mtile.config.settings import Settings
from mtile.core.activation import Activator
from mtile.core.coordinator import ActivationCoordinator, SignalChannel
from mtile.core.errors import MtileError
from mtile.core.x11 import X11Display

log = logging.getLogger("mtile")


class SafeStreamHandler(logging.StreamHandler):
    """Handler that replaces unencodable characters instead of crashing."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            enc = getattr(self.stream, "encoding", "utf-8") or "utf-8"
            safe = msg.encode(enc, errors="replace").decode(enc, errors="replace")
            self.stream.write(safe + self.terminator)
            self.flush()
        except Exception:
            self.handleError(record)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for mtile."""
    fmt = "%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s: %(message)s"
    handler = SafeStreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(fmt, datefmt="%H:%M:%S"))

    logging.getLogger().addHandler(handler)
    set_verbose(verbose)


def set_verbose(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.getLogger().setLevel(level)

    # Per-tick enforcer chatter only with verbose
    logging.getLogger("mtile.core.enforcer").setLevel(level)


def main(environ: Mapping[str, str] | None = None) -> int:
    setup_logging()

    try:
        settings = Settings.load(environ)
    except MtileError as e:
        log.error("%s", e)
        return 1
    set_verbose(settings.verbose)

    # Hand off to a running instance before touching the X server
    channel = None
    if settings.daemon_mode:
        channel = SignalChannel(SignalChannel.default_path(environ))
        try:
            if not channel.claim():
                return 0
        except MtileError as e:
            log.error("%s", e)
            return 1

    display = None
    try:
        display = X11Display()
        display.check_environment()

        activator = Activator(display, settings)
        activator.check_regions()
    except MtileError as e:
        log.error("%s", e)
        if channel is not None:
            channel.close()
        if display is not None:
            display.close()
        return 1

    log.info(
        "mtile running | grid=%dx%d | split_depth=%d | daemon=%s | config=%s",
        settings.zones.columns,
        settings.zones.rows,
        settings.zones.split_depth,
        settings.daemon_mode,
        settings.config_dir,
    )

    coordinator = ActivationCoordinator(
        activator.activate,
        channel,
        idle_timeout=settings.idle_timeout,
    )
    try:
        return coordinator.serve()
    finally:
        activator.shutdown()
        display.close()


if __name__ == "__main__":
    sys.exit(main())

"""
mtile.core.coordinator - Single-instance activation coordinator.

The first mtile process of a user session becomes the owner of a named
pipe (the signal channel) and runs activations.  Every later invocation
finds the pipe, writes one byte into it and exits immediately; the owner
wakes up and runs exactly one more activation for however many bytes
piled up in the meantime.

    owner:     claim() -> activate -> wait(1s) -> activate -> wait(1s) ...
    signaller: claim() fails -> notify() -> exit
"""

from __future__ import annotations

import errno
import fcntl
import getpass
import logging
import os
import select
import signal
import stat
from collections.abc import Callable
from pathlib import Path
from typing import Optional

from mtile.core.errors import EnvironmentNotReady, MtileError

log = logging.getLogger(__name__)

# Activations are coalesced over this window (seconds)
COALESCE_WINDOW = 1.0

SIGNAL_BYTE = b"1"


# ============================================================================
# SignalChannel
# ============================================================================
class SignalChannel:
    """
    Named pipe used to hand activation requests to the owning process.

    The owner keeps the pipe open read/write so it never sees end-of-file
    and so that signallers can always open it while the owner lives.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._fd: Optional[int] = None

    @staticmethod
    def default_path(environ: dict[str, str] | None = None) -> Path:
        """${TMPDIR:-${XDG_RUNTIME_DIR:-/tmp}}/mtile__signal_<user>"""
        env = os.environ if environ is None else environ
        temp_dir = env.get("TMPDIR") or env.get("XDG_RUNTIME_DIR") or "/tmp"
        return Path(temp_dir) / f"mtile__signal_{getpass.getuser()}"

    @property
    def path(self) -> Path:
        return self._path

    @property
    def lock_path(self) -> Path:
        return self._path.with_name(self._path.name + ".lock")

    @property
    def owned(self) -> bool:
        return self._fd is not None

    # ------------------------------------------------------------------
    # Signaller side
    # ------------------------------------------------------------------
    def notify(self) -> bool:
        """
        Write one signal byte without blocking.

        Returns:
            True if a live owner will see the request (including when the
            pipe is full and the byte is coalesced away), False if there is
            no pipe or nobody is reading it.
        """
        try:
            fd = os.open(self._path, os.O_WRONLY | os.O_NONBLOCK)
        except FileNotFoundError:
            return False
        except OSError as e:
            if e.errno == errno.ENXIO:
                return False
            raise

        try:
            os.write(fd, SIGNAL_BYTE)
        except BlockingIOError:
            log.debug("Signal channel saturated, request coalesced")
        finally:
            os.close(fd)
        return True

    # ------------------------------------------------------------------
    # Owner side
    # ------------------------------------------------------------------
    def claim(self) -> bool:
        """
        Become the owner of the channel, or signal the existing owner.

        Claims are serialized with an exclusive lock on a file next to the
        pipe, so two processes started together never both see an unread
        pipe and both take ownership.

        Returns:
            True if this process is now the owner, False if a live owner
            was signalled instead.

        Raises:
            EnvironmentNotReady: The path exists and is not a FIFO, or the
                channel cannot be created.
        """
        parent = self._path.parent
        try:
            if not parent.is_dir():
                parent.mkdir(mode=0o700, parents=True, exist_ok=True)
            lock_fd = os.open(self.lock_path, os.O_RDWR | os.O_CREAT, 0o600)
        except OSError as e:
            raise EnvironmentNotReady(
                f"cannot create signal channel {self._path}: {e}"
            ) from e

        try:
            fcntl.flock(lock_fd, fcntl.LOCK_EX)
            return self._claim_locked()
        finally:
            # Closing the descriptor releases the lock
            os.close(lock_fd)

    def _claim_locked(self) -> bool:
        for _ in range(2):
            try:
                os.mkfifo(self._path, 0o600)
            except FileExistsError:
                if not stat.S_ISFIFO(os.stat(self._path).st_mode):
                    raise EnvironmentNotReady(
                        f"signal channel path is not a FIFO: {self._path}"
                    ) from None
                if self.notify():
                    log.info("mtile already running, signalled %s", self._path)
                    return False
                # Left behind by an owner that did not exit cleanly
                log.warning("Removing stale signal channel %s", self._path)
                self._path.unlink(missing_ok=True)
                continue
            except OSError as e:
                raise EnvironmentNotReady(
                    f"cannot create signal channel {self._path}: {e}"
                ) from e

            try:
                self._fd = os.open(self._path, os.O_RDWR | os.O_NONBLOCK)
            except OSError as e:
                raise EnvironmentNotReady(
                    f"cannot open signal channel {self._path}: {e}"
                ) from e
            log.debug("Signal channel owned: %s", self._path)
            return True

        raise EnvironmentNotReady(f"cannot claim signal channel {self._path}")

    def wait(self, timeout: float) -> bool:
        """
        Block until at least one signal arrives or *timeout* elapses.

        All pending bytes are consumed, so a burst of signals counts once.
        """
        if self._fd is None:
            raise RuntimeError("wait() on a channel that is not owned")

        ready, _, _ = select.select([self._fd], [], [], timeout)
        if not ready:
            return False

        while True:
            try:
                if not os.read(self._fd, 4096):
                    break
            except BlockingIOError:
                break
        return True

    def close(self) -> None:
        """Release the pipe and remove it from the filesystem."""
        if self._fd is None:
            return
        os.close(self._fd)
        self._fd = None
        self._path.unlink(missing_ok=True)
        log.debug("Signal channel removed: %s", self._path)


# ============================================================================
# ActivationCoordinator
# ============================================================================
class ActivationCoordinator:
    """
    Runs activations one at a time in response to channel signals.

    Usage:
        channel = SignalChannel(SignalChannel.default_path())
        if channel.claim():
            ActivationCoordinator(activator.activate, channel).serve()
    """

    def __init__(
        self,
        activate: Callable[[], object],
        channel: Optional[SignalChannel] = None,
        window: float = COALESCE_WINDOW,
        idle_timeout: Optional[float] = None,
    ) -> None:
        self._activate = activate
        self._channel = channel
        self._window = window
        self._idle_timeout = idle_timeout
        self._running = False

        # Counters (for logging and tests)
        self.activations = 0
        self.failures = 0

    @property
    def running(self) -> bool:
        return self._running

    def run_once(self) -> bool:
        """
        Run a single activation.

        Per-activation failures are reported and swallowed so the
        coordinator can keep serving; anything else propagates.
        """
        self.activations += 1
        try:
            self._activate()
        except MtileError as e:
            self.failures += 1
            log.error("Activation failed: %s", e)
            return False
        return True

    def serve(self, handle_signals: bool = True) -> int:
        """
        Run the immediate activation, then one per coalesced signal.

        Without a channel this is a single activation.  The channel is
        closed (and removed) when the loop ends, whatever the reason.

        Returns:
            Process exit status.
        """
        if self._channel is None:
            return 0 if self.run_once() else 1

        if not self._channel.owned:
            raise RuntimeError("serve() requires a claimed channel")

        previous = {}
        if handle_signals:
            def _signal_handler(sig: int, frame: object) -> None:
                log.info("Signal %d received, stopping...", sig)
                self.stop()

            for sig in (signal.SIGINT, signal.SIGTERM):
                previous[sig] = signal.signal(sig, _signal_handler)

        self._running = True
        try:
            self.run_once()

            idle = 0.0
            while self._running:
                if self._channel.wait(self._window):
                    idle = 0.0
                    if self._running:
                        self.run_once()
                    continue

                idle += self._window
                if self._idle_timeout is not None and idle >= self._idle_timeout:
                    log.info("No activation for %.1fs, exiting", idle)
                    break
        finally:
            self._running = False
            self._channel.close()
            for sig, handler in previous.items():
                signal.signal(sig, handler)

        log.info(
            "Coordinator stopped: %d activations, %d failed",
            self.activations,
            self.failures,
        )
        return 0

    def stop(self) -> None:
        """Request the loop to stop after the current wait."""
        self._running = False

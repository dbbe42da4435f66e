"""Asynchronous screen capture.

Uses the wayland-capture binary for the actual capture. The binary is
spawned from the GLib main loop and watched for exit, so nothing blocks
the UI; the caller gets a CaptureResult through a callback. The temporary
file in the result must be handled by the caller.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from . import files
from .config import Config, get_config
from .geometry import Rect

log = logging.getLogger(__name__)


class CaptureError(Exception):
    """Raised when the capture process cannot be started."""
    pass


@dataclass
class CaptureResult:
    """Outcome of one capture."""

    success: bool
    path: Optional[str]
    area: Rect

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "path": self.path,
            "area": self.area.to_dict(),
        }


CaptureCallback = Callable[[CaptureResult], None]


def build_command(rect: Rect, path: str, config: Config) -> list[str]:
    return [
        config.capture_command,
        "--region", f"{rect.left},{rect.top},{rect.width},{rect.height}",
        "--output-file", path,
    ]


class CaptureHandle:
    """One in-flight capture; ``cancel()`` drops its result."""

    def __init__(self, rect: Rect, on_done: CaptureCallback, config: Config):
        self.rect = rect
        self.config = config
        self._on_done = on_done
        self._path: Optional[str] = None
        self._timeout_id: Optional[int] = None
        self._finished = False
        self.cancelled = False

    def start(self) -> "CaptureHandle":
        from gi.repository import GLib

        delay = max(0, int(self.config.capture_delay_ms))
        # Give the compositor a frame to repaint without the overlay
        self._timeout_id = GLib.timeout_add(delay, self._spawn)
        return self

    def cancel(self) -> None:
        if self.cancelled or self._finished:
            return
        self.cancelled = True
        if self._timeout_id is not None:
            from gi.repository import GLib

            GLib.source_remove(self._timeout_id)
            self._timeout_id = None
        log.debug("Capture of %s cancelled", self.rect)

    def _spawn(self) -> bool:
        from gi.repository import GLib

        self._timeout_id = None
        if self.cancelled:
            return False

        self._path = files.temp_file(".png")
        argv = build_command(self.rect, self._path, self.config)
        log.debug("Spawning %s", " ".join(argv))
        try:
            pid, _, _, _ = GLib.spawn_async(
                argv,
                flags=GLib.SpawnFlags.SEARCH_PATH | GLib.SpawnFlags.DO_NOT_REAP_CHILD,
            )
        except GLib.Error as e:
            log.error("Could not start %s: %s", self.config.capture_command, e.message)
            self._finish(False)
            return False

        GLib.child_watch_add(GLib.PRIORITY_DEFAULT, pid, self._on_child_exit)
        return False

    def _on_child_exit(self, pid: int, status: int) -> None:
        from gi.repository import GLib

        GLib.spawn_close_pid(pid)
        code = os.waitstatus_to_exitcode(status)
        if code != 0:
            log.error("Screen capture failed with exit code %d", code)
        self._finish(code == 0)

    def _finish(self, success: bool) -> None:
        self._finished = True
        path = self._path

        if not success or self.cancelled:
            if path:
                Path(path).unlink(missing_ok=True)
            path = None

        if self.cancelled:
            return

        if success and path and (not Path(path).is_file() or Path(path).stat().st_size == 0):
            log.error("Screen capture produced no image in %s", path)
            Path(path).unlink(missing_ok=True)
            success, path = False, None

        self._on_done(CaptureResult(success=success, path=path, area=self.rect))


def capture_area(
    rect: Rect,
    on_done: CaptureCallback,
    config: Optional[Config] = None,
) -> CaptureHandle:
    """Capture ``rect`` to a new temporary PNG file.

    Returns immediately; ``on_done`` receives the CaptureResult once the
    capture process exits.

    Raises:
        CaptureError: If the rectangle is empty
    """
    config = config or get_config()
    if rect.is_empty:
        raise CaptureError(f"Refusing to capture empty area {rect}")
    return CaptureHandle(rect, on_done, config).start()

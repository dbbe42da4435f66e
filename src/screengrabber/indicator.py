"""Capture actions and the single active grab session.

The indicator is what the tray menu, global shortcuts and one-shot CLI
runs drive. At most one grab session exists at a time; starting an action
cancels the running one, and so does any monitor layout change.
"""

import logging
from typing import Callable, Optional

from . import windows as window_list
from .capture import capture_area
from .config import Config
from .events import Channel
from .geometry import Rect
from .grabber import (
    CaptureFunc,
    GrabSession,
    Mode,
    monitor_highlights,
    window_highlights,
)
from .pipeline import Pipeline
from .screen import Screen
from .surface import Backend

log = logging.getLogger(__name__)

HINTS = {
    Mode.MONITOR: ["Click a monitor to capture it", "Esc or right click to cancel"],
    Mode.WINDOW: ["Click a window to capture it", "Esc or right click to cancel"],
    Mode.SELECTION: ["Drag to select an area", "Esc or right click to cancel"],
}

BackendFactory = Callable[[Mode, Rect], Backend]


def overlay_backend(mode: Mode, bounds: Rect) -> Backend:
    from .ui.overlay import OverlayWindow

    return OverlayWindow(bounds, HINTS.get(mode))


class Indicator:
    """Entry point of every capture."""

    def __init__(
        self,
        config: Config,
        screen: Screen,
        capture: Optional[CaptureFunc] = None,
        backend_factory: Optional[BackendFactory] = None,
        windows: Optional[Callable[[bool], list]] = None,
        pipeline: Optional[Pipeline] = None,
        pointer: Optional[Callable[[], Optional[tuple[int, int]]]] = None,
    ):
        self.config = config
        self.screen = screen
        self.pipeline = pipeline or Pipeline(config)
        self.session: Optional[GrabSession] = None
        self.finished = Channel("finished")

        self._capture = capture or (lambda rect, on_done: capture_area(rect, on_done, self.config))
        self._backend_factory = backend_factory or overlay_backend
        self._windows = windows or window_list.list_windows
        self._pointer = pointer or window_list.get_cursor_position
        self._monitors_handler = screen.monitors_changed.connect(self._on_monitors_changed)

    def update_config(self, config: Config) -> None:
        self.config = config
        self.pipeline.config = config

    # Actions

    def desktop(self) -> Optional[GrabSession]:
        return self._start(Mode.DESKTOP)

    def monitor(self) -> Optional[GrabSession]:
        return self._start(Mode.MONITOR, monitor_highlights(self.screen.monitors()))

    def window(self) -> Optional[GrabSession]:
        try:
            found = self._windows(self.config.shadows)
        except Exception as e:
            log.warning("Could not list windows: %s", e)
            found = []
        return self._start(Mode.WINDOW, window_highlights(found))

    def selection(self) -> Optional[GrabSession]:
        return self._start(Mode.SELECTION)

    def cancel(self) -> None:
        """Cancel the running session, if any."""
        session = self.session
        if session is not None:
            session.cancel()
        self.session = None

    def destroy(self) -> None:
        self.cancel()
        self.pipeline.cancel()
        self.screen.monitors_changed.disconnect(self._monitors_handler)
        self.finished.clear()

    def _start(self, mode: Mode, highlights: Optional[list[Rect]] = None) -> Optional[GrabSession]:
        self.cancel()

        bounds = self.screen.bounds()
        if bounds.is_empty:
            log.warning("No monitors, cannot take a screenshot")
            return None

        log.debug("Starting %s capture over %s", mode.value, bounds)
        # DESKTOP captures right away and needs no overlay
        backend = None if mode is Mode.DESKTOP else self._backend_factory(mode, bounds)
        session = GrabSession(mode, bounds, self._capture, highlights, backend)
        session.screenshot.connect(lambda result: self._on_screenshot(session, result))
        session.cancel_requested.connect(lambda: self._on_session_cancelled(session))
        self.session = session

        pointer = None
        if mode is not Mode.DESKTOP:
            pointer = self._pointer()
        session.start(pointer)
        return session

    # Session events

    def _on_screenshot(self, session: GrabSession, result) -> None:
        if session is self.session:
            self.session = None
        self.pipeline.run(result, on_finished=self.finished.emit)

    def _on_session_cancelled(self, session: GrabSession) -> None:
        if session is not self.session:
            return
        self.session = None
        log.debug("%s capture cancelled", session.mode.value)
        self.finished.emit(None)

    def _on_monitors_changed(self) -> None:
        if self.session is not None:
            log.info("Monitor layout changed, cancelling capture")
            self.cancel()

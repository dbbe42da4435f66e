"""Selection strategies and grab sessions.

A grab session owns one overlay surface and one input strategy chosen by
capture mode:

- DESKTOP: the whole desktop, no interaction
- MONITOR / WINDOW: hover to highlight a monitor or window, click to take it
- SELECTION: drag a free rectangle

The session turns a confirmed selection into a capture request and reports
``screenshot`` or ``cancel`` to its owner.
"""

import enum
import logging
from pathlib import Path
from typing import Callable, Iterable, Optional

from .capture import CaptureResult
from .events import Channel
from .geometry import Rect, normalize
from .surface import Backend, OverlaySurface
from .windows import WindowInfo, WindowKind

log = logging.getLogger(__name__)

BUTTON_PRIMARY = 1
BUTTON_SECONDARY = 3

SELECTABLE_WINDOW_KINDS = (WindowKind.NORMAL, WindowKind.DIALOG, WindowKind.MODAL_DIALOG)


class Mode(enum.Enum):
    DESKTOP = "desktop"
    MONITOR = "monitor"
    WINDOW = "window"
    SELECTION = "selection"


def monitor_highlights(monitors: Iterable[Rect]) -> list[Rect]:
    return [monitor.copy() for monitor in monitors]


def window_highlights(windows: Iterable[WindowInfo]) -> list[Rect]:
    """Visible normal and dialog windows, lowest stacking layer first.

    Overlapping windows are kept as they are; hover picks the first match.
    """
    candidates = [
        window for window in windows
        if window.visible and window.kind in SELECTABLE_WINDOW_KINDS
    ]
    candidates.sort(key=lambda window: window.layer)
    return [window.rect.copy() for window in candidates]


class DesktopInput:
    """Whole desktop; pointer input is ignored."""

    def __init__(self, surface: OverlaySurface):
        self.surface = surface
        surface.select_all()

    def on_enter(self, x, y):
        pass

    def on_motion(self, x, y):
        pass

    def on_button_press(self, button, x, y):
        pass

    def on_button_release(self, button, x, y):
        pass


class HighlightInput:
    """Select the first highlight under the pointer."""

    def __init__(self, surface: OverlaySurface, highlights: list[Rect]):
        self.surface = surface
        self.highlights = highlights

    def highlight_at(self, x: float, y: float) -> Optional[Rect]:
        for rect in self.highlights:
            if rect.contains(x, y):
                return rect
        return None

    def _select(self, x: float, y: float) -> None:
        rect = self.highlight_at(x, y)
        if rect is None:
            self.surface.clear_selection()
        else:
            self.surface.set_selection(rect)

    def on_enter(self, x, y):
        self._select(x, y)

    def on_motion(self, x, y):
        self._select(x, y)

    def on_button_press(self, button, x, y):
        if button == BUTTON_SECONDARY:
            self.surface.cancel()
        elif button == BUTTON_PRIMARY and self.surface.get_selection() is not None:
            self.surface.confirm()

    def on_button_release(self, button, x, y):
        pass


class DragInput:
    """Free rectangle drawn by dragging with the primary button."""

    def __init__(self, surface: OverlaySurface):
        self.surface = surface
        self.anchor: Optional[tuple[float, float]] = None

    def on_enter(self, x, y):
        pass

    def on_motion(self, x, y):
        if self.anchor is None:
            return
        ax, ay = self.anchor
        rect = normalize(ax, ay, x - ax, y - ay, self.surface.bounds)
        if rect.is_empty:
            self.surface.clear_selection()
        else:
            self.surface.set_selection(rect)

    def on_button_press(self, button, x, y):
        if button == BUTTON_SECONDARY:
            self.anchor = None
            self.surface.cancel()
        elif button == BUTTON_PRIMARY:
            self.anchor = (x, y)

    def on_button_release(self, button, x, y):
        if button != BUTTON_PRIMARY or self.anchor is None:
            return
        self.anchor = None
        if self.surface.get_selection() is not None:
            self.surface.confirm()


def make_strategy(mode: Mode, surface: OverlaySurface, highlights: list[Rect]):
    if mode is Mode.DESKTOP:
        return DesktopInput(surface)
    if mode in (Mode.MONITOR, Mode.WINDOW):
        return HighlightInput(surface, highlights)
    return DragInput(surface)


# capture(rect, on_done) -> handle with cancel()
CaptureFunc = Callable[[Rect, Callable[[CaptureResult], None]], object]


class GrabSession:
    """One interactive capture, from overlay to captured file."""

    def __init__(
        self,
        mode: Mode,
        bounds: Rect,
        capture: CaptureFunc,
        highlights: Optional[list[Rect]] = None,
        backend: Optional[Backend] = None,
    ):
        self.mode = mode
        self._capture = capture
        self._capture_handle = None
        self._done = False

        self.screenshot = Channel("screenshot")
        self.cancel_requested = Channel("cancel")

        self.surface = OverlaySurface(bounds, backend)
        self.surface.strategy = make_strategy(mode, self.surface, list(highlights or []))
        self.surface.confirmed.connect(self._on_confirmed)
        self.surface.cancelled.connect(self._on_cancelled)

    @property
    def done(self) -> bool:
        return self._done

    def start(self, pointer: Optional[tuple[int, int]] = None) -> None:
        """Show the overlay, or capture right away for DESKTOP."""
        if self.mode is Mode.DESKTOP:
            self.surface.confirm()
            return
        self.surface.open()
        if pointer is not None:
            self.surface.pointer_enter(*pointer)

    def cancel(self) -> None:
        """Abandon the session; safe to call repeatedly."""
        if self._done:
            return
        self._done = True
        if self._capture_handle is not None:
            self._capture_handle.cancel()
            self._capture_handle = None
        # _done is already set, so _on_cancelled ignores this
        self.surface.cancel()
        self.cancel_requested.emit()

    def _on_confirmed(self, rect: Rect) -> None:
        if self._done or self._capture_handle is not None:
            return
        log.debug("Selection confirmed: %s", rect)
        self.surface.close()
        try:
            self._capture_handle = self._capture(rect, self._on_captured)
        except Exception as e:
            log.error("Could not start capture: %s", e)
            self._on_captured(CaptureResult(success=False, path=None, area=rect))

    def _on_captured(self, result: CaptureResult) -> None:
        self._capture_handle = None
        if self._done:
            log.debug("Dropping capture of a finished session")
            if result.path:
                Path(result.path).unlink(missing_ok=True)
            return
        self._done = True
        self.screenshot.emit(result)

    def _on_cancelled(self) -> None:
        if self._done:
            return
        self._done = True
        if self._capture_handle is not None:
            self._capture_handle.cancel()
            self._capture_handle = None
        self.cancel_requested.emit()

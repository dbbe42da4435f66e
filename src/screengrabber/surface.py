"""Overlay surface model.

The surface spans the whole desktop, grabs pointer and keyboard while open
and is made of five regions: four dimmed occluders around a hole, and the
outline of the current selection. The drawing and input grab are done by
a backend (``ui.overlay.OverlayWindow`` on GTK); this module only keeps the
state and the arithmetic, so it runs without a display.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Protocol

from .events import Channel
from .geometry import Rect

log = logging.getLogger(__name__)

KEY_ESCAPE = 0x1B

CURSOR_CROSSHAIR = "crosshair"
CURSOR_DEFAULT = "default"

OCCLUDERS = ("top", "right", "bottom", "left")


class Backend(Protocol):
    """What the surface needs from the windowing toolkit."""

    def attach(self, surface: "OverlaySurface") -> None: ...

    def present(self) -> None: ...

    def grab(self) -> bool: ...

    def release(self) -> None: ...

    def set_cursor(self, name: str) -> None: ...

    def redraw(self) -> None: ...

    def destroy(self) -> None: ...


class Strategy(Protocol):
    """Pointer input handling attached to a surface."""

    def on_enter(self, x: float, y: float) -> None: ...

    def on_motion(self, x: float, y: float) -> None: ...

    def on_button_press(self, button: int, x: float, y: float) -> None: ...

    def on_button_release(self, button: int, x: float, y: float) -> None: ...


@dataclass
class Region:
    """One child area of the surface."""

    name: str
    rect: Rect = field(default_factory=Rect)
    visible: bool = False


class OverlaySurface:
    """Full-desktop input-grabbing surface with a selection hole."""

    def __init__(self, bounds: Rect, backend: Optional[Backend] = None):
        self.bounds = Rect(0, 0, bounds.width, bounds.height)
        self.backend = backend
        self.strategy: Optional[Strategy] = None

        self.regions: Dict[str, Region] = {
            name: Region(name) for name in OCCLUDERS + ("selection",)
        }
        self.has_selection = False
        self.is_open = False
        self._closed = False
        self._cancelled = False

        self.confirmed = Channel("confirmed")
        self.cancelled = Channel("cancelled")

        self._key_handlers: Dict[int, Callable[[], None]] = {
            KEY_ESCAPE: self._on_escape,
        }

        if backend is not None:
            backend.attach(self)

    # Lifecycle

    def open(self) -> None:
        if self._closed or self.is_open:
            return
        self.is_open = True
        if self.backend is not None:
            self.backend.present()
            if not self.backend.grab():
                log.warning("Could not grab pointer and keyboard for overlay")
            self.backend.set_cursor(CURSOR_CROSSHAIR)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        was_open = self.is_open
        self.is_open = False
        self.strategy = None
        self._key_handlers.clear()

        if self.backend is not None:
            backend, self.backend = self.backend, None
            if was_open:
                backend.release()
                backend.set_cursor(CURSOR_DEFAULT)
            backend.destroy()

    @property
    def closed(self) -> bool:
        return self._closed

    # Selection

    def set_selection(self, rect: Rect) -> None:
        """Show ``rect`` as the hole and tile the occluders around it."""
        rect = rect.clamp(self.bounds)
        width, height = self.bounds.width, self.bounds.height
        left, top = rect.left, rect.top
        right, bottom = rect.right, rect.bottom

        self.regions["top"].rect = Rect(0, 0, width, top)
        self.regions["right"].rect = Rect(right, top, width - right, rect.height)
        self.regions["bottom"].rect = Rect(0, bottom, width, height - bottom)
        self.regions["left"].rect = Rect(0, top, left, rect.height)
        self.regions["selection"].rect = rect

        for region in self.regions.values():
            region.visible = True
        self.has_selection = True
        self._redraw()

    def select_all(self) -> None:
        self.set_selection(self.bounds.copy())

    def clear_selection(self) -> None:
        for region in self.regions.values():
            region.visible = False
        self.has_selection = False
        self._redraw()

    def get_selection(self) -> Optional[Rect]:
        selection = self.regions["selection"]
        if not selection.visible:
            return None
        rect = selection.rect
        return Rect(round(rect.left), round(rect.top), round(rect.width), round(rect.height))

    # Outcome

    def confirm(self) -> None:
        """Emit the current selection, unless there is no usable one."""
        if self._cancelled:
            return
        rect = self.get_selection()
        if rect is None or rect.is_empty:
            log.debug("Ignoring confirm without a usable selection: %s", rect)
            return
        self.confirmed.emit(rect)

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        self.close()
        self.cancelled.emit()

    # Input

    def set_key_handler(self, code: int, handler: Callable[[], None]) -> None:
        self._key_handlers[code] = handler

    def key_press(self, code: Optional[int]) -> None:
        handler = self._key_handlers.get(code) if code is not None else None
        if handler is not None:
            handler()

    def pointer_enter(self, x: float, y: float) -> None:
        if self.strategy is not None:
            self.strategy.on_enter(x, y)

    def pointer_motion(self, x: float, y: float) -> None:
        if self.strategy is not None:
            self.strategy.on_motion(x, y)

    def button_press(self, button: int, x: float, y: float) -> None:
        if self.strategy is not None:
            self.strategy.on_button_press(button, x, y)

    def button_release(self, button: int, x: float, y: float) -> None:
        if self.strategy is not None:
            self.strategy.on_button_release(button, x, y)

    def _on_escape(self) -> None:
        if self.has_selection:
            self.clear_selection()
        else:
            self.cancel()

    def _redraw(self) -> None:
        if self.backend is not None:
            self.backend.redraw()

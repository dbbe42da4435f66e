"""Monitor layout of the default display."""

import logging

from .events import Channel
from .geometry import Rect

log = logging.getLogger(__name__)


class Screen:
    """Monitors of the default Gdk display, with change notification."""

    def __init__(self):
        import gi
        gi.require_version("Gdk", "3.0")
        from gi.repository import Gdk

        self.display = Gdk.Display.get_default()
        self.gdk_screen = self.display.get_default_screen()
        self.monitors_changed = Channel("monitors-changed")

        self._signals = [
            (self.gdk_screen, self.gdk_screen.connect("monitors-changed", self._on_changed)),
            (self.gdk_screen, self.gdk_screen.connect("size-changed", self._on_changed)),
            (self.display, self.display.connect("monitor-added", self._on_changed)),
            (self.display, self.display.connect("monitor-removed", self._on_changed)),
        ]

    def destroy(self) -> None:
        while self._signals:
            obj, handler = self._signals.pop()
            obj.disconnect(handler)
        self.monitors_changed.clear()

    def monitors(self) -> list[Rect]:
        result = []
        for i in range(self.display.get_n_monitors()):
            geometry = self.display.get_monitor(i).get_geometry()
            result.append(Rect(geometry.x, geometry.y, geometry.width, geometry.height))
        return result

    def bounds(self) -> Rect:
        """Whole desktop, from the origin to the farthest monitor edge."""
        monitors = self.monitors()
        if not monitors:
            return Rect(0, 0, 0, 0)
        return Rect(
            0,
            0,
            max(monitor.right for monitor in monitors),
            max(monitor.bottom for monitor in monitors),
        )

    def _on_changed(self, *args) -> None:
        log.debug("Monitor configuration changed")
        self.monitors_changed.emit()

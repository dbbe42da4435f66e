"""GTK windows backing an OverlaySurface.

One transparent pane covers each monitor. Panes translate their pointer
events to desktop coordinates, so the surface sees a single desktop-wide
window.
"""

import logging
from typing import Optional

import gi
gi.require_version("Gtk", "3.0")
gi.require_version("Gdk", "3.0")
from gi.repository import Gtk, Gdk

try:
    gi.require_version("GtkLayerShell", "0.1")
    from gi.repository import GtkLayerShell
except (ValueError, ImportError):
    # Not installed: fall back to plain fullscreen windows
    GtkLayerShell = None

from .. import APP_NAME
from ..geometry import Rect, panes, to_desktop
from ..surface import KEY_ESCAPE, OverlaySurface
from .drawing import (
    clear,
    draw_dimension_text,
    draw_dimmed,
    draw_instructions,
    draw_occluders,
    draw_selection,
)

log = logging.getLogger(__name__)


def _layer_shell_supported() -> bool:
    return GtkLayerShell is not None and GtkLayerShell.is_supported()


class OverlayPane(Gtk.Window):
    """Transparent window over one monitor."""

    def __init__(
        self,
        overlay: "OverlayWindow",
        rect: Rect,
        monitor: Optional[int],
        keyboard: bool,
    ):
        super().__init__(title=APP_NAME)
        self.overlay = overlay
        self.rect = rect
        self.monitor = monitor

        if _layer_shell_supported():
            # Must be done before the window is realized
            GtkLayerShell.init_for_window(self)
            GtkLayerShell.set_layer(self, GtkLayerShell.Layer.OVERLAY)
            if monitor is not None:
                GtkLayerShell.set_monitor(self, self.get_display().get_monitor(monitor))
            for edge in (
                GtkLayerShell.Edge.TOP,
                GtkLayerShell.Edge.BOTTOM,
                GtkLayerShell.Edge.LEFT,
                GtkLayerShell.Edge.RIGHT,
            ):
                GtkLayerShell.set_anchor(self, edge, True)
            GtkLayerShell.set_exclusive_zone(self, -1)
            GtkLayerShell.set_keyboard_mode(
                self,
                GtkLayerShell.KeyboardMode.EXCLUSIVE if keyboard
                else GtkLayerShell.KeyboardMode.NONE,
            )
        else:
            self.set_keep_above(True)
            self.move(rect.left, rect.top)
            self.set_default_size(rect.width, rect.height)

        visual = self.get_screen().get_rgba_visual()
        if visual is not None:
            self.set_visual(visual)
        self.set_app_paintable(True)
        self.set_decorated(False)
        self.set_skip_taskbar_hint(True)
        self.set_skip_pager_hint(True)

        self.drawing_area = Gtk.DrawingArea()
        self.drawing_area.connect("draw", self._on_draw)
        self.add(self.drawing_area)

        self.drawing_area.set_events(
            Gdk.EventMask.BUTTON_PRESS_MASK
            | Gdk.EventMask.BUTTON_RELEASE_MASK
            | Gdk.EventMask.POINTER_MOTION_MASK
            | Gdk.EventMask.ENTER_NOTIFY_MASK
            | Gdk.EventMask.KEY_PRESS_MASK
        )
        self.drawing_area.connect("button-press-event", self._on_button_press)
        self.drawing_area.connect("button-release-event", self._on_button_release)
        self.drawing_area.connect("motion-notify-event", self._on_motion)
        self.drawing_area.connect("enter-notify-event", self._on_enter)
        self.connect("key-press-event", self._on_key_press)

        self.drawing_area.set_can_focus(True)

    def show_on_monitor(self) -> None:
        self.show_all()
        if not _layer_shell_supported() and self.monitor is not None:
            self.fullscreen_on_monitor(self.get_screen(), self.monitor)
        self.present()

    # Events

    def _on_draw(self, widget, cr):
        clear(cr)
        surface = self.overlay.surface
        if surface is None:
            return False

        cr.save()
        cr.translate(-self.rect.left, -self.rect.top)
        if surface.has_selection:
            draw_occluders(cr, surface.regions)
            rect = surface.regions["selection"].rect
            if not rect.is_empty:
                draw_selection(cr, rect)
                draw_dimension_text(cr, rect)
        else:
            draw_dimmed(cr, surface.bounds)
        cr.restore()

        if self.overlay.hints and self is self.overlay.panes[0]:
            draw_instructions(cr, self.overlay.hints)
        return False

    def _on_enter(self, widget, event):
        surface = self.overlay.surface
        if surface is not None:
            surface.pointer_enter(*to_desktop(self.rect, event.x, event.y))
        return True

    def _on_motion(self, widget, event):
        surface = self.overlay.surface
        if surface is not None:
            surface.pointer_motion(*to_desktop(self.rect, event.x, event.y))
        return True

    def _on_button_press(self, widget, event):
        # Ignore the synthetic double and triple click events
        if event.type != Gdk.EventType.BUTTON_PRESS:
            return True
        surface = self.overlay.surface
        if surface is not None:
            surface.button_press(event.button, *to_desktop(self.rect, event.x, event.y))
        return True

    def _on_button_release(self, widget, event):
        surface = self.overlay.surface
        if surface is not None:
            surface.button_release(event.button, *to_desktop(self.rect, event.x, event.y))
        return True

    def _on_key_press(self, widget, event):
        surface = self.overlay.surface
        if surface is None:
            return True
        if event.keyval == Gdk.KEY_Escape:
            code = KEY_ESCAPE
        else:
            code = Gdk.keyval_to_unicode(event.keyval) or None
        surface.key_press(code)
        return True


class OverlayWindow:
    """Backend for an OverlaySurface spanning every monitor."""

    def __init__(self, bounds: Rect, hints: Optional[list[str]] = None):
        self.bounds = bounds
        self.hints = hints or []
        self.surface: Optional[OverlaySurface] = None
        self._seat = None

        display = Gdk.Display.get_default()
        monitors = []
        for i in range(display.get_n_monitors()):
            geometry = display.get_monitor(i).get_geometry()
            monitors.append(Rect(geometry.x, geometry.y, geometry.width, geometry.height))

        self.panes = [
            OverlayPane(self, rect, monitor, keyboard=(n == 0))
            for n, (monitor, rect) in enumerate(panes(monitors, bounds))
        ]
        log.debug("Overlay panes: %s", [pane.rect for pane in self.panes])

    def attach(self, surface: OverlaySurface) -> None:
        self.surface = surface

    def present(self) -> None:
        for pane in self.panes:
            pane.show_on_monitor()
        self.panes[0].drawing_area.grab_focus()

    def grab(self) -> bool:
        pane = self.panes[0]
        window = pane.get_window()
        if window is None:
            return False
        self._seat = pane.get_display().get_default_seat()
        # Owner events let the other panes keep their pointer events
        status = self._seat.grab(
            window, Gdk.SeatCapabilities.ALL, True, None, None, None, None
        )
        if status != Gdk.GrabStatus.SUCCESS:
            log.debug("Seat grab failed: %s", status)
            self._seat = None
            return False
        return True

    def release(self) -> None:
        if self._seat is not None:
            self._seat.ungrab()
            self._seat = None

    def set_cursor(self, name: str) -> None:
        for pane in self.panes:
            window = pane.get_window()
            if window is not None:
                window.set_cursor(Gdk.Cursor.new_from_name(window.get_display(), name))

    def redraw(self) -> None:
        for pane in self.panes:
            pane.drawing_area.queue_draw()

    def destroy(self) -> None:
        self.surface = None
        closing, self.panes = self.panes, []
        for pane in closing:
            pane.hide()
            pane.destroy()

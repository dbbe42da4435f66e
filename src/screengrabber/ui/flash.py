"""Capture feedback: a white flash over the captured area and a shutter sound."""

import logging
import subprocess

import gi
gi.require_version("Gtk", "3.0")
gi.require_version("Gdk", "3.0")
from gi.repository import Gtk, Gdk, GLib

from ..geometry import Rect

log = logging.getLogger(__name__)

FRAME_MS = 16


def flash(area: Rect, duration: float = 0.5) -> Gtk.Window:
    """Fade a white window over ``area`` from opaque to invisible."""
    window = Gtk.Window(type=Gtk.WindowType.POPUP)
    window.set_decorated(False)
    window.set_keep_above(True)
    window.set_accept_focus(False)
    window.move(area.left, area.top)
    window.resize(max(area.width, 1), max(area.height, 1))
    window.override_background_color(Gtk.StateFlags.NORMAL, Gdk.RGBA(1.0, 1.0, 1.0, 1.0))
    window.set_opacity(1.0)
    window.show_all()

    start = GLib.get_monotonic_time()
    total = max(duration, 0.001) * 1_000_000

    def step():
        progress = (GLib.get_monotonic_time() - start) / total
        if progress >= 1.0:
            window.destroy()
            return False
        window.set_opacity(1.0 - progress)
        return True

    GLib.timeout_add(FRAME_MS, step)
    return window


def play_shutter():
    """Play the camera shutter theme sound."""
    try:
        subprocess.Popen(
            ["canberra-gtk-play", "-i", "camera-shutter"],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
    except OSError as e:
        log.debug("Could not play sound: %s", e)

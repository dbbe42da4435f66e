"""Status icon with the capture menu."""

import logging
from typing import Callable

import gi
gi.require_version("Gtk", "3.0")
from gi.repository import Gtk, GLib

from .. import APP_NAME

log = logging.getLogger(__name__)

ICON_NAME = "applets-screenshooter"


class Tray:
    """Tray icon; left click selects an area, right click opens the menu."""

    def __init__(self, indicator, on_quit: Callable[[], None]):
        self.indicator = indicator

        self.icon = Gtk.StatusIcon.new_from_icon_name(ICON_NAME)
        self.icon.set_title(APP_NAME)
        self.icon.set_tooltip_text(APP_NAME)

        self.menu = Gtk.Menu()
        for label, action in (
            ("Desktop", indicator.desktop),
            ("Monitor", indicator.monitor),
            ("Window", indicator.window),
            ("Selection", indicator.selection),
        ):
            item = Gtk.MenuItem(label=label)
            item.connect("activate", self._on_activate, action)
            self.menu.append(item)

        self.menu.append(Gtk.SeparatorMenuItem())
        quit_item = Gtk.MenuItem(label="Quit")
        quit_item.connect("activate", lambda item: on_quit())
        self.menu.append(quit_item)
        self.menu.show_all()

        self.icon.connect("activate", self._on_activate, indicator.selection)
        self.icon.connect("popup-menu", self._on_popup)

    def _on_activate(self, widget, action):
        # Let the menu release its grab before the overlay takes one
        GLib.idle_add(self._run, action)

    def _run(self, action):
        action()
        return False

    def _on_popup(self, icon, button, activate_time):
        self.menu.popup(None, None, Gtk.StatusIcon.position_menu, icon, button, activate_time)

    def destroy(self):
        self.icon.set_visible(False)
        self.menu.destroy()

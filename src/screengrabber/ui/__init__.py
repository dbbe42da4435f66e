"""GTK user interface: overlay window, flash effect and tray icon."""

from .overlay import OverlayWindow

__all__ = ["OverlayWindow"]

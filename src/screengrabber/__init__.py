"""Screengrabber: screenshot indicator for GTK desktops.

A screenshot utility with:
- Desktop, monitor, window and free-drag region selection
- Flash, filename templates, clipboard and notifications after capture
- Upload to image hosting providers
- Tray, hotkey and CLI interfaces
"""

__version__ = "0.3.0"
__author__ = "Nick"

APP_NAME = "Screengrabber"

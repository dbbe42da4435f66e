"""Window enumeration through Wayfire IPC.

All functions gracefully degrade if Wayfire is not available: window
selection then simply offers no highlights.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Optional

from .geometry import Rect

log = logging.getLogger(__name__)

APP_ID = "screengrabber"

# Stacking order of Wayfire layers, lowest first
LAYERS = {
    "background": 0,
    "bottom": 1,
    "workspace": 2,
    "top": 3,
    "unmanaged": 4,
    "overlay": 5,
    "lock": 6,
}


class WindowKind(enum.Enum):
    NORMAL = "normal"
    DIALOG = "dialog"
    MODAL_DIALOG = "modal-dialog"
    OTHER = "other"


@dataclass
class WindowInfo:
    """A top-level window as seen by the compositor."""

    rect: Rect
    layer: int = LAYERS["workspace"]
    kind: WindowKind = WindowKind.NORMAL
    visible: bool = True
    title: str = ""
    app_id: str = ""


def _get_socket():
    """Get a Wayfire IPC socket, or None if unavailable."""
    try:
        from wayfire import WayfireSocket
        sock = WayfireSocket()
        sock.client.settimeout(1.0)
        return sock
    except Exception as e:
        log.debug("Wayfire IPC unavailable: %s", e)
        return None


def _kind(view: dict) -> WindowKind:
    if view.get("type") != "toplevel":
        return WindowKind.OTHER
    if view.get("parent", -1) not in (-1, None):
        return WindowKind.MODAL_DIALOG if view.get("modal") else WindowKind.DIALOG
    return WindowKind.NORMAL


def view_to_window(view: dict, shadows: bool = False) -> Optional[WindowInfo]:
    """Convert one Wayfire view description.

    With ``shadows`` the bounding box is used, which includes decorations
    and client-side shadows; otherwise the frame geometry.
    """
    geo = view.get("bbox") if shadows and view.get("bbox") else view.get("geometry")
    if not geo:
        return None

    return WindowInfo(
        rect=Rect(
            int(geo.get("x", 0)),
            int(geo.get("y", 0)),
            int(geo.get("width", 0)),
            int(geo.get("height", 0)),
        ),
        layer=LAYERS.get(view.get("layer", "workspace"), LAYERS["workspace"]),
        kind=_kind(view),
        visible=bool(view.get("mapped", False)) and not view.get("minimized", False),
        title=view.get("title", ""),
        app_id=view.get("app-id", ""),
    )


def list_windows(shadows: bool = False) -> list[WindowInfo]:
    """Get all top-level windows known to the compositor.

    Returns:
        WindowInfo list in compositor order; filtering and ordering for
        selection is done by the grabber.
    """
    sock = _get_socket()
    if not sock:
        return []

    windows: list[WindowInfo] = []
    try:
        for view in sock.list_views():
            if view.get("app-id") == APP_ID:
                continue
            window = view_to_window(view, shadows=shadows)
            if window is not None:
                windows.append(window)
    except Exception as e:
        log.warning("Could not get window geometries: %s", e)
    finally:
        try:
            sock.close()
        except Exception:
            pass

    return windows


def get_cursor_position() -> Optional[tuple[int, int]]:
    """Get current cursor position.

    Returns:
        (x, y) tuple or None if unavailable
    """
    sock = _get_socket()
    if not sock:
        return None

    try:
        cursor_pos = sock.get_cursor_position()
        return (int(cursor_pos[0]), int(cursor_pos[1]))
    except Exception as e:
        log.debug("Could not get cursor position: %s", e)
        return None
    finally:
        try:
            sock.close()
        except Exception:
            pass

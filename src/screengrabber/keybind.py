"""Global keyboard shortcuts bound to configuration keys.

Uses Keybinder, which works on X11 sessions. Where it is not available the
shortcuts are simply not registered; compositor hotkeys can still run the
CLI (``screengrabber --selection``).
"""

import logging
from typing import Callable

from .config import Config

log = logging.getLogger(__name__)

_bound: dict[str, str] = {}
_initialized = False


def _keybinder():
    global _initialized
    import gi
    gi.require_version("Keybinder", "3.0")
    from gi.repository import Keybinder

    if not _initialized:
        Keybinder.init()
        _initialized = True
    return Keybinder


def add(key: str, config: Config, handler: Callable[[], None]) -> bool:
    """Bind the accelerator stored under ``key`` to ``handler``."""
    accelerator = getattr(config, key, "")
    if not accelerator:
        return False

    remove(key)
    try:
        Keybinder = _keybinder()
        if not Keybinder.bind(accelerator, lambda keystring: handler()):
            log.warning("Could not bind %s to %s", accelerator, key)
            return False
    except (ImportError, ValueError) as e:
        log.debug("Global shortcuts unavailable: %s", e)
        return False

    _bound[key] = accelerator
    log.debug("Bound %s to %s", accelerator, key)
    return True


def remove(key: str) -> None:
    accelerator = _bound.pop(key, None)
    if accelerator is None:
        return
    try:
        _keybinder().unbind(accelerator)
    except (ImportError, ValueError) as e:
        log.debug("Could not unbind %s: %s", accelerator, e)


def remove_all() -> None:
    for key in list(_bound):
        remove(key)

"""Per-object event channels.

Every object that produces events owns its channels; there is no global
bus. Listener errors are logged and do not stop the remaining listeners.
"""

import itertools
import logging
from typing import Any, Callable, Dict

log = logging.getLogger(__name__)

Listener = Callable[..., Any]

_ids = itertools.count(1)


class Channel:
    """A named list of listeners."""

    def __init__(self, name: str):
        self.name = name
        self._listeners: Dict[int, Listener] = {}

    def connect(self, listener: Listener) -> int:
        handler_id = next(_ids)
        self._listeners[handler_id] = listener
        return handler_id

    def disconnect(self, handler_id: int) -> None:
        self._listeners.pop(handler_id, None)

    def clear(self) -> None:
        self._listeners.clear()

    def __len__(self) -> int:
        return len(self._listeners)

    def emit(self, *args) -> None:
        # Copy so listeners may disconnect while being notified
        for listener in list(self._listeners.values()):
            try:
                listener(*args)
            except Exception as exc:
                log.error("Listener for '%s' failed: %s", self.name, exc, exc_info=True)

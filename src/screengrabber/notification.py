"""Desktop notifications through libnotify.

A single notification is reused: the first call creates it, later calls
update it in place instead of stacking new ones.
"""

import logging
from typing import Optional

log = logging.getLogger(__name__)

DEFAULT_ICON = "camera-photo"


class Notifier:
    """Owner of the one notification shown by the app."""

    def __init__(self, app_name: str):
        self.app_name = app_name
        self._notification = None
        self._initialized = False

    def _notify(self):
        import gi
        gi.require_version("Notify", "0.7")
        from gi.repository import Notify

        if not self._initialized:
            Notify.init(self.app_name)
            self._initialized = True
        return Notify

    def show(self, title: str, body: str, icon: Optional[str] = None) -> bool:
        try:
            Notify = self._notify()
            if self._notification is None:
                self._notification = Notify.Notification.new(title, body, icon or DEFAULT_ICON)
                self._notification.set_urgency(Notify.Urgency.LOW)
            else:
                self._notification.update(title, body, icon or DEFAULT_ICON)
            self._notification.show()
            return True
        except Exception as e:
            log.debug("Could not show notification: %s", e)
            return False

    def close(self) -> None:
        if self._notification is not None:
            try:
                self._notification.close()
            except Exception as e:
                log.debug("Could not close notification: %s", e)
            self._notification = None

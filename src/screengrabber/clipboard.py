"""Clipboard integration.

Uses wl-copy on Wayland and xclip on X11. Both keep serving the clipboard
after we return, so they are started and not waited for beyond a short
moment. Failures are logged, never raised.
"""

import logging
import os
import subprocess
from typing import Optional

log = logging.getLogger(__name__)


def _text_command() -> list[str]:
    if os.environ.get("WAYLAND_DISPLAY"):
        return ["wl-copy"]
    return ["xclip", "-selection", "clipboard"]


def _image_command(mimetype: str) -> list[str]:
    if os.environ.get("WAYLAND_DISPLAY"):
        return ["wl-copy", "--type", mimetype]
    return ["xclip", "-selection", "clipboard", "-t", mimetype]


class Clipboard:
    """Write text or image data to the system clipboard."""

    def _run(self, argv: list[str], data: bytes) -> bool:
        try:
            process = subprocess.Popen(
                argv,
                stdin=subprocess.PIPE,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
            process.stdin.write(data)
            process.stdin.close()
        except (OSError, ValueError) as e:
            log.warning("Failed to copy to clipboard with %s: %s", argv[0], e)
            return False

        try:
            process.wait(timeout=1)
        except subprocess.TimeoutExpired:
            # xclip stays alive to own the selection
            return True

        if process.returncode != 0:
            log.warning("%s exited with code %d", argv[0], process.returncode)
            return False
        return True

    def set_text(self, text: str) -> bool:
        ok = self._run(_text_command(), text.encode("utf-8"))
        if ok:
            log.debug("Copied text to clipboard: %s", text)
        return ok

    def set_image(self, path: str, mimetype: Optional[str] = None) -> bool:
        from .files import contents, mimetype as guess_mimetype

        try:
            data = contents(path)
        except OSError as e:
            log.warning("Cannot read %s for clipboard: %s", path, e)
            return False

        ok = self._run(_image_command(mimetype or guess_mimetype(path)), data)
        if ok:
            log.debug("Copied image to clipboard: %s", path)
        return ok

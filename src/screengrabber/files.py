"""File helpers: filename templates, special directories, moves and URIs.

Template syntax, applied in this order:

1. strftime directives (``%Y-%m-%d``)
2. ``{width}``, ``{height}``, ``{username}``, ``{realname}``, ``{hostname}``
3. directory aliases, ``${pictures}`` or ``$pictures`` (see SPECIAL_DIRS)

A relative result is placed in the Pictures directory.
"""

import getpass
import logging
import mimetypes
import os
import re
import shutil
import socket
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional
from urllib.parse import unquote, urlparse

from platformdirs import (
    user_cache_dir,
    user_config_dir,
    user_data_dir,
    user_desktop_dir,
    user_documents_dir,
    user_downloads_dir,
    user_music_dir,
    user_pictures_dir,
    user_videos_dir,
)

from .config import DEFAULT_TEMPLATE
from .geometry import Rect

log = logging.getLogger(__name__)

SPECIAL_DIRS: dict[str, Callable[[], str]] = {
    "root": lambda: "/",
    "home": lambda: str(Path.home()),
    "tmp": tempfile.gettempdir,
    "cache": user_cache_dir,
    "config": user_config_dir,
    "data": user_data_dir,
    "desktop": user_desktop_dir,
    "documents": user_documents_dir,
    "download": user_downloads_dir,
    "downloads": user_downloads_dir,
    "music": user_music_dir,
    "pictures": user_pictures_dir,
    "public_share": lambda: str(Path.home() / "Public"),
    "templates": lambda: str(Path.home() / "Templates"),
    "videos": user_videos_dir,
}


def user_special_dir(name: Optional[str] = None) -> Optional[str]:
    """Absolute path of a well-known user directory, or None if unknown."""
    getter = SPECIAL_DIRS.get((name or "home").lower())
    if getter is None:
        return None
    return getter()


def _realname() -> str:
    try:
        import pwd
        gecos = pwd.getpwuid(os.getuid()).pw_gecos.split(",")[0]
    except (ImportError, KeyError):
        gecos = ""
    return gecos or getpass.getuser()


def _replace(pattern: str, value: str, text: str) -> str:
    # Function replacement keeps backslashes in value literal
    return re.sub(pattern, lambda _: value, text, flags=re.IGNORECASE)


def screenshot_path(
    rect: Optional[Rect] = None,
    template: Optional[str] = None,
    now: Optional[datetime] = None,
) -> str:
    """Render a filename template into an absolute, normalized path."""
    now = now or datetime.now()
    result = now.strftime(template or DEFAULT_TEMPLATE)

    tokens = {
        "width": str(rect.width) if rect is not None else "0",
        "height": str(rect.height) if rect is not None else "0",
        "username": getpass.getuser(),
        "realname": _realname(),
        "hostname": socket.gethostname(),
    }
    for token, value in tokens.items():
        result = _replace(r"\{" + token + r"\}", value, result)

    # Longest names first so $downloads is never read as $download + "s"
    for alias in sorted(SPECIAL_DIRS, key=len, reverse=True):
        if "$" not in result or alias not in result.lower():
            continue
        directory = user_special_dir(alias)
        result = _replace(r"\$\{" + alias + r"\}", directory, result)
        result = re.sub(
            r"\$" + alias + r"(?=\W|$)",
            lambda _: directory,
            result,
            flags=re.IGNORECASE,
        )

    if not os.path.isabs(result):
        result = os.path.join(user_special_dir("pictures"), result)

    return os.path.normpath(result)


def temp_file(suffix: str = "") -> str:
    """Create an empty temporary file and return its path."""
    tmp = tempfile.NamedTemporaryFile(prefix="screengrabber-", suffix=suffix, delete=False)
    tmp.close()
    return tmp.name


def move(src: str, dst: str) -> str:
    """Move ``src`` to ``dst``, creating parents and overwriting ``dst``."""
    Path(dst).parent.mkdir(parents=True, exist_ok=True)
    shutil.move(src, dst)
    log.debug("Moved %s to %s", src, dst)
    return dst


def remove(path: str) -> bool:
    """Delete ``path``; a missing file is not an error."""
    try:
        Path(path).unlink(missing_ok=True)
    except OSError as e:
        log.warning("Could not remove %s: %s", path, e)
        return False
    return True


def to_uri(path: str) -> str:
    return Path(path).absolute().as_uri()


def from_uri(uri: str) -> str:
    return unquote(urlparse(uri).path)


def basename(path: str) -> str:
    return Path(path).name


def mimetype(path: str) -> str:
    guessed, _ = mimetypes.guess_type(path)
    return guessed or "application/octet-stream"


def contents(path: str) -> bytes:
    return Path(path).read_bytes()

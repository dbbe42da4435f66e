"""Image hosting upload providers.

Every provider uploads one file and reports a single UploadEvent through
its ``done`` channel:

    success:  {"image": ..., "preview": ..., "delete": ...}
    failure:  {"error": "..."}

Requests are sent with httpx on a worker thread; the event is handed back
to the GLib main loop, so ``done`` listeners run on the UI thread. Parse
problems in a response never escape a provider; they become failure
events.
"""

import logging
import re
import threading
from dataclasses import dataclass, field
from typing import Callable, Optional

import httpx

from . import __version__, files
from .events import Channel

log = logging.getLogger(__name__)

USER_AGENT = f"screengrabber_v{__version__}"

UNKNOWN_ERROR = "Unknown error"
PARSE_ERROR = "Unable to parse error message from response"


class ProviderError(Exception):
    """Raised when a response cannot be understood."""
    pass


# Everything a response parser may raise on unexpected input
PARSE_ERRORS = (
    ProviderError,
    ValueError,
    KeyError,
    TypeError,
    AttributeError,
    IndexError,
    httpx.StreamError,
)


@dataclass
class UploadEvent:
    """Outcome of one upload attempt."""

    success: Optional[bool] = None
    status: dict = field(default_factory=lambda: {"code": None, "description": None})
    provider: dict = field(default_factory=dict)
    data: dict = field(default_factory=dict)

    @property
    def url(self) -> Optional[str]:
        return self.data.get("image") or self.data.get("preview")

    @property
    def error(self) -> Optional[str]:
        return self.data.get("error")

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "status": dict(self.status),
            "provider": dict(self.provider),
            "data": dict(self.data),
        }


Work = Callable[[], UploadEvent]
Finish = Callable[[UploadEvent], None]
Runner = Callable[[Work, Finish], None]


def run_in_background(work: Work, finish: Finish) -> None:
    """Run ``work`` on a thread and call ``finish`` on the GLib main loop."""
    from gi.repository import GLib

    def deliver(event: UploadEvent) -> bool:
        finish(event)
        return False

    def target() -> None:
        GLib.idle_add(deliver, work())

    threading.Thread(target=target, name="screengrabber-upload", daemon=True).start()


def run_inline(work: Work, finish: Finish) -> None:
    finish(work())


StatusHandler = Callable[[httpx.Response], Optional[UploadEvent]]


class Provider:
    """Base provider: multipart upload of the file as ``image``."""

    name = "Base"
    url = "https://api.dummy.org"
    title = "Dummy Provider"
    desc = "Dummy Provider"
    api = "https://api.dummy.org/v1"

    # Read headers only and close the response without its body
    headers_only = False
    follow_redirects = True
    timeout = 60.0

    def __init__(
        self,
        runner: Optional[Runner] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.done = Channel("done")
        self._runner = runner or run_in_background
        self._transport = transport
        self._generation = 0
        self._client: Optional[httpx.Client] = None
        self._status_handlers: dict[int, StatusHandler] = {}

    def destroy(self) -> None:
        self.cancel()
        self.done.clear()

    def cancel(self) -> None:
        """Abandon the upload in flight, if any."""
        self._generation += 1
        client, self._client = self._client, None
        if client is not None:
            client.close()

    def upload(self, path: str) -> None:
        self._queue(self._request_multipart({"image": "@" + path}))

    # Requests

    def _queue(self, request: httpx.Request) -> None:
        generation = self._generation

        def finish(event: UploadEvent) -> None:
            if generation != self._generation:
                log.debug("Dropping result of cancelled upload to %s", self.title)
                return
            self.done.emit(event)

        self._runner(lambda: self._perform(request), finish)

    def _prepare_headers(self, headers: Optional[dict]) -> dict:
        headers = dict(headers or {})
        headers.setdefault("User-Agent", USER_AGENT)
        return headers

    def _request_multipart(self, params: dict, headers: Optional[dict] = None) -> httpx.Request:
        """Build a multipart form; values starting with "@" are file paths."""
        data = {}
        upload_files = {}
        for key, value in params.items():
            if value.startswith("@"):
                path = value[1:]
                upload_files[key] = (files.basename(path), files.contents(path), files.mimetype(path))
            else:
                data[key] = value

        return httpx.Request(
            "POST",
            self.api,
            data=data,
            files=upload_files,
            headers=self._prepare_headers(headers),
        )

    def _request_json(self, params: Optional[dict] = None, headers: Optional[dict] = None) -> httpx.Request:
        return httpx.Request(
            "POST",
            self.api,
            json=params or {},
            headers=self._prepare_headers(headers),
        )

    def _perform(self, request: httpx.Request) -> UploadEvent:
        try:
            with httpx.Client(
                transport=self._transport,
                timeout=self.timeout,
                follow_redirects=self.follow_redirects,
            ) as client:
                self._client = client
                response = client.send(request, stream=self.headers_only)
                try:
                    return self.handle_response(response)
                finally:
                    # Unread body is dropped here for headers-only providers
                    response.close()
        except (httpx.HTTPError, RuntimeError) as e:
            # RuntimeError: the client was closed by cancel() before sending
            log.warning("Upload to %s failed: %s", self.title, e)
            event = self._event()
            event.success = False
            event.data = {"error": str(e) or type(e).__name__}
            return event
        finally:
            self._client = None

    # Responses

    def handle_response(self, response: httpx.Response) -> UploadEvent:
        handler = self._status_handlers.get(response.status_code)
        if handler is not None:
            try:
                event = handler(response)
            except PARSE_ERRORS as e:
                log.debug("%s: handler for HTTP %d failed (%s)", self.title, response.status_code, e)
                event = None
            if event is not None:
                return event
        return self._handle_generic(response)

    def _handle_generic(self, response: httpx.Response) -> UploadEvent:
        try:
            if response.status_code != httpx.codes.OK:
                raise ProviderError(f"HTTP {response.status_code}")
            return self._event_success(response)
        except PARSE_ERRORS as e1:
            log.debug("%s: no success in response (%s)", self.title, e1)
            try:
                return self._event_error(response)
            except PARSE_ERRORS as e2:
                log.debug("%s: unparseable error response (%s)", self.title, e2)
                event = self._event(response)
                event.success = False
                event.data["error"] = PARSE_ERROR
                return event

    def _event(self, response: Optional[httpx.Response] = None) -> UploadEvent:
        event = UploadEvent(provider={"title": self.title, "url": self.url})
        if response is not None:
            event.status = {
                "code": response.status_code,
                "description": httpx.codes.get_reason_phrase(response.status_code),
            }
        return event

    def _event_success(self, response: Optional[httpx.Response] = None) -> UploadEvent:
        event = self._event(response)
        event.success = True
        event.data = {"image": None, "preview": None, "delete": None}
        return event

    def _event_error(self, response: Optional[httpx.Response] = None) -> UploadEvent:
        event = self._event(response)
        event.success = False
        event.data = {"error": UNKNOWN_ERROR}
        return event


class NoneProvider(Provider):
    """No upload: reports the local file right away."""

    name = "None"
    url = ""
    title = "none"
    desc = ""
    api = ""

    def upload(self, path: str) -> None:
        event = self._event_success()
        event.data["preview"] = files.to_uri(path)
        event.data["image"] = event.data["preview"]
        self.done.emit(event)


class Imgur(Provider):
    name = "Imgur"
    url = "https://imgur.com"
    title = "imgur"
    desc = "The most awesome images on the Internet"
    api = "https://api.imgur.com/3/image"
    client_id = "47b3024ef07c33c"

    def upload(self, path: str) -> None:
        params = {"image": "@" + path, "type": "file"}
        headers = {"Authorization": f"Client-ID {self.client_id}"}
        self._queue(self._request_multipart(params, headers))

    def _event_success(self, response=None):
        data = response.json()["data"]
        event = super()._event_success(response)
        event.data["preview"] = data["link"]
        event.data["image"] = event.data["preview"]
        event.data["delete"] = f"{self.api}/{data['deletehash']}"
        return event

    def _event_error(self, response=None):
        error = response.json()["data"]["error"]
        if isinstance(error, dict):
            error = error.get("message")
        event = super()._event_error(response)
        event.data["error"] = error or event.data["error"]
        return event


class Imgbin(Provider):
    """Plain text response with ``key:value`` lines."""

    name = "Imgbin"
    url = "https://imagebin.ca"
    title = "imgbin"
    desc = "Somewhere to Store Random Things"
    api = "https://imagebin.ca/upload.php"

    def upload(self, path: str) -> None:
        self._queue(self._request_multipart({"file": "@" + path}))

    def _event_success(self, response=None):
        event = super()._event_success(response)
        event.data["preview"] = re.search(r"(^|\n)url:(.*)(\n|$)", response.text).group(2)
        event.data["image"] = event.data["preview"]
        return event

    def _event_error(self, response=None):
        event = super()._event_error(response)
        event.data["error"] = re.search(r"(^|\n)status:error:(.*)(\n|$)", response.text).group(2)
        return event


class UploadsIm(Provider):
    name = "UploadsIm"
    url = "http://uploads.im"
    title = "uploads.im"
    desc = "Uploads.im Image Hosting. Would you like to upload an image?"
    api = "http://uploads.im/api"

    def upload(self, path: str) -> None:
        self._queue(self._request_multipart({"file": "@" + path}))

    def _event_success(self, response=None):
        data = response.json()["data"]
        event = super()._event_success(response)
        event.data["preview"] = data["img_view"]
        event.data["image"] = data.get("img_url") or event.data["preview"]
        return event

    def _event_error(self, response=None):
        body = response.json()
        event = super()._event_error(response)
        event.data["error"] = body.get("status_txt") or event.data["error"]
        return event


class AnonImage(Provider):
    """Answers with a redirect whose Location is the image page.

    The server keeps the connection open after the redirect, so the body is
    never read: the response is closed as soon as the headers are in.
    """

    name = "AnonImage"
    url = "https://anonimage.net"
    title = "AnonImage"
    desc = "Anonymous Image Hosting"
    api = "https://anonimage.net/upload_magick.php"
    headers_only = True
    follow_redirects = False

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._status_handlers[httpx.codes.FOUND] = self._event_success

    def upload(self, path: str) -> None:
        self._queue(self._request_multipart({"imgulfile[]": "@" + path}))

    def _event_success(self, response=None):
        location = response.headers["location"]
        event = super()._event_success(response)
        event.data["preview"] = f"{self.url}/{location}"
        event.data["image"] = event.data["preview"]
        return event


class Unsee(Provider):
    name = "Unsee"
    url = "https://unsee.cc"
    title = "Unsee"
    desc = "Free online private photos sharing"
    api = "https://unsee.cc/upload"

    def upload(self, path: str) -> None:
        self._queue(self._request_multipart({"image[]": "@" + path, "time": "86400"}))

    def _event_success(self, response=None):
        body = response.json()
        if body.get("error"):
            return self._event_error(response)

        event = super()._event_success(response)
        event.data["preview"] = f"{self.url}/{body['hash']}"
        event.data["image"] = event.data["preview"]
        return event

    def _event_error(self, response=None):
        body = response.json()
        event = super()._event_error(response)
        event.data["error"] = body.get("error") or event.data["error"]
        return event


class DropfileTo(Provider):
    """Error responses carry no message at all."""

    name = "DropfileTo"
    url = "https://dropfile.to"
    title = "Dropfile.to"
    desc = ""
    api = "https://d1.dropfile.to/upload"

    def upload(self, path: str) -> None:
        self._queue(self._request_multipart({"files[]": "@" + path}))

    def _event_success(self, response=None):
        body = response.json()
        if not body.get("url"):
            return self._event_error(response)

        event = super()._event_success(response)
        event.data["preview"] = body["url"]
        event.data["image"] = event.data["preview"]
        return event

    def _event_error(self, response=None):
        raise ProviderError("dropfile.to sends no error description")


class Lutim(Provider):
    name = "Lutim"
    url = "https://lut.im"
    title = "Lutim"
    desc = "Let's Upload That Image"
    api = "https://lut.im"

    def upload(self, path: str) -> None:
        params = {
            "file": "@" + path,
            "format": "json",
            "first-view": "0",
            "delete-day": "30",
            "crypt": "0",
            "keep-exif": "0",
        }
        self._queue(self._request_multipart(params))

    def _event_success(self, response=None):
        body = response.json()
        if not body.get("success"):
            return self._event_error(response)

        event = super()._event_success(response)
        event.data["preview"] = f"{self.url}/{body['msg']['short']}.{body['msg']['ext']}"
        event.data["image"] = event.data["preview"]
        return event

    def _event_error(self, response=None):
        body = response.json()
        event = super()._event_error(response)
        event.data["error"] = body["msg"].get("msg") or event.data["error"]
        return event


class PicPaste(Provider):
    """Result travels in ``X-salgar-*`` headers; the HTML body is skipped."""

    name = "PicPaste"
    url = "http://picpaste.com"
    title = "PicPaste"
    desc = "Put your pictures online, easy and quick!"
    api = "http://picpaste.com/upload.php"
    headers_only = True

    def upload(self, path: str) -> None:
        params = {
            "upload": "@" + path,
            "storetime": "8",
            "addprivacy": "1",
            "rules": "yes",
        }
        self._queue(self._request_multipart(params))

    def _event_success(self, response=None):
        filename = response.headers.get("X-salgar-pic")
        if not filename:
            return self._event_error(response)

        event = super()._event_success(response)
        event.data["preview"] = f"{self.url}/{filename}"
        event.data["image"] = event.data["preview"]
        delete_key = response.headers.get("X-salgar-del")
        if delete_key:
            event.data["delete"] = f"{self.url}/del/{delete_key}/{filename}"
        return event

    def _event_error(self, response=None):
        event = super()._event_error(response)
        event.data["error"] = response.headers.get("X-salgar-err") or event.data["error"]
        return event


PROVIDERS: dict[str, type[Provider]] = {
    provider.name: provider
    for provider in (
        NoneProvider,
        Imgur,
        Imgbin,
        UploadsIm,
        AnonImage,
        Unsee,
        DropfileTo,
        Lutim,
        PicPaste,
    )
}


def _lookup(name: Optional[str]) -> Optional[type[Provider]]:
    if not name:
        return None
    for key, provider in PROVIDERS.items():
        if key.lower() == name.lower():
            return provider
    return None


def provider_names() -> list[str]:
    return list(PROVIDERS)


def get_meta(name: str, key: Optional[str] = None):
    """Describe a provider; ``None`` for unknown names."""
    provider = _lookup(name)
    if provider is None:
        return None

    meta = {
        "url": provider.url,
        "title": provider.title,
        "desc": provider.desc,
        "api": provider.api,
    }
    if key:
        return meta.get(key)
    return meta


def new_by_name(name: str, **kwargs) -> Optional[Provider]:
    provider = _lookup(name)
    if provider is None:
        return None
    return provider(**kwargs)

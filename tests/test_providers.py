"""Tests for upload providers, using httpx.MockTransport and inline runs."""

from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from screengrabber import files
from screengrabber.providers import (
    PARSE_ERROR,
    USER_AGENT,
    AnonImage,
    DropfileTo,
    Imgbin,
    Imgur,
    Lutim,
    NoneProvider,
    PicPaste,
    Unsee,
    UploadEvent,
    get_meta,
    new_by_name,
    provider_names,
    run_inline,
)


@pytest.fixture
def image(tmp_path: Path) -> str:
    path = tmp_path / "shot.png"
    path.write_bytes(b"\x89PNG fake")
    return str(path)


def upload(provider_class, image: str, handler) -> tuple[UploadEvent, list[httpx.Request]]:
    requests: list[httpx.Request] = []

    def record(request: httpx.Request) -> httpx.Response:
        request.read()
        requests.append(request)
        return handler(request)

    provider = provider_class(runner=run_inline, transport=httpx.MockTransport(record))
    events: list[UploadEvent] = []
    provider.done.connect(events.append)
    provider.upload(image)

    assert len(events) == 1
    return events[0], requests


def test_imgur_success(image: str) -> None:
    body = {"data": {"link": "https://i.imgur.com/abc.png", "deletehash": "xyz"}}
    event, requests = upload(Imgur, image, lambda request: httpx.Response(200, json=body))

    assert event.success
    assert event.url == "https://i.imgur.com/abc.png"
    assert event.data["delete"] == "https://api.imgur.com/3/image/xyz"
    assert event.status == {"code": 200, "description": "OK"}
    assert event.provider == {"title": "imgur", "url": "https://imgur.com"}

    request = requests[0]
    assert request.url == "https://api.imgur.com/3/image"
    assert request.headers["User-Agent"] == USER_AGENT
    assert request.headers["Authorization"] == "Client-ID 47b3024ef07c33c"
    assert b'filename="shot.png"' in request.content
    assert b"\x89PNG fake" in request.content


def test_imgur_error_message(image: str) -> None:
    body = {"data": {"error": "File is over the size limit"}}
    event, _ = upload(Imgur, image, lambda request: httpx.Response(400, json=body))

    assert event.success is False
    assert event.error == "File is over the size limit"
    assert event.status["code"] == 400


def test_unparseable_error_body(image: str) -> None:
    event, _ = upload(Imgur, image, lambda request: httpx.Response(500, text="<html>oops"))

    assert event.success is False
    assert event.error == PARSE_ERROR


def test_success_parse_failure_falls_back_to_error(image: str) -> None:
    event, _ = upload(Imgbin, image, lambda request: httpx.Response(200, text="status:error:too big\n"))

    assert event.success is False
    assert event.error == "too big"


def test_imgbin_success(image: str) -> None:
    text = "status:ok\nurl:https://imagebin.ca/v/abc\n"
    event, _ = upload(Imgbin, image, lambda request: httpx.Response(200, text=text))

    assert event.success
    assert event.url == "https://imagebin.ca/v/abc"


def test_dropfile_errors_have_no_message(image: str) -> None:
    event, _ = upload(DropfileTo, image, lambda request: httpx.Response(500))

    assert event.success is False
    assert event.error == PARSE_ERROR


def test_dropfile_success(image: str) -> None:
    body = {"url": "https://dropfile.to/abc"}
    event, _ = upload(DropfileTo, image, lambda request: httpx.Response(200, json=body))

    assert event.success
    assert event.url == "https://dropfile.to/abc"


def test_anonimage_uses_redirect_location(image: str) -> None:
    event, requests = upload(
        AnonImage, image, lambda request: httpx.Response(302, headers={"location": "i/abc.png"})
    )

    assert event.success
    assert event.url == "https://anonimage.net/i/abc.png"
    assert len(requests) == 1


def test_picpaste_reads_headers(image: str) -> None:
    headers = {"X-salgar-pic": "abc.png", "X-salgar-del": "key"}
    event, _ = upload(PicPaste, image, lambda request: httpx.Response(200, headers=headers, text="<html>"))

    assert event.success
    assert event.url == "http://picpaste.com/abc.png"
    assert event.data["delete"] == "http://picpaste.com/del/key/abc.png"


def test_picpaste_error_header(image: str) -> None:
    headers = {"X-salgar-err": "Too large"}
    event, _ = upload(PicPaste, image, lambda request: httpx.Response(200, headers=headers))

    assert event.success is False
    assert event.error == "Too large"


def test_unsee_error_in_success_response(image: str) -> None:
    body = {"error": "Upload limit reached"}
    event, _ = upload(Unsee, image, lambda request: httpx.Response(200, json=body))

    assert event.success is False
    assert event.error == "Upload limit reached"


def test_lutim_success(image: str) -> None:
    body = {"success": True, "msg": {"short": "abc", "ext": "png"}}
    event, requests = upload(Lutim, image, lambda request: httpx.Response(200, json=body))

    assert event.url == "https://lut.im/abc.png"
    assert b'name="delete-day"' in requests[0].content


def test_transport_error_becomes_failure(image: str) -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    event, _ = upload(Imgur, image, refuse)

    assert event.success is False
    assert event.error == "connection refused"


def test_none_provider_reports_local_file(image: str) -> None:
    provider = NoneProvider()
    events: list[UploadEvent] = []
    provider.done.connect(events.append)

    provider.upload(image)

    assert events[0].success
    assert events[0].url == files.to_uri(image)


def test_cancel_drops_pending_result(image: str) -> None:
    pending = []
    provider = Imgur(
        runner=lambda work, finish: pending.append((work, finish)),
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json={})),
    )
    events: list[UploadEvent] = []
    provider.done.connect(events.append)

    provider.upload(image)
    provider.cancel()
    work, finish = pending[0]
    finish(work())

    assert events == []


def test_registry() -> None:
    assert provider_names()[0] == "None"
    assert "Imgur" in provider_names()
    assert get_meta("imgur", "title") == "imgur"
    assert get_meta("LUTIM")["api"] == "https://lut.im"
    assert get_meta("nowhere") is None
    assert isinstance(new_by_name("picpaste", runner=run_inline), PicPaste)
    assert new_by_name("nowhere") is None
    assert new_by_name("") is None


def test_event_to_dict() -> None:
    event = UploadEvent(success=False, data={"error": "x"})

    assert event.to_dict() == {
        "success": False,
        "status": {"code": None, "description": None},
        "provider": {},
        "data": {"error": "x"},
    }

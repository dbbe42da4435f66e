"""Shared fakes: no display, compositor or capture binary needed."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import pytest

from screengrabber.capture import CaptureResult
from screengrabber.events import Channel
from screengrabber.geometry import Rect


class FakeBackend:
    """Records what the surface asks of the windowing toolkit."""

    def __init__(self) -> None:
        self.surface = None
        self.presented = False
        self.grabbed = False
        self.cursor: Optional[str] = None
        self.redraws = 0
        self.destroyed = False

    def attach(self, surface) -> None:
        self.surface = surface

    def present(self) -> None:
        self.presented = True

    def grab(self) -> bool:
        self.grabbed = True
        return True

    def release(self) -> None:
        self.grabbed = False

    def set_cursor(self, name: str) -> None:
        self.cursor = name

    def redraw(self) -> None:
        self.redraws += 1

    def destroy(self) -> None:
        self.destroyed = True


class FakeCaptureHandle:
    def __init__(self, rect: Rect, on_done, directory: Path) -> None:
        self.rect = rect
        self.on_done = on_done
        self.directory = directory
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def complete(self, success: bool = True) -> Optional[str]:
        """Deliver a result like a finished capture process would."""
        if self.cancelled:
            return None
        path = None
        if success:
            path = str(self.directory / f"capture-{len(list(self.directory.iterdir()))}.png")
            Path(path).write_bytes(b"\x89PNG fake")
        self.on_done(CaptureResult(success=success, path=path, area=self.rect))
        return path


class FakeCapture:
    """Capture function; results are delivered by ``handle.complete()``."""

    def __init__(self, directory: Path) -> None:
        self.directory = directory
        self.handles: list[FakeCaptureHandle] = []

    def __call__(self, rect: Rect, on_done) -> FakeCaptureHandle:
        handle = FakeCaptureHandle(rect, on_done, self.directory)
        self.handles.append(handle)
        return handle

    @property
    def rects(self) -> list[Rect]:
        return [handle.rect for handle in self.handles]


class FakeScreen:
    def __init__(self, monitors: list[Rect]) -> None:
        self._monitors = monitors
        self.monitors_changed = Channel("monitors-changed")

    def monitors(self) -> list[Rect]:
        return list(self._monitors)

    def bounds(self) -> Rect:
        if not self._monitors:
            return Rect(0, 0, 0, 0)
        return Rect(
            0,
            0,
            max(monitor.right for monitor in self._monitors),
            max(monitor.bottom for monitor in self._monitors),
        )


LEFT_MONITOR = Rect(0, 0, 1920, 1080)
RIGHT_MONITOR = Rect(1920, 0, 1280, 1024)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def capture(tmp_path: Path) -> FakeCapture:
    directory = tmp_path / "captures"
    directory.mkdir()
    return FakeCapture(directory)


@pytest.fixture
def screen() -> FakeScreen:
    return FakeScreen([LEFT_MONITOR, RIGHT_MONITOR])

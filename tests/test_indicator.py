"""Tests for capture actions and the active session."""

from __future__ import annotations

from typing import Optional

import pytest
from conftest import LEFT_MONITOR, RIGHT_MONITOR, FakeBackend, FakeCapture, FakeScreen

from screengrabber.config import Config
from screengrabber.geometry import Rect
from screengrabber.grabber import BUTTON_PRIMARY, Mode
from screengrabber.indicator import Indicator
from screengrabber.windows import WindowInfo


class FakePipeline:
    def __init__(self) -> None:
        self.results = []
        self.cancelled = False
        self.config = None

    def run(self, result, on_finished=None) -> Optional[str]:
        self.results.append(result)
        if on_finished is not None:
            on_finished(result.path)
        return result.path

    def cancel(self) -> None:
        self.cancelled = True


class Setup:
    def __init__(self, screen: FakeScreen, capture: FakeCapture, windows=None) -> None:
        self.backends: list[tuple[Mode, Rect, FakeBackend]] = []
        self.pipeline = FakePipeline()
        self.finished: list[Optional[str]] = []
        self.indicator = Indicator(
            Config(),
            screen,
            capture=capture,
            backend_factory=self._backend,
            windows=windows or (lambda shadows: []),
            pipeline=self.pipeline,
            pointer=lambda: (100, 100),
        )
        self.indicator.finished.connect(self.finished.append)

    def _backend(self, mode: Mode, bounds: Rect) -> FakeBackend:
        backend = FakeBackend()
        self.backends.append((mode, bounds, backend))
        return backend


@pytest.fixture
def setup(screen: FakeScreen, capture: FakeCapture) -> Setup:
    return Setup(screen, capture)


def test_monitor_capture_end_to_end(setup: Setup, capture: FakeCapture) -> None:
    session = setup.indicator.monitor()

    mode, bounds, backend = setup.backends[0]
    assert mode is Mode.MONITOR
    assert bounds == Rect(0, 0, 3200, 1080)
    assert backend.surface.get_selection() == LEFT_MONITOR

    backend.surface.pointer_motion(2500, 500)
    backend.surface.button_press(BUTTON_PRIMARY, 2500, 500)
    assert capture.rects == [RIGHT_MONITOR]

    path = capture.handles[0].complete()

    assert setup.pipeline.results[0].area == RIGHT_MONITOR
    assert setup.finished == [path]
    assert setup.indicator.session is None
    assert session.done


def test_desktop_needs_no_overlay(setup: Setup, capture: FakeCapture) -> None:
    setup.indicator.desktop()

    assert setup.backends == []
    assert capture.rects == [Rect(0, 0, 3200, 1080)]


def test_new_action_replaces_running_session(setup: Setup) -> None:
    first = setup.indicator.selection()
    second = setup.indicator.monitor()

    assert first.done
    assert setup.backends[0][2].destroyed
    assert setup.indicator.session is second
    assert setup.finished == [None]


def test_monitor_change_cancels_session(setup: Setup, screen: FakeScreen) -> None:
    setup.indicator.selection()
    backend = setup.backends[0][2]

    screen.monitors_changed.emit()

    assert setup.indicator.session is None
    assert backend.destroyed
    assert setup.finished == [None]


def test_monitor_change_without_session_is_ignored(setup: Setup, screen: FakeScreen) -> None:
    screen.monitors_changed.emit()

    assert setup.finished == []


def test_user_cancel_reports_finished(setup: Setup) -> None:
    setup.indicator.selection()

    setup.backends[0][2].surface.key_press(0x1B)

    assert setup.indicator.session is None
    assert setup.finished == [None]


def test_window_mode_lists_windows_with_shadow_setting(
    screen: FakeScreen, capture: FakeCapture
) -> None:
    calls = []

    def windows(shadows: bool) -> list[WindowInfo]:
        calls.append(shadows)
        return [WindowInfo(Rect(50, 50, 200, 100), title="editor")]

    setup = Setup(screen, capture, windows)
    setup.indicator.window()

    assert calls == [True]
    assert setup.backends[0][2].surface.get_selection() == Rect(50, 50, 200, 100)


def test_window_listing_failure_opens_empty_overlay(
    screen: FakeScreen, capture: FakeCapture
) -> None:
    def windows(shadows: bool) -> list[WindowInfo]:
        raise ConnectionError("no compositor")

    setup = Setup(screen, capture, windows)

    assert setup.indicator.window() is not None
    assert setup.backends[0][2].surface.get_selection() is None


def test_no_monitors(capture: FakeCapture) -> None:
    setup = Setup(FakeScreen([]), capture)

    assert setup.indicator.selection() is None
    assert setup.backends == []


def test_destroy_disconnects(setup: Setup, screen: FakeScreen) -> None:
    setup.indicator.selection()

    setup.indicator.destroy()

    assert setup.indicator.session is None
    assert setup.pipeline.cancelled
    assert len(screen.monitors_changed) == 0

"""Tests for the overlay surface model."""

from __future__ import annotations

from conftest import FakeBackend

from screengrabber.geometry import Rect
from screengrabber.surface import (
    CURSOR_CROSSHAIR,
    CURSOR_DEFAULT,
    KEY_ESCAPE,
    OCCLUDERS,
    OverlaySurface,
)


def make_surface(backend: FakeBackend | None = None) -> OverlaySurface:
    return OverlaySurface(Rect(0, 0, 100, 80), backend)


def test_backend_is_attached(backend: FakeBackend) -> None:
    surface = make_surface(backend)

    assert backend.surface is surface


def test_occluders_tile_around_selection() -> None:
    surface = make_surface()
    surface.set_selection(Rect(10, 20, 30, 40))

    regions = surface.regions
    assert regions["top"].rect == Rect(0, 0, 100, 20)
    assert regions["right"].rect == Rect(40, 20, 60, 40)
    assert regions["bottom"].rect == Rect(0, 60, 100, 20)
    assert regions["left"].rect == Rect(0, 20, 10, 40)
    assert regions["selection"].rect == Rect(10, 20, 30, 40)

    covered = sum(regions[name].rect.area for name in OCCLUDERS + ("selection",))
    assert covered == 100 * 80


def test_selection_is_clamped_to_bounds() -> None:
    surface = make_surface()
    surface.set_selection(Rect(90, 70, 50, 50))

    assert surface.get_selection() == Rect(90, 70, 10, 10)


def test_clear_selection_hides_everything(backend: FakeBackend) -> None:
    surface = make_surface(backend)
    surface.set_selection(Rect(1, 1, 5, 5))
    surface.clear_selection()

    assert surface.get_selection() is None
    assert not surface.has_selection
    assert not any(region.visible for region in surface.regions.values())
    assert backend.redraws == 2


def test_open_and_close(backend: FakeBackend) -> None:
    surface = make_surface(backend)
    surface.open()

    assert backend.presented
    assert backend.grabbed
    assert backend.cursor == CURSOR_CROSSHAIR

    surface.close()
    surface.close()

    assert not backend.grabbed
    assert backend.cursor == CURSOR_DEFAULT
    assert backend.destroyed
    assert surface.closed


def test_escape_clears_selection_before_cancelling(backend: FakeBackend) -> None:
    surface = make_surface(backend)
    cancelled = []
    surface.cancelled.connect(lambda: cancelled.append(True))
    surface.open()
    surface.set_selection(Rect(1, 1, 5, 5))

    surface.key_press(KEY_ESCAPE)
    assert not surface.has_selection
    assert cancelled == []

    surface.key_press(KEY_ESCAPE)
    assert cancelled == [True]
    assert backend.destroyed


def test_unknown_keys_are_ignored() -> None:
    surface = make_surface()
    surface.set_selection(Rect(1, 1, 5, 5))

    surface.key_press(ord("q"))
    surface.key_press(None)

    assert surface.has_selection
    assert not surface.closed


def test_custom_key_handler() -> None:
    surface = make_surface()
    surface.set_key_handler(ord("a"), surface.select_all)

    surface.key_press(ord("a"))

    assert surface.get_selection() == Rect(0, 0, 100, 80)


def test_confirm_needs_a_usable_selection() -> None:
    surface = make_surface()
    confirmed = []
    surface.confirmed.connect(confirmed.append)

    surface.confirm()
    surface.set_selection(Rect(10, 10, 0, 10))
    surface.confirm()
    assert confirmed == []

    surface.set_selection(Rect(10, 10, 5, 10))
    surface.confirm()
    assert confirmed == [Rect(10, 10, 5, 10)]


def test_cancel_emits_once_and_blocks_confirm() -> None:
    surface = make_surface()
    cancelled = []
    confirmed = []
    surface.cancelled.connect(lambda: cancelled.append(True))
    surface.confirmed.connect(confirmed.append)
    surface.set_selection(Rect(0, 0, 10, 10))

    surface.cancel()
    surface.cancel()
    surface.confirm()

    assert cancelled == [True]
    assert confirmed == []

"""Tests for configuration layering and validation."""

from __future__ import annotations

import os
from pathlib import Path

import pytest
import yaml

from screengrabber.config import (
    DEFAULT_TEMPLATE,
    Config,
    config_defaults,
    load_config,
    save_config,
    set_value,
    validate_config_dict,
    validate_config_file,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in list(os.environ):
        if name.startswith("SCREENGRABBER_"):
            monkeypatch.delenv(name)


def write_config(path: Path, data: dict) -> Path:
    path.write_text(yaml.safe_dump(data))
    return path


def test_defaults() -> None:
    defaults = config_defaults()

    assert defaults["clipboard"] == "none"
    assert defaults["flash"] == "both"
    assert defaults["template"] == DEFAULT_TEMPLATE
    assert defaults["upload_provider"] == ""
    assert defaults["delete_after_upload"] is False


def test_missing_file_gives_defaults(tmp_path: Path) -> None:
    assert load_config(config_path=tmp_path / "absent.yaml") == Config()


def test_file_then_env_then_overrides(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = write_config(tmp_path / "config.yaml", {
        "upload-provider": "Imgur",
        "clipboard": "uri",
        "capture_delay_ms": 250,
        "notifications": True,
    })
    monkeypatch.setenv("SCREENGRABBER_NOTIFICATIONS", "false")
    monkeypatch.setenv("SCREENGRABBER_CAPTURE_DELAY_MS", "50")

    config = load_config(config_path=path, overrides={"clipboard": "image", "flash": None})

    assert config.upload_provider == "Imgur"
    assert config.notifications is False
    assert config.capture_delay_ms == 50
    assert config.clipboard == "image"
    assert config.flash == "both"


def test_config_path_from_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = write_config(tmp_path / "other.yaml", {"template": "x.png"})
    monkeypatch.setenv("SCREENGRABBER_CONFIG", str(path))

    assert load_config().template == "x.png"


def test_invalid_enums_fall_back_to_none(tmp_path: Path) -> None:
    path = write_config(tmp_path / "config.yaml", {"clipboard": "fax", "flash": "loud"})

    config = load_config(config_path=path)

    assert config.clipboard == "none"
    assert config.flash == "none"
    assert not config.flash_video
    assert not config.flash_audio


def test_unknown_keys_are_dropped(tmp_path: Path) -> None:
    path = write_config(tmp_path / "config.yaml", {"colour": "blue"})

    assert load_config(config_path=path) == Config()


def test_unreadable_file(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("clipboard: [unclosed")

    assert load_config(config_path=path) == Config()
    with pytest.raises(ValueError):
        load_config(config_path=path, strict=True)


def test_flash_switches() -> None:
    assert Config(flash="audio").flash_audio
    assert not Config(flash="audio").flash_video
    assert Config(flash="both").flash_video


def test_set_value_parses_types() -> None:
    config = set_value(Config(), "delete-after-upload", "yes")
    config = set_value(config, "capture_delay_ms", "20")
    config = set_value(config, "upload_provider", "lutim")

    assert config.delete_after_upload is True
    assert config.capture_delay_ms == 20
    assert config.upload_provider == "lutim"


@pytest.mark.parametrize("key, value", [
    ("colour", "blue"),
    ("clipboard", "fax"),
    ("upload_provider", "nowhere"),
    ("capture_delay_ms", "soon"),
])
def test_set_value_rejects(key: str, value: str) -> None:
    with pytest.raises(ValueError):
        set_value(Config(), key, value)


def test_save_config_writes_yaml(tmp_path: Path) -> None:
    path = save_config(Config(clipboard="uri"), tmp_path / "sub" / "config.yaml")

    assert yaml.safe_load(path.read_text())["clipboard"] == "uri"
    assert load_config(config_path=path).clipboard == "uri"


def test_validate_config_dict() -> None:
    errors = validate_config_dict({
        "shadows": "yes",
        "capture_delay_ms": -1,
        "flash": "loud",
        "extra": 1,
    })

    assert "Unknown config key: extra" in errors
    assert "shadows must be a boolean" in errors
    assert "capture_delay_ms must be >= 0" in errors
    assert any(error.startswith("flash must be one of") for error in errors)
    assert validate_config_dict([]) == ["Config must be a mapping/object"]


def test_validate_config_file(tmp_path: Path) -> None:
    good = write_config(tmp_path / "good.yaml", {"upload-provider": "Imgur"})
    bad = write_config(tmp_path / "bad.yaml", {"upload-provider": "nowhere"})

    assert validate_config_file(good) == []
    assert validate_config_file(bad) != []
    assert validate_config_file(tmp_path / "absent.yaml") == []

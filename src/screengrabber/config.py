"""Configuration management for Screengrabber.

Configuration priority (highest to lowest):
1. CLI overrides (passed to load_config)
2. Environment variables (SCREENGRABBER_*)
3. Config file (~/.config/screengrabber/config.yaml)
4. Built-in defaults

Invalid values never stop the tool: they are logged and the feature they
control falls back to disabled.
"""

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Callable, Optional

import yaml
from platformdirs import user_config_dir

log = logging.getLogger(__name__)

ENV_PREFIX = "SCREENGRABBER"
CONFIG_DIR = Path(user_config_dir("screengrabber"))
DEFAULT_CONFIG_PATH = CONFIG_DIR / "config.yaml"

DEFAULT_TEMPLATE = "Screenshot from %Y-%m-%d %H-%M-%S.png"

CLIPBOARD_MODES = ("none", "uri", "image")
FLASH_MODES = ("none", "audio", "video", "both")
KEYBINDING_KEYS = ("key_desktop", "key_monitor", "key_window", "key_selection")


@dataclass
class Config:
    """Screengrabber configuration."""

    # Capture
    capture_command: str = "wayland-capture"
    capture_delay_ms: int = 100
    shadows: bool = True

    # Post-capture
    notifications: bool = True
    clipboard: str = "none"
    flash: str = "both"
    template: str = DEFAULT_TEMPLATE

    # Upload
    upload_provider: str = ""
    delete_after_upload: bool = False

    # Global shortcuts (GTK accelerator strings, empty = unbound)
    key_desktop: str = ""
    key_monitor: str = ""
    key_window: str = ""
    key_selection: str = ""

    def __post_init__(self):
        if self.clipboard not in CLIPBOARD_MODES:
            log.warning("Invalid clipboard mode %r, using 'none'", self.clipboard)
            self.clipboard = "none"
        if self.flash not in FLASH_MODES:
            log.warning("Invalid flash mode %r, using 'none'", self.flash)
            self.flash = "none"
        if self.template is None:
            self.template = ""
        if self.upload_provider is None:
            self.upload_provider = ""

    @property
    def flash_video(self) -> bool:
        return self.flash in ("video", "both")

    @property
    def flash_audio(self) -> bool:
        return self.flash in ("audio", "both")


BOOL_KEYS = {"shadows", "notifications", "delete_after_upload"}
INT_KEYS = {"capture_delay_ms"}
ENUM_KEYS = {"clipboard": CLIPBOARD_MODES, "flash": FLASH_MODES}


def _env(name: str) -> Optional[str]:
    return os.environ.get(f"{ENV_PREFIX}_{name}")


def _config_path_from_env() -> Optional[Path]:
    value = _env("CONFIG") or _env("CONFIG_PATH")
    if value:
        return Path(value).expanduser()
    return None


def _load_config_file(path: Path, strict: bool = False) -> dict:
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except Exception as exc:
        if strict:
            raise ValueError(f"Failed to parse config file {path}: {exc}")
        log.warning("Ignoring unreadable config file %s: %s", path, exc)
        return {}

    if not isinstance(data, dict):
        if strict:
            raise ValueError(f"Config file {path} must be a mapping")
        return {}

    # The settings UI historically used dashed names (upload-provider)
    return {str(key).replace("-", "_"): value for key, value in data.items()}


def _parse_bool(value: str) -> bool:
    return value.lower() in ("true", "1", "yes", "on")


def config_defaults() -> dict:
    return config_to_dict(Config())


def _load_env_overrides() -> dict:
    config: dict[str, Any] = {}

    for item in fields(Config):
        value = _env(item.name.upper())
        if value is None:
            continue
        if item.name in BOOL_KEYS:
            config[item.name] = _parse_bool(value)
        elif item.name in INT_KEYS:
            try:
                config[item.name] = int(value)
            except ValueError:
                continue
        else:
            config[item.name] = value

    return config


def resolve_config_path(config_path: Optional[Path] = None) -> Path:
    return config_path or _config_path_from_env() or DEFAULT_CONFIG_PATH


def load_config(
    config_path: Optional[Path] = None,
    overrides: Optional[dict] = None,
    strict: bool = False,
) -> Config:
    """Load configuration from all sources."""
    resolved_path = resolve_config_path(config_path)

    config_dict = config_defaults()
    file_config = _load_config_file(resolved_path, strict=strict)
    config_dict.update(file_config)
    config_dict.update(_load_env_overrides())

    if overrides:
        for key, value in overrides.items():
            if value is not None:
                config_dict[key] = value

    known = {item.name for item in fields(Config)}
    for key in list(config_dict):
        if key not in known:
            log.warning("Ignoring unknown config key: %s", key)
            del config_dict[key]

    return Config(**config_dict)


def save_config(config: Config, config_path: Optional[Path] = None) -> Path:
    """Write the configuration as YAML and return the path written."""
    path = resolve_config_path(config_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(config_to_dict(config), sort_keys=True))
    log.debug("Configuration written to %s", path)
    return path


def set_value(config: Config, key: str, value: str) -> Config:
    """Return a copy of ``config`` with ``key`` set from a string value.

    Raises:
        ValueError: If the key is unknown or the value does not fit
    """
    key = key.replace("-", "_")
    data = config_to_dict(config)
    if key not in data:
        raise ValueError(f"Unknown config key: {key}")

    if key in BOOL_KEYS:
        data[key] = _parse_bool(value)
    elif key in INT_KEYS:
        data[key] = int(value)
    else:
        data[key] = value

    errors = validate_config_dict({key: data[key]})
    if errors:
        raise ValueError("; ".join(errors))
    return Config(**data)


# Global config instance (lazy loaded)
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def config_schema() -> dict:
    return {
        "$schema": "https://json-schema.org/draft/2020-12/schema",
        "type": "object",
        "properties": {
            "capture_command": {"type": "string"},
            "capture_delay_ms": {"type": "integer", "minimum": 0},
            "shadows": {"type": "boolean"},
            "notifications": {"type": "boolean"},
            "clipboard": {"type": "string", "enum": list(CLIPBOARD_MODES)},
            "flash": {"type": "string", "enum": list(FLASH_MODES)},
            "template": {"type": "string"},
            "upload_provider": {"type": "string"},
            "delete_after_upload": {"type": "boolean"},
            "key_desktop": {"type": "string"},
            "key_monitor": {"type": "string"},
            "key_window": {"type": "string"},
            "key_selection": {"type": "string"},
        },
        "additionalProperties": False,
    }


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_config_dict(data: Any) -> list[str]:
    errors: list[str] = []
    if not isinstance(data, dict):
        return ["Config must be a mapping/object"]

    props = config_schema()["properties"]

    for key in data.keys():
        if key not in props:
            errors.append(f"Unknown config key: {key}")

    for key, value in data.items():
        if key not in props:
            continue
        expected = props[key]["type"]
        if expected == "string" and not isinstance(value, str):
            errors.append(f"{key} must be a string")
        elif expected == "integer" and not _is_int(value):
            errors.append(f"{key} must be an integer")
        elif expected == "boolean" and not isinstance(value, bool):
            errors.append(f"{key} must be a boolean")

        if key in ENUM_KEYS and value not in ENUM_KEYS[key]:
            errors.append(f"{key} must be one of: {', '.join(ENUM_KEYS[key])}")
        if key == "capture_delay_ms" and _is_int(value) and value < 0:
            errors.append("capture_delay_ms must be >= 0")
        if key == "upload_provider" and isinstance(value, str) and value:
            from .providers import provider_names
            if value.lower() not in {name.lower() for name in provider_names()}:
                errors.append(f"upload_provider must be one of: {', '.join(provider_names())}")

    return errors


def validate_config_file(config_path: Optional[Path] = None) -> list[str]:
    path = resolve_config_path(config_path)
    if not path.exists():
        return []
    data = _load_config_file(path, strict=True)
    return validate_config_dict(data)


def config_to_dict(config: Config) -> dict:
    return {item.name: getattr(config, item.name) for item in fields(Config)}


class ConfigMonitor:
    """Reload the configuration file when it changes on disk."""

    def __init__(self, callback: Callable[[Config], None], config_path: Optional[Path] = None):
        from gi.repository import Gio

        self._path = resolve_config_path(config_path)
        self._callback = callback
        self._monitor = Gio.File.new_for_path(str(self._path)).monitor_file(
            Gio.FileMonitorFlags.NONE, None
        )
        self._handler = self._monitor.connect("changed", self._on_changed)

    def _on_changed(self, monitor, file, other_file, event_type) -> None:
        from gi.repository import Gio

        if event_type not in (
            Gio.FileMonitorEvent.CHANGES_DONE_HINT,
            Gio.FileMonitorEvent.CREATED,
            Gio.FileMonitorEvent.DELETED,
        ):
            return
        log.info("Configuration changed, reloading %s", self._path)
        self._callback(load_config(config_path=self._path))

    def destroy(self) -> None:
        if self._monitor is not None:
            self._monitor.disconnect(self._handler)
            self._monitor.cancel()
            self._monitor = None

"""Command-line interface for Screengrabber.

Without a capture mode the tray icon runs until quit, with global
shortcuts and live configuration reload. With ``--desktop``,
``--monitor``, ``--window`` or ``--selection`` one capture is taken and the
process exits once it is saved (and uploaded, when configured).
"""

import argparse
import json
import logging
import signal
import sys
from pathlib import Path
from typing import Optional

from . import APP_NAME, __version__, keybind
from .config import (
    KEYBINDING_KEYS,
    Config,
    config_defaults,
    config_schema,
    config_to_dict,
    load_config,
    save_config,
    set_value,
    validate_config_file,
)
from .providers import get_meta, provider_names
from .windows import APP_ID

log = logging.getLogger(__name__)

MODES = ("desktop", "monitor", "window", "selection")


def create_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="screengrabber",
        description="Screenshot capture with desktop, monitor, window and area selection",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                           # Tray icon with global shortcuts (default)
  %(prog)s --selection               # Drag an area, save it and exit
  %(prog)s --window --provider imgur # Pick a window and upload it
  %(prog)s --set clipboard=uri       # Change a setting in the config file
""",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"screengrabber {__version__}",
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        help="Path to config file (default: platform config dir)",
    )

    # Introspection
    parser.add_argument(
        "--print-defaults",
        action="store_true",
        help="Print default configuration as JSON and exit",
    )
    parser.add_argument(
        "--print-config-schema",
        action="store_true",
        help="Print configuration schema as JSON and exit",
    )
    parser.add_argument(
        "--validate-config",
        action="store_true",
        help="Validate configuration file and exit",
    )
    parser.add_argument(
        "--print-resolved",
        action="store_true",
        help="Print resolved configuration as JSON and exit",
    )
    parser.add_argument(
        "--list-providers",
        action="store_true",
        help="Print the upload providers as JSON and exit",
    )
    parser.add_argument(
        "--set",
        action="append",
        metavar="KEY=VALUE",
        help="Write a setting to the config file and exit (repeatable)",
    )

    # Capture modes (mutually exclusive)
    mode_group = parser.add_mutually_exclusive_group()
    mode_group.add_argument(
        "--desktop",
        action="store_true",
        help="Capture the whole desktop",
    )
    mode_group.add_argument(
        "--monitor",
        action="store_true",
        help="Click a monitor to capture it",
    )
    mode_group.add_argument(
        "--window",
        action="store_true",
        help="Click a window to capture it",
    )
    mode_group.add_argument(
        "--selection",
        action="store_true",
        help="Drag a rectangle to capture it",
    )

    # One-run overrides
    parser.add_argument(
        "--delay",
        type=int,
        metavar="MS",
        help="Delay between closing the overlay and capturing",
    )
    parser.add_argument(
        "--provider",
        metavar="NAME",
        help="Upload provider for this run (see --list-providers)",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    return parser


def _emit_json(payload) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True))


def _config_path(args: argparse.Namespace) -> Optional[Path]:
    return Path(args.config).expanduser() if args.config else None


def _handle_introspection(args: argparse.Namespace) -> Optional[int]:
    config_path = _config_path(args)

    if args.print_defaults:
        _emit_json(config_defaults())
        return 0

    if args.print_config_schema:
        _emit_json(config_schema())
        return 0

    if args.validate_config:
        try:
            errors = validate_config_file(config_path)
        except ValueError as e:
            errors = [str(e)]
        if errors:
            for error in errors:
                print(error, file=sys.stderr)
            return 1
        return 0

    if args.print_resolved:
        config = load_config(config_path=config_path)
        _emit_json(config_to_dict(config))
        return 0

    if args.list_providers:
        _emit_json({name: get_meta(name) for name in provider_names()})
        return 0

    return None


def _handle_set(args: argparse.Namespace) -> int:
    config_path = _config_path(args)
    config = load_config(config_path=config_path)

    for item in args.set:
        key, sep, value = item.partition("=")
        if not sep:
            print(f"Expected KEY=VALUE, got {item!r}", file=sys.stderr)
            return 1
        try:
            config = set_value(config, key.strip(), value.strip())
        except ValueError as e:
            print(e, file=sys.stderr)
            return 1

    path = save_config(config, config_path)
    print(path)
    return 0


def _overrides(args: argparse.Namespace) -> dict:
    return {
        "capture_delay_ms": args.delay,
        "upload_provider": args.provider,
    }


def _selected_mode(args: argparse.Namespace) -> Optional[str]:
    for mode in MODES:
        if getattr(args, mode):
            return mode
    return None


def _bind_shortcuts(indicator, config: Config) -> None:
    keybind.remove_all()
    for key in KEYBINDING_KEYS:
        keybind.add(key, config, getattr(indicator, key[len("key_"):]))


def run(config: Config, mode: Optional[str] = None, config_path: Optional[Path] = None) -> int:
    """Run the GTK main loop, one-shot when ``mode`` is given."""
    import gi
    gi.require_version("Gtk", "3.0")
    from gi.repository import Gtk, GLib

    from .config import ConfigMonitor
    from .indicator import Indicator
    from .screen import Screen

    GLib.set_prgname(APP_ID)
    GLib.set_application_name(APP_NAME)

    screen = Screen()
    indicator = Indicator(config, screen)
    outcome = {"path": None}
    tray = None
    monitor = None

    def quit_loop(*args):
        Gtk.main_quit()
        return False

    GLib.unix_signal_add(GLib.PRIORITY_DEFAULT, signal.SIGINT, quit_loop)
    GLib.unix_signal_add(GLib.PRIORITY_DEFAULT, signal.SIGTERM, quit_loop)

    if mode is not None:
        def on_finished(path):
            outcome["path"] = path
            quit_loop()

        def start():
            if getattr(indicator, mode)() is None:
                quit_loop()
            return False

        indicator.finished.connect(on_finished)
        GLib.idle_add(start)
    else:
        from .ui.tray import Tray

        def on_config_changed(new_config: Config):
            indicator.update_config(new_config)
            _bind_shortcuts(indicator, new_config)

        tray = Tray(indicator, on_quit=quit_loop)
        _bind_shortcuts(indicator, config)
        monitor = ConfigMonitor(on_config_changed, config_path)

    try:
        Gtk.main()
    finally:
        if monitor is not None:
            monitor.destroy()
        if tray is not None:
            tray.destroy()
        keybind.remove_all()
        indicator.destroy()
        screen.destroy()

    if mode is not None and outcome["path"] is None:
        return 1
    return 0


def main(args: Optional[list[str]] = None) -> int:
    """Main entry point.

    Args:
        args: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_argument_parser()
    parsed_args = parser.parse_args(args)

    logging.basicConfig(
        level=logging.DEBUG if parsed_args.debug else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    # Introspection flags short-circuit normal execution
    result = _handle_introspection(parsed_args)
    if result is not None:
        return result

    if parsed_args.set:
        return _handle_set(parsed_args)

    config_path = _config_path(parsed_args)
    config = load_config(config_path=config_path, overrides=_overrides(parsed_args))
    return run(config, _selected_mode(parsed_args), config_path)


if __name__ == "__main__":
    sys.exit(main())

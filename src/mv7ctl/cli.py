"""
mv7ctl Command Line Interface.

Provides commands for controlling a Shure MV7:
- status: Show mute state and mic position
- mute: Show or set the mute switch
- position: Show or set the mic position (near/far)
- reset: Reset the device
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any

import yaml

from mv7ctl import __version__
from mv7ctl.config import MV7Config, load_config, validate_config
from mv7ctl.device.errors import MV7Error
from mv7ctl.device.position import MicPosition
from mv7ctl.device.session import DeviceSession


logger = logging.getLogger("mv7ctl")


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog="mv7ctl",
        description="Control Shure MV7 microphone settings",
    )
    parser.add_argument(
        "-V", "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-c", "--config",
        metavar="FILE",
        help="Path to configuration file",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output in JSON format",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # status command
    status_parser = subparsers.add_parser(
        "status", help="Display all current settings of the connected MV7"
    )
    status_parser.set_defaults(func=cmd_status)

    # mute command
    mute_parser = subparsers.add_parser("mute", help="Mute/unmute the microphone")
    mute_parser.add_argument(
        "state",
        nargs="?",
        choices=["on", "off"],
        help="on mutes, off unmutes (omit to show current state)",
    )
    mute_parser.set_defaults(func=cmd_mute)

    # position command
    position_parser = subparsers.add_parser(
        "position",
        help='Indicate whether the mic is "near or far" to your mouth',
    )
    position_parser.add_argument(
        "state",
        nargs="?",
        choices=["near", "far"],
        help="Mic position (omit to show current position)",
    )
    position_parser.set_defaults(func=cmd_position)

    # reset command
    reset_parser = subparsers.add_parser("reset", help="Reset the device")
    reset_parser.set_defaults(func=cmd_reset)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        config = load_config(args.config)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (yaml.YAMLError, TypeError, ValueError) as e:
        print(f"Error: Invalid configuration: {e}", file=sys.stderr)
        return 1

    if args.verbose:
        config.logging.log_level = "debug"

    errors = validate_config(config)
    if errors:
        print("Configuration errors:", file=sys.stderr)
        for error in errors:
            print(f"  - {error}", file=sys.stderr)
        return 1

    setup_logging(config)

    try:
        return args.func(args, config)
    except MV7Error as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


def setup_logging(config: MV7Config) -> None:
    """Configure logging based on config."""
    level = getattr(logging, config.logging.log_level.upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        filename=config.logging.log_file,
    )


def open_session(config: MV7Config) -> DeviceSession:
    """Open a session on the configured device."""
    return DeviceSession.open(
        profile=config.device.get_profile(),
        timing=config.timing,
    )


def output(data: Any, args: argparse.Namespace) -> None:
    """Output data in requested format."""
    if getattr(args, "json", False):
        print(json.dumps(data, indent=2, default=str))
    elif isinstance(data, dict):
        for key, value in data.items():
            print(f"{key}: {value}")
    else:
        print(data)


def cmd_status(args: argparse.Namespace, config: MV7Config) -> int:
    """Show mute state and mic position."""
    with open_session(config) as mic:
        status = mic.status()

    data = status.to_dict()
    if not args.json:
        data["muted"] = "on" if status.muted else "off"
    output(data, args)
    return 0


def cmd_mute(args: argparse.Namespace, config: MV7Config) -> int:
    """Show or set the mute switch."""
    with open_session(config) as mic:
        if args.state is None:
            muted = mic.get_mute()
        else:
            muted = args.state == "on"
            mic.set_mute(muted)

    if args.json:
        output({"muted": muted}, args)
    elif args.state is None:
        output({"muted": "on" if muted else "off"}, args)
    return 0


def cmd_position(args: argparse.Namespace, config: MV7Config) -> int:
    """Show or set the mic position."""
    with open_session(config) as mic:
        if args.state is None:
            mic_position = mic.get_mic_position()
        else:
            mic_position = MicPosition.from_name(args.state)
            mic.set_mic_position(mic_position)

    if args.json or args.state is None:
        output({"position": str(mic_position)}, args)
    return 0


def cmd_reset(args: argparse.Namespace, config: MV7Config) -> int:
    """Reset the device."""
    with open_session(config) as mic:
        mic.reset()
    print("Device reset")
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""Command-line interface for hwtest-relayplate.

Usage:
    # Turn relay 3 on the default board on
    hwtest-relayplate --board 0 on 3

    # Show relay states and board identity
    hwtest-relayplate --board 0 state
    hwtest-relayplate --board 0 id

    # Use a YAML configuration file
    hwtest-relayplate --config bench.yaml toggle 5
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys

from hwtest_relayplate.config import load_config
from hwtest_relayplate.errors import ConfigurationError, RelayPlateError
from hwtest_relayplate.relayplate import RelayPlate, RelayPlateConfig


def setup_logging(debug: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _driver_config(args: argparse.Namespace) -> RelayPlateConfig:
    """Build the driver configuration from --config and --board."""
    if args.config:
        config = load_config(args.config).driver
    else:
        config = RelayPlateConfig()
    if args.board is not None:
        config = dataclasses.replace(config, board_id=args.board)
    return config


def cmd_relay(plate: RelayPlate, args: argparse.Namespace) -> int:
    """Switch a single relay."""
    action = {"on": plate.on, "off": plate.off, "toggle": plate.toggle}[args.command]
    action(args.relay)
    return 0


def cmd_led(plate: RelayPlate, args: argparse.Namespace) -> int:
    """Switch the board LED."""
    action = {
        "led-on": plate.led_on,
        "led-off": plate.led_off,
        "led-toggle": plate.led_toggle,
    }[args.command]
    action()
    return 0


def cmd_state(plate: RelayPlate, args: argparse.Namespace) -> int:
    """Print the state of every relay on the board."""
    state = plate.get_state()
    for relay, closed in enumerate(state, start=1):
        print(f"relay {relay}: {'on' if closed else 'off'}")
    return 0


def cmd_id(plate: RelayPlate, args: argparse.Namespace) -> int:
    """Print the board identity string."""
    if plate.board_id is None:
        raise ConfigurationError("id requires --board or a configured board_id")
    identity = plate.get_id(plate.board_id)
    print(identity or "(no board)")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="hwtest-relayplate",
        description="Control Pi-Plates RELAYplate boards",
    )
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("--board", type=int, help="Board id (0-7)")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (
        ("on", "Turn a relay on"),
        ("off", "Turn a relay off"),
        ("toggle", "Toggle a relay"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("relay", type=int, help="Relay index (1-7)")
        sub.set_defaults(func=cmd_relay)

    for name, help_text in (
        ("led-on", "Turn the board LED on"),
        ("led-off", "Turn the board LED off"),
        ("led-toggle", "Toggle the board LED"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.set_defaults(func=cmd_led)

    subparsers.add_parser("state", help="Show relay states").set_defaults(func=cmd_state)
    subparsers.add_parser("id", help="Show board identity").set_defaults(func=cmd_id)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.debug)

    try:
        plate = RelayPlate(_driver_config(args))
        plate.open()
    except (RelayPlateError, FileNotFoundError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    try:
        return int(args.func(plate, args))
    except RelayPlateError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        plate.close()


if __name__ == "__main__":
    sys.exit(main())

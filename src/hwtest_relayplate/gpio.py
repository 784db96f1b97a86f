"""GPIO line access for the RELAYplate control pins.

Wraps lgpio (Raspberry Pi 5 compatible, also works on earlier models) to
claim the three Pi-Plates control lines: frame-select as an output and the
interrupt and acknowledge lines as pulled-up inputs.
"""

from __future__ import annotations

import re
from typing import Any

from hwtest_relayplate.errors import ConfigurationError, ResourceOpenError

# GPIO direction constants
INPUT = 0
OUTPUT = 1

# GPIO level constants
LOW = 0
HIGH = 1

# Pull configuration for input lines
PULL_NONE = 0
PULL_UP = 1
PULL_DOWN = 2

_PIN_NAME = re.compile(r"^(?:GPIO)?(\d+)$", re.IGNORECASE)


def parse_pin(pin: int | str) -> int:
    """Normalize a pin identifier to a BCM number.

    Args:
        pin: BCM number, or a name such as ``"GPIO25"`` or ``"25"``.

    Returns:
        BCM pin number.

    Raises:
        ConfigurationError: If the identifier is not recognized.
    """
    if isinstance(pin, bool):
        raise ConfigurationError(f"invalid GPIO pin: {pin!r}")
    if isinstance(pin, int):
        if pin < 0:
            raise ConfigurationError(f"invalid GPIO pin: {pin!r}")
        return pin
    match = _PIN_NAME.match(str(pin).strip())
    if match is None:
        raise ConfigurationError(f"invalid GPIO pin: {pin!r}")
    return int(match.group(1))


class GpioLine:
    """A single claimed GPIO line.

    Attributes:
        _lgpio: Reference to the lgpio module.
        _chip: GPIO chip handle from gpiochip_open().
        _pin: BCM pin number.
        _direction: Line direction (INPUT or OUTPUT).
    """

    def __init__(
        self,
        chip_handle: int,
        pin: int,
        direction: int,
        initial: int = LOW,
        pull: int = PULL_NONE,
        lgpio_module: Any = None,
    ) -> None:
        self._lgpio = lgpio_module
        self._chip = chip_handle
        self._pin = pin
        self._direction = direction

        if direction == OUTPUT:
            self._lgpio.gpio_claim_output(chip_handle, pin, initial)
        else:
            self._lgpio.gpio_claim_input(chip_handle, pin, self._pull_flags(pull))

    @property
    def pin(self) -> int:
        """BCM pin number."""
        return self._pin

    def _pull_flags(self, pull: int) -> int:
        if pull == PULL_UP:
            return int(self._lgpio.SET_PULL_UP)
        if pull == PULL_DOWN:
            return int(self._lgpio.SET_PULL_DOWN)
        return 0

    def read(self) -> int:
        """Read the current line level (0 or 1)."""
        result: int = self._lgpio.gpio_read(self._chip, self._pin)
        return result

    def write(self, value: int) -> None:
        """Drive an output line to 0 or 1."""
        self._lgpio.gpio_write(self._chip, self._pin, value)

    def release(self) -> None:
        """Release the line back to the system.

        Errors during release are silently ignored.
        """
        try:
            self._lgpio.gpio_free(self._chip, self._pin)
        except Exception:  # pylint: disable=broad-exception-caught
            pass


class Gpio:
    """GPIO chip interface using lgpio.

    Lines are addressed by BCM number after being configured with
    :meth:`setup`.

    Args:
        chip: GPIO chip number (default 0 for main GPIO).
    """

    def __init__(self, chip: int = 0) -> None:
        self._chip = chip
        self._handle: int | None = None
        self._lines: dict[int, GpioLine] = {}
        self._lgpio: Any = None

    def open(self) -> None:
        """Open the GPIO chip.

        Raises:
            ResourceOpenError: If lgpio is not installed or the chip cannot
                be opened.
        """
        if self._handle is not None:
            return

        try:
            import lgpio  # type: ignore[import-not-found]  # pylint: disable=import-outside-toplevel

            self._lgpio = lgpio
        except ImportError as exc:
            raise ResourceOpenError(
                "lgpio library is not installed. Install with: pip install lgpio"
            ) from exc

        try:
            self._handle = lgpio.gpiochip_open(self._chip)
        except Exception as exc:
            raise ResourceOpenError(f"Failed to open GPIO chip {self._chip}: {exc}") from exc

    def close(self) -> None:
        """Release all lines and close the GPIO chip."""
        if self._handle is None:
            return

        self.cleanup()

        try:
            self._lgpio.gpiochip_close(self._handle)
        except Exception:  # pylint: disable=broad-exception-caught
            pass
        self._handle = None

    def setup(
        self,
        pin: int,
        direction: int,
        initial: int = LOW,
        pull: int = PULL_NONE,
    ) -> None:
        """Claim a GPIO line.

        Args:
            pin: BCM pin number.
            direction: INPUT or OUTPUT.
            initial: Initial level for output lines.
            pull: PULL_NONE, PULL_UP or PULL_DOWN for input lines.
        """
        if self._handle is None:
            raise RuntimeError("GPIO not opened")

        if pin in self._lines:
            self._lines[pin].release()

        self._lines[pin] = GpioLine(
            self._handle, pin, direction, initial, pull, self._lgpio
        )

    def input(self, pin: int) -> int:
        """Read a configured line."""
        if pin not in self._lines:
            raise RuntimeError(f"Pin {pin} not configured")
        return self._lines[pin].read()

    def output(self, pin: int, value: int) -> None:
        """Write to a configured output line."""
        if pin not in self._lines:
            raise RuntimeError(f"Pin {pin} not configured")
        self._lines[pin].write(value)

    def cleanup(self, pins: int | list[int] | None = None) -> None:
        """Release GPIO lines.

        Args:
            pins: Pin or list of pins to release, or None for all.
        """
        if pins is None:
            pins_to_release = list(self._lines.keys())
        elif isinstance(pins, int):
            pins_to_release = [pins]
        else:
            pins_to_release = list(pins)

        for pin in pins_to_release:
            if pin in self._lines:
                self._lines[pin].release()
                del self._lines[pin]

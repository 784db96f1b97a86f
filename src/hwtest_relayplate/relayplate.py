"""Pi-Plates RELAYplate driver.

The RELAYplate is a 7-relay Raspberry Pi HAT. Up to eight plates share one
SPI bus; each is addressed by a 0-7 board id set with jumpers while the
stack is powered off.

Pin connections (BCM numbering):
- SPI0 CE1: /dev/spidev0.1, 300 kHz, 40 us between bytes
- Frame-select: GPIO25 (output, high for the duration of a command)
- Interrupt: GPIO22 (input, pulled up)
- Acknowledge: GPIO23 (input, pulled up)

A command is one transaction: frame-select high, the 4-byte frame, any
response bytes read one at a time with a short delay after each, then
frame-select low. Transactions on one driver must not overlap; the driver
does no locking, so callers sharing it across threads must serialize.
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator

from hwtest_relayplate.errors import (
    ConfigurationError,
    HardwareIOError,
    RelayPlateError,
    ResourceOpenError,
)
from hwtest_relayplate.gpio import HIGH, INPUT, LOW, OUTPUT, PULL_UP, Gpio, parse_pin
from hwtest_relayplate.protocol import (
    BOARD_PLACEHOLDER,
    Command,
    decode_identity,
    decode_state,
    encode_frame,
    validate_board_id,
)
from hwtest_relayplate.spi import (
    DEFAULT_DELAY_US,
    DEFAULT_SPEED_HZ,
    DEFAULT_SPI_BUS,
    DEFAULT_SPI_DEVICE,
    create_spi_device,
    open_spi,
)
from hwtest_relayplate.types import BoardState

logger = logging.getLogger(__name__)

# Default control pins on every Pi-Plate
_DEFAULT_FRAME_PIN = 25
_DEFAULT_INT_PIN = 22
_DEFAULT_ACK_PIN = 23


@dataclass(frozen=True)
class RelayPlateConfig:
    """Configuration for the RELAYplate driver.

    The pin defaults are fixed by the Pi-Plates hardware and should only be
    changed for custom wiring.

    Args:
        board_id: Default board used when an operation omits one, or None.
        frame_pin: Frame-select line (BCM number or name like "GPIO25").
        int_pin: Interrupt line.
        ack_pin: Acknowledge line.
        gpio_chip: lgpio chip number.
        spi_bus: SPI bus number.
        spi_device: SPI chip-select number.
        spi_speed_hz: SPI clock in Hz.
        spi_delay_us: Delay after each SPI transfer in microseconds.
        settle_delay_s: Wait after claiming frame-select so the plate can
            reset its SPI engine.
        byte_delay_s: Wait after each response byte is read.
        release_frame_on_error: Drive frame-select low when a transaction
            fails part way. Set False to leave the line as the failing step
            left it.
    """

    board_id: int | None = None
    frame_pin: int = _DEFAULT_FRAME_PIN
    int_pin: int = _DEFAULT_INT_PIN
    ack_pin: int = _DEFAULT_ACK_PIN
    gpio_chip: int = 0
    spi_bus: int = DEFAULT_SPI_BUS
    spi_device: int = DEFAULT_SPI_DEVICE
    spi_speed_hz: int = DEFAULT_SPEED_HZ
    spi_delay_us: int = DEFAULT_DELAY_US
    settle_delay_s: float = 0.010
    byte_delay_s: float = 0.001
    release_frame_on_error: bool = True

    def __post_init__(self) -> None:
        """Validate configuration and normalize pin names to BCM numbers."""
        if self.board_id is not None:
            validate_board_id(self.board_id)

        pins = []
        for name in ("frame_pin", "int_pin", "ack_pin"):
            pin = parse_pin(getattr(self, name))
            object.__setattr__(self, name, pin)
            pins.append(pin)
        if len(set(pins)) != len(pins):
            raise ConfigurationError(f"control pins must be distinct, got {pins}")

        for name in ("gpio_chip", "spi_bus", "spi_device", "spi_speed_hz", "spi_delay_us"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise ConfigurationError(f"{name} must be an integer, got {value!r}")
        for name in ("settle_delay_s", "byte_delay_s"):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or isinstance(value, bool):
                raise ConfigurationError(f"{name} must be a number, got {value!r}")
        if not isinstance(self.release_frame_on_error, bool):
            raise ConfigurationError(
                f"release_frame_on_error must be true or false, got {self.release_frame_on_error!r}"
            )

        if self.spi_speed_hz <= 0:
            raise ConfigurationError(f"spi_speed_hz must be positive, got {self.spi_speed_hz}")
        if self.spi_delay_us < 0:
            raise ConfigurationError(f"spi_delay_us must be >= 0, got {self.spi_delay_us}")
        if self.settle_delay_s < 0 or self.byte_delay_s < 0:
            raise ConfigurationError("delays must be >= 0")


class RelayPlate:
    """Driver handle for a chain of RELAYplates.

    Owns the frame-select, interrupt and acknowledge lines and the SPI
    device from :meth:`open` until :meth:`close`.

    Args:
        config: Driver configuration. If None, uses default configuration.
        spi: Optional spidev-compatible device (for testing).
        gpio: Optional GPIO interface (for testing). If None, uses lgpio.
    """

    def __init__(
        self,
        config: RelayPlateConfig | None = None,
        spi: Any | None = None,
        gpio: Any | None = None,
    ) -> None:
        self._config = config or RelayPlateConfig()
        self._spi = spi
        self._gpio = gpio
        self._owns_gpio = gpio is None
        self._opened = False

    def __enter__(self) -> RelayPlate:
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def config(self) -> RelayPlateConfig:
        """The driver configuration."""
        return self._config

    @property
    def is_open(self) -> bool:
        """Whether open() has completed successfully."""
        return self._opened

    @property
    def board_id(self) -> int | None:
        """Default board id, or None if not configured."""
        return self._config.board_id

    # -- Lifecycle -------------------------------------------------------------

    def open(self) -> None:
        """Claim the control lines and open the SPI device.

        Raises:
            RelayPlateError: If the driver is already open.
            ResourceOpenError: If any line or the SPI device fails to open.
                Everything opened before the failure is released first.
        """
        if self._opened:
            raise RelayPlateError("Device already open")

        cfg = self._config
        claimed: list[int] = []
        try:
            if self._gpio is None:
                gpio = Gpio(cfg.gpio_chip)
                gpio.open()
                self._gpio = gpio

            self._claim(cfg.frame_pin, "frame-select", OUTPUT)
            claimed.append(cfg.frame_pin)
            # Let the plate reset its SPI engine
            time.sleep(cfg.settle_delay_s)

            self._claim(cfg.int_pin, "interrupt", INPUT)
            claimed.append(cfg.int_pin)
            self._claim(cfg.ack_pin, "acknowledge", INPUT)
            claimed.append(cfg.ack_pin)

            if self._spi is None:
                self._spi = create_spi_device()
            open_spi(self._spi, cfg.spi_bus, cfg.spi_device, cfg.spi_speed_hz)
        except ResourceOpenError:
            self._release_gpio(claimed)
            raise

        self._opened = True
        logger.info(
            "RELAYplate driver opened on /dev/spidev%d.%d (frame=GPIO%s, default board=%s)",
            cfg.spi_bus,
            cfg.spi_device,
            cfg.frame_pin,
            cfg.board_id,
        )

    def close(self) -> None:
        """Close the SPI device and release the control lines.

        Safe to call multiple times. Errors are logged, never raised.
        """
        if not self._opened:
            return

        if self._spi is not None:
            try:
                self._spi.close()
            except Exception:  # pylint: disable=broad-exception-caught
                logger.warning("Error closing SPI device", exc_info=True)

        cfg = self._config
        self._release_gpio([cfg.frame_pin, cfg.int_pin, cfg.ack_pin])

        self._opened = False
        logger.info("RELAYplate driver closed")

    def _claim(self, pin: int, role: str, direction: int) -> None:
        """Claim one control line, mapping failures to ResourceOpenError."""
        assert self._gpio is not None
        try:
            if direction == OUTPUT:
                self._gpio.setup(pin, OUTPUT, initial=LOW)
            else:
                self._gpio.setup(pin, INPUT, pull=PULL_UP)
        except Exception as exc:
            raise ResourceOpenError(
                f"Failed to open {role} line GPIO{pin}: {exc}"
            ) from exc

    def _release_gpio(self, pins: list[int]) -> None:
        """Release lines, and the chip too if this driver opened it."""
        if self._gpio is None:
            return
        try:
            if self._owns_gpio:
                self._gpio.close()
                self._gpio = None
            elif pins:
                self._gpio.cleanup(pins)
        except Exception:  # pylint: disable=broad-exception-caught
            logger.warning("Error releasing GPIO lines %s", pins, exc_info=True)

    def _require_open(self) -> None:
        if not self._opened:
            raise RelayPlateError("Device not open")

    def _resolve_board(self, board_id: int | None) -> int:
        """Return the explicit board id, or the configured default."""
        if board_id is None:
            if self._config.board_id is None:
                raise ConfigurationError(
                    "board_id not given and no default board_id configured"
                )
            return self._config.board_id
        return validate_board_id(board_id)

    # -- Transaction sequencing ------------------------------------------------

    def _write_frame_select(self, level: int) -> None:
        assert self._gpio is not None
        try:
            self._gpio.output(self._config.frame_pin, level)
        except Exception as exc:
            raise HardwareIOError(
                f"Failed to drive frame-select {'high' if level else 'low'}: {exc}"
            ) from exc

    def _transfer(self, data: list[int]) -> list[int]:
        assert self._spi is not None
        try:
            result: list[int] = self._spi.xfer2(
                data, self._config.spi_speed_hz, self._config.spi_delay_us
            )
        except Exception as exc:
            raise HardwareIOError(f"SPI transfer failed: {exc}") from exc
        return result

    def _read_byte(self) -> int:
        """Clock out 0x00 and return the byte the plate sends back."""
        result = self._transfer([0x00])
        time.sleep(self._config.byte_delay_s)
        if len(result) != 1:
            raise HardwareIOError(f"SPI read returned {len(result)} bytes, expected 1")
        return result[0]

    @contextmanager
    def _frame_window(self) -> Iterator[None]:
        """Hold frame-select high around one transaction."""
        self._write_frame_select(HIGH)
        if not self._config.release_frame_on_error:
            yield
            self._write_frame_select(LOW)
            return
        try:
            yield
        except BaseException:
            try:
                self._write_frame_select(LOW)
            except HardwareIOError:
                logger.warning("Could not release frame-select after failure", exc_info=True)
            raise
        self._write_frame_select(LOW)

    def _run(self, command: Command, board_id: int | None, relay: int = BOARD_PLACEHOLDER) -> list[int]:
        """Run one command transaction and return any response bytes.

        Addresses are validated before the bus is touched.
        """
        self._require_open()
        board = self._resolve_board(board_id)
        frame = encode_frame(command, board, relay)
        logger.debug(
            "%s board=%d relay=%d frame=%s", command.name, board, relay, frame.hex(" ")
        )

        response: list[int] = []
        with self._frame_window():
            self._transfer(list(frame))
            if command.response_length:
                if command is Command.IDENTIFY:
                    time.sleep(self._config.byte_delay_s)
                for _ in range(command.response_length):
                    response.append(self._read_byte())
        return response

    # -- Relay operations ------------------------------------------------------

    def on(self, relay: int, board_id: int | None = None) -> None:
        """Turn a relay on.

        Args:
            relay: Relay index (1-7).
            board_id: Target board (0-7), or None for the default board.

        Raises:
            InvalidAddressError: If the relay or board id is out of range.
            ConfigurationError: If no board id is available.
            HardwareIOError: If the bus or frame-select line fails.
        """
        self._run(Command.RELAY_ON, board_id, relay)

    def off(self, relay: int, board_id: int | None = None) -> None:
        """Turn a relay off. Repeating the call is harmless."""
        self._run(Command.RELAY_OFF, board_id, relay)

    def toggle(self, relay: int, board_id: int | None = None) -> None:
        """Invert a relay."""
        self._run(Command.RELAY_TOGGLE, board_id, relay)

    def led_on(self, board_id: int | None = None) -> None:
        """Turn the board LED on."""
        self._run(Command.LED_ON, board_id)

    def led_off(self, board_id: int | None = None) -> None:
        """Turn the board LED off."""
        self._run(Command.LED_OFF, board_id)

    def led_toggle(self, board_id: int | None = None) -> None:
        """Invert the board LED."""
        self._run(Command.LED_TOGGLE, board_id)

    def get_state(self, board_id: int | None = None) -> BoardState:
        """Read the state of all seven relays on a board.

        Args:
            board_id: Target board (0-7), or None for the default board.

        Returns:
            Seven booleans; element 0 is relay 1.
        """
        (raw,) = self._run(Command.READ_STATE, board_id)
        state = decode_state(raw)
        logger.debug("state raw=0x%02x decoded=%s", raw, state)
        return state

    def get_id(self, board_id: int) -> str:
        """Read the identity string of a board.

        Args:
            board_id: Target board (0-7).

        Returns:
            Identity such as "Pi-Plate RELAY"; empty if nothing answers at
            that address.
        """
        identity = decode_identity(self._run(Command.IDENTIFY, board_id))
        logger.debug("board %d identity %r", board_id, identity)
        return identity

    # -- Auxiliary lines -------------------------------------------------------

    def read_interrupt(self) -> int:
        """Read the interrupt line level (pulled up, so 1 when idle)."""
        self._require_open()
        assert self._gpio is not None
        try:
            return int(self._gpio.input(self._config.int_pin))
        except Exception as exc:
            raise HardwareIOError(f"Failed to read interrupt line: {exc}") from exc

    def read_ack(self) -> int:
        """Read the acknowledge line level (pulled up, so 1 when idle)."""
        self._require_open()
        assert self._gpio is not None
        try:
            return int(self._gpio.input(self._config.ack_pin))
        except Exception as exc:
            raise HardwareIOError(f"Failed to read acknowledge line: {exc}") from exc


def start(
    config: RelayPlateConfig | None = None,
    spi: Any | None = None,
    gpio: Any | None = None,
    **options: Any,
) -> RelayPlate:
    """Create and open a RELAYplate driver.

    Args:
        config: Driver configuration. Mutually exclusive with ``options``.
        spi: Optional spidev-compatible device (for testing).
        gpio: Optional GPIO interface (for testing).
        **options: RelayPlateConfig fields, e.g. ``board_id=0`` or
            ``frame_pin="GPIO25"``.

    Returns:
        An open driver.

    Raises:
        ConfigurationError: If both ``config`` and ``options`` are given, or
            an option is unknown.
        ResourceOpenError: If the hardware cannot be opened.
    """
    if config is not None and options:
        raise ConfigurationError("pass either a config or keyword options, not both")
    if config is None:
        try:
            config = RelayPlateConfig(**options)
        except TypeError as exc:
            raise ConfigurationError(f"invalid driver option: {exc}") from exc
    plate = RelayPlate(config, spi=spi, gpio=gpio)
    plate.open()
    return plate


def stop(plate: RelayPlate) -> None:
    """Close a driver opened with :func:`start`. Never raises."""
    plate.close()

"""RELAYplate instrument driver for hwtest racks.

Wraps :class:`~hwtest_relayplate.relayplate.RelayPlate` with named relay
channels so test code can switch ``"pump"`` rather than board 2 relay 5.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from hwtest_relayplate.errors import ConfigurationError, RelayPlateError
from hwtest_relayplate.protocol import validate_board_id, validate_relay
from hwtest_relayplate.relayplate import RelayPlate, RelayPlateConfig
from hwtest_relayplate.types import InstrumentIdentity


@dataclass(frozen=True)
class RelayChannel:
    """A single named relay.

    Args:
        id: Relay index on the board (1-7).
        name: Logical alias for this relay.
        board_id: Board carrying the relay, or None for the instrument's
            default board.
    """

    id: int
    name: str
    board_id: int | None = None


@dataclass(frozen=True)
class RelayPlateInstrumentConfig:
    """Configuration for a RELAYplate instrument.

    Args:
        source_id: Instrument source identifier.
        driver: Low-level driver configuration; its ``board_id`` is the
            default board for channels that do not name one.
        channels: Named relay channels.
    """

    source_id: str
    driver: RelayPlateConfig = field(default_factory=lambda: RelayPlateConfig(board_id=0))
    channels: tuple[RelayChannel, ...] = ()

    def __post_init__(self) -> None:
        """Validate channel definitions."""
        seen_names: set[str] = set()
        seen_relays: set[tuple[int, int]] = set()
        for ch in self.channels:
            validate_relay(ch.id)
            board = ch.board_id if ch.board_id is not None else self.driver.board_id
            if board is None:
                raise ConfigurationError(
                    f"channel {ch.name!r} has no board_id and no default is configured"
                )
            validate_board_id(board)
            if ch.name in seen_names:
                raise ConfigurationError(f"duplicate channel name: {ch.name}")
            if (board, ch.id) in seen_relays:
                raise ConfigurationError(f"duplicate relay: board {board} relay {ch.id}")
            seen_names.add(ch.name)
            seen_relays.add((board, ch.id))


class RelayPlateInstrument:
    """Instrument driver for one or more chained RELAYplates.

    Args:
        config: Instrument configuration.
        spi: Optional spidev-compatible device (for testing).
        gpio: Optional GPIO interface (for testing).
    """

    def __init__(
        self,
        config: RelayPlateInstrumentConfig,
        spi: Any | None = None,
        gpio: Any | None = None,
    ) -> None:
        self._config = config
        self._plate = RelayPlate(config.driver, spi=spi, gpio=gpio)
        self._by_name: dict[str, RelayChannel] = {ch.name: ch for ch in config.channels}

    @property
    def config(self) -> RelayPlateInstrumentConfig:
        """The instrument configuration."""
        return self._config

    @property
    def plate(self) -> RelayPlate:
        """The underlying driver handle."""
        return self._plate

    @property
    def is_open(self) -> bool:
        """Return True if the driver is open."""
        return self._plate.is_open

    def open(self) -> None:
        """Open the driver. Does nothing if already open."""
        if self._plate.is_open:
            return
        self._plate.open()

    def close(self) -> None:
        """Close the driver."""
        self._plate.close()

    def get_identity(self) -> InstrumentIdentity:
        """Return the instrument identity read from the default board.

        Raises:
            RelayPlateError: If the driver is not open or no default board
                is configured.
        """
        board = self._config.driver.board_id
        if board is None:
            raise ConfigurationError("identity needs a default board_id")
        model = self._plate.get_id(board)
        return InstrumentIdentity(
            manufacturer="Pi-Plates",
            model=model,
            serial=f"board-{board}",
            firmware="",
        )

    def _resolve(self, channel: str | int) -> tuple[int | None, int]:
        """Resolve a channel name or relay index to (board_id, relay)."""
        if isinstance(channel, str):
            try:
                ch = self._by_name[channel]
            except KeyError:
                raise RelayPlateError(f"Unknown relay channel: {channel}") from None
            return ch.board_id, ch.id
        return None, validate_relay(channel)

    def set_relay(self, channel: str | int, value: bool) -> None:
        """Switch a relay on or off.

        Args:
            channel: Channel name or relay index on the default board.
            value: True to energize the relay.
        """
        board, relay = self._resolve(channel)
        if value:
            self._plate.on(relay, board)
        else:
            self._plate.off(relay, board)

    def toggle_relay(self, channel: str | int) -> None:
        """Invert a relay."""
        board, relay = self._resolve(channel)
        self._plate.toggle(relay, board)

    def read_relay(self, channel: str | int) -> bool:
        """Read one relay's state from the board."""
        board, relay = self._resolve(channel)
        return self._plate.get_state(board)[relay - 1]

    def read_all(self) -> dict[str, bool]:
        """Read every named channel, one state query per board."""
        states: dict[int | None, tuple[bool, ...]] = {}
        result: dict[str, bool] = {}
        for ch in self._config.channels:
            if ch.board_id not in states:
                states[ch.board_id] = self._plate.get_state(ch.board_id)
            result[ch.name] = states[ch.board_id][ch.id - 1]
        return result


def parse_channels(data: Any) -> tuple[RelayChannel, ...]:
    """Build relay channels from plain dicts.

    Args:
        data: List of mappings, each with ``id``, ``name`` and optional
            ``board_id``, or None.

    Returns:
        Tuple of RelayChannel objects.

    Raises:
        ConfigurationError: If the list or an entry is malformed.
    """
    if data is None:
        return ()
    if not isinstance(data, list):
        raise ConfigurationError("channels must be a list")

    channels: list[RelayChannel] = []
    for index, ch_data in enumerate(data):
        if not isinstance(ch_data, dict):
            raise ConfigurationError(f"channel {index} must be a mapping")
        if "id" not in ch_data or "name" not in ch_data:
            raise ConfigurationError(f"channel {index} missing required field: id or name")
        channels.append(
            RelayChannel(
                id=ch_data["id"],
                name=str(ch_data["name"]),
                board_id=ch_data.get("board_id"),
            )
        )
    return tuple(channels)


def create_instrument(
    source_id: str,
    board_id: int | None = 0,
    channels: list[dict[str, Any]] | None = None,
    frame_pin: int | str = 25,
    int_pin: int | str = 22,
    ack_pin: int | str = 23,
    spi_bus: int = 0,
    spi_device: int = 1,
) -> RelayPlateInstrument:
    """Create a RELAYplate instrument from configuration parameters.

    Standard factory entry point for the test rack and programmatic use.

    Args:
        source_id: Instrument source identifier.
        board_id: Default board id (0-7), or None.
        channels: List of relay definitions, each with ``id``, ``name`` and
            optional ``board_id``.
        frame_pin: Frame-select pin.
        int_pin: Interrupt pin.
        ack_pin: Acknowledge pin.
        spi_bus: SPI bus number.
        spi_device: SPI chip-select number.

    Returns:
        Configured instrument instance (call ``open()`` to connect).
    """
    channel_objs = parse_channels(channels)

    driver = RelayPlateConfig(
        board_id=board_id,
        frame_pin=frame_pin,  # type: ignore[arg-type]
        int_pin=int_pin,  # type: ignore[arg-type]
        ack_pin=ack_pin,  # type: ignore[arg-type]
        spi_bus=spi_bus,
        spi_device=spi_device,
    )
    return RelayPlateInstrument(
        RelayPlateInstrumentConfig(source_id=source_id, driver=driver, channels=channel_objs)
    )

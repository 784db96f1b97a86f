"""Pi-Plates RELAYplate driver for hwtest.

This package drives daisy-chained RELAYplate boards (up to eight, seven
relays each) over SPI with lgpio-controlled framing lines. The main
components are:

Modules:
    protocol: Command opcodes, frame encoding and response decoding.
    relayplate: Driver handle, transaction sequencing, start/stop.
    instrument: Named-channel instrument for hwtest racks.
    config: YAML configuration loading.
    gpio: GPIO abstraction layer (lgpio).
    spi: SPI device helpers (spidev).

Example:
    Basic usage::

        from hwtest_relayplate import start, stop

        plate = start(board_id=0)
        plate.on(3)
        print(plate.get_state())
        stop(plate)
"""

from hwtest_relayplate.errors import (
    ConfigurationError,
    HardwareIOError,
    InvalidAddressError,
    RelayPlateError,
    ResourceOpenError,
)
from hwtest_relayplate.instrument import (
    RelayChannel,
    RelayPlateInstrument,
    RelayPlateInstrumentConfig,
    create_instrument,
)
from hwtest_relayplate.protocol import (
    BASE_ADDRESS,
    Command,
    decode_identity,
    decode_state,
    encode_frame,
)
from hwtest_relayplate.relayplate import RelayPlate, RelayPlateConfig, start, stop
from hwtest_relayplate.types import BoardState, InstrumentIdentity

__all__ = [
    # Errors
    "ConfigurationError",
    "HardwareIOError",
    "InvalidAddressError",
    "RelayPlateError",
    "ResourceOpenError",
    # Protocol
    "BASE_ADDRESS",
    "Command",
    "decode_identity",
    "decode_state",
    "encode_frame",
    # Driver
    "RelayPlate",
    "RelayPlateConfig",
    "start",
    "stop",
    # Instrument
    "RelayChannel",
    "RelayPlateInstrument",
    "RelayPlateInstrumentConfig",
    "create_instrument",
    # Types
    "BoardState",
    "InstrumentIdentity",
]

"""Common types for the relay plate driver.

Type Aliases:
    BoardId: Board position on the chain (0-7).
    RelayIndex: 1-based relay number on a board (1-7).
    BoardState: Per-relay on/off flags, index 0 is relay 1.

Classes:
    InstrumentIdentity: Instrument identification metadata.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import NewType

BoardId = NewType("BoardId", int)
"""Type alias for a board id on the SPI chain (0-7)."""

RelayIndex = NewType("RelayIndex", int)
"""Type alias for a 1-based relay index (1-7)."""

BoardState = tuple[bool, bool, bool, bool, bool, bool, bool]
"""Fixed-length relay states; element 0 is relay 1, element 6 is relay 7."""


@dataclass(frozen=True)
class InstrumentIdentity:
    """Instrument identification metadata.

    Attributes:
        manufacturer: Instrument manufacturer name (e.g., "Pi-Plates").
        model: Model string reported by the board (e.g., "Pi-Plate RELAY").
        serial: Serial number or position string.
        firmware: Firmware or hardware version string.
    """

    manufacturer: str
    model: str
    serial: str
    firmware: str

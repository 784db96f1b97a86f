"""Wire protocol for the Pi-Plates RELAYplate.

Every command is a fixed 4-byte frame clocked out over SPI while the
frame-select line is held high:

    [BASE_ADDRESS + board_id, opcode, relay_or_0, 0x00]

Relay commands carry the 1-based relay index in the third byte; board
commands (identity, state, LED) carry a 0 placeholder. State and identity
queries are followed by single-byte reads, clocking out 0x00 and capturing
the byte the board returns.

Boards on a chain are numbered 0-7 by jumpers on the board itself. The
address byte lands in the RELAYplate's reserved range starting at 24.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Iterable

from hwtest_relayplate.errors import InvalidAddressError
from hwtest_relayplate.types import BoardState

#: Address of board 0; board N is addressed as BASE_ADDRESS + N.
BASE_ADDRESS = 24

MIN_BOARD_ID = 0
MAX_BOARD_ID = 7

MIN_RELAY = 1
NUMBER_OF_RELAYS = 7

#: Relay byte used by commands that address the whole board.
BOARD_PLACEHOLDER = 0

FRAME_LENGTH = 4

#: Bytes read back after the frame for each querying command.
STATE_RESPONSE_LENGTH = 1
ID_RESPONSE_LENGTH = 20


class Command(IntEnum):
    """RELAYplate command opcodes.

    Attributes:
        IDENTIFY: Read the board identity string (20 bytes).
        RELAY_ON: Close a single relay.
        RELAY_OFF: Open a single relay.
        RELAY_TOGGLE: Invert a single relay.
        READ_STATE: Read the relay state byte.
        LED_ON: Turn the board LED on.
        LED_OFF: Turn the board LED off.
        LED_TOGGLE: Invert the board LED.
    """

    IDENTIFY = 0x01
    RELAY_ON = 0x10
    RELAY_OFF = 0x11
    RELAY_TOGGLE = 0x12
    READ_STATE = 0x14
    LED_ON = 0x60
    LED_OFF = 0x61
    LED_TOGGLE = 0x62

    @property
    def targets_relay(self) -> bool:
        """True if the third frame byte carries a relay index."""
        return self in _RELAY_COMMANDS

    @property
    def response_length(self) -> int:
        """Number of bytes read back after the frame (0 for write-only)."""
        return _RESPONSE_LENGTHS.get(self, 0)


_RELAY_COMMANDS = frozenset({Command.RELAY_ON, Command.RELAY_OFF, Command.RELAY_TOGGLE})

_RESPONSE_LENGTHS = {
    Command.IDENTIFY: ID_RESPONSE_LENGTH,
    Command.READ_STATE: STATE_RESPONSE_LENGTH,
}


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_board_id(board_id: object) -> int:
    """Check that a board id is an integer in 0-7.

    Args:
        board_id: Candidate board id.

    Returns:
        The board id, unchanged.

    Raises:
        InvalidAddressError: If the id is not an integer or out of range.
    """
    if not _is_int(board_id) or not MIN_BOARD_ID <= board_id <= MAX_BOARD_ID:  # type: ignore[operator]
        raise InvalidAddressError(
            f"board_id must be {MIN_BOARD_ID}-{MAX_BOARD_ID}, got {board_id!r}"
        )
    return board_id  # type: ignore[return-value]


def validate_relay(relay: object) -> int:
    """Check that a relay index is an integer in 1-7.

    Args:
        relay: Candidate relay index.

    Returns:
        The relay index, unchanged.

    Raises:
        InvalidAddressError: If the index is not an integer or out of range.
    """
    if not _is_int(relay) or not MIN_RELAY <= relay <= NUMBER_OF_RELAYS:  # type: ignore[operator]
        raise InvalidAddressError(
            f"relay must be {MIN_RELAY}-{NUMBER_OF_RELAYS}, got {relay!r}"
        )
    return relay  # type: ignore[return-value]


def encode_frame(command: Command, board_id: int, relay: int = BOARD_PLACEHOLDER) -> bytes:
    """Build the 4-byte command frame.

    Args:
        command: Operation to perform.
        board_id: Target board (0-7).
        relay: Relay index (1-7) for relay commands, 0 for board commands.

    Returns:
        Frame bytes ``[24 + board_id, opcode, relay, 0]``.

    Raises:
        InvalidAddressError: If the board id or relay field is invalid for
            the command.
    """
    command = Command(command)
    validate_board_id(board_id)
    if command.targets_relay:
        validate_relay(relay)
    elif relay != BOARD_PLACEHOLDER or not _is_int(relay):
        raise InvalidAddressError(
            f"{command.name} addresses the whole board; relay must be "
            f"{BOARD_PLACEHOLDER}, got {relay!r}"
        )
    return bytes((BASE_ADDRESS + board_id, command.value, relay, 0x00))


def decode_state(raw: int) -> BoardState:
    """Convert a status byte into per-relay states.

    The byte is read most-significant bit first as it comes off the wire.
    The leading bit is not a relay flag and is dropped; the remaining seven
    run from relay 7 down to relay 1, so they are reversed.

    Args:
        raw: Status byte (0-255).

    Returns:
        Seven booleans, element 0 for relay 1.

    Example:
        >>> decode_state(0b0001_0101)
        (True, False, True, False, True, False, False)
    """
    if not 0 <= raw <= 0xFF:
        raise ValueError(f"status byte must be 0-255, got {raw}")
    wire_bits = [(raw >> shift) & 1 for shift in range(7, -1, -1)]
    relay_bits = wire_bits[1:]
    relay_bits.reverse()
    return tuple(bit == 1 for bit in relay_bits)  # type: ignore[return-value]


def decode_identity(raw: Iterable[int]) -> str:
    """Convert an identity response into text, dropping null padding.

    An empty string is a valid result; it is what an unpopulated address
    returns.

    Args:
        raw: Response bytes.

    Returns:
        The identity string.
    """
    return bytes(b for b in raw if b != 0).decode("latin-1")

"""Exception types for hwtest-relayplate.

All driver exceptions inherit from RelayPlateError so callers can catch every
relay plate failure with a single except clause, while still telling an
addressing bug apart from a hardware fault.

Exception hierarchy:
    RelayPlateError (base)
    +-- InvalidAddressError: Board id or relay index out of range
    +-- ConfigurationError: Missing default board id or bad settings
    +-- ResourceOpenError: GPIO line or SPI bus could not be opened
    +-- HardwareIOError: SPI transfer or GPIO write failed mid-transaction
"""


class RelayPlateError(Exception):
    """Base exception for all relay plate errors."""


class InvalidAddressError(RelayPlateError, ValueError):
    """Raised when a board id or relay index is outside its valid range.

    Always raised before any bus or GPIO activity, so a failed call never
    leaves a partially sent frame on the wire.
    """


class ConfigurationError(RelayPlateError):
    """Raised for invalid or incomplete driver configuration.

    The most common cause is calling an operation without an explicit board
    id on a driver that was started without a default board id.
    """


class ResourceOpenError(RelayPlateError):
    """Raised when a GPIO line or the SPI bus fails to open at start-up.

    Any resources opened earlier in the start-up sequence have already been
    released when this is raised.
    """


class HardwareIOError(RelayPlateError):
    """Raised when an SPI transfer or GPIO write fails during a transaction.

    The driver never retries; the original exception is chained as the cause.
    """

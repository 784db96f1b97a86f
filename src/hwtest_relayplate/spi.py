"""SPI bus access for the RELAYplate.

The driver talks to any spidev-compatible object. :func:`open_spi` creates
and configures a real ``spidev.SpiDev``; tests inject a stand-in with the
same ``open``/``xfer2``/``close`` surface.
"""

from __future__ import annotations

from typing import Any, Protocol

from hwtest_relayplate.errors import ResourceOpenError

#: Pi-Plates sit on SPI0 with chip-select CE1 (/dev/spidev0.1).
DEFAULT_SPI_BUS = 0
DEFAULT_SPI_DEVICE = 1

DEFAULT_SPEED_HZ = 300_000
DEFAULT_DELAY_US = 40


class SpiDevice(Protocol):
    """Protocol for SPI device interface (spidev compatible)."""

    max_speed_hz: int
    mode: int

    def open(self, bus: int, device: int) -> None:
        """Open /dev/spidev<bus>.<device>."""
        ...

    def xfer2(
        self, data: list[int], speed_hz: int = 0, delay_usecs: int = 0
    ) -> list[int]:
        """Full-duplex transfer with chip-select held for the whole list."""
        ...

    def close(self) -> None:
        """Close the SPI device."""
        ...


def create_spi_device() -> Any:
    """Create an unopened ``spidev.SpiDev``.

    Raises:
        ResourceOpenError: If spidev is not installed.
    """
    try:
        import spidev  # type: ignore[import-not-found]  # pylint: disable=import-outside-toplevel
    except ImportError as exc:
        raise ResourceOpenError(
            "spidev library is not installed. Install with: pip install spidev"
        ) from exc
    return spidev.SpiDev()


def open_spi(
    spi: SpiDevice,
    bus: int = DEFAULT_SPI_BUS,
    device: int = DEFAULT_SPI_DEVICE,
    speed_hz: int = DEFAULT_SPEED_HZ,
) -> None:
    """Open and configure an SPI device for RELAYplate traffic.

    Args:
        spi: spidev-compatible device.
        bus: SPI bus number.
        device: Chip-select number on the bus.
        speed_hz: Clock rate in Hz.

    Raises:
        ResourceOpenError: If the device cannot be opened or configured.
            A device that opened but failed configuration is closed first.
    """
    try:
        spi.open(bus, device)
    except Exception as exc:
        raise ResourceOpenError(
            f"Failed to open SPI device /dev/spidev{bus}.{device}: {exc}"
        ) from exc

    try:
        spi.max_speed_hz = speed_hz
        spi.mode = 0b00  # CPOL=0, CPHA=0
    except Exception as exc:
        try:
            spi.close()
        except Exception:  # pylint: disable=broad-exception-caught
            pass
        raise ResourceOpenError(
            f"Failed to configure SPI device /dev/spidev{bus}.{device}: {exc}"
        ) from exc

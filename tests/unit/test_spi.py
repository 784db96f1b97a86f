"""Unit tests for the spidev helpers."""

from __future__ import annotations

import sys
from unittest.mock import MagicMock, PropertyMock, patch

import pytest

from hwtest_relayplate.errors import ResourceOpenError
from hwtest_relayplate.spi import create_spi_device, open_spi


def test_create_spi_device() -> None:
    spidev = MagicMock()
    with patch.dict(sys.modules, {"spidev": spidev}):
        device = create_spi_device()
    assert device is spidev.SpiDev.return_value


def test_create_spi_device_missing_library() -> None:
    with patch.dict(sys.modules, {"spidev": None}):
        with pytest.raises(ResourceOpenError, match="pip install spidev"):
            create_spi_device()


def test_open_spi_defaults() -> None:
    spi = MagicMock()
    open_spi(spi)
    spi.open.assert_called_once_with(0, 1)
    assert spi.max_speed_hz == 300_000
    assert spi.mode == 0


def test_open_spi_failure() -> None:
    spi = MagicMock()
    spi.open.side_effect = PermissionError("denied")
    with pytest.raises(ResourceOpenError, match="/dev/spidev0.1: denied"):
        open_spi(spi)


def test_open_spi_configure_failure_closes() -> None:
    spi = MagicMock()
    type(spi).mode = PropertyMock(side_effect=OSError("EINVAL"))
    with pytest.raises(ResourceOpenError, match="configure SPI device /dev/spidev0.1: EINVAL"):
        open_spi(spi)
    spi.close.assert_called_once()


def test_open_spi_configure_failure_survives_close_error() -> None:
    spi = MagicMock()
    type(spi).max_speed_hz = PropertyMock(side_effect=OSError("EINVAL"))
    spi.close.side_effect = OSError("EBADF")
    with pytest.raises(ResourceOpenError, match="EINVAL"):
        open_spi(spi)

"""Unit tests for the lgpio-backed GPIO layer."""

from __future__ import annotations

import sys
from unittest.mock import MagicMock, call, patch

import pytest

from hwtest_relayplate.errors import ConfigurationError, ResourceOpenError
from hwtest_relayplate.gpio import (
    HIGH,
    INPUT,
    LOW,
    OUTPUT,
    PULL_DOWN,
    PULL_UP,
    Gpio,
    parse_pin,
)


def _make_mock_lgpio() -> MagicMock:
    """Return a stand-in for the lgpio module."""
    mock = MagicMock()
    mock.gpiochip_open.return_value = 7
    mock.SET_PULL_UP = 32
    mock.SET_PULL_DOWN = 64
    mock.gpio_read.return_value = 1
    return mock


class TestParsePin:
    @pytest.mark.parametrize(
        ("pin", "expected"),
        [(25, 25), ("GPIO25", 25), ("gpio22", 22), ("23", 23), (" GPIO4 ", 4)],
    )
    def test_valid(self, pin: int | str, expected: int) -> None:
        assert parse_pin(pin) == expected

    @pytest.mark.parametrize("pin", ["PIN25", "GPIO", "", -1, True, "GPIO-3"])
    def test_invalid(self, pin: object) -> None:
        with pytest.raises(ConfigurationError):
            parse_pin(pin)  # type: ignore[arg-type]


class TestGpio:
    def test_open_and_claim_lines(self) -> None:
        lgpio = _make_mock_lgpio()
        with patch.dict(sys.modules, {"lgpio": lgpio}):
            gpio = Gpio(chip=4)
            gpio.open()
            gpio.setup(25, OUTPUT, initial=LOW)
            gpio.setup(22, INPUT, pull=PULL_UP)
            gpio.setup(17, INPUT, pull=PULL_DOWN)
            gpio.setup(23, INPUT)

        lgpio.gpiochip_open.assert_called_once_with(4)
        lgpio.gpio_claim_output.assert_called_once_with(7, 25, LOW)
        assert lgpio.gpio_claim_input.call_args_list == [
            call(7, 22, 32),
            call(7, 17, 64),
            call(7, 23, 0),
        ]

    def test_read_write(self) -> None:
        lgpio = _make_mock_lgpio()
        with patch.dict(sys.modules, {"lgpio": lgpio}):
            gpio = Gpio()
            gpio.open()
            gpio.setup(25, OUTPUT)
            gpio.setup(22, INPUT, pull=PULL_UP)
            gpio.output(25, HIGH)
            assert gpio.input(22) == 1

        lgpio.gpio_write.assert_called_once_with(7, 25, HIGH)
        lgpio.gpio_read.assert_called_once_with(7, 22)

    def test_unconfigured_pin_raises(self) -> None:
        with patch.dict(sys.modules, {"lgpio": _make_mock_lgpio()}):
            gpio = Gpio()
            gpio.open()
            with pytest.raises(RuntimeError, match="not configured"):
                gpio.output(25, HIGH)

    def test_setup_before_open_raises(self) -> None:
        with pytest.raises(RuntimeError, match="not opened"):
            Gpio().setup(25, OUTPUT)

    def test_cleanup_and_close(self) -> None:
        lgpio = _make_mock_lgpio()
        with patch.dict(sys.modules, {"lgpio": lgpio}):
            gpio = Gpio()
            gpio.open()
            gpio.setup(25, OUTPUT)
            gpio.setup(22, INPUT)
            gpio.cleanup([25])
            lgpio.gpio_free.assert_called_once_with(7, 25)
            gpio.close()

        assert lgpio.gpio_free.call_args_list == [call(7, 25), call(7, 22)]
        lgpio.gpiochip_close.assert_called_once_with(7)

    def test_release_errors_ignored(self) -> None:
        lgpio = _make_mock_lgpio()
        lgpio.gpio_free.side_effect = Exception("busy")
        lgpio.gpiochip_close.side_effect = Exception("busy")
        with patch.dict(sys.modules, {"lgpio": lgpio}):
            gpio = Gpio()
            gpio.open()
            gpio.setup(25, OUTPUT)
            gpio.close()

    def test_missing_library(self) -> None:
        with patch.dict(sys.modules, {"lgpio": None}):
            with pytest.raises(ResourceOpenError, match="pip install lgpio"):
                Gpio().open()

    def test_chip_open_failure(self) -> None:
        lgpio = _make_mock_lgpio()
        lgpio.gpiochip_open.side_effect = Exception("no such chip")
        with patch.dict(sys.modules, {"lgpio": lgpio}):
            with pytest.raises(ResourceOpenError, match="GPIO chip 0"):
                Gpio().open()

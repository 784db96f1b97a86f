"""Unit tests for YAML configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from hwtest_relayplate.config import load_config, parse_config
from hwtest_relayplate.errors import ConfigurationError, InvalidAddressError
from hwtest_relayplate.instrument import RelayChannel

_FULL_CONFIG = """\
relay_plate:
  source_id: bench_relays
  board_id: 1
  frame_pin: GPIO24
  release_frame_on_error: false
  byte_delay_s: 0.002
  channels:
    - id: 1
      name: pump
    - id: 3
      name: heater
      board_id: 2
"""


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "relays.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadConfig:
    def test_full_config(self, tmp_path: Path) -> None:
        config = load_config(_write(tmp_path, _FULL_CONFIG))
        assert config.source_id == "bench_relays"
        assert config.driver.board_id == 1
        assert config.driver.frame_pin == 24
        assert config.driver.int_pin == 22
        assert config.driver.release_frame_on_error is False
        assert config.driver.byte_delay_s == 0.002
        assert config.channels == (
            RelayChannel(1, "pump"),
            RelayChannel(3, "heater", board_id=2),
        )

    def test_minimal_config(self, tmp_path: Path) -> None:
        config = load_config(_write(tmp_path, "relay_plate: {}\n"))
        assert config.source_id == "relayplate"
        assert config.driver.board_id is None
        assert config.channels == ()

    def test_accepts_str_path(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "relay_plate:\n  board_id: 0\n")
        assert load_config(str(path)).driver.board_id == 0

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_config(_write(tmp_path, "relay_plate: [unclosed\n"))


    def test_wrong_value_type(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "relay_plate:\n  spi_speed_hz: fast\n")
        with pytest.raises(ConfigurationError, match="spi_speed_hz"):
            load_config(path)

class TestParseConfig:
    def test_not_a_mapping(self) -> None:
        with pytest.raises(ConfigurationError, match="YAML mapping"):
            parse_config(["relay_plate"])

    def test_missing_section(self) -> None:
        with pytest.raises(ConfigurationError, match="relay_plate"):
            parse_config({"rack": {}})

    def test_unknown_key(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown relay_plate keys: colour"):
            parse_config({"relay_plate": {"colour": "red"}})

    def test_channels_not_list(self) -> None:
        with pytest.raises(ConfigurationError, match="channels must be a list"):
            parse_config({"relay_plate": {"board_id": 0, "channels": {"id": 1}}})

    def test_channel_missing_name(self) -> None:
        with pytest.raises(ConfigurationError, match="channel 0 missing"):
            parse_config({"relay_plate": {"board_id": 0, "channels": [{"id": 1}]}})

    def test_invalid_board(self) -> None:
        with pytest.raises(InvalidAddressError):
            parse_config({"relay_plate": {"board_id": 9}})

    def test_non_integer_speed(self) -> None:
        with pytest.raises(ConfigurationError, match="spi_speed_hz must be an integer"):
            parse_config({"relay_plate": {"spi_speed_hz": "fast"}})

    def test_non_numeric_delay(self) -> None:
        with pytest.raises(ConfigurationError, match="settle_delay_s must be a number"):
            parse_config({"relay_plate": {"settle_delay_s": "10ms"}})

    def test_non_bool_release_flag(self) -> None:
        with pytest.raises(ConfigurationError, match="release_frame_on_error"):
            parse_config({"relay_plate": {"release_frame_on_error": "yes please"}})

    def test_does_not_mutate_input(self) -> None:
        data = {"relay_plate": {"source_id": "r", "board_id": 0, "channels": []}}
        parse_config(data)
        assert data["relay_plate"] == {"source_id": "r", "board_id": 0, "channels": []}

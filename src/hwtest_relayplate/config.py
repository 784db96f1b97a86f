"""YAML configuration loading for RELAYplate instruments.

Example YAML configuration:
    relay_plate:
      source_id: "bench_relays"
      board_id: 0
      frame_pin: "GPIO25"
      release_frame_on_error: true
      channels:
        - id: 1
          name: "pump"
        - id: 3
          name: "heater"
          board_id: 1
"""

from __future__ import annotations

from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from hwtest_relayplate.errors import ConfigurationError
from hwtest_relayplate.instrument import RelayPlateInstrumentConfig, parse_channels
from hwtest_relayplate.relayplate import RelayPlateConfig

#: Top-level key holding the relay plate section.
SECTION = "relay_plate"

_DRIVER_KEYS = frozenset(f.name for f in fields(RelayPlateConfig))


def parse_config(data: Any) -> RelayPlateInstrumentConfig:
    """Build an instrument configuration from parsed YAML data.

    Args:
        data: Top-level YAML document.

    Returns:
        Instrument configuration.

    Raises:
        ConfigurationError: If the document is malformed.
        InvalidAddressError: If a board id or relay index is out of range.
    """
    if not isinstance(data, dict):
        raise ConfigurationError("Config must be a YAML mapping")

    section = data.get(SECTION)
    if not isinstance(section, dict):
        raise ConfigurationError(f"Missing required section: {SECTION}")

    section = dict(section)
    source_id = str(section.pop("source_id", "relayplate"))
    channels = parse_channels(section.pop("channels", None))

    unknown = sorted(set(section) - _DRIVER_KEYS)
    if unknown:
        raise ConfigurationError(f"Unknown {SECTION} keys: {', '.join(unknown)}")

    driver = RelayPlateConfig(**section)
    return RelayPlateInstrumentConfig(source_id=source_id, driver=driver, channels=channels)


def load_config(path: str | Path) -> RelayPlateInstrumentConfig:
    """Load a RELAYplate configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        Parsed instrument configuration.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        ConfigurationError: If the config is invalid.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc

    return parse_config(data)

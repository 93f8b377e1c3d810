"""
JSON persistence for an EmulationConfig.

The document layout is positional and must stay stable across versions::

    {
      "config": [ifc_index, ifb_index, "src", "dst",
                 in_delay, out_delay, in_loss, out_loss, in_rate, out_rate],
      "adv_config": [19 inbound values, 19 outbound values]
    }

Interface and IFB entries are stored as indices into the store's choice
lists. Arrays never leave this module: they are decoded into the named
dataclasses straight away.
"""

import json
import logging
from pathlib import Path
from typing import Optional, Sequence

from .exceptions import ProfileLoadError
from .interfaces import list_interfaces
from .profile import (
    ADVANCED_FIELDS,
    IFB_DEVICES,
    BaseValues,
    EmulationConfig,
    ImpairmentProfile,
    InterfaceSelection,
)

logger = logging.getLogger(__name__)

CONFIG_KEY = "config"
ADVANCED_KEY = "adv_config"
CONFIG_LENGTH = 10


def _index_of(choices: Sequence[str], value: str) -> int:
    try:
        return list(choices).index(value)
    except ValueError:
        logger.warning(f"{value!r} is not among {list(choices)}, storing index 0")
        return 0


def _choice_at(choices: Sequence[str], index, default: str) -> str:
    if isinstance(index, (int, float)) and 0 <= int(index) < len(choices):
        return choices[int(index)]
    fallback = choices[0] if choices else default
    logger.warning(f"Choice index {index!r} out of range, using {fallback!r}")
    return fallback


class ProfileStore:
    """
    Saves and loads an EmulationConfig as a positional JSON document.

    Example:
        >>> store = ProfileStore(interfaces=["lo", "eth0"])
        >>> store.save("netem.json", EmulationConfig())
        True
    """

    def __init__(
        self,
        interfaces: Optional[Sequence[str]] = None,
        ifb_devices: Sequence[str] = IFB_DEVICES,
    ):
        """
        Args:
            interfaces: Interface choice list. Defaults to the host's interfaces.
            ifb_devices: IFB device choice list.
        """
        self.interfaces = list(interfaces) if interfaces is not None else list_interfaces()
        self.ifb_devices = list(ifb_devices)

    def encode(self, config: EmulationConfig) -> dict:
        """Encode a config into the JSON document structure."""
        selection = config.selection
        values = [
            _index_of(self.interfaces, selection.interface),
            _index_of(self.ifb_devices, selection.ifb_device),
            selection.source_cidr,
            selection.destination_cidr,
            config.inbound_base.delay_ms,
            config.outbound_base.delay_ms,
            config.inbound_base.loss_pct,
            config.outbound_base.loss_pct,
            config.inbound_base.rate_kbps,
            config.outbound_base.rate_kbps,
        ]
        return {
            CONFIG_KEY: values,
            ADVANCED_KEY: config.inbound.to_list() + config.outbound.to_list(),
        }

    def decode(self, data: dict, path: str = "<memory>") -> EmulationConfig:
        """
        Decode the JSON document structure into a config.

        Sections that are missing keep their defaults.

        Raises:
            ProfileLoadError: If a section has the wrong shape or bad values.
        """
        if not isinstance(data, dict):
            raise ProfileLoadError(path, "top level is not an object")

        config = EmulationConfig()

        values = data.get(CONFIG_KEY)
        if isinstance(values, list):
            if len(values) < CONFIG_LENGTH:
                raise ProfileLoadError(
                    path, f"'{CONFIG_KEY}' has {len(values)} values, expected {CONFIG_LENGTH}"
                )
            try:
                config.selection = InterfaceSelection(
                    interface=_choice_at(self.interfaces, values[0], config.selection.interface),
                    ifb_device=_choice_at(self.ifb_devices, values[1], config.selection.ifb_device),
                    source_cidr=str(values[2]),
                    destination_cidr=str(values[3]),
                )
                config.inbound_base = BaseValues(
                    delay_ms=float(values[4]),
                    loss_pct=float(values[6]),
                    rate_kbps=float(values[8]),
                )
                config.outbound_base = BaseValues(
                    delay_ms=float(values[5]),
                    loss_pct=float(values[7]),
                    rate_kbps=float(values[9]),
                )
            except (TypeError, ValueError) as e:
                raise ProfileLoadError(path, f"invalid '{CONFIG_KEY}': {e}")

        advanced = data.get(ADVANCED_KEY)
        if isinstance(advanced, list):
            width = len(ADVANCED_FIELDS)
            if len(advanced) < 2 * width:
                raise ProfileLoadError(
                    path, f"'{ADVANCED_KEY}' has {len(advanced)} values, expected {2 * width}"
                )
            try:
                config.inbound = ImpairmentProfile.from_list(advanced[:width])
                config.outbound = ImpairmentProfile.from_list(advanced[width:2 * width])
            except (TypeError, ValueError) as e:
                raise ProfileLoadError(path, f"invalid '{ADVANCED_KEY}': {e}")

        return config

    def save(self, path: str, config: EmulationConfig) -> bool:
        """
        Write a config to a JSON file.

        Returns:
            True if written, False if the file could not be written.
        """
        try:
            with open(path, "w") as f:
                json.dump(self.encode(config), f, indent=4)
        except OSError as e:
            logger.error(f"Couldn't open save file {path}: {e}")
            return False

        logger.info(f"Saved emulation config to {path}")
        return True

    def load(self, path: str) -> EmulationConfig:
        """
        Read a config from a JSON file.

        Raises:
            ProfileLoadError: If the file is missing, unreadable or malformed.
        """
        try:
            with open(path) as f:
                data = json.load(f)
        except FileNotFoundError:
            raise ProfileLoadError(path, "file not found")
        except json.JSONDecodeError as e:
            raise ProfileLoadError(path, f"invalid JSON: {e}")
        except OSError as e:
            raise ProfileLoadError(path, str(e))

        config = self.decode(data, path)
        logger.info(f"Loaded emulation config from {Path(path).name}")
        return config

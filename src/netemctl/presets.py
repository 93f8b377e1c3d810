"""
Named emulation presets loaded from YAML.

Example file::

    default_interface: eth0
    presets:
      lossy_uplink:
        description: "5% random loss upstream"
        source: 10.0.0.0/24
        inbound:
          delay_ms: 20
        outbound:
          loss_pct: 5
          loss_random: enabled
          limit_packets: 1000

Each direction accepts the base keys (delay_ms, loss_pct, rate_kbps) and
any ImpairmentProfile field.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Optional

import yaml

from .address import WILDCARD_CIDR
from .exceptions import PresetNotFoundError, ProfileLoadError
from .profile import BaseValues, EmulationConfig, ImpairmentProfile, InterfaceSelection

logger = logging.getLogger(__name__)


@dataclass
class Preset:
    """A named set of per-direction settings and optional address filters."""

    name: str
    description: str = ""
    source_cidr: str = WILDCARD_CIDR
    destination_cidr: str = WILDCARD_CIDR
    inbound_base: BaseValues = field(default_factory=BaseValues)
    outbound_base: BaseValues = field(default_factory=BaseValues)
    inbound: ImpairmentProfile = field(default_factory=ImpairmentProfile)
    outbound: ImpairmentProfile = field(default_factory=ImpairmentProfile)

    @classmethod
    def from_dict(cls, name: str, data: dict) -> "Preset":
        """
        Create a Preset from a dictionary.

        Raises:
            ValueError: If a value is negative or not a known choice.
        """
        inbound = data.get("inbound") or {}
        outbound = data.get("outbound") or {}
        return cls(
            name=name,
            description=data.get("description", ""),
            source_cidr=data.get("source", WILDCARD_CIDR),
            destination_cidr=data.get("destination", WILDCARD_CIDR),
            inbound_base=BaseValues.from_dict(inbound),
            outbound_base=BaseValues.from_dict(outbound),
            inbound=ImpairmentProfile.from_dict(inbound),
            outbound=ImpairmentProfile.from_dict(outbound),
        )

    def to_config(self, interface: str, ifb_device: str) -> EmulationConfig:
        """Combine the preset with the devices it should be applied to."""
        return EmulationConfig(
            selection=InterfaceSelection(
                interface=interface,
                ifb_device=ifb_device,
                source_cidr=self.source_cidr,
                destination_cidr=self.destination_cidr,
            ),
            inbound_base=replace(self.inbound_base),
            outbound_base=replace(self.outbound_base),
            inbound=replace(self.inbound),
            outbound=replace(self.outbound),
            description=self.description or self.name,
        )


class PresetLibrary:
    """Collection of presets read from one or more YAML files."""

    def __init__(self, path: Optional[str] = None):
        self.presets: dict[str, Preset] = {}
        self.default_interface: Optional[str] = None

        if path:
            self.load(path)

    def load(self, path: str) -> None:
        """
        Load presets from a YAML file.

        Raises:
            ProfileLoadError: If the file cannot be read or parsed.
        """
        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except FileNotFoundError:
            raise ProfileLoadError(path, "file not found")
        except yaml.YAMLError as e:
            raise ProfileLoadError(path, f"invalid YAML: {e}")

        if not data:
            raise ProfileLoadError(path, "empty file")

        if "default_interface" in data:
            self.default_interface = data["default_interface"]

        presets_data = data.get("presets", {})
        if not presets_data:
            raise ProfileLoadError(path, "no presets defined")

        for name, config in presets_data.items():
            try:
                self.presets[name] = Preset.from_dict(name, config or {})
            except (TypeError, ValueError) as e:
                raise ProfileLoadError(path, f"preset {name}: {e}")

        logger.info(f"Loaded {len(self.presets)} emulation presets from {path}")

    def get(self, name: str) -> Preset:
        """
        Raises:
            PresetNotFoundError: If no preset has this name.
        """
        if name not in self.presets:
            raise PresetNotFoundError(name)
        return self.presets[name]

    def names(self) -> list[str]:
        return list(self.presets.keys())

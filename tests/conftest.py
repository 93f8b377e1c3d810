"""Pytest configuration and fixtures for netemctl tests."""

import pytest

from netemctl import (
    BaseValues,
    EmulationConfig,
    ImpairmentProfile,
    InterfaceSelection,
)


@pytest.fixture
def quiet_profile():
    """Profile with every advanced feature switched off."""
    return ImpairmentProfile(limit_packets=0)


@pytest.fixture
def sample_config():
    """Config with distinct valid filters and a few impairments."""
    return EmulationConfig(
        selection=InterfaceSelection(
            interface="eth0",
            ifb_device="ifb0",
            source_cidr="10.0.0.0/24",
            destination_cidr="192.168.1.0/24",
        ),
        inbound_base=BaseValues(delay_ms=20),
        outbound_base=BaseValues(loss_pct=5),
        inbound=ImpairmentProfile(limit_packets=2000),
        outbound=ImpairmentProfile(limit_packets=1000, loss_random="enabled"),
    )


@pytest.fixture
def sample_presets_yaml(tmp_path):
    """Create a temporary presets YAML file."""
    content = """
presets:
  lossy_uplink:
    description: "Random loss upstream"
    source: 10.0.0.0/24
    inbound:
      delay_ms: 20
      delay_jitter: 5
    outbound:
      loss_pct: 5
      loss_random: enabled
      limit_packets: 1000

  ideal:
    description: "No impairments"

default_interface: "enp0s3"
"""
    presets_file = tmp_path / "presets.yaml"
    presets_file.write_text(content)
    return str(presets_file)

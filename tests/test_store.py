"""Tests for ProfileStore JSON persistence."""

import json

import pytest

from netemctl import (
    BaseValues,
    EmulationConfig,
    ImpairmentProfile,
    InterfaceSelection,
    ProfileStore,
)
from netemctl.exceptions import ProfileLoadError


@pytest.fixture
def store():
    return ProfileStore(interfaces=["lo", "eth0", "wlan0"])


class TestSave:
    """Tests for saving configurations."""

    def test_save_layout(self, store, tmp_path, sample_config):
        """Test the positional document layout."""
        path = tmp_path / "netem.json"

        assert store.save(str(path), sample_config) is True

        data = json.loads(path.read_text())
        assert data["config"] == [
            1, 0, "10.0.0.0/24", "192.168.1.0/24",
            20.0, 0.0, 0.0, 5.0, 0.0, 0.0,
        ]
        assert len(data["adv_config"]) == 38
        assert data["adv_config"][0] == 2000
        assert data["adv_config"][19] == 1000
        assert data["adv_config"][23] == "enabled"
        assert data["adv_config"][37] == "disabled"

    def test_save_unwritable(self, store, tmp_path):
        """Test an unwritable path returns False."""
        path = tmp_path / "missing_dir" / "netem.json"

        assert store.save(str(path), EmulationConfig()) is False

    def test_unknown_interface_stored_as_first(self, store):
        """Test an interface outside the choice list is stored as index 0."""
        config = EmulationConfig(selection=InterfaceSelection(interface="veth9"))

        assert store.encode(config)["config"][0] == 0


class TestLoad:
    """Tests for loading configurations."""

    def test_load_saved_file(self, store, tmp_path, sample_config):
        """Test a saved config loads back into named fields."""
        path = tmp_path / "netem.json"
        store.save(str(path), sample_config)

        assert store.load(str(path)) == sample_config

    def test_load_handwritten_document(self, store, tmp_path):
        """Test decoding of each array position."""
        inbound = ImpairmentProfile(
            limit_packets=500, delay_jitter=4, slot_distribution="uniform"
        ).to_list()
        outbound = ImpairmentProfile(reordering_percent=3, reordering_distance=2).to_list()
        document = {
            "config": [2, 1, "10.0.0.1/32", "bad", 1, 2, 3, 4, 5, 6],
            "adv_config": inbound + outbound,
        }
        path = tmp_path / "handwritten.json"
        path.write_text(json.dumps(document))

        config = store.load(str(path))

        assert config.selection == InterfaceSelection("wlan0", "ifb1", "10.0.0.1/32", "bad")
        assert config.inbound_base == BaseValues(delay_ms=1, loss_pct=3, rate_kbps=5)
        assert config.outbound_base == BaseValues(delay_ms=2, loss_pct=4, rate_kbps=6)
        assert config.inbound.limit_packets == 500
        assert config.inbound.slot_distribution == "uniform"
        assert config.outbound.reordering_distance == 2

    def test_missing_sections_keep_defaults(self, store, tmp_path):
        """Test a document without sections yields the default config."""
        path = tmp_path / "empty.json"
        path.write_text("{}")

        assert store.load(str(path)) == EmulationConfig()

    def test_out_of_range_index_uses_first_choice(self, store):
        """Test an invalid combo index falls back to the first entry."""
        config = store.decode({"config": [9, -1, "", "", 0, 0, 0, 0, 0, 0]})

        assert config.selection.interface == "lo"
        assert config.selection.ifb_device == "ifb0"

    def test_load_file_not_found(self, store):
        """Test error when the file doesn't exist."""
        with pytest.raises(ProfileLoadError) as exc_info:
            store.load("/nonexistent/netem.json")

        assert "file not found" in str(exc_info.value)
        assert exc_info.value.reason == "file not found"
        assert exc_info.value.path == "/nonexistent/netem.json"

    def test_load_invalid_json(self, store, tmp_path):
        """Test error on malformed JSON."""
        path = tmp_path / "bad.json"
        path.write_text("{not json")

        with pytest.raises(ProfileLoadError) as exc_info:
            store.load(str(path))

        assert "invalid JSON" in str(exc_info.value)

    def test_load_short_advanced_array(self, store, tmp_path):
        """Test error when adv_config is truncated."""
        path = tmp_path / "short.json"
        path.write_text(json.dumps({"adv_config": [0] * 20}))

        with pytest.raises(ProfileLoadError) as exc_info:
            store.load(str(path))

        assert "adv_config" in str(exc_info.value)

    def test_load_bad_enum_value(self, store):
        """Test an unknown distribution name is a load error."""
        values = ImpairmentProfile().to_list() * 2
        values[3] = "gaussian"

        with pytest.raises(ProfileLoadError):
            store.decode({"adv_config": values})

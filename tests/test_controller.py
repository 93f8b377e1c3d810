"""Tests for NetemController."""

import subprocess

import pytest

from netemctl import (
    BaseValues,
    CommandResult,
    DryRunExecutor,
    EmulationConfig,
    Executor,
    ImpairmentProfile,
    NetemController,
    PresetLibrary,
    ProfileStore,
)
from netemctl.exceptions import PresetNotFoundError


class FailingExecutor(Executor):
    """Fails every command."""

    def __init__(self):
        self.history = []

    def run(self, command):
        self.history.append(command)
        return CommandResult(command, 1, stderr="boom")


@pytest.fixture
def executor():
    return DryRunExecutor()


@pytest.fixture
def controller(executor, sample_config):
    return NetemController(config=sample_config, executor=executor)


class TestNetemControllerInit:
    """Tests for NetemController initialization."""

    def test_default_init(self):
        """Test default initialization."""
        ctl = NetemController()

        assert ctl.config == EmulationConfig()
        assert ctl.is_started is False
        assert ctl.compiler.use_sudo is True


class TestStartStop:
    """Tests for the start/stop lifecycle."""

    def test_first_start_skips_teardown(self, controller, executor):
        """Test nothing is deleted before the first start."""
        report = controller.start()

        assert executor.history[0] == "sudo modprobe ifb"
        assert not any(" del " in c for c in executor.history)
        assert report.commands == controller.compile()
        assert controller.is_started is True

    def test_restart_tears_down_first(self, controller, executor):
        """Test a second start runs teardown before setup."""
        controller.start()
        setup = list(executor.history)
        executor.history.clear()

        report = controller.start()

        teardown = controller.compiler.compile_teardown(controller.config.selection)
        assert executor.history == teardown + setup
        assert report.commands == teardown + setup

    def test_stop_when_not_started_is_noop(self, controller, executor):
        """Test stop before start issues nothing."""
        report = controller.stop()

        assert report.results == []
        assert executor.history == []

    def test_stop_after_start(self, controller, executor):
        """Test stop issues the teardown and clears the flag."""
        controller.start()
        executor.history.clear()

        controller.stop()

        assert executor.history[-1] == "sudo rmmod ifb"
        assert len(executor.history) == 5
        assert controller.is_started is False

    def test_forced_stop(self, controller, executor):
        """Test force issues teardown without a prior start."""
        controller.stop(force=True)

        assert executor.history[0] == "sudo tc qdisc del dev eth0 ingress"

    def test_stop_targets_started_devices(self, controller, executor):
        """Test teardown uses the devices that were started."""
        controller.start()
        controller.config.selection.interface = "eth9"
        executor.history.clear()

        controller.stop()

        assert executor.history[0] == "sudo tc qdisc del dev eth0 ingress"

    def test_failures_do_not_abort(self, sample_config):
        """Test all setup commands run and failures are reported."""
        failing = FailingExecutor()
        ctl = NetemController(config=sample_config, executor=failing)

        report = ctl.start()

        assert len(failing.history) == 13
        assert len(report.failures) == 13
        assert report.succeeded is False
        assert ctl.is_started is True

    def test_set_running(self, controller, executor):
        """Test the toggle entry point."""
        controller.set_running(True)
        assert controller.is_started is True

        controller.set_running(False)
        assert controller.is_started is False
        assert executor.history[-1] == "sudo rmmod ifb"


class TestConfigEditing:
    """Tests for clear, reset and presets."""

    def test_clear(self, controller):
        """Test clear resets filters and base values but keeps devices and profiles."""
        controller.config.outbound.delay_jitter = 7

        controller.clear()

        config = controller.config
        assert config.selection.interface == "eth0"
        assert config.selection.source_cidr == "0.0.0.0/0"
        assert config.selection.destination_cidr == "0.0.0.0/0"
        assert config.inbound_base == BaseValues()
        assert config.outbound_base == BaseValues()
        assert config.outbound.delay_jitter == 7

    def test_reset_advanced(self, controller):
        """Test advanced profiles return to defaults."""
        controller.reset_advanced()

        assert controller.config.inbound == ImpairmentProfile()
        assert controller.config.outbound == ImpairmentProfile()

    def test_apply_preset_keeps_devices(self, controller, sample_presets_yaml):
        """Test a preset replaces settings but not the interface."""
        controller.config.selection.interface = "wlan0"

        controller.apply_preset("lossy_uplink", PresetLibrary(sample_presets_yaml))

        assert controller.config.selection.interface == "wlan0"
        assert controller.config.selection.source_cidr == "10.0.0.0/24"
        assert controller.config.outbound_base.loss_pct == 5

    def test_editing_config_leaves_preset_unchanged(self, controller, sample_presets_yaml):
        """Test edits after apply_preset do not leak back into the library."""
        library = PresetLibrary(sample_presets_yaml)
        controller.apply_preset("lossy_uplink", library)

        controller.config.outbound_base.loss_pct = 99
        controller.config.inbound.delay_jitter = 42

        preset = library.get("lossy_uplink")
        assert preset.outbound_base.loss_pct == 5
        assert preset.inbound.delay_jitter == 5

        controller.apply_preset("lossy_uplink", library)
        assert controller.config.outbound_base.loss_pct == 5

    def test_apply_unknown_preset(self, controller, sample_presets_yaml):
        """Test unknown preset names propagate."""
        with pytest.raises(PresetNotFoundError):
            controller.apply_preset("nope", PresetLibrary(sample_presets_yaml))

    def test_save_and_load(self, executor, sample_config, tmp_path):
        """Test persistence through the controller."""
        store = ProfileStore(interfaces=["lo", "eth0"])
        path = str(tmp_path / "netem.json")
        NetemController(config=sample_config, executor=executor, store=store).save(path)

        ctl = NetemController(executor=executor, store=store)
        ctl.load(path)

        assert ctl.config == sample_config


class TestStatusAndContext:
    """Tests for status and context manager functionality."""

    def test_get_status(self, controller, mocker):
        """Test tc output is collected for both devices."""
        mock_run = mocker.patch(
            "netemctl.controller.subprocess.run",
            return_value=subprocess.CompletedProcess(
                [], 0, "qdisc netem 10: parent 1:1 limit 2000", ""
            ),
        )

        status = controller.get_status()

        assert mock_run.call_count == 2
        assert status["interface"] == "eth0"
        assert status["interface_active"] is True
        assert status["ifb_active"] is True
        assert status["started"] is False

    def test_get_status_without_tc(self, controller, mocker):
        """Test a missing tc binary is reported in the status."""
        mocker.patch(
            "netemctl.controller.subprocess.run", side_effect=FileNotFoundError("tc")
        )

        status = controller.get_status()

        assert "error" in status

    def test_context_manager_enter(self, controller):
        """Test entering context manager returns self."""
        with controller as ctx:
            assert ctx is controller

    def test_context_manager_stops_on_exit(self, controller, mocker):
        """Test that stop() is called on context exit."""
        mock_stop = mocker.patch.object(controller, "stop")

        with controller:
            pass

        mock_stop.assert_called_once()

"""
Network emulation controller.

Provides the NetemController class that owns the active EmulationConfig,
compiles it and runs the resulting commands through an Executor.
"""

import logging
import subprocess
from dataclasses import replace
from typing import Optional

from .address import WILDCARD_CIDR
from .compiler import ProfileCompiler
from .executor import ExecutionReport, Executor, ShellExecutor
from .presets import PresetLibrary
from .profile import BaseValues, EmulationConfig, ImpairmentProfile
from .store import ProfileStore

logger = logging.getLogger(__name__)


class NetemController:
    """
    Drives start/stop of IFB based network emulation.

    Teardown commands are only issued once something was started, so the
    first start does not try to delete qdiscs that do not exist.

    Example:
        >>> from netemctl import DryRunExecutor
        >>> controller = NetemController(executor=DryRunExecutor())
        >>> controller.config.outbound_base.delay_ms = 100
        >>> controller.start().succeeded
        True
        >>> controller.stop().succeeded
        True

    Context manager usage:
        >>> with NetemController() as ctl:
        ...     ctl.start()
        ...     # Rules are torn down on exit
    """

    def __init__(
        self,
        config: Optional[EmulationConfig] = None,
        executor: Optional[Executor] = None,
        compiler: Optional[ProfileCompiler] = None,
        store: Optional[ProfileStore] = None,
    ):
        """
        Initialize the controller.

        Args:
            config: Initial configuration. Defaults to EmulationConfig().
            executor: Runs the commands. Defaults to ShellExecutor().
            compiler: Builds the commands. Defaults to ProfileCompiler().
            store: JSON persistence, created on first use if not given.
        """
        self.config = config or EmulationConfig()
        self.executor = executor or ShellExecutor()
        self.compiler = compiler or ProfileCompiler()
        self._store = store
        self.is_started = False
        self._active_selection = None

    def __enter__(self) -> "NetemController":
        """Enter context manager."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit context manager, tearing down emulation."""
        self.stop()

    @property
    def store(self) -> ProfileStore:
        if self._store is None:
            self._store = ProfileStore()
        return self._store

    def compile(self) -> list[str]:
        """Return the setup commands for the active configuration."""
        return self.compiler.compile_setup(self.config)

    def start(self) -> ExecutionReport:
        """
        Tear down any previous emulation, then apply the active configuration.

        Every command runs even if an earlier one fails.

        Returns:
            Results of the teardown and setup commands, in order.
        """
        report = self.stop()

        commands = self.compile()
        self.is_started = True
        # Teardown must target the devices that were set up, even if the
        # selection is edited afterwards.
        self._active_selection = replace(self.config.selection)
        report.extend(self.executor.run_all(commands))

        selection = self.config.selection
        if report.succeeded:
            logger.info(
                f"Emulation started on {selection.interface} via {selection.ifb_device}"
            )
        else:
            logger.error(
                f"Emulation started on {selection.interface} with "
                f"{len(report.failures)} failed commands"
            )
        return report

    def stop(self, force: bool = False) -> ExecutionReport:
        """
        Remove emulation from the interface and IFB device.

        Args:
            force: Issue teardown even if nothing was started by this
                controller, e.g. to clean up after another process.

        Returns:
            Results of the teardown commands, empty if nothing was done.
        """
        if not self.is_started and not force:
            return ExecutionReport()

        selection = self._active_selection or self.config.selection
        report = self.executor.run_all(self.compiler.compile_teardown(selection))
        self.is_started = False
        self._active_selection = None
        logger.info(f"Emulation stopped on {selection.interface}")
        return report

    def set_running(self, running: bool) -> ExecutionReport:
        """Start or stop emulation from a toggle event."""
        return self.start() if running else self.stop()

    def clear(self) -> None:
        """Reset address filters and base values, keeping device choices."""
        self.config.selection.source_cidr = WILDCARD_CIDR
        self.config.selection.destination_cidr = WILDCARD_CIDR
        self.config.inbound_base = BaseValues()
        self.config.outbound_base = BaseValues()

    def reset_advanced(self) -> None:
        """Restore both advanced profiles to their defaults."""
        self.config.inbound = ImpairmentProfile()
        self.config.outbound = ImpairmentProfile()

    def apply_preset(self, name: str, presets: PresetLibrary) -> None:
        """
        Replace the active configuration with a named preset.

        The interface and IFB device of the current selection are kept.

        Raises:
            PresetNotFoundError: If the preset does not exist.
        """
        preset = presets.get(name)
        selection = self.config.selection
        self.config = preset.to_config(selection.interface, selection.ifb_device)
        logger.info(f"Loaded preset {name}")

    def load(self, path: str) -> None:
        """
        Load the active configuration from a JSON file.

        Raises:
            ProfileLoadError: If the file cannot be read or decoded.
        """
        self.config = self.store.load(path)

    def save(self, path: str) -> bool:
        """Save the active configuration to a JSON file."""
        return self.store.save(path, self.config)

    def get_status(self) -> dict:
        """
        Get current tc qdisc status.

        Returns:
            Dictionary with device names, started flag and tc output.
        """
        selection = self.config.selection
        status = {
            "interface": selection.interface,
            "ifb_device": selection.ifb_device,
            "started": self.is_started,
        }
        try:
            for key, device in (
                ("interface", selection.interface),
                ("ifb", selection.ifb_device),
            ):
                result = subprocess.run(
                    ["tc", "qdisc", "show", "dev", device],
                    capture_output=True,
                    text=True,
                    timeout=5,
                )
                status[f"{key}_tc_output"] = result.stdout
                status[f"{key}_active"] = "netem" in result.stdout
        except (OSError, subprocess.TimeoutExpired) as e:
            status["error"] = str(e)

        return status

"""
netemctl - IFB based two-way netem emulation control for Python.

This package compiles per-direction impairment profiles (delay, loss,
corruption, duplication, reordering, rate and slotting) into tc/ip command
sequences that shape inbound traffic through an IFB device and outbound
traffic on the real interface, and runs them through a pluggable executor.

Example:
    >>> from netemctl import NetemController, BaseValues
    >>> controller = NetemController()
    >>> controller.config.selection.interface = "eth0"
    >>> controller.config.outbound_base = BaseValues(delay_ms=100, loss_pct=1)
    >>> controller.start().succeeded
    True
    >>> controller.stop().succeeded
    True

Compiling only:
    >>> from netemctl import ProfileCompiler, EmulationConfig
    >>> commands = ProfileCompiler().compile_setup(EmulationConfig())
"""

from .address import WILDCARD_CIDR, is_valid_cidr, resolve_cidr
from .compiler import ProfileCompiler, render_effect_clause
from .controller import NetemController
from .exceptions import (
    CommandFailedError,
    NetemCtlError,
    PresetNotFoundError,
    ProfileLoadError,
    SudoNotAvailableError,
)
from .executor import (
    CommandResult,
    DryRunExecutor,
    ExecutionReport,
    Executor,
    ShellExecutor,
)
from .interfaces import list_interfaces
from .presets import Preset, PresetLibrary
from .profile import (
    BaseValues,
    EmulationConfig,
    ImpairmentProfile,
    InterfaceSelection,
)
from .store import ProfileStore

__version__ = "0.1.0"

__all__ = [
    # Core classes
    "NetemController",
    "ProfileCompiler",
    "ProfileStore",
    "PresetLibrary",
    "Preset",
    # Data model
    "ImpairmentProfile",
    "BaseValues",
    "InterfaceSelection",
    "EmulationConfig",
    # Execution
    "Executor",
    "ShellExecutor",
    "DryRunExecutor",
    "CommandResult",
    "ExecutionReport",
    # Exceptions
    "NetemCtlError",
    "SudoNotAvailableError",
    "PresetNotFoundError",
    "CommandFailedError",
    "ProfileLoadError",
    # Functions
    "render_effect_clause",
    "is_valid_cidr",
    "resolve_cidr",
    "list_interfaces",
    "WILDCARD_CIDR",
    # Version
    "__version__",
]

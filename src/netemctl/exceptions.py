"""
Exceptions raised by netemctl.

Compiling never raises: invalid addresses fall back to the wildcard network
and profile values are validated when the dataclasses are built (ValueError).
The errors below cover the edges: privileges, presets, persistence, and
command results a caller explicitly asked to be raised.
"""


class NetemCtlError(Exception):
    """Base exception for all netemctl errors."""


class SudoNotAvailableError(NetemCtlError):
    """The tc/ip/modprobe commands need passwordless sudo, which is missing."""

    def __init__(self, message: str = "Passwordless sudo is required to change qdiscs"):
        super().__init__(message)


class PresetNotFoundError(NetemCtlError):
    """No preset with the requested name was loaded."""

    def __init__(self, preset_name: str):
        self.preset_name = preset_name
        super().__init__(f"Emulation preset not found: {preset_name}")


class CommandFailedError(NetemCtlError):
    """
    A generated command exited non-zero.

    Sequences never raise on their own; this is only raised from
    ExecutionReport.raise_for_failures().

    Attributes:
        result: The CommandResult of the failed command.
    """

    def __init__(self, result):
        self.result = result
        message = f"Command failed (exit {result.returncode}): {result.command}"
        if result.stderr:
            message += f"\nStderr: {result.stderr.strip()}"
        super().__init__(message)

    @property
    def command(self) -> str:
        return self.result.command

    @property
    def returncode(self) -> int:
        return self.result.returncode


class ProfileLoadError(NetemCtlError):
    """
    A saved JSON configuration or a YAML presets file could not be used.

    Attributes:
        path: File that was being read.
        reason: What was wrong with it, e.g. "file not found".
    """

    def __init__(self, path: str, reason: str = ""):
        self.path = path
        self.reason = reason
        message = f"Cannot load emulation settings from {path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)

"""
Command executors.

An Executor runs one shell command at a time and reports what happened.
Sequences always run to the end: a failing command is recorded and the
next one is issued anyway.
"""

import logging
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Iterable, Optional

from .exceptions import CommandFailedError

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Outcome of one command."""

    command: str
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


@dataclass
class ExecutionReport:
    """Per-command results of a sequence, in execution order."""

    results: list[CommandResult] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return all(r.ok for r in self.results)

    @property
    def failures(self) -> list[CommandResult]:
        return [r for r in self.results if not r.ok]

    @property
    def commands(self) -> list[str]:
        return [r.command for r in self.results]

    def extend(self, other: "ExecutionReport") -> None:
        self.results.extend(other.results)

    def raise_for_failures(self) -> None:
        """
        Raise for the first failed command, if any.

        Raises:
            CommandFailedError: If a command exited non-zero.
        """
        for result in self.results:
            if not result.ok:
                raise CommandFailedError(result)


class Executor(ABC):
    """Runs shell commands; subclasses implement run()."""

    @abstractmethod
    def run(self, command: str) -> CommandResult:
        """Run one command to completion and report its outcome."""

    def run_all(self, commands: Iterable[str]) -> ExecutionReport:
        """Run commands in order, never stopping early."""
        report = ExecutionReport()
        for command in commands:
            report.results.append(self.run(command))
        if report.failures:
            logger.warning(
                f"{len(report.failures)} of {len(report.results)} commands failed"
            )
        return report


class ShellExecutor(Executor):
    """
    Runs commands through the system shell with subprocess.

    Example:
        >>> result = ShellExecutor().run("true")
        >>> result.ok
        True
    """

    def __init__(self, timeout: Optional[float] = None):
        """
        Args:
            timeout: Seconds to wait per command. None waits indefinitely.
        """
        self.timeout = timeout
        self._sudo_available: Optional[bool] = None

    def run(self, command: str) -> CommandResult:
        """Execute a command and capture its output."""
        logger.debug(f"Running: {command}")

        try:
            proc = subprocess.run(
                command,
                shell=True,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            logger.error(f"Command timed out: {command}")
            return CommandResult(command, -1, stderr="timed out")
        except OSError as e:
            logger.error(f"Command error: {e}")
            return CommandResult(command, -1, stderr=str(e))

        if proc.returncode != 0:
            logger.error(f"Command failed: {command}: {proc.stderr.strip()}")

        return CommandResult(command, proc.returncode, proc.stdout, proc.stderr)

    def check_sudo(self) -> bool:
        """
        Check if sudo is available without password.

        Returns:
            True if passwordless sudo is available.
        """
        if self._sudo_available is not None:
            return self._sudo_available

        try:
            result = subprocess.run(
                ["sudo", "-n", "true"], capture_output=True, timeout=5
            )
            self._sudo_available = result.returncode == 0
        except (OSError, subprocess.TimeoutExpired):
            self._sudo_available = False

        return self._sudo_available


class DryRunExecutor(Executor):
    """Records commands instead of running them."""

    def __init__(self):
        self.history: list[str] = []

    def run(self, command: str) -> CommandResult:
        logger.info(f"[dry-run] {command}")
        self.history.append(command)
        return CommandResult(command, 0)

#!/usr/bin/env python3
"""
Command-line front-end for netemctl.

Builds an EmulationConfig from a saved JSON file, a YAML preset and/or
command-line options, then shows, starts or stops the emulation.
"""

import argparse
import logging
import os
import sys
from typing import Optional

from dotenv import load_dotenv

from .compiler import ProfileCompiler
from .controller import NetemController
from .exceptions import NetemCtlError, SudoNotAvailableError
from .executor import DryRunExecutor, ExecutionReport, ShellExecutor
from .interfaces import list_interfaces
from .presets import PresetLibrary
from .profile import IFB_DEVICES
from .store import ProfileStore

logger = logging.getLogger("netemctl")

COMMANDS = ("show", "start", "stop", "interfaces", "presets", "save")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="netemctl",
        description="Two-way netem emulation through an IFB device",
    )
    parser.add_argument("command", choices=COMMANDS, help="Action to perform")
    parser.add_argument(
        "--config", "-c",
        help="Saved JSON configuration to start from"
    )
    parser.add_argument(
        "--presets",
        default=os.getenv("NETEMCTL_PRESETS"),
        help="Path to YAML presets file"
    )
    parser.add_argument(
        "--preset", "-p",
        help="Preset to apply (requires --presets)"
    )
    parser.add_argument(
        "--interface", "-i",
        default=os.getenv("NETEMCTL_INTERFACE"),
        help="Network interface to shape"
    )
    parser.add_argument(
        "--ifb",
        default=os.getenv("NETEMCTL_IFB"),
        choices=IFB_DEVICES,
        help="IFB device used for inbound shaping"
    )
    parser.add_argument("--src", help="Source address filter (CIDR)")
    parser.add_argument("--dst", help="Destination address filter (CIDR)")
    for direction in ("in", "out"):
        parser.add_argument(
            f"--{direction}-delay", type=float,
            help=f"Base {direction}bound delay in ms"
        )
        parser.add_argument(
            f"--{direction}-loss", type=float,
            help=f"Base {direction}bound loss in %%"
        )
        parser.add_argument(
            f"--{direction}-rate", type=float,
            help=f"Base {direction}bound rate in kbit/s"
        )
    parser.add_argument(
        "--output", "-o",
        help="Output path for the save command"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Log commands instead of running them"
    )
    parser.add_argument(
        "--no-sudo",
        action="store_true",
        help="Do not prefix commands with sudo"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging"
    )
    return parser


def _apply_overrides(controller: NetemController, args: argparse.Namespace) -> None:
    config = controller.config
    if args.interface:
        config.selection.interface = args.interface
    if args.ifb:
        config.selection.ifb_device = args.ifb
    if args.src is not None:
        config.selection.source_cidr = args.src
    if args.dst is not None:
        config.selection.destination_cidr = args.dst

    for base, prefix in ((config.inbound_base, "in"), (config.outbound_base, "out")):
        for attr, option in (("delay_ms", "delay"), ("loss_pct", "loss"), ("rate_kbps", "rate")):
            value = getattr(args, f"{prefix}_{option}")
            if value is None:
                continue
            if value < 0:
                raise NetemCtlError(f"--{prefix}-{option} must be non-negative")
            setattr(base, attr, value)


def _report(report: ExecutionReport) -> int:
    for result in report.failures:
        print(f"FAILED ({result.returncode}): {result.command}", file=sys.stderr)
        if result.stderr:
            print(f"  {result.stderr.strip()}", file=sys.stderr)
    return 0 if report.succeeded else 1


def run(args: argparse.Namespace) -> int:
    """Execute a parsed command line, returning the exit status."""
    if args.command == "interfaces":
        for name in list_interfaces():
            print(name)
        return 0

    presets = PresetLibrary(args.presets) if args.presets else None

    if args.command == "presets":
        if presets is None:
            raise NetemCtlError("--presets is required to list presets")
        print("\nAvailable presets:")
        for name in presets.names():
            print(f"  - {name}: {presets.get(name).description}")
        return 0

    executor = DryRunExecutor() if args.dry_run else ShellExecutor()
    controller = NetemController(
        executor=executor,
        compiler=ProfileCompiler(use_sudo=not args.no_sudo),
        store=ProfileStore(),
    )

    if args.config:
        controller.load(args.config)
    if args.preset:
        if presets is None:
            raise NetemCtlError("--preset requires --presets")
        if presets.default_interface and not args.interface:
            controller.config.selection.interface = presets.default_interface
        controller.apply_preset(args.preset, presets)
    _apply_overrides(controller, args)

    if args.command == "show":
        for command in controller.compile():
            print(command)
        return 0

    if args.command == "save":
        if not args.output:
            raise NetemCtlError("--output is required to save")
        return 0 if controller.save(args.output) else 1

    if (
        isinstance(executor, ShellExecutor)
        and not args.no_sudo
        and not executor.check_sudo()
    ):
        raise SudoNotAvailableError()

    if args.command == "stop":
        return _report(controller.stop(force=True))

    # A previous run may have left rules behind; they are removed first and
    # failures of that cleanup are expected on a clean interface.
    cleanup = controller.stop(force=True)
    if cleanup.failures:
        logger.debug(f"{len(cleanup.failures)} cleanup commands failed")
    return _report(controller.start())


def main(argv: Optional[list] = None) -> int:
    """Main entry point."""
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)
    # argparse only checks choices for values given on the command line
    if args.ifb and args.ifb not in IFB_DEVICES:
        parser.error(
            f"NETEMCTL_IFB: invalid choice: {args.ifb!r} "
            f"(choose from {', '.join(IFB_DEVICES)})"
        )

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    try:
        return run(args)
    except NetemCtlError as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())

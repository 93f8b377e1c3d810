"""
Compiles impairment profiles into tc/ip/modprobe command lines.

The compiler is side-effect free: it only builds strings. Running them is
the job of an Executor (see executor.py).

Setup layout: ingress traffic of the real interface is mirrored to an IFB
device, and both the IFB device and the real interface get a 16-band prio
root qdisc. Band 1 holds a plain netem queue, band 2 holds the impairment
netem qdisc, and a u32 filter steers the selected source/destination pair
into band 2.
"""

import logging

from .address import resolve_cidr
from .profile import DISABLED, ENABLED, BaseValues, EmulationConfig, ImpairmentProfile

logger = logging.getLogger(__name__)

PRIO_BANDS = 16


def _n(value) -> int:
    """Truncate to an integer, netem arguments carry no fractions here."""
    return int(value)


def render_effect_clause(base: BaseValues, profile: ImpairmentProfile) -> str:
    """
    Build the netem parameter string for one direction.

    Segments are emitted in a fixed order (limit, delay, loss, corrupt,
    duplicate, reorder, rate, slot), each only when its gate is open.

    Args:
        base: Base delay/loss/rate for the direction.
        profile: Advanced parameters for the direction.

    Returns:
        Space-joined clause, empty when nothing is enabled.

    Example:
        >>> render_effect_clause(
        ...     BaseValues(delay_ms=50),
        ...     ImpairmentProfile(limit_packets=0, delay_jitter=10),
        ... )
        'delay 50ms 10ms'
    """
    params: list[str] = []

    if profile.limit_packets > 0:
        params.append(f"limit {_n(profile.limit_packets)}")

    if base.delay_ms > 0:
        delay_parts = [f"delay {_n(base.delay_ms)}ms"]
        if profile.delay_jitter > 0:
            delay_parts.append(f"{_n(profile.delay_jitter)}ms")
            if profile.delay_correlation > 0:
                delay_parts.append(f"{_n(profile.delay_correlation)}%")
        if profile.delay_distribution != DISABLED:
            delay_parts.append(f"distribution {profile.delay_distribution}")
        params.append(" ".join(delay_parts))

    if base.loss_pct > 0:
        loss_parts = ["loss"]
        if profile.loss_random == ENABLED:
            loss_parts.append("random")
        loss_parts.append(f"{_n(base.loss_pct)}%")
        if profile.loss_correlation > 0:
            loss_parts.append(f"{_n(profile.loss_correlation)}%")
        params.append(" ".join(loss_parts))

    if profile.corruption_percent > 0:
        corrupt_parts = [f"corrupt {_n(profile.corruption_percent)}%"]
        if profile.corruption_correlation > 0:
            corrupt_parts.append(f"{_n(profile.corruption_correlation)}%")
        params.append(" ".join(corrupt_parts))

    if profile.duplication_percent > 0:
        duplicate_parts = [f"duplicate {_n(profile.duplication_percent)}%"]
        if profile.duplication_correlation > 0:
            duplicate_parts.append(f"{_n(profile.duplication_correlation)}%")
        params.append(" ".join(duplicate_parts))

    if profile.reordering_percent > 0:
        reorder_parts = [f"reorder {_n(profile.reordering_percent)}%"]
        if profile.reordering_correlation > 0:
            reorder_parts.append(f"{_n(profile.reordering_correlation)}%")
        if profile.reordering_distance > 0:
            reorder_parts.append(f"gap {_n(profile.reordering_distance)}")
        params.append(" ".join(reorder_parts))

    if base.rate_kbps > 0:
        rate_parts = [f"rate {_n(base.rate_kbps)}kbps"]
        # Each overhead term requires the previous one.
        for value in (
            profile.rate_packet_overhead,
            profile.rate_cell_size,
            profile.rate_cell_overhead,
        ):
            if value <= 0:
                break
            rate_parts.append(f"{_n(value)}")
        params.append(" ".join(rate_parts))

    if profile.slot_distribution != DISABLED:
        params.append(f"slot {profile.slot_distribution}")
    elif profile.slot_min_delay > 0:
        slot_parts = [f"slot {_n(profile.slot_min_delay)}ms"]
        if profile.slot_max_delay > 0:
            slot_parts.append(f"{_n(profile.slot_max_delay)}ms")
        params.append(" ".join(slot_parts))

    return " ".join(params)


class ProfileCompiler:
    """
    Turns an EmulationConfig into ordered setup and teardown commands.

    Example:
        >>> compiler = ProfileCompiler()
        >>> commands = compiler.compile_setup(EmulationConfig())
        >>> commands[0]
        'sudo modprobe ifb'
    """

    def __init__(self, use_sudo: bool = True):
        """
        Args:
            use_sudo: Prefix every command with ``sudo``.
        """
        self.use_sudo = use_sudo

    def _cmd(self, text: str) -> str:
        return f"sudo {text}" if self.use_sudo else text

    def _prio_root(self, device: str) -> str:
        priomap = " ".join(["0"] * PRIO_BANDS)
        return self._cmd(
            f"tc qdisc add dev {device} root handle 1: "
            f"prio bands {PRIO_BANDS} priomap {priomap}"
        )

    def _shape_device(
        self,
        device: str,
        limit_packets: float,
        effects: str,
        match_src: str,
        match_dst: str,
    ) -> list[str]:
        commands = [
            self._prio_root(device),
            self._cmd(
                f"tc qdisc add dev {device} parent 1:1 handle 10: "
                f"netem limit {_n(limit_packets)}"
            ),
        ]
        if match_src and match_dst:
            commands.append(
                self._cmd(
                    f"tc qdisc add dev {device} parent 1:2 handle 20: netem {effects}"
                ).rstrip()
            )
            commands.append(
                self._cmd(
                    f"tc filter add dev {device} protocol ip parent 1: prio 2 u32 "
                    f"match ip src {match_src} match ip dst {match_dst} flowid 1:2"
                )
            )
        else:
            logger.warning(f"Empty address filter, skipping band 2 on {device}")
        return commands

    def compile_setup(self, config: EmulationConfig) -> list[str]:
        """
        Build the command sequence that starts emulation.

        Args:
            config: Selection, base values and both direction profiles.

        Returns:
            Commands in the order they must run.
        """
        selection = config.selection
        ifc = selection.interface
        ifb = selection.ifb_device
        src = resolve_cidr(selection.source_cidr)
        dst = resolve_cidr(selection.destination_cidr)

        inbound_effects = render_effect_clause(config.inbound_base, config.inbound)
        outbound_effects = render_effect_clause(config.outbound_base, config.outbound)

        commands = [
            self._cmd("modprobe ifb"),
            self._cmd("modprobe act_mirred"),
            self._cmd(f"ip link set dev {ifb} up"),
            self._cmd(f"tc qdisc add dev {ifc} ingress handle ffff:"),
            self._cmd(
                f"tc filter add dev {ifc} parent ffff: protocol ip u32 match u32 0 0 "
                f"action mirred egress redirect dev {ifb}"
            ),
        ]
        # Mirrored ingress traffic flows toward us, so the match is swapped.
        commands += self._shape_device(
            ifb, config.inbound.limit_packets, inbound_effects, dst, src
        )
        commands += self._shape_device(
            ifc, config.outbound.limit_packets, outbound_effects, src, dst
        )
        return commands

    def compile_teardown(self, selection) -> list[str]:
        """Build the command sequence that removes everything compile_setup added."""
        ifc = selection.interface
        ifb = selection.ifb_device
        return [
            self._cmd(f"tc qdisc del dev {ifc} ingress"),
            self._cmd(f"tc qdisc del dev {ifb} root"),
            self._cmd(f"tc qdisc del dev {ifc} root"),
            self._cmd(f"ip link set dev {ifb} down"),
            self._cmd("rmmod ifb"),
        ]

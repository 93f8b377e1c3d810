"""
Impairment profile data classes for netemctl.

Defines the per-direction ImpairmentProfile (the "advanced" netem
parameters), the BaseValues that gate them, the InterfaceSelection the
commands are aimed at, and the EmulationConfig bundle tying them together.
"""

from dataclasses import dataclass, field, fields
from typing import Optional

from .address import WILDCARD_CIDR

DISABLED = "disabled"
ENABLED = "enabled"

DISTRIBUTIONS = (DISABLED, "uniform", "normal", "pareto", "paretonormal")
LOSS_RANDOM_CHOICES = (DISABLED, ENABLED)

DEFAULT_LIMIT_PACKETS = 2000.0

IFB_DEVICES = ("ifb0", "ifb1")

# Persisted positional order, do not reorder.
ADVANCED_FIELDS = (
    "limit_packets",
    "delay_jitter",
    "delay_correlation",
    "delay_distribution",
    "loss_random",
    "loss_correlation",
    "duplication_percent",
    "duplication_correlation",
    "corruption_percent",
    "corruption_correlation",
    "reordering_percent",
    "reordering_correlation",
    "reordering_distance",
    "rate_packet_overhead",
    "rate_cell_size",
    "rate_cell_overhead",
    "slot_min_delay",
    "slot_max_delay",
    "slot_distribution",
)

_CHOICE_FIELDS = {
    "delay_distribution": DISTRIBUTIONS,
    "loss_random": LOSS_RANDOM_CHOICES,
    "slot_distribution": DISTRIBUTIONS,
}


def _check_non_negative(obj) -> None:
    for f in fields(obj):
        value = getattr(obj, f.name)
        if isinstance(value, (int, float)) and value < 0:
            raise ValueError(f"{f.name} must be non-negative, got {value}")


@dataclass
class ImpairmentProfile:
    """
    Advanced netem parameters for one traffic direction.

    Zero or "disabled" switches a feature off. Several values only take
    effect together with a positive base value supplied at compile time
    (see BaseValues): jitter and delay correlation need a base delay, loss
    correlation needs a base loss, and the rate overhead chain needs a
    base rate.

    Attributes:
        limit_packets: netem queue limit in packets.
        delay_jitter: Delay variation in milliseconds.
        delay_correlation: Correlation of successive delays (%). Only
            rendered together with jitter.
        delay_distribution: One of DISTRIBUTIONS.
        loss_random: "enabled" adds the ``random`` keyword to the loss clause.
        loss_correlation: Correlation of successive losses (%).
        duplication_percent: Packet duplication (%).
        duplication_correlation: Correlation of successive duplications (%).
        corruption_percent: Single-bit corruption (%).
        corruption_correlation: Correlation of successive corruptions (%).
        reordering_percent: Packets sent immediately, out of order (%).
        reordering_correlation: Correlation of successive reorderings (%).
        reordering_distance: ``gap`` between reordered packets.
        rate_packet_overhead: Per-packet overhead in bytes.
        rate_cell_size: Link layer cell size in bytes, needs packet overhead.
        rate_cell_overhead: Per-cell overhead in bytes, needs cell size.
        slot_min_delay: Minimum slot delay in milliseconds.
        slot_max_delay: Maximum slot delay in milliseconds.
        slot_distribution: One of DISTRIBUTIONS; overrides the slot delays.
    """

    limit_packets: float = DEFAULT_LIMIT_PACKETS
    delay_jitter: float = 0.0
    delay_correlation: float = 0.0
    delay_distribution: str = DISABLED
    loss_random: str = DISABLED
    loss_correlation: float = 0.0
    duplication_percent: float = 0.0
    duplication_correlation: float = 0.0
    corruption_percent: float = 0.0
    corruption_correlation: float = 0.0
    reordering_percent: float = 0.0
    reordering_correlation: float = 0.0
    reordering_distance: float = 0.0
    rate_packet_overhead: float = 0.0
    rate_cell_size: float = 0.0
    rate_cell_overhead: float = 0.0
    slot_min_delay: float = 0.0
    slot_max_delay: float = 0.0
    slot_distribution: str = DISABLED

    def __post_init__(self):
        """Validate parameters."""
        for name, choices in _CHOICE_FIELDS.items():
            value = getattr(self, name)
            if value not in choices:
                raise ValueError(
                    f"{name} must be one of {', '.join(choices)}, got {value!r}"
                )
        _check_non_negative(self)

    @classmethod
    def from_dict(cls, data: dict) -> "ImpairmentProfile":
        """
        Create an ImpairmentProfile from a dictionary.

        Unknown keys are ignored and missing keys keep their defaults.

        Example:
            >>> profile = ImpairmentProfile.from_dict({"delay_jitter": 10})
            >>> profile.delay_jitter
            10.0
        """
        values = {}
        for name in ADVANCED_FIELDS:
            if name not in data:
                continue
            if name in _CHOICE_FIELDS:
                values[name] = str(data[name])
            else:
                values[name] = float(data[name])
        return cls(**values)

    def to_list(self) -> list:
        """Return the field values in persisted order."""
        return [getattr(self, name) for name in ADVANCED_FIELDS]

    @classmethod
    def from_list(cls, values) -> "ImpairmentProfile":
        """Build a profile from values in persisted order."""
        if len(values) != len(ADVANCED_FIELDS):
            raise ValueError(
                f"expected {len(ADVANCED_FIELDS)} values, got {len(values)}"
            )
        return cls.from_dict(dict(zip(ADVANCED_FIELDS, values)))


@dataclass
class BaseValues:
    """
    Primary per-direction values that gate the advanced parameters.

    Attributes:
        delay_ms: Base delay in milliseconds.
        loss_pct: Base loss percentage.
        rate_kbps: Rate limit in kbit/s.
    """

    delay_ms: float = 0.0
    loss_pct: float = 0.0
    rate_kbps: float = 0.0

    def __post_init__(self):
        _check_non_negative(self)

    @classmethod
    def from_dict(cls, data: dict) -> "BaseValues":
        return cls(
            delay_ms=float(data.get("delay_ms", 0.0)),
            loss_pct=float(data.get("loss_pct", 0.0)),
            rate_kbps=float(data.get("rate_kbps", 0.0)),
        )


@dataclass
class InterfaceSelection:
    """Devices and address filters a compile is aimed at."""

    interface: str = "eth0"
    ifb_device: str = IFB_DEVICES[0]
    source_cidr: str = WILDCARD_CIDR
    destination_cidr: str = WILDCARD_CIDR


@dataclass
class EmulationConfig:
    """Everything needed to compile one start sequence."""

    selection: InterfaceSelection = field(default_factory=InterfaceSelection)
    inbound_base: BaseValues = field(default_factory=BaseValues)
    outbound_base: BaseValues = field(default_factory=BaseValues)
    inbound: ImpairmentProfile = field(default_factory=ImpairmentProfile)
    outbound: ImpairmentProfile = field(default_factory=ImpairmentProfile)
    description: Optional[str] = None

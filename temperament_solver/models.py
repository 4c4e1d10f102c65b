"""Data model for the temperament solver.

Inputs are frozen dataclasses validated on construction; results are
plain dataclasses built fresh on every solve.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional

from . import config
from .cents import parse_ratio


class SolveError(ValueError):
    """A solve produced a non-finite weight, generator, period or pitch."""


class WolfPlacement(Enum):
    """Where the wolf interval of the generator chain is placed."""
    AUTO = "auto"      # Derived from the number of flats
    MANUAL = "manual"  # Explicit edge index


class SolverStrategy(Enum):
    """How the generator (and possibly the period) is optimized."""
    RANK2_WLS = "rank2_wls"                  # Generator and period, jointly
    RANK1_CLOSED_FORM = "rank1_closed_form"  # Generator only, period fixed
    GOLDEN_SECTION = "golden_section"        # Wrapped loss, bracketed search


class IntervalKind(Enum):
    """Coarse interval family used to colour error reports."""
    P5 = "P5"
    M3 = "M3"
    m3 = "m3"


def _check_terms(n: int, d: int) -> None:
    if n <= 0 or d <= 0:
        raise ValueError(f"Ratio terms must be positive, got {n}/{d}")


@dataclass(frozen=True)
class RatioSpec:
    """A just-intonation target ratio n/d."""
    n: int
    d: int
    label: str = ""

    def __post_init__(self):
        _check_terms(self.n, self.d)
        if not self.label:
            object.__setattr__(self, "label", self.key)

    @property
    def key(self) -> str:
        """Lookup key used by target weight maps ("n/d")."""
        return f"{self.n}/{self.d}"

    @classmethod
    def parse(cls, value: Any) -> "RatioSpec":
        """Build from an "n/d" string, a mapping, or an existing RatioSpec."""
        if isinstance(value, RatioSpec):
            return value
        if isinstance(value, str):
            n, d = parse_ratio(value)
            return cls(n, d)
        return cls(int(value["n"]), int(value["d"]), value.get("label", ""))


@dataclass(frozen=True)
class OctaAnchor:
    """A reference interval attached to one vertex of the weighting cube."""
    id: str
    n: int
    d: int
    label: str = ""

    def __post_init__(self):
        _check_terms(self.n, self.d)

    @property
    def key(self) -> str:
        return f"{self.n}/{self.d}"


@dataclass(frozen=True)
class OctaWeighting:
    """Continuous blend of anchor importance along three axes."""
    enabled: bool = False
    x: float = 0.5
    y: float = 0.5
    z: float = 0.5
    # None means the built-in OCTA_ANCHORS set
    targets: Optional[tuple[OctaAnchor, ...]] = None

    def __post_init__(self):
        for axis in ("x", "y", "z"):
            value = getattr(self, axis)
            if not math.isfinite(value):
                raise ValueError(f"Octave weighting axis {axis} must be finite, got {value}")


@dataclass(frozen=True)
class KeySpecificity:
    """Key the scale is centred on."""
    tonic: int = 0
    flats: int = 0
    sharps: int = 0


@dataclass(frozen=True)
class SolverInput:
    """Complete, immutable configuration for one solve."""
    scale_size: int
    cycle_cents: float = config.DEFAULT_CYCLE_CENTS
    targets: tuple[RatioSpec, ...] = ()
    # Read-only copy; left out of the hash
    target_weights: Optional[Mapping[str, float]] = field(default=None, hash=False)
    octa_weighting: Optional[OctaWeighting] = None
    octave_stiffness: float = 1.0
    key_specificity: KeySpecificity = field(default_factory=KeySpecificity)
    wolf_placement: WolfPlacement = WolfPlacement.AUTO
    wolf_edge_index: Optional[int] = None
    base_midi_note: int = config.DEFAULT_BASE_MIDI_NOTE
    base_frequency_hz: float = config.DEFAULT_BASE_FREQUENCY_HZ

    def __post_init__(self):
        if self.scale_size < 1:
            raise ValueError(f"Scale size must be >= 1, got {self.scale_size}")
        if not math.isfinite(self.cycle_cents) or self.cycle_cents <= 0:
            raise ValueError(f"Cycle must be a positive number of cents, got {self.cycle_cents}")
        if not math.isfinite(self.octave_stiffness):
            raise ValueError(f"Octave stiffness must be finite, got {self.octave_stiffness}")
        if not math.isfinite(self.base_frequency_hz) or self.base_frequency_hz <= 0:
            raise ValueError(f"Base frequency must be positive, got {self.base_frequency_hz}")
        # Accept plain strings ("manual") as well as the enum
        object.__setattr__(self, "wolf_placement", WolfPlacement(self.wolf_placement))
        object.__setattr__(self, "targets", tuple(self.targets))
        if self.target_weights is not None:
            for key, weight in self.target_weights.items():
                if not math.isfinite(weight):
                    raise ValueError(f"Weight for {key} must be finite, got {weight}")
            object.__setattr__(
                self, "target_weights", MappingProxyType(dict(self.target_weights))
            )

    @property
    def octa_enabled(self) -> bool:
        return self.octa_weighting is not None and self.octa_weighting.enabled

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SolverInput":
        """Build an input from a JSON-style mapping.

        Keys may be camelCase (scaleSize) or snake_case (scale_size).
        Ratios may be "n/d" strings or {"n": .., "d": .., "label": ..}.

        Raises:
            ValueError: On missing or invalid fields
        """
        def get(snake: str, camel: str, default: Any = None) -> Any:
            if snake in data:
                return data[snake]
            return data.get(camel, default)

        scale_size = get("scale_size", "scaleSize")
        if scale_size is None:
            raise ValueError("Solver config requires 'scaleSize'")

        octa = get("octa_weighting", "octaWeighting")
        octa_weighting = None
        if octa is not None:
            anchors = octa.get("targets")
            octa_weighting = OctaWeighting(
                enabled=bool(octa.get("enabled", False)),
                x=float(octa.get("x", 0.5)),
                y=float(octa.get("y", 0.5)),
                z=float(octa.get("z", 0.5)),
                targets=tuple(
                    OctaAnchor(a["id"], int(a["n"]), int(a["d"]), a.get("label", ""))
                    for a in anchors
                ) if anchors else None,
            )

        key = get("key_specificity", "keySpecificity", {}) or {}
        weights = get("target_weights", "targetWeights")

        return cls(
            scale_size=int(scale_size),
            cycle_cents=float(get("cycle_cents", "cycleCents", config.DEFAULT_CYCLE_CENTS)),
            targets=tuple(RatioSpec.parse(t) for t in get("targets", "targets", [])),
            target_weights={str(k): float(v) for k, v in weights.items()} if weights else None,
            octa_weighting=octa_weighting,
            octave_stiffness=float(get("octave_stiffness", "octaveStiffness", 1.0)),
            key_specificity=KeySpecificity(
                tonic=int(key.get("tonic", 0)),
                flats=int(key.get("flats", 0)),
                sharps=int(key.get("sharps", 0)),
            ),
            wolf_placement=WolfPlacement(get("wolf_placement", "wolfPlacement", "auto")),
            wolf_edge_index=get("wolf_edge_index", "wolfEdgeIndex"),
            base_midi_note=int(get("base_midi_note", "baseMidiNote", config.DEFAULT_BASE_MIDI_NOTE)),
            base_frequency_hz=float(
                get("base_frequency_hz", "baseFrequencyHz", config.DEFAULT_BASE_FREQUENCY_HZ)
            ),
        )


@dataclass(frozen=True)
class Constraint:
    """One weighted target the generator is fitted against."""
    label: str
    n: int
    d: int
    weight: float
    ideal_cents: float
    generator_steps: int
    # Period wraps reconciling steps * reference with ideal_cents
    period_comp: Optional[int] = None
    anchor_id: Optional[str] = None


@dataclass
class IntervalError:
    """Realized size and error of one target at one transposition."""
    i: int
    j: int
    step: int
    target: RatioSpec
    target_cents: float
    actual_cents: float
    error_cents: float  # Signed: positive means wide
    weight: float
    kind: IntervalKind
    is_skeleton: bool
    key_tonic: Optional[int] = None
    anchor_id: Optional[str] = None


@dataclass
class GeneratorSolution:
    """Output of one generator-solving strategy."""
    generator_cents: float
    period_cents: float
    strategy: SolverStrategy
    period_stretch_cents: Optional[float] = None
    period_stretch_warning: Optional[bool] = None
    condition_number: Optional[float] = None
    was_clamped: bool = False
    singular: bool = False


@dataclass
class NoteResult:
    """One degree of the solved scale, ready for playback or export."""
    degree: int
    name: str
    cents_from_root: float
    frequency_hz: float
    cents_absolute: Optional[float] = None


@dataclass
class ModeAResult:
    """The solved scale."""
    notes_cents: list[float]
    generator_cents: float
    intervals: list[IntervalError]
    strategy: SolverStrategy
    optimized_period_cents: Optional[float] = None
    period_stretch_cents: Optional[float] = None
    period_stretch_warning: Optional[bool] = None
    cents_absolute: Optional[list[float]] = None

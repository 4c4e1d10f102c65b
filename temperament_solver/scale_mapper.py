"""Chain-of-generators degree assignment.

Stacks the solved generator N times, folds each chain position into the
period, and assigns it to a scale degree. Where the chain starts decides
where the wolf (the one irregular interval closing the chain) falls.
"""

from dataclasses import dataclass
from typing import Optional

from .cents import clamp, nearest_step_for_ratio, round_half_up, wrap_to_cycle
from .models import KeySpecificity, WolfPlacement


@dataclass
class ScaleMap:
    """Degree -> cents, in ascending pitch order."""
    notes_cents: list[float]
    # Unwrapped chain position of each degree, relative to the tonic
    cents_absolute: list[float]


def wolf_start_index(
    scale_size: int,
    key_specificity: KeySpecificity,
    wolf_placement: WolfPlacement,
    wolf_edge_index: Optional[int] = None,
) -> int:
    """Chain position at which the generator chain starts.

    Manual placement converts an edge index (clamped into [0, N)) into a
    start index; automatic placement rotates by the number of flats.
    """
    last = scale_size - 1
    if wolf_placement is WolfPlacement.MANUAL and wolf_edge_index is not None:
        edge = int(clamp(round_half_up(wolf_edge_index), 0, last))
        return (last - edge + scale_size) % scale_size
    return int(clamp(round_half_up(key_specificity.flats), 0, last))


def map_scale(
    generator_cents: float,
    period_cents: float,
    scale_size: int,
    key_specificity: KeySpecificity,
    wolf_placement: WolfPlacement = WolfPlacement.AUTO,
    wolf_edge_index: Optional[int] = None,
) -> ScaleMap:
    """Assign cents to each of N degrees by walking the generator chain.

    Args:
        generator_cents: Solved generator
        period_cents: Solved (or nominal) period
        scale_size: Number of degrees (N)
        key_specificity: Tonic degree and flats
        wolf_placement: Automatic or manual wolf position
        wolf_edge_index: Edge index for manual placement

    Returns:
        ScaleMap with ascending cents starting at 0
    """
    n = scale_size
    tonic = key_specificity.tonic % n
    step_size = nearest_step_for_ratio(generator_cents, n, period_cents)
    start = wolf_start_index(n, key_specificity, wolf_placement, wolf_edge_index)

    # Later chain positions win when two land on one degree
    chain = {
        (tonic + (k - start) * step_size) % n: (k - start) * generator_cents
        for k in range(n)
    }
    # Degrees the chain never reaches (step_size sharing a factor with N)
    # stay at 0 cents
    degree_absolute = [chain.get(degree, 0.0) for degree in range(n)]
    degree_cents = [wrap_to_cycle(a, period_cents) for a in degree_absolute]

    root = degree_cents[tonic]
    root_absolute = degree_absolute[tonic]
    cents = [wrap_to_cycle(c - root, period_cents) for c in degree_cents]
    absolute = [a - root_absolute for a in degree_absolute]

    order = sorted(range(n), key=lambda deg: cents[deg])
    sorted_cents = [cents[deg] for deg in order]
    sorted_absolute = [absolute[deg] for deg in order]

    # Second pass against the lowest sorted pitch
    lowest = sorted_cents[0]
    lowest_absolute = sorted_absolute[0]
    return ScaleMap(
        notes_cents=[wrap_to_cycle(c - lowest, period_cents) for c in sorted_cents],
        cents_absolute=[a - lowest_absolute for a in sorted_absolute],
    )

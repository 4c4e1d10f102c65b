"""Constraint construction.

Turns a SolverInput into the weighted list of targets the generator is
fitted against. Three mutually exclusive modes, in priority order:

1. Octave-weighted: anchors weighted by the OctaveWeighter cube.
2. Matrix-weighted: explicit per-ratio weights ("n/d" -> weight).
3. Equal-weighted: every target counts the same.

Each target is also assigned the number of generator hops whose chain
position best approximates it, which is what lets a one-parameter
generator be fitted against arbitrary intervals.
"""

import math
from dataclasses import replace
from typing import Iterable, Mapping, Optional

from . import config
from .cents import ratio_to_cents, round_half_up, signed_wrap_diff, wrap_to_cycle
from .models import Constraint, RatioSpec, SolveError, SolverInput
from .octave_weighter import OCTA_ANCHORS, compute_octa_weights, weight_for_anchor

FALLBACK_TARGET = RatioSpec(3, 2, "3/2")


def estimate_generator_steps(
    target_cents: float,
    period: float,
    reference_generator: float = config.REF_GENERATOR_CENTS,
    step_range: int = config.GENERATOR_STEP_RANGE,
) -> int:
    """Find how many generator hops best approximate an interval.

    Brute-forces k in [-step_range, step_range] (k != 0) and keeps the
    first k whose wrapped chain position lands closest to the target.

    Args:
        target_cents: Interval in cents (wrapped into the period)
        period: Period in cents
        reference_generator: Generator used to walk the chain
        step_range: Largest |k| searched

    Returns:
        Signed, non-zero step count

    Examples:
        >>> estimate_generator_steps(701.955, 1200.0)
        1
        >>> estimate_generator_steps(498.045, 1200.0)
        -1
    """
    best_step = 1
    best_diff = float('inf')
    for k in range(-step_range, step_range + 1):
        if k == 0:
            continue
        generated = wrap_to_cycle(k * reference_generator, period)
        diff = abs(signed_wrap_diff(generated, target_cents, period))
        if diff < best_diff:
            best_diff = diff
            best_step = k
    return best_step


def estimate_period_comp(
    ideal_cents: float,
    generator_steps: int,
    period: float,
    reference_generator: float = config.REF_GENERATOR_CENTS,
) -> int:
    """Period wraps separating steps * reference from ideal_cents.

    steps * g ≈ ideal_cents + period_comp * period
    """
    return round_half_up((generator_steps * reference_generator - ideal_cents) / period)


def estimate_period_steps(
    ideal_cents: float,
    generator_steps: int,
    period: float,
    reference_generator: float = config.REF_GENERATOR_CENTS,
) -> int:
    """Period count to add to a generator chain to reach ideal_cents.

    steps * g + period_steps * p ≈ ideal_cents

    Returns 0 for a zero-step constraint.
    """
    if generator_steps == 0:
        return 0
    return round_half_up((ideal_cents - generator_steps * reference_generator) / period)


def _target_constraint(
    target: RatioSpec,
    weight: float,
    period: float,
    reference_generator: float,
) -> Constraint:
    ideal = wrap_to_cycle(ratio_to_cents(target.n, target.d), period)
    return Constraint(
        label=target.label,
        n=target.n,
        d=target.d,
        weight=weight,
        ideal_cents=ideal,
        generator_steps=estimate_generator_steps(ideal, period, reference_generator),
    )


def _octa_constraints(
    solver_input: SolverInput,
    reference_generator: float,
) -> list[Constraint]:
    octa = solver_input.octa_weighting
    period = solver_input.cycle_cents
    weights = compute_octa_weights(octa.x, octa.y, octa.z)
    anchors = octa.targets or OCTA_ANCHORS

    constraints = []
    for anchor in anchors:
        ideal = wrap_to_cycle(ratio_to_cents(anchor.n, anchor.d), period)
        steps = estimate_generator_steps(ideal, period, reference_generator)
        constraints.append(Constraint(
            label=f"{anchor.label or anchor.id} ({anchor.key})",
            n=anchor.n,
            d=anchor.d,
            weight=weight_for_anchor(weights, anchor),
            ideal_cents=ideal,
            generator_steps=steps,
            period_comp=estimate_period_comp(ideal, steps, period, reference_generator),
            anchor_id=anchor.id,
        ))
    return constraints


def _uses_matrix_weights(target_weights: Optional[Mapping[str, float]]) -> bool:
    if not target_weights:
        return False
    return any(w > config.TARGET_WEIGHT_THRESHOLD for w in target_weights.values())


def fallback_constraint(
    period: float,
    reference_generator: float = config.REF_GENERATOR_CENTS,
) -> Constraint:
    """The pure fifth, used when nothing else survives constraint building."""
    constraint = _target_constraint(FALLBACK_TARGET, 1.0, period, reference_generator)
    if constraint.generator_steps == 0:
        constraint = replace(constraint, generator_steps=1)
    return constraint


def normalize_weights(constraints: Iterable[Constraint]) -> list[Constraint]:
    """Rescale weights to sum to 1 (unchanged when they sum to 0).

    Raises:
        SolveError: If the weights overflow to a non-finite total
    """
    constraints = list(constraints)
    total = sum(c.weight for c in constraints)
    if not math.isfinite(total):
        raise SolveError(f"Constraint weights sum to {total}")
    if total <= 0:
        return constraints
    return [replace(c, weight=c.weight / total) for c in constraints]


def build_constraints(
    solver_input: SolverInput,
    reference_generator: float = config.REF_GENERATOR_CENTS,
) -> list[Constraint]:
    """Build the normalized constraint set for a solve.

    Args:
        solver_input: The solver configuration
        reference_generator: Generator used for step estimation

    Returns:
        Non-empty list of constraints with weights summing to 1
        (unless every weight is 0) and no zero-step entries
    """
    period = solver_input.cycle_cents
    targets = solver_input.targets

    if solver_input.octa_enabled:
        candidates = _octa_constraints(solver_input, reference_generator)
    elif _uses_matrix_weights(solver_input.target_weights):
        weights = solver_input.target_weights
        candidates = [
            _target_constraint(t, weights[t.key], period, reference_generator)
            for t in targets
            if weights.get(t.key, 0.0) > config.TARGET_WEIGHT_THRESHOLD
        ]
    elif targets:
        equal_weight = 1.0 / len(targets)
        candidates = [
            _target_constraint(t, equal_weight, period, reference_generator)
            for t in targets
        ]
    else:
        candidates = []

    # A zero-step constraint says nothing about the generator
    constraints = [c for c in candidates if c.generator_steps != 0]
    if not constraints:
        constraints = [fallback_constraint(period, reference_generator)]

    return normalize_weights(constraints)

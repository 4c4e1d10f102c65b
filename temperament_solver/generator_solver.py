"""Generator (and period) optimization.

Three strategies, selected once per solve:

- Rank-2 weighted least squares: octave weighting on and the octave is
  allowed to stretch (stiffness < 1). Fits generator and period jointly.
- Rank-1 closed form: octave weighting on, period fixed. The period
  wraps are known from constraint building, so the loss is a plain
  quadratic in the generator.
- Golden-section search: plain target lists. The loss wraps around the
  period, so it is minimized numerically inside a bracket around the fifth.
"""

import math
from typing import Callable, Optional, Sequence

import numpy as np

from . import config
from .cents import clamp, signed_wrap_diff, wrap_to_cycle
from .constraints import estimate_period_steps
from .models import Constraint, GeneratorSolution, SolverStrategy

GOLDEN_RATIO = (1 + math.sqrt(5)) / 2


def select_strategy(octa_enabled: bool, octave_stiffness: float) -> SolverStrategy:
    """Pick the solving strategy for a configuration."""
    if not octa_enabled:
        return SolverStrategy.GOLDEN_SECTION
    if octave_stiffness < 1.0:
        return SolverStrategy.RANK2_WLS
    return SolverStrategy.RANK1_CLOSED_FORM


# =============================================================================
# Golden-Section Search
# =============================================================================

def golden_section_search(
    f: Callable[[float], float],
    lo: float,
    hi: float,
    iterations: int = config.GOLDEN_SECTION_ITERATIONS,
) -> float:
    """Minimize a unimodal function on [lo, hi].

    Each iteration shrinks the bracket by 1/phi while reusing one of the
    two interior evaluations.

    Args:
        f: Function to minimize
        lo: Lower end of the bracket
        hi: Upper end of the bracket
        iterations: Fixed number of shrink steps

    Returns:
        Midpoint of the final bracket (always inside [lo, hi])
    """
    a, b = lo, hi
    c = b - (b - a) / GOLDEN_RATIO
    d = a + (b - a) / GOLDEN_RATIO
    fc, fd = f(c), f(d)
    for _ in range(iterations):
        if fc < fd:
            b, d, fd = d, c, fc
            c = b - (b - a) / GOLDEN_RATIO
            fc = f(c)
        else:
            a, c, fc = c, d, fd
            d = a + (b - a) / GOLDEN_RATIO
            fd = f(d)
    return (a + b) / 2


def wrapped_loss(
    generator: float,
    constraints: Sequence[Constraint],
    period: float,
) -> float:
    """Weighted squared wrapped error of every constraint for a generator."""
    total = 0.0
    for c in constraints:
        actual = wrap_to_cycle(generator * c.generator_steps, period)
        err = signed_wrap_diff(actual, c.ideal_cents, period)
        total += c.weight * err * err
    return total


def solve_golden_section(
    constraints: Sequence[Constraint],
    period: float,
    iterations: int = config.GOLDEN_SECTION_ITERATIONS,
) -> GeneratorSolution:
    """Search [0.575, 0.595] * period for the loss-minimizing generator."""
    lo = period * config.SEARCH_LO_FRACTION
    hi = period * config.SEARCH_HI_FRACTION
    generator = golden_section_search(
        lambda g: wrapped_loss(g, constraints, period), lo, hi, iterations
    )
    return GeneratorSolution(
        generator_cents=generator,
        period_cents=period,
        strategy=SolverStrategy.GOLDEN_SECTION,
    )


# =============================================================================
# Rank-1 Closed Form
# =============================================================================

def solve_rank1_closed_form(
    constraints: Sequence[Constraint],
    period: float,
    reference_generator: float = config.REF_GENERATOR_CENTS,
) -> GeneratorSolution:
    """Weighted least squares for the generator with the period fixed.

    Minimizes sum(w * (s*g - (ideal + comp*period))^2), whose minimizer is
    g = sum(w*s*adjusted) / sum(w*s^2).

    The generator stays at the wrapped reference when the denominator is
    effectively zero (e.g. all weights are 0).
    """
    weights = np.array([c.weight for c in constraints], dtype=float)
    steps = np.array([c.generator_steps for c in constraints], dtype=float)
    adjusted = np.array(
        [c.ideal_cents + (c.period_comp or 0) * period for c in constraints],
        dtype=float,
    )

    generator = wrap_to_cycle(reference_generator, period)
    denominator = float(np.sum(weights * steps * steps))
    if abs(denominator) > config.MIN_DENOMINATOR:
        numerator = float(np.sum(weights * steps * adjusted))
        generator = wrap_to_cycle(numerator / denominator, period)

    return GeneratorSolution(
        generator_cents=generator,
        period_cents=period,
        strategy=SolverStrategy.RANK1_CLOSED_FORM,
    )


# =============================================================================
# Rank-2 Weighted Least Squares
# =============================================================================

def octave_anchor_weight(octave_stiffness: float) -> float:
    """Weight of the row pinning the period to its nominal value."""
    stiffness = clamp(octave_stiffness, 0.0, 1.0)
    return config.ANCHOR_WEIGHT_MIN + stiffness * (config.ANCHOR_WEIGHT_MAX - config.ANCHOR_WEIGHT_MIN)


def build_rank2_system(
    constraints: Sequence[Constraint],
    period: float,
    octave_stiffness: float,
    reference_generator: float = config.REF_GENERATOR_CENTS,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Design matrix, weights and targets, octave anchor row last.

    Each constraint contributes [steps, period_steps] ≈ ideal_cents; the
    anchor contributes [0, 1] ≈ period.
    """
    rows = []
    weights = []
    targets = []
    for c in constraints:
        if c.period_comp is not None:
            period_steps = -c.period_comp
        else:
            period_steps = estimate_period_steps(
                c.ideal_cents, c.generator_steps, period, reference_generator
            )
        rows.append([c.generator_steps, period_steps])
        weights.append(c.weight)
        targets.append(c.ideal_cents)

    rows.append([0, 1])
    weights.append(octave_anchor_weight(octave_stiffness))
    targets.append(period)

    return (
        np.array(rows, dtype=float),
        np.array(weights, dtype=float),
        np.array(targets, dtype=float),
    )


def solve_normal_equations(
    design: np.ndarray,
    weights: np.ndarray,
    targets: np.ndarray,
) -> Optional[tuple[np.ndarray, float]]:
    """Solve (X^T W X) beta = X^T W y.

    Returns:
        (beta, condition number), or None if the system is singular or
        too badly conditioned to trust
    """
    xtw = design.T * weights
    normal = xtw @ design
    rhs = xtw @ targets

    condition = float(np.linalg.cond(normal))
    if not math.isfinite(condition) or condition > config.MAX_CONDITION_NUMBER:
        return None
    try:
        beta = np.linalg.solve(normal, rhs)
    except np.linalg.LinAlgError:
        return None
    return beta, condition


def fit_generator_with_fixed_period(
    design: np.ndarray,
    weights: np.ndarray,
    targets: np.ndarray,
    period: float,
    reference_generator: float = config.REF_GENERATOR_CENTS,
) -> float:
    """Best generator once the period has been pinned to a value."""
    steps = design[:, 0]
    adjusted = targets - design[:, 1] * period
    denominator = float(np.sum(weights * steps * steps))
    if abs(denominator) < config.MIN_DENOMINATOR:
        return reference_generator
    return float(np.sum(weights * steps * adjusted)) / denominator


def solve_rank2_wls(
    constraints: Sequence[Constraint],
    period: float,
    octave_stiffness: float,
    reference_generator: float = config.REF_GENERATOR_CENTS,
) -> GeneratorSolution:
    """Fit generator and period jointly.

    The octave anchor row keeps the system well posed: its weight grows
    with stiffness, so a stiff octave barely moves while a loose one
    follows the targets. A singular system falls back to the reference
    generator at the nominal period; a period further than
    PERIOD_CLAMP_CENTS from nominal is clamped and the generator re-fit.

    Args:
        constraints: Normalized constraints
        period: Nominal period in cents
        octave_stiffness: 0.0 (free) to 1.0 (rigid)
        reference_generator: Fallback generator

    Returns:
        GeneratorSolution including the period stretch and warning flag
    """
    design, weights, targets = build_rank2_system(
        constraints, period, octave_stiffness, reference_generator
    )
    solved = solve_normal_equations(design, weights, targets)

    if solved is None:
        return GeneratorSolution(
            generator_cents=reference_generator,
            period_cents=period,
            strategy=SolverStrategy.RANK2_WLS,
            period_stretch_cents=0.0,
            period_stretch_warning=False,
            condition_number=float('inf'),
            singular=True,
        )

    beta, condition = solved
    generator, optimized_period = float(beta[0]), float(beta[1])

    was_clamped = False
    lo = period - config.PERIOD_CLAMP_CENTS
    hi = period + config.PERIOD_CLAMP_CENTS
    if not lo <= optimized_period <= hi:
        was_clamped = True
        optimized_period = clamp(optimized_period, lo, hi)
        generator = fit_generator_with_fixed_period(
            design, weights, targets, optimized_period, reference_generator
        )

    stretch = optimized_period - period
    return GeneratorSolution(
        generator_cents=generator,
        period_cents=optimized_period,
        strategy=SolverStrategy.RANK2_WLS,
        period_stretch_cents=stretch,
        period_stretch_warning=abs(stretch) > config.PERIOD_STRETCH_WARNING_CENTS,
        condition_number=condition,
        was_clamped=was_clamped,
    )


# =============================================================================
# Dispatch
# =============================================================================

def solve_generator(
    constraints: Sequence[Constraint],
    period: float,
    octave_stiffness: float,
    strategy: SolverStrategy,
    reference_generator: float = config.REF_GENERATOR_CENTS,
) -> GeneratorSolution:
    """Run the given strategy on a constraint set."""
    if strategy is SolverStrategy.RANK2_WLS:
        return solve_rank2_wls(constraints, period, octave_stiffness, reference_generator)
    if strategy is SolverStrategy.RANK1_CLOSED_FORM:
        return solve_rank1_closed_form(constraints, period, reference_generator)
    return solve_golden_section(constraints, period)

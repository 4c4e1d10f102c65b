"""Solver pipeline.

configuration → constraints → generator/period → degree map → errors

solve() is a pure function of its SolverInput: every call builds its own
working state, so it can be re-run on every configuration change.
"""

import math
from dataclasses import dataclass
from typing import Optional, Sequence

from . import config
from .cents import degree_name, wrap_to_cycle
from .constraints import build_constraints
from .exporters import build_csv, build_kbm, build_scl, scl_header
from .generator_solver import select_strategy, solve_generator
from .interval_errors import (
    BeatRateRow,
    analyze_intervals,
    compute_beat_table,
    summarize_errors,
)
from .models import (
    ModeAResult,
    NoteResult,
    SolveError,
    SolverInput,
    SolverStrategy,
)
from .scale_mapper import map_scale


def _require_finite(name: str, values: Sequence[float]) -> None:
    for value in values:
        if not math.isfinite(value):
            raise SolveError(f"Solve produced a non-finite {name}: {value}")


def solve(
    solver_input: SolverInput,
    reference_generator: float = config.REF_GENERATOR_CENTS,
) -> ModeAResult:
    """Solve for the generator and period and map them onto the scale.

    Args:
        solver_input: Configuration for this solve
        reference_generator: Chain reference (pure fifth by default)

    Returns:
        ModeAResult with ascending cents starting at 0, the generator,
        and one interval-error row per (constraint, degree)

    Raises:
        SolveError: If any weight, generator, period or pitch is not finite
    """
    constraints = build_constraints(solver_input, reference_generator)
    _require_finite("weight", [c.weight for c in constraints])
    strategy = select_strategy(solver_input.octa_enabled, solver_input.octave_stiffness)
    solution = solve_generator(
        constraints,
        solver_input.cycle_cents,
        solver_input.octave_stiffness,
        strategy,
        reference_generator,
    )
    _require_finite("generator", [solution.generator_cents])
    _require_finite("period", [solution.period_cents])
    if solution.period_cents <= 0:
        raise SolveError(f"Solve produced a non-positive period: {solution.period_cents}")

    period = solution.period_cents
    scale = map_scale(
        solution.generator_cents,
        period,
        solver_input.scale_size,
        solver_input.key_specificity,
        solver_input.wolf_placement,
        solver_input.wolf_edge_index,
    )
    _require_finite("pitch", scale.notes_cents)
    _require_finite("chain position", scale.cents_absolute)

    intervals = analyze_intervals(
        constraints, scale.notes_cents, period, solver_input.key_specificity.tonic
    )

    rank2 = strategy is SolverStrategy.RANK2_WLS
    return ModeAResult(
        notes_cents=scale.notes_cents,
        generator_cents=wrap_to_cycle(solution.generator_cents, period),
        intervals=intervals,
        strategy=strategy,
        optimized_period_cents=period if rank2 else None,
        period_stretch_cents=solution.period_stretch_cents,
        period_stretch_warning=solution.period_stretch_warning,
        cents_absolute=scale.cents_absolute if rank2 else None,
    )


def notes_to_frequencies(notes_cents: Sequence[float], base_frequency_hz: float) -> list[float]:
    """Absolute frequency of each degree above a base frequency."""
    return [base_frequency_hz * 2.0 ** (cents / 1200.0) for cents in notes_cents]


def build_notes(
    solver_input: SolverInput,
    notes_cents: Sequence[float],
    cents_absolute: Optional[Sequence[float]] = None,
) -> list[NoteResult]:
    """Named, frequency-annotated notes for a degree -> cents table."""
    n = len(notes_cents)
    frequencies = notes_to_frequencies(notes_cents, solver_input.base_frequency_hz)
    return [
        NoteResult(
            degree=degree,
            name=degree_name(degree, n),
            cents_from_root=cents,
            frequency_hz=frequencies[degree],
            cents_absolute=cents_absolute[degree] if cents_absolute is not None else None,
        )
        for degree, cents in enumerate(notes_cents)
    ]


@dataclass
class SolverOutput:
    """A solve plus everything derived from it for display and export."""
    input: SolverInput
    result: ModeAResult
    notes: list[NoteResult]
    rms_error_cents: float
    max_abs_error_cents: float
    beat_table: list[BeatRateRow]
    scl_text: str
    kbm_text: str
    csv_text: str

    @property
    def period_cents(self) -> float:
        if self.result.optimized_period_cents is not None:
            return self.result.optimized_period_cents
        return self.input.cycle_cents


def run_solver(solver_input: SolverInput) -> SolverOutput:
    """Solve and derive notes, error statistics, beat rates and exports."""
    result = solve(solver_input)
    period = result.optimized_period_cents or solver_input.cycle_cents

    notes = build_notes(solver_input, result.notes_cents, result.cents_absolute)
    frequencies = [note.frequency_hz for note in notes]
    summary = summarize_errors(result.intervals)
    beat_table = compute_beat_table(result.intervals, frequencies, period)

    header = scl_header(
        solver_input, result.generator_cents, period, result.period_stretch_cents
    )
    return SolverOutput(
        input=solver_input,
        result=result,
        notes=notes,
        rms_error_cents=summary.rms_error_cents,
        max_abs_error_cents=summary.max_abs_error_cents,
        beat_table=beat_table,
        scl_text=build_scl(result.notes_cents, period, header),
        kbm_text=build_kbm(solver_input),
        csv_text=build_csv(notes, beat_table),
    )

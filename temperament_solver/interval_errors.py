"""Interval-error analysis of a solved scale.

For every constraint the realized interval is measured from every degree
of the scale, which is what the radar/heatmap views and the beat table
are drawn from.
"""

import math
from dataclasses import dataclass
from typing import Sequence

from . import config
from .cents import nearest_step_for_ratio, signed_wrap_diff, wrap_to_cycle
from .models import Constraint, IntervalError, IntervalKind, RatioSpec


def classify_interval(cents: float) -> IntervalKind:
    """Coarse family of an interval; anything unrecognised counts as M3."""
    if 650 < cents < 750:
        return IntervalKind.P5
    if 350 < cents < 420:
        return IntervalKind.M3
    if 280 < cents < 340:
        return IntervalKind.m3
    return IntervalKind.M3


def analyze_intervals(
    constraints: Sequence[Constraint],
    notes_cents: Sequence[float],
    period: float,
    tonic: int = 0,
) -> list[IntervalError]:
    """Measure every constraint at every transposition of the scale.

    Args:
        constraints: Constraints the scale was solved against
        notes_cents: Ascending degree -> cents table
        period: Period the table repeats at
        tonic: Degree tagged as the key tonic

    Returns:
        One IntervalError per (constraint, degree) pair, constraint-major
    """
    n = len(notes_cents)
    tonic = tonic % n
    errors = []
    for c in constraints:
        step = nearest_step_for_ratio(c.ideal_cents, n, period)
        kind = classify_interval(c.ideal_cents)
        target = RatioSpec(c.n, c.d, c.label)
        for i in range(n):
            j = (i + step) % n
            actual = wrap_to_cycle(notes_cents[j] - notes_cents[i], period)
            errors.append(IntervalError(
                i=i,
                j=j,
                step=step,
                target=target,
                target_cents=c.ideal_cents,
                actual_cents=actual,
                error_cents=signed_wrap_diff(actual, c.ideal_cents, period),
                weight=c.weight,
                kind=kind,
                is_skeleton=c.weight > config.SKELETON_WEIGHT_THRESHOLD,
                # Tags the row at degree index `tonic`. notes_cents is sorted,
                # so the tonic pitch itself is row 0 whatever the key.
                key_tonic=tonic if i == tonic else None,
                anchor_id=c.anchor_id,
            ))
    return errors


@dataclass
class ErrorSummary:
    """Aggregate error of an interval report."""
    rms_error_cents: float  # Weighted by constraint weight
    max_abs_error_cents: float


def summarize_errors(intervals: Sequence[IntervalError]) -> ErrorSummary:
    """Weighted RMS and worst absolute error over an interval report."""
    sum_sq = 0.0
    sum_w = 0.0
    max_abs = 0.0
    for it in intervals:
        sum_sq += it.weight * it.error_cents * it.error_cents
        sum_w += it.weight
        max_abs = max(max_abs, abs(it.error_cents))
    return ErrorSummary(
        rms_error_cents=math.sqrt(sum_sq / max(1e-9, sum_w)),
        max_abs_error_cents=max_abs,
    )


@dataclass
class BeatRateRow:
    """How fast one tempered interval beats at the given frequencies."""
    low_degree: int
    high_degree: int
    ratio: RatioSpec
    beat_hz: float
    low_hz: float
    high_hz: float


def compute_beat_table(
    intervals: Sequence[IntervalError],
    frequencies: Sequence[float],
    period: float = config.DEFAULT_CYCLE_CENTS,
    max_rows: int = config.BEAT_TABLE_ROWS,
) -> list[BeatRateRow]:
    """Beat rates |n*f_low - d*f_high| of the heaviest interval rows.

    Intervals that wrap past the last degree are measured against the
    upper note one period higher.

    Args:
        intervals: Interval report of a solve
        frequencies: Degree -> Hz for the same scale
        period: Period of the scale in cents
        max_rows: Rows kept, heaviest weight first

    Returns:
        List of BeatRateRow
    """
    heaviest = sorted(intervals, key=lambda it: it.weight, reverse=True)[:max_rows]
    rows = []
    for it in heaviest:
        low_hz = frequencies[it.i]
        high_hz = frequencies[it.j]
        if it.j <= it.i and it.step > 0:
            high_hz *= 2.0 ** (period / 1200.0)
        rows.append(BeatRateRow(
            low_degree=it.i,
            high_degree=it.j,
            ratio=it.target,
            beat_hz=abs(it.target.n * low_hz - it.target.d * high_hz),
            low_hz=low_hz,
            high_hz=high_hz,
        ))
    return rows

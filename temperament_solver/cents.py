"""Cyclic cents arithmetic.

Every interval in the solver lives on a circle of one period (normally
the 1200-cent octave). These helpers convert ratios to cents, fold values
back onto the circle, and measure signed distances around it.
"""

import math
from fractions import Fraction

from . import config

NOTE_NAMES_12 = ['C', 'C#', 'D', 'D#', 'E', 'F', 'F#', 'G', 'G#', 'A', 'A#', 'B']


def clamp(value: float, lo: float, hi: float) -> float:
    """Clamp value into [lo, hi]."""
    return min(hi, max(lo, value))


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with .5 rounding towards +infinity."""
    return math.floor(value + 0.5)


def ratio_to_cents(n: int, d: int) -> float:
    """Convert the frequency ratio n/d to cents.

    Args:
        n: Numerator (> 0)
        d: Denominator (> 0)

    Returns:
        1200 * log2(n/d)

    Examples:
        >>> round(ratio_to_cents(3, 2), 3)
        701.955
    """
    if n <= 0 or d <= 0:
        raise ValueError(f"Ratio terms must be positive, got {n}/{d}")
    return 1200.0 * math.log2(n / d)


def wrap_to_cycle(cents: float, period: float) -> float:
    """Reduce cents into [0, period) using floored modulo.

    Args:
        cents: Any real cents value
        period: Period in cents (> 0)

    Returns:
        Non-negative remainder below the period
    """
    wrapped = cents % period
    # -1e-17 % 1200 rounds up to exactly 1200.0
    if wrapped >= period:
        wrapped -= period
    return wrapped


def signed_wrap_diff(a: float, b: float, period: float) -> float:
    """Shortest signed distance from b to a around the cycle.

    Args:
        a: Actual cents
        b: Reference cents
        period: Period in cents

    Returns:
        Distance in (-period/2, period/2]
    """
    diff = wrap_to_cycle(a - b, period)
    if diff > period / 2:
        diff -= period
    return diff


def nearest_step_for_ratio(cents: float, scale_size: int, period: float) -> int:
    """Convert a continuous interval into a whole number of scale steps.

    Args:
        cents: Interval size in cents
        scale_size: Number of degrees in the scale (N)
        period: Period in cents

    Returns:
        Nearest step count, clamped to [1, N-1] (0 for a one-note scale)
    """
    if scale_size <= 1:
        return 0
    step_cents = period / scale_size
    step = round_half_up(cents / step_cents)
    return int(clamp(step, 1, scale_size - 1))


def degree_name(degree: int, scale_size: int) -> str:
    """Display name for a scale degree (note names for 12-note scales)."""
    if scale_size == 12:
        return NOTE_NAMES_12[degree % 12]
    return f"deg{degree}"


def parse_ratio(text: str) -> tuple[int, int]:
    """Parse an "n/d" string into a reduced (n, d) pair.

    Args:
        text: Ratio such as "3/2" or " 10 / 8 "

    Returns:
        Tuple of (numerator, denominator) in lowest terms

    Raises:
        ValueError: If the text is malformed or a term is not positive
    """
    parts = text.strip().split('/')
    if len(parts) != 2:
        raise ValueError(f"Ratio must look like 'n/d', got {text!r}")
    try:
        n, d = int(parts[0]), int(parts[1])
    except ValueError:
        raise ValueError(f"Ratio terms must be integers, got {text!r}") from None
    if n <= 0 or d <= 0:
        raise ValueError(f"Ratio terms must be positive, got {text!r}")
    g = math.gcd(n, d)
    return n // g, d // g


def cents_to_ratio_approx(
    cents: float,
    max_denominator: int = config.RATIO_APPROX_MAX_DENOMINATOR,
) -> str:
    """Closest simple fraction to a cents value, formatted as "n/d"."""
    ratio = Fraction(2.0 ** (cents / 1200.0)).limit_denominator(max_denominator)
    return f"{ratio.numerator}/{ratio.denominator}"

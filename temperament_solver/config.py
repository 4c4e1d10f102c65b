"""Configuration constants for the Adaptive Temperament Solver."""

import math

# =============================================================================
# Reference Intervals
# =============================================================================

# Nominal period (a pure octave) in cents
DEFAULT_CYCLE_CENTS = 1200.0

# Pure fifth (3/2) in cents, used to estimate generator step counts and
# as the fallback generator whenever a solve cannot improve on it
REF_GENERATOR_CENTS = 1200.0 * math.log2(3 / 2)

# Step counts searched when estimating how many generators reach a target
GENERATOR_STEP_RANGE = 31

# =============================================================================
# Constraint Building
# =============================================================================

# Matrix weights at or below this value are treated as "off"
TARGET_WEIGHT_THRESHOLD = 0.001

# Constraints heavier than this are flagged as skeleton intervals
SKELETON_WEIGHT_THRESHOLD = 0.1

# =============================================================================
# Golden-Section Search
# =============================================================================

# Search bracket as fractions of the period (a very flat to a very sharp fifth)
SEARCH_LO_FRACTION = 0.575
SEARCH_HI_FRACTION = 0.595

GOLDEN_SECTION_ITERATIONS = 80

# =============================================================================
# Closed-Form / Rank-2 Least Squares
# =============================================================================

# Denominators below this leave the generator at its default
MIN_DENOMINATOR = 1e-9

# Octave anchor row weight: MIN at stiffness 0.0, MAX at stiffness 1.0
ANCHOR_WEIGHT_MIN = 0.1
ANCHOR_WEIGHT_MAX = 100.0

# Normal equations with a worse condition number are treated as singular
MAX_CONDITION_NUMBER = 1e10

# Solved periods are clamped to nominal ± this many cents
PERIOD_CLAMP_CENTS = 50.0

# Stretches beyond this are surfaced as a warning
PERIOD_STRETCH_WARNING_CENTS = 10.0

# =============================================================================
# Notes & Export
# =============================================================================

# Middle C
DEFAULT_BASE_MIDI_NOTE = 60
DEFAULT_BASE_FREQUENCY_HZ = 261.6256

# Beat table rows kept (heaviest intervals first)
BEAT_TABLE_ROWS = 48

# Largest denominator for rational approximations in CSV output
RATIO_APPROX_MAX_DENOMINATOR = 1024

SCALE_TITLE = "Adaptive Temperament"

# =============================================================================
# OSC Configuration (Visualizer)
# =============================================================================

OSC_HOST = "127.0.0.1"
BROADCAST_PORT = 9001

OSC_PREFIX = "/solver"

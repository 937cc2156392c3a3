"""Timing and tolerance constants for spring simulation and drivers.

All timing values are in seconds unless otherwise noted.
"""

# =============================================================================
# Settle Detection
# =============================================================================

DEFAULT_RELATIVE_TOLERANCE = 0.001
"""Settle tolerance as a fraction of the |end - start| value range."""

DEFAULT_ABSOLUTE_TOLERANCE = 1e-3
"""Settle tolerance used when start and end are equal."""

CRITICAL_DAMPING_EPSILON = 1e-6
"""Damping ratios within this band of 1.0 use the critically damped solution."""

MIN_OVERDAMPED_DENOMINATOR = 1e-3
"""Floor for (1 + bounce) so bounce=-1 yields a large but finite damping ratio."""

# =============================================================================
# Stepping Safety Cutoff
# =============================================================================

MAX_SIMULATION_DURATION_S = 30.0
"""Stepping stops once simulated time passes this bound."""

MAX_SIMULATION_STEPS = 10_000
"""Stepping stops after this many samples regardless of time."""

SETTLE_SEARCH_ITERATIONS = 60
"""Bisection iterations used to locate the settle time."""

# =============================================================================
# Drivers
# =============================================================================

DEFAULT_FRAME_RATE = 60
"""Sample rate for fixed-rate stepping and the Qt frame driver (Hz)."""

MIN_FRAME_RATE = 10
MAX_FRAME_RATE = 240

MAX_FRAME_DELTA_S = 0.5
"""Frame deltas above this are clamped so a stalled host does not jump."""

DEFAULT_VELOCITY_WINDOW_S = 0.1
"""Sample window used by the velocity tracker for its line fit."""

DEFAULT_VELOCITY_MAX_SAMPLES = 20

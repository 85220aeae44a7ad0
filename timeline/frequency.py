"""
Sample frequency detection

Loggers are configured for one of a fixed set of rates but the recorded
timestamps jitter around them, so a raw estimate is snapped to the nearest
nominal rate.
"""

import math

import numpy as np

# Nominal recording frequencies in Hz, ascending
FREQUENCIES = (1, 2, 5, 10, 20, 50, 100, 200, 500, 1000)

# Timestamps summing to less than this are treated as unset (all zero)
MIN_TIMESTAMP_SUM = 1e-9


def snap_frequency(raw_frequency):
    """Nearest nominal frequency; on a tie the lower one wins."""
    return float(min(FREQUENCIES, key=lambda frequency: abs(raw_frequency - frequency)))


def estimate_frequency(timestamps):
    """Detect the nominal sample frequency from a timestamp array.

    The estimate uses the span of the first two intervals, which damps the
    jitter of a single sample. Returns the frequency in Hz, or 0.0 when no
    rate can be derived (fewer than three timestamps, all-zero or
    non-increasing timestamps).
    """
    if len(timestamps) < 3:
        return 0.0
    first, second, third = (float(ts) for ts in timestamps[:3])
    if first + second + third < MIN_TIMESTAMP_SUM:
        return 0.0

    span = third - first
    if not span > 0:
        return 0.0

    # two intervals: 1000 ms / (span in ms / 2)
    estimate = 1000.0 / (span * 500.0)
    if not np.isfinite(estimate):
        return 0.0
    raw_frequency = math.floor(estimate + 0.5)

    return snap_frequency(raw_frequency)

"""
Fixed rate resampling

The logger's measurement side writes into a buffer at its own cadence while
the recording side samples that buffer at the configured rate. A grid slot
without a matching reading therefore repeats the last written value
(zero-order hold) instead of interpolating or zero-filling.
"""

import logging
import math

import numpy as np

from channel import Channel, FixedRateChannel
from lap import Lap

logger = logging.getLogger(__name__)


def resample(raw: Channel, start: float, duration: float) -> FixedRateChannel:
    """Resample a raw channel onto a uniform grid at its nominal frequency.

    Args:
        raw: channel with irregular timestamps
        start: time of the first grid slot in seconds
        duration: length of the grid in seconds

    Returns:
        FixedRateChannel with ceil(duration * frequency) float32 samples, or
        no samples at all if the channel has no detectable frequency
        or the duration is not finite.
    """
    frequency = raw.frequency
    if frequency == 0:
        logger.debug("%s: no detectable frequency, empty result", raw.name)
        return FixedRateChannel(raw.name, raw.unit, 0.0, np.zeros(0, dtype=np.float32), start)

    advance = 1.0 / frequency
    threshold = 0.5 * advance
    if math.isfinite(duration):
        count = max(0, math.ceil(duration * frequency))
    else:
        count = 0

    timestamps = raw.data.timestamps
    values = raw.data.values
    n_raw = len(raw)

    samples = np.zeros(count, dtype=np.float32)
    cursor = 0
    current = 0.0
    for i in range(count):
        t = start + i * advance

        # readings from before the grid are skipped, they don't belong to any slot
        while cursor < n_raw and timestamps[cursor] < t - threshold:
            cursor += 1

        while cursor < n_raw and abs(timestamps[cursor] - t) <= threshold:
            current = values[cursor]
            cursor += 1

        samples[i] = current

    logger.debug("%s: %i raw samples -> %i samples at %i Hz", raw.name, n_raw, count, frequency)
    return FixedRateChannel(raw.name, raw.unit, frequency, samples, start)


def resample_lap(lap):
    """Resample every channel of a lap over the lap's time window."""
    channels = [resample(channel, lap.info.start, lap.info.duration) for channel in lap.channels]
    return Lap(lap.info, channels)

"""
Channel synchronization

Re-expresses one channel on the timestamps of another (as-of join). Two
channels at the same configured rate rarely share exact timestamps, so a
subject reading within half a reference period counts as a match; only when
both neighbours are further away is the value linearly interpolated.
"""

import logging

import numpy as np

from channel import Channel, ChannelData
from errors import InsufficientData, InvalidInput, NonOverlappingRanges, SyncError
from lap import Lap

logger = logging.getLogger(__name__)

MIN_SAMPLES = 3


def synchronize(subject: Channel, reference: Channel) -> Channel:
    """Resample `subject` onto the timestamps of `reference`.

    Both timestamp series must be strictly increasing.

    Returns:
        Channel with the name and unit of `subject` and exactly the
        timestamps of `reference`.

    Raises:
        InsufficientData: if either channel has fewer than 3 samples.
        NonOverlappingRanges: if the time ranges of the channels are disjoint.
    """
    if len(subject) < MIN_SAMPLES or len(reference) < MIN_SAMPLES:
        raise InsufficientData(
            f"need at least {MIN_SAMPLES} samples, got {len(subject)} and {len(reference)}",
            channel=subject.name)

    sub_ts = subject.data.timestamps
    sub_vals = subject.data.values
    ref_ts = reference.data.timestamps

    if sub_ts[0] > ref_ts[-1] or sub_ts[-1] < ref_ts[0]:
        raise NonOverlappingRanges(
            f"[{sub_ts[0]}, {sub_ts[-1]}] does not overlap [{ref_ts[0]}, {ref_ts[-1]}] "
            f"of {reference.name}",
            channel=subject.name)

    frequency = reference.frequency
    threshold = 0.5 / frequency if frequency > 0 else 0.0

    n_sub = len(sub_ts)
    result = np.empty(len(ref_ts), dtype=np.float64)
    idx = 0
    for i, ref in enumerate(ref_ts):
        # both series are ascending, so the cursor never moves backwards
        pos = idx
        while pos < n_sub and sub_ts[pos] <= ref:
            pos += 1

        if pos == n_sub:
            result[i] = sub_vals[-1]
        elif pos == 0:
            result[i] = sub_vals[0]
        else:
            idx = pos - 1
            if abs(ref - sub_ts[idx]) <= threshold:
                result[i] = sub_vals[idx]
            elif abs(ref - sub_ts[idx + 1]) <= threshold:
                result[i] = sub_vals[idx + 1]
            else:
                slope = (sub_vals[idx + 1] - sub_vals[idx]) / (sub_ts[idx + 1] - sub_ts[idx])
                result[i] = sub_vals[idx] + slope * (ref - sub_ts[idx])

    return Channel(subject.name, subject.unit, ChannelData(ref_ts.copy(), result))


def synchronize_lap(lap, reference_name: str):
    """Synchronize every channel of a lap onto one reference channel.

    Channels which can't be synchronized are left out and logged.
    """
    reference = lap.channel(reference_name)
    if reference is None:
        raise InvalidInput(f"channel {reference_name!r} not found", lap=lap.info.index)

    channels = []
    for channel in lap.channels:
        try:
            channels.append(synchronize(channel, reference))
        except SyncError as e:
            logger.warning("Skipping %s in lap %i: %s", channel.name, lap.info.index, e)
    return Lap(lap.info, channels)

"""
CSV export of synchronized laps
"""

import csv
import logging
from pathlib import Path
from typing import Optional

import numpy as np

from errors import InsufficientData, InvalidInput
from lap import Lap
from timeline.synchronize import synchronize_lap

logger = logging.getLogger(__name__)


def fastest_channel(lap: Lap) -> Optional[str]:
    """Name of the channel with the highest frequency (first one on a tie)"""
    best = None
    for channel in lap.channels:
        if best is None or channel.frequency > best.frequency:
            best = channel
    return best.name if best is not None else None


def _fmt(value, decimals=5):
    """Format a float: N decimal places, strip trailing zeros, keep min 1 dp."""
    if np.isnan(value):
        return ''
    s = f'{value:.{decimals}f}'
    s = s.rstrip('0')
    if s.endswith('.'):
        s += '0'
    return s


def export_lap_to_csv(lap: Lap, output_file, reference: Optional[str] = None) -> int:
    """Write all channels of a lap on one common timeline.

    Every channel is synchronized onto the timestamps of `reference` (default:
    the fastest channel of the lap). Returns the number of rows written.
    """
    reference = reference or fastest_channel(lap)
    if reference is None:
        raise InvalidInput("lap contains no channels", lap=lap.info.index)

    synced = synchronize_lap(lap, reference)
    reference_channel = synced.channel(reference)
    if reference_channel is None:
        raise InsufficientData("reference channel can't be used as timeline",
                               channel=reference, lap=lap.info.index)
    timestamps = reference_channel.data.timestamps

    output_file = Path(output_file)
    with open(output_file, 'w', newline='') as f:
        writer = csv.writer(f)
        writer.writerow(['time [s]'] + [f'{c.name} [{c.unit}]' for c in synced.channels])
        for i, t in enumerate(timestamps):
            writer.writerow([_fmt(t, 3)] + [_fmt(c.data.values[i]) for c in synced.channels])

    logger.info("Wrote %i rows x %i channels to %s", len(timestamps), len(synced), output_file)
    return len(timestamps)

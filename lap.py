"""
Laps and runs

A run is one recording session; a lap is the segment of the run between two
crossings of the finishing line, holding the data of every channel within it.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from channel import FixedRateChannel

logger = logging.getLogger(__name__)

SPEED_CHANNEL = "GPS Speed"


@dataclass(frozen=True)
class LapInfo:
    """Position of a lap within the run"""

    index: int
    start: float  # seconds since start of the run
    duration: float  # seconds


class Lap:
    """Hold all channels of a lap"""

    def __init__(self, info: LapInfo, channels):
        self.info = info
        self.channels = list(channels)

    @property
    def index(self) -> int:
        return self.info.index

    def channel_names(self) -> List[str]:
        return [channel.name for channel in self.channels]

    def channel(self, name: str):
        for channel in self.channels:
            if channel.name == name:
                return channel
        return None

    def max_frequency(self) -> float:
        """Highest frequency of all channels in this lap, 0 if it has none"""
        return max((channel.frequency for channel in self.channels), default=0.0)

    def distance(self) -> float:
        """Distance covered in the lap in metres, from the GPS speed channel.

        Integrates speed over time with the trapezoidal rule at roughly 10 Hz,
        i.e. x_i = x_(i - step) + 0.5 * (v_i + v_(i - step)) * dt.
        """
        speed = self.channel(SPEED_CHANNEL)
        if speed is None:
            return 0.0
        if isinstance(speed, FixedRateChannel):
            speed = speed.to_channel()

        step = max(1, int(speed.frequency) // 10)
        t = speed.data.timestamps
        v = speed.data.values

        dist = 0.0
        for i in range(step, len(speed), step):
            dist += 0.5 * (v[i] + v[i - step]) * (t[i] - t[i - step])
        return round(dist, 3)

    def __len__(self):
        return len(self.channels)

    def __eq__(self, other):
        if not isinstance(other, Lap):
            return NotImplemented
        return self.info == other.info and self.channels == other.channels

    def __str__(self):
        return 'lap %i: start %.3f s, %.3f s, %i channels' % (
            self.info.index, self.info.start, self.info.duration, len(self.channels))


class Run:
    """Holds all information and data of one recorded session"""

    def __init__(self, championship: str, track: str, venue_type: str, vehicle: str,
                 racer: str, recorded: Optional[datetime], channel_names: List[str],
                 laps: List[Lap]):
        self.championship = championship
        self.track = track
        self.venue_type = venue_type
        self.vehicle = vehicle
        self.racer = racer
        self.recorded = recorded
        self.channel_names = channel_names
        self.laps = laps

    @classmethod
    def load(cls, xdrk_file):
        """Read metadata and every lap of an open XdrkFile"""
        logger.info("Loading run from %s", xdrk_file.path)
        return cls(championship=xdrk_file.championship_name(),
                   track=xdrk_file.track_name(),
                   venue_type=xdrk_file.venue_type_name(),
                   vehicle=xdrk_file.vehicle_name(),
                   racer=xdrk_file.racer_name(),
                   recorded=xdrk_file.date_time(),
                   channel_names=xdrk_file.channel_names(),
                   laps=xdrk_file.laps())

    def number_of_channels(self) -> int:
        return len(self.channel_names)

    def number_of_laps(self) -> int:
        return len(self.laps)

    def lap(self, index: int) -> Optional[Lap]:
        for lap in self.laps:
            if lap.info.index == index:
                return lap
        return None

    def max_frequency(self) -> float:
        return max((lap.max_frequency() for lap in self.laps), default=0.0)

    def __str__(self):
        return 'championship: %s\n' \
               'track:        %s\n' \
               'venue type:   %s\n' \
               'vehicle:      %s\n' \
               'racer:        %s\n' \
               'recorded:     %s\n' \
               'channels:     %i\n' \
               'laps:         %i' % (
                   self.championship, self.track, self.venue_type, self.vehicle, self.racer,
                   self.recorded, self.number_of_channels(), self.number_of_laps())

"""
Channel containers

Raw channels hold the timestamps and values exactly as the logger recorded
them (64-bit). Fixed rate channels hold resampled values (32-bit) on an
implicit grid starting at `start` with a step of `1 / frequency`.
"""

from typing import Iterator, Tuple

import numpy as np

from timeline.frequency import estimate_frequency


class ChannelData:
    """Timestamps (seconds) and values of a channel as read from a file"""

    def __init__(self, timestamps, values):
        self.timestamps = np.array(timestamps, dtype=np.float64)
        self.values = np.array(values, dtype=np.float64)
        self.timestamps.setflags(write=False)
        self.values.setflags(write=False)

    @staticmethod
    def allocate(count: int) -> Tuple[np.ndarray, np.ndarray]:
        """Buffers with exactly `count` zeroed slots, to be filled by the decoder"""
        return np.zeros(count, dtype=np.float64), np.zeros(count, dtype=np.float64)

    def __len__(self):
        assert len(self.timestamps) == len(self.values), \
            "number of timestamps not equivalent to number of values"
        return len(self.timestamps)

    def is_empty(self) -> bool:
        return len(self) == 0

    def __iter__(self) -> Iterator[Tuple[float, float]]:
        return zip(self.timestamps.tolist(), self.values.tolist())

    def __eq__(self, other):
        if not isinstance(other, ChannelData):
            return NotImplemented
        return (np.array_equal(self.timestamps, other.timestamps)
                and np.array_equal(self.values, other.values))

    def __repr__(self):
        return f"ChannelData({len(self.timestamps)} samples)"


class Channel:
    """Raw, unsynchronized channel data plus name and unit"""

    def __init__(self, name: str, unit: str, data: ChannelData):
        self.name = name
        self.unit = unit
        self.data = data

    @property
    def frequency(self) -> float:
        """Recording frequency in Hz, estimated from the timestamps"""
        return estimate_frequency(self.data.timestamps)

    def __len__(self):
        return len(self.data)

    def is_empty(self) -> bool:
        return self.data.is_empty()

    def __eq__(self, other):
        if not isinstance(other, Channel):
            return NotImplemented
        return self.name == other.name and self.unit == other.unit and self.data == other.data

    def __str__(self):
        return 'chan %s [%s], %i samples' % (self.name, self.unit, len(self))

    def __repr__(self):
        return f"Channel({self.name!r}, {self.unit!r}, {self.data!r})"


class FixedRateChannel:
    """Channel resampled onto a fixed rate grid

    The timestamp of sample `i` is `start + i / frequency`. Timestamps are
    not stored, only generated on request.
    """

    def __init__(self, name: str, unit: str, frequency: float, samples, start: float = 0.0):
        self.name = name
        self.unit = unit
        self.frequency = frequency
        self.samples = np.asarray(samples, dtype=np.float32)
        self.start = start

    def timestamps(self) -> np.ndarray:
        if self.frequency == 0:
            return np.zeros(0, dtype=np.float64)
        return self.start + np.arange(len(self.samples), dtype=np.float64) / self.frequency

    def to_channel(self) -> Channel:
        return Channel(self.name, self.unit,
                       ChannelData(self.timestamps(), self.samples.astype(np.float64)))

    def __len__(self):
        return len(self.samples)

    def is_empty(self) -> bool:
        return len(self.samples) == 0

    def __eq__(self, other):
        if not isinstance(other, FixedRateChannel):
            return NotImplemented
        return (self.name == other.name and self.unit == other.unit
                and self.frequency == other.frequency and self.start == other.start
                and np.array_equal(self.samples, other.samples))

    def __str__(self):
        return 'chan %s [%s], %i Hz, %i samples' % (
            self.name, self.unit, self.frequency, len(self.samples))

    def __repr__(self):
        return (f"FixedRateChannel({self.name!r}, {self.unit!r}, {self.frequency}, "
                f"{len(self.samples)} samples, start={self.start})")

"""
Test helpers: synthetic channels and a fake decoder library
"""

import threading
import time
from contextlib import contextmanager
from datetime import datetime

import numpy as np

from channel import Channel, ChannelData


def make_channel(name, frequency, duration, start=0.0, values=None, unit=''):
    """Channel sampled exactly at `frequency` from `start` for `duration` seconds"""
    count = int(round(duration * frequency))
    timestamps = start + np.arange(count) / frequency
    if values is None:
        values = np.arange(count, dtype=np.float64)
    return Channel(name, unit, ChannelData(timestamps, values))


def default_channels():
    """Three channels at 1, 100 and 10 Hz covering 10 seconds"""
    t_temp = np.arange(10) * 1.0
    t_brake = np.arange(1000) / 100
    t_speed = np.arange(100) / 10
    return [
        ('Logger Temperature', 'C', t_temp, 20.0 + t_temp),
        ('pBrakeF', 'bar', t_brake, np.sin(t_brake)),
        ('GPS Speed', 'm/s', t_speed, np.full(len(t_speed), 30.0)),
    ]


class FakeLibrary:
    """Call counting stand-in for the AiM decoder library

    Records every call in order and the highest number of calls that were
    in progress at the same time.
    """

    def __init__(self, channels=None, laps=None, open_result=None, delay=0.0):
        self.channels = default_channels() if channels is None else channels
        self.laps = [(0.0, 5.0), (5.0, 5.0)] if laps is None else laps
        self.open_result = open_result
        self.delay = delay
        self.calls = []
        self.open_files = {}
        self.max_inside = 0
        self._inside = 0
        self._next_index = 1
        self._guard = threading.Lock()

    @contextmanager
    def _track(self, name, *args):
        with self._guard:
            self.calls.append((name,) + args)
            self._inside += 1
            self.max_inside = max(self.max_inside, self._inside)
        try:
            if self.delay:
                time.sleep(self.delay)
            yield
        finally:
            with self._guard:
                self._inside -= 1

    def count(self, name):
        return sum(1 for call in self.calls if call[0] == name)

    def call_names(self):
        return [call[0] for call in self.calls]

    def open(self, path):
        with self._track('open', path):
            if self.open_result is not None:
                return self.open_result
            index = self._next_index
            self._next_index += 1
            assert index not in self.open_files
            self.open_files[index] = path
            return index

    def close(self, handle):
        with self._track('close', handle):
            assert handle in self.open_files, f"closing unknown handle {handle}"
            del self.open_files[handle]
            return handle

    def lap_count(self, handle):
        with self._track('lap_count', handle):
            return len(self.laps)

    def lap_bounds(self, handle, lap):
        with self._track('lap_bounds', handle, lap):
            return self.laps[lap]

    def channel_count(self, handle):
        with self._track('channel_count', handle):
            return len(self.channels)

    def channel_name(self, handle, channel):
        with self._track('channel_name', handle, channel):
            return self.channels[channel][0]

    def channel_unit(self, handle, channel):
        with self._track('channel_unit', handle, channel):
            return self.channels[channel][1]

    def raw_samples(self, handle, channel, lap=None):
        with self._track('raw_samples', handle, channel, lap):
            _, _, timestamps, values = self.channels[channel]
            if lap is None:
                return timestamps.copy(), values.copy()
            start, duration = self.laps[lap]
            mask = (timestamps >= start) & (timestamps < start + duration)
            return timestamps[mask], values[mask]

    def vehicle_name(self, handle):
        with self._track('vehicle_name', handle):
            return 'AU-RS3-R5-S-S'

    def track_name(self, handle):
        with self._track('track_name', handle):
            return 'ARA_1-0-0'

    def racer_name(self, handle):
        with self._track('racer_name', handle):
            return '017'

    def championship_name(self, handle):
        with self._track('championship_name', handle):
            return 'WT-20'

    def venue_type_name(self, handle):
        with self._track('venue_type_name', handle):
            return 'Q3'

    def date_time(self, handle):
        with self._track('date_time', handle):
            return datetime(2020, 11, 14, 16, 49, 39)


class FakeDll:
    """Stand-in for the loaded shared library behind `XdrkLibrary`

    Exposes the C functions of each channel group as plain functions, so that
    `XdrkLibrary` can set their argtypes and fill sample buffers through
    ctypes pointers. Functions that aren't faked fail when called.
    """

    COUNT_FUNCTIONS = {
        'channel': 'get_channels_count',
        'GPS_channel': 'get_GPS_channels_count',
        'GPS_raw_channel': 'get_GPS_raw_channels_count',
    }

    def __init__(self, groups, laps=None):
        self.groups = groups
        self.laps = [(0.0, 5.0), (5.0, 5.0)] if laps is None else laps
        self.open_file = lambda path: 1
        self.close_file_i = lambda handle: handle
        for group, channels in groups.items():
            self._bind_group(group, channels)

    def _lap_slice(self, lap, timestamps, values):
        start, duration = self.laps[lap]
        mask = (timestamps >= start) & (timestamps < start + duration)
        return timestamps[mask], values[mask]

    def _bind_group(self, group, channels):
        def count(handle):
            return len(channels)

        def name(handle, idx):
            return channels[idx][0].encode()

        def units(handle, idx):
            return channels[idx][1].encode()

        def samples_count(handle, idx):
            return len(channels[idx][2])

        def samples(handle, idx, ptimes, pvalues, cnt):
            return fill(channels[idx][2], channels[idx][3], ptimes, pvalues, cnt)

        def lap_samples_count(handle, lap, idx):
            return len(self._lap_slice(lap, channels[idx][2], channels[idx][3])[0])

        def lap_samples(handle, lap, idx, ptimes, pvalues, cnt):
            timestamps, values = self._lap_slice(lap, channels[idx][2], channels[idx][3])
            return fill(timestamps, values, ptimes, pvalues, cnt)

        def fill(timestamps, values, ptimes, pvalues, cnt):
            for i in range(cnt):
                ptimes[i] = float(timestamps[i])
                pvalues[i] = float(values[i])
            return cnt

        setattr(self, self.COUNT_FUNCTIONS[group], count)
        setattr(self, f'get_{group}_name', name)
        setattr(self, f'get_{group}_units', units)
        setattr(self, f'get_{group}_samples_count', samples_count)
        setattr(self, f'get_{group}_samples', samples)
        setattr(self, f'get_lap_{group}_samples_count', lap_samples_count)
        setattr(self, f'get_lap_{group}_samples', lap_samples)

    def __getattr__(self, name):
        def not_faked(*args):
            raise AssertionError(f"{name} is not faked")
        not_faked.__name__ = name
        return not_faked

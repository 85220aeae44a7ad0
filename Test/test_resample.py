import math

import numpy as np
import pytest

from channel import Channel, ChannelData, FixedRateChannel
from helpers import make_channel
from lap import Lap, LapInfo
from timeline.resample import resample, resample_lap


@pytest.mark.parametrize("frequency", [1, 10, 100, 500])
@pytest.mark.parametrize("duration", [0.5, 1.0, 1.234, 2.0])
def test_length(frequency, duration):
    raw = make_channel('fEngRpm', frequency, 3.0)
    result = resample(raw, 0.0, duration)
    assert len(result.samples) == math.ceil(duration * frequency)
    assert result.frequency == frequency


def test_no_frequency_gives_empty_result():
    raw = Channel('tWater', 'C', ChannelData([1.0, 2.0], [80.0, 81.0]))
    result = resample(raw, 0.0, 10.0)
    assert isinstance(result, FixedRateChannel)
    assert result.frequency == 0
    assert len(result) == 0
    assert result.name == 'tWater' and result.unit == 'C'


def test_empty_or_negative_duration():
    raw = make_channel('fEngRpm', 10, 3.0)
    assert len(resample(raw, 0.0, 0.0)) == 0
    assert len(resample(raw, 0.0, -1.0)) == 0


@pytest.mark.parametrize("duration", [float('nan'), float('inf'), float('-inf')])
def test_non_finite_duration(duration):
    raw = make_channel('fEngRpm', 10, 3.0)
    result = resample(raw, 0.0, duration)
    assert len(result) == 0
    assert result.frequency == 10


def test_readings_before_grid_are_not_held():
    raw = Channel('posGear', '', ChannelData([0.0, 0.1, 0.2, 0.3], [1.0, 2.0, 3.0, 4.0]))
    result = resample(raw, 1.0, 0.5)
    np.testing.assert_array_equal(result.samples, [0.0, 0.0, 0.0, 0.0, 0.0])


def test_matching_grid_copies_values():
    raw = make_channel('pRail', 100, 2.0, values=np.arange(200) * 0.5, unit='bar')
    result = resample(raw, 0.0, 2.0)
    assert result.samples.dtype == np.float32
    np.testing.assert_array_equal(result.samples, (np.arange(200) * 0.5).astype(np.float32))
    assert result.unit == 'bar'
    assert result.start == 0.0


def test_single_reading_is_held():
    # frequency comes from the readings before the window, one reading inside
    raw = Channel('posGear', '', ChannelData([0.0, 0.1, 0.2, 1.52], [1.0, 2.0, 3.0, 7.0]))
    result = resample(raw, 1.0, 2.0)
    assert result.frequency == 10
    assert len(result) == 20
    np.testing.assert_array_equal(result.samples[:5], 0.0)
    np.testing.assert_array_equal(result.samples[5:], 7.0)


def test_gap_repeats_last_value():
    raw = Channel('rPedal', '%', ChannelData([0.0, 0.1, 0.2, 0.3, 0.8, 0.9],
                                             [1.0, 2.0, 3.0, 4.0, 5.0, 6.0]))
    result = resample(raw, 0.0, 1.0)
    np.testing.assert_array_equal(result.samples, [1, 2, 3, 4, 4, 4, 4, 4, 5, 6])


def test_late_start_is_zero_filled():
    raw = Channel('rPedal', '%', ChannelData([0.5, 0.6, 0.7], [9.0, 9.0, 9.0]))
    result = resample(raw, 0.0, 1.0)
    np.testing.assert_array_equal(result.samples, [0, 0, 0, 0, 0, 9, 9, 9, 9, 9])


def test_jittered_readings_land_in_their_slot():
    jitter = np.tile([0.002, -0.002], 50)
    timestamps = np.arange(100) / 100 + jitter
    timestamps[0] = 0.0015  # keep the first two intervals at 20 ms
    timestamps[2] = 0.0215
    raw = Channel('aLon', 'g', ChannelData(timestamps, np.arange(100.0)))
    result = resample(raw, 0.0, 1.0)
    assert result.frequency == 100
    np.testing.assert_array_equal(result.samples, np.arange(100.0))


def test_grid_timestamps():
    raw = make_channel('aLon', 20, 2.0)
    result = resample(raw, 10.0, 0.5)
    np.testing.assert_allclose(result.timestamps(), 10.0 + np.arange(10) / 20)


def test_resample_lap():
    lap = Lap(LapInfo(0, 0.0, 1.0),
              [make_channel('aLat', 100, 1.0), make_channel('GPS Speed', 10, 1.0)])
    resampled = resample_lap(lap)
    assert resampled.info == lap.info
    assert resampled.channel_names() == ['aLat', 'GPS Speed']
    assert len(resampled.channel('aLat')) == 100
    assert len(resampled.channel('GPS Speed')) == 10
    assert resampled.max_frequency() == 100

"""
AiM XRK/DRK Decoder Binding

Wraps AiM's shared library (libxdrk) which decodes the proprietary XRK and DRK
session files. The library keeps global state for all open files and is not
reentrant: every call must be serialized, which is the job of
`registry.HandleRegistry`. Nothing in here locks.

Return convention of the library: a positive value (file index, count) on
success, 0 for "open but unparseable" / "empty", a negative value on error.
"""

import ctypes as ct
import logging
import os
import platform
from datetime import datetime
from typing import Optional, Protocol, Tuple

import numpy as np

from channel import ChannelData
from errors import DecoderError

logger = logging.getLogger(__name__)

# Environment variable holding the path to the shared library
LIBRARY_ENV = "XDRK_LIBRARY"

DEFAULT_LIBRARY_NAMES = {
    'Linux': 'libxdrk-x86_64.so',
    'Darwin': 'libxdrk-x86_64.dylib',
    'Windows': 'libxdrk-x86_64.dll',
}


class DecoderLibrary(Protocol):
    """Interface of the decoder as used by the registry and XdrkFile.

    `XdrkLibrary` implements it on top of the vendor library; tests provide
    their own implementation.
    """

    def open(self, path: str) -> int: ...

    def close(self, handle: int) -> int: ...

    def lap_count(self, handle: int) -> int: ...

    def lap_bounds(self, handle: int, lap: int) -> Tuple[float, float]: ...

    def channel_count(self, handle: int) -> int: ...

    def channel_name(self, handle: int, channel: int) -> str: ...

    def channel_unit(self, handle: int, channel: int) -> str: ...

    def raw_samples(self, handle: int, channel: int,
                    lap: Optional[int] = None) -> Tuple[np.ndarray, np.ndarray]: ...


class tm(ct.Structure):
    """C `struct tm` as returned by get_date_and_time"""
    _fields_ = [
        ("tm_sec", ct.c_int),
        ("tm_min", ct.c_int),
        ("tm_hour", ct.c_int),
        ("tm_mday", ct.c_int),
        ("tm_mon", ct.c_int),  # 0 to 11
        ("tm_year", ct.c_int),  # years since 1900
        ("tm_wday", ct.c_int),
        ("tm_yday", ct.c_int),
        ("tm_isdst", ct.c_int),
    ]


_DOUBLE_P = ct.POINTER(ct.c_double)

# Channel groups in index order, named as in the library's function names
CHANNEL_GROUPS = ('channel', 'GPS_channel', 'GPS_raw_channel')

_COUNT_FUNCTIONS = {
    'channel': 'get_channels_count',
    'GPS_channel': 'get_GPS_channels_count',
    'GPS_raw_channel': 'get_GPS_raw_channels_count',
}

# name -> (argtypes, restype)
_SIGNATURES = {
    'open_file': ([ct.c_char_p], ct.c_int),
    'close_file_i': ([ct.c_int], ct.c_int),
    'get_vehicle_name': ([ct.c_int], ct.c_char_p),
    'get_track_name': ([ct.c_int], ct.c_char_p),
    'get_racer_name': ([ct.c_int], ct.c_char_p),
    'get_championship_name': ([ct.c_int], ct.c_char_p),
    'get_venue_type_name': ([ct.c_int], ct.c_char_p),
    'get_date_and_time': ([ct.c_int], ct.POINTER(tm)),
    'get_laps_count': ([ct.c_int], ct.c_int),
    'get_lap_info': ([ct.c_int, ct.c_int, _DOUBLE_P, _DOUBLE_P], ct.c_int),
    'get_channels_count': ([ct.c_int], ct.c_int),
    'get_channel_name': ([ct.c_int, ct.c_int], ct.c_char_p),
    'get_channel_units': ([ct.c_int, ct.c_int], ct.c_char_p),
    'get_channel_samples_count': ([ct.c_int, ct.c_int], ct.c_int),
    'get_channel_samples': ([ct.c_int, ct.c_int, _DOUBLE_P, _DOUBLE_P, ct.c_int], ct.c_int),
    'get_lap_channel_samples_count': ([ct.c_int, ct.c_int, ct.c_int], ct.c_int),
    'get_lap_channel_samples': ([ct.c_int, ct.c_int, ct.c_int, _DOUBLE_P, _DOUBLE_P, ct.c_int],
                                ct.c_int),
    'get_GPS_channels_count': ([ct.c_int], ct.c_int),
    'get_GPS_channel_name': ([ct.c_int, ct.c_int], ct.c_char_p),
    'get_GPS_channel_units': ([ct.c_int, ct.c_int], ct.c_char_p),
    'get_GPS_channel_samples_count': ([ct.c_int, ct.c_int], ct.c_int),
    'get_GPS_channel_samples': ([ct.c_int, ct.c_int, _DOUBLE_P, _DOUBLE_P, ct.c_int], ct.c_int),
    'get_lap_GPS_channel_samples_count': ([ct.c_int, ct.c_int, ct.c_int], ct.c_int),
    'get_lap_GPS_channel_samples': ([ct.c_int, ct.c_int, ct.c_int, _DOUBLE_P, _DOUBLE_P,
                                     ct.c_int], ct.c_int),
    'get_GPS_raw_channels_count': ([ct.c_int], ct.c_int),
    'get_GPS_raw_channel_name': ([ct.c_int, ct.c_int], ct.c_char_p),
    'get_GPS_raw_channel_units': ([ct.c_int, ct.c_int], ct.c_char_p),
    'get_GPS_raw_channel_samples_count': ([ct.c_int, ct.c_int], ct.c_int),
    'get_GPS_raw_channel_samples': ([ct.c_int, ct.c_int, _DOUBLE_P, _DOUBLE_P, ct.c_int],
                                    ct.c_int),
    'get_lap_GPS_raw_channel_samples_count': ([ct.c_int, ct.c_int, ct.c_int], ct.c_int),
    'get_lap_GPS_raw_channel_samples': ([ct.c_int, ct.c_int, ct.c_int, _DOUBLE_P, _DOUBLE_P,
                                         ct.c_int], ct.c_int),
    'get_library_date': ([], ct.c_char_p),
    'get_library_time': ([], ct.c_char_p),
}


def default_library_path() -> str:
    """Library path from the environment, else the platform's default name"""
    return os.environ.get(LIBRARY_ENV) or DEFAULT_LIBRARY_NAMES.get(platform.system(),
                                                                    DEFAULT_LIBRARY_NAMES['Linux'])


class XdrkLibrary:
    """ctypes binding to the AiM decoder library

    Channel indices cover the logger channels first, then the GPS channels
    the library derives from the GPS module (e.g. "GPS Speed"), then the raw
    GPS channels (e.g. "ECEF position_X").
    """

    def __init__(self, library_path: Optional[str] = None):
        self.library_path = library_path or default_library_path()
        logger.debug("Loading decoder library %s", self.library_path)
        self._lib = ct.CDLL(self.library_path)
        for name, (argtypes, restype) in _SIGNATURES.items():
            func = getattr(self._lib, name)
            func.argtypes = argtypes
            func.restype = restype

    # FILE OPENING / CLOSING ------------------------------------------------

    def open(self, path: str) -> int:
        return self._lib.open_file(os.fsencode(path))

    def close(self, handle: int) -> int:
        return self._lib.close_file_i(handle)

    # SESSION INFORMATION ---------------------------------------------------

    def _string(self, func, *args) -> str:
        ret = func(*args)
        if ret is None:
            raise DecoderError(f"{func.__name__} returned a null pointer")
        return ret.decode('utf-8', errors='replace')

    def vehicle_name(self, handle: int) -> str:
        return self._string(self._lib.get_vehicle_name, handle)

    def track_name(self, handle: int) -> str:
        return self._string(self._lib.get_track_name, handle)

    def racer_name(self, handle: int) -> str:
        return self._string(self._lib.get_racer_name, handle)

    def championship_name(self, handle: int) -> str:
        return self._string(self._lib.get_championship_name, handle)

    def venue_type_name(self, handle: int) -> str:
        return self._string(self._lib.get_venue_type_name, handle)

    def date_time(self, handle: int) -> datetime:
        ptr = self._lib.get_date_and_time(handle)
        if not ptr:
            raise DecoderError("could not fetch datetime object")
        t = ptr.contents
        return datetime(t.tm_year + 1900, t.tm_mon + 1, t.tm_mday, t.tm_hour, t.tm_min, t.tm_sec)

    def library_datetime(self) -> datetime:
        """Compile date and time of the vendor library"""
        date = self._lib.get_library_date().decode()
        time = self._lib.get_library_time().decode()
        return datetime.strptime(f"{date} {time}", "%b %d %Y %H:%M:%S")

    # LAPS ------------------------------------------------------------------

    def lap_count(self, handle: int) -> int:
        count = self._lib.get_laps_count(handle)
        if count < 0:
            raise DecoderError("error getting lap count")
        return count

    def lap_bounds(self, handle: int, lap: int) -> Tuple[float, float]:
        start, duration = ct.c_double(), ct.c_double()
        ret = self._lib.get_lap_info(handle, lap, ct.byref(start), ct.byref(duration))
        if ret != 1:
            raise DecoderError("could not fetch lap info", lap=lap)
        return start.value, duration.value

    # CHANNELS --------------------------------------------------------------

    def _group_count(self, handle: int, group: str) -> int:
        count = getattr(self._lib, _COUNT_FUNCTIONS[group])(handle)
        if count < 0:
            raise DecoderError(f"error getting {group} count")
        return count

    def _resolve(self, handle: int, channel: int) -> Tuple[str, int]:
        """Map a channel index to (group, index within the group)"""
        offset = channel
        for group in CHANNEL_GROUPS:
            count = self._group_count(handle, group)
            if offset < count:
                return group, offset
            offset -= count
        raise DecoderError("channel index out of range", channel=channel)

    def channel_count(self, handle: int) -> int:
        return sum(self._group_count(handle, group) for group in CHANNEL_GROUPS)

    def channel_name(self, handle: int, channel: int) -> str:
        group, idx = self._resolve(handle, channel)
        return self._string(getattr(self._lib, f'get_{group}_name'), handle, idx)

    def channel_unit(self, handle: int, channel: int) -> str:
        group, idx = self._resolve(handle, channel)
        return self._string(getattr(self._lib, f'get_{group}_units'), handle, idx)

    def raw_samples(self, handle: int, channel: int,
                    lap: Optional[int] = None) -> Tuple[np.ndarray, np.ndarray]:
        """Timestamps and values of a channel, for the whole run or one lap"""
        group, idx = self._resolve(handle, channel)
        prefix = 'get_lap_' if lap is not None else 'get_'
        count_func = getattr(self._lib, f'{prefix}{group}_samples_count')
        read_func = getattr(self._lib, f'{prefix}{group}_samples')
        lap_args = (lap,) if lap is not None else ()

        count = count_func(handle, *lap_args, idx)
        if count < 0:
            raise DecoderError("error getting channel samples count", channel=channel, lap=lap)

        timestamps, values = ChannelData.allocate(count)
        if count == 0:
            return timestamps, values

        read = read_func(handle, *lap_args, idx,
                         timestamps.ctypes.data_as(_DOUBLE_P),
                         values.ctypes.data_as(_DOUBLE_P),
                         count)
        if read != count:
            raise DecoderError(f"read {read} of {count} samples", channel=channel, lap=lap)
        return timestamps, values

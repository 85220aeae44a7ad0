"""
XRK/DRK File Access

High level access to the channels, laps and session information of one file,
going through a shared handle of the registry.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

from channel import Channel, ChannelData
from errors import InvalidInput
from lap import Lap, LapInfo
from registry import FileHandle, HandleRegistry

logger = logging.getLogger(__name__)


class XdrkFile:
    """Holds a handle to an open file and provides access to its data"""

    def __init__(self, handle: FileHandle):
        self.handle = handle
        self.library = handle.registry.library

    @classmethod
    def load(cls, registry: HandleRegistry, path: Union[str, Path]) -> 'XdrkFile':
        """Open a drk/xrk file through the registry"""
        return cls(registry.load(path))

    @property
    def path(self) -> Path:
        return self.handle.path

    def close(self):
        if not self.handle.released:
            self.handle.release()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def _call(self, name: str, *args):
        return self.handle.call(getattr(self.library, name), *args)

    # SESSION INFORMATION ---------------------------------------------------

    def vehicle_name(self) -> str:
        return self._call('vehicle_name')

    def track_name(self) -> str:
        return self._call('track_name')

    def racer_name(self) -> str:
        return self._call('racer_name')

    def championship_name(self) -> str:
        return self._call('championship_name')

    def venue_type_name(self) -> str:
        return self._call('venue_type_name')

    def date_time(self) -> datetime:
        return self._call('date_time')

    # LAPS ------------------------------------------------------------------

    def lap_count(self) -> int:
        return self._call('lap_count')

    def _check_lap(self, lap_idx: int):
        if not 0 <= lap_idx < self.lap_count():
            raise InvalidInput("lap index out of range", path=self.path, lap=lap_idx)

    def lap_info(self, lap_idx: int) -> LapInfo:
        """Start of the lap within the run and its duration"""
        self._check_lap(lap_idx)
        start, duration = self._call('lap_bounds', lap_idx)
        return LapInfo(lap_idx, start, duration)

    def lap_infos(self) -> List[LapInfo]:
        return [self.lap_info(idx) for idx in range(self.lap_count())]

    def lap(self, lap_idx: int) -> Lap:
        """All channels of a lap, with the samples recorded in that lap"""
        return Lap(self.lap_info(lap_idx), self.channels(lap_idx))

    def laps(self) -> List[Lap]:
        return [self.lap(idx) for idx in range(self.lap_count())]

    # CHANNELS --------------------------------------------------------------

    def channel_count(self) -> int:
        return self._call('channel_count')

    def _check_channel(self, channel_idx: int):
        if not 0 <= channel_idx < self.channel_count():
            raise InvalidInput("channel index out of range", path=self.path, channel=channel_idx)

    def channel_name(self, channel_idx: int) -> str:
        self._check_channel(channel_idx)
        return self._call('channel_name', channel_idx)

    def channel_unit(self, channel_idx: int) -> str:
        self._check_channel(channel_idx)
        return self._call('channel_unit', channel_idx)

    def channel_names(self) -> List[str]:
        return [self.channel_name(idx) for idx in range(self.channel_count())]

    def channel_units(self) -> List[str]:
        return [self.channel_unit(idx) for idx in range(self.channel_count())]

    def channel_index(self, name: str) -> int:
        try:
            return self.channel_names().index(name)
        except ValueError:
            raise InvalidInput(f"channel {name!r} not found", path=self.path) from None

    def channel(self, channel: Union[int, str], lap_idx: Optional[int] = None) -> Channel:
        """Raw channel by index or name, for the whole run or one lap"""
        channel_idx = self.channel_index(channel) if isinstance(channel, str) else channel
        self._check_channel(channel_idx)
        if lap_idx is not None:
            self._check_lap(lap_idx)

        name = self._call('channel_name', channel_idx)
        unit = self._call('channel_unit', channel_idx)
        timestamps, values = self._call('raw_samples', channel_idx, lap_idx)
        logger.debug("%s: %i samples (lap %s)", name, len(timestamps), lap_idx)
        return Channel(name, unit, ChannelData(timestamps, values))

    def channels(self, lap_idx: Optional[int] = None) -> List[Channel]:
        return [self.channel(idx, lap_idx) for idx in range(self.channel_count())]

    def __repr__(self):
        return f"XdrkFile({str(self.path)!r})"

"""
Handle registry for the decoder library

The vendor library keeps global state for every open file and must not be
entered concurrently, nor may the same file be opened twice. The registry
maps the canonical path of each open file to its library handle and a
reference count, and serializes every library call behind one lock.

    registry = HandleRegistry(XdrkLibrary())
    with registry.load("session.xrk") as handle:
        count = handle.call(registry.library.channel_count)
"""

import logging
import threading
from pathlib import Path
from typing import Dict, List

from errors import DecoderOpenFailed, InvalidInput, Unparseable

logger = logging.getLogger(__name__)

ACCEPTED_EXTENSIONS = ('.xrk', '.drk')


class _Entry:
    __slots__ = ('handle', 'count')

    def __init__(self, handle: int):
        self.handle = handle
        self.count = 1


class FileHandle:
    """One user's reference to an open file

    Releases its reference when leaving a `with` block, on `release()`, or
    when collected while still holding it.
    """

    def __init__(self, registry: 'HandleRegistry', path: Path, index: int):
        self.registry = registry
        self.path = path
        self.index = index
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def call(self, func, *args):
        """Call a library function with this file's index, under the registry lock"""
        assert not self._released, f"handle for {self.path} used after release"
        with self.registry.lock:
            return func(self.index, *args)

    def release(self):
        assert not self._released, f"handle for {self.path} released twice"
        self._released = True
        self.registry._release(self.path)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if not self._released:
            self.release()
        return False

    def __del__(self):
        if not getattr(self, '_released', True):
            self.release()

    def __repr__(self):
        state = 'released' if self._released else 'open'
        return f"FileHandle({str(self.path)!r}, index={self.index}, {state})"


class HandleRegistry:
    """Reference counted map of canonical path -> open library handle"""

    def __init__(self, library):
        self.library = library
        # reentrant so that a handle collected while the lock is held can release
        self.lock = threading.RLock()
        self._entries: Dict[Path, _Entry] = {}

    @staticmethod
    def validate(path) -> Path:
        """Canonical path of an existing file with an accepted extension"""
        path = Path(path)
        if not path.exists() or not path.is_file():
            raise InvalidInput("path does not exist or not a file", path=path)
        if path.suffix not in ACCEPTED_EXTENSIONS:
            raise InvalidInput(f"extension must be one of {', '.join(ACCEPTED_EXTENSIONS)}",
                               path=path)
        return path.resolve()

    def load(self, path) -> FileHandle:
        """Open a file, or share the handle if it is open already.

        Raises:
            InvalidInput: if the path is not an existing .xrk/.drk file.
            Unparseable: if the library opened the file but can't parse it.
            DecoderOpenFailed: if the library failed to open the file.
        """
        path = self.validate(path)

        with self.lock:
            entry = self._entries.get(path)
            if entry is not None:
                entry.count += 1
                logger.debug("%s: reference count %i", path, entry.count)
                return FileHandle(self, path, entry.handle)

            index = self.library.open(str(path))
            if index == 0:
                raise Unparseable("file is open but can't be parsed", path=path)
            if index < 0:
                raise DecoderOpenFailed(f"decoder returned {index}", path=path)

            self._entries[path] = _Entry(index)
            logger.info("Opened %s (index %i)", path, index)
            return FileHandle(self, path, index)

    def _release(self, path: Path):
        with self.lock:
            entry = self._entries.get(path)
            assert entry is not None and entry.count > 0, f"{path} released more often than loaded"

            entry.count -= 1
            if entry.count > 0:
                logger.debug("%s: reference count %i", path, entry.count)
                return

            del self._entries[path]
            ret = self.library.close(entry.handle)
            if ret != entry.handle:
                logger.warning("Closing %s returned %i", path, ret)
            logger.info("Closed %s (index %i)", path, entry.handle)

    def reference_count(self, path) -> int:
        with self.lock:
            entry = self._entries.get(Path(path).resolve())
            return entry.count if entry else 0

    def open_paths(self) -> List[Path]:
        with self.lock:
            return list(self._entries)

    def __len__(self):
        with self.lock:
            return len(self._entries)

"""
Error types for XRK/DRK file access and channel synchronization
"""


class XdrkError(Exception):
    """Base class for all errors raised by this package"""

    def __init__(self, message: str, path=None, channel=None, lap=None):
        super().__init__(message)
        self.path = path
        self.channel = channel
        self.lap = lap

    def __str__(self):
        context = []
        if self.path is not None:
            context.append(f"path={self.path}")
        if self.channel is not None:
            context.append(f"channel={self.channel}")
        if self.lap is not None:
            context.append(f"lap={self.lap}")
        message = super().__str__()
        if context:
            return f"{message} ({', '.join(context)})"
        return message


class InvalidInput(XdrkError, ValueError):
    """Malformed path, wrong extension, out-of-range index or unknown name"""


class DecoderError(XdrkError):
    """The vendor library returned an error code"""


class DecoderOpenFailed(DecoderError):
    """The vendor library could not open the file"""


class Unparseable(DecoderError):
    """The file was opened but the vendor library can't parse it"""


class SyncError(XdrkError):
    """A channel pair can't be synchronized"""


class InsufficientData(SyncError):
    """One of the channels holds fewer than three samples"""


class NonOverlappingRanges(SyncError):
    """The time ranges of the two channels don't overlap"""

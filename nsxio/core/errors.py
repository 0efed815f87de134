"""
Exceptions raised by nsxio.

All of them derive from :class:`NSxError` so a caller can catch every failure
of a session with a single ``except`` clause. Where a standard exception
describes the same situation it is used as a second base, so code written
against ``ValueError`` or ``IOError`` keeps working.
"""


class NSxError(Exception):
    """Base class for all nsxio errors."""


class UnsupportedFormat(NSxError, ValueError):
    """The 8-byte file identifier is not one of the supported NSx variants."""


class UnsupportedSamplingRate(NSxError):
    """The sampling rate is too low for spike detection."""


class RangeAfterEnd(NSxError, ValueError):
    """A read request starts after the end of the recorded data."""


class NoDataLoaded(NSxError):
    """An operation needs samples but nothing has been read yet."""


class NoFileOpen(NSxError):
    """An operation needs the file handle but the session is closed."""


class IOFailure(NSxError, IOError):
    """Opening, seeking or reading the file failed."""

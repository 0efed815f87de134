"""
baserawio
======

Classes
-------

BaseRawIO
abstract class which should be overridden to write a RawIO.

RawIO is the low level API of nsxio that provides fast access to the raw
samples of one recording file. A RawIO:
  * owns exactly one open file handle, opened in ``__init__`` and released by
    ``close()``, by leaving a ``with`` block or when the object is collected
  * reads the header once, in ``parse_header()``, without touching the samples
  * serves chunks of samples on request, as numpy arrays

With this API the IO has a ``header`` dict filled by ``_parse_header()``:
    header['metadata']    FileMetadata
    header['electrodes']  list of ElectrodeDescriptor, one per channel
    header['segments']    list of Segment
    header['header_end']  byte offset of the data region
    header['file_end']    size of the file in bytes

"""

from __future__ import annotations

import logging
import weakref

from nsxio import logging_handler
from nsxio.core import IOFailure, NoFileOpen, SessionState

error_header = "Header is not read yet, do parse_header() first"


def _close_handle(fid):
    if not fid.closed:
        fid.close()


class BaseRawIO:
    """
    Generic class to handle one recording file.

    """

    name = "BaseRawIO"
    description = ""
    extensions = []

    def __init__(self, filename: str = "", **kargs):
        """
        init docstring should be filled out at the rawio level so the user knows
        which file is opened.

        """
        # create a logger for the IO class
        fullname = self.__class__.__module__ + "." + self.__class__.__name__
        self.logger = logging.getLogger(fullname)
        # Create a logger for 'nsxio' and add a handler to it if it doesn't have one already.
        # (it will also not add one if the root logger has a handler)
        corename = self.__class__.__module__.split(".")[0]
        corelogger = logging.getLogger(corename)
        rootlogger = logging.getLogger()
        if not corelogger.handlers and not rootlogger.handlers:
            corelogger.addHandler(logging_handler)

        self.filename = str(filename)
        self.header = None
        self.state = SessionState.CLOSED
        self._fid = None
        self._finalizer = None

    def _open_file(self):
        try:
            self._fid = open(self.filename, mode="rb")
        except OSError as err:
            raise IOFailure(f"Could not open {self.filename}: does it exist?") from err
        self._finalizer = weakref.finalize(self, _close_handle, self._fid)
        self.state = SessionState.OPENED

    @property
    def is_header_parsed(self):
        return self.header is not None

    @property
    def is_open(self):
        return self.state.is_open

    def parse_header(self):
        """
        Parses the header of the file to allow for faster computations
        for all other functions

        The file handle is released if parsing fails.
        """
        self._check_open()
        try:
            self._parse_header()
        except BaseException:
            self.close()
            raise

    def _check_open(self):
        if not self.state.is_open:
            raise NoFileOpen(f"{self.filename} has already been closed, reopen to read data")

    def _check_header(self):
        self._check_open()
        if not self.is_header_parsed:
            raise NoFileOpen(error_header)

    def close(self):
        """Release the file handle. Calling it again has no effect."""
        if self._finalizer is not None:
            self._finalizer()
        self.state = SessionState.CLOSED

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def source_name(self):
        """Return fancy name of file source"""
        return self._source_name()

    def _source_name(self):
        return self.filename

    def __repr__(self):
        txt = f"{self.__class__.__name__}: {self.source_name()}\n"
        txt += f"state: {self.state.value}\n"
        if self.header is not None:
            metadata = self.header["metadata"]
            txt += f"file_id: {metadata.file_id} (spec {metadata.file_spec})\n"
            txt += f"sampling_rate: {metadata.sampling_rate:g} Hz\n"
            txt += f"nb_channel: {metadata.channel_count}\n"
            txt += f"nb_segment: {len(self.header['segments'])}\n"
        return txt

    ###
    # Functions to be implemented in IO below here

    def _parse_header(self):
        raise NotImplementedError

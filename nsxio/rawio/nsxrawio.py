"""
Module for reading data from Blackrock NSx files in raw format.

This IO supports reading only.
This IO is able to read the ns1, ns2, .., ns6 files that contain continuous
signals at different sampling rates, in the following file specifications:
  * 2.1 (``NEURALSG``)
  * 2.2, 2.3 and 3.0 (``NEURALCD``)
  * 3.0 with 64-bit timestamps (``BRSMPGRP``)

The possible file extensions of the Cerebus system containing continuous data:
    ns1: contains analog data; sampled at 500 Hz (+ digital filters)
    ns2: contains analog data; sampled at 1000 Hz (+ digital filters)
    ns3: contains analog data; sampled at 2000 Hz (+ digital filters)
    ns4: contains analog data; sampled at 10000 Hz (+ digital filters)
    ns5: contains analog data; sampled at 30000 Hz (+ digital filters)
    ns6: contains analog data; sampled at 30000 Hz (no digital filters)

Recording pauses that occur in file specifications 2.2 and later split the data
into several segments. Samples are always returned as one int16 matrix per
segment, so paused and unpaused files are handled the same way.
"""

import numpy as np

from .baserawio import BaseRawIO
from .nsxheader import parse_header
from .nsxsegments import get_segment_indexer
from .timerange import resolve_segments
from .segmentreader import read_segments
from .utils import get_file_size


class NSxRawIO(BaseRawIO):
    """
    Class for reading one NSx file recorded by the Blackrock (Cerebus) system.

    The file is opened on construction and kept open until :meth:`close` is
    called. :meth:`parse_header` reads the basic and extended headers and
    indexes the segments of the data region; no sample is read before
    :meth:`get_analogsignal_chunk`.

    Parameters
    ----------
    filename: str | Path
        Full path of the .nsX file.
    timezone: str | tzinfo | None, default: None
        Timezone the recording date is projected into for ``date_local``.
        None uses the local timezone of the machine.

    Examples
    --------
    >>> from nsxio.rawio import NSxRawIO
    >>> reader = NSxRawIO(filename='FileSpec2.3001.ns5')
    >>> reader.parse_header()
    >>> print(reader)

    """

    extensions = ["ns" + str(_) for _ in range(1, 7)]

    def __init__(self, filename, timezone=None):
        BaseRawIO.__init__(self, filename=filename)
        self.timezone = timezone
        self._open_file()

    def _parse_header(self):
        fid = self._fid
        metadata, electrodes, header_end = parse_header(fid, timezone=self.timezone)
        file_end = get_file_size(fid)

        indexer = get_segment_indexer(metadata.file_id)
        segments = indexer.index(fid, metadata.channel_count, header_end, file_end, logger=self.logger)
        fid.seek(header_end)

        self.header = {
            "metadata": metadata,
            "electrodes": electrodes,
            "segments": segments,
            "header_end": header_end,
            "file_end": file_end,
        }
        if len(segments) > 1:
            self.logger.info(f"{self.filename} is a paused recording with {len(segments)} segments")

    @property
    def metadata(self):
        return self.header["metadata"]

    @property
    def electrodes(self):
        return self.header["electrodes"]

    @property
    def segments(self):
        return self.header["segments"]

    @property
    def sampling_rate(self):
        return self.metadata.sampling_rate

    @property
    def channel_count(self):
        return self.metadata.channel_count

    @property
    def datapoints(self):
        return np.array([seg.datapoints for seg in self.segments], dtype="int64")

    @property
    def durations(self):
        return self.datapoints / self.sampling_rate

    @property
    def is_paused(self):
        return len(self.segments) > 1

    @property
    def electrode_labels(self):
        if not self.electrodes:
            return [f"chan{channel_id}" for channel_id in self.metadata.channel_ids]
        return [e.label for e in self.electrodes]

    def resolve(self, request):
        """Set the segment span of ``request`` from the file layout."""
        self._check_header()
        resolve_segments(request, self.segments, self.sampling_rate)
        self.logger.debug(f"Request resolved from segment {request.first_segment} to segment {request.last_segment}")
        return request

    def get_analogsignal_chunk(self, request, use_ram=True):
        """
        Read the samples of ``request``.

        Returns
        -------
        LoadedData
            One int16 matrix of shape (len(request.channels), n_samples) per
            segment of the resolved span.
        """
        self._check_header()
        if not request.is_resolved:
            self.resolve(request)
        return read_segments(
            self._fid,
            self.segments,
            self.channel_count,
            request,
            self.sampling_rate,
            use_ram=use_ram,
            logger=self.logger,
        )

"""
Indexing of the data region of an NSx file into segments.

File spec 2.2 and later store the data as a sequence of packets:

    ┌──────────────────────────────────────────┐
    │ header_flag (uint8, always 1)            │
    │ timestamp   (uint32, uint64 for BRSMPGRP)│
    │ nb_data_points (uint32)                  │
    ├──────────────────────────────────────────┤
    │ nb_data_points × channel_count int16     │  ← interleaved samples
    └──────────────────────────────────────────┘

One packet is written each time the recording is (re)started, so a paused
recording holds several segments. File spec 2.1 has no packet header at all:
the whole data region is one implicit segment.

The data region is scanned once, at open time, by seeking from one packet
header to the next; samples are never read here.
"""

import logging

import numpy as np

from nsxio.core import Segment
from nsxio.core.segment import BYTES_PER_SAMPLE

default_logger = logging.getLogger(__name__)

# Data packet headers, without the leading header_flag byte
NSX_DATA_HEADER_TYPES = {
    "NEURALCD": np.dtype([("timestamp", "<u4"), ("nb_data_points", "<u4")]),
    "BRSMPGRP": np.dtype([("timestamp", "<u8"), ("nb_data_points", "<u4")]),
}

SEGMENT_MARKER = b"\x01"


class LegacySegmentIndexer:
    """
    One implicit segment covering the whole data region.

    Trailing bytes that do not make up a complete sample row are ignored.
    """

    def index(self, fid, channel_count, data_start, file_end, logger=default_logger):
        row_size = channel_count * BYTES_PER_SAMPLE
        if row_size == 0:
            logger.warning("File declares no channels, no data can be indexed")
            return []
        datapoints, remainder = divmod(file_end - data_start, row_size)
        if remainder:
            logger.warning(f"Ignoring {remainder} trailing byte(s) that do not form a complete sample")
        return [Segment(0, datapoints, data_start, data_start + datapoints * row_size)]


class SegmentIndexer:
    """
    Marker-driven scan of the data packets of spec 2.2+ files.

    Blackrock systems are known to sometimes write a corrupted header after
    the last good packet. When the marker byte is not 1 (or the packet header
    is cut by the end of file) the scan stops and the last segment is
    recomputed to run from its first sample to the end of the file.
    """

    def __init__(self, file_id):
        self.file_id = file_id
        self.header_dtype = NSX_DATA_HEADER_TYPES[file_id]

    def index(self, fid, channel_count, data_start, file_end, logger=default_logger):
        row_size = channel_count * BYTES_PER_SAMPLE
        if row_size == 0:
            logger.warning("File declares no channels, no data can be indexed")
            return []

        segments = []
        offset = data_start
        while offset < file_end:
            fid.seek(offset)
            packet_header = fid.read(1 + self.header_dtype.itemsize)
            if packet_header[:1] != SEGMENT_MARKER:
                logger.warning(
                    f"Duration read issue after segment {len(segments)}, calculating full data points "
                    f"(position was {offset}, end of file was {file_end})"
                )
                return self._recover(segments, data_start, file_end, row_size)
            if len(packet_header) != 1 + self.header_dtype.itemsize:
                logger.warning(
                    f"Packet header of segment {len(segments) + 1} is cut by the end of file "
                    f"(position was {offset}), calculating full data points"
                )
                return self._recover(segments, data_start, file_end, row_size)

            header = np.frombuffer(packet_header, dtype=self.header_dtype, offset=1)[0]
            sample_start = offset + len(packet_header)
            datapoints = int(header["nb_data_points"])
            sample_end = sample_start + datapoints * row_size
            if sample_end > file_end:
                datapoints = (file_end - sample_start) // row_size
                logger.warning(
                    f"Segment {len(segments) + 1} declares {int(header['nb_data_points'])} data points "
                    f"but only {datapoints} are in the file"
                )
                sample_end = sample_start + datapoints * row_size

            segments.append(Segment(header["timestamp"], datapoints, sample_start, sample_end))
            offset = sample_end
        return segments

    @staticmethod
    def _recover(segments, data_start, file_end, row_size):
        if segments:
            last = segments.pop()
            timestamp, sample_start = last.timestamp, last.data_start
        else:
            timestamp, sample_start = 0, data_start
        datapoints = (file_end - sample_start) // row_size
        segments.append(Segment(timestamp, datapoints, sample_start, sample_start + datapoints * row_size))
        return segments


def get_segment_indexer(file_id):
    if file_id == "NEURALSG":
        return LegacySegmentIndexer()
    return SegmentIndexer(file_id)

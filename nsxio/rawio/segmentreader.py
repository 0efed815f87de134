"""
Reading of the samples covered by a resolved read request.

Samples are stored channel-interleaved, as little-endian int16:

    row 0: ch1 ch2 ... chN
    row 1: ch1 ch2 ... chN
    ...

so every datapoint of a segment is one row of ``channel_count × 2`` bytes.
Two I/O policies are available and return identical matrices:

  * buffered (``use_ram=True``): each row is read whole, unrequested channels
    are dropped in memory afterwards. Fastest when most channels are wanted.
  * streaming (``use_ram=False``): the segment bytes are memory mapped and only
    the contiguous block of columns from the lowest to the highest requested
    channel is viewed with a stride of one row, so unrequested rows of data
    on disk are never loaded. Meant for files larger than the available RAM.
"""

import logging

import numpy as np

from nsxio.core import IOFailure, LoadedData
from nsxio.core.segment import BYTES_PER_SAMPLE

from .utils import get_file_size, get_memmap_rows_from_opened_file

default_logger = logging.getLogger(__name__)

SAMPLE_DTYPE = np.dtype("<i2")


def segment_read_plan(segments, span, read_from, read_to):
    """
    Rows to read in every segment of ``span``.

    ``read_from`` and ``read_to`` are inclusive 1-based datapoint indexes over
    the whole recording. Returns a list of ``(segment, skip, count)`` where
    ``skip`` is the number of leading rows to skip in the segment and
    ``count`` the number of rows to read. Only the first segment of the span
    can have a non zero ``skip`` and only the last one a shortened ``count``.
    """
    starts = np.concatenate([[0], np.cumsum([seg.datapoints for seg in segments])])
    plan = []
    for seg_index in span:
        segment = segments[seg_index]
        first_row = int(starts[seg_index]) + 1
        last_row = int(starts[seg_index]) + segment.datapoints
        lo = max(read_from, first_row)
        hi = min(read_to, last_row)
        count = max(hi - lo + 1, 0)
        skip = min(lo - first_row, segment.datapoints) if count else 0
        plan.append((segment, skip, count))
    return plan


def read_buffered(fid, segment, skip, count, channel_count, rows):
    row_size = channel_count * BYTES_PER_SAMPLE
    fid.seek(segment.data_start + skip * row_size)
    raw = fid.read(count * row_size)
    if len(raw) != count * row_size:
        raise IOFailure(
            f"Could not read {count} data points at offset {segment.data_start + skip * row_size}: "
            f"file ended after {len(raw) // row_size}"
        )
    data = np.frombuffer(raw, dtype=SAMPLE_DTYPE).reshape(count, channel_count).T
    return data[rows].astype("int16")


def read_streaming(fid, segment, skip, count, channel_count, rows):
    row_size = channel_count * BYTES_PER_SAMPLE
    if count == 0:
        return np.empty((len(rows), 0), dtype="int16")

    file_offset = segment.data_start + skip * row_size
    if file_offset + count * row_size > get_file_size(fid):
        raise IOFailure(f"Could not read {count} data points at offset {file_offset}: past end of file")

    # one contiguous block of columns per row, from the lowest to the highest channel
    first_column = int(np.min(rows))
    width = int(np.max(rows)) - first_column + 1
    try:
        block = get_memmap_rows_from_opened_file(
            fid,
            row_size=row_size,
            num_rows=count,
            file_offset=file_offset,
            column_offset=first_column * BYTES_PER_SAMPLE,
            num_columns=width,
            dtype=SAMPLE_DTYPE,
        )
    except (OSError, ValueError) as err:
        raise IOFailure(f"Could not map {count} data points at offset {file_offset}: {err}") from err
    return block[:, np.asarray(rows) - first_column].T.astype("int16")


def read_segments(fid, segments, channel_count, request, sampling_rate, use_ram=True, logger=default_logger):
    """
    Read the samples of a resolved ``request``.

    Returns a :class:`LoadedData` with one ``(len(request.channels), n)`` int16
    matrix per segment of the span, in segment order.
    """
    total = sum(seg.datapoints for seg in segments)
    read_from, read_to = request.datapoint_bounds(sampling_rate, total)
    rows = np.array(request.channels, dtype="int64") - 1
    logger.debug(
        f"Reading channels {list(request.channels)} from {read_from} to {read_to} (datapoints), "
        f"segments {request.first_segment} to {request.last_segment}"
    )

    reader = read_buffered if use_ram else read_streaming
    matrices = []
    for segment, skip, count in segment_read_plan(segments, request.segment_span, read_from, read_to):
        matrix = reader(fid, segment, skip, count, channel_count, rows)
        if request.downsample > 1:
            matrix = np.ascontiguousarray(matrix[:, :: request.downsample])
        matrices.append(matrix)
    return LoadedData(matrices, request.channels)

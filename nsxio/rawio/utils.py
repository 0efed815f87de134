import mmap
import os

import numpy as np


def get_file_size(fid):
    """Size in bytes of an opened file, without moving its cursor."""
    return os.fstat(fid.fileno()).st_size


def get_memmap_rows_from_opened_file(fid, row_size, num_rows, file_offset, column_offset, num_columns, dtype):
    """
    Map ``num_rows`` rows of ``row_size`` bytes starting at ``file_offset`` and
    return a strided view on ``num_columns`` items of ``dtype`` per row,
    starting ``column_offset`` bytes into each row.

    Only the mapped byte range is paged in, and bytes of a row outside the
    selected columns are never copied. The view keeps the mapping alive; copy
    the selection out of it before dropping it.
    """
    dtype = np.dtype(dtype)
    length = num_rows * row_size

    # The mmap offset must be a multiple of mmap.ALLOCATIONGRANULARITY
    memmap_offset, start_offset = divmod(file_offset, mmap.ALLOCATIONGRANULARITY)
    memmap_offset *= mmap.ALLOCATIONGRANULARITY

    # Adjust the length so it includes the extra data from rounding down
    # the memmap offset to a multiple of ALLOCATIONGRANULARITY
    length += start_offset

    memmap_obj = mmap.mmap(fid.fileno(), length=length, access=mmap.ACCESS_READ, offset=memmap_offset)

    arr = np.ndarray(
        shape=(num_rows, num_columns),
        dtype=dtype,
        buffer=memmap_obj,
        offset=start_offset + column_offset,
        strides=(row_size, dtype.itemsize),
    )

    return arr

"""
Resolution of a read request into the span of segments it touches.
"""

import numpy as np

from nsxio.core import RangeAfterEnd


def find_segment_span(extents, start, end):
    """
    Inclusive 0-based ``(first, last)`` segment span for ``[start, end]``.

    ``first`` is the first segment whose cumulative extent is strictly larger
    than ``start``. ``last`` is one past the last segment whose cumulative
    extent is strictly smaller than ``end``, so a request ending exactly on a
    segment boundary stops in the segment that ends there, and one ending
    anywhere after it pulls in the next segment. When no segment ends before
    ``end`` the span stops in the first segment.
    """
    cumulative = np.cumsum(extents)
    after_start = np.flatnonzero(cumulative > start)
    if after_start.size == 0:
        raise RangeAfterEnd(f"Read request was after end of data (start {start}, data ends at "
                            f"{cumulative[-1] if cumulative.size else 0})")
    first = int(after_start[0])

    before_end = np.flatnonzero(cumulative < end)
    last = int(before_end[-1]) + 1 if before_end.size else 0
    last = min(max(last, first), len(cumulative) - 1)
    return first, last


def resolve_segments(request, segments, sampling_rate):
    """
    Set ``first_segment`` and ``last_segment`` on ``request`` and return it.

    The span is found in datapoints, from ``read_from - 1`` to ``read_to``
    (see :meth:`ReadRequest.datapoint_bounds`), so a start inside the last
    sample period of a segment keeps that segment and its last datapoint.
    """
    extents = np.array([seg.datapoints for seg in segments], dtype="int64")
    read_from, read_to = request.datapoint_bounds(sampling_rate, extents.sum())
    request.first_segment, request.last_segment = find_segment_span(extents, read_from - 1, read_to)
    return request

'''
This module defines :class:`ReadRequest`, the description of one ``read``
call: which channels, which stretch of the recording and how to sample it.
'''

import math

SECONDS = 's'
DATAPOINTS = 'datapoints'

unit_aliases = {
    's': SECONDS, 'seconds': SECONDS, 'sec': SECONDS, 'secs': SECONDS,
    'datapoints': DATAPOINTS, 'raw': DATAPOINTS, 'dp': DATAPOINTS,
}


def normalize_units(units):
    '''
    Map any accepted spelling of the time units to ``'s'`` or ``'datapoints'``.
    '''
    try:
        return unit_aliases[units]
    except (KeyError, TypeError):
        raise ValueError(f"Unknown units for data read timings: {units!r}") from None


class ReadRequest:
    '''
    One read request, before and after resolution against the file layout.

    *Attributes*:
        :channels: (tuple) 1-based channel ordinals, in request order.
        :time: (tuple) (start, end) bounds in ``units``, already clamped to
            the extent of the recording.
        :units: (str) ``'s'`` or ``'datapoints'``.
        :downsample: (int) Keep every Nth sample. This is not a decimation,
            the signal is not low-pass filtered first.
        :first_segment, last_segment: (int) Inclusive 0-based span of
            segments, set by :func:`nsxio.rawio.timerange.resolve_segments`.
    '''

    def __init__(self, channels, time, units=SECONDS, downsample=1):
        self.channels = tuple(int(c) for c in channels)
        self.time = (float(time[0]), float(time[1]))
        self.units = normalize_units(units)
        self.downsample = int(downsample)
        if self.downsample < 1:
            raise ValueError(f"downsample must be a positive integer, got {downsample}")
        self.first_segment = None
        self.last_segment = None

    @property
    def is_resolved(self):
        return self.first_segment is not None

    @property
    def segment_span(self):
        return range(self.first_segment, self.last_segment + 1)

    def datapoint_bounds(self, sampling_rate, total_datapoints):
        '''
        Inclusive 1-based datapoint range covered by the request.

        Seconds are converted with ``floor`` for the start and ``ceil`` for
        the end; the result is clamped to ``[1, total_datapoints]``.
        '''
        if self.units == SECONDS:
            read_from = math.floor(self.time[0] * sampling_rate)
            read_to = math.ceil(self.time[1] * sampling_rate)
        else:
            read_from = math.floor(self.time[0])
            read_to = math.ceil(self.time[1])
        read_from = max(read_from, 1)
        read_to = min(read_to, int(total_datapoints))
        return read_from, read_to

    def __repr__(self):
        span = ''
        if self.is_resolved:
            span = f" segments {self.first_segment}..{self.last_segment}"
        return f"<ReadRequest channels={list(self.channels)} time={self.time} {self.units}{span}>"

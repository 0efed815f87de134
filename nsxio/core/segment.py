'''
This module defines :class:`Segment`, one contiguous run of interleaved
samples in the data region of an NSx file.

A recording that was paused and resumed holds one segment per run. Legacy
files (file spec 2.1) always hold exactly one implicit segment.
'''

BYTES_PER_SAMPLE = 2


class Segment:
    '''
    Location of one data segment inside the file.

    *Attributes*:
        :timestamp: (int) Clock tick of the first sample, 0 for legacy files.
        :datapoints: (int) Number of samples per channel.
        :data_start: (int) Byte offset of the first sample.
        :data_end: (int) Byte offset just past the last sample.
    '''

    __slots__ = ('timestamp', 'datapoints', 'data_start', 'data_end')

    def __init__(self, timestamp, datapoints, data_start, data_end):
        self.timestamp = int(timestamp)
        self.datapoints = int(datapoints)
        self.data_start = int(data_start)
        self.data_end = int(data_end)

    @property
    def nbytes(self):
        return self.data_end - self.data_start

    def duration(self, sampling_rate):
        return self.datapoints / sampling_rate

    def __eq__(self, other):
        if not isinstance(other, Segment):
            return NotImplemented
        return all(getattr(self, k) == getattr(other, k) for k in self.__slots__)

    def __repr__(self):
        return (f"<Segment t={self.timestamp} datapoints={self.datapoints} "
                f"bytes=[{self.data_start}, {self.data_end})>")

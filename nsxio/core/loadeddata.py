'''
This module defines :class:`LoadedData`, the samples held by a session after
a ``read`` call.
'''

import numpy as np


class LoadedData:
    '''
    One ``(n_channels, n_samples)`` matrix per segment of the resolved span.

    ``channels`` lists the 1-based ordinals of the rows of every matrix, in
    the order they were requested.
    '''

    def __init__(self, segments, channels):
        self.segments = list(segments)
        self.channels = tuple(channels)
        for matrix in self.segments:
            if matrix.shape[0] != len(self.channels):
                raise ValueError("Every segment matrix needs one row per loaded channel")

    def __len__(self):
        return len(self.segments)

    def __iter__(self):
        return iter(self.segments)

    def __getitem__(self, index):
        return self.segments[index]

    @property
    def datapoints(self):
        return [m.shape[1] for m in self.segments]

    def channel_index(self, channel):
        '''Row of ``channel`` in the loaded matrices, None when not loaded.'''
        try:
            return self.channels.index(channel)
        except ValueError:
            return None

    def concatenated(self):
        '''All segments joined along time, one row per loaded channel.'''
        if not self.segments:
            return np.empty((len(self.channels), 0), dtype='int16')
        return np.concatenate(self.segments, axis=1)

    def channel_signal(self, channel):
        '''Samples of one loaded channel over all segments, as one 1D array.'''
        row = self.channel_index(channel)
        if row is None:
            raise KeyError(f"Channel {channel} is not loaded")
        if not self.segments:
            return np.empty(0, dtype='int16')
        return np.concatenate([m[row] for m in self.segments])

    def __repr__(self):
        return f"<LoadedData channels={list(self.channels)} datapoints={self.datapoints}>"

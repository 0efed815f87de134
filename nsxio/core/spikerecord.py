'''
This module defines :class:`SpikeRecord`, the result of spike detection on
one channel.
'''

import numpy as np
import quantities as pq


class SpikeRecord:
    '''
    Detected spikes and detection statistics for one channel.

    A record is created with ``loaded=False`` as soon as detection starts on
    the channel and only flipped to True once every step succeeded, so a
    channel that was requested but never loaded stays distinguishable from
    a fully processed one.

    *Attributes*:
        :loaded: (bool) Detection completed for this channel.
        :channel: (int) 1-based channel ordinal.
        :settings: (DetectionSettings) Snapshot of the settings used.
        :threshold: (float) Signed detection threshold, in the units of the
            filtered signal.
        :noise_estimate: (float) ``median(|x|) / 0.6745`` over unblanked samples.
        :sd: (float) Standard deviation of the unblanked filtered signal.
        :duration: (Quantity) Length of the analysed signal, in seconds.
        :waveforms: (ndarray) One row per accepted spike.
        :spike_times: (Quantity) Peak times, in seconds.
        :window: (tuple) Excision window (pre, post) in milliseconds.
        :covariance: (ndarray) Background noise covariance of windows of the
            waveform length.
        :n_removed: (int) Spikes discarded for exceeding the amplitude ceiling.
    '''

    def __init__(self, channel, settings=None):
        self.loaded = False
        self.channel = int(channel)
        self.settings = settings
        self.threshold = None
        self.noise_estimate = None
        self.sd = None
        self.duration = None
        self.waveforms = None
        self.spike_times = None
        self.window = None
        self.covariance = None
        self.n_removed = 0

    @property
    def count(self):
        if self.spike_times is None:
            return 0
        return len(self.spike_times)

    def spike_times_in(self, units='s'):
        '''Spike times as a plain array in ``units``.'''
        if self.spike_times is None:
            return np.empty(0)
        return self.spike_times.rescale(units).magnitude

    def __repr__(self):
        state = f"{self.count} spikes" if self.loaded else "not loaded"
        return f"<SpikeRecord channel {self.channel}: {state}>"

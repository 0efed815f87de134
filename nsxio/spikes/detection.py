"""
Threshold based spike detection on a continuous NSx channel.

For every channel the signal is:

  1. band-pass filtered with a zero-phase (forward-backward) filter,
  2. converted to analog units when the channel has an integral
     digital/analog scale factor,
  3. thresholded at a multiple of the robust noise estimate
     ``median(|x|) / 0.6745`` (Quian Quiroga et al., 2004), computed outside
     the blanking intervals,
  4. searched for peaks beyond the threshold: troughs for a negative
     multiplier, crests for a positive one,
  5. cut into one waveform per peak, dropping peaks too close to the signal
     edges or to a blanking interval and waveforms exceeding the amplitude
     ceiling.

A noise covariance estimate, computed from randomly placed windows of the
filtered signal, is stored with the spikes for later whitening or PCA.
"""

import copy
import logging
import math
import warnings

import numpy as np
import quantities as pq
from scipy import signal as scipy_signal

from nsxio.core import SpikeRecord, UnsupportedSamplingRate
from nsxio.utils.settings import parse_settings, to_magnitude, to_pair, to_intervals

default_logger = logging.getLogger(__name__)

MAD_TO_SD = 0.6745
MIN_SAMPLING_RATE = 2e4
MAX_COVARIANCE_WINDOWS = 10000

filter_type_aliases = {
    "fir": "FIR",
    "FIR": "FIR",
    "butter": "butter",
    "Butter": "butter",
    "butterworth": "butter",
    "Butterworth": "butter",
}


class DetectionSettings:
    """
    Settings of one spike detection run.

    *Attributes* (defaults):
        :threshold: (-4) Multiple of the noise estimate. Negative detects
            troughs, positive detects crests.
        :bandpass: ((300, 5000)) Pass band in Hz.
        :filter_type: ('FIR') ``'FIR'`` or ``'butter'``.
        :filter_order: (1024) Number of zeros of the FIR filter, or poles of
            the Butterworth filter (which should stay low, e.g. 2 or 4).
        :blank: ([]) ``(start, end)`` intervals in seconds ignored for both
            the threshold and the spike extraction.
        :channels: (None) 1-based channels to process, None for all loaded.
        :max_amplitude: (1000) Waveforms with any sample beyond this value, in
            analog units, are discarded as noise.
        :window: ((-0.6, 1)) Waveform window around each peak, in ms.
        :random_state: (None) Seed or numpy Generator of the covariance
            estimate. None draws different windows on every run.

    Time and frequency settings also accept quantities.
    """

    defaults = {
        "threshold": -4.0,
        "bandpass": (300.0, 5000.0),
        "filter_type": "FIR",
        "filter_order": 1024,
        "blank": [],
        "channels": None,
        "max_amplitude": 1e3,
        "window": (-0.6, 1.0),
        "random_state": None,
    }

    def __init__(self, **kwargs):
        settings = dict(self.defaults)
        settings.update(kwargs)

        self.threshold = float(settings["threshold"])
        if self.threshold == 0 or not np.isfinite(self.threshold):
            raise ValueError(f"threshold must be a non zero multiplier, got {settings['threshold']}")
        self.bandpass = to_pair(settings["bandpass"], "Hz", "bandpass")
        try:
            self.filter_type = filter_type_aliases[settings["filter_type"]]
        except (KeyError, TypeError):
            raise ValueError(f"Unknown filter type: {settings['filter_type']!r}") from None
        self.filter_order = int(settings["filter_order"])
        self.blank = to_intervals(settings["blank"], "s", "blank")
        channels = settings["channels"]
        if channels is not None:
            channels = tuple(int(c) for c in np.atleast_1d(channels))
        self.channels = channels
        self.max_amplitude = float(settings["max_amplitude"])
        self.window = to_pair(settings["window"], "ms", "window")
        self.random_state = settings["random_state"]

    @classmethod
    def from_kwargs(cls, kwargs, logger=default_logger):
        """Build settings from keyword arguments, ignoring unknown keys with a warning."""
        return cls(**parse_settings(cls.defaults, kwargs, "detect_spikes", logger=logger))

    @property
    def direction(self):
        return 1.0 if self.threshold > 0 else -1.0

    def __repr__(self):
        return (
            f"<DetectionSettings threshold={self.threshold} bandpass={self.bandpass} "
            f"{self.filter_order}-order {self.filter_type} window={self.window} ms>"
        )


def window_bounds(window, sampling_rate):
    """
    Sample offsets ``(pre, post)`` of a ``(start, stop)`` window in ms.

    ``pre`` is floored and ``post`` ceiled, so the waveform covers at least the
    requested window and holds ``post - pre + 1`` samples.
    """
    pre = math.floor(window[0] * sampling_rate / 1e3)
    post = math.ceil(window[1] * sampling_rate / 1e3)
    return pre, post


def blanking_mask(n_samples, blank, sampling_rate):
    """Boolean mask, False for samples inside any ``[start, end)`` interval."""
    mask = np.ones(n_samples, dtype=bool)
    for start, end in blank:
        lo = min(max(int(round(start * sampling_rate)), 0), n_samples)
        hi = min(max(int(round(end * sampling_rate)), 0), n_samples)
        mask[lo:hi] = False
    return mask


def estimate_covariance(filtered, window_length, random_state=None, max_windows=MAX_COVARIANCE_WINDOWS):
    """
    Covariance of randomly placed windows of ``filtered``.

    Up to ``min(max_windows, round(n / 2))`` distinct start positions are drawn
    without replacement, so the same stretch of signal is never sampled
    twice. The draw differs on every call unless ``random_state`` is given.

    Returns
    -------
    ndarray
        ``(window_length, window_length)`` covariance matrix, filled with NaN
        when fewer than 2 windows fit in the signal.
    """
    n_samples = len(filtered)
    n_positions = n_samples - window_length + 1
    n_windows = min(max_windows, int(round(n_samples / 2)), max(n_positions, 0))
    if n_windows < 2:
        return np.full((window_length, window_length), np.nan)

    rng = np.random.default_rng(random_state)
    starts = rng.choice(n_positions, size=n_windows, replace=False)
    waves = filtered[starts[:, np.newaxis] + np.arange(window_length)]
    return np.cov(waves, rowvar=False)


class SpikeDetector:
    """
    Detect spikes on continuous signals sampled at ``sampling_rate``.

    The filter is designed once, on construction, and reused for every
    channel passed to :meth:`detect`.

    Parameters
    ----------
    sampling_rate: float
        In Hz, must be at least 20 kHz.
    settings: DetectionSettings | None
        None uses the defaults.
    """

    def __init__(self, sampling_rate, settings=None, logger=default_logger):
        sampling_rate = float(to_magnitude(sampling_rate, "Hz"))
        if sampling_rate < MIN_SAMPLING_RATE:
            raise UnsupportedSamplingRate(
                f"Need a high sampling frequency file to run spike detection and sorting "
                f"({sampling_rate:g} Hz < {MIN_SAMPLING_RATE:g} Hz)"
            )
        self.sampling_rate = sampling_rate
        self.settings = settings if settings is not None else DetectionSettings()
        self.logger = logger
        self._design_filter()

    def _design_filter(self):
        settings = self.settings
        if settings.filter_type == "FIR":
            self._taps = scipy_signal.firwin(
                settings.filter_order + 1, settings.bandpass, pass_zero=False, fs=self.sampling_rate
            )
            self._sos = None
        else:
            self._taps = None
            self._sos = scipy_signal.butter(
                settings.filter_order, settings.bandpass, btype="bandpass", output="sos", fs=self.sampling_rate
            )

    @property
    def padlen(self):
        """Samples padded on each side by the forward-backward filter, as scipy computes it."""
        if self._sos is not None:
            zeros = min((self._sos[:, 2] == 0).sum(), (self._sos[:, 5] == 0).sum())
            return 3 * (2 * len(self._sos) + 1 - int(zeros))
        return 3 * len(self._taps)

    def filter(self, raw):
        """Zero-phase band-pass filtered copy of ``raw`` as float64."""
        raw = np.asarray(raw, dtype="float64")
        if self._sos is not None:
            return scipy_signal.sosfiltfilt(self._sos, raw)
        return scipy_signal.filtfilt(self._taps, 1.0, raw)

    def to_analog(self, filtered, channel, electrode=None):
        """
        Divide ``filtered`` by the digital/analog scale factor of ``electrode``.

        The signal is returned unchanged when there is no descriptor (legacy
        files) and, with a warning, when the factor is not an integer.
        """
        if electrode is None:
            return filtered
        if not electrode.has_integral_scale:
            warnings.warn(
                f"Channel {channel} has a weird digital:analog ratio ({electrode.scale_factor}), "
                f"not converting to analog units",
                UserWarning,
            )
            return filtered
        return filtered / electrode.scale_factor

    def find_peaks(self, filtered, threshold):
        """
        Indexes of peaks of ``filtered`` beyond ``threshold``.

        Peaks are searched on the signal oriented by the sign of the
        threshold multiplier, and must be strictly larger than both
        neighbours.
        """
        oriented = self.settings.direction * filtered
        peaks, _ = scipy_signal.find_peaks(oriented, height=abs(threshold))
        # find_peaks also reports the middle of flat plateaus
        strict = (oriented[peaks] > oriented[peaks - 1]) & (oriented[peaks] > oriented[peaks + 1])
        return peaks[strict]

    def accept_peaks(self, peaks, n_samples):
        """Drop peaks whose waveform window crosses a signal edge or a blanking interval."""
        pre, post = window_bounds(self.settings.window, self.sampling_rate)
        keep = (peaks + pre >= 0) & (peaks + post < n_samples)
        win_start = (peaks + pre) / self.sampling_rate
        win_stop = (peaks + post) / self.sampling_rate
        for start, end in self.settings.blank:
            keep &= ~((win_start < end) & (win_stop >= start))
        return peaks[keep]

    def detect(self, raw, channel, electrode=None):
        """
        Run the detection on the samples of one channel.

        Parameters
        ----------
        raw: ndarray
            1D samples of the channel, all segments concatenated.
        channel: int
            1-based channel ordinal, stored in the record.
        electrode: ElectrodeDescriptor | None
            Used for the conversion to analog units.

        Returns
        -------
        SpikeRecord
        """
        settings = self.settings
        record = SpikeRecord(channel, settings=copy.copy(settings))
        self.logger.info(
            f"Filtering channel {channel} ({settings.bandpass[0]:g} to {settings.bandpass[1]:g} Hz, "
            f"{settings.filter_order}-order {settings.filter_type})"
        )
        if len(raw) <= self.padlen:
            raise ValueError(
                f"Channel {channel} has {len(raw)} samples, at least {self.padlen + 1} are needed "
                f"for a {settings.filter_order}-order {settings.filter_type} filter"
            )
        filtered = self.to_analog(self.filter(raw), channel, electrode)
        n_samples = len(filtered)

        mask = blanking_mask(n_samples, settings.blank, self.sampling_rate)
        if not mask.any():
            raise ValueError(f"Blanking intervals cover the whole signal of channel {channel}")
        unblanked = filtered[mask]
        record.noise_estimate = float(np.median(np.abs(unblanked)) / MAD_TO_SD)
        record.threshold = record.noise_estimate * settings.threshold
        record.sd = float(np.std(unblanked))
        record.duration = pq.Quantity(n_samples / self.sampling_rate, "s")

        peaks = self.find_peaks(filtered, record.threshold)
        peaks = self.accept_peaks(peaks, n_samples)

        pre, post = window_bounds(settings.window, self.sampling_rate)
        offsets = np.arange(pre, post + 1)
        waveforms = filtered[peaks[:, np.newaxis] + offsets].reshape(len(peaks), len(offsets))

        too_large = np.any(np.abs(waveforms) > settings.max_amplitude, axis=1)
        record.n_removed = int(too_large.sum())
        record.waveforms = waveforms[~too_large]
        record.spike_times = pq.Quantity(peaks[~too_large] / self.sampling_rate, "s")
        record.window = settings.window
        record.covariance = estimate_covariance(filtered, len(offsets), random_state=settings.random_state)
        record.loaded = True
        self.logger.info(
            f"Found {record.count} spikes on channel {channel} "
            f"({record.n_removed} were auto-removed due to large amplitude)"
        )
        return record

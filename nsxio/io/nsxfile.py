"""
Session level access to one NSx file.

:class:`NSxFile` adds to :class:`nsxio.rawio.NSxRawIO` the state of an
interactive session: the samples of the last read, the spikes detected on
them and the request that produced them.

Example:

    >>> import nsxio
    >>> with nsxio.open('datafile001.ns5') as nsx:
    ...     nsx.read(channels=[1, 2], time=[10, 20])
    ...     nsx.detect_spikes(threshold=-4.5)
    ...     print(nsx.spikes[1].count)

"""

import logging

import numpy as np
import quantities as pq

from nsxio.core import NoDataLoaded, ReadRequest, SessionState, SpikeRecord
from nsxio.core.request import SECONDS, normalize_units
from nsxio.rawio.nsxrawio import NSxRawIO
from nsxio.spikes import DetectionSettings, SpikeDetector, export_spikes_ums
from nsxio.utils.rereference import RerefSettings, common_reref
from nsxio.utils.settings import parse_settings


class NSxFile(NSxRawIO):
    """
    An open NSx file with the data and spikes loaded from it.

    Parameters
    ----------
    filename: str | Path
        Full path of the .nsX file.
    timezone: str | tzinfo | None, default: None
        Timezone of ``date_local``, None for the local timezone.
    use_ram: bool, default: True
        Read every channel of a segment at once and keep the requested ones
        (fast, needs memory for all channels). False maps the file and only
        copies the requested channels out.
    verbose: bool, default: False
        Log debug messages of this session.

    The header is read and the segments indexed on construction; a file that
    cannot be parsed is closed before the error propagates.
    """

    name = "NSx file"
    description = "Segmented continuous signals of a Blackrock NSx file"

    def __init__(self, filename, timezone=None, use_ram=True, verbose=False):
        NSxRawIO.__init__(self, filename=filename, timezone=timezone)
        self.use_ram = use_ram
        self.verbose = verbose
        if verbose:
            self.logger.setLevel(logging.DEBUG)
        self.data = None
        self.spikes = {}
        self.read_settings = None
        self.parse_header()

    @property
    def loaded_channels(self):
        if self.data is None:
            return ()
        return self.data.channels

    @property
    def date(self):
        return self.metadata.date

    @property
    def date_local(self):
        return self.metadata.date_local

    @property
    def duration(self):
        """Duration of every segment, in seconds."""
        return pq.Quantity(self.durations, "s")

    @property
    def total_duration(self):
        return float(self.durations.sum())

    def _check_data(self):
        self._check_open()
        if self.data is None or not self.state.has_data:
            raise NoDataLoaded("No data loaded, use read() first")

    def _select_channels(self, channels):
        if channels is None:
            return tuple(range(1, self.channel_count + 1))
        channels = np.atleast_1d(channels).astype("int64")
        if channels.size == 0 or np.all(channels < 1):
            return tuple(range(1, self.channel_count + 1))
        if np.any(channels < 1):
            raise ValueError(f"Channels are numbered from 1, got {channels.tolist()}")
        if np.any(channels > self.channel_count):
            raise ValueError(
                f"Channels out of range: the file holds channels 1 to {self.channel_count}, "
                f"got {channels[channels > self.channel_count].tolist()}"
            )
        return tuple(int(c) for c in channels)

    def _clamp_time(self, time, units):
        if time is None:
            time = (-np.inf, np.inf)
        elif isinstance(time, pq.Quantity):
            time = time.rescale("s").magnitude
            units = SECONDS
        time = np.asarray(time, dtype="float64").ravel()
        if time.size != 2:
            raise ValueError(f"time must be a (start, end) pair, got {time.size} values")
        if time[0] > time[1]:
            raise ValueError(f"time start ({time[0]}) is after time end ({time[1]})")
        units = normalize_units(units)
        if units == SECONDS:
            low, high = 0.0, self.total_duration
        else:
            low, high = 1.0, float(self.datapoints.sum())
        # a start past the end is left for the segment resolver to reject
        start = max(time[0], low)
        end = max(min(time[1], high), start)
        return (start, end), units

    def read(self, channels=None, time=None, units="s", downsample=1, channel=None, **kwargs):
        """
        Load samples of the file into :attr:`data`.

        Parameters
        ----------
        channels: int | list | None
            1-based channels, in the order wanted. None, an empty list or
            only values below 1 read every channel. ``channel`` is an alias.
        time: (start, end) | Quantity | None
            Stretch to read in ``units``, None for the whole file. Bounds
            are clamped to the recording.
        units: str
            ``'s'`` or ``'datapoints'`` (1-based, inclusive).
        downsample: int
            Keep every Nth sample. No anti-aliasing filter is applied.

        Returns
        -------
        LoadedData
            One int16 matrix per segment, also stored in :attr:`data`.
        """
        self._check_header()
        parse_settings({}, kwargs, "read", logger=self.logger)
        if channels is None and channel is not None:
            channels = channel

        time, units = self._clamp_time(time, units)
        request = ReadRequest(self._select_channels(channels), time, units=units, downsample=downsample)
        self.resolve(request)
        self.read_settings = request

        self.logger.info(f"Reading {len(request.channels)} channel(s) from {time[0]:g} to {time[1]:g} {units}")
        self.data = self.get_analogsignal_chunk(request, use_ram=self.use_ram)
        self.state = SessionState.DATA_LOADED
        return self.data

    def detect_spikes(self, **kwargs):
        """
        Detect spikes on the loaded channels.

        See :class:`nsxio.spikes.DetectionSettings` for the accepted keyword
        settings. The result of every channel is stored in :attr:`spikes`,
        replacing any earlier detection on that channel.

        Returns
        -------
        dict
            :class:`SpikeRecord` by channel, for the processed channels.
        """
        self._check_data()
        settings = DetectionSettings.from_kwargs(kwargs, logger=self.logger)
        detector = SpikeDetector(self.sampling_rate, settings, logger=self.logger)
        channels = settings.channels if settings.channels is not None else self.loaded_channels

        detected = {}
        for channel in channels:
            self.spikes[channel] = SpikeRecord(channel, settings=settings)
            if self.data.channel_index(channel) is None:
                self.logger.info(f"Channel {channel} is not loaded, skipping spike detection")
                detected[channel] = self.spikes[channel]
                continue
            electrode = self.electrodes[channel - 1] if self.electrodes else None
            detected[channel] = detector.detect(self.data.channel_signal(channel), channel, electrode)
            self.spikes[channel] = detected[channel]

        if any(record.loaded for record in self.spikes.values()):
            self.state = SessionState.SPIKES_LOADED
        return detected

    def export_spikes_ums(self, channels=None):
        """
        Spikes in the UltraMegaSort2000 structure, one dict per channel.

        Channels without a detection are processed first with the default
        settings.
        """
        self._check_data()
        if channels is None:
            channels = self.loaded_channels
        channels = [int(c) for c in np.atleast_1d(channels)]
        missing = [c for c in channels if c not in self.spikes or not self.spikes[c].loaded]
        if missing:
            self.logger.info(f"Running spike detection with default settings on channels {missing}")
            self.detect_spikes(channels=missing)
        return export_spikes_ums(self.spikes, self.sampling_rate, channels=channels, logger=self.logger)

    def common_reref(self, **kwargs):
        """
        Re-reference :attr:`data` to its common average.

        See :class:`nsxio.utils.RerefSettings` for the accepted settings. The
        loaded matrices are replaced by float64 ones.
        """
        self._check_data()
        settings = RerefSettings.from_kwargs(kwargs, logger=self.logger)
        self.data = common_reref(
            self.data, self.electrode_labels, electrodes=self.electrodes, logger=self.logger, **settings.as_kwargs()
        )
        return self.data

    def reset(self):
        """Forget loaded data, spikes and the last request. The file stays open."""
        self._check_open()
        self.data = None
        self.spikes = {}
        self.read_settings = None
        self.state = SessionState.OPENED


def open(filename, timezone=None, use_ram=True, verbose=False):
    """Open ``filename`` and return an :class:`NSxFile` with its header parsed."""
    return NSxFile(filename, timezone=timezone, use_ram=use_ram, verbose=verbose)

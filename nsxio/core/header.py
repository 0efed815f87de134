'''
This module defines :class:`FileMetadata` and :class:`ElectrodeDescriptor`,
the description of an NSx file produced once, when its header is parsed.
'''

import datetime


class FileMetadata:
    '''
    File level information decoded from the NSx basic header.

    Instances are immutable: every attribute is set at construction time and
    any later assignment raises :class:`AttributeError`.

    *Attributes*:
        :file_id: (str) 8 character format identifier, one of ``NEURALSG``
            (legacy, file spec 2.1), ``NEURALCD`` or ``BRSMPGRP``.
        :file_spec: (str) File specification, ``'2.1'`` for legacy files,
            ``'major.minor'`` otherwise.
        :label: (str) Sampling group label, e.g. ``'30 kS/s'``.
        :comment: (str) Free text comment, empty for legacy files.
        :timestamp_resolution: (int) Clock ticks per second.
        :period: (int) Clock ticks per sample.
        :sampling_rate: (float) ``timestamp_resolution / period`` in Hz.
        :channel_count: (int) Number of interleaved channels.
        :channel_ids: (tuple) Electrode id of each channel.
        :date: (datetime) Recording start in UTC, ``None`` for legacy files.
        :date_local: (datetime) ``date`` projected into the session timezone.
    '''

    def __init__(self, file_id, file_spec, label, period, channel_count,
                 timestamp_resolution=30000, comment='', channel_ids=(),
                 date=None, timezone=None):
        object.__setattr__(self, 'file_id', file_id)
        object.__setattr__(self, 'file_spec', file_spec)
        object.__setattr__(self, 'label', label)
        object.__setattr__(self, 'comment', comment)
        object.__setattr__(self, 'timestamp_resolution', int(timestamp_resolution))
        object.__setattr__(self, 'period', int(period))
        object.__setattr__(self, 'channel_count', int(channel_count))
        object.__setattr__(self, 'channel_ids', tuple(int(i) for i in channel_ids))
        object.__setattr__(self, 'date', date)
        object.__setattr__(self, 'date_local', project_datetime(date, timezone))

    def __setattr__(self, name, value):
        raise AttributeError(f"{self.__class__.__name__} is read-only, cannot set '{name}'")

    @property
    def sampling_rate(self):
        return self.timestamp_resolution / self.period

    @property
    def is_legacy(self):
        return self.file_id == 'NEURALSG'

    def __repr__(self):
        return (f"<FileMetadata {self.file_id} spec {self.file_spec}: "
                f"{self.channel_count} channels at {self.sampling_rate:g} Hz>")


def project_datetime(date, timezone=None):
    '''
    Project a UTC datetime into ``timezone``.

    ``timezone`` can be a tz database name (``'America/New_York'``), a
    :class:`datetime.tzinfo` or None for the system local timezone.
    '''
    if date is None:
        return None
    if timezone is None:
        return date.astimezone()
    if isinstance(timezone, str):
        if timezone.upper() == 'UTC':
            timezone = datetime.timezone.utc
        else:
            from zoneinfo import ZoneInfo
            timezone = ZoneInfo(timezone)
    return date.astimezone(timezone)


class ElectrodeDescriptor:
    '''
    Per channel information decoded from one 66-byte extended header block.

    A block whose type tag is not ``'CC'`` only keeps its ``type``; every other
    field is left as None (or empty for the label).

    *Attributes*:
        :type: (str) 2 character type tag, ``'CC'`` for valid blocks.
        :electrode_id: (int)
        :label: (str) Electrode label, e.g. ``'elec1'`` or ``'ainp1'``.
        :connector_bank: (str) Bank letter, ``'A'`` for connector 1.
        :connector_pin: (int)
        :digital_range: (tuple) (min, max) digital values.
        :analog_range: (tuple) (min, max) analog values.
        :analog_units: (str) Units of the analog range, e.g. ``'uV'``.
        :high_freq_corner, high_freq_order, high_filter_type:
        :low_freq_corner, low_freq_order, low_filter_type: hardware filter
            settings; corners are in mHz, filter types are ``'None'`` or
            ``'Butterworth'``.
    '''

    valid_type = 'CC'
    filter_types = ('None', 'Butterworth')

    def __init__(self, type, electrode_id=None, label='', connector_bank=None,
                 connector_pin=None, digital_range=None, analog_range=None,
                 analog_units=None, high_freq_corner=None, high_freq_order=None,
                 high_filter_type=None, low_freq_corner=None, low_freq_order=None,
                 low_filter_type=None):
        self.type = type
        self.electrode_id = electrode_id
        self.label = label
        self.connector_bank = connector_bank
        self.connector_pin = connector_pin
        self.digital_range = digital_range
        self.analog_range = analog_range
        self.analog_units = analog_units
        self.high_freq_corner = high_freq_corner
        self.high_freq_order = high_freq_order
        self.high_filter_type = high_filter_type
        self.low_freq_corner = low_freq_corner
        self.low_freq_order = low_freq_order
        self.low_filter_type = low_filter_type

    @property
    def is_valid(self):
        return self.type == self.valid_type

    @property
    def scale_factor(self):
        '''
        Digital units per analog unit, ``max(digital) / max(analog)``.

        None when the descriptor carries no ranges or the analog maximum is 0.
        '''
        if self.digital_range is None or self.analog_range is None:
            return None
        if self.analog_range[1] == 0:
            return None
        return float(self.digital_range[1]) / float(self.analog_range[1])

    @property
    def has_integral_scale(self):
        factor = self.scale_factor
        return factor is not None and factor == round(factor)

    def __repr__(self):
        if not self.is_valid:
            return f"<ElectrodeDescriptor type={self.type!r} (not read)>"
        return f"<ElectrodeDescriptor {self.electrode_id} {self.label!r} bank {self.connector_bank}>"

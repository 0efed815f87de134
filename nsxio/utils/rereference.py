'''
Common average re-referencing of loaded NSx samples.

Each loaded channel is first centred on its own mean. The mean across
channels is then subtracted at every sample, either over all loaded channels
or separately for every electrode bank (labels sharing the same letters once
digits are removed, e.g. ``'elecA01'`` and ``'elecA17'``) that holds exactly
``group_size`` loaded channels. Channels whose label contains one of
``ignore_electrodes`` (analog inputs, sync pulses) are neither used for the
reference nor re-referenced.
'''

import logging
import re

import numpy as np

from nsxio.core import LoadedData
from nsxio.utils.settings import parse_settings

default_logger = logging.getLogger(__name__)

DEFAULT_IGNORE_ELECTRODES = ('ainp1', 'ainp2', 'pulses', 'digin')


class RerefSettings:
    '''
    Settings of :func:`common_reref`.

    *Attributes* (defaults):
        :group_size: (inf) Size of the electrode banks re-referenced
            separately, inf for one common reference.
        :convert_units: (True) Convert to analog units afterwards.
        :ignore_electrodes: (``('ainp1', 'ainp2', 'pulses', 'digin')``)
            Label fragments of channels left out.
    '''

    defaults = {
        'group_size': np.inf,
        'convert_units': True,
        'ignore_electrodes': DEFAULT_IGNORE_ELECTRODES,
    }

    def __init__(self, group_size=np.inf, convert_units=True,
                 ignore_electrodes=DEFAULT_IGNORE_ELECTRODES):
        if group_size < 1:
            raise ValueError(f"group_size must be at least 1, got {group_size}")
        self.group_size = group_size
        self.convert_units = bool(convert_units)
        if isinstance(ignore_electrodes, str):
            ignore_electrodes = (ignore_electrodes,)
        self.ignore_electrodes = tuple(ignore_electrodes)

    @classmethod
    def from_kwargs(cls, kwargs, logger=default_logger):
        return cls(**parse_settings(cls.defaults, kwargs, 'common_reref', logger=logger))

    def as_kwargs(self):
        return {
            'group_size': self.group_size,
            'convert_units': self.convert_units,
            'ignore_electrodes': self.ignore_electrodes,
        }


def electrode_bank(label):
    '''Electrode label with every digit removed.'''
    return re.sub(r'\d', '', label)


def ignored_mask(labels, ignore_electrodes):
    '''True for every label containing one of ``ignore_electrodes``.'''
    patterns = [p.lower() for p in ignore_electrodes]
    return np.array([any(p in label.lower() for p in patterns) for label in labels], dtype=bool)


def common_reref(data, labels, electrodes=None, group_size=np.inf, convert_units=True,
                 ignore_electrodes=DEFAULT_IGNORE_ELECTRODES, logger=default_logger):
    '''
    Re-reference loaded samples to their common average.

    Parameters
    ----------
    data: LoadedData
        Samples as returned by a read, one matrix per segment.
    labels: list of str
        Electrode label of every channel of the file (index = ordinal - 1).
    electrodes: list of ElectrodeDescriptor | None
        Descriptors used to convert to analog units. Conversion is skipped
        when None or empty (legacy files).
    group_size: int | float
        Size of the electrode banks to re-reference separately. When it is
        not smaller than the number of loaded channels, all channels share
        one reference.
    convert_units: bool
        Divide each channel by its digital/analog scale factor when it is an
        integer.
    ignore_electrodes: sequence of str
        Label fragments of channels to leave out.

    Returns
    -------
    LoadedData
        New float64 matrices; ``data`` is left untouched.
    '''
    loaded_labels = [labels[c - 1] for c in data.channels]
    ignoring = ignored_mask(loaded_labels, ignore_electrodes)

    logger.info('Centering each channel')
    segments = []
    for matrix in data:
        matrix = np.asarray(matrix, dtype='float64')
        if matrix.shape[1] > 0:
            matrix = matrix - np.nanmean(matrix, axis=1, keepdims=True)
        segments.append(matrix)

    if group_size < len(data.channels):
        banks = np.array([electrode_bank(label) for label in loaded_labels])
        bank_names = np.unique(banks)
        logger.info(f"Found {len(bank_names)} banks: {', '.join(bank_names)}")
        for bank in bank_names:
            members = banks == bank
            if members.sum() != group_size:
                logger.info(f"Bank '{bank}' is not a group of {group_size}, not subtracting means")
                continue
            if np.any(members & ignoring):
                ignored = [label for label, m in zip(loaded_labels, members & ignoring) if m]
                logger.info(f"Bank '{bank}': ignoring {', '.join(ignored)}")
            _subtract_mean(segments, members & ~ignoring)
    else:
        logger.info("Subtracting mean of all channels, ignoring channels in 'ignore_electrodes'")
        _subtract_mean(segments, ~ignoring)

    if convert_units and electrodes:
        for row, channel in enumerate(data.channels):
            electrode = electrodes[channel - 1]
            if not electrode.has_integral_scale:
                logger.warning(
                    f"Electrode {labels[channel - 1]} has a weird digital:analog ratio "
                    f"({electrode.scale_factor}), not converting to {electrode.analog_units or 'analog units'}"
                )
                continue
            for matrix in segments:
                matrix[row] /= electrode.scale_factor

    return LoadedData(segments, data.channels)


def _subtract_mean(segments, rows):
    if not np.any(rows):
        return
    for matrix in segments:
        if matrix.shape[1] == 0:
            continue
        reference = np.nanmean(matrix[rows], axis=0)
        matrix[rows] -= reference

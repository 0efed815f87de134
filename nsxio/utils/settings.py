'''
Helpers for the keyword settings accepted by the session operations.
'''

import logging

import numpy as np
import quantities as pq

default_logger = logging.getLogger(__name__)


def parse_settings(defaults, overrides, method_name, logger=default_logger):
    '''
    Merge ``overrides`` into a copy of ``defaults``.

    Keys that have no default are not settings of ``method_name``: they are
    ignored and reported with a warning on ``logger``.

    Parameters
    ----------
    defaults: dict
        Every accepted key, with its default value.
    overrides: dict
        Keyword arguments given by the caller.
    method_name: str
        Name used in the warning message.

    Returns
    -------
    settings: dict
    '''
    settings = dict(defaults)
    for key, value in overrides.items():
        if key in settings:
            settings[key] = value
        else:
            logger.warning(f"Not assigning '{key}': not a setting in the {method_name}() method")
    return settings


def to_magnitude(value, units):
    '''
    Plain number (or array) of ``value`` expressed in ``units``.

    Quantities are rescaled, anything else is assumed to already be in
    ``units`` and returned unchanged.

        >>> to_magnitude(1.5 * pq.ms, 's')
        0.0015
    '''
    if isinstance(value, pq.Quantity):
        magnitude = value.rescale(units).magnitude
        if magnitude.ndim == 0:
            return float(magnitude)
        return magnitude
    return value


def to_pair(value, units, name):
    '''A two element ``(low, high)`` tuple of floats in ``units``.'''
    pair = np.asarray(to_magnitude(value, units), dtype='float64').ravel()
    if pair.size != 2:
        raise ValueError(f"{name} must have two elements, got {pair.size}")
    return float(pair[0]), float(pair[1])


def to_intervals(value, units, name):
    '''A list of ``(start, end)`` float tuples in ``units``, empty for None.'''
    if value is None:
        return []
    intervals = np.asarray(to_magnitude(value, units), dtype='float64')
    if intervals.size == 0:
        return []
    intervals = intervals.reshape(-1, 2) if intervals.ndim < 2 else intervals
    if intervals.shape[1] != 2:
        raise ValueError(f"{name} must be a list of (start, end) pairs")
    return [(float(start), float(end)) for start, end in intervals]

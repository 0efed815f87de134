"""
Conversion of :class:`SpikeRecord` objects to the spike structure of the
UltraMegaSort2000 toolbox (Hill, Mehta & Kleinfeld, 2011).

Each exported channel is a dict mirroring the MATLAB structure, so it can be
saved with ``scipy.io.savemat`` and loaded straight into the toolbox.
"""

import logging
import math

import numpy as np

default_logger = logging.getLogger(__name__)


def align_sample(window, sampling_rate):
    """1-based index of the peak within a waveform cut with ``window`` (ms)."""
    return math.floor(-window[0] * sampling_rate / 1e3) + 1


def waveform_pca(waveforms):
    """
    Principal components of ``waveforms`` (one spike per row).

    The mean waveform is removed before the thin SVD. ``v`` holds the
    components as columns, as MATLAB's ``svd`` returns them.
    """
    centered = waveforms - waveforms.mean(axis=0)
    u, s, vt = np.linalg.svd(centered, full_matrices=False)
    return {"u": u, "s": np.diag(s), "v": vt.T}


def record_to_ums(record, sampling_rate):
    count = record.count
    times = record.spike_times_in("s")
    return {
        "params": {"Fs": sampling_rate},
        "info": {
            "channel": record.channel,
            "detect": {
                "stds": record.sd,
                "thresh": record.threshold,
                "dur": float(record.duration.rescale("s").magnitude),
                "align_sample": align_sample(record.window, sampling_rate),
                "event_channel": np.full(count, record.channel),
                "cov": record.covariance,
            },
            "pca": waveform_pca(record.waveforms),
            "align": {"aligned": 1},
        },
        "waveforms": record.waveforms,
        "spiketimes": times,
        "trials": np.ones(count),
        "unwrapped_times": times,
    }


def export_spikes_ums(records, sampling_rate, channels=None, logger=default_logger):
    """
    Export detected spikes to UltraMegaSort2000 structures.

    Parameters
    ----------
    records: dict
        :class:`SpikeRecord` by channel.
    sampling_rate: float
        In Hz.
    channels: list | None
        Channels to export, None for every record.

    Returns
    -------
    list of dict
        One structure per exported channel. Records that were not loaded, and
        channels with fewer than 2 spikes, are skipped.
    """
    if channels is None:
        channels = sorted(records)
    exported = []
    for channel in channels:
        record = records.get(channel)
        if record is None or not record.loaded:
            logger.info(f"Channel {channel} has no detected spikes, skipping")
            continue
        if record.count < 2:
            logger.info(f"Channel {channel} has only {record.count} spike(s), not enough to export")
            continue
        exported.append(record_to_ums(record, sampling_rate))
    return exported

"""
:mod:`nsxio.spikes` detects threshold crossings on loaded signals and exports
them for offline spike sorting.

.. autoclass:: SpikeDetector
.. autoclass:: DetectionSettings
.. autofunction:: export_spikes_ums

"""

from nsxio.spikes.detection import (DetectionSettings, SpikeDetector, estimate_covariance,
                                    blanking_mask, window_bounds)
from nsxio.spikes.export import export_spikes_ums, waveform_pca

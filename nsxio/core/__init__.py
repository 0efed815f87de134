"""
:mod:`nsxio.core` provides the plain objects describing an NSx file and what
has been read or detected from it.

Classes:

.. autoclass:: FileMetadata
.. autoclass:: ElectrodeDescriptor
.. autoclass:: Segment
.. autoclass:: ReadRequest
.. autoclass:: LoadedData
.. autoclass:: SpikeRecord
.. autoclass:: SessionState

"""

from nsxio.core.errors import (NSxError, UnsupportedFormat, UnsupportedSamplingRate,
                               RangeAfterEnd, NoDataLoaded, NoFileOpen, IOFailure)
from nsxio.core.header import FileMetadata, ElectrodeDescriptor
from nsxio.core.segment import Segment
from nsxio.core.request import ReadRequest
from nsxio.core.loadeddata import LoadedData
from nsxio.core.spikerecord import SpikeRecord
from nsxio.core.state import SessionState

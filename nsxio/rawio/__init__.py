"""
:mod:`nsxio.rawio` provides the low level classes for reading NSx files.

Classes:

.. autoclass:: nsxio.rawio.NSxRawIO

"""

from .nsxrawio import NSxRawIO

rawiolist = [
    NSxRawIO,
]

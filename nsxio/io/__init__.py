"""
:mod:`nsxio.io` provides :class:`NSxFile`, the session object returned by
:func:`nsxio.open`.

.. autoclass:: nsxio.io.NSxFile
.. autofunction:: nsxio.io.open

"""

from nsxio.io.nsxfile import NSxFile, open

iolist = [NSxFile]

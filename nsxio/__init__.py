'''
nsxio is a package for reading segmented Blackrock NSx recordings in Python,
together with spike detection on the recovered signals
'''
from nsxio.version import version as __version__

import logging

logging_handler = logging.StreamHandler()

from nsxio.core import *
from nsxio.io import NSxFile, open

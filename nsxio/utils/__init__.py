from nsxio.utils.settings import parse_settings, to_magnitude
from nsxio.utils.rereference import RerefSettings, common_reref

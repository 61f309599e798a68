"""jp2kit - controlled decode and encode of JPEG 2000 images."""

__all__ = [
    'get_option', 'set_option', 'reset_option',
    'is_jpeg2000', 'read_header', 'Header', 'Image',
    'Jp2Decoder', 'Jp2Encoder', 'CodecError',
    'FORMAT_J2K', 'FORMAT_JP2',
]

# Local imports
from jp2kit import version
from .options import get_option, set_option, reset_option
from .core import FORMAT_J2K, FORMAT_JP2
from .sniff import is_jpeg2000
from .header import Header, read_header
from .image import Image
from .context import CodecError
from .decoder import Jp2Decoder
from .encoder import Jp2Encoder

__version__ = version.version

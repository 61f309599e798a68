"""Describe a JPEG 2000 image from its main header alone.

No tile data is touched, the cost of reading a header does not depend upon
the size of the image.
"""
# Standard library imports
import logging
import struct
from typing import NamedTuple

# Local imports
from . import source as _source
from .codestream import Codestream, ends_with_eoc
from .core import FORMAT_JP2
from .jp2box import (
    ChannelDefinitionBox, ContiguousCodestreamBox, ImageHeaderBox,
    InvalidJp2kError, JP2HeaderBox, parse_jp2
)
from .sniff import codec_format

logger = logging.getLogger(__name__)


class Header(NamedTuple):
    """Image characteristics surfaced by the main header.

    Attributes
    ----------
    width, height : int
        Dimensions of the full resolution image.
    has_alpha : bool
        True if one of the components carries opacity.
    num_resolutions : int
        Number of resolution levels, one more than the number of wavelet
        decomposition levels.
    num_quality_layers : int
        Number of quality layers.
    num_components : int
        Number of image components.
    bit_depth : int
        Precision of the first component.
    codec_format : int
        FORMAT_JP2 or FORMAT_J2K.
    x0, y0 : int
        Offset of the image area on the reference grid.
    """
    width: int
    height: int
    has_alpha: bool
    num_resolutions: int
    num_quality_layers: int
    num_components: int = 1
    bit_depth: int = 8
    codec_format: int = FORMAT_JP2
    x0: int = 0
    y0: int = 0


def read_header(source):
    """Read the header of JPEG 2000 data.

    Parameters
    ----------
    source : bytes-like, binary stream, path or None
        The encoded data.

    Returns
    -------
    Header or None
        None if the data cannot be read or is not valid JPEG 2000.

    Raises
    ------
    TypeError
        If the source is of an unsupported kind.

    Examples
    --------
    >>> import jp2kit
    >>> hdr = jp2kit.read_header('astronaut.jp2')
    >>> hdr.width, hdr.height, hdr.num_resolutions
    (512, 512, 6)
    """
    try:
        payload = _source.load(source)
    except (OSError, ValueError) as err:
        logger.warning(f'Unable to read the JPEG 2000 source:  {err}')
        return None

    if payload is None:
        return None

    return parse_header(payload)


def parse_header(payload):
    """Same as read_header, but for data already reduced to bytes or a path.
    """
    result = parse_main_header(payload)
    if result is None:
        return None
    return result[0]


def parse_main_header(payload):
    """Parse the header and the main header segments of the codestream.

    Parameters
    ----------
    payload : bytes or pathlib.Path

    Returns
    -------
    tuple or None
        (Header, Codestream), or None if the data is not usable.
    """
    try:
        with _source.open_binary(payload) as (fptr, length):
            return _parse(fptr, length)
    except (OSError, InvalidJp2kError, struct.error) as err:
        logger.warning(f'Unable to read the JPEG 2000 header:  {err}')
        return None


def _parse(fptr, length):
    fmt = codec_format(fptr.read(12))
    if fmt is None:
        raise InvalidJp2kError('The data is not JPEG 2000.')
    fptr.seek(0)

    cdef = None
    if fmt == FORMAT_JP2:
        boxes = parse_jp2(fptr, length)

        jp2h = next(filter(lambda x: isinstance(x, JP2HeaderBox), boxes), None)
        if jp2h is None:
            raise InvalidJp2kError('No JP2 header box was found.')
        ihdr = next(
            filter(lambda x: isinstance(x, ImageHeaderBox), jp2h.box), None
        )
        if ihdr is None:
            raise InvalidJp2kError('No image header box was found.')
        cdef = next(
            filter(lambda x: isinstance(x, ChannelDefinitionBox), jp2h.box),
            None
        )

        jp2c = next(
            filter(lambda x: isinstance(x, ContiguousCodestreamBox), boxes),
            None
        )
        if jp2c is None:
            raise InvalidJp2kError('No codestream box was found.')
        offset, cs_length = jp2c.main_header_offset, jp2c.codestream_length
    else:
        offset, cs_length = 0, length

    fptr.seek(offset)
    codestream = Codestream(fptr, cs_length)

    if not ends_with_eoc(fptr, offset, cs_length):
        msg = 'The codestream does not end with an EOC marker, it appears '
        msg += 'to be truncated.'
        raise InvalidJp2kError(msg)

    siz, cod = codestream.siz, codestream.cod
    if cod.layers < 1:
        msg = f'Invalid number of quality layers: {cod.layers}.'
        raise InvalidJp2kError(msg)

    if cdef is not None:
        has_alpha = cdef.has_alpha
    else:
        has_alpha = siz.Csiz in (2, 4)

    header = Header(
        width=siz.xsiz - siz.xosiz,
        height=siz.ysiz - siz.yosiz,
        has_alpha=has_alpha,
        num_resolutions=cod.num_res + 1,
        num_quality_layers=cod.layers,
        num_components=siz.Csiz,
        bit_depth=siz.bitdepth[0],
        codec_format=fmt,
        x0=siz.xosiz,
        y0=siz.yosiz,
    )
    return header, codestream

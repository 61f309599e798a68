"""Recognize JPEG 2000 data from its first few bytes."""

# Local imports
from .core import (FORMAT_J2K, FORMAT_JP2,
                   JP2_SIGNATURE, JP2_SHORT_SIGNATURE, J2K_SIGNATURE)


# The long JP2 form must be tried before the short one, since it is a
# signature box whose contents are the short form.
_MAGIC_NUMBERS = (
    (JP2_SIGNATURE, FORMAT_JP2),
    (JP2_SHORT_SIGNATURE, FORMAT_JP2),
    (J2K_SIGNATURE, FORMAT_J2K),
)


def codec_format(data):
    """Determine the flavor of JPEG 2000 data from its leading bytes.

    Parameters
    ----------
    data : bytes-like or None
        At least the first 12 bytes of the data, if available.

    Returns
    -------
    int or None
        FORMAT_JP2, FORMAT_J2K, or None if the data is not recognized.
    """
    if data is None:
        return None

    try:
        prefix = bytes(memoryview(data)[:len(JP2_SIGNATURE)])
    except TypeError:
        return None

    if len(prefix) < 4:
        return None

    for magic, fmt in _MAGIC_NUMBERS:
        if prefix.startswith(magic):
            return fmt

    return None


def is_jpeg2000(data):
    """Return True if the data starts with a JP2 or J2K signature.

    Never raises; None, short input and foreign data are all simply False.

    Examples
    --------
    >>> from jp2kit import is_jpeg2000
    >>> is_jpeg2000(b'\\xff\\x4f\\xff\\x51\\x00\\x2f')
    True
    >>> is_jpeg2000(b'\\x89PNG\\r\\n\\x1a\\n')
    False
    """
    return codec_format(data) is not None

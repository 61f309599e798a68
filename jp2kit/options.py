"""
Manage jp2kit configuration settings.
"""
# Standard library imports
import copy

# Local imports
from . import version
from .lib import openjp2 as opj2


_original_options = {
    'lib.num_threads': 1,
    'lib.serialize_codec': False,
}
_options = copy.deepcopy(_original_options)


def set_option(key, value):
    """Set the value of the specified option.

    Available options:

        lib.num_threads
        lib.serialize_codec

    Parameters
    ----------
    key : str
        Name of a single option.
    value :
        New value of option.

    Option Descriptions
    -------------------
    lib.num_threads : int
        Set the number of threads OpenJPEG may use for a single decode or
        encode.  This option is only available with OpenJPEG 2.2.0 or higher.
        [default: 1]
    lib.serialize_codec : bool
        When True, only one decode or encode runs inside the OpenJPEG library
        at any time, process wide.  Intended for library builds that cannot
        run concurrent codecs. [default: False]

    See also
    --------
    get_option
    """
    if key not in _options.keys():
        raise KeyError(f'{key} not valid.')

    if key == 'lib.num_threads':
        if not isinstance(value, int) or isinstance(value, bool) or value < 1:
            msg = f'lib.num_threads must be a positive integer, not {value!r}.'
            raise ValueError(msg)
        if version.openjpeg_version_tuple < (2, 2, 0):
            msg = (
                f'Thread support is not available on versions of OpenJPEG '
                f'prior to 2.2.0.  Your version is {version.openjpeg_version}.'
            )
            raise RuntimeError(msg)
        if not opj2.has_thread_support():
            msg = 'The OpenJPEG library is not configured with thread support.'
            raise RuntimeError(msg)

    _options[key] = value


def get_option(key):
    """Return the value of the specified option

    Parameter
    ---------
    key : str
        Name of a single option.

    Returns
    -------
    result : the value of the option.

    See also
    --------
    set_option
    """
    return _options[key]


def reset_option(key):
    """
    Reset one or more options to their default value.

    Pass "all" as argument to reset all options.

    Parameter
    ---------
    key : str
        Name of a single option.
    """
    global _options
    if key == 'all':
        _options = copy.deepcopy(_original_options)
    else:
        if key not in _options.keys():
            raise KeyError(f'{key} not valid.')
        _options[key] = _original_options[key]

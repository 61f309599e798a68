"""
Configure jp2kit to use installed libraries if possible.
"""
from configparser import ConfigParser, NoOptionError, NoSectionError
import ctypes
from ctypes.util import find_library
import os
import pathlib
import platform
import warnings


def jp2kitrc_fname():
    """Return the path to the configuration file.

    Search order:
        1) current working directory
        2) environ var XDG_CONFIG_HOME
        3) $HOME/.config/jp2kit/jp2kitrc
    """

    # Current directory.
    path = pathlib.Path.cwd() / 'jp2kitrc'
    if path.exists():
        return path

    confdir_path = get_configdir()
    if confdir_path is not None:
        path = confdir_path / 'jp2kitrc'
        if path.exists():
            return path

    # didn't find a configuration file.
    return None


def _determine_full_path(libname):
    """
    Try to determine the path to the library.

    Parameters
    ----------
    libname : str
        short name for library (openjp2)

    Returns
    -------
    path to the library or None if the library was not found
    """

    # A location specified by the configuration file has precedence.
    path = read_config_file(libname)
    if path is not None:
        return path

    # Cygwin ships the library under a versioned name.
    if platform.system().startswith('CYGWIN'):
        g = pathlib.Path('/usr/bin').glob(f'cyg{libname}*.dll')
        path = next(g, None)
        if path is not None and path.exists():
            return path

    # Can ctypes find it anyway?
    path = find_library(libname)
    if path is not None:
        return pathlib.Path(path)
    else:
        return None


def read_config_file(libname):
    """
    Extract library locations from a configuration file.

    Parameters
    ----------
    libname : str
        Name of the library, i.e. 'openjp2'

    Returns
    -------
    path : None or path
        None if no location is specified, otherwise a path to the library
    """
    filename = jp2kitrc_fname()
    if filename is None:
        # There's no library file path to return in this case.
        return None

    # Read the configuration file for the library location.
    parser = ConfigParser()
    parser.read(filename)
    try:
        path = parser.get('library', libname)
    except (NoOptionError, NoSectionError):
        path = None
    else:
        # Turn it into a pathlib object.
        path = pathlib.Path(path)
    return path


def jp2kit_config(libname):
    """
    Try to ascertain the location of a native library and load it.

    Parameters
    ----------
    libname : str
        Currently only 'openjp2'

    Returns
    -------
    loaded shared library, or None
    """
    path = _determine_full_path(libname)

    if path is None or str(path) in ['None', 'none']:
        # Either could not find a library via ctypes or
        # user-configuration-file, or the user intentionally does not want
        # the library to load.
        msg = f'The {libname} library could not be found.'
        warnings.warn(msg, UserWarning)
        return None

    loader = ctypes.windll.LoadLibrary if os.name == 'nt' else ctypes.CDLL
    try:
        lib = loader(str(path))
    except OSError:
        msg = f'The {libname} library at {path} could not be loaded.'
        warnings.warn(msg, UserWarning)
        lib = None

    return lib


def get_configdir():
    """Return the configuration directory.

    Default is $HOME/.config/jp2kit.  You can override this with the
    XDG_CONFIG_HOME environment variable.
    """
    if 'XDG_CONFIG_HOME' in os.environ:
        return pathlib.Path(os.environ['XDG_CONFIG_HOME']) / 'jp2kit'

    if 'HOME' in os.environ and platform.system() != 'Windows':
        # HOME is set by WinPython to something unusual, so we don't
        # necessarily want that.
        return pathlib.Path(os.environ['HOME']) / '.config' / 'jp2kit'

    # Last stand.
    return pathlib.Path.home() / 'jp2kit'

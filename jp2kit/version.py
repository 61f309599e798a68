"""
This file is part of jp2kit, controlled decode and encode of JPEG 2000
imagery.

License:  MIT
"""

# Standard library imports ...
import sys

# Third party library imports ...
from packaging.version import parse
import numpy as np

# Local imports ...
from .lib import openjp2 as opj2

# Do not change the format of this next line!  Doing so risks breaking
# setup.py
version = "0.3.0"

version_tuple = parse(version).release

openjpeg_version = opj2.version()
openjpeg_version_tuple = parse(openjpeg_version).release

__doc__ = f"""\
This is jp2kit **{version}**

* OpenJPEG version:  **{openjpeg_version}**
"""

info = f"""\
Summary of jp2kit configuration
-------------------------------

jp2kit        {version}
OpenJPEG      {openjpeg_version}
Python        {sys.version}
sys.platform  {sys.platform}
sys.maxsize   {sys.maxsize}
numpy         {np.__version__}
"""

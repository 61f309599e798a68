"""This package organizes the native libraries employed by jp2kit."""
from . import openjp2 as openjp2

__all__ = ['openjp2']

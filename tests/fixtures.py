"""
Test fixtures common to more than one test point.
"""

# Standard library imports
import pathlib
import shutil
import struct
import tempfile
import unittest

# 3rd party library imports
import numpy as np
import skimage.data
import skimage.metrics

# Local imports
import jp2kit

# Require at least a certain version of openjpeg for running most tests.
if jp2kit.version.openjpeg_version_tuple < (2, 3, 0):  # pragma: no cover
    OPENJPEG_NOT_AVAILABLE = True
    OPENJPEG_NOT_AVAILABLE_MSG = (
        "A version of OPENJPEG of at least v2.3.0 must be installed."
    )
else:
    OPENJPEG_NOT_AVAILABLE = False
    OPENJPEG_NOT_AVAILABLE_MSG = None


def make_codestream(width=64, height=48, num_components=3, num_layers=1,
                    num_resolutions=6, bit_depth=8, offset=(0, 0),
                    tile_data=b'\x00' * 16, end=True):
    """Build the skeleton of a J2K codestream.

    The main header is genuine, the tile part after SOT is just filler.  That
    is all the header reader needs.
    """
    x0, y0 = offset
    siz = struct.pack('>HHHIIIIIIIIH', 0xff51, 38 + 3 * num_components, 0,
                      width + x0, height + y0, x0, y0,
                      width + x0, height + y0, 0, 0, num_components)
    siz += struct.pack('>BBB', bit_depth - 1, 1, 1) * num_components

    cod = struct.pack('>HHBBHBBBBBB', 0xff52, 12, 0, 0, num_layers, 0,
                      num_resolutions - 1, 4, 4, 0, 1)

    # QCD, not interpreted but must be skipped over.
    qcd = struct.pack('>HHB', 0xff5c, 3 + num_resolutions, 0x40)
    qcd += b'\x48' * num_resolutions

    sot = struct.pack('>HHHIBB', 0xff90, 10, 0, 14 + len(tile_data), 0, 1)
    sod = struct.pack('>H', 0xff93) + tile_data

    codestream = b'\xff\x4f' + siz + cod + qcd + sot + sod
    if end:
        codestream += b'\xff\xd9'
    return codestream


def make_box(box_id, payload):
    return struct.pack('>I4s', 8 + len(payload), box_id) + payload


def make_jp2(codestream, width=64, height=48, num_components=3,
             channel_types=None):
    """Wrap a codestream in a minimal JP2 box structure.

    Parameters
    ----------
    channel_types : sequence, optional
        If provided, a channel definition box is written with these types.
    """
    signature = make_box(b'jP  ', b'\r\n\x87\n')
    ftyp = make_box(b'ftyp', b'jp2 ' + struct.pack('>I', 0) + b'jp2 ')

    ihdr = make_box(b'ihdr', struct.pack('>IIHBBBB', height, width,
                                         num_components, 7, 7, 0, 0))
    colr = make_box(b'colr', struct.pack('>BBBI', 1, 0, 0, 16))
    jp2h_payload = ihdr + colr
    if channel_types is not None:
        cdef_payload = struct.pack('>H', len(channel_types))
        for j, channel_type in enumerate(channel_types):
            association = 0 if channel_type else j + 1
            cdef_payload += struct.pack('>HHH', j, channel_type, association)
        jp2h_payload += make_box(b'cdef', cdef_payload)
    jp2h = make_box(b'jp2h', jp2h_payload)

    jp2c = make_box(b'jp2c', codestream)

    return signature + ftyp + jp2h + jp2c


def rgba_image():
    """The astronaut, with opacity rising from left to right."""
    rgb = skimage.data.astronaut()
    alpha = np.tile(np.linspace(0, 255, rgb.shape[1]).astype(np.uint8),
                    (rgb.shape[0], 1))
    return np.dstack((rgb, alpha))


class TestCommon(unittest.TestCase):
    """
    Common setup for many if not all tests.
    """

    def setUp(self):
        # Create a temporary directory to be cleaned up following each test, as
        # well as names for a JP2 and a J2K file.
        self.test_dir = tempfile.mkdtemp()
        self.test_dir_path = pathlib.Path(self.test_dir)
        self.temp_jp2_filename = self.test_dir_path / "test.jp2"
        self.temp_j2k_filename = self.test_dir_path / "test.j2k"

        jp2kit.reset_option('all')

    def tearDown(self):
        shutil.rmtree(self.test_dir)
        jp2kit.reset_option('all')

    def assertImagesEqual(self, a, b):
        np.testing.assert_array_equal(a.pixels, b.pixels)
        self.assertEqual(a.has_alpha, b.has_alpha)
        self.assertEqual(a.is_premultiplied, b.is_premultiplied)

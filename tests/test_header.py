"""
Tests for reading the header of JPEG 2000 data.
"""
# Standard library imports ...
import io
import struct
import unittest

# Local imports ...
import jp2kit
from jp2kit.codestream import Codestream
from jp2kit.header import parse_main_header
from . import fixtures


class TestSuite(fixtures.TestCommon):

    def test_j2k(self):
        """
        SCENARIO:  Read the header of a raw codestream.

        EXPECTED RESULT:  The fields match the SIZ and COD segments.
        """
        data = fixtures.make_codestream(width=301, height=203, num_layers=4,
                                        num_resolutions=5)
        header = jp2kit.read_header(data)

        expected = jp2kit.Header(width=301, height=203, has_alpha=False,
                                 num_resolutions=5, num_quality_layers=4,
                                 num_components=3, bit_depth=8,
                                 codec_format=jp2kit.FORMAT_J2K)
        self.assertEqual(header, expected)

    def test_j2k_grid_offset(self):
        """
        SCENARIO:  The image area does not start at the origin of the
        reference grid.

        EXPECTED RESULT:  The width and height are those of the image area.
        """
        data = fixtures.make_codestream(width=100, height=50, offset=(7, 3))
        header = jp2kit.read_header(data)
        self.assertEqual((header.width, header.height), (100, 50))
        self.assertEqual((header.x0, header.y0), (7, 3))

    def test_j2k_alpha_from_component_count(self):
        """
        SCENARIO:  Codestreams carry no channel definitions.

        EXPECTED RESULT:  2 and 4 components have alpha, 1 and 3 do not.
        """
        for num_components, expected in ((1, False), (2, True),
                                         (3, False), (4, True)):
            with self.subTest(num_components=num_components):
                data = fixtures.make_codestream(num_components=num_components)
                header = jp2kit.read_header(data)
                self.assertEqual(header.num_components, num_components)
                self.assertEqual(header.has_alpha, expected)

    def test_jp2(self):
        """
        SCENARIO:  Read the header of a JP2 file.

        EXPECTED RESULT:  The codestream is found by way of the jp2c box.
        """
        codestream = fixtures.make_codestream(num_layers=3)
        data = fixtures.make_jp2(codestream)
        header = jp2kit.read_header(data)

        self.assertEqual(header.codec_format, jp2kit.FORMAT_JP2)
        self.assertEqual((header.width, header.height), (64, 48))
        self.assertEqual(header.num_quality_layers, 3)
        self.assertEqual(header.num_resolutions, 6)
        self.assertFalse(header.has_alpha)

    def test_jp2_cdef_opacity(self):
        """
        SCENARIO:  A channel definition box declares an opacity channel.

        EXPECTED RESULT:  has_alpha is True
        """
        for alpha_type in (1, 2):
            with self.subTest(alpha_type=alpha_type):
                codestream = fixtures.make_codestream(num_components=4)
                data = fixtures.make_jp2(codestream, num_components=4,
                                         channel_types=(0, 0, 0, alpha_type))
                self.assertTrue(jp2kit.read_header(data).has_alpha)

    def test_jp2_cdef_without_opacity(self):
        """
        SCENARIO:  Four components, but the channel definition box does not
        declare any of them to be opacity.

        EXPECTED RESULT:  has_alpha is False, the cdef box has the last word
        """
        codestream = fixtures.make_codestream(num_components=4)
        data = fixtures.make_jp2(codestream, num_components=4,
                                 channel_types=(0, 0, 0, 65535))
        self.assertFalse(jp2kit.read_header(data).has_alpha)

    def test_source_forms_agree(self):
        """
        SCENARIO:  The same data as bytes, a stream and a file.

        EXPECTED RESULT:  The same header each time.
        """
        data = fixtures.make_jp2(fixtures.make_codestream(num_layers=2))
        self.temp_jp2_filename.write_bytes(data)

        expected = jp2kit.read_header(data)
        self.assertIsNotNone(expected)
        self.assertEqual(jp2kit.read_header(io.BytesIO(data)), expected)
        self.assertEqual(jp2kit.read_header(self.temp_jp2_filename), expected)
        self.assertEqual(jp2kit.read_header(str(self.temp_jp2_filename)),
                         expected)
        self.assertEqual(jp2kit.read_header(bytearray(data)), expected)

    def test_truncated_to_half(self):
        """
        SCENARIO:  Only the first half of a JP2 file is available.

        EXPECTED RESULT:  None, and a warning is logged.
        """
        data = fixtures.make_jp2(fixtures.make_codestream(
            tile_data=b'\x00' * 1000
        ))
        with self.assertLogs('jp2kit.header', level='WARNING'):
            self.assertIsNone(jp2kit.read_header(data[:len(data) // 2]))

    def test_truncated_codestream(self):
        """
        SCENARIO:  A raw codestream lacks its final EOC marker.

        EXPECTED RESULT:  None, and a warning is logged.
        """
        data = fixtures.make_codestream(end=False)
        with self.assertLogs('jp2kit.header', level='WARNING') as cm:
            self.assertIsNone(jp2kit.read_header(data))
        self.assertIn('truncated', cm.output[0])

    def test_truncated_in_main_header(self):
        """
        SCENARIO:  The data ends in the middle of the SIZ segment.

        EXPECTED RESULT:  None
        """
        data = fixtures.make_codestream()[:20]
        with self.assertLogs('jp2kit.header', level='WARNING'):
            self.assertIsNone(jp2kit.read_header(data))

    def test_not_jpeg2000(self):
        """
        SCENARIO:  PNG data, empty data.

        EXPECTED RESULT:  None
        """
        with self.assertLogs('jp2kit.header', level='WARNING'):
            self.assertIsNone(jp2kit.read_header(b'\x89PNG\r\n\x1a\n' * 4))
        with self.assertLogs('jp2kit.header', level='WARNING'):
            self.assertIsNone(jp2kit.read_header(b''))

    def test_no_source(self):
        """
        SCENARIO:  The source is None.

        EXPECTED RESULT:  None
        """
        self.assertIsNone(jp2kit.read_header(None))

    def test_missing_file(self):
        """
        SCENARIO:  The path does not exist.

        EXPECTED RESULT:  None, and a warning is logged.
        """
        path = self.test_dir_path / 'does-not-exist.jp2'
        with self.assertLogs('jp2kit.header', level='WARNING'):
            self.assertIsNone(jp2kit.read_header(path))

    def test_unreadable_stream(self):
        """
        SCENARIO:  Reading from the stream fails.

        EXPECTED RESULT:  None, and a warning is logged.
        """
        class BrokenStream(object):
            def read(self, *args):
                raise OSError('disk gone')

        with self.assertLogs('jp2kit.header', level='WARNING'):
            self.assertIsNone(jp2kit.read_header(BrokenStream()))

    def test_closed_stream(self):
        """
        SCENARIO:  The stream has already been closed.

        EXPECTED RESULT:  None, and a warning is logged.
        """
        stream = io.BytesIO(fixtures.make_codestream())
        stream.close()

        with self.assertLogs('jp2kit.header', level='WARNING'):
            self.assertIsNone(jp2kit.read_header(stream))

    def test_text_stream(self):
        """
        SCENARIO:  The stream was opened in text mode.

        EXPECTED RESULT:  TypeError, it is a programming error
        """
        with self.assertRaises(TypeError):
            jp2kit.read_header(io.StringIO('not binary'))

    def test_unsupported_source_type(self):
        """
        SCENARIO:  The source is an int.

        EXPECTED RESULT:  TypeError
        """
        with self.assertRaises(TypeError):
            jp2kit.read_header(42)

    def test_jp2_without_codestream_box(self):
        """
        SCENARIO:  A JP2 file with no jp2c box.

        EXPECTED RESULT:  None
        """
        data = fixtures.make_jp2(fixtures.make_codestream())
        jp2c_offset = data.index(b'jp2c') - 4
        with self.assertLogs('jp2kit.header', level='WARNING'):
            self.assertIsNone(jp2kit.read_header(data[:jp2c_offset]))

    def test_jp2c_box_claims_too_much(self):
        """
        SCENARIO:  The jp2c box length exceeds the data available.

        EXPECTED RESULT:  None
        """
        data = bytearray(fixtures.make_jp2(fixtures.make_codestream()))
        jp2c_offset = data.index(b'jp2c') - 4
        length, = struct.unpack_from('>I', data, jp2c_offset)
        struct.pack_into('>I', data, jp2c_offset, length + 100)
        with self.assertLogs('jp2kit.header', level='WARNING'):
            self.assertIsNone(jp2kit.read_header(bytes(data)))

    def test_zero_quality_layers(self):
        """
        SCENARIO:  The COD segment claims zero quality layers.

        EXPECTED RESULT:  None
        """
        data = fixtures.make_codestream(num_layers=0)
        with self.assertLogs('jp2kit.header', level='WARNING'):
            self.assertIsNone(jp2kit.read_header(data))


class TestSuiteCodestream(unittest.TestCase):
    """Tests for the main header segments."""

    def test_segments(self):
        """
        SCENARIO:  Parse a codestream main header.

        EXPECTED RESULT:  SOC, SIZ, COD, and the skipped QCD segment.
        """
        data = fixtures.make_codestream(num_layers=2, num_resolutions=4)
        header, codestream = parse_main_header(data)

        ids = [segment.marker_id for segment in codestream.segment]
        self.assertEqual(ids, ['SOC', 'SIZ', 'COD', '0xff5c'])
        self.assertEqual(codestream.cod.layers, 2)
        self.assertEqual(codestream.cod.num_res, 3)
        self.assertEqual(codestream.siz.Csiz, 3)
        self.assertEqual(codestream.siz.bitdepth, (8, 8, 8))

    def test_printing(self):
        """
        SCENARIO:  Print the SIZ and COD segments.

        EXPECTED RESULT:  The main fields are shown.
        """
        data = fixtures.make_codestream(width=64, height=48, num_layers=2)
        _, codestream = parse_main_header(data)

        actual = str(codestream.siz)
        self.assertIn('Reference Grid Height, Width:  (48 x 64)', actual)

        actual = str(codestream.cod)
        self.assertIn('Number of layers:  2', actual)
        self.assertIn('Wavelet transform:  5-3 reversible', actual)

    def test_missing_soc(self):
        """
        SCENARIO:  The data does not start with SOC.

        EXPECTED RESULT:  InvalidJp2kError
        """
        data = b'\x00\x00' + fixtures.make_codestream()[2:]
        with self.assertRaises(jp2kit.jp2box.InvalidJp2kError):
            Codestream(io.BytesIO(data), len(data))

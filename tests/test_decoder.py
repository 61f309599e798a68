"""
Tests for decoding, in whole or in part.
"""
# Standard library imports ...
import io
import unittest
from unittest.mock import patch

# Third party library imports ...
import numpy as np

# Local imports ...
import jp2kit
from jp2kit.decoder import reduce_dimension
from jp2kit.lib import openjp2 as opj2
from . import fixtures


class TestSuiteParameters(unittest.TestCase):
    """Setters validate immediately, no decoding involved."""

    def test_defaults(self):
        decoder = jp2kit.Jp2Decoder(b'')
        self.assertEqual(decoder.skip_resolutions, 0)
        self.assertEqual(decoder.layers_to_decode, 0)
        self.assertIsNone(decoder.source_region)
        self.assertTrue(decoder.premultiply)

    def test_chaining(self):
        """
        SCENARIO:  Chain all the setters.

        EXPECTED RESULT:  Each returns the decoder itself.
        """
        decoder = jp2kit.Jp2Decoder(b'')
        actual = (
            decoder.set_skip_resolutions(2)
            .set_layers_to_decode(3)
            .set_source_region(1, 2, 3, 4)
            .disable_premultiplication()
        )
        self.assertIs(actual, decoder)
        self.assertEqual(decoder.skip_resolutions, 2)
        self.assertEqual(decoder.layers_to_decode, 3)
        self.assertEqual(decoder.source_region, (1, 2, 3, 4))
        self.assertFalse(decoder.premultiply)

    def test_negative_skip_resolutions(self):
        """
        SCENARIO:  Negative number of resolutions to skip.

        EXPECTED RESULT:  ValueError at once
        """
        with self.assertRaises(ValueError):
            jp2kit.Jp2Decoder(b'').set_skip_resolutions(-1)

    def test_negative_layers(self):
        """
        SCENARIO:  Negative number of layers to decode.

        EXPECTED RESULT:  ValueError at once
        """
        with self.assertRaises(ValueError):
            jp2kit.Jp2Decoder(b'').set_layers_to_decode(-1)

    def test_non_integer_counts(self):
        """
        SCENARIO:  Floats and booleans for counts.

        EXPECTED RESULT:  ValueError
        """
        decoder = jp2kit.Jp2Decoder(b'')
        for value in (1.5, True, '2'):
            with self.subTest(value=value):
                with self.assertRaises(ValueError):
                    decoder.set_skip_resolutions(value)
                with self.assertRaises(ValueError):
                    decoder.set_layers_to_decode(value)

    def test_bad_regions(self):
        """
        SCENARIO:  Empty, inverted, or negative regions.

        EXPECTED RESULT:  ValueError
        """
        decoder = jp2kit.Jp2Decoder(b'')
        for region in ((0, 0, 0, 10), (5, 0, 4, 10), (0, 10, 10, 10),
                       (-1, 0, 10, 10)):
            with self.subTest(region=region):
                with self.assertRaises(ValueError):
                    decoder.set_source_region(*region)

    def test_unsupported_source(self):
        """
        SCENARIO:  The source is a list.

        EXPECTED RESULT:  TypeError from the constructor
        """
        with self.assertRaises(TypeError):
            jp2kit.Jp2Decoder([1, 2, 3])

    def test_none_source(self):
        """
        SCENARIO:  The source is None.

        EXPECTED RESULT:  Decoding and header reading both report failure.
        """
        decoder = jp2kit.Jp2Decoder(None)
        self.assertIsNone(decoder.read_header())
        self.assertIsNone(decoder.decode())

    def test_reduce_dimension(self):
        """
        SCENARIO:  Halve odd and even sizes repeatedly.

        EXPECTED RESULT:  Rounding up at each level.
        """
        self.assertEqual(reduce_dimension(301, 0), 301)
        self.assertEqual(reduce_dimension(301, 1), 151)
        self.assertEqual(reduce_dimension(301, 2), 76)
        self.assertEqual(reduce_dimension(301, 3), 38)
        self.assertEqual(reduce_dimension(1, 5), 1)


class TestSuiteFailures(fixtures.TestCommon):
    """Failures found before the codec runs, no library needed.

    Data failures are reported by None, never by an exception.
    """

    def test_not_jpeg2000(self):
        with self.assertLogs('jp2kit', level='WARNING'):
            self.assertIsNone(jp2kit.Jp2Decoder(b'\x89PNG' * 10).decode())

    def test_empty(self):
        with self.assertLogs('jp2kit', level='WARNING'):
            self.assertIsNone(jp2kit.Jp2Decoder(b'').decode())

    def test_missing_file(self):
        path = self.test_dir_path / 'nothing-here.jp2'
        with self.assertLogs('jp2kit', level='WARNING'):
            self.assertIsNone(jp2kit.Jp2Decoder(path).decode())

    def test_closed_stream(self):
        """
        SCENARIO:  The source stream has already been closed.

        EXPECTED RESULT:  None, and a warning is logged.
        """
        stream = io.BytesIO(fixtures.make_codestream())
        stream.close()

        decoder = jp2kit.Jp2Decoder(stream)
        with self.assertLogs('jp2kit.decoder', level='WARNING'):
            self.assertIsNone(decoder.decode())
        self.assertIsNone(decoder.read_header())

    def test_region_vanishes_at_reduced_resolution(self):
        """
        SCENARIO:  A one pixel region falls between the samples of the
        decoded resolution level.

        EXPECTED RESULT:  None, the warning says why.  The codec is never
        reached, so no library is needed.
        """
        decoder = (
            jp2kit.Jp2Decoder(fixtures.make_codestream(width=64, height=48))
            .set_skip_resolutions(1)
            .set_source_region(5, 5, 6, 6)
        )
        with self.assertLogs('jp2kit.decoder', level='WARNING') as cm:
            self.assertIsNone(decoder.decode())
        self.assertIn('vanishes', cm.output[0])

    def test_no_library(self):
        """
        SCENARIO:  The OpenJPEG library could not be loaded.

        EXPECTED RESULT:  RuntimeError, nothing can be done
        """
        data = fixtures.make_codestream()
        with patch('jp2kit.context.opj2.OPENJP2', new=None):
            with self.assertRaises(RuntimeError):
                jp2kit.Jp2Decoder(data).decode()


@unittest.skipIf(
    fixtures.OPENJPEG_NOT_AVAILABLE, fixtures.OPENJPEG_NOT_AVAILABLE_MSG
)
class TestSuite(fixtures.TestCommon):

    @classmethod
    def setUpClass(cls):
        # An image with odd dimensions and a handful of resolutions.
        cls.rgb = fixtures.skimage.data.astronaut()[:203, :301, :]
        cls.lossless = jp2kit.Jp2Encoder(cls.rgb).encode()

        cls.rgba = fixtures.rgba_image()
        cls.rgba_data = jp2kit.Jp2Encoder(cls.rgba).encode()

    def test_lossless(self):
        """
        SCENARIO:  Decode a losslessly encoded RGB image.

        EXPECTED RESULT:  The original pixels, opaque.
        """
        image = jp2kit.Jp2Decoder(self.lossless).decode()

        self.assertEqual((image.width, image.height), (301, 203))
        self.assertFalse(image.has_alpha)
        self.assertFalse(image.is_premultiplied)
        np.testing.assert_array_equal(image.to_array()[:, :, :3], self.rgb)
        self.assertTrue(np.all(image.to_array()[:, :, 3] == 255))

    def test_source_forms_agree(self):
        """
        SCENARIO:  Decode the same data from bytes, a stream and a file.

        EXPECTED RESULT:  Identical images.
        """
        self.temp_jp2_filename.write_bytes(self.lossless)

        expected = jp2kit.Jp2Decoder(self.lossless).decode()
        for source in (io.BytesIO(self.lossless), self.temp_jp2_filename,
                       str(self.temp_jp2_filename)):
            with self.subTest(source=source):
                actual = jp2kit.Jp2Decoder(source).decode()
                self.assertImagesEqual(actual, expected)

    def test_stream_read_once(self):
        """
        SCENARIO:  Read the header and then decode from a stream.

        EXPECTED RESULT:  Both work, the stream is only consumed once.
        """
        decoder = jp2kit.Jp2Decoder(io.BytesIO(self.lossless))
        self.assertEqual(decoder.read_header().width, 301)
        self.assertIsNotNone(decoder.decode())
        self.assertIsNotNone(decoder.decode())

    def test_skip_resolutions(self):
        """
        SCENARIO:  Skip every possible number of resolutions, and more.

        EXPECTED RESULT:  The dimensions are halved with rounding up once per
        skipped level, clamped at the coarsest level.
        """
        header = jp2kit.read_header(self.lossless)
        self.assertEqual(header.num_resolutions, 6)

        for skip in range(header.num_resolutions + 3):
            with self.subTest(skip=skip):
                image = (
                    jp2kit.Jp2Decoder(self.lossless)
                    .set_skip_resolutions(skip)
                    .decode()
                )
                levels = min(skip, header.num_resolutions - 1)
                expected = (reduce_dimension(301, levels),
                            reduce_dimension(203, levels))
                self.assertEqual((image.width, image.height), expected)

    def test_region(self):
        """
        SCENARIO:  Decode a region at full resolution.

        EXPECTED RESULT:  The same pixels as the full image, cropped.
        """
        image = (
            jp2kit.Jp2Decoder(self.lossless)
            .set_source_region(10, 20, 110, 220)
            .decode()
        )
        self.assertEqual((image.width, image.height), (100, 183))
        np.testing.assert_array_equal(image.to_array()[:, :, :3],
                                      self.rgb[20:203, 10:110, :])

    def test_region_at_reduced_resolution(self):
        """
        SCENARIO:  Decode a region while skipping a resolution level.

        EXPECTED RESULT:  The region is mapped onto the decoded level with the
        same round-up halving.
        """
        image = (
            jp2kit.Jp2Decoder(self.lossless)
            .set_skip_resolutions(1)
            .set_source_region(11, 21, 111, 121)
            .decode()
        )
        expected = (reduce_dimension(111, 1) - reduce_dimension(11, 1),
                    reduce_dimension(121, 1) - reduce_dimension(21, 1))
        self.assertEqual((image.width, image.height), expected)

        full = jp2kit.Jp2Decoder(self.lossless).set_skip_resolutions(1)
        full = full.decode().to_array()
        np.testing.assert_array_equal(image.to_array(), full[11:61, 6:56])

    def test_region_clipped(self):
        """
        SCENARIO:  The region extends past the image.

        EXPECTED RESULT:  The region is clipped to the image.
        """
        image = (
            jp2kit.Jp2Decoder(self.lossless)
            .set_source_region(250, 150, 1000, 1000)
            .decode()
        )
        self.assertEqual((image.width, image.height), (51, 53))

    def test_region_outside(self):
        """
        SCENARIO:  The region does not intersect the image.

        EXPECTED RESULT:  None, and a warning is logged.
        """
        decoder = (
            jp2kit.Jp2Decoder(self.lossless)
            .set_source_region(400, 400, 500, 500)
        )
        with self.assertLogs('jp2kit.decoder', level='WARNING'):
            self.assertIsNone(decoder.decode())

    def test_truncated(self):
        """
        SCENARIO:  Only half of the data is available.

        EXPECTED RESULT:  decode and read_header both report failure.
        """
        data = self.lossless[:len(self.lossless) // 2]
        decoder = jp2kit.Jp2Decoder(data)
        with self.assertLogs('jp2kit', level='WARNING'):
            self.assertIsNone(decoder.read_header())
        with self.assertLogs('jp2kit', level='WARNING'):
            self.assertIsNone(decoder.decode())

    def test_premultiplied_by_default(self):
        """
        SCENARIO:  Decode a transparent image with and without
        premultiplication.

        EXPECTED RESULT:  Premultiplied colors are the straight colors scaled
        by alpha / 255.
        """
        premultiplied = jp2kit.Jp2Decoder(self.rgba_data).decode()
        straight = (
            jp2kit.Jp2Decoder(self.rgba_data)
            .disable_premultiplication()
            .decode()
        )

        self.assertTrue(premultiplied.has_alpha)
        self.assertTrue(premultiplied.is_premultiplied)
        self.assertFalse(straight.is_premultiplied)

        np.testing.assert_array_equal(straight.to_array(), self.rgba)

        a = self.rgba[:, :, 3].astype(np.uint32)
        rgb = self.rgba[:, :, :3].astype(np.uint32)
        expected = np.minimum((rgb * a[:, :, np.newaxis] + 127) // 255, 255)
        np.testing.assert_array_equal(premultiplied.to_array()[:, :, :3],
                                      expected)
        np.testing.assert_array_equal(premultiplied.to_array()[:, :, 3],
                                      self.rgba[:, :, 3])

    def test_opaque_never_premultiplied(self):
        """
        SCENARIO:  Decode an opaque image with and without premultiplication.

        EXPECTED RESULT:  Never flagged as premultiplied.
        """
        for decoder in (
            jp2kit.Jp2Decoder(self.lossless),
            jp2kit.Jp2Decoder(self.lossless).disable_premultiplication(),
        ):
            self.assertFalse(decoder.decode().is_premultiplied)

    def test_grey_alpha_j2k(self):
        """
        SCENARIO:  A grey + alpha image as a raw codestream, i.e. no channel
        definition box.

        EXPECTED RESULT:  The second component is taken to be alpha.
        """
        grey = fixtures.skimage.data.camera()[:64, :64]
        alpha = np.full_like(grey, 128)
        data = (
            jp2kit.Jp2Encoder(np.dstack((grey, alpha)))
            .set_output_format(jp2kit.FORMAT_J2K)
            .encode()
        )
        self.assertTrue(jp2kit.read_header(data).has_alpha)

        image = jp2kit.Jp2Decoder(data).disable_premultiplication().decode()
        actual = image.to_array()
        np.testing.assert_array_equal(actual[:, :, 0], grey)
        np.testing.assert_array_equal(actual[:, :, 1], grey)
        np.testing.assert_array_equal(actual[:, :, 3], alpha)

    def test_codec_failure(self):
        """
        SCENARIO:  The library fails while decoding.

        EXPECTED RESULT:  None, and a warning is logged.
        """
        side_effect = opj2.OpenJPEGLibraryError('OpenJPEG function failure.')
        with patch('jp2kit.decoder.opj2.decode', side_effect=side_effect):
            with self.assertLogs('jp2kit.decoder', level='WARNING'):
                self.assertIsNone(jp2kit.Jp2Decoder(self.lossless).decode())

    def test_size_mismatch(self):
        """
        SCENARIO:  The codec produces planes of unexpected size.

        EXPECTED RESULT:  None, no partial image.
        """
        with patch('jp2kit.decoder.Jp2Decoder._expected_shape',
                   return_value=(1, 1)):
            with self.assertLogs('jp2kit.decoder', level='WARNING') as cm:
                self.assertIsNone(jp2kit.Jp2Decoder(self.lossless).decode())
        self.assertIn('instead of the expected', cm.output[0])

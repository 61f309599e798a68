"""Encoding of images into JP2 files or raw J2K codestreams.

    >>> import jp2kit, skimage.data
    >>> encoder = jp2kit.Jp2Encoder(skimage.data.astronaut())
    >>> data = encoder.set_compression_ratio(40, 20, 10).encode()
    >>> jp2kit.read_header(data).num_quality_layers
    3
"""
# Standard library imports
import ctypes
import io
import logging
import math
import numbers
import os
import pathlib

# Third party library imports ...
import numpy as np

# Local imports
from .context import codec_session, CodecError, CODEC_FORMATS, COMPRESS
from .core import (DEFAULT_NUM_RESOLUTIONS, FORMAT_J2K, FORMAT_JP2,
                   FORMAT_NAMES, OPACITY)
from .image import Image, unpack_argb
from .lib import openjp2 as opj2

logger = logging.getLogger(__name__)


def max_resolutions(width, height):
    """Largest number of resolutions an image of the given size admits.

    That is floor(log2(min(width, height))) + 1, but no more than the codec
    maximum of 33.

    Examples
    --------
    >>> max_resolutions(64, 63), max_resolutions(64, 64)
    (6, 7)
    """
    return min(min(width, height).bit_length(), opj2.J2K_MAXRLVLS)


def _layer_values(values, name):
    """Flatten and check the per-layer values of a rate control setter."""
    if len(values) == 1 and not isinstance(values[0], numbers.Number):
        values = tuple(values[0])

    if len(values) == 0:
        msg = f'At least one {name} must be provided.'
        raise ValueError(msg)
    if len(values) > opj2.J2K_MAXLAYERS:
        msg = (
            f'{len(values)} {name}s were provided, no more than '
            f'{opj2.J2K_MAXLAYERS} quality layers are supported.'
        )
        raise ValueError(msg)

    for value in values:
        if (
            isinstance(value, bool)
            or not isinstance(value, numbers.Real)
            or not math.isfinite(value)
        ):
            msg = f'Invalid {name}:  {value!r}.'
            raise ValueError(msg)

    return [float(value) for value in values]


class Jp2Encoder(object):
    """Encode an image as JPEG 2000.

    Without further settings the image is encoded losslessly as JP2 with up
    to six resolutions.

    Parameters
    ----------
    image : Image or ndarray
        The image.  Arrays go through Image.from_array.

    Raises
    ------
    ValueError
        If the image is None or the array is not usable.
    TypeError
        If the image is of an unsupported type.
    """

    def __init__(self, image):
        if image is None:
            raise ValueError('The source image must not be None.')
        if isinstance(image, np.ndarray):
            image = Image.from_array(image)
        elif not isinstance(image, Image):
            msg = (
                f'The source image must be a jp2kit.Image or a numpy array, '
                f'not {type(image).__name__}.'
            )
            raise TypeError(msg)

        self._image = image
        self._output_format = FORMAT_JP2
        self._num_resolutions = None
        self._ratios = None
        self._qualities = None

    def __repr__(self):
        if self._ratios is not None:
            rate_control = f'ratios={self._ratios}'
        elif self._qualities is not None:
            rate_control = f'qualities={self._qualities}'
        else:
            rate_control = 'lossless'
        msg = (
            f'jp2kit.Jp2Encoder({self._image!r}, '
            f'format={FORMAT_NAMES[self._output_format]}, '
            f'num_resolutions={self.num_resolutions}, {rate_control})'
        )
        return msg

    @property
    def output_format(self):
        return self._output_format

    @property
    def max_resolutions(self):
        return max_resolutions(self._image.width, self._image.height)

    @property
    def num_resolutions(self):
        if self._num_resolutions is None:
            return min(DEFAULT_NUM_RESOLUTIONS, self.max_resolutions)
        return self._num_resolutions

    @property
    def compression_ratios(self):
        """Per-layer ratios, most compressed first, or None."""
        return None if self._ratios is None else list(self._ratios)

    @property
    def visual_qualities(self):
        """Per-layer PSNR targets, worst first, or None."""
        return None if self._qualities is None else list(self._qualities)

    def set_output_format(self, fmt):
        """Choose between FORMAT_JP2 and FORMAT_J2K."""
        if isinstance(fmt, bool) or fmt not in (FORMAT_J2K, FORMAT_JP2):
            msg = (
                f'The output format must be either FORMAT_J2K ({FORMAT_J2K}) '
                f'or FORMAT_JP2 ({FORMAT_JP2}), not {fmt!r}.'
            )
            raise ValueError(msg)
        self._output_format = int(fmt)
        return self

    def set_num_resolutions(self, n):
        """Set the number of resolutions.

        Raises
        ------
        ValueError
            Unless 1 <= n <= max_resolutions.
        """
        if (
            isinstance(n, bool)
            or not isinstance(n, numbers.Integral)
            or not 1 <= n <= self.max_resolutions
        ):
            msg = (
                f'The number of resolutions must be an integer between 1 and '
                f'{self.max_resolutions} for a {self._image.width} x '
                f'{self._image.height} image, not {n!r}.'
            )
            raise ValueError(msg)
        self._num_resolutions = int(n)
        return self

    def set_compression_ratio(self, *ratios):
        """Encode one quality layer per compression ratio.

        A ratio of 1 (or less) makes a lossless layer.  The layers are
        ordered from the most compressed to the least, whatever the order
        given.

        Raises
        ------
        ValueError
            If a ratio is not positive, if visual qualities have already been
            set, or if the number of layers is not in [1, 100].
        """
        if self._qualities is not None:
            msg = (
                'Compression ratios cannot be set once visual qualities have '
                'been set.'
            )
            raise ValueError(msg)

        ratios = _layer_values(ratios, 'compression ratio')
        if any(ratio <= 0 for ratio in ratios):
            msg = f'Compression ratios must be positive:  {ratios}.'
            raise ValueError(msg)

        self._ratios = sorted(ratios, reverse=True)
        return self

    def set_visual_quality(self, *qualities):
        """Encode one quality layer per PSNR target in decibels.

        A quality of 0 makes a lossless layer.  The layers are ordered from
        the worst quality to the best, the lossless layer last, whatever the
        order given.

        Raises
        ------
        ValueError
            If a quality is negative, if compression ratios have already been
            set, or if the number of layers is not in [1, 100].
        """
        if self._ratios is not None:
            msg = (
                'Visual qualities cannot be set once compression ratios have '
                'been set.'
            )
            raise ValueError(msg)

        qualities = _layer_values(qualities, 'visual quality')
        if any(quality < 0 for quality in qualities):
            msg = f'Visual qualities must not be negative:  {qualities}.'
            raise ValueError(msg)

        self._qualities = sorted(qualities, key=lambda q: (q == 0, q))
        return self

    def encode(self, dest=None):
        """Encode the image.

        Parameters
        ----------
        dest : None, path or writable binary stream
            Where the encoded data goes.

        Returns
        -------
        bytes or None
            If dest is None.  None on failure.
        bool
            If dest is a path.  False on failure.
        int
            If dest is a stream, the number of bytes written.  -1 on failure.

        Raises
        ------
        TypeError
            If dest is of an unsupported type.
        """
        if isinstance(dest, (str, os.PathLike)):
            data = self._encode()
            if data is None:
                return False
            try:
                pathlib.Path(dest).write_bytes(data)
            except OSError as err:
                logger.warning(f'Unable to write {dest}:  {err}')
                return False
            return True

        if dest is not None and not hasattr(dest, 'write'):
            msg = (
                f'The destination must be None, a path or a binary stream, '
                f'not {type(dest).__name__}.'
            )
            raise TypeError(msg)

        data = self._encode()
        if dest is None:
            return data

        if data is None:
            return -1
        try:
            dest.write(data)
        except OSError as err:
            logger.warning(f'Unable to write to the stream:  {err}')
            return -1
        return len(data)

    def _encode(self):
        """Encode the image into memory, None on failure."""
        image = self._image.unpremultiplied()
        planes, alpha_index = self._extract_planes(image)

        buffer = io.BytesIO()
        try:
            self._write_openjp2(buffer, planes, alpha_index)
        except CodecError as err:
            logger.warning(f'Unable to encode the image:  {err}')
            return None

        return buffer.getvalue()

    def _extract_planes(self, image):
        """Split the image into the components to encode.

        Returns
        -------
        tuple
            List of uint8 planes and the index of the alpha plane, if any.
        """
        alpha, red, green, blue = unpack_argb(image.pixels)

        if image.is_grey:
            planes = [red]
        else:
            planes = [red, green, blue]

        alpha_index = None
        if image.has_alpha:
            alpha_index = len(planes)
            planes.append(alpha)

        return planes, alpha_index

    def _populate_cparams(self, num_comps):
        """Populate the compression parameters.

        Parameters
        ----------
        num_comps : int
            Number of image components.
        """
        cparams = opj2.set_default_encoder_parameters()

        cparams.irreversible = 0
        cparams.numresolution = self.num_resolutions

        if self._ratios is not None:
            cparams.tcp_numlayers = len(self._ratios)
            for j, cratio in enumerate(self._ratios):
                # The library rates against the components it is given, the
                # ratios are against three 8-bit samples per pixel.  A zero
                # rate is lossless.
                rate = cratio * num_comps / 3
                cparams.tcp_rates[j] = 0 if cratio <= 1 or rate <= 1 else rate
            cparams.cp_disto_alloc = 1

        elif self._qualities is not None:
            cparams.tcp_numlayers = len(self._qualities)
            for j, snr_layer in enumerate(self._qualities):
                cparams.tcp_distoratio[j] = snr_layer
            cparams.cp_fixed_quality = 1

        else:
            # lossless
            cparams.tcp_rates[0] = 0
            cparams.tcp_numlayers = 1
            cparams.cp_disto_alloc = 1

        # The multi component transform needs three color components.
        cparams.tcp_mct = 1 if num_comps >= 3 else 0

        return cparams

    def _populate_comptparms(self, planes):
        """Instantiate and populate comptparms structure.

        This structure defines the image components.
        """
        numrows, numcols = planes[0].shape

        comptparms = (opj2.ImageComptParmType * len(planes))()
        for j in range(len(planes)):
            comptparms[j].dx = 1
            comptparms[j].dy = 1
            comptparms[j].w = numcols
            comptparms[j].h = numrows
            comptparms[j].x0 = 0
            comptparms[j].y0 = 0
            comptparms[j].prec = 8
            comptparms[j].bpp = 8
            comptparms[j].sgnd = 0

        return comptparms

    def _populate_image_struct(self, image, planes, alpha_index):
        """Populates image struct needed for compression.

        Parameters
        ----------
        image : ImageType(ctypes.Structure)
            Corresponds to image_t type in openjp2 headers.
        planes : list
            uint8 image components.
        alpha_index : int or None
            Index of the opacity component.
        """
        numrows, numcols = planes[0].shape

        # set image offset and reference grid
        image.contents.x0 = 0
        image.contents.y0 = 0
        image.contents.x1 = numcols
        image.contents.y1 = numrows

        # Stage the image data to the openjpeg data structure.
        for k, plane in enumerate(planes):
            layer = np.ascontiguousarray(plane, dtype=np.int32)
            dest = image.contents.comps[k].data
            src = layer.ctypes.data
            ctypes.memmove(dest, src, layer.nbytes)

        if alpha_index is not None:
            # Makes the JP2 writer emit a channel definition box.
            image.contents.comps[alpha_index].alpha = OPACITY

        return image

    def _write_openjp2(self, buffer, planes, alpha_index):
        """Encode using OpenJPEG 2.x interface."""
        codec_format = CODEC_FORMATS[self._output_format]

        if len(planes) >= 3:
            colorspace = opj2.CLRSPC_SRGB
        else:
            colorspace = opj2.CLRSPC_GRAY

        with codec_session(COMPRESS, codec_format) as session:
            cparams = self._populate_cparams(len(planes))
            comptparms = self._populate_comptparms(planes)

            image = opj2.image_create(comptparms, colorspace)
            session.track_image(image)

            self._populate_image_struct(image, planes, alpha_index)

            opj2.setup_encoder(session.codec, cparams, image)
            session.set_threads()

            stream = session.memory_stream(buffer, False)

            opj2.start_compress(session.codec, image, stream)
            opj2.encode(session.codec, stream)
            opj2.end_compress(session.codec, stream)

"""Partial decoding of JPEG 2000 images into packed ARGB pixels.

A Jp2Decoder collects the decode parameters through chained setters, each
validated on the spot, and then produces one Image.

    >>> import jp2kit
    >>> image = (
    ...     jp2kit.Jp2Decoder('astronaut.jp2')
    ...     .set_skip_resolutions(2)
    ...     .set_layers_to_decode(1)
    ...     .decode()
    ... )
    >>> image.width, image.height
    (128, 128)
"""
# Standard library imports
import ctypes
import io
import logging
import numbers
import pathlib

# Third party library imports ...
import numpy as np

# Local imports
from . import source as _source
from .context import codec_session, CodecError, CODEC_FORMATS, DECOMPRESS
from .core import PRE_MULTIPLIED_OPACITY
from .header import parse_header
from .image import Image, pack_argb, premultiply, unpremultiply
from .jp2box import InvalidJp2kError
from .lib import openjp2 as opj2

logger = logging.getLogger(__name__)

# Marks a source that has not been loaded yet.
_NOT_LOADED = object()


def reduce_dimension(coordinate, num_levels):
    """Map a reference grid coordinate onto a lower resolution level.

    Each discarded level halves the coordinate, rounding up.

    Examples
    --------
    >>> reduce_dimension(5, 1), reduce_dimension(5, 2)
    (3, 2)
    """
    for _ in range(num_levels):
        coordinate = (coordinate + 1) >> 1
    return coordinate


def _ceil_div(a, b):
    return -(-a // b)


def _validate_count(value, name):
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        msg = f'{name} must be an integer, not {value!r}.'
        raise ValueError(msg)
    if value < 0:
        msg = f'{name} must be non-negative, not {value}.'
        raise ValueError(msg)
    return int(value)


def _to_8bit(band, precision, signed):
    """Rescale samples of arbitrary precision to [0, 255]."""
    band = band.astype(np.int64)
    if signed:
        band += 1 << (precision - 1)
    band = np.clip(band, 0, (1 << precision) - 1)

    if precision > 8:
        band >>= precision - 8
    elif precision < 8:
        band = band * 255 // ((1 << precision) - 1)

    return band.astype(np.uint8)


class Jp2Decoder(object):
    """Decode JPEG 2000 data, possibly in part.

    Parameters
    ----------
    source : bytes-like, binary stream, path or None
        The encoded data.  A stream is read to the end the first time the
        data is needed.

    Raises
    ------
    TypeError
        If the source is of an unsupported kind.
    """

    def __init__(self, source):
        _source.check(source)
        self._source = source
        self._payload = _NOT_LOADED

        self._skip_resolutions = 0
        self._layers_to_decode = 0
        self._source_region = None
        self._premultiply = True

    def __repr__(self):
        msg = (
            f'jp2kit.Jp2Decoder(skip_resolutions={self._skip_resolutions}, '
            f'layers_to_decode={self._layers_to_decode}, '
            f'source_region={self._source_region}, '
            f'premultiply={self._premultiply})'
        )
        return msg

    @property
    def skip_resolutions(self):
        return self._skip_resolutions

    @property
    def layers_to_decode(self):
        return self._layers_to_decode

    @property
    def source_region(self):
        return self._source_region

    @property
    def premultiply(self):
        return self._premultiply

    def set_skip_resolutions(self, n):
        """Discard the n highest resolution levels.

        Requests beyond the number of levels available are clamped to the
        coarsest level at decode time.

        Raises
        ------
        ValueError
            If n is negative or not an integer.
        """
        self._skip_resolutions = _validate_count(n, 'skip_resolutions')
        return self

    def set_layers_to_decode(self, n):
        """Decode only the first n quality layers, 0 meaning all of them.

        Raises
        ------
        ValueError
            If n is negative or not an integer.
        """
        self._layers_to_decode = _validate_count(n, 'layers_to_decode')
        return self

    def set_source_region(self, x0, y0, x1, y1):
        """Restrict decoding to a rectangle of the full resolution image.

        Parameters
        ----------
        x0, y0 : int
            Upper left corner.
        x1, y1 : int
            Lower right corner, exclusive.

        Raises
        ------
        ValueError
            Unless 0 <= x0 < x1 and 0 <= y0 < y1.
        """
        x0, y0, x1, y1 = (
            _validate_count(value, 'region coordinate')
            for value in (x0, y0, x1, y1)
        )
        if x0 >= x1 or y0 >= y1:
            msg = (
                f'The source region ({x0}, {y0}, {x1}, {y1}) must have '
                f'x0 < x1 and y0 < y1.'
            )
            raise ValueError(msg)

        self._source_region = (x0, y0, x1, y1)
        return self

    def disable_premultiplication(self):
        """Leave colors unscaled by alpha."""
        self._premultiply = False
        return self

    def _load(self):
        """Reduce the source to bytes or a path, reading a stream just once.
        """
        if self._payload is _NOT_LOADED:
            try:
                self._payload = _source.load(self._source)
            except (OSError, ValueError) as err:
                logger.warning(f'Unable to read the JPEG 2000 source:  {err}')
                self._payload = None
        return self._payload

    def read_header(self):
        """Header of the source, or None if it cannot be read."""
        payload = self._load()
        if payload is None:
            return None
        return parse_header(payload)

    def decode(self):
        """Decode the source with the current parameters.

        Returns
        -------
        Image or None
            None if the data cannot be decoded for any reason, the reason is
            logged.
        """
        header = self.read_header()
        if header is None:
            return None

        skip = min(self._skip_resolutions, header.num_resolutions - 1)

        if (
            self._layers_to_decode == 0
            or self._layers_to_decode > header.num_quality_layers
        ):
            layers = 0
        else:
            layers = self._layers_to_decode

        # The decode area on the full resolution reference grid.
        area = (header.x0, header.y0,
                header.x0 + header.width, header.y0 + header.height)
        if self._source_region is not None:
            x0, y0, x1, y1 = self._source_region
            x0, x1 = max(x0, 0), min(x1, header.width)
            y0, y1 = max(y0, 0), min(y1, header.height)
            if x0 >= x1 or y0 >= y1:
                logger.warning(
                    f'The source region {self._source_region} does not '
                    f'intersect the {header.width} x {header.height} image.'
                )
                return None
            area = (header.x0 + x0, header.y0 + y0,
                    header.x0 + x1, header.y0 + y1)

            # A region narrower than the decoded sample spacing has nothing
            # left at that level.
            ncols, nrows = (
                reduce_dimension(area[k + 2], skip)
                - reduce_dimension(area[k], skip)
                for k in (0, 1)
            )
            if ncols == 0 or nrows == 0:
                logger.warning(
                    f'The source region {self._source_region} vanishes when '
                    f'{skip} resolution level(s) are skipped.'
                )
                return None

        try:
            image = self._read_openjp2(header, skip, layers, area)
        except (CodecError, InvalidJp2kError) as err:
            logger.warning(f'Unable to decode the JPEG 2000 image:  {err}')
            return None

        return image

    def _populate_dparams(self, header, rlevel, layers):
        """Populate decompression structure with appropriate input parameters.

        Parameters
        ----------
        header : Header
            Header of the source.
        rlevel : int
            Number of resolution levels to discard.
        layers : int
            Number of quality layers to decode, 0 for all of them.
        """
        dparams = opj2.set_default_decoder_parameters()
        dparams.decod_format = CODEC_FORMATS[header.codec_format]
        dparams.cp_reduce = rlevel
        dparams.cp_layer = layers
        return dparams

    def _read_openjp2(self, header, rlevel, layers, area):
        """Run the codec and repackage its output.

        Parameters
        ----------
        header : Header
            Header of the source.
        rlevel : int
            Number of resolution levels to discard.
        layers : int
            Number of quality layers to decode, 0 for all of them.
        area : tuple
            (x0, y0, x1, y1) on the full resolution reference grid.

        Returns
        -------
        Image
        """
        codec_format = CODEC_FORMATS[header.codec_format]

        with codec_session(DECOMPRESS, codec_format) as session:
            dparams = self._populate_dparams(header, rlevel, layers)

            if isinstance(self._payload, pathlib.Path):
                stream = session.file_stream(self._payload, True)
            else:
                buffer = io.BytesIO(self._payload)
                stream = session.memory_stream(buffer, True)

            opj2.setup_decoder(session.codec, dparams)
            session.set_threads()

            raw_image = opj2.read_header(stream, session.codec)
            session.track_image(raw_image)

            if self._source_region is not None:
                opj2.set_decode_area(session.codec, raw_image, *area)

            opj2.decode(session.codec, stream, raw_image)
            opj2.end_decompress(session.codec, stream)

            image = self._extract_image(raw_image, header, rlevel, area)

        return image

    def _extract_image(self, raw_image, header, rlevel, area):
        """Pack the decoded components into an Image.

        Parameters
        ----------
        raw_image : reference to openjpeg ImageType instance
            The decoded image.
        header : Header
            Header of the source.
        rlevel : int
            Number of resolution levels discarded.
        area : tuple
            (x0, y0, x1, y1) on the full resolution reference grid.

        Raises
        ------
        InvalidJp2kError
            If the components cannot be reassembled.
        """
        ncomps = raw_image.contents.numcomps
        if ncomps == 0 or ncomps > 4:
            msg = f'Unable to reassemble an image with {ncomps} components.'
            raise InvalidJp2kError(msg)

        components = [raw_image.contents.comps[k] for k in range(ncomps)]

        subsampling = {(c.dx, c.dy) for c in components}
        if len(subsampling) > 1:
            msg = (
                f'The image components are subsampled differently, '
                f'{sorted(subsampling)}, which is not supported.'
            )
            raise InvalidJp2kError(msg)

        bands = []
        for k, component in enumerate(components):
            nrows, ncols = self._expected_shape(component, rlevel, area)
            if (component.h, component.w) != (nrows, ncols):
                msg = (
                    f'Component {k} was decoded as {component.h} x '
                    f'{component.w} instead of the expected {nrows} x {ncols}.'
                )
                raise InvalidJp2kError(msg)

            if nrows == 0 or ncols == 0 or not component.data:
                msg = f'Component {k} has no data.'
                raise InvalidJp2kError(msg)

            if component.prec < 1 or component.prec > 31:
                msg = f'Unhandled precision: {component.prec} bits.'
                raise InvalidJp2kError(msg)

            addr = ctypes.addressof(component.data.contents)
            band_i32 = np.ctypeslib.as_array(
                (ctypes.c_int32 * (nrows * ncols)).from_address(addr)
            )
            band = np.reshape(band_i32, (nrows, ncols))

            # The conversion copies, nothing refers to library memory after.
            bands.append(_to_8bit(band, component.prec, component.sgnd))

        alpha_index = next(
            (k for k, c in enumerate(components) if c.alpha), None
        )
        if alpha_index is None and header.has_alpha:
            alpha_index = ncomps - 1

        colors = [band for k, band in enumerate(bands) if k != alpha_index]
        if len(colors) >= 3:
            red, green, blue = colors[:3]
        else:
            red = green = blue = colors[0]

        if alpha_index is None:
            return Image(pack_argb(red, green, blue), has_alpha=False)

        alpha = bands[alpha_index]
        stored_premultiplied = (
            components[alpha_index].alpha == PRE_MULTIPLIED_OPACITY
        )

        if self._premultiply and not stored_premultiplied:
            red, green, blue = (
                premultiply(red, alpha),
                premultiply(green, alpha),
                premultiply(blue, alpha),
            )
        elif not self._premultiply and stored_premultiplied:
            red, green, blue = (
                unpremultiply(red, alpha),
                unpremultiply(green, alpha),
                unpremultiply(blue, alpha),
            )

        return Image(pack_argb(red, green, blue, alpha), has_alpha=True,
                     is_premultiplied=self._premultiply)

    @staticmethod
    def _expected_shape(component, rlevel, area):
        """Size of a decoded component, the way the codec computes it."""
        x0, y0, x1, y1 = area
        ncols = (
            reduce_dimension(_ceil_div(x1, component.dx), rlevel)
            - reduce_dimension(_ceil_div(x0, component.dx), rlevel)
        )
        nrows = (
            reduce_dimension(_ceil_div(y1, component.dy), rlevel)
            - reduce_dimension(_ceil_div(y0, component.dy), rlevel)
        )
        return nrows, ncols

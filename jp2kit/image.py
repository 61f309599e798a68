"""In-memory images with packed ARGB pixels.
"""
# Third party library imports ...
import numpy as np


def pack_argb(red, green, blue, alpha=None):
    """Pack 8-bit channel planes into 0xAARRGGBB values.

    Parameters
    ----------
    red, green, blue : ndarray
        2D planes of identical shape, values in [0, 255].
    alpha : ndarray, optional
        Opacity plane, fully opaque if not provided.

    Returns
    -------
    ndarray
        C-contiguous uint32 array.
    """
    pixels = np.full(red.shape, 0xff000000, dtype=np.uint32)
    if alpha is not None:
        pixels = alpha.astype(np.uint32) << 24
    pixels |= red.astype(np.uint32) << 16
    pixels |= green.astype(np.uint32) << 8
    pixels |= blue.astype(np.uint32)
    return np.ascontiguousarray(pixels)


def unpack_argb(pixels):
    """Split packed pixels into uint8 alpha, red, green and blue planes."""
    alpha = ((pixels >> 24) & 0xff).astype(np.uint8)
    red = ((pixels >> 16) & 0xff).astype(np.uint8)
    green = ((pixels >> 8) & 0xff).astype(np.uint8)
    blue = (pixels & 0xff).astype(np.uint8)
    return alpha, red, green, blue


def premultiply(channel, alpha):
    """Scale a color channel by alpha / 255, rounding to nearest."""
    value = (channel.astype(np.uint32) * alpha + 127) // 255
    return np.minimum(value, 255).astype(np.uint8)


def unpremultiply(channel, alpha):
    """Undo premultiply.  Fully transparent pixels lose their color."""
    alpha = alpha.astype(np.uint32)
    with np.errstate(divide='ignore', invalid='ignore'):
        value = (channel.astype(np.uint32) * 255 + alpha // 2) // alpha
    value = np.where(alpha == 0, 0, value)
    return np.minimum(value, 255).astype(np.uint8)


class Image(object):
    """Decoded image, one 32-bit ARGB value per pixel.

    Attributes
    ----------
    pixels : ndarray
        C-contiguous uint32 array of shape (height, width).  Each value is
        laid out as 0xAARRGGBB.
    has_alpha : bool
        True if the alpha byte is meaningful.  Without alpha it is 0xff.
    is_premultiplied : bool
        True if the color bytes have been scaled by alpha / 255.  Never True
        for an image without alpha.
    """

    def __init__(self, pixels, has_alpha=False, is_premultiplied=False):
        pixels = np.ascontiguousarray(pixels, dtype=np.uint32)
        if pixels.ndim != 2 or 0 in pixels.shape:
            msg = (
                f'Packed pixels must be a non-empty 2D array, not of shape '
                f'{pixels.shape}.'
            )
            raise ValueError(msg)

        self.pixels = pixels
        self.has_alpha = bool(has_alpha)
        self.is_premultiplied = bool(is_premultiplied) and self.has_alpha

    def __repr__(self):
        msg = (
            f'jp2kit.Image(<{self.width} x {self.height}>, '
            f'has_alpha={self.has_alpha}, '
            f'is_premultiplied={self.is_premultiplied})'
        )
        return msg

    @property
    def width(self):
        return self.pixels.shape[1]

    @property
    def height(self):
        return self.pixels.shape[0]

    @property
    def is_grey(self):
        """True if red, green and blue agree everywhere."""
        _, red, green, blue = unpack_argb(self.pixels)
        return np.array_equal(red, green) and np.array_equal(green, blue)

    @classmethod
    def from_array(cls, array):
        """Create an image from an 8-bit numpy array.

        Parameters
        ----------
        array : ndarray
            uint8 array, either 2D grey or of shape (height, width, n) with n
            being 1 (grey), 2 (grey + alpha), 3 (RGB) or 4 (RGBA).

        Returns
        -------
        Image
            The image, never premultiplied.
        """
        array = np.asarray(array)
        if array.dtype != np.uint8:
            msg = f'Only uint8 images are supported, not {array.dtype}.'
            raise ValueError(msg)

        if array.ndim == 2:
            array = array[:, :, np.newaxis]
        if array.ndim != 3 or array.shape[2] not in (1, 2, 3, 4):
            msg = (
                f'An image array must have shape (height, width) or '
                f'(height, width, 1|2|3|4), not {array.shape}.'
            )
            raise ValueError(msg)

        num_channels = array.shape[2]
        if num_channels <= 2:
            red = green = blue = array[:, :, 0]
        else:
            red, green, blue = array[:, :, 0], array[:, :, 1], array[:, :, 2]

        if num_channels in (2, 4):
            alpha = array[:, :, -1]
        else:
            alpha = None

        pixels = pack_argb(red, green, blue, alpha)
        return cls(pixels, has_alpha=alpha is not None)

    def to_array(self):
        """Return the pixels as an RGBA uint8 array of shape (h, w, 4)."""
        alpha, red, green, blue = unpack_argb(self.pixels)
        return np.stack((red, green, blue, alpha), axis=2)

    def premultiplied(self):
        """Return the image with colors scaled by alpha.

        Images without alpha and images already premultiplied are returned
        as they are.
        """
        if not self.has_alpha or self.is_premultiplied:
            return self

        alpha, red, green, blue = unpack_argb(self.pixels)
        pixels = pack_argb(premultiply(red, alpha),
                           premultiply(green, alpha),
                           premultiply(blue, alpha),
                           alpha)
        return Image(pixels, has_alpha=True, is_premultiplied=True)

    def unpremultiplied(self):
        """Return the image with straight, i.e. not premultiplied, colors."""
        if not self.is_premultiplied:
            return self

        alpha, red, green, blue = unpack_argb(self.pixels)
        pixels = pack_argb(unpremultiply(red, alpha),
                           unpremultiply(green, alpha),
                           unpremultiply(blue, alpha),
                           alpha)
        return Image(pixels, has_alpha=True, is_premultiplied=False)

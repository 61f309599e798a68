"""Scoped access to the OpenJPEG codec.

Every decode or encode runs inside exactly one codec session.  A session
owns a freshly created codec along with the streams and images registered
on it, and releases all of them when the session ends, whatever the reason.
No codec state survives a session, so sessions in different threads never
share anything.  Library builds that cannot run concurrent codecs at all can
be accommodated with the 'lib.serialize_codec' option.
"""
# Standard library imports
import contextlib
import ctypes
import logging
import threading
import warnings

# Local imports
from . import version
from .lib import openjp2 as opj2
from .core import FORMAT_J2K, FORMAT_JP2
from .options import get_option

logger = logging.getLogger(__name__)

DECOMPRESS = 'decompress'
COMPRESS = 'compress'

# Public format constants mapped to the library's codec identifiers.
CODEC_FORMATS = {
    FORMAT_J2K: opj2.CODEC_J2K,
    FORMAT_JP2: opj2.CODEC_JP2,
}

# Held by every session while 'lib.serialize_codec' is True.
_CODEC_LOCK = threading.Lock()


class CodecError(opj2.OpenJPEGLibraryError):
    """The OpenJPEG library failed during a session.

    Attributes
    ----------
    messages : tuple
        Error messages emitted by the library during the session.
    """

    def __init__(self, msg, messages=()):
        self.messages = tuple(messages)
        if self.messages:
            msg = f'{msg}  ' + '  '.join(self.messages)
        super().__init__(msg)


class CodecSession(object):
    """A single OpenJPEG codec along with its native resources.

    Attributes
    ----------
    kind : str
        DECOMPRESS or COMPRESS.
    codec : CODEC_TYPE
        The codec handle, valid for the lifetime of the session only.
    messages : list
        Error messages from the library, oldest first.
    """

    def __init__(self, stack, kind, codec_format):
        self.kind = kind
        self.messages = []
        self._stack = stack

        # ctypes callbacks must outlive every native call that may use them.
        self._callbacks = []

        if kind == DECOMPRESS:
            self.codec = opj2.create_decompress(codec_format)
        else:
            self.codec = opj2.create_compress(codec_format)
        stack.callback(opj2.destroy_codec, self.codec)

        error_handler = self._keep(opj2.message_callback(self._on_error))
        warning_handler = self._keep(opj2.message_callback(self._on_warning))
        info_handler = self._keep(opj2.message_callback(self._on_info))

        opj2.set_error_handler(self.codec, error_handler)
        opj2.set_warning_handler(self.codec, warning_handler)
        opj2.set_info_handler(self.codec, info_handler)

    def _keep(self, callback):
        self._callbacks.append(callback)
        return callback

    def _on_error(self, msg):
        self.messages.append(msg)
        logger.error(msg)

    def _on_warning(self, msg):
        logger.warning(msg)

    def _on_info(self, msg):
        logger.debug(msg)

    def set_threads(self):
        """Hand the configured number of threads to the codec.

        Must be called after the codec has been set up.
        """
        num_threads = get_option('lib.num_threads')
        if num_threads <= 1:
            return

        if self.kind == COMPRESS and version.openjpeg_version_tuple < (2, 4, 0):
            msg = (
                f"Threaded encoding is not supported in library versions "
                f"prior to 2.4.0.  Your version is "
                f"{version.openjpeg_version}."
            )
            warnings.warn(msg, UserWarning)
            return

        opj2.codec_set_threads(self.codec, num_threads)

    def track_image(self, image):
        """Destroy the image when the session ends."""
        self._stack.callback(opj2.image_destroy, image)
        return image

    def file_stream(self, path, is_read):
        """Create a stream on a file, closed when the session ends."""
        stream = opj2.stream_create_default_file_stream(path, is_read)
        self._stack.callback(opj2.stream_destroy, stream)
        return stream

    def memory_stream(self, fileobj, is_read):
        """Create a stream on a seekable binary file object.

        Parameters
        ----------
        fileobj : io.BytesIO or similar
            Holds the encoded data when reading, receives it when writing.
            Writing must allow seeking back, as the JP2 format patches box
            lengths after the fact.
        is_read : bool
            True for decoding, False for encoding.
        """
        fileobj.seek(0, 2)
        length = fileobj.tell()
        fileobj.seek(0)

        stream = opj2.stream_create(opj2.J2K_STREAM_CHUNK_SIZE, is_read)
        self._stack.callback(opj2.stream_destroy, stream)

        def _read(buffer, nbytes, _):
            data = fileobj.read(nbytes)
            if not data:
                return opj2.STREAM_EOF
            ctypes.memmove(buffer, data, len(data))
            return len(data)

        def _write(buffer, nbytes, _):
            return fileobj.write(ctypes.string_at(buffer, nbytes))

        def _skip(nbytes, _):
            position = fileobj.tell() + nbytes
            if position < 0:
                return -1
            if is_read:
                position = min(position, length)
            start = fileobj.tell()
            fileobj.seek(position)
            return position - start

        def _seek(offset, _):
            if offset < 0 or (is_read and offset > length):
                return opj2.FALSE
            fileobj.seek(offset)
            return opj2.TRUE

        opj2.stream_set_skip_function(stream, self._keep(opj2.STREAM_SKIP_FN(_skip)))  # noqa : E501
        opj2.stream_set_seek_function(stream, self._keep(opj2.STREAM_SEEK_FN(_seek)))  # noqa : E501
        if is_read:
            opj2.stream_set_read_function(stream, self._keep(opj2.STREAM_READ_FN(_read)))  # noqa : E501
            opj2.stream_set_user_data_length(stream, length)
        else:
            opj2.stream_set_write_function(stream, self._keep(opj2.STREAM_WRITE_FN(_write)))  # noqa : E501

        return stream


@contextlib.contextmanager
def codec_session(kind, codec_format):
    """Run a block of OpenJPEG calls with a codec of its own.

    Parameters
    ----------
    kind : str
        DECOMPRESS or COMPRESS.
    codec_format : int
        opj2.CODEC_J2K or opj2.CODEC_JP2.

    Yields
    ------
    CodecSession

    Raises
    ------
    RuntimeError
        If the OpenJPEG library is not available.
    CodecError
        If any library routine fails inside the block.

    Examples
    --------
    >>> from jp2kit.context import codec_session, DECOMPRESS
    >>> with codec_session(DECOMPRESS, opj2.CODEC_JP2) as session:
    ...     stream = session.memory_stream(io.BytesIO(data), True)
    ...     image = session.track_image(opj2.read_header(stream, session.codec))
    """
    if opj2.OPENJP2 is None:
        raise RuntimeError('The OpenJPEG library could not be loaded.')
    if version.openjpeg_version_tuple < (2, 3, 0):
        msg = (
            f"You must have at least version 2.3.0 of OpenJPEG installed "
            f"before using jp2kit.  Your version is "
            f"{version.openjpeg_version}."
        )
        raise RuntimeError(msg)

    with contextlib.ExitStack() as stack:
        if get_option('lib.serialize_codec'):
            stack.enter_context(_CODEC_LOCK)

        session = None
        try:
            session = CodecSession(stack, kind, codec_format)
            yield session
        except CodecError:
            raise
        except opj2.OpenJPEGLibraryError as err:
            messages = () if session is None else session.messages
            raise CodecError(str(err), messages) from err

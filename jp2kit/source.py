"""Normalize the various ways encoded data may be handed to jp2kit.

A source is one of

    bytes, bytearray or memoryview
    a binary stream, i.e. anything with a read() method
    a path, either a str or an os.PathLike object

Streams are read to the end exactly once, the rest of the package only ever
sees bytes or a pathlib.Path.
"""
# Standard library imports
import contextlib
import io
import os
import pathlib


def check(source):
    """Raise TypeError unless the source is of a supported kind.

    None is accepted, it simply never decodes.
    """
    if source is None:
        return
    if isinstance(source, (bytes, bytearray, memoryview, str, os.PathLike)):
        return
    if hasattr(source, 'read'):
        return

    msg = (
        f'The source must be bytes, a binary stream or a path, not '
        f'{type(source).__name__}.'
    )
    raise TypeError(msg)


def load(source):
    """Reduce a source to either bytes or a pathlib.Path.

    Parameters
    ----------
    source : bytes-like, stream, path or None

    Returns
    -------
    bytes, pathlib.Path or None

    Raises
    ------
    TypeError
        If the source is of an unsupported kind or a stream does not produce
        bytes.
    OSError
        If reading the stream fails.
    ValueError
        If the stream is closed.
    """
    check(source)

    if source is None:
        return None

    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source)

    if isinstance(source, (str, os.PathLike)):
        return pathlib.Path(source)

    data = source.read()
    if not isinstance(data, (bytes, bytearray)):
        msg = (
            f'The stream must be opened in binary mode, its read() method '
            f'returned {type(data).__name__}.'
        )
        raise TypeError(msg)
    return bytes(data)


@contextlib.contextmanager
def open_binary(payload):
    """Yield a seekable binary file object along with its length in bytes.

    Parameters
    ----------
    payload : bytes or pathlib.Path
        As returned by load.
    """
    if isinstance(payload, pathlib.Path):
        with payload.open('rb') as f:
            length = os.fstat(f.fileno()).st_size
            yield f, length
    else:
        with io.BytesIO(payload) as f:
            yield f, len(payload)

"""Walk the box structure of a JP2 file.

Only the boxes needed to describe the image are interpreted: the signature
and file type boxes, the JP2 header superbox with its image header and
channel definition boxes, and the contiguous codestream box, whose contents
are left to the codestream parser.

References
----------
.. [JP2K15444-1i] International Organization for Standardication.  ISO/IEC
   15444-1:2004 - Information technology -- JPEG 2000 image coding system:
   Core coding system
"""
# Standard library imports
import logging
import struct
import warnings

# Local imports
from .core import ALPHA_CHANNEL_TYPES

logger = logging.getLogger(__name__)


class InvalidJp2kError(RuntimeError):
    """Raised when the data does not form a valid JPEG 2000 file."""
    pass


class Jp2kBox(object):
    """Superclass for JPEG 2000 boxes.

    Attributes
    ----------
    box_id : str
        4-character identifier for the box.
    length : int
        length of the box in bytes.
    offset : int
        offset of the box from the start of the file.
    box : list
        List of JPEG 2000 boxes.
    """
    box_id = ''
    longname = ''

    def __init__(self, offset=0, length=0):
        self.length = length
        self.offset = offset
        self.box = []

    def __str__(self):
        return f"{self.longname} Box ({self.box_id}) @ ({self.offset}, {self.length})"  # noqa : E501

    def _parse_this_box(self, fptr, box_id, start, num_bytes):
        """Parse the current box.

        Parameters
        ----------
        fptr : file
            Open file object, currently points to start of box payload, not the
            start of the box.
        box_id : bytes
            4-letter identifier for the current box.
        start, num_bytes : int
            Byte offset and length of the current box.

        Returns
        -------
        Jp2kBox
            Object corresponding to the current box.
        """
        try:
            parser = _BOX_WITH_ID[box_id].parse
        except KeyError:
            # Nothing here affects decoding, so just note where it was.
            box_id = box_id.decode('latin-1')
            logger.debug(f'Skipping {box_id} box at byte offset {start}.')
            return UnknownBox(box_id, offset=start, length=num_bytes)

        try:
            box = parser(fptr, start, num_bytes)
        except (ValueError, struct.error) as err:
            msg = (
                f'Unable to parse the {_BOX_WITH_ID[box_id].longname} box at '
                f'byte offset {start}:  "{err}".'
            )
            raise InvalidJp2kError(msg) from err

        return box

    def parse_superbox(self, fptr, end):
        """Parse a superbox (box consisting of nothing but other boxes).

        Parameters
        ----------
        fptr : file
            Open file object, positioned at the first child box.
        end : int
            Byte offset where the superbox ends.

        Returns
        -------
        list
            List of child boxes.
        """
        superbox = []

        start = fptr.tell()

        while start < end:

            read_buffer = fptr.read(8)
            if len(read_buffer) < 8:
                msg = "Extra bytes at end of file ignored."
                warnings.warn(msg, UserWarning)
                return superbox

            (box_length, box_id) = struct.unpack('>I4s', read_buffer)
            if box_length == 0:
                # The length of the box is presumed to last until the end of
                # the superbox.
                num_bytes = end - start

            elif box_length == 1:
                # The length of the box is in the XL field, a 64-bit value.
                read_buffer = fptr.read(8)
                if len(read_buffer) < 8:
                    raise InvalidJp2kError('Truncated box header.')
                num_bytes, = struct.unpack('>Q', read_buffer)

            else:
                # The box_length value really is the length of the box!
                num_bytes = box_length

            if num_bytes < fptr.tell() - start:
                msg = (
                    f'The {box_id} box at byte offset {start} has an invalid '
                    f'length of {num_bytes}.'
                )
                raise InvalidJp2kError(msg)

            if start + num_bytes > end:
                # The box claims more bytes than there are.
                msg = (
                    f'The {box_id} box at byte offset {start} extends '
                    f'{start + num_bytes - end} bytes past the end of its '
                    f'enclosing box or file, the data appears to be truncated.'
                )
                raise InvalidJp2kError(msg)

            box = self._parse_this_box(fptr, box_id, start, num_bytes)

            superbox.append(box)

            # Position to the start of the next box.
            fptr.seek(start + num_bytes)
            start += num_bytes

        return superbox


class UnknownBox(Jp2kBox):
    """Any box whose contents do not matter here."""
    longname = 'Unknown'

    def __init__(self, box_id, offset=0, length=0):
        super().__init__(offset=offset, length=length)
        self.box_id = box_id


class JPEG2000SignatureBox(Jp2kBox):
    """Container for JPEG 2000 signature box information.

    Attributes
    ----------
    signature : tuple
        Four-byte tuple identifying the file as JPEG 2000.
    """
    box_id = 'jP  '
    longname = 'JPEG 2000 Signature'

    def __init__(self, signature=(13, 10, 135, 10), length=0, offset=-1):
        super().__init__(offset=offset, length=length)
        self.signature = signature

    @classmethod
    def parse(cls, fptr, offset, length):
        read_buffer = fptr.read(4)
        signature = struct.unpack('>BBBB', read_buffer)
        return cls(signature=signature, length=length, offset=offset)


class FileTypeBox(Jp2kBox):
    """Container for JPEG 2000 file type box information.

    Attributes
    ----------
    brand: str
        Specifies the governing recommendation or standard upon which this
        file is based.
    minor_version: int
        Minor version number identifying the JP2 specification used.
    compatibility_list: list
        List of file conformance profiles.
    """
    box_id = 'ftyp'
    longname = 'File Type'

    def __init__(self, brand='jp2 ', minor_version=0,
                 compatibility_list=None, length=0, offset=-1):
        super().__init__(offset=offset, length=length)
        self.brand = brand
        self.minor_version = minor_version
        if compatibility_list is None:
            self.compatibility_list = ['jp2 ']
        else:
            self.compatibility_list = compatibility_list

    @classmethod
    def parse(cls, fptr, offset, length):
        num_bytes = offset + length - fptr.tell()
        read_buffer = fptr.read(num_bytes)

        brand, minor_version = struct.unpack_from('>4sI', read_buffer, 0)
        num_entries = (length - 16) // 4
        compatibility_list = []
        for j in range(num_entries):
            entry, = struct.unpack_from('>4s', read_buffer, 8 + j * 4)
            compatibility_list.append(entry.decode('latin-1'))

        return cls(brand=brand.decode('latin-1'),
                   minor_version=minor_version,
                   compatibility_list=compatibility_list,
                   length=length, offset=offset)


class JP2HeaderBox(Jp2kBox):
    """Container for JP2 header box information."""
    box_id = 'jp2h'
    longname = 'JP2 Header'

    @classmethod
    def parse(cls, fptr, offset, length):
        box = cls(offset=offset, length=length)
        box.box = box.parse_superbox(fptr, offset + length)
        return box


class ImageHeaderBox(Jp2kBox):
    """Container for JPEG 2000 image header box information.

    Attributes
    ----------
    height, width :  int
        Height and width of image.
    num_components : int
        Number of image channels.
    bits_per_component : int
        Bits per component.
    signed : bool
        False if the image components are unsigned.
    """
    box_id = 'ihdr'
    longname = 'Image Header'

    def __init__(self, height, width, num_components=1, signed=False,
                 bits_per_component=8, length=0, offset=-1):
        super().__init__(offset=offset, length=length)
        self.height = height
        self.width = width
        self.num_components = num_components
        self.signed = signed
        self.bits_per_component = bits_per_component

    @classmethod
    def parse(cls, fptr, offset, length):
        """Parse JPEG 2000 image header box.

        Parameters
        ----------
        fptr : file
            Open file object.
        offset : int
            Start position of box in bytes.
        length : int
            Length of the box in bytes.

        Returns
        -------
        ImageHeaderBox
            Instance of the current image header box.
        """
        read_buffer = fptr.read(14)
        params = struct.unpack('>IIHBBBB', read_buffer)
        height = params[0]
        width = params[1]
        num_components = params[2]
        bits_per_component = (params[3] & 0x7f) + 1
        signed = (params[3] & 0x80) > 1

        return cls(height, width, num_components=num_components,
                   bits_per_component=bits_per_component,
                   signed=signed,
                   length=length, offset=offset)


class ChannelDefinitionBox(Jp2kBox):
    """Container for component definition box information.

    Attributes
    ----------
    index : tuple
        number of the channel.
    channel_type : tuple
        type of the channel
    association : tuple
        index of the associated color
    """
    box_id = 'cdef'
    longname = 'Channel Definition'

    def __init__(self, channel_type, association, index=None, length=0,
                 offset=-1):
        super().__init__(offset=offset, length=length)

        if index is None:
            self.index = tuple(range(len(channel_type)))
        else:
            self.index = tuple(index)

        self.channel_type = tuple(channel_type)
        self.association = tuple(association)

    @property
    def has_alpha(self):
        """True if any channel carries opacity."""
        return any(x in ALPHA_CHANNEL_TYPES for x in self.channel_type)

    @classmethod
    def parse(cls, fptr, offset, length):
        """Parse component definition box.

        Parameters
        ----------
        fptr : file
            Open file object.
        offset : int
            Start position of box in bytes.
        length : int
            Length of the box in bytes.

        Returns
        -------
        ChannelDefinitionBox
            Instance of the current component definition box.
        """
        num_bytes = offset + length - fptr.tell()
        read_buffer = fptr.read(num_bytes)

        # Read the number of components.
        num_components, = struct.unpack_from('>H', read_buffer)

        data = struct.unpack_from('>' + 'HHH' * num_components, read_buffer,
                                  offset=2)
        index = data[0:num_components * 6:3]
        channel_type = data[1:num_components * 6:3]
        association = data[2:num_components * 6:3]

        return cls(index=tuple(index),
                   channel_type=tuple(channel_type),
                   association=tuple(association),
                   length=length, offset=offset)


class ContiguousCodestreamBox(Jp2kBox):
    """Container for JPEG2000 codestream information.

    Attributes
    ----------
    main_header_offset : int
        offset of main header from start of file
    """
    box_id = 'jp2c'
    longname = 'Contiguous Codestream'

    def __init__(self, main_header_offset=None, length=0, offset=-1):
        super().__init__(offset=offset, length=length)
        self.main_header_offset = main_header_offset

    @property
    def codestream_length(self):
        """Length of the codestream proper, without the box header."""
        return self.offset + self.length - self.main_header_offset

    @classmethod
    def parse(cls, fptr, offset, length):
        # The codestream itself is not read here.
        return cls(main_header_offset=fptr.tell(),
                   length=length, offset=offset)


_BOX_WITH_ID = {
    b'jP  ': JPEG2000SignatureBox,
    b'ftyp': FileTypeBox,
    b'jp2h': JP2HeaderBox,
    b'ihdr': ImageHeaderBox,
    b'cdef': ChannelDefinitionBox,
    b'jp2c': ContiguousCodestreamBox,
}


def parse_jp2(fptr, end):
    """Walk the top level boxes of a JP2 file.

    Parameters
    ----------
    fptr : file
        Open file object positioned at the start of the file.
    end : int
        Byte offset of the end of the available data.

    Returns
    -------
    list
        Top level boxes.

    Raises
    ------
    InvalidJp2kError
        If the file is not JP2 or the box structure is damaged.
    """
    # First 4 bytes should be 12, the length of the 'jP  ' box.
    # 2nd 4 bytes should be the box ID ('jP  ').
    # 3rd 4 bytes should be the box signature (13, 10, 135, 10).
    start = fptr.tell()
    read_buffer = fptr.read(12)
    if len(read_buffer) < 12:
        raise InvalidJp2kError('Not enough data for a JP2 signature box.')

    values = struct.unpack('>I4s4B', read_buffer)
    box_length = values[0]
    box_id = values[1]
    signature = values[2:]

    if (
        box_length != 12
        or box_id != b'jP  '
        or signature != (13, 10, 135, 10)
    ):
        raise InvalidJp2kError('The data is not a JP2 file.')

    fptr.seek(start)
    boxes = Jp2kBox().parse_superbox(fptr, end)

    # The 2nd box must be a file type box.
    if len(boxes) < 2 or not isinstance(boxes[1], FileTypeBox):
        raise InvalidJp2kError(
            'The second box of a JP2 file must be a file type box.'
        )

    return boxes

"""Codestream information.

The module contains classes used to store information parsed from the main
header of a JPEG 2000 codestream.
"""
# Standard library imports
import math
import struct
import warnings

# Local imports
from .core import SOC, SIZ, COD, SOT, EOC
from .jp2box import InvalidJp2kError
from .lib import openjp2 as opj2


_WAVELET_TRANSFORM_DISPLAY = {
    0: '9-7 irreversible',
    1: '5-3 reversible'
}

_PROGRESSION_ORDER_DISPLAY = {
    0: 'LRCP',
    1: 'RLCP',
    2: 'RPCL',
    3: 'PCRL',
    4: 'CPRL',
}


class Codestream(object):
    """Container for codestream main header information.

    Parsing stops at the first start-of-tile marker, so the cost does not
    depend upon the size of the image.

    Attributes
    ----------
    segment : list
        list of marker segments in the main header
    offset : int
        Offset of the codestream from start of the file in bytes.
    length : int
        Length of the codestream in bytes.

    Raises
    ------
    InvalidJp2kError
        If the main header does not parse properly.
    """

    def __init__(self, fptr, length):
        """
        Parameters
        ----------
        fptr : file
            Open file object positioned at the SOC marker.
        length : int
            Length of the codestream in bytes.
        """
        self.offset = fptr.tell()
        self.length = length
        self.segment = []

        # Number of components, needed by segments following SIZ.
        self._csiz = -1

        read_buffer = fptr.read(2)
        if read_buffer != struct.pack('>H', SOC):
            msg = f'Expected SOC marker at byte offset {self.offset}.'
            raise InvalidJp2kError(msg)
        self.segment.append(Segment('SOC', offset=self.offset, length=0))

        while True:

            marker_offset = fptr.tell()
            if marker_offset + 2 > self.offset + self.length:
                msg = 'The codestream ended within its main header.'
                raise InvalidJp2kError(msg)

            read_buffer = fptr.read(2)
            try:
                marker_id, = struct.unpack('>H', read_buffer)
            except struct.error:
                msg = (
                    f'Invalid codestream, expected to find a marker at byte '
                    f'position {marker_offset}.'
                )
                raise InvalidJp2kError(msg)

            if marker_id == SOT:
                # Start-of-tile (SOT) means that we are out of the main header
                # and there is no need to go further.
                break

            if marker_id == EOC or (marker_id & 0xff00) != 0xff00:
                msg = (
                    f'Invalid marker ID 0x{marker_id:x} encountered at byte '
                    f'{marker_offset:d} in the main header.'
                )
                raise InvalidJp2kError(msg)

            if marker_id == SIZ:
                segment = self._parse_siz_segment(fptr)
            elif marker_id == COD:
                segment = self._parse_cod_segment(fptr)
            elif 0xff30 <= marker_id <= 0xff3f:
                # Reserved markers without a segment.
                segment = Segment(f'0x{marker_id:x}', marker_offset, 0)
            else:
                segment = self._parse_other_segment(fptr, marker_id)

            self.segment.append(segment)

        if self.siz is None or self.cod is None:
            msg = 'The main header lacks the mandatory SIZ or COD segment.'
            raise InvalidJp2kError(msg)

    @property
    def siz(self):
        return next(filter(lambda x: x.marker_id == 'SIZ', self.segment), None)

    @property
    def cod(self):
        return next(filter(lambda x: x.marker_id == 'COD', self.segment), None)

    def _read_segment(self, fptr):
        """Read the length and the payload of the current marker segment."""
        offset = fptr.tell() - 2

        read_buffer = fptr.read(2)
        if len(read_buffer) < 2:
            raise InvalidJp2kError('Truncated marker segment.')
        length, = struct.unpack('>H', read_buffer)

        read_buffer = fptr.read(length - 2)
        if len(read_buffer) < length - 2:
            msg = f'The marker segment at byte offset {offset} is truncated.'
            raise InvalidJp2kError(msg)

        return offset, length, read_buffer

    def _parse_other_segment(self, fptr, marker_id):
        """Any other main header segment is skipped."""
        offset, length, _ = self._read_segment(fptr)
        return Segment(f'0x{marker_id:x}', offset=offset, length=length)

    def _parse_cod_segment(self, fptr):
        """Parse the COD segment.

        Parameters
        ----------
        fptr : file
            Open file object.

        Returns
        -------
        CODSegment
            The current COD segment.
        """
        offset, length, read_buffer = self._read_segment(fptr)

        lst = struct.unpack_from('>BBHBBBBBB', read_buffer, offset=0)
        scod, prog, nlayers, mct, nr, xcb, ycb, cstyle, xform = lst

        return CODsegment(scod, prog, nlayers, mct, nr, xcb, ycb, cstyle,
                          xform, length=length, offset=offset)

    def _parse_siz_segment(self, fptr):
        """Parse the SIZ segment.

        Parameters
        ----------
        fptr : file
            Open file object.

        Returns
        -------
        SIZSegment
            The current SIZ segment.
        """
        offset, length, read_buffer = self._read_segment(fptr)

        data = struct.unpack_from('>HIIIIIIIIH', read_buffer)

        rsiz = data[0]
        xysiz = (data[1], data[2])
        xyosiz = (data[3], data[4])
        xytsiz = (data[5], data[6])
        xytosiz = (data[7], data[8])

        # Csiz is the number of components
        Csiz = data[9]
        if Csiz == 0 or len(read_buffer) < 36 + 3 * Csiz:
            msg = f'Invalid number of components in SIZ segment: {Csiz}.'
            raise InvalidJp2kError(msg)

        data = struct.unpack_from('>' + 'B' * (3 * Csiz), read_buffer,
                                  offset=36)

        bitdepth = tuple(((x & 0x7f) + 1) for x in data[0::3])
        signed = tuple(((x & 0x80) > 0) for x in data[0::3])
        xrsiz = data[1::3]
        yrsiz = data[2::3]

        if xysiz[0] <= xyosiz[0] or xysiz[1] <= xyosiz[1]:
            msg = (
                f'Invalid image area:  reference grid of {xysiz[0]} x '
                f'{xysiz[1]} with offset {xyosiz[0]} x {xyosiz[1]}.'
            )
            raise InvalidJp2kError(msg)

        for j, subsampling in enumerate(zip(xrsiz, yrsiz)):
            if 0 in subsampling:
                msg = (
                    f'Invalid subsampling value for component {j}: '
                    f'dx={subsampling[0]}, dy={subsampling[1]}.'
                )
                raise InvalidJp2kError(msg)

        self._csiz = Csiz

        return SIZsegment(rsiz=rsiz, xysiz=xysiz, xyosiz=xyosiz,
                          xytsiz=xytsiz, xytosiz=xytosiz, Csiz=Csiz,
                          bitdepth=bitdepth, signed=signed,
                          xyrsiz=(xrsiz, yrsiz), length=length, offset=offset)


def ends_with_eoc(fptr, offset, length):
    """Does the codestream end with the EOC marker?

    A codestream cut short loses its EOC marker, so this is a cheap test for
    truncation.  Only the final two bytes are read.
    """
    if length < 4:
        return False
    fptr.seek(offset + length - 2)
    return fptr.read(2) == struct.pack('>H', EOC)


class Segment(object):
    """Segment information.

    Attributes
    ----------
    marker_id : str
        Identifier for the segment.
    offset : int
        Offset of marker segment in bytes from beginning of file.
    length : int
        Length of marker segment in bytes.  This number does not include the
        two bytes constituting the marker.
    """
    def __init__(self, marker_id='', offset=-1, length=-1):
        self.marker_id = marker_id
        self.offset = offset
        self.length = length

    def __str__(self):
        return f'{self.marker_id} marker segment @ ({self.offset}, {self.length})'  # noqa : E501


class CODsegment(Segment):
    """COD segment information.

    Attributes
    ----------
    scod : int
        Default coding style
    prog_order : int
        Progression order
    layers : int
        Number of quality layers
    mct : int
        Multiple component transform usage
    num_res : int
        Number of decomposition levels, i.e. one less than the number of
        resolutions
    code_block_size : tuple
        Size of code block
    cstyle : int
        Style of the code-block passes
    xform : int
        Wavelet transform used
    """
    def __init__(self, scod, prog_order, num_layers, mct, nr, xcb, ycb,
                 cstyle, xform, length=0, offset=0):
        super().__init__(marker_id='COD', length=length, offset=offset)
        self.scod = scod
        self.prog_order = prog_order
        self.layers = num_layers
        self.mct = mct
        self.cstyle = cstyle
        self.xform = xform

        if nr >= opj2.J2K_MAXRLVLS:
            msg = f'Invalid number of resolutions: ({nr + 1}).'
            warnings.warn(msg, UserWarning)
        self.num_res = nr

        self.code_block_size = (4 * math.pow(2, ycb), 4 * math.pow(2, xcb))

    def __str__(self):
        msg = Segment.__str__(self)

        try:
            progression_order = _PROGRESSION_ORDER_DISPLAY[self.prog_order]
        except KeyError:
            progression_order = f'{self.prog_order} (invalid)'
        try:
            xform = _WAVELET_TRANSFORM_DISPLAY[self.xform]
        except KeyError:
            xform = f'{self.xform} (invalid)'

        msg += (
            f'\n'
            f'    Progression order:  {progression_order}\n'
            f'    Number of layers:  {self.layers}\n'
            f'    Multiple component transformation usage:  '
            f'{"yes" if self.mct else "no"}\n'
            f'    Number of resolutions:  {self.num_res + 1}\n'
            f'    Code block height, width:  '
            f'({int(self.code_block_size[0])} x '
            f'{int(self.code_block_size[1])})\n'
            f'    Wavelet transform:  {xform}'
        )
        return msg


class SIZsegment(Segment):
    """Container for SIZ segment information.

    Attributes
    ----------
    rsiz : int
        Capabilities (profile) of codestream.
    xsiz, ysiz : int
        Width, height of reference grid.
    xosiz, yosiz : int
        Horizontal, vertical offset of reference grid.
    xtsiz, ytsiz : int
        Width and height of reference tile with respect to the reference grid.
    xtosiz, ytosiz : int
        Horizontal and vertical offsets of tile from origin of reference grid.
    Csiz : int
        Number of components in image.
    bitdepth : tuple
        Precision (depth) in bits of each component.
    signed : tuple
        Signedness of each component.
    xrsiz, yrsiz : tuple
        Horizontal and vertical sample separations with respect to reference
        grid.
    """
    def __init__(self, rsiz=-1, xysiz=None, xyosiz=-1, xytsiz=-1, xytosiz=-1,
                 Csiz=-1, bitdepth=None, signed=None, xyrsiz=-1, length=-1,
                 offset=-1):
        super().__init__(marker_id='SIZ', length=length, offset=offset)

        self.rsiz = rsiz
        self.xsiz, self.ysiz = xysiz
        self.xosiz, self.yosiz = xyosiz
        self.xtsiz, self.ytsiz = xytsiz
        self.xtosiz, self.ytosiz = xytosiz
        self.Csiz = Csiz
        self.bitdepth = bitdepth
        self.signed = signed
        self.xrsiz, self.yrsiz = xyrsiz

    def __str__(self):
        msg = Segment.__str__(self)
        msg += (
            f'\n'
            f'    Reference Grid Height, Width:  ({self.ysiz} x {self.xsiz})\n'
            f'    Vertical, Horizontal Reference Grid Offset:  '
            f'({self.yosiz} x {self.xosiz})\n'
            f'    Reference Tile Height, Width:  '
            f'({self.ytsiz} x {self.xtsiz})\n'
            f'    Bitdepth:  {self.bitdepth}\n'
            f'    Signed:  {self.signed}\n'
            f'    Vertical, Horizontal Subsampling:  '
            f'{tuple(zip(self.yrsiz, self.xrsiz))}'
        )
        return msg

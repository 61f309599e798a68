"""
Wraps individual functions in openjp2 library.
"""
import ctypes

from ..config import jp2kit_config

OPENJP2 = jp2kit_config('openjp2')


class OpenJPEGLibraryError(IOError):
    """
    Issue when the OpenJPEG library signals an error.
    """
    pass


def version():
    """Wrapper for opj_version library routine."""
    if OPENJP2 is None:
        return "0.0.0"

    OPENJP2.opj_version.restype = ctypes.c_char_p
    library_version = OPENJP2.opj_version()
    return library_version.decode('utf-8')


# Map certain atomic OpenJPEG datatypes to the ctypes equivalents.
BOOL_TYPE = ctypes.c_int32
CODEC_TYPE = ctypes.c_void_p
PROG_ORDER_TYPE = ctypes.c_int32
CINEMA_MODE_TYPE = ctypes.c_int32
RSIZ_CAPABILITIES_TYPE = ctypes.c_int32
STREAM_TYPE_P = ctypes.c_void_p

PATH_LEN = 4096
J2K_MAXRLVLS = 33
J2K_MAXBANDS = (3 * J2K_MAXRLVLS - 2)

# tcp_rates and tcp_distoratio are fixed size arrays
J2K_MAXLAYERS = 100

JPWL_MAX_NO_TILESPECS = 16

# Default size of the internal buffer of a stream, 1MB.
J2K_STREAM_CHUNK_SIZE = 0x100000

TRUE = 1
FALSE = 0

# supported color spaces
CLRSPC_UNKNOWN = -1
CLRSPC_UNSPECIFIED = 0
CLRSPC_SRGB = 1
CLRSPC_GRAY = 2
CLRSPC_YCC = 3
CLRSPC_EYCC = 4
COLOR_SPACE_TYPE = ctypes.c_int

# supported codec
CODEC_FORMAT_TYPE = ctypes.c_int
CODEC_UNKNOWN = -1
CODEC_J2K = 0
CODEC_JPT = 1
CODEC_JP2 = 2

# Callback signatures.
MSG_CALLBACK_TYPE = ctypes.CFUNCTYPE(None, ctypes.c_char_p, ctypes.c_void_p)
STREAM_READ_FN = ctypes.CFUNCTYPE(
    ctypes.c_size_t, ctypes.c_void_p, ctypes.c_size_t, ctypes.c_void_p
)
STREAM_WRITE_FN = ctypes.CFUNCTYPE(
    ctypes.c_size_t, ctypes.c_void_p, ctypes.c_size_t, ctypes.c_void_p
)
STREAM_SKIP_FN = ctypes.CFUNCTYPE(
    ctypes.c_int64, ctypes.c_int64, ctypes.c_void_p
)
STREAM_SEEK_FN = ctypes.CFUNCTYPE(BOOL_TYPE, ctypes.c_int64, ctypes.c_void_p)

# A read function signals end-of-stream with (OPJ_SIZE_T)-1.
STREAM_EOF = ctypes.c_size_t(-1).value


class PocType(ctypes.Structure):
    """Progression order changes.

    Corresponds to poc_t type in openjp2 headers.
    """
    _fields_ = [
        # resolution and component start
        ("resno0",     ctypes.c_uint32),
        ("compno0",    ctypes.c_uint32),

        # layer, resolution and component end
        ("layno1",     ctypes.c_uint32),
        ("resno1",     ctypes.c_uint32),
        ("compno1",    ctypes.c_uint32),

        # layer start, precinct start and end
        ("layno0",     ctypes.c_uint32),
        ("precno0",    ctypes.c_uint32),
        ("precno1",    ctypes.c_uint32),

        ("prg1",       PROG_ORDER_TYPE),
        ("prg",        PROG_ORDER_TYPE),
        ("progorder",  ctypes.c_char * 5),
        ("tile",       ctypes.c_uint32),

        ("tx0",        ctypes.c_int32),
        ("tx1",        ctypes.c_int32),
        ("ty0",        ctypes.c_int32),
        ("ty1",        ctypes.c_int32),

        # filled in by the encoder itself
        ("layS",       ctypes.c_uint32),
        ("resS",       ctypes.c_uint32),
        ("compS",      ctypes.c_uint32),
        ("prcS",       ctypes.c_uint32),
        ("layE",       ctypes.c_uint32),
        ("resE",       ctypes.c_uint32),
        ("compE",      ctypes.c_uint32),
        ("prcE",       ctypes.c_uint32),
        ("txS",        ctypes.c_uint32),
        ("txE",        ctypes.c_uint32),
        ("tyS",        ctypes.c_uint32),
        ("tyE",        ctypes.c_uint32),
        ("dx",         ctypes.c_uint32),
        ("dy",         ctypes.c_uint32),
        ("lay_t",      ctypes.c_uint32),
        ("res_t",      ctypes.c_uint32),
        ("comp_t",     ctypes.c_uint32),
        ("prec_t",     ctypes.c_uint32),
        ("tx0_t",      ctypes.c_uint32),
        ("ty0_t",      ctypes.c_uint32)]


class DecompressionParametersType(ctypes.Structure):
    """Decompression parameters.

    Corresponds to dparameters_t type in openjp2 headers.
    """
    _fields_ = [
        # Number of highest resolution levels to be discarded.  Each level
        # halves the image dimensions, rounding up.
        ("cp_reduce",         ctypes.c_uint32),

        # Maximum number of quality layers to decode.  Zero means all of
        # them, as does any number larger than the layers present.
        ("cp_layer",          ctypes.c_uint32),

        ("infile",            ctypes.c_char * PATH_LEN),
        ("outfile",           ctypes.c_char * PATH_LEN),
        ("decod_format",      ctypes.c_int),
        ("cod_format",        ctypes.c_int),

        # Decoding area on the reference grid.
        ("DA_x0",             ctypes.c_uint32),
        ("DA_x1",             ctypes.c_uint32),
        ("DA_y0",             ctypes.c_uint32),
        ("DA_y1",             ctypes.c_uint32),

        ("m_verbose",         BOOL_TYPE),
        ("tile_index",        ctypes.c_uint32),
        ("nb_tile_to_decode", ctypes.c_uint32),

        # JPWL
        ("jpwl_correct",      BOOL_TYPE),
        ("jpwl_exp_comps",    ctypes.c_int32),
        ("jpwl_max_tiles",    ctypes.c_int32),

        ("flags",             ctypes.c_uint32)]

    def __str__(self):
        msg = f"{self.__class__}:\n"
        for field_name in ('cp_reduce', 'cp_layer', 'decod_format',
                           'DA_x0', 'DA_y0', 'DA_x1', 'DA_y1'):
            msg += f"    {field_name}: {getattr(self, field_name)}\n"
        return msg


class CompressionParametersType(ctypes.Structure):
    """Compression parameters.

    Corresponds to cparameters_t type in openjp2 headers.
    """
    _fields_ = [
        ("tile_size_on",     BOOL_TYPE),
        ("cp_tx0",           ctypes.c_int),
        ("cp_ty0",           ctypes.c_int),
        ("cp_tdx",           ctypes.c_int),
        ("cp_tdy",           ctypes.c_int),

        # allocation by rate/distortion
        ("cp_disto_alloc",   ctypes.c_int),

        # allocation by fixed layer
        ("cp_fixed_alloc",   ctypes.c_int),

        # allocation by fixed quality (PSNR)
        ("cp_fixed_quality", ctypes.c_int),

        ("cp_matrice",       ctypes.c_void_p),
        ("cp_comment",       ctypes.c_char_p),
        ("csty",             ctypes.c_int),
        ("prog_order",       ctypes.c_int),
        ("poc",              PocType * 32),
        ("numpocs",          ctypes.c_uint),

        # number of layers, and the rate or the PSNR of each of them
        ("tcp_numlayers",    ctypes.c_int),
        ("tcp_rates",        ctypes.c_float * J2K_MAXLAYERS),
        ("tcp_distoratio",   ctypes.c_float * J2K_MAXLAYERS),

        # number of resolutions, default 6
        ("numresolution",    ctypes.c_int),

        ("cblockw_init",     ctypes.c_int),
        ("cblockh_init",     ctypes.c_int),
        ("mode",             ctypes.c_int),

        # 1 : use the irreversible DWT 9-7
        # 0 : use lossless compression (default)
        ("irreversible",     ctypes.c_int),

        ("roi_compno",       ctypes.c_int),
        ("roi_shift",        ctypes.c_int),
        ("res_spec",         ctypes.c_int),
        ("prcw_init",        ctypes.c_int * J2K_MAXRLVLS),
        ("prch_init",        ctypes.c_int * J2K_MAXRLVLS),
        ("infile",           ctypes.c_char * PATH_LEN),
        ("outfile",          ctypes.c_char * PATH_LEN),
        ("index_on",         ctypes.c_int),
        ("index",            ctypes.c_char * PATH_LEN),
        ("image_offset_x0",  ctypes.c_int),
        ("image_offset_y0",  ctypes.c_int),
        ("subsampling_dx",   ctypes.c_int),
        ("subsampling_dy",   ctypes.c_int),
        ("decod_format",     ctypes.c_int),
        ("cod_format",       ctypes.c_int),

        # JPWL
        ("jpwl_epc_on",           BOOL_TYPE),
        ("jpwl_hprot_mh",         ctypes.c_int),
        ("jpwl_hprot_tph_tileno", ctypes.c_int * JPWL_MAX_NO_TILESPECS),
        ("jpwl_hprot_tph",        ctypes.c_int * JPWL_MAX_NO_TILESPECS),
        ("jpwl_pprot_tileno",     ctypes.c_int * JPWL_MAX_NO_TILESPECS),
        ("jpwl_pprot_packno",     ctypes.c_int * JPWL_MAX_NO_TILESPECS),
        ("jpwl_pprot",            ctypes.c_int * JPWL_MAX_NO_TILESPECS),
        ("jpwl_sens_size",        ctypes.c_int),
        ("jpwl_sens_addr",        ctypes.c_int),
        ("jpwl_sens_range",       ctypes.c_int),
        ("jpwl_sens_mh",          ctypes.c_int),
        ("jpwl_sens_tph_tileno",  ctypes.c_int * JPWL_MAX_NO_TILESPECS),
        ("jpwl_sens_tph",         ctypes.c_int * JPWL_MAX_NO_TILESPECS),

        ("cp_cinema",             CINEMA_MODE_TYPE),
        ("max_comp_size",         ctypes.c_int),
        ("cp_rsiz",               RSIZ_CAPABILITIES_TYPE),
        ("tp_on",                 ctypes.c_uint8),
        ("tp_flag",               ctypes.c_uint8),

        # multiple component transform
        ("tcp_mct",               ctypes.c_uint8),

        ("jpip_on",               BOOL_TYPE),
        ("mct_data",              ctypes.c_void_p),

        # Maximum size in bytes of the whole codestream, 0 for no limit.
        ("max_cs_size",           ctypes.c_int32),
        ("rsiz",                  ctypes.c_uint16)]

    def __str__(self):
        msg = f"{self.__class__}:\n"
        for field_name in ('numresolution', 'tcp_numlayers', 'cp_disto_alloc',
                           'cp_fixed_quality', 'irreversible', 'tcp_mct'):
            msg += f"    {field_name}: {getattr(self, field_name)}\n"
        for field_name in ('tcp_rates', 'tcp_distoratio'):
            arr = getattr(self, field_name)
            lst = [arr[j] for j in range(self.tcp_numlayers)]
            msg += f"    {field_name}: {lst}\n"
        return msg


class ImageCompType(ctypes.Structure):
    """Defines a single image component.

    Corresponds to image_comp_t type in openjp2 headers.
    """
    _fields_ = [
        # XRsiz, YRsiz:  horizontal, vertical separation of ith component with
        # respect to the reference grid
        ("dx",                  ctypes.c_uint32),
        ("dy",                  ctypes.c_uint32),

        # data width and height
        ("w",                   ctypes.c_uint32),
        ("h",                   ctypes.c_uint32),

        # x, y component offset compared to the whole image
        ("x0",                  ctypes.c_uint32),
        ("y0",                  ctypes.c_uint32),

        ("prec",                ctypes.c_uint32),
        ("bpp",                 ctypes.c_uint32),
        ("sgnd",                ctypes.c_uint32),
        ("resno_decoded",       ctypes.c_uint32),

        # number of halvings relative to the full resolution image
        ("factor",              ctypes.c_uint32),

        ("data",                ctypes.POINTER(ctypes.c_int32)),

        # 0 for colour, 1 for opacity, 2 for premultiplied opacity
        ("alpha",               ctypes.c_uint16)]


class ImageType(ctypes.Structure):
    """Defines image data and characteristics.

    Corresponds to image_t type in openjp2 headers.
    """
    _fields_ = [
        # XOsiz, YOsiz:  horizontal and vertical offset from the origin of the
        # reference grid to the left side of the image area
        ("x0",                  ctypes.c_uint32),
        ("y0",                  ctypes.c_uint32),

        # Xsiz, Ysiz:  width and height of the reference grid.
        ("x1",                  ctypes.c_uint32),
        ("y1",                  ctypes.c_uint32),

        ("numcomps",            ctypes.c_uint32),
        ("color_space",         COLOR_SPACE_TYPE),
        ("comps",               ctypes.POINTER(ImageCompType)),
        ("icc_profile_buf",     ctypes.POINTER(ctypes.c_uint8)),
        ("icc_profile_len",     ctypes.c_uint32)]


class ImageComptParmType(ctypes.Structure):
    """Component parameters structure used by image_create function.

    Corresponds to image_comptparm_t type in openjp2 headers.
    """
    _fields_ = [
        ("dx",              ctypes.c_uint32),
        ("dy",              ctypes.c_uint32),
        ("w",               ctypes.c_uint32),
        ("h",               ctypes.c_uint32),
        ("x0",              ctypes.c_uint32),
        ("y0",              ctypes.c_uint32),
        ("prec",            ctypes.c_uint32),
        ("bpp",             ctypes.c_uint32),
        ("sgnd",            ctypes.c_uint32)]


def check_error(status):
    """Set a generic function as the restype attribute of all OpenJPEG
    functions that return a BOOL_TYPE value.  This way we do not have to check
    for error status in each wrapping function and an exception will always be
    appropriately raised.

    The library's own description of the problem goes to whatever error
    handler was registered on the codec, so the message here is generic.
    """
    if status != 1:
        raise OpenJPEGLibraryError("OpenJPEG function failure.")


def _check_handle(handle, routine):
    """Routines returning a pointer signal failure with NULL."""
    if not handle:
        raise OpenJPEGLibraryError(f"{routine} failed.")
    return handle


def message_callback(handler):
    """Wrap a python function taking a str as an OpenJPEG message handler.

    The caller must hold on to the returned object for as long as the codec
    may invoke it.
    """
    def _callback(msg, _):
        handler(msg.decode('utf-8', errors='replace').rstrip())
    return MSG_CALLBACK_TYPE(_callback)


def codec_set_threads(codec, num_threads):
    """Wraps openjp2 library function opj_codec_set_threads.

    Allocates worker threads for the codec.  Only available from OpenJPEG
    2.2.0 onwards.

    Parameters
    ----------
    codec : CODEC_TYPE
        The JPEG2000 codec.
    num_threads : int
        Number of threads, 0 or 1 meaning the calling thread only.
    """
    OPENJP2.opj_codec_set_threads.argtypes = [CODEC_TYPE, ctypes.c_int]
    OPENJP2.opj_codec_set_threads.restype = check_error

    OPENJP2.opj_codec_set_threads(codec, ctypes.c_int(num_threads))


def create_compress(codec_format):
    """Creates a J2K/JP2 compress structure.

    Wraps the openjp2 library function opj_create_compress.

    Parameters
    ----------
    codec_format : int
        Specifies codec to select.  Should be one of CODEC_J2K or CODEC_JP2.

    Returns
    -------
    codec :  Reference to CODEC_TYPE instance.
    """
    OPENJP2.opj_create_compress.restype = CODEC_TYPE
    OPENJP2.opj_create_compress.argtypes = [CODEC_FORMAT_TYPE]

    codec = OPENJP2.opj_create_compress(codec_format)
    return _check_handle(codec, 'opj_create_compress')


def create_decompress(codec_format):
    """Creates a J2K/JP2 decompress structure.

    Wraps the openjp2 library function opj_create_decompress.

    Parameters
    ----------
    codec_format : int
        Specifies codec to select.  Should be one of CODEC_J2K or CODEC_JP2.

    Returns
    -------
    codec : Reference to CODEC_TYPE instance.
    """
    OPENJP2.opj_create_decompress.argtypes = [CODEC_FORMAT_TYPE]
    OPENJP2.opj_create_decompress.restype = CODEC_TYPE

    codec = OPENJP2.opj_create_decompress(codec_format)
    return _check_handle(codec, 'opj_create_decompress')


def decode(codec, stream, image):
    """Reads an entire image.

    Wraps the openjp2 library function opj_decode.

    Parameters
    ----------
    codec : CODEC_TYPE
        The JPEG2000 codec
    stream : STREAM_TYPE_P
        The stream to decode.
    image : ImageType
        Output image structure.

    Raises
    ------
    OpenJPEGLibraryError
        If the OpenJPEG library routine opj_decode fails.
    """
    OPENJP2.opj_decode.argtypes = [CODEC_TYPE, STREAM_TYPE_P,
                                   ctypes.POINTER(ImageType)]
    OPENJP2.opj_decode.restype = check_error

    OPENJP2.opj_decode(codec, stream, image)


def destroy_codec(codec):
    """Destroy a codec handle.

    Wraps the openjp2 library function opj_destroy_codec.

    Parameters
    ----------
    codec : CODEC_TYPE
        Codec handle to destroy.
    """
    OPENJP2.opj_destroy_codec.argtypes = [CODEC_TYPE]
    OPENJP2.opj_destroy_codec.restype = ctypes.c_void_p
    OPENJP2.opj_destroy_codec(codec)


def encode(codec, stream):
    """Wraps openjp2 library function opj_encode.

    Encode an image into a JPEG 2000 codestream.

    Parameters
    ----------
    codec : CODEC_TYPE
        The jpeg2000 codec.
    stream : STREAM_TYPE_P
        The stream to which data is written.

    Raises
    ------
    OpenJPEGLibraryError
        If the OpenJPEG library routine opj_encode fails.
    """
    OPENJP2.opj_encode.argtypes = [CODEC_TYPE, STREAM_TYPE_P]
    OPENJP2.opj_encode.restype = check_error

    OPENJP2.opj_encode(codec, stream)


def end_compress(codec, stream):
    """End of compressing the current image.

    Wraps the openjp2 library function opj_end_compress.
    """
    OPENJP2.opj_end_compress.argtypes = [CODEC_TYPE, STREAM_TYPE_P]
    OPENJP2.opj_end_compress.restype = check_error
    OPENJP2.opj_end_compress(codec, stream)


def end_decompress(codec, stream):
    """End of decompressing the current image.

    Wraps the openjp2 library function opj_end_decompress.
    """
    OPENJP2.opj_end_decompress.argtypes = [CODEC_TYPE, STREAM_TYPE_P]
    OPENJP2.opj_end_decompress.restype = check_error
    OPENJP2.opj_end_decompress(codec, stream)


def has_thread_support():
    """Wraps openjp2 library function opj_has_thread_support.

    Returns
    -------
    bool
        True if the library was built with thread support.
    """
    if OPENJP2 is None or not hasattr(OPENJP2, 'opj_has_thread_support'):
        return False

    OPENJP2.opj_has_thread_support.argtypes = []
    OPENJP2.opj_has_thread_support.restype = BOOL_TYPE
    return bool(OPENJP2.opj_has_thread_support())


def image_destroy(image):
    """Deallocate any resources associated with an image.

    Wraps the openjp2 library function opj_image_destroy.

    Parameters
    ----------
    image : ImageType pointer
        Image resource to be disposed.
    """
    OPENJP2.opj_image_destroy.argtypes = [ctypes.POINTER(ImageType)]
    OPENJP2.opj_image_destroy.restype = ctypes.c_void_p

    OPENJP2.opj_image_destroy(image)


def image_create(comptparms, clrspc):
    """Creates a new image structure.

    Wraps the openjp2 library function opj_image_create.

    Parameters
    ----------
    cmptparms : comptparms_t
        The component parameters.
    clrspc : int
        Specifies the color space.

    Returns
    -------
    image : ImageType
        Reference to ImageType instance.
    """
    OPENJP2.opj_image_create.argtypes = [ctypes.c_uint32,
                                         ctypes.POINTER(ImageComptParmType),
                                         COLOR_SPACE_TYPE]
    OPENJP2.opj_image_create.restype = ctypes.POINTER(ImageType)

    image = OPENJP2.opj_image_create(len(comptparms),
                                     comptparms,
                                     clrspc)
    return _check_handle(image, 'opj_image_create')


def read_header(stream, codec):
    """Decodes an image header.

    Wraps the openjp2 library function opj_read_header.

    Parameters
    ----------
    stream: STREAM_TYPE_P
        The JPEG2000 stream.
    codec:  codec_t
        The JPEG2000 codec to read.

    Returns
    -------
    imagep : reference to ImageType instance
        The image structure initialized with image characteristics.

    Raises
    ------
    OpenJPEGLibraryError
        If the OpenJPEG library routine opj_read_header fails.
    """
    ARGTYPES = [STREAM_TYPE_P, CODEC_TYPE,
                ctypes.POINTER(ctypes.POINTER(ImageType))]
    OPENJP2.opj_read_header.argtypes = ARGTYPES
    OPENJP2.opj_read_header.restype = check_error

    imagep = ctypes.POINTER(ImageType)()
    OPENJP2.opj_read_header(stream, codec, ctypes.byref(imagep))
    return imagep


def set_decode_area(codec, image, start_x=0, start_y=0, end_x=0, end_y=0):
    """Wraps openjp2 library function opj_set_decode area.

    Sets the given area to be decoded.  This function should be called right
    after read_header and before any tile header reading.  Coordinates are
    those of the full resolution reference grid, whatever the reduction
    factor.

    Parameters
    ----------
    codec : CODEC_TYPE
        Codec initialized by create_decompress function.
    image : ImageType pointer
        The decoded image previously set by read_header.
    start_x, start_y : optional, int
        The left and upper position of the rectangle to decode.
    end_x, end_y : optional, int
        The right and lower position of the rectangle to decode.

    Raises
    ------
    OpenJPEGLibraryError
        If the OpenJPEG library routine opj_set_decode_area fails.
    """
    OPENJP2.opj_set_decode_area.argtypes = [CODEC_TYPE,
                                            ctypes.POINTER(ImageType),
                                            ctypes.c_int32,
                                            ctypes.c_int32,
                                            ctypes.c_int32,
                                            ctypes.c_int32]
    OPENJP2.opj_set_decode_area.restype = check_error

    OPENJP2.opj_set_decode_area(codec, image,
                                ctypes.c_int32(start_x),
                                ctypes.c_int32(start_y),
                                ctypes.c_int32(end_x),
                                ctypes.c_int32(end_y))


def set_default_decoder_parameters():
    """Wraps openjp2 library function opj_set_default_decoder_parameters.

    Sets decoding parameters to default values.

    Returns
    -------
    dparam : DecompressionParametersType
        Decompression parameters.
    """
    ARGTYPES = [ctypes.POINTER(DecompressionParametersType)]
    OPENJP2.opj_set_default_decoder_parameters.argtypes = ARGTYPES
    OPENJP2.opj_set_default_decoder_parameters.restype = ctypes.c_void_p

    dparams = DecompressionParametersType()
    OPENJP2.opj_set_default_decoder_parameters(ctypes.byref(dparams))
    return dparams


def set_default_encoder_parameters():
    """Wraps openjp2 library function opj_set_default_encoder_parameters.

    Sets encoding parameters to default values.  That means

        lossless
        1 tile
        size of precinct : 2^15 x 2^15 (means 1 precinct)
        size of code-block : 64 x 64
        number of resolutions: 6
        no SOP marker in the codestream
        no EPH marker in the codestream
        no sub-sampling in x or y direction
        no mode switch activated
        progression order: LRCP
        no index file
        no ROI upshifted
        no offset of the origin of the image
        no offset of the origin of the tiles
        reversible DWT 5-3

    The signature for this function differs from its C library counterpart, as
    the the C function pass-by-reference parameter becomes the Python return
    value.

    Returns
    -------
    cparameters : CompressionParametersType
        Compression parameters.
    """
    ARGTYPES = [ctypes.POINTER(CompressionParametersType)]
    OPENJP2.opj_set_default_encoder_parameters.argtypes = ARGTYPES
    OPENJP2.opj_set_default_encoder_parameters.restype = ctypes.c_void_p

    cparams = CompressionParametersType()
    OPENJP2.opj_set_default_encoder_parameters(ctypes.byref(cparams))
    return cparams


def set_error_handler(codec, handler, data=None):
    """Wraps openjp2 library function opj_set_error_handler.

    Set the error handler use by openjpeg.

    Parameters
    ----------
    codec : CODEC_TYPE
        Codec initialized by create_compress function.
    handler : MSG_CALLBACK_TYPE or None
        The callback function to be used.
    user_data : anything
        User/client data.
    """
    OPENJP2.opj_set_error_handler.argtypes = [CODEC_TYPE,
                                              ctypes.c_void_p,
                                              ctypes.c_void_p]
    OPENJP2.opj_set_error_handler.restype = check_error
    OPENJP2.opj_set_error_handler(codec, handler, data)


def set_info_handler(codec, handler, data=None):
    """Wraps openjp2 library function opj_set_info_handler.

    Set the info handler use by openjpeg.
    """
    OPENJP2.opj_set_info_handler.argtypes = [CODEC_TYPE,
                                             ctypes.c_void_p,
                                             ctypes.c_void_p]
    OPENJP2.opj_set_info_handler.restype = check_error
    OPENJP2.opj_set_info_handler(codec, handler, data)


def set_warning_handler(codec, handler, data=None):
    """Wraps openjp2 library function opj_set_warning_handler.

    Set the warning handler use by openjpeg.
    """
    OPENJP2.opj_set_warning_handler.argtypes = [CODEC_TYPE,
                                                ctypes.c_void_p,
                                                ctypes.c_void_p]
    OPENJP2.opj_set_warning_handler.restype = check_error

    OPENJP2.opj_set_warning_handler(codec, handler, data)


def setup_decoder(codec, dparams):
    """Wraps openjp2 library function opj_setup_decoder.

    Setup the decoder with decompression parameters.

    Parameters
    ----------
    codec:  CODEC_TYPE
        Codec initialized by create_decompress function.
    dparams:  DecompressionParametersType
        Decompression parameters.

    Raises
    ------
    OpenJPEGLibraryError
        If the OpenJPEG library routine opj_setup_decoder fails.
    """
    ARGTYPES = [CODEC_TYPE, ctypes.POINTER(DecompressionParametersType)]
    OPENJP2.opj_setup_decoder.argtypes = ARGTYPES
    OPENJP2.opj_setup_decoder.restype = check_error

    OPENJP2.opj_setup_decoder(codec, ctypes.byref(dparams))


def setup_encoder(codec, cparams, image):
    """Wraps openjp2 library function opj_setup_encoder.

    Setup the encoder parameters using the current image and using user
    parameters.

    Parameters
    ----------
    codec : CODEC_TYPE
        codec initialized by create_compress function
    cparams : CompressionParametersType
        compression parameters
    image : ImageType
        input-filled image

    Raises
    ------
    OpenJPEGLibraryError
        If the OpenJPEG library routine opj_setup_encoder fails.
    """
    ARGTYPES = [CODEC_TYPE,
                ctypes.POINTER(CompressionParametersType),
                ctypes.POINTER(ImageType)]
    OPENJP2.opj_setup_encoder.argtypes = ARGTYPES
    OPENJP2.opj_setup_encoder.restype = check_error
    OPENJP2.opj_setup_encoder(codec, ctypes.byref(cparams), image)


def start_compress(codec, image, stream):
    """Wraps openjp2 library function opj_start_compress.

    Start to compress the current image.
    """
    OPENJP2.opj_start_compress.argtypes = [CODEC_TYPE,
                                           ctypes.POINTER(ImageType),
                                           STREAM_TYPE_P]
    OPENJP2.opj_start_compress.restype = check_error

    OPENJP2.opj_start_compress(codec, image, stream)


def stream_create(buffer_size, isa_read_stream):
    """Wraps openjp2 library function opj_stream_create.

    Creates an abstract stream whose input/output is supplied by the
    read, write, skip and seek callbacks.

    Parameters
    ----------
    buffer_size : int
        Size of the library's internal buffer.
    isa_read_stream:  bool
        True (read) or False (write)

    Returns
    -------
    stream : stream_t
        An OpenJPEG stream.
    """
    ARGTYPES = [ctypes.c_size_t, BOOL_TYPE]
    OPENJP2.opj_stream_create.argtypes = ARGTYPES
    OPENJP2.opj_stream_create.restype = STREAM_TYPE_P
    read_stream = TRUE if isa_read_stream else FALSE
    stream = OPENJP2.opj_stream_create(buffer_size, read_stream)
    return _check_handle(stream, 'opj_stream_create')


def stream_create_default_file_stream(fname, isa_read_stream):
    """Wraps openjp2 library function opj_stream_create_default_file_stream.

    Sets the stream to be a file stream.

    Parameters
    ----------
    fname : str
        Specifies a file.
    isa_read_stream:  bool
        True (read) or False (write)

    Returns
    -------
    stream : stream_t
        An OpenJPEG file stream.
    """
    ARGTYPES = [ctypes.c_char_p, BOOL_TYPE]
    OPENJP2.opj_stream_create_default_file_stream.argtypes = ARGTYPES
    OPENJP2.opj_stream_create_default_file_stream.restype = STREAM_TYPE_P
    read_stream = TRUE if isa_read_stream else FALSE
    file_argument = ctypes.c_char_p(str(fname).encode())
    stream = OPENJP2.opj_stream_create_default_file_stream(file_argument,
                                                           read_stream)
    return _check_handle(stream, 'opj_stream_create_default_file_stream')


def stream_destroy(stream):
    """Wraps openjp2 library function opj_stream_destroy.

    Destroys the stream created by create_stream.

    Parameters
    ----------
    stream : STREAM_TYPE_P
        The file stream.
    """
    OPENJP2.opj_stream_destroy.argtypes = [STREAM_TYPE_P]
    OPENJP2.opj_stream_destroy.restype = ctypes.c_void_p
    OPENJP2.opj_stream_destroy(stream)


def stream_set_read_function(stream, func):
    """Wraps openjp2 library function opj_stream_set_read_function."""
    ARGTYPES = [STREAM_TYPE_P, STREAM_READ_FN]
    OPENJP2.opj_stream_set_read_function.argtypes = ARGTYPES
    OPENJP2.opj_stream_set_read_function.restype = None
    OPENJP2.opj_stream_set_read_function(stream, func)


def stream_set_write_function(stream, func):
    """Wraps openjp2 library function opj_stream_set_write_function."""
    ARGTYPES = [STREAM_TYPE_P, STREAM_WRITE_FN]
    OPENJP2.opj_stream_set_write_function.argtypes = ARGTYPES
    OPENJP2.opj_stream_set_write_function.restype = None
    OPENJP2.opj_stream_set_write_function(stream, func)


def stream_set_skip_function(stream, func):
    """Wraps openjp2 library function opj_stream_set_skip_function."""
    ARGTYPES = [STREAM_TYPE_P, STREAM_SKIP_FN]
    OPENJP2.opj_stream_set_skip_function.argtypes = ARGTYPES
    OPENJP2.opj_stream_set_skip_function.restype = None
    OPENJP2.opj_stream_set_skip_function(stream, func)


def stream_set_seek_function(stream, func):
    """Wraps openjp2 library function opj_stream_set_seek_function."""
    ARGTYPES = [STREAM_TYPE_P, STREAM_SEEK_FN]
    OPENJP2.opj_stream_set_seek_function.argtypes = ARGTYPES
    OPENJP2.opj_stream_set_seek_function.restype = None
    OPENJP2.opj_stream_set_seek_function(stream, func)


def stream_set_user_data_length(stream, length):
    """Wraps openjp2 library function opj_stream_set_user_data_length.

    Read streams need the total length to know how many bytes remain.
    """
    ARGTYPES = [STREAM_TYPE_P, ctypes.c_uint64]
    OPENJP2.opj_stream_set_user_data_length.argtypes = ARGTYPES
    OPENJP2.opj_stream_set_user_data_length.restype = None
    OPENJP2.opj_stream_set_user_data_length(stream, ctypes.c_uint64(length))

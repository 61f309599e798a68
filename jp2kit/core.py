"""Core definitions to be shared amongst the modules.
"""

# Output formats accepted by the encoder.  The values are those of the
# public API, not the OpenJPEG codec identifiers.
FORMAT_J2K = 0
FORMAT_JP2 = 1

FORMAT_NAMES = {
    FORMAT_J2K: 'J2K',
    FORMAT_JP2: 'JP2',
}

# Magic numbers.
JP2_SIGNATURE = b'\x00\x00\x00\x0cjP  \r\n\x87\n'
JP2_SHORT_SIGNATURE = b'\r\n\x87\n'
J2K_SIGNATURE = b'\xff\x4f\xff\x51'

# Codestream markers
SOC = 0xff4f
SIZ = 0xff51
COD = 0xff52
SOT = 0xff90
EOC = 0xffd9

# Default number of resolutions used by OpenJPEG when encoding.
DEFAULT_NUM_RESOLUTIONS = 6

# Channel types, see the channel definition box.
COLOR = 0
OPACITY = 1
PRE_MULTIPLIED_OPACITY = 2
UNSPECIFIED = 65535

# Channel types that describe an alpha channel.
ALPHA_CHANNEL_TYPES = (OPACITY, PRE_MULTIPLIED_OPACITY)

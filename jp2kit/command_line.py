"""Entry points for console scripts jp2info and jp2recode."""
# Standard library imports ...
import argparse
import logging
import pathlib
import sys

# Local imports ...
from . import set_option, Jp2Decoder, Jp2Encoder, FORMAT_J2K, FORMAT_JP2
from .core import FORMAT_NAMES
from .header import parse_main_header


def _add_verbosity_argument(parser):
    help = (
        'Logging level, one of "critical", "error", "warning", "info", '
        'or "debug".'
    )
    parser.add_argument(
        '--verbosity', help=help, default='warning',
        choices=['critical', 'error', 'warning', 'info', 'debug']
    )


def _float_list(text):
    """Parse a comma separated list of numbers, e.g. "40,20,10"."""
    try:
        return [float(item) for item in text.split(',')]
    except ValueError:
        msg = f'expected comma separated numbers, not "{text}"'
        raise argparse.ArgumentTypeError(msg)


def _setup_logging(verbosity):
    """Route jp2kit log records to the console at the requested level."""
    level = getattr(logging, verbosity.upper())

    logger = logging.getLogger('jp2kit')
    logger.setLevel(level)

    handler = next(
        (h for h in logger.handlers if isinstance(h, logging.StreamHandler)),
        None
    )
    if handler is None:
        handler = logging.StreamHandler()
        logger.addHandler(handler)
    handler.setLevel(level)


def _format_header(header):
    msg = (
        f'    Format:  {FORMAT_NAMES[header.codec_format]}\n'
        f'    Width, Height:  ({header.width} x {header.height})\n'
        f'    Grid offset:  ({header.x0}, {header.y0})\n'
        f'    Components:  {header.num_components}\n'
        f'    Bit depth:  {header.bit_depth}\n'
        f'    Alpha:  {"yes" if header.has_alpha else "no"}\n'
        f'    Resolutions:  {header.num_resolutions}\n'
        f'    Quality layers:  {header.num_quality_layers}'
    )
    return msg


def jp2info():
    """Entry point for console script jp2info."""

    kwargs = {'description': 'Print JPEG 2000 header information.',
              'formatter_class': argparse.ArgumentDefaultsHelpFormatter}
    parser = argparse.ArgumentParser(**kwargs)

    parser.add_argument('-c', '--codestream',
                        help='also print the codestream main header segments',
                        action='store_true')
    _add_verbosity_argument(parser)
    parser.add_argument('filename', nargs='+')

    args = parser.parse_args()
    _setup_logging(args.verbosity)

    for filename in args.filename:
        path = pathlib.Path(filename)
        print(f'File:  {path.name}')

        result = parse_main_header(path)
        if result is None:
            print('    not a JPEG 2000 file')
            continue

        header, codestream = result
        print(_format_header(header))
        if args.codestream:
            for segment in codestream.segment:
                print(segment)


def jp2recode():
    """Entry point for console script jp2recode."""

    kwargs = {
        'description': (
            'Decode a JPEG 2000 image, possibly in part, and encode the '
            'result again.'
        ),
        'formatter_class': argparse.ArgumentDefaultsHelpFormatter,
        'add_help': False
    }
    parser = argparse.ArgumentParser(**kwargs)

    group1 = parser.add_argument_group('Decoding', 'Partial decode options.')

    help = 'Number of highest resolution levels to discard.'
    group1.add_argument('--skip', type=int, default=0, help=help)

    help = 'Number of quality layers to decode, 0 for all of them.'
    group1.add_argument('--layers', type=int, default=0, help=help)

    help = 'Full resolution region to decode.'
    group1.add_argument(
        '--region', nargs=4, type=int, help=help,
        metavar=('X0', 'Y0', 'X1', 'Y1')
    )

    group2 = parser.add_argument_group('Encoding', 'Encode options.')

    help = 'Number of resolutions.'
    group2.add_argument('--numres', type=int, help=help)

    rate_control = group2.add_mutually_exclusive_group()

    help = 'Comma separated compression ratios for successive layers.'
    rate_control.add_argument(
        '--ratio', type=_float_list, help=help, metavar='RATIOS'
    )

    help = 'Comma separated PSNR for successive layers.'
    rate_control.add_argument(
        '--quality', type=_float_list, help=help, metavar='PSNRS'
    )

    help = 'Output format.  If not provided, inferred from the file suffix.'
    group2.add_argument('--format', choices=['jp2', 'j2k'], help=help)

    help = 'Use this many threads/cores.'
    parser.add_argument('--num-threads', type=int, default=1, help=help)

    help = 'Show this help message and exit'
    parser.add_argument('--help', '-h', action='help', help=help)

    _add_verbosity_argument(parser)

    parser.add_argument('input', help='Input JPEG 2000 file.')
    parser.add_argument('output', help='Output JPEG 2000 file.')

    args = parser.parse_args()
    _setup_logging(args.verbosity)

    if args.num_threads > 1:
        set_option('lib.num_threads', args.num_threads)

    decoder = (
        Jp2Decoder(args.input)
        .set_skip_resolutions(args.skip)
        .set_layers_to_decode(args.layers)
        .disable_premultiplication()
    )
    if args.region is not None:
        decoder.set_source_region(*args.region)

    image = decoder.decode()
    if image is None:
        sys.exit(f'Unable to decode {args.input}.')

    output = pathlib.Path(args.output)
    if args.format is None:
        j2k = output.suffix.lower() in ('.j2k', '.j2c', '.jpc')
    else:
        j2k = args.format == 'j2k'

    encoder = Jp2Encoder(image)
    encoder.set_output_format(FORMAT_J2K if j2k else FORMAT_JP2)
    if args.numres is not None:
        encoder.set_num_resolutions(args.numres)
    if args.ratio is not None:
        encoder.set_compression_ratio(*args.ratio)
    if args.quality is not None:
        encoder.set_visual_quality(*args.quality)

    if not encoder.encode(output):
        sys.exit(f'Unable to write {args.output}.')

#!/usr/bin/env python3
"""
bmp2c.py

Convert a 1bpp BMP into a C header (width/height defines, packed byte
array, optional two-entry palette).

Usage:
  bmp2c input.bmp output.h [--lsb] [--palette] [--name NAME]
"""

from __future__ import annotations

import argparse
import logging
import sys

from bmp_parser import BitmapError
from converter import DEFAULT_NAME, ConversionOptions, convert
from packer import BitOrder

log = logging.getLogger(__name__)


def c_identifier(value):
    if not (value.isascii() and value.isidentifier()):
        raise argparse.ArgumentTypeError(f"{value!r} is not a valid C identifier")
    return value


def parse_args(argv=None):
    p = argparse.ArgumentParser(
        prog="bmp2c",
        description="Convert 1bpp BMP files to C arrays",
    )
    p.add_argument("input", help="Input 1bpp BMP file")
    p.add_argument("output", help="Output C header path")
    p.add_argument("-l", "--lsb", action="store_true",
                   help="Leftmost pixel in the least significant bit")
    p.add_argument("-p", "--palette", action="store_true",
                   help="Also emit the two-entry color table")
    p.add_argument("-n", "--name", type=c_identifier, default=DEFAULT_NAME,
                   help="Identifier prefix for the emitted symbols")
    p.add_argument("--debug", action="store_true")
    return p.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
    )
    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    options = ConversionOptions(
        input_path=args.input,
        output_path=args.output,
        bit_order=BitOrder.LSB_FIRST if args.lsb else BitOrder.MSB_FIRST,
        include_palette=args.palette,
        name=args.name,
    )

    try:
        result = convert(options)
    except BitmapError as e:
        log.error("%s: %s", args.input, e)
        return 1

    print(f"Converted {args.input} -> {args.output} "
          f"({result.packed.width}x{result.packed.height})", file=sys.stdout)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

"""
converter.py

One-shot conversion of a 1bpp BMP file into a C header. Every call owns
its own state; nothing is shared between runs.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Optional

from bmp_parser import BitmapError, BitmapIOError, BMPHeader, BMPParser
from c_writer import render_c_source, write_atomic
from packer import BitOrder, PackedBitmap, ScanlinePacker, extract_palette

log = logging.getLogger(__name__)

DEFAULT_NAME = "bmp"


@dataclass(frozen=True)
class ConversionOptions:
    input_path: str
    output_path: Optional[str] = None
    bit_order: BitOrder = BitOrder.MSB_FIRST
    include_palette: bool = False
    name: str = DEFAULT_NAME


@dataclass(frozen=True)
class ConversionResult:
    header: BMPHeader
    packed: PackedBitmap
    palette: Optional[tuple]
    text: str
    time_ms: float


def build(options: ConversionOptions) -> ConversionResult:
    """
    Parse, pack and render without touching the output path.

    The palette is read only after every row has been packed.
    """
    start_time = time.time()
    try:
        f = open(options.input_path, "rb")
    except OSError as e:
        raise BitmapIOError(f"cannot open {options.input_path}: {e.strerror}") from e

    with f:
        try:
            parser = BMPParser(f)
            packed = ScanlinePacker(options.bit_order).pack(parser)
            palette = extract_palette(parser) if options.include_palette else None
        except BitmapError:
            raise
        except OSError as e:
            raise BitmapIOError(f"cannot read {options.input_path}: {e}") from e

    text = render_c_source(
        packed,
        palette=palette,
        name=options.name,
        source_name=os.path.basename(os.fspath(options.input_path)),
    )
    time_ms = (time.time() - start_time) * 1000
    return ConversionResult(parser.header, packed, palette, text, time_ms)


def convert(options: ConversionOptions) -> ConversionResult:
    if not options.output_path:
        raise ValueError("output_path is required")

    result = build(options)
    try:
        write_atomic(options.output_path, result.text)
    except OSError as e:
        raise BitmapIOError(f"cannot write {options.output_path}: {e}") from e

    log.info(
        "Converted %s -> %s (%dx%d, %s, %.2f ms)",
        options.input_path, options.output_path,
        result.packed.width, result.packed.height,
        options.bit_order.label, result.time_ms,
    )
    return result

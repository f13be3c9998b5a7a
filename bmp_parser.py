"""
bmp_parser.py

Header parsing and row access for uncompressed 1-bit-per-pixel BMP files.
"""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass

log = logging.getLogger(__name__)

FILE_HEADER_SIZE = 14
INFO_HEADER_SIZE = 40
HEADER_SIZE = FILE_HEADER_SIZE + INFO_HEADER_SIZE

SIGNATURE = b"BM"


class BitmapError(Exception):
    pass


class BitmapIOError(BitmapError, OSError):
    pass


class TruncatedInputError(BitmapIOError):
    pass


class InvalidFormatError(BitmapError, ValueError):
    pass


class UnsupportedFormatError(BitmapError, ValueError):
    pass


class AllocationError(BitmapError, MemoryError):
    pass


def row_stride(width):
    # Each row is padded to a multiple of 4 bytes (32 pixels at 1bpp)
    return ((abs(width) + 31) // 32) * 4


@dataclass(frozen=True)
class BMPHeader:
    signature: bytes
    file_size: int
    reserved1: int
    reserved2: int
    pixel_data_offset: int
    header_size: int
    width: int
    height: int
    planes: int
    bits_per_pixel: int
    compression: int
    image_size: int
    x_pixels_per_meter: int
    y_pixels_per_meter: int
    colors_used: int
    colors_important: int

    @property
    def abs_width(self) -> int:
        return abs(self.width)

    @property
    def abs_height(self) -> int:
        return abs(self.height)

    @property
    def is_bottom_up(self) -> bool:
        # BMP rows are usually stored bottom-to-top
        return self.height > 0

    @property
    def row_stride(self) -> int:
        return row_stride(self.width)

    @property
    def packed_row_size(self) -> int:
        return (self.abs_width + 7) // 8

    def as_metadata(self) -> dict:
        return {
            "signature": self.signature.decode("latin-1"),
            "file_size": self.file_size,
            "data_offset": self.pixel_data_offset,
            "header_size": self.header_size,
            "width": self.width,
            "height": self.height,
            "planes": self.planes,
            "bpp": self.bits_per_pixel,
            "compression": self.compression,
            "image_size": self.image_size,
            "x_ppm": self.x_pixels_per_meter,
            "y_ppm": self.y_pixels_per_meter,
            "colors_used": self.colors_used,
            "colors_important": self.colors_important,
            "row_stride": self.row_stride,
        }


def parse_header(blob: bytes) -> BMPHeader:
    """
    Decode the 14-byte file header and the 40-byte info header that
    follows it, then check that the image is something we can pack.

    Validation order is signature, bit depth, compression.
    """
    # Signature (must start with 'BM'), checked before anything else
    signature = bytes(blob[0:2])
    if signature != SIGNATURE:
        raise InvalidFormatError(
            f"not a bitmap file: expected signature {SIGNATURE!r}, found {signature!r}"
        )
    if len(blob) < HEADER_SIZE:
        raise TruncatedInputError(
            f"BMP header truncated: expected {HEADER_SIZE} bytes, found {len(blob)}"
        )

    # File header
    file_size, reserved1, reserved2, offset = struct.unpack_from("<IHHI", blob, 2)

    # Info header
    (header_size, width, height, planes, bpp, compression, image_size,
     x_ppm, y_ppm, colors_used, colors_important) = struct.unpack_from(
        "<IiiHHIIiiII", blob, FILE_HEADER_SIZE
    )

    if bpp != 1:
        raise UnsupportedFormatError(f"not 1-bit-per-pixel: bits_per_pixel={bpp}")
    if compression != 0:
        raise UnsupportedFormatError(
            f"compression not supported: compression={compression}"
        )

    header = BMPHeader(
        signature=signature,
        file_size=file_size,
        reserved1=reserved1,
        reserved2=reserved2,
        pixel_data_offset=offset,
        header_size=header_size,
        width=width,
        height=height,
        planes=planes,
        bits_per_pixel=bpp,
        compression=compression,
        image_size=image_size,
        x_pixels_per_meter=x_ppm,
        y_pixels_per_meter=y_ppm,
        colors_used=colors_used,
        colors_important=colors_important,
    )
    log.debug("BMP header: %s", header.as_metadata())
    return header


def read_header(stream) -> BMPHeader:
    # Stream must be positioned at the start of the file
    return parse_header(stream.read(HEADER_SIZE))


class BMPParser:
    """Reads a 1bpp BMP from an open, seekable binary stream."""

    def __init__(self, stream):
        self.stream = stream
        self.header = read_header(stream)

    def read_at(self, offset, size) -> bytes:
        self.stream.seek(offset)
        data = self.stream.read(size)
        if len(data) < size:
            raise TruncatedInputError(
                f"unexpected end of file at offset {offset}: "
                f"expected {size} bytes, found {len(data)}"
            )
        return data

    def read_row(self, stored_index, buffer):
        # Choose the stored row by its position in the file, not on screen
        stride = self.header.row_stride
        offset = self.header.pixel_data_offset + stored_index * stride
        buffer.fill(self.read_at(offset, stride))
        return buffer

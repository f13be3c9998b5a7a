"""
packer.py

Re-packs 1bpp BMP scanlines into a flat byte sequence for firmware arrays,
and pulls the two-entry color table out of the file.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Tuple

from bmp_parser import (
    HEADER_SIZE,
    AllocationError,
    InvalidFormatError,
    UnsupportedFormatError,
)

log = logging.getLogger(__name__)

PALETTE_ENTRY_SIZE = 4  # blue, green, red, reserved
DEFAULT_PALETTE = ((0, 0, 0), (255, 255, 255))

# Bit-reversed value of every byte, e.g. 0b00000001 -> 0b10000000
_REVERSED = bytes(int(f"{i:08b}"[::-1], 2) for i in range(256))


class BitOrder(enum.Enum):
    MSB_FIRST = "msb"
    LSB_FIRST = "lsb"

    @property
    def label(self) -> str:
        return "MSB first" if self is BitOrder.MSB_FIRST else "LSB first"


def reverse_bits(byte: int) -> int:
    return _REVERSED[byte]


def mask_padding(byte: int, valid_bits: int, lsb_first: bool = False) -> int:
    """
    Zero the pixels of a partial byte that lie past the right edge of the
    image. MSB-first bytes keep the leftmost pixel in bit 7, so padding sits
    in the low bits; a reversed byte carries it in the high bits.
    """
    if valid_bits >= 8:
        return byte
    if lsb_first:
        # Reversed byte: padding pixels are the high bits, keep the low ones
        return byte & ((1 << valid_bits) - 1)
    return byte & (0xFF << (8 - valid_bits)) & 0xFF


class RowBuffer:
    """Fixed-size scanline buffer, refilled in place for every row."""

    def __init__(self, size):
        try:
            self._data = bytearray(size)
        except MemoryError as e:
            raise AllocationError(f"cannot allocate {size}-byte row buffer") from e
        self.size = size

    def __len__(self):
        return self.size

    def fill(self, data):
        if len(data) != self.size:
            raise ValueError(f"row data is {len(data)} bytes, buffer holds {self.size}")
        self._data[:] = data

    def byte_at(self, index):
        if not 0 <= index < self.size:
            raise IndexError(f"row byte {index} outside buffer of {self.size} bytes")
        return self._data[index]


@dataclass(frozen=True)
class PackedBitmap:
    width: int
    height: int
    bit_order: BitOrder
    rows: Tuple[bytes, ...]

    @property
    def data(self) -> bytes:
        return b"".join(self.rows)


def stored_row_index(visual_row, header):
    # Bottom-up files store the visual bottom row first
    if header.is_bottom_up:
        return header.abs_height - 1 - visual_row
    return visual_row


def pack_row(buffer: RowBuffer, width: int, lsb_first: bool = False) -> bytes:
    out = bytearray()
    for x in range(0, width, 8):
        # Source pixels are already 8 per byte, leftmost pixel in the MSB
        byte = buffer.byte_at(x // 8)
        if lsb_first:
            byte = reverse_bits(byte)
        if x + 8 > width:
            byte = mask_padding(byte, width - x, lsb_first)
        out.append(byte)
    return bytes(out)


class ScanlinePacker:

    def __init__(self, bit_order=BitOrder.MSB_FIRST):
        self.bit_order = bit_order

    @property
    def lsb_first(self):
        return self.bit_order is BitOrder.LSB_FIRST

    def pack(self, parser) -> PackedBitmap:
        header = parser.header
        width = header.abs_width
        height = header.abs_height

        buffer = RowBuffer(header.row_stride)
        rows = []
        for visual_row in range(height):
            parser.read_row(stored_row_index(visual_row, header), buffer)
            rows.append(pack_row(buffer, width, self.lsb_first))

        log.debug(
            "Packed %d rows of %d bytes (%s, stride %d)",
            height, header.packed_row_size, self.bit_order.label, header.row_stride,
        )
        return PackedBitmap(width, height, self.bit_order, tuple(rows))


def extract_palette(parser):
    """
    Return the two color table entries as (blue, green, red) triples.

    A colors_used of 0 means the file relies on the implicit black/white
    table, so nothing is read.
    """
    header = parser.header
    if header.colors_used == 0:
        return DEFAULT_PALETTE
    if header.colors_used != 2:
        raise UnsupportedFormatError(
            f"unsupported palette size: colors_used={header.colors_used}"
        )

    # The color table ends where the pixel data begins
    offset = header.pixel_data_offset - PALETTE_ENTRY_SIZE * 2
    if offset < HEADER_SIZE:
        raise InvalidFormatError(
            f"color table offset {offset} overlaps the {HEADER_SIZE}-byte header"
        )
    raw = parser.read_at(offset, PALETTE_ENTRY_SIZE * 2)

    entries = []
    for i in range(2):
        b, g, r, _ = raw[i * PALETTE_ENTRY_SIZE:(i + 1) * PALETTE_ENTRY_SIZE]
        entries.append((b, g, r))
    return tuple(entries)


def unpack_rows(packed: PackedBitmap):
    # Expand packed rows back into per-pixel color indices
    pixel_rows = []
    for row in packed.rows:
        row_pixels = []
        for col in range(packed.width):
            byte = row[col // 8]
            if packed.bit_order is BitOrder.LSB_FIRST:
                bit_index = col % 8
            else:
                bit_index = 7 - (col % 8)
            row_pixels.append((byte >> bit_index) & 1)
        pixel_rows.append(row_pixels)
    return pixel_rows

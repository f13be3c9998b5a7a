import io

import pytest

import packer
from bmp_parser import AllocationError, BMPParser, TruncatedInputError, parse_header
from packer import (
    BitOrder,
    RowBuffer,
    ScanlinePacker,
    mask_padding,
    pack_row,
    reverse_bits,
    stored_row_index,
    unpack_rows,
)


def pack(blob, bit_order=BitOrder.MSB_FIRST):
    return ScanlinePacker(bit_order).pack(BMPParser(io.BytesIO(blob)))


@pytest.mark.parametrize("byte, expected", [
    (0x00, 0x00), (0xFF, 0xFF), (0x01, 0x80), (0xF0, 0x0F), (0b10110000, 0b00001101),
])
def test_reverse_bits(byte, expected):
    assert reverse_bits(byte) == expected


def test_reverse_bits_is_an_involution():
    assert all(reverse_bits(reverse_bits(b)) == b for b in range(256))


def test_mask_padding():
    assert mask_padding(0xFF, 2) == 0xC0
    assert mask_padding(0xFF, 2, lsb_first=True) == 0x03
    assert mask_padding(0xFF, 7) == 0xFE
    assert mask_padding(0xFF, 7, lsb_first=True) == 0x7F
    assert mask_padding(0xA5, 8) == 0xA5


def test_row_buffer_bounds():
    buffer = RowBuffer(4)
    buffer.fill(b"\x01\x02\x03\x04")
    assert buffer.byte_at(3) == 0x04
    with pytest.raises(IndexError):
        buffer.byte_at(4)
    with pytest.raises(IndexError):
        buffer.byte_at(-1)
    with pytest.raises(ValueError):
        buffer.fill(b"\x00" * 8)


def test_row_buffer_allocation_failure(monkeypatch):
    def no_memory(size):
        raise MemoryError

    monkeypatch.setattr(packer, "bytearray", no_memory, raising=False)
    with pytest.raises(AllocationError, match="1024-byte row buffer"):
        RowBuffer(1024)


def test_pack_row_only_masks_final_byte():
    buffer = RowBuffer(4)
    buffer.fill(b"\xa5\xff\xff\xff")
    assert pack_row(buffer, 12) == b"\xa5\xf0"


def test_stored_row_index(bmp_bytes):
    bottom_up = parse_header(bmp_bytes(stored_rows=[b"\x00"] * 3, width=8, height=3))
    top_down = parse_header(bmp_bytes(stored_rows=[b"\x00"] * 3, width=8, height=-3))
    assert [stored_row_index(r, bottom_up) for r in range(3)] == [2, 1, 0]
    assert [stored_row_index(r, top_down) for r in range(3)] == [0, 1, 2]


def test_all_set_16x2_bottom_up(bmp_bytes):
    packed = pack(bmp_bytes(stored_rows=[b"\xff\xff"] * 2, width=16, height=2))
    assert packed.rows == (b"\xff\xff", b"\xff\xff")


def test_bottom_up_emits_last_stored_row_first(bmp_bytes):
    blob = bmp_bytes(stored_rows=[b"\x0f\x00", b"\xf0\x01"], width=16, height=2)
    packed = pack(blob)
    assert packed.rows == (b"\xf0\x01", b"\x0f\x00")


def test_top_down_keeps_stored_order(bmp_bytes):
    blob = bmp_bytes(stored_rows=[b"\x0f\x00", b"\xf0\x01"], width=16, height=-2)
    packed = pack(blob)
    assert packed.rows == (b"\x0f\x00", b"\xf0\x01")


def test_width_10_masks_padding_msb(bmp_bytes):
    blob = bmp_bytes(stored_rows=[b"\xff\xff"], width=10, height=1, pad=0xFF)
    assert pack(blob).data == b"\xff\xc0"


def test_width_10_masks_padding_lsb(bmp_bytes):
    blob = bmp_bytes(stored_rows=[b"\xff\xff"], width=10, height=1, pad=0xFF)
    assert pack(blob, BitOrder.LSB_FIRST).data == b"\xff\x03"


def test_lsb_reverses_each_byte(bmp_bytes):
    blob = bmp_bytes(stored_rows=[b"\x80\x01"], width=16, height=1)
    assert pack(blob, BitOrder.LSB_FIRST).data == b"\x01\x80"


def test_rows_never_share_a_byte(bmp_bytes):
    blob = bmp_bytes(stored_rows=[b"\xe0", b"\xe0"], width=3, height=-2, pad=0xFF)
    packed = pack(blob)
    assert packed.rows == (b"\xe0", b"\xe0")


@pytest.mark.parametrize("width, height", [(1, 1), (7, 3), (8, 2), (9, 4), (33, 2), (40, -5)])
def test_row_and_byte_counts(bmp_bytes, width, height):
    row = b"\xff" * ((width + 7) // 8)
    blob = bmp_bytes(stored_rows=[row] * abs(height), width=width, height=height)
    packed = pack(blob)
    assert len(packed.rows) == abs(height)
    assert all(len(r) == (width + 7) // 8 for r in packed.rows)


def test_zero_height(bmp_bytes):
    packed = pack(bmp_bytes(stored_rows=[], width=8, height=0))
    assert packed.rows == ()
    assert packed.data == b""


def test_zero_width(bmp_bytes):
    packed = pack(bmp_bytes(stored_rows=[b"", b""], width=0, height=2))
    assert packed.rows == (b"", b"")
    assert packed.data == b""


def test_truncated_pixel_data(bmp_bytes):
    blob = bmp_bytes(stored_rows=[b"\xff"] * 4, width=8, height=4)
    with pytest.raises(TruncatedInputError):
        pack(blob[:-6])


def test_unpack_rows_matches_in_both_bit_orders(bmp_bytes):
    blob = bmp_bytes(stored_rows=[b"\xb4\x80"], width=10, height=1, pad=0xFF)
    expected = [[1, 0, 1, 1, 0, 1, 0, 0, 1, 0]]
    assert unpack_rows(pack(blob)) == expected
    assert unpack_rows(pack(blob, BitOrder.LSB_FIRST)) == expected

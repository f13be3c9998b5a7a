import struct

import pytest

from bmp_parser import row_stride

BLACK_WHITE = ((0, 0, 0), (255, 255, 255))


def make_bmp(stored_rows, width, height, palette=BLACK_WHITE, colors_used=2,
             bpp=1, compression=0, signature=b"BM", pad=0x00):
    """
    Build a BMP image in memory. stored_rows are given in file order; each
    is padded out to the row stride with the pad byte.
    """
    stride = row_stride(width)
    pixels = b"".join(
        bytes(row) + bytes([pad]) * (stride - len(row)) for row in stored_rows
    )

    table = b""
    if palette is not None:
        table = b"".join(struct.pack("<BBBB", b, g, r, 0) for (b, g, r) in palette)
    offset = 54 + len(table)

    filehdr = struct.pack("<2sIHHI", signature, offset + len(pixels), 0, 0, offset)
    infohdr = struct.pack(
        "<IiiHHIIiiII",
        40, width, height, 1, bpp, compression, len(pixels),
        2835, 2835, colors_used, 0,
    )
    return filehdr + infohdr + table + pixels


@pytest.fixture
def bmp_file(tmp_path):
    def write(name="image.bmp", **kwargs):
        path = tmp_path / name
        path.write_bytes(make_bmp(**kwargs))
        return path
    return write


@pytest.fixture
def bmp_bytes():
    return make_bmp

"""
c_writer.py

Renders packed bitmap data as a C header and writes it atomically.
"""

from __future__ import annotations

import logging
import os
import tempfile

log = logging.getLogger(__name__)


def _byte_line(values):
    return "".join(f"0x{v:02X}, " for v in values).rstrip() + "\n"


def render_c_source(packed, palette=None, name="bmp", source_name=None) -> str:
    lines = []
    if source_name:
        lines.append(f"// Generated from {source_name}\n")
    lines.append(f"// Bit order: {packed.bit_order.label}\n")
    lines.append(f"#define {name.upper()}_WIDTH  {packed.width}\n")
    lines.append(f"#define {name.upper()}_HEIGHT {packed.height}\n")
    lines.append("\n\n")

    lines.append(f"unsigned char {name}_data[] = {{\n")
    for row in packed.rows:
        # Rows of a zero-width image are empty and produce no line
        if row:
            lines.append(_byte_line(row))
    lines.append("};\n")

    if palette is not None:
        # (blue, green, red) per entry
        flat = [channel for entry in palette for channel in entry]
        lines.append("\n")
        lines.append(f"unsigned char {name}_palette[] = {{\n")
        lines.append(_byte_line(flat))
        lines.append("};\n")

    return "".join(lines)


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


def write_atomic(path, text: str) -> None:
    path = os.fspath(path)
    directory = os.path.dirname(os.path.abspath(path))

    fd, tmp = tempfile.mkstemp(prefix=".bmp2c.", suffix=".tmp", dir=directory)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        # mkstemp creates 0600; give the header the usual umask-based mode
        os.chmod(tmp, 0o666 & ~_current_umask())
        os.replace(tmp, path)
    except Exception:
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise
    log.info("Wrote %d bytes to %s", len(text), path)

"""Binary portable bitmap (PBM ``P4``) reader and writer.

Layout::

    P4\\n<width> <height>\\n<packed bits>

Cells are packed most-significant bit first, row-major, and continuously
across row boundaries: bit ``j`` of byte ``i`` holds cell ``i * 8 + j``.
Only the final byte is padded.
"""

import logging
import os
import tempfile

from bitgrid import MAX_CELLS, Canvas, CapacityError

log = logging.getLogger("zorn")

MAGIC = b"P4"
_WHITESPACE = b" \t\n\r\v\f"

__all__ = [
    "MAGIC", "PbmError", "FormatError", "CapacityError",
    "encode", "decode", "load", "save", "packed_size",
]


class PbmError(ValueError):
    """Base class for problems with PBM data."""


class FormatError(PbmError):
    """The data is not a well-formed binary PBM image."""


def packed_size(width, height):
    return (width * height + 7) // 8


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------
def encode(canvas):
    width, height = canvas.dimensions()
    packed = bytearray(packed_size(width, height))
    for i, bit in enumerate(canvas.bits()):
        if bit:
            packed[i >> 3] |= 0x80 >> (i & 7)
    header = MAGIC + b"\n" + f"{width} {height}\n".encode("ascii")
    return header + bytes(packed)


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------
def _next_token(data, pos):
    """Return (token, end) for the next whitespace-delimited token."""
    n = len(data)
    while pos < n and data[pos] in _WHITESPACE:
        pos += 1
    start = pos
    while pos < n and data[pos] not in _WHITESPACE:
        pos += 1
    return data[start:pos], pos


def _parse_dimension(token, name):
    if not token or not token.isdigit():
        raise FormatError(f"invalid {name} {token.decode('ascii', 'replace')!r}")
    value = int(token)
    if value < 1:
        raise FormatError(f"{name} must be positive, got {value}")
    return value


def decode(data, max_cells=MAX_CELLS):
    """Parse PBM bytes into a new Canvas.

    Raises FormatError for a wrong magic, a malformed header or truncated
    pixel data, and CapacityError when the image holds more than
    ``max_cells`` cells. Capacity is checked before anything is allocated.
    """
    data = bytes(data)
    tag, pos = _next_token(data, 0)
    if tag != MAGIC:
        raise FormatError("not a binary PBM file")
    token, pos = _next_token(data, pos)
    width = _parse_dimension(token, "width")
    token, pos = _next_token(data, pos)
    height = _parse_dimension(token, "height")
    if width * height > max_cells:
        raise CapacityError(
            f"image resolution {width}x{height} exceeds {max_cells} cells")
    # A single whitespace byte separates the header from the raster.
    start = pos + 1
    needed = packed_size(width, height)
    if len(data) - start < needed:
        raise FormatError(
            f"pixel data truncated: expected {needed} bytes, "
            f"got {max(0, len(data) - start)}")
    raster = data[start:start + needed]
    bits = ((raster[i >> 3] >> (7 - (i & 7))) & 1
            for i in range(width * height))
    return Canvas.from_bits(width, height, bits, max_cells)


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------
def load(path, max_cells=MAX_CELLS):
    log.info(f"[load] Reading {path}")
    with open(path, "rb") as f:
        data = f.read()
    canvas = decode(data, max_cells)
    log.info(f"[load] OK: {canvas.width}x{canvas.height}")
    return canvas


def _file_mode(path):
    """Mode for a saved file: keep an existing file's, else 0666 less umask."""
    try:
        return os.stat(path).st_mode & 0o7777
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def save(path, canvas):
    """Write ``canvas`` to ``path`` atomically.

    The image is encoded in full and written to a temporary file next to
    the target, which then replaces it. On any failure the target is left
    as it was.
    """
    data = encode(canvas)
    directory = os.path.dirname(os.path.abspath(path))
    fd, tmp_path = tempfile.mkstemp(
        dir=directory, prefix=f".{os.path.basename(path)}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.chmod(tmp_path, _file_mode(path))
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise
    log.info(f"[save] Wrote {len(data)} bytes to {path}")

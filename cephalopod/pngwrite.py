"""An in-memory PNG encoder with its own deflate compressor.

Pixel data is a flat sequence of 8-bit channel values, row by row from the
top-left pixel, with ``comp`` interleaved channels per pixel:
1 = grey, 2 = grey + alpha, 3 = RGB, 4 = RGBA.
"""

from __future__ import annotations

import struct
import zlib
from typing import Sequence

from cephalopod.rasterwrite import ImageWriteError

_ZHASH = 16384

_LENGTHC = (
    3, 4, 5, 6, 7, 8, 9, 10, 11, 13, 15, 17, 19, 23, 27, 31, 35, 43, 51, 59,
    67, 83, 99, 115, 131, 163, 195, 227, 258, 259,
)
_LENGTHEB = (
    0, 0, 0, 0, 0, 0, 0, 0, 1, 1, 1, 1, 2, 2, 2, 2, 3, 3, 3, 3, 4, 4, 4, 4,
    5, 5, 5, 5, 0,
)
_DISTC = (
    1, 2, 3, 4, 5, 7, 9, 13, 17, 25, 33, 49, 65, 97, 129, 193, 257, 385, 513,
    769, 1025, 1537, 2049, 3073, 4097, 6145, 8193, 12289, 16385, 24577, 32768,
)
_DISTEB = (
    0, 0, 0, 0, 1, 1, 2, 2, 3, 3, 4, 4, 5, 5, 6, 6, 7, 7, 8, 8, 9, 9, 10, 10,
    11, 11, 12, 12, 13, 13,
)

_PNG_SIGNATURE = bytes((137, 80, 78, 71, 13, 10, 26, 10))
_COLOR_TYPES = {1: 0, 2: 4, 3: 2, 4: 6}

# Filter remapping for the first row, which has no row above it.
_FIRST_ROW_FILTERS = (0, 1, 0, 5, 6)

_U32 = 0xFFFFFFFF


def _bitrev(code: int, codebits: int) -> int:
    res = 0
    for _ in range(codebits):
        res = (res << 1) | (code & 1)
        code >>= 1
    return res


class _BitWriter:
    """Collects deflate bits least-significant first."""

    def __init__(self, out: bytearray) -> None:
        self.out = out
        self.bitbuf = 0
        self.bitcount = 0

    def add(self, code: int, codebits: int) -> None:
        self.bitbuf |= code << self.bitcount
        self.bitcount += codebits
        while self.bitcount >= 8:
            self.out.append(self.bitbuf & 0xFF)
            self.bitbuf >>= 8
            self.bitcount -= 8

    def huffa(self, code: int, codebits: int) -> None:
        self.add(_bitrev(code, codebits), codebits)

    def huff(self, n: int) -> None:
        """Emit a literal/length symbol with the fixed Huffman code."""
        if n <= 143:
            self.huffa(0x30 + n, 8)
        elif n <= 255:
            self.huffa(0x190 + n - 144, 9)
        elif n <= 279:
            self.huffa(n - 256, 7)
        else:
            self.huffa(0xC0 + n - 280, 8)

    def huffb(self, n: int) -> None:
        """Emit a literal byte."""
        if n <= 143:
            self.huffa(0x30 + n, 8)
        else:
            self.huffa(0x190 + n - 144, 9)


def _zhash(data: bytes, i: int) -> int:
    h = data[i] + (data[i + 1] << 8) + (data[i + 2] << 16)
    h ^= (h << 3) & _U32
    h = (h + (h >> 5)) & _U32
    h ^= (h << 4) & _U32
    h = (h + (h >> 17)) & _U32
    h ^= (h << 25) & _U32
    h = (h + (h >> 6)) & _U32
    return h


def _count_matches(data: bytes, a: int, b: int, limit: int) -> int:
    n = min(limit, 258)
    k = 0
    while k < n and data[a + k] == data[b + k]:
        k += 1
    return k


def zlib_compress(data: bytes, quality: int = 8) -> bytes:
    """Compress ``data`` into a zlib stream using fixed Huffman codes.

    ``quality`` bounds the length of each hash chain; values below 5
    count as 5.
    """
    data = bytes(data)
    quality = max(quality, 5)
    data_len = len(data)
    out = bytearray((0x78, 0x5E))
    bits = _BitWriter(out)
    bits.add(1, 1)  # final block
    bits.add(1, 2)  # fixed Huffman codes

    table: dict[int, list[int]] = {}
    i = 0
    while i < data_len - 3:
        h = _zhash(data, i) & (_ZHASH - 1)
        best = 3
        bestloc: int | None = None
        for pos in table.get(h, ()):
            if pos > i - 32768:
                d = _count_matches(data, pos, i, data_len - i)
                if d >= best:
                    best = d
                    bestloc = pos
        chain = table.setdefault(h, [])
        if len(chain) == 2 * quality:
            del chain[:quality]
        chain.append(i)

        if bestloc is not None:
            h2 = _zhash(data, i + 1) & (_ZHASH - 1)
            for pos in table.get(h2, ()):
                if pos > i - 32767:
                    e = _count_matches(data, pos, i + 1, data_len - i - 1)
                    if e > best:
                        bestloc = None
                        break

        if bestloc is not None:
            dist = i - bestloc
            j = 0
            while best > _LENGTHC[j + 1] - 1:
                j += 1
            bits.huff(j + 257)
            if _LENGTHEB[j]:
                bits.add(best - _LENGTHC[j], _LENGTHEB[j])
            j = 0
            while dist > _DISTC[j + 1] - 1:
                j += 1
            bits.add(_bitrev(j, 5), 5)
            if _DISTEB[j]:
                bits.add(dist - _DISTC[j], _DISTEB[j])
            i += best
        else:
            bits.huffb(data[i])
            i += 1

    for byte in data[i:]:
        bits.huffb(byte)
    bits.huff(256)
    while bits.bitcount:
        bits.add(0, 1)

    out += struct.pack(">I", zlib.adler32(data) & _U32)
    return bytes(out)


def crc32(data: bytes) -> int:
    """The CRC-32 used by PNG chunks."""
    return zlib.crc32(bytes(data)) & _U32


def paeth(a: int, b: int, c: int) -> int:
    """The PNG Paeth predictor of left ``a``, above ``b`` and upper-left ``c``."""
    p = a + b - c
    pa = abs(p - a)
    pb = abs(p - b)
    pc = abs(p - c)
    if pa <= pb and pa <= pc:
        return a & 0xFF
    if pb <= pc:
        return b & 0xFF
    return c & 0xFF


def encode_png_line(
    pixels: Sequence[int],
    stride_bytes: int,
    width: int,
    height: int,
    y: int,
    n: int,
    filter_type: int,
    flip_vertically: bool = False,
) -> bytes:
    """Filter output row ``y`` with the given PNG filter type (0-4)."""
    if not 0 <= filter_type <= 4:
        raise ValueError(f"invalid PNG filter type: {filter_type}")
    kind = filter_type if y != 0 else _FIRST_ROW_FILTERS[filter_type]
    row = height - 1 - y if flip_vertically else y
    base = stride_bytes * row
    up_offset = base - (-stride_bytes if flip_vertically else stride_bytes)

    line = bytearray(width * n)
    for i in range(width * n):
        cur = pixels[base + i]
        has_left = i >= n
        left = pixels[base + i - n] if has_left else 0
        up = pixels[up_offset + i] if kind in (2, 3, 4) else 0
        if kind in (0, 5, 6) and not has_left:
            value = cur
        elif kind == 0:
            value = cur
        elif kind == 1:
            value = cur - left
        elif kind == 2:
            value = cur - up
        elif kind == 3:
            value = cur - ((left + up) >> 1)
        elif kind == 4:
            upleft = pixels[up_offset + i - n] if has_left else 0
            value = cur - paeth(left, up, upleft)
        elif kind == 5:
            value = cur - (left >> 1)
        else:
            value = cur - paeth(left, 0, 0)
        line[i] = value & 0xFF
    return bytes(line)


def _line_cost(line: bytes) -> int:
    return sum(v if v < 128 else 256 - v for v in line)


def _chunk(tag: bytes, payload: bytes) -> bytes:
    body = tag + payload
    return struct.pack(">I", len(payload)) + body + struct.pack(">I", crc32(body))


def write_png(
    width: int,
    height: int,
    comp: int,
    data: Sequence[int],
    stride_bytes: int = 0,
    compression_level: int = 8,
    force_filter: int = -1,
    flip_vertically: bool = False,
) -> bytes:
    """Encode an 8-bit PNG image.

    ``stride_bytes`` is the distance between rows in ``data`` (0 means
    tightly packed). Without a forced filter (0-4), each row takes the
    filter whose output has the smallest sum of absolute signed bytes.
    """
    if not 1 <= comp <= 4:
        raise ImageWriteError(f"unsupported channel count: {comp}")
    if width < 0 or height < 0:
        raise ImageWriteError("image dimensions must not be negative")
    if stride_bytes == 0:
        stride_bytes = width * comp
    if stride_bytes < width * comp:
        raise ImageWriteError("row stride is shorter than a row of pixels")
    pixels = bytes(data)
    if height and len(pixels) < (height - 1) * stride_bytes + width * comp:
        raise ImageWriteError("not enough pixel data for the image size")
    if force_filter >= 5:
        force_filter = -1

    filtered = bytearray()
    for y in range(height):
        if force_filter > -1:
            filter_type = force_filter
            line = encode_png_line(
                pixels, stride_bytes, width, height, y, comp, force_filter, flip_vertically
            )
        else:
            candidates = [
                encode_png_line(
                    pixels, stride_bytes, width, height, y, comp, ft, flip_vertically
                )
                for ft in range(5)
            ]
            costs = [_line_cost(c) for c in candidates]
            filter_type = costs.index(min(costs))
            line = candidates[filter_type]
        filtered.append(filter_type)
        filtered += line

    compressed = zlib_compress(bytes(filtered), compression_level)
    header = struct.pack(">II", width, height) + bytes((8, _COLOR_TYPES[comp], 0, 0, 0))
    return (
        _PNG_SIGNATURE
        + _chunk(b"IHDR", header)
        + _chunk(b"IDAT", compressed)
        + _chunk(b"IEND", b"")
    )
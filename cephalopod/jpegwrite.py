"""A baseline JPEG encoder working in memory.

Pixel data is a flat sequence of 8-bit channel values, row by row from the
top-left pixel, with ``comp`` interleaved channels per pixel:
1 = grey, 2 = grey + alpha, 3 = RGB, 4 = RGBA. Alpha is ignored.
"""

from __future__ import annotations

from typing import Sequence

from cephalopod.rasterwrite import ImageWriteError

ZIGZAG = (
    0, 1, 5, 6, 14, 15, 27, 28, 2, 4, 7, 13, 16, 26, 29, 42, 3, 8, 12, 17, 25, 30, 41, 43,
    9, 11, 18, 24, 31, 40, 44, 53, 10, 19, 23, 32, 39, 45, 52, 54, 20, 22, 33, 38, 46, 51,
    55, 60, 21, 34, 37, 47, 50, 56, 59, 61, 35, 36, 48, 49, 57, 58, 62, 63,
)

_DC_LUM_NRCODES = (0, 0, 1, 5, 1, 1, 1, 1, 1, 1, 0, 0, 0, 0, 0, 0, 0)
_DC_LUM_VALUES = tuple(range(12))
_AC_LUM_NRCODES = (0, 0, 2, 1, 3, 3, 2, 4, 3, 5, 5, 4, 4, 0, 0, 1, 0x7D)
_AC_LUM_VALUES = (
    0x01, 0x02, 0x03, 0x00, 0x04, 0x11, 0x05, 0x12, 0x21, 0x31, 0x41, 0x06, 0x13, 0x51, 0x61, 0x07,
    0x22, 0x71, 0x14, 0x32, 0x81, 0x91, 0xA1, 0x08, 0x23, 0x42, 0xB1, 0xC1, 0x15, 0x52, 0xD1, 0xF0,
    0x24, 0x33, 0x62, 0x72, 0x82, 0x09, 0x0A, 0x16, 0x17, 0x18, 0x19, 0x1A, 0x25, 0x26, 0x27, 0x28,
    0x29, 0x2A, 0x34, 0x35, 0x36, 0x37, 0x38, 0x39, 0x3A, 0x43, 0x44, 0x45, 0x46, 0x47, 0x48, 0x49,
    0x4A, 0x53, 0x54, 0x55, 0x56, 0x57, 0x58, 0x59, 0x5A, 0x63, 0x64, 0x65, 0x66, 0x67, 0x68, 0x69,
    0x6A, 0x73, 0x74, 0x75, 0x76, 0x77, 0x78, 0x79, 0x7A, 0x83, 0x84, 0x85, 0x86, 0x87, 0x88, 0x89,
    0x8A, 0x92, 0x93, 0x94, 0x95, 0x96, 0x97, 0x98, 0x99, 0x9A, 0xA2, 0xA3, 0xA4, 0xA5, 0xA6, 0xA7,
    0xA8, 0xA9, 0xAA, 0xB2, 0xB3, 0xB4, 0xB5, 0xB6, 0xB7, 0xB8, 0xB9, 0xBA, 0xC2, 0xC3, 0xC4, 0xC5,
    0xC6, 0xC7, 0xC8, 0xC9, 0xCA, 0xD2, 0xD3, 0xD4, 0xD5, 0xD6, 0xD7, 0xD8, 0xD9, 0xDA, 0xE1, 0xE2,
    0xE3, 0xE4, 0xE5, 0xE6, 0xE7, 0xE8, 0xE9, 0xEA, 0xF1, 0xF2, 0xF3, 0xF4, 0xF5, 0xF6, 0xF7, 0xF8,
    0xF9, 0xFA,
)
_DC_CHR_NRCODES = (0, 0, 3, 1, 1, 1, 1, 1, 1, 1, 1, 1, 0, 0, 0, 0, 0)
_DC_CHR_VALUES = tuple(range(12))
_AC_CHR_NRCODES = (0, 0, 2, 1, 2, 4, 4, 3, 4, 7, 5, 4, 4, 0, 1, 2, 0x77)
_AC_CHR_VALUES = (
    0x00, 0x01, 0x02, 0x03, 0x11, 0x04, 0x05, 0x21, 0x31, 0x06, 0x12, 0x41, 0x51, 0x07, 0x61, 0x71,
    0x13, 0x22, 0x32, 0x81, 0x08, 0x14, 0x42, 0x91, 0xA1, 0xB1, 0xC1, 0x09, 0x23, 0x33, 0x52, 0xF0,
    0x15, 0x62, 0x72, 0xD1, 0x0A, 0x16, 0x24, 0x34, 0xE1, 0x25, 0xF1, 0x17, 0x18, 0x19, 0x1A, 0x26,
    0x27, 0x28, 0x29, 0x2A, 0x35, 0x36, 0x37, 0x38, 0x39, 0x3A, 0x43, 0x44, 0x45, 0x46, 0x47, 0x48,
    0x49, 0x4A, 0x53, 0x54, 0x55, 0x56, 0x57, 0x58, 0x59, 0x5A, 0x63, 0x64, 0x65, 0x66, 0x67, 0x68,
    0x69, 0x6A, 0x73, 0x74, 0x75, 0x76, 0x77, 0x78, 0x79, 0x7A, 0x82, 0x83, 0x84, 0x85, 0x86, 0x87,
    0x88, 0x89, 0x8A, 0x92, 0x93, 0x94, 0x95, 0x96, 0x97, 0x98, 0x99, 0x9A, 0xA2, 0xA3, 0xA4, 0xA5,
    0xA6, 0xA7, 0xA8, 0xA9, 0xAA, 0xB2, 0xB3, 0xB4, 0xB5, 0xB6, 0xB7, 0xB8, 0xB9, 0xBA, 0xC2, 0xC3,
    0xC4, 0xC5, 0xC6, 0xC7, 0xC8, 0xC9, 0xCA, 0xD2, 0xD3, 0xD4, 0xD5, 0xD6, 0xD7, 0xD8, 0xD9, 0xDA,
    0xE2, 0xE3, 0xE4, 0xE5, 0xE6, 0xE7, 0xE8, 0xE9, 0xEA, 0xF2, 0xF3, 0xF4, 0xF5, 0xF6, 0xF7, 0xF8,
    0xF9, 0xFA,
)

_YQT = (
    16, 11, 10, 16, 24, 40, 51, 61, 12, 12, 14, 19, 26, 58, 60, 55, 14, 13, 16, 24, 40, 57, 69, 56,
    14, 17, 22, 29, 51, 87, 80, 62, 18, 22, 37, 56, 68, 109, 103, 77, 24, 35, 55, 64, 81, 104, 113,
    92, 49, 64, 78, 87, 103, 121, 120, 101, 72, 92, 95, 98, 112, 100, 103, 99,
)
_UVQT = (
    17, 18, 24, 47, 99, 99, 99, 99, 18, 21, 26, 66, 99, 99, 99, 99, 24, 26, 56, 99, 99, 99, 99, 99,
    47, 66, 99, 99, 99, 99, 99, 99,
) + (99,) * 32

_AASF = tuple(
    f * 2.828427125
    for f in (1.0, 1.387039845, 1.306562965, 1.175875602, 1.0, 0.785694958, 0.541196100, 0.275899379)
)

_HEAD0 = bytes(
    (0xFF, 0xD8, 0xFF, 0xE0, 0, 0x10, ord("J"), ord("F"), ord("I"), ord("F"), 0, 1, 1, 0, 0, 1, 0,
     1, 0, 0, 0xFF, 0xDB, 0, 0x84, 0)
)
_HEAD2 = bytes((0xFF, 0xDA, 0, 0xC, 3, 1, 0, 2, 0x11, 3, 0x11, 0, 0x3F, 0))


def _huffman_table(nrcodes: Sequence[int], values: Sequence[int]) -> tuple[tuple[int, int], ...]:
    """Canonical (code, length) pairs indexed by symbol; unused symbols get (0, 0)."""
    table = [(0, 0)] * 256
    symbols = iter(values)
    code = 0
    for length, count in enumerate(nrcodes[1:], start=1):
        for _ in range(count):
            table[next(symbols)] = (code, length)
            code += 1
        code <<= 1
    return tuple(table)


_YDC_HT = _huffman_table(_DC_LUM_NRCODES, _DC_LUM_VALUES)
_YAC_HT = _huffman_table(_AC_LUM_NRCODES, _AC_LUM_VALUES)
_UVDC_HT = _huffman_table(_DC_CHR_NRCODES, _DC_CHR_VALUES)
_UVAC_HT = _huffman_table(_AC_CHR_NRCODES, _AC_CHR_VALUES)


class _BitWriter:
    """Writes entropy-coded bits most-significant first, stuffing 0xFF bytes."""

    def __init__(self, out: bytearray) -> None:
        self.out = out
        self.buf = 0
        self.count = 0

    def write(self, code: int, length: int) -> None:
        self.count += length
        self.buf |= code << (24 - self.count)
        while self.count >= 8:
            c = (self.buf >> 16) & 0xFF
            self.out.append(c)
            if c == 0xFF:
                self.out.append(0)
            self.buf = (self.buf << 8) & 0xFFFFFF
            self.count -= 8


def calc_bits(val: int) -> tuple[int, int]:
    """The (bits, bit count) JPEG uses to code a coefficient value."""
    magnitude = -val if val < 0 else val
    if val < 0:
        val -= 1
    length = 1
    magnitude >>= 1
    while magnitude:
        length += 1
        magnitude >>= 1
    return val & ((1 << length) - 1), length


def forward_dct(values: Sequence[float]) -> tuple[float, ...]:
    """The scaled 8-point forward DCT of ``values`` (AAN algorithm)."""
    d0, d1, d2, d3, d4, d5, d6, d7 = values

    tmp0 = d0 + d7
    tmp7 = d0 - d7
    tmp1 = d1 + d6
    tmp6 = d1 - d6
    tmp2 = d2 + d5
    tmp5 = d2 - d5
    tmp3 = d3 + d4
    tmp4 = d3 - d4

    tmp10 = tmp0 + tmp3
    tmp13 = tmp0 - tmp3
    tmp11 = tmp1 + tmp2
    tmp12 = tmp1 - tmp2

    out0 = tmp10 + tmp11
    out4 = tmp10 - tmp11

    z1 = (tmp12 + tmp13) * 0.707106781
    out2 = tmp13 + z1
    out6 = tmp13 - z1

    tmp10 = tmp4 + tmp5
    tmp11 = tmp5 + tmp6
    tmp12 = tmp6 + tmp7

    z5 = (tmp10 - tmp12) * 0.382683433
    z2 = tmp10 * 0.541196100 + z5
    z4 = tmp12 * 1.306562965 + z5
    z3 = tmp11 * 0.707106781

    z11 = tmp7 + z3
    z13 = tmp7 - z3

    return (out0, z11 + z4, out2, z13 - z2, out4, z13 + z2, out6, z11 - z4)


def _process_du(
    bits: _BitWriter,
    cdu: list[float],
    fdtbl: Sequence[float],
    dc: int,
    htdc: Sequence[tuple[int, int]],
    htac: Sequence[tuple[int, int]],
) -> int:
    """Transform, quantise and code one 8x8 block; return its DC value."""
    eob = htac[0x00]
    m16zeroes = htac[0xF0]

    for off in range(0, 64, 8):
        cdu[off:off + 8] = forward_dct(cdu[off:off + 8])
    for off in range(8):
        cdu[off::8] = forward_dct(cdu[off::8])

    du = [0] * 64
    for i, (v, f) in enumerate(zip(cdu, fdtbl)):
        q = v * f
        du[ZIGZAG[i]] = int(q - 0.5 if q < 0 else q + 0.5)

    diff = du[0] - dc
    if diff == 0:
        bits.write(*htdc[0])
    else:
        code, length = calc_bits(diff)
        bits.write(*htdc[length])
        bits.write(code, length)

    end0pos = 63
    while end0pos > 0 and du[end0pos] == 0:
        end0pos -= 1
    if end0pos == 0:
        bits.write(*eob)
        return du[0]

    i = 1
    while i <= end0pos:
        start = i
        while du[i] == 0 and i <= end0pos:
            i += 1
        nrzeroes = i - start
        if nrzeroes >= 16:
            for _ in range(nrzeroes >> 4):
                bits.write(*m16zeroes)
            nrzeroes &= 15
        code, length = calc_bits(du[i])
        bits.write(*htac[(nrzeroes << 4) + length])
        bits.write(code, length)
        i += 1
    if end0pos != 63:
        bits.write(*eob)
    return du[0]


def _scaled_quality(quality: int) -> int:
    quality = quality or 90
    quality = min(max(quality, 1), 100)
    return 5000 // quality if quality < 50 else 200 - quality * 2


def _quant_table(base: Sequence[int], quality: int) -> bytes:
    table = [0] * 64
    for i, q in enumerate(base):
        table[ZIGZAG[i]] = min(max((q * quality + 50) // 100, 1), 255)
    return bytes(table)


def _divisors(table: bytes) -> list[float]:
    return [
        1.0 / (table[ZIGZAG[row * 8 + col]] * _AASF[row] * _AASF[col])
        for row in range(8)
        for col in range(8)
    ]


def write_jpg(
    width: int,
    height: int,
    comp: int,
    data: Sequence[int],
    quality: int = 90,
    flip_vertically: bool = False,
) -> bytes:
    """Encode a baseline YCbCr JPEG.

    ``quality`` runs from 1 to 100 (out-of-range values are clamped; 0
    means 90). Partial blocks at the edges repeat the last row or column.
    """
    if data is None or width <= 0 or height <= 0 or comp > 4 or comp < 1:
        raise ImageWriteError("JPEG images need a positive size, 1-4 channels and pixel data")
    if len(data) < width * height * comp:
        raise ImageWriteError("not enough pixel data for the image size")

    quality = _scaled_quality(quality)
    y_table = _quant_table(_YQT, quality)
    uv_table = _quant_table(_UVQT, quality)
    fdtbl_y = _divisors(y_table)
    fdtbl_uv = _divisors(uv_table)

    out = bytearray(_HEAD0)
    out += y_table
    out.append(1)
    out += uv_table
    out += bytes(
        (0xFF, 0xC0, 0, 0x11, 8, (height >> 8) & 0xFF, height & 0xFF, (width >> 8) & 0xFF,
         width & 0xFF, 3, 1, 0x11, 0, 2, 0x11, 1, 3, 0x11, 1, 0xFF, 0xC4, 0x01, 0xA2, 0)
    )
    out += bytes(_DC_LUM_NRCODES[1:]) + bytes(_DC_LUM_VALUES)
    out.append(0x10)
    out += bytes(_AC_LUM_NRCODES[1:]) + bytes(_AC_LUM_VALUES)
    out.append(1)
    out += bytes(_DC_CHR_NRCODES[1:]) + bytes(_DC_CHR_VALUES)
    out.append(0x11)
    out += bytes(_AC_CHR_NRCODES[1:]) + bytes(_AC_CHR_VALUES)
    out += _HEAD2

    bits = _BitWriter(out)
    dcy = dcu = dcv = 0
    ofs_g = 1 if comp > 2 else 0
    ofs_b = 2 if comp > 2 else 0
    row_len = width * comp
    for by in range(0, height, 8):
        for bx in range(0, width, 8):
            ydu: list[float] = []
            udu: list[float] = []
            vdu: list[float] = []
            for row in range(by, by + 8):
                src_row = min(row, height - 1)
                if flip_vertically:
                    src_row = height - 1 - src_row
                for col in range(bx, bx + 8):
                    p = src_row * row_len + min(col, width - 1) * comp
                    r = data[p]
                    g = data[p + ofs_g]
                    b = data[p + ofs_b]
                    ydu.append(0.29900 * r + 0.58700 * g + 0.11400 * b - 128)
                    udu.append(-0.16874 * r - 0.33126 * g + 0.50000 * b)
                    vdu.append(0.50000 * r - 0.41869 * g - 0.08131 * b)
            dcy = _process_du(bits, ydu, fdtbl_y, dcy, _YDC_HT, _YAC_HT)
            dcu = _process_du(bits, udu, fdtbl_uv, dcu, _UVDC_HT, _UVAC_HT)
            dcv = _process_du(bits, vdu, fdtbl_uv, dcv, _UVDC_HT, _UVAC_HT)

    bits.write(0x7F, 7)
    out += b"\xff\xd9"
    return bytes(out)
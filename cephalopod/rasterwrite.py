"""Encoders for BMP, TGA and Radiance HDR images held in memory.

Pixel data is a flat sequence of 8-bit channel values, row by row from the
top-left pixel, with ``comp`` interleaved channels per pixel:
1 = grey, 2 = grey + alpha, 3 = RGB, 4 = RGBA. HDR data is the same
layout, with linear floating-point channel values.
"""

from __future__ import annotations

import math
from pathlib import Path
from typing import Iterator, Sequence

_BMP_BACKGROUND = (255, 0, 255)

_HDR_HEADER = b"#?RADIANCE\n# Written by cephalopod\nFORMAT=32-bit_rle_rgbe\n"


class ImageWriteError(ValueError):
    """Raised when an image cannot be encoded or saved."""


def _fields(fmt: str, *values: int) -> bytes:
    """Little-endian fields; each digit of ``fmt`` is a field's byte width."""
    sizes = [int(c) for c in fmt if c != " "]
    if len(sizes) != len(values):
        raise ValueError("field count does not match the format")
    out = bytearray()
    for size, value in zip(sizes, values):
        out += (value & ((1 << (8 * size)) - 1)).to_bytes(size, "little")
    return bytes(out)


def _trunc_div(a: int, b: int) -> int:
    q = abs(a) // b
    return q if a >= 0 else -q


def _check(width: int, height: int, comp: int, data: Sequence) -> None:
    if width < 0 or height < 0:
        raise ImageWriteError("image dimensions must not be negative")
    if not 1 <= comp <= 4:
        raise ImageWriteError(f"unsupported channel count: {comp}")
    if data is None or len(data) < width * height * comp:
        raise ImageWriteError("not enough pixel data for the image size")


def _row_order(height: int, bottom_up: bool, flip_vertically: bool) -> range:
    if bottom_up != flip_vertically:
        return range(height - 1, -1, -1)
    return range(height)


def _row_pixels(data: Sequence, width: int, comp: int, row: int) -> list[bytes]:
    start = row * width * comp
    return [
        bytes(data[start + i * comp:start + (i + 1) * comp]) for i in range(width)
    ]


def _pixel_bytes(
    d: bytes, comp: int, rgb_dir: int, write_alpha: int, expand_mono: bool
) -> bytes:
    out = bytearray()
    if write_alpha < 0:
        out.append(d[comp - 1])
    if comp in (1, 2):
        out += bytes((d[0],) * 3) if expand_mono else bytes((d[0],))
    elif comp == 4 and not write_alpha:
        px = [
            (bg + _trunc_div((d[k] - bg) * d[3], 255)) & 0xFF
            for k, bg in enumerate(_BMP_BACKGROUND)
        ]
        out += bytes((px[1 - rgb_dir], px[1], px[1 + rgb_dir]))
    else:
        out += bytes((d[1 - rgb_dir], d[1], d[1 + rgb_dir]))
    if write_alpha > 0:
        out.append(d[comp - 1])
    return bytes(out)


def write_bmp(
    width: int, height: int, comp: int, data: Sequence[int], flip_vertically: bool = False
) -> bytes:
    """Encode a 24-bit uncompressed BMP.

    Grey is expanded to RGB; alpha is composited against magenta, or
    dropped for grey + alpha.
    """
    _check(width, height, comp, data)
    pad = (-width * 3) & 3
    out = bytearray(
        _fields(
            "11 4 22 4" "4 44 22 444444",
            ord("B"), ord("M"), 14 + 40 + (width * 3 + pad) * height, 0, 0, 14 + 40,
            40, width, height, 1, 24, 0, 0, 0, 0, 0, 0,
        )
    )
    for row in _row_order(height, True, flip_vertically):
        for d in _row_pixels(data, width, comp, row):
            out += _pixel_bytes(d, comp, -1, 0, True)
        out += bytes(pad)
    return bytes(out)


def _tga_rle_row(pixels: list[bytes], comp: int, has_alpha: int) -> Iterator[bytes]:
    x = len(pixels)
    i = 0
    while i < x:
        begin = i
        diff = True
        length = 1
        if i < x - 1:
            length += 1
            diff = pixels[i] != pixels[i + 1]
            if diff:
                prev = begin
                k = i + 2
                while k < x and length < 128:
                    if pixels[prev] != pixels[k]:
                        prev += 1
                        length += 1
                    else:
                        length -= 1
                        break
                    k += 1
            else:
                k = i + 2
                while k < x and length < 128:
                    if pixels[begin] == pixels[k]:
                        length += 1
                    else:
                        break
                    k += 1
        if diff:
            yield bytes(((length - 1) & 0xFF,))
            for d in pixels[begin:begin + length]:
                yield _pixel_bytes(d, comp, -1, has_alpha, False)
        else:
            yield bytes(((length - 129) & 0xFF,))
            yield _pixel_bytes(pixels[begin], comp, -1, has_alpha, False)
        i += length


def write_tga(
    width: int,
    height: int,
    comp: int,
    data: Sequence[int],
    rle: bool = True,
    flip_vertically: bool = False,
) -> bytes:
    """Encode a TGA image, run-length compressed unless ``rle`` is false."""
    _check(width, height, comp, data)
    has_alpha = 1 if comp in (2, 4) else 0
    colorbytes = comp - 1 if has_alpha else comp
    image_type = 3 if colorbytes < 2 else 2
    if rle:
        image_type += 8
    out = bytearray(
        _fields(
            "111 221 2222 11",
            0, 0, image_type, 0, 0, 0, 0, 0, width, height,
            (colorbytes + has_alpha) * 8, has_alpha * 8,
        )
    )
    for row in _row_order(height, True, flip_vertically):
        pixels = _row_pixels(data, width, comp, row)
        if rle:
            out += b"".join(_tga_rle_row(pixels, comp, has_alpha))
        else:
            for d in pixels:
                out += _pixel_bytes(d, comp, -1, has_alpha, False)
    return bytes(out)


def linear_to_rgbe(linear: Sequence[float]) -> bytes:
    """Encode a linear RGB triple as four RGBE bytes."""
    r, g, b = linear[0], linear[1], linear[2]
    maxcomp = max(r, max(g, b))
    if maxcomp < 1e-32:
        return bytes(4)
    mantissa, exponent = math.frexp(maxcomp)
    normalize = mantissa * 256.0 / maxcomp
    return bytes(
        (
            int(r * normalize) & 0xFF,
            int(g * normalize) & 0xFF,
            int(b * normalize) & 0xFF,
            (exponent + 128) & 0xFF,
        )
    )


def _hdr_pixel(scanline: Sequence[float], x: int, ncomp: int) -> bytes:
    base = x * ncomp
    if ncomp in (3, 4):
        linear = (scanline[base], scanline[base + 1], scanline[base + 2])
    else:
        linear = (scanline[base],) * 3
    return linear_to_rgbe(linear)


def _hdr_run(length: int, value: int) -> bytes:
    if length + 128 > 255:
        raise ValueError("run too long")
    return bytes(((length + 128) & 0xFF, value))


def _hdr_dump(chunk: Sequence[int]) -> bytes:
    if len(chunk) > 128:
        raise ValueError("literal block too long")
    return bytes((len(chunk),)) + bytes(chunk)


def _hdr_rle_channel(comp: Sequence[int]) -> Iterator[bytes]:
    width = len(comp)
    x = 0
    while x < width:
        r = x
        while r + 2 < width:
            if comp[r] == comp[r + 1] and comp[r] == comp[r + 2]:
                break
            r += 1
        if r + 2 >= width:
            r = width
        while x < r:
            n = min(r - x, 128)
            yield _hdr_dump(comp[x:x + n])
            x += n
        if r + 2 < width:
            while r < width and comp[r] == comp[x]:
                r += 1
            while x < r:
                n = min(r - x, 127)
                yield _hdr_run(n, comp[x])
                x += n


def _hdr_scanline(scanline: Sequence[float], width: int, ncomp: int) -> bytes:
    pixels = [_hdr_pixel(scanline, x, ncomp) for x in range(width)]
    if width < 8 or width >= 32768:
        return b"".join(pixels)
    header = bytes((2, 2, (width & 0xFF00) >> 8, width & 0x00FF))
    channels = [[p[c] for p in pixels] for c in range(4)]
    return header + b"".join(
        block for channel in channels for block in _hdr_rle_channel(channel)
    )


def write_hdr(
    width: int,
    height: int,
    comp: int,
    data: Sequence[float],
    flip_vertically: bool = False,
) -> bytes:
    """Encode a Radiance RGBE image; alpha is dropped and grey replicated."""
    if width <= 0 or height <= 0 or data is None:
        raise ImageWriteError("HDR images need a positive size and pixel data")
    _check(width, height, comp, data)
    out = bytearray(_HDR_HEADER)
    out += (
        f"EXPOSURE=          1.0000000000000\n\n-Y {height} +X {width}\n"
    ).encode("ascii")
    row_len = comp * width
    for i in range(height):
        row = height - 1 - i if flip_vertically else i
        out += _hdr_scanline(data[row * row_len:(row + 1) * row_len], width, comp)
    return bytes(out)


def save_image(path: str | Path, encoded: bytes) -> None:
    """Write encoded image bytes to ``path``."""
    try:
        Path(path).write_bytes(encoded)
    except OSError as exc:
        raise ImageWriteError(f"cannot write {path}: {exc}") from exc
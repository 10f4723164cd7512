import random
import struct
import zlib

import pytest

from cephalopod.pngwrite import (
    crc32,
    encode_png_line,
    paeth,
    write_png,
    zlib_compress,
)
from cephalopod.rasterwrite import ImageWriteError


def _std_paeth(a, b, c):
    p = a + b - c
    pa, pb, pc = abs(p - a), abs(p - b), abs(p - c)
    if pa <= pb and pa <= pc:
        return a
    if pb <= pc:
        return b
    return c


def _chunks(png):
    pos = 8
    chunks = []
    while pos < len(png):
        (length,) = struct.unpack(">I", png[pos:pos + 4])
        tag = png[pos + 4:pos + 8]
        payload = png[pos + 8:pos + 8 + length]
        (crc,) = struct.unpack(">I", png[pos + 8 + length:pos + 12 + length])
        assert crc == zlib.crc32(tag + payload) & 0xFFFFFFFF
        chunks.append((tag, payload))
        pos += 12 + length
    return chunks


def _decode(png, comp):
    chunks = dict(_chunks(png))
    width, height = struct.unpack(">II", chunks[b"IHDR"][:8])
    raw = zlib.decompress(chunks[b"IDAT"])
    stride = width * comp
    prev = bytearray(stride)
    out = bytearray()
    filters = []
    pos = 0
    for _ in range(height):
        ft = raw[pos]
        filters.append(ft)
        line = bytearray(raw[pos + 1:pos + 1 + stride])
        for i in range(stride):
            a = line[i - comp] if i >= comp else 0
            b = prev[i]
            c = prev[i - comp] if i >= comp else 0
            if ft == 1:
                line[i] = (line[i] + a) & 0xFF
            elif ft == 2:
                line[i] = (line[i] + b) & 0xFF
            elif ft == 3:
                line[i] = (line[i] + (a + b) // 2) & 0xFF
            elif ft == 4:
                line[i] = (line[i] + _std_paeth(a, b, c)) & 0xFF
        out += line
        prev = line
        pos += 1 + stride
    assert pos == len(raw)
    return width, height, bytes(out), filters


def _image(width, height, comp, seed=1):
    rng = random.Random(seed)
    return bytes(rng.randrange(256) for _ in range(width * height * comp))


def _smooth_image(width, height, comp):
    return bytes(
        (x * 7 + y * 3 + c * 40) & 0xFF
        for y in range(height)
        for x in range(width)
        for c in range(comp)
    )


@pytest.mark.parametrize(
    "data",
    [b"", b"a", b"abc", b"abcd", b"a" * 1000, b"abcabcabcabcxyzabc" * 50],
)
def test_zlib_compress_round_trip(data):
    assert zlib.decompress(zlib_compress(data)) == data


def test_zlib_compress_random_round_trip():
    rng = random.Random(7)
    data = bytes(rng.randrange(4) for _ in range(5000))
    assert zlib.decompress(zlib_compress(data, 5)) == data


def test_zlib_compress_header_bytes():
    assert zlib_compress(b"hello")[:2] == b"\x78\x5e"


def test_zlib_compress_shrinks_repetitive_data():
    data = b"a" * 1000
    assert len(zlib_compress(data)) < len(data) // 10


def test_zlib_quality_below_five_matches_five():
    data = b"the quick brown fox the quick brown fox " * 20
    assert zlib_compress(data, 1) == zlib_compress(data, 5)


def test_crc32_of_iend_tag():
    assert crc32(b"IEND") == 0xAE426082


def test_crc32_matches_zlib_for_data():
    data = bytes(range(256))
    assert crc32(data) == zlib.crc32(data) & 0xFFFFFFFF


@pytest.mark.parametrize("a,b,c", [(1, 2, 3), (10, 20, 5), (200, 100, 150), (0, 0, 0)])
def test_paeth_picks_one_neighbour(a, b, c):
    assert paeth(a, b, c) in (a, b, c)


def test_paeth_with_only_above():
    assert paeth(0, 77, 0) == 77


def test_paeth_with_only_left():
    assert paeth(55, 0, 0) == 55


def test_encode_png_line_none_filter_is_raw_row():
    pixels = _image(4, 3, 3)
    line = encode_png_line(pixels, 12, 4, 3, 1, 3, 0)
    assert line == pixels[12:24]


def test_encode_png_line_first_row_up_is_raw():
    pixels = _image(4, 3, 2)
    assert encode_png_line(pixels, 8, 4, 3, 0, 2, 2) == pixels[:8]


def test_encode_png_line_flip_uses_last_row_first():
    pixels = _image(4, 3, 1)
    assert encode_png_line(pixels, 4, 4, 3, 0, 1, 0, True) == pixels[8:12]


def test_encode_png_line_rejects_bad_filter():
    with pytest.raises(ValueError):
        encode_png_line(_image(2, 2, 1), 2, 2, 2, 1, 1, 7)


def test_png_signature_and_chunk_order():
    png = write_png(3, 2, 3, _image(3, 2, 3))
    assert png[:8] == b"\x89PNG\r\n\x1a\n"
    assert [tag for tag, _ in _chunks(png)] == [b"IHDR", b"IDAT", b"IEND"]


@pytest.mark.parametrize("comp,color_type", [(1, 0), (2, 4), (3, 2), (4, 6)])
def test_ihdr_fields(comp, color_type):
    png = write_png(5, 4, comp, _image(5, 4, comp))
    ihdr = dict(_chunks(png))[b"IHDR"]
    assert struct.unpack(">II", ihdr[:8]) == (5, 4)
    assert ihdr[8:] == bytes((8, color_type, 0, 0, 0))


@pytest.mark.parametrize("comp", [1, 2, 3, 4])
@pytest.mark.parametrize("force_filter", [-1, 0, 1, 2, 3, 4])
def test_png_round_trip(comp, force_filter):
    data = _image(5, 4, comp, seed=comp)
    png = write_png(5, 4, comp, data, force_filter=force_filter)
    width, height, pixels, filters = _decode(png, comp)
    assert (width, height) == (5, 4)
    assert pixels == data
    if force_filter >= 0:
        assert filters == [force_filter] * 4


def test_png_round_trip_smooth_image():
    data = _smooth_image(8, 6, 3)
    _, _, pixels, _ = _decode(write_png(8, 6, 3, data), 3)
    assert pixels == data


def test_png_flip_reverses_rows():
    data = _image(3, 4, 1)
    _, _, pixels, _ = _decode(write_png(3, 4, 1, data, flip_vertically=True), 1)
    rows = [data[r * 3:(r + 1) * 3] for r in range(4)]
    assert pixels == b"".join(reversed(rows))


def test_png_with_stride_skips_padding():
    rows = [_image(3, 1, 3, seed=r) for r in range(3)]
    padded = b"".join(row + b"\xee\xee" for row in rows)
    _, _, pixels, _ = _decode(write_png(3, 3, 3, padded, stride_bytes=11), 3)
    assert pixels == b"".join(rows)


def test_force_filter_five_means_automatic():
    data = _smooth_image(6, 5, 4)
    assert write_png(6, 5, 4, data, force_filter=5) == write_png(6, 5, 4, data)


def test_bad_channel_count_raises():
    with pytest.raises(ImageWriteError):
        write_png(2, 2, 5, bytes(20))


def test_short_data_raises():
    with pytest.raises(ImageWriteError):
        write_png(4, 4, 3, bytes(10))
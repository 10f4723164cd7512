import math
import random
import struct

import pytest

from cephalopod.rasterwrite import (
    ImageWriteError,
    linear_to_rgbe,
    save_image,
    write_bmp,
    write_hdr,
    write_tga,
)


def _decode_tga_rle(buf, pixel_count, pixel_size):
    pos = 18
    out = bytearray()
    count = 0
    while count < pixel_count:
        h = buf[pos]
        pos += 1
        n = (h & 0x7F) + 1
        if h & 0x80:
            out += buf[pos:pos + pixel_size] * n
            pos += pixel_size
        else:
            out += buf[pos:pos + pixel_size * n]
            pos += pixel_size * n
        count += n
    assert pos == len(buf)
    return bytes(out)


def _decode_hdr_scanline(buf, pos, width):
    assert buf[pos:pos + 4] == bytes((2, 2, width >> 8, width & 0xFF))
    pos += 4
    channels = []
    for _ in range(4):
        vals = []
        while len(vals) < width:
            n = buf[pos]
            pos += 1
            if n > 128:
                vals += [buf[pos]] * (n - 128)
                pos += 1
            else:
                vals += list(buf[pos:pos + n])
                pos += n
        assert len(vals) == width
        channels.append(vals)
    return [bytes(c[i] for c in channels) for i in range(width)], pos


def test_bmp_header_fields():
    out = write_bmp(3, 2, 3, bytes(range(18)))
    assert out[:2] == b"BM"
    size, _, _, offset = struct.unpack_from("<IHHI", out, 2)
    assert size == len(out)
    assert offset == 54
    hsize, wd, hgt, planes, bpp = struct.unpack_from("<IiiHH", out, 14)
    assert (hsize, wd, hgt, planes, bpp) == (40, 3, 2, 1, 24)


def test_bmp_single_pixel_is_bgr_with_padding():
    out = write_bmp(1, 1, 3, bytes((255, 0, 0)))
    assert out[54:] == bytes((0, 0, 255, 0))
    assert len(out) == 58


def test_bmp_rows_are_bottom_up_and_flip_reverses():
    data = bytes((1, 2, 3, 4, 5, 6))
    out = write_bmp(1, 2, 3, data)
    assert out[54:58] == bytes((6, 5, 4, 0))
    assert out[58:62] == bytes((3, 2, 1, 0))
    flipped = write_bmp(1, 2, 3, data, flip_vertically=True)
    assert flipped[54:58] == bytes((3, 2, 1, 0))


def test_bmp_grey_is_expanded():
    out = write_bmp(1, 1, 1, bytes((7,)))
    assert out[54:57] == bytes((7, 7, 7))


def test_bmp_alpha_composites_against_magenta():
    transparent = write_bmp(1, 1, 4, bytes((10, 20, 30, 0)))
    assert transparent[54:57] == bytes((255, 0, 255))
    opaque = write_bmp(1, 1, 4, bytes((10, 20, 30, 255)))
    assert opaque[54:57] == bytes((30, 20, 10))


def test_bmp_rejects_bad_input():
    with pytest.raises(ImageWriteError):
        write_bmp(-1, 1, 3, b"")
    with pytest.raises(ImageWriteError):
        write_bmp(2, 2, 3, bytes(5))
    with pytest.raises(ImageWriteError):
        write_bmp(1, 1, 5, bytes(5))


def test_tga_uncompressed_header_and_pixels():
    out = write_tga(2, 1, 4, bytes((1, 2, 3, 4, 5, 6, 7, 8)), rle=False)
    assert out[2] == 2
    assert struct.unpack_from("<HH", out, 12) == (2, 1)
    assert out[16] == 32
    assert out[17] == 8
    assert out[18:] == bytes((3, 2, 1, 4, 7, 6, 5, 8))


def test_tga_grey_uses_type_3():
    out = write_tga(1, 1, 1, bytes((9,)), rle=False)
    assert out[2] == 3
    assert out[16] == 8
    assert out[18:] == bytes((9,))


def test_tga_rle_type_and_uniform_run():
    out = write_tga(4, 1, 3, bytes((1, 2, 3)) * 4)
    assert out[2] == 10
    assert out[18:] == bytes((0x83, 3, 2, 1))


@pytest.mark.parametrize("comp", [1, 2, 3, 4])
@pytest.mark.parametrize("flip", [False, True])
def test_tga_rle_decodes_to_uncompressed_body(comp, flip):
    rng = random.Random(comp * 7 + flip)
    width, height = 150, 3
    palette = [bytes(rng.randrange(3) for _ in range(comp)) for _ in range(2)]
    data = b"".join(rng.choice(palette) for _ in range(width * height))
    plain = write_tga(width, height, comp, data, rle=False, flip_vertically=flip)
    packed = write_tga(width, height, comp, data, rle=True, flip_vertically=flip)
    pixel_size = plain[16] // 8
    assert packed[3:18] == plain[3:18]
    assert _decode_tga_rle(packed, width * height, pixel_size) == plain[18:]


def test_linear_to_rgbe_zero_and_unit():
    assert linear_to_rgbe((0.0, 0.0, 0.0)) == bytes(4)
    assert linear_to_rgbe((1.0, 1.0, 1.0)) == bytes((128, 128, 128, 129))


def test_linear_to_rgbe_round_trip():
    values = (0.5, 0.25, 3.0)
    rgbe = linear_to_rgbe(values)
    decoded = [math.ldexp(c, rgbe[3] - 136) for c in rgbe[:3]]
    for got, want in zip(decoded, values):
        assert got == pytest.approx(want, abs=max(values) / 128)


def test_hdr_small_width_is_raw():
    data = [1.0, 1.0, 1.0] * 6
    out = write_hdr(3, 2, 3, data)
    assert out.startswith(b"#?RADIANCE\n")
    marker = b"-Y 2 +X 3\n"
    body = out[out.index(marker) + len(marker):]
    assert body == linear_to_rgbe((1.0, 1.0, 1.0)) * 6


def test_hdr_flip_reverses_rows():
    data = [1.0, 1.0, 1.0, 0.5, 0.5, 0.5]
    out = write_hdr(1, 2, 3, data, flip_vertically=True)
    body = out[-8:]
    assert body == linear_to_rgbe((0.5, 0.5, 0.5)) + linear_to_rgbe((1.0, 1.0, 1.0))


def test_hdr_rle_scanlines_decode():
    width, height = 20, 2
    rng = random.Random(3)
    data = []
    for i in range(width * height):
        v = 1.0 if i % 7 < 4 else rng.random() * 4
        data += [v, v / 2, v / 4]
    out = write_hdr(width, height, 3, data)
    marker = f"-Y {height} +X {width}\n".encode()
    pos = out.index(marker) + len(marker)
    for row in range(height):
        pixels, pos = _decode_hdr_scanline(out, pos, width)
        for x, pixel in enumerate(pixels):
            base = (row * width + x) * 3
            assert pixel == linear_to_rgbe(data[base:base + 3])
    assert pos == len(out)


def test_hdr_grey_is_replicated():
    out = write_hdr(1, 1, 1, [1.0])
    assert out[-4:] == linear_to_rgbe((1.0, 1.0, 1.0))


def test_hdr_rejects_empty_image():
    with pytest.raises(ImageWriteError):
        write_hdr(0, 1, 3, [])
    with pytest.raises(ImageWriteError):
        write_hdr(1, 1, 3, None)


def test_save_image_round_trip(tmp_path):
    encoded = write_bmp(2, 2, 3, bytes(range(12)))
    target = tmp_path / "out.bmp"
    save_image(target, encoded)
    assert target.read_bytes() == encoded


def test_save_image_missing_directory(tmp_path):
    with pytest.raises(ImageWriteError):
        save_image(tmp_path / "missing" / "out.bmp", b"data")
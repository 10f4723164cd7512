# cephalopod

The engine-independent core of a small 2D game framework. It is pure Python
and uses only the standard library.

## What is inside

- `cephalopod.util`: the `Vec2` (immutable) and `Rect` value types, plus
  `normalize_angle`, `clamp_value`, `radians_to_degrees`, `degrees_to_radians`,
  `lerp`, `lerp_pt_in_rect`, `distance` and `magnitude`.
- `cephalopod.spritepacker`: `pack_sprites`, a binary-tree rectangle packer for
  building sprite atlases. Each item needs `wd` and `hgt` and gets its `x` and
  `y` set. Without a size it grows the sheet as it goes. With a fixed size it
  raises `ValueError` when the items do not fit. It returns the sheet size.
  `PackingNode`, `split_vertically` and `split_horizontally` are the parts it
  is built from.
- `cephalopod.background`:
  - `BackgroundMode` names the fitting modes: stretch, preserve width,
    preserve height, or tile.
  - `background_rect` places a texture within a logical rectangle.
  - `tile_rects` yields the clipped (destination, source) rectangle pairs
    that tile an area.
  - `center_of_rect` and `center_rect_around_point` are small helpers.
- `cephalopod.jsonvalue`: JSON values are plain Python objects (`None`, bool,
  int, float, str, list/tuple, dict).
  - `type_of` returns a value's `JsonType`.
  - `dump` serialises a value. Keys come out in sorted order, separators are
    `", "` and `": "`, and non-finite floats become `null`.
  - `sort_key` orders mixed values: first by type, then by content.
  - `check_shape` raises `JsonShapeError` when an object's fields do not have
    the expected types.
- `cephalopod.jsonparse`: a strict JSON reader.
  - `parse` reads one document and raises `JsonParseError`, which carries
    `message` and `position`.
  - `JsonParse.COMMENTS` makes the reader also accept `//` and `/* */`
    comments.
  - `parse_multi` reads values that follow one another. It returns a
    `MultiParseResult` with `values`, `stop_pos` and `error` instead of
    raising.
  - Nesting deeper than 200 levels is rejected.
- `cephalopod.spritesheet`: reads JSON atlases (an object mapping frame names
  to `{"rect": [x, y, wd, hgt], "index": n}`).
  - `parse_atlas` returns `FrameInfo` records.
  - `SpriteSheet.from_json` builds a sheet for a texture of a given size, and
    can optionally flip the frames vertically.
  - `frame`, `frame_size` and `sprite_frame` look frames up. An unknown name
    raises `KeyError`.
  - Malformed atlases raise `AtlasError`.
- Image encoders. Each one returns the file contents as bytes:
  - `cephalopod.rasterwrite.write_bmp`
  - `cephalopod.rasterwrite.write_tga` (raw or RLE)
  - `cephalopod.rasterwrite.write_hdr` (Radiance RGBE)
  - `cephalopod.pngwrite.write_png`, with its own deflate compressor
    `zlib_compress` and a per-row filter choice
  - `cephalopod.jpegwrite.write_jpg` (baseline YCbCr)

  `cephalopod.rasterwrite.save_image` writes the bytes to a file. Bad
  arguments raise `ImageWriteError`.
- `cephalopod.scenetransition`:
  - `SceneTransition` updates an outgoing and an incoming scene together for
    a fixed duration.
  - `CrossFadeTransition` draws both, scaling each drawing context's `alpha`
    to fade one into the other.
  - A scene is any object with `update(dt)`, `end_game_loop_iteration()` and
    `draw(dc)`.

## Examples

```python
from cephalopod.jsonparse import parse, JsonParse
from cephalopod.spritesheet import SpriteSheet
from cephalopod.pngwrite import write_png
from cephalopod.rasterwrite import save_image

value = parse('{"a": [1, 2.5, "x"]} // trailing note', JsonParse.COMMENTS)

sheet = SpriteSheet.from_json('{"ship": {"rect": [0, 0, 32, 32]}}', (64, 64), False)
print(sheet.frame_size("ship"))  # Vec2(x=32, y=32)

pixels = bytes([255, 0, 0] * 4)
save_image("red.png", write_png(2, 2, 3, pixels, 0, 8, -1, False))
```

## What it does not do

- There is no window, rendering, input handling or game loop. Textures are
  described only by their size, and scenes are whatever objects you pass in.
- There is no 3×3 transform matrix type.
- There is no text or font layout.
- There is no image decoding. The image modules only encode.
- The package has no command-line program.

## Tests

```
pip install -e ".[test]"
pytest
```
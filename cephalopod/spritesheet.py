"""Sprite sheet atlases: named frames within a texture."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any

from cephalopod.jsonparse import JsonParseError, parse
from cephalopod.util import Rect, Vec2


class AtlasError(ValueError):
    """Raised when a sprite sheet atlas is malformed."""


@dataclass(frozen=True)
class _TextureBounds:
    width: int
    height: int


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _int_value(value: Any) -> int:
    if _is_number(value) and math.isfinite(value):
        return int(value)
    return 0


def extract_rect(value: Any) -> Rect:
    """A rectangle from a four-number JSON array [x, y, wd, hgt]."""
    if not isinstance(value, (list, tuple)) or len(value) != 4:
        raise AtlasError("Invalid rectangle")
    if not all(_is_number(item) for item in value):
        raise AtlasError("Invalid rectangle")
    x, y, wd, hgt = (_int_value(item) for item in value)
    return Rect(x, y, wd, hgt)


def invert_rect_vertically(height: int, r: Rect) -> Rect:
    """Mirror ``r`` within a texture of the given height."""
    return Rect(r.x, height - r.y - r.hgt, r.wd, r.hgt)


@dataclass
class FrameInfo:
    """A named frame of a sprite sheet."""

    name: str
    rect: Rect = field(default_factory=Rect)
    index: int = -1


def parse_atlas(text: str | bytes) -> dict[str, FrameInfo]:
    """Read an atlas: a JSON object mapping frame names to their info."""
    try:
        doc = parse(text)
    except JsonParseError as exc:
        raise AtlasError(f"bad sprite sheet atlas : {exc.message}") from exc
    if not isinstance(doc, dict):
        raise AtlasError("bad sprite sheet atlas : expected toplevel object")

    atlas: dict[str, FrameInfo] = {}
    for name, entry in doc.items():
        fields = entry if isinstance(entry, dict) else {}
        index = _int_value(fields["index"]) if "index" in fields else -1
        rect = extract_rect(fields["rect"]) if "rect" in fields else Rect(0, 0, 0, 0)
        atlas[name] = FrameInfo(name, rect, index)
    return atlas


@dataclass
class SpriteFrame:
    """A region of a texture. An empty region stands for the whole texture."""

    texture: Any
    rect: Rect = field(default_factory=Rect)

    def __post_init__(self) -> None:
        if self.texture is not None and self.rect.wd == 0 and self.rect.hgt == 0:
            self.rect = Rect(0, 0, self.texture.width, self.texture.height)

    @property
    def size(self) -> Vec2:
        return self.rect.size


@dataclass
class SpriteSheet:
    """Named frames of a single texture.

    ``texture`` is any object with ``width`` and ``height``.
    """

    atlas: dict[str, FrameInfo] = field(default_factory=dict)
    texture: Any = None
    inverted_y: bool = False

    @classmethod
    def from_json(
        cls, text: str | bytes, texture_size: Vec2, invert_y: bool = False
    ) -> SpriteSheet:
        """Build a sheet from atlas JSON for a texture of the given size.

        With ``invert_y`` the frame rectangles are mirrored vertically.
        """
        width, height = texture_size
        atlas = parse_atlas(text)
        if invert_y:
            atlas = {
                name: replace(info, rect=invert_rect_vertically(height, info.rect))
                for name, info in atlas.items()
            }
        return cls(atlas, _TextureBounds(width, height), invert_y)

    def frame(self, name: str) -> Rect:
        """The rectangle of the named frame; KeyError if there is none."""
        try:
            info = self.atlas[name]
        except KeyError:
            raise KeyError(f"no frame named {name!r}") from None
        return replace(info.rect)

    def frame_size(self, name: str) -> Vec2:
        return self.frame(name).size

    def sprite_frame(self, name: str) -> SpriteFrame:
        return SpriteFrame(self.texture, self.frame(name))
"""Placement of a scene's background texture in logical coordinates."""

from __future__ import annotations

import enum
import math
from typing import Iterator

from cephalopod.util import Rect, Vec2


class BackgroundMode(enum.Enum):
    STRETCH_TO_FIT = enum.auto()
    PRESERVE_WIDTH = enum.auto()
    PRESERVE_HEIGHT = enum.auto()
    TILE = enum.auto()


def center_of_rect(r: Rect) -> Vec2:
    return Vec2((r.x + r.x2) / 2.0, (r.y + r.y2) / 2.0)


def center_rect_around_point(r: Rect, pt: Vec2) -> Rect:
    """A rectangle of the size of ``r`` centred on ``pt``."""
    return Rect(pt.x - r.wd / 2.0, pt.y - r.hgt / 2.0, r.wd, r.hgt)


def background_rect(
    mode: BackgroundMode, logical_rect: Rect, tex_wd: float, tex_hgt: float
) -> Rect:
    """Where a texture of the given size is drawn for ``mode``."""
    if mode is BackgroundMode.STRETCH_TO_FIT:
        return Rect(logical_rect.x, logical_rect.y, logical_rect.wd, logical_rect.hgt)
    if mode is BackgroundMode.PRESERVE_WIDTH:
        new_hgt = logical_rect.wd * (tex_hgt / tex_wd)
        return center_rect_around_point(
            Rect(0, 0, logical_rect.wd, new_hgt), center_of_rect(logical_rect)
        )
    if mode is BackgroundMode.PRESERVE_HEIGHT:
        new_wd = logical_rect.hgt * (tex_wd / tex_hgt)
        return center_rect_around_point(
            Rect(0, 0, new_wd, logical_rect.hgt), center_of_rect(logical_rect)
        )
    if mode is BackgroundMode.TILE:
        return Rect(logical_rect.x, logical_rect.y, tex_wd, tex_hgt)
    raise ValueError(f"unknown background mode: {mode!r}")


def tile_rects(logical_rect: Rect, tile_size: Vec2) -> Iterator[tuple[Rect, Rect]]:
    """Yield (destination, source) rectangles that tile ``logical_rect``.

    Destinations are clipped to the logical rectangle; each source is the
    matching part of the tile, taken from its top edge.
    """
    tile_wd, tile_hgt = tile_size
    columns = math.ceil(logical_rect.wd / tile_wd)
    rows = math.ceil(logical_rect.hgt / tile_hgt)
    for row in range(rows):
        for col in range(columns):
            dest = Rect(
                logical_rect.x + col * tile_wd,
                logical_rect.y + row * tile_hgt,
                tile_wd,
                tile_hgt,
            ).intersect_with(logical_rect)
            src = Rect(0, int(tile_hgt - dest.hgt), int(dest.wd), int(dest.hgt))
            yield dest, src
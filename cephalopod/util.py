"""Vector, rectangle and scalar helpers shared across the engine."""

from __future__ import annotations

import math
from dataclasses import dataclass
from numbers import Real
from typing import Iterator

TWO_PI = 2.0 * math.pi


@dataclass(frozen=True)
class Vec2:
    """An immutable 2D vector or point."""

    x: float = 0.0
    y: float = 0.0

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y

    def __add__(self, other: Vec2) -> Vec2:
        if not isinstance(other, Vec2):
            return NotImplemented
        return Vec2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Vec2) -> Vec2:
        if not isinstance(other, Vec2):
            return NotImplemented
        return Vec2(self.x - other.x, self.y - other.y)

    def __mul__(self, k: float) -> Vec2:
        if not isinstance(k, Real):
            return NotImplemented
        return Vec2(self.x * k, self.y * k)

    def __rmul__(self, k: float) -> Vec2:
        return self.__mul__(k)

    def __neg__(self) -> Vec2:
        return Vec2(-self.x, -self.y)


@dataclass
class Rect:
    """An axis-aligned rectangle given by its origin corner and extent."""

    x: float = 0
    y: float = 0
    wd: float = 0
    hgt: float = 0

    @property
    def x2(self) -> float:
        return self.x + self.wd

    @property
    def y2(self) -> float:
        return self.y + self.hgt

    @property
    def location(self) -> Vec2:
        return Vec2(self.x, self.y)

    @property
    def size(self) -> Vec2:
        return Vec2(self.wd, self.hgt)

    def area(self) -> float:
        return self.wd * self.hgt

    def intersect_with(self, other: Rect) -> Rect:
        """Shrink this rectangle to its overlap with ``other``; returns self."""
        left = max(self.x, other.x)
        bottom = max(self.y, other.y)
        right = min(self.x2, other.x2)
        top = min(self.y2, other.y2)
        self.x = left
        self.y = bottom
        self.wd = max(0, right - left)
        self.hgt = max(0, top - bottom)
        return self


def normalize_angle(radians: float) -> float:
    """Bring an angle into the range [0, 2*pi] the way the engine does."""
    if radians < 0.0:
        radians += TWO_PI
    if radians > TWO_PI:
        radians = math.fmod(radians, TWO_PI)
    return radians


def clamp_value(value: float, minimum: float, maximum: float) -> float:
    if value < minimum:
        return minimum
    if value > maximum:
        return maximum
    return value


def radians_to_degrees(radians: float) -> float:
    return radians * 180.0 / math.pi


def degrees_to_radians(degrees: float) -> float:
    return degrees * math.pi / 180.0


def lerp(start: float, end: float, pcnt: float) -> float:
    return (end - start) * pcnt + start


def lerp_pt_in_rect(pt: Vec2, r: Rect) -> Vec2:
    """Map a point given in fractions of ``r`` onto ``r`` itself."""
    return Vec2(lerp(r.x, r.x2, pt.x), lerp(r.y, r.y2, pt.y))


def distance(x1: float, y1: float, x2: float, y2: float) -> float:
    x_diff = x2 - x1
    y_diff = y2 - y1
    return math.sqrt(x_diff * x_diff + y_diff * y_diff)


def magnitude(x, y: float | None = None) -> float:
    """Length of the vector (x, y); ``x`` may also be a Vec2 on its own."""
    if y is None:
        x, y = x
    return distance(0.0, 0.0, x, y)
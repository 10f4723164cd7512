"""Binary-tree rectangle packing for building sprite sheets."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Iterator, Sequence

from cephalopod.util import Rect, Vec2


def split_vertically(rect: Rect, y: int) -> tuple[Rect, Rect]:
    """Cut ``rect`` into a lower part of height ``y`` and the remainder."""
    first = Rect(rect.x, rect.y, rect.wd, y)
    second = Rect(rect.x, rect.y + y, rect.wd, rect.hgt - y)
    return first, second


def split_horizontally(rect: Rect, x: int) -> tuple[Rect, Rect]:
    """Cut ``rect`` into a left part of width ``x`` and the remainder."""
    first = Rect(rect.x, rect.y, x, rect.hgt)
    second = Rect(rect.x + x, rect.y, rect.wd - x, rect.hgt)
    return first, second


def _size_of(sprite: Any) -> Vec2:
    return Vec2(sprite.wd, sprite.hgt)


@dataclass(eq=False)
class PackingNode:
    """A node of the packing tree: a region that is empty, holds one sprite,
    or is split into two children."""

    rect: Rect
    sprite: Any = None
    children: list[PackingNode] = field(default_factory=list)

    def is_leaf(self) -> bool:
        return not self.children

    def is_empty_leaf(self) -> bool:
        return self.is_leaf() and self.sprite is None

    def can_contain(self, size: Vec2) -> bool:
        return self.rect.wd >= size.x and self.rect.hgt >= size.y

    def _is_congruent_with(self, size: Vec2) -> bool:
        return self.rect.wd == size.x and self.rect.hgt == size.y

    def find_empty_leaf(self, size: Vec2) -> PackingNode | None:
        """The first empty leaf, depth first, that can hold ``size``."""
        if self.is_empty_leaf():
            return self if self.can_contain(size) else None
        if self.is_leaf():
            return None
        for child in self.children:
            leaf = child.find_empty_leaf(size)
            if leaf is not None:
                return leaf
        return None

    def _should_split_vertically(self, size: Vec2) -> bool:
        if self.rect.wd == size.x:
            return True
        if self.rect.hgt == size.y:
            return False
        vert = split_vertically(self.rect, size.y)
        horz = split_horizontally(self.rect, size.x)
        return vert[1].area() > horz[1].area()

    def split_node(self, sprite: Any) -> None:
        """Place ``sprite`` in this leaf, splitting off the unused space."""
        if not self.is_leaf():
            raise ValueError("Attempted to split non-leaf")
        size = _size_of(sprite)
        if not self.can_contain(size):
            raise ValueError("Attempted to place an img in a node it doesn't fit")
        if self._is_congruent_with(size):
            self.sprite = sprite
            return
        if self._should_split_vertically(size):
            first, second = split_vertically(self.rect, size.y)
        else:
            first, second = split_horizontally(self.rect, size.x)
        self.children = [PackingNode(first), PackingNode(second)]
        self.children[0].split_node(sprite)

    def _should_grow_vertically(self, size: Vec2) -> bool:
        can_grow_vert = self.rect.wd >= size.x
        can_grow_horz = self.rect.hgt >= size.y
        if not can_grow_vert and not can_grow_horz:
            raise ValueError("Unable to grow!")
        if can_grow_vert and not can_grow_horz:
            return True
        if can_grow_horz and not can_grow_vert:
            return False
        return self.rect.hgt + size.y < self.rect.wd + size.x

    def grow_node(self, sprite: Any) -> None:
        """Enlarge this node to make room for ``sprite`` and place it."""
        if self.is_empty_leaf():
            raise ValueError("Attempted to grow an empty leaf")
        size = _size_of(sprite)
        old = PackingNode(replace(self.rect), self.sprite, self.children)
        self.sprite = None
        r = self.rect
        if self._should_grow_vertically(size):
            extra = PackingNode(Rect(r.x, r.y2, r.wd, size.y))
            self.rect = Rect(r.x, r.y, r.wd, r.hgt + size.y)
        else:
            extra = PackingNode(Rect(r.x2, r.y, size.x, r.hgt))
            self.rect = Rect(r.x, r.y, r.wd + size.x, r.hgt)
        self.children = [old, extra]
        extra.split_node(sprite)

    def traverse(self) -> Iterator[PackingNode]:
        """Yield this node and all below it, in preorder."""
        yield self
        for child in self.children:
            yield from child.traverse()


def pack_sprites(sprites: Sequence[Any], packing_size: Vec2 | None = None) -> Vec2:
    """Pack rectangles, setting each one's ``x`` and ``y``; return the sheet size.

    Each item needs ``wd`` and ``hgt`` and writable ``x`` and ``y``. Without a
    ``packing_size`` the sheet grows to fit; with one, ValueError is raised
    when the items do not fit.
    """
    ordered = sorted(sprites, key=lambda s: max(s.wd, s.hgt), reverse=True)
    root: PackingNode | None = None
    for sprite in ordered:
        size = _size_of(sprite)
        if root is None:
            base = size if packing_size is None else packing_size
            root = PackingNode(Rect(0, 0, base.x, base.y))
            root.split_node(sprite)
            continue
        leaf = root.find_empty_leaf(size)
        if leaf is not None:
            leaf.split_node(sprite)
        elif packing_size is None:
            root.grow_node(sprite)
        else:
            raise ValueError("Can't pack images into this size")

    if root is None:
        return packing_size if packing_size is not None else Vec2(0, 0)

    for node in root.traverse():
        if node.sprite is not None:
            node.sprite.x = node.rect.x
            node.sprite.y = node.rect.y
    return Vec2(root.rect.wd, root.rect.hgt)
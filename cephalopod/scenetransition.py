"""Transitions that run two scenes at once while switching between them."""

from __future__ import annotations

import abc
import copy
from typing import Any


class SceneTransition(abc.ABC):
    """Drives an outgoing and an incoming scene for ``duration`` seconds.

    Scenes need ``update(dt)``, ``end_game_loop_iteration()`` and
    ``draw(dc)``; a drawing context needs an ``alpha`` attribute.
    """

    def __init__(self, duration: float) -> None:
        self.duration = duration
        self.elapsed = 0.0
        self.old_scene: Any = None
        self.active_scene: Any = None

    def set_scenes(self, old_scene: Any, new_scene: Any) -> None:
        self.old_scene = old_scene
        self.active_scene = new_scene

    def _require_scenes(self) -> None:
        if self.old_scene is None or self.active_scene is None:
            raise RuntimeError("the transition's scenes have not been set")

    def update(self, elapsed: float) -> None:
        """Advance both scenes and the transition by ``elapsed`` seconds."""
        self._require_scenes()
        self.old_scene.update(elapsed)
        self.active_scene.update(elapsed)
        self.update_transition(elapsed)

    def end_game_loop_iteration(self) -> None:
        self._require_scenes()
        self.old_scene.end_game_loop_iteration()
        self.active_scene.end_game_loop_iteration()

    def is_complete(self) -> bool:
        return self.elapsed >= self.duration

    def update_transition(self, dt: float) -> None:
        """Add ``dt`` to the elapsed time, stopping at the duration."""
        self.elapsed += dt
        if self.is_complete():
            self.elapsed = self.duration

    @abc.abstractmethod
    def draw(self, dc: Any) -> None:
        """Draw the transition's current state."""


class CrossFadeTransition(SceneTransition):
    """Fades the new scene in while the old one fades out."""

    def draw(self, dc: Any) -> None:
        self._require_scenes()
        new_alpha = self.elapsed / self.duration
        old_alpha = 1.0 - new_alpha

        dc_new = copy.copy(dc)
        dc_new.alpha *= new_alpha
        self.active_scene.draw(dc_new)

        dc_old = copy.copy(dc)
        dc_old.alpha *= old_alpha
        self.old_scene.draw(dc_old)
"""
Game Rules
==========

Handles spawn positioning, the ground line and lives.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from lab_panic.panic_core.config_loader import GameConfig, get_config
from lab_panic.panic_core.entities import EntityKind, FallingObject


@dataclass
class GroundHit:
    """Result of an object crossing the lower bound."""
    uid: int
    kind: EntityKind
    x: float
    life_lost: bool


class SpawnRules:
    """
    Handles spawn position calculation.

    Objects spawn fully inside the play area horizontally and above it
    vertically.
    """

    def __init__(self, config: Optional[GameConfig] = None):
        if config is None:
            config = get_config()

        self._config = config
        self._board_width = config.board.width
        self._spawn_y = config.board.spawn_y

    def get_spawn_x_range(self, radius: float) -> Optional[Tuple[float, float]]:
        """
        Get valid spawn X range for an object of the given radius.

        Args:
            radius: Object radius.

        Returns:
            (min_x, max_x) tuple, or None if the board is too narrow.
        """
        min_x = radius
        max_x = self._board_width - radius
        if max_x <= min_x:
            return None
        return (min_x, max_x)

    def fraction_to_spawn_x(self, t: float, radius: float) -> Optional[float]:
        """
        Map a fraction in [0, 1) onto the valid spawn range.

        Returns:
            World X coordinate, or None if nothing fits.
        """
        spawn_range = self.get_spawn_x_range(radius)
        if spawn_range is None:
            return None
        min_x, max_x = spawn_range
        t = max(0.0, min(1.0, t))
        return min_x + t * (max_x - min_x)

    @property
    def spawn_y(self) -> float:
        """Y coordinate for spawning."""
        return self._spawn_y


class GroundRules:
    """
    Handles the lower bound and lives.

    Only hazardous objects cost a life when they reach the ground; lives
    never drop below zero.
    """

    def __init__(self, config: Optional[GameConfig] = None):
        if config is None:
            config = get_config()

        self._config = config
        self._lower_bound = config.board.lower_bound
        self._starting_lives = config.starting_lives
        self._lives = self._starting_lives

    @property
    def lower_bound(self) -> float:
        return self._lower_bound

    @property
    def lives(self) -> int:
        return self._lives

    @property
    def out_of_lives(self) -> bool:
        return self._lives <= 0

    def reset(self) -> None:
        self._lives = self._starting_lives

    def has_landed(self, obj: FallingObject) -> bool:
        """True once the object's position has passed the lower bound."""
        return obj.y > self._lower_bound

    def land(self, obj: FallingObject) -> GroundHit:
        """
        Apply the consequences of an object reaching the ground.

        Args:
            obj: The object being culled.

        Returns:
            GroundHit describing whether a life was taken.
        """
        life_lost = obj.kind is EntityKind.HAZARDOUS and self._lives > 0
        if life_lost:
            self._lives -= 1
        return GroundHit(uid=obj.uid, kind=obj.kind, x=obj.x, life_lost=life_lost)

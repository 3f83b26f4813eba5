"""
Spawn & Difficulty
==================

Difficulty is a pure function of elapsed play time. It is recomputed every
tick rather than cached, so pausing and resuming cannot skew it.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from lab_panic.panic_core.config_loader import GameConfig, get_config
from lab_panic.panic_core.entities import EntityStore, FallingObject
from lab_panic.panic_core.rng import RandomSource
from lab_panic.panic_core.rules import SpawnRules


@dataclass(frozen=True)
class Difficulty:
    """Difficulty parameters at one instant."""
    level: int
    factor: float
    spawn_interval_ms: float
    max_objects: int


def difficulty_at(elapsed_ms: float, config: Optional[GameConfig] = None) -> Difficulty:
    """
    Compute difficulty for a given elapsed play time.

    The spawn interval never increases and the object cap never decreases
    as elapsed time grows.

    Args:
        elapsed_ms: Play time in milliseconds (negative is treated as 0).
        config: Game configuration. Uses default if None.

    Returns:
        Difficulty for that instant.
    """
    if config is None:
        config = get_config()
    d = config.difficulty

    level = int(math.floor(max(0.0, elapsed_ms) / d.level_period_ms))
    factor = d.factor_base + level * d.factor_step
    spawn_interval = max(
        d.spawn_interval_min_ms,
        d.spawn_interval_start_ms - level * d.spawn_interval_step_ms
    )
    max_objects = min(
        d.max_objects_cap,
        d.max_objects_start + level // d.max_objects_levels_per_step
    )
    return Difficulty(
        level=level,
        factor=factor,
        spawn_interval_ms=spawn_interval,
        max_objects=max_objects
    )


def object_speed(factor: float, config: Optional[GameConfig] = None) -> float:
    """Falling speed in px/s for a difficulty factor."""
    if config is None:
        config = get_config()
    return config.objects.base_speed + factor * config.objects.speed_scale


class SpawnController:
    """
    Decides when and what to spawn.

    Time since the last spawn accumulates every tick. A spawn happens once
    the accumulator reaches the current interval while the live count is
    below the current cap; the accumulator then resets to zero, so a long
    stall produces one spawn rather than a burst.
    """

    def __init__(
        self,
        rng: RandomSource,
        config: Optional[GameConfig] = None
    ):
        if config is None:
            config = get_config()

        self._config = config
        self._rng = rng
        self._spawn_rules = SpawnRules(config)
        self._accumulator_ms: float = 0.0

    @property
    def accumulator_ms(self) -> float:
        """Time accumulated since the last spawn."""
        return self._accumulator_ms

    def reset(self) -> None:
        self._accumulator_ms = 0.0

    def update(
        self,
        dt_ms: float,
        difficulty: Difficulty,
        entities: EntityStore
    ) -> Optional[FallingObject]:
        """
        Advance the spawn timer and spawn at most one object.

        Args:
            dt_ms: Tick duration.
            difficulty: Difficulty for this tick.
            entities: Live entities; a spawned object is appended here.

        Returns:
            The spawned object, or None.
        """
        self._accumulator_ms += dt_ms

        if self._accumulator_ms < difficulty.spawn_interval_ms:
            return None
        if entities.object_count >= difficulty.max_objects:
            return None

        obj = self._make_object(difficulty, entities)
        if obj is None:
            # Board too narrow to hold an object
            return None

        entities.objects.append(obj)
        self._accumulator_ms = 0.0
        return obj

    def _make_object(
        self,
        difficulty: Difficulty,
        entities: EntityStore
    ) -> Optional[FallingObject]:
        radius = self._config.objects.radius
        if self._spawn_rules.get_spawn_x_range(radius) is None:
            return None

        kind = self._rng.choose_kind(self._config.spawn)
        x = self._spawn_rules.fraction_to_spawn_x(self._rng.random(), radius)
        max_rot = self._config.objects.max_rotation_speed

        return FallingObject(
            uid=entities.next_uid(),
            kind=kind,
            x=x,
            y=self._spawn_rules.spawn_y,
            speed=object_speed(difficulty.factor, self._config),
            radius=radius,
            rotation=0.0,
            rotation_speed=self._rng.uniform(-max_rot, max_rot)
        )

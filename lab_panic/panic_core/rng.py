"""
RNG - Seedable Random Source
============================

Every random draw in the simulation (object kind, spawn position, rotation,
power-up type, particle speed) goes through one RandomSource so that a seed
reproduces a whole run.
"""

from __future__ import annotations

import random
from typing import Optional, Sequence, Tuple, TypeVar

from lab_panic.panic_core.config_loader import SpawnConfig
from lab_panic.panic_core.entities import EntityKind

T = TypeVar("T")


class RandomSource:
    """
    Thin wrapper over random.Random.

    Kind selection uses fixed probability bands: powerup first, then
    hazardous, benign takes the remainder.
    """

    def __init__(self, seed: Optional[int] = None):
        """
        Initialize random source.

        Args:
            seed: Random seed for reproducibility. Random if None.
        """
        self._seed = seed
        self._rng = random.Random(seed)

    @property
    def seed(self) -> Optional[int]:
        return self._seed

    def random(self) -> float:
        """Uniform float in [0, 1)."""
        return self._rng.random()

    def uniform(self, low: float, high: float) -> float:
        return self._rng.uniform(low, high)

    def choice(self, options: Sequence[T]) -> T:
        """Uniform choice among options."""
        return options[self._rng.randrange(len(options))]

    def choose_kind(self, weights: SpawnConfig) -> EntityKind:
        """
        Draw an object kind from the spawn probability bands.

        Args:
            weights: Spawn weights from config.

        Returns:
            The drawn EntityKind.
        """
        r = self._rng.random()
        if r < weights.powerup_weight:
            return EntityKind.POWERUP
        if r < weights.powerup_weight + weights.hazardous_weight:
            return EntityKind.HAZARDOUS
        return EntityKind.BENIGN

    def reset(self, seed: Optional[int] = None) -> None:
        """
        Reset the source with optional new seed.

        Args:
            seed: New random seed. Continues the current stream if None.
        """
        if seed is not None:
            self._seed = seed
            self._rng = random.Random(seed)

    def get_state(self) -> Tuple:
        """Get internal state for checkpointing."""
        return self._rng.getstate()

    def set_state(self, state: Tuple) -> None:
        self._rng.setstate(state)

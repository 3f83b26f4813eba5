"""
Power-ups
=========

At most one effect is active at a time. Activating another replaces the
current type and timer outright.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Optional

from lab_panic.panic_core.config_loader import GameConfig, get_config
from lab_panic.panic_core.rng import RandomSource


class PowerupType(str, Enum):
    NONE = "none"
    SLOW_TIME = "slow-time"
    CLEAR_BOARD = "clear-board"
    SCORE_MULTIPLIER = "score-multiplier"


# Draw order for random activation
ACTIVATABLE = (
    PowerupType.SLOW_TIME,
    PowerupType.CLEAR_BOARD,
    PowerupType.SCORE_MULTIPLIER,
)


class PowerupState:
    """
    Power-up state machine.

    Slow-time has no effect on physics; its countdown is tracked so that
    renderers can show it.
    """

    def __init__(self, config: Optional[GameConfig] = None):
        if config is None:
            config = get_config()

        self._config = config
        self._active: PowerupType = PowerupType.NONE
        self._remaining_ms: float = 0.0

    @property
    def active(self) -> PowerupType:
        return self._active

    @property
    def is_active(self) -> bool:
        return self._active is not PowerupType.NONE

    @property
    def remaining_ms(self) -> float:
        return self._remaining_ms

    @property
    def remaining_seconds(self) -> int:
        """Whole seconds left, rounded up, as shown on a countdown."""
        return int(math.ceil(self._remaining_ms / 1000.0))

    @property
    def multiplier_active(self) -> bool:
        return self._active is PowerupType.SCORE_MULTIPLIER

    def duration_for(self, kind: PowerupType) -> float:
        durations = self._config.powerups
        if kind is PowerupType.SLOW_TIME:
            return durations.slow_time_ms
        if kind is PowerupType.CLEAR_BOARD:
            return durations.clear_board_ms
        if kind is PowerupType.SCORE_MULTIPLIER:
            return durations.score_multiplier_ms
        return 0.0

    def draw(self, rng: RandomSource) -> PowerupType:
        """Pick one of the activatable types uniformly."""
        return rng.choice(ACTIVATABLE)

    def activate(self, kind: PowerupType) -> None:
        """
        Activate an effect, overwriting any current one.

        Args:
            kind: Effect to activate. NONE deactivates.
        """
        if kind is PowerupType.NONE:
            self.deactivate()
            return
        self._active = kind
        self._remaining_ms = self.duration_for(kind)

    def tick(self, dt_ms: float) -> bool:
        """
        Count down the active effect.

        Returns:
            True if the effect expired during this tick.
        """
        if not self.is_active:
            return False
        self._remaining_ms -= dt_ms
        if self._remaining_ms <= 0:
            self.deactivate()
            return True
        return False

    def deactivate(self) -> None:
        self._active = PowerupType.NONE
        self._remaining_ms = 0.0

    def reset(self) -> None:
        self.deactivate()

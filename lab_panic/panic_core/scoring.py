"""
Scoring System
==============

Tracks the stored score and derives the display score.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from lab_panic.panic_core.config_loader import GameConfig, get_config
from lab_panic.panic_core.entities import EntityKind


@dataclass
class ScoreEvent:
    """Record of a scoring event."""
    points: int
    kind: EntityKind
    uid: int
    cleared: bool = False  # True when credited by a board clear

    def __repr__(self) -> str:
        source = "clear" if self.cleared else "hit"
        return f"ScoreEvent({source} {self.kind.value}={self.points})"


class ScoreTracker:
    """
    Tracks game score.

    The stored score is what gets submitted. The score multiplier power-up
    only changes the display score while it is active.
    """

    def __init__(self, config: Optional[GameConfig] = None):
        if config is None:
            config = get_config()

        self._config = config
        self._score: int = 0
        self._hits: int = 0

    @property
    def score(self) -> int:
        """Current stored score."""
        return self._score

    @property
    def hits(self) -> int:
        """Total number of objects credited."""
        return self._hits

    def points_for(self, kind: EntityKind) -> int:
        """Base points for destroying an object of the given kind."""
        if kind is EntityKind.BENIGN:
            return self._config.scoring.benign_points
        if kind is EntityKind.HAZARDOUS:
            return self._config.scoring.hazardous_points
        return 0

    def apply_hit(self, kind: EntityKind, uid: int, cleared: bool = False) -> ScoreEvent:
        """
        Credit a destroyed object and return the event.

        Args:
            kind: Kind of the destroyed object.
            uid: Its uid.
            cleared: True when destroyed by a board clear rather than a click.
        """
        points = self.points_for(kind)
        self._score += points
        self._hits += 1
        return ScoreEvent(points=points, kind=kind, uid=uid, cleared=cleared)

    def display_score(self, multiplier_active: bool) -> int:
        """Score to show the player."""
        if multiplier_active:
            return self._score * self._config.scoring.multiplier
        return self._score

    def reset(self) -> None:
        """Reset score to zero."""
        self._score = 0
        self._hits = 0

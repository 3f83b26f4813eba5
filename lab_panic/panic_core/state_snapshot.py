"""
State Snapshot
==============

Packs game state into fixed-size numpy arrays for renderers and agents.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, TYPE_CHECKING

import numpy as np

from lab_panic.panic_core.config_loader import GameConfig, get_config
from lab_panic.panic_core.entities import EntityKind, EntityStore

if TYPE_CHECKING:
    from lab_panic.panic_core.difficulty import Difficulty
    from lab_panic.panic_core.powerups import PowerupState

# Integer codes used in obj_kind; -1 marks padding
KIND_CODES = {
    EntityKind.BENIGN: 0,
    EntityKind.HAZARDOUS: 1,
    EntityKind.POWERUP: 2,
}

# Integer codes used for the active power-up
POWERUP_CODES = {
    "none": 0,
    "slow-time": 1,
    "clear-board": 2,
    "score-multiplier": 3,
}


@dataclass
class GameSnapshot:
    """
    Game state snapshot.

    All arrays are fixed-size with masking for variable object counts.
    """
    # Core state
    score: int
    display_score: int
    lives: int
    elapsed_ms: float
    difficulty_level: int
    spawn_interval_ms: float
    max_objects: int
    powerup_code: int
    powerup_remaining_ms: float
    objects_count: int
    particles_count: int

    # Board info (for normalization)
    board_width: float
    board_height: float
    lower_bound: float

    # Derived
    lowest_hazard_y: float   # Largest y among hazardous objects, spawn_y if none
    danger_level: float      # lowest_hazard_y / lower_bound clamped to [0, 1]

    # Object arrays (fixed size, padded)
    obj_kind: np.ndarray     # (MAX_OBJ,) int16
    obj_x: np.ndarray        # (MAX_OBJ,) float32
    obj_y: np.ndarray        # (MAX_OBJ,) float32
    obj_speed: np.ndarray    # (MAX_OBJ,) float32
    obj_radius: np.ndarray   # (MAX_OBJ,) float32
    obj_mask: np.ndarray     # (MAX_OBJ,) bool

    # Particle arrays (fixed size, padded)
    particle_xy: np.ndarray  # (MAX_PART, 2) float32
    particle_life: np.ndarray  # (MAX_PART,) float32

    def to_obs_dict(self) -> Dict[str, np.ndarray]:
        """Convert to Gymnasium observation dictionary."""
        return {
            "score": np.array(self.score, dtype=np.int64),
            "display_score": np.array(self.display_score, dtype=np.int64),
            "lives": np.array(self.lives, dtype=np.int32),
            "elapsed_ms": np.array(self.elapsed_ms, dtype=np.float32),
            "difficulty_level": np.array(self.difficulty_level, dtype=np.int32),
            "spawn_interval_ms": np.array(self.spawn_interval_ms, dtype=np.float32),
            "max_objects": np.array(self.max_objects, dtype=np.int32),
            "powerup": np.array(self.powerup_code, dtype=np.int32),
            "powerup_remaining_ms": np.array(self.powerup_remaining_ms, dtype=np.float32),
            "objects_count": np.array(self.objects_count, dtype=np.int32),
            "danger_level": np.array(self.danger_level, dtype=np.float32),
            "obj_kind": self.obj_kind,
            "obj_x": self.obj_x,
            "obj_y": self.obj_y,
            "obj_speed": self.obj_speed,
            "obj_radius": self.obj_radius,
            "obj_mask": self.obj_mask,
        }


class SnapshotBuilder:
    """Builds game state snapshots with pre-allocated arrays."""

    def __init__(self, config: Optional[GameConfig] = None):
        if config is None:
            config = get_config()

        self._config = config
        self._max_objects = config.observation.max_objects
        self._max_particles = config.observation.max_particles

        self._board_width = config.board.width
        self._board_height = config.board.height
        self._lower_bound = config.board.lower_bound
        self._spawn_y = config.board.spawn_y

        # Pre-allocate arrays
        self._obj_kind = np.zeros(self._max_objects, dtype=np.int16)
        self._obj_x = np.zeros(self._max_objects, dtype=np.float32)
        self._obj_y = np.zeros(self._max_objects, dtype=np.float32)
        self._obj_speed = np.zeros(self._max_objects, dtype=np.float32)
        self._obj_radius = np.zeros(self._max_objects, dtype=np.float32)
        self._obj_mask = np.zeros(self._max_objects, dtype=bool)
        self._particle_xy = np.zeros((self._max_particles, 2), dtype=np.float32)
        self._particle_life = np.zeros(self._max_particles, dtype=np.float32)

    @property
    def max_objects(self) -> int:
        return self._max_objects

    def build(
        self,
        entities: EntityStore,
        score: int,
        display_score: int,
        lives: int,
        elapsed_ms: float,
        difficulty: "Difficulty",
        powerup: "PowerupState"
    ) -> GameSnapshot:
        """Build a snapshot from current game state."""
        self._obj_kind.fill(-1)
        self._obj_x.fill(0)
        self._obj_y.fill(0)
        self._obj_speed.fill(0)
        self._obj_radius.fill(0)
        self._obj_mask.fill(False)
        self._particle_xy.fill(0)
        self._particle_life.fill(0)

        objects = entities.objects
        count = min(len(objects), self._max_objects)
        lowest_hazard_y = self._spawn_y

        for i in range(count):
            obj = objects[i]
            self._obj_kind[i] = KIND_CODES[obj.kind]
            self._obj_x[i] = obj.x
            self._obj_y[i] = obj.y
            self._obj_speed[i] = obj.speed
            self._obj_radius[i] = obj.radius
            self._obj_mask[i] = True

            if obj.kind is EntityKind.HAZARDOUS and obj.y > lowest_hazard_y:
                lowest_hazard_y = obj.y

        particles = entities.particles
        p_count = min(len(particles), self._max_particles)
        for i in range(p_count):
            self._particle_xy[i, 0] = particles[i].x
            self._particle_xy[i, 1] = particles[i].y
            self._particle_life[i] = particles[i].life

        if self._lower_bound > 0:
            danger_level = max(0.0, min(1.0, lowest_hazard_y / self._lower_bound))
        else:
            danger_level = 0.0

        return GameSnapshot(
            score=score,
            display_score=display_score,
            lives=lives,
            elapsed_ms=elapsed_ms,
            difficulty_level=difficulty.level,
            spawn_interval_ms=difficulty.spawn_interval_ms,
            max_objects=difficulty.max_objects,
            powerup_code=POWERUP_CODES[powerup.active.value],
            powerup_remaining_ms=max(0.0, powerup.remaining_ms),
            objects_count=len(objects),
            particles_count=len(particles),
            board_width=self._board_width,
            board_height=self._board_height,
            lower_bound=self._lower_bound,
            lowest_hazard_y=lowest_hazard_y,
            danger_level=danger_level,
            obj_kind=self._obj_kind.copy(),
            obj_x=self._obj_x.copy(),
            obj_y=self._obj_y.copy(),
            obj_speed=self._obj_speed.copy(),
            obj_radius=self._obj_radius.copy(),
            obj_mask=self._obj_mask.copy(),
            particle_xy=self._particle_xy.copy(),
            particle_life=self._particle_life.copy()
        )

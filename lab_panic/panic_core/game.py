"""
Core Game
=========

Main game orchestrator combining spawning, motion, hits, power-ups and lives.

One step = one frame of simulation for a given (clamped) time delta and a
sampled pointer state. The step never raises; degenerate input just means
nothing happens.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from lab_panic.panic_core.config_loader import GameConfig, get_config
from lab_panic.panic_core.difficulty import Difficulty, SpawnController, difficulty_at
from lab_panic.panic_core.entities import (
    EntityKind,
    EntityStore,
    FallingObject,
    GroundResidue,
    Particle,
)
from lab_panic.panic_core.powerups import PowerupState, PowerupType
from lab_panic.panic_core.rng import RandomSource
from lab_panic.panic_core.rules import GroundHit, GroundRules
from lab_panic.panic_core.scoring import ScoreEvent, ScoreTracker
from lab_panic.panic_core.state_snapshot import GameSnapshot, SnapshotBuilder

logger = logging.getLogger(__name__)

GameOverListener = Callable[[int], None]


class Phase(str, Enum):
    MENU = "menu"
    PLAYING = "playing"
    PAUSED = "paused"
    OVER = "over"


@dataclass(frozen=True)
class PointerState:
    """Pointer sample for one tick."""
    x: float = 0.0
    y: float = 0.0
    pressed: bool = False


RELEASED = PointerState()


@dataclass(frozen=True)
class GameRunState:
    """Read-only view of the run for renderers and tools."""
    phase: Phase
    score: int
    display_score: int
    lives: int
    elapsed_ms: float
    difficulty: Difficulty
    powerup: PowerupType
    powerup_remaining_ms: float
    object_count: int


@dataclass
class StepResult:
    """Result of a single simulation step."""
    dt_ms: float
    delta_score: int = 0
    spawned: Optional[FallingObject] = None
    hits: List[ScoreEvent] = field(default_factory=list)
    ground_hits: List[GroundHit] = field(default_factory=list)
    powerup_activated: Optional[PowerupType] = None
    powerup_expired: bool = False
    game_over: bool = False

    @property
    def lives_lost(self) -> int:
        return sum(1 for g in self.ground_hits if g.life_lost)


class CoreGame:
    """
    Main game simulation class.

    Orchestrates:
    - Difficulty and spawning
    - Object, particle and residue motion
    - Pointer hits and scoring
    - Power-up state
    - Lives and game over

    The caller owns the clock and the pointer; see loop.GameLoop.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        seed: Optional[int] = None
    ):
        """
        Initialize game.

        Args:
            config: Game configuration. Uses default if None.
            seed: Random seed for reproducibility.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._rng = RandomSource(seed)

        # Subsystems
        self._entities = EntityStore()
        self._spawner = SpawnController(self._rng, config)
        self._ground = GroundRules(config)
        self._scorer = ScoreTracker(config)
        self._powerup = PowerupState(config)
        self._snapshot_builder = SnapshotBuilder(config)

        # Run state
        self._phase = Phase.MENU
        self._elapsed_ms: float = 0.0
        self._difficulty = difficulty_at(0.0, config)
        self._game_over_emitted = False
        self._listeners: List[GameOverListener] = []

    @property
    def config(self) -> GameConfig:
        return self._config

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def is_over(self) -> bool:
        return self._phase is Phase.OVER

    @property
    def score(self) -> int:
        """Stored score; this is what gets submitted."""
        return self._scorer.score

    @property
    def display_score(self) -> int:
        """Score as shown, doubled while the multiplier is active."""
        return self._scorer.display_score(self._powerup.multiplier_active)

    @property
    def lives(self) -> int:
        return self._ground.lives

    @property
    def elapsed_ms(self) -> float:
        return self._elapsed_ms

    @property
    def difficulty(self) -> Difficulty:
        return self._difficulty

    @property
    def objects(self) -> List[FallingObject]:
        return self._entities.objects

    @property
    def particles(self) -> List[Particle]:
        return self._entities.particles

    @property
    def residue(self) -> List[GroundResidue]:
        return self._entities.residue

    @property
    def powerup(self) -> PowerupState:
        return self._powerup

    @property
    def rng(self) -> RandomSource:
        return self._rng

    @property
    def run_state(self) -> GameRunState:
        return GameRunState(
            phase=self._phase,
            score=self.score,
            display_score=self.display_score,
            lives=self.lives,
            elapsed_ms=self._elapsed_ms,
            difficulty=self._difficulty,
            powerup=self._powerup.active,
            powerup_remaining_ms=self._powerup.remaining_ms,
            object_count=self._entities.object_count
        )

    def add_game_over_listener(self, listener: GameOverListener) -> None:
        """Register a callback receiving the final score at game over."""
        self._listeners.append(listener)

    def reset(self, seed: Optional[int] = None) -> GameSnapshot:
        """
        Reset game to the menu with a fresh run state.

        Args:
            seed: New random seed. Continues the current stream if None.

        Returns:
            Initial game snapshot.
        """
        self._rng.reset(seed)
        self._entities.clear()
        self._spawner.reset()
        self._ground.reset()
        self._scorer.reset()
        self._powerup.reset()

        self._phase = Phase.MENU
        self._elapsed_ms = 0.0
        self._difficulty = difficulty_at(0.0, self._config)
        self._game_over_emitted = False

        return self.build_snapshot()

    def start(self, seed: Optional[int] = None) -> GameSnapshot:
        """Reset and enter the playing phase."""
        snapshot = self.reset(seed)
        self._phase = Phase.PLAYING
        return snapshot

    def pause(self) -> None:
        if self._phase is Phase.PLAYING:
            self._phase = Phase.PAUSED

    def resume(self) -> None:
        if self._phase is Phase.PAUSED:
            self._phase = Phase.PLAYING

    def clamp_dt(self, dt_ms: float) -> float:
        """Clamp a raw frame delta to [0, max_dt_ms]."""
        if dt_ms is None or math.isnan(dt_ms) or dt_ms < 0:
            return 0.0
        return min(float(dt_ms), self._config.loop.max_dt_ms)

    def step(self, dt_ms: float, pointer: PointerState = RELEASED) -> StepResult:
        """
        Advance the simulation by one tick.

        Order: time, difficulty, spawn, motion, power-up countdown, pointer
        hits, ground culling, particle culling.

        Args:
            dt_ms: Raw time since the previous tick; clamped before use.
            pointer: Pointer sample for this tick.

        Returns:
            StepResult describing what happened.
        """
        dt_ms = self.clamp_dt(dt_ms)
        result = StepResult(dt_ms=dt_ms)
        if self._phase is not Phase.PLAYING:
            return result

        score_before = self._scorer.score

        self._elapsed_ms += dt_ms
        self._difficulty = difficulty_at(self._elapsed_ms, self._config)
        result.spawned = self._spawner.update(dt_ms, self._difficulty, self._entities)

        self._advance_entities(dt_ms)

        if self._powerup.tick(dt_ms):
            result.powerup_expired = True

        if pointer.pressed:
            self._resolve_hits(pointer, result)

        self._cull_landed(result)
        self._cull_spent()

        result.delta_score = self._scorer.score - score_before

        if self._ground.out_of_lives and not self._game_over_emitted:
            self._end_game()
            result.game_over = True

        return result

    def _advance_entities(self, dt_ms: float) -> None:
        particles = self._config.particles
        for obj in self._entities.objects:
            obj.advance(dt_ms)
        for particle in self._entities.particles:
            particle.advance(dt_ms, particles.gravity, particles.decay)
        for mark in self._entities.residue:
            mark.advance(self._config.residue.decay)

    def _resolve_hits(self, pointer: PointerState, result: StepResult) -> None:
        """Hit every live object under the pointer, each at most once."""
        for obj in list(self._entities.objects):
            if not obj.contains(pointer.x, pointer.y):
                continue

            self._remove_object(obj)
            self._spawn_burst(obj.x, obj.y)

            if obj.kind is EntityKind.POWERUP:
                kind = self._powerup.draw(self._rng)
                result.powerup_activated = kind
                result.hits.extend(self._activate_powerup(kind))
                if not self._entities.objects:
                    # Board was cleared
                    break
            else:
                result.hits.append(self._scorer.apply_hit(obj.kind, obj.uid))

    def activate_powerup(self, kind: PowerupType) -> List[ScoreEvent]:
        """
        Activate a power-up directly (tools and tests).

        Returns:
            Score events for objects destroyed by a board clear.
        """
        return self._activate_powerup(kind)

    def _activate_powerup(self, kind: PowerupType) -> List[ScoreEvent]:
        self._powerup.activate(kind)
        logger.debug("powerup activated: %s", kind.value)
        if kind is PowerupType.CLEAR_BOARD:
            return self._clear_board()
        return []

    def _clear_board(self) -> List[ScoreEvent]:
        """
        Destroy every live object, crediting each as if hit.

        Power-up objects destroyed this way give nothing and do not chain,
        and hazardous ones do not cost a life.
        """
        events = []
        for obj in self._entities.objects:
            self._spawn_burst(obj.x, obj.y)
            if obj.kind is not EntityKind.POWERUP:
                events.append(self._scorer.apply_hit(obj.kind, obj.uid, cleared=True))
        self._entities.objects.clear()
        return events

    def _spawn_burst(self, x: float, y: float) -> None:
        cfg = self._config.particles
        count = cfg.burst_count
        for i in range(count):
            angle = (i / count) * math.pi * 2
            speed = cfg.min_speed + self._rng.random() * cfg.speed_variance
            self._entities.particles.append(Particle(
                x=x,
                y=y,
                vx=math.cos(angle) * speed,
                vy=math.sin(angle) * speed
            ))

    def _remove_object(self, obj: FallingObject) -> None:
        self._entities.objects = [o for o in self._entities.objects if o.uid != obj.uid]

    def _cull_landed(self, result: StepResult) -> None:
        kept = []
        for obj in self._entities.objects:
            if not self._ground.has_landed(obj):
                kept.append(obj)
                continue
            hit = self._ground.land(obj)
            result.ground_hits.append(hit)
            if obj.kind is EntityKind.HAZARDOUS and self._config.residue.enabled:
                self._entities.residue.append(GroundResidue(x=obj.x))
        self._entities.objects = kept

    def _cull_spent(self) -> None:
        self._entities.particles = [p for p in self._entities.particles if p.alive]
        self._entities.residue = [r for r in self._entities.residue if r.alive]

    def _end_game(self) -> None:
        self._phase = Phase.OVER
        self._game_over_emitted = True
        final_score = self._scorer.score
        logger.info("game over: score=%d elapsed_ms=%.0f", final_score, self._elapsed_ms)
        for listener in list(self._listeners):
            listener(final_score)

    def build_snapshot(self) -> GameSnapshot:
        """Build current game state snapshot."""
        return self._snapshot_builder.build(
            entities=self._entities,
            score=self.score,
            display_score=self.display_score,
            lives=self.lives,
            elapsed_ms=self._elapsed_ms,
            difficulty=self._difficulty,
            powerup=self._powerup
        )

    def get_info(self) -> Dict[str, Any]:
        """Get additional info dict for Gymnasium."""
        return {
            "score": self.score,
            "display_score": self.display_score,
            "lives": self.lives,
            "phase": self._phase.value,
            "elapsed_ms": self._elapsed_ms,
            "difficulty_level": self._difficulty.level,
            "object_count": self._entities.object_count,
            "hits": self._scorer.hits,
            "powerup": self._powerup.active.value,
        }

    def get_render_data(self) -> Dict[str, Any]:
        """
        Get data needed for rendering.

        Returns:
            Dict with entity lists and HUD values.
        """
        return {
            "board_width": self._config.board.width,
            "board_height": self._config.board.height,
            "phase": self._phase.value,
            "objects": [
                {
                    "uid": obj.uid,
                    "kind": obj.kind.value,
                    "x": obj.x,
                    "y": obj.y,
                    "radius": obj.radius,
                    "rotation": obj.rotation,
                }
                for obj in self._entities.objects
            ],
            "particles": [
                {"x": p.x, "y": p.y, "life": p.life}
                for p in self._entities.particles
            ],
            "residue": [
                {"x": r.x, "life": r.life}
                for r in self._entities.residue
            ],
            "score": self.score,
            "display_score": self.display_score,
            "lives": self.lives,
            "starting_lives": self._config.starting_lives,
            "difficulty_level": self._difficulty.level,
            "powerup": self._powerup.active.value,
            "powerup_seconds": self._powerup.remaining_seconds,
        }

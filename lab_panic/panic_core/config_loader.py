"""
Configuration Loader
====================

Loads and validates game_config.yaml, providing typed access to all parameters.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml


@dataclass(frozen=True)
class BoardConfig:
    """Play-area geometry."""
    width: float
    height: float
    spawn_y: float          # Y coordinate where objects enter (above view)
    ground_margin: float    # Distance below the bottom edge before culling

    @property
    def lower_bound(self) -> float:
        """Y coordinate past which a falling object has hit the ground."""
        return self.height + self.ground_margin


@dataclass(frozen=True)
class DifficultyConfig:
    """Difficulty progression over elapsed play time."""
    level_period_ms: float
    factor_base: float
    factor_step: float
    spawn_interval_start_ms: float
    spawn_interval_step_ms: float
    spawn_interval_min_ms: float
    max_objects_start: int
    max_objects_levels_per_step: int
    max_objects_cap: int


@dataclass(frozen=True)
class ObjectConfig:
    """Falling object physical parameters."""
    radius: float
    base_speed: float
    speed_scale: float
    max_rotation_speed: float

    @property
    def diameter(self) -> float:
        return self.radius * 2


@dataclass(frozen=True)
class SpawnConfig:
    """Probability bands for the kind draw."""
    powerup_weight: float
    hazardous_weight: float

    @property
    def benign_weight(self) -> float:
        return 1.0 - self.powerup_weight - self.hazardous_weight


@dataclass(frozen=True)
class ScoringConfig:
    """Points per hit and display multiplier."""
    benign_points: int
    hazardous_points: int
    multiplier: int


@dataclass(frozen=True)
class PowerupConfig:
    """Power-up durations in milliseconds."""
    slow_time_ms: float
    clear_board_ms: float
    score_multiplier_ms: float


@dataclass(frozen=True)
class ParticleConfig:
    """Hit burst parameters."""
    burst_count: int
    min_speed: float
    speed_variance: float
    gravity: float  # Added to vy every tick
    decay: float    # Life lost every tick


@dataclass(frozen=True)
class ResidueConfig:
    """Ground residue left by hazardous objects."""
    enabled: bool
    decay: float


@dataclass(frozen=True)
class LoopConfig:
    """Frame timing."""
    max_dt_ms: float
    frame_ms: float


@dataclass(frozen=True)
class ObservationConfig:
    """Fixed snapshot array sizes."""
    max_objects: int
    max_particles: int


@dataclass(frozen=True)
class GameConfig:
    """
    Complete game configuration loaded from YAML.

    All values are immutable to prevent accidental modification during runtime.
    """
    board: BoardConfig
    difficulty: DifficultyConfig
    objects: ObjectConfig
    spawn: SpawnConfig
    scoring: ScoringConfig
    starting_lives: int
    powerups: PowerupConfig
    particles: ParticleConfig
    residue: ResidueConfig
    loop: LoopConfig
    observation: ObservationConfig


def _validate_config(config: GameConfig) -> None:
    """Validate configuration consistency."""
    spawn = config.spawn
    if spawn.powerup_weight < 0 or spawn.hazardous_weight < 0:
        raise ValueError("Spawn weights must be non-negative")
    if spawn.powerup_weight + spawn.hazardous_weight > 1.0:
        raise ValueError(
            f"powerup_weight + hazardous_weight must not exceed 1.0, "
            f"got {spawn.powerup_weight + spawn.hazardous_weight}"
        )

    difficulty = config.difficulty
    if difficulty.level_period_ms <= 0:
        raise ValueError(f"level_period_ms must be positive, got {difficulty.level_period_ms}")
    if difficulty.spawn_interval_step_ms < 0 or difficulty.factor_step < 0:
        raise ValueError("Difficulty steps must be non-negative")
    if difficulty.spawn_interval_min_ms > difficulty.spawn_interval_start_ms:
        raise ValueError(
            f"spawn_interval_min_ms ({difficulty.spawn_interval_min_ms}) exceeds "
            f"spawn_interval_start_ms ({difficulty.spawn_interval_start_ms})"
        )
    if difficulty.max_objects_levels_per_step < 1:
        raise ValueError("max_objects_levels_per_step must be at least 1")
    if difficulty.max_objects_cap < difficulty.max_objects_start:
        raise ValueError(
            f"max_objects_cap ({difficulty.max_objects_cap}) is below "
            f"max_objects_start ({difficulty.max_objects_start})"
        )

    # Snapshot arrays must hold every live object
    if config.observation.max_objects < difficulty.max_objects_cap:
        raise ValueError(
            f"observation.max_objects ({config.observation.max_objects}) must be at least "
            f"difficulty.max_objects_cap ({difficulty.max_objects_cap})"
        )

    if config.starting_lives < 1:
        raise ValueError(f"lives.start must be at least 1, got {config.starting_lives}")
    if config.loop.max_dt_ms <= 0:
        raise ValueError(f"loop.max_dt_ms must be positive, got {config.loop.max_dt_ms}")


def load_config(config_path: Optional[str] = None) -> GameConfig:
    """
    Load and validate game configuration from YAML.

    Args:
        config_path: Path to game_config.yaml. If None, uses default location.

    Returns:
        Validated GameConfig instance.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValueError: If config validation fails.
    """
    if config_path is None:
        config_path = os.path.join(
            os.path.dirname(os.path.dirname(__file__)),
            "game_config.yaml"
        )

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r") as f:
        raw = yaml.safe_load(f)

    board_data = raw["board"]
    board = BoardConfig(
        width=float(board_data["width"]),
        height=float(board_data["height"]),
        spawn_y=float(board_data.get("spawn_y", -50)),
        ground_margin=float(board_data.get("ground_margin", 50))
    )

    diff_data = raw["difficulty"]
    difficulty = DifficultyConfig(
        level_period_ms=float(diff_data["level_period_ms"]),
        factor_base=float(diff_data.get("factor_base", 1.0)),
        factor_step=float(diff_data["factor_step"]),
        spawn_interval_start_ms=float(diff_data["spawn_interval_start_ms"]),
        spawn_interval_step_ms=float(diff_data["spawn_interval_step_ms"]),
        spawn_interval_min_ms=float(diff_data["spawn_interval_min_ms"]),
        max_objects_start=int(diff_data["max_objects_start"]),
        max_objects_levels_per_step=int(diff_data.get("max_objects_levels_per_step", 2)),
        max_objects_cap=int(diff_data["max_objects_cap"])
    )

    obj_data = raw["objects"]
    objects = ObjectConfig(
        radius=float(obj_data["radius"]),
        base_speed=float(obj_data["base_speed"]),
        speed_scale=float(obj_data["speed_scale"]),
        max_rotation_speed=float(obj_data.get("max_rotation_speed", 1.0))
    )

    spawn_data = raw["spawn"]
    spawn = SpawnConfig(
        powerup_weight=float(spawn_data["powerup_weight"]),
        hazardous_weight=float(spawn_data["hazardous_weight"])
    )

    scoring_data = raw["scoring"]
    scoring = ScoringConfig(
        benign_points=int(scoring_data["benign_points"]),
        hazardous_points=int(scoring_data["hazardous_points"]),
        multiplier=int(scoring_data.get("multiplier", 2))
    )

    powerup_data = raw["powerups"]
    powerups = PowerupConfig(
        slow_time_ms=float(powerup_data["slow_time_ms"]),
        clear_board_ms=float(powerup_data["clear_board_ms"]),
        score_multiplier_ms=float(powerup_data["score_multiplier_ms"])
    )

    particle_data = raw["particles"]
    particles = ParticleConfig(
        burst_count=int(particle_data.get("burst_count", 8)),
        min_speed=float(particle_data["min_speed"]),
        speed_variance=float(particle_data["speed_variance"]),
        gravity=float(particle_data["gravity"]),
        decay=float(particle_data["decay"])
    )

    # Optional sections
    residue_data = raw.get("residue", {})
    residue = ResidueConfig(
        enabled=bool(residue_data.get("enabled", True)),
        decay=float(residue_data.get("decay", 0.005))
    )

    loop_data = raw.get("loop", {})
    loop = LoopConfig(
        max_dt_ms=float(loop_data.get("max_dt_ms", 100)),
        frame_ms=float(loop_data.get("frame_ms", 1000.0 / 60.0))
    )

    obs_data = raw.get("observation", {})
    observation = ObservationConfig(
        max_objects=int(obs_data.get("max_objects", 16)),
        max_particles=int(obs_data.get("max_particles", 64))
    )

    config = GameConfig(
        board=board,
        difficulty=difficulty,
        objects=objects,
        spawn=spawn,
        scoring=scoring,
        starting_lives=int(raw.get("lives", {}).get("start", 3)),
        powerups=powerups,
        particles=particles,
        residue=residue,
        loop=loop,
        observation=observation
    )

    _validate_config(config)
    return config


# Module-level singleton for convenience
_cached_config: Optional[GameConfig] = None


def get_config() -> GameConfig:
    """Get the cached game configuration, loading if necessary."""
    global _cached_config
    if _cached_config is None:
        _cached_config = load_config()
    return _cached_config


def reload_config(config_path: Optional[str] = None) -> GameConfig:
    """Reload the configuration (useful for testing)."""
    global _cached_config
    _cached_config = load_config(config_path)
    return _cached_config

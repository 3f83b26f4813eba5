"""
Panic Core - The game simulation.

Main exports:
- CoreGame: Frame-stepped game simulation
- GameLoop: Clock/input driven scheduler around CoreGame
- LabPanicEnv: Gymnasium environment wrapper
- LeaderboardClient: HTTP client for score submission
- GameConfig: Configuration loaded from game_config.yaml
"""

from lab_panic.panic_core.config_loader import GameConfig, load_config
from lab_panic.panic_core.entities import EntityKind, FallingObject, Particle
from lab_panic.panic_core.difficulty import Difficulty, difficulty_at
from lab_panic.panic_core.powerups import PowerupType, PowerupState
from lab_panic.panic_core.game import CoreGame, Phase, PointerState, StepResult
from lab_panic.panic_core.loop import GameLoop, MonotonicClock
from lab_panic.panic_core.env_gym import LabPanicEnv
from lab_panic.panic_core.client import LeaderboardClient, ScoreApiError

__all__ = [
    "GameConfig",
    "load_config",
    "EntityKind",
    "FallingObject",
    "Particle",
    "Difficulty",
    "difficulty_at",
    "PowerupType",
    "PowerupState",
    "CoreGame",
    "Phase",
    "PointerState",
    "StepResult",
    "GameLoop",
    "MonotonicClock",
    "LabPanicEnv",
    "LeaderboardClient",
    "ScoreApiError",
]

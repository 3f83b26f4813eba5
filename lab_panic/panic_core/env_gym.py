"""
Gymnasium Environment Wrapper
=============================

Provides a standard Gymnasium interface to Lab Panic. Each step advances one
fixed-length frame with the pointer placed by the agent.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

import numpy as np

import gymnasium as gym
from gymnasium import spaces

from lab_panic.panic_core.config_loader import GameConfig, load_config
from lab_panic.panic_core.game import CoreGame, PointerState
from lab_panic.panic_core.state_snapshot import GameSnapshot


class LabPanicEnv(gym.Env):
    """
    Lab Panic as a Gymnasium environment.

    Action Space:
        Box(low=0.0, high=1.0, shape=(3,), dtype=float32)
        (x, y, press): pointer position as a fraction of the board, and a
        press flag that counts as pressed above 0.5.

    Observation Space:
        Dict of scalar run state and padded object arrays.

    Reward:
        Change in stored score over the step.
    """

    metadata = {
        "render_modes": [],
        "render_fps": 60,
    }

    def __init__(
        self,
        config_path: Optional[str] = None,
        config: Optional[GameConfig] = None,
        max_episode_steps: int = 20000,
        debug: bool = False,
    ):
        """
        Initialize environment.

        Args:
            config_path: Path to game_config.yaml. Uses default if None.
            config: Already loaded config; takes precedence over config_path.
            max_episode_steps: Steps before truncation.
            debug: If True, prints a line for every step that scores or costs a life.
        """
        super().__init__()

        self._config = config if config is not None else load_config(config_path)
        self._max_episode_steps = max_episode_steps
        self._debug = debug
        self._steps = 0

        self._game = CoreGame(config=self._config)

        self.action_space = spaces.Box(
            low=0.0,
            high=1.0,
            shape=(3,),
            dtype=np.float32
        )
        self.observation_space = self._build_observation_space()

    def _build_observation_space(self) -> spaces.Dict:
        """Build the observation space definition."""
        max_obj = self._config.observation.max_objects
        board = self._config.board
        int_max = np.iinfo(np.int64).max

        return spaces.Dict({
            "score": spaces.Box(low=0, high=int_max, shape=(), dtype=np.int64),
            "display_score": spaces.Box(low=0, high=int_max, shape=(), dtype=np.int64),
            "lives": spaces.Box(low=0, high=self._config.starting_lives, shape=(), dtype=np.int32),
            "elapsed_ms": spaces.Box(low=0, high=np.inf, shape=(), dtype=np.float32),
            "difficulty_level": spaces.Box(low=0, high=np.iinfo(np.int32).max, shape=(), dtype=np.int32),
            "spawn_interval_ms": spaces.Box(low=0, high=np.inf, shape=(), dtype=np.float32),
            "max_objects": spaces.Box(low=0, high=max_obj, shape=(), dtype=np.int32),
            "powerup": spaces.Discrete(4),
            "powerup_remaining_ms": spaces.Box(low=0, high=np.inf, shape=(), dtype=np.float32),
            "objects_count": spaces.Box(low=0, high=max_obj, shape=(), dtype=np.int32),
            "danger_level": spaces.Box(low=0, high=1, shape=(), dtype=np.float32),
            "obj_kind": spaces.Box(low=-1, high=2, shape=(max_obj,), dtype=np.int16),
            "obj_x": spaces.Box(low=-np.inf, high=np.inf, shape=(max_obj,), dtype=np.float32),
            "obj_y": spaces.Box(low=-np.inf, high=np.inf, shape=(max_obj,), dtype=np.float32),
            "obj_speed": spaces.Box(low=0, high=np.inf, shape=(max_obj,), dtype=np.float32),
            "obj_radius": spaces.Box(low=0, high=max(board.width, board.height), shape=(max_obj,), dtype=np.float32),
            "obj_mask": spaces.MultiBinary(max_obj),
        })

    def reset(
        self,
        *,
        seed: Optional[int] = None,
        options: Optional[Dict[str, Any]] = None
    ) -> Tuple[Dict[str, np.ndarray], Dict[str, Any]]:
        """
        Reset the environment and start a new run.

        Returns:
            (observation, info) tuple.
        """
        super().reset(seed=seed)

        snapshot = self._game.start(seed=seed)
        self._steps = 0

        info = self._game.get_info()
        info["delta_score"] = 0
        return self._snapshot_to_obs(snapshot), info

    def step(
        self,
        action: np.ndarray
    ) -> Tuple[Dict[str, np.ndarray], float, bool, bool, Dict[str, Any]]:
        """
        Execute one frame.

        Args:
            action: (x, y, press) in [0, 1].

        Returns:
            (observation, reward, terminated, truncated, info) tuple.
        """
        action = np.clip(np.asarray(action, dtype=np.float32).reshape(-1), 0.0, 1.0)
        board = self._config.board
        pointer = PointerState(
            x=float(action[0]) * board.width,
            y=float(action[1]) * board.height,
            pressed=bool(action[2] > 0.5)
        )

        result = self._game.step(self._config.loop.frame_ms, pointer)
        self._steps += 1

        terminated = self._game.is_over
        truncated = not terminated and self._steps >= self._max_episode_steps

        info = self._game.get_info()
        info["delta_score"] = result.delta_score
        info["lives_lost"] = result.lives_lost
        info["step_hits"] = len(result.hits)

        if self._debug and (result.delta_score or result.lives_lost):
            print(f"[DEBUG] step={self._steps} delta_score={result.delta_score} "
                  f"lives={self._game.lives} objects={info['object_count']}")

        obs = self._snapshot_to_obs(self._game.build_snapshot())
        return obs, float(result.delta_score), terminated, truncated, info

    def _snapshot_to_obs(self, snapshot: GameSnapshot) -> Dict[str, np.ndarray]:
        return snapshot.to_obs_dict()

    @property
    def game(self) -> CoreGame:
        """Access to underlying game (for debugging/tools)."""
        return self._game

    @property
    def config(self) -> GameConfig:
        return self._config

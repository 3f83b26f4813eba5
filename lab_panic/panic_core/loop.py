"""
Game Loop
=========

Scheduler that feeds CoreGame.step from a clock and a pointer source.

The loop samples the pointer once per tick and hands the raw frame delta to
the game, which clamps it. Pausing stops ticks; resuming resets the time
baseline so the first tick after a pause is not a catch-up jump.
"""

from __future__ import annotations

import time
from typing import Callable, Optional, Protocol

from lab_panic.panic_core.game import CoreGame, GameRunState, Phase, PointerState, StepResult


class Clock(Protocol):
    def now_ms(self) -> float:
        """Monotonic time in milliseconds."""
        ...

    def wait_frame(self) -> None:
        """Block until the next frame is due."""
        ...


class InputSource(Protocol):
    def sample(self) -> PointerState:
        """Current pointer position and pressed flag."""
        ...


class Renderer(Protocol):
    def render(self, state: GameRunState, render_data: dict) -> None:
        ...


class MonotonicClock:
    """Wall clock driven by time.monotonic with a target frame rate."""

    def __init__(self, target_fps: int = 60):
        self._frame_s = 1.0 / target_fps if target_fps > 0 else 0.0
        self._next_frame = time.monotonic()

    def now_ms(self) -> float:
        return time.monotonic() * 1000.0

    def wait_frame(self) -> None:
        self._next_frame += self._frame_s
        delay = self._next_frame - time.monotonic()
        if delay > 0:
            time.sleep(delay)
        else:
            self._next_frame = time.monotonic()


class GameLoop:
    """
    Drives a CoreGame one tick at a time.

    Any object with the right methods can stand in for the clock, input
    and renderer, which keeps the loop testable with synthetic time.
    """

    def __init__(
        self,
        game: CoreGame,
        clock: Clock,
        input_source: InputSource,
        renderer: Optional[Renderer] = None
    ):
        self._game = game
        self._clock = clock
        self._input = input_source
        self._renderer = renderer
        self._last_ms: Optional[float] = None
        self._ticks = 0

    @property
    def game(self) -> CoreGame:
        return self._game

    @property
    def ticks(self) -> int:
        return self._ticks

    @property
    def running(self) -> bool:
        return self._game.phase is Phase.PLAYING

    def start(self, seed: Optional[int] = None) -> None:
        self._game.start(seed)
        self._last_ms = self._clock.now_ms()
        self._ticks = 0

    def pause(self) -> None:
        self._game.pause()
        self._last_ms = None

    def resume(self) -> None:
        self._game.resume()
        self._last_ms = self._clock.now_ms()

    def tick(self) -> Optional[StepResult]:
        """
        Run one tick if the game is playing.

        Returns:
            The step result, or None if no tick ran.
        """
        if not self.running:
            return None

        now = self._clock.now_ms()
        if self._last_ms is None:
            self._last_ms = now
        delta = now - self._last_ms
        self._last_ms = now

        result = self._game.step(delta, self._input.sample())
        self._ticks += 1

        if self._renderer is not None:
            self._renderer.render(self._game.run_state, self._game.get_render_data())
        return result

    def run(
        self,
        max_ticks: Optional[int] = None,
        keep_going: Optional[Callable[[], bool]] = None
    ) -> int:
        """
        Tick until the game stops playing.

        Args:
            max_ticks: Optional cap on ticks run by this call.
            keep_going: Optional predicate checked before every tick.

        Returns:
            Stored score when the loop exits.
        """
        count = 0
        while self.running:
            if max_ticks is not None and count >= max_ticks:
                break
            if keep_going is not None and not keep_going():
                break
            self.tick()
            count += 1
            self._clock.wait_frame()
        return self._game.score

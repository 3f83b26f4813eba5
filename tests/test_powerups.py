"""
Tests for the power-up state machine and its effects on the game.
"""

import pytest

from lab_panic.panic_core.entities import EntityKind, FallingObject
from lab_panic.panic_core.game import CoreGame, PointerState
from lab_panic.panic_core.powerups import ACTIVATABLE, PowerupState, PowerupType
from lab_panic.panic_core.rng import RandomSource


def place(game, kind, x, y, speed=0.0):
    obj = FallingObject(uid=2000 + len(game.objects), kind=kind, x=x, y=y, speed=speed, radius=25)
    game.objects.append(obj)
    return obj


@pytest.fixture
def state(config):
    return PowerupState(config)


@pytest.fixture
def game(quiet_config):
    g = CoreGame(config=quiet_config, seed=42)
    g.start()
    return g


class TestPowerupState:
    """Test timers and transitions."""

    def test_starts_inactive(self, state):
        assert state.active is PowerupType.NONE
        assert not state.is_active
        assert state.remaining_ms == 0

    @pytest.mark.parametrize("kind,duration", [
        (PowerupType.SLOW_TIME, 5000),
        (PowerupType.CLEAR_BOARD, 1000),
        (PowerupType.SCORE_MULTIPLIER, 10000),
    ])
    def test_durations(self, state, kind, duration):
        state.activate(kind)
        assert state.active is kind
        assert state.remaining_ms == pytest.approx(duration)

    def test_expires_at_zero(self, state):
        """Countdown reaching exactly zero deactivates."""
        state.activate(PowerupType.SLOW_TIME)
        assert not state.tick(4999)
        assert state.active is PowerupType.SLOW_TIME
        assert state.tick(1)
        assert state.active is PowerupType.NONE
        assert state.remaining_ms == 0

    def test_overwrite_no_stacking(self, state):
        """A new activation replaces type and timer."""
        state.activate(PowerupType.SCORE_MULTIPLIER)
        state.tick(9000)
        state.activate(PowerupType.SLOW_TIME)
        assert state.active is PowerupType.SLOW_TIME
        assert state.remaining_ms == pytest.approx(5000)

    def test_same_type_restarts_timer(self, state):
        state.activate(PowerupType.SCORE_MULTIPLIER)
        state.tick(9000)
        state.activate(PowerupType.SCORE_MULTIPLIER)
        assert state.remaining_ms == pytest.approx(10000)

    def test_remaining_seconds_rounds_up(self, state):
        state.activate(PowerupType.SLOW_TIME)
        state.tick(100)
        assert state.remaining_seconds == 5
        state.tick(4000)
        assert state.remaining_seconds == 1

    def test_tick_while_inactive(self, state):
        assert not state.tick(1000)

    def test_draw_covers_all_types(self, state):
        """Random draw only picks real effects, and all of them."""
        rng = RandomSource(seed=3)
        drawn = {state.draw(rng) for _ in range(300)}
        assert drawn == set(ACTIVATABLE)


class TestClearBoard:
    """Test the clear-board effect."""

    def test_credits_all_without_lives(self, game):
        """Clearing a mixed board credits every object and keeps lives."""
        place(game, EntityKind.BENIGN, 100, 100)
        place(game, EntityKind.HAZARDOUS, 200, 100)
        place(game, EntityKind.HAZARDOUS, 300, 100)
        place(game, EntityKind.BENIGN, 400, 100)

        events = game.activate_powerup(PowerupType.CLEAR_BOARD)

        assert game.score == 10 + 5 + 5 + 10
        assert len(events) == 4
        assert all(e.cleared for e in events)
        assert game.objects == []
        assert game.lives == game.config.starting_lives
        assert len(game.particles) == 4 * game.config.particles.burst_count

    def test_powerup_objects_do_not_chain(self, game):
        """A powerup on the board is destroyed without scoring or activating."""
        place(game, EntityKind.POWERUP, 100, 100)
        place(game, EntityKind.BENIGN, 200, 100)

        events = game.activate_powerup(PowerupType.CLEAR_BOARD)

        assert [e.kind for e in events] == [EntityKind.BENIGN]
        assert game.score == 10
        assert game.powerup.active is PowerupType.CLEAR_BOARD
        assert game.objects == []

    def test_clear_on_empty_board(self, game):
        assert game.activate_powerup(PowerupType.CLEAR_BOARD) == []
        assert game.score == 0

    def test_powerup_hit_clears_rest(self, game, monkeypatch):
        """Hitting a powerup that draws clear-board wipes the other objects."""
        monkeypatch.setattr(game.powerup, "draw", lambda rng: PowerupType.CLEAR_BOARD)
        place(game, EntityKind.POWERUP, 400, 300)
        place(game, EntityKind.HAZARDOUS, 100, 100)
        place(game, EntityKind.BENIGN, 700, 100)

        result = game.step(16, PointerState(400, 300, True))

        assert result.powerup_activated is PowerupType.CLEAR_BOARD
        assert game.objects == []
        assert game.score == 15
        assert result.delta_score == 15
        assert game.lives == game.config.starting_lives

    def test_clear_board_timer_expires(self, game):
        game.activate_powerup(PowerupType.CLEAR_BOARD)
        for _ in range(10):
            game.step(100)
        assert game.powerup.active is PowerupType.NONE


class TestScoreMultiplier:
    """Test display versus stored score."""

    def test_multiplier_window(self, game):
        """Display doubles during the window; stored score never does."""
        game.activate_powerup(PowerupType.SCORE_MULTIPLIER)
        place(game, EntityKind.BENIGN, 400, 300)
        game.step(16, PointerState(400, 300, True))

        assert game.score == 10
        assert game.display_score == 20
        assert game.get_render_data()["display_score"] == 20

        for _ in range(100):
            game.step(100)

        assert game.powerup.active is PowerupType.NONE
        assert game.display_score == 10
        assert game.score == 10

    def test_powerup_hit_scores_nothing_directly(self, game, monkeypatch):
        monkeypatch.setattr(game.powerup, "draw", lambda rng: PowerupType.SCORE_MULTIPLIER)
        place(game, EntityKind.POWERUP, 400, 300)
        result = game.step(16, PointerState(400, 300, True))

        assert result.powerup_activated is PowerupType.SCORE_MULTIPLIER
        assert result.hits == []
        assert game.score == 0
        assert len(game.particles) == game.config.particles.burst_count


class TestSlowTime:
    """Slow-time only counts down; motion is unchanged."""

    def test_motion_unchanged(self, game):
        obj = place(game, EntityKind.BENIGN, 400, 0, speed=200)
        game.activate_powerup(PowerupType.SLOW_TIME)
        game.step(50)
        assert obj.y == pytest.approx(10.0)
        assert game.powerup.remaining_ms == pytest.approx(4950)

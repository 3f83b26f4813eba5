"""
Human Play Mode
================

Play Lab Panic interactively: click or tap falling objects before they hit
the ground. Hazardous objects that land cost a life.

Controls:
    - Mouse: Hold the button over an object to hit it
    - P: Pause / resume (also pauses when the window loses focus)
    - R: Restart game
    - ESC: Quit

Usage:
    python -m tools.play_human [--seed SEED] [--server URL] [--name NAME]
"""

from __future__ import annotations

import argparse
import logging
import math
import sys
from typing import Optional, Tuple

try:
    import pygame
    PYGAME_AVAILABLE = True
except ImportError:
    PYGAME_AVAILABLE = False

from lab_panic.panic_core.client import LeaderboardClient, ScoreApiError
from lab_panic.panic_core.config_loader import GameConfig, load_config
from lab_panic.panic_core.game import CoreGame, GameRunState, Phase, PointerState
from lab_panic.panic_core.loop import GameLoop


KIND_COLORS = {
    "benign": (90, 200, 255),
    "hazardous": (255, 80, 80),
    "powerup": (255, 220, 60),
}

POWERUP_LABELS = {
    "slow-time": "SLOW TIME",
    "clear-board": "CLEAR BOARD",
    "score-multiplier": "2X SCORE",
}


class LabRenderer:
    """Draws the board, HUD and overlays onto a pygame surface."""

    def __init__(self, screen: "pygame.Surface", config: GameConfig):
        self._screen = screen
        self._config = config

        self._bg = (15, 15, 35)
        self._ground = (60, 60, 90)
        self._text = (230, 230, 255)
        self._accent = (0, 255, 136)

        pygame.font.init()
        self._font_large = pygame.font.Font(None, 56)
        self._font_medium = pygame.font.Font(None, 30)
        self._font_small = pygame.font.Font(None, 22)

        window_w, window_h = screen.get_size()
        self._scale = min(window_w / config.board.width, window_h / config.board.height)
        self._offset_x = (window_w - config.board.width * self._scale) / 2
        self._offset_y = (window_h - config.board.height * self._scale) / 2

    def world_to_screen(self, x: float, y: float) -> Tuple[int, int]:
        return (
            int(self._offset_x + x * self._scale),
            int(self._offset_y + y * self._scale),
        )

    def screen_to_world(self, sx: int, sy: int) -> Tuple[float, float]:
        return (
            (sx - self._offset_x) / self._scale,
            (sy - self._offset_y) / self._scale,
        )

    def render(self, state: GameRunState, render_data: dict) -> None:
        self._screen.fill(self._bg)
        self._draw_ground(render_data)
        self._draw_objects(render_data)
        self._draw_particles(render_data)
        self._draw_hud(render_data)

        if state.phase is Phase.PAUSED:
            self._draw_overlay("PAUSED", "Press P to resume")
        elif state.phase is Phase.OVER:
            self._draw_overlay("GAME OVER", f"Score: {render_data['score']}  -  R to restart")

        pygame.display.flip()

    def _draw_ground(self, render_data: dict) -> None:
        left, ground_y = self.world_to_screen(0, render_data["board_height"])
        right, _ = self.world_to_screen(render_data["board_width"], render_data["board_height"])
        pygame.draw.line(self._screen, self._ground, (left, ground_y), (right, ground_y), 3)

        for residue in render_data["residue"]:
            x, y = self.world_to_screen(residue["x"], render_data["board_height"])
            shade = int(120 * residue["life"])
            pygame.draw.ellipse(self._screen, (shade, 40, 40), (x - 30, y - 6, 60, 12))

    def _draw_objects(self, render_data: dict) -> None:
        for obj in render_data["objects"]:
            cx, cy = self.world_to_screen(obj["x"], obj["y"])
            radius = max(2, int(obj["radius"] * self._scale))
            color = KIND_COLORS.get(obj["kind"], self._text)
            pygame.draw.circle(self._screen, color, (cx, cy), radius)

            # Spin marker so rotation is visible
            angle = obj["rotation"]
            tip = (cx + int(math.cos(angle) * radius), cy + int(math.sin(angle) * radius))
            pygame.draw.line(self._screen, self._bg, (cx, cy), tip, 2)

    def _draw_particles(self, render_data: dict) -> None:
        for particle in render_data["particles"]:
            x, y = self.world_to_screen(particle["x"], particle["y"])
            size = max(1, int(4 * particle["life"]))
            pygame.draw.circle(self._screen, self._accent, (x, y), size)

    def _draw_hud(self, render_data: dict) -> None:
        score = self._font_medium.render(f"Score: {render_data['display_score']}", True, self._text)
        self._screen.blit(score, (12, 10))

        lives = self._font_medium.render(
            f"Lives: {render_data['lives']}/{render_data['starting_lives']}", True, self._text
        )
        self._screen.blit(lives, (12, 40))

        level = self._font_small.render(f"Level {render_data['difficulty_level']}", True, self._text)
        self._screen.blit(level, (12, 70))

        label = POWERUP_LABELS.get(render_data["powerup"])
        if label:
            text = self._font_medium.render(
                f"{label} {render_data['powerup_seconds']}s", True, KIND_COLORS["powerup"]
            )
            self._screen.blit(text, (self._screen.get_width() - text.get_width() - 12, 10))

    def _draw_overlay(self, title: str, subtitle: str) -> None:
        overlay = pygame.Surface(self._screen.get_size(), pygame.SRCALPHA)
        overlay.fill((0, 0, 0, 170))
        self._screen.blit(overlay, (0, 0))

        cx = self._screen.get_width() // 2
        cy = self._screen.get_height() // 2
        title_surf = self._font_large.render(title, True, self._accent)
        self._screen.blit(title_surf, title_surf.get_rect(center=(cx, cy - 20)))
        sub_surf = self._font_small.render(subtitle, True, self._text)
        self._screen.blit(sub_surf, sub_surf.get_rect(center=(cx, cy + 25)))


class MouseInput:
    """Samples the mouse each tick and maps it to board coordinates."""

    def __init__(self, renderer: LabRenderer):
        self._renderer = renderer

    def sample(self) -> PointerState:
        sx, sy = pygame.mouse.get_pos()
        x, y = self._renderer.screen_to_world(sx, sy)
        return PointerState(x=x, y=y, pressed=pygame.mouse.get_pressed()[0])


class PygameClock:
    """Frame clock backed by pygame.time."""

    def __init__(self, target_fps: int = 60):
        self._clock = pygame.time.Clock()
        self._target_fps = target_fps

    def now_ms(self) -> float:
        return float(pygame.time.get_ticks())

    def wait_frame(self) -> None:
        self._clock.tick(self._target_fps)


class HumanPlayer:
    """
    Interactive Lab Panic session.

    Optionally submits the final score to a leaderboard server.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        seed: Optional[int] = None,
        window_width: int = 800,
        window_height: int = 600,
        target_fps: int = 60,
        client: Optional[LeaderboardClient] = None,
        player_name: Optional[str] = None
    ):
        if not PYGAME_AVAILABLE:
            raise ImportError("pygame required. Install: pip install pygame")

        if config is None:
            config = load_config()

        self._seed = seed
        self._client = client
        self._player_name = player_name

        pygame.init()
        screen = pygame.display.set_mode((window_width, window_height))
        pygame.display.set_caption("Lab Panic")

        self._game = CoreGame(config=config, seed=seed)
        self._game.add_game_over_listener(self._on_game_over)
        self._renderer = LabRenderer(screen, config)
        self._clock = PygameClock(target_fps)
        self._loop = GameLoop(
            self._game,
            self._clock,
            MouseInput(self._renderer),
            self._renderer
        )
        self._running = True

    def run(self) -> int:
        """Run until the window closes. Returns final score."""
        print("=== Lab Panic ===")
        print("Hold the mouse button on falling objects to hit them")
        print("P to pause, R to restart, ESC to quit")
        print()

        if self._client is not None:
            self._start_session()
        self._loop.start(self._seed)

        while self._running:
            self._handle_events()
            if self._game.phase is Phase.PLAYING:
                result = self._loop.tick()
                if result is not None and result.lives_lost:
                    print(f"  Lost a life ({self._game.lives} left)")
            else:
                self._renderer.render(self._game.run_state, self._game.get_render_data())
            self._clock.wait_frame()

        pygame.quit()
        return self._game.score

    def _handle_events(self) -> None:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self._running = False
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    self._running = False
                elif event.key == pygame.K_r:
                    self._restart()
                elif event.key == pygame.K_p:
                    self._toggle_pause()
            elif event.type == pygame.WINDOWFOCUSLOST:
                if self._game.phase is Phase.PLAYING:
                    self._loop.pause()

    def _toggle_pause(self) -> None:
        if self._game.phase is Phase.PLAYING:
            self._loop.pause()
        elif self._game.phase is Phase.PAUSED:
            self._loop.resume()

    def _restart(self) -> None:
        if self._client is not None:
            self._start_session()
        self._loop.start(self._seed)
        print("\n=== Game Restarted ===\n")

    def _start_session(self) -> None:
        try:
            self._client.start_session()
        except ScoreApiError as e:
            # Submission will retry with a fresh session
            print(f"Could not start session: {e}")

    def _on_game_over(self, final_score: int) -> None:
        print(f"\nGAME OVER - Score: {final_score}")
        if self._client is None or not self._player_name:
            return
        try:
            data = self._client.submit_score(self._player_name, final_score)
        except ScoreApiError as e:
            print(f"Score not submitted: {e}")
            return
        print(f"Weekly rank: #{data['weekly_rank']}  All-time rank: #{data['alltime_rank']}")
        print(f"Share: {data['share_url']}")


def main():
    parser = argparse.ArgumentParser(description="Play Lab Panic interactively")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--width", type=int, default=800, help="Window width (default: 800)")
    parser.add_argument("--height", type=int, default=600, help="Window height (default: 600)")
    parser.add_argument("--fps", type=int, default=60, help="Target FPS")
    parser.add_argument("--server", type=str, default=None, help="Leaderboard server URL")
    parser.add_argument("--name", type=str, default=None, help="Player name for score submission")

    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    client = LeaderboardClient(args.server, platform="desktop") if args.server else None

    try:
        config = load_config()
        player = HumanPlayer(
            config=config,
            seed=args.seed,
            window_width=args.width,
            window_height=args.height,
            target_fps=args.fps,
            client=client,
            player_name=args.name
        )
        score = player.run()
        print(f"\nFinal Score: {score}")
        return 0
    except ImportError as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())

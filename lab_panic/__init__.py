"""
Lab Panic
=========

Click falling lab bottles before they hit the floor.

- panic_core: the game simulation (spawning, difficulty, hits, power-ups, lives)
- leaderboard: the session-gated score submission and leaderboard server

Simulation tunables live in game_config.yaml next to this file.
"""

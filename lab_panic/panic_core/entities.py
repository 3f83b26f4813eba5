"""
Entities
========

Falling objects, hit particles and ground residue.

Objects share one set of motion fields and are told apart by their kind tag;
behavior that differs per kind lives in the game step and scoring, not here.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum


class EntityKind(str, Enum):
    """Tag for a falling object."""
    BENIGN = "benign"
    HAZARDOUS = "hazardous"
    POWERUP = "powerup"


@dataclass
class FallingObject:
    """
    A single falling object.

    Speed is fixed at spawn time from the difficulty factor, so objects
    already on screen keep their speed when difficulty rises.
    """
    uid: int
    kind: EntityKind
    x: float
    y: float
    speed: float            # Pixels per second, straight down
    radius: float
    rotation: float = 0.0
    rotation_speed: float = 0.0  # Radians per second

    def advance(self, dt_ms: float) -> None:
        """Integrate motion over dt_ms milliseconds."""
        dt = dt_ms / 1000.0
        self.y += self.speed * dt
        self.rotation += self.rotation_speed * dt

    def contains(self, px: float, py: float) -> bool:
        """True if the point lies strictly inside the object's hit circle."""
        return math.hypot(px - self.x, py - self.y) < self.radius

    def __repr__(self) -> str:
        return f"FallingObject({self.uid}: {self.kind.value} @ {self.x:.1f},{self.y:.1f})"


@dataclass
class Particle:
    """
    Transient physics point spawned by a hit.

    Life runs from 1.0 down to 0.0; the particle is culled once it is spent.
    """
    x: float
    y: float
    vx: float
    vy: float
    life: float = 1.0

    def advance(self, dt_ms: float, gravity: float, decay: float) -> None:
        dt = dt_ms / 1000.0
        self.x += self.vx * dt
        self.y += self.vy * dt
        self.vy += gravity
        self.life -= decay

    @property
    def alive(self) -> bool:
        return self.life > 0.0


@dataclass
class GroundResidue:
    """Mark left where a hazardous object hit the ground."""
    x: float
    life: float = 1.0

    def advance(self, decay: float) -> None:
        self.life -= decay

    @property
    def alive(self) -> bool:
        return self.life > 0.0


@dataclass
class EntityStore:
    """Live entity lists in insertion order, plus a uid counter."""
    objects: list = field(default_factory=list)
    particles: list = field(default_factory=list)
    residue: list = field(default_factory=list)
    _next_uid: int = 0

    def next_uid(self) -> int:
        uid = self._next_uid
        self._next_uid += 1
        return uid

    @property
    def object_count(self) -> int:
        return len(self.objects)

    def clear(self) -> None:
        self.objects.clear()
        self.particles.clear()
        self.residue.clear()
        self._next_uid = 0

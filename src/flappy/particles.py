# src/flappy/particles.py
"""Short-lived trail puffs spawned on every flap."""
from __future__ import annotations
import itertools
import random
from dataclasses import dataclass
from typing import List
from .config import Tunables, DEFAULT_TUNABLES


@dataclass
class Particle:
    id: int
    x: float
    y: float
    vx: float
    vy: float
    life: float = 1.0   # 1.0 at birth, removed once <= 0
    size: float = 4.0


class ParticleSystem:
    def __init__(self, rng: random.Random, cfg: Tunables = DEFAULT_TUNABLES):
        self.rng = rng
        self.cfg = cfg
        self.particles: List[Particle] = []
        self._ids = itertools.count(1)

    def spawn_burst(self, origin_x: float, origin_y: float) -> List[Particle]:
        burst = []
        for _ in range(self.cfg.particle_burst):
            burst.append(Particle(
                id=next(self._ids),
                x=origin_x,
                y=origin_y,
                vx=(self.rng.random() - 0.8) * 2,   # biased left so the puff trails behind
                vy=self.rng.random() * 2 + 1,       # drifts down
                life=1.0,
                size=self.rng.random() * 6 + 4,
            ))
        self.particles.extend(burst)
        return burst

    def advance(self, dt_factor: float, scroll_speed: float):
        """Fade, drift with the scrolling world, apply own velocity, drop the dead ones."""
        for p in self.particles:
            p.life -= self.cfg.particle_decay * dt_factor
            p.x += (p.vx - scroll_speed) * dt_factor
            p.y += p.vy * dt_factor
        self.particles = [p for p in self.particles if p.life > 0]

    def clear(self):
        self.particles = []

    def __len__(self) -> int:
        return len(self.particles)

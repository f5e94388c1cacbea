# src/flappy/bird.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple
from .config import Tunables, DEFAULT_TUNABLES


def safe_initial_y(height: float, cfg: Tunables = DEFAULT_TUNABLES) -> float:
    """Top coordinate that centres the bird in the playable band above the ground."""
    playable = height - cfg.ground_height
    return playable / 2 - cfg.bird_size / 2


@dataclass
class Bird:
    """
    The player actor. Only y moves; the world scrolls past a fixed x.
    - y is the TOP edge, in px from the top of the playfield
    - vy is in px/tick (positive = falling)
    - rotation is purely derived from vy, clamped to [rot_min, rot_max]
    """
    x: float
    y: float
    vy: float = 0.0
    rotation: float = 0.0
    size: float = DEFAULT_TUNABLES.bird_size

    @property
    def bottom(self) -> float:
        return self.y + self.size

    def hitbox(self, padding: float) -> Tuple[float, float, float, float]:
        """(left, top, right, bottom) shrunk by `padding` on every side."""
        return (
            self.x + padding,
            self.y + padding,
            self.x + self.size - padding,
            self.y + self.size - padding,
        )

    def apply_gravity(self, dt_factor: float, cfg: Tunables = DEFAULT_TUNABLES):
        """Semi-implicit Euler: velocity first, then position with the new velocity."""
        self.vy += cfg.gravity * dt_factor
        self.y += self.vy * dt_factor

    def apply_jump_impulse(self, cfg: Tunables = DEFAULT_TUNABLES):
        self.vy = cfg.jump_strength

    def update_rotation(self, dt_factor: float, cfg: Tunables = DEFAULT_TUNABLES):
        if self.vy < 0:
            self.rotation = max(cfg.rot_min, self.rotation - cfg.rot_up_rate * dt_factor)
        else:
            # diving look develops slower than the flap-up look
            self.rotation = min(cfg.rot_max, self.rotation + cfg.rot_down_rate * dt_factor)

    def update_physics(self, dt_factor: float, cfg: Tunables = DEFAULT_TUNABLES):
        self.apply_gravity(dt_factor, cfg)
        self.update_rotation(dt_factor, cfg)

    def reset(self, height: float, cfg: Tunables = DEFAULT_TUNABLES):
        self.x = float(cfg.bird_x)
        self.y = safe_initial_y(height, cfg)
        self.vy = 0.0
        self.rotation = cfg.start_rotation
        self.size = cfg.bird_size

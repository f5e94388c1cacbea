# src/flappy/collision.py
from __future__ import annotations
from .bird import Bird
from .pipes import Pipe
from .config import Tunables, DEFAULT_TUNABLES


def ground_line(playfield_height: float, cfg: Tunables = DEFAULT_TUNABLES) -> float:
    return playfield_height - cfg.ground_height


def hits_ground(bird: Bird, playfield_height: float, cfg: Tunables = DEFAULT_TUNABLES) -> bool:
    """Bottom edge touching the ground line counts (inclusive)."""
    return bird.bottom >= ground_line(playfield_height, cfg)


def snap_to_ground(bird: Bird, playfield_height: float, cfg: Tunables = DEFAULT_TUNABLES):
    bird.y = ground_line(playfield_height, cfg) - bird.size


def hits_pipe(bird: Bird, pipe: Pipe, cfg: Tunables = DEFAULT_TUNABLES) -> bool:
    """
    Padded bird hit-box vs one pipe column. Inside the column the bird must be
    strictly within the gap window, otherwise it touched a pipe.
    """
    b_left, b_top, b_right, b_bottom = bird.hitbox(cfg.hit_padding)
    p_left = pipe.x
    p_right = pipe.right(cfg.pipe_width)
    if not (b_right > p_left and b_left < p_right):
        return False
    return b_top < pipe.top_height or b_bottom > pipe.gap_bottom


def check_pass(bird: Bird, pipe: Pipe, cfg: Tunables = DEFAULT_TUNABLES) -> bool:
    """
    One-shot: flags the pipe and returns True the first frame the bird's left
    edge is past the pipe's right edge. Vertical position is irrelevant.
    """
    if pipe.passed or bird.x <= pipe.right(cfg.pipe_width):
        return False
    pipe.passed = True
    return True

# src/env/observations.py
from __future__ import annotations
from typing import List, Tuple
import numpy as np

from src.flappy.sim import Simulation

MAX_VY = 15.0        # |vy| (px/tick) mapped to 1.0
N_PIPES = 2          # upcoming pipes described in the observation
OBS_SIZE = 2 + 3 * N_PIPES

# sentinel block for "no pipe ahead": far away, fully open gap
NO_PIPE: Tuple[float, float, float] = (1.0, 0.0, 1.0)


def _clamp01(x: float) -> float:
    return 0.0 if x < 0.0 else (1.0 if x > 1.0 else x)


def observation_bounds() -> Tuple[np.ndarray, np.ndarray]:
    low = np.array([0.0, -1.0] + [0.0, 0.0, 0.0] * N_PIPES, dtype=np.float32)
    high = np.array([1.0, 1.0] + [1.0, 1.0, 1.0] * N_PIPES, dtype=np.float32)
    return low, high


def build_observation(sim: Simulation) -> np.ndarray:
    """
    [y_norm, vy_norm, (dx, gap_top, gap_bottom) x N_PIPES], float32.
    - y_norm: bird top over the playable height (0 = ceiling, 1 = on the ground)
    - vy_norm: clipped to [-MAX_VY, MAX_VY] then scaled to [-1, 1]
    - dx: horizontal distance from the bird's left edge to the pipe's right edge / width
    - gap_top / gap_bottom: gap edges over the playfield height
    Only pipes the bird has not passed yet are described, nearest first.
    """
    cfg = sim.cfg
    height = max(1.0, sim.height)
    width = max(1.0, sim.width)
    playable = max(1.0, height - cfg.ground_height - sim.bird.size)

    y_norm = _clamp01(sim.bird.y / playable)
    vy_norm = max(-MAX_VY, min(MAX_VY, sim.bird.vy)) / MAX_VY

    blocks: List[Tuple[float, float, float]] = []
    for pipe in sim.pipes:
        if pipe.passed:
            continue
        dx = (pipe.right(cfg.pipe_width) - sim.bird.x) / width
        blocks.append((_clamp01(dx), _clamp01(pipe.top_height / height), _clamp01(pipe.gap_bottom / height)))
        if len(blocks) == N_PIPES:
            break
    while len(blocks) < N_PIPES:
        blocks.append(NO_PIPE)

    flat = [y_norm, vy_norm]
    for b in blocks:
        flat.extend(b)
    return np.asarray(flat, dtype=np.float32)

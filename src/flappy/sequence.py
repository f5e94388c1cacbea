# src/flappy/sequence.py
from __future__ import annotations
import logging
import math
import random
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple
from .config import Tunables, DEFAULT_TUNABLES

logger = logging.getLogger(__name__)


class Mode(str, Enum):
    NORMAL = "NORMAL"
    EASY = "EASY"
    HARD = "HARD"
    SLOPE = "SLOPE"


@dataclass
class SequenceState:
    mode: Mode = Mode.NORMAL
    remaining: int = 0
    direction: int = 1   # +1 down / -1 up, only read in SLOPE runs


def pick_mode(r: float, table: Sequence[Tuple[Mode, float]]) -> Mode:
    """First mode whose cumulative threshold is above r."""
    for mode, threshold in table:
        if r < threshold:
            return mode
    return table[-1][0]


def max_pipe_height(gap: float, playfield_height: float, cfg: Tunables = DEFAULT_TUNABLES) -> float:
    """Tallest allowed top pipe for this gap, never below min_pipe_height."""
    raw = playfield_height - cfg.ground_height - gap - cfg.min_pipe_height
    return max(cfg.min_pipe_height, raw)


def _clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))


class SequenceGenerator:
    """
    Picks difficulty runs (a few pipes sharing one mode) and, for every spawn,
    the gap size and top-pipe height of the next pipe.
    """
    def __init__(self, rng: random.Random, cfg: Tunables = DEFAULT_TUNABLES):
        self.rng = rng
        self.cfg = cfg
        self.table: Tuple[Tuple[Mode, float], ...] = tuple(
            (Mode(name), float(t)) for name, t in cfg.mode_thresholds
        )
        self.state = SequenceState()

    def reset(self):
        self.state = SequenceState()

    def _start_run(self):
        mode = pick_mode(self.rng.random(), self.table)
        if mode is Mode.SLOPE:
            lo, hi = self.cfg.slope_run_length
            remaining = self.rng.randint(lo, hi)
            direction = self.rng.choice((1, -1))
        else:
            lo, hi = self.cfg.run_length
            remaining = self.rng.randint(lo, hi)
            direction = 1
        self.state = SequenceState(mode=mode, remaining=remaining, direction=direction)
        logger.debug("new run: %s x%d dir=%+d", mode.value, remaining, direction)

    def gap_for(self, mode: Mode) -> float:
        if mode is Mode.EASY:
            return self.cfg.pipe_gap + self.cfg.easy_gap_bonus
        if mode is Mode.HARD:
            return self.cfg.pipe_gap - self.cfg.hard_gap_penalty
        return self.cfg.pipe_gap

    def next_pipe(self, prev_height: Optional[float], playfield_height: float) -> Tuple[float, float]:
        """
        Returns (top_height, gap) for the next pipe.
        `prev_height` is the top height of the newest live pipe (None if there is none).
        """
        if self.state.remaining <= 0:
            self._start_run()
        # consumed before the height is computed so the run covers its triggering spawn
        self.state.remaining -= 1

        mode = self.state.mode
        gap = self.gap_for(mode)
        lo = self.cfg.min_pipe_height
        hi = max_pipe_height(gap, playfield_height, self.cfg)
        if prev_height is None:
            prev_height = hi / 2

        if mode is Mode.EASY:
            center = (lo + hi) / 2
            height = center + self.rng.uniform(-self.cfg.easy_jitter, self.cfg.easy_jitter)
        elif mode is Mode.SLOPE:
            height = prev_height + self.cfg.slope_step * self.state.direction
            if height < lo or height > hi:
                # bounce off the boundary instead of ending the run
                self.state.direction *= -1
                height = _clamp(height, lo, hi)
        else:  # NORMAL / HARD
            height = self.rng.random() * (hi - lo) + lo

        height = _clamp(math.floor(height), lo, hi)
        return float(height), float(gap)

# src/flappy/pipes.py
from __future__ import annotations
import itertools
import logging
from dataclasses import dataclass
from typing import List, Optional
import pygame
from .config import Tunables, DEFAULT_TUNABLES
from .sequence import SequenceGenerator

logger = logging.getLogger(__name__)


@dataclass
class Pipe:
    """A top/bottom pipe pair; the opening spans [top_height, top_height + gap]."""
    id: int
    x: float
    top_height: float
    gap: float
    passed: bool = False

    @property
    def gap_bottom(self) -> float:
        return self.top_height + self.gap

    def right(self, width: float) -> float:
        return self.x + width

    def rects(self, width: float, floor_y: float):
        """(top, bottom) pygame rects for drawing, bottom pipe stops at the ground line."""
        top = pygame.Rect(int(self.x), 0, int(width), int(self.top_height))
        bottom_h = max(0, int(floor_y - self.gap_bottom))
        bottom = pygame.Rect(int(self.x), int(self.gap_bottom), int(width), bottom_h)
        return top, bottom


class PipeField:
    """
    Live pipes in arrival order (leftmost first). The world scrolls left,
    so pipes are appended at the right edge and consumed from the front.
    """
    def __init__(self, sequence: SequenceGenerator, cfg: Tunables = DEFAULT_TUNABLES):
        self.sequence = sequence
        self.cfg = cfg
        self.pipes: List[Pipe] = []
        self.spawn_timer = 0.0
        self._ids = itertools.count(1)

    def reset(self, prime_ms: Optional[float] = None):
        self.pipes = []
        self.spawn_timer = self.cfg.spawn_prime_ms if prime_ms is None else float(prime_ms)
        self.sequence.reset()

    def try_spawn(self, elapsed_ms: float, playfield_width: float, playfield_height: float) -> Optional[Pipe]:
        """Accumulate simulated time; spawn one pipe at the right edge each interval."""
        self.spawn_timer += elapsed_ms
        if self.spawn_timer < self.cfg.spawn_interval_ms:
            return None
        self.spawn_timer = 0.0

        prev = self.pipes[-1].top_height if self.pipes else None
        top_height, gap = self.sequence.next_pipe(prev, playfield_height)
        pipe = Pipe(id=next(self._ids), x=float(playfield_width), top_height=top_height, gap=gap)
        self.pipes.append(pipe)
        logger.debug("spawn pipe #%d top=%.0f gap=%.0f mode=%s",
                     pipe.id, top_height, gap, self.sequence.state.mode.value)
        return pipe

    def advance(self, dt_factor: float):
        dx = self.cfg.scroll_speed * dt_factor
        for pipe in self.pipes:
            pipe.x -= dx

    def prune(self) -> int:
        """Drop pipes from the front once they are well past the left boundary."""
        removed = 0
        while self.pipes and self.pipes[0].x < self.cfg.prune_x:
            self.pipes.pop(0)
            removed += 1
        return removed

    def __len__(self) -> int:
        return len(self.pipes)

    def __iter__(self):
        return iter(self.pipes)

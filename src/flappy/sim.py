# src/flappy/sim.py
"""
Per-frame orchestration of the whole simulation.

One call to `Simulation.step(elapsed_ms)` is one atomic frame:
  bird physics -> particles -> ground check (may end the frame) ->
  pipe spawn/advance -> pipe collision + pass/score -> prune.
Everything runs synchronously on the caller's thread; renderers read
`snapshot()` between frames.
"""
from __future__ import annotations
import logging
import math
import random
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Tuple

from .config import Tunables, DEFAULT_TUNABLES, WIDTH, HEIGHT
from .bird import Bird, safe_initial_y
from .collision import hits_ground, snap_to_ground, hits_pipe, check_pass
from .events import GameListener, NULL_LISTENER
from .particles import Particle, ParticleSystem
from .pipes import Pipe, PipeField
from .score import ScoreStore, ScoreTracker
from .sequence import SequenceGenerator

logger = logging.getLogger(__name__)


class GameStatus(str, Enum):
    WELCOME = "WELCOME"       # only at process start, never re-entered
    READY = "READY"
    PLAYING = "PLAYING"
    GAME_OVER = "GAME_OVER"


def tick_factor(elapsed_ms: float, cfg: Tunables = DEFAULT_TUNABLES) -> Tuple[float, float]:
    """
    Cap the real frame time and normalise it to ideal 60 Hz ticks.
    Returns (capped_ms, dt_factor). Long stalls are truncated, not accumulated.
    """
    if not math.isfinite(elapsed_ms) or elapsed_ms < 0:
        elapsed_ms = 0.0
    capped = min(float(elapsed_ms), cfg.max_frame_ms)
    return capped, capped / cfg.ideal_frame_ms


class FrameClock:
    """Turns host timestamps (ms) into elapsed ms between consecutive frames."""

    def __init__(self):
        self.last_ms: Optional[float] = None

    def reset(self, now_ms: Optional[float] = None):
        self.last_ms = now_ms

    def elapsed(self, now_ms: float) -> float:
        if self.last_ms is None:
            self.last_ms = now_ms
            return 0.0
        delta = now_ms - self.last_ms
        self.last_ms = now_ms
        return max(0.0, delta)


@dataclass(frozen=True)
class RenderState:
    status: GameStatus
    bird_x: float
    bird_y: float
    bird_size: float
    rotation: float
    pipes: Tuple[Pipe, ...]
    particles: Tuple[Particle, ...]
    score: int
    best_score: int
    shaking: bool
    width: float
    height: float


class Simulation:
    def __init__(self,
                 cfg: Optional[Tunables] = None,
                 *,
                 width: float = WIDTH,
                 height: float = HEIGHT,
                 seed: Optional[int] = None,
                 rng: Optional[random.Random] = None,
                 store: Optional[ScoreStore] = None,
                 listener: Optional[GameListener] = None):
        self.cfg = cfg or DEFAULT_TUNABLES
        self.rng = rng if rng is not None else random.Random(seed)
        self.status = GameStatus.WELCOME
        self.bird = Bird(x=float(self.cfg.bird_x), y=0.0, size=self.cfg.bird_size)
        self.sequence = SequenceGenerator(self.rng, self.cfg)
        self.pipes = PipeField(self.sequence, self.cfg)
        self.particles = ParticleSystem(self.rng, self.cfg)
        self.scores = ScoreTracker(store)
        self.listener = listener or NULL_LISTENER
        self.shake_ms = 0.0
        self.run_ms = 0.0       # simulated (capped) time of the current run
        self.run_ticks = 0.0    # sum of dt_factor over the current run
        self.width = 0.0
        self.height = 0.0
        self.resize(width, height)

    # -------------------- Properties --------------------

    @property
    def score(self) -> int:
        return self.scores.score

    @property
    def best_score(self) -> int:
        return self.scores.best_score

    @property
    def shaking(self) -> bool:
        return self.shake_ms > 0.0

    def playfield_ok(self) -> bool:
        return (math.isfinite(self.width) and math.isfinite(self.height)
                and self.width > 0 and self.height > 0)

    # -------------------- Commands --------------------

    def resize(self, width: float, height: float):
        self.width = min(float(width), float(self.cfg.max_game_width))
        self.height = float(height)
        if self.status in (GameStatus.WELCOME, GameStatus.READY) and self.playfield_ok():
            self.bird.y = safe_initial_y(self.height, self.cfg)

    def jump(self) -> GameStatus:
        """The single player command: enter, start/restart, or flap."""
        if self.status is GameStatus.WELCOME:
            self.status = GameStatus.READY
            logger.info("Welcome dismissed, ready")
        elif self.status is GameStatus.PLAYING:
            self.bird.apply_jump_impulse(self.cfg)
            self._puff()
            self._notify("on_jump")
        else:
            self.start()
        return self.status

    def start(self):
        """Reset everything for a fresh run and give the opening flap."""
        self.status = GameStatus.PLAYING
        self.scores.reset()
        self.bird.reset(self.height, self.cfg)
        self.bird.apply_jump_impulse(self.cfg)
        self.pipes.reset()
        self.particles.clear()
        self.run_ms = 0.0
        self.run_ticks = 0.0
        logger.info("Run started (best=%d)", self.best_score)
        self._notify("on_jump")
        self._puff()

    def pause(self) -> GameStatus:
        """Abandon the current run; the next jump starts over. No best-score update."""
        if self.status is GameStatus.PLAYING:
            self.status = GameStatus.READY
            if self.playfield_ok():
                self.bird.y = safe_initial_y(self.height, self.cfg)
            logger.info("Run abandoned at score %d", self.score)
        return self.status

    # -------------------- Frame update --------------------

    def step(self, elapsed_ms: float, jump: bool = False) -> GameStatus:
        if jump:
            self.jump()

        capped_ms, dt = tick_factor(elapsed_ms, self.cfg)
        if self.shake_ms > 0.0:
            self.shake_ms = max(0.0, self.shake_ms - capped_ms)

        if self.status is not GameStatus.PLAYING or not self.playfield_ok():
            return self.status

        self.run_ms += capped_ms
        self.run_ticks += dt

        # 1. bird
        self.bird.update_physics(dt, self.cfg)

        # 2. particles
        self.particles.advance(dt, self.cfg.scroll_speed)

        # 3. ground
        if hits_ground(self.bird, self.height, self.cfg):
            snap_to_ground(self.bird, self.height, self.cfg)
            self._game_over("ground")
            return self.status

        # 4. pipes
        self.pipes.try_spawn(capped_ms, self.width, self.height)
        self.pipes.advance(dt)

        # 5. collisions + scoring
        for pipe in self.pipes:
            if hits_pipe(self.bird, pipe, self.cfg):
                self._game_over("pipe")
                return self.status
            if check_pass(self.bird, pipe, self.cfg):
                self.scores.on_pass()
                self._notify("on_score", self.score)

        # 6. cleanup
        self.pipes.prune()
        return self.status

    def snapshot(self) -> RenderState:
        return RenderState(
            status=self.status,
            bird_x=self.bird.x,
            bird_y=self.bird.y,
            bird_size=self.bird.size,
            rotation=self.bird.rotation,
            pipes=tuple(replace(p) for p in self.pipes),
            particles=tuple(replace(p) for p in self.particles.particles),
            score=self.score,
            best_score=self.best_score,
            shaking=self.shaking,
            width=self.width,
            height=self.height,
        )

    # -------------------- Helpers --------------------

    def _puff(self):
        b = self.bird
        self.particles.spawn_burst(b.x + b.size / 2, b.y + b.size / 1.5)

    def _game_over(self, cause: str):
        self.status = GameStatus.GAME_OVER
        self.shake_ms = self.cfg.shake_ms
        new_best = self.scores.on_session_end()
        logger.info("Game over (%s): score=%d best=%d%s",
                    cause, self.score, self.best_score, " NEW BEST" if new_best else "")
        self._notify("on_game_over", self.score, self.best_score)

    def _notify(self, hook: str, *args):
        try:
            getattr(self.listener, hook)(*args)
        except Exception:
            # collaborators are fire-and-forget
            logger.exception("Listener %s failed", hook)


def step(sim: Simulation, elapsed_ms: float, jump: bool = False) -> RenderState:
    """Advance one frame and return what a renderer should draw."""
    sim.step(elapsed_ms, jump=jump)
    return sim.snapshot()

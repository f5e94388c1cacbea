# src/flappy/config.py
from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Tuple

# --- Display ---
MAX_GAME_WIDTH = 448        # game column cap (px), even on wider windows
WIDTH = 448
HEIGHT = 800
FPS = 60

# --- Timing ---
IDEAL_FRAME_MS = 16.666     # one "tick" at 60 Hz; dt_factor = elapsed / this
MAX_FRAME_MS = 64.0         # longer stalls are truncated, not accumulated

# --- Bird (px, px/tick) ---
GRAVITY = 0.6
JUMP_STRENGTH = -8.0        # hard reset of vy, never additive
BIRD_X = 32                 # bird's fixed left edge (world scrolls left)
BIRD_SIZE = 40
HIT_PADDING = 12            # hit-box inset on every side
ROT_MIN = -25.0
ROT_MAX = 90.0
ROT_UP_RATE = 5.0           # deg/tick while rising
ROT_DOWN_RATE = 3.0         # deg/tick while falling
START_ROTATION = -20.0

# --- Pipes ---
PIPE_SPEED = 3.5            # scroll speed (px/tick)
PIPE_WIDTH = 64
PIPE_GAP = 175
GROUND_HEIGHT = 140
SPAWN_INTERVAL_MS = 1500.0
SPAWN_PRIME_MS = 1300.0     # timer value on start, first pipe after ~200 ms
PRUNE_X = -300.0            # a pipe is dropped once its x is left of this

# --- Sequence generation ---
MIN_PIPE_HEIGHT = 50
EASY_GAP_BONUS = 25
HARD_GAP_PENALTY = 25
EASY_JITTER = 50            # easy pipes: midpoint +/- this
SLOPE_STEP = 60
RUN_LENGTH = (2, 4)         # inclusive, NORMAL / EASY / HARD
SLOPE_RUN_LENGTH = (3, 6)   # inclusive, SLOPE
MODE_THRESHOLDS = (         # cumulative upper bounds, sampled with r in [0, 1)
    ("NORMAL", 0.45),
    ("EASY", 0.70),
    ("HARD", 0.85),
    ("SLOPE", 1.0),
)

# --- Particles ---
PARTICLE_BURST = 4
PARTICLE_DECAY = 0.04       # life lost per tick

# --- Session ---
SHAKE_MS = 400.0
BEST_SCORE_KEY = "flappy-best-score"
SEED_DEFAULT = 12345

# --- Colors (RGB) ---
COLOR_SKY = (78, 192, 202)
COLOR_GROUND = (222, 216, 149)
COLOR_GRASS = (115, 191, 46)
COLOR_PIPE = (34, 197, 94)
COLOR_PIPE_EDGE = (20, 60, 30)
COLOR_BIRD = (250, 204, 21)
COLOR_FG = (255, 255, 255)
COLOR_DANGER = (232, 97, 1)


@dataclass(frozen=True)
class Tunables:
    """
    Every rule constant of the simulation as a named, overridable field.
    Defaults mirror the module constants above.
    """
    gravity: float = GRAVITY
    jump_strength: float = JUMP_STRENGTH
    scroll_speed: float = PIPE_SPEED
    pipe_gap: float = PIPE_GAP
    pipe_width: float = PIPE_WIDTH
    bird_x: float = BIRD_X
    bird_size: float = BIRD_SIZE
    hit_padding: float = HIT_PADDING
    ground_height: float = GROUND_HEIGHT
    spawn_interval_ms: float = SPAWN_INTERVAL_MS
    spawn_prime_ms: float = SPAWN_PRIME_MS
    prune_x: float = PRUNE_X
    min_pipe_height: float = MIN_PIPE_HEIGHT
    easy_gap_bonus: float = EASY_GAP_BONUS
    hard_gap_penalty: float = HARD_GAP_PENALTY
    easy_jitter: float = EASY_JITTER
    slope_step: float = SLOPE_STEP
    run_length: Tuple[int, int] = RUN_LENGTH
    slope_run_length: Tuple[int, int] = SLOPE_RUN_LENGTH
    mode_thresholds: Tuple[Tuple[str, float], ...] = field(default=MODE_THRESHOLDS)
    rot_min: float = ROT_MIN
    rot_max: float = ROT_MAX
    rot_up_rate: float = ROT_UP_RATE
    rot_down_rate: float = ROT_DOWN_RATE
    start_rotation: float = START_ROTATION
    particle_burst: int = PARTICLE_BURST
    particle_decay: float = PARTICLE_DECAY
    ideal_frame_ms: float = IDEAL_FRAME_MS
    max_frame_ms: float = MAX_FRAME_MS
    shake_ms: float = SHAKE_MS
    max_game_width: float = MAX_GAME_WIDTH

    def __post_init__(self):
        prev = 0.0
        for name, threshold in self.mode_thresholds:
            if threshold <= prev:
                raise ValueError(f"mode thresholds must be strictly increasing (at {name}={threshold})")
            prev = threshold
        if not self.mode_thresholds or self.mode_thresholds[-1][1] != 1.0:
            raise ValueError("last mode threshold must be 1.0")
        for lo, hi in (self.run_length, self.slope_run_length):
            if lo < 1 or hi < lo:
                raise ValueError(f"invalid run length range ({lo}, {hi})")
        if self.ideal_frame_ms <= 0 or self.max_frame_ms <= 0:
            raise ValueError("frame durations must be positive")

    def with_overrides(self, **changes) -> "Tunables":
        return replace(self, **changes)


DEFAULT_TUNABLES = Tunables()

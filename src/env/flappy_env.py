# src/env/flappy_env.py
from __future__ import annotations
from typing import Optional, Dict, Any
import random
import numpy as np
import gymnasium as gym
import pygame

from src.flappy.config import WIDTH, HEIGHT, FPS, Tunables, DEFAULT_TUNABLES
from src.flappy.sim import Simulation, GameStatus
from src.flappy.game import draw_frame
from src.env.observations import build_observation, observation_bounds


class FlappyEnv(gym.Env):
    """
    Flappy Gymnasium environment (vector observations).
    - Simulation advances one ideal 60 Hz frame per sub-step (dt_factor = 1).
    - Agent acts every `frame_skip` frames (default 4) -> 15 decisions/sec.
    - Observation: shape (8,), float32, see observations.build_observation.
    """
    metadata = {"render_modes": ["human", "rgb_array"], "render_fps": FPS}

    def __init__(self,
                 render_mode: Optional[str] = None,
                 frame_skip: int = 4,
                 time_limit_seconds: Optional[float] = 60.0,
                 pass_bonus: float = 10.0,
                 width: int = WIDTH,
                 height: int = HEIGHT,
                 tunables: Optional[Tunables] = None):
        super().__init__()
        assert frame_skip >= 1, "frame_skip must be >= 1"
        self.render_mode = render_mode
        self.frame_skip = int(frame_skip)
        self.pass_bonus = float(pass_bonus)
        self.width = width
        self.height = height
        self.tunables = tunables or DEFAULT_TUNABLES

        # Internal sim timing: exactly one tick per frame
        self.frame_ms = self.tunables.ideal_frame_ms

        self.time_limit_decisions = None
        if time_limit_seconds is not None:
            self.time_limit_decisions = int(FPS * time_limit_seconds / self.frame_skip)

        # Actions: 0 = NOOP, 1 = FLAP
        self.action_space = gym.spaces.Discrete(2)
        low, high = observation_bounds()
        self.observation_space = gym.spaces.Box(low=low, high=high, dtype=np.float32)

        self.sim: Optional[Simulation] = None
        self.timestep = 0
        self.current_seed: Optional[int] = None

        self.screen = None
        self.clock = None
        self.font = None

    # -------------------- Core API --------------------

    def reset(self, *, seed: Optional[int] = None, options: Optional[Dict[str, Any]] = None):
        super().reset(seed=seed)  # initializes self.np_random

        # Seeded episodes replay the same pipe layout; unseeded ones draw from np_random.
        if seed is None:
            seed = int(self.np_random.integers(0, 2**31 - 1))
        self.current_seed = int(seed)

        self.sim = Simulation(self.tunables, width=self.width, height=self.height,
                              rng=random.Random(self.current_seed))
        self.sim.jump()            # WELCOME -> READY
        self.sim.jump()            # READY -> PLAYING (opening flap)
        self.timestep = 0

        obs = self._get_obs()
        info = {"seed": self.current_seed, "score": 0}
        return obs, info

    def step(self, action: int):
        assert self.action_space.contains(action), f"Invalid action {action}"
        assert self.sim is not None

        if action == 1 and self.sim.status is GameStatus.PLAYING:
            self.sim.jump()

        score_before = self.sim.score
        for _ in range(self.frame_skip):
            if self.sim.step(self.frame_ms) is not GameStatus.PLAYING:
                break

        alive = self.sim.status is GameStatus.PLAYING
        passed = self.sim.score - score_before
        reward = (1.0 if alive else -1.0) + self.pass_bonus * passed

        self.timestep += 1
        terminated = not alive
        truncated = False
        if (self.time_limit_decisions is not None) and (self.timestep >= self.time_limit_decisions):
            truncated = True

        obs = self._get_obs()
        info = {
            "score": self.sim.score,
            "timestep": self.timestep,
            "seed": self.current_seed,
            "run_ms": self.sim.run_ms,
        }

        if self.render_mode == "human":
            self.render()

        return obs, float(reward), terminated, truncated, info

    # -------------------- Helpers --------------------

    def _get_obs(self) -> np.ndarray:
        assert self.sim is not None
        return build_observation(self.sim)

    # -------------------- Rendering --------------------

    def render(self):
        if self.render_mode is None or self.sim is None:
            return None

        if self.screen is None:
            pygame.init()
            if self.render_mode == "human":
                self.screen = pygame.display.set_mode((int(self.sim.width), self.height))
                pygame.display.set_caption("Flappy - Gym Env")
            else:
                self.screen = pygame.Surface((int(self.sim.width), self.height))
            self.clock = pygame.time.Clock()
            self.font = pygame.font.SysFont("jetbrainsmono", 22, bold=True)

        if self.render_mode == "human":
            pygame.event.pump()

        draw_frame(self.screen, self.sim.snapshot(), self.font,
                   ground_height=self.tunables.ground_height, pipe_width=self.tunables.pipe_width)

        if self.render_mode == "human":
            pygame.display.flip()
            self.clock.tick(self.metadata.get("render_fps", 60))
            return None

        # (H, W, 3) uint8
        arr = pygame.surfarray.array3d(self.screen)  # (W, H, 3)
        return np.transpose(arr, (1, 0, 2))

    def close(self):
        if self.screen is not None:
            pygame.display.quit()
            pygame.quit()
            self.screen = None
            self.clock = None

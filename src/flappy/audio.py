# src/flappy/audio.py
from __future__ import annotations
import logging
from typing import Dict, Optional
import numpy as np
import pygame
from .events import GameListener

logger = logging.getLogger(__name__)

SAMPLE_RATE = 44100


def _sweep(f0: float, f1: float, dur_s: float, exponential: bool = False) -> np.ndarray:
    """Instantaneous frequency ramp from f0 to f1 over dur_s."""
    n = int(SAMPLE_RATE * dur_s)
    t = np.linspace(0.0, 1.0, n, endpoint=False)
    if exponential:
        freq = f0 * (f1 / f0) ** t
    else:
        freq = f0 + (f1 - f0) * t
    return np.cumsum(freq) / SAMPLE_RATE   # phase in cycles


def flap_tone() -> np.ndarray:
    phase = _sweep(200.0, 450.0, 0.1)
    env = np.linspace(0.15, 0.0, phase.size)
    return np.sin(2 * np.pi * phase) * env


def score_tone() -> np.ndarray:
    phase = _sweep(1000.0, 1000.0, 0.4)
    env = 0.08 * np.geomspace(1.0, 0.001 / 0.08, phase.size)
    return np.sin(2 * np.pi * phase) * env


def die_tone() -> np.ndarray:
    phase = _sweep(150.0, 50.0, 0.25, exponential=True)
    saw = 2.0 * (phase - np.floor(phase + 0.5))
    env = np.linspace(0.2, 0.0, phase.size)
    return saw * env


def to_pcm16(samples: np.ndarray, channels: int = 2) -> np.ndarray:
    pcm = (np.clip(samples, -1.0, 1.0) * 32767).astype(np.int16)
    if channels == 1:
        return pcm
    return np.ascontiguousarray(np.repeat(pcm[:, None], channels, axis=1))


class AudioListener(GameListener):
    """Plays the flap / score / die effects through pygame.mixer. Mute silences playback only."""

    def __init__(self, muted: bool = False):
        self._sounds: Dict[str, pygame.mixer.Sound] = {}
        self._initialized = False
        self.muted = muted

    def set_muted(self, muted: bool):
        self.muted = bool(muted)
        logger.info("Sound %s", "muted" if self.muted else "on")

    def init(self) -> bool:
        try:
            pygame.mixer.pre_init(SAMPLE_RATE, -16, 2, 512)
            pygame.mixer.init()
        except pygame.error as e:
            logger.warning("Audio disabled: %s", e)
            return False
        channels = pygame.mixer.get_init()[2]
        self._sounds = {
            "flap": pygame.sndarray.make_sound(to_pcm16(flap_tone(), channels)),
            "score": pygame.sndarray.make_sound(to_pcm16(score_tone(), channels)),
            "die": pygame.sndarray.make_sound(to_pcm16(die_tone(), channels)),
        }
        self._initialized = True
        logger.info("Audio initialized")
        return True

    def _play(self, name: str) -> Optional[pygame.mixer.Channel]:
        if self.muted or not self._initialized:
            return None
        return self._sounds[name].play()

    def on_jump(self) -> None:
        self._play("flap")

    def on_score(self, score: int) -> None:
        self._play("score")

    def on_game_over(self, score: int, best_score: int) -> None:
        self._play("die")

    def close(self):
        if self._initialized:
            pygame.mixer.quit()
            self._initialized = False

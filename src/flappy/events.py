# src/flappy/events.py
from __future__ import annotations


class GameListener:
    """
    Notifications the simulation sends to its collaborators (audio and the like).
    All hooks default to no-ops; subclass and override what you need.
    Every hook fires on every event; muting is the audio listener's concern.
    """
    def on_jump(self) -> None:
        pass

    def on_score(self, score: int) -> None:
        pass

    def on_game_over(self, score: int, best_score: int) -> None:
        pass


NULL_LISTENER = GameListener()

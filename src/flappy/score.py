# src/flappy/score.py
from __future__ import annotations
import json
import logging
from pathlib import Path
from typing import Optional, Protocol, Union
from .config import BEST_SCORE_KEY

logger = logging.getLogger(__name__)

DEFAULT_BEST_FILE = Path.home() / ".flappy" / "best_score.json"


class ScoreStore(Protocol):
    def load(self) -> int: ...
    def save(self, value: int) -> None: ...


class BestScoreStore:
    """
    Persists a single integer under BEST_SCORE_KEY in a small JSON file.
    Missing or unreadable file -> 0. Write failures are logged, never raised.
    """
    def __init__(self, path: Union[str, Path] = DEFAULT_BEST_FILE, key: str = BEST_SCORE_KEY):
        self.path = Path(path)
        self.key = key

    def load(self) -> int:
        if not self.path.exists():
            return 0
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return max(0, int(data.get(self.key, 0)))
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.warning("Ignoring unreadable best score file %s: %s", self.path, e)
            return 0

    def save(self, value: int) -> None:
        try:
            data = {}
            if self.path.exists():
                try:
                    data = json.loads(self.path.read_text(encoding="utf-8"))
                    if not isinstance(data, dict):
                        data = {}
                except ValueError:
                    data = {}
            data[self.key] = int(value)
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data), encoding="utf-8")
        except OSError as e:
            logger.warning("Failed to persist best score %d to %s: %s", value, self.path, e)


class ScoreTracker:
    """Current run score plus the all-time best (monotonic, persisted on every new best)."""

    def __init__(self, store: Optional[ScoreStore] = None):
        self.store = store
        self.score = 0
        self.best_score = store.load() if store is not None else 0

    def reset(self):
        self.score = 0

    def on_pass(self) -> int:
        self.score += 1
        return self.score

    def on_session_end(self) -> bool:
        """Returns True if this run set a new best (and a write was requested)."""
        if self.score <= self.best_score:
            return False
        self.best_score = self.score
        logger.info("New best score: %d", self.best_score)
        if self.store is not None:
            try:
                self.store.save(self.best_score)
            except Exception:
                # persistence must never take the simulation down
                logger.exception("Best score store failed")
        return True

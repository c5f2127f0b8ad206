import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from picktle.entities import SimilarityResult
from picktle.proximity import get_proximity_label
from picktle.puzzles import Puzzle

CLOSE_CALL_THRESHOLD = 80.0


class GameSessionNotFoundError(Exception):
    pass


@dataclass
class Guess:
    id: int
    text: str
    result: SimilarityResult

    def to_dict(self) -> Dict[str, Any]:
        out = {"id": self.id, "guess": self.text, "proximity": get_proximity_label(self.result.similarity)}
        out.update(self.result.to_dict())
        return out


@dataclass
class GameSession:
    session_id: str
    puzzle: Puzzle
    guesses: List[Guess] = field(default_factory=list)
    solved: bool = False
    close_call: bool = False
    expires_at: float = 0.0

    @property
    def guess_count(self) -> int:
        return len(self.guesses)

    def ranked_guesses(self) -> List[Guess]:
        # Highest similarity first; earlier guesses win ties
        return sorted(self.guesses, key=lambda g: (-g.result.similarity, g.id))

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "sessionId": self.session_id,
            "puzzleId": self.puzzle.id,
            "imagePath": self.puzzle.image_path,
            "difficulty": self.puzzle.difficulty,
            "wordCount": len(self.puzzle.target_words),
            "guessCount": self.guess_count,
            "solved": self.solved,
            "closeCall": self.close_call,
            "guesses": [g.to_dict() for g in self.ranked_guesses()],
        }
        if self.solved:
            out["targetWords"] = list(self.puzzle.target_words)
        return out


class GameSessionStore:
    """
    In-memory Picktle sessions with:
    - sliding TTL (expires ttl_seconds after last touch)
    - thread-safe operations (concurrent requests share one store)
    """

    def __init__(self, ttl_seconds: int):
        self.ttl_seconds = ttl_seconds
        self._lock = threading.Lock()
        self._items: Dict[str, GameSession] = {}

    def _get_unlocked(self, session_id: str) -> GameSession:
        now = time.time()
        session = self._items.get(session_id)
        if session is None:
            raise GameSessionNotFoundError(f"Game session not found: {session_id}")
        if session.expires_at <= now:
            # expired -> drop
            del self._items[session_id]
            raise GameSessionNotFoundError(f"Game session expired: {session_id}")
        session.expires_at = now + self.ttl_seconds
        return session

    def create(self, puzzle: Puzzle) -> GameSession:
        session = GameSession(
            session_id=uuid.uuid4().hex,
            puzzle=puzzle,
            expires_at=time.time() + self.ttl_seconds,
        )
        with self._lock:
            self._items[session.session_id] = session
        return session

    def get(self, session_id: str) -> GameSession:
        with self._lock:
            return self._get_unlocked(str(session_id))

    def record_guess(self, session_id: str, text: str, result: SimilarityResult) -> Guess:
        """
        Append a scored guess, update solved / close-call flags and touch TTL.
        """
        with self._lock:
            session = self._get_unlocked(str(session_id))
            guess = Guess(id=session.guess_count + 1, text=text, result=result)
            session.guesses.append(guess)
            if result.similarity >= 100:
                session.solved = True
            session.close_call = not session.solved and result.similarity >= CLOSE_CALL_THRESHOLD
            return guess

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def sweep_expired(self, now: Optional[float] = None) -> int:
        """
        Delete expired sessions. Returns how many entries were removed.
        """
        now = time.time() if now is None else now
        removed = 0
        with self._lock:
            expired = [k for k, v in self._items.items() if v.expires_at <= now]
            for k in expired:
                del self._items[k]
                removed += 1
        return removed

# picktle/puzzles.py
from __future__ import annotations

import random
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import commentjson

DIFFICULTY_BANDS: Dict[str, range] = {
    "easy": range(1, 4),
    "medium": range(4, 8),
    "hard": range(8, 11),
}


class PuzzleNotFoundError(Exception):
    pass


def difficulty_band(difficulty: int) -> str:
    for name, band in DIFFICULTY_BANDS.items():
        if difficulty in band:
            return name
    raise ValueError(f"Difficulty must be between 1 and 10, got {difficulty}")


@dataclass(frozen=True)
class Puzzle:
    id: int
    title: str
    image_path: str
    target_words: tuple
    difficulty: int
    active: bool = True

    @property
    def band(self) -> str:
        return difficulty_band(self.difficulty)

    def to_public_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "imagePath": self.image_path,
            "difficulty": self.difficulty,
            "targetWords": list(self.target_words),
        }


def _parse_puzzle(raw: Any, index: int) -> Puzzle:
    if not isinstance(raw, dict):
        raise ValueError(f"Puzzle #{index} must be an object")

    for key in ("id", "imagePath", "targetWords", "difficulty"):
        if key not in raw:
            raise ValueError(f"Puzzle #{index} missing key: {key}")

    words = raw["targetWords"]
    if not isinstance(words, list) or not all(isinstance(w, str) and w.strip() for w in words) or not words:
        raise ValueError(f"Puzzle #{index} targetWords must be a non-empty list of words")

    difficulty = int(raw["difficulty"])
    difficulty_band(difficulty)

    return Puzzle(
        id=int(raw["id"]),
        title=str(raw.get("title") or " ".join(words).title()),
        image_path=str(raw["imagePath"]),
        target_words=tuple(w.strip() for w in words),
        difficulty=difficulty,
        active=bool(raw.get("active", True)),
    )


class PuzzleCatalog:
    """
    Read-only set of Picktle puzzles (image + target words + difficulty 1-10).
    """

    def __init__(self, puzzles: List[Puzzle]):
        ids = [p.id for p in puzzles]
        if len(ids) != len(set(ids)):
            raise ValueError("Puzzle ids must be unique")
        self._puzzles = {p.id: p for p in puzzles}

    @classmethod
    def load(cls, path: str | Path) -> "PuzzleCatalog":
        """
        Load puzzles from a JSON-with-comments file holding a top-level
        "puzzles" list. Fails fast if the file or the list is missing.
        """
        cfg_path = Path(path)
        if not cfg_path.exists():
            raise FileNotFoundError(f"Puzzle catalog not found at '{cfg_path}'.")

        with cfg_path.open("r", encoding="utf-8") as f:
            data = commentjson.load(f)

        if not isinstance(data, dict) or not isinstance(data.get("puzzles"), list):
            raise ValueError("Puzzle catalog missing or invalid key: puzzles")

        return cls([_parse_puzzle(raw, i) for i, raw in enumerate(data["puzzles"])])

    def __len__(self) -> int:
        return len(self._puzzles)

    def get(self, puzzle_id: int) -> Puzzle:
        try:
            return self._puzzles[puzzle_id]
        except KeyError:
            raise PuzzleNotFoundError(f"Puzzle not found: {puzzle_id}") from None

    def active_puzzles(self, difficulty: Optional[str] = None) -> List[Puzzle]:
        if difficulty is not None and difficulty not in DIFFICULTY_BANDS:
            raise ValueError(f"Unknown difficulty {difficulty!r}. Known: {list(DIFFICULTY_BANDS)}")
        return [
            p for p in self._puzzles.values()
            if p.active and (difficulty is None or p.band == difficulty)
        ]

    def random_puzzle(self, difficulty: Optional[str] = None, rng: Optional[random.Random] = None) -> Puzzle:
        candidates = self.active_puzzles(difficulty)
        if not candidates:
            raise PuzzleNotFoundError(
                f"No active puzzles for difficulty={difficulty or 'all'}"
            )
        return (rng or random).choice(candidates)

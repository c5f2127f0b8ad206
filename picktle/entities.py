# picktle/entities.py
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# --- Scoring results ---

@dataclass
class WordSimilarity:
    word: str
    similarity: float
    target_word: str

    def to_dict(self) -> Dict[str, Any]:
        return {"word": self.word, "similarity": self.similarity, "targetWord": self.target_word}


def calculate_rank(similarity: float) -> int:
    """Inverse-scaled rank in [1, 1000]; lower is closer."""
    rank = math.floor((1 - similarity / 100) * 1000) + 1
    return max(1, min(1000, rank))


@dataclass
class SimilarityResult:
    similarity: float
    rank: int
    word_similarities: List[WordSimilarity] = field(default_factory=list)
    fallback_used: bool = False

    @classmethod
    def zero(cls, *, fallback_used: bool = False) -> "SimilarityResult":
        return cls(similarity=0, rank=1000, word_similarities=[], fallback_used=fallback_used)

    @classmethod
    def from_word_similarities(
        cls,
        word_similarities: List[WordSimilarity],
        *,
        fallback_used: bool = False,
    ) -> "SimilarityResult":
        """Aggregate per-word scores: mean rounded to 2 decimals, rank from the mean."""
        if not word_similarities:
            return cls.zero(fallback_used=fallback_used)

        overall = sum(w.similarity for w in word_similarities) / len(word_similarities)
        overall = round(max(0.0, min(100.0, overall)), 2)
        return cls(
            similarity=overall,
            rank=calculate_rank(overall),
            word_similarities=list(word_similarities),
            fallback_used=fallback_used,
        )

    @property
    def is_empty(self) -> bool:
        return not self.word_similarities

    def to_dict(self) -> Dict[str, Any]:
        return {
            "similarity": self.similarity,
            "rank": self.rank,
            "wordSimilarities": [w.to_dict() for w in self.word_similarities],
        }


# --- HTTP payloads ---

class WordSimilarityRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    target_words: List[Optional[str]] = Field(alias="targetWords")
    guess_words: Optional[List[Optional[str]]] = Field(default=None, alias="guessWords")
    guess: Optional[str] = None

    def resolved_guess_words(self) -> List[Optional[str]]:
        if self.guess_words is not None:
            return self.guess_words
        return (self.guess or "").strip().lower().split()


class SessionCreateRequest(BaseModel):
    difficulty: Optional[str] = None


class GuessRequest(BaseModel):
    guess: str

"""
Fallback similarity, used when semantic embeddings are unavailable.

Summary:
- Exact (case-insensitive) matches score 100. Every other guess/target pair
  gets a stand-in score in [0, 60) from the configured strategy; the best
  target per guess word is kept.

Strategies (`FALLBACK_REGISTRY`):
- "random": a uniform draw in [0, 60). Default; carries no information about
  the words.
- "lexical": RapidFuzz `fuzz.ratio` of the lower-cased pair, scaled into
  [0, 60). Deterministic, rewards shared characters.

Score range:
- Per-word and aggregate similarity in [0, 100]; rank derived as in the
  embedding path.
"""

from __future__ import annotations

import random
from typing import Callable, Dict, List, Optional, Sequence

from rapidfuzz import fuzz

from picktle.entities import SimilarityResult, WordSimilarity

FALLBACK_CEILING = 60.0

FallbackStrategy = Callable[[str, str, random.Random], float]

FALLBACK_REGISTRY: Dict[str, FallbackStrategy] = {}


def _random_strategy(guess: str, target: str, rng: random.Random) -> float:
    return rng.random() * FALLBACK_CEILING


def _lexical_strategy(guess: str, target: str, rng: random.Random) -> float:
    ratio = fuzz.ratio(guess.lower(), target.lower()) / 100.0
    # Non-identical words never reach the ceiling
    return min(ratio * FALLBACK_CEILING, FALLBACK_CEILING - 0.01)


FALLBACK_REGISTRY["random"] = _random_strategy
FALLBACK_REGISTRY["lexical"] = _lexical_strategy


def get_fallback_strategy(name: str) -> FallbackStrategy:
    try:
        return FALLBACK_REGISTRY[name]
    except KeyError:
        raise ValueError(
            f"Unknown fallback strategy {name!r}. Known: {sorted(FALLBACK_REGISTRY)}"
        ) from None


def fallback_word_similarity(
    target_words: Sequence[str],
    guess_words: Sequence[str],
    *,
    strategy: str | FallbackStrategy = "random",
    rng: Optional[random.Random] = None,
) -> SimilarityResult:
    """Score every guess word against the targets without embeddings.

    Expects already-filtered, non-blank words. Each guess word yields one
    WordSimilarity; an exact match stops the scan for that word.
    """
    score_fn = get_fallback_strategy(strategy) if isinstance(strategy, str) else strategy
    rng = rng or random.Random()

    word_similarities: List[WordSimilarity] = []
    for guess in guess_words:
        best_similarity = 0.0
        best_target = target_words[0] if target_words else ""
        matched = False

        for target in target_words:
            if guess.lower() == target.lower():
                best_target = target
                matched = True
                break

            similarity = score_fn(guess, target, rng)
            if similarity > best_similarity:
                best_similarity = similarity
                best_target = target

        if matched:
            score = 100.0
        else:
            score = min(round(best_similarity, 2), FALLBACK_CEILING - 0.01)
        word_similarities.append(WordSimilarity(word=guess, similarity=score, target_word=best_target))

    return SimilarityResult.from_word_similarities(word_similarities, fallback_used=True)

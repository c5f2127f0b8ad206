"""
Word similarity scoring for the Picktle guessing game.

Summary:
- Every guess word is matched against its closest target word. Exact
  (case-insensitive) matches score 100; the rest are scored by cosine
  similarity of their embeddings, expressed as a percentage.
- The aggregate is the mean of the per-word scores; rank is derived from it
  (1 is best, 1000 is worst).

Degradation:
- Without provider access, or when any embedding fetch fails, the whole
  request is scored by the fallback strategy instead. Mixed results are
  never returned.

Score range:
- Per-word and aggregate similarity in [0, 100], 2 decimals.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Dict, Iterable, List, Optional, Sequence

from picktle.embedding_client import EmbeddingClient, EmbeddingUnavailableError
from picktle.entities import SimilarityResult, WordSimilarity
from picktle.fallback import FallbackStrategy, fallback_word_similarity
from picktle.vectors import cosine_similarity

logger = logging.getLogger("picktle.similarity")


def clean_words(words: Optional[Iterable[Optional[str]]]) -> List[str]:
    """Trim every entry and drop blanks."""
    cleaned: List[str] = []
    for word in words or []:
        if word is None:
            continue
        stripped = str(word).strip()
        if stripped:
            cleaned.append(stripped)
    return cleaned


def is_exact_match(target_words: Sequence[str], guess_words: Sequence[str]) -> bool:
    return len(target_words) == len(guess_words) and all(
        t.lower() == g.lower() for t, g in zip(target_words, guess_words)
    )


class WordSimilarityScorer:
    """
    Composes an EmbeddingClient with the fallback strategy:

        scorer = WordSimilarityScorer(client, fallback_strategy="random")
        result = await scorer.calculate_word_similarity(["hot", "dog"], ["warm", "dog"])
    """

    def __init__(
        self,
        embedding_client: EmbeddingClient,
        *,
        fallback_strategy: str | FallbackStrategy = "random",
        rng: Optional[random.Random] = None,
    ):
        self.embedding_client = embedding_client
        self.fallback_strategy = fallback_strategy
        self._rng = rng or random.Random()

    def _fallback(self, target_words: List[str], guess_words: List[str], reason: str) -> SimilarityResult:
        logger.warning(
            "Using fallback similarity (%s) for targets=%d guesses=%d: %s",
            self.fallback_strategy if isinstance(self.fallback_strategy, str) else "custom",
            len(target_words),
            len(guess_words),
            reason,
        )
        return fallback_word_similarity(
            target_words, guess_words, strategy=self.fallback_strategy, rng=self._rng
        )

    async def _embed_all(self, texts: Iterable[str]) -> Dict[str, List[float]]:
        unique = list(dict.fromkeys(texts))
        vectors = await asyncio.gather(
            *(self.embedding_client.get_embedding(t, strict=True) for t in unique)
        )
        return dict(zip(unique, vectors))

    async def calculate_word_similarity(
        self,
        target_words: Iterable[Optional[str]],
        guess_words: Iterable[Optional[str]],
    ) -> SimilarityResult:
        targets = clean_words(target_words)
        guesses = clean_words(guess_words)

        if not targets or not guesses:
            return SimilarityResult.zero()

        if is_exact_match(targets, guesses):
            return SimilarityResult(
                similarity=100,
                rank=1,
                word_similarities=[
                    WordSimilarity(word=g, similarity=100, target_word=t)
                    for t, g in zip(targets, guesses)
                ],
            )

        if not self.embedding_client.available:
            return self._fallback(targets, guesses, "embedding provider not available")

        # Exact matches never reach the provider
        exact: Dict[int, str] = {}
        for i, guess in enumerate(guesses):
            for target in targets:
                if guess.lower() == target.lower():
                    exact[i] = target
                    break

        unmatched = [g for i, g in enumerate(guesses) if i not in exact]
        vectors: Dict[str, List[float]] = {}
        if unmatched:
            try:
                vectors = await self._embed_all([*targets, *unmatched])
            except EmbeddingUnavailableError as e:
                return self._fallback(targets, guesses, str(e))

        word_similarities: List[WordSimilarity] = []
        for i, guess in enumerate(guesses):
            if i in exact:
                word_similarities.append(WordSimilarity(word=guess, similarity=100, target_word=exact[i]))
                continue

            best_similarity = 0.0
            best_target = targets[0]
            guess_vector = vectors[guess]
            for target in targets:
                similarity = cosine_similarity(guess_vector, vectors[target])
                if similarity > best_similarity:
                    best_similarity = similarity
                    best_target = target

            best_similarity = min(100.0, best_similarity)
            word_similarities.append(
                WordSimilarity(word=guess, similarity=round(best_similarity, 2), target_word=best_target)
            )

        return SimilarityResult.from_word_similarities(word_similarities)

import random

import pytest

from picktle.entities import calculate_rank
from picktle.fallback import FALLBACK_REGISTRY, fallback_word_similarity, get_fallback_strategy


def test_exact_match_scores_100_and_others_stay_below_60():
    result = fallback_word_similarity(["brain", "freeze"], ["Brain", "chill"], rng=random.Random(5))

    brain, chill = result.word_similarities
    assert brain.similarity == 100
    assert brain.target_word == "brain"
    assert 0 <= chill.similarity < 60
    assert result.fallback_used
    assert result.rank == calculate_rank(result.similarity)


def test_random_scores_never_reach_60():
    rng = random.Random(11)
    for _ in range(200):
        result = fallback_word_similarity(["alpha", "beta", "gamma"], ["delta"], rng=rng)
        assert 0 <= result.word_similarities[0].similarity < 60


def test_keeps_best_target_across_targets():
    scores = {"a": 10.0, "b": 42.0, "c": 7.0}

    def by_target(guess, target, rng):
        return scores[target]

    result = fallback_word_similarity(["a", "b", "c"], ["zzz"], strategy=by_target)

    (entry,) = result.word_similarities
    assert entry.similarity == 42.0
    assert entry.target_word == "b"
    assert result.similarity == 42.0


def test_lexical_strategy_is_deterministic_and_bounded():
    first = fallback_word_similarity(["freeze", "brain"], ["freezer"], strategy="lexical")
    second = fallback_word_similarity(["freeze", "brain"], ["freezer"], strategy="lexical")

    assert first.to_dict() == second.to_dict()
    entry = first.word_similarities[0]
    assert entry.target_word == "freeze"
    assert 40 < entry.similarity < 60


def test_lexical_strategy_no_overlap_scores_low():
    result = fallback_word_similarity(["xyz"], ["abc"], strategy="lexical")
    assert result.word_similarities[0].similarity == 0
    assert result.rank == 1000


def test_unknown_strategy_rejected():
    with pytest.raises(ValueError):
        get_fallback_strategy("telepathy")
    assert {"random", "lexical"} <= set(FALLBACK_REGISTRY)

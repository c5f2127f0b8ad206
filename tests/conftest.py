import asyncio
from types import SimpleNamespace

import pytest

from picktle.embedding_cache import EmbeddingCache
from picktle.embedding_client import EmbeddingClient
from picktle.word_similarity import WordSimilarityScorer

DIM = 4

VECTORS = {
    "hot": [1.0, 0.0, 0.0, 0.0],
    "dog": [0.0, 1.0, 0.0, 0.0],
    "warm": [0.9, 0.1, 0.0, 0.0],
    "puppy": [0.1, 0.95, 0.05, 0.0],
    "brain": [0.0, 0.0, 1.0, 0.0],
    "freeze": [0.0, 0.0, 0.0, 1.0],
    "chill": [0.0, 0.0, 0.2, 0.9],
    "banana": [-1.0, -1.0, -1.0, -1.0],
}


class FakeEmbeddingsAPI:
    """Stands in for `AsyncOpenAI().embeddings`, counting every call."""

    def __init__(self, vectors=None, *, fail_on=(), fail_all=False, delay=0.0):
        self.vectors = dict(VECTORS if vectors is None else vectors)
        self.fail_on = set(fail_on)
        self.fail_all = fail_all
        self.delay = delay
        self.calls = []

    async def create(self, *, model, input):
        self.calls.append(input)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_all or input in self.fail_on:
            raise ConnectionError(f"provider unreachable for {input}")
        vector = self.vectors.get(input)
        if vector is None:
            return SimpleNamespace(data=[])
        return SimpleNamespace(data=[SimpleNamespace(embedding=list(vector))])

    def count(self, text):
        return self.calls.count(text)


class FakeOpenAI:
    def __init__(self, embeddings):
        self.embeddings = embeddings


@pytest.fixture
def fake_api():
    return FakeEmbeddingsAPI()


@pytest.fixture
def cache():
    return EmbeddingCache()


def make_client(api, cache=None, **kwargs):
    kwargs.setdefault("dimension", DIM)
    kwargs.setdefault("retries", 1)
    kwargs.setdefault("timeout", 1.0)
    return EmbeddingClient(
        cache=cache if cache is not None else EmbeddingCache(),
        sdk_client=FakeOpenAI(api) if api is not None else None,
        **kwargs,
    )


@pytest.fixture
def client(fake_api, cache):
    return make_client(fake_api, cache)


@pytest.fixture
def scorer(client):
    return WordSimilarityScorer(client)


def run(coro):
    return asyncio.run(coro)

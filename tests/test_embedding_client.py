import asyncio

import pytest

from conftest import DIM, FakeEmbeddingsAPI, make_client, run
from picktle.embedding_client import (
    EmbeddingClient,
    EmbeddingUnavailableError,
    MaxRetryErrorsException,
    call_with_retries_async,
)
from picktle.embedding_cache import EmbeddingCache


def test_cache_hit_skips_provider(client, fake_api, cache):
    first = run(client.get_embedding("hot"))
    second = run(client.get_embedding("hot"))

    assert first == second == [1.0, 0.0, 0.0, 0.0]
    assert fake_api.count("hot") == 1
    assert cache.get("hot") == first


def test_cache_key_is_trimmed_text(client, fake_api, cache):
    run(client.get_embedding("  hot  "))

    assert cache.keys() == ["hot"]
    assert fake_api.calls == ["hot"]


def test_blank_text_gives_zero_vector_without_call(client, fake_api, cache):
    assert run(client.get_embedding("   ")) == [0.0] * DIM
    assert run(client.get_embedding("")) == [0.0] * DIM
    assert fake_api.calls == []
    assert len(cache) == 0


def test_lenient_failure_returns_substitute_vector_uncached():
    api = FakeEmbeddingsAPI(fail_all=True)
    cache = EmbeddingCache()
    client = make_client(api, cache)

    vector = run(client.get_embedding("hot"))

    assert len(vector) == DIM
    assert all(-1.0 <= v < 1.0 for v in vector)
    assert "hot" not in cache


def test_strict_failure_raises():
    client = make_client(FakeEmbeddingsAPI(fail_all=True))

    with pytest.raises(EmbeddingUnavailableError):
        run(client.get_embedding("hot", strict=True))


def test_strict_without_provider_raises():
    client = make_client(None, api_key=None)

    assert not client.available
    with pytest.raises(EmbeddingUnavailableError):
        run(client.get_embedding("hot", strict=True))


def test_retries_until_success():
    api = FakeEmbeddingsAPI(fail_on={"hot"})
    client = make_client(api, retries=3)

    original_create = api.create

    async def flaky_create(*, model, input):
        if len(api.calls) < 2:
            api.calls.append(input)
            raise ConnectionError("reset by peer")
        api.fail_on.clear()
        return await original_create(model=model, input=input)

    api.create = flaky_create
    vector = run(client.get_embedding("hot", strict=True))

    assert vector == [1.0, 0.0, 0.0, 0.0]
    assert api.count("hot") == 3


def test_timeout_counts_as_provider_failure():
    client = make_client(FakeEmbeddingsAPI(delay=0.5), timeout=0.01)

    with pytest.raises(EmbeddingUnavailableError):
        run(client.get_embedding("hot", strict=True))


def test_credential_enables_provider():
    client = EmbeddingClient(cache=EmbeddingCache(), api_key="sk-test", dimension=DIM)
    assert client.available

    disabled = EmbeddingClient(cache=EmbeddingCache(), api_key="sk-test", provider_enabled=False)
    assert not disabled.available

    blank = EmbeddingClient(cache=EmbeddingCache(), api_key="   ")
    assert not blank.available


def test_call_with_retries_raises_after_last_attempt():
    attempts = []
    logged = []

    async def always_fails():
        attempts.append(1)
        raise RuntimeError("boom")

    with pytest.raises(MaxRetryErrorsException) as excinfo:
        asyncio.run(call_with_retries_async(always_fails, retries=2, log=logged.append))

    assert len(attempts) == 2
    assert len(logged) == 2
    assert isinstance(excinfo.value.__cause__, RuntimeError)

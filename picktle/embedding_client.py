import asyncio
import logging
import random
import threading
import time
import traceback
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

from openai import AsyncOpenAI

from picktle.embedding_cache import EmbeddingCache
from picktle.vectors import substitute_vector, zero_vector

logger = logging.getLogger("picktle.embeddings")

T = TypeVar("T")


class MaxRetryErrorsException(Exception):
    pass


class EmbeddingUnavailableError(Exception):
    """The provider could not produce an embedding (config, network, timeout or bad response)."""


class EmbeddingDimensionError(Exception):
    """The provider returned a vector of unexpected dimension."""


# Backoff state shared by every client in the process
_backoff_lock = threading.Lock()
_wait_until = 0.0
_backoff_seconds = 0.25
_BACKOFF_MAX = 2.0


def _is_timeout_error(e: Exception) -> bool:
    if isinstance(e, asyncio.TimeoutError):
        return True
    msg = repr(e)
    return "TimeoutError" in msg or "timed out" in msg.lower()


def _is_rate_limit_error(e: Exception) -> bool:
    if type(e).__name__ == "RateLimitError":
        return True
    msg = str(e)
    return "429" in msg and ("Too Many Requests" in msg or "rate limit" in msg.lower())


def _register_backoff_and_get_delay() -> float:
    global _wait_until, _backoff_seconds

    with _backoff_lock:
        now = time.monotonic()
        base = _backoff_seconds
        delay = random.uniform(base * 0.95, base * 1.35)
        _backoff_seconds = min(_backoff_seconds * 2, _BACKOFF_MAX)
        _wait_until = max(_wait_until, now + delay)
        return delay


def _reset_backoff_on_success() -> None:
    global _backoff_seconds
    with _backoff_lock:
        _backoff_seconds = max(0.25, _backoff_seconds * 0.5)


async def _respect_backoff() -> None:
    while True:
        with _backoff_lock:
            wait = _wait_until - time.monotonic()
        if wait <= 0:
            return
        await asyncio.sleep(min(wait, 0.5))


async def call_with_retries_async(
    fn: Callable[[], Awaitable[T]],
    *,
    retries: int = 2,
    log: Callable[[str], None] | None = None,
) -> T:
    """
    Run an async provider call with shared 429/timeout backoff + retries.
    """
    last_exception: Exception | None = None

    for attempt in range(retries):
        await _respect_backoff()
        start_time = time.time()
        try:
            result = await fn()
            _reset_backoff_on_success()
            return result
        except Exception as e:
            elapsed = time.time() - start_time
            last_exception = e

            if _is_rate_limit_error(e) or _is_timeout_error(e):
                delay = _register_backoff_and_get_delay()
                msg = f"Attempt {attempt+1} got 429/timeout, backing off ~{delay:.2f}s."
            else:
                msg = f"Attempt {attempt+1} failed."

            if log:
                log(f"{msg} (elapsed={elapsed:.2f}s): {e}")

    raise MaxRetryErrorsException(f"All {retries} retry attempts failed.") from last_exception


class EmbeddingClient:
    """
    Text-embedding wrapper around the OpenAI async SDK:

        vector = await client.get_embedding("brain")

    - Vectors are memoized in the injected EmbeddingCache.
    - `available` is the explicit capability flag: provider access enabled
      AND a non-empty credential (or an injected SDK client).
    - Each provider call is bounded by `timeout` seconds.
    """

    def __init__(
        self,
        *,
        cache: EmbeddingCache,
        model_name: str = "text-embedding-3-small",
        dimension: int = 1536,
        api_key: str | None = None,
        provider_enabled: bool = True,
        timeout: float = 5.0,
        retries: int = 2,
        sdk_client: Any = None,
        rng: random.Random | None = None,
    ):
        self.cache = cache
        self.model_name = model_name
        self.dimension = dimension
        self._timeout = timeout
        self._retries = retries
        self._rng = rng or random.Random()

        if not provider_enabled:
            self._client = None
        elif sdk_client is not None:
            self._client = sdk_client
        elif api_key and api_key.strip():
            client_kwargs: Dict[str, Any] = {"api_key": api_key, "max_retries": 0, "timeout": timeout}
            self._client = AsyncOpenAI(**client_kwargs)
        else:
            self._client = None

    @property
    def available(self) -> bool:
        return self._client is not None

    async def _create_once(self, text: str) -> List[float]:
        """
        Single HTTP call without retries/backoff.
        """
        resp = await asyncio.wait_for(
            self._client.embeddings.create(model=self.model_name, input=text),
            timeout=self._timeout,
        )
        data = getattr(resp, "data", None) or []
        embedding = getattr(data[0], "embedding", None) if data else None
        if not embedding:
            raise EmbeddingUnavailableError("No embedding returned from provider")
        return list(embedding)

    async def fetch(self, text: str) -> List[float]:
        """
        Provider call with retries. Raises EmbeddingUnavailableError on any
        provider failure and EmbeddingDimensionError on a contract violation.
        """
        if not self.available:
            raise EmbeddingUnavailableError("Embedding provider is not configured")

        try:
            vector = await call_with_retries_async(
                lambda: self._create_once(text),
                retries=self._retries,
                log=lambda msg: logger.warning(f"[EMBEDDING-RETRY] {msg}"),
            )
        except MaxRetryErrorsException as e:
            raise EmbeddingUnavailableError(f"Failed to get embedding for {text!r}") from e

        if len(vector) != self.dimension:
            raise EmbeddingDimensionError(
                f"Model {self.model_name} returned {len(vector)} dimensions, expected {self.dimension}"
            )
        return vector

    async def get_embedding(self, text: str, *, strict: bool = False) -> List[float]:
        """
        Embedding for `text` (trimmed), served from cache when possible.

        Blank text yields a zero vector. On provider failure, strict callers
        get EmbeddingUnavailableError; lenient callers get an uncached
        substitute vector of the expected dimension.
        """
        key = (text or "").strip()
        if not key:
            return zero_vector(self.dimension)

        cached = self.cache.get(key)
        if cached is not None:
            return cached

        logger.debug("Embedding cache miss for %r", key)
        try:
            vector = await self.fetch(key)
        except EmbeddingDimensionError:
            raise
        except Exception as e:
            if strict:
                if isinstance(e, EmbeddingUnavailableError):
                    raise
                raise EmbeddingUnavailableError(f"Failed to get embedding for {key!r}") from e
            logger.warning(
                "Embedding unavailable for %r, substituting a random vector: %s\n%s",
                key,
                e,
                traceback.format_exc(),
            )
            return substitute_vector(self.dimension, self._rng)

        self.cache.put(key, vector)
        return vector

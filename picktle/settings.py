# picktle/settings.py
import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()

DEFAULT_PUZZLES_PATH = str(Path(__file__).resolve().parent.parent / "data" / "puzzles.jsonc")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e


class Settings:
    """
    Environment-backed configuration, read once by the composition root.

    Every attribute can be overridden through the constructor so tests never
    depend on the process environment.
    """

    def __init__(
        self,
        *,
        openai_api_key: Optional[str] = None,
        embedding_provider_enabled: Optional[bool] = None,
        embedding_model: Optional[str] = None,
        embedding_dimension: Optional[int] = None,
        embedding_timeout_seconds: Optional[float] = None,
        embedding_retries: Optional[int] = None,
        fallback_strategy: Optional[str] = None,
        puzzles_path: Optional[str] = None,
        game_session_ttl_seconds: Optional[int] = None,
        cors_allow_origins: Optional[List[str]] = None,
        log_level: Optional[str] = None,
    ) -> None:
        # ---- embedding provider ----
        self.OPENAI_API_KEY = (
            openai_api_key if openai_api_key is not None else os.getenv("OPENAI_API_KEY", "")
        )
        self.EMBEDDING_PROVIDER_ENABLED = (
            embedding_provider_enabled
            if embedding_provider_enabled is not None
            else _env_bool("EMBEDDING_PROVIDER_ENABLED", True)
        )
        self.EMBEDDING_MODEL = embedding_model or os.getenv("EMBEDDING_MODEL", "text-embedding-3-small")
        self.EMBEDDING_DIMENSION = (
            embedding_dimension if embedding_dimension is not None else _env_int("EMBEDDING_DIMENSION", 1536)
        )
        self.EMBEDDING_TIMEOUT_SECONDS = (
            embedding_timeout_seconds
            if embedding_timeout_seconds is not None
            else _env_float("EMBEDDING_TIMEOUT_SECONDS", 5.0)
        )
        self.EMBEDDING_RETRIES = (
            embedding_retries if embedding_retries is not None else _env_int("EMBEDDING_RETRIES", 2)
        )

        # ---- scoring / game ----
        self.FALLBACK_STRATEGY = fallback_strategy or os.getenv("FALLBACK_STRATEGY", "random")
        self.PUZZLES_PATH = puzzles_path or os.getenv("PUZZLES_PATH", DEFAULT_PUZZLES_PATH)
        self.GAME_SESSION_TTL_SECONDS = (
            game_session_ttl_seconds
            if game_session_ttl_seconds is not None
            else _env_int("GAME_SESSION_TTL_SECONDS", 24 * 3600)
        )

        # ---- server ----
        if cors_allow_origins is None:
            raw = os.getenv("CORS_ALLOW_ORIGINS", "*")
            cors_allow_origins = [o.strip() for o in raw.split(",") if o.strip()]
        self.CORS_ALLOW_ORIGINS = cors_allow_origins
        self.LOG_LEVEL = (log_level or os.getenv("LOG_LEVEL", "INFO")).upper()

        if self.EMBEDDING_DIMENSION <= 0:
            raise ValueError("EMBEDDING_DIMENSION must be positive")
        if self.EMBEDDING_RETRIES < 1:
            raise ValueError("EMBEDDING_RETRIES must be at least 1")
        if self.EMBEDDING_TIMEOUT_SECONDS <= 0:
            raise ValueError("EMBEDDING_TIMEOUT_SECONDS must be positive")

    @property
    def has_embedding_access(self) -> bool:
        return bool(self.EMBEDDING_PROVIDER_ENABLED and (self.OPENAI_API_KEY or "").strip())

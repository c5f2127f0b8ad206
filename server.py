import logging
import random
import traceback
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from picktle.embedding_cache import EmbeddingCache
from picktle.embedding_client import EmbeddingClient
from picktle.entities import GuessRequest, SessionCreateRequest, SimilarityResult, WordSimilarityRequest
from picktle.fallback import get_fallback_strategy
from picktle.game_sessions import GameSessionNotFoundError, GameSessionStore
from picktle.proximity import get_proximity_color, get_proximity_label
from picktle.puzzles import PuzzleCatalog, PuzzleNotFoundError
from picktle.settings import Settings
from picktle.word_similarity import WordSimilarityScorer, clean_words

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
logger = logging.getLogger("picktle")


def similarity_payload(result: SimilarityResult) -> Dict[str, Any]:
    payload = result.to_dict()
    if result.is_empty:
        payload["rank"] = "Very Low"
    payload["proximity"] = get_proximity_label(result.similarity)
    return payload


def build_scorer(settings: Settings, cache: Optional[EmbeddingCache] = None, sdk_client: Any = None) -> WordSimilarityScorer:
    get_fallback_strategy(settings.FALLBACK_STRATEGY)  # fail fast on a bad name
    client = EmbeddingClient(
        cache=cache if cache is not None else EmbeddingCache(),
        model_name=settings.EMBEDDING_MODEL,
        dimension=settings.EMBEDDING_DIMENSION,
        api_key=settings.OPENAI_API_KEY,
        provider_enabled=settings.EMBEDDING_PROVIDER_ENABLED,
        timeout=settings.EMBEDDING_TIMEOUT_SECONDS,
        retries=settings.EMBEDDING_RETRIES,
        sdk_client=sdk_client,
    )
    return WordSimilarityScorer(client, fallback_strategy=settings.FALLBACK_STRATEGY)


def create_app(
    settings: Optional[Settings] = None,
    *,
    scorer: Optional[WordSimilarityScorer] = None,
    catalog: Optional[PuzzleCatalog] = None,
    sessions: Optional[GameSessionStore] = None,
    rng: Optional[random.Random] = None,
) -> FastAPI:
    settings = settings or Settings()
    logging.getLogger("picktle").setLevel(settings.LOG_LEVEL)

    scorer = scorer or build_scorer(settings)
    catalog = catalog or PuzzleCatalog.load(settings.PUZZLES_PATH)
    sessions = sessions or GameSessionStore(ttl_seconds=settings.GAME_SESSION_TTL_SECONDS)
    rng = rng or random.Random()

    app = FastAPI(title="Picktle")
    app.state.settings = settings
    app.state.scorer = scorer
    app.state.catalog = catalog
    app.state.sessions = sessions

    # CORS configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ALLOW_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    logger.info(
        "Picktle ready: embeddings=%s model=%s fallback=%s puzzles=%d",
        "on" if scorer.embedding_client.available else "off",
        settings.EMBEDDING_MODEL,
        settings.FALLBACK_STRATEGY,
        len(catalog),
    )

    @app.exception_handler(RequestValidationError)
    async def _bad_request(request: Request, exc: RequestValidationError):
        fields = [".".join(str(p) for p in err.get("loc", ())[1:]) for err in exc.errors()]
        return JSONResponse(
            status_code=400,
            content={"error": f"Invalid request: {', '.join(f for f in fields if f) or 'body'}"},
        )

    @app.exception_handler(PuzzleNotFoundError)
    async def _puzzle_not_found(request: Request, exc: PuzzleNotFoundError):
        return JSONResponse(status_code=404, content={"error": str(exc)})

    @app.exception_handler(GameSessionNotFoundError)
    async def _session_not_found(request: Request, exc: GameSessionNotFoundError):
        return JSONResponse(status_code=404, content={"error": str(exc)})

    @app.get("/health")
    async def health():
        return {
            "status": "ok",
            "embeddingsAvailable": scorer.embedding_client.available,
            "cachedEmbeddings": len(scorer.embedding_client.cache),
        }

    @app.post("/api/word-similarity")
    async def word_similarity(body: WordSimilarityRequest):
        try:
            result = await scorer.calculate_word_similarity(body.target_words, body.resolved_guess_words())
        except Exception as e:
            logger.error("Error calculating word similarity: %s\n%s", e, traceback.format_exc())
            return JSONResponse(status_code=500, content={"error": "Failed to calculate similarity"})
        return similarity_payload(result)

    @app.get("/api/proximity")
    async def proximity(similarity: float):
        return {"label": get_proximity_label(similarity), "color": get_proximity_color(similarity)}

    @app.get("/api/game/random-puzzle")
    async def random_puzzle(difficulty: Optional[str] = None):
        try:
            puzzle = catalog.random_puzzle(difficulty, rng=rng)
        except ValueError as e:
            return JSONResponse(status_code=400, content={"error": str(e)})
        return puzzle.to_public_dict()

    @app.post("/api/picktle/sessions")
    async def create_session(body: Optional[SessionCreateRequest] = None):
        removed = sessions.sweep_expired()
        if removed:
            logger.debug("GameSessionStore sweep: removed %d expired sessions", removed)

        difficulty = body.difficulty if body else None
        try:
            puzzle = catalog.random_puzzle(difficulty, rng=rng)
        except ValueError as e:
            return JSONResponse(status_code=400, content={"error": str(e)})
        return sessions.create(puzzle).to_dict()

    @app.get("/api/picktle/sessions/{session_id}")
    async def get_session(session_id: str):
        return sessions.get(session_id).to_dict()

    @app.post("/api/picktle/sessions/{session_id}/guesses")
    async def submit_guess(session_id: str, body: GuessRequest):
        session = sessions.get(session_id)
        words = clean_words(body.guess.lower().split())
        if not words:
            return JSONResponse(status_code=400, content={"error": "Guess must contain at least one word"})

        try:
            result = await scorer.calculate_word_similarity(session.puzzle.target_words, words)
        except Exception as e:
            logger.error("Error scoring guess for session %s: %s\n%s", session_id, e, traceback.format_exc())
            return JSONResponse(status_code=500, content={"error": "Failed to calculate similarity"})

        guess = sessions.record_guess(session_id, " ".join(words), result)
        state = sessions.get(session_id).to_dict()
        state["latestGuess"] = guess.to_dict()
        return state

    return app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(create_app(), host="0.0.0.0", port=8000)

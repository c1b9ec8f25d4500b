import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime
from functools import lru_cache

from typing import Annotated

from fastapi import Depends, FastAPI, HTTPException, Query
from pydantic import BaseModel, Field

from cadence.application.config import resolve_config
from cadence.application.display import describe_state
from cadence.application.elo import (
    calculate_dynamic_k_factor,
    get_elo_category,
    update_elo,
)
from cadence.application.review_service import ReviewService
from cadence.consts import VERSION
from cadence.domain.exceptions import ProgressNotFoundError, StoreError
from cadence.domain.models import ProgressKey, ProgressRecord, ReviewResult

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("cadence.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"Cadence Server v{VERSION} starting up...")
    yield
    # Shutdown
    logger.info("Cadence Server shutting down...")


app = FastAPI(
    title="Cadence Server",
    description="Spaced-repetition review scheduling API.",
    version=VERSION,
    lifespan=lifespan,
)

start_time = time.time()


@lru_cache(maxsize=1)
def get_review_service() -> ReviewService:
    """
    Shared ReviewService built from the resolved configuration.

    Cached so the memory backend keeps its records between requests.
    """
    from cadence.application.factory import get_review_service as build_service

    return build_service(resolve_config())


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


class ProgressRequest(BaseModel):
    user_id: str
    item_id: str
    card_index: int = Field(default=0, ge=0)
    algorithm: str | None = None  # FSRS, SM-2, Leitner; unknown tags fall back to FSRS


class ReviewRequest(BaseModel):
    user_id: str
    item_id: str
    card_index: int = Field(default=0, ge=0)
    confidence: int = Field(ge=1, le=5)
    correct: bool
    time_spent: float = Field(default=0.0, ge=0)


class AlgorithmRequest(BaseModel):
    algorithm: str


class FsrsStateResponse(BaseModel):
    stability: float
    difficulty: float
    last_review: datetime
    reps: int
    lapses: int
    state: int


class ProgressResponse(BaseModel):
    id: str
    user_id: str
    item_id: str
    card_index: int
    algorithm: str
    interval: int
    ease_factor: float
    repetition_count: int
    due_date: datetime | None
    last_studied: datetime | None
    leitner_box: int | None
    fsrs_state: FsrsStateResponse | None
    mastery_level: float
    study_sessions: int
    elo_rating: float
    elo_level: str
    elo_color: str
    summary: dict


class EloRequest(BaseModel):
    rating: float = Field(ge=0, le=3000)
    confidence: int = Field(ge=1, le=5)
    correct: bool
    k_factor: float | None = Field(default=None, gt=0)
    dynamic: bool = False


class EloResponse(BaseModel):
    rating: int
    k_factor: float
    level: str
    color: str


def _to_response(record: ProgressRecord) -> ProgressResponse:
    state = record.state
    fsrs = state.fsrs_state
    category = get_elo_category(record.elo.rating)
    return ProgressResponse(
        id=record.id,
        user_id=record.user_id,
        item_id=record.item_id,
        card_index=record.card_index,
        algorithm=record.algorithm.value,
        interval=state.interval,
        ease_factor=state.ease_factor,
        repetition_count=state.repetition_count,
        due_date=state.due_date,
        last_studied=state.last_studied,
        leitner_box=state.leitner_box,
        fsrs_state=(
            FsrsStateResponse(
                stability=fsrs.stability,
                difficulty=fsrs.difficulty,
                last_review=fsrs.last_review,
                reps=fsrs.reps,
                lapses=fsrs.lapses,
                state=int(fsrs.state),
            )
            if fsrs is not None
            else None
        ),
        mastery_level=record.mastery_level,
        study_sessions=record.study_sessions,
        elo_rating=record.elo.rating,
        elo_level=category.level,
        elo_color=category.color,
        summary=describe_state(state, record.algorithm),
    )


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Simple health check to verify server is reachable.
    """
    return HealthResponse(status="ok", version=VERSION, uptime_seconds=time.time() - start_time)


@app.get("/version")
async def get_version():
    return {"version": VERSION}


@app.post("/progress", response_model=ProgressResponse)
async def start_tracking(
    req: ProgressRequest, service: ReviewService = Depends(get_review_service)
):
    """Start scheduling an item (no-op if it is already tracked)."""
    key = ProgressKey(req.user_id, req.item_id, req.card_index)
    try:
        record = await service.start_tracking(key, req.algorithm)
    except StoreError as e:
        logger.error(f"Start tracking failed: {e}")
        raise HTTPException(status_code=500, detail=str(e)) from e
    return _to_response(record)


@app.get("/progress/{user_id}/{item_id}/{card_index}", response_model=ProgressResponse)
async def get_progress(
    user_id: str,
    item_id: str,
    card_index: int,
    service: ReviewService = Depends(get_review_service),
):
    try:
        record = await service.get_progress(ProgressKey(user_id, item_id, card_index))
    except ProgressNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except StoreError as e:
        raise HTTPException(status_code=500, detail=str(e)) from e
    return _to_response(record)


@app.post("/review", response_model=ProgressResponse)
async def record_review(
    req: ReviewRequest, service: ReviewService = Depends(get_review_service)
):
    """
    Record a review event and return the rescheduled progress.
    """
    key = ProgressKey(req.user_id, req.item_id, req.card_index)
    result = ReviewResult(
        confidence=req.confidence, correct=req.correct, time_spent=req.time_spent
    )
    try:
        record = await service.record_review(key, result)
    except StoreError as e:
        logger.error(f"Review failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e)) from e
    return _to_response(record)


@app.post(
    "/progress/{user_id}/{item_id}/{card_index}/algorithm",
    response_model=ProgressResponse,
)
async def switch_algorithm(
    user_id: str,
    item_id: str,
    card_index: int,
    req: AlgorithmRequest,
    service: ReviewService = Depends(get_review_service),
):
    key = ProgressKey(user_id, item_id, card_index)
    try:
        record = await service.switch_algorithm(key, req.algorithm)
    except ProgressNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except StoreError as e:
        raise HTTPException(status_code=500, detail=str(e)) from e
    return _to_response(record)


@app.get("/users/{user_id}/due", response_model=list[ProgressResponse])
async def get_due(
    user_id: str,
    limit: Annotated[int | None, Query(ge=1)] = None,
    service: ReviewService = Depends(get_review_service),
):
    try:
        records = await service.get_due(user_id, limit=limit)
    except StoreError as e:
        raise HTTPException(status_code=500, detail=str(e)) from e
    return [_to_response(r) for r in records]


@app.get("/users/{user_id}/next", response_model=ProgressResponse)
async def get_next(user_id: str, service: ReviewService = Depends(get_review_service)):
    try:
        record = await service.next_review(user_id)
    except StoreError as e:
        raise HTTPException(status_code=500, detail=str(e)) from e
    if record is None:
        raise HTTPException(status_code=404, detail=f"No items scheduled for {user_id}")
    return _to_response(record)


@app.post("/elo", response_model=EloResponse)
async def compute_elo(req: EloRequest):
    """
    Stateless ELO update for a single review.
    """
    config = resolve_config()
    k = req.k_factor if req.k_factor is not None else config.elo_k_factor
    if req.dynamic:
        k = calculate_dynamic_k_factor(req.rating, k)

    rating = update_elo(req.rating, req.confidence, req.correct, k)
    category = get_elo_category(rating)
    return EloResponse(rating=rating, k_factor=k, level=category.level, color=category.color)

"""
Student Feedback API - FastAPI backend for the rating form.

Provides REST endpoints for:
- Submitting and listing ratings
- Changing the sort preference
- Exporting Feedback.csv
- Resetting all data
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.responses import Response
from pydantic import BaseModel, Field

from src.config import API_HOST, API_PORT, DEBUG, FEEDBACK_BACKEND, FEEDBACK_STORE_PATH, LOG_LEVEL
from src.feedback import errors
from src.feedback.export import EXPORT_FILENAME, EXPORT_MEDIA_TYPE
from src.feedback.gateway import create_gateway
from src.feedback.models import DEFAULT_RATING, MAX_RATING, MIN_RATING, FeedbackRecord, SortMode
from src.feedback.store import ResponseStore


logger = logging.getLogger(__name__)


# =============================================================================
# Pydantic Models for Request/Response
# =============================================================================

class SubmitRequest(BaseModel):
    """Request body for submitting a rating."""
    student_id: str = Field(..., description="Student identifier", min_length=1, max_length=200)
    rating: int = Field(default=DEFAULT_RATING, description="Star rating", ge=MIN_RATING, le=MAX_RATING)

    class Config:
        json_schema_extra = {
            "example": {
                "student_id": "student12",
                "rating": 4,
            }
        }


class RecordInfo(BaseModel):
    """A stored response."""
    id: str
    student_id: str
    rating: int
    timestamp: datetime


class ResponseList(BaseModel):
    """Responses in display order."""
    sort_mode: SortMode
    count: int
    responses: list[RecordInfo]


class SortPreference(BaseModel):
    """Stored sort preference."""
    sort_mode: SortMode


class ResetResponse(BaseModel):
    deleted: int


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    backend: str
    count: int


class StatsResponse(BaseModel):
    """Statistics response."""
    total: int
    by_rating: dict[int, int]
    average: Optional[float]


# =============================================================================
# Application Setup
# =============================================================================

app = FastAPI(
    title="Student Feedback API",
    description="""
    Collect a 1-5 star rating per student, list the ratings sorted by
    student id or by rating, and download them as Feedback.csv.
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.state.store = None


@app.on_event("startup")
async def startup_event():
    """Open the configured store unless one was injected."""
    if app.state.store is not None:
        return

    logger.info(f"Opening {FEEDBACK_BACKEND} feedback store at {FEEDBACK_STORE_PATH}")
    try:
        store = ResponseStore(create_gateway(FEEDBACK_BACKEND, FEEDBACK_STORE_PATH))
        store.initialize()
    except (errors.PersistenceError, ValueError) as e:
        logger.error(f"Failed to initialize feedback store: {e}")
        return
    app.state.store = store


# =============================================================================
# Helper Functions
# =============================================================================

def get_store(request: Request) -> ResponseStore:
    """Get the store instance or raise an error."""
    store = request.app.state.store
    if store is None:
        raise HTTPException(
            status_code=503,
            detail="Feedback store not initialized. Check server logs.",
        )
    return store


def record_to_info(record: FeedbackRecord) -> RecordInfo:
    return RecordInfo(
        id=record.id,
        student_id=record.student_id,
        rating=record.rating,
        timestamp=record.timestamp,
    )


# =============================================================================
# API Endpoints
# =============================================================================

@app.get("/", tags=["Info"])
async def root():
    """Root endpoint with API information."""
    return {
        "name": "Student Feedback API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
    }


@app.get("/health", response_model=HealthResponse, tags=["Info"])
async def health_check(request: Request):
    """Check the health of the API and its store."""
    store = get_store(request)
    return HealthResponse(
        status="healthy",
        backend=type(store.gateway).__name__,
        count=store.count(),
    )


@app.get("/stats", response_model=StatsResponse, tags=["Info"])
async def get_stats(request: Request):
    """Get rating statistics."""
    return StatsResponse(**get_store(request).stats())


@app.get("/responses", response_model=ResponseList, tags=["Responses"])
async def list_responses(
    request: Request,
    sort: Optional[SortMode] = Query(default=None, description="Override the stored sort mode"),
):
    """List responses in display order."""
    store = get_store(request)
    mode = sort or store.sort_mode
    records = store.sorted_records(mode)
    return ResponseList(
        sort_mode=mode,
        count=len(records),
        responses=[record_to_info(r) for r in records],
    )


@app.post("/responses", response_model=RecordInfo, tags=["Responses"])
async def submit_response(request: Request, body: SubmitRequest):
    """
    Save a rating for a student.

    A second submission for the same student replaces their rating.
    """
    store = get_store(request)
    try:
        record = store.upsert(body.student_id, body.rating)
    except errors.ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except errors.PersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return record_to_info(record)


@app.delete("/responses", response_model=ResetResponse, tags=["Responses"])
async def reset_responses(request: Request):
    """Delete every saved response. Not reversible."""
    store = get_store(request)
    try:
        deleted = store.clear_all()
    except errors.PersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return ResetResponse(deleted=deleted)


@app.get("/preferences", response_model=SortPreference, tags=["Preferences"])
async def get_preferences(request: Request):
    """Get the stored sort preference."""
    return SortPreference(sort_mode=get_store(request).sort_mode)


@app.put("/preferences", response_model=SortPreference, tags=["Preferences"])
async def update_preferences(request: Request, body: SortPreference):
    """Change the stored sort preference."""
    store = get_store(request)
    try:
        mode = store.set_sort_mode(body.sort_mode)
    except errors.PersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return SortPreference(sort_mode=mode)


@app.get("/export", tags=["Export"])
async def export_csv(request: Request):
    """Download all responses as Feedback.csv in the stored sort order."""
    store = get_store(request)
    try:
        content = store.export_csv()
    except errors.EmptyInputError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return Response(
        content=content,
        media_type=EXPORT_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
    )


# =============================================================================
# Run with Uvicorn
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print(f"Starting Student Feedback API on {API_HOST}:{API_PORT}")
    print(f"Documentation: http://localhost:{API_PORT}/docs")

    uvicorn.run(
        "src.api.main:app",
        host=API_HOST,
        port=API_PORT,
        reload=DEBUG,
    )

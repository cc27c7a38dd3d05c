"""
FastAPI Server for Ski Live Timing.

Exposes decoded live timing data over HTTP for the leaderboard frontend.

Run:
    uvicorn server:app --reload --port 8000

Endpoints:
    GET  /health              - Health check
    GET  /race/{race_id}      - Fetch and decode a live-timing.com race
    POST /decode              - Decode feed text supplied in the request body

Example:
    curl http://localhost:8000/race/299423
"""

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, field_validator
from typing import Optional, Union
import os
import re

from dotenv import load_dotenv
load_dotenv()

from core.feed_service import FeedDecodingService
from core.logging import get_logger
from core.models import RacerRecord
from core.race_feed import RaceFeedPipeline

logger = get_logger(__name__)

app = FastAPI(
    title="Ski Live Timing",
    description="Decoded two-run ski race results from live-timing.com",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Initialize once
pipeline = RaceFeedPipeline()
decoder = FeedDecodingService()


# =============================================================================
# MODELS
# =============================================================================

RACE_ID_PATTERN = re.compile(r'^\d+$')
MAX_FEED_CHARS = 5_000_000


class DecodeRequest(BaseModel):
    feed: str = ""  # Empty feed decodes to an empty race

    @field_validator('feed')
    @classmethod
    def feed_size_valid(cls, v: str) -> str:
        if len(v) > MAX_FEED_CHARS:
            raise ValueError(f'Feed must be at most {MAX_FEED_CHARS} characters')
        return v


class RacerResponse(BaseModel):
    id: int
    bib_number: int
    name: str
    club: str
    race_class: str
    run1_time: Union[float, str, None] = None  # ms, "on course", or None
    run2_time: Union[float, str, None] = None
    total_time: Optional[float] = None
    timestamp: Optional[int] = None  # epoch ms, last update for this bib
    run1_status: str = ""  # "DNS", "DNF", "DSQ", "on course" or ""
    run2_status: str = ""
    raw_r1: str = ""
    raw_r2: str = ""


class RaceResponse(BaseModel):
    race_id: Optional[str] = None
    race_name: str
    status: str
    message: str
    dialect: Optional[str] = None
    racers: list[RacerResponse] = []
    raw_sample: str = ""  # First 1000 chars of the feed, for debugging


def to_racer_response(racer: RacerRecord) -> RacerResponse:
    data = racer.to_dict()
    return RacerResponse(
        id=data["id"],
        bib_number=data["bib_number"],
        name=data["name"],
        club=data["club"],
        race_class=data["class"],
        run1_time=data["run1_time"],
        run2_time=data["run2_time"],
        total_time=data["total_time"],
        timestamp=data["timestamp"],
        run1_status=data["run1_status"],
        run2_status=data["run2_status"],
        raw_r1=data["raw_r1"],
        raw_r2=data["raw_r2"],
    )


# =============================================================================
# ENDPOINTS
# =============================================================================

@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok", "service": "ski-live-timing"}


def validate_race_id(race_id: str) -> None:
    """Validate race id format, raise HTTPException if invalid."""
    if not RACE_ID_PATTERN.match(race_id):
        raise HTTPException(
            status_code=400,
            detail="Race id must be numeric (e.g., 299423)"
        )


@app.get("/race/{race_id}", response_model=RaceResponse)
def get_race(race_id: str):
    """
    Fetch and decode one snapshot of a race.

    Transport problems are reported in the response status
    ("timeout", "api_error"), not as HTTP errors, so the frontend can keep
    polling.
    """
    validate_race_id(race_id)
    try:
        result = pipeline.get_race(race_id)
        return RaceResponse(
            race_id=result.race_id,
            race_name=result.race_name,
            status=result.status.value,
            message=result.message,
            dialect=result.dialect,
            racers=[to_racer_response(r) for r in result.racers],
            raw_sample=result.raw_sample,
        )
    except Exception as e:
        logger.exception(f"Unexpected error loading race {race_id}")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/decode", response_model=RaceResponse)
def decode(req: DecodeRequest):
    """Decode feed text without fetching anything."""
    snapshot = decoder.decode(req.feed)
    return RaceResponse(
        race_name=snapshot.race_name,
        status="ok" if snapshot.racers else "no_racers",
        message=f"Found {snapshot.racer_count} unique racers",
        dialect=snapshot.dialect,
        racers=[to_racer_response(r) for r in snapshot.racers],
    )


if __name__ == "__main__":
    import uvicorn
    port = int(os.environ.get("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)

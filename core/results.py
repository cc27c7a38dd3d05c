"""
Race feed results and error handling.

Wraps one fetch-and-decode attempt in a structured result, so callers get
a clear reason when no racers are available instead of an exception.

Usage:
    from core.results import RaceFeedResult, FeedStatus

    result = RaceFeedResult.success(race_id="299423", snapshot=snapshot)
    result = RaceFeedResult.timeout(race_id="299423")

    if result.ok:
        print(f"{result.race_name}: {len(result.racers)} racers")
    else:
        print(f"Skipped: {result.message}")
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from core.models import RaceSnapshot, RacerRecord


class FeedStatus(Enum):
    """Outcome of fetching and decoding a race feed."""

    OK = "ok"  # Racers decoded
    NO_RACERS = "no_racers"  # Feed fetched but neither dialect found racers
    TIMEOUT = "timeout"  # Feed did not answer in time
    API_ERROR = "api_error"  # HTTP or connection failure


# User-friendly messages for each status
STATUS_MESSAGES = {
    FeedStatus.OK: "Race data loaded",
    FeedStatus.NO_RACERS: "No racers found in the data",
    FeedStatus.TIMEOUT: "Live timing did not respond in time",
    FeedStatus.API_ERROR: "Error fetching data from live timing",
}

# Race names reported when nothing could be fetched
TIMEOUT_RACE_NAME = "Fetch Timeout"
ERROR_RACE_NAME = "Error Loading Race"

RAW_SAMPLE_LENGTH = 1000


@dataclass
class RaceFeedResult:
    """
    Result of fetching and decoding one race feed snapshot.
    """

    race_id: str
    status: FeedStatus
    message: str
    race_name: str
    racers: tuple[RacerRecord, ...] = ()
    dialect: Optional[str] = None

    # First part of the raw payload, for troubleshooting
    raw_sample: str = ""
    timestamp: datetime = field(default_factory=datetime.now)
    details: dict = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """True if at least one racer was decoded."""
        return self.status == FeedStatus.OK

    @classmethod
    def from_snapshot(
        cls,
        race_id: str,
        snapshot: RaceSnapshot,
        raw_text: str = "",
    ) -> "RaceFeedResult":
        """Create a result from a decoded snapshot (OK or NO_RACERS)."""
        status = FeedStatus.OK if snapshot.racers else FeedStatus.NO_RACERS
        message = STATUS_MESSAGES[status]
        if snapshot.racers:
            message = f"Found {snapshot.racer_count} unique racers"
        return cls(
            race_id=race_id,
            status=status,
            message=message,
            race_name=snapshot.race_name,
            racers=snapshot.racers,
            dialect=snapshot.dialect,
            raw_sample=raw_text[:RAW_SAMPLE_LENGTH],
        )

    @classmethod
    def timeout(cls, race_id: str, **details) -> "RaceFeedResult":
        """Create result when the fetch timed out."""
        return cls(
            race_id=race_id,
            status=FeedStatus.TIMEOUT,
            message=STATUS_MESSAGES[FeedStatus.TIMEOUT],
            race_name=TIMEOUT_RACE_NAME,
            details=details,
        )

    @classmethod
    def api_error(
        cls,
        race_id: str,
        error: str,
        status_code: int = 0,
        **details,
    ) -> "RaceFeedResult":
        """Create result for transport errors."""
        return cls(
            race_id=race_id,
            status=FeedStatus.API_ERROR,
            message=f"API error: {error}",
            race_name=ERROR_RACE_NAME,
            details={"error": error, "status_code": status_code, **details},
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "race_id": self.race_id,
            "ok": self.ok,
            "status": self.status.value,
            "message": self.message,
            "race_name": self.race_name,
            "dialect": self.dialect,
            "racer_count": len(self.racers),
            "racers": [r.to_dict() for r in self.racers],
            "raw_sample": self.raw_sample,
            "timestamp": self.timestamp.isoformat(),
            "details": self.details,
        }

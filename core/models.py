"""
Racer records decoded from the live timing feed.

RawRecord is one record exactly as a decoder read it; RacerRecord is the
reconciled competitor after all same-bib records in a snapshot are merged;
RaceSnapshot is what a decode call returns.
"""

from dataclasses import dataclass, field
from typing import Optional

from core.durations import RunResult


DEFAULT_RACE_NAME = "Ski Race"
DEFAULT_CLUB = "---"
DEFAULT_CLASS = "Unknown"


@dataclass
class RawRecord:
    """A single competitor record as read from the feed, before merging."""
    bib_number: int
    name: str
    club: str = DEFAULT_CLUB
    race_class: str = DEFAULT_CLASS
    run1: RunResult = field(default_factory=RunResult.unset)
    run2: RunResult = field(default_factory=RunResult.unset)
    raw_run1: str = ""
    raw_run2: str = ""
    timestamp: Optional[int] = None  # epoch ms from the ms= field


@dataclass(frozen=True)
class RacerRecord:
    """
    Canonical competitor within one decoded snapshot.

    Frozen, so a returned RaceSnapshot cannot be changed by its caller; the
    reconciler builds a replacement with ``dataclasses.replace`` on merge.

    ``id`` is the sequence number given when the bib was first seen and is
    never changed by later merges. ``total_time`` is derived from the two
    runs and is only set when both hold a duration.
    """
    id: int
    bib_number: int
    name: str
    club: str
    race_class: str
    run1: RunResult
    run2: RunResult
    total_time: Optional[float] = None
    timestamp: Optional[int] = None

    # Unparsed r1=/r2= tokens, kept for troubleshooting only
    raw_run1: str = ""
    raw_run2: str = ""

    @classmethod
    def from_raw(cls, racer_id: int, raw: RawRecord) -> "RacerRecord":
        """Create a new canonical record from the first record seen for a bib."""
        return cls(
            id=racer_id,
            bib_number=raw.bib_number,
            name=raw.name,
            club=raw.club,
            race_class=raw.race_class,
            run1=raw.run1,
            run2=raw.run2,
            timestamp=raw.timestamp,
            raw_run1=raw.raw_run1,
            raw_run2=raw.raw_run2,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "bib_number": self.bib_number,
            "name": self.name,
            "club": self.club,
            "class": self.race_class,
            "run1_time": self.run1.to_value(),
            "run2_time": self.run2.to_value(),
            "total_time": self.total_time,
            "timestamp": self.timestamp,
            "run1_status": self.run1.status_label,
            "run2_status": self.run2.status_label,
            "raw_r1": self.raw_run1,
            "raw_r2": self.raw_run2,
        }


@dataclass(frozen=True)
class RaceSnapshot:
    """Result of decoding one feed payload."""
    race_name: str
    racers: tuple[RacerRecord, ...] = ()
    dialect: str = "primary"  # Which decoder produced the racers

    @property
    def racer_count(self) -> int:
        return len(self.racers)

    def to_dict(self) -> dict:
        return {
            "race_name": self.race_name,
            "dialect": self.dialect,
            "racers": [r.to_dict() for r in self.racers],
        }

"""
Run result classification.

Turns the raw ``r1=`` / ``r2=`` tokens from the live timing feed into a typed
RunResult: a duration in milliseconds, a status (DNS, DNF, DSQ, on course),
or unset when the feed has nothing for that run yet.

Usage:
    from core.durations import classify_run, RunStatus

    classify_run("1:02.30")    # RunResult.duration(62300.0)
    classify_run("DNF")        # RunResult.of_status(RunStatus.DNF)
    classify_run("On Course")  # RunResult.of_status(RunStatus.ON_COURSE)
    classify_run("")           # RunResult.unset()

Malformed input never raises: anything that cannot be read as a time is DNS.
"""

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional


# Leading numeric prefixes: "45.67s" reads as 45.67, trailing junk ignored
_INT_PREFIX = re.compile(r"^\s*[+-]?\d+")
_FLOAT_PREFIX = re.compile(
    r"^\s*[+-]?(?:inf(?:inity)?|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)",
    re.IGNORECASE,
)

ON_COURSE_MARKER = "on course"
DASH_PLACEHOLDER = "--"


class RunStatus(Enum):
    """Non-numeric outcome of a run."""

    DNS = "DNS"  # Did not start
    DNF = "DNF"  # Did not finish
    DSQ = "DSQ"  # Disqualified
    ON_COURSE = "on course"  # Started, not finished yet


# Status prefixes checked in order, case-sensitive
_STATUS_PREFIXES = (RunStatus.DNS, RunStatus.DNF, RunStatus.DSQ)


@dataclass(frozen=True)
class RunResult:
    """
    Outcome of one run slot.

    Exactly one of three states holds: a duration (``milliseconds`` set),
    a status (``status`` set), or unset (neither). Build instances through
    the classmethods rather than the constructor.
    """

    milliseconds: Optional[float] = None
    status: Optional[RunStatus] = None

    @classmethod
    def duration(cls, milliseconds: float) -> "RunResult":
        return cls(milliseconds=float(milliseconds))

    @classmethod
    def of_status(cls, status: RunStatus) -> "RunResult":
        return cls(status=status)

    @classmethod
    def unset(cls) -> "RunResult":
        return cls()

    @property
    def is_duration(self) -> bool:
        return self.milliseconds is not None

    @property
    def is_unset(self) -> bool:
        return self.milliseconds is None and self.status is None

    @property
    def is_on_course(self) -> bool:
        return self.status is RunStatus.ON_COURSE

    @property
    def status_label(self) -> str:
        """Status text as the feed spells it, "" for durations and unset."""
        return self.status.value if self.status else ""

    def to_value(self):
        """
        JSON-friendly value: milliseconds, "on course", or None.

        Terminal statuses map to None; read them from ``status_label``.
        """
        if self.is_duration:
            return self.milliseconds
        if self.is_on_course:
            return ON_COURSE_MARKER
        return None


def parse_leading_int(text: str) -> Optional[int]:
    """
    Read the leading integer of a token ("42abc" -> 42).

    Returns None when there is no leading integer, or when it is too long
    for int conversion (more digits than the interpreter allows).
    """
    match = _INT_PREFIX.match(text)
    if not match:
        return None
    try:
        return int(match.group())
    except ValueError:
        return None


def _leading_float(text: str) -> Optional[float]:
    match = _FLOAT_PREFIX.match(text)
    if not match:
        return None
    try:
        return float(match.group())
    except (ValueError, OverflowError):
        return None


def parse_run_time(time_str: str) -> Optional[float]:
    """
    Parse a run time to milliseconds.

    Handles:
    - "m:ss.ff" (only the first two colon-separated parts are read)
    - plain seconds "45.67"

    Args:
        time_str: Raw time token

    Returns:
        Milliseconds, or None if the token is not a finite, non-negative time

    Example:
        >>> parse_run_time("1:02.30")
        62300.0
        >>> parse_run_time("45.67")
        45670.0
        >>> parse_run_time("abc") is None
        True
    """
    if ":" in time_str:
        parts = time_str.split(":")
        minutes = parse_leading_int(parts[0])
        seconds = _leading_float(parts[1])
        if minutes is None or seconds is None:
            return None
        try:
            milliseconds = (minutes * 60 + seconds) * 1000
        except OverflowError:
            # Minutes too large to combine with float seconds
            return None
    else:
        seconds = _leading_float(time_str)
        if seconds is None:
            return None
        milliseconds = seconds * 1000

    if not math.isfinite(milliseconds) or milliseconds < 0:
        return None
    return milliseconds


def classify_run(raw: Optional[str], dash_placeholder: bool = True) -> RunResult:
    """
    Classify a raw run token.

    Args:
        raw: Token from the feed (already stripped), or None
        dash_placeholder: Treat "--" placeholders (e.g. "--:--.-") as DNS
            before attempting a numeric parse

    Returns:
        RunResult (never raises)

    Example:
        >>> classify_run("DSQ gate 12").status
        <RunStatus.DSQ: 'DSQ'>
        >>> classify_run("45.67").milliseconds
        45670.0
    """
    if not raw:
        return RunResult.unset()

    for status in _STATUS_PREFIXES:
        if raw.startswith(status.value):
            return RunResult.of_status(status)

    if ON_COURSE_MARKER in raw.lower():
        return RunResult.of_status(RunStatus.ON_COURSE)

    if dash_placeholder and DASH_PLACEHOLDER in raw:
        return RunResult.of_status(RunStatus.DNS)

    milliseconds = parse_run_time(raw)
    if milliseconds is None:
        return RunResult.of_status(RunStatus.DNS)
    return RunResult.duration(milliseconds)

"""
Live timing feed decoders.

The feed is pipe-delimited text. The first line may carry the race name
(``|hN=U=<name>|``); each competitor record starts with ``|b=<bib>`` and is
followed by ``key=value`` fields:

    m=   name            r1=  run 1 result
    c=   club            r2=  run 2 result
    s=   class (primary) ms=  epoch milliseconds
    g=   class (fallback)

Two dialects exist and are decoded by separate classes:

- PrimaryDecoder: joins the whole payload, splits it on ``|b=``, reads the
  class from ``s=`` and treats "--" placeholders as DNS.
- FallbackDecoder: scans line by line for the first ``|b=`` on each line
  (or a line starting with ``b=``), reads the class from ``g=`` and has no
  placeholder rule.

Both feed their records through the same RacerReconciler.

Usage:
    from core.decoders import PrimaryDecoder

    snapshot = PrimaryDecoder().decode(feed_text)
    print(snapshot.race_name, snapshot.racer_count)
"""

from typing import Iterator, Optional

from core.durations import classify_run, parse_leading_int
from core.logging import get_logger
from core.models import DEFAULT_RACE_NAME, RaceSnapshot, RawRecord
from core.reconcile import RacerReconciler

logger = get_logger(__name__)

FIELD_DELIMITER = "|"
RECORD_SEPARATOR = "|b="
BIB_KEY = "b="
RACE_NAME_MARKER = "hN=U="

NAME_KEY = "m="
TIMESTAMP_KEY = "ms="
CLUB_KEY = "c="
RUN1_KEY = "r1="
RUN2_KEY = "r2="


def parse_race_name(lines: list[str]) -> str:
    """
    Extract the race name from the header line.

    Examples:
        >>> parse_race_name(["|hN=U=Giant Slalom U14 |x=1"])
        'Giant Slalom U14'
        >>> parse_race_name(["no header here"])
        'Ski Race'
    """
    if not lines:
        return DEFAULT_RACE_NAME

    header_parts = lines[0].split(FIELD_DELIMITER)
    if len(header_parts) > 1 and RACE_NAME_MARKER in header_parts[1]:
        return header_parts[1].replace(RACE_NAME_MARKER, "", 1).strip()
    return DEFAULT_RACE_NAME


class FeedDecoder:
    """
    Shared decoding steps for both feed dialects.

    Subclasses provide record discovery (``_iter_records``) and set the
    dialect-specific class key and placeholder rule.
    """

    dialect = "base"
    class_key = "s="
    dash_placeholder = True

    def decode(self, text: Optional[str]) -> RaceSnapshot:
        """
        Decode one feed payload.

        Args:
            text: Raw feed text (None is treated as empty)

        Returns:
            RaceSnapshot with racers in first-seen order
        """
        lines = (text or "").split("\n")
        race_name = parse_race_name(lines)
        reconciler = RacerReconciler()

        for index, record in enumerate(self._iter_records(lines)):
            try:
                raw = self._parse_record(record, reconciler.next_id)
            except Exception as e:
                logger.warning(
                    f"Skipping unreadable record {index}: {e}",
                    extra={"dialect": self.dialect},
                )
                continue
            reconciler.add(raw)

        racers = reconciler.racers()
        logger.debug(
            f"{self.dialect} decoder found {len(racers)} unique racers",
            extra={"dialect": self.dialect},
        )
        return RaceSnapshot(race_name=race_name, racers=racers, dialect=self.dialect)

    def _iter_records(self, lines: list[str]) -> Iterator[str]:
        """Yield record strings, each starting with "b=<bib>"."""
        raise NotImplementedError

    def _parse_record(self, record: str, next_id: int) -> RawRecord:
        """
        Read the fields of one record.

        Args:
            record: Record text beginning with "b="
            next_id: Sequence id to fall back on when the bib is not a number

        Returns:
            RawRecord with defaults for any missing fields
        """
        fields = record.split(FIELD_DELIMITER)

        bib = parse_leading_int(fields[0][len(BIB_KEY):].strip()) or next_id
        raw = RawRecord(bib_number=bib, name=f"Racer {bib}")

        for field_text in fields:
            if field_text.startswith(NAME_KEY):
                raw.name = field_text[len(NAME_KEY):].strip()
            elif field_text.startswith(TIMESTAMP_KEY):
                raw.timestamp = parse_leading_int(
                    field_text[len(TIMESTAMP_KEY):].strip()
                )
            elif field_text.startswith(CLUB_KEY):
                raw.club = field_text[len(CLUB_KEY):].strip()
            elif field_text.startswith(RUN1_KEY):
                raw.raw_run1 = field_text[len(RUN1_KEY):].strip()
                raw.run1 = classify_run(raw.raw_run1, self.dash_placeholder)
            elif field_text.startswith(RUN2_KEY):
                raw.raw_run2 = field_text[len(RUN2_KEY):].strip()
                raw.run2 = classify_run(raw.raw_run2, self.dash_placeholder)
            elif field_text.startswith(self.class_key):
                raw.race_class = field_text[len(self.class_key):].strip()

        return raw


class PrimaryDecoder(FeedDecoder):
    """
    Dialect A: whole-document split.

    Newlines carry no meaning here, so a record may wrap across lines.
    Everything before the first ``|b=`` is header data and is dropped.
    """

    dialect = "primary"
    class_key = "s="
    dash_placeholder = True

    def _iter_records(self, lines: list[str]) -> Iterator[str]:
        sections = "".join(lines).split(RECORD_SEPARATOR)
        for section in sections[1:]:
            yield BIB_KEY + section


class FallbackDecoder(FeedDecoder):
    """
    Dialect B: line scan.

    Each line holding ``|b=`` yields one record starting at its first
    occurrence. A line that itself begins with ``b=`` is a record as a whole;
    feeds laid out that way have no ``|b=`` for the primary split to find.
    Lines with neither are skipped.
    """

    dialect = "fallback"
    class_key = "g="
    dash_placeholder = False

    def _iter_records(self, lines: list[str]) -> Iterator[str]:
        for line in lines:
            line = line.strip()
            if not line:
                continue

            if line.startswith(BIB_KEY):
                yield line
                continue

            bib_index = line.find(RECORD_SEPARATOR)
            if bib_index == -1:
                continue

            # Drop the leading "|" so the record starts at "b="
            yield line[bib_index + 1:]

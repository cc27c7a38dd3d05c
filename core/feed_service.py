"""
Feed decoding entry point.

Tries the primary dialect first and falls back to the line-scanned dialect
only when the primary decoder finds no racers.

Usage:
    from core.feed_service import decode_feed

    snapshot = decode_feed(feed_text)
    for racer in snapshot.racers:
        print(racer.bib_number, racer.name, racer.total_time)
"""

from typing import Optional

from core.decoders import FallbackDecoder, FeedDecoder, PrimaryDecoder
from core.logging import get_logger, log_decode_summary
from core.models import RaceSnapshot

logger = get_logger(__name__)


class FeedDecodingService:
    """
    Decode live timing feed snapshots.

    Stateless between calls: every decode builds its racer map from scratch,
    so one instance can be shared across races and threads.
    """

    def __init__(
        self,
        primary: Optional[FeedDecoder] = None,
        fallback: Optional[FeedDecoder] = None,
    ):
        self.primary = primary or PrimaryDecoder()
        self.fallback = fallback or FallbackDecoder()

    def decode(self, text: Optional[str]) -> RaceSnapshot:
        """
        Decode a feed payload.

        Args:
            text: Raw feed text; None or "" yields an empty race

        Returns:
            RaceSnapshot from the primary decoder if it found racers,
            otherwise from the fallback decoder (possibly empty)
        """
        snapshot = self.primary.decode(text)
        if snapshot.racers:
            log_decode_summary(logger, snapshot.dialect, snapshot.race_name, snapshot.racer_count)
            return snapshot

        logger.info("Primary decoder found no racers, trying fallback decoder")
        snapshot = self.fallback.decode(text)
        log_decode_summary(logger, snapshot.dialect, snapshot.race_name, snapshot.racer_count)
        return snapshot


_default_service = FeedDecodingService()


def decode_feed(text: Optional[str]) -> RaceSnapshot:
    """Decode a feed payload with the default primary/fallback decoders."""
    return _default_service.decode(text)

"""
Race Feed Pipeline.

Fetches a race feed from live-timing.com and decodes it into reconciled
racer records. Transport failures become RaceFeedResult statuses; nothing
is raised to the caller.

Usage:
    from core.race_feed import RaceFeedPipeline

    pipeline = RaceFeedPipeline()
    result = pipeline.get_race("299423")
    if result.ok:
        for racer in result.racers:
            print(racer.bib_number, racer.name, racer.total_time)
"""

from typing import Optional

from api.live_timing import APIError, FetchTimeout, LiveTimingAPI
from core.feed_service import FeedDecodingService
from core.logging import get_logger
from core.results import RaceFeedResult

logger = get_logger(__name__)


class RaceFeedPipeline:
    """Fetch + decode for a single race id at a time."""

    def __init__(
        self,
        api: Optional[LiveTimingAPI] = None,
        service: Optional[FeedDecodingService] = None,
    ):
        self.api = api or LiveTimingAPI()
        self.service = service or FeedDecodingService()

    def get_race(self, race_id: str) -> RaceFeedResult:
        """
        Fetch and decode one snapshot of a race.

        Args:
            race_id: live-timing.com race id

        Returns:
            RaceFeedResult (status OK, NO_RACERS, TIMEOUT or API_ERROR)
        """
        log_extra = {"race_id": race_id}
        try:
            text = self.api.get_race_feed(race_id)
        except FetchTimeout as e:
            logger.error(f"Fetch aborted due to timeout: {e.message}", extra=log_extra)
            return RaceFeedResult.timeout(race_id)
        except APIError as e:
            logger.error(f"Error fetching race data: {e.message}", extra=log_extra)
            return RaceFeedResult.api_error(race_id, e.message, e.status_code)

        logger.debug("Raw data sample", extra={**log_extra, "sample": text[:500]})
        snapshot = self.service.decode(text)

        return RaceFeedResult.from_snapshot(race_id, snapshot, raw_text=text)

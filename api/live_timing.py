"""
Live Timing API Client.

Fetches the raw pipe-delimited race feed from live-timing.com. The client
only transports text; decoding lives in core.feed_service.

Usage:
    from api.live_timing import LiveTimingAPI

    api = LiveTimingAPI()
    feed_text = api.get_race_feed("299423")
"""

import os
import time
from dataclasses import dataclass
from typing import Optional

import requests
from dotenv import load_dotenv

from core.logging import get_logger, log_api_call

load_dotenv()

logger = get_logger(__name__)

BASE_URL = os.environ.get(
    "LIVE_TIMING_URL", "https://live-timing.com/includes/aj_race.php"
)
DEFAULT_TIMEOUT = float(os.environ.get("LIVE_TIMING_TIMEOUT", 10))

DEFAULT_HEADERS = {
    "Accept": "text/plain",
    "Cache-Control": "no-store",
}


@dataclass
class APIError(Exception):
    """Live timing transport error."""
    status_code: int
    message: str


@dataclass
class FetchTimeout(APIError):
    """The feed did not answer within the timeout."""
    status_code: int = 0
    message: str = "Request timed out"


class LiveTimingAPI:
    """
    live-timing.com race feed client.

    Each call returns a full snapshot of the race; there is no incremental
    endpoint.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize API client.

        Args:
            base_url: Feed endpoint (defaults to LIVE_TIMING_URL env var)
            timeout: Request timeout in seconds (defaults to LIVE_TIMING_TIMEOUT, 10s)
        """
        self.base_url = base_url or BASE_URL
        self.timeout = timeout if timeout is not None else DEFAULT_TIMEOUT
        self.headers = dict(DEFAULT_HEADERS)

    def _request(self, params: dict) -> str:
        """
        Make API request.

        Args:
            params: Query parameters

        Returns:
            Response body as text

        Raises:
            FetchTimeout: If the request exceeds the timeout
            APIError: For any other HTTP or connection failure
        """
        started = time.monotonic()

        try:
            response = requests.get(
                self.base_url,
                params=params,
                headers=self.headers,
                timeout=self.timeout,
            )
            response.raise_for_status()

        except requests.exceptions.Timeout as e:
            log_api_call(logger, self.base_url, params, success=False, error="timeout")
            raise FetchTimeout(
                message=f"No response within {self.timeout:g}s",
            ) from e
        except requests.exceptions.HTTPError as e:
            log_api_call(logger, self.base_url, params, success=False, error=str(e))
            raise APIError(
                status_code=e.response.status_code,
                message=f"HTTP {e.response.status_code}: {str(e)}",
            ) from e
        except requests.exceptions.RequestException as e:
            log_api_call(logger, self.base_url, params, success=False, error=str(e))
            raise APIError(status_code=0, message=str(e)) from e

        log_api_call(
            logger,
            self.base_url,
            params,
            success=True,
            duration_ms=(time.monotonic() - started) * 1000,
        )
        return response.text

    def get_race_feed(self, race_id: str) -> str:
        """
        Get the raw feed text for a race.

        Args:
            race_id: live-timing.com race id (e.g. "299423")

        Returns:
            Raw feed text, possibly empty
        """
        return self._request({"r": race_id, "m": 1, "u": 5})

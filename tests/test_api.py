"""
Tests for the live timing API client and the fetch + decode pipeline.

Run with: python -m pytest tests/test_api.py -v
"""

import logging
from concurrent.futures import ThreadPoolExecutor

import pytest
import requests
from unittest.mock import Mock, patch

from api.live_timing import APIError, FetchTimeout, LiveTimingAPI
from core.race_feed import RaceFeedPipeline
from core.results import FeedStatus


FEED = "|hN=U=Club Race|\n|b=3|m=Ann|r1=45.67|r2=46.00\n"


class TestLiveTimingAPI:
    """Tests for LiveTimingAPI client."""

    def test_defaults(self):
        api = LiveTimingAPI()
        assert api.timeout == 10
        assert api.headers["Accept"] == "text/plain"

    def test_overrides(self):
        api = LiveTimingAPI(base_url="http://localhost/feed", timeout=2.5)
        assert api.base_url == "http://localhost/feed"
        assert api.timeout == 2.5

    @patch("api.live_timing.requests.get")
    def test_get_race_feed(self, mock_get):
        """Test get_race_feed returns response text."""
        mock_response = Mock()
        mock_response.text = FEED
        mock_response.raise_for_status = Mock()
        mock_get.return_value = mock_response

        api = LiveTimingAPI(base_url="http://localhost/feed")
        text = api.get_race_feed("299423")

        assert text == FEED
        mock_get.assert_called_once()
        _, kwargs = mock_get.call_args
        assert kwargs["params"] == {"r": "299423", "m": 1, "u": 5}
        assert kwargs["timeout"] == 10

    @patch("api.live_timing.requests.get")
    def test_timeout_raises_fetch_timeout(self, mock_get):
        mock_get.side_effect = requests.exceptions.Timeout("slow")

        api = LiveTimingAPI()
        with pytest.raises(FetchTimeout) as exc_info:
            api.get_race_feed("1")
        assert exc_info.value.status_code == 0
        assert isinstance(exc_info.value, APIError)

    @patch("api.live_timing.requests.get")
    def test_http_error(self, mock_get):
        error_response = Mock(status_code=503)
        mock_response = Mock()
        mock_response.raise_for_status.side_effect = requests.exceptions.HTTPError(
            "503 Server Error", response=error_response
        )
        mock_get.return_value = mock_response

        api = LiveTimingAPI()
        with pytest.raises(APIError) as exc_info:
            api.get_race_feed("1")
        assert exc_info.value.status_code == 503
        assert "HTTP 503" in exc_info.value.message

    @patch("api.live_timing.requests.get")
    def test_connection_error(self, mock_get):
        mock_get.side_effect = requests.exceptions.ConnectionError("refused")

        api = LiveTimingAPI()
        with pytest.raises(APIError) as exc_info:
            api.get_race_feed("1")
        assert exc_info.value.status_code == 0
        assert not isinstance(exc_info.value, FetchTimeout)


class TestRaceFeedPipeline:
    """Tests for RaceFeedPipeline.get_race()."""

    def test_success(self):
        api = Mock()
        api.get_race_feed.return_value = FEED

        result = RaceFeedPipeline(api=api).get_race("299423")

        assert result.ok is True
        assert result.status == FeedStatus.OK
        assert result.race_name == "Club Race"
        assert result.dialect == "primary"
        assert result.racers[0].total_time == pytest.approx(91670)
        assert result.raw_sample == FEED
        api.get_race_feed.assert_called_once_with("299423")

    def test_raw_sample_truncated(self):
        api = Mock()
        api.get_race_feed.return_value = FEED + "x" * 5000

        result = RaceFeedPipeline(api=api).get_race("1")
        assert len(result.raw_sample) == 1000

    def test_no_racers(self):
        api = Mock()
        api.get_race_feed.return_value = ""

        result = RaceFeedPipeline(api=api).get_race("1")

        assert result.ok is False
        assert result.status == FeedStatus.NO_RACERS
        assert result.race_name == "Ski Race"
        assert result.racers == ()

    def test_timeout(self):
        api = Mock()
        api.get_race_feed.side_effect = FetchTimeout()

        result = RaceFeedPipeline(api=api).get_race("1")

        assert result.status == FeedStatus.TIMEOUT
        assert result.race_name == "Fetch Timeout"
        assert result.racers == ()

    def test_api_error(self):
        api = Mock()
        api.get_race_feed.side_effect = APIError(status_code=500, message="HTTP 500")

        result = RaceFeedPipeline(api=api).get_race("1")

        assert result.status == FeedStatus.API_ERROR
        assert result.race_name == "Error Loading Race"
        assert result.details["status_code"] == 500
        assert "HTTP 500" in result.message


class TestRaceFeedPipelineLogging:
    """Tests that pipeline log records carry their own race id only."""

    def test_records_tagged_with_race_id(self, caplog):
        api = Mock()
        api.get_race_feed.side_effect = FetchTimeout()

        with caplog.at_level(logging.DEBUG, logger="core.race_feed"):
            RaceFeedPipeline(api=api).get_race("299423")

        records = [r for r in caplog.records if r.name == "core.race_feed"]
        assert records
        assert all(r.race_id == "299423" for r in records)

    def test_record_factory_left_alone(self, caplog):
        api = Mock()
        api.get_race_feed.return_value = FEED
        factory = logging.getLogRecordFactory()

        with caplog.at_level(logging.DEBUG, logger="core.race_feed"):
            RaceFeedPipeline(api=api).get_race("299423")
            logging.getLogger("tests.after").warning("unrelated")

        assert logging.getLogRecordFactory() is factory
        later = [r for r in caplog.records if r.name == "tests.after"]
        assert not hasattr(later[0], "race_id")

    def test_concurrent_races_do_not_share_context(self, caplog):
        def fail(race_id):
            raise APIError(status_code=500, message=f"boom {race_id}")

        api = Mock()
        api.get_race_feed.side_effect = fail
        pipeline = RaceFeedPipeline(api=api)
        race_ids = [f"race{i}" for i in range(20)]

        with caplog.at_level(logging.ERROR, logger="core.race_feed"):
            with ThreadPoolExecutor(max_workers=4) as pool:
                list(pool.map(pipeline.get_race, race_ids))

        records = [r for r in caplog.records if r.name == "core.race_feed"]
        assert len(records) == len(race_ids)
        for record in records:
            assert record.getMessage().endswith(f"boom {record.race_id}")

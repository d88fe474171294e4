"""Tests for concurrent measurement fetching and the series store."""

import asyncio
from datetime import datetime, timezone

import httpx
import pytest

from displacement_api.core.exposure_model import TRACKED_SERIES
from displacement_api.core.fred_client import FredClient
from displacement_api.core.measurements import MeasurementFetcher, SeriesStore
from displacement_api.domain.exceptions import UpstreamFetchError

NOW = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


def _fred_handler(values: dict[str, str | None]):
    """Serve `values` by series id; a None value answers HTTP 503."""

    def handler(request: httpx.Request) -> httpx.Response:
        series_id = request.url.params["series_id"]
        value = values.get(series_id)
        if value is None:
            return httpx.Response(503)
        return httpx.Response(200, json={"observations": [{"date": "2024-10-01", "value": value}]})

    return handler


class TestMeasurementFetcher:
    def test_fetches_every_tracked_series(self):
        values = {s.series_id: "10" for s in TRACKED_SERIES}
        fetcher = MeasurementFetcher(FredClient("key", transport=httpx.MockTransport(_fred_handler(values))))

        outcomes = asyncio.run(fetcher.fetch_all())

        assert set(outcomes) == {s.category for s in TRACKED_SERIES}
        assert all(o.ok for o in outcomes.values())
        assert outcomes["total"].observation.latest_value == 10_000.0

    def test_one_failure_does_not_fail_the_round(self):
        values = {s.series_id: "10" for s in TRACKED_SERIES}
        values["JTU5100LDL"] = None
        fetcher = MeasurementFetcher(FredClient("key", transport=httpx.MockTransport(_fred_handler(values))))

        outcomes = asyncio.run(fetcher.fetch_all())

        assert not outcomes["information"].ok
        assert outcomes["information"].error == "HTTP 503"
        assert sum(o.ok for o in outcomes.values()) == len(TRACKED_SERIES) - 1

    def test_missing_key_fails_every_series(self):
        fetcher = MeasurementFetcher(FredClient(None))

        outcomes = asyncio.run(fetcher.fetch_all())

        assert all(o.error == "FRED_API_KEY not configured" for o in outcomes.values())

    def test_failed_series_error_names_its_category(self):
        fetcher = MeasurementFetcher(FredClient(None))
        information = next(s for s in TRACKED_SERIES if s.category == "information")

        async def fetch():
            async with fetcher.client.client() as http_client:
                await fetcher._fetch_one(information, http_client)

        with pytest.raises(UpstreamFetchError) as exc_info:
            asyncio.run(fetch())

        assert exc_info.value.category == "information"
        assert exc_info.value.series_id == "JTU5100LDL"


class TestSeriesStore:
    def test_success_replaces_values(self, make_outcomes):
        store = SeriesStore()
        errors = store.merge(make_outcomes({"total": 1000.0}), now=NOW)

        assert errors == []
        assert store.value("total") == 1000.0
        assert store.get("total").fetched_at == NOW.isoformat()
        assert store.fetched_at == NOW.isoformat()

    def test_failure_keeps_last_good_value_and_marks_stale(self, make_outcomes):
        store = SeriesStore()
        store.merge(make_outcomes({"total": 1000.0, "retail": 50.0}))
        errors = store.merge(make_outcomes({"total": 1200.0, "retail": None}))

        retail = store.get("retail")
        assert errors == ["retail: HTTP 500"]
        assert retail.latest_value == 50.0
        assert retail.stale is True
        assert retail.error == "HTTP 500"
        assert store.value("total") == 1200.0

    def test_failure_without_prior_value_is_not_stale(self, make_outcomes):
        store = SeriesStore()
        store.merge(make_outcomes({"retail": None}))

        assert store.get("retail").latest_value is None
        assert store.get("retail").stale is False

    def test_recovery_clears_error(self, make_outcomes):
        store = SeriesStore()
        store.merge(make_outcomes({"retail": 50.0}))
        store.merge(make_outcomes({"retail": None}))
        store.merge(make_outcomes({"retail": 60.0}))

        retail = store.get("retail")
        assert retail.latest_value == 60.0
        assert retail.stale is False
        assert retail.error is None

    def test_all_failed_and_has_data(self, make_outcomes, failed_outcomes, jolts_values):
        store = SeriesStore()
        assert store.has_data is False

        store.merge(make_outcomes(jolts_values))
        store.merge(failed_outcomes)

        assert store.has_data is True
        assert store.all_failed is True

    def test_round_trip_through_dict(self, make_outcomes, jolts_values):
        store = SeriesStore()
        store.merge(make_outcomes(jolts_values), now=NOW)

        restored = SeriesStore()
        restored.restore(store.to_dict())

        assert restored.value("professional") == pytest.approx(300_000.0)
        assert restored.fetched_at == NOW.isoformat()
        assert restored.get("total").as_of_date == "2024-10-01"

    def test_restore_ignores_unknown_fields(self, make_outcomes, jolts_values):
        store = SeriesStore()
        store.merge(make_outcomes(jolts_values), now=NOW)
        data = store.to_dict()
        data["series"]["total"]["revision"] = 3

        restored = SeriesStore()
        restored.restore(data)

        assert restored.value("total") == pytest.approx(1_700_000.0)

    def test_restore_with_bad_record_changes_nothing(self, make_outcomes, jolts_values):
        store = SeriesStore()
        store.merge(make_outcomes(jolts_values), now=NOW)
        data = store.to_dict()
        data["series"]["total"]["latest_value"] = "n/a"

        restored = SeriesStore()
        with pytest.raises(ValueError):
            restored.restore(data)

        assert restored.value("professional") is None
        assert restored.fetched_at is None

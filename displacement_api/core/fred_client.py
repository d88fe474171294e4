"""FRED API client for JOLTS observations."""

import logging

import httpx

from displacement_api.domain.constants import FRED_OBSERVATION_LIMIT, JOLTS_UNIT_SCALE
from displacement_api.domain.entities import SeriesObservation
from displacement_api.domain.exceptions import UpstreamFetchError

logger = logging.getLogger(__name__)

FRED_TIMEOUT = httpx.Timeout(connect=10.0, read=30.0, write=10.0, pool=10.0)

# FRED marks missing observations with "."
MISSING_VALUE = "."


def parse_observations(payload: dict, series_id: str) -> SeriesObservation:
    """Turn a FRED observations payload (newest first) into an observation.

    Raises:
        UpstreamFetchError: if the payload has no numeric observations
    """
    observations = payload.get("observations") or []
    numeric = []
    for obs in observations:
        raw = obs.get("value", MISSING_VALUE)
        if raw == MISSING_VALUE:
            continue
        try:
            numeric.append((obs.get("date"), float(raw) * JOLTS_UNIT_SCALE))
        except (TypeError, ValueError):
            continue

    if not numeric:
        raise UpstreamFetchError(f"No data for {series_id}", series_id=series_id)

    latest_date, latest_value = numeric[0]
    values = [value for _, value in numeric]
    return SeriesObservation(
        latest_value=latest_value,
        as_of_date=latest_date,
        trailing_values=values,
        average=sum(values) / len(values),
    )


class FredClient:
    """Async client for FRED series observations."""

    def __init__(
        self,
        api_key: str | None,
        base_url: str = "https://api.stlouisfed.org/fred",
        timeout: httpx.Timeout = FRED_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize FRED client.

        Args:
            api_key: FRED API key. Without one every fetch fails.
            base_url: API base URL
            timeout: HTTP timeouts
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def client(self) -> httpx.AsyncClient:
        """Create an HTTP client; callers own its lifetime."""
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    async def fetch_series(
        self,
        series_id: str,
        client: httpx.AsyncClient | None = None,
        limit: int = FRED_OBSERVATION_LIMIT,
    ) -> SeriesObservation:
        """Fetch the most recent observations of a series.

        Args:
            series_id: FRED series ID, e.g. "JTSLDL"
            client: Shared client; a short-lived one is created if omitted
            limit: Number of most recent observations to request

        Raises:
            UpstreamFetchError: on missing key, HTTP/network error, or empty data
        """
        if not self.api_key:
            raise UpstreamFetchError("FRED_API_KEY not configured", series_id=series_id)

        params = {
            "series_id": series_id,
            "api_key": self.api_key,
            "file_type": "json",
            "sort_order": "desc",
            "limit": limit,
        }
        url = f"{self.base_url}/series/observations"

        try:
            if client is None:
                async with self.client() as own_client:
                    response = await own_client.get(url, params=params)
            else:
                response = await client.get(url, params=params)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            raise UpstreamFetchError(
                f"HTTP {e.response.status_code}", series_id=series_id
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamFetchError(
                f"{type(e).__name__}: {e}", series_id=series_id
            ) from e
        except ValueError as e:
            raise UpstreamFetchError(f"Invalid JSON: {e}", series_id=series_id) from e

        return parse_observations(payload, series_id)

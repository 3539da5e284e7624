"""
WMATA Metro rail client.

Provides:
- get_lines(): all rail lines
- get_predictions(station_codes): real-time arrivals for one or more stations
  ("A01", "A01,C01" or "All")

Uses the public WMATA API with the key sent in the `api_key` header.
HTTP-level failures are raised as MetroAPIError with a readable prefix;
anything else propagates untouched.
"""

import logging
from typing import List, Optional

import httpx

from core.exceptions import MetroAPIError
from models.metro import LinesResponse, MetroLine, PredictionsResponse, TrainPrediction

logger = logging.getLogger(__name__)

# sort order for arrivals: arriving, boarding, then by minutes
_SPECIAL_ORDER = {"ARR": -2, "BRD": -1}


def format_arrival(minutes: str) -> str:
    """Human text for a prediction's Min field."""
    if minutes == "ARR":
        return "Arriving"
    if minutes == "BRD":
        return "Boarding"
    if minutes == "":
        return "---"
    return f"{minutes} min"


def arrival_sort_key(prediction: TrainPrediction) -> float:
    if prediction.minutes in _SPECIAL_ORDER:
        return _SPECIAL_ORDER[prediction.minutes]
    try:
        return float(prediction.minutes)
    except ValueError:
        # "" and other placeholders go last
        return float("inf")


class MetroAPI:
    def __init__(self, api_key: str, use_https: bool = True, client: Optional[httpx.AsyncClient] = None, timeout: float = 5.0):
        scheme = "https" if use_https else "http"
        self.base_url = f"{scheme}://api.wmata.com/Rail.svc"
        self.predictions_base_url = f"{scheme}://api.wmata.com/StationPrediction.svc"
        self.api_key = api_key
        self._client = client
        self._timeout = timeout

    async def _get_json(self, url: str) -> dict:
        headers = {"api_key": self.api_key}
        if self._client is not None:
            resp = await self._client.get(url, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.get(url, headers=headers)
        resp.raise_for_status()
        return resp.json()

    async def get_predictions(self, station_codes: str) -> List[TrainPrediction]:
        try:
            data = await self._get_json(f"{self.predictions_base_url}/json/GetPrediction/{station_codes}")
        except httpx.HTTPError as e:
            logger.error("get_predictions failed for %s: %s", station_codes, e)
            raise MetroAPIError(f"Failed to fetch train predictions: {e}") from e
        return PredictionsResponse.model_validate(data).Trains

    async def get_lines(self) -> List[MetroLine]:
        try:
            data = await self._get_json(f"{self.base_url}/json/jLines")
        except httpx.HTTPError as e:
            logger.error("get_lines failed: %s", e)
            raise MetroAPIError(f"Failed to fetch Metro lines: {e}") from e
        return LinesResponse.model_validate(data).Lines

"""Async client for a db-rest compatible ``/journeys`` endpoint.

Only the fields needed for price hunting are kept: leg endpoints, planned/actual times,
the line (absent for walking legs) and the journey price.
"""

import logging
from datetime import datetime
from typing import Any

import dacite
import httpx

from ..config import settings
from ..errors import NetworkError, SearchError
from ..models import JourneyOption, JourneyQuery

_DACITE_CONFIG = dacite.Config(type_hooks={datetime: datetime.fromisoformat})


def _station(raw: dict[str, Any] | None) -> dict[str, Any]:
    raw = raw or {}
    return {"name": raw.get("name") or raw.get("address") or "", "id": raw.get("id")}


def _leg(raw: dict[str, Any]) -> dict[str, Any]:
    line = raw.get("line")
    return {
        "origin": _station(raw.get("origin")),
        "destination": _station(raw.get("destination")),
        "departure": raw.get("departure"),
        "planned_departure": raw.get("plannedDeparture"),
        "arrival": raw.get("arrival"),
        "planned_arrival": raw.get("plannedArrival"),
        "line": {"name": line.get("name"), "product": line.get("product")} if line else None,
        "walking": bool(raw.get("walking", False)),
    }


def _price(raw: dict[str, Any] | None) -> dict[str, Any] | None:
    if not raw or raw.get("amount") is None:
        return None
    return {"amount": float(raw["amount"]), "currency": raw.get("currency") or "EUR"}


def parse_journeys(payload: dict[str, Any]) -> list[JourneyOption]:
    journeys = []
    for raw in payload.get("journeys") or []:
        data = {"legs": [_leg(leg) for leg in raw.get("legs") or []], "price": _price(raw.get("price"))}
        journeys.append(dacite.from_dict(data_class=JourneyOption, data=data, config=_DACITE_CONFIG))
    return journeys


class DbRestProvider:
    def __init__(self, base_url: str | None = None, timeout: float | None = None,
                 client: httpx.AsyncClient | None = None):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url or settings.provider_url,
            timeout=timeout or settings.provider_timeout,
            headers={"User-Agent": "trainhunter"},
        )

    async def __aenter__(self) -> "DbRestProvider":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    @staticmethod
    def _params(query: JourneyQuery) -> dict[str, str | int]:
        return {
            "from": query.origin_id,
            "to": query.destination_id,
            "departure": query.departure.isoformat(),
            "results": query.results,
            "transfers": query.transfers,
            "tickets": str(query.tickets).lower(),
            "startWithWalking": str(query.start_with_walking).lower(),
            "stopovers": "false",
            "polylines": "false",
            "remarks": "false",
            "language": query.language,
        }

    async def journeys(self, query: JourneyQuery) -> list[JourneyOption]:
        context = f"{query.origin_id} -> {query.destination_id} at {query.departure:%Y-%m-%d %H:%M}"
        logging.debug("Querying journeys %s", context)
        try:
            response = await self._client.get("/journeys", params=self._params(query))
            response.raise_for_status()
        except httpx.ConnectError as e:
            raise NetworkError("Cannot connect to the journey API. Check your internet connection.", e) from e
        except httpx.TimeoutException as e:
            raise NetworkError("Request to the journey API timed out. Try again later.", e) from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status == 429:
                raise NetworkError("Rate limit exceeded. Please wait before making more requests.", e) from e
            if status >= 500:
                raise NetworkError(f"Journey API server error ({status}). Try again later.", e) from e
            if status == 404:
                raise SearchError(f"No results found for {context}", {"query": context}) from e
            raise NetworkError(f"API request failed: {e}", e) from e
        except httpx.HTTPError as e:
            raise NetworkError(f"API request failed: {e}", e) from e
        return parse_journeys(response.json())

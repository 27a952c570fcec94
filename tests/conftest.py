import asyncio
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List

import pytest

from trainhunter.config import Settings
from trainhunter.models import JourneyOption, JourneyQuery, Leg, Line, Price, Station

CEST = timezone(timedelta(hours=2))


def at(day: date, hhmm: str) -> datetime:
    hours, minutes = (int(part) for part in hhmm.split(":"))
    return datetime(day.year, day.month, day.day, hours, minutes, tzinfo=CEST)


def make_journey(day: date, departure: str, arrival: str, price: float | None, train: str = "ICE 1",
                 currency: str = "EUR", product: str = "nationalExpress") -> JourneyOption:
    leg = Leg(
        origin=Station("Berlin Hbf", "8011160"),
        destination=Station("Hamburg Hbf", "8002549"),
        planned_departure=at(day, departure),
        planned_arrival=at(day, arrival),
        line=Line(train, product),
    )
    return JourneyOption(legs=[leg], price=Price(price, currency) if price is not None else None)


class FakeProvider:
    """In-memory journey provider.

    ``routes`` maps (origin, destination, date) to a list of journeys, an exception to
    raise, or a dict keyed by the query hour.
    """

    def __init__(self, routes: Dict[tuple, Any] | None = None, delay: float = 0):
        self.routes = routes or {}
        self.delay = delay
        self.queries: List[JourneyQuery] = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None

    async def journeys(self, query: JourneyQuery) -> List[JourneyOption]:
        self.queries.append(query)
        if self.delay:
            await asyncio.sleep(self.delay)
        answer = self.routes.get((query.origin_id, query.destination_id, query.departure.date()), [])
        if isinstance(answer, Exception):
            raise answer
        if isinstance(answer, dict):
            answer = answer.get(query.departure.hour, [])
        return list(answer)


@pytest.fixture
def fast_settings() -> Settings:
    return Settings(
        max_concurrency=3,
        retry_attempts=2,
        retry_base_delay=0,
        date_retry_attempts=2,
        date_retry_delay=0,
        batch_delay=0,
        search_timeout=60,
        use_progress_bars=False,
    )


@pytest.fixture
def sleeps(monkeypatch) -> List[float]:
    """Records every asyncio.sleep delay and yields control instead of waiting."""
    real_sleep = asyncio.sleep
    recorded: List[float] = []

    async def fake_sleep(delay, *args, **kwargs):
        recorded.append(delay)
        await real_sleep(0)

    monkeypatch.setattr(asyncio, "sleep", fake_sleep)
    return recorded

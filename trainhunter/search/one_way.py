import logging
from datetime import date

from .base import BaseTripSearch
from ..errors import SearchError
from ..journeys import date_range, dedupe_by_departure, extract_record, priced_journeys, select_cheapest
from ..models import OneWayResult, SearchOutcome, TimePreference, TripType
from ..time_preferences import describe_preference, filter_journeys_by_time

ANCHOR_HOUR = 6


class OneWaySearch(BaseTripSearch):
    """Cheapest single journey per day across a date range."""
    trip_type = TripType.ONE_WAY

    async def search_date(self, origin_id: str, destination_id: str, day: date,
                          preference: TimePreference | None = None) -> OneWayResult:
        journeys = await self._query(origin_id, destination_id, day, ANCHOR_HOUR)
        # a second window picks up the afternoon/evening trains the first page misses
        if ANCHOR_HOUR < 12:
            journeys = journeys + await self._query(origin_id, destination_id, day, ANCHOR_HOUR + 12)

        valid = priced_journeys(dedupe_by_departure(journeys))
        if preference is not None:
            valid = filter_journeys_by_time(valid, preference)

        if not valid:
            if preference is not None:
                raise SearchError(f"No journeys found matching time preference: {describe_preference(preference)}")
            raise SearchError("No journeys with pricing found")

        cheapest = select_cheapest(valid)
        return OneWayResult(date=day, total_price=cheapest.price.amount, journey=extract_record(cheapest))

    async def search(self, origin_id: str, destination_id: str, start: date, end: date,
                     preference: TimePreference | None = None, silent: bool = False) -> SearchOutcome[OneWayResult]:
        self._validate_route(origin_id, destination_id)
        self._validate_range(start, end)
        if not silent:
            logging.info("Searching one-way trips %s -> %s (%s .. %s)", origin_id, destination_id, start, end)

        async def worker(day: date) -> OneWayResult:
            return await self.search_date(origin_id, destination_id, day, preference)

        outcome = await self._run_batches(list(date_range(start, end)), worker, silent)
        if not silent:
            self._log_summary(outcome, "one-way",
                              lambda r: f"{r.date}: {r.total_price:.2f} {r.journey.currency} ({r.journey.train_name})")
        return outcome

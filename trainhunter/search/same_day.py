import logging
from datetime import date

from .base import BaseTripSearch
from ..errors import SearchError
from ..journeys import date_range, extract_record, priced_journeys, select_cheapest
from ..models import JourneyOption, ReturnTripResult, SearchOutcome, TripPreferences, TripType
from ..time_preferences import filter_journeys_by_time

OUTBOUND_HOUR = 6
BACK_HOUR = 18
DEFAULT_LATEST_ARRIVAL_HOUR = 12
# back trains leaving between midnight and this hour belong to the next day
FIRST_SAME_DAY_HOUR = 6


class SameDayReturnSearch(BaseTripSearch):
    """Out in the morning, back in the evening of the same day.

    Outbound and back legs are minimised independently; their sum is not guaranteed to
    be the cheapest bundled fare.
    """
    trip_type = TripType.SAME_DAY

    @staticmethod
    def _arrives_before_noon(journey: JourneyOption) -> bool:
        arrival = journey.arrival_time
        return arrival is not None and arrival.hour < DEFAULT_LATEST_ARRIVAL_HOUR

    @staticmethod
    def _departs_same_day(journey: JourneyOption) -> bool:
        departure = journey.departure_time
        return departure is not None and departure.hour >= FIRST_SAME_DAY_HOUR

    async def search_date(self, origin_id: str, destination_id: str, day: date,
                          preferences: TripPreferences | None = None,
                          return_origin_id: str | None = None) -> ReturnTripResult:
        preferences = preferences or TripPreferences()

        outbound = priced_journeys(await self._query(origin_id, destination_id, day, OUTBOUND_HOUR))
        if preferences.outbound is not None:
            outbound = filter_journeys_by_time(outbound, preferences.outbound)
        else:
            outbound = [j for j in outbound if self._arrives_before_noon(j)]
        if not outbound:
            raise SearchError("No suitable outbound journeys found", {"date": day.isoformat()})

        back = priced_journeys(await self._query(return_origin_id or destination_id, origin_id, day, BACK_HOUR))
        back = [j for j in back if self._departs_same_day(j)]
        if preferences.back is not None:
            back = filter_journeys_by_time(back, preferences.back)
        if not back:
            raise SearchError("No suitable return journeys found", {"date": day.isoformat()})

        cheapest_outbound = select_cheapest(outbound)
        cheapest_back = select_cheapest(back)
        return ReturnTripResult(
            outbound_date=day,
            back_date=day,
            total_price=round(cheapest_outbound.price.amount + cheapest_back.price.amount, 2),
            outbound=extract_record(cheapest_outbound),
            back=extract_record(cheapest_back),
        )

    async def search(self, origin_id: str, destination_id: str, start: date, end: date,
                     preferences: TripPreferences | None = None, return_origin_id: str | None = None,
                     silent: bool = False) -> SearchOutcome[ReturnTripResult]:
        self._validate_return_route(origin_id, destination_id, return_origin_id)
        self._validate_range(start, end)
        if not silent:
            logging.info("Searching same-day return trips %s <-> %s (%s .. %s)", origin_id, destination_id, start, end)

        async def worker(day: date) -> ReturnTripResult:
            return await self.search_date(origin_id, destination_id, day, preferences, return_origin_id)

        outcome = await self._run_batches(list(date_range(start, end)), worker, silent)
        if not silent:
            self._log_summary(outcome, "same-day", lambda r: f"{r.date}: {r.total_price:.2f} total")
        return outcome

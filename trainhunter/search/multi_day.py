import logging
from datetime import date, timedelta

from .base import BaseTripSearch
from .one_way import OneWaySearch
from ..errors import SearchError, ValidationError
from ..journeys import date_range
from ..models import ReturnTripResult, SearchOutcome, TripPreferences, TripType


def _describe(result: ReturnTripResult) -> str:
    return f"{result.outbound_date} -> {result.back_date}: {result.total_price:.2f} total"


class _MultiDaySearch(BaseTripSearch):
    trip_type = TripType.MULTI_DAY

    def _one_way(self) -> OneWaySearch:
        return OneWaySearch(self.provider, self.settings)


class FixedReturnSearch(_MultiDaySearch):
    """Any outbound day within a range, combined with one fixed return day."""

    async def search(self, origin_id: str, destination_id: str, outbound_start: date, outbound_end: date,
                     back_date: date, preferences: TripPreferences | None = None,
                     return_origin_id: str | None = None, silent: bool = False) -> SearchOutcome[ReturnTripResult]:
        self._validate_return_route(origin_id, destination_id, return_origin_id)
        self._validate_range(outbound_start, outbound_end)
        if back_date is None:
            raise ValidationError("Return date is required for multi-day trips", "return_date")
        if back_date < outbound_end:
            raise ValidationError(f"Return date {back_date} is before the last outbound date {outbound_end}",
                                  "return_date")
        preferences = preferences or TripPreferences()
        one_way = self._one_way()

        if not silent:
            logging.info("Searching outbound journeys %s -> %s (%s .. %s)", origin_id, destination_id,
                         outbound_start, outbound_end)
        outbound = await one_way.search(origin_id, destination_id, outbound_start, outbound_end,
                                        preferences.outbound, silent=True)
        if not outbound.results:
            if not silent:
                logging.info("No outbound journeys found")
            return SearchOutcome(failures=list(outbound.failures))

        if not silent:
            logging.info("Searching return journey on %s", back_date)
        back = await one_way.search(return_origin_id or destination_id, origin_id, back_date, back_date,
                                    preferences.back, silent=True)
        if not back.results:
            if not silent:
                logging.info("No return journey found")
            return SearchOutcome(failures=sorted([r.date for r in outbound.results] + list(outbound.failures)))

        back_result = back.results[0]
        outcome = SearchOutcome(
            results=[
                ReturnTripResult(
                    outbound_date=out.date,
                    back_date=back_result.date,
                    total_price=round(out.total_price + back_result.total_price, 2),
                    outbound=out.journey,
                    back=back_result.journey,
                )
                for out in outbound.results
            ],
            failures=list(outbound.failures),
        )
        if not silent:
            self._log_summary(outcome, "multi-day", _describe)
        return outcome


class FlexibleDurationSearch(_MultiDaySearch):
    """Trips of exactly ``nights`` nights for every departure day within a range."""

    @staticmethod
    def return_date_for(departure: date, nights: int) -> date:
        return departure + timedelta(days=nights)

    async def search_departure(self, origin_id: str, destination_id: str, departure: date, nights: int,
                               preferences: TripPreferences | None = None,
                               return_origin_id: str | None = None) -> ReturnTripResult:
        preferences = preferences or TripPreferences()
        back_date = self.return_date_for(departure, nights)
        one_way = self._one_way()

        outbound = await one_way.search(origin_id, destination_id, departure, departure,
                                        preferences.outbound, silent=True)
        if not outbound.results:
            raise SearchError(f"No outbound journey found for {departure}", {"date": departure.isoformat()})

        back = await one_way.search(return_origin_id or destination_id, origin_id, back_date, back_date,
                                    preferences.back, silent=True)
        if not back.results:
            raise SearchError(f"No return journey found for {back_date}", {"date": back_date.isoformat()})

        out, ret = outbound.results[0], back.results[0]
        return ReturnTripResult(
            outbound_date=departure,
            back_date=back_date,
            total_price=round(out.total_price + ret.total_price, 2),
            outbound=out.journey,
            back=ret.journey,
            nights=nights,
        )

    async def search(self, origin_id: str, destination_id: str, outbound_start: date, outbound_end: date,
                     nights: int, preferences: TripPreferences | None = None,
                     return_origin_id: str | None = None, silent: bool = False) -> SearchOutcome[ReturnTripResult]:
        self._validate_return_route(origin_id, destination_id, return_origin_id)
        self._validate_range(outbound_start, outbound_end)
        if not nights or nights < 1:
            raise ValidationError("Number of nights must be at least 1 for flexible duration trips", "nights")
        if not silent:
            logging.info("Searching %d-night trips %s <-> %s (%s .. %s)", nights, origin_id, destination_id,
                         outbound_start, outbound_end)

        async def worker(departure: date) -> ReturnTripResult:
            return await self.search_departure(origin_id, destination_id, departure, nights, preferences,
                                               return_origin_id)

        outcome = await self._run_batches(list(date_range(outbound_start, outbound_end)), worker, silent,
                                          desc=f"Searching {nights}-night trips")
        if not silent:
            self._log_summary(outcome, f"{nights}-night", _describe)
        return outcome

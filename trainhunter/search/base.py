import logging
from abc import ABC, abstractmethod
from datetime import date, datetime, time
from typing import Awaitable, Callable, Sequence, TypeVar

from ..config import Settings, settings as default_settings
from ..errors import ValidationError
from ..executor import ProgressCallback, run_in_batches
from ..models import JourneyOption, JourneyQuery, SearchOutcome, TripType
from ..providers import JourneyProvider

T = TypeVar("T")
R = TypeVar("R")

QUERY_RESULTS = 15


class BaseTripSearch(ABC):
    """Common helpers for concrete trip searches.

    ``silent=True`` on ``search`` marks a nested search: it runs without a progress bar,
    progress callback or result summary.
    """
    trip_type: TripType

    def __init__(self, provider: JourneyProvider, settings: Settings | None = None,
                 on_progress: ProgressCallback | None = None):
        self.provider = provider
        self.settings = settings or default_settings
        self.on_progress = on_progress

    # ---------------- provider helpers -----------------
    async def _query(self, origin_id: str, destination_id: str, day: date, hour: int,
                     results: int = QUERY_RESULTS) -> list[JourneyOption]:
        query = JourneyQuery(origin_id, destination_id, datetime.combine(day, time(hour=hour)), results=results)
        return await self.provider.journeys(query)

    # ---------------- validation helpers -----------------
    @staticmethod
    def _validate_route(origin_id: str, destination_id: str) -> None:
        if not origin_id:
            raise ValidationError("Departure station is required", "origin")
        if not destination_id:
            raise ValidationError("Destination station is required", "destination")
        if origin_id == destination_id:
            raise ValidationError("Departure and destination stations cannot be the same", "destination")

    @classmethod
    def _validate_return_route(cls, origin_id: str, destination_id: str, return_origin_id: str | None) -> None:
        cls._validate_route(origin_id, destination_id)
        if return_origin_id is not None and return_origin_id == origin_id:
            raise ValidationError("Return departure station cannot be the same as the departure station",
                                  "return_origin")

    @staticmethod
    def _validate_range(start: date, end: date) -> None:
        if start is None or end is None:
            raise ValidationError("Start and end dates are required", "date")
        if start > end:
            raise ValidationError(f"Start date {start} is after end date {end}", "date")

    # ---------------- batching -----------------
    async def _run_batches(self, items: Sequence[T], worker: Callable[[T], Awaitable[R]], silent: bool,
                           desc: str = "Searching dates") -> SearchOutcome[R]:
        return await run_in_batches(
            items,
            worker,
            on_progress=None if silent else self.on_progress,
            concurrency=self.settings.max_concurrency,
            animate=not silent and self.settings.use_progress_bars,
            batch_delay=self.settings.batch_delay,
            item_attempts=self.settings.date_retry_attempts,
            item_retry_delay=self.settings.date_retry_delay,
            desc=desc,
        )

    @staticmethod
    def _log_summary(outcome: SearchOutcome, kind: str, describe: Callable[[R], str]) -> None:
        if outcome.failure_count:
            logging.warning("Completed search: %d successful, %d failed (%s)", outcome.success_count,
                            outcome.failure_count, ", ".join(str(f) for f in outcome.failures))
        if not outcome.results:
            logging.info("No %s options found", kind)
            return
        logging.info("Found %d %s options:", outcome.success_count, kind)
        for result in outcome.results:
            logging.info("  %s", describe(result))

    @abstractmethod
    async def search(self, *args, **kwargs) -> SearchOutcome:  # pragma: no cover
        raise NotImplementedError

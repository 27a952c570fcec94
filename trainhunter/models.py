from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Generic, TypeAlias, TypeVar

T = TypeVar("T")


class TripType(str, Enum):
    SAME_DAY = "same-day"
    ONE_WAY = "one-way"
    MULTI_DAY = "multi-day"


class DeparturePreference(str, Enum):
    EARLY = "early"          # 04:00-07:59
    MORNING = "morning"      # 08:00-11:59
    AFTERNOON = "afternoon"  # 12:00-17:59
    EVENING = "evening"      # 18:00-21:59
    LATE = "late"            # 22:00-03:59
    CUSTOM = "custom"
    ANY = "any"


class ArrivalConstraint(str, Enum):
    BEFORE = "before"
    AFTER = "after"
    BETWEEN = "between"
    ANY = "any"


# ---------------- provider side -----------------
@dataclass(frozen=True, slots=True)
class JourneyQuery:
    """Options of a single remote journey lookup.

    transfers=-1 lets the provider pick any number of changes; tickets=True asks it to
    attach fares so that the price can be compared at all.
    """
    origin_id: str
    destination_id: str
    departure: datetime
    results: int = 10
    transfers: int = -1
    tickets: bool = True
    start_with_walking: bool = True
    language: str = "en"


@dataclass(slots=True)
class Station:
    name: str
    id: str | None = None


@dataclass(slots=True)
class Line:
    name: str | None = None
    product: str | None = None


@dataclass(slots=True)
class Price:
    amount: float | None = None
    currency: str = "EUR"


@dataclass(slots=True)
class Leg:
    """One segment of a journey. Legs without a line are walking/transfer segments."""
    origin: Station
    destination: Station
    departure: datetime | None = None
    planned_departure: datetime | None = None
    arrival: datetime | None = None
    planned_arrival: datetime | None = None
    line: Line | None = None
    walking: bool = False

    @property
    def departure_time(self) -> datetime | None:
        return self.planned_departure or self.departure

    @property
    def arrival_time(self) -> datetime | None:
        return self.planned_arrival or self.arrival


@dataclass(slots=True)
class JourneyOption:
    legs: list[Leg] = field(default_factory=list)
    price: Price | None = None

    @property
    def has_price(self) -> bool:
        return bool(self.legs) and self.price is not None and bool(self.price.amount)

    @property
    def departure_time(self) -> datetime | None:
        return self.legs[0].departure_time if self.legs else None

    @property
    def arrival_time(self) -> datetime | None:
        return self.legs[-1].arrival_time if self.legs else None


# ---------------- derived -----------------
@dataclass(frozen=True, slots=True)
class JourneyRecord:
    departure: datetime | None
    arrival: datetime | None
    price: float
    currency: str
    train_name: str
    product: str
    transfers: int
    legs: int
    transportation_legs: int
    all_trains: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class TimePreference:
    """Departure window plus an optional arrival constraint for one direction of travel.

    custom_start/custom_end and arrival_time/arrival_time_end are HH:MM strings.
    """
    departure: DeparturePreference = DeparturePreference.ANY
    custom_start: str | None = None
    custom_end: str | None = None
    arrival_constraint: ArrivalConstraint = ArrivalConstraint.ANY
    arrival_time: str | None = None
    arrival_time_end: str | None = None


@dataclass(frozen=True, slots=True)
class TripPreferences:
    outbound: TimePreference | None = None
    back: TimePreference | None = None


@dataclass(slots=True)
class OneWayResult:
    date: date
    total_price: float
    journey: JourneyRecord


@dataclass(slots=True)
class ReturnTripResult:
    """Outbound + back pair. Same-day trips have outbound_date == back_date."""
    outbound_date: date
    back_date: date
    total_price: float
    outbound: JourneyRecord
    back: JourneyRecord
    nights: int | None = None

    @property
    def date(self) -> date:
        return self.outbound_date


SearchResult: TypeAlias = OneWayResult | ReturnTripResult


# ---------------- executor -----------------
@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True, slots=True)
class Failed:
    reason: str


ItemResult: TypeAlias = Ok | Failed


@dataclass(slots=True)
class SearchOutcome(Generic[T]):
    results: list[T] = field(default_factory=list)
    failures: list[Any] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return len(self.results)

    @property
    def failure_count(self) -> int:
        return len(self.failures)

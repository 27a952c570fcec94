from datetime import date, timedelta
from typing import Iterable, Iterator, Sequence

from .models import JourneyOption, JourneyRecord


def date_range(start: date, end: date) -> Iterator[date]:
    """Inclusive day-by-day iteration from start to end."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def priced_journeys(journeys: Iterable[JourneyOption]) -> list[JourneyOption]:
    return [j for j in journeys if j.has_price]


def dedupe_by_departure(journeys: Iterable[JourneyOption]) -> list[JourneyOption]:
    """Keep the first journey per first-leg departure timestamp."""
    seen = set()
    unique = []
    for journey in journeys:
        key = journey.departure_time
        if key in seen:
            continue
        seen.add(key)
        unique.append(journey)
    return unique


def select_cheapest(journeys: Sequence[JourneyOption]) -> JourneyOption:
    """Left-to-right minimum by price. On ties the earliest journey wins."""
    if not journeys:
        raise ValueError("Cannot select the cheapest journey from an empty list")
    cheapest = journeys[0]
    for journey in journeys[1:]:
        if journey.price.amount < cheapest.price.amount:
            cheapest = journey
    return cheapest


def extract_record(journey: JourneyOption) -> JourneyRecord:
    first_leg, last_leg = journey.legs[0], journey.legs[-1]
    transportation_legs = [leg for leg in journey.legs if leg.line is not None]

    train_names: list[str] = []
    for leg in transportation_legs:
        name = leg.line.name or "Unknown"
        if name not in train_names:
            train_names.append(name)

    product = first_leg.line.product if first_leg.line and first_leg.line.product else "train"
    return JourneyRecord(
        departure=first_leg.departure_time,
        arrival=last_leg.arrival_time,
        price=journey.price.amount,
        currency=journey.price.currency or "EUR",
        train_name=" + ".join(train_names) if train_names else "Unknown",
        product=product,
        transfers=max(0, len(transportation_legs) - 1),
        legs=len(journey.legs),
        transportation_legs=len(transportation_legs),
        all_trains=tuple(train_names),
    )

"""Time-of-day matching for departure windows and arrival constraints.

All times are handled as minutes since midnight. A range whose end lies before its
start (the "late" band, or a custom 22:00-04:00 window) wraps over midnight.
"""

import re
from datetime import datetime
from typing import Iterable

from .models import ArrivalConstraint, DeparturePreference, JourneyOption, TimePreference

MINUTES_PER_DAY = 24 * 60

TIME_RANGES: dict[DeparturePreference, tuple[str, str]] = {
    DeparturePreference.EARLY: ("04:00", "07:59"),
    DeparturePreference.MORNING: ("08:00", "11:59"),
    DeparturePreference.AFTERNOON: ("12:00", "17:59"),
    DeparturePreference.EVENING: ("18:00", "21:59"),
    DeparturePreference.LATE: ("22:00", "03:59"),
}

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_time_to_minutes(time_str: str | None) -> int | None:
    if not time_str or not isinstance(time_str, str):
        return None
    m = _TIME_RE.match(time_str.strip())
    if not m:
        return None
    hours, minutes = int(m.group(1)), int(m.group(2))
    if hours > 23 or minutes > 59:
        return None
    return hours * 60 + minutes


def minutes_to_time_string(minutes: int) -> str | None:
    if minutes < 0 or minutes >= MINUTES_PER_DAY:
        return None
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def minutes_since_midnight(moment: datetime) -> int:
    return moment.hour * 60 + moment.minute


def _in_range(minutes: int, start: int, end: int) -> bool:
    if end < start:
        return minutes >= start or minutes <= end
    return start <= minutes <= end


def time_matches_preference(minutes: int, preference: DeparturePreference | str,
                            custom_start: str | None = None, custom_end: str | None = None) -> bool:
    preference = DeparturePreference(preference)
    if preference is DeparturePreference.ANY:
        return True

    if preference is DeparturePreference.CUSTOM:
        start = parse_time_to_minutes(custom_start)
        if start is None:
            return True
        end = parse_time_to_minutes(custom_end)
        if end is None:
            return minutes >= start
        return _in_range(minutes, start, end)

    start_str, end_str = TIME_RANGES[preference]
    return _in_range(minutes, parse_time_to_minutes(start_str), parse_time_to_minutes(end_str))


def arrival_meets_constraint(minutes: int, constraint: ArrivalConstraint | str,
                             start: str | None, end: str | None = None) -> bool:
    constraint = ArrivalConstraint(constraint)
    if constraint is ArrivalConstraint.ANY:
        return True

    start_minutes = parse_time_to_minutes(start)
    if start_minutes is None:
        return True

    if constraint is ArrivalConstraint.BEFORE:
        return minutes <= start_minutes
    if constraint is ArrivalConstraint.AFTER:
        return minutes >= start_minutes

    end_minutes = parse_time_to_minutes(end)
    if end_minutes is None:
        return minutes >= start_minutes
    return _in_range(minutes, start_minutes, end_minutes)


def journey_matches(journey: JourneyOption, preference: TimePreference) -> bool:
    departure, arrival = journey.departure_time, journey.arrival_time
    if departure is None or arrival is None:
        return False
    if not time_matches_preference(minutes_since_midnight(departure), preference.departure,
                                   preference.custom_start, preference.custom_end):
        return False
    return arrival_meets_constraint(minutes_since_midnight(arrival), preference.arrival_constraint,
                                    preference.arrival_time, preference.arrival_time_end)


def filter_journeys_by_time(journeys: Iterable[JourneyOption], preference: TimePreference) -> list[JourneyOption]:
    return [j for j in journeys if j.legs and journey_matches(j, preference)]


def describe_preference(preference: TimePreference | None) -> str:
    departure = preference.departure if preference is not None else DeparturePreference.ANY
    # an unusable custom start matches everything
    if departure is DeparturePreference.CUSTOM and parse_time_to_minutes(preference.custom_start) is None:
        departure = DeparturePreference.ANY

    if departure is DeparturePreference.ANY:
        text = "any time"
    elif departure is DeparturePreference.CUSTOM:
        if parse_time_to_minutes(preference.custom_end) is not None:
            text = f"{preference.custom_start}-{preference.custom_end}"
        else:
            text = f"from {preference.custom_start}"
    else:
        start, end = TIME_RANGES[preference.departure]
        text = f"{preference.departure.value} ({start}-{end})"
    if preference is not None and preference.arrival_constraint is not ArrivalConstraint.ANY:
        arrival = f"arrive {preference.arrival_constraint.value} {preference.arrival_time}"
        if preference.arrival_constraint is ArrivalConstraint.BETWEEN and preference.arrival_time_end:
            arrival += f" and {preference.arrival_time_end}"
        text = f"{text}, {arrival}"
    return text

from .base import BaseTripSearch
from .multi_day import FixedReturnSearch, FlexibleDurationSearch
from .one_way import OneWaySearch
from .same_day import SameDayReturnSearch

__all__ = [
    "BaseTripSearch",
    "FixedReturnSearch",
    "FlexibleDurationSearch",
    "OneWaySearch",
    "SameDayReturnSearch",
]

from .base import JourneyProvider
from .db_rest import DbRestProvider, parse_journeys

__all__ = ["JourneyProvider", "DbRestProvider", "parse_journeys"]

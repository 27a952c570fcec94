from typing import Protocol

from ..models import JourneyOption, JourneyQuery


class JourneyProvider(Protocol):
    """Anything able to answer a single journey lookup.

    Options without a price and legs without a line are passed through unchanged;
    filtering them is up to the caller.
    """

    async def journeys(self, query: JourneyQuery) -> list[JourneyOption]:  # pragma: no cover
        ...

"""Hunt for the cheapest train fares across a range of travel dates."""

__version__ = "1.4.0"

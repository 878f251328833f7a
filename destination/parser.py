"""
Destination input dispatcher

Supported formats, tried in order:
    1. Map service URL  "https://www.google.com/maps/@37.4224,-122.0841,17z"
    2. DMS              42°11'36.0"N 88°04'03.9"W
    3. Plus code        "849VCWC8+R9"
    4. Raw pair         "40.7128, -74.0060"

URLs go first because they contain raw-pair-looking substrings.
"""
import logging
from typing import List, Optional, Sequence

from navigation.core.interfaces import CoordinateParser
from navigation.core.data_types import ParsedCoordinate
from .map_url import MapUrlParser
from .dms import DmsParser
from .plus_code import PlusCodeParser
from .raw_pair import RawPairParser

logger = logging.getLogger(__name__)


def default_parsers() -> List[CoordinateParser]:
    return [MapUrlParser(), DmsParser(), PlusCodeParser(), RawPairParser()]


class DestinationParser:
    """Ordered fallback chain of coordinate parsers; first match wins"""

    def __init__(self, parsers: Optional[Sequence[CoordinateParser]] = None):
        self._parsers = list(parsers) if parsers is not None else default_parsers()

    @property
    def parsers(self) -> List[CoordinateParser]:
        return list(self._parsers)

    def parse(self, text) -> Optional[ParsedCoordinate]:
        """
        Parse user-supplied destination text

        Args:
            text: Raw input string

        Returns:
            ParsedCoordinate with detected format, or None if no format matched
        """
        if not isinstance(text, str):
            return None
        trimmed = text.strip()
        if not trimmed:
            return None

        for parser in self._parsers:
            result = parser.parse(trimmed)
            if result is not None:
                logger.debug(f"Parsed destination as {result.format.value}: ({result.lat:.6f}, {result.lng:.6f})")
                return result

        logger.debug(f"Unparseable destination input: {trimmed[:80]!r}")
        return None


_default_parser = DestinationParser()


def parse_destination(text) -> Optional[ParsedCoordinate]:
    """Parse text with the default parser chain"""
    return _default_parser.parse(text)

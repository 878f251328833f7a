"""
Raw coordinate pair parser

Matches "40.7128, -74.0060", "40.7128 -74.0060" or "-33.8688,151.2093":
two signed decimals separated by a comma and/or whitespace.
"""
import re
from typing import Optional

from navigation.core.interfaces import CoordinateParser
from navigation.core.data_types import ParsedCoordinate, CoordinateFormat
from navigation.algorithms.geo_utils import GeoUtils

RAW_COORD_RE = re.compile(r'^([+-]?\d+(?:\.\d+)?)[,\s]+([+-]?\d+(?:\.\d+)?)$', re.ASCII)


class RawPairParser(CoordinateParser):
    """Decimal "lat, lng" pair"""

    def parse(self, text: str) -> Optional[ParsedCoordinate]:
        match = RAW_COORD_RE.match(text)
        if not match:
            return None

        lat = float(match.group(1))
        lng = float(match.group(2))

        if not GeoUtils.is_valid_coordinate(lat, lng):
            return None

        return ParsedCoordinate(lat=lat, lng=lng, format=CoordinateFormat.RAW)

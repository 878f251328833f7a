"""
Degrees/minutes/seconds parser

Accepts typed and copy-pasted variants:
    42°11'36.0"N 88°04'03.9"W
    42°11′36″N, 88°4′3.9″W
    42 11 36.0 N 88 04 03.9 W
Components may come in either order ("88°04'03.9"W 42°11'36.0"N").
"""
import re
from typing import Optional

from navigation.core.interfaces import CoordinateParser
from navigation.core.data_types import ParsedCoordinate, CoordinateFormat
from navigation.algorithms.geo_utils import GeoUtils

DMS_COMPONENT_RE = re.compile(
    r'(\d{1,3})\s*°?\s*'
    r'(\d{1,2})\s*[\'′]?\s*'
    r'(\d{1,2}(?:\.\d+)?)\s*["″]?\s*'
    r'([NSEWnsew])',
    re.ASCII
)


class DmsParser(CoordinateParser):
    """Two DMS components, one N/S and one E/W"""

    def parse(self, text: str) -> Optional[ParsedCoordinate]:
        lat = None
        lng = None
        count = 0

        for match in DMS_COMPONENT_RE.finditer(text):
            degrees = float(match.group(1))
            minutes = float(match.group(2))
            seconds = float(match.group(3))
            hemisphere = match.group(4).upper()

            if minutes >= 60 or seconds >= 60:
                return None

            value = degrees + minutes / 60 + seconds / 3600
            if hemisphere in ('S', 'W'):
                value = -value

            count += 1
            if hemisphere in ('N', 'S'):
                lat = value
            else:
                lng = value

        if count != 2 or lat is None or lng is None:
            return None

        if not GeoUtils.is_valid_coordinate(lat, lng):
            return None

        return ParsedCoordinate(lat=lat, lng=lng, format=CoordinateFormat.DMS)

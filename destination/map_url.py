"""
Map service URL parser

Recognized patterns:
    google.com/maps/@LAT,LNG,ZOOM            "at" notation
    google.com/maps/place/NAME/@LAT,LNG,ZOOM place pages
    google.com/maps?q=LAT,LNG                query parameter

Shortened links (maps.app.goo.gl/..., goo.gl/maps/...) only resolve through a
redirect and are rejected as an unsupported format.
"""
import re
import logging
from typing import Optional

from navigation.core.interfaces import CoordinateParser
from navigation.core.data_types import ParsedCoordinate, CoordinateFormat
from navigation.algorithms.geo_utils import GeoUtils

logger = logging.getLogger(__name__)

MAP_DOMAIN_RE = re.compile(
    r'^https?://(www\.)?(google\.[a-z.]+/maps|maps\.google\.[a-z.]+|maps\.app\.goo\.gl|goo\.gl/maps)',
    re.IGNORECASE
)
SHORT_LINK_RE = re.compile(r'^https?://(www\.)?(maps\.app\.goo\.gl|goo\.gl/maps)', re.IGNORECASE)
AT_NOTATION_RE = re.compile(r'@(-?\d+\.?\d*),(-?\d+\.?\d*)')
QUERY_PARAM_RE = re.compile(r'[?&]q=(-?\d+\.?\d*),(-?\d+\.?\d*)')


def is_short_map_link(text: str) -> bool:
    """True for redirect-style links that cannot be resolved offline"""
    return bool(SHORT_LINK_RE.match(text))


class MapUrlParser(CoordinateParser):
    """Coordinates embedded in a map service URL"""

    def parse(self, text: str) -> Optional[ParsedCoordinate]:
        if not MAP_DOMAIN_RE.match(text):
            return None

        if is_short_map_link(text):
            logger.debug("Shortened map link cannot be resolved offline")
            return None

        match = AT_NOTATION_RE.search(text) or QUERY_PARAM_RE.search(text)
        if not match:
            return None

        try:
            lat = float(match.group(1))
            lng = float(match.group(2))
        except ValueError:
            return None

        if not GeoUtils.is_valid_coordinate(lat, lng):
            return None

        return ParsedCoordinate(lat=lat, lng=lng, format=CoordinateFormat.MAP_URL)

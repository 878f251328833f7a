"""
Open Location Code (plus code) decoder for full-length codes

A full code such as "849VCWC8+R9" carries 8 symbols before the '+' and at least
2 after. The first 10 symbols are lat/lng pairs, each pair narrowing a
20°×20° cell by a factor of 20. Symbols 11-15 each pick a cell in a 4-row ×
5-column sub-grid. Short codes ("CWC8+R9") need a reference location and are
not handled here.
"""
import re
from dataclasses import dataclass
from typing import Optional, Tuple

from navigation.core.interfaces import CoordinateParser
from navigation.core.data_types import ParsedCoordinate, CoordinateFormat
from navigation.algorithms.geo_utils import GeoUtils

OLC_ALPHABET = '23456789CFGHJMPQRVWX'
SEPARATOR = '+'
PADDING_SYMBOL = OLC_ALPHABET[0]
PAIR_CODE_LENGTH = 10
MAX_CODE_LENGTH = 15
GRID_ROWS = 4
GRID_COLUMNS = 5
LATITUDE_ORIGIN = -90.0
LONGITUDE_ORIGIN = -180.0

PLUS_CODE_RE = re.compile(r'^[23456789CFGHJMPQRVWX]{8}\+[23456789CFGHJMPQRVWX]{2,}$')


@dataclass(frozen=True)
class CodeArea:
    """Cell covered by a decoded code"""
    south: float
    west: float
    north: float
    east: float
    code_length: int

    @property
    def center(self) -> Tuple[float, float]:
        return (self.south + self.north) / 2, (self.west + self.east) / 2

    @property
    def lat_half_height(self) -> float:
        return (self.north - self.south) / 2

    @property
    def lng_half_width(self) -> float:
        return (self.east - self.west) / 2


def is_full_plus_code(code: str) -> bool:
    return bool(PLUS_CODE_RE.match(code.upper()))


def decode_plus_code_area(code: str) -> Optional[CodeArea]:
    """
    Decode a full plus code into its cell

    Args:
        code: Full code, any case, with the '+' separator

    Returns:
        CodeArea, or None if the code is not a valid full code
    """
    code = code.strip().upper()
    if not PLUS_CODE_RE.match(code):
        return None

    symbols = code.replace(SEPARATOR, '')[:MAX_CODE_LENGTH]
    significant = len(symbols)
    padded = symbols.ljust(MAX_CODE_LENGTH, PADDING_SYMBOL)

    lat = 0.0
    lng = 0.0
    lat_res = 20.0
    lng_res = 20.0
    # Resolution of the last symbol actually present in the code
    cell_lat = lat_res
    cell_lng = lng_res

    for i in range(0, PAIR_CODE_LENGTH, 2):
        lat_idx = OLC_ALPHABET.index(padded[i])
        lng_idx = OLC_ALPHABET.index(padded[i + 1])
        lat += lat_idx * lat_res
        lng += lng_idx * lng_res
        if i < significant:
            cell_lat, cell_lng = lat_res, lng_res
        lat_res /= 20
        lng_res /= 20

    for i in range(PAIR_CODE_LENGTH, MAX_CODE_LENGTH):
        idx = OLC_ALPHABET.index(padded[i])
        row, col = divmod(idx, GRID_COLUMNS)
        lat_res /= GRID_ROWS
        lng_res /= GRID_COLUMNS
        lat += row * lat_res
        lng += col * lng_res
        if i < significant:
            cell_lat, cell_lng = lat_res, lng_res

    south = lat + LATITUDE_ORIGIN
    west = lng + LONGITUDE_ORIGIN
    center_lat = south + cell_lat / 2
    center_lng = west + cell_lng / 2

    if not GeoUtils.is_valid_coordinate(center_lat, center_lng):
        return None

    return CodeArea(
        south=south,
        west=west,
        north=south + cell_lat,
        east=west + cell_lng,
        code_length=significant
    )


def decode_plus_code(code: str) -> Optional[Tuple[float, float]]:
    """Center (lat, lng) of a full plus code, or None"""
    area = decode_plus_code_area(code)
    if area is None:
        return None
    return area.center


class PlusCodeParser(CoordinateParser):
    """Full-length Open Location Code"""

    def parse(self, text: str) -> Optional[ParsedCoordinate]:
        center = decode_plus_code(text)
        if center is None:
            return None
        lat, lng = center
        return ParsedCoordinate(lat=lat, lng=lng, format=CoordinateFormat.GEOCODE)

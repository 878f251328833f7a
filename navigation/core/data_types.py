"""Data structures for the compass navigation system"""
import math
from dataclasses import dataclass, field
from typing import Optional, Dict, Any
from enum import Enum
from datetime import datetime


class DestinationOrigin(Enum):
    """How a destination was defined"""
    TYPED = "typed"
    CAST = "cast"


class CoordinateFormat(Enum):
    """Text format a destination was parsed from"""
    RAW = "raw"
    DMS = "dms"
    MAP_URL = "map-url"
    GEOCODE = "geocode"


class HeadingTier(Enum):
    """Trust level of a heading reading, compared by rank"""
    UNAVAILABLE = "unavailable"
    RELATIVE_UNRELIABLE = "relative-unreliable"
    RELATIVE_ABSOLUTE = "relative-absolute"
    DEVICE_FUSED = "device-fused"
    ABSOLUTE = "absolute"

    @property
    def rank(self) -> int:
        return _TIER_RANK[self]

    def __lt__(self, other):
        if not isinstance(other, HeadingTier):
            return NotImplemented
        return self.rank < other.rank


_TIER_RANK = {
    HeadingTier.UNAVAILABLE: 0,
    HeadingTier.RELATIVE_UNRELIABLE: 1,
    HeadingTier.RELATIVE_ABSOLUTE: 2,
    HeadingTier.DEVICE_FUSED: 3,
    HeadingTier.ABSOLUTE: 4,
}


class CastPhase(Enum):
    """Cast-a-point session phases"""
    IDLE = "idle"
    ARMED = "armed"
    ACTIVE = "active"
    COMMITTED = "committed"
    CANCELLED = "cancelled"


@dataclass
class Position:
    """Latest position fix"""
    lat: float
    lng: float
    accuracy: float = 0.0  # meters
    timestamp: Optional[datetime] = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = datetime.now()
        self.accuracy = max(0.0, float(self.accuracy or 0.0))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'lat': self.lat,
            'lng': self.lng,
            'accuracy': self.accuracy,
            'timestamp': self.timestamp.isoformat() if self.timestamp else None
        }


@dataclass(frozen=True)
class HeadingReading:
    """Fused compass heading; degrees is None when the tier is unavailable"""
    degrees: Optional[float] = None
    tier: HeadingTier = HeadingTier.UNAVAILABLE

    @property
    def is_available(self) -> bool:
        return self.degrees is not None and self.tier is not HeadingTier.UNAVAILABLE

    def to_dict(self) -> Dict[str, Any]:
        return {
            'degrees': self.degrees,
            'tier': self.tier.value
        }


@dataclass(frozen=True)
class ParsedCoordinate:
    """Normalized result of a successful destination parse"""
    lat: float
    lng: float
    format: CoordinateFormat

    def to_dict(self) -> Dict[str, Any]:
        return {
            'lat': self.lat,
            'lng': self.lng,
            'format': self.format.value
        }


@dataclass(frozen=True)
class Destination:
    """Where the arrow points. Replaced wholesale, never mutated."""
    lat: float
    lng: float
    origin: DestinationOrigin = DestinationOrigin.TYPED
    initial_distance: float = 0.0  # meters from the position at creation time

    def to_dict(self) -> Dict[str, Any]:
        return {
            'lat': self.lat,
            'lng': self.lng,
            'origin': self.origin.value,
            'initial_distance': self.initial_distance
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Destination':
        """
        Build a destination from a persisted record

        Older records used 'source' ('input' or 'cast') and 'initialDistance'.

        Raises:
            ValueError: record is not a mapping or lacks numeric lat/lng
        """
        if not isinstance(data, dict):
            raise ValueError(f"Destination record must be an object, got {type(data).__name__}")

        try:
            lat = float(data['lat'])
            lng = float(data['lng'])
        except (KeyError, TypeError) as e:
            raise ValueError(f"Destination record missing coordinates: {e}")
        except OverflowError as e:
            raise ValueError(f"Destination coordinates out of range: {e}")

        origin_value = data.get('origin') or data.get('source') or DestinationOrigin.TYPED.value
        origin = DestinationOrigin.CAST if origin_value == 'cast' else DestinationOrigin.TYPED

        distance = data.get('initial_distance', data.get('initialDistance', 0.0))
        try:
            initial_distance = max(0.0, float(distance or 0.0))
        except (TypeError, ValueError, OverflowError):
            initial_distance = 0.0
        if not math.isfinite(initial_distance):
            initial_distance = 0.0

        return cls(lat=lat, lng=lng, origin=origin, initial_distance=initial_distance)


@dataclass(frozen=True)
class CastResult:
    """Outcome of a cast session operation; reason is set on refusal"""
    success: bool
    destination: Optional[Destination] = None
    reason: Optional[str] = None
    bearing: Optional[float] = None
    distance: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': self.success,
            'destination': self.destination.to_dict() if self.destination else None,
            'reason': self.reason,
            'bearing': self.bearing,
            'distance': self.distance
        }


@dataclass(frozen=True)
class ArrivalUpdate:
    """Arrival evaluation for one driving-loop cycle"""
    arrived: bool
    just_arrived: bool = False
    distance: Optional[float] = None
    radius: Optional[float] = None


@dataclass
class NavigationState:
    """Snapshot produced by one tick of the driving loop"""
    position: Optional[Position]
    destination: Optional[Destination]
    heading: HeadingReading
    bearing_to_target: Optional[float]  # degrees
    distance_to_target: Optional[float]  # meters
    arrived: bool
    arrow_angle: Optional[float]  # smoothed rotation for the arrow, degrees
    cast_phase: CastPhase
    cast_distance: Optional[int] = None  # meters, while cast mode is active
    gps_error: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'position': self.position.to_dict() if self.position else None,
            'destination': self.destination.to_dict() if self.destination else None,
            'heading': self.heading.to_dict(),
            'bearing_to_target': self.bearing_to_target,
            'distance_to_target': self.distance_to_target,
            'arrived': self.arrived,
            'arrow_angle': self.arrow_angle,
            'cast_phase': self.cast_phase.value,
            'cast_distance': self.cast_distance,
            'gps_error': self.gps_error,
            'timestamp': self.timestamp.isoformat()
        }

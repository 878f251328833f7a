"""Navigation core interfaces and data structures"""
from .interfaces import NavigationInterface, CoordinateParser, DestinationRepository
from .data_types import (
    Position, Destination, DestinationOrigin, HeadingReading, HeadingTier,
    ParsedCoordinate, CoordinateFormat, CastPhase, CastResult, ArrivalUpdate,
    NavigationState
)

__all__ = [
    'NavigationInterface',
    'CoordinateParser',
    'DestinationRepository',
    'Position',
    'Destination',
    'DestinationOrigin',
    'HeadingReading',
    'HeadingTier',
    'ParsedCoordinate',
    'CoordinateFormat',
    'CastPhase',
    'CastResult',
    'ArrivalUpdate',
    'NavigationState'
]

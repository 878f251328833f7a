"""Compass navigation module"""
from .core.data_types import Position, Destination, DestinationOrigin, HeadingReading, HeadingTier
from .algorithms.geo_utils import GeoUtils
from .algorithms.distance_steps import DistanceStepTable

__all__ = ['Position', 'Destination', 'DestinationOrigin', 'HeadingReading', 'HeadingTier',
           'GeoUtils', 'DistanceStepTable']

"""Navigation algorithms implementations"""
from .geo_utils import GeoUtils
from .distance_steps import DistanceStepTable, build_distance_steps

__all__ = ['GeoUtils', 'DistanceStepTable', 'build_distance_steps']

"""Sensor interfaces"""
from .interfaces import PositionObserver, PositionError, HeadingProvider

__all__ = ['PositionObserver', 'PositionError', 'HeadingProvider']

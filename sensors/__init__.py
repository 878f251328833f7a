"""Position and orientation sources"""
from .heading_fusion import HeadingFusion
from .position_source import PositionSource, NMEAPositionSource, SerialNMEAReader
from .core.interfaces import PositionObserver, PositionError

__all__ = ['HeadingFusion', 'PositionSource', 'NMEAPositionSource', 'SerialNMEAReader',
           'PositionObserver', 'PositionError']

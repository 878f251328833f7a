"""Arrival detection with a GPS-accuracy-adaptive radius"""
import logging
from typing import Optional

from config.settings import compass_config
from .core.data_types import ArrivalUpdate, Destination, Position
from .algorithms.geo_utils import GeoUtils

logger = logging.getLogger(__name__)


class ArrivalEvaluator:
    """
    Flags arrival when the destination is inside max(min_radius, accuracy)

    The floor keeps arrival from flickering when the fix is unusually good;
    a poor fix widens the zone so arrival still triggers.
    """

    def __init__(self, min_radius: float = compass_config["arrival_min_radius"]):
        self.min_radius = min_radius
        self._arrived_at_current = False

    def radius(self, accuracy: Optional[float]) -> float:
        return max(self.min_radius, accuracy or 0.0)

    def is_arrived(self, position: Optional[Position], destination: Optional[Destination]) -> bool:
        if position is None or destination is None:
            return False
        distance = GeoUtils.distance(position.lat, position.lng, destination.lat, destination.lng)
        return distance < self.radius(position.accuracy)

    def update(self, position: Optional[Position], destination: Optional[Destination]) -> ArrivalUpdate:
        """
        Evaluate one cycle; just_arrived is True once per destination
        """
        if position is None or destination is None:
            return ArrivalUpdate(arrived=False)

        distance = GeoUtils.distance(position.lat, position.lng, destination.lat, destination.lng)
        radius = self.radius(position.accuracy)
        arrived = distance < radius

        just_arrived = arrived and not self._arrived_at_current
        if just_arrived:
            self._arrived_at_current = True
            logger.info(f"🏁 Arrived at destination ({distance:.1f} m, radius {radius:.1f} m)")

        return ArrivalUpdate(arrived=arrived, just_arrived=just_arrived,
                             distance=distance, radius=radius)

    def reset(self):
        """Call when the destination changes"""
        self._arrived_at_current = False

    @property
    def arrived_at_current(self) -> bool:
        return self._arrived_at_current

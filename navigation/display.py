"""Presentation helpers shared by the HTTP layer and the driving loop"""
from typing import Optional, Tuple

from config.settings import compass_config
from .core.data_types import HeadingTier, Position
from .algorithms.geo_utils import GeoUtils

# Badge text and level per heading tier
HEADING_TIER_LABELS = {
    HeadingTier.ABSOLUTE: ("Compass", "good"),
    HeadingTier.DEVICE_FUSED: ("Compass", "good"),
    HeadingTier.RELATIVE_ABSOLUTE: ("Compass", "good"),
    HeadingTier.RELATIVE_UNRELIABLE: ("Compass (approx)", "warn"),
    HeadingTier.UNAVAILABLE: ("No compass", "error"),
}

GOOD_ACCURACY_METERS = 20


def format_distance(meters: Optional[float]) -> str:
    """Meters below 1 km, kilometers with one decimal above"""
    if meters is None:
        return "--"
    if meters < 1000:
        return f"{round(meters)} m"
    return f"{meters / 1000:.1f} km"


def heading_status(tier: HeadingTier) -> Tuple[str, str]:
    return HEADING_TIER_LABELS.get(tier, ("Compass: waiting", ""))


def gps_status(position: Optional[Position], error: Optional[str] = None) -> Tuple[str, str]:
    if error:
        return error, "error"
    if position is None:
        return "GPS: waiting", ""
    accuracy = round(position.accuracy)
    return f"GPS: ±{accuracy}m", "good" if accuracy <= GOOD_ACCURACY_METERS else "warn"


class ArrowSmoother:
    """
    Exponential smoothing of the arrow rotation along the shortest path

    With the default factor of 0.2 the arrow covers ~95% of a change in about
    15 frames, filtering sensor jitter without feeling sluggish.
    """

    def __init__(self, factor: float = compass_config["arrow_smoothing"]):
        self.factor = factor
        self.angle = 0.0

    def update(self, target_bearing: float, heading: float) -> float:
        target_angle = target_bearing - heading
        diff = GeoUtils.angle_difference(self.angle, target_angle)
        self.angle += diff * self.factor
        return self.angle

    def reset(self, angle: float = 0.0):
        self.angle = angle

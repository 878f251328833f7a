"""
Heading fusion across two orientation channels

Channel A is the dedicated absolute orientation stream: alpha is measured
from magnetic north. Channel B is the standard orientation stream, whose
meaning varies by platform:

    compass_heading set  -> platform-fused compass, already clockwise (device-fused)
    absolute is True     -> alpha is north-referenced (relative-absolute)
    otherwise            -> alpha has an arbitrary zero point (relative-unreliable)

Raw alpha increases counter-clockwise; compass headings increase clockwise,
so every alpha is converted with (360 - alpha) % 360. Once channel A has
delivered a reading, channel B is ignored until the next stop().
"""
import logging
import math
from typing import Optional

from navigation.core.data_types import HeadingReading, HeadingTier
from .core.interfaces import HeadingProvider

logger = logging.getLogger(__name__)


def alpha_to_heading(alpha: float) -> float:
    """Convert counter-clockwise alpha to a clockwise compass heading in [0, 360)"""
    heading = (360.0 - alpha) % 360.0
    if heading >= 360.0:
        heading = 0.0
    return heading


def _as_angle(value) -> Optional[float]:
    """Finite float or None; sensors report missing data as null"""
    if value is None or isinstance(value, bool):
        return None
    try:
        angle = float(value)
    except (TypeError, ValueError):
        return None
    return angle if math.isfinite(angle) else None


class HeadingFusion(HeadingProvider):
    """Reconciles the two orientation channels into one tiered heading"""

    def __init__(self):
        self._heading: Optional[float] = None
        self._tier = HeadingTier.UNAVAILABLE
        self._best_tier = HeadingTier.UNAVAILABLE
        self._absolute_channel = False
        self._standard_channel = False
        self._absolute_active = False

    def start(self, absolute_channel: bool = True, standard_channel: bool = True,
              permission_granted: bool = True) -> bool:
        """
        Register the orientation channels the platform offers

        Args:
            absolute_channel: Dedicated absolute orientation stream exists
            standard_channel: Standard orientation stream exists
            permission_granted: User allowed orientation access

        Returns:
            True if at least one channel is now listened to
        """
        if not permission_granted:
            logger.warning("Orientation permission denied - compass unavailable")
            self.stop()
            return False

        self._absolute_channel = bool(absolute_channel)
        self._standard_channel = bool(standard_channel)

        if not (self._absolute_channel or self._standard_channel):
            logger.warning("No orientation channel available - compass unavailable")
            self.stop()
            return False
        if not self._absolute_channel:
            self._absolute_active = False

        logger.info(f"Heading updates started (absolute={self._absolute_channel}, "
                    f"standard={self._standard_channel})")
        return True

    def stop(self):
        """Unregister both channels and forget the heading"""
        self._absolute_channel = False
        self._standard_channel = False
        self._absolute_active = False
        self._heading = None
        self._tier = HeadingTier.UNAVAILABLE
        self._best_tier = HeadingTier.UNAVAILABLE
        logger.info("Heading updates stopped")

    @property
    def is_listening(self) -> bool:
        return self._absolute_channel or self._standard_channel

    @property
    def heading(self) -> Optional[float]:
        return self._heading

    @property
    def tier(self) -> HeadingTier:
        return self._tier

    @property
    def best_tier(self) -> HeadingTier:
        """Highest tier seen since the last stop()"""
        return self._best_tier

    @property
    def reading(self) -> HeadingReading:
        return HeadingReading(degrees=self._heading, tier=self._tier)

    def get_reading(self) -> HeadingReading:
        return self.reading

    def on_absolute_orientation(self, alpha) -> bool:
        """
        Channel A reading

        A null alpha (magnetometer calibrating) keeps the previous heading.

        Returns:
            True if the reading was applied
        """
        if not self._absolute_channel:
            return False

        angle = _as_angle(alpha)
        if angle is None:
            return False

        if not self._absolute_active:
            logger.info("Absolute orientation active - standard channel will yield")
        self._absolute_active = True
        self._apply(alpha_to_heading(angle), HeadingTier.ABSOLUTE)
        return True

    def on_standard_orientation(self, alpha=None, absolute=None, compass_heading=None) -> bool:
        """
        Channel B reading

        Args:
            alpha: Counter-clockwise rotation about the screen normal
            absolute: Platform flag saying alpha is north-referenced
            compass_heading: Platform-fused clockwise compass heading

        Returns:
            True if the reading was applied
        """
        if not self._standard_channel or self._absolute_active:
            return False

        fused = _as_angle(compass_heading)
        if fused is not None:
            self._apply(fused % 360.0, HeadingTier.DEVICE_FUSED)
            return True

        angle = _as_angle(alpha)
        if angle is None:
            return False

        if absolute is True:
            self._apply(alpha_to_heading(angle), HeadingTier.RELATIVE_ABSOLUTE)
        else:
            self._apply(alpha_to_heading(angle), HeadingTier.RELATIVE_UNRELIABLE)
        return True

    def _apply(self, heading: float, tier: HeadingTier):
        if tier is not self._tier:
            logger.debug(f"Heading source: {self._tier.value} -> {tier.value}")
        self._heading = heading
        self._tier = tier
        if self._best_tier < tier:
            self._best_tier = tier

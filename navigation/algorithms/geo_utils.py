"""Geographic utility functions for navigation"""
import math
from typing import Tuple


class GeoUtils:
    """Spherical-earth geodesy: forward azimuth, great-circle distance, direct problem"""

    EARTH_RADIUS = 6371000  # meters

    @staticmethod
    def is_valid_coordinate(lat, lng) -> bool:
        """True for finite numbers within latitude/longitude bounds"""
        if isinstance(lat, bool) or isinstance(lng, bool):
            return False
        if not isinstance(lat, (int, float)) or not isinstance(lng, (int, float)):
            return False
        if not (math.isfinite(lat) and math.isfinite(lng)):
            return False
        return -90 <= lat <= 90 and -180 <= lng <= 180

    @staticmethod
    def is_valid_accuracy(accuracy) -> bool:
        """True for a finite, non-negative accuracy radius in meters"""
        if isinstance(accuracy, bool) or not isinstance(accuracy, (int, float)):
            return False
        return math.isfinite(accuracy) and accuracy >= 0

    @staticmethod
    def distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
        """
        Great-circle distance between two coordinates (haversine formula)

        Args:
            lat1, lng1: First point coordinates
            lat2, lng2: Second point coordinates

        Returns:
            Distance in meters
        """
        lat1_rad = math.radians(lat1)
        lat2_rad = math.radians(lat2)
        delta_lat = math.radians(lat2 - lat1)
        delta_lng = math.radians(lng2 - lng1)

        a = (math.sin(delta_lat / 2) ** 2 +
             math.cos(lat1_rad) * math.cos(lat2_rad) *
             math.sin(delta_lng / 2) ** 2)
        # Rounding can push a just outside [0, 1] near antipodes
        a = min(1.0, max(0.0, a))
        c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

        return GeoUtils.EARTH_RADIUS * c

    @staticmethod
    def bearing(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
        """
        Forward azimuth from point 1 to point 2

        Args:
            lat1, lng1: Starting point coordinates
            lat2, lng2: Target point coordinates

        Returns:
            Bearing in degrees (0-360, where 0 is North). 0 when the points coincide.
        """
        lat1_rad = math.radians(lat1)
        lat2_rad = math.radians(lat2)
        delta_lng = math.radians(lng2 - lng1)

        x = math.sin(delta_lng) * math.cos(lat2_rad)
        y = (math.cos(lat1_rad) * math.sin(lat2_rad) -
             math.sin(lat1_rad) * math.cos(lat2_rad) * math.cos(delta_lng))

        bearing_deg = math.degrees(math.atan2(x, y)) % 360.0
        # -0.0 % 360 and tiny negatives can round up to exactly 360
        if bearing_deg >= 360.0:
            bearing_deg = 0.0
        return bearing_deg

    @staticmethod
    def project(lat: float, lng: float, bearing: float, distance: float) -> Tuple[float, float]:
        """
        Destination point given start point, bearing and distance

        Args:
            lat, lng: Starting point
            bearing: Bearing in degrees
            distance: Distance in meters

        Returns:
            Tuple of (lat, lng) of destination point, longitude wrapped to [-180, 180]
        """
        lat_rad = math.radians(lat)
        lng_rad = math.radians(lng)
        bearing_rad = math.radians(bearing)

        angular_distance = distance / GeoUtils.EARTH_RADIUS

        sin_dest_lat = (math.sin(lat_rad) * math.cos(angular_distance) +
                        math.cos(lat_rad) * math.sin(angular_distance) * math.cos(bearing_rad))
        dest_lat = math.asin(min(1.0, max(-1.0, sin_dest_lat)))

        dest_lng = lng_rad + math.atan2(
            math.sin(bearing_rad) * math.sin(angular_distance) * math.cos(lat_rad),
            math.cos(angular_distance) - math.sin(lat_rad) * sin_dest_lat
        )

        return math.degrees(dest_lat), GeoUtils.normalize_longitude(math.degrees(dest_lng))

    @staticmethod
    def normalize_longitude(lng: float) -> float:
        """Wrap longitude into [-180, 180]"""
        if -180.0 <= lng <= 180.0:
            return lng
        return (lng + 180.0) % 360.0 - 180.0

    @staticmethod
    def normalize_angle(angle: float) -> float:
        """Normalize angle to -180 to 180 range"""
        return ((angle % 360.0) + 540.0) % 360.0 - 180.0

    @staticmethod
    def angle_difference(current: float, target: float) -> float:
        """
        Shortest signed rotation from current to target

        Returns:
            Angle difference (-180 to 180, negative = counter-clockwise)
        """
        return GeoUtils.normalize_angle(target - current)

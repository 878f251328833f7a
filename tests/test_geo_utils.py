import math
import unittest

from navigation.algorithms.geo_utils import GeoUtils


class TestBearing(unittest.TestCase):
    def test_cardinal_directions(self):
        self.assertAlmostEqual(GeoUtils.bearing(0, 0, 1, 0), 0.0, places=6)
        self.assertAlmostEqual(GeoUtils.bearing(0, 0, 0, 1), 90.0, places=6)
        self.assertAlmostEqual(GeoUtils.bearing(0, 0, -1, 0), 180.0, places=6)
        self.assertAlmostEqual(GeoUtils.bearing(0, 0, 0, -1), 270.0, places=6)

    def test_range_is_half_open(self):
        for lat2, lng2 in [(1, 0), (1, 1), (-1, 1), (-1, -1), (1, -0.0001)]:
            bearing = GeoUtils.bearing(0, 0, lat2, lng2)
            self.assertGreaterEqual(bearing, 0.0)
            self.assertLess(bearing, 360.0)

    def test_coincident_points_return_zero(self):
        self.assertEqual(GeoUtils.bearing(52.0, 21.0, 52.0, 21.0), 0.0)


class TestDistance(unittest.TestCase):
    def test_one_degree_of_latitude(self):
        expected = GeoUtils.EARTH_RADIUS * math.pi / 180
        self.assertAlmostEqual(GeoUtils.distance(0, 0, 1, 0), expected, delta=0.01)

    def test_symmetric_and_zero_at_same_point(self):
        d1 = GeoUtils.distance(40.0, -74.0, 40.1, -74.2)
        d2 = GeoUtils.distance(40.1, -74.2, 40.0, -74.0)
        self.assertAlmostEqual(d1, d2, places=6)
        self.assertEqual(GeoUtils.distance(40.0, -74.0, 40.0, -74.0), 0.0)

    def test_antipodal_points_do_not_fail(self):
        d = GeoUtils.distance(0, 0, 0, 180)
        self.assertAlmostEqual(d, GeoUtils.EARTH_RADIUS * math.pi, delta=1.0)


class TestProject(unittest.TestCase):
    def test_round_trip_with_bearing_and_distance(self):
        a = (40.0, -74.0)
        b = (40.1, -74.2)
        bearing = GeoUtils.bearing(*a, *b)
        distance = GeoUtils.distance(*a, *b)

        lat, lng = GeoUtils.project(a[0], a[1], bearing, distance)

        self.assertLess(GeoUtils.distance(lat, lng, *b), 1.0)

    def test_zero_distance_returns_start(self):
        lat, lng = GeoUtils.project(52.2297, 21.0122, 123.0, 0)
        self.assertAlmostEqual(lat, 52.2297, places=9)
        self.assertAlmostEqual(lng, 21.0122, places=9)

    def test_projected_distance_matches(self):
        lat, lng = GeoUtils.project(10.0, 20.0, 45.0, 5000)
        self.assertAlmostEqual(GeoUtils.distance(10.0, 20.0, lat, lng), 5000, delta=0.01)
        self.assertAlmostEqual(GeoUtils.bearing(10.0, 20.0, lat, lng), 45.0, delta=0.01)

    def test_longitude_wraps_across_antimeridian(self):
        lat, lng = GeoUtils.project(0.0, 179.9999, 90.0, 1000)
        self.assertTrue(-180.0 <= lng <= 180.0)
        self.assertLess(lng, 0)


class TestValidation(unittest.TestCase):
    def test_valid_coordinates(self):
        self.assertTrue(GeoUtils.is_valid_coordinate(0, 0))
        self.assertTrue(GeoUtils.is_valid_coordinate(-90, 180))
        self.assertTrue(GeoUtils.is_valid_coordinate(45.5, -122.25))

    def test_invalid_coordinates(self):
        self.assertFalse(GeoUtils.is_valid_coordinate(91, 0))
        self.assertFalse(GeoUtils.is_valid_coordinate(0, 180.5))
        self.assertFalse(GeoUtils.is_valid_coordinate(float('nan'), 0))
        self.assertFalse(GeoUtils.is_valid_coordinate(0, float('inf')))
        self.assertFalse(GeoUtils.is_valid_coordinate("40", "-74"))
        self.assertFalse(GeoUtils.is_valid_coordinate(True, 0))
        self.assertFalse(GeoUtils.is_valid_coordinate(None, 0))

    def test_accuracy(self):
        self.assertTrue(GeoUtils.is_valid_accuracy(0))
        self.assertTrue(GeoUtils.is_valid_accuracy(12.5))
        self.assertFalse(GeoUtils.is_valid_accuracy(-1.0))
        self.assertFalse(GeoUtils.is_valid_accuracy(float('inf')))
        self.assertFalse(GeoUtils.is_valid_accuracy(float('nan')))
        self.assertFalse(GeoUtils.is_valid_accuracy("5"))
        self.assertFalse(GeoUtils.is_valid_accuracy(True))


class TestAngles(unittest.TestCase):
    def test_normalize_angle(self):
        self.assertAlmostEqual(GeoUtils.normalize_angle(270), -90)
        self.assertAlmostEqual(GeoUtils.normalize_angle(-270), 90)
        self.assertAlmostEqual(GeoUtils.normalize_angle(720), 0)

    def test_angle_difference_takes_shortest_path(self):
        self.assertAlmostEqual(GeoUtils.angle_difference(350, 10), 20)
        self.assertAlmostEqual(GeoUtils.angle_difference(10, 350), -20)

    def test_normalize_longitude(self):
        self.assertAlmostEqual(GeoUtils.normalize_longitude(190), -170)
        self.assertAlmostEqual(GeoUtils.normalize_longitude(-190), 170)
        self.assertEqual(GeoUtils.normalize_longitude(180), 180)


if __name__ == '__main__':
    unittest.main()

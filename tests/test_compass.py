"""
Integration tests for the compass navigator driving loop
"""
import unittest
from unittest.mock import MagicMock, Mock

from navigation.compass import CompassNavigator
from navigation.cast_session import REASON_NO_HEADING
from navigation.core.data_types import CastPhase, Destination, DestinationOrigin, HeadingTier, Position
from navigation.core.interfaces import DestinationRepository
from sensors.core.interfaces import PositionError


class CompassTestCase(unittest.TestCase):
    def setUp(self):
        self.repository = Mock(spec=DestinationRepository)
        self.repository.load.return_value = None
        self.navigator = CompassNavigator(repository=self.repository)
        self.navigator.start_heading_updates()

    def cast_swipes(self, start=0):
        result = None
        for offset in (0, 300, 600):
            result = self.navigator.cast_gesture(80, 150, start + offset)
        return result


class TestPositionAndHeading(CompassTestCase):
    def test_position_update_and_error(self):
        self.navigator.on_position_error(PositionError.TIMEOUT)
        self.assertEqual(self.navigator.gps_error, "GPS timed out")
        self.assertEqual(self.navigator.tick().gps_error, "GPS timed out")

        self.assertTrue(self.navigator.update_position(52.0, 21.0, 4.0))
        self.assertIsNone(self.navigator.gps_error)
        self.assertEqual(self.navigator.position.accuracy, 4.0)

    def test_invalid_position_ignored(self):
        self.assertFalse(self.navigator.update_position(100.0, 21.0))
        self.assertIsNone(self.navigator.position)

    def test_non_finite_accuracy_ignored(self):
        self.assertFalse(self.navigator.update_position(52.0, 21.0, float('inf')))
        self.assertFalse(self.navigator.update_position(52.0, 21.0, -5.0))
        self.assertIsNone(self.navigator.position)

        self.navigator.on_position_update(Position(lat=52.0, lng=21.0, accuracy=float('inf')))
        self.assertIsNone(self.navigator.position)
        self.assertIsNone(self.navigator.tick().position)

    def test_orientation_channels(self):
        self.navigator.on_standard_orientation(alpha=10, absolute=False)
        self.assertEqual(self.navigator.heading.tier, HeadingTier.RELATIVE_UNRELIABLE)
        self.navigator.on_absolute_orientation(90)
        self.assertEqual(self.navigator.heading.degrees, 270)
        self.assertFalse(self.navigator.on_standard_orientation(compass_heading=5))


class TestDestination(CompassTestCase):
    def test_set_from_text_without_fix(self):
        destination = self.navigator.set_destination_from_text("40.7128, -74.0060")
        self.assertEqual(destination.origin, DestinationOrigin.TYPED)
        self.assertEqual(destination.initial_distance, 0.0)
        self.repository.save.assert_called_once_with(destination)

    def test_set_from_text_measures_initial_distance(self):
        self.navigator.update_position(40.0, -74.0)
        destination = self.navigator.set_destination_from_text("40.1, -74.0")
        self.assertAlmostEqual(destination.initial_distance, 11119.5, delta=1.0)

    def test_unparseable_text_keeps_destination(self):
        first = self.navigator.set_destination_from_text("1, 2")
        self.assertIsNone(self.navigator.set_destination_from_text("nowhere"))
        self.assertEqual(self.navigator.destination, first)

    def test_destination_observer(self):
        observer = Mock()
        self.navigator.add_destination_observer(observer)
        destination = self.navigator.set_destination_from_text("1, 2")
        observer.assert_called_once_with(destination)

    def test_failing_observer_does_not_break_update(self):
        self.navigator.add_destination_observer(Mock(side_effect=RuntimeError("boom")))
        self.assertIsNotNone(self.navigator.set_destination_from_text("1, 2"))

    def test_invalid_destination_rejected(self):
        self.assertFalse(self.navigator.set_destination(Destination(lat=95.0, lng=0.0)))
        self.assertIsNone(self.navigator.destination)

    def test_load_destination(self):
        saved = Destination(lat=3.0, lng=4.0, origin=DestinationOrigin.CAST, initial_distance=500)
        self.repository.load.return_value = saved
        self.assertEqual(self.navigator.load_destination(), saved)
        self.assertEqual(self.navigator.destination, saved)

    def test_load_without_repository(self):
        self.assertIsNone(CompassNavigator().load_destination())


class TestTick(CompassTestCase):
    def test_idle_state(self):
        state = self.navigator.tick()
        self.assertIsNone(state.bearing_to_target)
        self.assertIsNone(state.distance_to_target)
        self.assertFalse(state.arrived)
        self.assertEqual(state.cast_phase, CastPhase.IDLE)

    def test_bearing_distance_and_arrow(self):
        self.navigator.update_position(0.0, 0.0, 5.0)
        self.navigator.set_destination_from_text("0, 1")
        self.navigator.on_absolute_orientation(0)  # facing north

        state = self.navigator.tick()

        self.assertAlmostEqual(state.bearing_to_target, 90.0, places=6)
        self.assertAlmostEqual(state.distance_to_target, 111194.9, delta=1.0)
        self.assertAlmostEqual(state.arrow_angle, 18.0)
        self.assertFalse(state.arrived)

    def test_no_arrow_without_heading(self):
        self.navigator.update_position(0.0, 0.0)
        self.navigator.set_destination_from_text("0, 1")
        state = self.navigator.tick()
        self.assertIsNotNone(state.bearing_to_target)
        self.assertIsNone(state.arrow_angle)

    def test_arrival_notifies_once_per_destination(self):
        observer = Mock()
        self.navigator.add_arrival_observer(observer)
        self.navigator.update_position(52.0, 21.0, 5.0)
        destination = self.navigator.set_destination_from_text("52.0, 21.0")

        self.assertTrue(self.navigator.tick().arrived)
        self.assertTrue(self.navigator.tick().arrived)
        observer.assert_called_once_with(destination)

        self.navigator.set_destination_from_text("52.00001, 21.0")
        self.navigator.tick()
        self.assertEqual(observer.call_count, 2)

    def test_state_serializes(self):
        self.navigator.update_position(52.0, 21.0)
        data = self.navigator.tick().to_dict()
        self.assertEqual(data['cast_phase'], 'idle')
        self.assertEqual(data['heading']['tier'], 'unavailable')
        self.assertEqual(data['position']['lat'], 52.0)


class TestCastFlow(CompassTestCase):
    def test_cast_becomes_destination(self):
        observer = Mock()
        self.navigator.add_destination_observer(observer)
        self.navigator.update_position(0.0, 0.0, 5.0)
        self.navigator.on_absolute_orientation(270)  # heading 90, due east

        self.assertTrue(self.cast_swipes().success)
        state = self.navigator.tick()
        self.assertEqual(state.cast_phase, CastPhase.ACTIVE)
        self.assertEqual(state.cast_distance, 100)
        self.assertIsNone(state.bearing_to_target)

        self.navigator.cast_select(step=2)
        result = self.navigator.cast_commit()

        self.assertTrue(result.success)
        self.assertEqual(result.distance, 150)
        destination = self.navigator.destination
        self.assertEqual(destination.origin, DestinationOrigin.CAST)
        self.assertGreater(destination.lng, 0)
        observer.assert_called_once_with(destination)
        self.repository.save.assert_called_once_with(destination)

        state = self.navigator.tick()
        self.assertAlmostEqual(state.distance_to_target, 150, delta=0.01)
        self.assertAlmostEqual(state.bearing_to_target, 90, delta=0.01)

    def test_cast_refused_without_fix(self):
        result = self.cast_swipes()
        self.assertFalse(result.success)
        self.assertEqual(self.navigator.cast_session.phase, CastPhase.IDLE)

    def test_commit_refused_without_heading(self):
        self.navigator.update_position(0.0, 0.0)
        self.cast_swipes()
        result = self.navigator.cast_commit()
        self.assertEqual(result.reason, REASON_NO_HEADING)
        self.assertIsNone(self.navigator.destination)
        self.assertTrue(self.navigator.cast_session.active)

    def test_cancel_keeps_previous_destination(self):
        previous = self.navigator.set_destination_from_text("1, 1")
        self.navigator.update_position(0.0, 0.0)
        self.cast_swipes()
        self.assertTrue(self.navigator.cast_cancel())
        self.assertEqual(self.navigator.destination, previous)

    def test_select_by_index(self):
        self.navigator.update_position(0.0, 0.0)
        self.cast_swipes()
        self.assertEqual(self.navigator.cast_select(index=0), 0)
        self.assertEqual(self.navigator.tick().cast_distance, 10)

    def test_touch_gestures(self):
        self.navigator.update_position(0.0, 0.0)
        for t in (0, 400, 800):
            self.navigator.cast_touch_start(700, t)
            result = self.navigator.cast_touch_end(600, t + 100)
        self.assertTrue(result.success)

    def test_drag_and_momentum(self):
        self.navigator.update_position(0.0, 0.0)
        self.assertIsNone(self.navigator.cast_drag_move(450, 100))
        self.cast_swipes()

        self.navigator.cast_drag_start(500, 0)
        self.assertEqual(self.navigator.cast_drag_move(450, 100), 19)
        self.assertTrue(self.navigator.cast_drag_end())

        frames = 0
        while self.navigator.cast_momentum_step(16) and frames < 1000:
            frames += 1
        self.assertLess(frames, 1000)
        self.assertGreater(self.navigator.tick().cast_distance, 125)

    def test_picker_input_holds_the_lock(self):
        self.navigator.update_position(0.0, 0.0)
        self.cast_swipes()
        self.navigator._lock = MagicMock()

        self.navigator.cast_drag_start(500, 0)
        self.navigator.cast_drag_move(450, 100)
        self.navigator.cast_drag_end()
        self.navigator.cast_momentum_step(16)
        self.navigator.cast_deferred(Mock())()

        self.assertEqual(self.navigator._lock.__enter__.call_count, 6)
        self.assertEqual(self.navigator._lock.__exit__.call_count, 6)

    def test_deferred_effect_follows_session(self):
        self.navigator.update_position(0.0, 0.0)
        self.cast_swipes()
        # The effect re-enters the navigator, so it must run outside the lock
        callback = Mock(side_effect=self.navigator.cast_cancel)
        run = self.navigator.cast_deferred(callback)
        self.assertTrue(run())
        callback.assert_called_once()
        self.assertFalse(self.navigator.cast_session.active)

        self.assertFalse(run())
        self.cast_swipes(start=5000)
        self.assertFalse(run())
        callback.assert_called_once()

        idle = self.navigator.cast_deferred(Mock(), expect_active=False)
        self.assertFalse(idle())
        self.navigator.cast_cancel()
        self.assertTrue(idle())


if __name__ == '__main__':
    unittest.main()

import json
import os
import tempfile
import unittest

from destination.store import JsonKeyValueStore
from navigation.core.data_types import Destination, DestinationOrigin
from telemetry.achievements import ACHIEVEMENTS, ACHIEVEMENTS_KEY, AchievementTracker


def ids(achievements):
    return sorted(a.id for a in achievements)


class TestAchievementTracker(unittest.TestCase):
    def setUp(self):
        self.tracker = AchievementTracker(clock=lambda: 1000.0)

    def test_registry_ids_are_unique(self):
        registry_ids = [a.id for a in ACHIEVEMENTS]
        self.assertEqual(len(registry_ids), len(set(registry_ids)))

    def test_first_arrival(self):
        unlocked = self.tracker.on_arrival(Destination(lat=1, lng=1, initial_distance=300))
        self.assertEqual(ids(unlocked), ['first_step'])
        self.assertEqual(self.tracker.load().unlocked['first_step'], 1000000)
        self.assertEqual(self.tracker.load().total_distance, 300)

    def test_unlocks_only_once(self):
        self.tracker.on_arrival(Destination(lat=1, lng=1))
        self.assertEqual(self.tracker.on_arrival(Destination(lat=1, lng=1)), [])
        self.assertEqual(self.tracker.unlocked_count(), 1)

    def test_typed_long_trip(self):
        destination = Destination(lat=1, lng=1, origin=DestinationOrigin.TYPED, initial_distance=2500)
        self.assertEqual(ids(self.tracker.on_arrival(destination)), ['first_step', 'novice_navigator'])

    def test_cast_trip_does_not_count_as_typed(self):
        destination = Destination(lat=1, lng=1, origin=DestinationOrigin.CAST, initial_distance=2500)
        self.assertNotIn('novice_navigator', ids(self.tracker.on_arrival(destination)))

    def test_long_cast(self):
        destination = Destination(lat=1, lng=1, origin=DestinationOrigin.CAST, initial_distance=150000)
        self.assertIn('master_wanderer', ids(self.tracker.on_arrival(destination)))

    def test_cumulative_distance(self):
        for _ in range(4):
            self.tracker.on_arrival(Destination(lat=1, lng=1, initial_distance=100000))
        self.assertNotIn('eternal_traveler', self.tracker.load().unlocked)
        unlocked = self.tracker.on_arrival(Destination(lat=1, lng=1, initial_distance=100000))
        self.assertEqual(ids(unlocked), ['eternal_traveler'])

    def test_summary(self):
        self.tracker.on_arrival(Destination(lat=1, lng=1, initial_distance=10))
        summary = self.tracker.summary()
        self.assertEqual(summary['unlocked_count'], 1)
        self.assertEqual(len(summary['achievements']), len(ACHIEVEMENTS))
        first = next(a for a in summary['achievements'] if a['id'] == 'first_step')
        self.assertEqual(first['unlocked_at'], 1000000)


class TestImportExport(unittest.TestCase):
    def test_export_round_trip_into_fresh_tracker(self):
        source = AchievementTracker(clock=lambda: 1000.0)
        source.on_arrival(Destination(lat=1, lng=1, initial_distance=2500))

        target = AchievementTracker(clock=lambda: 2000.0)
        self.assertTrue(target.import_json(source.export_json()))
        self.assertEqual(target.load().unlocked, source.load().unlocked)
        self.assertEqual(target.load().total_distance, 2500)

    def test_merge_keeps_earliest_and_largest(self):
        tracker = AchievementTracker(clock=lambda: 5000.0)
        tracker.on_arrival(Destination(lat=1, lng=1, initial_distance=10))

        exported = json.dumps({'unlocked': {'first_step': 1}, 'stats': {'totalDistance': 5}})
        self.assertTrue(tracker.import_json(exported))

        data = tracker.load()
        self.assertEqual(data.unlocked['first_step'], 1)
        self.assertEqual(data.total_distance, 10)

    def test_import_rechecks_distance(self):
        tracker = AchievementTracker()
        exported = json.dumps({'unlocked': {}, 'stats': {'totalDistance': 600000}})
        self.assertTrue(tracker.import_json(exported))

        unlocked = tracker.load().unlocked
        self.assertIn('eternal_traveler', unlocked)
        self.assertNotIn('first_step', unlocked)

    def test_invalid_import(self):
        tracker = AchievementTracker()
        self.assertFalse(tracker.import_json("not json"))
        self.assertFalse(tracker.import_json(json.dumps({'unlocked': []})))
        self.assertFalse(tracker.import_json(json.dumps([1, 2])))
        self.assertEqual(tracker.unlocked_count(), 0)

    def test_import_rejects_out_of_range_numbers(self):
        tracker = AchievementTracker()
        self.assertFalse(tracker.import_json('{"unlocked": {"first_step": 1e400}, "stats": {}}'))
        self.assertFalse(tracker.import_json('{"unlocked": {"first_step": NaN}, "stats": {}}'))
        self.assertFalse(tracker.import_json('{"unlocked": {}, "stats": {"totalDistance": 1e400}}'))
        self.assertEqual(tracker.unlocked_count(), 0)
        self.assertEqual(tracker.load().total_distance, 0.0)


class TestPersistence(unittest.TestCase):
    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        self.store = JsonKeyValueStore(os.path.join(self._tmpdir.name, 'state.json'))

    def tearDown(self):
        self._tmpdir.cleanup()

    def test_progress_survives_restart(self):
        AchievementTracker(store=self.store).on_arrival(Destination(lat=1, lng=1, initial_distance=50))
        reloaded = AchievementTracker(store=self.store)
        self.assertIn('first_step', reloaded.load().unlocked)
        self.assertEqual(reloaded.load().total_distance, 50)

    def test_corrupt_record_starts_fresh(self):
        self.store.set(ACHIEVEMENTS_KEY, {'unlocked': 'bad'})
        tracker = AchievementTracker(store=self.store)
        self.assertEqual(tracker.unlocked_count(), 0)
        self.assertEqual(ids(tracker.on_arrival(Destination(lat=1, lng=1))), ['first_step'])


if __name__ == '__main__':
    unittest.main()

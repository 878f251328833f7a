"""
Achievement bookkeeping for arrivals

Each achievement has a stable id that never changes across versions; names
and descriptions may. The save record stores only ids, unlock timestamps and
stats, so editing the registry never breaks saved progress.
"""
import json
import logging
import math
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from navigation.core.data_types import Destination, DestinationOrigin

logger = logging.getLogger(__name__)

ACHIEVEMENTS_KEY = 'compass_achievements'


@dataclass(frozen=True)
class AchievementContext:
    """What a check sees when an event fires"""
    event: str
    origin: Optional[DestinationOrigin]
    initial_distance: float
    total_distance: float


@dataclass(frozen=True)
class Achievement:
    id: str
    name: str
    description: str
    check: Callable[[AchievementContext], bool]

    def to_dict(self) -> Dict[str, Any]:
        return {'id': self.id, 'name': self.name, 'description': self.description}


ACHIEVEMENTS: List[Achievement] = [
    Achievement(
        id='first_step',
        name='First Step',
        description='Arrive at your first destination',
        check=lambda ctx: ctx.event == 'arrival',
    ),
    Achievement(
        id='novice_navigator',
        name='Novice Navigator',
        description='Arrive at a coordinate destination from 2 km away',
        check=lambda ctx: (ctx.event == 'arrival'
                           and ctx.origin is DestinationOrigin.TYPED
                           and ctx.initial_distance >= 2000),
    ),
    Achievement(
        id='master_wanderer',
        name='Master Wanderer',
        description='Arrive at a cast destination 100 km away',
        check=lambda ctx: (ctx.event == 'arrival'
                           and ctx.origin is DestinationOrigin.CAST
                           and ctx.initial_distance >= 100000),
    ),
    Achievement(
        id='eternal_traveler',
        name='Eternal Traveler',
        description='Travel a cumulative 500 km across all destinations',
        check=lambda ctx: ctx.total_distance >= 500000,
    ),
]


@dataclass
class AchievementData:
    """Persisted progress: unlock timestamps (ms) and cumulative stats"""
    unlocked: Dict[str, int] = field(default_factory=dict)
    total_distance: float = 0.0  # meters

    def to_dict(self) -> Dict[str, Any]:
        return {
            'unlocked': dict(self.unlocked),
            'stats': {'totalDistance': self.total_distance}
        }

    @classmethod
    def from_dict(cls, data: Any) -> 'AchievementData':
        """
        Raises:
            ValueError: record lacks the unlocked/stats sections
        """
        if not isinstance(data, dict):
            raise ValueError("Achievement record must be an object")
        unlocked = data.get('unlocked')
        stats = data.get('stats')
        if not isinstance(unlocked, dict) or not isinstance(stats, dict):
            raise ValueError("Achievement record needs 'unlocked' and 'stats' objects")
        try:
            cleaned = {str(k): int(v) for k, v in unlocked.items()}
            total = float(stats.get('totalDistance', 0) or 0)
        except (TypeError, ValueError, OverflowError) as e:
            raise ValueError(f"Invalid achievement values: {e}")
        if not math.isfinite(total):
            raise ValueError(f"Invalid total distance: {total}")
        return cls(unlocked=cleaned, total_distance=max(0.0, total))


class AchievementTracker:
    """Checks achievements on arrival and keeps progress in a key-value store"""

    def __init__(self, store=None, achievements: Optional[List[Achievement]] = None,
                 clock: Callable[[], float] = time.time):
        """
        Args:
            store: Object with get(key) / set(key, value); in-memory when None
            achievements: Registry override
            clock: Seconds since epoch
        """
        self.store = store
        self.achievements = achievements if achievements is not None else ACHIEVEMENTS
        self._clock = clock
        self._memory: Optional[Dict[str, Any]] = None

    def load(self) -> AchievementData:
        record = self.store.get(ACHIEVEMENTS_KEY) if self.store else self._memory
        if record is None:
            return AchievementData()
        try:
            return AchievementData.from_dict(record)
        except ValueError as e:
            logger.warning(f"Corrupt achievement data, starting fresh: {e}")
            return AchievementData()

    def save(self, data: AchievementData) -> bool:
        if self.store is None:
            self._memory = data.to_dict()
            return True
        return self.store.set(ACHIEVEMENTS_KEY, data.to_dict())

    def on_arrival(self, destination: Optional[Destination]) -> List[Achievement]:
        """Accumulate the trip distance and unlock what now qualifies"""
        data = self.load()
        if destination is not None and destination.initial_distance:
            data.total_distance += destination.initial_distance
        return self._check('arrival', data, destination)

    def _check(self, event: str, data: AchievementData,
               destination: Optional[Destination]) -> List[Achievement]:
        ctx = AchievementContext(
            event=event,
            origin=destination.origin if destination else None,
            initial_distance=destination.initial_distance if destination else 0.0,
            total_distance=data.total_distance
        )

        newly_unlocked = []
        now_ms = int(self._clock() * 1000)
        for achievement in self.achievements:
            if achievement.id in data.unlocked:
                continue
            if achievement.check(ctx):
                data.unlocked[achievement.id] = now_ms
                newly_unlocked.append(achievement)

        # Stats may have changed even without a new unlock
        self.save(data)

        for achievement in newly_unlocked:
            logger.info(f"🏆 Achievement unlocked: {achievement.name}")
        return newly_unlocked

    def unlocked_count(self) -> int:
        return len(self.load().unlocked)

    def summary(self) -> Dict[str, Any]:
        data = self.load()
        return {
            'achievements': [
                dict(a.to_dict(), unlocked_at=data.unlocked.get(a.id))
                for a in self.achievements
            ],
            'unlocked_count': len(data.unlocked),
            'total_distance': data.total_distance
        }

    def export_json(self) -> str:
        return json.dumps(self.load().to_dict())

    def import_json(self, json_str: str) -> bool:
        """
        Merge exported progress into the current record

        Earlier unlock times win and the larger cumulative distance is kept.
        The merged stats are re-checked, so a crossed distance threshold
        unlocks immediately.

        Returns:
            False if the input is not a valid export
        """
        try:
            imported = AchievementData.from_dict(json.loads(json_str))
        except (TypeError, ValueError) as e:
            logger.warning(f"Rejected achievement import: {e}")
            return False

        current = self.load()
        for achievement_id, timestamp in imported.unlocked.items():
            existing = current.unlocked.get(achievement_id)
            if existing is None or timestamp < existing:
                current.unlocked[achievement_id] = timestamp
        current.total_distance = max(current.total_distance, imported.total_distance)

        self._check('import', current, None)
        logger.info(f"Imported achievements, {len(current.unlocked)} unlocked")
        return True

"""Adaptive distance steps for cast-a-point: fine close up, coarse at range"""
from typing import List, Sequence, Tuple

# (band end, step) pairs; each band starts one step above the previous end.
# The 10 m floor sits just above typical phone GPS accuracy.
DISTANCE_BANDS: Tuple[Tuple[int, int], ...] = (
    (100, 5),
    (500, 25),
    (1000, 50),
    (5000, 250),
    (20000, 1000),
    (100000, 5000),
)
MIN_DISTANCE = 10  # meters


def build_distance_steps(start: int = MIN_DISTANCE,
                         bands: Sequence[Tuple[int, int]] = DISTANCE_BANDS) -> List[int]:
    """
    Generate the strictly increasing list of candidate cast distances

    Args:
        start: First value in meters
        bands: (band end, step) pairs in ascending order

    Returns:
        Distances in meters
    """
    steps = [start]
    for end, step in bands:
        value = steps[-1] + step
        while value <= end:
            steps.append(value)
            value += step
    return steps


class DistanceStepTable:
    """Immutable table of cast distances with an index-based cursor API"""

    def __init__(self, start: int = MIN_DISTANCE,
                 bands: Sequence[Tuple[int, int]] = DISTANCE_BANDS):
        self._steps = tuple(build_distance_steps(start, bands))

    @property
    def steps(self) -> Tuple[int, ...]:
        return self._steps

    def __len__(self) -> int:
        return len(self._steps)

    def __getitem__(self, index: int) -> int:
        return self._steps[index]

    def __iter__(self):
        return iter(self._steps)

    def clamp_index(self, index: int) -> int:
        """Clamp an index into [0, len - 1]"""
        return max(0, min(len(self._steps) - 1, int(index)))

    def value_at(self, index: int) -> int:
        return self._steps[self.clamp_index(index)]

    def nearest_index(self, target_meters: float) -> int:
        """Index of the entry closest to target_meters, ties going to the lower index"""
        closest = 0
        min_diff = abs(self._steps[0] - target_meters)
        for i, value in enumerate(self._steps[1:], start=1):
            diff = abs(value - target_meters)
            if diff < min_diff:
                min_diff = diff
                closest = i
        return closest

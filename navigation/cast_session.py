"""
Cast-a-point session

Three quick upward swipes arm cast mode; the user then picks a distance from
the step table and casts a point along the current heading.

    idle -> armed(n) -> active(selected_index) -> committed | cancelled -> idle

All timing decisions compare caller-supplied millisecond timestamps, so the
session tolerates irregular callback delivery and is testable without timers.
"""
import logging
from typing import Callable, Optional

from config.settings import cast_config
from .core.data_types import (
    CastPhase, CastResult, Destination, DestinationOrigin, HeadingReading, Position
)
from .algorithms.geo_utils import GeoUtils
from .algorithms.distance_steps import DistanceStepTable

logger = logging.getLogger(__name__)

REASON_NO_POSITION = "GPS required to cast"
REASON_NO_HEADING = "Point phone in a direction first"
REASON_NOT_ACTIVE = "Cast mode is not active"


class SwipeDetector:
    """Counts qualifying upward swipes inside a sliding time window"""

    def __init__(self, min_distance: float = cast_config["swipe_min_distance"],
                 max_duration: float = cast_config["swipe_max_duration"],
                 window: float = cast_config["swipe_window"],
                 required: int = cast_config["swipes_required"]):
        self.min_distance = min_distance
        self.max_duration = max_duration
        self.window = window
        self.required = required
        self.count = 0
        self.first_time: Optional[float] = None
        self.last_time: Optional[float] = None

    def qualifies(self, delta_y: float, duration_ms: float) -> bool:
        """delta_y is positive for an upward drag"""
        return delta_y >= self.min_distance and 0 <= duration_ms <= self.max_duration

    def register(self, delta_y: float, duration_ms: float, timestamp_ms: float) -> bool:
        """
        Feed one completed gesture

        Returns:
            True when this gesture completes the required swipe count
        """
        if not self.qualifies(delta_y, duration_ms):
            self.reset()
            return False

        if self.count == 0 or timestamp_ms - self.first_time > self.window:
            self.count = 0
            self.first_time = timestamp_ms

        self.count += 1
        self.last_time = timestamp_ms

        if self.count >= self.required:
            self.reset()
            return True
        return False

    def reset(self):
        self.count = 0
        self.first_time = None
        self.last_time = None


class CastSession:
    """Gesture-driven distance selection that projects a new destination"""

    def __init__(self,
                 position_provider: Callable[[], Optional[Position]],
                 heading_provider: Callable[[], HeadingReading],
                 step_table: Optional[DistanceStepTable] = None,
                 swipe_detector: Optional[SwipeDetector] = None,
                 default_distance: float = cast_config["default_distance"],
                 sensitivity: float = cast_config["picker_sensitivity"],
                 momentum_decay: float = cast_config["momentum_decay"],
                 momentum_min_velocity: float = cast_config["momentum_min_velocity"],
                 momentum_stop_velocity: float = cast_config["momentum_stop_velocity"],
                 frame_ms: float = cast_config["frame_ms"]):
        """
        Args:
            position_provider: Returns the latest position fix or None
            heading_provider: Returns the live fused heading
            step_table: Candidate cast distances
            swipe_detector: Activation gesture recognizer
            default_distance: Distance the picker starts at (meters)
            sensitivity: Index change per pixel dragged
            momentum_decay: Velocity multiplier per frame of momentum
            momentum_min_velocity: Release velocity (px/ms) that starts momentum
            momentum_stop_velocity: Velocity (px/ms) below which momentum ends
            frame_ms: Nominal frame length the decay constant refers to
        """
        self._position_provider = position_provider
        self._heading_provider = heading_provider
        self.step_table = step_table or DistanceStepTable()
        self.swipe_detector = swipe_detector or SwipeDetector()
        self.default_distance = default_distance
        self.sensitivity = sensitivity
        self.momentum_decay = momentum_decay
        self.momentum_min_velocity = momentum_min_velocity
        self.momentum_stop_velocity = momentum_stop_velocity
        self.frame_ms = frame_ms

        self._phase = CastPhase.IDLE
        self.last_outcome: Optional[CastPhase] = None
        self.last_reason: Optional[str] = None
        self.selected_index = 0
        # Bumped on every activation so deferred effects can tell sessions apart
        self.generation = 0

        self._touch_start_y: Optional[float] = None
        self._touch_start_time: Optional[float] = None

        self._drag_offset = 0.0
        self._velocity = 0.0
        self._last_move_y: Optional[float] = None
        self._last_move_time: Optional[float] = None
        self._animating = False

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def phase(self) -> CastPhase:
        return self._phase

    @property
    def active(self) -> bool:
        return self._phase is CastPhase.ACTIVE

    @property
    def gesture_count(self) -> int:
        return self.swipe_detector.count

    @property
    def selected_distance(self) -> Optional[int]:
        if not self.active:
            return None
        return self.step_table[self.selected_index]

    @property
    def animating(self) -> bool:
        return self._animating

    # ------------------------------------------------------------------
    # Activation gesture
    # ------------------------------------------------------------------

    def touch_start(self, y: float, timestamp_ms: float):
        if self.active:
            return
        self._touch_start_y = y
        self._touch_start_time = timestamp_ms

    def touch_end(self, y: float, timestamp_ms: float) -> Optional[CastResult]:
        """Complete a touch started with touch_start(); screen y grows downward"""
        if self.active or self._touch_start_y is None:
            return None
        delta_y = self._touch_start_y - y
        duration = timestamp_ms - self._touch_start_time
        self._touch_start_y = None
        self._touch_start_time = None
        return self.register_gesture(delta_y, duration, timestamp_ms)

    def register_gesture(self, delta_y: float, duration_ms: float,
                         timestamp_ms: float) -> Optional[CastResult]:
        """
        Feed one completed gesture to the activation detector

        Returns:
            None while counting, otherwise the activation outcome
        """
        if self.active:
            return None

        if not self.swipe_detector.register(delta_y, duration_ms, timestamp_ms):
            self._phase = CastPhase.ARMED if self.swipe_detector.count > 0 else CastPhase.IDLE
            return None

        return self.activate()

    def activate(self) -> CastResult:
        """Enter cast mode; refused without a position fix"""
        if self._position_provider() is None:
            self._phase = CastPhase.IDLE
            self.last_reason = REASON_NO_POSITION
            logger.info(f"Cast mode refused: {REASON_NO_POSITION}")
            return CastResult(success=False, reason=REASON_NO_POSITION)

        self.generation += 1
        self._phase = CastPhase.ACTIVE
        self.last_reason = None
        self.selected_index = self.step_table.nearest_index(self.default_distance)
        self._reset_picker()
        logger.info(f"🎯 Cast mode active, starting at {self.step_table[self.selected_index]} m")
        return CastResult(success=True, distance=self.step_table[self.selected_index])

    # ------------------------------------------------------------------
    # Distance selection
    # ------------------------------------------------------------------

    def select_index(self, index: int) -> Optional[int]:
        """Set the selected index directly; returns the clamped index"""
        if not self.active:
            return None
        self.selected_index = self.step_table.clamp_index(index)
        return self.selected_index

    def step(self, count: int = 1) -> Optional[int]:
        """Move the selection by count steps"""
        if not self.active:
            return None
        return self.select_index(self.selected_index + count)

    def drag_start(self, y: float, timestamp_ms: float):
        if not self.active:
            return
        self._animating = False
        self._last_move_y = y
        self._last_move_time = timestamp_ms
        self._velocity = 0.0
        self._drag_offset = 0.0

    def drag_move(self, y: float, timestamp_ms: float) -> Optional[int]:
        """Finger moving up increases the distance"""
        if not self.active or self._last_move_y is None:
            return None

        delta_y = self._last_move_y - y
        dt = timestamp_ms - self._last_move_time
        if dt > 0:
            self._velocity = delta_y / dt

        self._last_move_y = y
        self._last_move_time = timestamp_ms

        self._drag_offset += delta_y * self.sensitivity
        self._apply_offset()
        return self.selected_index

    def drag_end(self) -> bool:
        """Release the drag; returns True if momentum continues the motion"""
        if not self.active:
            return False
        self._last_move_y = None
        self._last_move_time = None
        if abs(self._velocity) > self.momentum_min_velocity:
            self._animating = True
            return True
        self._drag_offset = 0.0
        return False

    def momentum_step(self, elapsed_ms: Optional[float] = None) -> bool:
        """
        Advance momentum by one scheduled frame

        Args:
            elapsed_ms: Time since the previous frame, nominal frame length if None

        Returns:
            True if the caller should schedule another frame
        """
        if not self._animating or not self.active:
            self._animating = False
            return False

        if elapsed_ms is None or elapsed_ms <= 0:
            elapsed_ms = self.frame_ms

        self._drag_offset += self._velocity * elapsed_ms * self.sensitivity
        self._velocity *= self.momentum_decay ** (elapsed_ms / self.frame_ms)
        self._apply_offset()

        if abs(self._velocity) < self.momentum_stop_velocity:
            self._animating = False
            self._drag_offset = 0.0
            return False
        return True

    def _apply_offset(self):
        last = len(self.step_table) - 1
        while self._drag_offset >= 1 and self.selected_index < last:
            self.selected_index += 1
            self._drag_offset -= 1
        while self._drag_offset <= -1 and self.selected_index > 0:
            self.selected_index -= 1
            self._drag_offset += 1
        if self.selected_index == 0 and self._drag_offset < 0:
            self._drag_offset = 0.0
        if self.selected_index == last and self._drag_offset > 0:
            self._drag_offset = 0.0

    def _reset_picker(self):
        self._drag_offset = 0.0
        self._velocity = 0.0
        self._last_move_y = None
        self._last_move_time = None
        self._animating = False

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    def commit(self) -> CastResult:
        """
        Project a point along the live heading at the selected distance

        Returns:
            CastResult with the new destination, or a refusal reason
            (session state unchanged on refusal)
        """
        if not self.active:
            return CastResult(success=False, reason=REASON_NOT_ACTIVE)

        heading = self._heading_provider()
        if heading is None or not heading.is_available:
            self.last_reason = REASON_NO_HEADING
            return CastResult(success=False, reason=REASON_NO_HEADING)

        position = self._position_provider()
        if position is None:
            self.last_reason = REASON_NO_POSITION
            return CastResult(success=False, reason=REASON_NO_POSITION)

        distance = self.step_table[self.selected_index]
        lat, lng = GeoUtils.project(position.lat, position.lng, heading.degrees, distance)
        destination = Destination(lat=lat, lng=lng, origin=DestinationOrigin.CAST,
                                  initial_distance=float(distance))

        logger.info(f"📍 Cast {distance} m at {heading.degrees:.0f}° -> ({lat:.6f}, {lng:.6f})")
        self._finish(CastPhase.COMMITTED)
        return CastResult(success=True, destination=destination,
                          bearing=heading.degrees, distance=float(distance))

    def cancel(self) -> bool:
        """Leave cast mode without a destination"""
        if not self.active:
            return False
        logger.info("Cast cancelled")
        self._finish(CastPhase.CANCELLED)
        return True

    def _finish(self, outcome: CastPhase):
        self.last_outcome = outcome
        self.last_reason = None
        self._reset_picker()
        self.swipe_detector.reset()
        self._phase = CastPhase.IDLE

    # ------------------------------------------------------------------
    # Deferred effects
    # ------------------------------------------------------------------

    def deferred(self, callback: Callable[[], None], expect_active: bool = True) -> Callable[[], bool]:
        """
        Wrap a delayed UI effect so it only applies if the session still matches

        Args:
            callback: Effect to run later
            expect_active: Run only while this same activation is still active;
                with False, run only while no session is active

        Returns:
            Callable returning True if the callback ran
        """
        generation = self.generation

        def run() -> bool:
            if expect_active:
                if not self.active or self.generation != generation:
                    return False
            elif self.active:
                return False
            callback()
            return True

        return run

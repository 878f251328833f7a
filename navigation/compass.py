"""Compass navigator - owns the shared state and runs the driving loop"""
import logging
import threading
from typing import Callable, List, Optional

from sensors.core.interfaces import PositionObserver, PositionError
from sensors.heading_fusion import HeadingFusion
from destination.parser import DestinationParser
from .core.interfaces import NavigationInterface, DestinationRepository
from .core.data_types import (
    CastResult, Destination, DestinationOrigin, HeadingReading,
    NavigationState, ParsedCoordinate, Position
)
from .algorithms.geo_utils import GeoUtils
from .algorithms.distance_steps import DistanceStepTable
from .arrival import ArrivalEvaluator
from .cast_session import CastSession
from .display import ArrowSmoother

logger = logging.getLogger(__name__)

DestinationCallback = Callable[[Destination], None]


class CompassNavigator(NavigationInterface, PositionObserver):
    """
    State aggregate for position, heading, destination and cast session

    Sensor channels write into it, tick() is the single reader per display
    frame. One lock guards every read-modify-write since the HTTP layer
    delivers updates from several threads. Observers are notified after the
    lock is released.
    """

    def __init__(self,
                 heading_fusion: Optional[HeadingFusion] = None,
                 repository: Optional[DestinationRepository] = None,
                 parser: Optional[DestinationParser] = None,
                 step_table: Optional[DistanceStepTable] = None,
                 arrival_evaluator: Optional[ArrivalEvaluator] = None,
                 arrow_smoother: Optional[ArrowSmoother] = None,
                 cast_session: Optional[CastSession] = None):
        self.heading_fusion = heading_fusion or HeadingFusion()
        self.repository = repository
        self.parser = parser or DestinationParser()
        self.step_table = step_table or DistanceStepTable()
        self.arrival = arrival_evaluator or ArrivalEvaluator()
        self.arrow = arrow_smoother or ArrowSmoother()
        self.cast_session = cast_session or CastSession(
            position_provider=lambda: self._position,
            heading_provider=lambda: self.heading_fusion.reading,
            step_table=self.step_table
        )

        self._position: Optional[Position] = None
        self._gps_error: Optional[str] = None
        self._destination: Optional[Destination] = None

        self._destination_observers: List[DestinationCallback] = []
        self._arrival_observers: List[DestinationCallback] = []

        self._lock = threading.Lock()

        logger.info("Compass navigator initialized")

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def add_destination_observer(self, callback: DestinationCallback):
        self._destination_observers.append(callback)

    def add_arrival_observer(self, callback: DestinationCallback):
        self._arrival_observers.append(callback)

    def _notify(self, observers: List[DestinationCallback], destination: Destination):
        for callback in list(observers):
            try:
                callback(destination)
            except Exception as e:
                logger.error(f"Observer {callback!r} failed: {e}", exc_info=True)

    # ------------------------------------------------------------------
    # Position channel
    # ------------------------------------------------------------------

    def on_position_update(self, position: Position):
        if not GeoUtils.is_valid_coordinate(position.lat, position.lng):
            logger.warning(f"Ignoring invalid position: ({position.lat}, {position.lng})")
            return
        if not GeoUtils.is_valid_accuracy(position.accuracy):
            logger.warning(f"Ignoring position with invalid accuracy: {position.accuracy}")
            return
        with self._lock:
            self._position = position
            self._gps_error = None
        logger.debug(f"Position updated: ({position.lat:.6f}, {position.lng:.6f}) ±{position.accuracy:.0f}m")

    def on_position_error(self, error: PositionError):
        with self._lock:
            self._gps_error = error.message

    def update_position(self, lat: float, lng: float, accuracy: float = 0.0) -> bool:
        """Convenience entry point for callers without a PositionSource"""
        if not GeoUtils.is_valid_coordinate(lat, lng):
            logger.warning(f"Ignoring invalid position: ({lat}, {lng})")
            return False
        if not GeoUtils.is_valid_accuracy(accuracy):
            logger.warning(f"Ignoring position with invalid accuracy: {accuracy}")
            return False
        self.on_position_update(Position(lat=float(lat), lng=float(lng), accuracy=accuracy))
        return True

    @property
    def position(self) -> Optional[Position]:
        return self._position

    @property
    def gps_error(self) -> Optional[str]:
        return self._gps_error

    # ------------------------------------------------------------------
    # Orientation channels
    # ------------------------------------------------------------------

    def start_heading_updates(self, absolute_channel: bool = True, standard_channel: bool = True,
                              permission_granted: bool = True) -> bool:
        with self._lock:
            return self.heading_fusion.start(absolute_channel, standard_channel, permission_granted)

    def stop_heading_updates(self):
        with self._lock:
            self.heading_fusion.stop()

    def on_absolute_orientation(self, alpha) -> bool:
        with self._lock:
            return self.heading_fusion.on_absolute_orientation(alpha)

    def on_standard_orientation(self, alpha=None, absolute=None, compass_heading=None) -> bool:
        with self._lock:
            return self.heading_fusion.on_standard_orientation(alpha, absolute, compass_heading)

    @property
    def heading(self) -> HeadingReading:
        return self.heading_fusion.reading

    # ------------------------------------------------------------------
    # Destination
    # ------------------------------------------------------------------

    @property
    def destination(self) -> Optional[Destination]:
        return self._destination

    def parse(self, text) -> Optional[ParsedCoordinate]:
        return self.parser.parse(text)

    def set_destination_from_text(self, text) -> Optional[Destination]:
        """
        Parse text and make it the active destination

        Returns:
            The new destination, or None if the input was unparseable
        """
        parsed = self.parser.parse(text)
        if parsed is None:
            logger.info("Destination input not recognized")
            return None

        with self._lock:
            initial_distance = 0.0
            if self._position is not None:
                initial_distance = GeoUtils.distance(self._position.lat, self._position.lng,
                                                     parsed.lat, parsed.lng)
            destination = Destination(lat=parsed.lat, lng=parsed.lng,
                                      origin=DestinationOrigin.TYPED,
                                      initial_distance=initial_distance)
            self._replace_destination(destination)

        logger.info(f"🎯 Destination set: ({parsed.lat:.5f}, {parsed.lng:.5f}) ({parsed.format.value})")
        self._notify(self._destination_observers, destination)
        return destination

    def set_destination(self, destination: Destination) -> bool:
        if not GeoUtils.is_valid_coordinate(destination.lat, destination.lng):
            logger.warning(f"Rejected destination with invalid coordinates: "
                           f"({destination.lat}, {destination.lng})")
            return False
        with self._lock:
            self._replace_destination(destination)
        self._notify(self._destination_observers, destination)
        return True

    def load_destination(self) -> Optional[Destination]:
        """Restore the saved destination at startup; absence is not an error"""
        if self.repository is None:
            return None
        destination = self.repository.load()
        if destination is not None:
            with self._lock:
                self._destination = destination
                self.arrival.reset()
        return destination

    def _replace_destination(self, destination: Destination):
        # Caller holds the lock
        self._destination = destination
        self.arrival.reset()
        if self.repository is not None:
            self.repository.save(destination)

    # ------------------------------------------------------------------
    # Cast a point
    # ------------------------------------------------------------------

    def cast_touch_start(self, y: float, timestamp_ms: float):
        with self._lock:
            self.cast_session.touch_start(y, timestamp_ms)

    def cast_touch_end(self, y: float, timestamp_ms: float) -> Optional[CastResult]:
        with self._lock:
            return self.cast_session.touch_end(y, timestamp_ms)

    def cast_gesture(self, delta_y: float, duration_ms: float, timestamp_ms: float) -> Optional[CastResult]:
        with self._lock:
            return self.cast_session.register_gesture(delta_y, duration_ms, timestamp_ms)

    def cast_select(self, index: Optional[int] = None, step: Optional[int] = None) -> Optional[int]:
        with self._lock:
            if index is not None:
                return self.cast_session.select_index(index)
            return self.cast_session.step(step or 0)

    def cast_drag_start(self, y: float, timestamp_ms: float):
        with self._lock:
            self.cast_session.drag_start(y, timestamp_ms)

    def cast_drag_move(self, y: float, timestamp_ms: float) -> Optional[int]:
        with self._lock:
            return self.cast_session.drag_move(y, timestamp_ms)

    def cast_drag_end(self) -> bool:
        with self._lock:
            return self.cast_session.drag_end()

    def cast_momentum_step(self, elapsed_ms: Optional[float] = None) -> bool:
        with self._lock:
            return self.cast_session.momentum_step(elapsed_ms)

    def cast_deferred(self, callback: Callable[[], None], expect_active: bool = True) -> Callable[[], bool]:
        """
        Session-guarded delayed effect

        The guard is evaluated under the lock; the callback itself runs after
        the lock is released so it may call back into the navigator.
        """
        with self._lock:
            guard = self.cast_session.deferred(lambda: None, expect_active=expect_active)

        def run() -> bool:
            with self._lock:
                still_valid = guard()
            if still_valid:
                callback()
            return still_valid

        return run

    def cast_commit(self) -> CastResult:
        with self._lock:
            result = self.cast_session.commit()
            if result.success:
                self._replace_destination(result.destination)
        if result.success:
            self._notify(self._destination_observers, result.destination)
        else:
            logger.info(f"Cast refused: {result.reason}")
        return result

    def cast_cancel(self) -> bool:
        with self._lock:
            return self.cast_session.cancel()

    # ------------------------------------------------------------------
    # Driving loop
    # ------------------------------------------------------------------

    def tick(self) -> NavigationState:
        """One display cycle: bearing, distance, arrival and arrow angle"""
        arrived_destination = None

        with self._lock:
            position = self._position
            destination = self._destination
            heading = self.heading_fusion.reading

            bearing = None
            distance = None
            arrow_angle = None
            arrived = False

            if not self.cast_session.active:
                if destination is not None and position is not None:
                    bearing = GeoUtils.bearing(position.lat, position.lng, destination.lat, destination.lng)
                    update = self.arrival.update(position, destination)
                    distance = update.distance
                    arrived = update.arrived
                    if update.just_arrived:
                        arrived_destination = destination

                    if heading.is_available and not arrived:
                        arrow_angle = self.arrow.update(bearing, heading.degrees)

            state = NavigationState(
                position=position,
                destination=destination,
                heading=heading,
                bearing_to_target=bearing,
                distance_to_target=distance,
                arrived=arrived,
                arrow_angle=arrow_angle,
                cast_phase=self.cast_session.phase,
                cast_distance=self.cast_session.selected_distance,
                gps_error=self._gps_error
            )

        if arrived_destination is not None:
            self._notify(self._arrival_observers, arrived_destination)

        return state

    def get_state(self) -> NavigationState:
        return self.tick()

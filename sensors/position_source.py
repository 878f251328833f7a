"""
Position sources - push fixes and errors to subscribed observers

PositionSource is fed by whatever delivers fixes (a platform callback, the
HTTP API). NMEAPositionSource parses NMEA GGA sentences from a receiver, and
SerialNMEAReader pumps sentences from a serial port into it.
"""
import logging
import threading
from typing import List, Optional

import pynmea2
import serial

from navigation.core.data_types import Position
from navigation.algorithms.geo_utils import GeoUtils
from .core.interfaces import PositionObserver, PositionError

logger = logging.getLogger(__name__)


class PositionSource:
    """Fan-out of position fixes; each new fix replaces the previous one"""

    def __init__(self):
        self._observers: List[PositionObserver] = []
        self._lock = threading.Lock()
        self.current_position: Optional[Position] = None
        self.last_error: Optional[PositionError] = None

    def subscribe(self, observer: PositionObserver):
        with self._lock:
            if observer not in self._observers:
                self._observers.append(observer)

    def unsubscribe(self, observer: PositionObserver):
        with self._lock:
            if observer in self._observers:
                self._observers.remove(observer)

    @property
    def observer_count(self) -> int:
        return len(self._observers)

    def push_fix(self, lat: float, lng: float, accuracy: float = 0.0) -> bool:
        """
        Deliver a fix to observers

        Returns:
            False if the coordinates are invalid and the fix was dropped
        """
        if not GeoUtils.is_valid_coordinate(lat, lng):
            logger.warning(f"Dropping invalid position fix: lat={lat}, lng={lng}")
            return False
        if not GeoUtils.is_valid_accuracy(accuracy):
            logger.warning(f"Dropping position fix with invalid accuracy: {accuracy}")
            return False

        position = Position(lat=float(lat), lng=float(lng), accuracy=accuracy)
        self.current_position = position
        self.last_error = None

        for observer in self._snapshot():
            observer.on_position_update(position)
        return True

    def push_error(self, error: PositionError):
        """Deliver a position error to observers"""
        self.last_error = error
        logger.warning(f"Position source error: {error.message}")
        for observer in self._snapshot():
            observer.on_position_error(error)

    def _snapshot(self) -> List[PositionObserver]:
        with self._lock:
            return list(self._observers)


class NMEAPositionSource(PositionSource):
    """Position source fed with NMEA sentences (GGA carries position and HDOP)"""

    def __init__(self, uere_meters: float = 5.0):
        """
        Args:
            uere_meters: User equivalent range error; accuracy = HDOP * UERE
        """
        super().__init__()
        self.uere_meters = uere_meters
        self.sentences_parsed = 0
        self.parse_errors = 0

    def feed_sentence(self, sentence: str) -> bool:
        """
        Parse one NMEA sentence

        Returns:
            True if the sentence produced a position fix
        """
        sentence = sentence.strip()
        if not sentence.startswith('$'):
            return False

        try:
            msg = pynmea2.parse(sentence)
        except pynmea2.ParseError as e:
            self.parse_errors += 1
            logger.debug(f"Failed to parse NMEA sentence: {e}")
            return False

        self.sentences_parsed += 1
        if isinstance(msg, pynmea2.GGA):
            return self._handle_gga(msg)
        return False

    def _handle_gga(self, gga: pynmea2.GGA) -> bool:
        try:
            fix_quality = int(gga.gps_qual) if gga.gps_qual else 0
        except (TypeError, ValueError):
            fix_quality = 0

        if fix_quality == 0 or not gga.lat or not gga.lon:
            self.push_error(PositionError.UNAVAILABLE)
            return False

        try:
            hdop = float(gga.horizontal_dil) if gga.horizontal_dil else 0.0
            lat = float(gga.latitude)
            lng = float(gga.longitude)
        except (TypeError, ValueError) as e:
            self.parse_errors += 1
            logger.error(f"Error parsing GGA values: {e}")
            return False

        return self.push_fix(lat, lng, accuracy=hdop * self.uere_meters)


class SerialNMEAReader:
    """Reads NMEA lines from a serial receiver into an NMEAPositionSource"""

    def __init__(self, source: NMEAPositionSource, port: str,
                 baudrate: int = 9600, timeout: float = 1.0):
        self.source = source
        self.port = port
        self.baudrate = baudrate
        self.timeout = timeout
        self.serial_conn: Optional[serial.Serial] = None
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    def connect(self) -> bool:
        logger.info(f"🔌 Connecting to GPS receiver on {self.port} at {self.baudrate} baud")
        try:
            self.serial_conn = serial.Serial(port=self.port, baudrate=self.baudrate, timeout=self.timeout)
        except serial.SerialException as e:
            logger.error(f"❌ Failed to open {self.port}: {e}")
            self.source.push_error(PositionError.UNAVAILABLE)
            return False
        return True

    def read_once(self) -> bool:
        """Read and feed a single line; returns True if it produced a fix"""
        if not self.serial_conn:
            return False
        try:
            raw = self.serial_conn.readline()
        except serial.SerialException as e:
            logger.error(f"Serial read error on {self.port}: {e}")
            self.source.push_error(PositionError.UNAVAILABLE)
            return False
        if not raw:
            return False
        line = raw.decode('ascii', errors='ignore')
        return self.source.feed_sentence(line)

    def start(self) -> bool:
        if self._thread and self._thread.is_alive():
            return True
        if not self.serial_conn and not self.connect():
            return False
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._read_loop, daemon=True, name="NMEAReader")
        self._thread.start()
        return True

    def stop(self):
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=2.0)
            self._thread = None
        if self.serial_conn:
            self.serial_conn.close()
            self.serial_conn = None
        logger.info(f"GPS reader on {self.port} stopped")

    def _read_loop(self):
        while not self._stop_event.is_set():
            self.read_once()

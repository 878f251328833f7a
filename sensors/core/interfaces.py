from abc import ABC, abstractmethod
from enum import Enum

from navigation.core.data_types import Position, HeadingReading


class PositionError(Enum):
    PERMISSION_DENIED = "permission-denied"
    UNAVAILABLE = "unavailable"
    TIMEOUT = "timeout"

    @property
    def message(self) -> str:
        return _POSITION_ERROR_MESSAGES[self]


_POSITION_ERROR_MESSAGES = {
    PositionError.PERMISSION_DENIED: "GPS permission denied",
    PositionError.UNAVAILABLE: "GPS unavailable",
    PositionError.TIMEOUT: "GPS timed out",
}


class PositionObserver(ABC):
    @abstractmethod
    def on_position_update(self, position: Position): pass

    @abstractmethod
    def on_position_error(self, error: PositionError): pass


class HeadingProvider(ABC):
    @abstractmethod
    def get_reading(self) -> HeadingReading: pass

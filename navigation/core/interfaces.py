"""Navigation system interfaces"""
from abc import ABC, abstractmethod
from typing import Optional
from .data_types import Destination, ParsedCoordinate, NavigationState


class CoordinateParser(ABC):
    """One destination text format. Returns None for "not this format", never raises."""

    @abstractmethod
    def parse(self, text: str) -> Optional[ParsedCoordinate]:
        """Parse already-trimmed text into a coordinate"""
        pass


class DestinationRepository(ABC):
    """Persistence for the single active destination"""

    @abstractmethod
    def load(self) -> Optional[Destination]:
        """Load saved destination, None when missing or unreadable"""
        pass

    @abstractmethod
    def save(self, destination: Destination) -> bool:
        """Persist destination, returns success"""
        pass

    @abstractmethod
    def clear(self) -> bool:
        """Remove saved destination"""
        pass


class NavigationInterface(ABC):
    """Main compass system interface"""

    @abstractmethod
    def set_destination(self, destination: Destination) -> bool:
        """Replace the active destination"""
        pass

    @abstractmethod
    def set_destination_from_text(self, text: str) -> Optional[Destination]:
        """Parse user text and make it the active destination"""
        pass

    @abstractmethod
    def tick(self) -> NavigationState:
        """Run one driving-loop cycle and return the resulting state"""
        pass

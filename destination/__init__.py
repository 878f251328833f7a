"""Destination text parsing and persistence"""
from .parser import DestinationParser, parse_destination
from .store import DestinationStore, JsonKeyValueStore

__all__ = ['DestinationParser', 'parse_destination', 'DestinationStore', 'JsonKeyValueStore']

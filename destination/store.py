"""
Destination persistence - a JSON file holding keyed records

The file maps fixed keys (e.g. 'compass_destination') to JSON values, so the
destination and achievement records can share one file.
"""
import json
import os
import logging
import threading
from typing import Any, Dict, Optional

from navigation.core.interfaces import DestinationRepository
from navigation.core.data_types import Destination
from navigation.algorithms.geo_utils import GeoUtils

logger = logging.getLogger(__name__)

DEST_STORAGE_KEY = 'compass_destination'


class JsonKeyValueStore:
    """Tiny key-value store persisted as a single JSON object"""

    def __init__(self, filepath: str):
        self.filepath = filepath
        self._lock = threading.Lock()

    def _read_all(self) -> Dict[str, Any]:
        try:
            with open(self.filepath, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable store {self.filepath}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring store {self.filepath}: top level is not an object")
            return {}
        return data

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._read_all().get(key, default)

    def set(self, key: str, value: Any) -> bool:
        with self._lock:
            data = self._read_all()
            data[key] = value
            return self._write_all(data)

    def delete(self, key: str) -> bool:
        with self._lock:
            data = self._read_all()
            if key not in data:
                return True
            del data[key]
            return self._write_all(data)

    def _write_all(self, data: Dict[str, Any]) -> bool:
        directory = os.path.dirname(self.filepath)
        tmp_path = f"{self.filepath}.tmp"
        try:
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.filepath)
            return True
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to write store {self.filepath}: {e}")
            return False


class DestinationStore(DestinationRepository):
    """Saves the active destination under a fixed key"""

    def __init__(self, store: JsonKeyValueStore, key: str = DEST_STORAGE_KEY):
        self.store = store
        self.key = key

    def load(self) -> Optional[Destination]:
        record = self.store.get(self.key)
        if record is None:
            return None

        try:
            destination = Destination.from_dict(record)
        except ValueError as e:
            logger.warning(f"Discarding corrupt saved destination: {e}")
            return None

        if not GeoUtils.is_valid_coordinate(destination.lat, destination.lng):
            logger.warning(f"Discarding saved destination with invalid coordinates: "
                           f"({destination.lat}, {destination.lng})")
            return None

        logger.info(f"Restored destination ({destination.lat:.5f}, {destination.lng:.5f}) "
                    f"[{destination.origin.value}]")
        return destination

    def save(self, destination: Destination) -> bool:
        ok = self.store.set(self.key, destination.to_dict())
        if ok:
            logger.debug(f"Saved destination to {self.store.filepath}")
        return ok

    def clear(self) -> bool:
        return self.store.delete(self.key)

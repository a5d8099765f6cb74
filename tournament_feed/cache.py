"""Persistent geocode cache: normalized place key -> coordinates, stored as one JSON object."""
from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Dict, Iterator, Optional

from .models import GeoCoordinate
from .reporting import write_json_object

logger = logging.getLogger(__name__)


def make_city_key(city: str, country: Optional[str] = None) -> str:
    """Trimmed, uppercased city name, optionally qualified with a country."""
    key = (city or "").strip().upper()
    if country:
        key = f"{key}, {country.strip().upper()}"
    return key


class GeocodeCache:
    """In-memory map loaded once per process and rewritten in full on every insert.

    The in-memory map stays authoritative for the whole run; the file is
    never re-read after ``load``. Only one process may write a given file.
    """

    def __init__(self, path: Optional[str] = None, entries: Optional[Dict[str, GeoCoordinate]] = None) -> None:
        self.path = path
        self._entries: Dict[str, GeoCoordinate] = dict(entries or {})
        self._lock = threading.Lock()

    @classmethod
    def load(cls, path: str) -> "GeocodeCache":
        cache_path = Path(path)
        entries: Dict[str, GeoCoordinate] = {}
        if cache_path.exists():
            try:
                data = json.loads(cache_path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as exc:
                logger.warning("Geocoding cache %s unreadable, starting empty: %s", path, exc)
                data = {}
            if isinstance(data, dict):
                for key, value in data.items():
                    try:
                        entries[str(key)] = GeoCoordinate.from_dict(value)
                    except (KeyError, TypeError, ValueError):
                        logger.debug("Skipping malformed cache entry %r", key)
        return cls(path=path, entries=entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(dict(self._entries))

    def get(self, key: str) -> Optional[GeoCoordinate]:
        return self._entries.get(key)

    def put(self, key: str, coordinate: GeoCoordinate) -> None:
        with self._lock:
            self._entries[key] = coordinate
            self._persist_locked()

    def persist(self) -> bool:
        with self._lock:
            return self._persist_locked()

    def _persist_locked(self) -> bool:
        if not self.path:
            return False
        payload = {key: coord.to_dict() for key, coord in self._entries.items()}
        try:
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
            write_json_object(self.path, payload)
        except OSError as exc:
            logger.error("Failed to save geocoding cache %s: %s", self.path, exc)
            return False
        return True

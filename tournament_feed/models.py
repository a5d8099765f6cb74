"""Record types shared across the ingestion pipeline."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class CategoryDescriptor:
    level: int
    format: str
    name: str


@dataclass(frozen=True)
class GeoCoordinate:
    lat: float
    lng: float

    def to_dict(self) -> Dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GeoCoordinate":
        return cls(lat=float(data["lat"]), lng=float(data["lng"]))


@dataclass(frozen=True)
class RawListingRecord:
    """One listing row, before enrichment. Never persisted."""

    ref: Optional[str]
    name: str
    city: str
    date_text: str
    link: str
    handicap: bool = False
    forced_format: Optional[str] = None

    @property
    def dedup_key(self) -> str:
        return self.ref or self.link


@dataclass(frozen=True)
class Section:
    name: str
    elo_bracket: str
    format: str
    link: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "eloBracket": self.elo_bracket,
            "format": self.format,
            "homologationLink": self.link,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Section":
        return cls(
            name=str(data.get("name") or ""),
            elo_bracket=str(data.get("eloBracket") or ""),
            format=str(data.get("format") or ""),
            link=str(data.get("homologationLink") or ""),
        )


@dataclass(frozen=True)
class TournamentRecord:
    """The persisted unit of the snapshot.

    ``sections`` is empty for a single event and holds at least two entries
    for a merged multi-section event. Serialized keys follow the JSON shape
    read by the presentation layer; unset optionals are omitted.
    """

    id: str
    name: str
    format: str
    elo_bracket: str
    lat: float
    lng: float
    city: str
    address: str
    has_players_list: bool
    link: str
    date: str
    is_internal: bool = False
    registered_count: Optional[int] = None
    avg_elo: Optional[int] = None
    top_player_elo: Optional[int] = None
    sections: Tuple[Section, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "format": self.format,
            "eloBracket": self.elo_bracket,
            "location": {
                "lat": self.lat,
                "lng": self.lng,
                "city": self.city,
                "address": self.address,
            },
            "hasPlayersList": self.has_players_list,
        }
        if self.registered_count is not None:
            out["registeredCount"] = self.registered_count
        if self.avg_elo is not None:
            out["avgElo"] = self.avg_elo
        if self.top_player_elo is not None:
            out["topPlayerElo"] = self.top_player_elo
        out["homologationLink"] = self.link
        out["date"] = self.date
        out["isInternal"] = self.is_internal
        if self.sections:
            out["sections"] = [s.to_dict() for s in self.sections]
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TournamentRecord":
        location = data.get("location") or {}
        sections: List[Section] = [
            Section.from_dict(s) for s in (data.get("sections") or []) if isinstance(s, dict)
        ]
        return cls(
            id=str(data.get("id") or ""),
            name=str(data.get("name") or ""),
            format=str(data.get("format") or "Lent"),
            elo_bracket=str(data.get("eloBracket") or ""),
            lat=float(location.get("lat") or 0.0),
            lng=float(location.get("lng") or 0.0),
            city=str(location.get("city") or ""),
            address=str(location.get("address") or ""),
            has_players_list=bool(data.get("hasPlayersList")),
            link=str(data.get("homologationLink") or ""),
            date=str(data.get("date") or ""),
            is_internal=bool(data.get("isInternal")),
            registered_count=_optional_int(data.get("registeredCount")),
            avg_elo=_optional_int(data.get("avgElo")),
            top_player_elo=_optional_int(data.get("topPlayerElo")),
            sections=tuple(sections),
        )


def _optional_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None

"""
models.py
Data model for grouped location records.

Wire shapes handled here:
  group list   -> [{"id", "title", "description", "dataPath", "icon"}, ...]
  group detail -> [{"location": {"name", "venue", "coordinates": [lon, lat]},
                    "category": {"code"}, "geojson": {...},
                    "news_list" | "wiki_list": [{"title", "publisher", "date", "url"}, ...]}, ...]

Coordinates are always (longitude, latitude). Nothing in this module swaps them.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

Coordinates = Tuple[float, float]

NARRATIVE_KEYS = ("news_list", "wiki_list")


def _coerce_coordinates(raw: Any) -> Coordinates:
    if not isinstance(raw, (list, tuple)) or len(raw) < 2:
        raise ValueError(f"coordinates must be a [longitude, latitude] pair, got {raw!r}")
    lon, lat = raw[0], raw[1]
    if lon is None or lat is None or isinstance(lon, bool) or isinstance(lat, bool):
        raise ValueError(f"coordinates must be numeric, got {raw!r}")
    try:
        return float(lon), float(lat)
    except (TypeError, ValueError):
        raise ValueError(f"coordinates must be numeric, got {raw!r}")


def coordinate_key(coordinates: Any) -> str:
    """Exact grouping key for a (longitude, latitude) pair; repr keeps every float digit."""
    lon, lat = _coerce_coordinates(coordinates)
    return f"{lon!r},{lat!r}"


@dataclass(frozen=True)
class GroupDescriptor:
    """A selectable named collection of location records."""

    id: str
    title: str
    description: str = ""
    data_path: str = ""
    icon: str = ""

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "GroupDescriptor":
        if not isinstance(payload, dict):
            raise ValueError("group entry must be an object")
        group_id = payload.get("id")
        data_path = payload.get("dataPath") or payload.get("data_path")
        if not group_id or not data_path:
            raise ValueError(f"group entry needs 'id' and 'dataPath': {payload!r}")
        return cls(
            id=str(group_id),
            title=str(payload.get("title") or group_id),
            description=str(payload.get("description") or ""),
            data_path=str(data_path),
            icon=str(payload.get("icon") or ""),
        )


@dataclass(eq=False)
class LocationRecord:
    """
    One geographic unit of narrative content.

    Equality is identity: the selection state holds a reference to the
    record that was clicked, never a copy.
    """

    name: str
    venue: str
    coordinates: Coordinates
    category_code: Optional[str] = None
    geojson: Optional[Dict[str, Any]] = None
    narrative: List[Dict[str, Any]] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "LocationRecord":
        if not isinstance(payload, dict):
            raise ValueError("location record must be an object")
        location = payload.get("location") or {}
        if not isinstance(location, dict):
            raise ValueError("'location' must be an object")
        coordinates = _coerce_coordinates(location.get("coordinates"))

        category = payload.get("category")
        code = category.get("code") if isinstance(category, dict) else None

        geojson = payload.get("geojson")
        if not isinstance(geojson, dict) or not geojson:
            geojson = None

        # "news_list" takes precedence; an empty news_list still wins over wiki_list
        narrative = None
        for key in NARRATIVE_KEYS:
            if payload.get(key) is not None:
                narrative = payload.get(key)
                break
        if not isinstance(narrative, list):
            narrative = []

        return cls(
            name=str(location.get("name") or ""),
            venue=str(location.get("venue") or ""),
            coordinates=coordinates,
            category_code=str(code) if code else None,
            geojson=geojson,
            narrative=[entry for entry in narrative if isinstance(entry, dict)],
            raw=payload,
        )

    @property
    def has_geometry(self) -> bool:
        return self.geojson is not None


@dataclass(eq=False)
class NarrativeItem:
    """One article or wiki entry, carrying its parent's location fields."""

    title: str
    publisher: str
    date: Optional[str]
    url: str
    location_name: str
    venue: str
    coordinates: Coordinates
    parent: Optional[LocationRecord] = field(default=None, repr=False)
    extra: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_entry(cls, entry: Dict[str, Any], parent: LocationRecord) -> "NarrativeItem":
        known = {"title", "publisher", "date", "url"}
        date = entry.get("date")
        return cls(
            title=str(entry.get("title") or ""),
            publisher=str(entry.get("publisher") or ""),
            date=str(date) if date not in (None, "") else None,
            url=str(entry.get("url") or ""),
            location_name=parent.name,
            venue=parent.venue,
            coordinates=parent.coordinates,
            parent=parent,
            extra={k: v for k, v in entry.items() if k not in known},
        )

    @property
    def key(self) -> str:
        return coordinate_key(self.coordinates)


@dataclass(eq=False)
class LocationCluster:
    """
    Every narrative item sharing one coordinate key.

    The first item encountered is the representative; the list row shows its
    fields and a "+N" badge for the rest.
    """

    representative: NarrativeItem
    news_list: List[NarrativeItem] = field(default_factory=list)
    duplicate_count: int = 0

    def __post_init__(self):
        if not self.news_list:
            self.news_list = [self.representative]
        self.duplicate_count = len(self.news_list) - 1

    def append(self, item: NarrativeItem) -> None:
        self.news_list.append(item)
        self.duplicate_count = len(self.news_list) - 1

    @property
    def key(self) -> str:
        return self.representative.key

    @property
    def title(self) -> str:
        return self.representative.title

    @property
    def publisher(self) -> str:
        return self.representative.publisher

    @property
    def date(self) -> Optional[str]:
        return self.representative.date

    @property
    def url(self) -> str:
        return self.representative.url

    @property
    def location_name(self) -> str:
        return self.representative.location_name

    @property
    def venue(self) -> str:
        return self.representative.venue

    @property
    def coordinates(self) -> Coordinates:
        return self.representative.coordinates

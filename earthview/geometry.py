"""
geometry.py
Polygon feature collection for records that carry region geometry.

Every feature is tagged with properties.locationIndex: its position among the
records that have geometry (not among all records). Click handling resolves a
feature back to its record through that same filtered sequence.
"""

import copy
from typing import Any, Dict, List, Optional, Sequence

from .config import POLYGON_FALLBACK_COLOR, POLYGON_FILL_OPACITY, POLYGON_LINE_WIDTH
from .models import LocationRecord
from .styles import CategoryStyle


def geometry_records(records: Sequence[LocationRecord]) -> List[LocationRecord]:
    return [r for r in records if r.geojson]


def polygon_color(record: Optional[LocationRecord]) -> str:
    """Category color for a polygon; polygons without a known code use the fallback red."""
    member = CategoryStyle.lookup(record.category_code) if record is not None else None
    return member.value.color if member is not None else POLYGON_FALLBACK_COLOR


def collection_style(records: Sequence[LocationRecord]) -> str:
    """Single color for the whole collection, taken from the first record with geometry."""
    with_geometry = geometry_records(records)
    return polygon_color(with_geometry[0] if with_geometry else None)


def polygon_paint(color: str) -> Dict[str, Dict[str, Any]]:
    return {
        "fill": {
            "fill-color": color,
            "fill-opacity": POLYGON_FILL_OPACITY,
            "fill-outline-color": color,
        },
        "line": {
            "line-color": color,
            "line-width": POLYGON_LINE_WIDTH,
        },
    }


def _as_feature(geojson: Dict[str, Any]) -> Dict[str, Any]:
    feature = copy.deepcopy(geojson)
    if feature.get("type") != "Feature":
        # bare geometry object
        feature = {"type": "Feature", "geometry": feature, "properties": {}}
    return feature


def project(records: Sequence[LocationRecord]) -> Dict[str, Any]:
    """
    Build the polygon FeatureCollection for a record set.

    Records without geojson contribute no feature. Source geometry is copied,
    never modified. Each feature carries its own resolved color in
    properties.color; the collection-level color from the first geometry
    record is kept under "style".
    """
    features: List[Dict[str, Any]] = []
    for idx, record in enumerate(geometry_records(records)):
        feature = _as_feature(record.geojson)
        properties = dict(feature.get("properties") or {})
        properties["locationIndex"] = idx
        properties["color"] = polygon_color(record)
        feature["id"] = idx
        feature["properties"] = properties
        features.append(feature)
    return {
        "type": "FeatureCollection",
        "features": features,
        "style": polygon_paint(collection_style(records)),
    }


def resolve_feature(records: Sequence[LocationRecord], location_index: Any) -> Optional[LocationRecord]:
    """Map a clicked feature's locationIndex back to its record."""
    if isinstance(location_index, bool):
        return None
    try:
        idx = int(location_index)
    except (TypeError, ValueError):
        return None
    with_geometry = geometry_records(records)
    if 0 <= idx < len(with_geometry):
        return with_geometry[idx]
    return None

from earthview.config import POLYGON_FALLBACK_COLOR
from earthview.geometry import collection_style, polygon_paint, project, resolve_feature
from earthview.models import LocationRecord

from factories import item, record_payload, square


def _mixed_records():
    return [
        LocationRecord.from_dict(record_payload("Point only", [0.0, 0.0], [item("p")])),
        LocationRecord.from_dict(record_payload("Fire", [-120.0, 38.0], [], code="WILDFIRE", geojson=square(-120, 38))),
        LocationRecord.from_dict(record_payload("Another point", [1.0, 1.0], [item("q")])),
        LocationRecord.from_dict(record_payload("Flood", [100.0, 15.0], [], code="FLOOD", geojson=square(100, 15))),
    ]


def test_one_feature_per_geometry_record_indexed_among_them() -> None:
    records = _mixed_records()
    collection = project(records)
    assert collection["type"] == "FeatureCollection"
    features = collection["features"]
    assert len(features) == 2
    assert [f["properties"]["locationIndex"] for f in features] == [0, 1]
    assert [f["id"] for f in features] == [0, 1]
    assert features[0]["properties"]["name"] == "region--120"


def test_source_geometry_is_not_mutated() -> None:
    records = _mixed_records()
    project(records)
    assert "locationIndex" not in records[1].geojson["properties"]
    assert "id" not in records[1].geojson


def test_bare_geometry_is_wrapped_in_feature() -> None:
    geometry = square(10, 10)["geometry"]
    record = LocationRecord.from_dict(record_payload("Bare", [10.0, 10.0], [], geojson=geometry))
    feature = project([record])["features"][0]
    assert feature["type"] == "Feature"
    assert feature["geometry"]["type"] == "Polygon"
    assert feature["properties"]["locationIndex"] == 0


def test_collection_style_comes_from_first_geometry_record() -> None:
    records = _mixed_records()
    assert collection_style(records) == "#ef4444"
    assert project(records)["style"] == polygon_paint("#ef4444")
    assert collection_style(list(reversed(records))) == "#3b82f6"


def test_features_carry_their_own_color() -> None:
    colors = [f["properties"]["color"] for f in project(_mixed_records())["features"]]
    assert colors == ["#ef4444", "#3b82f6"]


def test_uncoded_polygon_uses_fallback_color() -> None:
    record = LocationRecord.from_dict(record_payload("Region", [5.0, 5.0], [], geojson=square(5, 5)))
    assert collection_style([record]) == POLYGON_FALLBACK_COLOR
    assert collection_style([]) == POLYGON_FALLBACK_COLOR


def test_polygon_paint_values() -> None:
    paint = polygon_paint("#123456")
    assert paint["fill"] == {"fill-color": "#123456", "fill-opacity": 0.2, "fill-outline-color": "#123456"}
    assert paint["line"] == {"line-color": "#123456", "line-width": 2}


def test_resolve_feature_round_trips_through_filtered_index() -> None:
    records = _mixed_records()
    for feature in project(records)["features"]:
        record = resolve_feature(records, feature["properties"]["locationIndex"])
        assert record is not None and record.has_geometry
    assert resolve_feature(records, 1) is records[3]
    assert resolve_feature(records, 2) is None
    assert resolve_feature(records, -1) is None
    assert resolve_feature(records, None) is None
    assert resolve_feature(records, "x") is None

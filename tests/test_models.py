import pytest

from earthview.models import GroupDescriptor, LocationCluster, LocationRecord, NarrativeItem, coordinate_key

from factories import item, record_payload


def test_coordinate_key_is_exact_and_ordered() -> None:
    assert coordinate_key([127.0, 37.5]) == "127.0,37.5"
    assert coordinate_key([37.5, 127.0]) != coordinate_key([127.0, 37.5])
    assert coordinate_key([127.0, 37.5]) != coordinate_key([127.0000001, 37.5])
    # 127 and 127.0 are the same number
    assert coordinate_key([127, 37.5]) == coordinate_key([127.0, 37.5])


def test_coordinate_key_rejects_bad_pairs() -> None:
    with pytest.raises(ValueError):
        coordinate_key([127.0])
    with pytest.raises(ValueError):
        coordinate_key(["east", 1])


def test_group_descriptor_from_dict() -> None:
    group = GroupDescriptor.from_dict(
        {"id": "bts-chronicle", "title": "BTS", "description": "d", "dataPath": "data/bts.json", "icon": "music"}
    )
    assert group.data_path == "data/bts.json"
    assert group.title == "BTS"
    with pytest.raises(ValueError):
        GroupDescriptor.from_dict({"id": "x"})


def test_location_record_keeps_lon_lat_order() -> None:
    record = LocationRecord.from_dict(record_payload("Seoul", [127.0, 37.5], [item("a")]))
    assert record.coordinates == (127.0, 37.5)
    assert record.category_code is None
    assert record.geojson is None


def test_wiki_list_is_used_when_news_list_absent() -> None:
    record = LocationRecord.from_dict(record_payload("Hanyang", [126.98, 37.57], [item("w")], key="wiki_list"))
    assert [e["title"] for e in record.narrative] == ["w"]


def test_news_list_takes_precedence_over_wiki_list() -> None:
    payload = record_payload("Seoul", [127.0, 37.5], [item("news")])
    payload["wiki_list"] = [item("wiki")]
    assert [e["title"] for e in LocationRecord.from_dict(payload).narrative] == ["news"]

    payload["news_list"] = []
    assert LocationRecord.from_dict(payload).narrative == []


def test_missing_narrative_is_empty() -> None:
    assert LocationRecord.from_dict(record_payload("Nowhere", [0, 0])).narrative == []


def test_records_compare_by_identity() -> None:
    payload = record_payload("Seoul", [127.0, 37.5], [item("a")])
    assert LocationRecord.from_dict(payload) != LocationRecord.from_dict(payload)


def test_cluster_duplicate_count_tracks_news_list() -> None:
    parent = LocationRecord.from_dict(record_payload("Seoul", [127.0, 37.5], [item("a"), item("b"), item("c")]))
    items = [NarrativeItem.from_entry(e, parent) for e in parent.narrative]
    cluster = LocationCluster(representative=items[0])
    assert cluster.duplicate_count == 0
    for extra in items[1:]:
        cluster.append(extra)
        assert cluster.duplicate_count == len(cluster.news_list) - 1
    assert cluster.title == "a"
    assert cluster.location_name == "Seoul"

from earthview.aggregate import aggregate
from earthview.models import LocationRecord
from earthview.selection import FlyTo, RecordingViewport, SelectionState

from factories import record_payload, square


def test_initial_state() -> None:
    state = SelectionState()
    assert state.selected is None
    assert state.list_visible is True
    assert state.is_expanded("anything")
    assert state.list_title == "All news"


def test_marker_click_selects_filters_and_flies_to_location(group_a_records) -> None:
    viewport = RecordingViewport()
    state = SelectionState(viewport)
    clusters = aggregate(group_a_records)
    state.hide_list()

    busan = group_a_records[2]
    state.select_location(busan)

    assert state.is_selected(busan)
    assert state.list_visible is True
    assert viewport.last == FlyTo((129.0, 35.1), 5, 2000)
    assert [c.location_name for c in state.visible_clusters(clusters)] == ["Busan"]
    assert state.list_title == "Busan news"


def test_view_location_flies_closer_without_touching_selection(group_a_records) -> None:
    viewport = RecordingViewport()
    state = SelectionState(viewport)
    clusters = aggregate(group_a_records)
    state.select_location(group_a_records[0])
    before = state.visible_clusters(clusters)

    state.view_location(before[0].coordinates)

    assert viewport.last == FlyTo((127.0, 37.5), 12, 1500)
    assert state.selected is group_a_records[0]
    assert [c.key for c in state.visible_clusters(clusters)] == [c.key for c in before]
    assert len(viewport.commands) == 2


def test_show_all_clears_selection_but_not_visibility(group_a_records) -> None:
    state = SelectionState()
    state.select_location(group_a_records[0])
    state.hide_list()
    state.show_all()
    assert state.selected is None
    assert state.list_visible is False
    assert len(state.visible_clusters(aggregate(group_a_records))) == 2


def test_toggle_list_keeps_selection(group_a_records) -> None:
    state = SelectionState()
    state.select_location(group_a_records[0])
    state.toggle_list()
    assert state.list_visible is False
    assert state.selected is group_a_records[0]
    state.toggle_list()
    assert state.list_visible is True


def test_hidden_list_with_nothing_selected_is_valid() -> None:
    state = SelectionState()
    state.toggle_list()
    assert state.selected is None and state.list_visible is False


def test_items_default_expanded_and_toggle_independently() -> None:
    state = SelectionState()
    state.toggle_item("a")
    assert not state.is_expanded("a")
    assert state.is_expanded("b")
    state.toggle_item("a")
    assert state.is_expanded("a")
    assert state.collapsed == set()


def test_polygon_click_resolves_filtered_index() -> None:
    records = [
        LocationRecord.from_dict(record_payload("Point", [0.0, 0.0], [])),
        LocationRecord.from_dict(record_payload("Region", [10.0, 20.0], [], geojson=square(10, 20))),
    ]
    viewport = RecordingViewport()
    state = SelectionState(viewport)

    assert state.select_feature(records, 0) is records[1]
    assert state.selected is records[1]
    assert viewport.last == FlyTo((10.0, 20.0), 5, 2000)

    assert state.select_feature(records, 5) is None
    assert state.selected is records[1]
    assert len(viewport.commands) == 1


def test_selection_does_not_mutate_records(group_a_records, group_a_payload) -> None:
    state = SelectionState()
    state.select_location(group_a_records[0])
    assert group_a_records[0].raw == group_a_payload[0]
    assert group_a_records[0].name == "Seoul"


def test_reset_returns_to_initial_state(group_a_records) -> None:
    state = SelectionState()
    state.select_location(group_a_records[0])
    state.hide_list()
    state.toggle_item("a1")
    state.reset()
    assert state.selected is None
    assert state.list_visible is True
    assert state.is_expanded("a1")

"""Unit tests for the route editor."""

import pytest

from peaks_api.mapping.editor import (
    NO_SELECTION,
    EditorMode,
    RouteEditor,
    RouteSaveError,
    Waypoint,
    WaypointType,
)
from peaks_api.mapping.geo import LatLng


@pytest.fixture
def changes():
    return []


@pytest.fixture
def editor(changes):
    return RouteEditor(on_change=changes.append)


def test_click_appends_and_selects(editor, changes):
    editor.click(41.10, 20.80)
    editor.click(41.11, 20.81)

    assert len(editor) == 2
    assert editor.selected_index == 1
    assert editor.points[1] == Waypoint(lat=41.11, lng=20.81)
    assert editor.points[1].type == WaypointType.WAYPOINT
    assert editor.points[1].images == ()
    assert len(changes) == 2
    assert changes[-1].distance_km == pytest.approx(editor.distance_km)


def test_click_in_meeting_mode_moves_meeting_point():
    moved = []
    editor = RouteEditor(on_meeting_point_change=moved.append)
    editor.mode = EditorMode.MEETING

    editor.click(41.2, 20.7)

    assert len(editor) == 0
    assert editor.meeting_point == LatLng(lat=41.2, lng=20.7)
    assert moved == [LatLng(lat=41.2, lng=20.7)]


def test_consecutive_clicks_never_lose_points(editor, changes):
    """Each click builds on the latest list, not on an earlier snapshot."""
    for i in range(5):
        editor.click(41.0 + i * 0.01, 20.0)

    assert [p.lat for p in editor.points] == pytest.approx([41.0, 41.01, 41.02, 41.03, 41.04])
    assert [len(c.points) for c in changes] == [1, 2, 3, 4, 5]


def test_snapshots_are_not_mutated_by_later_edits(editor, changes):
    editor.add_point(41.0, 20.0)
    editor.add_point(41.1, 20.1)
    first_snapshot = changes[0].points

    editor.update_point(0, title="Trailhead")

    assert first_snapshot[0].title is None
    assert editor.points[0].title == "Trailhead"


def test_move_point_keeps_metadata(editor):
    editor.add_point(41.0, 20.0)
    editor.update_point(0, title="Spring", type="rest", elevation=820.0)

    editor.move_point(0, 41.05, 20.05)

    point = editor.points[0]
    assert (point.lat, point.lng) == (41.05, 20.05)
    assert point.title == "Spring"
    assert point.type == WaypointType.REST
    assert point.elevation == 820.0


def test_remove_point_clears_selection_and_keeps_order(editor):
    for lat in (41.0, 41.1, 41.2):
        editor.add_point(lat, 20.0)

    removed = editor.remove_point(1)

    assert removed.lat == 41.1
    assert [p.lat for p in editor.points] == [41.0, 41.2]
    assert editor.selected_index == NO_SELECTION


def test_remove_last_is_single_step_undo(editor):
    assert editor.remove_last() is None

    editor.add_point(41.0, 20.0)
    editor.add_point(41.1, 20.0)

    assert editor.remove_last().lat == 41.1
    assert len(editor) == 1
    # Selection pointed at the removed point
    assert editor.selected_index == NO_SELECTION


def test_clear(editor):
    editor.add_point(41.0, 20.0)
    editor.clear()
    assert len(editor) == 0
    assert editor.selected_index == NO_SELECTION
    assert editor.distance_km == 0.0


def test_update_point_rejects_unknown_fields(editor):
    editor.add_point(41.0, 20.0)
    with pytest.raises(ValueError):
        editor.update_point(0, lat=10.0)


def test_update_point_rejects_unknown_type(editor):
    editor.add_point(41.0, 20.0)
    with pytest.raises(ValueError):
        editor.update_point(0, type="campsite")


def test_images(editor):
    editor.add_point(41.0, 20.0)
    editor.add_images(0, ["a.jpg", "b.jpg"])
    editor.add_images(0, ["c.jpg"])

    point = editor.remove_image(0, 1)

    assert point.images == ("a.jpg", "c.jpg")
    with pytest.raises(IndexError):
        editor.remove_image(0, 5)


def test_index_out_of_range(editor):
    with pytest.raises(IndexError):
        editor.move_point(0, 41.0, 20.0)
    with pytest.raises(IndexError):
        editor.select(3)


def test_invalid_coordinates_are_rejected(editor):
    with pytest.raises(ValueError):
        editor.add_point(95.0, 20.0)
    assert len(editor) == 0


def test_select_notifies_listener():
    selected = []
    editor = RouteEditor(points=[Waypoint(lat=41.0, lng=20.0)], on_select=selected.append)

    editor.select(0)
    editor.select(NO_SELECTION)

    assert selected == [0, NO_SELECTION]
    assert editor.selected_point is None


def test_can_save_requires_two_points(editor):
    editor.add_point(41.0, 20.0)
    assert not editor.can_save
    with pytest.raises(RouteSaveError, match="at least 2 points"):
        editor.to_route_data()

    editor.add_point(41.1, 20.0)
    assert editor.can_save
    assert editor.to_route_data()["route"]["type"] == "LineString"


def test_stops_cover_every_point(editor):
    editor.add_point(41.0, 20.0)
    editor.add_point(41.1, 20.0)
    editor.add_point(41.2, 20.0)
    editor.update_point(0, type=WaypointType.DANGER)
    editor.add_images(1, ["view.jpg"])

    stops = editor.stops()
    assert [index for index, _ in stops] == [0, 1, 2]
    assert stops[0][1].type == WaypointType.DANGER
    assert stops[2][1] == Waypoint(lat=41.2, lng=20.0)


def test_display_title_defaults_to_position():
    assert Waypoint(lat=0, lng=0).display_title(0) == "Waypoint 1"
    assert Waypoint(lat=0, lng=0, title="Summit").display_title(4) == "Summit"

"""Unit tests for route service."""

import pytest
from sqlalchemy import select

from peaks_api.core.exceptions import ValidationError
from peaks_api.mapping.geo import LatLng, route_distance_km
from peaks_api.models.tour import TourWaypoint
from peaks_api.schemas.route import SaveRouteRequest
from peaks_api.services.route_service import RouteService


async def _waypoint_rows(session, tour_id):
    result = await session.execute(
        select(TourWaypoint).where(TourWaypoint.tour_id == tour_id).order_by(TourWaypoint.order_index)
    )
    return list(result.scalars().all())


@pytest.mark.asyncio
async def test_save_route(test_session, active_tour, sample_route_points):
    service = RouteService(test_session)
    request = SaveRouteRequest(
        points=sample_route_points,
        meeting_point={"lat": 41.1125, "lng": 20.8020, "address": "Ohrid harbour"},
    )

    tour = await service.save_route(active_tour, request)

    expected = route_distance_km([LatLng(lat=p["lat"], lng=p["lng"]) for p in sample_route_points])
    assert tour.distance_km == pytest.approx(expected)
    assert tour.meeting_point_lat == 41.1125
    assert tour.meeting_point_lng == 20.8020
    assert tour.meeting_point == "Ohrid harbour"
    assert len(tour.route_data["route"]["coordinates"]) == 3
    assert [f["properties"]["index"] for f in tour.route_data["features"]] == [0, 1, 2]

    rows = await _waypoint_rows(test_session, tour.id)
    assert [(r.order_index, r.title, r.type) for r in rows] == [
        (0, None, "waypoint"),
        (1, "Samuel's Fortress", "viewpoint"),
        (2, None, "waypoint"),
    ]
    assert rows[1].images == ["https://img.example.com/fortress.jpg"]


@pytest.mark.asyncio
async def test_save_route_replaces_waypoints(test_session, active_tour, sample_route_points):
    service = RouteService(test_session)
    await service.save_route(active_tour, SaveRouteRequest(points=sample_route_points))

    points = [
        {"lat": 41.0, "lng": 20.0, "title": "Start"},
        {"lat": 41.1, "lng": 20.1, "title": "End", "type": "danger"},
    ]
    await service.save_route(active_tour, SaveRouteRequest(points=points))

    rows = await _waypoint_rows(test_session, active_tour.id)
    assert [(r.order_index, r.title) for r in rows] == [(0, "Start"), (1, "End")]


@pytest.mark.asyncio
async def test_save_route_requires_two_points(test_session, active_tour):
    service = RouteService(test_session)

    with pytest.raises(ValidationError, match="at least 2 points"):
        await service.save_route(active_tour, SaveRouteRequest(points=[{"lat": 41.0, "lng": 20.0}]))

    assert active_tour.route_data is None


@pytest.mark.asyncio
async def test_public_route(test_session, active_tour, sample_route_points):
    service = RouteService(test_session)
    await service.save_route(active_tour, SaveRouteRequest(points=sample_route_points))

    route = await service.get_public_route(active_tour)

    assert route.route_data["type"] == "LineString"
    assert len(route.route_data["coordinates"]) == 3
    assert route.distance_km > 0
    assert [w.title for w in route.waypoints] == ["Waypoint 1", "Samuel's Fortress", "Waypoint 3"]
    stop = route.waypoints[1]
    assert stop.title == "Samuel's Fortress"
    assert stop.order == 1
    assert stop.images == ["https://img.example.com/fortress.jpg"]


@pytest.mark.asyncio
async def test_public_route_falls_back_to_waypoint_table(test_session, active_tour):
    active_tour.route_data = {"type": "LineString", "coordinates": [[20.80, 41.11], [20.79, 41.12]]}
    test_session.add_all([
        TourWaypoint(tour_id=active_tour.id, order_index=1, lat=41.12, lng=20.79, type="rest"),
        TourWaypoint(tour_id=active_tour.id, order_index=0, lat=41.11, lng=20.80, title="Start"),
    ])
    await test_session.commit()

    route = await RouteService(test_session).get_public_route(active_tour)

    assert route.route_data == active_tour.route_data
    assert [(w.order, w.title) for w in route.waypoints] == [(0, "Start"), (1, "Waypoint 2")]


@pytest.mark.asyncio
async def test_public_route_without_route(test_session, active_tour):
    route = await RouteService(test_session).get_public_route(active_tour)

    assert route.route_data is None
    assert route.distance_km == 0
    assert route.waypoints == []


@pytest.mark.asyncio
async def test_editable_route_restores_every_point(test_session, active_tour, sample_route_points):
    service = RouteService(test_session)
    await service.save_route(
        active_tour,
        SaveRouteRequest(points=sample_route_points, meeting_point={"lat": 41.1, "lng": 20.8})
    )

    route = await service.get_editable_route(active_tour)

    assert [(p.lat, p.lng) for p in route.points] == [(p["lat"], p["lng"]) for p in sample_route_points]
    assert route.points[1].title == "Samuel's Fortress"
    assert route.points[1].type.value == "viewpoint"
    assert route.points[0].title is None
    assert route.meeting_point.lat == 41.1


@pytest.mark.asyncio
async def test_untitled_typed_points_survive_reload(test_session, active_tour):
    service = RouteService(test_session)
    points = [
        {"lat": 41.10, "lng": 20.80, "type": "danger", "elevation": 812.0},
        {"lat": 41.12, "lng": 20.78, "type": "viewpoint"},
    ]
    await service.save_route(active_tour, SaveRouteRequest(points=points))

    editable = await service.get_editable_route(active_tour)
    assert [(p.type.value, p.title, p.elevation) for p in editable.points] == [
        ("danger", None, 812.0),
        ("viewpoint", None, None),
    ]

    route = await service.get_public_route(active_tour)
    assert [(w.title, w.type.value, w.order) for w in route.waypoints] == [
        ("Waypoint 1", "danger", 0),
        ("Waypoint 2", "viewpoint", 1),
    ]
    assert route.waypoints[0].elevation == 812.0

    plan = await service.flythrough(active_tour)
    assert [s.title for s in plan.steps] == ["Waypoint 1", "Waypoint 2"]


@pytest.mark.asyncio
async def test_flythrough(test_session, active_tour, sample_route_points):
    service = RouteService(test_session)
    points = [dict(p, title=p.get("title") or f"Stop {i}") for i, p in enumerate(sample_route_points)]
    await service.save_route(active_tour, SaveRouteRequest(points=points))

    plan = await service.flythrough(active_tour)

    assert plan.initial_view.zoom == 12
    assert plan.initial_view.center.lat == pytest.approx(sum(p["lat"] for p in points) / 3)
    assert [s.title for s in plan.steps] == ["Stop 0", "Samuel's Fortress", "Stop 2"]
    assert [s.progress for s in plan.steps] == [0, 0.5, 1]
    assert plan.steps[1].padding["top"] == 450
    assert plan.steps[0].padding["top"] == 400


@pytest.mark.asyncio
async def test_flythrough_without_stops(test_session, active_tour):
    plan = await RouteService(test_session).flythrough(active_tour)

    assert plan.steps == []
    assert plan.initial_view.zoom == 11
    assert (plan.initial_view.center.lat, plan.initial_view.center.lng) == (41.1783, 20.6783)

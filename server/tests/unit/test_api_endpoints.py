"""Integration tests for API endpoints."""

from datetime import timedelta

import pytest

from peaks_api.core.database import utcnow
from peaks_api.core.dependencies import create_access_token


@pytest.mark.asyncio
async def test_create_tour_endpoint(test_client, operator_headers, sample_tour_data):
    """Test the tour creation endpoint."""
    response = await test_client.post("/api/operator/tours", json=sample_tour_data, headers=operator_headers)

    assert response.status_code == 201
    data = response.json()
    assert data["name"] == sample_tour_data["name"]
    assert data["slug"] == "lake-ohrid-sunrise-hike"
    assert data["base_price"] == {"amount": 4500, "currency": "EUR"}
    assert data["status"] == "draft"
    assert data["is_featured"] is False
    assert "id" in data


@pytest.mark.asyncio
async def test_create_tour_missing_auth(test_client, sample_tour_data):
    """Test tour creation without authentication."""
    response = await test_client.post("/api/operator/tours", json=sample_tour_data)

    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"
    assert "authorization" in response.json()["error"].lower()


@pytest.mark.asyncio
async def test_invalid_token_is_rejected(test_client, sample_tour_data):
    response = await test_client.post(
        "/api/operator/tours",
        json=sample_tour_data,
        headers={"Authorization": "Bearer not-a-jwt"}
    )
    assert response.status_code == 401

    response = await test_client.post(
        "/api/operator/tours",
        json=sample_tour_data,
        headers={"Authorization": "Basic abc"}
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_expired_token_is_rejected(test_client, operator_user, sample_tour_data):
    token = create_access_token(operator_user.id, expires_in=timedelta(seconds=-10))

    response = await test_client.post(
        "/api/operator/tours",
        json=sample_tour_data,
        headers={"Authorization": f"Bearer {token}"}
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_customers_cannot_manage_tours(test_client, customer_headers, sample_tour_data):
    response = await test_client.post("/api/operator/tours", json=sample_tour_data, headers=customer_headers)

    assert response.status_code == 403
    data = response.json()
    assert data["error"] == "Operator access required"
    assert data["required_roles"] == ["guide", "admin"]


@pytest.mark.asyncio
async def test_create_tour_invalid_data(test_client, operator_headers, sample_tour_data):
    """Test tour creation with invalid data."""
    invalid_data = {**sample_tour_data, "name": "", "max_participants": 0}

    response = await test_client.post("/api/operator/tours", json=invalid_data, headers=operator_headers)

    assert response.status_code == 400
    data = response.json()
    assert data["error"] == "The request data failed validation"
    paths = {v["path"] for v in data["violations"]}
    assert {"name", "max_participants"} <= paths


@pytest.mark.asyncio
async def test_operator_tour_lifecycle(test_client, operator_headers, sample_tour_data):
    created = (await test_client.post("/api/operator/tours", json=sample_tour_data, headers=operator_headers)).json()
    tour_id = created["id"]

    response = await test_client.patch(
        f"/api/operator/tours/{tour_id}",
        json={"name": "Galicica Ridge Traverse", "status": "active"},
        headers=operator_headers
    )
    assert response.status_code == 200
    assert response.json()["slug"] == "galicica-ridge-traverse"

    listing = (await test_client.get("/api/operator/tours", headers=operator_headers)).json()
    assert listing["pagination"]["total"] == 1

    response = await test_client.delete(f"/api/operator/tours/{tour_id}", headers=operator_headers)
    assert response.status_code == 409
    assert response.json()["error"] == "Only draft tours can be deleted"

    await test_client.patch(f"/api/operator/tours/{tour_id}", json={"status": "draft"}, headers=operator_headers)
    response = await test_client.delete(f"/api/operator/tours/{tour_id}", headers=operator_headers)
    assert response.status_code == 200
    assert response.json() == {"success": True}

    response = await test_client.get(f"/api/operator/tours/{tour_id}", headers=operator_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_operators_cannot_see_each_others_tours(test_client, active_tour, other_operator_headers, admin_headers):
    response = await test_client.get(f"/api/operator/tours/{active_tour.id}", headers=other_operator_headers)
    assert response.status_code == 404
    assert response.json()["error"] == "Tour not found"

    response = await test_client.get(f"/api/operator/tours/{active_tour.id}", headers=admin_headers)
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_invalid_tour_id(test_client, operator_headers):
    response = await test_client.get("/api/operator/tours/not-a-uuid", headers=operator_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_public_tour_endpoints(test_client, active_tour, scheduled_instance):
    response = await test_client.get("/api/tours")
    assert response.status_code == 200
    data = response.json()
    assert data["pagination"] == {"page": 1, "limit": 20, "total": 1}
    assert data["items"][0]["slug"] == active_tour.slug

    response = await test_client.get(f"/api/tours/{active_tour.slug}")
    assert response.status_code == 200
    assert response.json()["name"] == active_tour.name

    response = await test_client.get(f"/api/tours/{active_tour.slug}/instances")
    assert response.status_code == 200
    instances = response.json()
    assert len(instances) == 1
    assert instances[0]["spots_left"] == 10
    assert instances[0]["availability"] == "available"
    assert instances[0]["price"] == {"amount": 3500, "currency": "EUR"}

    response = await test_client.get("/api/tours/no-such-tour")
    assert response.status_code == 404
    assert response.json()["error"] == "Tour not found"


@pytest.mark.asyncio
async def test_instance_endpoints(test_client, active_tour, operator_headers):
    start = (utcnow() + timedelta(days=5)).isoformat() + "Z"
    response = await test_client.post(
        f"/api/operator/tours/{active_tour.id}/instances",
        json={"start_datetime": start, "capacity_max": 3, "price_override": {"amount": 3000}},
        headers=operator_headers
    )
    assert response.status_code == 201
    instance = response.json()
    assert instance["capacity_max"] == 3
    assert instance["price"] == {"amount": 3000, "currency": "EUR"}
    assert instance["availability"] == "limited"

    response = await test_client.patch(
        f"/api/operator/tours/{active_tour.id}/instances/{instance['id']}",
        json={"capacity_max": 8},
        headers=operator_headers
    )
    assert response.status_code == 200
    assert response.json()["spots_left"] == 8

    response = await test_client.get(f"/api/operator/tours/{active_tour.id}/instances", headers=operator_headers)
    assert [i["id"] for i in response.json()] == [instance["id"]]

    response = await test_client.delete(
        f"/api/operator/tours/{active_tour.id}/instances/{instance['id']}",
        headers=operator_headers
    )
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_create_booking_endpoint(test_client, scheduled_instance, booking_data):
    response = await test_client.post("/api/bookings", json=booking_data)

    assert response.status_code == 201
    data = response.json()
    assert data["message"] == "Booking created successfully"
    booking = data["booking"]
    assert booking["booking_reference"].startswith("PP-")
    assert booking["participant_count"] == 2
    assert booking["total"] == {"amount": 7000, "currency": "EUR"}
    assert booking["booking_status"] == "pending_payment"
    assert booking["payment_status"] == "pending"

    response = await test_client.get("/api/tours/prespa-islands-photo-walk/instances")
    assert response.json()[0]["spots_left"] == 8


@pytest.mark.asyncio
async def test_create_booking_errors(test_client, scheduled_instance, booking_data):
    response = await test_client.post("/api/bookings", json={**booking_data, "participant_count": 11})
    assert response.status_code == 400
    assert response.json()["error"] == "Only 10 spots available"

    response = await test_client.post("/api/bookings", json={**booking_data, "participant_count": 0})
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid participant count"

    response = await test_client.post("/api/bookings", json={**booking_data, "lead_participant_email": "nope"})
    assert response.status_code == 400
    assert response.json()["violations"][0]["path"] == "lead_participant_email"


@pytest.mark.asyncio
async def test_admin_booking_endpoints(test_client, scheduled_instance, booking_data, admin_headers, operator_headers):
    booking = (await test_client.post("/api/bookings", json=booking_data)).json()["booking"]

    response = await test_client.get("/api/admin/bookings", headers=operator_headers)
    assert response.status_code == 403

    response = await test_client.get("/api/admin/bookings", params={"search": "jonas"}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["total"] == 1

    response = await test_client.get(f"/api/admin/bookings/{booking['id']}", headers=admin_headers)
    assert response.json()["booking_reference"] == booking["booking_reference"]

    response = await test_client.patch(
        f"/api/admin/bookings/{booking['id']}",
        json={"booking_status": "cancelled", "cancellation_reason": "Customer request"},
        headers=admin_headers
    )
    assert response.status_code == 200
    data = response.json()
    assert data["booking_status"] == "cancelled"
    assert data["cancelled_by"] == "admin"

    response = await test_client.get("/api/tours/prespa-islands-photo-walk/instances")
    assert response.json()[0]["spots_left"] == 10


@pytest.mark.asyncio
async def test_route_endpoints(test_client, active_tour, operator_headers, sample_route_points):
    response = await test_client.put(
        f"/api/operator/tours/{active_tour.id}/route",
        json={"points": sample_route_points[:1]},
        headers=operator_headers
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Please draw a route with at least 2 points"

    response = await test_client.put(
        f"/api/operator/tours/{active_tour.id}/route",
        json={"points": sample_route_points, "meeting_point": {"lat": 41.1125, "lng": 20.802}},
        headers=operator_headers
    )
    assert response.status_code == 200
    saved = response.json()
    assert len(saved["points"]) == 3
    assert saved["distance_km"] > 0

    response = await test_client.get(f"/api/tours/{active_tour.slug}/route")
    assert response.status_code == 200
    route = response.json()
    assert route["route_data"]["type"] == "LineString"
    assert route["meeting_point_lat"] == 41.1125
    assert [w["title"] for w in route["waypoints"]] == ["Waypoint 1", "Samuel's Fortress", "Waypoint 3"]

    response = await test_client.get(f"/api/tours/{active_tour.slug}/route/flythrough")
    assert response.status_code == 200
    plan = response.json()
    assert plan["initial_view"]["zoom"] == 12
    assert len(plan["steps"]) == 3
    assert plan["steps"][0]["close_popup_ms"] == 0
    assert plan["steps"][0]["zoom"] == 15


@pytest.mark.asyncio
async def test_map_config(test_client):
    response = await test_client.get("/api/map/config")

    assert response.status_code == 200
    data = response.json()
    assert data["center"] == {"lat": 41.1783, "lng": 20.6783}
    assert data["zoom"] == 12
    assert data["style_url"].startswith("mapbox://")


@pytest.mark.asyncio
async def test_unknown_route_uses_error_body(test_client):
    response = await test_client.get("/api/nothing-here")

    assert response.status_code == 404
    assert response.json() == {"error": "Not Found"}


@pytest.mark.asyncio
async def test_request_id_is_echoed(test_client):
    response = await test_client.get("/api/map/config", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"

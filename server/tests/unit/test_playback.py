"""Unit tests for route playback."""

import asyncio
import logging

import pytest

from peaks_api.mapping.editor import Waypoint
from peaks_api.mapping.geo import LatLng
from peaks_api.mapping.playback import (
    Padding,
    PlaybackState,
    RoutePlayback,
    build_flythrough,
    overview_view,
    popup_padding,
    travel_progress,
    traveled_coordinates,
)


class FakeCamera:
    def __init__(self):
        self.moves = []
        self.during_flight = None

    async def fly_to(self, move):
        self.moves.append(move)
        if self.during_flight:
            await self.during_flight()


class FakeSleep:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)
        await asyncio.sleep(0)


@pytest.fixture
def stops():
    return [
        Waypoint(lat=41.10, lng=20.80, title="Trailhead"),
        Waypoint(lat=41.11, lng=20.79, title="Bridge", images=("a.jpg", "b.jpg", "c.jpg")),
        Waypoint(lat=41.12, lng=20.78, description="Summit cairn"),
    ]


@pytest.fixture
def camera():
    return FakeCamera()


@pytest.fixture
def sleep():
    return FakeSleep()


@pytest.fixture
def playback(stops, camera, sleep):
    return RoutePlayback(stops, camera, sleep=sleep)


def test_popup_padding():
    assert popup_padding(Waypoint(lat=0, lng=0, images=("x.jpg",))) == Padding(top=450, bottom=50, left=50, right=50)
    assert popup_padding(Waypoint(lat=0, lng=0)).top == 400


def test_travel_progress():
    assert travel_progress(0, 3) == 0
    assert travel_progress(1, 3) == 0.5
    assert travel_progress(2, 3) == 1
    assert travel_progress(0, 1) == 0


def test_traveled_coordinates():
    coords = list(range(10))
    assert traveled_coordinates(coords, 0) == []
    assert traveled_coordinates(coords, 0.5) == [0, 1, 2, 3, 4]
    # Never fewer than two coordinates once moving
    assert traveled_coordinates(coords, 0.05) == [0, 1]
    assert traveled_coordinates(coords, 1) == coords


def test_overview_view(stops):
    default = LatLng(lat=41.1783, lng=20.6783)

    view = overview_view(stops, default)
    assert view.zoom == 12
    assert view.center.lat == pytest.approx(41.11)

    empty = overview_view([], default)
    assert empty.center == default
    assert empty.zoom == 11


def test_build_flythrough(stops):
    steps = build_flythrough(stops)

    assert [s["title"] for s in steps] == ["Trailhead", "Bridge", "Waypoint 3"]
    assert [s["close_popup_ms"] for s in steps] == [0, 200, 200]
    assert [s["dwell_ms"] for s in steps] == [6000, 6000, 0]
    assert [s["progress"] for s in steps] == [0, 0.5, 1]
    assert steps[1]["zoom"] == 15
    assert steps[1]["duration_ms"] == 1500
    assert steps[1]["settle_ms"] == 1600
    assert steps[1]["padding"]["top"] == 450
    assert steps[0]["center"] == {"lat": 41.10, "lng": 20.80}


@pytest.mark.asyncio
async def test_go_to_flies_and_pauses(playback, camera, sleep):
    states = []
    playback.on_state_change = lambda state, index: states.append((state, index))

    await playback.go_to(1)

    assert states == [(PlaybackState.FLYING, 1), (PlaybackState.PAUSED, 1)]
    assert playback.current_index == 1
    assert playback.progress == 0.5
    assert camera.moves[0].index == 1
    assert camera.moves[0].zoom == 15
    # Jumping does not wait for a popup to close
    assert sleep.calls == [1.6]


@pytest.mark.asyncio
async def test_next_and_prev(playback, camera, sleep):
    assert await playback.next() is False

    await playback.go_to(0)
    assert await playback.prev() is False
    assert await playback.next() is True
    assert await playback.next() is True
    assert await playback.next() is False
    assert await playback.prev() is True

    assert [m.index for m in camera.moves] == [0, 1, 2, 1]
    assert sleep.calls[1:3] == [0.2, 1.6]


@pytest.mark.asyncio
async def test_next_is_ignored_while_flying(playback, camera):
    results = []

    async def press_next():
        results.append(await playback.next())

    await playback.go_to(0)
    camera.during_flight = press_next
    await playback.go_to(1)

    assert results == [False]
    assert playback.current_index == 1


@pytest.mark.asyncio
async def test_autoplay_visits_every_stop(playback, camera, sleep):
    await playback.play()

    assert [m.index for m in camera.moves] == [0, 1, 2]
    assert sleep.calls == [1.6, 6.0, 0.2, 1.6, 6.0, 0.2, 1.6, 6.0]
    assert playback.state == PlaybackState.PAUSED
    assert playback.current_index == 2
    assert playback.progress == 1
    assert not playback.autoplaying


@pytest.mark.asyncio
async def test_manual_jump_stops_autoplay(playback, camera):
    await playback.start_autoplay()
    assert playback.autoplaying

    await playback.go_to(2)
    await asyncio.sleep(0)
    await asyncio.sleep(0)

    assert not playback.autoplaying
    assert [m.index for m in camera.moves] == [0, 2]


@pytest.mark.asyncio
async def test_autoplay_without_stops(camera, sleep):
    playback = RoutePlayback([], camera, sleep=sleep)
    await playback.play()
    assert camera.moves == []
    assert playback.state == PlaybackState.IDLE


@pytest.mark.asyncio
async def test_close_returns_to_idle(playback):
    await playback.start_autoplay()
    playback.close()

    assert playback.state == PlaybackState.IDLE
    assert playback.current_stop is None
    assert not playback.autoplaying


@pytest.mark.asyncio
async def test_close_during_flight_stays_idle(playback, camera, sleep):
    released = asyncio.Event()
    camera.during_flight = released.wait

    flight = asyncio.create_task(playback.go_to(1))
    await asyncio.sleep(0)
    assert playback.state == PlaybackState.FLYING

    playback.close()
    released.set()
    await flight

    assert playback.state == PlaybackState.IDLE
    assert playback.current_index is None
    # The interrupted flight never settles
    assert sleep.calls == []


@pytest.mark.asyncio
async def test_close_during_autoplay_flight(playback, camera):
    await playback.start_autoplay()
    released = asyncio.Event()
    camera.during_flight = released.wait

    # Let the loop reach the next stop's flight
    while len(camera.moves) < 2:
        await asyncio.sleep(0)
    playback.close()
    released.set()
    await asyncio.sleep(0)
    await asyncio.sleep(0)

    assert playback.state == PlaybackState.IDLE
    assert playback.current_index is None
    assert not playback.autoplaying


@pytest.mark.asyncio
async def test_autoplay_failure_is_logged(playback, camera, caplog):
    async def fail():
        raise RuntimeError("map unavailable")

    await playback.start_autoplay()
    camera.during_flight = fail

    with caplog.at_level(logging.ERROR, logger="peaks_api.mapping.playback"):
        with pytest.raises(RuntimeError, match="map unavailable"):
            await playback.wait()
        await asyncio.sleep(0)

    messages = [record.getMessage() for record in caplog.records]
    assert "Route auto-play failed: map unavailable" in messages


@pytest.mark.asyncio
async def test_image_carousel_wraps(playback):
    await playback.go_to(1)

    assert playback.next_image() == 1
    assert playback.next_image() == 2
    assert playback.next_image() == 0
    assert playback.prev_image() == 2

    await playback.go_to(0)
    assert playback.image_index == 0
    assert playback.next_image() == 0


@pytest.mark.asyncio
async def test_go_to_out_of_range(playback):
    with pytest.raises(IndexError):
        await playback.go_to(3)

"""Route playback: a camera flythrough that pauses at each stop.

States run ``idle -> flying -> paused -> flying -> ...``. Moving between
stops closes the open popup, flies the camera to the next stop and waits
for it to settle before the popup opens again. Auto-play advances one stop
per interval and stops after the last stop.

The camera and the sleep function are injected, so the machine runs
against a real map client or headless in tests.
"""

import asyncio
import logging
import math
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Protocol, Sequence

from .editor import Waypoint
from .geo import LatLng, centroid

logger = logging.getLogger(__name__)

STOP_ZOOM = 15
FLY_DURATION_MS = 1500
SETTLE_MS = 1600
POPUP_CLOSE_MS = 200
AUTOPLAY_INTERVAL_MS = 6000

POPUP_HEIGHT_WITH_IMAGES = 400
POPUP_HEIGHT_TEXT_ONLY = 350
POPUP_MARGIN = 50

OVERVIEW_ZOOM = 12
EMPTY_ROUTE_ZOOM = 11


class PlaybackState(str, Enum):
    IDLE = "idle"
    FLYING = "flying"
    PAUSED = "paused"


@dataclass(frozen=True)
class Padding:
    top: int
    bottom: int
    left: int
    right: int


@dataclass(frozen=True)
class CameraMove:
    """A single camera flight to a stop."""

    index: int
    center: LatLng
    zoom: float
    duration_ms: int
    padding: Padding


@dataclass(frozen=True)
class CameraView:
    center: LatLng
    zoom: float


class Camera(Protocol):
    async def fly_to(self, move: CameraMove) -> None:
        ...


Sleep = Callable[[float], Awaitable[None]]
StateListener = Callable[[PlaybackState, Optional[int]], None]


def popup_padding(waypoint: Waypoint) -> Padding:
    """Leave room above the stop for its popup."""
    height = POPUP_HEIGHT_WITH_IMAGES if waypoint.images else POPUP_HEIGHT_TEXT_ONLY
    return Padding(
        top=height + POPUP_MARGIN,
        bottom=POPUP_MARGIN,
        left=POPUP_MARGIN,
        right=POPUP_MARGIN,
    )


def camera_move_for(index: int, waypoint: Waypoint) -> CameraMove:
    return CameraMove(
        index=index,
        center=waypoint.position,
        zoom=STOP_ZOOM,
        duration_ms=FLY_DURATION_MS,
        padding=popup_padding(waypoint),
    )


def travel_progress(index: int, stop_count: int) -> float:
    """Fraction of the route travelled when paused at ``index``."""
    return index / max(stop_count - 1, 1)


def traveled_coordinates(coordinates: Sequence[Any], progress: float) -> list[Any]:
    """Leading part of the route line drawn as already travelled."""
    if progress <= 0 or not coordinates:
        return []
    count = max(math.floor(len(coordinates) * progress), 2)
    return list(coordinates[:count])


def overview_view(
    stops: Sequence[Waypoint],
    default_center: LatLng,
) -> CameraView:
    """Initial view: the stops' centroid, or the default center for an empty route."""
    center = centroid(p.position for p in stops)
    if center is None:
        return CameraView(center=default_center, zoom=EMPTY_ROUTE_ZOOM)
    return CameraView(center=center, zoom=OVERVIEW_ZOOM)


def build_flythrough(
    stops: Sequence[Waypoint],
    titles: Optional[Sequence[str]] = None,
) -> list[dict[str, Any]]:
    """Static auto-play plan: one camera move per stop with its timing."""
    steps = []
    for i, stop in enumerate(stops):
        move = camera_move_for(i, stop)
        steps.append({
            "index": i,
            "title": titles[i] if titles else stop.display_title(i),
            "center": asdict(move.center),
            "zoom": move.zoom,
            "duration_ms": move.duration_ms,
            "padding": asdict(move.padding),
            # The first stop is reached without closing a popup
            "close_popup_ms": 0 if i == 0 else POPUP_CLOSE_MS,
            "settle_ms": SETTLE_MS,
            "dwell_ms": AUTOPLAY_INTERVAL_MS if i < len(stops) - 1 else 0,
            "progress": travel_progress(i, len(stops)),
        })
    return steps


class RoutePlayback:
    """Drives a :class:`Camera` through a route's stops."""

    def __init__(
        self,
        stops: Sequence[Waypoint],
        camera: Camera,
        sleep: Sleep = asyncio.sleep,
        on_state_change: Optional[StateListener] = None,
    ):
        self.stops = list(stops)
        self.camera = camera
        self._sleep = sleep
        self.on_state_change = on_state_change

        self.state = PlaybackState.IDLE
        self.current_index: Optional[int] = None
        self.image_index = 0
        self.progress = 0.0
        self._autoplay_task: Optional[asyncio.Task] = None
        # Bumped by every new flight and by close(); a stale flight never lands
        self._flight = 0

    @property
    def autoplaying(self) -> bool:
        return self._autoplay_task is not None and not self._autoplay_task.done()

    @property
    def current_stop(self) -> Optional[Waypoint]:
        if self.current_index is None:
            return None
        return self.stops[self.current_index]

    async def go_to(self, index: int) -> None:
        """Jump to a stop, as when its marker is clicked."""
        if not 0 <= index < len(self.stops):
            raise IndexError(f"Stop index {index} out of range")
        self.stop_autoplay()
        await self._fly(index, close_popup=False)

    async def next(self) -> bool:
        """Advance one stop; False when there is no open stop or no next stop."""
        if self.state == PlaybackState.FLYING or self.current_index is None:
            return False
        if self.current_index >= len(self.stops) - 1:
            return False
        self.stop_autoplay()
        await self._fly(self.current_index + 1, close_popup=True)
        return True

    async def prev(self) -> bool:
        if self.state == PlaybackState.FLYING or self.current_index is None:
            return False
        if self.current_index <= 0:
            return False
        self.stop_autoplay()
        await self._fly(self.current_index - 1, close_popup=True)
        return True

    def close(self) -> None:
        """Close the popup and end auto-play."""
        self.stop_autoplay()
        self._flight += 1
        self.current_index = None
        self.image_index = 0
        self._set_state(PlaybackState.IDLE)

    async def start_autoplay(self) -> None:
        """Open the first stop, then advance on a timer in a background task."""
        if not self.stops:
            return
        self.stop_autoplay()
        self.progress = 0.0
        if not await self._fly(0, close_popup=False):
            return
        self._autoplay_task = asyncio.create_task(self._autoplay_loop())
        self._autoplay_task.add_done_callback(self._autoplay_done)

        logger.info("Route auto-play started", extra={"stop_count": len(self.stops)})

    async def play(self) -> None:
        """Run auto-play from the first stop to the last."""
        await self.start_autoplay()
        await self.wait()

    async def wait(self) -> None:
        task = self._autoplay_task
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            if not task.cancelled():
                raise

    def stop_autoplay(self) -> None:
        task = self._autoplay_task
        if task is not None and task is not asyncio.current_task():
            task.cancel()
        self._autoplay_task = None

    def next_image(self) -> int:
        stop = self.current_stop
        if stop is None or not stop.images:
            return 0
        self.image_index = (self.image_index + 1) % len(stop.images)
        return self.image_index

    def prev_image(self) -> int:
        stop = self.current_stop
        if stop is None or not stop.images:
            return 0
        self.image_index = (self.image_index - 1) % len(stop.images)
        return self.image_index

    async def _autoplay_loop(self) -> None:
        while True:
            await self._sleep(AUTOPLAY_INTERVAL_MS / 1000)
            current = self.current_index
            if current is None or current >= len(self.stops) - 1:
                break
            if not await self._fly(current + 1, close_popup=True):
                return

        logger.info("Route auto-play finished", extra={"stop_index": self.current_index})

    def _autoplay_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(
                f"Route auto-play failed: {error}",
                exc_info=error,
                extra={"stop_index": self.current_index}
            )

    async def _fly(self, index: int, close_popup: bool) -> bool:
        """Fly to a stop; False when a newer flight or close() took over."""
        self._flight += 1
        flight = self._flight
        self.current_index = None
        self._set_state(PlaybackState.FLYING, index)
        if close_popup:
            await self._sleep(POPUP_CLOSE_MS / 1000)
            if self._flight != flight:
                return False

        self.progress = travel_progress(index, len(self.stops))
        await self.camera.fly_to(camera_move_for(index, self.stops[index]))
        if self._flight != flight:
            return False
        await self._sleep(SETTLE_MS / 1000)
        if self._flight != flight:
            return False

        self.current_index = index
        self.image_index = 0
        self._set_state(PlaybackState.PAUSED, index)
        return True

    def _set_state(self, state: PlaybackState, index: Optional[int] = None) -> None:
        self.state = state
        if self.on_state_change:
            self.on_state_change(state, index)

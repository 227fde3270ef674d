"""Map configuration for clients rendering routes."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ..core.config import settings
from ..schemas.route import Coordinate, MapConfig

router = APIRouter(prefix="/api/map", tags=["map"])


@router.get("/config", response_model=MapConfig)
async def get_map_config() -> JSONResponse:
    """Public map token, style and default view."""
    response_data = MapConfig(
        access_token=settings.mapbox_access_token,
        style_url=settings.map_style_url,
        center=Coordinate(lat=settings.map_default_center_lat, lng=settings.map_default_center_lng),
        zoom=settings.map_default_zoom
    )
    return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))

"""Tour-related Pydantic schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from ..models.tour import Difficulty, TourStatus
from .common import Money, Pagination


class CreateTourRequest(BaseModel):
    """Request schema for creating a tour."""

    name: str = Field(..., min_length=1, max_length=255, description="Tour name")
    tagline: Optional[str] = Field(None, max_length=500, description="Short tagline")
    description: Optional[str] = Field(None, max_length=10000, description="Tour description")
    type: Optional[str] = Field(None, max_length=50, description="Tour type, e.g. hiking or photography")
    difficulty: Difficulty = Field(Difficulty.MODERATE, description="Difficulty level")
    duration_minutes: Optional[int] = Field(None, ge=1, description="Tour duration in minutes")
    min_participants: int = Field(1, ge=1, le=50, description="Minimum group size")
    max_participants: int = Field(12, ge=1, le=50, description="Maximum group size")
    base_price: Money = Field(..., description="Price per person")
    highlights: list[str] = Field(default_factory=list, description="Tour highlights")
    whats_included: list[str] = Field(default_factory=list, description="Included items")
    what_to_bring: list[str] = Field(default_factory=list, description="Items to bring")
    meeting_point: Optional[str] = Field(None, max_length=500, description="Meeting point description")
    meeting_point_lat: Optional[float] = Field(None, ge=-90, le=90)
    meeting_point_lng: Optional[float] = Field(None, ge=-180, le=180)
    location_area: Optional[str] = Field(None, max_length=255, description="Region the tour runs in")
    cover_image: Optional[str] = Field(None, max_length=1000, description="Cover image URL")
    status: TourStatus = Field(TourStatus.DRAFT, description="Publication status")
    is_featured: Optional[bool] = Field(None, description="Featured flag (admins only)")

    @model_validator(mode="after")
    def check_participant_range(self) -> "CreateTourRequest":
        if self.max_participants < self.min_participants:
            raise ValueError("max_participants must be at least min_participants")
        return self


class UpdateTourRequest(BaseModel):
    """Partial update; only fields present in the body are applied."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    tagline: Optional[str] = Field(None, max_length=500)
    description: Optional[str] = Field(None, max_length=10000)
    type: Optional[str] = Field(None, max_length=50)
    difficulty: Optional[Difficulty] = None
    duration_minutes: Optional[int] = Field(None, ge=1)
    min_participants: Optional[int] = Field(None, ge=1, le=50)
    max_participants: Optional[int] = Field(None, ge=1, le=50)
    base_price: Optional[Money] = None
    highlights: Optional[list[str]] = None
    whats_included: Optional[list[str]] = None
    what_to_bring: Optional[list[str]] = None
    meeting_point: Optional[str] = Field(None, max_length=500)
    meeting_point_lat: Optional[float] = Field(None, ge=-90, le=90)
    meeting_point_lng: Optional[float] = Field(None, ge=-180, le=180)
    location_area: Optional[str] = Field(None, max_length=255)
    cover_image: Optional[str] = Field(None, max_length=1000)
    status: Optional[TourStatus] = None
    is_featured: Optional[bool] = None


class Tour(BaseModel):
    """Tour response schema."""

    id: str = Field(..., description="Unique tour ID")
    slug: str = Field(..., description="URL-friendly slug")
    operator_id: Optional[str] = Field(None, description="Owning operator")
    name: str = Field(..., description="Tour name")
    tagline: Optional[str] = None
    description: Optional[str] = None
    type: Optional[str] = None
    difficulty: Difficulty
    duration_minutes: Optional[int] = None
    min_participants: int
    max_participants: int
    base_price: Money
    highlights: list[str]
    whats_included: list[str]
    what_to_bring: list[str]
    meeting_point: Optional[str] = None
    meeting_point_lat: Optional[float] = None
    meeting_point_lng: Optional[float] = None
    location_area: Optional[str] = None
    cover_image: Optional[str] = None
    status: TourStatus
    is_featured: bool
    distance_km: float
    created_at: datetime
    updated_at: datetime


class TourListResponse(BaseModel):
    """Response schema for tour listings."""

    items: list[Tour] = Field(..., description="Tours on this page")
    pagination: Pagination

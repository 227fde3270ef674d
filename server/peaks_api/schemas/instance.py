"""Tour instance Pydantic schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from ..models.instance import Availability, InstanceStatus
from .common import Money


class CreateInstanceRequest(BaseModel):
    """Request schema for scheduling a tour instance."""

    start_datetime: datetime = Field(..., description="Start time (ISO 8601)")
    end_datetime: Optional[datetime] = Field(None, description="End time (ISO 8601)")
    capacity_max: Optional[int] = Field(None, ge=1, le=500, description="Spots offered; defaults to 12")
    price_override: Optional[Money] = Field(None, description="Price per person for this date")
    notes: Optional[str] = Field(None, max_length=2000)

    @model_validator(mode="after")
    def check_time_range(self) -> "CreateInstanceRequest":
        if self.end_datetime is not None and self.end_datetime <= self.start_datetime:
            raise ValueError("end_datetime must be after start_datetime")
        return self


class UpdateInstanceRequest(BaseModel):
    """Partial update of a tour instance."""

    start_datetime: Optional[datetime] = None
    end_datetime: Optional[datetime] = None
    capacity_max: Optional[int] = Field(None, ge=1, le=500)
    price_override: Optional[Money] = None
    status: Optional[InstanceStatus] = None
    cancellation_reason: Optional[str] = Field(None, max_length=2000)
    notes: Optional[str] = Field(None, max_length=2000)


class TourInstance(BaseModel):
    """Tour instance response schema."""

    id: str = Field(..., description="Unique instance ID")
    tour_id: str = Field(..., description="Associated tour ID")
    guide_id: Optional[str] = None
    start_datetime: datetime
    end_datetime: Optional[datetime] = None
    capacity_max: int = Field(..., ge=1)
    capacity_booked: int = Field(..., ge=0)
    spots_left: int = Field(..., ge=0, description="Spots still bookable")
    availability: Availability
    price: Money = Field(..., description="Effective price per person")
    price_override: Optional[Money] = None
    status: InstanceStatus
    cancellation_reason: Optional[str] = None
    notes: Optional[str] = None


class PublicTourInstance(BaseModel):
    """Bookable date shown on a tour page."""

    id: str
    start_datetime: datetime
    end_datetime: Optional[datetime] = None
    spots_left: int = Field(..., ge=0)
    availability: Availability
    price: Money

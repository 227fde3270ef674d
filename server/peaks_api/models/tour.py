"""Tour and tour waypoint model definitions."""

from datetime import datetime
from enum import Enum
from typing import Any, TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base

if TYPE_CHECKING:
    from .instance import TourInstance
    from .user import User

# JSONB on PostgreSQL, plain JSON elsewhere
JSONType = JSON().with_variant(JSONB(), "postgresql")


class TourStatus(str, Enum):
    """Tour publication status."""
    DRAFT = "draft"
    ACTIVE = "active"
    ARCHIVED = "archived"


class Difficulty(str, Enum):
    """Tour difficulty level."""
    EASY = "easy"
    MODERATE = "moderate"
    HARD = "hard"
    EXPERT = "expert"


class Tour(Base):
    """Tour entity representing a tour offering."""

    __tablename__ = "tours"

    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )

    operator_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    # Tour information
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    tagline: Mapped[str | None] = mapped_column(String(500), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    type: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)
    difficulty: Mapped[Difficulty] = mapped_column(
        String(20),
        nullable=False,
        default=Difficulty.MODERATE
    )
    duration_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    min_participants: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    max_participants: Mapped[int] = mapped_column(Integer, nullable=False, default=12)

    # Price information (stored as minor units, e.g., cents)
    base_price_amount: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    price_currency: Mapped[str] = mapped_column(String(3), nullable=False, default="EUR")

    highlights: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    whats_included: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    what_to_bring: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)

    # Meeting point
    meeting_point: Mapped[str | None] = mapped_column(String(500), nullable=True)
    meeting_point_lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    meeting_point_lng: Mapped[float | None] = mapped_column(Float, nullable=True)
    location_area: Mapped[str | None] = mapped_column(String(255), nullable=True)
    cover_image: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    status: Mapped[TourStatus] = mapped_column(
        String(20),
        nullable=False,
        default=TourStatus.DRAFT,
        index=True
    )
    is_featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Route
    route_data: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    distance_km: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
        server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        nullable=False,
        server_default=func.now(),
        onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint("base_price_amount >= 0", name="ck_tour_base_price_non_negative"),
        CheckConstraint("length(price_currency) = 3", name="ck_tour_price_currency_length"),
        CheckConstraint("min_participants >= 1", name="ck_tour_min_participants_positive"),
        CheckConstraint("max_participants >= min_participants", name="ck_tour_participants_range"),
        CheckConstraint("distance_km >= 0", name="ck_tour_distance_non_negative"),
    )

    # Relationships
    operator: Mapped["User | None"] = relationship("User", back_populates="tours")
    instances: Mapped[list["TourInstance"]] = relationship(
        "TourInstance",
        back_populates="tour",
        cascade="all, delete-orphan",
        passive_deletes=True
    )
    waypoints: Mapped[list["TourWaypoint"]] = relationship(
        "TourWaypoint",
        back_populates="tour",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="TourWaypoint.order_index"
    )

    def __repr__(self) -> str:
        return f"<Tour(id={self.id}, name='{self.name}', slug='{self.slug}', status={self.status})>"


class TourWaypoint(Base):
    """A saved stop along a tour route."""

    __tablename__ = "tour_waypoints"

    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )

    tour_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("tours.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    order_index: Mapped[int] = mapped_column(Integer, nullable=False)
    lat: Mapped[float] = mapped_column(Float, nullable=False)
    lng: Mapped[float] = mapped_column(Float, nullable=False)
    elevation: Mapped[float | None] = mapped_column(Float, nullable=True)
    type: Mapped[str] = mapped_column(String(20), nullable=False, default="waypoint")
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    images: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)

    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
        server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("lat >= -90 AND lat <= 90", name="ck_waypoint_lat_range"),
        CheckConstraint("lng >= -180 AND lng <= 180", name="ck_waypoint_lng_range"),
        CheckConstraint("order_index >= 0", name="ck_waypoint_order_non_negative"),
    )

    tour: Mapped["Tour"] = relationship("Tour", back_populates="waypoints")

    def __repr__(self) -> str:
        return (
            f"<TourWaypoint(id={self.id}, tour_id={self.tour_id}, "
            f"order={self.order_index}, type={self.type})>"
        )

"""Test configuration and fixtures."""

import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "development")

from datetime import timedelta  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from fastapi.exceptions import RequestValidationError  # noqa: E402
from httpx import AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from starlette.exceptions import HTTPException as StarletteHTTPException  # noqa: E402

from peaks_api.core.database import Base, get_db, utcnow  # noqa: E402
from peaks_api.core.dependencies import create_access_token  # noqa: E402
from peaks_api.models import *  # noqa: E402,F403 - Import all models
from peaks_api.models import InstanceStatus, Tour, TourInstance, TourStatus, User, UserRole  # noqa: E402

# Test database URL (in-memory SQLite for speed)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_session(test_engine):
    """Create a test database session."""
    async_session = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with async_session() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def test_app(test_session):
    """Create a test FastAPI application."""
    from fastapi import FastAPI

    from peaks_api.core.exceptions import (
        APIException,
        api_exception_handler,
        generic_exception_handler,
        http_exception_handler,
        validation_exception_handler,
    )
    from peaks_api.core.middleware import setup_middleware
    from peaks_api.routers import admin, bookings, health, map, metrics, operator, tours

    # Simplified test app without lifespan
    app = FastAPI(
        title="Peaks & Pixels API (Test)",
        description="Test version of the API",
        version="1.0.0-test",
    )

    setup_middleware(app, enable_logging=True)

    app.add_exception_handler(APIException, api_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.include_router(health.router)
    app.include_router(tours.router)
    app.include_router(operator.router)
    app.include_router(bookings.router)
    app.include_router(admin.router)
    app.include_router(map.router)
    app.include_router(metrics.router)

    async def override_get_db():
        yield test_session

    app.dependency_overrides[get_db] = override_get_db

    yield app

    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def test_client(test_app):
    """Create a test HTTP client."""
    from httpx import ASGITransport
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def _create_user(session: AsyncSession, email: str, role: UserRole, **fields) -> User:
    user = User(email=email, role=role.value, **fields)
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


@pytest_asyncio.fixture
async def customer(test_session):
    return await _create_user(test_session, "anna@example.com", UserRole.CUSTOMER, first_name="Anna", last_name="Berg")


@pytest_asyncio.fixture
async def operator_user(test_session):
    return await _create_user(test_session, "guide@example.com", UserRole.GUIDE, first_name="Arben", last_name="Hoxha")


@pytest_asyncio.fixture
async def other_operator(test_session):
    return await _create_user(test_session, "other-guide@example.com", UserRole.GUIDE)


@pytest_asyncio.fixture
async def admin_user(test_session):
    return await _create_user(test_session, "admin@example.com", UserRole.ADMIN)


def _auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
def customer_headers(customer):
    return _auth_headers(customer)


@pytest.fixture
def operator_headers(operator_user):
    return _auth_headers(operator_user)


@pytest.fixture
def other_operator_headers(other_operator):
    return _auth_headers(other_operator)


@pytest.fixture
def admin_headers(admin_user):
    return _auth_headers(admin_user)


@pytest.fixture
def sample_tour_data():
    """Sample tour data for testing."""
    return {
        "name": "Lake Ohrid Sunrise Hike",
        "tagline": "Golden hour above the lake",
        "description": "A gentle climb to the viewpoint above Ohrid with a photography stop.",
        "type": "hiking",
        "difficulty": "moderate",
        "duration_minutes": 240,
        "min_participants": 1,
        "max_participants": 12,
        "base_price": {"amount": 4500, "currency": "EUR"},
        "highlights": ["Sunrise over the lake", "Old town views"],
        "location_area": "Ohrid",
    }


@pytest.fixture
def sample_route_points():
    """Three-point route; only the middle point has a title and photos."""
    return [
        {"lat": 41.1130, "lng": 20.8016},
        {
            "lat": 41.1172,
            "lng": 20.7951,
            "type": "viewpoint",
            "title": "Samuel's Fortress",
            "description": "Walls above the old town",
            "images": ["https://img.example.com/fortress.jpg"],
        },
        {"lat": 41.1231, "lng": 20.7899},
    ]


@pytest_asyncio.fixture
async def active_tour(test_session, operator_user):
    """Published tour owned by ``operator_user``."""
    tour = Tour(
        operator_id=operator_user.id,
        name="Prespa Islands Photo Walk",
        slug="prespa-islands-photo-walk",
        tagline="Pelicans and painted churches",
        type="photography",
        difficulty="easy",
        base_price_amount=3500,
        price_currency="EUR",
        status=TourStatus.ACTIVE.value,
    )
    test_session.add(tour)
    await test_session.commit()
    await test_session.refresh(tour)
    return tour


@pytest_asyncio.fixture
async def scheduled_instance(test_session, active_tour, operator_user):
    """Future date of ``active_tour`` with 10 spots, none booked."""
    instance = TourInstance(
        tour_id=active_tour.id,
        guide_id=operator_user.id,
        start_datetime=utcnow() + timedelta(days=14),
        end_datetime=utcnow() + timedelta(days=14, hours=4),
        capacity_max=10,
        capacity_booked=0,
        status=InstanceStatus.SCHEDULED.value,
    )
    test_session.add(instance)
    await test_session.commit()
    await test_session.refresh(instance)
    return instance


@pytest.fixture
def booking_data(scheduled_instance):
    return {
        "tour_instance_id": str(scheduled_instance.id),
        "participant_count": 2,
        "lead_participant_name": "Jonas Meier Keller",
        "lead_participant_email": "jonas@example.com",
        "lead_participant_phone": "+41 79 000 00 00",
    }

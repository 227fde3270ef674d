#!/usr/bin/env python3
"""Setup script for the Peaks & Pixels API: migrations plus demo data."""

import asyncio
import logging
import sys
from datetime import timedelta
from pathlib import Path

# Add the server directory to the Python path
server_dir = Path(__file__).parent.parent / "server"
sys.path.insert(0, str(server_dir))

from alembic import command  # noqa: E402
from alembic.config import Config  # noqa: E402
from sqlalchemy import func, select  # noqa: E402

from peaks_api.core.database import async_session_factory, close_db, utcnow  # noqa: E402
from peaks_api.core.dependencies import create_access_token  # noqa: E402
from peaks_api.models import Tour, TourStatus, User, UserRole  # noqa: E402
from peaks_api.schemas.common import Money  # noqa: E402
from peaks_api.schemas.instance import CreateInstanceRequest  # noqa: E402
from peaks_api.schemas.route import SaveRouteRequest  # noqa: E402
from peaks_api.schemas.tour import CreateTourRequest  # noqa: E402
from peaks_api.services import InstanceService, RouteService, TourService  # noqa: E402

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEMO_ROUTE = [
    {"lat": 41.1125, "lng": 20.8020, "title": "Ohrid harbour", "type": "photo"},
    {"lat": 41.1139, "lng": 20.7936},
    {"lat": 41.1155, "lng": 20.7890, "title": "Church of St. John at Kaneo", "type": "viewpoint",
     "description": "The classic view over the lake."},
    {"lat": 41.1190, "lng": 20.7953},
    {"lat": 41.1212, "lng": 20.7970, "title": "Samuel's Fortress", "type": "viewpoint"},
]


def run_migrations():
    """Apply Alembic migrations up to head."""
    alembic_cfg = Config(str(server_dir / "db" / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(server_dir / "db" / "alembic"))

    logger.info("Running database migrations...")
    command.upgrade(alembic_cfg, "head")
    logger.info("Database migrations completed")


async def create_sample_data():
    """Create a demo operator, a published tour with a route and a few dates."""
    logger.info("Creating sample data...")

    async with async_session_factory() as db:
        try:
            # Check if sample data already exists
            existing_tours = await db.scalar(select(func.count()).select_from(Tour))
            if existing_tours:
                logger.info("Sample data already exists, skipping...")
                return

            operator = User(
                email="guide@peaks.example",
                first_name="Demo",
                last_name="Guide",
                role=UserRole.GUIDE.value,
            )
            db.add(operator)
            await db.commit()

            tour = await TourService(db).create_tour(
                CreateTourRequest(
                    name="Ohrid Old Town Photo Walk",
                    tagline="Churches, cliffs and lake light",
                    description="A golden-hour walk through Ohrid's old town with a photographer guide.",
                    type="photography",
                    duration_minutes=180,
                    base_price=Money(amount=3500, currency="EUR"),
                    location_area="Ohrid",
                    status=TourStatus.ACTIVE,
                ),
                operator,
            )

            await RouteService(db).save_route(
                tour,
                SaveRouteRequest(
                    points=DEMO_ROUTE,
                    meeting_point={"lat": 41.1125, "lng": 20.8020, "address": "Ohrid harbour"},
                ),
            )

            instances = InstanceService(db)
            base_date = (utcnow() + timedelta(days=14)).replace(hour=17, minute=0, second=0, microsecond=0)
            for i in range(4):
                await instances.create_instance(
                    tour,
                    CreateInstanceRequest(start_datetime=base_date + timedelta(days=i * 7), capacity_max=10),
                    operator,
                )

            logger.info("Sample data created successfully!")
            logger.info(f"Operator token: {create_access_token(operator.id)}")

        except Exception as e:
            await db.rollback()
            logger.error(f"Failed to create sample data: {e}")
            raise

    await close_db()


def main():
    """Main setup function."""
    logger.info("Starting Peaks & Pixels API setup...")

    # Migrations run their own event loop
    run_migrations()

    asyncio.run(create_sample_data())

    logger.info("Setup completed successfully!")
    logger.info("You can now start the API server with: cd server && uvicorn peaks_api.main:app --reload")


if __name__ == "__main__":
    main()

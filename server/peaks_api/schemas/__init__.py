"""Pydantic schemas for request/response validation."""

from .booking import *  # noqa: F403
from .common import *  # noqa: F403
from .health import *  # noqa: F403
from .instance import *  # noqa: F403
from .route import *  # noqa: F403
from .tour import *  # noqa: F403

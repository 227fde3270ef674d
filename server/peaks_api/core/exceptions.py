"""API exceptions and the handlers that render them as ``{"error": ...}`` bodies."""

import logging
import uuid
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..schemas.common import ErrorResponse, Violation
from .database import utcnow

logger = logging.getLogger(__name__)


class APIException(HTTPException):
    """
    Base exception for every error the API reports to clients.

    The response body is ``{"error": <message>}`` plus any extension
    members, so clients only ever need to read a single ``error`` key.
    """

    def __init__(
        self,
        status_code: int,
        error: str,
        extensions: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize the exception.

        Args:
            status_code: HTTP status code
            error: Human-readable message for this occurrence
            extensions: Additional problem-specific members
            headers: HTTP headers to include in response
        """
        self.error = error
        self.extensions = extensions or {}
        self.body: Dict[str, Any] = {"error": error}
        self.body.update(self.extensions)

        super().__init__(status_code=status_code, detail=error, headers=headers)


class ValidationError(APIException):
    """Exception for invalid input and rejected business rules."""

    def __init__(
        self,
        error: str = "The request data failed validation",
        violations: Optional[List[Dict[str, str]]] = None,
    ):
        extensions = {}
        if violations:
            extensions["violations"] = violations

        super().__init__(status_code=400, error=error, extensions=extensions)


class AuthenticationError(APIException):
    """Exception for missing or invalid credentials."""

    def __init__(self, error: str = "Authentication credentials are required"):
        super().__init__(
            status_code=401,
            error=error,
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthorizationError(APIException):
    """Exception for authenticated users lacking the required role."""

    def __init__(
        self,
        error: str = "Insufficient permissions to access this resource",
        required_roles: Optional[list] = None,
    ):
        extensions = {}
        if required_roles:
            extensions["required_roles"] = required_roles

        super().__init__(status_code=403, error=error, extensions=extensions)


class NotFoundError(APIException):
    """Exception for resource not found errors."""

    def __init__(
        self,
        resource_type: str = "resource",
        resource_id: Optional[str] = None,
        error: Optional[str] = None,
    ):
        if not error:
            error = f"{resource_type.capitalize()} not found"

        extensions = {"resource_type": resource_type}
        if resource_id:
            extensions["resource_id"] = resource_id

        super().__init__(status_code=404, error=error, extensions=extensions)


class ConflictError(APIException):
    """Exception for requests that conflict with current resource state."""

    def __init__(
        self,
        error: str = "The request conflicts with the current state of the resource",
        conflicting_resource: Optional[Dict[str, Any]] = None,
    ):
        extensions = {}
        if conflicting_resource:
            extensions["conflicting_resource"] = conflicting_resource

        super().__init__(status_code=409, error=error, extensions=extensions)


class InsufficientCapacityError(APIException):
    """Exception when a booking asks for more spots than remain."""

    def __init__(self, requested: int, available: int):
        super().__init__(
            status_code=400,
            error=f"Only {available} spots available",
            extensions={"requested": requested, "available": available},
        )


class InternalServerError(APIException):
    """Exception for internal server errors."""

    def __init__(
        self,
        error: str = "Internal server error",
        error_id: Optional[str] = None,
    ):
        super().__init__(
            status_code=500,
            error=error,
            extensions={
                "error_id": error_id or str(uuid.uuid4()),
                "timestamp": utcnow().isoformat() + "Z",
            },
        )


async def api_exception_handler(request: Request, exc: APIException) -> JSONResponse:
    """Render an :class:`APIException` as its JSON body."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.body,
        headers=exc.headers,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Rewrite framework HTTP errors (404 routes, 405 methods) to the API body shape."""
    if isinstance(exc, APIException):
        return await api_exception_handler(request, exc)

    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": message},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Convert request validation failures to 400 with a violations list."""
    violations = []
    for err in exc.errors():
        location = [str(part) for part in err.get("loc", ()) if part != "body"]
        violations.append(Violation(path=".".join(location), message=err.get("msg", "Invalid value")))

    logger.info(
        "Request validation failed",
        extra={"path": request.url.path, "violation_count": len(violations)}
    )

    return JSONResponse(
        status_code=400,
        content=ErrorResponse(
            error="The request data failed validation",
            violations=violations,
        ).model_dump(exclude_none=True),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Convert unhandled exceptions to a 500 body carrying an error id."""
    error_id = str(uuid.uuid4())

    logger.error(
        "Unhandled exception",
        extra={"path": request.url.path, "error_id": error_id, "error": str(exc)},
        exc_info=exc,
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "error_id": error_id,
            "timestamp": utcnow().isoformat() + "Z",
        },
    )

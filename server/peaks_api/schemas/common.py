"""Common Pydantic schemas."""

from typing import List, Optional

from pydantic import BaseModel, Field


class Money(BaseModel):
    """Money representation with amount in minor units."""

    amount: int = Field(..., ge=0, description="Amount in minor units (e.g., cents)")
    currency: str = Field("EUR", min_length=3, max_length=3, pattern=r"^[A-Z]{3}$", description="ISO 4217 currency code")


class Violation(BaseModel):
    """Validation error violation."""

    path: str = Field(..., description="Dotted path to the invalid field")
    message: str = Field(..., description="Validation error message")


class ErrorResponse(BaseModel):
    """Error body returned by every failing endpoint."""

    error: str = Field(..., description="Human-readable error message")
    violations: Optional[List[Violation]] = Field(None, description="Validation errors")
    error_id: Optional[str] = Field(None, description="Identifier for server errors")


class Pagination(BaseModel):
    """Page metadata for list responses."""

    page: int = Field(..., ge=1, description="Current page number")
    limit: int = Field(..., ge=1, description="Items per page")
    total: int = Field(..., ge=0, description="Total matching items")


class SuccessResponse(BaseModel):
    """Acknowledgement for operations without a body."""

    success: bool = Field(True, description="Whether the operation succeeded")

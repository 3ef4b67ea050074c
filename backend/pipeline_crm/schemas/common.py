"""
Common Pydantic schemas shared across the application.

Contains health check, error and success envelopes.
"""

from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, Field


# =============================================================================
# Health Check Schemas
# =============================================================================

class HealthResponse(BaseModel):
    """
    Health check response schema.

    Used by monitoring systems to verify service health.
    """

    status: str = Field(
        ...,
        description="Overall health status (healthy, unhealthy)"
    )
    version: str = Field(
        ...,
        description="Application version"
    )
    timestamp: datetime = Field(
        ...,
        description="Current server timestamp"
    )
    database: str = Field(
        ...,
        description="Database connection status"
    )
    environment: str = Field(
        ...,
        description="Runtime environment (development, production)"
    )


# =============================================================================
# Error Schemas
# =============================================================================

class ErrorDetail(BaseModel):
    """Detail for a single validation error."""

    field: Optional[str] = Field(
        default=None,
        description="Field that caused the error"
    )
    message: str = Field(
        ...,
        description="Error message"
    )


class ErrorResponse(BaseModel):
    """
    Standard error response schema.

    Every non-2xx answer of the API has this shape, whether it came from
    a domain exception, request validation or an unhandled error.
    """

    success: bool = Field(
        default=False,
        description="Always false for errors"
    )
    error: str = Field(
        ...,
        description="Machine-readable error code (conflict, not_found, ...)"
    )
    message: str = Field(
        ...,
        description="Human-readable error message"
    )
    details: Optional[List[ErrorDetail]] = Field(
        default=None,
        description="Per-field details (validation errors only)"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "success": False,
                "error": "conflict",
                "message": "This lead has already been claimed or is no longer available.",
            }
        }
    }


# =============================================================================
# Success Response Schema
# =============================================================================

class SuccessResponse(BaseModel):
    """Generic success response for operations without specific return data."""

    success: bool = Field(
        default=True,
        description="Operation success status"
    )
    message: str = Field(
        ...,
        description="Success message"
    )

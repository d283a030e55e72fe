"""
TogetherLog Backend - Shared Pydantic Schemas
==============================================

What:  Response models shared by every router (errors, health, plain messages)
       plus the identifier parser used on path parameters.
"""

import uuid
from typing import Optional

from pydantic import BaseModel, Field

from togetherlog.exceptions import ValidationError


class ErrorResponse(BaseModel):
    """
    What:  Error body returned by every global exception handler.

    Example:
        {"error": "Invalid coordinates", "request_id": "550e8400-e29b-..."}
    """
    error: str = Field(description="Human-readable error description")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    """
    What:  Health check response showing service and dependency status.
    Who:   Returned by GET /health for monitoring and load balancer checks.
    """
    status: str = Field(description="Overall service status: healthy or degraded")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")


def parse_uuid(value: str, label: str) -> uuid.UUID:
    """
    Parse a path identifier, raising a 400-mapped ValidationError on bad input.

    Example:
        parse_uuid("not-a-uuid", "log")  → ValidationError("Invalid log ID format")
    """
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        raise ValidationError(message=f"Invalid {label} ID format", field=f"{label}_id")

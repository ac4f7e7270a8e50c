"""Base Pydantic schemas for the TrustReport API.

Request and response bodies use camelCase on the wire (the convention of the
web client) and snake_case in Python.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from trustreport.utils.datetime_utils import utc_now


class BaseSchema(BaseModel):
    """Base schema with common configuration."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        str_strip_whitespace=True,
    )


class ErrorResponse(BaseModel):
    """Body returned for every failed request."""

    error: str = Field(..., description="Human-readable error message")
    code: Optional[str] = Field(None, description="Application error code")
    request_id: Optional[str] = Field(None, description="Correlation id of the request")
    details: Optional[Any] = None


class MessageResponse(BaseSchema):
    success: bool = True
    message: str


class DependencyStatus(BaseModel):
    status: str
    latency_ms: Optional[float] = None
    error: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime = Field(default_factory=utc_now)
    version: str
    environment: Optional[str] = None
    dependencies: Optional[Dict[str, DependencyStatus]] = None


__all__ = [
    "BaseSchema",
    "ErrorResponse",
    "MessageResponse",
    "DependencyStatus",
    "HealthResponse",
]

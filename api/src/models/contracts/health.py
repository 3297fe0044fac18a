"""
Health check contract models.
"""

from typing import Literal

from pydantic import BaseModel, Field


class BasicHealthResponse(BaseModel):
    """Liveness check response"""
    status: Literal["healthy"] = Field(default="healthy", description="Always healthy if the API responds")
    service: str = Field(default="Marketplace Applications API", description="Service name")
    timestamp: str = Field(..., description="Health check timestamp (ISO 8601)")


class ReadinessResponse(BaseModel):
    """Readiness check response"""
    status: Literal["ready", "unavailable"] = Field(..., description="Whether the database answers")
    database: bool = Field(..., description="Database connectivity")
    message: str = Field(default="", description="Failure reason when unavailable")

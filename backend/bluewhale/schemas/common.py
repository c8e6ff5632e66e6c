"""
Blue Whale Backend: Shared Pydantic Schemas
=============================================

What:  Response pieces reused by several resources: pagination block,
       plain message body, GeoJSON point, error and health payloads.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator


class Pagination(BaseModel):
    """
    Page/limit pagination metadata attached to every list response.

    Example:
        {"total": 57, "page": 2, "pages": 6}
    """
    total: int = Field(description="Total number of items matching the query")
    page: int = Field(description="Current page (1-based)")
    pages: int = Field(description="Total number of pages (ceil(total / limit))")


class MessageResponse(BaseModel):
    """Plain acknowledgement for actions with nothing else to return."""
    message: str = Field(description="Human-readable result of the action")


class GeoPoint(BaseModel):
    """
    GeoJSON Point, longitude first.

    Example:
        {"type": "Point", "coordinates": [127.0276, 37.4979]}
    """
    type: Literal["Point"] = "Point"
    coordinates: List[float] = Field(
        default_factory=lambda: [0.0, 0.0],
        description="[longitude, latitude] in WGS84 degrees",
    )

    @field_validator("coordinates")
    @classmethod
    def validate_coordinates(cls, v: List[float]) -> List[float]:
        if len(v) != 2:
            raise ValueError("coordinates must be [longitude, latitude]")
        lon, lat = v
        if not -180.0 <= lon <= 180.0:
            raise ValueError(f"longitude {lon} is outside [-180, 180]")
        if not -90.0 <= lat <= 90.0:
            raise ValueError(f"latitude {lat} is outside [-90, 90]")
        return v

    @property
    def longitude(self) -> float:
        return self.coordinates[0]

    @property
    def latitude(self) -> float:
        return self.coordinates[1]


class ContentLocation(GeoPoint):
    """GeoPoint plus the human-readable place name shown on a post."""
    name: Optional[str] = Field(default=None, max_length=255, description="Place name")


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "not_found",
            "message": "content with ID '...' was not found",
            "request_id": "1f0c2a9e"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Returned by GET /health for monitoring and load balancer probes."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")

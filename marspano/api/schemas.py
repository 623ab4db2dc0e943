"""
API schemas (Pydantic models) for request/response validation.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field


# ============================================================================
# Panorama Schemas
# ============================================================================

class CoordinatesResponse(BaseModel):
    """Rover position in the site frame."""
    x: float
    y: float
    z: float


class LocationResponse(BaseModel):
    """Where the panorama was taken."""
    site: int
    drive: int
    coordinates: Optional[CoordinatesResponse] = None


class PanoramaAttributes(BaseModel):
    """Computed panorama statistics."""
    rover: str
    sol: int
    camera: str
    mars_time_start: Optional[str] = None
    mars_time_end: Optional[str] = None
    total_photos: int
    unique_positions: int
    coverage_degrees: float
    avg_position_spacing: float
    avg_elevation: float
    quality: str  # "full", "half" or "partial"
    location: LocationResponse


class PanoramaLinks(BaseModel):
    """Related links for a panorama."""
    download_set: str


class PanoramaPhotoResponse(BaseModel):
    """A member photo of a panorama."""
    nasa_id: Optional[str] = None
    camera: str
    azimuth: float
    elevation: float
    spacecraft_clock: float
    date_taken_utc: Optional[str] = None
    date_taken_mars: Optional[str] = None
    img_src: Optional[str] = None


class PanoramaResource(BaseModel):
    """An auto-detected panoramic sequence."""
    id: str
    type: str = "panorama"
    attributes: PanoramaAttributes
    photos: Optional[list[PanoramaPhotoResponse]] = None
    links: PanoramaLinks


# ============================================================================
# Envelope Schemas
# ============================================================================

class ResponseMeta(BaseModel):
    """Metadata about a list response."""
    total_count: int
    returned_count: int
    query: dict[str, Any] = Field(default_factory=dict)


class PaginationInfo(BaseModel):
    """Pagination details (1-indexed pages)."""
    page: int
    per_page: int
    total_pages: int


class PanoramaListResponse(BaseModel):
    """Paginated panorama listing."""
    data: list[PanoramaResource]
    meta: ResponseMeta
    pagination: PaginationInfo


# ============================================================================
# Folder Management Schemas
# ============================================================================

class SetFolderRequest(BaseModel):
    """Request to set the data folder."""
    path: str


class FolderInfoResponse(BaseModel):
    """Information about the current data folder."""
    path: Optional[str]
    file_count: int
    photo_count: int


# ============================================================================
# Error Schemas
# ============================================================================

class FieldError(BaseModel):
    """Field-level validation error."""
    field: str
    value: Optional[Any] = None
    message: str
    example: Optional[str] = None


class ApiError(BaseModel):
    """Problem-details style error response."""
    type: str
    title: str
    status: int
    detail: str
    instance: str = ""
    errors: Optional[list[FieldError]] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

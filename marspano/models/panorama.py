"""
Panorama data model.

Panoramas are derived views over photo records: they are recomputed on
every query and never stored.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import NamedTuple, Optional

from marspano.models.photo import PhotoRecord, Position3D


class PanoramaQuality(Enum):
    """Completeness tier of a detected sweep."""

    FULL = "full"
    HALF = "half"
    PARTIAL = "partial"


class GroupKey(NamedTuple):
    """Candidate bucket: photos taken by one camera at one stop."""

    rover: str
    sol: int
    site: int
    drive: int
    camera: str


class PanoramaKey(NamedTuple):
    """Parsed form of a panorama identifier."""

    rover: str
    sol: int
    sequence_index: int


@dataclass(frozen=True)
class PanoramaLocation:
    """Where the rover was parked during the sweep."""

    site: int
    drive: int
    coordinates: Optional[Position3D] = None


@dataclass(frozen=True)
class Panorama:
    """
    An accepted panorama segment with its statistics.

    `photos` is sorted ascending by spacecraft clock and includes every
    bracketed exposure.
    """

    id: str
    rover: str
    sol: int
    camera: str
    sequence_index: int
    photos: tuple[PhotoRecord, ...]

    unique_positions: int
    coverage_degrees: float
    avg_position_spacing: float
    avg_elevation: float
    quality: PanoramaQuality
    location: PanoramaLocation

    mars_time_start: Optional[str] = None  # "MHH:MM:SS"
    mars_time_end: Optional[str] = None

    @property
    def total_photos(self) -> int:
        return len(self.photos)

    @property
    def start_clock(self) -> float:
        return self.photos[0].clock

    @property
    def end_clock(self) -> float:
        return self.photos[-1].clock


@dataclass
class PanoramaPage:
    """One page of a panorama listing."""

    items: list[Panorama]
    total_count: int
    page: int
    per_page: int
    filters: dict = field(default_factory=dict)

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.per_page) if self.per_page else 0

"""
Photo record model.

Records come from the photo store as-is; any telemetry field may be missing.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Position3D:
    """Rover position at capture time (site frame, meters)."""

    x: float
    y: float
    z: float


@dataclass(frozen=True)
class PhotoRecord:
    """A single rover camera photo with its positional/temporal telemetry."""

    rover: str
    camera: str
    sol: int

    # Location markers
    site: Optional[int] = None
    drive: Optional[int] = None

    # Mast pointing (degrees) and spacecraft clock (seconds)
    azimuth: Optional[float] = None
    elevation: Optional[float] = None
    clock: Optional[float] = None

    date_taken_utc: Optional[datetime] = None
    date_taken_mars: Optional[str] = None  # e.g. "Sol-01000M14:03:00.000"
    xyz: Optional[Position3D] = None

    nasa_id: Optional[str] = None
    img_src: Optional[str] = None

    @property
    def is_telemetry_complete(self) -> bool:
        return (
            self.azimuth is not None
            and self.elevation is not None
            and self.clock is not None
        )

    @property
    def has_location(self) -> bool:
        return self.site is not None and self.drive is not None

"""
Panorama detection pipeline.

Photos flow through explicit stages:

    filter -> group -> sequence -> validate -> classify -> identify

Every stage is a plain function over immutable PhotoRecords, so the same
input always produces the same panoramas (and therefore the same ids).
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np

from marspano.config import DetectionSettings
from marspano.models.panorama import (
    GroupKey,
    Panorama,
    PanoramaLocation,
    PanoramaQuality,
)
from marspano.models.photo import PhotoRecord
from marspano.services.identity import format_panorama_id
from marspano.utils.angles import cluster_azimuths, nearest_positions, sweep_coverage
from marspano.utils.mars_time import extract_mars_time, format_mars_time


logger = logging.getLogger(__name__)


Segment = tuple[PhotoRecord, ...]


@dataclass(frozen=True)
class SegmentGeometry:
    """Pointing statistics of one candidate segment."""

    unique_positions: int
    coverage_degrees: float
    avg_position_spacing: float
    avg_elevation: float
    elevation_spread: float


# ============================================================================
# Filter / group / sequence
# ============================================================================

def filter_clusterable(photos: Iterable[PhotoRecord]) -> list[PhotoRecord]:
    """Keep photos with complete mast telemetry and a site/drive location."""
    return [p for p in photos if p.is_telemetry_complete and p.has_location]


def group_photos(photos: Iterable[PhotoRecord]) -> dict[GroupKey, list[PhotoRecord]]:
    """
    Partition photos into candidate buckets.

    Each camera at each stop is its own bucket; a MAST and a NAVCAM sweep
    taken at the same site/drive never mix. Buckets are returned in key
    order.
    """
    groups: dict[GroupKey, list[PhotoRecord]] = defaultdict(list)
    for photo in photos:
        key = GroupKey(
            rover=photo.rover.lower(),
            sol=photo.sol,
            site=photo.site,
            drive=photo.drive,
            camera=photo.camera,
        )
        groups[key].append(photo)
    return {key: groups[key] for key in sorted(groups)}


def split_segments(photos: Iterable[PhotoRecord], max_gap_s: float) -> list[Segment]:
    """
    Sort photos by spacecraft clock and split at gaps longer than `max_gap_s`.

    Bracketed exposures share a clock value and always stay together.
    """
    ordered = sorted(photos, key=lambda p: p.clock)
    if not ordered:
        return []

    segments: list[Segment] = []
    current = [ordered[0]]
    for photo in ordered[1:]:
        if photo.clock - current[-1].clock > max_gap_s:
            segments.append(tuple(current))
            current = [photo]
        else:
            current.append(photo)
    segments.append(tuple(current))
    return segments


# ============================================================================
# Validate / classify
# ============================================================================

def measure_segment(
    segment: Segment,
    azimuth_tolerance_deg: float,
    max_step_deg: float = 90.0,
) -> SegmentGeometry:
    """
    Compute pointing statistics for a segment.

    Coverage follows the positions in clock order, so a sweep that rotates
    through north is measured across 0/360 and any other sweep is max - min.
    """
    azimuths = np.array([p.azimuth for p in segment], dtype=np.float64)
    elevations = np.array([p.elevation for p in segment], dtype=np.float64)

    positions = cluster_azimuths(azimuths, azimuth_tolerance_deg)
    n_positions = int(positions.size)
    coverage = sweep_coverage(nearest_positions(azimuths, positions), max_step_deg)
    spacing = coverage / (n_positions - 1) if n_positions > 1 else 0.0

    return SegmentGeometry(
        unique_positions=n_positions,
        coverage_degrees=coverage,
        avg_position_spacing=float(spacing),
        avg_elevation=float(np.mean(elevations)),
        elevation_spread=float(np.max(elevations) - np.min(elevations)),
    )


def rejection_reason(geometry: SegmentGeometry, settings: DetectionSettings) -> Optional[str]:
    """Return why a segment is not a panorama, or None if it is one."""
    if geometry.unique_positions < settings.min_positions:
        return f"only {geometry.unique_positions} pointing positions"
    if geometry.coverage_degrees < settings.min_coverage_deg:
        return f"coverage {geometry.coverage_degrees:.1f} deg below minimum"
    if geometry.elevation_spread > settings.elevation_tolerance_deg:
        return f"elevation spread {geometry.elevation_spread:.1f} deg exceeds tolerance"
    return None


def classify_quality(
    coverage_degrees: float,
    unique_positions: int,
    settings: DetectionSettings,
) -> PanoramaQuality:
    """Assign a completeness tier; `full` is checked before `half`."""
    if (
        coverage_degrees >= settings.full_coverage_deg
        and unique_positions >= settings.full_min_positions
    ):
        return PanoramaQuality.FULL
    if (
        coverage_degrees >= settings.half_coverage_deg
        and unique_positions >= settings.half_min_positions
    ):
        return PanoramaQuality.HALF
    return PanoramaQuality.PARTIAL


# ============================================================================
# Pipeline
# ============================================================================

def detect_panoramas(
    photos: Iterable[PhotoRecord],
    settings: Optional[DetectionSettings] = None,
) -> list[Panorama]:
    """
    Detect panoramas in a collection of photo records.

    Within each rover/sol, panoramas are numbered from zero in order of
    their first photo's spacecraft clock. The result is sorted by sol,
    rover and sequence index.
    """
    settings = settings or DetectionSettings()

    clusterable = filter_clusterable(photos)
    accepted: dict[tuple[str, int], list[tuple[GroupKey, Segment, SegmentGeometry]]] = defaultdict(list)

    for key, group in group_photos(clusterable).items():
        for segment in split_segments(group, settings.max_gap_s):
            geometry = measure_segment(
                segment, settings.azimuth_tolerance_deg, settings.max_sweep_step_deg
            )
            reason = rejection_reason(geometry, settings)
            if reason is not None:
                logger.debug(
                    f"Rejected segment {key.rover}/{key.sol}/{key.camera} "
                    f"at clock {segment[0].clock}: {reason}"
                )
                continue
            accepted[(key.rover, key.sol)].append((key, segment, geometry))

    panoramas: list[Panorama] = []
    for _, candidates in sorted(accepted.items(), key=lambda item: (item[0][1], item[0][0])):
        candidates.sort(key=lambda c: (c[1][0].clock, c[0].camera, c[0].site, c[0].drive))
        for index, (key, segment, geometry) in enumerate(candidates):
            panoramas.append(_build_panorama(key, index, segment, geometry, settings))

    return panoramas


def _build_panorama(
    key: GroupKey,
    sequence_index: int,
    segment: Segment,
    geometry: SegmentGeometry,
    settings: DetectionSettings,
) -> Panorama:
    coordinates = next((p.xyz for p in segment if p.xyz is not None), None)

    mars_times = [t for t in (extract_mars_time(p.date_taken_mars) for p in segment) if t is not None]
    mars_start = format_mars_time(mars_times[0]) if mars_times else None
    mars_end = format_mars_time(mars_times[-1]) if mars_times else None

    return Panorama(
        id=format_panorama_id(key.rover, key.sol, sequence_index),
        rover=key.rover,
        sol=key.sol,
        camera=key.camera,
        sequence_index=sequence_index,
        photos=segment,
        unique_positions=geometry.unique_positions,
        coverage_degrees=geometry.coverage_degrees,
        avg_position_spacing=geometry.avg_position_spacing,
        avg_elevation=geometry.avg_elevation,
        quality=classify_quality(geometry.coverage_degrees, geometry.unique_positions, settings),
        location=PanoramaLocation(site=key.site, drive=key.drive, coordinates=coordinates),
        mars_time_start=mars_start,
        mars_time_end=mars_end,
    )

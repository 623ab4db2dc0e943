"""
Circular angle utilities for mast azimuths.

Azimuths are compass headings in degrees. All functions normalize input
to [0, 360) so readings such as -10 or 370 land on the same circle.
"""

import numpy as np
from numpy.typing import ArrayLike, NDArray


FULL_CIRCLE = 360.0
HALF_CIRCLE = 180.0


def normalize_azimuth(azimuth: ArrayLike) -> NDArray[np.float64]:
    """Wrap azimuths into [0, 360)."""
    arr = np.asarray(azimuth, dtype=np.float64) % FULL_CIRCLE
    # -1e-17 % 360 rounds to 360.0
    return np.where(arr >= FULL_CIRCLE, 0.0, arr)


def angular_difference(a: ArrayLike, b: ArrayLike) -> NDArray[np.float64]:
    """Smallest absolute difference between headings, in [0, 180]."""
    diff = np.abs(np.asarray(a, dtype=np.float64) - np.asarray(b, dtype=np.float64)) % FULL_CIRCLE
    return np.minimum(diff, FULL_CIRCLE - diff)


def cluster_azimuths(
    azimuths: ArrayLike,
    tolerance_deg: float,
) -> NDArray[np.float64]:
    """
    Collapse nearby azimuth readings into distinct pointing positions.

    A reading joins the current cluster when it lies within `tolerance_deg`
    of the cluster's first reading. Anchoring on the first reading keeps a
    slow sweep (steps below the tolerance) from chaining into one position.
    A cluster straddling north (e.g. 359.6 and 0.2) is merged with its
    neighbour across 0/360.

    Returns:
        Sorted array of position centres in [0, 360).
    """
    values = np.sort(normalize_azimuth(azimuths).ravel())
    if values.size == 0:
        return values

    clusters: list[list[float]] = [[float(values[0])]]
    for value in values[1:]:
        if value - clusters[-1][0] < tolerance_deg:
            clusters[-1].append(float(value))
        else:
            clusters.append([float(value)])

    if len(clusters) > 1:
        first_anchor = clusters[0][0]
        last_anchor = clusters[-1][0]
        if first_anchor + FULL_CIRCLE - last_anchor < tolerance_deg:
            # Unwrap the leading cluster so the mean stays continuous
            merged = clusters.pop() + [v + FULL_CIRCLE for v in clusters.pop(0)]
            clusters.append(merged)

    centres = normalize_azimuth([np.mean(c) for c in clusters])
    return np.sort(centres)


def nearest_positions(azimuths: ArrayLike, positions: ArrayLike) -> NDArray[np.float64]:
    """Replace each reading with the closest position centre, keeping input order."""
    values = normalize_azimuth(azimuths).ravel()
    centres = np.asarray(positions, dtype=np.float64).ravel()
    if values.size == 0 or centres.size == 0:
        return np.empty(0, dtype=np.float64)

    distances = angular_difference(values[:, None], centres[None, :])
    return centres[np.argmin(distances, axis=1)]


def sweep_coverage(path: ArrayLike, max_step_deg: float = 90.0) -> float:
    """
    Azimuth coverage of a sweep, given its pointing positions in acquisition order.

    The sweep is followed step by step. A step whose short way round passes
    through north (e.g. 350 -> 0) and is no longer than `max_step_deg` is
    taken across 0/360; any other step keeps its plain difference. Coverage
    is the extent of the resulting path, capped at a full circle.

    A sweep that never crosses north therefore measures exactly max - min
    (10, 20, 30, 40, 250 covers 240), while 340 -> 20 covers 40 rather
    than 340.
    """
    values = normalize_azimuth(path).ravel()
    if values.size < 2:
        return 0.0

    plain = np.diff(values)
    across_north = plain - np.sign(plain) * FULL_CIRCLE
    crosses_north = (np.abs(plain) > HALF_CIRCLE) & (np.abs(across_north) <= max_step_deg)
    if not crosses_north.any():
        return float(values.max() - values.min())

    steps = np.where(crosses_north, across_north, plain)
    walked = np.concatenate(([values[0]], values[0] + np.cumsum(steps)))
    return float(min(walked.max() - walked.min(), FULL_CIRCLE))

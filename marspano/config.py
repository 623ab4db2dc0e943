"""
Detection and service settings.

Defaults can be overridden through environment variables, read once
when settings are loaded.
"""

import os
from dataclasses import dataclass, field


DEFAULT_ROVERS = ("curiosity", "perseverance", "opportunity", "spirit")


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


@dataclass(frozen=True)
class DetectionSettings:
    """Thresholds used by the panorama detection pipeline."""

    # Sequencer
    max_gap_s: float = 300.0

    # Geometric validation
    azimuth_tolerance_deg: float = 1.0    # bracketed exposures collapse within this
    elevation_tolerance_deg: float = 15.0
    min_positions: int = 3
    min_coverage_deg: float = 30.0
    max_sweep_step_deg: float = 90.0  # longer steps are slews, never taken across north

    # Quality tiers
    full_coverage_deg: float = 300.0
    full_min_positions: int = 10
    half_coverage_deg: float = 120.0
    half_min_positions: int = 5


@dataclass(frozen=True)
class ServiceSettings:
    """Settings for the query layer around detection."""

    detection: DetectionSettings = field(default_factory=DetectionSettings)
    known_rovers: tuple[str, ...] = DEFAULT_ROVERS
    default_sol_window: int = 500  # 0 disables the window
    list_timeout_s: float = 30.0   # 0 disables the timeout
    max_per_page: int = 100
    default_per_page: int = 25


def load_settings() -> ServiceSettings:
    """Build settings from environment variables."""
    detection = DetectionSettings(
        max_gap_s=_env_float("MARSPANO_MAX_GAP_S", 300.0),
        azimuth_tolerance_deg=_env_float("MARSPANO_AZIMUTH_TOLERANCE", 1.0),
        elevation_tolerance_deg=_env_float("MARSPANO_ELEVATION_TOLERANCE", 15.0),
        max_sweep_step_deg=_env_float("MARSPANO_MAX_SWEEP_STEP", 90.0),
    )

    rovers_env = os.getenv("MARSPANO_ROVERS")
    if rovers_env:
        known_rovers = tuple(
            r.strip().lower() for r in rovers_env.split(",") if r.strip()
        )
    else:
        known_rovers = DEFAULT_ROVERS

    return ServiceSettings(
        detection=detection,
        known_rovers=known_rovers,
        default_sol_window=_env_int("MARSPANO_DEFAULT_SOL_WINDOW", 500),
        list_timeout_s=_env_float("MARSPANO_LIST_TIMEOUT_S", 30.0),
    )

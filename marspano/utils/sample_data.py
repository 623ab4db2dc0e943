"""
Sample data generator for testing.

Generates synthetic rover photo exports containing mast sweeps
(with bracketed exposures), stray single frames and telemetry gaps.
"""

from pathlib import Path
from typing import Optional

import numpy as np
import pandas as pd


CSV_COLUMNS = [
    "nasa_id",
    "rover",
    "camera",
    "sol",
    "site",
    "drive",
    "mast_az",
    "mast_el",
    "spacecraft_clock",
    "date_taken_utc",
    "date_taken_mars",
    "xyz",
    "img_src",
]


def generate_sweep(
    rover: str = "curiosity",
    camera: str = "MAST",
    sol: int = 1000,
    site: int = 79,
    drive: int = 1204,
    start_azimuth: float = 0.0,
    step_deg: float = 30.0,
    n_positions: int = 12,
    elevation: float = -10.0,
    exposures: int = 1,
    start_clock: float = 813073000.0,
    interval_s: float = 60.0,
    mars_start_s: int = 14 * 3600,
    xyz: Optional[tuple[float, float, float]] = (35.4362, 22.5714, -9.46445),
    noise_deg: float = 0.0,
    seed: Optional[int] = None,
) -> list[dict]:
    """
    Generate photo rows for one mast sweep.

    Each pointing position gets `exposures` photos sharing the same clock
    value (bracketed exposures). Azimuths wrap at 360.
    """
    rng = np.random.default_rng(seed)
    rows = []
    for i in range(n_positions):
        azimuth = (start_azimuth + i * step_deg) % 360.0
        clock = start_clock + i * interval_s
        mars_seconds = mars_start_s + int(i * interval_s)
        hours, rem = divmod(mars_seconds, 3600)
        minutes, seconds = divmod(rem, 60)

        for e in range(exposures):
            jitter = rng.normal(0, noise_deg) if noise_deg > 0 else 0.0
            rows.append({
                "nasa_id": f"{camera[:2]}_{sol:04d}_{int(clock)}_{i:03d}_{e}",
                "rover": rover,
                "camera": camera,
                "sol": sol,
                "site": site,
                "drive": drive,
                "mast_az": round(azimuth + jitter, 3),
                "mast_el": elevation,
                "spacecraft_clock": clock,
                "date_taken_utc": None,
                "date_taken_mars": f"Sol-{sol:05d}M{hours:02d}:{minutes:02d}:{seconds:02d}.000",
                "xyz": f"({xyz[0]},{xyz[1]},{xyz[2]})" if xyz else None,
                "img_src": f"https://mars.nasa.gov/{rover}/{sol}/{camera}_{i:03d}_{e}.jpg",
            })
    return rows


def write_photo_csv(output_path: Path, rows: list[dict]) -> Path:
    """Write photo rows to a CSV export."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    df = pd.DataFrame(rows, columns=CSV_COLUMNS)
    df.to_csv(output_path, index=False)
    return output_path


def generate_test_data_set(output_folder: Path) -> list[Path]:
    """Generate a set of sample photo exports."""
    output_folder.mkdir(parents=True, exist_ok=True)

    curiosity = []
    # Full 360 sweep with 3 bracketed exposures per position
    curiosity += generate_sweep(sol=1000, step_deg=30.0, n_positions=12, exposures=3, seed=1, noise_deg=0.1)
    # Partial NAVCAM sweep at the same stop
    curiosity += generate_sweep(
        sol=1000, camera="NAVCAM", start_azimuth=90.0, step_deg=15.0, n_positions=5,
        start_clock=813073100.0, elevation=-20.0,
    )
    # Half sweep on a later sol
    curiosity += generate_sweep(sol=1001, site=80, drive=10, start_azimuth=200.0, step_deg=25.0, n_positions=7)
    # Two-position stereo pair, not a panorama
    curiosity += generate_sweep(
        sol=1001, site=80, drive=10, start_azimuth=10.0, step_deg=40.0, n_positions=2,
        exposures=3, start_clock=813173000.0,
    )

    perseverance = generate_sweep(
        rover="perseverance", camera="MCZ_LEFT", sol=300, site=5, drive=0,
        start_azimuth=330.0, step_deg=10.0, n_positions=6, elevation=2.0,
        start_clock=667000000.0, xyz=None,
    )

    return [
        write_photo_csv(output_folder / "curiosity_photos.csv", curiosity),
        write_photo_csv(output_folder / "perseverance_photos.csv", perseverance),
    ]


if __name__ == "__main__":
    # Generate sample data when run directly
    output = Path("./data/photos")
    files = generate_test_data_set(output)
    print(f"Generated {len(files)} sample files in {output}")
    for f in files:
        print(f"  - {f.name}")

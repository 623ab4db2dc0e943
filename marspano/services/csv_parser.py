"""
Photo record file adapters.

Parses photo exports (CSV, or JSON as returned by the photo API) into
PhotoRecords. Column names vary between exports, so each field is looked up
through a list of known variants. Telemetry cells may be blank or
non-numeric; those become None rather than errors.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Protocol

import numpy as np
import pandas as pd

from marspano.models.photo import PhotoRecord, Position3D
from marspano.utils.mars_time import parse_xyz


class PhotoAdapter(Protocol):
    """Adapter interface for photo record sources."""

    name: str

    def can_parse(self, filepath: Path) -> bool:
        ...

    def parse(self, filepath: Path) -> list[PhotoRecord]:
        ...


# Column name mappings - exports use various naming conventions
COLUMN_MAPPINGS = {
    # Identity
    "rover": ["rover", "rover_name", "Rover", "RoverName", "rover.name"],
    "camera": ["camera", "camera_name", "Camera", "CameraName", "camera.name"],
    "sol": ["sol", "Sol", "SOL"],
    "site": ["site", "Site", "SITE"],
    "drive": ["drive", "Drive", "DRIVE"],
    # Mast telemetry
    "azimuth": ["mast_az", "MastAz", "mastAz", "azimuth", "Azimuth"],
    "elevation": ["mast_el", "MastEl", "mastEl", "elevation", "Elevation"],
    "clock": [
        "spacecraft_clock",
        "SpacecraftClock",
        "spacecraftClock",
        "sclk",
        "SCLK",
        "clock",
    ],
    # Timestamps
    "date_taken_utc": ["date_taken_utc", "DateTakenUtc", "date_taken", "earth_date_taken"],
    "date_taken_mars": ["date_taken_mars", "DateTakenMars", "mars_time", "local_mean_solar_time"],
    # Position / links
    "xyz": ["xyz", "Xyz", "XYZ", "rover_xyz"],
    # JSON exports with an xyz object are flattened into one column per axis
    "xyz_x": ["xyz.x", "Xyz.x", "rover_xyz.x"],
    "xyz_y": ["xyz.y", "Xyz.y", "rover_xyz.y"],
    "xyz_z": ["xyz.z", "Xyz.z", "rover_xyz.z"],
    "nasa_id": ["nasa_id", "NasaId", "id", "imageid"],
    "img_src": ["img_src", "ImgSrcFull", "img_src_full", "ImgSrcLarge", "img_src_large"],
}

REQUIRED_FIELDS = ("rover", "camera", "sol")


def map_columns(columns: list[str]) -> dict[str, Optional[str]]:
    col_map: dict[str, Optional[str]] = {}
    for std_name, variants in COLUMN_MAPPINGS.items():
        col_map[std_name] = None
        for variant in variants:
            if variant in columns:
                col_map[std_name] = variant
                break
    return col_map


def frame_to_records(df: pd.DataFrame, source: str = "<frame>") -> list[PhotoRecord]:
    """
    Convert a DataFrame of photo rows into PhotoRecords.

    Rows with a missing or non-numeric sol, or a blank rover or camera, are
    dropped; every other field is optional.

    Raises:
        ValueError: if a required identity column is absent.
    """
    df = df.copy()
    df.columns = [str(c).strip() for c in df.columns]
    col_map = map_columns(list(df.columns))

    missing = [name for name in REQUIRED_FIELDS if col_map[name] is None]
    if missing:
        raise ValueError(f"Missing required column(s) {', '.join(missing)} in {source}")

    n_rows = len(df)
    sol = _numeric(df, col_map, "sol", n_rows)
    site = _numeric(df, col_map, "site", n_rows)
    drive = _numeric(df, col_map, "drive", n_rows)
    azimuth = _numeric(df, col_map, "azimuth", n_rows)
    elevation = _numeric(df, col_map, "elevation", n_rows)
    clock = _numeric(df, col_map, "clock", n_rows)
    taken_utc = _datetimes(df, col_map, n_rows)
    xyz_parts = np.column_stack([
        _numeric(df, col_map, axis, n_rows) for axis in ("xyz_x", "xyz_y", "xyz_z")
    ])

    records = []
    for i in range(n_rows):
        rover = _text(df, col_map, "rover", i)
        camera = _text(df, col_map, "camera", i)
        if np.isnan(sol[i]) or rover is None or camera is None:
            continue
        records.append(PhotoRecord(
            rover=rover.lower(),
            camera=camera.upper(),
            sol=int(sol[i]),
            site=_opt_int(site[i]),
            drive=_opt_int(drive[i]),
            azimuth=_opt_float(azimuth[i]),
            elevation=_opt_float(elevation[i]),
            clock=_opt_float(clock[i]),
            date_taken_utc=taken_utc[i],
            date_taken_mars=_text(df, col_map, "date_taken_mars", i),
            xyz=_position(_cell(df, col_map, "xyz", i), xyz_parts[i]),
            nasa_id=_text(df, col_map, "nasa_id", i),
            img_src=_text(df, col_map, "img_src", i),
        ))

    return records


def _numeric(
    df: pd.DataFrame,
    col_map: dict[str, Optional[str]],
    std_name: str,
    n_rows: int,
) -> np.ndarray:
    col = col_map.get(std_name)
    if col is None:
        return np.full(n_rows, np.nan, dtype=np.float64)
    return pd.to_numeric(df[col], errors="coerce").to_numpy(dtype=np.float64)


def _datetimes(
    df: pd.DataFrame,
    col_map: dict[str, Optional[str]],
    n_rows: int,
) -> list[Optional[datetime]]:
    col = col_map.get("date_taken_utc")
    if col is None:
        return [None] * n_rows
    parsed = pd.to_datetime(df[col], errors="coerce", utc=True)
    return [None if pd.isna(ts) else ts.to_pydatetime().astimezone(timezone.utc) for ts in parsed]


def _cell(
    df: pd.DataFrame,
    col_map: dict[str, Optional[str]],
    std_name: str,
    i: int,
) -> Any:
    col = col_map.get(std_name)
    if col is None:
        return None
    return df[col].iloc[i]


def _text(
    df: pd.DataFrame,
    col_map: dict[str, Optional[str]],
    std_name: str,
    i: int,
) -> Optional[str]:
    value = _cell(df, col_map, std_name, i)
    # JSON exports may hold arrays or objects where text is expected
    if value is None or isinstance(value, (list, dict)) or pd.isna(value):
        return None
    text = str(value).strip()
    return text or None


def _position(value: Any, parts: np.ndarray) -> Optional[Position3D]:
    position = parse_xyz(value)
    if position is None and not np.isnan(parts).any():
        position = Position3D(float(parts[0]), float(parts[1]), float(parts[2]))
    return position


def _opt_float(value: float) -> Optional[float]:
    return None if np.isnan(value) else float(value)


def _opt_int(value: float) -> Optional[int]:
    return None if np.isnan(value) else int(value)


class CsvPhotoAdapter:
    """Adapter for CSV photo exports."""

    name = "csv"

    def can_parse(self, filepath: Path) -> bool:
        return filepath.suffix.lower() == ".csv"

    def parse(self, filepath: Path) -> list[PhotoRecord]:
        # Blank cells stay NaN; keep text columns (ids, Mars time) as strings
        df = pd.read_csv(filepath, encoding="utf-8-sig", dtype=str)
        return frame_to_records(df, source=str(filepath))


class JsonPhotoAdapter:
    """
    Adapter for JSON photo exports.

    Accepts either a list of photo objects or an API-style envelope
    ({"photos": [...]} or {"data": [...]}). Nested objects such as
    {"rover": {"name": ...}} are flattened with dotted names.
    """

    name = "json"

    def can_parse(self, filepath: Path) -> bool:
        return filepath.suffix.lower() == ".json"

    def parse(self, filepath: Path) -> list[PhotoRecord]:
        with open(filepath, "r", encoding="utf-8") as f:
            payload = json.load(f)

        if isinstance(payload, dict):
            payload = payload.get("photos", payload.get("data", []))
        if not isinstance(payload, list):
            raise ValueError(f"Unrecognized JSON photo export: {filepath}")

        df = pd.json_normalize(payload)
        if df.empty:
            return []
        return frame_to_records(df, source=str(filepath))


ADAPTERS: list[PhotoAdapter] = [
    CsvPhotoAdapter(),
    JsonPhotoAdapter(),
]

SUPPORTED_SUFFIXES = (".csv", ".json")


def _select_adapter(filepath: Path) -> PhotoAdapter:
    for adapter in ADAPTERS:
        if adapter.can_parse(filepath):
            return adapter
    raise ValueError(f"No adapter available for file: {filepath}")


def parse_photo_file(filepath: Path) -> list[PhotoRecord]:
    """Parse a photo export file via adapter selection."""
    adapter = _select_adapter(filepath)
    return adapter.parse(filepath)

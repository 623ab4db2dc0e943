"""
Photo Repository - loads photo records from export files and serves
filtered lookups to the panorama service.

This abstraction layer lets the service work with exported files now,
and can be swapped for a real database later without touching the API.
"""

import logging
from pathlib import Path
from typing import Iterable, Optional

from marspano.models.photo import PhotoRecord
from marspano.services.csv_parser import SUPPORTED_SUFFIXES, parse_photo_file


logger = logging.getLogger(__name__)


class PhotoRepository:
    """
    Read-only store of photo records.

    Reads CSV/JSON exports from a folder and keeps parsed records in memory.
    A rescan builds a fresh index and swaps it in as a whole, so concurrent
    readers always see either the old or the new snapshot.
    """

    def __init__(self, data_folder: Optional[Path] = None):
        """
        Initialize the repository.

        Args:
            data_folder: Folder containing photo exports. If None, must be set later.
        """
        self._data_folder: Optional[Path] = data_folder
        self._records: dict[Path, tuple[PhotoRecord, ...]] = {}

        if data_folder is not None:
            self.scan_folder(data_folder)

    @property
    def data_folder(self) -> Optional[Path]:
        return self._data_folder

    @property
    def file_count(self) -> int:
        return len(self._records)

    @property
    def photo_count(self) -> int:
        return sum(len(records) for records in self._records.values())

    def set_data_folder(self, folder: Path) -> int:
        """
        Set the data folder and load its photo exports.

        Args:
            folder: Path to folder containing CSV/JSON files

        Returns:
            Number of files loaded
        """
        self._data_folder = folder
        return self.scan_folder(folder)

    def scan_folder(self, folder: Path) -> int:
        """
        Load every supported export in a folder, replacing the current snapshot.

        Files that fail to parse are logged and skipped.

        Args:
            folder: Folder to scan

        Returns:
            Number of files loaded
        """
        if not folder.exists():
            logger.warning(f"Data folder does not exist: {folder}")
            self._records = {}
            return 0

        snapshot: dict[Path, tuple[PhotoRecord, ...]] = {}
        for path in sorted(folder.iterdir()):
            if not path.is_file() or path.suffix.lower() not in SUPPORTED_SUFFIXES:
                continue
            try:
                snapshot[path] = tuple(parse_photo_file(path))
                logger.debug(f"Loaded {len(snapshot[path])} photos from {path.name}")
            except (ValueError, OSError) as e:
                logger.error(f"Failed to load photo file {path}: {e}")

        self._records = snapshot
        logger.info(f"Scanned {len(snapshot)} photo files ({self.photo_count} photos) in {folder}")
        return len(snapshot)

    def clear_cache(self) -> None:
        """Drop all loaded records."""
        self._records = {}
        logger.info("Photo cache cleared")

    def fetch_photos(
        self,
        rovers: Optional[Iterable[str]] = None,
        sol_min: Optional[int] = None,
        sol_max: Optional[int] = None,
    ) -> list[PhotoRecord]:
        """
        Get photos for a set of rovers and an inclusive sol range.

        Args:
            rovers: Rover names (case-insensitive). None means all rovers.
            sol_min: Lowest sol to include
            sol_max: Highest sol to include

        Returns:
            Matching photo records, telemetry possibly incomplete
        """
        rover_set = {r.lower() for r in rovers} if rovers is not None else None
        snapshot = self._records

        return [
            photo
            for records in snapshot.values()
            for photo in records
            if (rover_set is None or photo.rover.lower() in rover_set)
            and (sol_min is None or photo.sol >= sol_min)
            and (sol_max is None or photo.sol <= sol_max)
        ]

    def max_sol(self, rovers: Optional[Iterable[str]] = None) -> Optional[int]:
        """Latest sol with any photo for the given rovers, or None."""
        sols = [p.sol for p in self.fetch_photos(rovers)]
        return max(sols) if sols else None


# Global repository instance (set up by app initialization)
_repository: Optional[PhotoRepository] = None


def get_repository() -> PhotoRepository:
    """Get the global repository instance."""
    global _repository
    if _repository is None:
        _repository = PhotoRepository()
    return _repository


def init_repository(data_folder: Path) -> PhotoRepository:
    """Initialize the global repository with a data folder."""
    global _repository
    _repository = PhotoRepository(data_folder)
    return _repository

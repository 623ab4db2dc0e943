"""
Panorama query service.

Validates caller filters, fetches photo records from the store, runs the
detection pipeline one sol at a time and shapes the paginated result.
Nothing is cached here: every call recomputes panoramas from the records.
"""

import logging
import threading
from collections import defaultdict
from typing import Iterable, Optional, Protocol

from marspano.config import ServiceSettings
from marspano.models.panorama import Panorama, PanoramaPage
from marspano.models.photo import PhotoRecord
from marspano.services.detection import detect_panoramas
from marspano.services.errors import InvalidQueryError, QueryCancelledError
from marspano.services.identity import parse_panorama_id


logger = logging.getLogger(__name__)


class PhotoStore(Protocol):
    """Source of photo records (see PhotoRepository)."""

    def fetch_photos(
        self,
        rovers: Optional[Iterable[str]] = None,
        sol_min: Optional[int] = None,
        sol_max: Optional[int] = None,
    ) -> list[PhotoRecord]:
        ...

    def max_sol(self, rovers: Optional[Iterable[str]] = None) -> Optional[int]:
        ...


class PanoramaService:
    """Lists and looks up panoramas detected in a photo store."""

    def __init__(self, store: PhotoStore, settings: Optional[ServiceSettings] = None):
        self._store = store
        self._settings = settings or ServiceSettings()

    @property
    def settings(self) -> ServiceSettings:
        return self._settings

    def list_panoramas(
        self,
        rovers: Optional[str] = None,
        sol_min: Optional[int] = None,
        sol_max: Optional[int] = None,
        min_photos: Optional[int] = None,
        page: int = 1,
        per_page: Optional[int] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> PanoramaPage:
        """
        Detect panoramas matching the filters and return one page.

        Args:
            rovers: Comma-separated rover names, case-insensitive
            sol_min: Lowest sol (inclusive)
            sol_max: Highest sol (inclusive)
            min_photos: Minimum total photos per panorama
            page: 1-indexed page number
            per_page: Page size (defaults to the configured page size)
            cancel_event: When set, the listing stops between sols and
                raises QueryCancelledError

        Raises:
            InvalidQueryError: a filter value is malformed
            QueryCancelledError: cancel_event was set before completion
        """
        if per_page is None:
            per_page = self._settings.default_per_page

        rover_list = self._parse_rovers(rovers)
        self._validate_filters(sol_min, sol_max, min_photos, page, per_page)

        if sol_min is None and sol_max is None and self._settings.default_sol_window > 0:
            newest = self._store.max_sol(rover_list)
            if newest is not None:
                sol_min = max(0, newest - self._settings.default_sol_window)
                logger.info(
                    f"No sol range specified, defaulting to recent {self._settings.default_sol_window} "
                    f"sols (sol {sol_min} to {newest})"
                )

        photos = self._store.fetch_photos(rover_list, sol_min, sol_max)
        by_sol: dict[int, list[PhotoRecord]] = defaultdict(list)
        for photo in photos:
            by_sol[photo.sol].append(photo)

        panoramas: list[Panorama] = []
        for sol in sorted(by_sol):
            self._check_cancelled(cancel_event)
            panoramas.extend(detect_panoramas(by_sol[sol], self._settings.detection))
        self._check_cancelled(cancel_event)

        if min_photos:
            panoramas = [p for p in panoramas if p.total_photos >= min_photos]

        total_count = len(panoramas)
        start = (page - 1) * per_page
        items = panoramas[start:start + per_page]

        logger.info(
            f"Detected {total_count} panoramas across {len(by_sol)} sols "
            f"({len(photos)} photos); returning page {page} with {len(items)} items"
        )

        return PanoramaPage(
            items=items,
            total_count=total_count,
            page=page,
            per_page=per_page,
            filters={
                "rovers": rover_list,
                "sol_min": sol_min,
                "sol_max": sol_max,
                "min_photos": min_photos,
            },
        )

    def get_panorama_by_id(self, panorama_id: str) -> Optional[Panorama]:
        """
        Look up a panorama by id.

        Only the rover/sol encoded in the id is recomputed. Returns None for
        malformed ids and for ids that do not match a detected panorama.
        """
        key = parse_panorama_id(panorama_id)
        if key is None:
            logger.debug(f"Malformed panorama id: {panorama_id!r}")
            return None

        photos = self._store.fetch_photos([key.rover], key.sol, key.sol)
        for panorama in detect_panoramas(photos, self._settings.detection):
            if panorama.sequence_index == key.sequence_index:
                return panorama
        return None

    def _parse_rovers(self, rovers: Optional[str]) -> Optional[list[str]]:
        if rovers is None or not rovers.strip():
            return None

        names = [r.strip().lower() for r in rovers.split(",") if r.strip()]
        if not names:
            return None

        unknown = [name for name in names if name not in self._settings.known_rovers]
        if unknown:
            raise InvalidQueryError(
                "rovers",
                rovers,
                f"Unknown rover(s): {', '.join(unknown)}. "
                f"Valid rovers: {', '.join(self._settings.known_rovers)}",
                example="curiosity,perseverance",
            )
        return names

    def _validate_filters(
        self,
        sol_min: Optional[int],
        sol_max: Optional[int],
        min_photos: Optional[int],
        page: int,
        per_page: int,
    ) -> None:
        if sol_min is not None and sol_min < 0:
            raise InvalidQueryError("sol_min", sol_min, "Sol must be >= 0", example="1000")
        if sol_max is not None and sol_max < 0:
            raise InvalidQueryError("sol_max", sol_max, "Sol must be >= 0", example="1100")
        if sol_min is not None and sol_max is not None and sol_min > sol_max:
            raise InvalidQueryError(
                "sol_min",
                sol_min,
                f"sol_min ({sol_min}) must be <= sol_max ({sol_max})",
            )
        if min_photos is not None and min_photos < 0:
            raise InvalidQueryError("min_photos", min_photos, "min_photos must be >= 0", example="10")
        if page < 1:
            raise InvalidQueryError("page", page, "Page number must be >= 1", example="1")
        if per_page < 1 or per_page > self._settings.max_per_page:
            raise InvalidQueryError(
                "per_page",
                per_page,
                f"Per page must be between 1 and {self._settings.max_per_page}",
                example="25",
            )

    @staticmethod
    def _check_cancelled(cancel_event: Optional[threading.Event]) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise QueryCancelledError("Panorama listing cancelled")

"""
API routes for detected panoramas.
"""

import logging
import threading
from functools import lru_cache
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from marspano.api.schemas import (
    ApiError,
    CoordinatesResponse,
    FieldError,
    FolderInfoResponse,
    LocationResponse,
    PaginationInfo,
    PanoramaAttributes,
    PanoramaLinks,
    PanoramaListResponse,
    PanoramaPhotoResponse,
    PanoramaResource,
    ResponseMeta,
    SetFolderRequest,
)
from marspano.config import ServiceSettings, load_settings
from marspano.models.panorama import Panorama
from marspano.services.errors import InvalidQueryError, QueryCancelledError
from marspano.services.panorama_service import PanoramaService
from marspano.services.repository import get_repository


logger = logging.getLogger(__name__)

API_PREFIX = "/api/v2/panoramas"

router = APIRouter(prefix=API_PREFIX, tags=["panoramas"])


@lru_cache(maxsize=1)
def get_settings() -> ServiceSettings:
    """Settings are read from the environment once per process."""
    return load_settings()


def _get_service() -> PanoramaService:
    return PanoramaService(get_repository(), get_settings())


def _error_response(
    status: int,
    title: str,
    detail: str,
    request: Request,
    errors: Optional[list[FieldError]] = None,
) -> JSONResponse:
    slug = title.lower().replace(" ", "-")
    body = ApiError(
        type=f"/errors/{slug}",
        title=title,
        status=status,
        detail=detail,
        instance=request.url.path,
        errors=errors,
    )
    return JSONResponse(status_code=status, content=body.model_dump(mode="json", exclude_none=True))


async def query_validation_handler(request: Request, exc: RequestValidationError):
    """
    Report unparseable panorama query parameters (e.g. sol_min=abc) as a 400
    ApiError naming each field. Other routes keep FastAPI's default 422.
    """
    if not request.url.path.startswith(API_PREFIX):
        return await request_validation_exception_handler(request, exc)

    errors = [
        FieldError(
            field=str(err["loc"][-1]) if err.get("loc") else "request",
            value=err.get("input"),
            message=err["msg"],
        )
        for err in exc.errors()
    ]
    detail = "; ".join(f"{e.field}: {e.message}" for e in errors)
    return _error_response(400, "Validation Error", detail, request, errors=errors)


def _build_photo_responses(panorama: Panorama) -> list[PanoramaPhotoResponse]:
    return [
        PanoramaPhotoResponse(
            nasa_id=p.nasa_id,
            camera=p.camera,
            azimuth=p.azimuth,
            elevation=p.elevation,
            spacecraft_clock=p.clock,
            date_taken_utc=p.date_taken_utc.isoformat() if p.date_taken_utc else None,
            date_taken_mars=p.date_taken_mars,
            img_src=p.img_src,
        )
        for p in panorama.photos
    ]


def build_panorama_resource(panorama: Panorama, include_photos: bool = False) -> PanoramaResource:
    """Build the API resource for a detected panorama."""
    coordinates = None
    if panorama.location.coordinates is not None:
        xyz = panorama.location.coordinates
        coordinates = CoordinatesResponse(x=xyz.x, y=xyz.y, z=xyz.z)

    return PanoramaResource(
        id=panorama.id,
        attributes=PanoramaAttributes(
            rover=panorama.rover,
            sol=panorama.sol,
            camera=panorama.camera,
            mars_time_start=panorama.mars_time_start,
            mars_time_end=panorama.mars_time_end,
            total_photos=panorama.total_photos,
            unique_positions=panorama.unique_positions,
            coverage_degrees=round(panorama.coverage_degrees, 2),
            avg_position_spacing=round(panorama.avg_position_spacing, 2),
            avg_elevation=round(panorama.avg_elevation, 2),
            quality=panorama.quality.value,
            location=LocationResponse(
                site=panorama.location.site,
                drive=panorama.location.drive,
                coordinates=coordinates,
            ),
        ),
        photos=_build_photo_responses(panorama) if include_photos else None,
        links=PanoramaLinks(download_set=f"{API_PREFIX}/{panorama.id}/download"),
    )


@router.get("", response_model=PanoramaListResponse, response_model_exclude_none=True)
def list_panoramas(
    request: Request,
    rovers: Optional[str] = Query(None, description="Comma-separated rover names (curiosity, perseverance, ...)"),
    sol_min: Optional[int] = Query(None, description="Minimum sol (inclusive)"),
    sol_max: Optional[int] = Query(None, description="Maximum sol (inclusive)"),
    min_photos: Optional[int] = Query(None, description="Minimum number of photos in a panorama"),
    page: int = Query(1, description="Page number (1-indexed)"),
    per_page: int = Query(25, description="Items per page (max 100)"),
):
    """
    List detected panoramas.

    Panoramas are recomputed from photo telemetry on every request and
    returned ordered by sol, rover and sequence index.
    """
    service = _get_service()
    timeout_s = service.settings.list_timeout_s

    cancel_event = threading.Event()
    timer = None
    if timeout_s > 0:
        timer = threading.Timer(timeout_s, cancel_event.set)
        timer.daemon = True
        timer.start()

    try:
        result = service.list_panoramas(
            rovers=rovers,
            sol_min=sol_min,
            sol_max=sol_max,
            min_photos=min_photos,
            page=page,
            per_page=per_page,
            cancel_event=cancel_event,
        )
    except InvalidQueryError as e:
        return _error_response(
            400,
            "Validation Error",
            e.message,
            request,
            errors=[FieldError(field=e.field, value=e.value, message=e.message, example=e.example)],
        )
    except QueryCancelledError:
        logger.warning(f"Panorama listing exceeded {timeout_s}s and was cancelled")
        return _error_response(
            503,
            "Service Unavailable",
            "Panorama detection took too long; narrow the sol range and retry",
            request,
        )
    finally:
        if timer is not None:
            timer.cancel()

    resources = [build_panorama_resource(p) for p in result.items]
    return PanoramaListResponse(
        data=resources,
        meta=ResponseMeta(
            total_count=result.total_count,
            returned_count=len(resources),
            query={k: v for k, v in result.filters.items() if v is not None},
        ),
        pagination=PaginationInfo(
            page=result.page,
            per_page=result.per_page,
            total_pages=result.total_pages,
        ),
    )


@router.get("/{panorama_id}", response_model=PanoramaResource, response_model_exclude_none=True)
def get_panorama(
    panorama_id: str,
    request: Request,
    include_photos: bool = Query(False, description="Include the member photos"),
):
    """
    Get a specific panorama by id (e.g. pano_curiosity_1000_0).
    """
    panorama = _get_service().get_panorama_by_id(panorama_id)

    if panorama is None:
        return _error_response(
            404,
            "Not Found",
            f"Panorama with ID '{panorama_id}' not found",
            request,
        )

    return build_panorama_resource(panorama, include_photos=include_photos)


# ============================================================================
# Folder Management Routes
# ============================================================================

folder_router = APIRouter(prefix="/folder", tags=["folder"])


@folder_router.get("", response_model=FolderInfoResponse)
async def get_folder_info():
    """Get information about the current data folder."""
    repo = get_repository()

    return FolderInfoResponse(
        path=str(repo.data_folder) if repo.data_folder else None,
        file_count=repo.file_count,
        photo_count=repo.photo_count,
    )


@folder_router.post("", response_model=FolderInfoResponse)
def set_folder(request: SetFolderRequest):
    """
    Set the data folder to load photo exports from.

    This replaces the currently loaded records.
    """
    repo = get_repository()

    path = Path(request.path)
    if not path.exists():
        raise HTTPException(status_code=400, detail=f"Folder does not exist: {request.path}")
    if not path.is_dir():
        raise HTTPException(status_code=400, detail=f"Path is not a directory: {request.path}")

    count = repo.set_data_folder(path)

    return FolderInfoResponse(
        path=str(path),
        file_count=count,
        photo_count=repo.photo_count,
    )


@folder_router.post("/rescan", response_model=FolderInfoResponse)
def rescan_folder():
    """
    Reload the current data folder.
    """
    repo = get_repository()

    if repo.data_folder is None:
        raise HTTPException(status_code=400, detail="No data folder set")

    count = repo.scan_folder(repo.data_folder)

    return FolderInfoResponse(
        path=str(repo.data_folder),
        file_count=count,
        photo_count=repo.photo_count,
    )

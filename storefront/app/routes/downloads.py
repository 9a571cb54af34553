"""API routes for the download catalog."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..downloads import Category, FileType
from ..feature_gates import FeatureGateError
from ..schemas.common import Pagination
from ..schemas.downloads import (
    CatalogEntryCreate,
    CatalogEntryOut,
    CatalogEntryResponse,
    CatalogEntryUpdate,
    CategoriesResponse,
    DownloadEventOut,
    DownloadGrantResponse,
    DownloadHistoryResponse,
    DownloadListResponse,
    PopularDownloadsResponse,
)
from ..services.downloads import get_download_service
from .dependencies import get_admin_account, get_current_account

router = APIRouter(prefix="/api/downloads", tags=["downloads"])


@router.get("", response_model=DownloadListResponse)
def list_downloads(
    *,
    category: Optional[Category] = Query(default=None),
    file_type: Optional[FileType] = Query(default=None, alias="fileType"),
    current_account=Depends(get_current_account),
) -> DownloadListResponse:
    """Return active entries the current account is allowed to download."""

    service = get_download_service()
    available = service.list_available(current_account, category=category, file_type=file_type)
    return DownloadListResponse(
        downloads=[CatalogEntryOut.from_entry(entry) for entry in available.entries],
        user_licenses=available.holdings,
    )


@router.get("/history", response_model=DownloadHistoryResponse)
def download_history(
    *,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    current_account=Depends(get_current_account),
) -> DownloadHistoryResponse:
    service = get_download_service()
    result = service.history(current_account.id, page=page, limit=limit)
    return DownloadHistoryResponse(
        downloads=[DownloadEventOut.from_event(event) for event in result.items],
        pagination=Pagination.build(page=page, limit=limit, total=result.total),
    )


@router.get("/categories", response_model=CategoriesResponse)
def list_categories(*, current_account=Depends(get_current_account)) -> CategoriesResponse:
    facets = get_download_service().categories()
    return CategoriesResponse(categories=facets.categories, file_types=facets.file_types)


@router.get("/popular", response_model=PopularDownloadsResponse)
def popular_downloads(
    *,
    limit: int = Query(default=10, ge=1, le=50),
    current_account=Depends(get_current_account),
) -> PopularDownloadsResponse:
    entries = get_download_service().popular(limit)
    return PopularDownloadsResponse(downloads=[CatalogEntryOut.from_entry(entry) for entry in entries])


@router.post("/{entry_id}/download", response_model=DownloadGrantResponse)
def request_download(entry_id: str, *, current_account=Depends(get_current_account)) -> DownloadGrantResponse:
    service = get_download_service()
    try:
        grant = service.request_download(current_account, entry_id)
    except FeatureGateError as exc:
        raise exc.to_http_exception() from exc
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return DownloadGrantResponse.from_grant(grant)


@router.post("", response_model=CatalogEntryResponse, status_code=status.HTTP_201_CREATED)
def create_download(
    payload: CatalogEntryCreate,
    *,
    admin_account=Depends(get_admin_account),
) -> CatalogEntryResponse:
    entry = get_download_service().create_entry(payload.model_dump())
    return CatalogEntryResponse(download=CatalogEntryOut.from_entry(entry), message="Download created successfully")


@router.put("/{entry_id}", response_model=CatalogEntryResponse)
def update_download(
    entry_id: str,
    payload: CatalogEntryUpdate,
    *,
    admin_account=Depends(get_admin_account),
) -> CatalogEntryResponse:
    service = get_download_service()
    try:
        entry = service.update_entry(entry_id, payload.to_changes())
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return CatalogEntryResponse(download=CatalogEntryOut.from_entry(entry), message="Download updated successfully")


@router.delete("/{entry_id}", response_model=CatalogEntryResponse)
def delete_download(entry_id: str, *, admin_account=Depends(get_admin_account)) -> CatalogEntryResponse:
    service = get_download_service()
    try:
        entry = service.deactivate_entry(entry_id)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return CatalogEntryResponse(download=CatalogEntryOut.from_entry(entry), message="Download deleted successfully")

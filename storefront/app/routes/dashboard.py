"""API routes for the account dashboard."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..schemas.accounts import AccountOut, AccountResponse, ProfileUpdateRequest
from ..schemas.common import Pagination
from ..schemas.dashboard import (
    ActivityOut,
    ActivityResponse,
    DashboardDownloadsResponse,
    DashboardLicensesResponse,
    DashboardStatsResponse,
    NotificationOut,
    NotificationsResponse,
)
from ..schemas.downloads import DownloadEventOut
from ..schemas.licenses import LicenseOut
from ..services.accounts import get_account_service
from ..services.dashboard import get_dashboard_service
from .dependencies import get_current_account

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=DashboardStatsResponse)
def dashboard_stats(*, current_account=Depends(get_current_account)) -> DashboardStatsResponse:
    try:
        summary = get_dashboard_service().stats(current_account.id)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return DashboardStatsResponse.from_summary(summary)


@router.get("/licenses", response_model=DashboardLicensesResponse)
def dashboard_licenses(
    *,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    current_account=Depends(get_current_account),
) -> DashboardLicensesResponse:
    service = get_dashboard_service()
    result = service.licenses_page(current_account.id, page=page, limit=limit)
    now = service.clock()
    return DashboardLicensesResponse(
        licenses=[LicenseOut.from_license(item.license, now) for item in result.items],
        pagination=Pagination.build(page=page, limit=limit, total=result.total),
    )


@router.get("/downloads", response_model=DashboardDownloadsResponse)
def dashboard_downloads(
    *,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    current_account=Depends(get_current_account),
) -> DashboardDownloadsResponse:
    result = get_dashboard_service().downloads_page(current_account.id, page=page, limit=limit)
    return DashboardDownloadsResponse(
        downloads=[DownloadEventOut.from_event(event) for event in result.items],
        pagination=Pagination.build(page=page, limit=limit, total=result.total),
    )


@router.get("/activity", response_model=ActivityResponse)
def dashboard_activity(
    *,
    limit: int = Query(default=20, ge=1, le=100),
    current_account=Depends(get_current_account),
) -> ActivityResponse:
    feed = get_dashboard_service().activity(current_account.id, limit=limit)
    return ActivityResponse(activities=[ActivityOut.from_item(item) for item in feed])


@router.put("/profile", response_model=AccountResponse)
def dashboard_update_profile(
    payload: ProfileUpdateRequest,
    *,
    current_account=Depends(get_current_account),
) -> AccountResponse:
    try:
        account = get_account_service().update_profile(
            current_account.id,
            username=payload.username,
            email=payload.email,
            discord_id=payload.discord_id,
            avatar=payload.avatar,
            bio=payload.bio,
        )
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return AccountResponse(user=AccountOut.from_account(account), message="Profile updated successfully")


@router.get("/notifications", response_model=NotificationsResponse)
def dashboard_notifications(*, current_account=Depends(get_current_account)) -> NotificationsResponse:
    try:
        notices = get_dashboard_service().notifications(current_account.id)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return NotificationsResponse(notifications=[NotificationOut.from_notification(item) for item in notices])

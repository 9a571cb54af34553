"""API routes for license listing, verification and administration."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..feature_gates import FeatureGateError, require_feature
from ..schemas.common import Pagination
from ..schemas.licenses import (
    ExpiringLicenseOut,
    ExpiringLicensesResponse,
    LicenseActivateRequest,
    LicenseExtendRequest,
    LicenseListResponse,
    LicenseOut,
    LicenseResponse,
    LicenseRevokeRequest,
    LicenseVerifyRequest,
    LicenseVerifyResponse,
)
from ..services.licenses import get_license_service
from .dependencies import get_admin_account, get_current_account

router = APIRouter(prefix="/api/licenses", tags=["licenses"])


@router.get("", response_model=LicenseListResponse)
def list_licenses(
    *,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    current_account=Depends(get_current_account),
) -> LicenseListResponse:
    service = get_license_service()
    result = service.list_for_account(current_account.id, page=page, limit=limit)
    return LicenseListResponse(
        licenses=LicenseOut.from_licenses(result.items, service.clock()),
        pagination=Pagination.build(page=page, limit=limit, total=result.total),
    )


@router.post("/verify", response_model=LicenseVerifyResponse, response_model_exclude_none=True)
def verify_license(payload: LicenseVerifyRequest) -> LicenseVerifyResponse:
    """Verify a license key; each successful verification counts as one use."""

    service = get_license_service()
    if payload.feature:
        result = service.check_validity(payload.license_key)
        if result.valid and result.license is not None:
            try:
                require_feature(result.license, payload.feature)
            except FeatureGateError as exc:
                raise exc.to_http_exception() from exc
    result = service.verify(payload.license_key)
    if not result.found:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=LicenseVerifyResponse.from_verification(result).model_dump(exclude_none=True),
        )
    return LicenseVerifyResponse.from_verification(result)


@router.post("/activate", response_model=LicenseResponse)
def activate_license(
    payload: LicenseActivateRequest,
    *,
    current_account=Depends(get_current_account),
) -> LicenseResponse:
    service = get_license_service()
    try:
        license = service.activate(payload.license_key, current_account.id)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except PermissionError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return LicenseResponse(
        license=LicenseOut.from_license(license, service.clock()),
        message="License activated successfully",
    )


@router.get("/admin/expiring", response_model=ExpiringLicensesResponse)
def list_expiring_licenses(
    *,
    days: int = Query(default=7, ge=1, le=365),
    admin_account=Depends(get_admin_account),
) -> ExpiringLicensesResponse:
    service = get_license_service()
    expiring = service.find_expiring_within(days)
    return ExpiringLicensesResponse(
        licenses=[ExpiringLicenseOut.from_expiring(item) for item in expiring],
        count=len(expiring),
    )


@router.get("/{license_id}", response_model=LicenseResponse)
def get_license(license_id: str, *, current_account=Depends(get_current_account)) -> LicenseResponse:
    service = get_license_service()
    try:
        license = service.get_for_account(license_id, current_account.id)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return LicenseResponse(license=LicenseOut.from_license(license, service.clock()))


@router.put("/{license_id}/extend", response_model=LicenseResponse)
def extend_license(
    license_id: str,
    payload: LicenseExtendRequest,
    *,
    admin_account=Depends(get_admin_account),
) -> LicenseResponse:
    service = get_license_service()
    try:
        license = service.extend(license_id, payload.days)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return LicenseResponse(
        license=LicenseOut.from_license(license, service.clock()),
        message=f"License extended by {payload.days} days",
    )


@router.put("/{license_id}/revoke", response_model=LicenseResponse)
def revoke_license(
    license_id: str,
    payload: LicenseRevokeRequest,
    *,
    admin_account=Depends(get_admin_account),
) -> LicenseResponse:
    service = get_license_service()
    try:
        license = service.revoke(license_id, payload.reason)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return LicenseResponse(
        license=LicenseOut.from_license(license, service.clock()),
        message="License revoked successfully",
    )

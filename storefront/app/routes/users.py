"""API routes for account profiles and account administration."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..accounts import AccountRole
from ..schemas.accounts import (
    AccountListResponse,
    AccountOut,
    AccountResponse,
    AccountStatsResponse,
    DeleteAccountRequest,
    PreferencesResponse,
    PreferencesUpdateRequest,
    ProfileUpdateRequest,
    RoleUpdateRequest,
    StatusUpdateRequest,
)
from ..schemas.common import MessageResponse, Pagination
from ..services.accounts import get_account_service
from .dependencies import get_admin_account, get_current_account

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/profile", response_model=AccountResponse)
def get_profile(*, current_account=Depends(get_current_account)) -> AccountResponse:
    try:
        account = get_account_service().get_account(current_account.id)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return AccountResponse(user=AccountOut.from_account(account))


@router.put("/profile", response_model=AccountResponse)
def update_profile(
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


@router.put("/preferences", response_model=PreferencesResponse)
def update_preferences(
    payload: PreferencesUpdateRequest,
    *,
    current_account=Depends(get_current_account),
) -> PreferencesResponse:
    try:
        account = get_account_service().update_preferences(current_account.id, payload.to_updates())
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return PreferencesResponse(preferences=account.preferences)


@router.get("/stats", response_model=AccountStatsResponse)
def get_stats(*, current_account=Depends(get_current_account)) -> AccountStatsResponse:
    try:
        summary = get_account_service().get_stats(current_account.id)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return AccountStatsResponse.from_summary(summary)


@router.delete("/account", response_model=MessageResponse)
def delete_account(
    payload: DeleteAccountRequest,
    *,
    current_account=Depends(get_current_account),
) -> MessageResponse:
    try:
        get_account_service().delete_account(
            current_account.id,
            password=payload.password,
            confirmation=payload.confirmation,
        )
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return MessageResponse(message="Account deleted successfully")


@router.get("", response_model=AccountListResponse)
def list_accounts(
    *,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    search: Optional[str] = Query(default=None),
    role: Optional[AccountRole] = Query(default=None),
    is_active: Optional[bool] = Query(default=None, alias="isActive"),
    admin_account=Depends(get_admin_account),
) -> AccountListResponse:
    result = get_account_service().list_accounts(
        page=page,
        limit=limit,
        search=search,
        role=role,
        is_active=is_active,
    )
    return AccountListResponse(
        users=[AccountOut.from_account(account) for account in result.items],
        pagination=Pagination.build(page=page, limit=limit, total=result.total),
    )


@router.put("/{account_id}/role", response_model=AccountResponse)
def set_role(
    account_id: str,
    payload: RoleUpdateRequest,
    *,
    admin_account=Depends(get_admin_account),
) -> AccountResponse:
    try:
        account = get_account_service().set_role(account_id, payload.role)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return AccountResponse(user=AccountOut.from_account(account), message="User role updated successfully")


@router.put("/{account_id}/status", response_model=AccountResponse)
def set_status(
    account_id: str,
    payload: StatusUpdateRequest,
    *,
    admin_account=Depends(get_admin_account),
) -> AccountResponse:
    try:
        account = get_account_service().set_status(account_id, payload.is_active)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    state = "activated" if account.is_active else "deactivated"
    return AccountResponse(user=AccountOut.from_account(account), message=f"User {state} successfully")

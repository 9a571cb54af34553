"""API schemas for authentication and account management."""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from ..accounts import (
    Account,
    AccountPreferences,
    AccountRole,
    AccountStats,
    AccountStatsSummary,
    AccountSubscription,
    Theme,
)
from .common import Pagination


class AccountOut(BaseModel):
    """Public projection of an account; never carries the password hash."""

    id: str
    username: str
    email: str
    discord_id: str = Field(alias="discordId")
    role: AccountRole
    is_active: bool = Field(alias="isActive")
    email_verified: bool = Field(alias="emailVerified")
    avatar: Optional[str] = None
    bio: str = ""
    preferences: AccountPreferences
    subscription: AccountSubscription
    stats: AccountStats
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_account(cls, account: Account) -> "AccountOut":
        return cls(
            id=account.id,
            username=account.username,
            email=account.email,
            discord_id=account.discord_id,
            role=account.role,
            is_active=account.is_active,
            email_verified=account.email_verified,
            avatar=account.avatar,
            bio=account.bio,
            preferences=account.preferences,
            subscription=account.subscription,
            stats=account.stats,
            created_at=account.created_at,
            updated_at=account.updated_at,
        )


class RegisterRequest(BaseModel):
    username: str = Field(min_length=3, max_length=30)
    email: EmailStr
    password: str = Field(min_length=6)
    discord_id: str = Field(alias="discordId", min_length=1)

    model_config = ConfigDict(populate_by_name=True)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class AuthResponse(BaseModel):
    success: bool = True
    token: str
    user: AccountOut


class TokenResponse(BaseModel):
    token: str


class ProfileUpdateRequest(BaseModel):
    username: Optional[str] = Field(default=None, min_length=3, max_length=30)
    email: Optional[EmailStr] = None
    discord_id: Optional[str] = Field(default=None, alias="discordId", min_length=1)
    avatar: Optional[str] = None
    bio: Optional[str] = Field(default=None, max_length=500)

    model_config = ConfigDict(populate_by_name=True)


class NotificationChannelsUpdate(BaseModel):
    email: Optional[bool] = None
    discord: Optional[bool] = None
    browser: Optional[bool] = None


class PreferencesUpdateRequest(BaseModel):
    notifications: Optional[NotificationChannelsUpdate] = None
    theme: Optional[Theme] = None
    language: Optional[str] = Field(default=None, min_length=2, max_length=10)

    def to_updates(self) -> dict:
        updates = self.model_dump(exclude_none=True, mode="json")
        if self.notifications is not None:
            updates["notifications"] = self.notifications.model_dump(exclude_none=True)
        return updates


class AccountResponse(BaseModel):
    success: bool = True
    user: AccountOut
    message: Optional[str] = None


class PreferencesResponse(BaseModel):
    success: bool = True
    preferences: AccountPreferences
    message: str = "Preferences updated successfully"


class AccountStatsResponse(BaseModel):
    success: bool = True
    stats: AccountStats
    active_licenses: int = Field(alias="activeLicenses")
    total_licenses: int = Field(alias="totalLicenses")
    subscription: AccountSubscription
    member_since: datetime = Field(alias="memberSince")
    has_active_subscription: bool = Field(alias="hasActiveSubscription")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_summary(cls, summary: AccountStatsSummary) -> "AccountStatsResponse":
        return cls(
            stats=summary.stats,
            active_licenses=summary.active_licenses,
            total_licenses=summary.total_licenses,
            subscription=summary.subscription,
            member_since=summary.member_since,
            has_active_subscription=summary.has_active_subscription,
        )


class DeleteAccountRequest(BaseModel):
    password: str
    confirmation: str


class AccountListResponse(BaseModel):
    success: bool = True
    users: List[AccountOut]
    pagination: Pagination


class RoleUpdateRequest(BaseModel):
    role: str


class StatusUpdateRequest(BaseModel):
    is_active: bool = Field(alias="isActive")

    model_config = ConfigDict(populate_by_name=True)

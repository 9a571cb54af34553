"""API schemas for the account dashboard."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field

from ..services.dashboard import ActivityItem, DashboardNotification, DashboardStats, DashboardSummary
from .accounts import AccountOut
from .common import Pagination
from .downloads import DownloadEventOut
from .licenses import LicenseOut


class DashboardStatsOut(BaseModel):
    total_licenses: int = Field(alias="totalLicenses")
    active_licenses: int = Field(alias="activeLicenses")
    expired_licenses: int = Field(alias="expiredLicenses")
    total_downloads: int = Field(alias="totalDownloads")
    account_created: datetime = Field(alias="accountCreated")
    last_login: datetime = Field(alias="lastLogin")
    membership_status: str = Field(alias="membershipStatus")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_stats(cls, stats: DashboardStats) -> "DashboardStatsOut":
        return cls(**stats.model_dump())


class DashboardStatsResponse(BaseModel):
    success: bool = True
    stats: DashboardStatsOut
    user: AccountOut
    recent_downloads: List[DownloadEventOut] = Field(alias="recentDownloads")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_summary(cls, summary: DashboardSummary) -> "DashboardStatsResponse":
        return cls(
            stats=DashboardStatsOut.from_stats(summary.stats),
            user=AccountOut.from_account(summary.account),
            recent_downloads=[DownloadEventOut.from_event(event) for event in summary.recent_downloads],
        )


class DashboardLicensesResponse(BaseModel):
    success: bool = True
    licenses: List[LicenseOut]
    pagination: Pagination


class DashboardDownloadsResponse(BaseModel):
    success: bool = True
    downloads: List[DownloadEventOut]
    pagination: Pagination


class ActivityOut(BaseModel):
    type: str
    action: str
    item: str
    date: datetime
    details: Dict[str, Any]

    @classmethod
    def from_item(cls, item: ActivityItem) -> "ActivityOut":
        return cls(**item.model_dump())


class ActivityResponse(BaseModel):
    success: bool = True
    activities: List[ActivityOut]


class NotificationOut(BaseModel):
    type: str
    title: str
    message: str
    date: datetime
    action_text: str = Field(alias="actionText")
    action_link: str = Field(alias="actionLink")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_notification(cls, notice: DashboardNotification) -> "NotificationOut":
        return cls(**notice.model_dump())


class NotificationsResponse(BaseModel):
    success: bool = True
    notifications: List[NotificationOut]

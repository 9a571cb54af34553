"""Dashboard aggregation over an account's licenses and downloads."""
from __future__ import annotations

import math
import sys
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Callable, Dict, List, Optional, Protocol

from pydantic import BaseModel, ConfigDict

from ..accounts.models import Account
from ..accounts.repository import PostgresAccountRepository
from ..downloads.models import DownloadEvent, DownloadEventPage
from ..downloads.repository import PostgresDownloadRepository
from ..licenses.models import License, LicenseStatus
from ..licenses.repository import PostgresLicenseRepository
from ..licenses.service import LicenseRepository

EXPIRY_WARNING_DAYS = 7
WELCOME_WINDOW_DAYS = 1
RECENT_DOWNLOADS = 5


class DashboardAccounts(Protocol):
    def get_account(self, account_id: str) -> Optional[Account]:
        ...


class DashboardDownloads(Protocol):
    def list_events(self, account_id: str, *, offset: int = 0, limit: int = 10) -> DownloadEventPage:
        ...


class DashboardStats(BaseModel):
    total_licenses: int
    active_licenses: int
    expired_licenses: int
    total_downloads: int
    account_created: datetime
    last_login: datetime
    membership_status: str

    model_config = ConfigDict(frozen=True)


class DashboardSummary(BaseModel):
    account: Account
    stats: DashboardStats
    recent_downloads: List[DownloadEvent]

    model_config = ConfigDict(frozen=True)


class LicenseStanding(BaseModel):
    license: License
    is_active: bool
    days_remaining: int

    model_config = ConfigDict(frozen=True)


class LicenseStandingPage(BaseModel):
    items: List[LicenseStanding]
    total: int

    model_config = ConfigDict(frozen=True)


class ActivityItem(BaseModel):
    type: str
    action: str
    item: str
    date: datetime
    details: Dict[str, Any]

    model_config = ConfigDict(frozen=True)


class DashboardNotification(BaseModel):
    type: str
    title: str
    message: str
    date: datetime
    action_text: str
    action_link: str

    model_config = ConfigDict(frozen=True)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


_dataclass_kwargs = {"slots": True} if sys.version_info >= (3, 10) else {}


@dataclass(**_dataclass_kwargs)
class DashboardService:
    """Read-only views combining an account with its licenses and download history."""

    accounts: DashboardAccounts
    licenses: LicenseRepository
    downloads: DashboardDownloads
    clock: Callable[[], datetime] = field(default=_utcnow)

    def stats(self, account_id: str) -> DashboardSummary:
        account = self._require_account(account_id)
        now = self.clock()
        licenses = list(self.licenses.list_all_for_account(account.id))
        active = [item for item in licenses if item.is_valid_at(now)]
        expired = [
            item
            for item in licenses
            if item.status == LicenseStatus.EXPIRED or item.expires_at <= now
        ]
        history = self.downloads.list_events(account.id, offset=0, limit=RECENT_DOWNLOADS)

        stats = DashboardStats(
            total_licenses=len(licenses),
            active_licenses=len(active),
            expired_licenses=len(expired),
            total_downloads=history.total,
            account_created=account.created_at,
            last_login=account.stats.last_login,
            membership_status="Premium" if active else "Free",
        )
        return DashboardSummary(account=account, stats=stats, recent_downloads=list(history.items))

    def licenses_page(self, account_id: str, *, page: int = 1, limit: int = 10) -> LicenseStandingPage:
        page, limit = max(page, 1), max(limit, 1)
        now = self.clock()
        result = self.licenses.list_for_account(account_id, offset=(page - 1) * limit, limit=limit)
        items = [
            LicenseStanding(
                license=license,
                is_active=license.is_valid_at(now),
                days_remaining=license.days_remaining_at(now),
            )
            for license in result.items
        ]
        return LicenseStandingPage(items=items, total=result.total)

    def downloads_page(self, account_id: str, *, page: int = 1, limit: int = 10) -> DownloadEventPage:
        page, limit = max(page, 1), max(limit, 1)
        return self.downloads.list_events(account_id, offset=(page - 1) * limit, limit=limit)

    def activity(self, account_id: str, *, limit: int = 20) -> List[ActivityItem]:
        """Merge license purchases and downloads into one feed, newest first."""

        limit = max(limit, 1)
        licenses = self.licenses.list_for_account(account_id, offset=0, limit=limit).items
        events = self.downloads.list_events(account_id, offset=0, limit=limit).items

        feed = [
            ActivityItem(
                type="license",
                action="purchased",
                item=license.product_name,
                date=license.created_at,
                details={
                    "licenseKey": license.license_key,
                    "status": license.status.value,
                    "expiresAt": license.expires_at.isoformat(),
                },
            )
            for license in licenses
        ]
        feed.extend(
            ActivityItem(
                type="download",
                action="downloaded",
                item=event.file_name,
                date=event.downloaded_at,
                details={"fileSize": event.file_size, "version": event.version},
            )
            for event in events
        )
        feed.sort(key=lambda entry: entry.date, reverse=True)
        return feed[:limit]

    def notifications(self, account_id: str) -> List[DashboardNotification]:
        account = self._require_account(account_id)
        now = self.clock()
        notices: List[DashboardNotification] = []

        horizon = now + timedelta(days=EXPIRY_WARNING_DAYS)
        expiring = [
            item for item in self.licenses.list_valid_for_account(account.id, now) if item.expires_at <= horizon
        ]
        for license in sorted(expiring, key=lambda item: item.expires_at):
            days = math.ceil((license.expires_at - now).total_seconds() / 86400)
            notices.append(
                DashboardNotification(
                    type="warning",
                    title="License Expiring Soon",
                    message=f"Your {license.product_name} license expires in {days} days",
                    date=now,
                    action_text="Renew License",
                    action_link="/dashboard/licenses",
                )
            )

        if (now - account.created_at) < timedelta(days=WELCOME_WINDOW_DAYS + 1):
            notices.append(
                DashboardNotification(
                    type="info",
                    title="Welcome to ByteBunny!",
                    message="Thank you for joining our community. Check out our programs and features.",
                    date=account.created_at,
                    action_text="Browse Programs",
                    action_link="/programs",
                )
            )
        return notices

    def _require_account(self, account_id: str) -> Account:
        account = self.accounts.get_account(account_id)
        if account is None:
            raise LookupError("User not found")
        return account


@lru_cache(maxsize=1)
def get_dashboard_service() -> DashboardService:
    return DashboardService(
        accounts=PostgresAccountRepository(),
        licenses=PostgresLicenseRepository(),
        downloads=PostgresDownloadRepository(),
    )


__all__ = [
    "ActivityItem",
    "DashboardNotification",
    "DashboardService",
    "DashboardStats",
    "DashboardSummary",
    "LicenseStanding",
    "LicenseStandingPage",
    "get_dashboard_service",
]

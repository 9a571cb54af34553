from __future__ import annotations

from datetime import timedelta
from typing import List

import pytest

from storefront.app.downloads import Category, DownloadEvent, DownloadEventPage, FileType
from storefront.app.licenses import LicenseTier, ProductType
from storefront.app.services.dashboard import DashboardService


class FakeDownloadHistory:
    def __init__(self) -> None:
        self.events: List[DownloadEvent] = []

    def list_events(self, account_id: str, *, offset: int = 0, limit: int = 10) -> DownloadEventPage:
        owned = [event for event in reversed(self.events) if event.account_id == account_id]
        return DownloadEventPage(items=owned[offset : offset + limit], total=len(owned))


@pytest.fixture
def history() -> FakeDownloadHistory:
    return FakeDownloadHistory()


@pytest.fixture
def dashboard(account_repository, license_repository, history, clock) -> DashboardService:
    return DashboardService(accounts=account_repository, licenses=license_repository, downloads=history, clock=clock)


def _event(account_id: str, when) -> DownloadEvent:
    return DownloadEvent(
        id="evt-1",
        account_id=account_id,
        entry_id="entry-1",
        file_name="selfbot.zip",
        original_name="Selfbot.zip",
        file_type=FileType.SELFBOT,
        category=Category.BYTEBUNNY_CORE,
        version="1.0.0",
        file_size=1024,
        downloaded_at=when,
    )


def test_stats_counts_active_and_expired_licenses(dashboard, license_service, make_account, history, clock):
    account = make_account()
    license_service.issue(account, ProductType.SELFBOT, LicenseTier.TRIAL)
    license_service.issue(account, ProductType.ANALYTICS, LicenseTier.YEARLY)
    history.events.append(_event(account.id, clock()))

    clock.advance(days=10)
    summary = dashboard.stats(account.id)

    assert summary.stats.total_licenses == 2
    assert summary.stats.active_licenses == 1
    assert summary.stats.expired_licenses == 1
    assert summary.stats.total_downloads == 1
    assert summary.stats.membership_status == "Premium"
    assert [event.id for event in summary.recent_downloads] == ["evt-1"]


def test_activity_merges_licenses_and_downloads_newest_first(
    dashboard, license_service, make_account, history, clock
):
    account = make_account()
    license_service.issue(account, ProductType.SELFBOT, LicenseTier.MONTHLY)
    history.events.append(_event(account.id, clock() + timedelta(hours=1)))

    feed = dashboard.activity(account.id)

    assert [item.type for item in feed] == ["download", "license"]
    assert feed[1].action == "purchased"
    assert feed[1].item == "ByteBunny Selfbot"


def test_notifications_warn_about_expiring_licenses_and_welcome(dashboard, license_service, make_account, clock):
    account = make_account()
    license_service.issue(account, ProductType.SELFBOT, LicenseTier.TRIAL)

    notices = dashboard.notifications(account.id)

    assert [notice.title for notice in notices] == ["License Expiring Soon", "Welcome to ByteBunny!"]
    assert notices[0].message == "Your ByteBunny Selfbot license expires in 7 days"

    clock.advance(days=3)
    assert [notice.type for notice in dashboard.notifications(account.id)] == ["warning"]


def test_unknown_account_raises(dashboard):
    with pytest.raises(LookupError):
        dashboard.stats("missing")

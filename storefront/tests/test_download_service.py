from __future__ import annotations

from datetime import timedelta
from typing import Dict, List, Optional, Sequence

import pytest

from storefront.app.accounts import AccountRole
from storefront.app.downloads import (
    CatalogEntry,
    CatalogFacets,
    Category,
    DownloadEvent,
    DownloadEventPage,
    DownloadRepository,
    DownloadService,
    FileType,
    format_size,
)
from storefront.app.feature_gates import FeatureGateError
from storefront.app.licenses import LicenseTier, ProductType


class InMemoryDownloadRepository(DownloadRepository):
    def __init__(self) -> None:
        self.entries: Dict[str, CatalogEntry] = {}
        self.events: List[DownloadEvent] = []

    def get_entry(self, entry_id: str) -> Optional[CatalogEntry]:
        return self.entries.get(entry_id)

    def save_entry(self, entry: CatalogEntry) -> CatalogEntry:
        self.entries[entry.id] = entry
        return entry

    def list_active(
        self,
        *,
        category: Optional[Category] = None,
        file_type: Optional[FileType] = None,
    ) -> Sequence[CatalogEntry]:
        return [
            entry
            for entry in self.entries.values()
            if entry.is_active
            and (category is None or entry.category == category)
            and (file_type is None or entry.file_type == file_type)
        ]

    def list_popular(self, limit: int) -> Sequence[CatalogEntry]:
        active = [entry for entry in self.entries.values() if entry.is_active]
        return sorted(active, key=lambda entry: entry.download_count, reverse=True)[:limit]

    def active_facets(self) -> CatalogFacets:
        active = [entry for entry in self.entries.values() if entry.is_active]
        return CatalogFacets(
            categories=sorted({entry.category for entry in active}),
            file_types=sorted({entry.file_type for entry in active}),
        )

    def increment_download_count(self, entry_id: str) -> Optional[CatalogEntry]:
        entry = self.entries.get(entry_id)
        if entry is None:
            return None
        return self.save_entry(entry.model_copy(update={"download_count": entry.download_count + 1}))

    def record_event(self, event: DownloadEvent) -> DownloadEvent:
        self.events.append(event)
        return event

    def list_events(self, account_id: str, *, offset: int = 0, limit: int = 10) -> DownloadEventPage:
        owned = [event for event in reversed(self.events) if event.account_id == account_id]
        return DownloadEventPage(items=owned[offset : offset + limit], total=len(owned))


class RecordingSigner:
    def __init__(self) -> None:
        self.calls: list = []

    def __call__(self, claims, expires_in: timedelta) -> str:
        self.calls.append((dict(claims), expires_in))
        return f"signed-{len(self.calls)}"


@pytest.fixture
def download_repository() -> InMemoryDownloadRepository:
    return InMemoryDownloadRepository()


@pytest.fixture
def signer() -> RecordingSigner:
    return RecordingSigner()


@pytest.fixture
def download_service(download_repository, license_service, account_repository, signer, clock) -> DownloadService:
    return DownloadService(
        repository=download_repository,
        licenses=license_service,
        accounts=account_repository,
        sign_token=signer,
        clock=clock,
    )


@pytest.fixture
def add_entry(download_service):
    def _add(**overrides) -> CatalogEntry:
        data = dict(
            file_name="selfbot-2.0.zip",
            original_name="ByteBunny Selfbot 2.0.zip",
            file_type=FileType.SELFBOT,
            category=Category.BYTEBUNNY_CORE,
            version="2.0.0",
            file_size=1536,
            file_path="/files/selfbot-2.0.zip",
            download_url="https://cdn.test/selfbot-2.0.zip",
            allowed_tiers=[LicenseTier.LIFETIME],
        )
        data.update(overrides)
        return download_service.create_entry(data)

    return _add


def test_request_download_records_event_and_signs_link(
    download_service, download_repository, license_service, account_repository, make_account, add_entry, signer
):
    account = make_account()
    license_service.issue(account, ProductType.SELFBOT, LicenseTier.MONTHLY)
    entry = add_entry()

    grant = download_service.request_download(account, entry.id)

    assert grant.download_url == "https://cdn.test/selfbot-2.0.zip?token=signed-1"
    assert grant.file_name == "ByteBunny Selfbot 2.0.zip"
    assert grant.file_size == "1.5 KB"
    assert grant.expires_in == "1 hour"
    claims, ttl = signer.calls[0]
    assert claims == {"sub": account.id, "download_id": entry.id, "type": "download"}
    assert ttl == timedelta(hours=1)
    assert [event.entry_id for event in download_repository.events] == [entry.id]
    assert download_repository.get_entry(entry.id).download_count == 1
    assert account_repository.get_account(account.id).stats.total_downloads == 1


def test_denied_download_records_nothing(download_service, download_repository, make_account, add_entry, signer):
    account = make_account()
    entry = add_entry()

    with pytest.raises(FeatureGateError):
        download_service.request_download(account, entry.id)

    assert download_repository.events == []
    assert download_repository.get_entry(entry.id).download_count == 0
    assert signer.calls == []


def test_premium_entry_denies_user_role_with_lifetime_license(
    download_service, license_service, make_account, add_entry
):
    account = make_account(role=AccountRole.USER)
    license_service.issue(account, ProductType.SELFBOT, LicenseTier.LIFETIME)
    entry = add_entry(minimum_role=AccountRole.PREMIUM)

    with pytest.raises(FeatureGateError) as exc:
        download_service.request_download(account, entry.id)

    assert exc.value.code == "insufficient_role"


def test_expired_license_no_longer_grants_downloads(download_service, license_service, make_account, add_entry, clock):
    account = make_account()
    license_service.issue(account, ProductType.SELFBOT, LicenseTier.TRIAL)
    entry = add_entry()

    download_service.request_download(account, entry.id)
    clock.advance(days=8)

    with pytest.raises(FeatureGateError):
        download_service.request_download(account, entry.id)


def test_missing_or_expired_entries(download_service, make_account, add_entry, clock):
    account = make_account()
    expiring = add_entry(requires_license=False, expires_at=clock() + timedelta(hours=1))
    retired = add_entry(requires_license=False)
    download_service.deactivate_entry(retired.id)

    with pytest.raises(LookupError):
        download_service.request_download(account, "nope")
    with pytest.raises(LookupError):
        download_service.request_download(account, retired.id)

    clock.advance(hours=2)
    with pytest.raises(ValueError, match="expired"):
        download_service.request_download(account, expiring.id)


def test_list_available_applies_gate(download_service, license_service, make_account, add_entry):
    account = make_account()
    license_service.issue(account, ProductType.MODERATION, LicenseTier.YEARLY)
    allowed = add_entry(file_type=FileType.PLUGIN, category=Category.PLUGINS, allowed_tiers=[LicenseTier.YEARLY])
    add_entry(minimum_role=AccountRole.ADMIN, requires_license=False)
    add_entry()

    available = download_service.list_available(account)

    assert [entry.id for entry in available.entries] == [allowed.id]
    assert available.holdings.active == 1
    assert available.holdings.tiers == [LicenseTier.YEARLY]
    assert available.holdings.products == ["moderation"]


def test_update_entry_keeps_counters(download_service, download_repository, add_entry):
    entry = add_entry()
    download_repository.increment_download_count(entry.id)

    updated = download_service.update_entry(entry.id, {"version": "2.1.0", "download_count": 0, "id": "other"})

    assert updated.id == entry.id
    assert updated.version == "2.1.0"
    assert updated.download_count == 1


def test_history_and_popular(download_service, make_account, add_entry):
    account = make_account()
    first = add_entry(requires_license=False)
    second = add_entry(requires_license=False, file_name="admin.zip", file_type=FileType.ADMIN_TOOLS)
    download_service.request_download(account, first.id)
    download_service.request_download(account, second.id)
    download_service.request_download(account, second.id)

    history = download_service.history(account.id, page=1, limit=2)
    popular = download_service.popular(limit=1)
    facets = download_service.categories()

    assert history.total == 3
    assert len(history.items) == 2
    assert [entry.id for entry in popular] == [second.id]
    assert facets.file_types == [FileType.ADMIN_TOOLS, FileType.SELFBOT]


@pytest.mark.parametrize(
    "num_bytes, expected",
    [(0, "0 Bytes"), (512, "512 Bytes"), (1024, "1 KB"), (1536, "1.5 KB"), (5 * 1024 * 1024, "5 MB")],
)
def test_format_size(num_bytes, expected):
    assert format_size(num_bytes) == expected

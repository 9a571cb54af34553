"""Service exposing the download catalog and granting gated downloads."""
from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Sequence
from uuid import uuid4

from ..accounts.models import Account
from ..feature_gates.access import check_access, require_access
from ..licenses.models import License
from .models import (
    AvailableDownloads,
    CatalogEntry,
    CatalogFacets,
    Category,
    DownloadEvent,
    DownloadEventPage,
    DownloadGrant,
    FileType,
    LicenseHoldings,
)

logger = logging.getLogger("downloads")

DOWNLOAD_TOKEN_TTL = timedelta(hours=1)

_IMMUTABLE_FIELDS = {"id", "created_at", "download_count"}


class DownloadRepository(Protocol):
    """Persistence operations required by the download service."""

    def get_entry(self, entry_id: str) -> Optional[CatalogEntry]:
        ...

    def save_entry(self, entry: CatalogEntry) -> CatalogEntry:
        ...

    def list_active(
        self,
        *,
        category: Optional[Category] = None,
        file_type: Optional[FileType] = None,
    ) -> Sequence[CatalogEntry]:
        ...

    def list_popular(self, limit: int) -> Sequence[CatalogEntry]:
        ...

    def active_facets(self) -> CatalogFacets:
        ...

    def increment_download_count(self, entry_id: str) -> Optional[CatalogEntry]:
        ...

    def record_event(self, event: DownloadEvent) -> DownloadEvent:
        ...

    def list_events(self, account_id: str, *, offset: int = 0, limit: int = 10) -> DownloadEventPage:
        ...


class ValidLicenseSource(Protocol):
    def list_valid_for_account(self, account_id: str) -> Sequence[License]:
        ...


class DownloadCounter(Protocol):
    def increment_downloads(self, account_id: str) -> Any:
        ...


TokenSigner = Callable[[Mapping[str, Any], timedelta], str]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


_dataclass_kwargs = {"slots": True} if sys.version_info >= (3, 10) else {}


@dataclass(**_dataclass_kwargs)
class DownloadService:
    """Lists downloadable files and grants signed links after the access gate passes."""

    repository: DownloadRepository
    licenses: ValidLicenseSource
    accounts: DownloadCounter
    sign_token: TokenSigner
    clock: Callable[[], datetime] = field(default=_utcnow)

    def list_available(
        self,
        account: Account,
        *,
        category: Optional[Category] = None,
        file_type: Optional[FileType] = None,
    ) -> AvailableDownloads:
        licenses = list(self.licenses.list_valid_for_account(account.id))
        entries = [
            entry
            for entry in self.repository.list_active(category=category, file_type=file_type)
            if check_access(account.role, entry, licenses).allowed
        ]
        holdings = LicenseHoldings(
            active=len(licenses),
            tiers=[license.tier for license in licenses],
            products=[license.product_type.value for license in licenses],
        )
        return AvailableDownloads(entries=entries, holdings=holdings)

    def history(self, account_id: str, *, page: int = 1, limit: int = 10) -> DownloadEventPage:
        page, limit = max(page, 1), max(limit, 1)
        return self.repository.list_events(account_id, offset=(page - 1) * limit, limit=limit)

    def categories(self) -> CatalogFacets:
        return self.repository.active_facets()

    def popular(self, limit: int = 10) -> List[CatalogEntry]:
        return list(self.repository.list_popular(max(limit, 1)))

    def request_download(self, account: Account, entry_id: str) -> DownloadGrant:
        """Gate, record and sign a one-hour link for ``entry_id``."""

        entry = self.repository.get_entry(entry_id)
        if entry is None or not entry.is_active:
            raise LookupError("Download not found")

        now = self.clock()
        if not entry.is_downloadable_at(now):
            raise ValueError("Download link has expired")

        licenses: Sequence[License] = ()
        if entry.requires_license:
            licenses = self.licenses.list_valid_for_account(account.id)
        require_access(account.role, entry, licenses)

        self.repository.record_event(
            DownloadEvent.for_entry(event_id=uuid4().hex, account_id=account.id, entry=entry, now=now)
        )
        self.repository.increment_download_count(entry.id)
        self.accounts.increment_downloads(account.id)

        token = self.sign_token(
            {"sub": account.id, "download_id": entry.id, "type": "download"},
            DOWNLOAD_TOKEN_TTL,
        )
        logger.info(
            "Granted download %s to account %s",
            entry.id,
            account.id,
            extra={"file_type": entry.file_type.value, "version": entry.version},
        )
        return DownloadGrant(
            download_url=f"{entry.download_url}?token={token}",
            file_name=entry.original_name,
            file_size=entry.formatted_size,
        )

    def create_entry(self, data: Mapping[str, Any]) -> CatalogEntry:
        now = self.clock()
        payload: Dict[str, Any] = {
            key: value for key, value in data.items() if key not in _IMMUTABLE_FIELDS
        }
        entry = CatalogEntry.model_validate(
            {**payload, "id": uuid4().hex, "download_count": 0, "created_at": now, "updated_at": now}
        )
        stored = self.repository.save_entry(entry)
        logger.info("Added catalog entry %s (%s %s)", stored.id, stored.original_name, stored.version)
        return stored

    def update_entry(self, entry_id: str, changes: Mapping[str, Any]) -> CatalogEntry:
        entry = self._require(entry_id)
        merged = entry.model_dump()
        merged.update({key: value for key, value in changes.items() if key not in _IMMUTABLE_FIELDS})
        merged["updated_at"] = self.clock()
        return self.repository.save_entry(CatalogEntry.model_validate(merged))

    def deactivate_entry(self, entry_id: str) -> CatalogEntry:
        entry = self._require(entry_id)
        stored = self.repository.save_entry(
            entry.model_copy(update={"is_active": False, "updated_at": self.clock()})
        )
        logger.info("Deactivated catalog entry %s", entry_id)
        return stored

    def _require(self, entry_id: str) -> CatalogEntry:
        entry = self.repository.get_entry(entry_id)
        if entry is None:
            raise LookupError("Download not found")
        return entry

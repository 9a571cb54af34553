"""Domain models for the download catalog."""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..accounts.models import AccountRole
from ..licenses.models import LicenseTier

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


class FileType(str, Enum):
    SELFBOT = "selfbot"
    ADMIN_TOOLS = "admin-tools"
    PLUGIN = "plugin"
    UPDATE = "update"
    ADDON = "addon"


class Category(str, Enum):
    BYTEBUNNY_CORE = "bytebunny-core"
    ADMIN_SUITE = "admin-suite"
    MODERATION_TOOLS = "moderation-tools"
    PLUGINS = "plugins"
    THEMES = "themes"


def format_size(num_bytes: int) -> str:
    """Render a byte count using the largest unit that keeps the value >= 1."""

    if num_bytes <= 0:
        return "0 Bytes"
    value = float(num_bytes)
    index = 0
    while value >= 1024 and index < len(_SIZE_UNITS) - 1:
        value /= 1024
        index += 1
    return f"{round(value, 2):g} {_SIZE_UNITS[index]}"


class CatalogMetadata(BaseModel):
    description: Optional[str] = None
    changelog: Optional[str] = None
    requirements: List[str] = Field(default_factory=list)
    compatibility: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class CatalogEntry(BaseModel):
    """A distributable file with its role and license requirements."""

    id: str
    file_name: str
    original_name: str
    file_type: FileType
    category: Category
    version: str
    file_size: int = Field(ge=0)
    file_path: str
    download_url: str
    download_count: int = Field(default=0, ge=0)
    is_active: bool = True
    requires_license: bool = True
    allowed_tiers: List[LicenseTier] = Field(default_factory=list)
    minimum_role: AccountRole = AccountRole.USER
    expires_at: Optional[datetime] = None
    metadata: CatalogMetadata = Field(default_factory=CatalogMetadata)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(frozen=True)

    @property
    def formatted_size(self) -> str:
        return format_size(self.file_size)

    def is_downloadable_at(self, now: datetime) -> bool:
        if not self.is_active:
            return False
        return self.expires_at is None or now <= self.expires_at

    @property
    def is_downloadable(self) -> bool:
        return self.is_downloadable_at(datetime.now(timezone.utc))


class DownloadEvent(BaseModel):
    """Append-only record of one granted download."""

    id: str
    account_id: str
    entry_id: str
    file_name: str
    original_name: str
    file_type: FileType
    category: Category
    version: str
    file_size: int
    downloaded_at: datetime

    model_config = ConfigDict(frozen=True)

    @classmethod
    def for_entry(cls, *, event_id: str, account_id: str, entry: CatalogEntry, now: datetime) -> "DownloadEvent":
        return cls(
            id=event_id,
            account_id=account_id,
            entry_id=entry.id,
            file_name=entry.file_name,
            original_name=entry.original_name,
            file_type=entry.file_type,
            category=entry.category,
            version=entry.version,
            file_size=entry.file_size,
            downloaded_at=now,
        )


class DownloadEventPage(BaseModel):
    items: List[DownloadEvent]
    total: int

    model_config = ConfigDict(frozen=True)


class LicenseHoldings(BaseModel):
    """Summary of the valid licenses consulted when filtering the catalog."""

    active: int
    tiers: List[LicenseTier]
    products: List[str]

    model_config = ConfigDict(frozen=True)


class AvailableDownloads(BaseModel):
    entries: List[CatalogEntry]
    holdings: LicenseHoldings

    model_config = ConfigDict(frozen=True)


class CatalogFacets(BaseModel):
    categories: List[Category]
    file_types: List[FileType]

    model_config = ConfigDict(frozen=True)


class DownloadGrant(BaseModel):
    """Signed, short-lived link returned for a granted download."""

    download_url: str
    file_name: str
    file_size: str
    expires_in: str = "1 hour"

    model_config = ConfigDict(frozen=True)

"""API schemas for the download catalog."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..accounts import AccountRole
from ..downloads import (
    CatalogEntry,
    CatalogMetadata,
    Category,
    DownloadEvent,
    DownloadGrant,
    FileType,
    LicenseHoldings,
)
from ..licenses import LicenseTier
from .common import Pagination


class CatalogEntryOut(BaseModel):
    id: str
    file_name: str = Field(alias="fileName")
    original_name: str = Field(alias="originalName")
    file_type: FileType = Field(alias="fileType")
    category: Category
    version: str
    file_size: int = Field(alias="fileSize")
    formatted_size: str = Field(alias="formattedSize")
    download_count: int = Field(alias="downloadCount")
    requires_license: bool = Field(alias="requiresLicense")
    allowed_tiers: List[LicenseTier] = Field(alias="allowedLicenseTypes")
    minimum_role: AccountRole = Field(alias="minimumRole")
    is_active: bool = Field(alias="isActive")
    expires_at: Optional[datetime] = Field(default=None, alias="expiresAt")
    metadata: CatalogMetadata
    created_at: datetime = Field(alias="createdAt")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_entry(cls, entry: CatalogEntry) -> "CatalogEntryOut":
        return cls(
            id=entry.id,
            file_name=entry.file_name,
            original_name=entry.original_name,
            file_type=entry.file_type,
            category=entry.category,
            version=entry.version,
            file_size=entry.file_size,
            formatted_size=entry.formatted_size,
            download_count=entry.download_count,
            requires_license=entry.requires_license,
            allowed_tiers=list(entry.allowed_tiers),
            minimum_role=entry.minimum_role,
            is_active=entry.is_active,
            expires_at=entry.expires_at,
            metadata=entry.metadata,
            created_at=entry.created_at,
        )


class DownloadListResponse(BaseModel):
    success: bool = True
    downloads: List[CatalogEntryOut]
    user_licenses: LicenseHoldings = Field(alias="userLicenses")

    model_config = ConfigDict(populate_by_name=True)


class DownloadEventOut(BaseModel):
    id: str
    download_id: str = Field(alias="downloadId")
    file_name: str = Field(alias="fileName")
    original_name: str = Field(alias="originalName")
    file_type: FileType = Field(alias="fileType")
    category: Category
    version: str
    file_size: int = Field(alias="fileSize")
    downloaded_at: datetime = Field(alias="downloadedAt")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_event(cls, event: DownloadEvent) -> "DownloadEventOut":
        return cls(
            id=event.id,
            download_id=event.entry_id,
            file_name=event.file_name,
            original_name=event.original_name,
            file_type=event.file_type,
            category=event.category,
            version=event.version,
            file_size=event.file_size,
            downloaded_at=event.downloaded_at,
        )


class DownloadHistoryResponse(BaseModel):
    success: bool = True
    downloads: List[DownloadEventOut]
    pagination: Pagination


class CategoriesResponse(BaseModel):
    success: bool = True
    categories: List[Category]
    file_types: List[FileType] = Field(alias="fileTypes")

    model_config = ConfigDict(populate_by_name=True)


class PopularDownloadsResponse(BaseModel):
    success: bool = True
    downloads: List[CatalogEntryOut]


class DownloadGrantResponse(BaseModel):
    success: bool = True
    download_url: str = Field(alias="downloadUrl")
    file_name: str = Field(alias="fileName")
    file_size: str = Field(alias="fileSize")
    expires_in: str = Field(alias="expiresIn")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_grant(cls, grant: DownloadGrant) -> "DownloadGrantResponse":
        return cls(
            download_url=grant.download_url,
            file_name=grant.file_name,
            file_size=grant.file_size,
            expires_in=grant.expires_in,
        )


class CatalogEntryCreate(BaseModel):
    file_name: str = Field(alias="fileName", min_length=1)
    original_name: str = Field(alias="originalName", min_length=1)
    file_type: FileType = Field(alias="fileType")
    category: Category
    version: str = Field(min_length=1)
    file_size: int = Field(alias="fileSize", ge=0)
    file_path: str = Field(alias="filePath", min_length=1)
    download_url: str = Field(alias="downloadUrl", min_length=1)
    requires_license: bool = Field(default=True, alias="requiresLicense")
    allowed_tiers: List[LicenseTier] = Field(default_factory=list, alias="allowedLicenseTypes")
    minimum_role: AccountRole = Field(default=AccountRole.USER, alias="minimumRole")
    expires_at: Optional[datetime] = Field(default=None, alias="expiresAt")
    metadata: CatalogMetadata = Field(default_factory=CatalogMetadata)

    model_config = ConfigDict(populate_by_name=True)


class CatalogEntryUpdate(BaseModel):
    file_name: Optional[str] = Field(default=None, alias="fileName")
    original_name: Optional[str] = Field(default=None, alias="originalName")
    file_type: Optional[FileType] = Field(default=None, alias="fileType")
    category: Optional[Category] = None
    version: Optional[str] = None
    file_size: Optional[int] = Field(default=None, alias="fileSize", ge=0)
    file_path: Optional[str] = Field(default=None, alias="filePath")
    download_url: Optional[str] = Field(default=None, alias="downloadUrl")
    requires_license: Optional[bool] = Field(default=None, alias="requiresLicense")
    allowed_tiers: Optional[List[LicenseTier]] = Field(default=None, alias="allowedLicenseTypes")
    minimum_role: Optional[AccountRole] = Field(default=None, alias="minimumRole")
    is_active: Optional[bool] = Field(default=None, alias="isActive")
    expires_at: Optional[datetime] = Field(default=None, alias="expiresAt")
    metadata: Optional[CatalogMetadata] = None

    model_config = ConfigDict(populate_by_name=True)

    def to_changes(self) -> Dict[str, Any]:
        return {key: getattr(self, key) for key in self.model_fields_set}


class CatalogEntryResponse(BaseModel):
    success: bool = True
    download: CatalogEntryOut
    message: Optional[str] = None

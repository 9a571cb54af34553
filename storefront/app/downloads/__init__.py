"""Download catalog package: gated file entries and their download history."""

from .models import (
    AvailableDownloads,
    CatalogEntry,
    CatalogFacets,
    CatalogMetadata,
    Category,
    DownloadEvent,
    DownloadEventPage,
    DownloadGrant,
    FileType,
    LicenseHoldings,
    format_size,
)
from .service import DOWNLOAD_TOKEN_TTL, DownloadRepository, DownloadService

__all__ = [
    "AvailableDownloads",
    "CatalogEntry",
    "CatalogFacets",
    "CatalogMetadata",
    "Category",
    "DOWNLOAD_TOKEN_TTL",
    "DownloadEvent",
    "DownloadEventPage",
    "DownloadGrant",
    "DownloadRepository",
    "DownloadService",
    "FileType",
    "LicenseHoldings",
    "format_size",
]

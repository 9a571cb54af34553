"""Persistence layer for catalog entries and download events."""
from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from ..accounts.models import AccountRole
from ..database import PostgresRepository, json_param
from ..licenses.models import LicenseTier
from .models import (
    CatalogEntry,
    CatalogFacets,
    CatalogMetadata,
    Category,
    DownloadEvent,
    DownloadEventPage,
    FileType,
)

_ENTRY_COLUMNS = """
    id, file_name, original_name, file_type, category, version, file_size,
    file_path, download_url, download_count, is_active, requires_license,
    allowed_tiers, minimum_role, expires_at, metadata, created_at, updated_at
"""

_EVENT_COLUMNS = """
    id, account_id, entry_id, file_name, original_name, file_type, category,
    version, file_size, downloaded_at
"""


def _row_to_entry(row: dict) -> CatalogEntry:
    return CatalogEntry(
        id=row["id"],
        file_name=row["file_name"],
        original_name=row["original_name"],
        file_type=FileType(row["file_type"]),
        category=Category(row["category"]),
        version=row["version"],
        file_size=int(row["file_size"]),
        file_path=row["file_path"],
        download_url=row["download_url"],
        download_count=int(row["download_count"]),
        is_active=bool(row["is_active"]),
        requires_license=bool(row["requires_license"]),
        allowed_tiers=[LicenseTier(value) for value in row.get("allowed_tiers") or []],
        minimum_role=AccountRole(row["minimum_role"]),
        expires_at=row.get("expires_at"),
        metadata=CatalogMetadata.model_validate(row.get("metadata") or {}),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_event(row: dict) -> DownloadEvent:
    return DownloadEvent(
        id=row["id"],
        account_id=row["account_id"],
        entry_id=row["entry_id"],
        file_name=row["file_name"],
        original_name=row["original_name"],
        file_type=FileType(row["file_type"]),
        category=Category(row["category"]),
        version=row["version"],
        file_size=int(row["file_size"]),
        downloaded_at=row["downloaded_at"],
    )


class PostgresDownloadRepository(PostgresRepository):
    """Concrete repository persisting the download catalog in PostgreSQL."""

    def get_entry(self, entry_id: str) -> Optional[CatalogEntry]:
        with self._cursor() as cursor:
            cursor.execute(f"SELECT {_ENTRY_COLUMNS} FROM catalog_entries WHERE id = %s", (entry_id,))
            row = cursor.fetchone()
        return _row_to_entry(row) if row else None

    def save_entry(self, entry: CatalogEntry) -> CatalogEntry:
        with self._cursor() as cursor:
            cursor.execute(
                f"""
                INSERT INTO catalog_entries ({_ENTRY_COLUMNS})
                VALUES (%(id)s, %(file_name)s, %(original_name)s, %(file_type)s, %(category)s,
                        %(version)s, %(file_size)s, %(file_path)s, %(download_url)s,
                        %(download_count)s, %(is_active)s, %(requires_license)s,
                        %(allowed_tiers)s, %(minimum_role)s, %(expires_at)s, %(metadata)s,
                        %(created_at)s, %(updated_at)s)
                ON CONFLICT (id) DO UPDATE SET
                    file_name = EXCLUDED.file_name,
                    original_name = EXCLUDED.original_name,
                    file_type = EXCLUDED.file_type,
                    category = EXCLUDED.category,
                    version = EXCLUDED.version,
                    file_size = EXCLUDED.file_size,
                    file_path = EXCLUDED.file_path,
                    download_url = EXCLUDED.download_url,
                    is_active = EXCLUDED.is_active,
                    requires_license = EXCLUDED.requires_license,
                    allowed_tiers = EXCLUDED.allowed_tiers,
                    minimum_role = EXCLUDED.minimum_role,
                    expires_at = EXCLUDED.expires_at,
                    metadata = EXCLUDED.metadata,
                    updated_at = EXCLUDED.updated_at
                RETURNING {_ENTRY_COLUMNS}
                """,
                {
                    "id": entry.id,
                    "file_name": entry.file_name,
                    "original_name": entry.original_name,
                    "file_type": entry.file_type.value,
                    "category": entry.category.value,
                    "version": entry.version,
                    "file_size": entry.file_size,
                    "file_path": entry.file_path,
                    "download_url": entry.download_url,
                    "download_count": entry.download_count,
                    "is_active": entry.is_active,
                    "requires_license": entry.requires_license,
                    "allowed_tiers": [tier.value for tier in entry.allowed_tiers],
                    "minimum_role": entry.minimum_role.value,
                    "expires_at": entry.expires_at,
                    "metadata": json_param(entry.metadata.model_dump()),
                    "created_at": entry.created_at,
                    "updated_at": entry.updated_at,
                },
            )
            row = cursor.fetchone()
            if not row:
                raise RuntimeError("Failed to persist catalog entry")
            return _row_to_entry(row)

    def list_active(
        self,
        *,
        category: Optional[Category] = None,
        file_type: Optional[FileType] = None,
    ) -> Sequence[CatalogEntry]:
        clauses = ["is_active"]
        params: Dict[str, Any] = {}
        if category is not None:
            clauses.append("category = %(category)s")
            params["category"] = Category(category).value
        if file_type is not None:
            clauses.append("file_type = %(file_type)s")
            params["file_type"] = FileType(file_type).value

        with self._cursor() as cursor:
            cursor.execute(
                f"""
                SELECT {_ENTRY_COLUMNS}
                FROM catalog_entries
                WHERE {' AND '.join(clauses)}
                ORDER BY created_at DESC
                """,
                params,
            )
            rows = cursor.fetchall()
        return [_row_to_entry(row) for row in rows]

    def list_popular(self, limit: int) -> Sequence[CatalogEntry]:
        with self._cursor() as cursor:
            cursor.execute(
                f"""
                SELECT {_ENTRY_COLUMNS}
                FROM catalog_entries
                WHERE is_active
                ORDER BY download_count DESC, created_at DESC
                LIMIT %s
                """,
                (limit,),
            )
            rows = cursor.fetchall()
        return [_row_to_entry(row) for row in rows]

    def active_facets(self) -> CatalogFacets:
        with self._cursor() as cursor:
            cursor.execute("SELECT DISTINCT category FROM catalog_entries WHERE is_active ORDER BY category")
            categories = [Category(row["category"]) for row in cursor.fetchall()]
            cursor.execute("SELECT DISTINCT file_type FROM catalog_entries WHERE is_active ORDER BY file_type")
            file_types = [FileType(row["file_type"]) for row in cursor.fetchall()]
        return CatalogFacets(categories=categories, file_types=file_types)

    def increment_download_count(self, entry_id: str) -> Optional[CatalogEntry]:
        with self._cursor() as cursor:
            cursor.execute(
                f"""
                UPDATE catalog_entries
                SET download_count = download_count + 1
                WHERE id = %s
                RETURNING {_ENTRY_COLUMNS}
                """,
                (entry_id,),
            )
            row = cursor.fetchone()
        return _row_to_entry(row) if row else None

    def record_event(self, event: DownloadEvent) -> DownloadEvent:
        with self._cursor() as cursor:
            cursor.execute(
                f"""
                INSERT INTO download_events ({_EVENT_COLUMNS})
                VALUES (%(id)s, %(account_id)s, %(entry_id)s, %(file_name)s, %(original_name)s,
                        %(file_type)s, %(category)s, %(version)s, %(file_size)s, %(downloaded_at)s)
                RETURNING {_EVENT_COLUMNS}
                """,
                {
                    **event.model_dump(),
                    "file_type": event.file_type.value,
                    "category": event.category.value,
                },
            )
            row = cursor.fetchone()
        return _row_to_event(row)

    def list_events(self, account_id: str, *, offset: int = 0, limit: int = 10) -> DownloadEventPage:
        with self._cursor() as cursor:
            cursor.execute(
                "SELECT COUNT(*) AS total FROM download_events WHERE account_id = %s",
                (account_id,),
            )
            total = int(cursor.fetchone()["total"])
            cursor.execute(
                f"""
                SELECT {_EVENT_COLUMNS}
                FROM download_events
                WHERE account_id = %s
                ORDER BY downloaded_at DESC
                OFFSET %s
                LIMIT %s
                """,
                (account_id, offset, limit),
            )
            rows = cursor.fetchall()
        return DownloadEventPage(items=[_row_to_event(row) for row in rows], total=total)

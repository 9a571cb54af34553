"""Persistence layer for licenses."""
from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..database import PostgresRepository, json_param
from .models import (
    License,
    LicenseFeature,
    LicenseMetadata,
    LicensePage,
    LicenseRestrictions,
    LicenseStatus,
    LicenseTier,
    PaymentRecord,
    ProductType,
)

_COLUMNS = """
    id, license_key, account_id, product_name, product_type, tier, status,
    activated_at, expires_at, last_used_at, usage_count, max_usage, features,
    restrictions, payment, metadata, created_at, updated_at
"""


def _row_to_license(row: dict) -> License:
    payment = row.get("payment")
    return License(
        id=row["id"],
        license_key=row["license_key"],
        account_id=row["account_id"],
        product_name=row["product_name"],
        product_type=ProductType(row["product_type"]),
        tier=LicenseTier(row["tier"]),
        status=LicenseStatus(row["status"]),
        activated_at=row["activated_at"],
        expires_at=row["expires_at"],
        last_used_at=row.get("last_used_at"),
        usage_count=int(row["usage_count"]),
        max_usage=int(row["max_usage"]),
        features=tuple(LicenseFeature(**item) for item in row.get("features") or []),
        restrictions=LicenseRestrictions(**(row.get("restrictions") or {})),
        payment=PaymentRecord(**payment) if payment else None,
        metadata=LicenseMetadata(**(row.get("metadata") or {})),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class PostgresLicenseRepository(PostgresRepository):
    """Concrete repository persisting licenses in PostgreSQL."""

    def save_license(self, license: License) -> License:
        """Insert or update a license record."""

        with self._cursor() as cursor:
            cursor.execute(
                f"""
                INSERT INTO licenses ({_COLUMNS})
                VALUES (%(id)s, %(license_key)s, %(account_id)s, %(product_name)s,
                        %(product_type)s, %(tier)s, %(status)s, %(activated_at)s,
                        %(expires_at)s, %(last_used_at)s, %(usage_count)s, %(max_usage)s,
                        %(features)s, %(restrictions)s, %(payment)s, %(metadata)s,
                        %(created_at)s, %(updated_at)s)
                ON CONFLICT (id) DO UPDATE SET
                    status = EXCLUDED.status,
                    activated_at = EXCLUDED.activated_at,
                    expires_at = EXCLUDED.expires_at,
                    last_used_at = EXCLUDED.last_used_at,
                    max_usage = EXCLUDED.max_usage,
                    features = EXCLUDED.features,
                    restrictions = EXCLUDED.restrictions,
                    metadata = EXCLUDED.metadata,
                    updated_at = EXCLUDED.updated_at
                RETURNING {_COLUMNS}
                """,
                {
                    "id": license.id,
                    "license_key": license.license_key,
                    "account_id": license.account_id,
                    "product_name": license.product_name,
                    "product_type": license.product_type.value,
                    "tier": license.tier.value,
                    "status": license.status.value,
                    "activated_at": license.activated_at,
                    "expires_at": license.expires_at,
                    "last_used_at": license.last_used_at,
                    "usage_count": license.usage_count,
                    "max_usage": license.max_usage,
                    "features": json_param([feature.model_dump() for feature in license.features]),
                    "restrictions": json_param(license.restrictions.model_dump()),
                    "payment": json_param(license.payment.model_dump(mode="json")) if license.payment else None,
                    "metadata": json_param(license.metadata.model_dump()),
                    "created_at": license.created_at,
                    "updated_at": license.updated_at,
                },
            )
            row = cursor.fetchone()
            if not row:
                raise RuntimeError("Failed to persist license")
            return _row_to_license(row)

    def get_license(self, license_id: str) -> Optional[License]:
        with self._cursor() as cursor:
            cursor.execute(f"SELECT {_COLUMNS} FROM licenses WHERE id = %s", (license_id,))
            row = cursor.fetchone()
        return _row_to_license(row) if row else None

    def get_by_key(self, license_key: str) -> Optional[License]:
        with self._cursor() as cursor:
            cursor.execute(f"SELECT {_COLUMNS} FROM licenses WHERE license_key = %s", (license_key,))
            row = cursor.fetchone()
        return _row_to_license(row) if row else None

    def get_by_transaction(self, transaction_id: str) -> Optional[License]:
        with self._cursor() as cursor:
            cursor.execute(
                f"SELECT {_COLUMNS} FROM licenses WHERE payment->>'transaction_id' = %s",
                (transaction_id,),
            )
            row = cursor.fetchone()
        return _row_to_license(row) if row else None

    def record_usage(self, license_id: str, used_at: datetime) -> Optional[License]:
        """Increment the usage counter in place so concurrent calls all count."""

        with self._cursor() as cursor:
            cursor.execute(
                f"""
                UPDATE licenses
                SET usage_count = usage_count + 1,
                    last_used_at = %(used_at)s,
                    updated_at = %(used_at)s
                WHERE id = %(id)s
                RETURNING {_COLUMNS}
                """,
                {"id": license_id, "used_at": used_at},
            )
            row = cursor.fetchone()
        return _row_to_license(row) if row else None

    def _page(self, where: str, params: dict, *, offset: int, limit: int) -> LicensePage:
        with self._cursor() as cursor:
            cursor.execute(f"SELECT COUNT(*) AS total FROM licenses WHERE {where}", params)
            total = int(cursor.fetchone()["total"])
            cursor.execute(
                f"""
                SELECT {_COLUMNS}
                FROM licenses
                WHERE {where}
                ORDER BY created_at DESC
                OFFSET %(offset)s
                LIMIT %(limit)s
                """,
                {**params, "offset": offset, "limit": limit},
            )
            rows = cursor.fetchall()
        return LicensePage(items=[_row_to_license(row) for row in rows], total=total)

    def list_for_account(self, account_id: str, *, offset: int = 0, limit: int = 10) -> LicensePage:
        return self._page("account_id = %(account_id)s", {"account_id": account_id}, offset=offset, limit=limit)

    def list_paid_for_account(self, account_id: str, *, offset: int = 0, limit: int = 10) -> LicensePage:
        return self._page(
            "account_id = %(account_id)s AND payment ? 'transaction_id'",
            {"account_id": account_id},
            offset=offset,
            limit=limit,
        )

    def list_all_for_account(self, account_id: str) -> Sequence[License]:
        with self._cursor() as cursor:
            cursor.execute(
                f"SELECT {_COLUMNS} FROM licenses WHERE account_id = %s ORDER BY created_at DESC",
                (account_id,),
            )
            rows = cursor.fetchall()
        return [_row_to_license(row) for row in rows]

    def list_valid_for_account(self, account_id: str, now: datetime) -> Sequence[License]:
        with self._cursor() as cursor:
            cursor.execute(
                f"""
                SELECT {_COLUMNS}
                FROM licenses
                WHERE account_id = %s AND status = 'active' AND expires_at > %s
                ORDER BY created_at DESC
                """,
                (account_id, now),
            )
            rows = cursor.fetchall()
        return [_row_to_license(row) for row in rows]

    def list_expiring(self, now: datetime, until: datetime) -> Sequence[License]:
        with self._cursor() as cursor:
            cursor.execute(
                f"""
                SELECT {_COLUMNS}
                FROM licenses
                WHERE status = 'active' AND expires_at > %s AND expires_at <= %s
                ORDER BY expires_at ASC
                """,
                (now, until),
            )
            rows = cursor.fetchall()
        return [_row_to_license(row) for row in rows]

    def revoke_all_for_account(self, account_id: str, note: str, now: datetime) -> int:
        with self._cursor() as cursor:
            cursor.execute(
                """
                UPDATE licenses
                SET status = 'revoked',
                    metadata = jsonb_set(COALESCE(metadata, '{}'::jsonb), '{notes}', to_jsonb(%s::text)),
                    updated_at = %s
                WHERE account_id = %s
                """,
                (note, now, account_id),
            )
            return cursor.rowcount

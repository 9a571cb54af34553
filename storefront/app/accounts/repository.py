"""Persistence layer for accounts."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from psycopg2 import errors as pg_errors

from ..database import PostgresRepository, json_param
from .models import (
    Account,
    AccountPage,
    AccountPreferences,
    AccountRole,
    AccountStats,
    AccountSubscription,
    DuplicateAccountError,
)

_COLUMNS = """
    id, username, email, discord_id, password_hash, role, is_active,
    email_verified, avatar, bio, preferences, subscription, total_downloads,
    total_spent, joined_at, last_login, login_count, created_at, updated_at
"""


def _row_to_account(row: dict) -> Account:
    return Account(
        id=row["id"],
        username=row["username"],
        email=row["email"],
        discord_id=row["discord_id"],
        password_hash=row["password_hash"],
        role=AccountRole(row["role"]),
        is_active=bool(row["is_active"]),
        email_verified=bool(row["email_verified"]),
        avatar=row.get("avatar"),
        bio=row.get("bio") or "",
        preferences=AccountPreferences.model_validate(row.get("preferences") or {}),
        subscription=AccountSubscription.model_validate(row.get("subscription") or {}),
        stats=AccountStats(
            total_downloads=int(row["total_downloads"]),
            total_spent=float(row["total_spent"]),
            joined_at=row["joined_at"],
            last_login=row["last_login"],
            login_count=int(row["login_count"]),
        ),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class PostgresAccountRepository(PostgresRepository):
    """Concrete repository persisting accounts in PostgreSQL."""

    def get_account(self, account_id: str) -> Optional[Account]:
        with self._cursor() as cursor:
            cursor.execute(f"SELECT {_COLUMNS} FROM accounts WHERE id = %s", (account_id,))
            row = cursor.fetchone()
        return _row_to_account(row) if row else None

    def get_by_email(self, email: str) -> Optional[Account]:
        with self._cursor() as cursor:
            cursor.execute(f"SELECT {_COLUMNS} FROM accounts WHERE LOWER(email) = LOWER(%s)", (email,))
            row = cursor.fetchone()
        return _row_to_account(row) if row else None

    def find_conflict(
        self,
        *,
        username: Optional[str],
        email: Optional[str],
        discord_id: Optional[str],
        exclude_id: Optional[str] = None,
    ) -> Optional[Account]:
        """Return any other account already holding one of the given identities."""

        clauses: List[str] = []
        params: Dict[str, Any] = {"exclude_id": exclude_id}
        if username:
            clauses.append("LOWER(username) = LOWER(%(username)s)")
            params["username"] = username
        if email:
            clauses.append("LOWER(email) = LOWER(%(email)s)")
            params["email"] = email
        if discord_id:
            clauses.append("discord_id = %(discord_id)s")
            params["discord_id"] = discord_id
        if not clauses:
            return None

        with self._cursor() as cursor:
            cursor.execute(
                f"""
                SELECT {_COLUMNS}
                FROM accounts
                WHERE ({' OR '.join(clauses)})
                  AND (%(exclude_id)s IS NULL OR id <> %(exclude_id)s)
                LIMIT 1
                """,
                params,
            )
            row = cursor.fetchone()
        return _row_to_account(row) if row else None

    def save_account(self, account: Account) -> Account:
        """Insert or update an account record.

        Unique-index violations, e.g. from a registration racing past
        :meth:`find_conflict`, surface as :class:`DuplicateAccountError`.
        """

        try:
            return self._upsert(account)
        except pg_errors.UniqueViolation as exc:
            raise DuplicateAccountError("Account identity already taken") from exc

    def _upsert(self, account: Account) -> Account:
        with self._cursor() as cursor:
            cursor.execute(
                f"""
                INSERT INTO accounts ({_COLUMNS})
                VALUES (%(id)s, %(username)s, %(email)s, %(discord_id)s, %(password_hash)s,
                        %(role)s, %(is_active)s, %(email_verified)s, %(avatar)s, %(bio)s,
                        %(preferences)s, %(subscription)s, %(total_downloads)s,
                        %(total_spent)s, %(joined_at)s, %(last_login)s, %(login_count)s,
                        %(created_at)s, %(updated_at)s)
                ON CONFLICT (id) DO UPDATE SET
                    username = EXCLUDED.username,
                    email = EXCLUDED.email,
                    discord_id = EXCLUDED.discord_id,
                    password_hash = EXCLUDED.password_hash,
                    role = EXCLUDED.role,
                    is_active = EXCLUDED.is_active,
                    email_verified = EXCLUDED.email_verified,
                    avatar = EXCLUDED.avatar,
                    bio = EXCLUDED.bio,
                    preferences = EXCLUDED.preferences,
                    subscription = EXCLUDED.subscription,
                    updated_at = EXCLUDED.updated_at
                RETURNING {_COLUMNS}
                """,
                {
                    "id": account.id,
                    "username": account.username,
                    "email": account.email,
                    "discord_id": account.discord_id,
                    "password_hash": account.password_hash,
                    "role": account.role.value,
                    "is_active": account.is_active,
                    "email_verified": account.email_verified,
                    "avatar": account.avatar,
                    "bio": account.bio,
                    "preferences": json_param(account.preferences.model_dump(mode="json")),
                    "subscription": json_param(account.subscription.model_dump(mode="json")),
                    "total_downloads": account.stats.total_downloads,
                    "total_spent": account.stats.total_spent,
                    "joined_at": account.stats.joined_at,
                    "last_login": account.stats.last_login,
                    "login_count": account.stats.login_count,
                    "created_at": account.created_at,
                    "updated_at": account.updated_at,
                },
            )
            row = cursor.fetchone()
            if not row:
                raise RuntimeError("Failed to persist account")
            return _row_to_account(row)

    def list_accounts(
        self,
        *,
        offset: int,
        limit: int,
        search: Optional[str] = None,
        role: Optional[AccountRole] = None,
        is_active: Optional[bool] = None,
    ) -> AccountPage:
        clauses = ["TRUE"]
        params: Dict[str, Any] = {"offset": offset, "limit": limit}
        if search:
            clauses.append(
                "(username ILIKE %(search)s OR email ILIKE %(search)s OR discord_id ILIKE %(search)s)"
            )
            params["search"] = f"%{search}%"
        if role is not None:
            clauses.append("role = %(role)s")
            params["role"] = AccountRole(role).value
        if is_active is not None:
            clauses.append("is_active = %(is_active)s")
            params["is_active"] = is_active
        where = " AND ".join(clauses)

        with self._cursor() as cursor:
            cursor.execute(f"SELECT COUNT(*) AS total FROM accounts WHERE {where}", params)
            total = int(cursor.fetchone()["total"])
            cursor.execute(
                f"""
                SELECT {_COLUMNS}
                FROM accounts
                WHERE {where}
                ORDER BY created_at DESC
                OFFSET %(offset)s
                LIMIT %(limit)s
                """,
                params,
            )
            rows = cursor.fetchall()
        return AccountPage(items=[_row_to_account(row) for row in rows], total=total)

    def _increment(self, assignments: str, params: Dict[str, Any]) -> Optional[Account]:
        with self._cursor() as cursor:
            cursor.execute(
                f"""
                UPDATE accounts
                SET {assignments}, updated_at = NOW()
                WHERE id = %(id)s
                RETURNING {_COLUMNS}
                """,
                params,
            )
            row = cursor.fetchone()
        return _row_to_account(row) if row else None

    def add_spend(self, account_id: str, amount: float) -> Optional[Account]:
        return self._increment("total_spent = total_spent + %(amount)s", {"id": account_id, "amount": amount})

    def increment_downloads(self, account_id: str) -> Optional[Account]:
        return self._increment("total_downloads = total_downloads + 1", {"id": account_id})

    def record_login(self, account_id: str, logged_in_at: datetime) -> Optional[Account]:
        return self._increment(
            "last_login = %(logged_in_at)s, login_count = login_count + 1",
            {"id": account_id, "logged_in_at": logged_in_at},
        )

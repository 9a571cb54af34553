"""Account lifecycle: registration, login, profile and admin management."""
from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Mapping, Optional, Protocol, Sequence
from uuid import uuid4

from pydantic import BaseModel, ConfigDict

from .. import security
from ..licenses.models import License
from .models import (
    Account,
    AccountPage,
    AccountPreferences,
    AccountRole,
    AccountStats,
    AccountSubscription,
    DuplicateAccountError,
)

logger = logging.getLogger("accounts")

REGISTRATION_CONFLICT = "User already exists with this email, username, or Discord ID"
PROFILE_CONFLICT = "Username, email, or Discord ID already taken"
DELETE_CONFIRMATION = "DELETE"
ACCOUNT_DELETED_NOTE = "Account deleted"


class AccountRepository(Protocol):
    """Persistence operations required by the account service."""

    def get_account(self, account_id: str) -> Optional[Account]:
        ...

    def get_by_email(self, email: str) -> Optional[Account]:
        ...

    def find_conflict(
        self,
        *,
        username: Optional[str],
        email: Optional[str],
        discord_id: Optional[str],
        exclude_id: Optional[str] = None,
    ) -> Optional[Account]:
        ...

    def save_account(self, account: Account) -> Account:
        ...

    def list_accounts(
        self,
        *,
        offset: int,
        limit: int,
        search: Optional[str] = None,
        role: Optional[AccountRole] = None,
        is_active: Optional[bool] = None,
    ) -> AccountPage:
        ...

    def add_spend(self, account_id: str, amount: float) -> Optional[Account]:
        ...

    def increment_downloads(self, account_id: str) -> Optional[Account]:
        ...

    def record_login(self, account_id: str, logged_in_at: datetime) -> Optional[Account]:
        ...


class AccountLicenses(Protocol):
    """License operations the account service depends on."""

    def list_all_for_account(self, account_id: str) -> Sequence[License]:
        ...

    def revoke_all_for_account(self, account_id: str, note: str, now: datetime) -> int:
        ...


class AccountStatsSummary(BaseModel):
    stats: AccountStats
    active_licenses: int
    total_licenses: int
    subscription: AccountSubscription
    member_since: datetime
    has_active_subscription: bool

    model_config = ConfigDict(frozen=True)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _normalize_email(email: str) -> str:
    return email.strip().lower()


_dataclass_kwargs = {"slots": True} if sys.version_info >= (3, 10) else {}


@dataclass(**_dataclass_kwargs)
class AccountService:
    """Coordinates account persistence with password hashing and license revocation."""

    repository: AccountRepository
    licenses: AccountLicenses
    clock: Callable[[], datetime] = field(default=_utcnow)
    hash_password: Callable[[str], str] = field(default=security.hash_password)
    verify_password: Callable[[str, str], bool] = field(default=security.verify_password)

    def register(self, *, username: str, email: str, discord_id: str, password: str) -> Account:
        username = username.strip()
        email = _normalize_email(email)
        discord_id = discord_id.strip()

        if self.repository.find_conflict(username=username, email=email, discord_id=discord_id):
            raise DuplicateAccountError(REGISTRATION_CONFLICT)

        now = self.clock()
        account = Account(
            id=uuid4().hex,
            username=username,
            email=email,
            discord_id=discord_id,
            password_hash=self.hash_password(password),
            role=AccountRole.USER,
            stats=AccountStats(joined_at=now, last_login=now),
            created_at=now,
            updated_at=now,
        )
        try:
            stored = self.repository.save_account(account)
        except DuplicateAccountError as exc:
            raise DuplicateAccountError(REGISTRATION_CONFLICT) from exc
        logger.info("Registered account %s username=%s", stored.id, stored.username)
        return stored

    def authenticate(self, email: str, password: str) -> Account:
        account = self.repository.get_by_email(_normalize_email(email))
        if account is None:
            raise ValueError("Invalid credentials")
        if not account.is_active:
            raise ValueError("Account is deactivated")
        if not self.verify_password(password, account.password_hash):
            logger.info("Rejected login for account %s", account.id)
            raise ValueError("Invalid credentials")

        updated = self.repository.record_login(account.id, self.clock())
        return updated or account

    def get_account(self, account_id: str) -> Account:
        account = self.repository.get_account(account_id)
        if account is None:
            raise LookupError("User not found")
        return account

    def update_profile(
        self,
        account_id: str,
        *,
        username: Optional[str] = None,
        email: Optional[str] = None,
        discord_id: Optional[str] = None,
        avatar: Optional[str] = None,
        bio: Optional[str] = None,
    ) -> Account:
        if bio is not None and len(bio) > 500:
            raise ValueError("Bio must be 500 characters or fewer")
        account = self.get_account(account_id)
        email = _normalize_email(email) if email is not None else None

        if username is not None or email is not None or discord_id is not None:
            conflict = self.repository.find_conflict(
                username=username,
                email=email,
                discord_id=discord_id,
                exclude_id=account.id,
            )
            if conflict is not None:
                raise DuplicateAccountError(PROFILE_CONFLICT)

        changes = {
            key: value
            for key, value in {
                "username": username,
                "email": email,
                "discord_id": discord_id,
                "avatar": avatar,
                "bio": bio,
            }.items()
            if value is not None
        }
        changes["updated_at"] = self.clock()
        try:
            return self.repository.save_account(account.model_copy(update=changes))
        except DuplicateAccountError as exc:
            raise DuplicateAccountError(PROFILE_CONFLICT) from exc

    def update_preferences(self, account_id: str, updates: Mapping[str, object]) -> Account:
        """Merge a partial preferences document into the stored preferences."""

        account = self.get_account(account_id)
        current = account.preferences.model_dump()
        notifications = updates.get("notifications")
        if isinstance(notifications, Mapping):
            current["notifications"] = {**current["notifications"], **notifications}
        for key in ("theme", "language"):
            if updates.get(key) is not None:
                current[key] = updates[key]

        preferences = AccountPreferences.model_validate(current)
        return self.repository.save_account(
            account.model_copy(update={"preferences": preferences, "updated_at": self.clock()})
        )

    def get_stats(self, account_id: str) -> AccountStatsSummary:
        account = self.get_account(account_id)
        now = self.clock()
        licenses = self.licenses.list_all_for_account(account.id)
        return AccountStatsSummary(
            stats=account.stats,
            active_licenses=sum(1 for item in licenses if item.is_valid_at(now)),
            total_licenses=len(licenses),
            subscription=account.subscription,
            member_since=account.created_at,
            has_active_subscription=account.subscription.is_valid_at(now),
        )

    def delete_account(self, account_id: str, *, password: str, confirmation: str) -> Account:
        """Soft-delete an account and revoke every license it holds."""

        if confirmation != DELETE_CONFIRMATION:
            raise ValueError("Please type DELETE to confirm account deletion")
        account = self.get_account(account_id)
        if not self.verify_password(password, account.password_hash):
            raise ValueError("Invalid password")

        now = self.clock()
        tombstone = account.tombstoned().model_copy(update={"updated_at": now})
        stored = self.repository.save_account(tombstone)
        revoked = self.licenses.revoke_all_for_account(account.id, ACCOUNT_DELETED_NOTE, now)
        logger.warning("Deleted account %s revoked_licenses=%s", account.id, revoked)
        return stored

    def list_accounts(
        self,
        *,
        page: int = 1,
        limit: int = 20,
        search: Optional[str] = None,
        role: Optional[AccountRole] = None,
        is_active: Optional[bool] = None,
    ) -> AccountPage:
        page, limit = max(page, 1), max(limit, 1)
        return self.repository.list_accounts(
            offset=(page - 1) * limit,
            limit=limit,
            search=search or None,
            role=role,
            is_active=is_active,
        )

    def set_role(self, account_id: str, role: str) -> Account:
        try:
            new_role = AccountRole(role)
        except ValueError as exc:
            raise ValueError("Invalid role") from exc
        account = self.get_account(account_id)
        logger.info("Changing role of account %s from %s to %s", account.id, account.role.value, new_role.value)
        return self.repository.save_account(
            account.model_copy(update={"role": new_role, "updated_at": self.clock()})
        )

    def set_status(self, account_id: str, is_active: bool) -> Account:
        account = self.get_account(account_id)
        return self.repository.save_account(
            account.model_copy(update={"is_active": bool(is_active), "updated_at": self.clock()})
        )

    def add_spend(self, account_id: str, amount: float) -> Account:
        updated = self.repository.add_spend(account_id, amount)
        if updated is None:
            raise LookupError("User not found")
        return updated

    def increment_downloads(self, account_id: str) -> Account:
        updated = self.repository.increment_downloads(account_id)
        if updated is None:
            raise LookupError("User not found")
        return updated

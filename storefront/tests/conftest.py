from __future__ import annotations

import pathlib
import sys
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence
from uuid import uuid4

import pytest

ROOT = pathlib.Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from storefront.app.accounts import Account, AccountPage, AccountRole, AccountService, AccountStats  # noqa: E402
from storefront.app.accounts.service import AccountRepository  # noqa: E402
from storefront.app.licenses import License, LicensePage, LicenseService  # noqa: E402
from storefront.app.licenses.service import LicenseRepository  # noqa: E402

T0 = datetime(2024, 1, 1, 12, tzinfo=timezone.utc)


class FrozenClock:
    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class InMemoryAccountRepository(AccountRepository):
    def __init__(self) -> None:
        self.accounts: Dict[str, Account] = {}

    def get_account(self, account_id: str) -> Optional[Account]:
        return self.accounts.get(account_id)

    def get_by_email(self, email: str) -> Optional[Account]:
        return next((account for account in self.accounts.values() if account.email == email), None)

    def find_conflict(
        self,
        *,
        username: Optional[str],
        email: Optional[str],
        discord_id: Optional[str],
        exclude_id: Optional[str] = None,
    ) -> Optional[Account]:
        for account in self.accounts.values():
            if account.id == exclude_id:
                continue
            if (
                (username and account.username == username)
                or (email and account.email == email)
                or (discord_id and account.discord_id == discord_id)
            ):
                return account
        return None

    def save_account(self, account: Account) -> Account:
        self.accounts[account.id] = account
        return account

    def list_accounts(
        self,
        *,
        offset: int,
        limit: int,
        search: Optional[str] = None,
        role: Optional[AccountRole] = None,
        is_active: Optional[bool] = None,
    ) -> AccountPage:
        items = sorted(self.accounts.values(), key=lambda account: account.created_at, reverse=True)
        if search:
            needle = search.lower()
            items = [
                account
                for account in items
                if needle in account.username.lower()
                or needle in account.email.lower()
                or needle in account.discord_id.lower()
            ]
        if role is not None:
            items = [account for account in items if account.role == role]
        if is_active is not None:
            items = [account for account in items if account.is_active == is_active]
        return AccountPage(items=items[offset : offset + limit], total=len(items))

    def _update_stats(self, account_id: str, **changes) -> Optional[Account]:
        account = self.accounts.get(account_id)
        if account is None:
            return None
        stats = account.stats.model_copy(update=changes)
        return self.save_account(account.model_copy(update={"stats": stats}))

    def add_spend(self, account_id: str, amount: float) -> Optional[Account]:
        account = self.accounts.get(account_id)
        if account is None:
            return None
        return self._update_stats(account_id, total_spent=account.stats.total_spent + amount)

    def increment_downloads(self, account_id: str) -> Optional[Account]:
        account = self.accounts.get(account_id)
        if account is None:
            return None
        return self._update_stats(account_id, total_downloads=account.stats.total_downloads + 1)

    def record_login(self, account_id: str, logged_in_at: datetime) -> Optional[Account]:
        account = self.accounts.get(account_id)
        if account is None:
            return None
        return self._update_stats(
            account_id,
            last_login=logged_in_at,
            login_count=account.stats.login_count + 1,
        )


class InMemoryLicenseRepository(LicenseRepository):
    def __init__(self) -> None:
        self.licenses: Dict[str, License] = {}

    def save_license(self, license: License) -> License:
        self.licenses[license.id] = license
        return license

    def get_license(self, license_id: str) -> Optional[License]:
        return self.licenses.get(license_id)

    def get_by_key(self, license_key: str) -> Optional[License]:
        return next((item for item in self.licenses.values() if item.license_key == license_key), None)

    def get_by_transaction(self, transaction_id: str) -> Optional[License]:
        return next(
            (
                item
                for item in self.licenses.values()
                if item.payment is not None and item.payment.transaction_id == transaction_id
            ),
            None,
        )

    def record_usage(self, license_id: str, used_at: datetime) -> Optional[License]:
        license = self.licenses.get(license_id)
        if license is None:
            return None
        return self.save_license(license.with_usage(used_at))

    def _owned(self, account_id: str) -> List[License]:
        return sorted(
            (item for item in self.licenses.values() if item.account_id == account_id),
            key=lambda item: item.created_at,
            reverse=True,
        )

    def list_for_account(self, account_id: str, *, offset: int = 0, limit: int = 10) -> LicensePage:
        owned = self._owned(account_id)
        return LicensePage(items=owned[offset : offset + limit], total=len(owned))

    def list_all_for_account(self, account_id: str) -> Sequence[License]:
        return self._owned(account_id)

    def list_valid_for_account(self, account_id: str, now: datetime) -> Sequence[License]:
        return [item for item in self._owned(account_id) if item.is_valid_at(now)]

    def list_paid_for_account(self, account_id: str, *, offset: int = 0, limit: int = 10) -> LicensePage:
        paid = [item for item in self._owned(account_id) if item.payment is not None]
        return LicensePage(items=paid[offset : offset + limit], total=len(paid))

    def list_expiring(self, now: datetime, until: datetime) -> Sequence[License]:
        return [
            item
            for item in self.licenses.values()
            if item.status.value == "active" and now < item.expires_at <= until
        ]

    def revoke_all_for_account(self, account_id: str, note: str, now: datetime) -> int:
        owned = self._owned(account_id)
        for item in owned:
            self.save_license(item.revoked(note, now))
        return len(owned)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def account_repository() -> InMemoryAccountRepository:
    return InMemoryAccountRepository()


@pytest.fixture
def license_repository() -> InMemoryLicenseRepository:
    return InMemoryLicenseRepository()


@pytest.fixture
def license_service(license_repository, account_repository, clock) -> LicenseService:
    return LicenseService(repository=license_repository, accounts=account_repository, clock=clock)


@pytest.fixture
def account_service(account_repository, license_repository, clock) -> AccountService:
    return AccountService(
        repository=account_repository,
        licenses=license_repository,
        clock=clock,
        hash_password=lambda password: f"hashed:{password}",
        verify_password=lambda password, password_hash: password_hash == f"hashed:{password}",
    )


@pytest.fixture
def make_account(account_repository, clock):
    def _make(username: str = "alice", role: AccountRole = AccountRole.USER, **overrides) -> Account:
        account = Account(
            id=overrides.pop("id", uuid4().hex),
            username=username,
            email=f"{username}@example.com",
            discord_id=f"{username}#0001",
            password_hash="hashed:secret123",
            role=role,
            stats=AccountStats(joined_at=clock(), last_login=clock()),
            created_at=clock(),
            updated_at=clock(),
            **overrides,
        )
        return account_repository.save_account(account)

    return _make

"""Transactional scope shared by the license and account writes of a purchase."""
from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, Optional, Protocol

from ..accounts.models import Account
from ..accounts.repository import PostgresAccountRepository
from ..database import managed_connection
from ..licenses.repository import PostgresLicenseRepository
from ..licenses.service import LicenseRepository


class PurchaseAccounts(Protocol):
    def get_account(self, account_id: str) -> Optional[Account]:
        ...

    def save_account(self, account: Account) -> Account:
        ...

    def add_spend(self, account_id: str, amount: float) -> Optional[Account]:
        ...


class PaymentUnitOfWork(Protocol):
    """Repositories bound to a single transaction."""

    licenses: LicenseRepository
    accounts: PurchaseAccounts


@dataclass
class PostgresPaymentUnitOfWork:
    licenses: PostgresLicenseRepository
    accounts: PostgresAccountRepository


@contextmanager
def postgres_unit_of_work(conn: Optional[Any] = None) -> Iterator[PostgresPaymentUnitOfWork]:
    """Yield repositories sharing one connection; commit on success, roll back on error."""

    with managed_connection(conn) as (connection, _managed):
        yield PostgresPaymentUnitOfWork(
            licenses=PostgresLicenseRepository(conn=connection),
            accounts=PostgresAccountRepository(conn=connection),
        )

"""Application wiring for the account service."""
from __future__ import annotations

from functools import lru_cache

from ..accounts import AccountService
from ..accounts.repository import PostgresAccountRepository
from ..licenses.repository import PostgresLicenseRepository


@lru_cache(maxsize=1)
def get_account_service() -> AccountService:
    return AccountService(
        repository=PostgresAccountRepository(),
        licenses=PostgresLicenseRepository(),
    )


__all__ = ["get_account_service"]

"""Application wiring for the license service."""
from __future__ import annotations

from functools import lru_cache

from ..accounts.repository import PostgresAccountRepository
from ..licenses import LicenseService
from ..licenses.repository import PostgresLicenseRepository


@lru_cache(maxsize=1)
def get_license_service() -> LicenseService:
    return LicenseService(
        repository=PostgresLicenseRepository(),
        accounts=PostgresAccountRepository(),
    )


__all__ = ["get_license_service"]

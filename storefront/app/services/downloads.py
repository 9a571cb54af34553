"""Application wiring for the download service."""
from __future__ import annotations

from datetime import timedelta
from functools import lru_cache
from typing import Any, Mapping

from ...app_context import get_config
from .. import security
from ..accounts.repository import PostgresAccountRepository
from ..downloads import DownloadService
from ..downloads.repository import PostgresDownloadRepository
from ..licenses.repository import PostgresLicenseRepository
from ..licenses.service import LicenseService


def sign_download_token(claims: Mapping[str, Any], expires_in: timedelta) -> str:
    return security.create_token(claims, secret=get_config().jwt_secret_key, expires_delta=expires_in)


@lru_cache(maxsize=1)
def get_download_service() -> DownloadService:
    accounts = PostgresAccountRepository()
    licenses = LicenseService(repository=PostgresLicenseRepository(), accounts=accounts)
    return DownloadService(
        repository=PostgresDownloadRepository(),
        licenses=licenses,
        accounts=accounts,
        sign_token=sign_download_token,
    )


__all__ = ["get_download_service", "sign_download_token"]

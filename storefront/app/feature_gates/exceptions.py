"""Errors raised when a role or license does not unlock a resource."""
from __future__ import annotations

from typing import Any, Dict, Iterable, Optional

from fastapi import HTTPException, status


class FeatureGateError(Exception):
    """Base gating failure; ``code`` is the machine-readable reason."""

    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    @property
    def payload(self) -> Dict[str, Any]:
        return {"error": self.message, "code": self.code}

    def to_http_exception(self) -> HTTPException:
        return HTTPException(status_code=self.status_code, detail=self.payload)


class DownloadDeniedError(FeatureGateError):
    """A catalog entry refused the account's role or its valid licenses."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        minimum_role: str,
        allowed_tiers: Iterable[str] = (),
        product_type: Optional[str] = None,
    ) -> None:
        super().__init__(code, message)
        self.minimum_role = minimum_role
        self.allowed_tiers = tuple(allowed_tiers)
        self.product_type = product_type

    @property
    def payload(self) -> Dict[str, Any]:
        data = super().payload
        data["minimum_role"] = self.minimum_role
        if self.allowed_tiers or self.product_type:
            data["accepted_licenses"] = {"tiers": list(self.allowed_tiers), "product_type": self.product_type}
        return data


class FeatureNotLicensedError(FeatureGateError):
    """The license exists and is valid but lacks an enabled feature."""

    def __init__(self, feature: str, tier: str, *, code: str = "feature_required", message: Optional[str] = None) -> None:
        super().__init__(code, message or f"Feature '{feature}' is not included in this license.")
        self.missing_feature = feature
        self.tier = tier

    @property
    def payload(self) -> Dict[str, Any]:
        return {**super().payload, "missing_feature": self.missing_feature, "tier": self.tier}

"""Helpers for enforcing license feature checks on API and service layers."""
from __future__ import annotations

from typing import Optional

from ..licenses.models import License
from .exceptions import FeatureNotLicensedError


def require_feature(
    license: License,
    feature: str,
    *,
    error_code: str = "feature_required",
    message: Optional[str] = None,
) -> None:
    """Ensure ``license`` grants an enabled ``feature`` before proceeding.

    Parameters
    ----------
    license:
        The license whose feature list is consulted.
    feature:
        Display name of the feature that must be present and enabled.
    error_code:
        Optional override for the surfaced error code when the feature is
        missing. Defaults to ``"feature_required"``.
    message:
        Optional human-friendly message explaining the failure. If omitted, a
        default message mentioning the missing feature is used.
    """

    if license.has_feature(feature):
        return

    raise FeatureNotLicensedError(feature, license.tier.value, code=error_code, message=message)

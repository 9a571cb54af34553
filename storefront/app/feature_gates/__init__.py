"""Gating utilities deciding access to catalog entries and license features."""
from .access import (
    INSUFFICIENT_ROLE,
    LICENSE_REQUIRED,
    AccessDecision,
    check_access,
    licenses_permit,
    require_access,
    role_permits,
)
from .enforcement import require_feature
from .exceptions import DownloadDeniedError, FeatureGateError, FeatureNotLicensedError

__all__ = [
    "AccessDecision",
    "DownloadDeniedError",
    "FeatureGateError",
    "FeatureNotLicensedError",
    "INSUFFICIENT_ROLE",
    "LICENSE_REQUIRED",
    "check_access",
    "licenses_permit",
    "require_access",
    "require_feature",
    "role_permits",
]

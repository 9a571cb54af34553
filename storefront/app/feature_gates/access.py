"""Role and license checks deciding whether an account may fetch a catalog entry."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Protocol, Sequence

from ..accounts.models import AccountRole
from ..licenses.models import License, LicenseTier
from .exceptions import DownloadDeniedError

INSUFFICIENT_ROLE = "insufficient_role"
LICENSE_REQUIRED = "license_required"

_MESSAGES = {
    INSUFFICIENT_ROLE: "Insufficient privileges",
    LICENSE_REQUIRED: "Valid license required for this download",
}


class GatedResource(Protocol):
    """Fields of a catalog entry the gate inspects."""

    minimum_role: AccountRole
    requires_license: bool
    allowed_tiers: Sequence[LicenseTier]
    file_type: object


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    code: Optional[str] = None

    @property
    def message(self) -> Optional[str]:
        return _MESSAGES.get(self.code) if self.code else None


ALLOWED = AccessDecision(allowed=True)


def role_permits(role: AccountRole, minimum: AccountRole) -> bool:
    return AccountRole(role).meets(AccountRole(minimum))


def licenses_permit(resource: GatedResource, licenses: Iterable[License]) -> bool:
    """Return whether any license matches the resource by tier or by product.

    Callers pass only licenses that are currently valid.
    """

    allowed_tiers = {LicenseTier(tier) for tier in resource.allowed_tiers}
    file_type = getattr(resource.file_type, "value", resource.file_type)
    for license in licenses:
        if license.tier in allowed_tiers or license.product_type.value == file_type:
            return True
    return False


def check_access(role: AccountRole, resource: GatedResource, licenses: Iterable[License]) -> AccessDecision:
    if not role_permits(role, resource.minimum_role):
        return AccessDecision(allowed=False, code=INSUFFICIENT_ROLE)
    if not resource.requires_license:
        return ALLOWED
    if licenses_permit(resource, licenses):
        return ALLOWED
    return AccessDecision(allowed=False, code=LICENSE_REQUIRED)


def require_access(role: AccountRole, resource: GatedResource, licenses: Iterable[License]) -> None:
    """Raise :class:`DownloadDeniedError` unless ``check_access`` allows the request."""

    decision = check_access(role, resource, licenses)
    if decision.allowed:
        return
    minimum_role = AccountRole(resource.minimum_role).value
    if decision.code == INSUFFICIENT_ROLE:
        raise DownloadDeniedError(INSUFFICIENT_ROLE, _MESSAGES[INSUFFICIENT_ROLE], minimum_role=minimum_role)
    raise DownloadDeniedError(
        LICENSE_REQUIRED,
        _MESSAGES[LICENSE_REQUIRED],
        minimum_role=minimum_role,
        allowed_tiers=[LicenseTier(tier).value for tier in resource.allowed_tiers],
        product_type=getattr(resource.file_type, "value", resource.file_type),
    )

"""Service coordinating the license lifecycle."""
from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Protocol, Sequence
from uuid import uuid4

from ..accounts.models import Account, AccountSubscription, SubscriptionPlan, SubscriptionState
from .catalog import PRODUCT_CATALOG, product_name_for
from .models import (
    ExpiringLicense,
    License,
    LicenseFeature,
    LicenseMetadata,
    LicenseOwner,
    LicensePage,
    LicenseStatus,
    LicenseTier,
    LicenseVerification,
    PaymentRecord,
    ProductType,
    expiry_for_tier,
)

logger = logging.getLogger("licenses")


class LicenseRepository(Protocol):
    """Persistence operations required by the license service."""

    def save_license(self, license: License) -> License:
        ...

    def get_license(self, license_id: str) -> Optional[License]:
        ...

    def get_by_key(self, license_key: str) -> Optional[License]:
        ...

    def get_by_transaction(self, transaction_id: str) -> Optional[License]:
        ...

    def record_usage(self, license_id: str, used_at: datetime) -> Optional[License]:
        ...

    def list_for_account(self, account_id: str, *, offset: int = 0, limit: int = 10) -> LicensePage:
        ...

    def list_all_for_account(self, account_id: str) -> Sequence[License]:
        ...

    def list_valid_for_account(self, account_id: str, now: datetime) -> Sequence[License]:
        ...

    def list_paid_for_account(self, account_id: str, *, offset: int = 0, limit: int = 10) -> LicensePage:
        ...

    def list_expiring(self, now: datetime, until: datetime) -> Sequence[License]:
        ...

    def revoke_all_for_account(self, account_id: str, note: str, now: datetime) -> int:
        ...


class AccountStore(Protocol):
    """Subset of account persistence the license service depends on."""

    def get_account(self, account_id: str) -> Optional[Account]:
        ...

    def save_account(self, account: Account) -> Account:
        ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_license_key() -> str:
    """Return a key made of two independent random segments."""

    return f"BB-{uuid4().hex[:8].upper()}-{uuid4().hex[:8].upper()}"


def features_for(product_type: ProductType, tier: LicenseTier) -> tuple[LicenseFeature, ...]:
    definition = PRODUCT_CATALOG.get(product_type)
    if definition is None:
        return ()
    return definition.features_for_tier(tier)


def build_license(
    *,
    account_id: str,
    product_type: ProductType,
    tier: LicenseTier,
    now: datetime,
    payment: Optional[PaymentRecord] = None,
    expires_at: Optional[datetime] = None,
    purchase_source: Optional[str] = None,
    license_key: Optional[str] = None,
) -> License:
    """Construct a fully populated license with every derived field set."""

    return License(
        id=uuid4().hex,
        license_key=license_key or generate_license_key(),
        account_id=account_id,
        product_name=product_name_for(product_type),
        product_type=product_type,
        tier=tier,
        status=LicenseStatus.ACTIVE,
        activated_at=now,
        expires_at=expires_at or expiry_for_tier(tier, now),
        last_used_at=now,
        features=features_for(product_type, tier),
        payment=payment,
        metadata=LicenseMetadata(purchase_source=purchase_source),
        created_at=now,
        updated_at=now,
    )


def subscription_for_tier(tier: LicenseTier, now: datetime, current: AccountSubscription) -> AccountSubscription:
    """Return the account subscription implied by purchasing a ``tier`` license."""

    if tier == LicenseTier.LIFETIME:
        return current.model_copy(
            update={
                "plan": SubscriptionPlan.LIFETIME,
                "status": SubscriptionState.ACTIVE,
                "start_date": now,
                "end_date": None,
            }
        )
    days = 30 if tier == LicenseTier.MONTHLY else 365
    return current.model_copy(
        update={
            "plan": SubscriptionPlan.PREMIUM,
            "status": SubscriptionState.ACTIVE,
            "start_date": now,
            "end_date": now + timedelta(days=days),
        }
    )


_dataclass_kwargs = {"slots": True} if sys.version_info >= (3, 10) else {}


@dataclass(**_dataclass_kwargs)
class LicenseService:
    """Issues, verifies and transitions licenses."""

    repository: LicenseRepository
    accounts: AccountStore
    clock: Callable[[], datetime] = field(default=_utcnow)

    def issue(
        self,
        account: Account,
        product_type: ProductType,
        tier: LicenseTier,
        *,
        payment: Optional[PaymentRecord] = None,
        expires_at: Optional[datetime] = None,
        purchase_source: Optional[str] = "website",
    ) -> License:
        now = self.clock()
        license = build_license(
            account_id=account.id,
            product_type=product_type,
            tier=tier,
            now=now,
            payment=payment,
            expires_at=expires_at,
            purchase_source=purchase_source,
        )
        stored = self.repository.save_license(license)

        if tier != LicenseTier.TRIAL:
            subscription = subscription_for_tier(tier, now, account.subscription)
            self.accounts.save_account(
                account.model_copy(update={"subscription": subscription, "updated_at": now})
            )

        logger.info(
            "Issued license %s product=%s tier=%s account=%s",
            stored.license_key,
            product_type.value,
            tier.value,
            account.id,
        )
        return stored

    def check_validity(self, license_key: str) -> LicenseVerification:
        """Report whether ``license_key`` is currently valid without recording usage."""

        license = self.repository.get_by_key(license_key)
        if license is None:
            return LicenseVerification(valid=False, reason="not_found")

        if not license.is_valid_at(self.clock()):
            reason = "expired" if license.status == LicenseStatus.ACTIVE else license.status.value
            return LicenseVerification(valid=False, license=license, reason=reason)

        return LicenseVerification(valid=True, license=license, owner=self._owner(license.account_id))

    def verify(self, license_key: str) -> LicenseVerification:
        """Check validity and count the call as one use of a valid license."""

        result = self.check_validity(license_key)
        if not result.valid or result.license is None:
            return result

        updated = self.repository.record_usage(result.license.id, self.clock())
        if updated is None:
            return LicenseVerification(valid=False, reason="not_found")
        return result.model_copy(update={"license": updated})

    def record_usage(self, license_key: str) -> License:
        license = self._require_by_key(license_key)
        updated = self.repository.record_usage(license.id, self.clock())
        if updated is None:
            raise LookupError("License not found")
        return updated

    def activate(self, license_key: str, requesting_account_id: str) -> License:
        license = self._require_by_key(license_key, message="Invalid license key")
        if license.account_id != requesting_account_id:
            raise PermissionError("License belongs to another user")
        if license.status == LicenseStatus.ACTIVE:
            raise ValueError("License is already active")

        updated = self.repository.save_license(license.activated(self.clock()))
        logger.info("Activated license %s account=%s", license.license_key, requesting_account_id)
        return updated

    def extend(self, license_id: str, days: int) -> License:
        if days is None or days <= 0:
            raise ValueError("Valid number of days required")
        license = self._require(license_id)
        updated = self.repository.save_license(license.extended(days, self.clock()))
        logger.info("Extended license %s by %s days", license.license_key, days)
        return updated

    def revoke(self, license_id: str, reason: str = "") -> License:
        license = self._require(license_id)
        updated = self.repository.save_license(license.revoked(reason or "", self.clock()))
        logger.warning("Revoked license %s reason=%s", license.license_key, reason)
        return updated

    def revoke_all_for_account(self, account_id: str, note: str) -> int:
        return self.repository.revoke_all_for_account(account_id, note, self.clock())

    def find_expiring_within(self, days: int = 7) -> List[ExpiringLicense]:
        now = self.clock()
        licenses = sorted(
            self.repository.list_expiring(now, now + timedelta(days=days)),
            key=lambda item: item.expires_at,
        )
        return [
            ExpiringLicense(license=license, owner=self._owner(license.account_id))
            for license in licenses
        ]

    def list_for_account(self, account_id: str, *, page: int = 1, limit: int = 10) -> LicensePage:
        page, limit = max(page, 1), max(limit, 1)
        return self.repository.list_for_account(account_id, offset=(page - 1) * limit, limit=limit)

    def list_valid_for_account(self, account_id: str) -> Sequence[License]:
        return self.repository.list_valid_for_account(account_id, self.clock())

    def get_for_account(self, license_id: str, account_id: str) -> License:
        license = self.repository.get_license(license_id)
        if license is None or license.account_id != account_id:
            raise LookupError("License not found")
        return license

    def _require(self, license_id: str) -> License:
        license = self.repository.get_license(license_id)
        if license is None:
            raise LookupError("License not found")
        return license

    def _require_by_key(self, license_key: str, *, message: str = "License key not found") -> License:
        license = self.repository.get_by_key(license_key)
        if license is None:
            raise LookupError(message)
        return license

    def _owner(self, account_id: str) -> Optional[LicenseOwner]:
        account = self.accounts.get_account(account_id)
        if account is None:
            return None
        return LicenseOwner(username=account.username, discord_id=account.discord_id)

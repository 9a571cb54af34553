"""Domain models for issued licenses."""
from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProductType(str, Enum):
    """Products a license can be issued for."""

    SELFBOT = "selfbot"
    ADMIN_TOOLS = "admin-tools"
    MODERATION = "moderation"
    ANALYTICS = "analytics"


class LicenseTier(str, Enum):
    """License duration classes."""

    TRIAL = "trial"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    LIFETIME = "lifetime"


class LicenseStatus(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    REVOKED = "revoked"
    SUSPENDED = "suspended"


UNLIMITED = -1

LIFETIME_EXPIRY = datetime(2099, 12, 31, tzinfo=timezone.utc)

TIER_DURATIONS: Dict[LicenseTier, timedelta] = {
    LicenseTier.TRIAL: timedelta(days=7),
    LicenseTier.MONTHLY: timedelta(days=30),
    LicenseTier.YEARLY: timedelta(days=365),
}


def expiry_for_tier(tier: LicenseTier, issued_at: datetime) -> datetime:
    """Compute the expiry of a license of ``tier`` issued at ``issued_at``."""

    if tier == LicenseTier.LIFETIME:
        return LIFETIME_EXPIRY
    return issued_at + TIER_DURATIONS[tier]


class LicenseFeature(BaseModel):
    """A named capability granted by a license."""

    name: str
    enabled: bool = True
    limit: int = UNLIMITED

    model_config = ConfigDict(frozen=True)


class LicenseRestrictions(BaseModel):
    ip_allowlist: List[str] = Field(default_factory=list)
    discord_server_ids: List[str] = Field(default_factory=list)
    max_concurrent_sessions: int = Field(default=1, ge=1)

    model_config = ConfigDict(frozen=True)


class PaymentRecord(BaseModel):
    """Payment details captured when a license was purchased."""

    transaction_id: str
    amount: float = Field(ge=0)
    currency: str = "USD"
    method: str = "stripe"
    paid_at: Optional[datetime] = None

    model_config = ConfigDict(frozen=True)

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, value: str) -> str:
        return value.upper()


class LicenseMetadata(BaseModel):
    purchase_source: Optional[str] = None
    referral_code: Optional[str] = None
    notes: Optional[str] = None
    tags: List[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class License(BaseModel):
    """An issued license for one product and tier."""

    id: str
    license_key: str
    account_id: str
    product_name: str
    product_type: ProductType
    tier: LicenseTier
    status: LicenseStatus = LicenseStatus.ACTIVE
    activated_at: datetime
    expires_at: datetime
    last_used_at: Optional[datetime] = None
    usage_count: int = Field(default=0, ge=0)
    max_usage: int = UNLIMITED
    features: Sequence[LicenseFeature] = Field(default_factory=tuple)
    restrictions: LicenseRestrictions = Field(default_factory=LicenseRestrictions)
    payment: Optional[PaymentRecord] = None
    metadata: LicenseMetadata = Field(default_factory=LicenseMetadata)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(frozen=True)

    def is_valid_at(self, now: datetime) -> bool:
        return self.status == LicenseStatus.ACTIVE and now < self.expires_at

    @property
    def is_valid(self) -> bool:
        return self.is_valid_at(datetime.now(timezone.utc))

    def days_remaining_at(self, now: datetime) -> int:
        if self.status != LicenseStatus.ACTIVE:
            return 0
        remaining = (self.expires_at - now).total_seconds() / 86400
        return max(0, math.ceil(remaining))

    @property
    def usage_percentage(self) -> float:
        if self.max_usage == UNLIMITED or self.max_usage <= 0:
            return 0.0
        return min(100.0, self.usage_count / self.max_usage * 100)

    def _feature(self, name: str) -> Optional[LicenseFeature]:
        for feature in self.features:
            if feature.name == name:
                return feature
        return None

    def has_feature(self, name: str) -> bool:
        feature = self._feature(name)
        return bool(feature and feature.enabled)

    def feature_limit(self, name: str) -> int:
        feature = self._feature(name)
        return feature.limit if feature else 0

    def activated(self, now: datetime) -> "License":
        return self.model_copy(
            update={"status": LicenseStatus.ACTIVE, "activated_at": now, "updated_at": now}
        )

    def revoked(self, reason: str, now: datetime) -> "License":
        metadata = self.metadata.model_copy(update={"notes": f"Revoked: {reason}"})
        return self.model_copy(
            update={"status": LicenseStatus.REVOKED, "metadata": metadata, "updated_at": now}
        )

    def extended(self, days: int, now: datetime) -> "License":
        return self.model_copy(
            update={"expires_at": self.expires_at + timedelta(days=days), "updated_at": now}
        )

    def with_usage(self, now: datetime) -> "License":
        return self.model_copy(
            update={"usage_count": self.usage_count + 1, "last_used_at": now, "updated_at": now}
        )


class LicenseOwner(BaseModel):
    """Minimal projection of the account that owns a license."""

    username: str
    discord_id: str

    model_config = ConfigDict(frozen=True)


class LicenseVerification(BaseModel):
    """Outcome of verifying a license key."""

    valid: bool
    license: Optional[License] = None
    owner: Optional[LicenseOwner] = None
    reason: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @property
    def found(self) -> bool:
        return self.license is not None


class ExpiringLicense(BaseModel):
    license: License
    owner: Optional[LicenseOwner] = None

    model_config = ConfigDict(frozen=True)


class LicensePage(BaseModel):
    items: List[License]
    total: int

    model_config = ConfigDict(frozen=True)

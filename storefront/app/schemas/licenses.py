"""API schemas for license endpoints."""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from ..licenses import (
    ExpiringLicense,
    License,
    LicenseFeature,
    LicenseMetadata,
    LicenseOwner,
    LicenseRestrictions,
    LicenseStatus,
    LicenseTier,
    LicenseVerification,
    PaymentRecord,
    ProductType,
)
from .common import Pagination


class LicenseOut(BaseModel):
    id: str
    license_key: str = Field(alias="licenseKey")
    product_name: str = Field(alias="productName")
    product_type: ProductType = Field(alias="productType")
    license_type: LicenseTier = Field(alias="licenseType")
    status: LicenseStatus
    activated_at: datetime = Field(alias="activatedAt")
    expires_at: datetime = Field(alias="expiresAt")
    last_used_at: Optional[datetime] = Field(default=None, alias="lastUsed")
    usage_count: int = Field(alias="usageCount")
    max_usage: int = Field(alias="maxUsage")
    features: List[LicenseFeature]
    payment: Optional[PaymentRecord] = None
    metadata: LicenseMetadata
    is_active: bool = Field(alias="isActive")
    days_remaining: int = Field(alias="daysRemaining")
    created_at: datetime = Field(alias="createdAt")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_license(cls, license: License, now: datetime) -> "LicenseOut":
        return cls(
            id=license.id,
            license_key=license.license_key,
            product_name=license.product_name,
            product_type=license.product_type,
            license_type=license.tier,
            status=license.status,
            activated_at=license.activated_at,
            expires_at=license.expires_at,
            last_used_at=license.last_used_at,
            usage_count=license.usage_count,
            max_usage=license.max_usage,
            features=list(license.features),
            payment=license.payment,
            metadata=license.metadata,
            is_active=license.is_valid_at(now),
            days_remaining=license.days_remaining_at(now),
            created_at=license.created_at,
        )

    @classmethod
    def from_licenses(cls, licenses: Sequence[License], now: datetime) -> List["LicenseOut"]:
        return [cls.from_license(license, now) for license in licenses]


class LicenseListResponse(BaseModel):
    success: bool = True
    licenses: List[LicenseOut]
    pagination: Pagination


class LicenseResponse(BaseModel):
    success: bool = True
    license: LicenseOut
    message: Optional[str] = None


class LicenseVerifyRequest(BaseModel):
    license_key: str = Field(alias="licenseKey", min_length=1)
    feature: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class LicenseOwnerOut(BaseModel):
    username: str
    discord_id: str = Field(alias="discordId")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_owner(cls, owner: Optional[LicenseOwner]) -> Optional["LicenseOwnerOut"]:
        if owner is None:
            return None
        return cls(username=owner.username, discord_id=owner.discord_id)


class VerifiedLicense(BaseModel):
    key: str
    status: LicenseStatus
    expires_at: datetime = Field(alias="expiresAt")
    product_name: Optional[str] = Field(default=None, alias="productName")
    product_type: Optional[ProductType] = Field(default=None, alias="productType")
    license_type: Optional[LicenseTier] = Field(default=None, alias="licenseType")
    features: Optional[List[LicenseFeature]] = None
    restrictions: Optional[LicenseRestrictions] = None
    usage_count: Optional[int] = Field(default=None, alias="usageCount")
    user: Optional[LicenseOwnerOut] = None

    model_config = ConfigDict(populate_by_name=True)


class LicenseVerifyResponse(BaseModel):
    """Verification result; invalid licenses carry only key, status and expiry."""

    valid: bool
    error: Optional[str] = None
    license: Optional[VerifiedLicense] = None

    @classmethod
    def from_verification(cls, result: LicenseVerification) -> "LicenseVerifyResponse":
        license = result.license
        if license is None:
            return cls(valid=False, error="License key not found")
        if not result.valid:
            error = "License expired" if result.reason == "expired" else f"License {result.reason}"
            return cls(
                valid=False,
                error=error,
                license=VerifiedLicense(key=license.license_key, status=license.status, expires_at=license.expires_at),
            )
        return cls(
            valid=True,
            license=VerifiedLicense(
                key=license.license_key,
                status=license.status,
                expires_at=license.expires_at,
                product_name=license.product_name,
                product_type=license.product_type,
                license_type=license.tier,
                features=list(license.features),
                restrictions=license.restrictions,
                usage_count=license.usage_count,
                user=LicenseOwnerOut.from_owner(result.owner),
            ),
        )


class LicenseActivateRequest(BaseModel):
    license_key: str = Field(alias="licenseKey", min_length=1)

    model_config = ConfigDict(populate_by_name=True)


class LicenseExtendRequest(BaseModel):
    days: int


class LicenseRevokeRequest(BaseModel):
    reason: str = ""


class ExpiringLicenseOut(BaseModel):
    id: str
    license_key: str = Field(alias="licenseKey")
    product_name: str = Field(alias="productName")
    license_type: LicenseTier = Field(alias="licenseType")
    expires_at: datetime = Field(alias="expiresAt")
    owner: Optional[LicenseOwnerOut] = None

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_expiring(cls, item: ExpiringLicense) -> "ExpiringLicenseOut":
        return cls(
            id=item.license.id,
            license_key=item.license.license_key,
            product_name=item.license.product_name,
            license_type=item.license.tier,
            expires_at=item.license.expires_at,
            owner=LicenseOwnerOut.from_owner(item.owner),
        )


class ExpiringLicensesResponse(BaseModel):
    success: bool = True
    licenses: List[ExpiringLicenseOut]
    count: int

"""License domain package: issued licenses, the product catalog and the lifecycle service."""

from .catalog import PRODUCT_CATALOG, ProductDefinition, TierPrice, pricing_table, product_name_for
from .models import (
    LIFETIME_EXPIRY,
    UNLIMITED,
    ExpiringLicense,
    License,
    LicenseFeature,
    LicenseMetadata,
    LicenseOwner,
    LicensePage,
    LicenseRestrictions,
    LicenseStatus,
    LicenseTier,
    LicenseVerification,
    PaymentRecord,
    ProductType,
    expiry_for_tier,
)
from .service import (
    AccountStore,
    LicenseRepository,
    LicenseService,
    build_license,
    generate_license_key,
    subscription_for_tier,
)

__all__ = [
    "AccountStore",
    "ExpiringLicense",
    "LIFETIME_EXPIRY",
    "License",
    "LicenseFeature",
    "LicenseMetadata",
    "LicenseOwner",
    "LicensePage",
    "LicenseRepository",
    "LicenseRestrictions",
    "LicenseService",
    "LicenseStatus",
    "LicenseTier",
    "LicenseVerification",
    "PRODUCT_CATALOG",
    "PaymentRecord",
    "ProductDefinition",
    "ProductType",
    "TierPrice",
    "UNLIMITED",
    "build_license",
    "expiry_for_tier",
    "generate_license_key",
    "pricing_table",
    "product_name_for",
    "subscription_for_tier",
]

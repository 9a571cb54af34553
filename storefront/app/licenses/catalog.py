"""Static product catalog: names, feature bundles and pricing."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .models import LicenseFeature, LicenseTier, ProductType


@dataclass(frozen=True)
class TierPrice:
    price: float
    duration: str
    discount: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        data: Dict[str, object] = {"price": self.price, "duration": self.duration}
        if self.discount:
            data["discount"] = self.discount
        return data


@dataclass(frozen=True)
class ProductDefinition:
    """Describes a sellable product and the features it unlocks."""

    product_type: ProductType
    display_name: str
    base_features: Tuple[str, ...]
    pricing: Dict[LicenseTier, TierPrice]

    def features_for_tier(self, tier: LicenseTier) -> Tuple[LicenseFeature, ...]:
        names = list(self.base_features)
        if tier != LicenseTier.TRIAL:
            names.extend(PREMIUM_FEATURES)
        if tier == LicenseTier.LIFETIME:
            names.extend(LIFETIME_FEATURES)
        return tuple(LicenseFeature(name=name) for name in names)


PREMIUM_FEATURES: Tuple[str, ...] = ("Premium Support", "Priority Updates")
LIFETIME_FEATURES: Tuple[str, ...] = ("Unlimited Usage", "All Future Updates")

DEFAULT_PRODUCT_NAME = "ByteBunny Product"

PRODUCT_CATALOG: Dict[ProductType, ProductDefinition] = {
    ProductType.SELFBOT: ProductDefinition(
        product_type=ProductType.SELFBOT,
        display_name="ByteBunny Selfbot",
        base_features=("Basic Commands", "Auto Response", "Message Management"),
        pricing={
            LicenseTier.TRIAL: TierPrice(0, "7 days"),
            LicenseTier.MONTHLY: TierPrice(9.99, "30 days"),
            LicenseTier.YEARLY: TierPrice(99.99, "365 days", "17%"),
            LicenseTier.LIFETIME: TierPrice(299.99, "lifetime"),
        },
    ),
    ProductType.ADMIN_TOOLS: ProductDefinition(
        product_type=ProductType.ADMIN_TOOLS,
        display_name="Admin Tools Suite",
        base_features=("User Management", "Server Statistics", "Bulk Operations"),
        pricing={
            LicenseTier.MONTHLY: TierPrice(14.99, "30 days"),
            LicenseTier.YEARLY: TierPrice(149.99, "365 days", "17%"),
            LicenseTier.LIFETIME: TierPrice(399.99, "lifetime"),
        },
    ),
    ProductType.MODERATION: ProductDefinition(
        product_type=ProductType.MODERATION,
        display_name="Moderation Tools",
        base_features=("Auto Moderation", "Warning System", "Logging"),
        pricing={
            LicenseTier.MONTHLY: TierPrice(7.99, "30 days"),
            LicenseTier.YEARLY: TierPrice(79.99, "365 days", "17%"),
            LicenseTier.LIFETIME: TierPrice(199.99, "lifetime"),
        },
    ),
    ProductType.ANALYTICS: ProductDefinition(
        product_type=ProductType.ANALYTICS,
        display_name="Analytics Dashboard",
        base_features=("Activity Tracking", "Custom Reports", "Data Export"),
        pricing={
            LicenseTier.MONTHLY: TierPrice(12.99, "30 days"),
            LicenseTier.YEARLY: TierPrice(129.99, "365 days", "17%"),
            LicenseTier.LIFETIME: TierPrice(349.99, "lifetime"),
        },
    ),
}


def get_product_definition(product_type: ProductType) -> ProductDefinition:
    """Return a product definition, raising if unsupported."""

    try:
        return PRODUCT_CATALOG[product_type]
    except KeyError as exc:  # pragma: no cover - guarded by static catalog
        raise KeyError(f"Unknown product type: {product_type}") from exc


def product_name_for(product_type: ProductType) -> str:
    definition = PRODUCT_CATALOG.get(product_type)
    return definition.display_name if definition else DEFAULT_PRODUCT_NAME


def pricing_table() -> Dict[str, Dict[str, Dict[str, object]]]:
    return {
        product_type.value: {tier.value: price.to_dict() for tier, price in definition.pricing.items()}
        for product_type, definition in PRODUCT_CATALOG.items()
    }

"""API schemas for payment endpoints."""
from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..licenses import LicenseTier, ProductType
from ..payments import PaymentHistoryItem, PaymentIntentSession
from .common import Pagination
from .licenses import LicenseOut


class CreateIntentRequest(BaseModel):
    product_type: ProductType = Field(alias="productType")
    license_type: LicenseTier = Field(alias="licenseType")
    amount: int
    currency: str = Field(default="usd", min_length=3, max_length=3)

    model_config = ConfigDict(populate_by_name=True)


class CreateIntentResponse(BaseModel):
    success: bool = True
    client_secret: str = Field(alias="clientSecret")
    payment_intent_id: str = Field(alias="paymentIntentId")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_session(cls, session: PaymentIntentSession) -> "CreateIntentResponse":
        return cls(client_secret=session.client_secret, payment_intent_id=session.intent_id)


class ConfirmPaymentRequest(BaseModel):
    payment_intent_id: str = Field(alias="paymentIntentId", min_length=1)
    product_type: Optional[ProductType] = Field(default=None, alias="productType")
    license_type: Optional[LicenseTier] = Field(default=None, alias="licenseType")

    model_config = ConfigDict(populate_by_name=True)


class ConfirmPaymentResponse(BaseModel):
    success: bool = True
    message: str = "Payment confirmed and license created"
    license: LicenseOut


class WebhookAck(BaseModel):
    received: bool = True


class PaymentHistoryOut(BaseModel):
    id: str
    product: str
    license_type: LicenseTier = Field(alias="licenseType")
    amount: float
    currency: str
    method: str
    transaction_id: str = Field(alias="transactionId")
    date: datetime
    status: str

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_item(cls, item: PaymentHistoryItem) -> "PaymentHistoryOut":
        return cls(
            id=item.license_id,
            product=item.product,
            license_type=item.tier,
            amount=item.amount,
            currency=item.currency,
            method=item.method,
            transaction_id=item.transaction_id,
            date=item.date,
            status=item.status,
        )


class PaymentHistoryResponse(BaseModel):
    success: bool = True
    payments: List[PaymentHistoryOut]
    pagination: Pagination


class PricingResponse(BaseModel):
    success: bool = True
    pricing: Dict[str, Dict[str, Dict[str, object]]]

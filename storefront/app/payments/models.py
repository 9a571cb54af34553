"""Domain models for payment processing."""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..licenses.models import LicenseTier

MINIMUM_CHARGE_CENTS = 50
INTENT_SOURCE = "bytebunny-website"


class WebhookEventType(str, Enum):
    PAYMENT_SUCCEEDED = "payment_intent.succeeded"
    PAYMENT_FAILED = "payment_intent.payment_failed"
    INVOICE_PAYMENT_SUCCEEDED = "invoice.payment_succeeded"


class Charge(BaseModel):
    """Provider-side view of a payment intent."""

    intent_id: str
    status: str
    amount: int = Field(ge=0)
    currency: str
    metadata: Dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    @property
    def succeeded(self) -> bool:
        return self.status == "succeeded"

    @property
    def amount_major(self) -> float:
        return self.amount / 100


class PaymentIntentSession(BaseModel):
    intent_id: str
    client_secret: str
    amount: int
    currency: str

    model_config = ConfigDict(frozen=True)


class WebhookEvent(BaseModel):
    event_id: str
    event_type: str
    data: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    @property
    def object_id(self) -> Optional[str]:
        value = self.data.get("id")
        return str(value) if value is not None else None


class PaymentHistoryItem(BaseModel):
    license_id: str
    product: str
    tier: LicenseTier
    amount: float
    currency: str
    method: str
    transaction_id: str
    date: datetime
    status: str = "completed"

    model_config = ConfigDict(frozen=True)


class PaymentHistoryPage(BaseModel):
    items: List[PaymentHistoryItem]
    total: int

    model_config = ConfigDict(frozen=True)

"""Payment package: provider integrations and purchase confirmation."""

from .models import (
    MINIMUM_CHARGE_CENTS,
    Charge,
    PaymentHistoryItem,
    PaymentHistoryPage,
    PaymentIntentSession,
    WebhookEvent,
    WebhookEventType,
)
from .providers import (
    LocalSandboxPaymentProvider,
    PaymentProvider,
    PaymentProviderError,
    StripePaymentProvider,
    WebhookVerificationError,
    sign_sandbox_payload,
)
from .service import PaymentService
from .unit_of_work import PaymentUnitOfWork

__all__ = [
    "Charge",
    "LocalSandboxPaymentProvider",
    "MINIMUM_CHARGE_CENTS",
    "PaymentHistoryItem",
    "PaymentHistoryPage",
    "PaymentIntentSession",
    "PaymentProvider",
    "PaymentProviderError",
    "PaymentService",
    "PaymentUnitOfWork",
    "StripePaymentProvider",
    "WebhookEvent",
    "WebhookEventType",
    "WebhookVerificationError",
    "sign_sandbox_payload",
]

"""Application wiring for the payment service."""
from __future__ import annotations

import logging
from functools import lru_cache

from ...app_context import get_config
from ..licenses.repository import PostgresLicenseRepository
from ..payments import LocalSandboxPaymentProvider, PaymentProvider, PaymentService, StripePaymentProvider
from ..payments.unit_of_work import postgres_unit_of_work

logger = logging.getLogger("payments")


def build_payment_provider() -> PaymentProvider:
    config = get_config()
    if config.payment_provider == "stripe":
        return StripePaymentProvider(config.stripe_secret_key or "", config.stripe_webhook_secret)
    logger.warning("Using the local sandbox payment provider; no real charges will be made")
    if config.stripe_webhook_secret:
        return LocalSandboxPaymentProvider(webhook_secret=config.stripe_webhook_secret)
    return LocalSandboxPaymentProvider()


@lru_cache(maxsize=1)
def get_payment_service() -> PaymentService:
    return PaymentService(
        provider=build_payment_provider(),
        licenses=PostgresLicenseRepository(),
        unit_of_work=postgres_unit_of_work,
    )


__all__ = ["build_payment_provider", "get_payment_service"]

"""Service handling payment intents, confirmations and provider webhooks."""
from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, ContextManager, Dict, Optional

from ..accounts.models import Account
from ..licenses.catalog import pricing_table
from ..licenses.models import License, LicenseTier, PaymentRecord, ProductType
from ..licenses.service import LicenseRepository, LicenseService
from .models import (
    INTENT_SOURCE,
    MINIMUM_CHARGE_CENTS,
    PaymentHistoryItem,
    PaymentHistoryPage,
    PaymentIntentSession,
    WebhookEvent,
    WebhookEventType,
)
from .providers import PaymentProvider
from .unit_of_work import PaymentUnitOfWork

logger = logging.getLogger("payments")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


_dataclass_kwargs = {"slots": True} if sys.version_info >= (3, 10) else {}


@dataclass(**_dataclass_kwargs)
class PaymentService:
    """Turns settled provider charges into licenses and account spend."""

    provider: PaymentProvider
    licenses: LicenseRepository
    unit_of_work: Callable[[], ContextManager[PaymentUnitOfWork]]
    clock: Callable[[], datetime] = field(default=_utcnow)

    def create_intent(
        self,
        account: Account,
        *,
        product_type: ProductType,
        tier: LicenseTier,
        amount: int,
        currency: str = "usd",
    ) -> PaymentIntentSession:
        if amount is None or amount < MINIMUM_CHARGE_CENTS:
            raise ValueError("Invalid amount")
        session = self.provider.create_intent(
            amount=amount,
            currency=currency.lower(),
            metadata={
                "account_id": account.id,
                "product_type": ProductType(product_type).value,
                "tier": LicenseTier(tier).value,
                "source": INTENT_SOURCE,
            },
        )
        logger.info(
            "Created payment intent %s account=%s amount=%s %s",
            session.intent_id,
            account.id,
            amount,
            currency,
        )
        return session

    def confirm_payment(
        self,
        account: Account,
        intent_id: str,
        *,
        product_type: Optional[ProductType] = None,
        tier: Optional[LicenseTier] = None,
    ) -> License:
        """Issue the purchased license once the provider reports the charge settled.

        The charge must have succeeded and must have been created for
        ``account``. The license and the spend increment are written in one
        unit of work; a failure in either leaves neither behind.
        """

        charge = self.provider.retrieve_charge(intent_id)
        if not charge.succeeded:
            raise ValueError("Payment not completed")
        if charge.metadata.get("account_id") != account.id:
            logger.warning("Payment %s does not belong to account %s", intent_id, account.id)
            raise PermissionError("Payment verification failed")

        purchased_product, purchased_tier = self._purchase_of(charge.metadata, product_type, tier)
        now = self.clock()
        payment = PaymentRecord(
            transaction_id=charge.intent_id,
            amount=charge.amount_major,
            currency=charge.currency,
            method="stripe",
            paid_at=now,
        )

        with self.unit_of_work() as uow:
            existing = uow.licenses.get_by_transaction(charge.intent_id)
            if existing is not None:
                logger.info("Payment %s already confirmed as license %s", intent_id, existing.license_key)
                return existing

            current = uow.accounts.get_account(account.id) or account
            issuer = LicenseService(repository=uow.licenses, accounts=uow.accounts, clock=lambda: now)
            license = issuer.issue(
                current,
                purchased_product,
                purchased_tier,
                payment=payment,
                purchase_source="website",
            )
            if uow.accounts.add_spend(account.id, payment.amount) is None:
                raise LookupError("User not found")

        logger.info(
            "Confirmed payment %s account=%s license=%s amount=%s %s",
            intent_id,
            account.id,
            license.license_key,
            payment.amount,
            payment.currency,
        )
        return license

    def handle_webhook(self, payload: bytes, signature: Optional[str]) -> WebhookEvent:
        """Verify and log a provider webhook. Verification failures propagate as ``ValueError``."""

        event = self.provider.construct_event(payload, signature)
        if event.event_type == WebhookEventType.PAYMENT_SUCCEEDED.value:
            logger.info("Payment succeeded: %s", event.object_id)
        elif event.event_type == WebhookEventType.PAYMENT_FAILED.value:
            logger.warning("Payment failed: %s", event.object_id)
        elif event.event_type == WebhookEventType.INVOICE_PAYMENT_SUCCEEDED.value:
            logger.info(
                "Subscription renewal for customer %s subscription=%s",
                event.data.get("customer"),
                event.data.get("subscription"),
            )
        else:
            logger.info("Unhandled event type %s", event.event_type)
        return event

    def history(self, account_id: str, *, page: int = 1, limit: int = 10) -> PaymentHistoryPage:
        page, limit = max(page, 1), max(limit, 1)
        result = self.licenses.list_paid_for_account(account_id, offset=(page - 1) * limit, limit=limit)
        items = [
            PaymentHistoryItem(
                license_id=license.id,
                product=license.product_name,
                tier=license.tier,
                amount=license.payment.amount,
                currency=license.payment.currency,
                method=license.payment.method,
                transaction_id=license.payment.transaction_id,
                date=license.payment.paid_at or license.created_at,
            )
            for license in result.items
            if license.payment is not None
        ]
        return PaymentHistoryPage(items=items, total=result.total)

    def pricing(self) -> Dict[str, Dict[str, Dict[str, object]]]:
        return pricing_table()

    @staticmethod
    def _purchase_of(
        metadata: Dict[str, str],
        product_type: Optional[ProductType],
        tier: Optional[LicenseTier],
    ) -> tuple[ProductType, LicenseTier]:
        """Resolve what was bought, preferring the values recorded on the charge."""

        raw_product = metadata.get("product_type") or (product_type.value if product_type else None)
        raw_tier = metadata.get("tier") or (tier.value if tier else None)
        try:
            purchased_product = ProductType(raw_product)
            purchased_tier = LicenseTier(raw_tier)
        except ValueError as exc:
            raise ValueError("Payment is missing a valid product or license type") from exc

        if product_type is not None and ProductType(product_type) != purchased_product:
            raise ValueError("Payment does not match the requested product")
        if tier is not None and LicenseTier(tier) != purchased_tier:
            raise ValueError("Payment does not match the requested license type")
        return purchased_product, purchased_tier

"""Unit tests for payment confirmation and webhook handling."""
from __future__ import annotations

import json
from contextlib import contextmanager
from types import SimpleNamespace

import pytest

from storefront.app.accounts import SubscriptionPlan
from storefront.app.licenses import LicenseTier, ProductType
from storefront.app.payments import (
    LocalSandboxPaymentProvider,
    PaymentService,
    WebhookVerificationError,
    sign_sandbox_payload,
)


@pytest.fixture
def provider() -> LocalSandboxPaymentProvider:
    return LocalSandboxPaymentProvider(webhook_secret="whsec_test")


@pytest.fixture
def payment_components(provider, license_repository, account_repository, clock):
    commits: list = []

    @contextmanager
    def unit_of_work():
        licenses_before = dict(license_repository.licenses)
        accounts_before = dict(account_repository.accounts)
        try:
            yield SimpleNamespace(licenses=license_repository, accounts=account_repository)
        except Exception:
            license_repository.licenses = licenses_before
            account_repository.accounts = accounts_before
            raise
        commits.append(True)

    service = PaymentService(
        provider=provider,
        licenses=license_repository,
        unit_of_work=unit_of_work,
        clock=clock,
    )
    return service, commits


def _paid_intent(service, provider, account, *, amount=999, tier=LicenseTier.MONTHLY):
    session = service.create_intent(account, product_type=ProductType.SELFBOT, tier=tier, amount=amount)
    provider.complete(session.intent_id)
    return session


def test_create_intent_tags_charge_with_purchase(payment_components, provider, make_account):
    service, _ = payment_components
    account = make_account()

    session = service.create_intent(
        account,
        product_type=ProductType.ANALYTICS,
        tier=LicenseTier.YEARLY,
        amount=12999,
        currency="USD",
    )

    charge = provider.retrieve_charge(session.intent_id)
    assert session.client_secret.startswith(session.intent_id)
    assert charge.currency == "usd"
    assert charge.metadata == {
        "account_id": account.id,
        "product_type": "analytics",
        "tier": "yearly",
        "source": "bytebunny-website",
    }


@pytest.mark.parametrize("amount", [0, 49])
def test_create_intent_rejects_tiny_amounts(payment_components, make_account, amount):
    service, _ = payment_components

    with pytest.raises(ValueError, match="Invalid amount"):
        service.create_intent(make_account(), product_type=ProductType.SELFBOT, tier=LicenseTier.MONTHLY, amount=amount)


def test_confirm_issues_license_and_records_spend(payment_components, provider, make_account, account_repository):
    service, commits = payment_components
    account = make_account()
    session = _paid_intent(service, provider, account)

    license = service.confirm_payment(account, session.intent_id)

    assert license.product_type == ProductType.SELFBOT
    assert license.tier == LicenseTier.MONTHLY
    assert license.payment.transaction_id == session.intent_id
    assert license.payment.amount == pytest.approx(9.99)
    assert license.payment.currency == "USD"
    stored = account_repository.get_account(account.id)
    assert stored.stats.total_spent == pytest.approx(9.99)
    assert stored.subscription.plan == SubscriptionPlan.PREMIUM
    assert commits == [True]


def test_confirm_requires_settled_charge(payment_components, make_account, license_repository):
    service, _ = payment_components
    account = make_account()
    session = service.create_intent(account, product_type=ProductType.SELFBOT, tier=LicenseTier.MONTHLY, amount=999)

    with pytest.raises(ValueError, match="Payment not completed"):
        service.confirm_payment(account, session.intent_id)
    assert license_repository.licenses == {}


def test_confirm_rejects_charge_of_another_account(
    payment_components, provider, make_account, license_repository, account_repository
):
    service, commits = payment_components
    buyer = make_account("buyer")
    thief = make_account("thief")
    session = _paid_intent(service, provider, buyer)

    with pytest.raises(PermissionError, match="Payment verification failed"):
        service.confirm_payment(thief, session.intent_id)

    assert license_repository.licenses == {}
    assert account_repository.get_account(thief.id).stats.total_spent == 0
    assert commits == []


def test_confirm_is_idempotent_per_transaction(payment_components, provider, make_account, account_repository, license_repository):
    service, _ = payment_components
    account = make_account()
    session = _paid_intent(service, provider, account)

    first = service.confirm_payment(account, session.intent_id)
    second = service.confirm_payment(account, session.intent_id)

    assert first.id == second.id
    assert len(license_repository.licenses) == 1
    assert account_repository.get_account(account.id).stats.total_spent == pytest.approx(9.99)


def test_failed_spend_update_rolls_back_license(
    payment_components, provider, make_account, license_repository, account_repository, monkeypatch
):
    service, commits = payment_components
    account = make_account()
    session = _paid_intent(service, provider, account)

    def _fail(account_id, amount):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(account_repository, "add_spend", _fail)

    with pytest.raises(RuntimeError):
        service.confirm_payment(account, session.intent_id)

    assert license_repository.licenses == {}
    assert account_repository.get_account(account.id).subscription.plan == SubscriptionPlan.FREE
    assert commits == []


def test_confirm_rejects_mismatched_purchase(payment_components, provider, make_account):
    service, _ = payment_components
    account = make_account()
    session = _paid_intent(service, provider, account)

    with pytest.raises(ValueError, match="requested license type"):
        service.confirm_payment(account, session.intent_id, tier=LicenseTier.LIFETIME)


def test_unknown_intent_is_not_found(payment_components, make_account):
    service, _ = payment_components

    with pytest.raises(LookupError):
        service.confirm_payment(make_account(), "pi_missing")


def test_history_lists_paid_licenses_only(payment_components, provider, make_account, license_service):
    service, _ = payment_components
    account = make_account()
    license_service.issue(account, ProductType.SELFBOT, LicenseTier.TRIAL)
    session = _paid_intent(service, provider, account, amount=29999, tier=LicenseTier.LIFETIME)
    service.confirm_payment(account, session.intent_id)

    history = service.history(account.id)

    assert history.total == 1
    assert history.items[0].transaction_id == session.intent_id
    assert history.items[0].amount == pytest.approx(299.99)
    assert history.items[0].status == "completed"


def test_webhook_signature_is_verified(payment_components):
    service, _ = payment_components
    payload = json.dumps(
        {"id": "evt_1", "type": "payment_intent.succeeded", "data": {"object": {"id": "pi_1"}}}
    ).encode("utf-8")

    event = service.handle_webhook(payload, sign_sandbox_payload(payload, "whsec_test"))

    assert event.event_type == "payment_intent.succeeded"
    assert event.object_id == "pi_1"
    with pytest.raises(WebhookVerificationError):
        service.handle_webhook(payload, "bad-signature")
    with pytest.raises(ValueError):
        service.handle_webhook(payload, None)


def test_pricing_lists_every_product(payment_components):
    service, _ = payment_components

    pricing = service.pricing()

    assert set(pricing) == {"selfbot", "admin-tools", "moderation", "analytics"}
    assert pricing["selfbot"]["yearly"] == {"price": 99.99, "duration": "365 days", "discount": "17%"}

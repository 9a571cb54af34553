"""Unit tests for the license lifecycle service."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from storefront.app.accounts import SubscriptionPlan
from storefront.app.licenses import (
    LIFETIME_EXPIRY,
    LicenseStatus,
    LicenseTier,
    ProductType,
    build_license,
    generate_license_key,
)


@pytest.mark.parametrize(
    "tier, offset",
    [
        (LicenseTier.TRIAL, timedelta(days=7)),
        (LicenseTier.MONTHLY, timedelta(days=30)),
        (LicenseTier.YEARLY, timedelta(days=365)),
    ],
)
def test_issue_sets_expiry_from_tier(license_service, make_account, clock, tier, offset):
    license = license_service.issue(make_account(), ProductType.SELFBOT, tier)

    assert license.expires_at == clock() + offset
    assert license.status == LicenseStatus.ACTIVE
    assert license.is_valid_at(clock())


def test_lifetime_license_expires_at_fixed_far_future_date(license_service, make_account):
    license = license_service.issue(make_account(), ProductType.ANALYTICS, LicenseTier.LIFETIME)

    assert license.expires_at == datetime(2099, 12, 31, tzinfo=timezone.utc)
    assert license.expires_at == LIFETIME_EXPIRY
    assert license.has_feature("Unlimited Usage")
    assert license.has_feature("Activity Tracking")


def test_trial_license_only_carries_base_features(license_service, make_account):
    license = license_service.issue(make_account(), ProductType.SELFBOT, LicenseTier.TRIAL)

    names = [feature.name for feature in license.features]
    assert names == ["Basic Commands", "Auto Response", "Message Management"]
    assert not license.has_feature("Premium Support")


def test_paid_tier_updates_account_subscription(license_service, make_account, account_repository, clock):
    account = make_account()

    license_service.issue(account, ProductType.MODERATION, LicenseTier.MONTHLY)

    subscription = account_repository.get_account(account.id).subscription
    assert subscription.plan == SubscriptionPlan.PREMIUM
    assert subscription.end_date == clock() + timedelta(days=30)


def test_trial_does_not_touch_subscription(license_service, make_account, account_repository):
    account = make_account()

    license_service.issue(account, ProductType.SELFBOT, LicenseTier.TRIAL)

    assert account_repository.get_account(account.id).subscription.plan == SubscriptionPlan.FREE


def test_monthly_license_valid_after_a_day_and_expired_after_a_month(license_service, make_account, clock):
    license = license_service.issue(make_account(), ProductType.SELFBOT, LicenseTier.MONTHLY)

    clock.advance(days=1)
    assert license_service.verify(license.license_key).valid is True

    clock.advance(days=30)
    result = license_service.verify(license.license_key)
    assert result.valid is False
    assert result.reason == "expired"
    assert result.license.license_key == license.license_key


def test_verify_unknown_key_changes_nothing(license_service, license_repository, make_account):
    license_service.issue(make_account(), ProductType.SELFBOT, LicenseTier.YEARLY)
    before = dict(license_repository.licenses)

    result = license_service.verify("BB-NOPE-NOPE")

    assert result.valid is False
    assert result.found is False
    assert result.reason == "not_found"
    assert license_repository.licenses == before


def test_each_successful_verify_counts_one_use(license_service, license_repository, make_account, clock):
    license = license_service.issue(make_account(), ProductType.SELFBOT, LicenseTier.YEARLY)

    for _ in range(3):
        clock.advance(minutes=5)
        result = license_service.verify(license.license_key)
        assert result.valid

    stored = license_repository.get_license(license.id)
    assert stored.usage_count == license.usage_count + 3
    assert stored.last_used_at == clock()


def test_verify_reports_owner_of_valid_license(license_service, make_account):
    account = make_account("carol")
    license = license_service.issue(account, ProductType.SELFBOT, LicenseTier.MONTHLY)

    result = license_service.verify(license.license_key)

    assert result.owner.username == "carol"
    assert result.owner.discord_id == account.discord_id


def test_revoked_license_is_invalid_and_not_counted(license_service, license_repository, make_account):
    license = license_service.issue(make_account(), ProductType.SELFBOT, LicenseTier.LIFETIME)

    revoked = license_service.revoke(license.id, "chargeback")
    result = license_service.verify(license.license_key)

    assert revoked.metadata.notes == "Revoked: chargeback"
    assert result.valid is False
    assert result.reason == "revoked"
    assert license_repository.get_license(license.id).usage_count == license.usage_count


def test_check_validity_does_not_record_usage(license_service, license_repository, make_account):
    license = license_service.issue(make_account(), ProductType.SELFBOT, LicenseTier.MONTHLY)

    assert license_service.check_validity(license.license_key).valid
    assert license_repository.get_license(license.id).usage_count == 0


def test_record_usage_requires_known_key(license_service):
    with pytest.raises(LookupError):
        license_service.record_usage("BB-MISSING")


def test_extend_adds_exact_number_of_days(license_service, make_account):
    license = license_service.issue(make_account(), ProductType.SELFBOT, LicenseTier.MONTHLY)

    extended = license_service.extend(license.id, 10)

    assert extended.expires_at - license.expires_at == timedelta(days=10)


@pytest.mark.parametrize("days", [0, -3])
def test_extend_rejects_non_positive_days(license_service, make_account, days):
    license = license_service.issue(make_account(), ProductType.SELFBOT, LicenseTier.MONTHLY)

    with pytest.raises(ValueError, match="Valid number of days required"):
        license_service.extend(license.id, days)


def test_activate_rejects_other_owner_and_active_license(license_service, make_account):
    owner = make_account("owner")
    intruder = make_account("intruder")
    license = license_service.issue(owner, ProductType.SELFBOT, LicenseTier.MONTHLY)

    with pytest.raises(PermissionError):
        license_service.activate(license.license_key, intruder.id)
    with pytest.raises(ValueError, match="already active"):
        license_service.activate(license.license_key, owner.id)
    with pytest.raises(LookupError, match="Invalid license key"):
        license_service.activate("BB-UNKNOWN", owner.id)


def test_activate_restores_suspended_license(license_service, license_repository, make_account, clock):
    account = make_account()
    license = license_service.issue(account, ProductType.SELFBOT, LicenseTier.MONTHLY)
    license_repository.save_license(license.model_copy(update={"status": LicenseStatus.SUSPENDED}))

    clock.advance(hours=2)
    activated = license_service.activate(license.license_key, account.id)

    assert activated.status == LicenseStatus.ACTIVE
    assert activated.activated_at == clock()


def test_find_expiring_within_orders_by_expiry(license_service, license_repository, make_account, clock):
    account = make_account("dave")
    later = build_license(
        account_id=account.id,
        product_type=ProductType.SELFBOT,
        tier=LicenseTier.MONTHLY,
        now=clock(),
        expires_at=clock() + timedelta(days=5),
    )
    sooner = build_license(
        account_id=account.id,
        product_type=ProductType.MODERATION,
        tier=LicenseTier.MONTHLY,
        now=clock(),
        expires_at=clock() + timedelta(days=2),
    )
    outside = build_license(
        account_id=account.id,
        product_type=ProductType.ANALYTICS,
        tier=LicenseTier.YEARLY,
        now=clock(),
    )
    for license in (later, sooner, outside):
        license_repository.save_license(license)

    expiring = license_service.find_expiring_within(7)

    assert [item.license.id for item in expiring] == [sooner.id, later.id]
    assert expiring[0].owner.username == "dave"


def test_get_for_account_hides_other_accounts_licenses(license_service, make_account):
    owner = make_account("owner")
    other = make_account("other")
    license = license_service.issue(owner, ProductType.SELFBOT, LicenseTier.MONTHLY)

    assert license_service.get_for_account(license.id, owner.id).id == license.id
    with pytest.raises(LookupError):
        license_service.get_for_account(license.id, other.id)


def test_generated_keys_are_unique_and_prefixed():
    keys = {generate_license_key() for _ in range(50)}

    assert len(keys) == 50
    assert all(key.startswith("BB-") and len(key.split("-")) == 3 for key in keys)

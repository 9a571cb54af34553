"""HTTP-level tests for the storefront routers using in-memory services."""
from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

import storefront.main as storefront_main
from storefront.app.accounts import AccountRole, DuplicateAccountError
from storefront.app.accounts.service import REGISTRATION_CONFLICT
from storefront.app.community import CheckoutRelay
from storefront.app.licenses import LicenseTier, ProductType
from storefront.app.routes import community as community_routes
from storefront.app.routes import dependencies
from storefront.app.routes import licenses as license_routes


@pytest.fixture
def client(monkeypatch, license_service):
    monkeypatch.setattr(license_routes, "get_license_service", lambda: license_service)
    monkeypatch.setattr(
        community_routes,
        "get_checkout_relay",
        lambda: CheckoutRelay(bot_url=None),
    )
    monkeypatch.setattr(community_routes, "get_server_invite", lambda: "https://discord.gg/test")
    yield TestClient(storefront_main.app)
    storefront_main.app.dependency_overrides.clear()


@pytest.fixture
def login_as():
    def _login(account):
        storefront_main.app.dependency_overrides[dependencies.get_current_account] = lambda: account
        return account

    return _login


def test_verify_valid_license_returns_product_and_owner(client, license_service, make_account):
    account = make_account("erin")
    license = license_service.issue(account, ProductType.SELFBOT, LicenseTier.YEARLY)

    response = client.post("/api/licenses/verify", json={"licenseKey": license.license_key})

    body = response.json()
    assert response.status_code == 200
    assert body["valid"] is True
    assert "error" not in body
    assert body["license"]["key"] == license.license_key
    assert body["license"]["productName"] == "ByteBunny Selfbot"
    assert body["license"]["licenseType"] == "yearly"
    assert body["license"]["user"] == {"username": "erin", "discordId": account.discord_id}


def test_verify_unknown_key_is_404(client):
    response = client.post("/api/licenses/verify", json={"licenseKey": "BB-NOPE"})

    assert response.status_code == 404
    assert response.json()["detail"] == {"valid": False, "error": "License key not found"}


def test_verify_expired_license_reports_partial_details(client, license_service, make_account, clock):
    license = license_service.issue(make_account(), ProductType.SELFBOT, LicenseTier.TRIAL)
    clock.advance(days=8)

    response = client.post("/api/licenses/verify", json={"licenseKey": license.license_key})

    body = response.json()
    assert response.status_code == 200
    assert body["valid"] is False
    assert body["error"] == "License expired"
    assert set(body["license"]) == {"key", "status", "expiresAt"}


def test_verify_with_missing_feature_is_forbidden_and_not_counted(
    client, license_service, license_repository, make_account
):
    license = license_service.issue(make_account(), ProductType.SELFBOT, LicenseTier.TRIAL)

    response = client.post(
        "/api/licenses/verify",
        json={"licenseKey": license.license_key, "feature": "Premium Support"},
    )

    assert response.status_code == 403
    assert response.json()["detail"]["code"] == "feature_required"
    assert license_repository.get_license(license.id).usage_count == 0


def test_list_licenses_uses_camel_case_and_pagination(client, license_service, make_account, login_as):
    account = login_as(make_account())
    license_service.issue(account, ProductType.MODERATION, LicenseTier.MONTHLY)

    response = client.get("/api/licenses", params={"page": 1, "limit": 10})

    body = response.json()
    assert response.status_code == 200
    assert body["licenses"][0]["productType"] == "moderation"
    assert body["licenses"][0]["daysRemaining"] == 30
    assert body["licenses"][0]["isActive"] is True
    assert body["pagination"] == {
        "currentPage": 1,
        "totalPages": 1,
        "totalItems": 1,
        "hasNext": False,
        "hasPrev": False,
    }


def test_admin_routes_require_admin_role(client, license_service, make_account, login_as):
    license = license_service.issue(make_account("owner"), ProductType.SELFBOT, LicenseTier.MONTHLY)
    login_as(make_account("pleb"))

    response = client.put(f"/api/licenses/{license.id}/extend", json={"days": 5})

    assert response.status_code == 403
    assert response.json()["detail"] == "Access denied. Admin privileges required."


def test_admin_can_extend_and_revoke(client, license_service, make_account, login_as):
    license = license_service.issue(make_account("owner"), ProductType.SELFBOT, LicenseTier.MONTHLY)
    login_as(make_account("boss", role=AccountRole.ADMIN))

    extended = client.put(f"/api/licenses/{license.id}/extend", json={"days": 5})
    rejected = client.put(f"/api/licenses/{license.id}/extend", json={"days": 0})
    revoked = client.put(f"/api/licenses/{license.id}/revoke", json={"reason": "abuse"})
    missing = client.put("/api/licenses/nope/revoke", json={})

    assert extended.status_code == 200
    assert extended.json()["message"] == "License extended by 5 days"
    assert rejected.status_code == 400
    assert rejected.json()["detail"] == "Valid number of days required"
    assert revoked.json()["license"]["status"] == "revoked"
    assert missing.status_code == 404


def test_activate_maps_service_errors(client, license_service, make_account, login_as):
    owner = make_account("owner")
    license = license_service.issue(owner, ProductType.SELFBOT, LicenseTier.MONTHLY)

    login_as(make_account("other"))
    forbidden = client.post("/api/licenses/activate", json={"licenseKey": license.license_key})
    login_as(owner)
    already = client.post("/api/licenses/activate", json={"licenseKey": license.license_key})
    unknown = client.post("/api/licenses/activate", json={"licenseKey": "BB-NONE"})

    assert forbidden.status_code == 403
    assert already.status_code == 400
    assert unknown.status_code == 404


def test_checkout_falls_back_when_bot_unavailable(client):
    response = client.post(
        "/api/discord/checkout",
        json={"items": [{"name": "Selfbot", "price": "$9.99"}], "user": {"username": "alice"}},
    )

    body = response.json()
    assert response.status_code == 200
    assert body["success"] is True
    assert body["discordInvite"] == "https://discord.gg/test"
    assert body["message"] == "Checkout request processed. Please join Discord for payment assistance."
    assert body["checkoutId"].startswith("checkout_")
    assert body["summary"]["total"] == 1


def test_checkout_requires_items(client):
    assert client.post("/api/discord/checkout", json={"items": [], "user": {}}).status_code == 422


def test_community_static_routes(client):
    invite = client.get("/api/discord/server-invite").json()
    status = client.get("/api/discord/status").json()
    redirect = client.post(
        "/api/discord/purchase-redirect",
        json={"productType": "selfbot", "licenseType": "monthly", "username": "alice"},
    ).json()

    assert invite["discordInvite"] == "https://discord.gg/test"
    assert status["status"] == "active"
    assert status["community"]["invite"] == "https://discord.gg/test"
    assert redirect["redirectUrl"] == "https://discord.gg/test"
    assert redirect["purchaseInfo"]["product"] == "selfbot"


def test_health_reports_ok(client):
    body = client.get("/api/health").json()

    assert body["status"] == "OK"
    assert body["uptime"] >= 0


def test_register_conflict_detected_at_insert_is_400(
    client, monkeypatch, account_service, account_repository, make_account
):
    make_account("alice")

    def reject_duplicate(account):
        raise DuplicateAccountError("Account identity already taken")

    monkeypatch.setattr(account_repository, "find_conflict", lambda **kwargs: None)
    monkeypatch.setattr(account_repository, "save_account", reject_duplicate)
    monkeypatch.setattr(storefront_main, "get_account_service", lambda: account_service)

    response = client.post(
        "/api/auth/register",
        json={"username": "alice", "email": "alice2@example.com", "password": "secret123", "discordId": "alice#0002"},
    )

    assert response.status_code == 400
    assert response.json() == {"detail": REGISTRATION_CONFLICT}

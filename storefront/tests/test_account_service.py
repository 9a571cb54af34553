from __future__ import annotations

import pytest

from storefront.app.accounts import AccountRole, AccountService, DuplicateAccountError, Theme
from storefront.app.accounts.service import PROFILE_CONFLICT, REGISTRATION_CONFLICT
from storefront.app.licenses import LicenseStatus, LicenseTier, ProductType


def test_register_normalizes_email_and_hashes_password(account_service, account_repository):
    account = account_service.register(
        username=" alice ",
        email="Alice@Example.COM",
        discord_id="alice#0001",
        password="secret123",
    )

    stored = account_repository.get_account(account.id)
    assert stored.username == "alice"
    assert stored.email == "alice@example.com"
    assert stored.password_hash == "hashed:secret123"
    assert stored.role == AccountRole.USER


def test_register_rejects_taken_identity(account_service, make_account):
    make_account("alice")

    with pytest.raises(DuplicateAccountError, match=REGISTRATION_CONFLICT):
        account_service.register(
            username="someone",
            email="ALICE@example.com",
            discord_id="new#1",
            password="secret123",
        )


class UniqueIndexRepository:
    """Wraps the in-memory store so only the write enforces unique identities.

    ``find_conflict`` sees nothing, as when a concurrent registration has not
    committed yet.
    """

    def __init__(self, inner) -> None:
        self._inner = inner

    def __getattr__(self, name):
        return getattr(self._inner, name)

    def find_conflict(self, **kwargs):
        return None

    def save_account(self, account):
        for other in self._inner.accounts.values():
            if other.id != account.id and (
                other.username == account.username
                or other.email == account.email
                or other.discord_id == account.discord_id
            ):
                raise DuplicateAccountError("Account identity already taken")
        return self._inner.save_account(account)


@pytest.fixture
def racing_service(account_repository, license_repository, clock) -> AccountService:
    return AccountService(
        repository=UniqueIndexRepository(account_repository),
        licenses=license_repository,
        clock=clock,
        hash_password=lambda password: f"hashed:{password}",
    )


def test_register_race_lost_at_insert_is_a_conflict(racing_service, make_account, account_repository):
    make_account("alice")

    with pytest.raises(DuplicateAccountError, match=REGISTRATION_CONFLICT):
        racing_service.register(username="alice", email="other@example.com", discord_id="other#1", password="pw123456")

    assert len(account_repository.accounts) == 1


def test_profile_race_lost_at_update_is_a_conflict(racing_service, make_account, account_repository):
    alice = make_account("alice")
    make_account("bob")

    with pytest.raises(DuplicateAccountError, match=PROFILE_CONFLICT):
        racing_service.update_profile(alice.id, email="bob@example.com")

    assert account_repository.get_account(alice.id).email == "alice@example.com"


def test_authenticate_records_login(account_service, make_account, clock):
    account = make_account()
    clock.advance(hours=1)

    logged_in = account_service.authenticate("alice@example.com", "secret123")

    assert logged_in.id == account.id
    assert logged_in.stats.login_count == account.stats.login_count + 1
    assert logged_in.stats.last_login == clock()


def test_authenticate_rejects_bad_password_and_inactive_accounts(account_service, make_account):
    make_account("alice")
    make_account("bob", is_active=False)

    with pytest.raises(ValueError, match="Invalid credentials"):
        account_service.authenticate("alice@example.com", "wrong")
    with pytest.raises(ValueError, match="Invalid credentials"):
        account_service.authenticate("nobody@example.com", "secret123")
    with pytest.raises(ValueError, match="Account is deactivated"):
        account_service.authenticate("bob@example.com", "secret123")


def test_update_profile_detects_conflicts(account_service, make_account):
    alice = make_account("alice")
    make_account("bob")

    with pytest.raises(DuplicateAccountError):
        account_service.update_profile(alice.id, username="bob")

    updated = account_service.update_profile(alice.id, bio="hello", avatar="https://cdn.test/a.png")
    assert updated.bio == "hello"
    assert updated.username == "alice"


def test_update_profile_rejects_long_bio(account_service, make_account):
    account = make_account()

    with pytest.raises(ValueError, match="500"):
        account_service.update_profile(account.id, bio="x" * 501)


def test_update_preferences_merges_partial_document(account_service, make_account):
    account = make_account()

    updated = account_service.update_preferences(
        account.id,
        {"notifications": {"email": False}, "theme": "light"},
    )

    assert updated.preferences.notifications.email is False
    assert updated.preferences.notifications.discord is True
    assert updated.preferences.theme == Theme.LIGHT
    assert updated.preferences.language == "en"


def test_get_stats_counts_valid_licenses(account_service, license_service, make_account, clock):
    account = make_account()
    license_service.issue(account, ProductType.SELFBOT, LicenseTier.TRIAL)
    license_service.issue(account, ProductType.ANALYTICS, LicenseTier.YEARLY)

    clock.advance(days=8)
    summary = account_service.get_stats(account.id)

    assert summary.total_licenses == 2
    assert summary.active_licenses == 1
    assert summary.has_active_subscription is True


def test_delete_account_requires_confirmation_and_password(account_service, make_account):
    account = make_account()

    with pytest.raises(ValueError, match="type DELETE"):
        account_service.delete_account(account.id, password="secret123", confirmation="delete")
    with pytest.raises(ValueError, match="Invalid password"):
        account_service.delete_account(account.id, password="wrong", confirmation="DELETE")


def test_delete_account_tombstones_and_revokes_licenses(
    account_service, license_service, license_repository, make_account
):
    account = make_account()
    license = license_service.issue(account, ProductType.SELFBOT, LicenseTier.LIFETIME)

    deleted = account_service.delete_account(account.id, password="secret123", confirmation="DELETE")

    assert deleted.is_active is False
    assert deleted.username == f"deleted_{account.id}"
    assert deleted.email == f"deleted_{account.id}@deleted.com"
    revoked = license_repository.get_license(license.id)
    assert revoked.status == LicenseStatus.REVOKED
    assert revoked.metadata.notes == "Revoked: Account deleted"


def test_set_role_validates_role(account_service, make_account):
    account = make_account()

    assert account_service.set_role(account.id, "moderator").role == AccountRole.MODERATOR
    with pytest.raises(ValueError, match="Invalid role"):
        account_service.set_role(account.id, "superuser")
    with pytest.raises(LookupError):
        account_service.set_role("missing", "admin")


def test_list_accounts_filters_and_paginates(account_service, make_account):
    make_account("alice")
    make_account("bob", role=AccountRole.ADMIN)
    make_account("carol", is_active=False)

    admins = account_service.list_accounts(role=AccountRole.ADMIN)
    inactive = account_service.list_accounts(is_active=False)
    first_page = account_service.list_accounts(page=1, limit=2)

    assert [account.username for account in admins.items] == ["bob"]
    assert [account.username for account in inactive.items] == ["carol"]
    assert first_page.total == 3
    assert len(first_page.items) == 2


def test_role_order_is_user_premium_moderator_admin():
    assert AccountRole.USER < AccountRole.PREMIUM < AccountRole.MODERATOR < AccountRole.ADMIN
    assert AccountRole.ADMIN.meets(AccountRole.MODERATOR)
    assert not AccountRole.USER.meets(AccountRole.PREMIUM)

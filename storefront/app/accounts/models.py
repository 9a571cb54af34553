"""Domain models for storefront accounts."""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AccountRole(str, Enum):
    """Account roles ordered from least to most privileged."""

    USER = "user"
    PREMIUM = "premium"
    MODERATOR = "moderator"
    ADMIN = "admin"

    @property
    def rank(self) -> int:
        return _ROLE_ORDER.index(self)

    def meets(self, minimum: "AccountRole") -> bool:
        """Return whether this role is at least as privileged as ``minimum``."""

        return self.rank >= AccountRole(minimum).rank

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, AccountRole):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, AccountRole):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, AccountRole):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, AccountRole):
            return NotImplemented
        return self.rank >= other.rank


_ROLE_ORDER = (
    AccountRole.USER,
    AccountRole.PREMIUM,
    AccountRole.MODERATOR,
    AccountRole.ADMIN,
)


class SubscriptionPlan(str, Enum):
    FREE = "free"
    BASIC = "basic"
    PREMIUM = "premium"
    LIFETIME = "lifetime"


class SubscriptionState(str, Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    PENDING = "pending"


class Theme(str, Enum):
    DARK = "dark"
    LIGHT = "light"
    AUTO = "auto"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NotificationChannels(BaseModel):
    email: bool = True
    discord: bool = True
    browser: bool = True

    model_config = ConfigDict(frozen=True)


class AccountPreferences(BaseModel):
    """User-facing preferences persisted alongside the account."""

    notifications: NotificationChannels = Field(default_factory=NotificationChannels)
    theme: Theme = Theme.DARK
    language: str = "en"

    model_config = ConfigDict(frozen=True)


class AccountSubscription(BaseModel):
    """Subscription summary kept in sync with issued licenses."""

    plan: SubscriptionPlan = SubscriptionPlan.FREE
    status: SubscriptionState = SubscriptionState.ACTIVE
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    auto_renew: bool = False

    model_config = ConfigDict(frozen=True)

    def is_valid_at(self, now: datetime) -> bool:
        if self.status != SubscriptionState.ACTIVE:
            return False
        return self.end_date is None or self.end_date > now


class AccountStats(BaseModel):
    """Aggregate usage statistics for an account."""

    total_downloads: int = Field(default=0, ge=0)
    total_spent: float = Field(default=0.0, ge=0)
    joined_at: datetime = Field(default_factory=_utcnow)
    last_login: datetime = Field(default_factory=_utcnow)
    login_count: int = Field(default=0, ge=0)

    model_config = ConfigDict(frozen=True)


class Account(BaseModel):
    """A registered storefront account."""

    id: str
    username: str = Field(min_length=3, max_length=64)
    email: str
    discord_id: str
    password_hash: str = Field(repr=False)
    role: AccountRole = AccountRole.USER
    is_active: bool = True
    email_verified: bool = False
    avatar: Optional[str] = None
    bio: str = Field(default="", max_length=500)
    preferences: AccountPreferences = Field(default_factory=AccountPreferences)
    subscription: AccountSubscription = Field(default_factory=AccountSubscription)
    stats: AccountStats = Field(default_factory=AccountStats)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    model_config = ConfigDict(frozen=True)

    @property
    def has_valid_subscription(self) -> bool:
        return self.subscription.is_valid_at(_utcnow())

    def tombstoned(self) -> "Account":
        """Return the soft-deleted form of this account."""

        return self.model_copy(
            update={
                "username": f"deleted_{self.id}",
                "email": f"deleted_{self.id}@deleted.com",
                "discord_id": f"deleted_{self.id}",
                "is_active": False,
                "updated_at": _utcnow(),
            }
        )


class AccountPage(BaseModel):
    """A page of accounts returned by admin listings."""

    items: list[Account]
    total: int

    model_config = ConfigDict(frozen=True)


class DuplicateAccountError(ValueError):
    """Raised when a username, email or chat id is already claimed."""

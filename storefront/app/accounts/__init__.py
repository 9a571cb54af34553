"""Account domain package."""

from .models import (
    Account,
    AccountPage,
    AccountPreferences,
    AccountRole,
    AccountStats,
    AccountSubscription,
    NotificationChannels,
    SubscriptionPlan,
    SubscriptionState,
    Theme,
)
from .service import (
    AccountLicenses,
    AccountRepository,
    AccountService,
    AccountStatsSummary,
    DuplicateAccountError,
)

__all__ = [
    "Account",
    "AccountLicenses",
    "AccountPage",
    "AccountPreferences",
    "AccountRepository",
    "AccountRole",
    "AccountService",
    "AccountStats",
    "AccountStatsSummary",
    "AccountSubscription",
    "DuplicateAccountError",
    "NotificationChannels",
    "SubscriptionPlan",
    "SubscriptionState",
    "Theme",
]

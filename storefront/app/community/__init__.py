"""Community package: checkout hand-off to the ticket bot and static community info."""

from .info import DEFAULT_SERVER_INVITE, community_status, contact_info, purchase_info, support_info
from .models import (
    FALLBACK_MESSAGE,
    TICKET_CREATED_MESSAGE,
    CheckoutOutcome,
    CheckoutSummary,
    TicketReceipt,
)
from .relay import DEFAULT_RELAY_TIMEOUT_SECONDS, CheckoutRelay, build_checkout_summary

__all__ = [
    "CheckoutOutcome",
    "CheckoutRelay",
    "CheckoutSummary",
    "DEFAULT_RELAY_TIMEOUT_SECONDS",
    "DEFAULT_SERVER_INVITE",
    "FALLBACK_MESSAGE",
    "TICKET_CREATED_MESSAGE",
    "TicketReceipt",
    "build_checkout_summary",
    "community_status",
    "contact_info",
    "purchase_info",
    "support_info",
]

"""API schemas for the community (Discord) endpoints."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..community import CheckoutOutcome


class CheckoutRequest(BaseModel):
    items: List[Dict[str, Any]] = Field(min_length=1)
    user: Dict[str, Any] = Field(default_factory=dict)


class CheckoutSummaryOut(BaseModel):
    items: List[Dict[str, Any]]
    user: Dict[str, Any]
    timestamp: datetime
    total: int
    checkout_id: str = Field(alias="checkoutId")

    model_config = ConfigDict(populate_by_name=True)


class CheckoutResponse(BaseModel):
    """Always a success; ``message`` tells whether the bot opened a ticket."""

    success: bool = True
    discord_invite: str = Field(alias="discordInvite")
    message: str
    checkout_id: str = Field(alias="checkoutId")
    ticket_id: Optional[int] = Field(default=None, alias="ticketId")
    summary: CheckoutSummaryOut

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_outcome(cls, outcome: CheckoutOutcome, invite: str) -> "CheckoutResponse":
        summary = outcome.summary
        return cls(
            discord_invite=invite,
            message=outcome.message,
            checkout_id=summary.checkout_id,
            ticket_id=outcome.receipt.ticket_id if outcome.ticket_created else None,
            summary=CheckoutSummaryOut(**summary.model_dump()),
        )


class InviteResponse(BaseModel):
    success: bool = True
    discord_invite: str = Field(alias="discordInvite")
    message: str = "Join our Discord server for support, purchases, and community!"

    model_config = ConfigDict(populate_by_name=True)


class PurchaseRedirectRequest(BaseModel):
    product_type: Optional[str] = Field(default=None, alias="productType")
    license_type: Optional[str] = Field(default=None, alias="licenseType")
    username: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class SupportRedirectRequest(BaseModel):
    issue: Optional[str] = None
    username: Optional[str] = None


class RedirectResponse(BaseModel):
    success: bool = True
    redirect_url: str = Field(alias="redirectUrl")
    message: str
    purchase_info: Optional[Dict[str, Any]] = Field(default=None, alias="purchaseInfo")
    support_info: Optional[Dict[str, Any]] = Field(default=None, alias="supportInfo")

    model_config = ConfigDict(populate_by_name=True)


class ContactInfoResponse(BaseModel):
    success: bool = True
    contact: Dict[str, Any]


class CommunityStatusResponse(BaseModel):
    success: bool = True
    status: str = "active"
    community: Dict[str, Any]
    message: str = "Join our active Discord community!"

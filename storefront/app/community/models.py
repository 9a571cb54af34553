"""Models exchanged with the ticket bot during checkout hand-off."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

TICKET_CREATED_MESSAGE = "Checkout request processed. A support ticket has been created in Discord."
FALLBACK_MESSAGE = "Checkout request processed. Please join Discord for payment assistance."


class CheckoutSummary(BaseModel):
    """Order details forwarded to the bot so staff can fulfil it by hand."""

    items: List[Dict[str, Any]]
    user: Dict[str, Any]
    timestamp: datetime
    total: int
    checkout_id: str = Field(alias="checkoutId")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class TicketReceipt(BaseModel):
    """The bot's answer to a checkout hand-off."""

    success: bool
    message: Optional[str] = None
    ticket_id: Optional[int] = Field(default=None, alias="ticketId")
    channel_id: Optional[str] = Field(default=None, alias="channelId")

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class CheckoutOutcome(BaseModel):
    summary: CheckoutSummary
    receipt: Optional[TicketReceipt] = None

    model_config = ConfigDict(frozen=True)

    @property
    def ticket_created(self) -> bool:
        return bool(self.receipt and self.receipt.success)

    @property
    def message(self) -> str:
        return TICKET_CREATED_MESSAGE if self.ticket_created else FALLBACK_MESSAGE

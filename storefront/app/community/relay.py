"""Best-effort hand-off of checkout requests to the ticket bot."""
from __future__ import annotations

import http.client
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence
from urllib import error as urllib_error, request as urllib_request

from .models import CheckoutOutcome, CheckoutSummary, TicketReceipt

logger = logging.getLogger("community")

DEFAULT_RELAY_TIMEOUT_SECONDS = 10.0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def build_checkout_summary(
    items: Sequence[Mapping[str, Any]],
    user: Mapping[str, Any],
    *,
    now: datetime,
) -> CheckoutSummary:
    return CheckoutSummary(
        items=[dict(item) for item in items],
        user=dict(user),
        timestamp=now,
        total=len(items),
        checkout_id=f"checkout_{int(now.timestamp() * 1000)}",
    )


@dataclass
class CheckoutRelay:
    """POSTs checkout summaries to the bot's ``/checkout`` endpoint.

    Delivery never fails the checkout: any transport or decoding problem is
    logged and the outcome simply carries no receipt.
    """

    bot_url: Optional[str]
    timeout: float = DEFAULT_RELAY_TIMEOUT_SECONDS
    opener: Callable[..., Any] = field(default=urllib_request.urlopen)
    clock: Callable[[], datetime] = field(default=_utcnow)

    def checkout(self, items: Sequence[Mapping[str, Any]], user: Mapping[str, Any]) -> CheckoutOutcome:
        summary = build_checkout_summary(items, user, now=self.clock())
        logger.info(
            "Checkout request from %s",
            user.get("username", "unknown"),
            extra={"checkout_id": summary.checkout_id, "item_count": summary.total},
        )
        receipt = self.deliver(summary)
        return CheckoutOutcome(summary=summary, receipt=receipt)

    def deliver(self, summary: CheckoutSummary) -> Optional[TicketReceipt]:
        if not self.bot_url:
            logger.warning("DISCORD_BOT_HTTP_URL not configured, skipping bot notification")
            return None

        url = f"{self.bot_url.rstrip('/')}/checkout"
        request = urllib_request.Request(
            url,
            data=json.dumps(summary.to_wire()).encode("utf-8"),
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        try:
            with self.opener(request, timeout=self.timeout) as response:
                body = response.read()
            payload: Dict[str, Any] = json.loads(body.decode("utf-8"))
            receipt = TicketReceipt.model_validate(payload)
        except (urllib_error.URLError, http.client.HTTPException, OSError, ValueError) as exc:
            logger.warning(
                "Ticket bot hand-off failed",
                extra={"checkout_id": summary.checkout_id, "bot_url": url, "error": str(exc)},
            )
            return None

        if receipt.success:
            logger.info("Ticket created: %s channel=%s", receipt.ticket_id, receipt.channel_id)
        else:
            logger.warning("Ticket bot declined checkout %s: %s", summary.checkout_id, receipt.message)
        return receipt

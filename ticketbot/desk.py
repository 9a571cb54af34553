"""Ticket lifecycle: opening, confirming, cancelling and closing ticket channels."""
from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping, Optional, Set

from .config import BotConfig
from .platform import Button, ButtonStyle, Channel, ChatPlatform, ChatUser, Embed, EmbedField, Message
from .tickets import Ticket, TicketKind, TicketStatus, TicketStore

logger = logging.getLogger("ticketbot")

CONFIRM_PURCHASE = "confirm_purchase"
CANCEL_PURCHASE = "cancel_purchase"
CLOSE_TICKET = "close_ticket"

CONFIRMED_COLOR = "#10b981"
CANCELLED_COLOR = "#ef4444"
CLOSED_COLOR = "#6b7280"

DEFAULT_SUPPORT_REASON = "General support"
TICKET_DATA_NOT_FOUND = "❌ Ticket data not found."


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_uptime(seconds: float) -> str:
    total = int(seconds)
    days, remainder = divmod(total, 86400)
    hours, remainder = divmod(remainder, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{days}d {hours}h {minutes}m {secs}s"


def _format_items(items: Any) -> str:
    lines = []
    for index, item in enumerate(items or [], start=1):
        item = item if isinstance(item, Mapping) else {}
        lines.append(
            f"**{index}.** {item.get('name', 'Unknown item')}\n"
            f"   ↳ Duration: {item.get('duration', 'N/A')}\n"
            f"   ↳ Price: {item.get('price', 'N/A')}"
        )
    return "\n\n".join(lines) or "No items found"


@dataclass
class TicketDesk:
    """Opens ticket channels on the chat platform and tracks them in a :class:`TicketStore`."""

    platform: ChatPlatform
    store: TicketStore
    config: BotConfig
    clock: Callable[[], datetime] = field(default=_utcnow)
    monotonic: Callable[[], float] = field(default=time.monotonic)
    _started: float = field(init=False, default=0.0)
    _pending_deletions: Set["asyncio.Task[None]"] = field(init=False, default_factory=set)

    def __post_init__(self) -> None:
        self._started = self.monotonic()

    def _staff_mention(self) -> str:
        if self.config.mention_staff and self.config.staff_role_id:
            return f"<@&{self.config.staff_role_id}>"
        return ""

    async def open_checkout_ticket(self, checkout: Mapping[str, Any]) -> Ticket:
        """Open a staff-only ``checkout-<n>`` channel describing a website order."""

        number = self.store.next_number()
        name = f"checkout-{number}"
        try:
            channel = await self.platform.create_channel(
                name=name,
                category_id=self.config.ticket_category_id,
                staff_role_id=self.config.staff_role_id,
            )
            user = checkout.get("user") or {}
            items = checkout.get("items") or []
            embed = Embed(
                title="🛒 New Purchase Request",
                description="A customer has submitted a purchase request from the website.",
                color=self.config.embed_color,
                fields=(
                    EmbedField(
                        name="👤 Customer Information",
                        value=f"**Username:** {user.get('username', 'Unknown')}\n"
                        f"**Timestamp:** {checkout.get('timestamp') or user.get('timestamp') or 'N/A'}",
                    ),
                    EmbedField(name="🛍️ Items Requested", value=_format_items(items)),
                    EmbedField(
                        name="📊 Order Summary",
                        value=f"**Total Items:** {len(items)}\n"
                        f"**Checkout ID:** {checkout.get('checkoutId') or 'N/A'}",
                    ),
                ),
                footer="ByteBunny Purchase System",
                timestamp=self.clock(),
            )
            message_id = await self.platform.send(
                channel.id,
                Message(
                    content=f"{self._staff_mention()} New purchase request!".strip(),
                    embeds=(embed,),
                    buttons=(
                        Button(CONFIRM_PURCHASE, "✅ Process Order", ButtonStyle.SUCCESS),
                        Button(CANCEL_PURCHASE, "❌ Cancel Order", ButtonStyle.DANGER),
                        Button(CLOSE_TICKET, "🔒 Close Ticket", ButtonStyle.SECONDARY),
                    ),
                ),
            )
        except Exception as exc:
            logger.exception("Error creating checkout ticket %s", name)
            await self.log_activity(f"❌ Failed to create checkout ticket: {exc}")
            raise

        ticket = self.store.add(
            Ticket(
                channel_id=channel.id,
                channel_name=channel.name,
                number=number,
                kind=TicketKind.CHECKOUT,
                created_at=self.clock(),
                status=TicketStatus.PENDING,
                message_id=message_id,
                checkout=dict(checkout),
            )
        )
        await self.log_activity(
            f"🎫 Checkout ticket created: {name}",
            {"checkoutData": dict(checkout), "channelId": channel.id},
        )
        return ticket

    async def open_support_ticket(self, author: ChatUser, reason: Optional[str] = None) -> Ticket:
        reason = (reason or "").strip() or DEFAULT_SUPPORT_REASON
        number = self.store.next_number()
        name = f"ticket-{author.username.lower()}-{number}"
        channel = await self.platform.create_channel(
            name=name,
            category_id=self.config.ticket_category_id,
            staff_role_id=self.config.staff_role_id,
            member_ids=(author.id,),
        )
        embed = Embed(
            title="🎫 Support Ticket Created",
            description=f"**Reason:** {reason}",
            color=self.config.embed_color,
            fields=(
                EmbedField(name="👤 User", value=f"{author.mention} ({author.username})", inline=True),
                EmbedField(name="🕐 Created", value=self.clock().isoformat(), inline=True),
            ),
            footer="ByteBunny Support System",
        )
        message_id = await self.platform.send(
            channel.id,
            Message(
                content=f"{author.mention} {self._staff_mention()}".strip(),
                embeds=(embed,),
                buttons=(Button(CLOSE_TICKET, "🔒 Close Ticket", ButtonStyle.SECONDARY),),
            ),
        )
        return self.store.add(
            Ticket(
                channel_id=channel.id,
                channel_name=channel.name,
                number=number,
                kind=TicketKind.SUPPORT,
                created_at=self.clock(),
                status=TicketStatus.OPEN,
                message_id=message_id,
                requester_id=author.id,
                reason=reason,
            )
        )

    async def confirm(self, channel: Channel, staff: ChatUser) -> Ticket:
        return await self._resolve(
            channel,
            staff,
            status=TicketStatus.CONFIRMED,
            title="✅ Order Confirmed",
            description="This purchase request has been processed by staff.",
            color=CONFIRMED_COLOR,
            verb="Processed",
        )

    async def cancel(self, channel: Channel, staff: ChatUser) -> Ticket:
        return await self._resolve(
            channel,
            staff,
            status=TicketStatus.CANCELLED,
            title="❌ Order Cancelled",
            description="This purchase request has been cancelled by staff.",
            color=CANCELLED_COLOR,
            verb="Cancelled",
        )

    async def _resolve(
        self,
        channel: Channel,
        staff: ChatUser,
        *,
        status: TicketStatus,
        title: str,
        description: str,
        color: str,
        verb: str,
    ) -> Ticket:
        ticket = self.store.get(channel.id)
        if ticket is None:
            raise LookupError(TICKET_DATA_NOT_FOUND)

        now = self.clock()
        embed = Embed(
            title=title,
            description=description,
            color=color,
            fields=(
                EmbedField(name=f"👨‍💼 {verb} By", value=f"{staff.mention} ({staff.username})", inline=True),
                EmbedField(name=f"🕐 {verb} At", value=now.isoformat(), inline=True),
            ),
            footer=f"Order Status: {status.value.capitalize()}",
            timestamp=now,
        )
        update = Message(embeds=(embed,), buttons=())
        if ticket.message_id:
            await self.platform.edit(channel.id, ticket.message_id, update)
        else:
            await self.platform.send(channel.id, update)

        ticket.status = status
        ticket.processed_by = staff.id
        ticket.processed_at = now
        await self.log_activity(f"Purchase {status.value} by {staff.username} in {channel.name}")
        return ticket

    async def close(self, channel: Channel, closed_by: ChatUser, *, by_staff: bool = True) -> "asyncio.Task[None]":
        """Announce the closure and delete the channel after the configured delay."""

        embed = Embed(
            title="🔒 Ticket Closed",
            description="This ticket has been closed by staff." if by_staff else "This ticket has been closed.",
            color=CLOSED_COLOR,
            fields=(
                EmbedField(name="👨‍💼 Closed By", value=f"{closed_by.mention} ({closed_by.username})", inline=True),
                EmbedField(name="🕐 Closed At", value=self.clock().isoformat(), inline=True),
            ),
            footer="Ticket Status: Closed",
        )
        await self.platform.send(channel.id, Message(embeds=(embed,)))

        task = asyncio.get_running_loop().create_task(self._delete_later(channel))
        self._pending_deletions.add(task)
        task.add_done_callback(self._pending_deletions.discard)
        await self.log_activity(f"🔒 Ticket closed by {closed_by.username}: {channel.name}")
        return task

    async def _delete_later(self, channel: Channel) -> None:
        await asyncio.sleep(self.config.close_delay_seconds)
        try:
            await self.platform.delete_channel(channel.id)
        except Exception:
            logger.warning("Error deleting ticket channel %s", channel.name, exc_info=True)
            return
        self.store.remove(channel.id)

    def help_message(self) -> Message:
        prefix = self.config.prefix
        embed = Embed(
            title="🤖 ByteBunny Bot Commands",
            description="Available commands for the ByteBunny Discord Bot",
            color=self.config.embed_color,
            fields=(
                EmbedField(
                    name="🎫 Ticket Commands",
                    value=f"`{prefix}ticket [reason]` - Create a support ticket\n"
                    f"`{prefix}close` - Close the current ticket",
                ),
                EmbedField(
                    name="📊 Information Commands",
                    value=f"`{prefix}status` - Show bot status\n`{prefix}help` - Show this help message",
                ),
                EmbedField(
                    name="🛒 Purchase System",
                    value="Purchase tickets are automatically created when customers checkout on the website.",
                ),
            ),
            footer="ByteBunny Support System",
            timestamp=self.clock(),
        )
        return Message(embeds=(embed,))

    def status_message(self) -> Message:
        guild = self.platform.guild_summary()
        embed = Embed(
            title="📊 Bot Status",
            color=self.config.embed_color,
            fields=(
                EmbedField(
                    name="🤖 Bot Information",
                    value=f"**Status:** Online\n**Uptime:** {format_uptime(self.uptime_seconds)}",
                    inline=True,
                ),
                EmbedField(
                    name="🏪 Server Information",
                    value=f"**Server:** {guild.name if guild else 'Unknown'}\n"
                    f"**Members:** {guild.member_count if guild else 'Unknown'}\n"
                    f"**Active Tickets:** {len(self.store)}",
                    inline=True,
                ),
            ),
            footer="ByteBunny Bot v1.0.0",
            timestamp=self.clock(),
        )
        return Message(embeds=(embed,))

    @property
    def uptime_seconds(self) -> float:
        return max(0.0, self.monotonic() - self._started)

    async def log_activity(self, text: str, data: Optional[Dict[str, Any]] = None) -> None:
        """Post ``text`` to the log channel when one is configured; failures are only logged."""

        logger.info(text)
        if not self.config.log_channel_id:
            return
        fields = ()
        if data is not None:
            dumped = json.dumps(data, indent=2, default=str)[:1000]
            fields = (EmbedField(name="Additional Data", value=f"```json\n{dumped}```"),)
        try:
            await self.platform.send(
                self.config.log_channel_id,
                Message(embeds=(Embed(description=text, color=CLOSED_COLOR, fields=fields, timestamp=self.clock()),)),
            )
        except Exception:
            logger.warning("Error logging activity", exc_info=True)

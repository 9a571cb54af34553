"""Dispatch of prefix commands and button presses to the ticket desk."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .desk import CANCEL_PURCHASE, CLOSE_TICKET, CONFIRM_PURCHASE, TICKET_DATA_NOT_FOUND, TicketDesk
from .platform import Channel, ChatUser, Message

logger = logging.getLogger("ticketbot")

TICKET_CHANNEL_PREFIXES = ("ticket-", "checkout-")


@dataclass(frozen=True)
class IncomingMessage:
    channel: Channel
    author: ChatUser
    content: str
    author_is_bot: bool = False


@dataclass(frozen=True)
class ButtonPress:
    channel: Channel
    user: ChatUser
    custom_id: str


def is_ticket_channel(channel: Channel) -> bool:
    return channel.name.startswith(TICKET_CHANNEL_PREFIXES)


class CommandRouter:
    """Turns chat events into desk calls and returns the reply to post, if any."""

    def __init__(self, desk: TicketDesk) -> None:
        self._desk = desk

    @property
    def prefix(self) -> str:
        return self._desk.config.prefix

    async def handle_message(self, event: IncomingMessage) -> Optional[Message]:
        if event.author_is_bot or not event.content.startswith(self.prefix):
            return None

        parts = event.content[len(self.prefix):].strip().split()
        if not parts:
            return None
        command, args = parts[0].lower(), parts[1:]

        if command == "help":
            return self._desk.help_message()
        if command == "status":
            return self._desk.status_message()
        if command == "ticket":
            return await self._open_ticket(event.author, " ".join(args))
        if command == "close":
            return await self._close(event)
        return None

    async def _open_ticket(self, author: ChatUser, reason: str) -> Message:
        try:
            ticket = await self._desk.open_support_ticket(author, reason)
        except Exception:
            logger.exception("Error creating ticket for %s", author.username)
            return Message(content="❌ Failed to create ticket. Please contact an administrator.")
        return Message(content=f"✅ Ticket created: #{ticket.channel_name}")

    async def _close(self, event: IncomingMessage) -> Optional[Message]:
        if not is_ticket_channel(event.channel):
            return Message(content="❌ This command can only be used in ticket channels.")
        await self._desk.close(event.channel, event.author, by_staff=False)
        return None

    async def handle_button(self, press: ButtonPress) -> Optional[Message]:
        try:
            if press.custom_id == CONFIRM_PURCHASE:
                await self._desk.confirm(press.channel, press.user)
                return Message(content="✅ Order marked as confirmed.", ephemeral=True)
            if press.custom_id == CANCEL_PURCHASE:
                await self._desk.cancel(press.channel, press.user)
                return Message(content="❌ Order marked as cancelled.", ephemeral=True)
            if press.custom_id == CLOSE_TICKET:
                await self._desk.close(press.channel, press.user)
                return None
        except LookupError:
            return Message(content=TICKET_DATA_NOT_FOUND, ephemeral=True)
        except Exception:
            logger.exception("Error handling button %s in %s", press.custom_id, press.channel.name)
            return Message(content="❌ An error occurred while processing your request.", ephemeral=True)
        logger.debug("Ignoring unknown button %s", press.custom_id)
        return None

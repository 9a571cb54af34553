"""Chat platform seam used by the ticket desk."""
from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Protocol, Sequence

logger = logging.getLogger("ticketbot")


class ButtonStyle(str, Enum):
    SUCCESS = "success"
    DANGER = "danger"
    SECONDARY = "secondary"


@dataclass(frozen=True)
class EmbedField:
    name: str
    value: str
    inline: bool = False


@dataclass(frozen=True)
class Embed:
    title: Optional[str] = None
    description: Optional[str] = None
    color: Optional[str] = None
    fields: Sequence[EmbedField] = ()
    footer: Optional[str] = None
    timestamp: Optional[datetime] = None


@dataclass(frozen=True)
class Button:
    custom_id: str
    label: str
    style: ButtonStyle = ButtonStyle.SECONDARY


@dataclass(frozen=True)
class Message:
    content: Optional[str] = None
    embeds: Sequence[Embed] = ()
    buttons: Sequence[Button] = ()
    ephemeral: bool = False


@dataclass(frozen=True)
class Channel:
    id: str
    name: str


@dataclass(frozen=True)
class ChatUser:
    id: str
    username: str

    @property
    def mention(self) -> str:
        return f"<@{self.id}>"


@dataclass(frozen=True)
class GuildSummary:
    name: str
    member_count: int


class ChatPlatform(Protocol):
    """Operations the bot needs from the chat platform SDK."""

    @property
    def bot_tag(self) -> Optional[str]:
        ...

    @property
    def is_ready(self) -> bool:
        """Whether the gateway session is up and channels can be created."""
        ...

    async def create_channel(
        self,
        *,
        name: str,
        category_id: Optional[str],
        staff_role_id: Optional[str],
        member_ids: Sequence[str] = (),
    ) -> Channel:
        ...

    async def send(self, channel_id: str, message: Message) -> str:
        ...

    async def edit(self, channel_id: str, message_id: str, message: Message) -> None:
        ...

    async def delete_channel(self, channel_id: str) -> None:
        ...

    def guild_summary(self) -> Optional[GuildSummary]:
        ...


@dataclass
class SentMessage:
    channel_id: str
    message_id: str
    message: Message


@dataclass
class LoggingChatPlatform(ChatPlatform):
    """Platform that keeps channels in memory and logs every message.

    Local development and tests only: nothing reaches a real server.
    """

    tag: Optional[str] = "ByteBunny#0000"
    connected: bool = True
    guild: Optional[GuildSummary] = None
    channels: Dict[str, Channel] = field(default_factory=dict)
    sent: List[SentMessage] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)
    _ids: "itertools.count[int]" = field(default_factory=lambda: itertools.count(1000))

    @property
    def bot_tag(self) -> Optional[str]:
        return self.tag

    @property
    def is_ready(self) -> bool:
        return self.connected

    async def create_channel(
        self,
        *,
        name: str,
        category_id: Optional[str],
        staff_role_id: Optional[str],
        member_ids: Sequence[str] = (),
    ) -> Channel:
        channel = Channel(id=str(next(self._ids)), name=name)
        self.channels[channel.id] = channel
        logger.info(
            "Created channel %s (%s)",
            channel.name,
            channel.id,
            extra={"category_id": category_id, "staff_role_id": staff_role_id, "member_ids": list(member_ids)},
        )
        return channel

    async def send(self, channel_id: str, message: Message) -> str:
        message_id = str(next(self._ids))
        self.sent.append(SentMessage(channel_id=channel_id, message_id=message_id, message=message))
        titles = [embed.title for embed in message.embeds if embed.title]
        logger.info("Message to %s: %s %s", channel_id, message.content or "", titles)
        return message_id

    async def edit(self, channel_id: str, message_id: str, message: Message) -> None:
        self.sent.append(SentMessage(channel_id=channel_id, message_id=message_id, message=message))
        logger.info("Edited message %s in %s", message_id, channel_id)

    async def delete_channel(self, channel_id: str) -> None:
        if self.channels.pop(channel_id, None) is None:
            raise LookupError(f"Unknown channel {channel_id}")
        self.deleted.append(channel_id)
        logger.info("Deleted channel %s", channel_id)

    def guild_summary(self) -> Optional[GuildSummary]:
        return self.guild

    def messages_in(self, channel_id: str) -> List[Message]:
        return [item.message for item in self.sent if item.channel_id == channel_id]

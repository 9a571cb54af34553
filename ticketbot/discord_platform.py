"""discord.py implementation of the chat platform and its gateway event wiring."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence

import discord

from .commands import ButtonPress, CommandRouter, IncomingMessage
from .config import BotConfig
from .platform import Button, ButtonStyle, Channel, ChatPlatform, ChatUser, Embed, GuildSummary, Message

logger = logging.getLogger("ticketbot")

ACTIVITY_NAME = "Managing ByteBunny purchases"

_BUTTON_STYLES = {
    ButtonStyle.SUCCESS: discord.ButtonStyle.success,
    ButtonStyle.DANGER: discord.ButtonStyle.danger,
    ButtonStyle.SECONDARY: discord.ButtonStyle.secondary,
}


def default_intents() -> discord.Intents:
    intents = discord.Intents.default()
    intents.message_content = True
    intents.members = True
    return intents


def to_discord_embed(embed: Embed) -> discord.Embed:
    result = discord.Embed(
        title=embed.title,
        description=embed.description,
        colour=discord.Colour.from_str(embed.color) if embed.color else None,
        timestamp=embed.timestamp,
    )
    for item in embed.fields:
        result.add_field(name=item.name, value=item.value, inline=item.inline)
    if embed.footer:
        result.set_footer(text=embed.footer)
    return result


def _button_view(buttons: Sequence[Button]) -> Optional[discord.ui.View]:
    if not buttons:
        return None
    view = discord.ui.View(timeout=None)
    for button in buttons:
        view.add_item(
            discord.ui.Button(label=button.label, style=_BUTTON_STYLES[button.style], custom_id=button.custom_id)
        )
    return view


def _send_kwargs(message: Message) -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {}
    if message.content is not None:
        kwargs["content"] = message.content
    if message.embeds:
        kwargs["embeds"] = [to_discord_embed(embed) for embed in message.embeds]
    view = _button_view(message.buttons)
    if view is not None:
        kwargs["view"] = view
    return kwargs


def _user_of(user: Any) -> ChatUser:
    return ChatUser(id=str(user.id), username=user.name)


def _channel_of(channel: Any) -> Channel:
    return Channel(id=str(channel.id), name=getattr(channel, "name", None) or "")


class DiscordChatPlatform(ChatPlatform):
    """Talks to one guild through a ``discord.Client``.

    Ticket channels are created under ``TICKET_CATEGORY_ID``, hidden from
    ``@everyone`` and opened to the staff role and any listed members.
    """

    def __init__(self, config: BotConfig, *, client: Optional[discord.Client] = None) -> None:
        self.config = config
        self.client = client or discord.Client(intents=default_intents())

    @property
    def bot_tag(self) -> Optional[str]:
        user = self.client.user
        return str(user) if user is not None else None

    @property
    def is_ready(self) -> bool:
        return self.client.is_ready()

    def _guild(self) -> discord.Guild:
        if not self.config.guild_id:
            raise LookupError("DISCORD_GUILD_ID is not configured")
        guild = self.client.get_guild(int(self.config.guild_id))
        if guild is None:
            raise LookupError("Guild not found")
        return guild

    async def _channel(self, channel_id: str) -> Any:
        channel = self.client.get_channel(int(channel_id))
        if channel is None:
            channel = await self.client.fetch_channel(int(channel_id))
        return channel

    async def create_channel(
        self,
        *,
        name: str,
        category_id: Optional[str],
        staff_role_id: Optional[str],
        member_ids: Sequence[str] = (),
    ) -> Channel:
        guild = self._guild()
        overwrites: Dict[Any, discord.PermissionOverwrite] = {
            guild.default_role: discord.PermissionOverwrite(view_channel=False),
        }
        for member_id in member_ids:
            member = guild.get_member(int(member_id)) or discord.Object(id=int(member_id))
            overwrites[member] = discord.PermissionOverwrite(view_channel=True, send_messages=True)
        if staff_role_id:
            role = guild.get_role(int(staff_role_id))
            if role is None:
                logger.warning("Staff role %s not found in guild %s", staff_role_id, guild.name)
            else:
                overwrites[role] = discord.PermissionOverwrite(
                    view_channel=True, send_messages=True, manage_messages=True
                )

        category = guild.get_channel(int(category_id)) if category_id else None
        created = await guild.create_text_channel(
            name,
            category=category if isinstance(category, discord.CategoryChannel) else None,
            overwrites=overwrites,
        )
        return Channel(id=str(created.id), name=created.name)

    async def send(self, channel_id: str, message: Message) -> str:
        channel = await self._channel(channel_id)
        sent = await channel.send(**_send_kwargs(message))
        return str(sent.id)

    async def edit(self, channel_id: str, message_id: str, message: Message) -> None:
        channel = await self._channel(channel_id)
        kwargs: Dict[str, Any] = {
            "embeds": [to_discord_embed(embed) for embed in message.embeds],
            "view": _button_view(message.buttons),
        }
        if message.content is not None:
            kwargs["content"] = message.content
        await channel.get_partial_message(int(message_id)).edit(**kwargs)

    async def delete_channel(self, channel_id: str) -> None:
        channel = await self._channel(channel_id)
        await channel.delete()

    def guild_summary(self) -> Optional[GuildSummary]:
        try:
            guild = self._guild()
        except LookupError:
            return None
        return GuildSummary(name=guild.name, member_count=guild.member_count or 0)

    async def dispatch_message(self, router: CommandRouter, message: Any) -> None:
        event = IncomingMessage(
            channel=_channel_of(message.channel),
            author=_user_of(message.author),
            content=message.content or "",
            author_is_bot=bool(message.author.bot),
        )
        reply = await router.handle_message(event)
        if reply is not None:
            await message.channel.send(**_send_kwargs(reply))

    async def dispatch_interaction(self, router: CommandRouter, interaction: Any) -> None:
        if interaction.type is not discord.InteractionType.component or interaction.channel is None:
            return
        custom_id = (interaction.data or {}).get("custom_id")
        if not custom_id:
            return

        press = ButtonPress(
            channel=_channel_of(interaction.channel),
            user=_user_of(interaction.user),
            custom_id=custom_id,
        )
        reply = await router.handle_button(press)
        if reply is not None:
            await interaction.response.send_message(ephemeral=reply.ephemeral, **_send_kwargs(reply))
        elif not interaction.response.is_done():
            await interaction.response.defer()

    def attach(self, router: CommandRouter) -> None:
        """Register gateway handlers that feed ``router``."""

        client = self.client

        @client.event
        async def on_ready() -> None:
            logger.info("ByteBunny Bot is online as %s", client.user)
            await client.change_presence(
                activity=discord.Activity(type=discord.ActivityType.watching, name=ACTIVITY_NAME)
            )

        @client.event
        async def on_message(message: discord.Message) -> None:
            await self.dispatch_message(router, message)

        @client.event
        async def on_interaction(interaction: discord.Interaction) -> None:
            await self.dispatch_interaction(router, interaction)

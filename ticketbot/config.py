"""Ticket bot configuration helpers."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_EMBED_COLOR = "#ff4757"


@dataclass(frozen=True)
class BotConfig:
    """Configuration for the ticket bot process."""

    bot_token: Optional[str]
    guild_id: Optional[str]
    ticket_category_id: Optional[str]
    staff_role_id: Optional[str]
    log_channel_id: Optional[str]
    prefix: str
    embed_color: str
    http_port: int
    close_delay_seconds: float
    mention_staff: bool


def _to_bool(value: Optional[str], *, default: bool) -> bool:
    if value is None:
        return default
    lowered = value.strip().lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    return default


def _to_int(value: Optional[str], *, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Expected integer value, got {value!r}") from exc


def _to_float(value: Optional[str], *, default: float) -> float:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Expected float value, got {value!r}") from exc


def load_bot_config(env: Optional[Mapping[str, str]] = None) -> BotConfig:
    """Load :class:`BotConfig` from environment variables."""

    env_mapping = os.environ if env is None else env

    return BotConfig(
        bot_token=env_mapping.get("DISCORD_BOT_TOKEN") or None,
        guild_id=env_mapping.get("DISCORD_GUILD_ID") or None,
        ticket_category_id=env_mapping.get("TICKET_CATEGORY_ID") or None,
        staff_role_id=env_mapping.get("STAFF_ROLE_ID") or None,
        log_channel_id=env_mapping.get("LOG_CHANNEL_ID") or None,
        prefix=env_mapping.get("BOT_PREFIX") or "!",
        embed_color=env_mapping.get("EMBED_COLOR") or DEFAULT_EMBED_COLOR,
        http_port=_to_int(env_mapping.get("BOT_HTTP_PORT"), default=3001),
        close_delay_seconds=max(0.0, _to_float(env_mapping.get("TICKET_CLOSE_DELAY_SECONDS"), default=5.0)),
        mention_staff=_to_bool(env_mapping.get("TICKET_MENTION_STAFF"), default=True),
    )

"""Application wiring for the checkout relay."""
from __future__ import annotations

from functools import lru_cache

from ...app_context import get_config
from ..community import CheckoutRelay


@lru_cache(maxsize=1)
def get_checkout_relay() -> CheckoutRelay:
    config = get_config()
    return CheckoutRelay(
        bot_url=config.discord_bot_http_url,
        timeout=config.bot_relay_timeout_seconds,
    )


def get_server_invite() -> str:
    return get_config().discord_server_invite


__all__ = ["get_checkout_relay", "get_server_invite"]

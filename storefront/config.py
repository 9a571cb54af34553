"""Environment-driven configuration for the storefront API."""
from __future__ import annotations

import math
import os
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional


@dataclass(frozen=True)
class AppConfig:
    """Runtime settings for the storefront API process."""

    db_host: str
    db_port: int
    db_name: str
    db_user: str
    db_password: str
    db_connect_timeout: int
    jwt_secret_key: str
    jwt_exp_minutes: int
    stripe_secret_key: Optional[str]
    stripe_webhook_secret: Optional[str]
    payment_provider: str
    discord_server_invite: str
    discord_bot_http_url: Optional[str]
    bot_relay_timeout_seconds: float
    frontend_url: str
    rate_limit_window_seconds: int
    rate_limit_max_requests: int
    app_env: str
    port: int

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def db_settings(self) -> Dict[str, Any]:
        return dict(
            host=self.db_host,
            port=self.db_port,
            dbname=self.db_name,
            user=self.db_user,
            password=self.db_password,
            connect_timeout=self.db_connect_timeout,
        )


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


def _parse_connect_timeout(raw_value: Optional[str]) -> int:
    timeout = _to_float(raw_value, default=5.0)
    if timeout < 0:
        raise ValueError("DB_CONNECT_TIMEOUT must be non-negative")
    return int(math.ceil(timeout))


def load_config(env: Optional[Mapping[str, str]] = None) -> AppConfig:
    """Load :class:`AppConfig` from environment variables."""

    env_mapping = os.environ if env is None else env

    payment_provider = (env_mapping.get("PAYMENT_PROVIDER") or "").strip().lower()
    stripe_secret_key = env_mapping.get("STRIPE_SECRET_KEY") or None
    if not payment_provider:
        payment_provider = "stripe" if stripe_secret_key else "sandbox"
    if payment_provider not in {"stripe", "sandbox"}:
        raise ValueError(f"Unsupported PAYMENT_PROVIDER {payment_provider!r}")

    return AppConfig(
        db_host=env_mapping.get("DB_HOST", "127.0.0.1"),
        db_port=_to_int(env_mapping.get("DB_PORT"), default=5432),
        db_name=env_mapping.get("DB_NAME", "storefront_db"),
        db_user=env_mapping.get("DB_USER", "storefront"),
        db_password=env_mapping.get("DB_PASSWORD", "storefront"),
        db_connect_timeout=_parse_connect_timeout(env_mapping.get("DB_CONNECT_TIMEOUT")),
        jwt_secret_key=env_mapping.get("JWT_SECRET_KEY", "dev-secret-change-me"),
        jwt_exp_minutes=max(1, _to_int(env_mapping.get("JWT_EXP_MINUTES"), default=60 * 24 * 7)),
        stripe_secret_key=stripe_secret_key,
        stripe_webhook_secret=env_mapping.get("STRIPE_WEBHOOK_SECRET") or None,
        payment_provider=payment_provider,
        discord_server_invite=env_mapping.get("DISCORD_SERVER_INVITE") or "https://discord.gg/bytebunny",
        discord_bot_http_url=env_mapping.get("DISCORD_BOT_HTTP_URL") or None,
        bot_relay_timeout_seconds=max(0.1, _to_float(env_mapping.get("BOT_RELAY_TIMEOUT_SECONDS"), default=10.0)),
        frontend_url=env_mapping.get("FRONTEND_URL", "http://localhost:3000"),
        rate_limit_window_seconds=max(1, _to_int(env_mapping.get("RATE_LIMIT_WINDOW_SECONDS"), default=15 * 60)),
        rate_limit_max_requests=max(1, _to_int(env_mapping.get("RATE_LIMIT_MAX_REQUESTS"), default=100)),
        app_env=(env_mapping.get("APP_ENV") or "production").strip().lower(),
        port=_to_int(env_mapping.get("PORT"), default=5000),
    )

"""Shared application context for reusable dependencies."""
from __future__ import annotations

from typing import Any, Callable, Optional

from .config import AppConfig, load_config

_get_conn: Optional[Callable[[], Any]] = None
_get_current_account: Optional[Callable[..., Any]] = None
_config: Optional[AppConfig] = None


def configure(
    *,
    get_conn: Callable[[], Any],
    get_current_account: Callable[..., Any],
    config: AppConfig,
) -> None:
    """Register application-wide dependencies required by modular routers."""

    global _get_conn
    global _get_current_account
    global _config

    _get_conn = get_conn
    _get_current_account = get_current_account
    _config = config


def _require(value: Optional[Any], name: str) -> Any:
    if value is None:
        raise RuntimeError(f"Application context has not been configured yet: {name}")
    return value


def get_conn() -> Any:
    conn_factory = _require(_get_conn, "get_conn")
    return conn_factory()


def get_current_account(*args: Any, **kwargs: Any) -> Any:
    dependency = _require(_get_current_account, "get_current_account")
    return dependency(*args, **kwargs)


def get_config() -> AppConfig:
    """Return the configured settings, falling back to the environment."""

    global _config
    if _config is None:
        _config = load_config()
    return _config

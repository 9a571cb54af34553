"""HTTP endpoint the storefront posts checkouts to, plus the process entry point."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ticketbot.commands import CommandRouter
from ticketbot.config import BotConfig, load_bot_config
from ticketbot.desk import TicketDesk
from ticketbot.discord_platform import DiscordChatPlatform
from ticketbot.platform import ChatPlatform
from ticketbot.tickets import TicketStore

logger = logging.getLogger("ticketbot")

BOT_OFFLINE_MESSAGE = "Bot is not connected to Discord"


def create_app(desk: TicketDesk) -> FastAPI:
    app = FastAPI(title="ByteBunny Ticket Bot")
    app.state.desk = desk
    app.state.commands = CommandRouter(desk)

    @app.get("/health")
    def health() -> Dict[str, Any]:
        return {
            "status": "online",
            "bot": desk.platform.bot_tag or "connecting...",
            "activeTickets": len(desk.store),
        }

    @app.post("/checkout")
    async def checkout(request: Request):
        if not desk.platform.is_ready:
            return JSONResponse(
                status_code=503,
                content={"success": False, "error": "Failed to create ticket", "message": BOT_OFFLINE_MESSAGE},
            )
        try:
            payload = await request.json()
        except ValueError:
            payload = None
        if not isinstance(payload, dict):
            return JSONResponse(
                status_code=400,
                content={"success": False, "error": "Failed to create ticket", "message": "Invalid checkout payload"},
            )

        try:
            ticket = await desk.open_checkout_ticket(payload)
        except Exception as exc:
            logger.error("Error processing checkout: %s", exc)
            return JSONResponse(
                status_code=500,
                content={"success": False, "error": "Failed to create ticket", "message": str(exc)},
            )
        return {
            "success": True,
            "message": "Ticket created successfully",
            "ticketId": ticket.number,
            "channelId": ticket.channel_id,
        }

    return app


def build_desk(config: Optional[BotConfig] = None, platform: Optional[ChatPlatform] = None) -> TicketDesk:
    config = config or load_bot_config()
    return TicketDesk(platform=platform or DiscordChatPlatform(config), store=TicketStore(), config=config)


def _report_gateway_exit(task: "asyncio.Task[None]") -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Discord gateway stopped: %s", exc, exc_info=exc)


async def serve(config: BotConfig) -> None:
    """Run the gateway client and the HTTP endpoint on one event loop."""

    platform = DiscordChatPlatform(config)
    app = create_app(build_desk(config, platform))
    server = uvicorn.Server(uvicorn.Config(app, host="0.0.0.0", port=config.http_port))

    if not config.bot_token:
        logger.error("DISCORD_BOT_TOKEN is not set; checkout requests will be refused until it is")
        await server.serve()
        return

    platform.attach(app.state.commands)
    async with platform.client:
        gateway = asyncio.create_task(platform.client.start(config.bot_token))
        gateway.add_done_callback(_report_gateway_exit)
        await server.serve()


def main() -> None:
    load_dotenv()
    logging.basicConfig(level=logging.INFO)
    asyncio.run(serve(load_bot_config()))


if __name__ == "__main__":
    main()

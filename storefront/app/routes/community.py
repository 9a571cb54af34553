"""API routes pointing buyers at the Discord community and handing checkouts to the ticket bot."""
from __future__ import annotations

import logging

from fastapi import APIRouter

from ..community import community_status, contact_info, purchase_info, support_info
from ..schemas.community import (
    CheckoutRequest,
    CheckoutResponse,
    CommunityStatusResponse,
    ContactInfoResponse,
    InviteResponse,
    PurchaseRedirectRequest,
    RedirectResponse,
    SupportRedirectRequest,
)
from ..services.community import get_checkout_relay, get_server_invite

logger = logging.getLogger("community")

router = APIRouter(prefix="/api/discord", tags=["community"])


@router.get("/server-invite", response_model=InviteResponse)
def server_invite() -> InviteResponse:
    return InviteResponse(discord_invite=get_server_invite())


@router.post("/checkout", response_model=CheckoutResponse)
def checkout(payload: CheckoutRequest) -> CheckoutResponse:
    outcome = get_checkout_relay().checkout(payload.items, payload.user)
    return CheckoutResponse.from_outcome(outcome, get_server_invite())


@router.post("/purchase-redirect", response_model=RedirectResponse)
def purchase_redirect(payload: PurchaseRedirectRequest) -> RedirectResponse:
    logger.info(
        "Purchase interest: %s - %s (%s)",
        payload.username or "Anonymous",
        payload.product_type,
        payload.license_type,
    )
    return RedirectResponse(
        redirect_url=get_server_invite(),
        message="Please join our Discord server and contact an admin to complete your purchase!",
        purchase_info=purchase_info(payload.product_type, payload.license_type),
    )


@router.post("/support-redirect", response_model=RedirectResponse)
def support_redirect(payload: SupportRedirectRequest) -> RedirectResponse:
    logger.info("Support request: %s - %s", payload.username or "Anonymous", payload.issue)
    return RedirectResponse(
        redirect_url=get_server_invite(),
        message="Please join our Discord server for support and assistance!",
        support_info=support_info(payload.issue),
    )


@router.get("/contact-info", response_model=ContactInfoResponse)
def get_contact_info() -> ContactInfoResponse:
    return ContactInfoResponse(contact=contact_info(get_server_invite()))


@router.get("/status", response_model=CommunityStatusResponse)
def get_status() -> CommunityStatusResponse:
    return CommunityStatusResponse(community=community_status(get_server_invite()))

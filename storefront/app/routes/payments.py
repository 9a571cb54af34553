"""API routes for payment intents, confirmation and provider webhooks."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, status

from ..payments import PaymentProviderError
from ..schemas.common import Pagination
from ..schemas.licenses import LicenseOut
from ..schemas.payments import (
    ConfirmPaymentRequest,
    ConfirmPaymentResponse,
    CreateIntentRequest,
    CreateIntentResponse,
    PaymentHistoryOut,
    PaymentHistoryResponse,
    PricingResponse,
    WebhookAck,
)
from ..services.payments import get_payment_service
from .dependencies import get_current_account

router = APIRouter(prefix="/api/payments", tags=["payments"])


@router.post("/create-intent", response_model=CreateIntentResponse)
def create_payment_intent(
    payload: CreateIntentRequest,
    *,
    current_account=Depends(get_current_account),
) -> CreateIntentResponse:
    service = get_payment_service()
    try:
        session = service.create_intent(
            current_account,
            product_type=payload.product_type,
            tier=payload.license_type,
            amount=payload.amount,
            currency=payload.currency,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except PaymentProviderError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return CreateIntentResponse.from_session(session)


@router.post("/confirm", response_model=ConfirmPaymentResponse)
def confirm_payment(
    payload: ConfirmPaymentRequest,
    *,
    current_account=Depends(get_current_account),
) -> ConfirmPaymentResponse:
    service = get_payment_service()
    try:
        license = service.confirm_payment(
            current_account,
            payload.payment_intent_id,
            product_type=payload.product_type,
            tier=payload.license_type,
        )
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except PermissionError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except PaymentProviderError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return ConfirmPaymentResponse(license=LicenseOut.from_license(license, service.clock()))


@router.post("/webhook", response_model=WebhookAck)
async def receive_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None, alias="stripe-signature"),
) -> WebhookAck:
    service = get_payment_service()
    payload = await request.body()
    try:
        service.handle_webhook(payload, stripe_signature)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Webhook Error: {exc}") from exc
    return WebhookAck()


@router.get("/history", response_model=PaymentHistoryResponse)
def payment_history(
    *,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    current_account=Depends(get_current_account),
) -> PaymentHistoryResponse:
    result = get_payment_service().history(current_account.id, page=page, limit=limit)
    return PaymentHistoryResponse(
        payments=[PaymentHistoryOut.from_item(item) for item in result.items],
        pagination=Pagination.build(page=page, limit=limit, total=result.total),
    )


@router.get("/pricing", response_model=PricingResponse)
def pricing() -> PricingResponse:
    return PricingResponse(pricing=get_payment_service().pricing())

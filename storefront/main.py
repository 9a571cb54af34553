import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Optional

import psycopg2
from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Header, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront import app_context
from storefront.app import security
from storefront.app.accounts import Account, DuplicateAccountError
from storefront.app.routes.community import router as community_router
from storefront.app.routes.dashboard import router as dashboard_router
from storefront.app.routes.downloads import router as downloads_router
from storefront.app.routes.licenses import router as licenses_router
from storefront.app.routes.payments import router as payments_router
from storefront.app.routes.users import router as users_router
from storefront.app.schemas.accounts import (
    AccountOut,
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    TokenResponse,
)
from storefront.app.schemas.common import MessageResponse
from storefront.app.services.accounts import get_account_service
from storefront.config import load_config
from storefront.middleware_rate_limit import FixedWindowRateLimiter, RateLimitMiddleware

load_dotenv()

CONFIG = load_config()

logger = logging.getLogger("storefront")

_started_at = time.monotonic()


def get_conn():
    return psycopg2.connect(**CONFIG.db_settings)


def create_access_token(account: Account, *, expires_delta: Optional[timedelta] = None) -> str:
    if expires_delta is None:
        expires_delta = timedelta(minutes=CONFIG.jwt_exp_minutes)
    claims = {"sub": account.id, "username": account.username, "role": account.role.value}
    return security.create_token(claims, secret=CONFIG.jwt_secret_key, expires_delta=expires_delta)


def _extract_token(authorization: Optional[str], x_auth_token: Optional[str]) -> Optional[str]:
    if authorization:
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer" and credentials.strip():
            return credentials.strip()
    return x_auth_token or None


def get_account_by_id(account_id: str) -> Optional[Account]:
    try:
        return get_account_service().get_account(account_id)
    except LookupError:
        return None


def get_current_account(
    authorization: Optional[str] = Header(None),
    x_auth_token: Optional[str] = Header(None, alias="x-auth-token"),
) -> Account:
    token = _extract_token(authorization, x_auth_token)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="No token, authorization denied")

    try:
        claims = security.decode_token(token, secret=CONFIG.jwt_secret_key)
    except security.TokenError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc

    subject = claims.get("sub")
    account = get_account_by_id(str(subject)) if subject else None
    if account is None or not account.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found or inactive")
    return account


app = FastAPI(title="ByteBunny Storefront API")

app.add_middleware(
    RateLimitMiddleware,
    limiter=FixedWindowRateLimiter(
        window_seconds=CONFIG.rate_limit_window_seconds,
        max_requests=CONFIG.rate_limit_max_requests,
    ),
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[CONFIG.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(licenses_router)
app.include_router(downloads_router)
app.include_router(users_router)
app.include_router(payments_router)
app.include_router(dashboard_router)
app.include_router(community_router)


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    message = str(exc) if CONFIG.is_development else "Internal server error"
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Something went wrong!", "message": message},
    )


@app.post("/api/auth/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest) -> AuthResponse:
    try:
        account = get_account_service().register(
            username=payload.username,
            email=payload.email,
            discord_id=payload.discord_id,
            password=payload.password,
        )
    except DuplicateAccountError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return AuthResponse(token=create_access_token(account), user=AccountOut.from_account(account))


@app.post("/api/auth/login", response_model=AuthResponse)
def login(payload: LoginRequest) -> AuthResponse:
    try:
        account = get_account_service().authenticate(payload.email, payload.password)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    logger.info("Account %s logged in", account.id)
    return AuthResponse(token=create_access_token(account), user=AccountOut.from_account(account))


@app.get("/api/auth/user", response_model=AccountOut)
def read_current_account(current_account: Account = Depends(get_current_account)) -> AccountOut:
    return AccountOut.from_account(current_account)


@app.post("/api/auth/refresh", response_model=TokenResponse)
def refresh_token(current_account: Account = Depends(get_current_account)) -> TokenResponse:
    return TokenResponse(token=create_access_token(current_account))


@app.post("/api/auth/logout", response_model=MessageResponse)
def logout(current_account: Account = Depends(get_current_account)) -> MessageResponse:
    logger.info("Account %s logged out", current_account.id)
    return MessageResponse(message="Logged out successfully")


@app.get("/api/health")
def health():
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(time.monotonic() - _started_at, 3),
    }


app_context.configure(
    get_conn=get_conn,
    get_current_account=get_current_account,
    config=CONFIG,
)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=CONFIG.port)

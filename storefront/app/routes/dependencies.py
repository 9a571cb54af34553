"""Request dependencies shared by the API routers."""
from __future__ import annotations

from typing import Any, Optional

from fastapi import Depends, Header, HTTPException, status

from ... import app_context
from ..accounts import AccountRole


def get_current_account(
    authorization: Optional[str] = Header(None),
    x_auth_token: Optional[str] = Header(None, alias="x-auth-token"),
) -> Any:
    return app_context.get_current_account(authorization=authorization, x_auth_token=x_auth_token)


def get_admin_account(current_account=Depends(get_current_account)) -> Any:
    if AccountRole(current_account.role) != AccountRole.ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied. Admin privileges required.")
    return current_account

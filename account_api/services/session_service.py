"""Session helpers (bearer token extraction and the current account)."""
from __future__ import annotations

from typing import Optional

from fastapi import Header, Request

from account_api.core.errors import Unauthorized
from account_api.db.models import Account, ROLE_ADMIN
from account_api.services.account_service import AccountService

BEARER_PREFIX = "bearer "


def bearer_token(authorization: Optional[str]) -> str:
    """Return the token from an ``Authorization: Bearer <token>`` header."""
    value = (authorization or "").strip()
    if not value.lower().startswith(BEARER_PREFIX):
        raise Unauthorized()
    token = value[len(BEARER_PREFIX):].strip()
    if not token:
        raise Unauthorized()
    return token


def get_account_service(request: Request) -> AccountService:
    return request.app.state.account_service


def current_token(authorization: Optional[str] = Header(None)) -> str:
    return bearer_token(authorization)


def current_account(request: Request, authorization: Optional[str] = Header(None)) -> Account:
    """Verify the bearer token and load the account it names."""
    return get_account_service(request).authenticate(bearer_token(authorization))


def current_admin(request: Request, authorization: Optional[str] = Header(None)) -> Account:
    account = current_account(request, authorization)
    if account.role != ROLE_ADMIN:
        raise Unauthorized()
    return account

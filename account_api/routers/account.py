from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel, ValidationError as PydanticValidationError

from account_api.db.models import Account
from account_api.services.account_service import AccountService
from account_api.services.session_service import (
    current_account,
    current_admin,
    current_token,
    get_account_service,
)

router = APIRouter(prefix="/account", tags=["account"])


# All fields optional; the service reports missing values.
class CredentialsIn(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ForgotIn(BaseModel):
    email: Optional[str] = None


class PasswordIn(BaseModel):
    password: Optional[str] = None
    confirm: Optional[str] = None


class ProfileIn(BaseModel):
    name: Optional[str] = None
    gender: Optional[str] = None
    location: Optional[str] = None
    website: Optional[str] = None


class TokenOut(BaseModel):
    token: str


@router.get("/")
def list_accounts(
    _admin: Account = Depends(current_admin),
    service: AccountService = Depends(get_account_service),
):
    return {"Data": service.list_accounts()}


@router.get("/jwt/refresh", response_model=TokenOut)
def refresh_token(token: str = Depends(current_token), service: AccountService = Depends(get_account_service)):
    return TokenOut(token=service.refresh_session(token))


@router.post("/register", response_model=TokenOut, status_code=201)
def register(body: Optional[CredentialsIn] = None, service: AccountService = Depends(get_account_service)):
    body = body or CredentialsIn()
    return TokenOut(token=service.register(body.email, body.password))


def _credentials(raw: Any) -> CredentialsIn:
    # a body that is not a credentials object counts as missing credentials
    try:
        return CredentialsIn.model_validate(raw if raw is not None else {})
    except PydanticValidationError:
        return CredentialsIn()


@router.post("/login", response_model=TokenOut)
def login(body: Any = Body(None), service: AccountService = Depends(get_account_service)):
    credentials = _credentials(body)
    return TokenOut(token=service.login(credentials.email, credentials.password))


@router.post("/forgot", status_code=201)
def forgot_password(body: Optional[ForgotIn] = None, service: AccountService = Depends(get_account_service)):
    body = body or ForgotIn()
    service.request_password_reset(body.email)
    return {"ok": True}


@router.post("/reset/{token}", status_code=201)
def reset_password(token: str, body: Optional[PasswordIn] = None, service: AccountService = Depends(get_account_service)):
    body = body or PasswordIn()
    service.complete_password_reset(token, body.password, body.confirm)
    return {"ok": True}


@router.post("/profile")
def update_profile(
    body: Optional[ProfileIn] = None,
    account: Account = Depends(current_account),
    service: AccountService = Depends(get_account_service),
):
    body = body or ProfileIn()
    profile = service.update_profile(account.id, body.model_dump(exclude_none=True))
    return {"profile": profile}


@router.post("/password")
def change_password(
    body: Optional[PasswordIn] = None,
    account: Account = Depends(current_account),
    service: AccountService = Depends(get_account_service),
):
    body = body or PasswordIn()
    service.change_password(account.id, body.password, body.confirm)
    return {"ok": True}


@router.post("/delete")
def delete_account(account: Account = Depends(current_account), service: AccountService = Depends(get_account_service)):
    service.delete_account(account.id)
    return {"ok": True}

"""
Account use cases: registration, login, sessions, password reset, profile,
password change and deletion.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Callable, Optional
import logging

from account_api.core.config import Settings, get_settings
from account_api.core.errors import (
    Conflict,
    InvalidCredentials,
    InvalidToken,
    NotFound,
    NotRegistered,
    Unauthorized,
    ValidationError,
)
from account_api.core.mailer import send_email
from account_api.core.security import hash_password, verify_password
from account_api.core.utils import absolute_url, gravatar, is_valid_email, normalize_email
from account_api.db.models import Account, PROFILE_FIELDS, ROLE_USER
from account_api.repositories.account_repository import AccountRepository
from account_api.services.reset_token_service import ResetTokenStore
from account_api.services.token_service import TokenService

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8

MSG_INVALID_EMAIL = "Please enter a valid email address"
MSG_PASSWORD_TOO_SHORT = "Password must be at least 8 characters long"
MSG_PASSWORD_MISMATCH = "Passwords do not match"
MSG_INVALID_TOKEN = "Invalid token"


@dataclass
class AccountService:
    """Handles registration, login, session refresh and password reset flows."""

    settings: Optional[Settings] = None
    repository: Optional[AccountRepository] = None
    tokens: Optional[TokenService] = None
    resets: Optional[ResetTokenStore] = None
    notifier: Optional[Callable[..., bool]] = None

    def __post_init__(self):
        self.settings = self.settings or get_settings()
        self.repository = self.repository or AccountRepository(self.settings)
        self.tokens = self.tokens or TokenService(settings=self.settings, repository=self.repository)
        self.resets = self.resets or ResetTokenStore(settings=self.settings, repository=self.repository)

    # -------------------------------------- helpers --------------------------------------
    def _notify(self, subject: str, to_email: str, html_body: str, text_body: str) -> bool:
        notifier = self.notifier or partial(send_email, settings=self.settings)
        sent = notifier(subject, to_email, html_body, text_body)
        if not sent:
            logger.warning("Notification %r to %s was not delivered", subject, to_email)
        return bool(sent)

    def _password_errors(self, password: Optional[str], confirm: Optional[str]) -> list[str]:
        errors = []
        if len(password or "") < MIN_PASSWORD_LENGTH:
            errors.append(MSG_PASSWORD_TOO_SHORT)
        if password != confirm:
            errors.append(MSG_PASSWORD_MISMATCH)
        return errors

    def _issue(self, account: Account) -> str:
        return self.tokens.issue(account.id, account.email, account.role)

    def _require_account(self, account_id: str) -> Account:
        account = self.repository.get_account(account_id)
        if account is None:
            raise Unauthorized()
        return account

    # -------------------------------------- registration / login --------------------------------------
    def register(self, email: Optional[str], password: Optional[str]) -> str:
        errors = []
        if not is_valid_email(email):
            errors.append(MSG_INVALID_EMAIL)
        if len(password or "") < MIN_PASSWORD_LENGTH:
            errors.append(MSG_PASSWORD_TOO_SHORT)
        if errors:
            raise ValidationError(errors)
        normalized = normalize_email(email)
        if self.repository.get_account_by_email(normalized):
            raise Conflict()
        account = self.repository.create_account(normalized, hash_password(password), role=ROLE_USER)
        logger.info("Registered account %s", account.id)
        return self._issue(account)

    def login(self, email: Optional[str], password: Optional[str]) -> str:
        if not (email or "").strip() or not password:
            raise InvalidCredentials()
        account = self.repository.get_account_by_email(email)
        if account is None:
            raise NotRegistered()
        if not verify_password(password, account.password_hash):
            logger.info("Rejected login for account %s", account.id)
            raise InvalidCredentials()
        return self._issue(account)

    # -------------------------------------- sessions --------------------------------------
    def authenticate(self, token: Optional[str]) -> Account:
        """Resolve a bearer token to the account it names."""
        try:
            claims = self.tokens.verify(token)
        except InvalidToken as exc:
            raise Unauthorized() from exc
        return self._require_account(claims.subject)

    def refresh_session(self, token: Optional[str]) -> str:
        try:
            return self.tokens.refresh(token)
        except InvalidToken as exc:
            raise Unauthorized() from exc

    def list_accounts(self) -> list[dict]:
        return [
            {
                "id": account.id,
                "email": account.email,
                "role": account.role,
                "avatar": gravatar(account.email),
                "profile": dict(account.profile or {}),
            }
            for account in self.repository.list_accounts()
        ]

    # -------------------------------------- password reset --------------------------------------
    def request_password_reset(self, email: Optional[str]) -> str:
        if not (email or "").strip():
            raise ValidationError(["Invalid data"])
        account = self.repository.get_account_by_email(email)
        if account is None:
            raise NotFound()
        token = self.resets.generate(account)
        logger.info("Password reset requested for account %s", account.id)
        reset_url = absolute_url(f"/account/reset/{token}", self.settings.public_base_url)
        html_body = f"""
        <p>Hello,</p>
        <p>We received a request to reset the password for your account.</p>
        <p><a href="{reset_url}">Reset password</a></p>
        <p>The link expires in one hour. If you did not ask for this, ignore this message.</p>
        """
        # the token stays valid even if delivery fails
        self._notify(
            "Reset your password",
            account.email,
            html_body,
            f"Use this link to reset your password: {reset_url}",
        )
        return token

    def complete_password_reset(self, token: Optional[str], password: Optional[str], confirm: Optional[str]) -> None:
        errors = self._password_errors(password, confirm)
        account = None
        try:
            account = self.resets.validate(token or "")
        except InvalidToken:
            errors.append(MSG_INVALID_TOKEN)
        if errors:
            raise ValidationError(errors)
        try:
            self.resets.consume(account, token, hash_password(password))
        except InvalidToken as exc:
            raise ValidationError([MSG_INVALID_TOKEN]) from exc
        logger.info("Password reset completed for account %s", account.id)
        self._notify(
            "Your password has been changed",
            account.email,
            f"<p>Hello,</p><p>This is a confirmation that the password for {account.email} has just been changed.</p>",
            f"This is a confirmation that the password for {account.email} has just been changed.",
        )

    # -------------------------------------- profile / password / deletion --------------------------------------
    def update_profile(self, account_id: str, fields: dict) -> dict:
        account = self._require_account(account_id)
        profile = dict(account.profile or {})
        for key in PROFILE_FIELDS:
            value = (fields or {}).get(key)
            if value is not None:
                profile[key] = value
        updated = self.repository.update_profile(account.id, profile)
        if updated is None:
            raise Unauthorized()
        return dict(updated.profile or {})

    def change_password(self, account_id: str, password: Optional[str], confirm: Optional[str]) -> None:
        account = self._require_account(account_id)
        errors = self._password_errors(password, confirm)
        if errors:
            raise ValidationError(errors)
        if not self.repository.update_password(account.id, hash_password(password)):
            raise Unauthorized()

    def delete_account(self, account_id: str) -> None:
        if not self.repository.delete_account(account_id):
            raise Unauthorized()
        logger.info("Deleted account %s", account_id)

"""
Single-use, time-limited password reset tokens stored on the account row.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional
import secrets

from account_api.core.config import Settings, get_settings
from account_api.core.errors import InvalidToken
from account_api.db.models import Account
from account_api.repositories.account_repository import AccountRepository


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ResetTokenStore:
    settings: Settings = field(default_factory=get_settings)
    repository: Optional[AccountRepository] = None
    clock: Callable[[], datetime] = _utcnow

    def __post_init__(self):
        self.repository = self.repository or AccountRepository(self.settings)

    def _expired(self, expires_at: datetime | None) -> bool:
        if expires_at is None:
            return True
        # SQLite hands back naive datetimes; they were written as UTC.
        normalized = expires_at.astimezone(timezone.utc) if expires_at.tzinfo else expires_at.replace(tzinfo=timezone.utc)
        return normalized <= self.clock()

    def generate(self, account: Account) -> str:
        """Issue a new token for the account, replacing any pending one."""
        token = secrets.token_hex(16)
        expires_at = self.clock() + timedelta(seconds=self.settings.password_reset_ttl)
        self.repository.set_reset_token(account.id, token, expires_at)
        return token

    def validate(self, token: str) -> Account:
        token_value = (token or "").strip()
        if not token_value:
            raise InvalidToken()
        account = self.repository.get_account_by_reset_token(token_value)
        if not account or account.password_reset_token != token_value:
            raise InvalidToken()
        if self._expired(account.password_reset_expires):
            raise InvalidToken()
        return account

    def consume(self, account: Account, token: str, password_hash: str) -> None:
        """Set the new password and clear the token in a single update."""
        if not self.repository.consume_reset_token(account.id, token.strip(), password_hash):
            raise InvalidToken()

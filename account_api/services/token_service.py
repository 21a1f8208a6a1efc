"""
Session tokens (stateless JWT) issue, verification and refresh.

Tokens are never stored server-side; revocation before natural expiry is
not supported, so refresh re-checks that the subject still exists.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional
import time

from jose import JWTError, jwt

from account_api.core.config import Settings, get_settings
from account_api.core.errors import InvalidToken, Unauthorized
from account_api.repositories.account_repository import AccountRepository


@dataclass(frozen=True)
class SessionClaims:
    subject: str
    email: str
    role: str
    expires_at: int


@dataclass
class TokenService:
    """Signs and checks session tokens with the configured secret."""

    settings: Settings = field(default_factory=get_settings)
    repository: Optional[AccountRepository] = None
    clock: Callable[[], float] = time.time

    def _now(self) -> int:
        return int(self.clock())

    def _sign(self, subject: str, email: str, role: str, expires_at: int) -> str:
        payload = {"email": email, "role": role, "sub": subject, "exp": expires_at}
        return jwt.encode(payload, self.settings.jwt_secret, algorithm=self.settings.jwt_algorithm)

    def issue(self, account_id: str, email: str, role: str, ttl: Optional[int] = None) -> str:
        ttl_seconds = self.settings.session_ttl_seconds if ttl is None else ttl
        return self._sign(account_id, email, role, self._now() + int(ttl_seconds))

    def verify(self, token: Optional[str]) -> SessionClaims:
        if not token:
            raise InvalidToken()
        try:
            payload = jwt.decode(token, self.settings.jwt_secret, algorithms=[self.settings.jwt_algorithm])
        except JWTError as exc:
            raise InvalidToken() from exc
        subject = payload.get("sub")
        email = payload.get("email")
        role = payload.get("role")
        exp = payload.get("exp")
        if not subject or not email or not role or not isinstance(exp, int):
            raise InvalidToken()
        return SessionClaims(subject=subject, email=email, role=role, expires_at=exp)

    def refresh(self, token: Optional[str], ttl: Optional[int] = None) -> str:
        claims = self.verify(token)
        repository = self.repository or AccountRepository(self.settings)
        if repository.get_account(claims.subject) is None:
            raise Unauthorized()
        ttl_seconds = self.settings.session_ttl_seconds if ttl is None else ttl
        # exp has one-second resolution; a refresh in the same second must still move it forward
        expires_at = max(self._now() + int(ttl_seconds), claims.expires_at + 1)
        return self._sign(claims.subject, claims.email, claims.role, expires_at)

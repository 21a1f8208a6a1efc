"""High-level data access helpers for account records backed by SQLAlchemy."""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, update, delete
from sqlalchemy.exc import IntegrityError

from account_api.core.config import Settings, get_settings
from account_api.core.errors import Conflict
from account_api.db.models import Account, ROLE_USER
from account_api.db.session import get_session


class AccountRepository:
    """CRUD helpers wrapping the SQLAlchemy session of ``settings.database_url``."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.database_url = (settings or get_settings()).database_url

    def _session(self):
        return get_session(self.database_url)

    # -------------------------- lookups --------------------------
    def get_account(self, account_id: str) -> Optional[Account]:
        if not account_id:
            return None
        with self._session() as session:
            return session.get(Account, account_id)

    def get_account_by_email(self, email: str) -> Optional[Account]:
        email_value = (email or "").strip().lower()
        if not email_value:
            return None
        with self._session() as session:
            stmt = select(Account).where(Account.email == email_value)
            return session.execute(stmt).scalar_one_or_none()

    def get_account_by_reset_token(self, token: str) -> Optional[Account]:
        if not token:
            return None
        with self._session() as session:
            stmt = select(Account).where(Account.password_reset_token == token)
            return session.execute(stmt).scalars().first()

    def list_accounts(self) -> list[Account]:
        with self._session() as session:
            stmt = select(Account).order_by(Account.created_at, Account.email)
            return list(session.execute(stmt).scalars().all())

    # -------------------------- writes --------------------------
    def create_account(
        self,
        email: str,
        password_hash: str,
        *,
        role: str = ROLE_USER,
        account_id: Optional[str] = None,
    ) -> Account:
        if not password_hash:
            raise ValueError("password_hash must not be empty")
        now = datetime.now(timezone.utc)
        account = Account(
            id=account_id or str(uuid.uuid4()),
            email=(email or "").strip().lower(),
            password_hash=password_hash,
            role=role,
            profile={},
            created_at=now,
            updated_at=now,
        )
        with self._session() as session:
            session.add(account)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise Conflict("Account already exists") from exc
            session.refresh(account)
            return account

    def update_profile(self, account_id: str, data: dict) -> Optional[Account]:
        with self._session() as session:
            account = session.get(Account, account_id)
            if not account:
                return None
            account.profile = dict(data or {})
            account.updated_at = datetime.now(timezone.utc)
            session.commit()
            session.refresh(account)
            return account

    def update_password(self, account_id: str, password_hash: str) -> bool:
        if not password_hash:
            raise ValueError("password_hash must not be empty")
        with self._session() as session:
            stmt = (
                update(Account)
                .where(Account.id == account_id)
                .values(password_hash=password_hash, updated_at=datetime.now(timezone.utc))
            )
            result = session.execute(stmt)
            session.commit()
            return result.rowcount > 0

    def update_role(self, account_id: str, role: str) -> bool:
        with self._session() as session:
            stmt = (
                update(Account)
                .where(Account.id == account_id)
                .values(role=role, updated_at=datetime.now(timezone.utc))
            )
            result = session.execute(stmt)
            session.commit()
            return result.rowcount > 0

    def delete_account(self, account_id: str) -> bool:
        with self._session() as session:
            result = session.execute(delete(Account).where(Account.id == account_id))
            session.commit()
            return result.rowcount > 0

    # -------------------------- reset tokens --------------------------
    def set_reset_token(self, account_id: str, token: str, expires_at: datetime) -> None:
        with self._session() as session:
            stmt = (
                update(Account)
                .where(Account.id == account_id)
                .values(
                    password_reset_token=token,
                    password_reset_expires=expires_at,
                    updated_at=datetime.now(timezone.utc),
                )
            )
            session.execute(stmt)
            session.commit()

    def consume_reset_token(self, account_id: str, token: str, password_hash: str) -> bool:
        """Store the new hash and clear the reset token, only if the token is still pending."""
        if not password_hash:
            raise ValueError("password_hash must not be empty")
        with self._session() as session:
            stmt = (
                update(Account)
                .where(Account.id == account_id, Account.password_reset_token == token)
                .values(
                    password_hash=password_hash,
                    password_reset_token=None,
                    password_reset_expires=None,
                    updated_at=datetime.now(timezone.utc),
                )
            )
            result = session.execute(stmt)
            session.commit()
            return result.rowcount > 0

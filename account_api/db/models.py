"""SQLAlchemy models for account records."""
from __future__ import annotations

from sqlalchemy import Column, DateTime, String, Text, JSON, func

from .session import Base

ROLE_USER = "user"
ROLE_ADMIN = "admin"
ROLES = (ROLE_USER, ROLE_ADMIN)

PROFILE_FIELDS = ("name", "gender", "location", "website")


class Account(Base):
    __tablename__ = "accounts"

    id = Column(String(36), primary_key=True)
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(Text, nullable=False)
    role = Column(String(16), default=ROLE_USER, nullable=False)
    profile = Column(JSON, default=dict, nullable=False)
    password_reset_token = Column(String(64), nullable=True, index=True)
    password_reset_expires = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

"""
Error taxonomy for account flows.

Every error carries the list of messages rendered as
``{"errors": [{"msg": ...}]}`` and the HTTP status it maps to.
"""

from __future__ import annotations

from typing import Iterable


class AccountError(Exception):
    """Base class for account-related exceptions."""

    status_code = 400
    default_message = "Bad request"

    def __init__(self, messages: str | Iterable[str] | None = None):
        if messages is None:
            messages = [self.default_message]
        elif isinstance(messages, str):
            messages = [messages]
        self.messages = list(messages)
        super().__init__("; ".join(self.messages))

    def to_payload(self) -> dict:
        return {"errors": [{"msg": msg} for msg in self.messages]}


class ValidationError(AccountError):
    status_code = 422
    default_message = "Invalid data"


class Conflict(AccountError):
    status_code = 422
    default_message = "Account already exists"


class NotRegistered(AccountError):
    status_code = 403
    default_message = "Email not registered"


class InvalidCredentials(AccountError):
    status_code = 403
    default_message = "Invalid credentials"


class NotFound(AccountError):
    status_code = 404
    default_message = "Email not found"


class Unauthorized(AccountError):
    status_code = 401
    default_message = "Unauthorized"


class InvalidToken(AccountError):
    status_code = 422
    default_message = "Invalid token"

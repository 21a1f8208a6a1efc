from __future__ import annotations

import logging
from typing import Callable, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from account_api.core.config import Settings, get_settings
from account_api.core.errors import AccountError, ValidationError
from account_api.core.logging_config import configure_logging
from account_api.routers import account as account_router
from account_api.services.account_service import AccountService

logger = logging.getLogger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Inject baseline security headers on every JSON response."""

    def __init__(self, app, *, enforce_hsts: bool) -> None:
        super().__init__(app)
        self._enforce_hsts = enforce_hsts

    async def dispatch(self, request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        response.headers.setdefault("Cache-Control", "no-store")
        if self._enforce_hsts:
            response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
        return response


async def account_error_handler(request: Request, exc: AccountError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(exc.to_payload(), status_code=exc.status_code, headers=headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.debug("Rejected malformed request to %s: %s", request.url.path, exc.errors())
    error = ValidationError()
    return JSONResponse(error.to_payload(), status_code=error.status_code)


def create_app(
    settings: Optional[Settings] = None,
    *,
    notifier: Optional[Callable[..., bool]] = None,
    create_schema: bool = False,
) -> FastAPI:
    """Build the FastAPI application (compatible with uvicorn --factory)."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    if create_schema:
        from account_api.db.create_tables import create_all

        create_all(settings.database_url)

    app = FastAPI(title="Account API")
    app.state.settings = settings
    app.state.account_service = AccountService(settings=settings, notifier=notifier)
    app.add_middleware(SecurityHeadersMiddleware, enforce_hsts=settings.app_env == "prod")
    app.add_exception_handler(AccountError, account_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.include_router(account_router.router)
    return app

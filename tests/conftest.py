from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Make the package importable when running the tests from a checkout
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from account_api.core import config as core_config  # noqa: E402
from account_api.db import models  # noqa: E402
from account_api.db import session as db_session  # noqa: E402


def _clear_caches() -> None:
    core_config.get_settings.cache_clear()
    db_session.reset_engines()


class RecordingNotifier:
    """Stands in for the SMTP mailer and remembers every message."""

    def __init__(self, result: bool = True) -> None:
        self.result = result
        self.calls: list[dict] = []

    def __call__(self, subject: str, to_email: str, html_body: str, text_body: str | None = None) -> bool:
        self.calls.append({"subject": subject, "to": to_email, "html": html_body, "text": text_body})
        return self.result


@pytest.fixture()
def db_env(tmp_path, monkeypatch):
    """Point DATABASE_URL at a temporary SQLite file and reset settings/engine caches."""
    db_file = tmp_path / "test.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_file}")
    monkeypatch.setenv("JWT_SECRET", "test-secret")
    monkeypatch.setenv("PUBLIC_BASE_URL", "https://accounts.example.com")
    monkeypatch.delenv("SMTP_HOST", raising=False)
    _clear_caches()

    engine = db_session.get_engine()
    models.Base.metadata.drop_all(bind=engine)
    models.Base.metadata.create_all(bind=engine)

    yield core_config.get_settings()

    models.Base.metadata.drop_all(bind=engine)
    _clear_caches()


@pytest.fixture()
def settings(db_env):
    return db_env


@pytest.fixture()
def outbox():
    return RecordingNotifier()


@pytest.fixture()
def failing_outbox():
    return RecordingNotifier(result=False)

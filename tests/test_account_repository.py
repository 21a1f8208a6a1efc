"""
Smoke tests for the AccountRepository against a temporary SQLite database.
"""
from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from account_api.core.errors import Conflict
from account_api.db import create_tables
from account_api.repositories.account_repository import AccountRepository


def test_create_and_lookup(db_env):
    repo = AccountRepository()
    created = repo.create_account("Alice@Example.com ", "hash", account_id="acc-1")

    assert created.email == "alice@example.com"
    assert created.role == "user"
    assert created.profile == {}
    assert repo.get_account("acc-1").email == "alice@example.com"
    assert repo.get_account_by_email("ALICE@example.com").id == "acc-1"
    assert repo.get_account("missing") is None
    assert repo.get_account_by_email("") is None


def test_unique_email_surfaces_as_conflict(db_env):
    repo = AccountRepository()
    repo.create_account("alice@example.com", "hash")

    with pytest.raises(Conflict) as excinfo:
        repo.create_account("ALICE@example.com", "other-hash")
    assert excinfo.value.messages == ["Account already exists"]
    assert len(repo.list_accounts()) == 1


def test_empty_password_hash_is_refused(db_env):
    with pytest.raises(ValueError):
        AccountRepository().create_account("alice@example.com", "")


def test_reset_token_written_and_cleared_together(db_env):
    repo = AccountRepository()
    account = repo.create_account("alice@example.com", "hash")
    expires = datetime.now(timezone.utc) + timedelta(hours=1)

    repo.set_reset_token(account.id, "tok", expires)
    pending = repo.get_account_by_reset_token("tok")
    assert pending.id == account.id
    assert pending.password_reset_expires is not None

    assert repo.consume_reset_token(account.id, "wrong", "new-hash") is False
    assert repo.consume_reset_token(account.id, "tok", "new-hash") is True
    cleared = repo.get_account(account.id)
    assert cleared.password_hash == "new-hash"
    assert cleared.password_reset_token is None
    assert cleared.password_reset_expires is None
    assert repo.get_account_by_reset_token("tok") is None


def test_profile_role_and_delete(db_env):
    repo = AccountRepository()
    account = repo.create_account("alice@example.com", "hash")

    repo.update_profile(account.id, {"name": "Alice"})
    assert repo.update_role(account.id, "admin") is True
    stored = repo.get_account(account.id)
    assert stored.profile == {"name": "Alice"}
    assert stored.role == "admin"

    assert repo.delete_account(account.id) is True
    assert repo.delete_account(account.id) is False
    assert repo.get_account(account.id) is None


def test_create_tables_cli_targets_given_database(db_env, tmp_path, capsys):
    other = replace(db_env, database_url=f"sqlite:///{tmp_path / 'cli.db'}")

    create_tables.main(["--database-url", other.database_url])

    assert "account tables are in place" in capsys.readouterr().out
    repo = AccountRepository(other)
    created = repo.create_account("valid@email.com", "hash")
    assert repo.get_account(created.id) is not None
    assert AccountRepository().get_account(created.id) is None

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from threading import Barrier

import pytest

from account_api.core.errors import (
    Conflict,
    InvalidCredentials,
    NotFound,
    NotRegistered,
    Unauthorized,
    ValidationError,
)
from account_api.core.security import hash_password, verify_password
from account_api.repositories.account_repository import AccountRepository
from account_api.services.account_service import AccountService

EMAIL = "valid@email.com"
PASSWORD = "valid_password"


@pytest.fixture()
def svc(settings, outbox):
    return AccountService(settings=settings, notifier=outbox)


@pytest.fixture()
def account(db_env):
    return AccountRepository().create_account(EMAIL, hash_password(PASSWORD))


# -------------------------------------- register / login --------------------------------------
def test_register_creates_user_and_returns_session(svc):
    token = svc.register(EMAIL, PASSWORD)

    claims = svc.tokens.verify(token)
    stored = AccountRepository().get_account(claims.subject)
    assert claims.email == EMAIL
    assert claims.role == "user"
    assert stored.profile == {}
    assert verify_password(PASSWORD, stored.password_hash)


def test_register_reports_every_violation(svc):
    with pytest.raises(ValidationError) as excinfo:
        svc.register("a@a.a", "pass")

    assert excinfo.value.messages == [
        "Please enter a valid email address",
        "Password must be at least 8 characters long",
    ]
    assert AccountRepository().list_accounts() == []


def test_register_duplicate_email_is_case_insensitive(svc, account):
    with pytest.raises(Conflict):
        svc.register("VALID@Email.com", PASSWORD)


def test_register_losing_writer_gets_conflict(svc, account, monkeypatch):
    # the pre-check misses the row, the unique constraint still catches it
    monkeypatch.setattr(svc.repository, "get_account_by_email", lambda email: None)

    with pytest.raises(Conflict):
        svc.register(EMAIL, PASSWORD)


def test_concurrent_registrations_only_one_wins(svc):
    barrier = Barrier(2)

    def attempt():
        barrier.wait()
        try:
            return svc.register(EMAIL, PASSWORD)
        except Conflict as exc:
            return exc

    with ThreadPoolExecutor(max_workers=2) as pool:
        results = list(pool.map(lambda _: attempt(), range(2)))

    assert sum(isinstance(r, str) for r in results) == 1
    assert sum(isinstance(r, Conflict) for r in results) == 1
    assert len(AccountRepository().list_accounts()) == 1


def test_login_returns_session(svc, account):
    token = svc.login(EMAIL, PASSWORD)

    assert svc.tokens.verify(token).subject == account.id


def test_login_unknown_email(svc, account):
    with pytest.raises(NotRegistered) as excinfo:
        svc.login("nobody@example.com", PASSWORD)
    assert excinfo.value.messages == ["Email not registered"]


@pytest.mark.parametrize(
    "email,password",
    [(EMAIL, "wrong_password"), (None, None), (EMAIL, None), (EMAIL, ""), ("", PASSWORD)],
)
def test_login_failures_are_indistinguishable(svc, account, email, password):
    with pytest.raises(InvalidCredentials) as excinfo:
        svc.login(email, password)
    assert excinfo.value.messages == ["Invalid credentials"]


# -------------------------------------- sessions / listing --------------------------------------
def test_authenticate_and_refresh_after_deletion(svc, account):
    token = svc.tokens.issue(account.id, account.email, account.role)
    assert svc.authenticate(token).id == account.id

    AccountRepository().delete_account(account.id)

    with pytest.raises(Unauthorized):
        svc.authenticate(token)
    with pytest.raises(Unauthorized):
        svc.refresh_session(token)


def test_refresh_with_garbage_is_unauthorized(svc):
    with pytest.raises(Unauthorized):
        svc.refresh_session("invalid_token")


def test_list_accounts_projection(svc, account):
    listed = svc.list_accounts()

    assert listed == [
        {
            "id": account.id,
            "email": EMAIL,
            "role": "user",
            "avatar": "https://gravatar.com/avatar/cb7529c9a7c3297760ec76e41bf77d0a?s=200&d=retro",
            "profile": {},
        }
    ]


# -------------------------------------- password reset --------------------------------------
def test_request_reset_sets_token_and_notifies(svc, outbox, account):
    token = svc.request_password_reset(EMAIL)

    assert AccountRepository().get_account(account.id).password_reset_token == token
    assert len(outbox.calls) == 1
    assert outbox.calls[0]["to"] == EMAIL
    assert f"https://accounts.example.com/account/reset/{token}" in outbox.calls[0]["text"]


def test_request_reset_without_email(svc, outbox, account):
    with pytest.raises(ValidationError) as excinfo:
        svc.request_password_reset(None)

    assert excinfo.value.messages == ["Invalid data"]
    assert AccountRepository().get_account(account.id).password_reset_token is None
    assert outbox.calls == []


def test_request_reset_for_unknown_email(svc, outbox, account):
    with pytest.raises(NotFound) as excinfo:
        svc.request_password_reset("not@registered.email")

    assert excinfo.value.messages == ["Email not found"]
    assert AccountRepository().get_account(account.id).password_reset_token is None
    assert outbox.calls == []


def test_reset_token_survives_failed_delivery(settings, failing_outbox, account):
    svc = AccountService(settings=settings, notifier=failing_outbox)

    token = svc.request_password_reset(EMAIL)

    assert len(failing_outbox.calls) == 1
    assert svc.resets.validate(token).id == account.id


def test_default_notifier_uses_service_settings(settings, account, monkeypatch):
    sent = []

    def fake_send_email(subject, to_email, html_body, text_body=None, *, settings=None):
        sent.append((to_email, settings))
        return True

    monkeypatch.setattr("account_api.services.account_service.send_email", fake_send_email)
    svc = AccountService(settings=settings)

    svc.request_password_reset(EMAIL)

    assert sent == [(EMAIL, settings)]


def test_complete_reset_changes_password_once(svc, outbox, account):
    token = svc.request_password_reset(EMAIL)
    outbox.calls.clear()

    svc.complete_password_reset(token, "different_valid_password", "different_valid_password")

    stored = AccountRepository().get_account(account.id)
    assert verify_password("different_valid_password", stored.password_hash)
    assert stored.password_reset_token is None
    assert stored.password_reset_expires is None
    assert [call["subject"] for call in outbox.calls] == ["Your password has been changed"]

    with pytest.raises(ValidationError) as excinfo:
        svc.complete_password_reset(token, "third_valid_password", "third_valid_password")
    assert excinfo.value.messages == ["Invalid token"]


def test_complete_reset_accumulates_errors_in_order(svc, outbox, account):
    with pytest.raises(ValidationError) as excinfo:
        svc.complete_password_reset("invalid_token", "pass", "different")

    assert excinfo.value.messages == [
        "Password must be at least 8 characters long",
        "Passwords do not match",
        "Invalid token",
    ]
    assert outbox.calls == []


def test_complete_reset_with_valid_token_but_bad_password_keeps_token(svc, outbox, account):
    token = svc.request_password_reset(EMAIL)
    outbox.calls.clear()

    with pytest.raises(ValidationError) as excinfo:
        svc.complete_password_reset(token, "different_valid_password", "mismatch_password")

    assert excinfo.value.messages == ["Passwords do not match"]
    stored = AccountRepository().get_account(account.id)
    assert stored.password_reset_token == token
    assert verify_password(PASSWORD, stored.password_hash)
    assert outbox.calls == []


# -------------------------------------- profile / password / deletion --------------------------------------
def test_update_profile_overwrites_only_given_fields(svc, account):
    svc.update_profile(account.id, {"name": "Valid User", "website": "valid.user.com"})

    profile = svc.update_profile(account.id, {"location": "Userland", "unknown": "ignored"})

    assert profile == {"name": "Valid User", "website": "valid.user.com", "location": "Userland"}
    assert AccountRepository().get_account(account.id).profile == profile


def test_update_profile_for_missing_account(svc):
    with pytest.raises(Unauthorized):
        svc.update_profile("missing", {"name": "x"})


def test_change_password(svc, account):
    svc.change_password(account.id, "newValidPassword", "newValidPassword")

    assert verify_password("newValidPassword", AccountRepository().get_account(account.id).password_hash)


def test_change_password_invalid_leaves_hash(svc, account):
    with pytest.raises(ValidationError) as excinfo:
        svc.change_password(account.id, "short", "wrong")

    assert excinfo.value.messages == [
        "Password must be at least 8 characters long",
        "Passwords do not match",
    ]
    assert verify_password(PASSWORD, AccountRepository().get_account(account.id).password_hash)


def test_delete_account(svc, account):
    svc.delete_account(account.id)

    assert AccountRepository().get_account(account.id) is None
    with pytest.raises(Unauthorized):
        svc.delete_account(account.id)

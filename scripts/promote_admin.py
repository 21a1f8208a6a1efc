#!/usr/bin/env python3
"""
Change the role of an existing account directly in the database.

Usage:
  python scripts/promote_admin.py --email someone@example.com [--role admin|user]
"""
from __future__ import annotations

import argparse
import sys

from account_api.db.models import ROLES, ROLE_ADMIN
from account_api.repositories.account_repository import AccountRepository


def main(argv: list[str] | None = None) -> None:
    ap = argparse.ArgumentParser(description="Change an account's role")
    ap.add_argument("--email", required=True, help="Email of the account")
    ap.add_argument("--role", default=ROLE_ADMIN, choices=ROLES, help="New role (default: admin)")
    args = ap.parse_args(argv)

    repo = AccountRepository()
    email = (args.email or "").strip()
    if not email:
        raise SystemExit("Invalid email")
    account = repo.get_account_by_email(email)
    if not account:
        raise SystemExit(f"Account '{email}' does not exist")
    if account.role == args.role:
        print(f"OK: {account.email} already has role '{args.role}'")
        return
    repo.update_role(account.id, args.role)
    print("OK: role updated")
    print(f"  Account: {account.email}")
    print(f"  Role: {account.role} -> {args.role}")


if __name__ == "__main__":
    try:
        main()
    except SystemExit:
        raise
    except Exception as exc:  # pragma: no cover - CLI usage
        sys.stderr.write(f"Error: {exc}\n")
        raise SystemExit(1)

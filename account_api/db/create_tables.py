"""Create the account tables: ``python -m account_api.db.create_tables [--database-url URL]``."""
from __future__ import annotations

import argparse
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from .session import Base, get_engine
from . import models  # noqa: F401  # registers the accounts table on Base.metadata


def create_all(database_url: Optional[str] = None) -> None:
    Base.metadata.create_all(bind=get_engine(database_url))


def main(argv: list[str] | None = None) -> None:
    ap = argparse.ArgumentParser(description="Create missing account tables")
    ap.add_argument("--database-url", help="Target database (default: DATABASE_URL)")
    args = ap.parse_args(argv)
    try:
        create_all(args.database_url)
    except SQLAlchemyError as exc:
        raise SystemExit(f"Failed to create tables: {exc}") from exc
    print("OK: account tables are in place")


if __name__ == "__main__":
    main()

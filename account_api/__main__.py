"""Run the API with uvicorn: ``python -m account_api [--host H] [--port P]``."""
from __future__ import annotations

import argparse

import uvicorn

from account_api.app import create_app


def main(argv: list[str] | None = None) -> None:
    ap = argparse.ArgumentParser(description="Serve the account API")
    ap.add_argument("--host", default="127.0.0.1")
    ap.add_argument("--port", type=int, default=8000)
    ap.add_argument("--no-create-schema", action="store_true", help="Skip creating missing tables at startup")
    args = ap.parse_args(argv)

    app = create_app(create_schema=not args.no_create_schema)
    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()

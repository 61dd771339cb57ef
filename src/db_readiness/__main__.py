"""Database readiness check CLI."""

from __future__ import annotations

from db_readiness.cli import main

if __name__ == "__main__":
    raise SystemExit(main())

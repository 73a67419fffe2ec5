"""
create_tables.py: idempotent Review Store table creation.
Run this before starting the service for the first time, or after schema changes.
Safe to run multiple times (all DDL uses IF NOT EXISTS).

Usage:
    python scripts/create_tables.py
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

# Ensure the project root is on the path
sys.path.insert(0, str(Path(__file__).parent.parent))

from locallink.config import get_settings
from locallink.database import build_engine, build_session_factory, check_db_connectivity, create_tables


async def main() -> None:
    """Create the review_documents table and verify the connection."""
    settings = get_settings()
    engine = build_engine(settings)

    print(f"Creating tables on {engine.url.render_as_string(hide_password=True)} ...")
    await create_tables(engine)
    print("  ✓ All tables created (IF NOT EXISTS)")

    if await check_db_connectivity(build_session_factory(engine)):
        print("  ✓ Connectivity verified")
    else:
        print("  ✗ Connectivity check failed", file=sys.stderr)

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())

"""
Create the VitalGuard tables, optionally dropping existing ones first.
Run with: python -m scripts.init_db
Run with: python -m scripts.init_db --reset  (drop every table, then recreate)
"""

import argparse
import asyncio
from vitalguard.database import engine, Base
import vitalguard.models  # noqa: F401  registers the tables on Base.metadata


async def init(reset: bool = False) -> list[str]:
    """Returns the names of the tables that exist afterwards."""
    try:
        async with engine.begin() as conn:
            if reset:
                print("Dropping existing tables...")
                await conn.run_sync(Base.metadata.drop_all)
            await conn.run_sync(Base.metadata.create_all)
    finally:
        await engine.dispose()
    tables = sorted(Base.metadata.tables)
    print(f"Tables ready: {', '.join(tables)}")
    return tables


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create VitalGuard tables")
    parser.add_argument("--reset", action="store_true", help="Drop all tables before creating them")
    args = parser.parse_args()
    asyncio.run(init(reset=args.reset))

# reset_db.py
"""
Database reset utility - drops the custody tables and recreates them fresh.

Usage:
    python reset_db.py           # Reset only
    python reset_db.py --seed    # Reset + seed mock data
"""
import argparse
import asyncio

from sqlalchemy import create_engine, inspect

from config import settings
from db_base import Base

# Import all models to register them with Base.metadata
import db_models  # noqa: F401


def get_sync_url(async_url: str) -> str:
    """Swap the async driver for its blocking counterpart."""
    if async_url.startswith("postgresql+asyncpg"):
        return async_url.replace("postgresql+asyncpg", "postgresql+psycopg2")
    if async_url.startswith("sqlite+aiosqlite"):
        return async_url.replace("sqlite+aiosqlite", "sqlite")
    return async_url


def reset_database() -> bool:
    """Drop and recreate holders, assets and custody_events."""
    sync_url = get_sync_url(settings.DATABASE_URL)

    print("=" * 60)
    print("DATABASE RESET UTILITY")
    print("=" * 60)
    print(f"\nConnecting to: {sync_url.split('@')[1] if '@' in sync_url else sync_url}")

    engine = create_engine(sync_url)
    try:
        existing = inspect(engine).get_table_names()
        if existing:
            print(f"\nFound {len(existing)} tables: {', '.join(existing)}")
        print("\nDropping custody tables...")
        Base.metadata.drop_all(bind=engine)

        print("Creating fresh tables from SQLAlchemy models...")
        Base.metadata.create_all(bind=engine)

        inspector = inspect(engine)
        for table in sorted(inspector.get_table_names()):
            print(f"\n  {table}:")
            for column in inspector.get_columns(table):
                print(f"    - {column['name']}: {column['type']}")

        print("\n" + "=" * 60)
        print("DATABASE RESET COMPLETE!")
        print("=" * 60)
        return True
    finally:
        engine.dispose()


def main():
    parser = argparse.ArgumentParser(
        description="Reset database - drop custody tables and recreate fresh"
    )
    parser.add_argument(
        "--seed",
        action="store_true",
        help="Also seed the database with mock data after reset"
    )
    args = parser.parse_args()

    success = reset_database()

    if success and args.seed:
        from seed_mock_data import seed_database
        asyncio.run(seed_database())
    elif success:
        print("\nTo seed mock data, run:")
        print("  python reset_db.py --seed")
        print("  OR")
        print("  python seed_mock_data.py")


if __name__ == "__main__":
    main()

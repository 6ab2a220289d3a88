"""Database initialization script.

Run this script to create the message tables.

Usage:
    python -m scripts.init_db
    or
    python scripts/init_db.py (after pip install -e .)
"""

import asyncio

from wishgen.core.config import get_settings
from wishgen.db.session import close_db, init_db


async def main() -> None:
    """Initialize the database."""
    settings = get_settings()
    try:
        await init_db(settings)
    finally:
        await close_db()
    print(f"Database initialized successfully: {settings.database_url}")


if __name__ == "__main__":
    asyncio.run(main())

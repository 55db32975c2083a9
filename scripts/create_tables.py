"""Script to initialize database tables."""

import asyncio
import os

from src.water_lab.infrastructure.database.connection import DatabaseManager
from src.water_lab.infrastructure.services import DEFAULT_DATABASE_URL


async def create_tables():
    """Create all database tables."""
    database_url = os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)
    manager = DatabaseManager(database_url, echo=True)

    try:
        await manager.connect()
        await manager.create_tables()
        print("✅ Database tables created successfully!")

    except Exception as e:
        print(f"❌ Error creating tables: {e}")
        raise
    finally:
        await manager.disconnect()


if __name__ == "__main__":
    asyncio.run(create_tables())

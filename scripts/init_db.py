#!/usr/bin/env python3
"""
Initialize database with all tables
"""
import asyncio
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sprintboard.config import settings
from sprintboard.database import create_tables, dispose_engine
from sprintboard.utils.logging import setup_logging


async def init_database():
    """Create all tables"""
    print(f"Initializing database at {settings.database_url}...")

    await create_tables()
    await dispose_engine()

    print("Database initialized successfully!")


if __name__ == "__main__":
    setup_logging(settings.log_level)
    asyncio.run(init_database())

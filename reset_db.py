import asyncio
import os
import sys

# Add backend/ to PYTHONPATH so gst_ledger.* imports resolve
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "backend"))

from gst_ledger.core.database import close_db, create_tables, drop_tables


async def reset():
    print("Connecting to the database, dropping tables...")
    await drop_tables()
    print("Tables dropped. Creating tables...")
    await create_tables()
    await close_db()
    print("Database reset complete!")

if __name__ == "__main__":
    asyncio.run(reset())

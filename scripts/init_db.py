"""
Database initialization script - collections and indexes for the GST compliance API

Run once against a fresh database (the API also does this on startup):
    python scripts/init_db.py
"""

import asyncio
import sys
from pathlib import Path
import os
from dotenv import load_dotenv

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load environment variables
load_dotenv()

import logging

from app.db import mongo
from app.db.indexes import create_indexes

logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')
logger = logging.getLogger(__name__)

COLLECTIONS = ("users", "businesses", "customers", "suppliers", "invoices", "purchases", "gst_returns")

if not os.getenv("MONGODB_URL") or not os.getenv("MONGODB_DB_NAME"):
    raise ValueError("❌ MONGODB_URL and MONGODB_DB_NAME must be set in .env file")


async def main():
    logger.info("=" * 60)
    logger.info("  GST Compliance Database Setup")
    logger.info("=" * 60 + "\n")

    await mongo.connect_to_mongo()
    try:
        await create_indexes()

        db = mongo.get_database()
        logger.info("\n📋 Indexes:")
        for name in COLLECTIONS:
            indexes = await db[name].index_information()
            logger.info(f"\n  {name}:")
            for idx_name in indexes:
                if idx_name != "_id_":
                    logger.info(f"    ✅ {idx_name}")

        logger.info("\n📊 Current documents:")
        for name in COLLECTIONS:
            logger.info(f"  {name}: {await db[name].count_documents({})}")

        logger.info("\n✅ Database initialization complete!")

    except Exception as e:
        logger.error(f"\n❌ Error: {e}")
        raise
    finally:
        await mongo.close_mongo_connection()

    logger.info("\n" + "=" * 60)


if __name__ == "__main__":
    asyncio.run(main())

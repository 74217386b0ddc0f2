"""
app/db/mongo.py

Purpose: MongoDB connection setup

- Initializes Motor client with connection pooling
- One collection per aggregate: users, businesses, customers, suppliers,
  invoices, purchases, gst_returns
- Health checks and retry logic
- Proper connection lifecycle management
"""

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError
from typing import Optional
import asyncio
from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

# Global MongoDB client
_client: Optional[AsyncIOMotorClient] = None
_database: Optional[AsyncIOMotorDatabase] = None

# Documents never expose Mongo's ObjectId; every record carries its own string id
NO_OBJECT_ID = {"_id": 0}


async def connect_to_mongo():
    """
    Establishes connection to MongoDB with retry logic.
    Called during application startup.
    """
    global _client, _database

    if _client is not None:
        logger.warning("MongoDB client already initialized")
        return

    max_retries = 3
    retry_delay = 2

    for attempt in range(1, max_retries + 1):
        try:
            logger.info(
                f"Attempting to connect to MongoDB (attempt {attempt}/{max_retries})"
            )

            # Fix URL encoding for special characters
            mongodb_url = settings.MONGODB_URL.replace("%%", "%25")

            _client = AsyncIOMotorClient(
                mongodb_url,
                maxPoolSize=50,
                minPoolSize=10,
                serverSelectionTimeoutMS=5000,
                connectTimeoutMS=10000,
                retryWrites=True,
                retryReads=True,
            )

            _database = _client[settings.MONGODB_DB_NAME]

            await _client.admin.command("ping")

            logger.info(
                f"✅ Successfully connected to MongoDB: {settings.MONGODB_DB_NAME}"
            )
            return

        except (ConnectionFailure, ServerSelectionTimeoutError) as e:
            logger.error(
                f"Failed to connect to MongoDB (attempt {attempt}/{max_retries}): {e}"
            )
            _client = None
            _database = None

            if attempt < max_retries:
                logger.info(f"Retrying in {retry_delay} seconds...")
                await asyncio.sleep(retry_delay)
                retry_delay *= 2  # Exponential backoff
            else:
                logger.critical("Failed to connect to MongoDB after all retries")
                raise ConnectionError("Could not establish MongoDB connection") from e


async def close_mongo_connection():
    """
    Closes the MongoDB connection.
    Called during application shutdown.
    """
    global _client, _database

    if _client:
        logger.info("Closing MongoDB connection")
        _client.close()
        _client = None
        _database = None
        logger.info("MongoDB connection closed")


async def check_database_health() -> bool:
    """
    Checks if the database connection is healthy.

    Returns:
        True if connection is healthy, False otherwise
    """
    try:
        if _database is None:
            logger.error("MongoDB client not initialized")
            return False

        await _database.command("ping")
        return True

    except Exception as e:
        logger.error(f"Database health check failed: {str(e)}")
        return False


def get_database() -> AsyncIOMotorDatabase:
    """
    Returns the MongoDB database instance.

    Raises:
        RuntimeError: If database is not initialized
    """
    if _database is None:
        raise RuntimeError(
            "Database not initialized. Call connect_to_mongo() during startup."
        )
    return _database


def get_users_collection():
    """
    Login accounts.

    Fields: id, email (unique, lower-case), password_hash, role, email_verified,
    is_active, last_login, created_at, updated_at
    """
    return get_database()["users"]


def get_businesses_collection():
    """
    GST-registered businesses owned by a user.

    Fields: id, user_id, business_name, gstin (unique), pan, state, state_code,
    address_line1, address_line2, city, pincode, business_type, phone, email,
    filing_frequency, subscription_plan, subscription_status,
    subscription_valid_until, is_active, created_at, updated_at
    """
    return get_database()["businesses"]


def get_customers_collection():
    return get_database()["customers"]


def get_suppliers_collection():
    return get_database()["suppliers"]


def get_invoices_collection():
    """
    Sales invoices with embedded line items and a customer snapshot.
    """
    return get_database()["invoices"]


def get_purchases_collection():
    """
    Purchase bills with embedded line items and a supplier snapshot.
    """
    return get_database()["purchases"]


def get_gst_returns_collection():
    """
    Generated GSTR-1 / GSTR-3B payloads, one per business, return type and period.
    """
    return get_database()["gst_returns"]

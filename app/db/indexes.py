"""
app/db/indexes.py

Purpose: Database index management

- Creates unique and performance indexes
- Enforces uniqueness of emails, GSTINs, invoice numbers and return periods
"""

from pymongo import ASCENDING, DESCENDING

from app.db.mongo import (
    get_users_collection,
    get_businesses_collection,
    get_customers_collection,
    get_suppliers_collection,
    get_invoices_collection,
    get_purchases_collection,
    get_gst_returns_collection,
)
from app.core.logging import get_logger

logger = get_logger(__name__)


async def create_indexes():
    """
    Creates all necessary database indexes.
    This function is idempotent - safe to run multiple times.
    """
    try:
        users = get_users_collection()
        businesses = get_businesses_collection()
        customers = get_customers_collection()
        suppliers = get_suppliers_collection()
        invoices = get_invoices_collection()
        purchases = get_purchases_collection()
        returns = get_gst_returns_collection()

        logger.info("Creating database indexes...")

        # ==============================================
        # USERS / BUSINESSES
        # ==============================================

        await users.create_index("id", unique=True, name="user_id_unique")
        await users.create_index("email", unique=True, name="user_email_unique")
        logger.debug("Created unique indexes on users.id, users.email")

        await businesses.create_index("id", unique=True, name="business_id_unique")
        await businesses.create_index("gstin", unique=True, name="business_gstin_unique")
        await businesses.create_index("user_id", name="business_user_idx")
        logger.debug("Created indexes on businesses.id, gstin, user_id")

        # ==============================================
        # PARTIES
        # ==============================================

        await customers.create_index("id", unique=True, name="customer_id_unique")
        await customers.create_index(
            [("business_id", ASCENDING), ("gstin", ASCENDING)],
            name="customer_business_gstin_idx"
        )
        await customers.create_index(
            [("business_id", ASCENDING), ("created_at", DESCENDING)],
            name="customer_business_created_idx"
        )
        logger.debug("Created indexes on customers")

        await suppliers.create_index("id", unique=True, name="supplier_id_unique")
        await suppliers.create_index(
            [("business_id", ASCENDING), ("supplier_name", ASCENDING)],
            name="supplier_business_name_idx"
        )
        logger.debug("Created indexes on suppliers")

        # ==============================================
        # DOCUMENTS
        # ==============================================

        await invoices.create_index("id", unique=True, name="invoice_id_unique")
        await invoices.create_index(
            [("business_id", ASCENDING), ("invoice_number", ASCENDING)],
            unique=True,
            name="invoice_number_unique"
        )
        await invoices.create_index(
            [("business_id", ASCENDING), ("invoice_date", DESCENDING)],
            name="invoice_business_date_idx"
        )
        await invoices.create_index("customer_id", name="invoice_customer_idx")
        logger.debug("Created indexes on invoices")

        await purchases.create_index("id", unique=True, name="purchase_id_unique")
        await purchases.create_index(
            [("business_id", ASCENDING), ("supplier_invoice_date", DESCENDING)],
            name="purchase_business_date_idx"
        )
        await purchases.create_index(
            [("supplier_id", ASCENDING), ("supplier_invoice_number", ASCENDING)],
            name="purchase_supplier_invoice_idx"
        )
        logger.debug("Created indexes on purchases")

        await returns.create_index(
            [("business_id", ASCENDING), ("return_type", ASCENDING), ("filing_period", ASCENDING)],
            unique=True,
            name="return_period_unique"
        )
        logger.debug("Created unique index on gst_returns.business_id + return_type + filing_period")

        logger.info("✅ All database indexes created successfully")

        summary = []
        for collection in (users, businesses, customers, suppliers, invoices, purchases, returns):
            info = await collection.index_information()
            summary.append(f"{collection.name}={len(info)}")
        logger.info(f"Index summary: {', '.join(summary)}")

    except Exception as e:
        logger.error(f"Failed to create indexes: {str(e)}", exc_info=True)
        raise

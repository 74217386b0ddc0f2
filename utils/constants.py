"""
utils/constants.py

Purpose: Centralized static content

- GST rates, state codes and thresholds
- Party, invoice and purchase type enums
- Subscription plan limits
- Reusable user-facing messages

(Prevents hardcoding across the codebase)
"""

# ============================================================
# GST RATES & THRESHOLDS
# ============================================================

# Slabs accepted on an invoice or purchase line (percent)
VALID_GST_RATES = [0, 0.25, 3, 5, 18, 40]

# B2C invoices above this value are "large" and reported invoice-wise in GSTR-1
B2C_LARGE_THRESHOLD = 250000

# Place of supply used for exports
EXPORT_STATE_CODE = "96"

# ============================================================
# STATES
# ============================================================

STATE_CODES = {
    "01": "Jammu and Kashmir",
    "02": "Himachal Pradesh",
    "03": "Punjab",
    "04": "Chandigarh",
    "05": "Uttarakhand",
    "06": "Haryana",
    "07": "Delhi",
    "08": "Rajasthan",
    "09": "Uttar Pradesh",
    "10": "Bihar",
    "11": "Sikkim",
    "12": "Arunachal Pradesh",
    "13": "Nagaland",
    "14": "Manipur",
    "15": "Mizoram",
    "16": "Tripura",
    "17": "Meghalaya",
    "18": "Assam",
    "19": "West Bengal",
    "20": "Jharkhand",
    "21": "Odisha",
    "22": "Chhattisgarh",
    "23": "Madhya Pradesh",
    "24": "Gujarat",
    "25": "Daman and Diu",
    "26": "Dadra and Nagar Haveli",
    "27": "Maharashtra",
    "28": "Andhra Pradesh (Old)",
    "29": "Karnataka",
    "30": "Goa",
    "31": "Lakshadweep",
    "32": "Kerala",
    "33": "Tamil Nadu",
    "34": "Puducherry",
    "35": "Andaman and Nicobar Islands",
    "36": "Telangana",
    "37": "Andhra Pradesh (New)",
    "96": "Foreign Country",
    "97": "Other Territory",
    "99": "Centre Jurisdiction",
}

# State codes a GSTIN may start with (96 is only a place of supply)
GSTIN_STATE_CODES = {code for code in STATE_CODES if code != EXPORT_STATE_CODE}

# ============================================================
# ENUMS
# ============================================================

CUSTOMER_TYPES = ("b2b", "b2c", "export", "sez")
CUSTOMER_TYPES_REQUIRING_GSTIN = ("b2b", "sez")

SUPPLIER_TYPES = ("registered", "unregistered", "composition")

INVOICE_TYPES = ("b2b", "b2c_large", "b2c_small", "export", "sez")
ZERO_RATED_INVOICE_TYPES = ("export", "sez")

PURCHASE_TYPES = ("goods", "services", "capital_goods", "import")
ITC_CLAIM_TYPES = ("full", "partial", "none")

BUSINESS_TYPES = (
    "Proprietorship",
    "Partnership",
    "LLP",
    "Private Limited",
    "Public Limited",
    "HUF",
    "Trust",
    "Society",
    "Other",
)

FILING_FREQUENCIES = ("monthly", "quarterly")

RETURN_TYPES = ("gstr1", "gstr3b")
RETURN_STATUS_GENERATED = "generated"
RETURN_STATUS_FILED = "filed"

USER_ROLE_OWNER = "owner"

# ============================================================
# SUBSCRIPTION PLANS
# ============================================================

TRIAL_DAYS = 14

SUBSCRIPTION_STATUSES = ("inactive", "trial", "active", "cancelled", "expired")

# Limits: None means unlimited. *_per_month limits count documents created
# in the current calendar month; customers/suppliers count active records.
SUBSCRIPTION_PLANS = {
    "trial": {
        "name": "Free Trial",
        "price": 0,
        "annual_price": 0,
        "billing_cycle": "trial",
        "trial_days": TRIAL_DAYS,
        "description": "Perfect for testing the platform",
        "recommended": False,
        "limits": {
            "invoices_per_month": 10,
            "purchases_per_month": 10,
            "customers_total": 10,
            "suppliers_total": 10,
            "emails_per_month": 20,
            "pdf_generations_per_month": 20,
        },
        "features": {
            "gstr_filing": True,
            "pdf_generation": True,
            "email_support": True,
            "bulk_operations": False,
            "multi_user": False,
            "api_access": False,
            "whatsapp_integration": False,
            "dedicated_support": False,
        },
    },
    "starter": {
        "name": "Starter Plan",
        "price": 999,
        "annual_price": 9990,
        "billing_cycle": "monthly",
        "description": "For small businesses and freelancers",
        "recommended": True,
        "limits": {
            "invoices_per_month": 100,
            "purchases_per_month": 100,
            "customers_total": 50,
            "suppliers_total": 50,
            "emails_per_month": 200,
            "pdf_generations_per_month": 200,
        },
        "features": {
            "gstr_filing": True,
            "pdf_generation": True,
            "email_support": True,
            "bulk_operations": False,
            "multi_user": False,
            "api_access": False,
            "whatsapp_integration": False,
            "dedicated_support": False,
        },
    },
    "professional": {
        "name": "Professional Plan",
        "price": 2999,
        "annual_price": 29990,
        "billing_cycle": "monthly",
        "description": "For growing businesses with multiple transactions",
        "recommended": False,
        "limits": {
            "invoices_per_month": 500,
            "purchases_per_month": 500,
            "customers_total": 200,
            "suppliers_total": 200,
            "emails_per_month": 1000,
            "pdf_generations_per_month": 1000,
        },
        "features": {
            "gstr_filing": True,
            "pdf_generation": True,
            "email_support": True,
            "bulk_operations": True,
            "multi_user": True,
            "api_access": False,
            "whatsapp_integration": True,
            "dedicated_support": False,
        },
    },
    "enterprise": {
        "name": "Enterprise Plan",
        "price": 7999,
        "annual_price": 79990,
        "billing_cycle": "monthly",
        "description": "For large businesses with unlimited needs",
        "recommended": False,
        "limits": {
            "invoices_per_month": None,
            "purchases_per_month": None,
            "customers_total": None,
            "suppliers_total": None,
            "emails_per_month": None,
            "pdf_generations_per_month": None,
        },
        "features": {
            "gstr_filing": True,
            "pdf_generation": True,
            "email_support": True,
            "bulk_operations": True,
            "multi_user": True,
            "api_access": True,
            "whatsapp_integration": True,
            "dedicated_support": True,
        },
    },
}

# ============================================================
# FILING DEADLINES (day of the month after the period)
# ============================================================

GSTR1_DUE_DAY = 11
GSTR1_QUARTERLY_DUE_DAY = 13
GSTR3B_DUE_DAY = 20

LATE_FEE_PER_DAY = 50
LATE_FEE_CAP = 5000

# ============================================================
# MESSAGES
# ============================================================

MSG_INVALID_CREDENTIALS = "Invalid email or password"
MSG_ACCOUNT_DEACTIVATED = "Account is deactivated. Please contact support."
MSG_EMAIL_TAKEN = "User with this email already exists"
MSG_GSTIN_TAKEN = "Business with this GSTIN already registered"
MSG_NO_BUSINESS = "No active business found for this user"

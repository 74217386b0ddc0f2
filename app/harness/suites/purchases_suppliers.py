"""
app/harness/suites/purchases_suppliers.py

Purpose: Supplier, purchase and ITC suite
"""

from datetime import date

from app.harness.client import ApiClient
from app.harness.console import log
from app.harness.context import SuiteContext
from app.harness.results import Step, expect, expect_status
from app.harness.runner import Suite


def create_registered_supplier(ctx: SuiteContext, api: ApiClient) -> bool:
    gstin = ctx.party_gstin("24", 2)
    supplier = api.post("/api/suppliers", json={
        "supplierName": "Gujarat Raw Materials Ltd",
        "supplierType": "registered",
        "gstin": gstin,
        "pan": gstin[2:12],
        "billingAddress": "45 GIDC Estate, Ahmedabad",
        "city": "Ahmedabad",
        "state": "Gujarat",
        "pincode": "380015",
        "phone": "9898989898",
        "paymentTerms": 30,
    })["data"]
    expect(supplier["stateCode"] == "24", f"expected state code 24, got {supplier['stateCode']}")
    ctx.ids["supplier_registered"] = supplier["id"]
    log(f"   Supplier: {supplier['supplierName']} ({supplier['gstin']})")
    return True


def create_local_supplier(ctx: SuiteContext, api: ApiClient) -> bool:
    supplier = api.post("/api/suppliers", json={
        "supplierName": "Mumbai Services Co",
        "supplierType": "unregistered",
        "billingAddress": "12 Linking Road, Bandra",
        "city": "Mumbai",
        "state": "Maharashtra",
        "pincode": "400050",
    })["data"]
    expect(supplier["stateCode"] == "27", f"expected state code 27, got {supplier['stateCode']}")
    ctx.ids["supplier_local"] = supplier["id"]
    return True


def list_suppliers(ctx: SuiteContext, api: ApiClient) -> bool:
    data = api.get("/api/suppliers")
    expect(data["pagination"]["total"] >= 2, "expected at least 2 suppliers")
    log(f"   {data['pagination']['total']} supplier(s)")
    return True


def get_supplier(ctx: SuiteContext, api: ApiClient) -> bool:
    supplier = api.get(f"/api/suppliers/{ctx.ids['supplier_registered']}")["data"]
    expect(supplier["id"] == ctx.ids["supplier_registered"], "wrong supplier returned")
    return True


def _goods_bill(ctx: SuiteContext) -> dict:
    return {
        "supplierId": ctx.ids["supplier_registered"],
        "supplierInvoiceNumber": f"GRM-{ctx.stamp}",
        "supplierInvoiceDate": date.today().isoformat(),
        "purchaseType": "goods",
        "items": [{
            "itemName": "Steel sheets",
            "hsnCode": "7208",
            "quantity": 10,
            "unitPrice": 1000,
            "gstRate": 18,
        }],
    }


def create_interstate_purchase(ctx: SuiteContext, api: ApiClient) -> bool:
    purchase = api.post("/api/purchases", json=_goods_bill(ctx))["data"]
    expect(purchase["igstAmount"] == 1800, f"IGST {purchase['igstAmount']}")
    expect(purchase["itcAmount"] == 1800, f"ITC {purchase['itcAmount']}")
    ctx.ids["purchase_goods"] = purchase["id"]
    log(f"   {purchase['supplierInvoiceNumber']}: ₹{purchase['totalAmount']} (ITC ₹{purchase['itcAmount']})")
    return True


def reject_duplicate_purchase(ctx: SuiteContext, api: ApiClient) -> bool:
    response = expect_status(lambda: api.post("/api/purchases", json=_goods_bill(ctx)), 409)
    log(f"   Error message: {response.json().get('error')}")
    return True


def create_ineligible_purchase(ctx: SuiteContext, api: ApiClient) -> bool:
    purchase = api.post("/api/purchases", json={
        "supplierId": ctx.ids["supplier_local"],
        "supplierInvoiceNumber": f"MSC-{ctx.stamp}",
        "supplierInvoiceDate": date.today().isoformat(),
        "purchaseType": "services",
        "isItcEligible": False,
        "items": [{
            "itemName": "Office cleaning",
            "sacCode": "998533",
            "quantity": 1,
            "unitPrice": 5000,
            "gstRate": 18,
        }],
    })["data"]
    expect(purchase["cgstAmount"] == 450 and purchase["sgstAmount"] == 450, "expected ₹450 CGST and SGST")
    expect(purchase["itcAmount"] == 0, "ineligible purchase carries ITC")
    ctx.ids["purchase_services"] = purchase["id"]
    return True


def list_purchases(ctx: SuiteContext, api: ApiClient) -> bool:
    data = api.get("/api/purchases", params={"supplierId": ctx.ids["supplier_registered"]})
    expect(data["pagination"]["total"] == 1, f"expected 1 purchase, got {data['pagination']['total']}")
    return True


def mark_purchase_paid(ctx: SuiteContext, api: ApiClient) -> bool:
    purchase = api.put(f"/api/purchases/{ctx.ids['purchase_goods']}", json={
        "isPaid": True,
        "paymentDate": date.today().isoformat(),
        "paymentMethod": "bank_transfer",
    })["data"]
    expect(purchase["isPaid"] is True, "purchase not marked paid")
    return True


def purchase_stats(ctx: SuiteContext, api: ApiClient) -> bool:
    today = date.today()
    stats = api.get("/api/purchases/stats", params={"month": today.month, "year": today.year})["data"]
    expect(stats["totalPurchases"] >= 2, "stats missing this run's purchases")
    log(f"   {stats['totalPurchases']} purchase(s), ITC ₹{stats['totalItcAvailable']}")
    return True


def itc_summary(ctx: SuiteContext, api: ApiClient) -> bool:
    today = date.today()
    itc = api.get(f"/api/purchases/itc/{today.year}/{today.month}")["data"]
    breakdown = itc["itcBreakdown"]
    expect(breakdown["igstItc"] >= 1800, f"IGST ITC {breakdown['igstItc']}")
    log(f"   ITC for {itc['period']}: ₹{breakdown['totalItc']}")
    return True


def supplier_stats(ctx: SuiteContext, api: ApiClient) -> bool:
    stats = api.get("/api/suppliers/stats")["data"]
    expect(stats["registeredSuppliers"] >= 1, "registered supplier not counted")
    expect(stats["unregisteredSuppliers"] >= 1, "unregistered supplier not counted")
    return True


SUITE = Suite(
    name="purchases-suppliers",
    title="Purchases & Suppliers API Tests",
    steps=[
        Step("CREATE_REGISTERED_SUPPLIER", create_registered_supplier, fatal=True),
        Step("CREATE_LOCAL_SUPPLIER", create_local_supplier, fatal=True),
        Step("LIST_SUPPLIERS", list_suppliers),
        Step("GET_SUPPLIER", get_supplier),
        Step("CREATE_INTERSTATE_PURCHASE", create_interstate_purchase, fatal=True),
        Step("REJECT_DUPLICATE_PURCHASE", reject_duplicate_purchase),
        Step("CREATE_INELIGIBLE_PURCHASE", create_ineligible_purchase),
        Step("LIST_PURCHASES", list_purchases),
        Step("MARK_PURCHASE_PAID", mark_purchase_paid),
        Step("PURCHASE_STATS", purchase_stats),
        Step("ITC_SUMMARY", itc_summary),
        Step("SUPPLIER_STATS", supplier_stats),
    ],
)

import asyncio
from datetime import date

import pytest

from app.services.gstr1_service import build_b2cs, build_hsn, group_items_by_rate
from app.services.gstr3b_service import late_fee, tax_payable


def _post(client, headers, path, payload):
    response = client.post(path, json=payload, headers=headers)
    assert response.status_code == 201, response.text
    body = response.json()
    return body.get("customer") or body.get("invoice") or body["data"]


@pytest.fixture
def january(client, auth_headers):
    """Three sales and one purchase in January 2024."""
    b2b = _post(client, auth_headers, "/api/customers", {
        "customerName": "Acme Traders", "gstin": "29AABCT1332L1ZD",
        "billingAddress": "12 MG Road", "city": "Bengaluru", "state": "Karnataka", "pincode": "560001",
    })
    retail = _post(client, auth_headers, "/api/customers", {
        "customerName": "Walk-in Buyer", "customerType": "b2c",
        "billingAddress": "4 Link Road", "city": "Mumbai", "state": "Maharashtra", "pincode": "400058",
    })
    overseas = _post(client, auth_headers, "/api/customers", {
        "customerName": "Global Imports LLC", "customerType": "export",
        "billingAddress": "1 Main St", "city": "Austin", "state": "Other Territory", "pincode": "400001",
    })
    supplier = _post(client, auth_headers, "/api/suppliers", {
        "supplierName": "Gujarat Raw Materials", "gstin": "24AAACR5055K1Z5",
        "billingAddress": "Plot 7 GIDC", "city": "Ahmedabad", "state": "Gujarat", "pincode": "380001",
    })

    laptop = {"itemName": "Laptop", "hsnCode": "8471", "quantity": 2, "unitPrice": 50000, "gstRate": 18}
    service = {"itemName": "Support", "sacCode": "998314", "quantity": 1, "unitPrice": 10000, "gstRate": 18}
    invoices = [
        _post(client, auth_headers, "/api/invoices", {
            "customerId": customer["id"], "invoiceDate": "2024-01-15", "items": [item],
        })
        for customer, item in ((b2b, laptop), (retail, service), (overseas, laptop))
    ]
    _post(client, auth_headers, "/api/purchases", {
        "supplierId": supplier["id"], "supplierInvoiceNumber": "GRM-001", "supplierInvoiceDate": "2024-01-10",
        "items": [{"itemName": "Steel", "hsnCode": "7208", "quantity": 10, "unitPrice": 1000, "gstRate": 18}],
    })
    return invoices


def test_tax_payable_uses_excess_igst_on_cgst_then_sgst():
    output = {"igst": 1000, "cgst": 500, "sgst": 500, "cess": 0}
    credit = {"igst": 1800, "cgst": 0, "sgst": 0, "cess": 0}
    assert tax_payable(output, credit) == {"igst": 0, "cgst": 0, "sgst": 200, "cess": 0, "total": 200}


def test_tax_payable_never_negative():
    output = {"igst": 0, "cgst": 100, "sgst": 100, "cess": 0}
    credit = {"igst": 0, "cgst": 300, "sgst": 0, "cess": 50}
    payable = tax_payable(output, credit)
    assert payable["cgst"] == 0
    assert payable["cess"] == 0
    assert payable["total"] == 100


@pytest.mark.parametrize("today, fee", [
    (date(2024, 2, 20), 0),
    (date(2024, 2, 25), 250),
    (date(2024, 12, 31), 5000),
])
def test_late_fee(today, fee):
    assert late_fee(2024, 1, today) == fee


def test_group_items_by_rate():
    items = [
        {"gst_rate": 18, "taxable_amount": 100, "igst_amount": 18},
        {"gst_rate": 5, "taxable_amount": 200, "igst_amount": 10},
        {"gst_rate": 18, "taxable_amount": 50, "igst_amount": 9},
    ]
    groups = group_items_by_rate(items)
    assert [g["itm_det"]["rt"] for g in groups] == [18, 5]
    assert groups[0]["itm_det"]["txval"] == 150
    assert groups[0]["itm_det"]["iamt"] == 27


def test_b2cs_splits_intra_and_inter():
    line = {"gst_rate": 5, "taxable_amount": 1000, "cgst_amount": 25, "sgst_amount": 25}
    invoices = [
        {"invoice_type": "b2c_small", "seller_state_code": "27", "buyer_state_code": "27", "items": [line]},
        {"invoice_type": "b2c_small", "seller_state_code": "27", "buyer_state_code": "27", "items": [line]},
        {"invoice_type": "b2c_small", "seller_state_code": "27", "buyer_state_code": "29",
         "items": [{"gst_rate": 5, "taxable_amount": 400, "igst_amount": 20}]},
    ]
    rows = build_b2cs(invoices, {"state_code": "27"})["data"]
    assert len(rows) == 2
    intra = next(r for r in rows if r["sply_ty"] == "INTRA")
    assert intra["txval"] == 2000
    assert intra["camt"] == 50


def test_hsn_summary_value_includes_tax():
    invoices = [{"items": [
        {"hsn_code": "8471", "item_name": "Laptop", "quantity": 2, "gst_rate": 18,
         "taxable_amount": 1000, "igst_amount": 180, "total_amount": 1180},
    ]}]
    row = build_hsn(invoices)["data"]["data"][0]
    assert row["hsn_sc"] == "8471"
    assert row["val"] == 1180
    assert row["txval"] == 1000


def test_generate_gstr1(client, auth_headers, january):
    response = client.post("/api/gstr1/generate", json={"month": 1, "year": 2024}, headers=auth_headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["filingPeriod"] == "2024-01"
    assert data["financialYear"] == "2023-24"
    assert data["status"] == "generated"

    payload = data["data"]
    assert payload["fp"] == "2024-01"
    assert payload["b2b"][0]["ctin"] == "29AABCT1332L1ZD"
    assert payload["b2b"][0]["inv"][0]["idt"] == "15-01-2024"
    assert payload["b2b"][0]["inv"][0]["pos"] == "29"
    assert payload["b2cs"] == [{
        "pos": "27", "sply_ty": "INTRA", "rt": 18, "typ": "OE",
        "txval": 10000, "iamt": 0, "camt": 900, "samt": 900, "csamt": 0,
    }]
    assert payload["exp"][0]["exp_typ"] == "WOPAY"
    assert payload["summary"]["totalInvoices"] == 3
    assert payload["summary"]["totalTax"] == 19800


def test_get_and_export_gstr1(client, auth_headers, january):
    assert client.get("/api/gstr1/2024/1", headers=auth_headers).status_code == 404

    client.post("/api/gstr1/generate", json={"month": 1, "year": 2024}, headers=auth_headers)
    stored = client.get("/api/gstr1/2024/1", headers=auth_headers).json()["data"]
    assert stored["returnType"] == "gstr1"
    assert stored["totalTaxLiability"] == 19800

    response = client.get("/api/gstr1/2024/1/export/json", headers=auth_headers)
    assert response.status_code == 200
    assert response.headers["content-disposition"] == 'attachment; filename="GSTR1_27AAPFU0939F1ZV_202401.json"'
    assert response.json()["fp"] == "2024-01"


def test_regenerating_replaces_stored_return(client, auth_headers, january, database):
    for _ in range(2):
        client.post("/api/gstr1/generate", json={"month": 1, "year": 2024}, headers=auth_headers)
    assert asyncio.run(database["gst_returns"].count_documents({"return_type": "gstr1"})) == 1


def test_mark_gstr1_filed_locks_invoices(client, auth_headers, january):
    assert client.post("/api/gstr1/2024/1/mark-filed", headers=auth_headers).status_code == 404

    client.post("/api/gstr1/generate", json={"month": 1, "year": 2024}, headers=auth_headers)
    response = client.post("/api/gstr1/2024/1/mark-filed", headers=auth_headers)
    data = response.json()["data"]
    assert data["status"] == "filed"
    assert data["filedAt"]
    assert data["invoicesLocked"] == 3

    invoice_id = january[0]["id"]
    response = client.put(f"/api/invoices/{invoice_id}", json={"notes": "too late"}, headers=auth_headers)
    assert response.status_code == 400

    regenerated = client.post("/api/gstr1/generate", json={"month": 1, "year": 2024}, headers=auth_headers)
    assert regenerated.json()["data"]["status"] == "generated"


def test_generate_gstr3b(client, auth_headers, january):
    response = client.post("/api/gstr3b/generate", json={"month": 1, "year": 2024}, headers=auth_headers)
    assert response.status_code == 200
    data = response.json()["data"]

    summary = data["summary"]
    assert summary["outputTax"] == 19800
    assert summary["itcAvailable"] == 1800
    assert summary["netTaxPayable"] == 18000
    # generated long after 20 Feb 2024: capped fee on each of three heads
    assert summary["lateFees"] == 15000
    assert summary["totalPayable"] == 33000

    payload = data["data"]
    assert payload["sup_details"]["osup_det"] == {
        "txval": 110000, "iamt": 18000, "camt": 900, "samt": 900, "csamt": 0,
    }
    assert payload["sup_details"]["osup_zero"]["txval"] == 100000
    other_itc = next(row for row in payload["itc_elg"]["itc_avl"] if row["ty"] == "OTH")
    assert other_itc["iamt"] == 1800
    assert payload["tax_payable"] == {"igst": 16200, "cgst": 900, "sgst": 900, "cess": 0, "total": 18000}


def test_get_and_export_gstr3b(client, auth_headers, january):
    assert client.get("/api/gstr3b/2024/1", headers=auth_headers).status_code == 404
    client.post("/api/gstr3b/generate", json={"month": 1, "year": 2024}, headers=auth_headers)

    assert client.get("/api/gstr3b/2024/1", headers=auth_headers).json()["data"]["returnType"] == "gstr3b"
    response = client.get("/api/gstr3b/2024/1/export/json", headers=auth_headers)
    assert "GSTR3B_27AAPFU0939F1ZV_202401.json" in response.headers["content-disposition"]


@pytest.mark.parametrize("payload", [{"month": 13, "year": 2024}, {"month": 1, "year": 2016}])
def test_generate_rejects_bad_period(client, auth_headers, payload):
    response = client.post("/api/gstr1/generate", json=payload, headers=auth_headers)
    assert response.status_code == 422


def test_empty_period(client, auth_headers):
    data = client.post("/api/gstr1/generate", json={"month": 3, "year": 2024}, headers=auth_headers).json()["data"]
    assert data["data"]["b2b"] == []
    assert data["data"]["summary"]["totalInvoices"] == 0

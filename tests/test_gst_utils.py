from datetime import date, datetime

import pytest

from utils.gst_utils import (
    calculate_invoice_gst,
    calculate_item_gst,
    format_gstin,
    get_state_name,
    get_transaction_type,
    is_reverse_charge_applicable,
    round_money,
    state_code_for_name,
)
from utils.invoice_utils import (
    format_invoice_number,
    next_invoice_number,
    parse_invoice_number,
    validate_invoice_number,
)
from utils.time_utils import add_months, due_date, financial_year, format_gst_date, month_bounds, validate_month


def test_intra_state_item_splits_cgst_sgst():
    result = calculate_item_gst(10000, 18, "27", "27")
    assert result["cgst_amount"] == 900
    assert result["sgst_amount"] == 900
    assert result["igst_amount"] == 0
    assert result["cgst_rate"] == 9
    assert result["total_amount"] == 11800
    assert result["tax_type"] == "CGST+SGST"


def test_inter_state_item_pays_igst():
    result = calculate_item_gst(10000, 18, "27", "29")
    assert result["igst_amount"] == 1800
    assert result["cgst_amount"] == result["sgst_amount"] == 0
    assert result["tax_type"] == "IGST"


@pytest.mark.parametrize("invoice_type", ["export", "sez"])
def test_zero_rated_supplies(invoice_type):
    result = calculate_item_gst(5000, 18, "27", "27", invoice_type=invoice_type)
    assert result["total_tax_amount"] == 0
    assert result["total_amount"] == 5000
    assert result["tax_type"] == "NONE"


def test_cess_on_top_of_gst():
    result = calculate_item_gst(1000, 40, "27", "29", cess_rate=12)
    assert result["igst_amount"] == 400
    assert result["cess_amount"] == 120
    assert result["total_tax_amount"] == 520


def test_fractional_rate():
    result = calculate_item_gst(1000, 0.25, "27", "27")
    assert result["cgst_amount"] == 1.25
    assert result["sgst_amount"] == 1.25


@pytest.mark.parametrize("kwargs, message", [
    ({"taxable_amount": 0}, "Taxable amount must be greater than 0"),
    ({"seller_state_code": None}, "Seller state code is required"),
    ({"gst_rate": 12}, "Invalid GST rate: 12"),
    ({"cess_rate": -1}, "Cess rate cannot be negative"),
])
def test_item_errors(kwargs, message):
    args = {"taxable_amount": 100, "gst_rate": 18, "seller_state_code": "27", "buyer_state_code": "27"}
    args.update(kwargs)
    with pytest.raises(ValueError, match=message):
        calculate_item_gst(**args)


def test_invoice_round_off():
    result = calculate_invoice_gst(
        [{"quantity": 3, "unit_price": 333.33, "gst_rate": 18}], "27", "27"
    )
    assert result["subtotal"] == 999.99
    assert result["cgst_amount"] == 90
    assert result["sgst_amount"] == 90
    assert result["total_amount"] == 1179.99
    assert result["final_amount"] == 1180
    assert result["round_off_amount"] == 0.01


def test_invoice_discounts():
    result = calculate_invoice_gst(
        [{"quantity": 2, "unit_price": 500, "gst_rate": 5, "discount_amount": 100}],
        "27", "29",
        discount_amount=50,
    )
    line = result["items"][0]
    assert line["subtotal"] == 1000
    assert line["taxable_amount"] == 900
    assert line["igst_amount"] == 45
    assert result["discount_amount"] == 50
    assert result["taxable_amount"] == 850
    assert result["total_amount"] == 895
    assert result["tax_type"] == "IGST"


def test_invoice_errors_name_the_item():
    items = [
        {"quantity": 1, "unit_price": 100, "gst_rate": 18},
        {"quantity": 1, "unit_price": 100, "gst_rate": 12},
    ]
    with pytest.raises(ValueError, match="^Item 2: Invalid GST rate"):
        calculate_invoice_gst(items, "27", "27")
    with pytest.raises(ValueError, match="at least one item"):
        calculate_invoice_gst([], "27", "27")


def test_round_money_half_up():
    assert round_money(2.675) == 2.68
    assert round_money(None) == 0


def test_state_helpers():
    assert state_code_for_name(" maharashtra ") == "27"
    assert state_code_for_name("Andhra Pradesh") == "37"
    assert state_code_for_name("Atlantis") is None
    assert get_state_name("7") == "Delhi"
    assert get_state_name("96") == "Foreign Country"
    assert get_state_name(None) is None
    assert format_gstin("27aapfu0939f1zv") == "27 AAPFU 0939 F 1Z V"


def test_transaction_type():
    assert get_transaction_type("27", "27")["tax_applicable"] == "CGST+SGST"
    assert get_transaction_type("27", "29")["type"] == "INTER_STATE"
    assert get_transaction_type("27", None)["type"] == "UNKNOWN"
    assert is_reverse_charge_applicable(False, True)
    assert not is_reverse_charge_applicable(True, True)


def test_invoice_numbers():
    assert format_invoice_number(2024, 1, 7) == "INV-202401-0007"
    assert next_invoice_number("INV-202401-0007", 2024, 1) == "INV-202401-0008"
    assert next_invoice_number("INV-202312-0042", 2024, 1) == "INV-202401-0001"
    assert next_invoice_number(None, 2024, 1) == "INV-202401-0001"
    assert parse_invoice_number("INV-202413-0001") is None
    assert validate_invoice_number("INV-202401-0001")
    assert not validate_invoice_number("INV-2024-01-1")
    assert parse_invoice_number("INV-202402-0010") == {"year": 2024, "month": 2, "sequence": 10}


def test_periods():
    assert financial_year(2024, 1) == "2023-24"
    assert financial_year(2024, 4) == "2024-25"
    assert due_date(2023, 12, 20) == date(2024, 1, 20)
    assert month_bounds(2024, 12) == (datetime(2024, 12, 1), datetime(2025, 1, 1))
    assert add_months(2024, 1, -2) == (2023, 11)
    assert format_gst_date(date(2024, 1, 5)) == "05-01-2024"
    with pytest.raises(ValueError):
        validate_month(13, 2024)


@pytest.mark.parametrize("value", [float("nan"), float("inf"), "abc"])
def test_non_finite_amounts_are_value_errors(value):
    with pytest.raises(ValueError):
        calculate_item_gst(value, 18, "27", "27")
    with pytest.raises(ValueError, match="Item 1"):
        calculate_invoice_gst([{"quantity": 1, "unit_price": 100, "gst_rate": value}], "27", "27")

"""
utils/gst_utils.py

Purpose: GST-specific utilities

- Item and invoice GST calculation (CGST/SGST vs IGST, cess, round-off)
- State code / state name lookups
- Transaction type and reverse-charge helpers
- GSTIN formatting
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, List, Dict, Any

from utils.constants import (
    STATE_CODES,
    VALID_GST_RATES,
    ZERO_RATED_INVOICE_TYPES,
)


TWO_PLACES = Decimal("0.01")


def to_decimal(value) -> Decimal:
    """
    Raises:
        ValueError: value is not a finite number (NaN and infinity included)
    """
    if value is None:
        return Decimal("0")
    try:
        number = Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Not a number: {value!r}")
    if not number.is_finite():
        raise ValueError(f"Not a finite number: {value!r}")
    return number


def round_money(value) -> float:
    """Rounds an amount half-up to paise."""
    return float(to_decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP))


def format_gstin(gstin: str) -> str:
    """
    Formats GSTIN for display (adds spaces for readability).

    Format: 27 AAPFU 0939 F 1Z V
    """
    gstin = gstin.strip().upper()

    if len(gstin) != 15:
        return gstin

    return f"{gstin[:2]} {gstin[2:7]} {gstin[7:11]} {gstin[11]} {gstin[12:14]} {gstin[14]}"


def get_state_name(state_code: Optional[str]) -> Optional[str]:
    if not state_code:
        return None
    return STATE_CODES.get(str(state_code).zfill(2))


def state_code_for_name(state_name: Optional[str]) -> Optional[str]:
    """
    Looks up a state code from a state name (case-insensitive).
    "Andhra Pradesh" resolves to the post-2014 code.
    """
    if not state_name:
        return None

    wanted = state_name.strip().lower()
    if wanted == "andhra pradesh":
        return "37"

    for code, name in STATE_CODES.items():
        if name.lower() == wanted:
            return code
    return None


def calculate_item_gst(
    taxable_amount,
    gst_rate,
    seller_state_code: Optional[str],
    buyer_state_code: Optional[str],
    invoice_type: str = "b2b",
    cess_rate=0,
) -> Dict[str, Any]:
    """
    Splits GST for one line.

    Export and SEZ supplies are zero rated. A supply within one state pays
    CGST + SGST at half the rate each; anything else pays IGST at the full
    rate. Cess is charged on top in every case.

    Raises:
        ValueError: non-positive taxable amount, unknown rate, missing seller state
    """
    taxable = to_decimal(taxable_amount)
    if taxable <= 0:
        raise ValueError("Taxable amount must be greater than 0")

    if not seller_state_code:
        raise ValueError("Seller state code is required")

    rate = to_decimal(gst_rate)
    if float(rate) not in VALID_GST_RATES:
        raise ValueError(
            f"Invalid GST rate: {gst_rate}. Valid rates are: {', '.join(str(r) for r in VALID_GST_RATES)}"
        )

    cess = to_decimal(cess_rate)
    if cess < 0:
        raise ValueError("Cess rate cannot be negative")

    hundred = Decimal("100")
    cgst_rate = sgst_rate = igst_rate = Decimal("0")
    cgst = sgst = igst = Decimal("0")

    zero_rated = invoice_type in ZERO_RATED_INVOICE_TYPES
    intra_state = bool(buyer_state_code) and str(seller_state_code) == str(buyer_state_code)

    if not zero_rated and intra_state:
        cgst_rate = sgst_rate = rate / 2
        cgst = taxable * cgst_rate / hundred
        sgst = taxable * sgst_rate / hundred
    elif not zero_rated:
        igst_rate = rate
        igst = taxable * rate / hundred

    cess_amount = taxable * cess / hundred

    cgst_r, sgst_r, igst_r, cess_r = (round_money(v) for v in (cgst, sgst, igst, cess_amount))
    total_tax = round_money(Decimal(str(cgst_r)) + Decimal(str(sgst_r)) + Decimal(str(igst_r)) + Decimal(str(cess_r)))

    if igst_r > 0:
        tax_type = "IGST"
    elif cgst_r > 0:
        tax_type = "CGST+SGST"
    else:
        tax_type = "NONE"

    return {
        "taxable_amount": round_money(taxable),
        "gst_rate": float(rate),
        "cgst_rate": float(cgst_rate),
        "sgst_rate": float(sgst_rate),
        "igst_rate": float(igst_rate),
        "cess_rate": float(cess),
        "cgst_amount": cgst_r,
        "sgst_amount": sgst_r,
        "igst_amount": igst_r,
        "cess_amount": cess_r,
        "total_tax_amount": total_tax,
        "total_amount": round_money(taxable + to_decimal(total_tax)),
        "tax_type": tax_type,
    }


def calculate_invoice_gst(
    items: List[Dict[str, Any]],
    seller_state_code: Optional[str],
    buyer_state_code: Optional[str],
    invoice_type: str = "b2b",
    discount_amount=0,
) -> Dict[str, Any]:
    """
    Computes every line and the document totals.

    Each item needs quantity, unit_price and gst_rate; discount_amount and
    cess_rate are optional. The invoice-level discount comes off the taxable
    total after line tax is worked out. final_amount is rounded to the rupee
    and round_off_amount records the difference.

    Raises:
        ValueError: no items, or a line the item calculator rejects
    """
    if not items:
        raise ValueError("Invoice must have at least one item")

    subtotal = Decimal("0")
    item_discounts = Decimal("0")
    cgst = sgst = igst = cess = Decimal("0")
    calculated = []

    for position, item in enumerate(items, start=1):
        quantity = to_decimal(item.get("quantity"))
        unit_price = to_decimal(item.get("unit_price"))
        if quantity <= 0:
            raise ValueError(f"Item {position}: quantity must be greater than 0")
        if unit_price < 0:
            raise ValueError(f"Item {position}: unit price cannot be negative")

        line_subtotal = quantity * unit_price
        line_discount = to_decimal(item.get("discount_amount") or 0)
        line_taxable = line_subtotal - line_discount

        try:
            line_gst = calculate_item_gst(
                taxable_amount=line_taxable,
                gst_rate=item.get("gst_rate"),
                seller_state_code=seller_state_code,
                buyer_state_code=buyer_state_code,
                invoice_type=invoice_type,
                cess_rate=item.get("cess_rate") or 0,
            )
        except ValueError as e:
            raise ValueError(f"Item {position}: {e}") from e

        subtotal += line_subtotal
        item_discounts += line_discount
        cgst += to_decimal(line_gst["cgst_amount"])
        sgst += to_decimal(line_gst["sgst_amount"])
        igst += to_decimal(line_gst["igst_amount"])
        cess += to_decimal(line_gst["cess_amount"])

        calculated.append({
            **item,
            "quantity": float(quantity),
            "unit_price": float(unit_price),
            "discount_amount": round_money(line_discount),
            "subtotal": round_money(line_subtotal),
            **line_gst,
        })

    invoice_discount = to_decimal(discount_amount or 0)
    if invoice_discount < 0:
        raise ValueError("Discount cannot be negative")

    taxable = subtotal - item_discounts - invoice_discount
    total_tax = cgst + sgst + igst + cess
    total = taxable + total_tax
    final_amount = total.quantize(Decimal("1"), rounding=ROUND_HALF_UP)

    if igst > 0:
        tax_type = "IGST"
    elif cgst > 0:
        tax_type = "CGST+SGST"
    else:
        tax_type = "NONE"

    return {
        "items": calculated,
        "subtotal": round_money(subtotal),
        "discount_amount": round_money(invoice_discount),
        "taxable_amount": round_money(taxable),
        "cgst_amount": round_money(cgst),
        "sgst_amount": round_money(sgst),
        "igst_amount": round_money(igst),
        "cess_amount": round_money(cess),
        "total_tax_amount": round_money(total_tax),
        "total_amount": round_money(total),
        "round_off_amount": round_money(final_amount - total),
        "final_amount": float(final_amount),
        "tax_type": tax_type,
    }


def get_transaction_type(seller_state_code: Optional[str], buyer_state_code: Optional[str]) -> Dict[str, Any]:
    """
    Classifies a supply as intra-state or inter-state.
    """
    if not seller_state_code or not buyer_state_code:
        return {"type": "UNKNOWN", "tax_applicable": None}

    if str(seller_state_code) == str(buyer_state_code):
        return {
            "type": "INTRA_STATE",
            "tax_applicable": "CGST+SGST",
            "state": get_state_name(seller_state_code),
        }

    return {
        "type": "INTER_STATE",
        "tax_applicable": "IGST",
        "from_state": get_state_name(seller_state_code),
        "to_state": get_state_name(buyer_state_code),
    }


def is_reverse_charge_applicable(supplier_registered: bool, recipient_registered: bool) -> bool:
    """Supplies from an unregistered supplier to a registered recipient fall under reverse charge."""
    return (not supplier_registered) and recipient_registered

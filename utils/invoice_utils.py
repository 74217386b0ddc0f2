"""
utils/invoice_utils.py

Purpose: Invoice numbering and printing helpers

- Format: INV-YYYYMM-NNNN, sequence restarts every month per business
- Amounts in words with Indian grouping (lakh, crore) for printed invoices
"""

import re
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Dict


INVOICE_PREFIX = "INV"
INVOICE_NUMBER_PATTERN = re.compile(r"^INV-(\d{4})(\d{2})-(\d{4,})$")


def month_key(year: int, month: int) -> str:
    return f"{year}{month:02d}"


def invoice_number_prefix(year: int, month: int) -> str:
    return f"{INVOICE_PREFIX}-{month_key(year, month)}-"


def format_invoice_number(year: int, month: int, sequence: int) -> str:
    return f"{invoice_number_prefix(year, month)}{sequence:04d}"


def parse_invoice_number(invoice_number: Optional[str]) -> Optional[Dict[str, int]]:
    """
    Splits an invoice number into year, month and sequence.

    Returns:
        Dict with year, month, sequence, or None when the number is malformed
    """
    if not invoice_number:
        return None
    match = INVOICE_NUMBER_PATTERN.match(invoice_number)
    if not match:
        return None
    year, month, sequence = (int(part) for part in match.groups())
    if month < 1 or month > 12:
        return None
    return {"year": year, "month": month, "sequence": sequence}


def validate_invoice_number(invoice_number: Optional[str]) -> bool:
    return parse_invoice_number(invoice_number) is not None


def next_invoice_number(last_invoice_number: Optional[str], year: int, month: int) -> str:
    """
    Returns the number following last_invoice_number within the same month,
    or the month's first number when there is none.
    """
    parsed = parse_invoice_number(last_invoice_number)
    if parsed and parsed["year"] == year and parsed["month"] == month:
        return format_invoice_number(year, month, parsed["sequence"] + 1)
    return format_invoice_number(year, month, 1)


ONES = [
    "", "One", "Two", "Three", "Four", "Five", "Six", "Seven", "Eight", "Nine",
    "Ten", "Eleven", "Twelve", "Thirteen", "Fourteen", "Fifteen", "Sixteen",
    "Seventeen", "Eighteen", "Nineteen",
]
TENS = ["", "", "Twenty", "Thirty", "Forty", "Fifty", "Sixty", "Seventy", "Eighty", "Ninety"]


def _below_thousand(n: int) -> str:
    words = []
    if n >= 100:
        words.append(f"{ONES[n // 100]} Hundred")
        n %= 100
    if n >= 20:
        words.append(TENS[n // 10] + (f" {ONES[n % 10]}" if n % 10 else ""))
    elif n:
        words.append(ONES[n])
    return " ".join(words)


def _indian_words(n: int) -> str:
    parts = []
    crores, n = divmod(n, 10_000_000)
    if crores:
        parts.append(f"{_indian_words(crores)} Crore")
    lakhs, n = divmod(n, 100_000)
    if lakhs:
        parts.append(f"{_below_thousand(lakhs)} Lakh")
    thousands, n = divmod(n, 1000)
    if thousands:
        parts.append(f"{_below_thousand(thousands)} Thousand")
    if n:
        parts.append(_below_thousand(n))
    return " ".join(parts)


def amount_in_words(amount) -> str:
    """
    118000 -> "One Lakh Eighteen Thousand Rupees"
    """
    value = abs(Decimal(str(amount))).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    rupees = int(value)
    paise = int((value - rupees) * 100)
    words = f"{_indian_words(rupees) or 'Zero'} Rupees"
    if paise:
        words += f" and {_below_thousand(paise)} Paise"
    return words

"""
Receipt Field Extraction

Turns free-form recognized text into a proposed amount and date.
Both heuristics are deliberately simple and the results are only
defaults for the transaction form:

- Amount: the largest figure written with two decimals (comma or dot),
  on the premise that a receipt's total is its largest printed number.
- Date: the first day/month/year date, with '/', '-' or '.' separators.
"""

import re
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional

from budget.models.reports import ReceiptScan

UNAVAILABLE_TEXT = "OCR unavailable - please enter the amount manually"

AMOUNT_PATTERN = re.compile(r"\d+[.,]\d{2}")
DATE_PATTERN = re.compile(r"(\d{1,2})[/\-.](\d{1,2})[/\-.](\d{2,4})")


def find_amount(text: str) -> Optional[Decimal]:
    """Largest two-decimal figure in the text, or None."""
    candidates = []
    for match in AMOUNT_PATTERN.findall(text):
        try:
            candidates.append(Decimal(match.replace(",", ".")))
        except InvalidOperation:
            continue
    if not candidates:
        return None
    return max(candidates)


def find_date(text: str) -> Optional[date]:
    """
    First day-month-year date in the text, or None.

    A two-digit year is read as 20YY. A match that isn't a real
    calendar date (31/02/2024) counts as no date.
    """
    match = DATE_PATTERN.search(text)
    if match is None:
        return None
    day, month, year = match.groups()
    if len(year) == 2:
        year = "20" + year
    try:
        return date(int(year), int(month), int(day))
    except ValueError:
        return None


def extract_receipt_fields(raw_text: Optional[str], today: Optional[date] = None) -> ReceiptScan:
    """
    Propose an amount and a date from recognized receipt text.

    Never raises: no amount gives 0.00, no date gives today. A result
    is flagged as not recognized when the text is the unavailable
    placeholder or carries no amount at all.
    """
    text = raw_text or ""
    today = today or date.today()

    amount = find_amount(text)
    found_date = find_date(text)

    return ReceiptScan(
        amount=(amount if amount is not None else Decimal("0")).quantize(Decimal("0.01")),
        date=found_date or today,
        raw_text=text,
        recognized=amount is not None and text != UNAVAILABLE_TEXT,
    )

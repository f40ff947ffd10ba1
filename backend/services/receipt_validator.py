"""
Schema & Tax Validator

Takes the dict the parser produced and either returns a clean
InterpretedReceipt or raises IncompleteData.

Policies (kept here so there is exactly one place to change them):
  - vendor and total are required; a missing/zero/negative total is terminal.
  - tax, subtotal and item prices that cannot be read as numbers become 0
    and a warning is recorded.  Quantity falls back to 1.
  - item ``price`` is the amount printed on the line (not a unit price).
  - when tax is missing but subtotal < total, tax is derived as the difference.
  - subtotal + tax more than $0.50 away from total is a warning, never a
    rejection.  It caps the confidence in the "some fields unclear" band.
  - a payment method outside the known set becomes "Unknown".
"""
import logging
import math
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from models.schemas import PAYMENT_METHODS, InterpretedReceipt, ReceiptItem
from services.errors import IncompleteData
from services.prompt_builder import TAX_TOLERANCE

logger = logging.getLogger("receiptlens.validator")

INCONSISTENT_CONFIDENCE_CAP = 0.69
RETAKE_THRESHOLD = 0.65

_PAYMENT_ALIASES = {
    "credit": "Credit Card",
    "creditcard": "Credit Card",
    "debit": "Debit Card",
    "debitcard": "Debit Card",
    "interac": "Debit Card",
    "mastercard": "Mastercard",
    "mc": "Mastercard",
    "americanexpress": "Amex",
    "amex": "Amex",
    "applepay": "Apple Pay",
    "googlepay": "Google Pay",
    "gpay": "Google Pay",
    "cash": "Cash",
    "visa": "Visa",
}

_DATE_FORMATS = [
    "%Y-%m-%d", "%Y/%m/%d", "%m/%d/%Y", "%m/%d/%y", "%m-%d-%Y", "%m-%d-%y",
    "%d.%m.%Y", "%b %d, %Y", "%B %d, %Y", "%b %d %Y", "%d %b %Y", "%d %B %Y",
]
# Formats without a year, parsed with the current year appended
_YEARLESS_FORMATS = ["%m/%d", "%m-%d", "%b %d", "%B %d", "%d %b"]

_ISO_PREFIX_RE = re.compile(r'^(\d{4}-\d{2}-\d{2})[T ]')


@dataclass
class ValidationOutcome:
    receipt: InterpretedReceipt
    warnings: list[str] = field(default_factory=list)
    tax_confidence: float = 0.0
    suggestions: list[str] = field(default_factory=list)


def to_number(value: Any) -> Optional[float]:
    """Best-effort numeric coercion.  Returns None when nothing usable."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    if not isinstance(value, str):
        return None
    s = re.sub(r'[\s$€£¥]', '', value)
    if not s:
        return None
    # Whichever separator comes last is the decimal point
    if ',' in s and s.rfind(',') > s.rfind('.'):
        s = s.replace('.', '').replace(',', '.')    # "6,20", "1.234,56"
    else:
        s = s.replace(',', '')                      # "1,234.56"
    try:
        number = float(s)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def normalize_payment_method(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        return "Unknown"
    for method in PAYMENT_METHODS:
        if value.strip().lower() == method.lower():
            return method
    key = re.sub(r'[^a-z]', '', value.lower())
    return _PAYMENT_ALIASES.get(key, "Unknown")


def normalize_date(value: Any, current_year: int) -> Optional[str]:
    """Return YYYY-MM-DD, inferring ``current_year`` when the year is absent."""
    if not isinstance(value, str) or not value.strip():
        return None
    s = value.strip()
    m = _ISO_PREFIX_RE.match(s)
    if m:
        s = m.group(1)
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(s, fmt).date().isoformat()
        except ValueError:
            continue
    for fmt in _YEARLESS_FORMATS:
        try:
            return datetime.strptime(f"{s} {current_year}", f"{fmt} %Y").date().isoformat()
        except ValueError:
            continue
    return None


def _amount(candidate: dict, key: str, warnings: list[str]) -> float:
    raw = candidate.get(key)
    if raw is None or raw == "":
        return 0.0
    number = to_number(raw)
    if number is None:
        warnings.append(f"{key} {raw!r} is not a number; using 0")
        return 0.0
    if number < 0:
        warnings.append(f"{key} {number} is negative; using 0")
        return 0.0
    return round(number, 2)


def _items(candidate: dict, warnings: list[str]) -> list[ReceiptItem]:
    raw_items = candidate.get("items")
    if raw_items is None:
        return []
    if not isinstance(raw_items, list):
        warnings.append("items is not a list; ignoring it")
        return []

    items = []
    for position, raw in enumerate(raw_items, start=1):
        if not isinstance(raw, dict):
            warnings.append(f"item {position} is not an object; skipped")
            continue
        name = str(raw.get("name") or "").strip()
        if not name:
            warnings.append(f"item {position} has no name; skipped")
            continue
        qty = to_number(raw.get("quantity"))
        if not qty or qty < 0:
            qty = 1.0
        price = to_number(raw.get("price"))
        if price is None:
            if raw.get("price") not in (None, ""):
                warnings.append(f"price for {name!r} is not a number; using 0")
            price = 0.0
        items.append(ReceiptItem(name=name, quantity=qty, price=round(price, 2)))
    return items


def _completeness_confidence(date: Optional[str], items: list, payment: str) -> float:
    score = 1.0
    if not date:
        score -= 0.15
    if not items:
        score -= 0.15
    if payment == "Unknown":
        score -= 0.05
    return score


def validate_receipt(candidate: dict, current_year: int) -> ValidationOutcome:
    warnings: list[str] = []

    vendor = candidate.get("vendor")
    vendor = vendor.strip() if isinstance(vendor, str) else ""
    total = to_number(candidate.get("total"))
    if not vendor or not total:
        missing = [name for name, ok in (("vendor", vendor), ("total", total)) if not ok]
        logger.error("Invalid receipt data structure (missing %s): %s", ", ".join(missing), candidate)
        raise IncompleteData(f"LLM returned incomplete data: missing {', '.join(missing)}", data=candidate)
    if total < 0:
        raise IncompleteData("LLM returned a negative total", data=candidate)
    total = round(total, 2)

    tax = _amount(candidate, "tax", warnings)
    subtotal = _amount(candidate, "subtotal", warnings)
    items = _items(candidate, warnings)

    tax_derived = False
    if tax == 0 and 0 < subtotal < total:
        tax = round(total - subtotal, 2)
        tax_derived = True
        warnings.append(f"tax derived from total - subtotal = {tax:.2f}")

    inconsistent = False
    if subtotal > 0 and tax > 0 and not tax_derived:
        diff = abs(subtotal + tax - total)
        if diff > TAX_TOLERANCE:
            inconsistent = True
            msg = (f"subtotal {subtotal:.2f} + tax {tax:.2f} = {subtotal + tax:.2f} "
                   f"differs from total {total:.2f} by {diff:.2f}")
            logger.warning("Tax consistency check failed for %r: %s", vendor, msg)
            warnings.append(msg)

    payment = normalize_payment_method(candidate.get("paymentMethod"))
    if candidate.get("paymentMethod") not in (None, "", payment):
        warnings.append(f"payment method {candidate.get('paymentMethod')!r} normalized to {payment!r}")

    date = normalize_date(candidate.get("date"), current_year)
    if candidate.get("date") and not date:
        warnings.append(f"date {candidate.get('date')!r} could not be read")

    reported = to_number(candidate.get("confidence"))
    if reported is None:
        confidence = _completeness_confidence(date, items, payment)
    else:
        confidence = reported
    confidence = min(max(confidence, 0.0), 1.0)
    if inconsistent:
        confidence = min(confidence, INCONSISTENT_CONFIDENCE_CAP)

    if inconsistent:
        tax_confidence = 0.4
    elif tax_derived:
        tax_confidence = 0.75
    elif subtotal > 0 and tax > 0:
        tax_confidence = 0.95
    elif tax > 0:
        tax_confidence = 0.7
    else:
        tax_confidence = 0.5

    suggestions = []
    if inconsistent or tax_derived:
        suggestions.append("Confirm tax vs. subtotal before filing.")
    if confidence < RETAKE_THRESHOLD:
        suggestions.append("Extraction confidence is low. Consider retaking the photo.")
    if items and subtotal > 0:
        items_sum = round(sum(i.price for i in items), 2)
        if abs(items_sum - subtotal) > TAX_TOLERANCE:
            suggestions.append(
                f"Line items add up to {items_sum:.2f} but the subtotal is {subtotal:.2f}. "
                f"Check for missing or discounted items."
            )

    receipt = InterpretedReceipt(
        vendor=vendor,
        date=date,
        total=total,
        tax=tax,
        subtotal=subtotal,
        items=items,
        payment_method=payment,
        confidence=round(confidence, 2),
    )
    return ValidationOutcome(
        receipt=receipt,
        warnings=warnings,
        tax_confidence=tax_confidence,
        suggestions=suggestions,
    )

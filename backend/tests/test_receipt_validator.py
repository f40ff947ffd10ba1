"""
Tests for the schema & tax validator — required fields, numeric coercion,
tax derivation/consistency, payment-method and date normalization.
"""
import pytest

from services.errors import IncompleteData
from services.receipt_validator import (
    normalize_date,
    normalize_payment_method,
    to_number,
    validate_receipt,
)


def candidate(**overrides):
    data = {
        "vendor": "STORE A",
        "date": "2025-12-02",
        "total": 52.10,
        "tax": 6.20,
        "subtotal": 45.90,
        "items": [],
        "paymentMethod": "Visa",
        "confidence": 0.9,
    }
    data.update(overrides)
    return data


# ── Required fields ──────────────────────────────────────────────────────────

class TestRequiredFields:

    @pytest.mark.parametrize("vendor", [None, "", "   ", 42])
    def test_missing_vendor(self, vendor):
        data = candidate(vendor=vendor)
        with pytest.raises(IncompleteData) as exc:
            validate_receipt(data, 2025)
        assert "vendor" in exc.value.detail
        assert exc.value.data is data

    @pytest.mark.parametrize("total", [None, 0, 0.0, "", "n/a", "0.00"])
    def test_falsy_total(self, total):
        with pytest.raises(IncompleteData) as exc:
            validate_receipt(candidate(total=total), 2025)
        assert "total" in exc.value.detail

    def test_absent_keys(self):
        with pytest.raises(IncompleteData) as exc:
            validate_receipt({}, 2025)
        assert "vendor, total" in exc.value.detail

    def test_negative_total(self):
        with pytest.raises(IncompleteData):
            validate_receipt(candidate(total=-5), 2025)


# ── Numeric coercion ─────────────────────────────────────────────────────────

class TestToNumber:

    @pytest.mark.parametrize("raw,expected", [
        (52.1, 52.1),
        (3, 3.0),
        ("52.10", 52.10),
        ("$6.20", 6.20),
        ("6,20", 6.20),
        ("1,234.56", 1234.56),
        ("1.234,56", 1234.56),
        ("€12,50", 12.50),
        (" 7 ", 7.0),
    ])
    def test_parses(self, raw, expected):
        assert to_number(raw) == pytest.approx(expected)

    @pytest.mark.parametrize("raw", [None, True, "abc", "", [], {}, float("nan")])
    def test_rejects(self, raw):
        assert to_number(raw) is None


class TestCoercion:

    def test_string_amounts_become_floats(self):
        out = validate_receipt(candidate(total="$52.10", tax="6.20", subtotal="45.90"), 2025)
        assert out.receipt.total == 52.10
        assert out.receipt.tax == 6.20
        assert out.receipt.subtotal == 45.90

    def test_unreadable_tax_defaults_to_zero_with_warning(self):
        out = validate_receipt(candidate(tax="unknown", subtotal=0), 2025)
        assert out.receipt.tax == 0
        assert any("tax" in w for w in out.warnings)

    def test_missing_optional_amounts_default_to_zero(self):
        data = candidate()
        del data["tax"], data["subtotal"]
        out = validate_receipt(data, 2025)
        assert out.receipt.tax == 0
        assert out.receipt.subtotal == 0
        assert out.warnings == []

    def test_item_quantity_defaults_to_one(self):
        items = [
            {"name": "Milk", "price": 3.5},
            {"name": "Eggs", "quantity": 0, "price": 4},
            {"name": "Bread", "quantity": "2", "price": "5.00"},
        ]
        out = validate_receipt(candidate(items=items), 2025)
        assert [i.quantity for i in out.receipt.items] == [1.0, 1.0, 2.0]
        assert out.receipt.items[2].price == 5.0

    def test_items_keep_order_and_drop_nameless(self):
        items = [{"name": "A", "price": 1}, {"name": "", "price": 2}, "junk", {"name": "C", "price": 3}]
        out = validate_receipt(candidate(items=items), 2025)
        assert [i.name for i in out.receipt.items] == ["A", "C"]
        assert len(out.warnings) == 2

    def test_items_not_a_list(self):
        out = validate_receipt(candidate(items="Milk, Eggs"), 2025)
        assert out.receipt.items == []
        assert any("items" in w for w in out.warnings)


# ── Tax handling ─────────────────────────────────────────────────────────────

class TestTax:

    def test_consistent_receipt_has_no_warning(self):
        out = validate_receipt(candidate(), 2025)
        assert out.warnings == []
        assert out.tax_confidence == 0.95
        assert out.receipt.confidence == 0.9

    def test_within_tolerance_is_consistent(self):
        out = validate_receipt(candidate(total=52.50), 2025)   # off by 0.40
        assert out.warnings == []

    def test_inconsistency_warns_but_accepts(self):
        out = validate_receipt(candidate(total=60.00), 2025)
        assert out.receipt.total == 60.00
        assert any("differs from total" in w for w in out.warnings)
        assert out.receipt.confidence == 0.69
        assert out.tax_confidence == 0.4
        assert "Confirm tax vs. subtotal before filing." in out.suggestions

    def test_tax_derived_from_total_minus_subtotal(self):
        out = validate_receipt(candidate(tax=0), 2025)
        assert out.receipt.tax == pytest.approx(52.10 - 45.90, abs=0.01)
        assert any("derived" in w for w in out.warnings)

    def test_no_tax_signal_keeps_zero(self):
        out = validate_receipt(candidate(tax=0, subtotal=0), 2025)
        assert out.receipt.tax == 0
        assert out.tax_confidence == 0.5


# ── Payment method ───────────────────────────────────────────────────────────

class TestPaymentMethod:

    @pytest.mark.parametrize("raw,expected", [
        ("Visa", "Visa"),
        ("visa", "Visa"),
        ("APPLE PAY", "Apple Pay"),
        ("Debit", "Debit Card"),
        ("Master Card", "Mastercard"),
        ("American Express", "Amex"),
        ("Bitcoin", "Unknown"),
        (None, "Unknown"),
        (7, "Unknown"),
    ])
    def test_normalize(self, raw, expected):
        assert normalize_payment_method(raw) == expected

    def test_out_of_set_value_is_reported(self):
        out = validate_receipt(candidate(paymentMethod="Store Credit Voucher"), 2025)
        assert out.receipt.payment_method == "Unknown"
        assert any("normalized" in w for w in out.warnings)


# ── Dates ────────────────────────────────────────────────────────────────────

class TestDates:

    @pytest.mark.parametrize("raw,expected", [
        ("2025-01-15", "2025-01-15"),
        ("2025-01-15T17:42:00", "2025-01-15"),
        ("12/02/2025", "2025-12-02"),
        ("12/02/25", "2025-12-02"),
        ("Jan 15, 2025", "2025-01-15"),
        ("12/02", "2026-12-02"),
    ])
    def test_normalize(self, raw, expected):
        assert normalize_date(raw, 2026) == expected

    @pytest.mark.parametrize("raw", [None, "", "yesterday", "2025-13-45"])
    def test_unreadable(self, raw):
        assert normalize_date(raw, 2026) is None

    def test_unreadable_date_warns(self):
        out = validate_receipt(candidate(date="sometime"), 2025)
        assert out.receipt.date is None
        assert any("date" in w for w in out.warnings)


# ── Confidence ───────────────────────────────────────────────────────────────

class TestConfidence:

    @pytest.mark.parametrize("raw,expected", [(1.7, 1.0), (-0.2, 0.0), ("0.8", 0.8)])
    def test_clamped(self, raw, expected):
        assert validate_receipt(candidate(confidence=raw), 2025).receipt.confidence == expected

    def test_computed_when_missing(self):
        data = candidate(items=[{"name": "A", "price": 45.90}])
        del data["confidence"]
        assert validate_receipt(data, 2025).receipt.confidence == 1.0

    def test_low_confidence_suggests_retake(self):
        out = validate_receipt(candidate(confidence=0.3), 2025)
        assert any("retaking" in s for s in out.suggestions)

    def test_items_not_matching_subtotal_suggestion(self):
        out = validate_receipt(candidate(items=[{"name": "A", "price": 10}]), 2025)
        assert any("Line items add up to 10.00" in s for s in out.suggestions)

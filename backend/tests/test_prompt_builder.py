"""
Tests for the interpretation prompt — it must embed the OCR text verbatim
and spell out every rule the validator later relies on.
"""
from models.schemas import PAYMENT_METHODS
from services.prompt_builder import TAX_LABELS, build_interpretation_prompt


OCR = "STORE A\nSUBTOTAL 45.90\nTAX 6.20\nTOTAL 52.10"


class TestBuildInterpretationPrompt:

    def test_embeds_ocr_text_verbatim(self):
        prompt = build_interpretation_prompt(OCR, 2025)
        assert OCR in prompt

    def test_garbled_text_passes_through(self):
        garbage = "%%$#@ 12..3 ~~ \x0c"
        assert garbage in build_interpretation_prompt(garbage, 2025)

    def test_empty_text_still_produces_prompt(self):
        assert build_interpretation_prompt("", 2025)

    def test_is_deterministic(self):
        assert build_interpretation_prompt(OCR, 2025) == build_interpretation_prompt(OCR, 2025)

    def test_uses_current_year_for_inference(self):
        assert "use 2031" in build_interpretation_prompt(OCR, 2031)

    def test_lists_schema_fields(self):
        prompt = build_interpretation_prompt(OCR, 2025)
        for field in ("vendor", "date", "total", "tax", "subtotal", "items",
                      "quantity", "price", "paymentMethod", "confidence"):
            assert f'"{field}"' in prompt

    def test_lists_every_tax_label(self):
        prompt = build_interpretation_prompt(OCR, 2025)
        for label in TAX_LABELS:
            assert label in prompt

    def test_tax_rules(self):
        prompt = build_interpretation_prompt(OCR, 2025)
        assert "tax = total - subtotal" in prompt
        assert "$0.50" in prompt
        assert "set tax = 0" in prompt

    def test_quantity_notation(self):
        prompt = build_interpretation_prompt(OCR, 2025)
        assert '"2x ITEM"' in prompt
        assert '"ITEM x2"' in prompt

    def test_excludes_fees_and_tips(self):
        prompt = build_interpretation_prompt(OCR, 2025).lower()
        assert "service fees" in prompt
        assert "tips" in prompt

    def test_confidence_rubric_bands(self):
        prompt = build_interpretation_prompt(OCR, 2025)
        assert ">= 0.9" in prompt
        assert "0.7-0.89" in prompt
        assert "0.5-0.69" in prompt
        assert "< 0.5" in prompt

    def test_payment_methods_enumerated(self):
        prompt = build_interpretation_prompt(OCR, 2025)
        for method in PAYMENT_METHODS:
            assert f'"{method}"' in prompt

    def test_demands_bare_json(self):
        prompt = build_interpretation_prompt(OCR, 2025)
        assert "Return ONLY the JSON object" in prompt
        assert "no code fences" in prompt

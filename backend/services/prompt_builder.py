"""
Prompt Builder

Renders the instruction prompt that turns raw OCR text into a structured
receipt.  Pure: the same (ocr_text, current_year) always yields the same
string, and garbage OCR text is passed through untouched.  Anything the
model gets wrong is dealt with by the parser and validator downstream.
"""
from models.schemas import PAYMENT_METHODS

TAX_LABELS = ["Tax", "GST", "PST", "HST", "VAT", "Sales Tax"]

TAX_TOLERANCE = 0.50

# (lower bound, description), highest band first
CONFIDENCE_BANDS = [
    (0.9, "all fields clearly readable"),
    (0.7, "minor uncertainty in one or two fields"),
    (0.5, "some fields unclear or guessed"),
    (0.0, "poor or ambiguous source text"),
]


def _confidence_rubric() -> str:
    lines = []
    upper = None
    for lower, description in CONFIDENCE_BANDS:
        if upper is None:
            band = f">= {lower:.1f}"
        elif lower == 0.0:
            band = f"< {upper:.1f}"
        else:
            band = f"{lower:.1f}-{upper - 0.01:.2f}"
        lines.append(f"  - {band}: {description}")
        upper = lower
    return "\n".join(lines)


def build_interpretation_prompt(ocr_text: str, current_year: int) -> str:
    payment_methods = " | ".join(f'"{m}"' for m in PAYMENT_METHODS)
    tax_labels = ", ".join(TAX_LABELS)

    return f"""You are a receipt parsing expert. Analyze the following OCR text from a receipt and extract structured information.

OCR Text:
<ocr_text>
{ocr_text}
</ocr_text>

Return a JSON object with exactly this structure:
{{
  "vendor": "store name as printed",
  "date": "YYYY-MM-DD",
  "total": number (final amount paid),
  "tax": number (tax amount, 0 if not found),
  "subtotal": number (amount before tax, 0 if not found),
  "items": [
    {{
      "name": "item description",
      "quantity": number,
      "price": number (price printed on this line)
    }}
  ],
  "paymentMethod": {payment_methods},
  "confidence": number between 0 and 1
}}

TAX DETECTION:
- Recognized tax labels: {tax_labels}. Sum them if more than one appears.
- If a subtotal and a total are both present but no tax line is, set tax = total - subtotal.
- Check consistency: subtotal + tax must be within ${TAX_TOLERANCE:.2f} of total. If it is not, re-read the amounts and lower your confidence.
- If there is no tax signal at all and only a total is present, set tax = 0 and subtotal = 0.

ITEMS:
- Extract every purchased item in the order it appears.
- quantity defaults to 1. Read "2x ITEM", "ITEM x2" and "2 @ 3.50" as quantity 2.
- Do NOT include service fees, tips, gratuity, subtotal, tax, or repeated total lines as items.

DATES:
- If the receipt shows no year, use {current_year}.
- Always output the date as YYYY-MM-DD.

PAYMENT:
- Use one of the listed payment methods exactly as spelled. Use "Unknown" if none is shown.

CONFIDENCE:
{_confidence_rubric()}

OUTPUT:
- Return ONLY the JSON object. No prose, no explanations, no markdown, no code fences.
"""

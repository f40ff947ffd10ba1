from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Any, Optional, List


PAYMENT_METHODS = [
    "Credit Card", "Cash", "Debit Card", "Visa", "Mastercard",
    "Amex", "Apple Pay", "Google Pay", "Unknown",
]

CATEGORY_OPTIONS = [
    "Groceries", "Restaurants", "Transportation", "Supplies",
    "Lifestyle", "Travel", "Services",
]


class CamelModel(BaseModel):
    """JSON uses camelCase (paymentMethod, createdAt, ...); Python uses snake_case."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Line Item ──────────────────────────────────────────
class ReceiptItem(CamelModel):
    id: Optional[str] = None
    name: str
    quantity: float = 1.0
    price: float = 0.0          # whatever the receipt printed on the line
    emoji: Optional[str] = None
    category: Optional[str] = None


# ── Interpretation ─────────────────────────────────────
class InterpretRequest(CamelModel):
    # Typed loosely on purpose: a missing or non-string value is a
    # BadRequest (400) raised by the interpreter, not a 422 from FastAPI.
    ocr_text: Any = None

class InterpretedReceipt(CamelModel):
    vendor: str
    date: Optional[str] = None          # YYYY-MM-DD
    total: float
    tax: float = 0.0
    subtotal: float = 0.0
    items: List[ReceiptItem] = []
    payment_method: str = "Unknown"
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)

class InterpretationResult(InterpretedReceipt):
    tax_confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    warnings: List[str] = []
    suggestions: List[str] = []

class InterpretResponse(CamelModel):
    success: bool = True
    data: InterpretationResult


# ── Summaries ──────────────────────────────────────────
class SummarizeRequest(CamelModel):
    type: Optional[str] = None
    receipt: Optional[dict] = None
    receipts: Optional[List[dict]] = None

class SummaryResponse(CamelModel):
    success: bool = True
    summary: str


# ── Receipt history ────────────────────────────────────
class ReceiptDraft(CamelModel):
    """What the review screen sends when the user confirms a receipt."""
    vendor: str = ""
    date: Optional[str] = None
    total: float = 0.0
    tax: float = 0.0
    subtotal: float = 0.0
    items: List[ReceiptItem] = []
    payment_method: str = "Unknown"
    category: str = ""
    confidence: float = 0.0
    notes: Optional[str] = None
    summary: Optional[str] = None
    emoji_tag: Optional[str] = None
    raw_text: Optional[str] = None

class Receipt(CamelModel):
    id: str
    vendor: str
    date: Optional[str] = None
    total: float
    tax: float = 0.0
    subtotal: float = 0.0
    items: List[ReceiptItem] = []
    payment_method: str = "Unknown"
    category: str = ""
    confidence: float = 0.0
    favorite: bool = False
    pinned: bool = False
    created_at: str
    summary: Optional[str] = None
    notes: Optional[str] = None
    raw_text: Optional[str] = None
    emoji_tag: Optional[str] = None

class ReceiptUpdate(CamelModel):
    notes: Optional[str] = None
    summary: Optional[str] = None
    emoji_tag: Optional[str] = None
    category: Optional[str] = None
    favorite: Optional[bool] = None
    pinned: Optional[bool] = None


# ── Analytics ──────────────────────────────────────────
class MonthlyBucket(CamelModel):
    period: str            # e.g. "2025-01"
    year: int
    month: int
    label: str             # e.g. "Jan 2025"
    total: float

class CategoryTotal(CamelModel):
    category: str
    total: float
    count: int

class AverageTicket(CamelModel):
    average: float
    count: int

class HistoryStats(CamelModel):
    total: float
    count: int
    average_ticket: float
    category_split: List[CategoryTotal]
    monthly_buckets: List[MonthlyBucket]


# ── Upload / OCR ───────────────────────────────────────
class OCRResult(CamelModel):
    text: str
    pages: int
    stored_path: str
    public_url: Optional[str] = None

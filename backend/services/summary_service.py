"""
Summary Generator

Narrative summaries of one receipt ("single") or a receipt history
("bulk").  Bulk mode aggregates the numbers locally first so the model only
has to write prose about them.
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from fastapi import Depends

from models.schemas import SummarizeRequest
from services.errors import InvalidSummaryRequest
from services.llm_client import SUMMARY_SETTINGS, LLMClient, get_llm_client
from services.receipt_validator import to_number

logger = logging.getLogger("receiptlens.summary")

TOP_CATEGORIES = 3
STORES_LISTED = 5


@dataclass
class BulkStats:
    count: int
    total_spent: float
    by_category: list[tuple[str, float]] = field(default_factory=list)   # sorted desc
    stores: list[str] = field(default_factory=list)                      # first-seen order
    start: Optional[date] = None
    end: Optional[date] = None


def _store_name(receipt: dict) -> str:
    return str(receipt.get("vendor") or receipt.get("store") or "").strip()


def _receipt_date(receipt: dict) -> Optional[date]:
    value = receipt.get("date")
    if not isinstance(value, str) or len(value) < 10:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def compute_bulk_stats(receipts: list[dict]) -> BulkStats:
    total_spent = 0.0
    categories: dict[str, float] = {}
    stores: list[str] = []
    dates: list[date] = []

    for r in receipts:
        amount = to_number(r.get("total")) or 0.0
        total_spent += amount
        category = r.get("category") or "Uncategorized"
        categories[category] = categories.get(category, 0.0) + amount
        store = _store_name(r)
        if store and store not in stores:
            stores.append(store)
        d = _receipt_date(r)
        if d:
            dates.append(d)

    by_category = sorted(
        ((cat, round(amount, 2)) for cat, amount in categories.items()),
        key=lambda pair: (-pair[1], pair[0]),
    )
    return BulkStats(
        count=len(receipts),
        total_spent=round(total_spent, 2),
        by_category=by_category,
        stores=stores,
        start=min(dates) if dates else None,
        end=max(dates) if dates else None,
    )


def build_single_prompt(receipt: dict) -> str:
    items = receipt.get("items") or []
    item_names = ", ".join(
        str(i.get("name")) for i in items if isinstance(i, dict) and i.get("name")
    )
    total = to_number(receipt.get("total")) or 0.0
    return f"""You are a financial assistant analyzing a receipt. Provide a brief, helpful summary (2-3 sentences max) about this purchase.

Receipt Details:
- Store: {_store_name(receipt) or "Unknown"}
- Date: {receipt.get("date") or "Unknown"}
- Total: ${total:.2f}
- Items: {item_names or "None listed"}
- Category: {receipt.get("category") or "Not specified"}

Generate a concise summary focusing on:
1. What was purchased
2. Any notable spending patterns or insights
3. Brief context about the purchase

Keep it friendly and informative. Return ONLY the summary text, no JSON."""


def build_bulk_prompt(stats: BulkStats) -> str:
    top = ", ".join(f"{cat}: ${amount:.2f}" for cat, amount in stats.by_category[:TOP_CATEGORIES])
    stores = ", ".join(stats.stores[:STORES_LISTED])
    if len(stats.stores) > STORES_LISTED:
        stores += f" and {len(stats.stores) - STORES_LISTED} more"
    if stats.start and stats.end:
        date_range = f"{stats.start.isoformat()} to {stats.end.isoformat()}"
    else:
        date_range = "N/A"

    return f"""You are a financial assistant analyzing spending history. Provide an insightful summary (4-5 sentences) of the user's spending patterns.

Spending Overview:
- Total Receipts: {stats.count}
- Total Spent: ${stats.total_spent:.2f}
- Date Range: {date_range}
- Top Categories: {top or "None"}
- Stores Visited: {stores or "None"}

Generate a comprehensive summary that:
1. Highlights overall spending trends
2. Identifies top spending categories
3. Notes any interesting patterns (frequent stores, spending habits)
4. Provides one actionable insight or observation

Be conversational, insightful, and helpful. Return ONLY the summary text, no JSON."""


def build_summary_prompt(request: SummarizeRequest) -> str:
    """Pick the prompt for ``request.type``; raise InvalidSummaryRequest otherwise."""
    if request.type == "single":
        if not request.receipt:
            raise InvalidSummaryRequest("Single summary requires a receipt")
        return build_single_prompt(request.receipt)
    if request.type == "bulk":
        if not request.receipts:
            raise InvalidSummaryRequest("Bulk summary requires a non-empty receipts list")
        return build_bulk_prompt(compute_bulk_stats(request.receipts))
    raise InvalidSummaryRequest(
        "Invalid request: type must be 'single' or 'bulk' and receipt(s) must be provided"
    )


class SummaryGenerator:
    def __init__(self, llm: LLMClient):
        self.llm = llm

    async def summarize(self, request: SummarizeRequest) -> str:
        prompt = build_summary_prompt(request)
        logger.info("Generating %s summary", request.type)
        text = await self.llm.complete(prompt, SUMMARY_SETTINGS)
        return text.strip()


def get_summary_generator(llm: LLMClient = Depends(get_llm_client)) -> SummaryGenerator:
    return SummaryGenerator(llm)

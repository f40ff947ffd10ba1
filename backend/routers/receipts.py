"""
Receipts Router — the saved receipt history

GET    /api/receipts                — list (search, filter, sort)
POST   /api/receipts                — save a reviewed draft
GET    /api/receipts/export.csv     — CSV export of the (filtered) list
GET    /api/receipts/{id}           — single receipt
PATCH  /api/receipts/{id}           — notes / summary / category / flags
POST   /api/receipts/{id}/favorite  — toggle favorite
POST   /api/receipts/{id}/pin       — toggle pinned
POST   /api/receipts/{id}/summary   — (re)generate the AI summary
DELETE /api/receipts/{id}           — remove a receipt
"""
import csv
import io
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response

from models.schemas import Receipt, ReceiptDraft, ReceiptUpdate, SummarizeRequest
from services.analytics import SORT_FIELDS, filter_receipts
from services.history_service import HistoryService, get_history_service
from services.summary_service import SummaryGenerator, get_summary_generator

logger = logging.getLogger("receiptlens.receipts")
router = APIRouter()

CSV_HEADERS = ["Store", "Date", "Total", "Tax", "Category", "Payment Method", "Items", "Notes"]


class HistoryFilters:
    """Query parameters shared by the list and export endpoints."""

    def __init__(
        self,
        q: str = "",
        category: Optional[str] = None,
        favorites_only: bool = False,
        pinned_only: bool = False,
        sort_by: str = Query(default="date", pattern="^(" + "|".join(SORT_FIELDS) + ")$"),
        order: str = Query(default="desc", pattern="^(asc|desc)$"),
    ):
        self.q = q
        self.category = category
        self.favorites_only = favorites_only
        self.pinned_only = pinned_only
        self.sort_by = sort_by
        self.order = order

    def apply(self, receipts: list[Receipt]) -> list[Receipt]:
        return filter_receipts(
            receipts,
            query=self.q,
            category=self.category,
            favorites_only=self.favorites_only,
            pinned_only=self.pinned_only,
            sort_by=self.sort_by,
            order=self.order,
        )


def receipts_to_csv(receipts: list[Receipt]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for r in receipts:
        items = "; ".join(
            f"{i.name} (x{i.quantity:g}) - ${i.price:.2f}" for i in r.items
        )
        writer.writerow([
            r.vendor, r.date or "", f"{r.total:.2f}", f"{r.tax:.2f}",
            r.category, r.payment_method, items, r.notes or "",
        ])
    return buf.getvalue()


# ── List / Export ─────────────────────────────────────────────────────────────

@router.get("", response_model=list[Receipt])
async def list_receipts(
    filters: HistoryFilters = Depends(),
    history: HistoryService = Depends(get_history_service),
):
    receipts = filters.apply(await history.list_all())
    logger.debug("list_receipts returning %d receipts", len(receipts))
    return receipts


@router.get("/export.csv")
async def export_csv(
    filters: HistoryFilters = Depends(),
    history: HistoryService = Depends(get_history_service),
):
    receipts = filters.apply(await history.list_all())
    return Response(
        content=receipts_to_csv(receipts),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="receipts.csv"'},
    )


# ── Create ────────────────────────────────────────────────────────────────────

@router.post("", response_model=Receipt, status_code=201)
async def create_receipt(
    draft: ReceiptDraft,
    history: HistoryService = Depends(get_history_service),
):
    """Commit a reviewed draft to history.  Only called on explicit user confirmation."""
    return await history.create(draft)


# ── Single receipt ────────────────────────────────────────────────────────────

@router.get("/{receipt_id}", response_model=Receipt)
async def get_receipt(
    receipt_id: str,
    history: HistoryService = Depends(get_history_service),
):
    return await history.get(receipt_id)


@router.patch("/{receipt_id}", response_model=Receipt)
async def update_receipt(
    receipt_id: str,
    body: ReceiptUpdate,
    history: HistoryService = Depends(get_history_service),
):
    return await history.update(receipt_id, body)


@router.post("/{receipt_id}/favorite", response_model=Receipt)
async def toggle_favorite(
    receipt_id: str,
    history: HistoryService = Depends(get_history_service),
):
    return await history.toggle_favorite(receipt_id)


@router.post("/{receipt_id}/pin", response_model=Receipt)
async def toggle_pinned(
    receipt_id: str,
    history: HistoryService = Depends(get_history_service),
):
    return await history.toggle_pinned(receipt_id)


@router.post("/{receipt_id}/summary", response_model=Receipt)
async def regenerate_summary(
    receipt_id: str,
    history: HistoryService = Depends(get_history_service),
    generator: SummaryGenerator = Depends(get_summary_generator),
):
    """Ask the model for a fresh single-receipt summary and store it."""
    receipt = await history.get(receipt_id)
    summary = await generator.summarize(
        SummarizeRequest(type="single", receipt=receipt.model_dump(by_alias=True))
    )
    return await history.set_summary(receipt_id, summary)


@router.delete("/{receipt_id}")
async def delete_receipt(
    receipt_id: str,
    history: HistoryService = Depends(get_history_service),
):
    await history.delete(receipt_id)
    return {"status": "deleted"}

"""
Receipt history operations: create, read, user toggles, delete.

Every mutation loads the whole collection, changes it, and writes the
whole collection back through the repository.  The interpretation pipeline
never calls into here; receipts only change on explicit user action.
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, Optional

from fastapi import Depends

from db.repository import ReceiptRepository, get_repository
from models.schemas import CATEGORY_OPTIONS, Receipt, ReceiptDraft, ReceiptUpdate
from services.errors import BadRequest, ReceiptNotFound
from services.receipt_validator import normalize_date, normalize_payment_method

logger = logging.getLogger("receiptlens.history")


def _receipt_id() -> str:
    return f"rcpt-{uuid.uuid4().hex[:12]}"


def _item_id() -> str:
    return f"item-{uuid.uuid4().hex[:8]}"


def _check_category(category: str) -> None:
    if category and category not in CATEGORY_OPTIONS:
        raise BadRequest(f"Unknown category: {category!r}")


class HistoryService:
    def __init__(self, repo: ReceiptRepository, now: Optional[Callable[[], datetime]] = None):
        self.repo = repo
        self.now = now or (lambda: datetime.now(timezone.utc))

    async def list_all(self) -> list[Receipt]:
        return await self.repo.load_all()

    async def get(self, receipt_id: str) -> Receipt:
        for r in await self.repo.load_all():
            if r.id == receipt_id:
                return r
        raise ReceiptNotFound(f"Receipt {receipt_id} not found")

    async def create(self, draft: ReceiptDraft) -> Receipt:
        vendor = draft.vendor.strip()
        if not vendor or draft.total <= 0:
            raise BadRequest("Store name and total are required to save.")
        _check_category(draft.category)

        receipt_date = None
        if draft.date:
            receipt_date = normalize_date(draft.date, self.now().year)
            if receipt_date is None:
                raise BadRequest(f"Unreadable date: {draft.date!r}")

        receipt = Receipt(
            id=_receipt_id(),
            vendor=vendor,
            date=receipt_date,
            total=round(draft.total, 2),
            tax=round(draft.tax, 2),
            subtotal=round(draft.subtotal, 2),
            items=[
                item.model_copy(update={"id": item.id or _item_id()})
                for item in draft.items
                if item.name.strip()
            ],
            payment_method=normalize_payment_method(draft.payment_method),
            category=draft.category,
            confidence=draft.confidence,
            created_at=self.now().isoformat(),
            summary=draft.summary,
            notes=draft.notes,
            raw_text=draft.raw_text,
            emoji_tag=draft.emoji_tag,
        )

        await self.repo.mutate(lambda receipts: receipts.insert(0, receipt))
        logger.info("Saved receipt %s (%s, %.2f)", receipt.id, receipt.vendor, receipt.total)
        return receipt

    async def _mutate(self, receipt_id: str, change: Callable[[Receipt], Receipt]) -> Receipt:
        def apply(receipts: list[Receipt]) -> Receipt:
            for index, r in enumerate(receipts):
                if r.id == receipt_id:
                    receipts[index] = change(r)
                    return receipts[index]
            raise ReceiptNotFound(f"Receipt {receipt_id} not found")

        return await self.repo.mutate(apply)

    async def update(self, receipt_id: str, body: ReceiptUpdate) -> Receipt:
        changes = {
            key: value for key, value in body.model_dump(exclude_unset=True).items()
            if value is not None or key in ("notes", "summary", "emoji_tag")
        }
        if "category" in changes:
            _check_category(changes["category"] or "")
        return await self._mutate(receipt_id, lambda r: r.model_copy(update=changes))

    async def toggle_favorite(self, receipt_id: str) -> Receipt:
        return await self._mutate(receipt_id, lambda r: r.model_copy(update={"favorite": not r.favorite}))

    async def toggle_pinned(self, receipt_id: str) -> Receipt:
        return await self._mutate(receipt_id, lambda r: r.model_copy(update={"pinned": not r.pinned}))

    async def set_summary(self, receipt_id: str, summary: str) -> Receipt:
        return await self._mutate(receipt_id, lambda r: r.model_copy(update={"summary": summary}))

    async def delete(self, receipt_id: str) -> None:
        def remove(receipts: list[Receipt]) -> None:
            for index, r in enumerate(receipts):
                if r.id == receipt_id:
                    del receipts[index]
                    return
            raise ReceiptNotFound(f"Receipt {receipt_id} not found")

        await self.repo.mutate(remove)
        logger.info("Deleted receipt %s", receipt_id)


def get_history_service(repo: ReceiptRepository = Depends(get_repository)) -> HistoryService:
    return HistoryService(repo)

"""
Trends Router — analytics over the saved receipt history

GET /api/trends/monthly         — spend per calendar month (oldest first)
GET /api/trends/categories      — spend per category (largest first)
GET /api/trends/average-ticket  — mean receipt total
GET /api/trends/summary         — dashboard header stats
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from models.schemas import AverageTicket, CategoryTotal, HistoryStats, MonthlyBucket
from services.analytics import average_ticket, category_split, history_stats, monthly_buckets
from services.history_service import HistoryService, get_history_service

router = APIRouter()


@router.get("/monthly", response_model=list[MonthlyBucket])
async def monthly_trends(
    months: Optional[int] = Query(default=None, ge=1, le=120),
    history: HistoryService = Depends(get_history_service),
):
    buckets = monthly_buckets(await history.list_all())
    return buckets[-months:] if months else buckets


@router.get("/categories", response_model=list[CategoryTotal])
async def category_trends(
    limit: Optional[int] = Query(default=None, ge=1),
    history: HistoryService = Depends(get_history_service),
):
    split = category_split(await history.list_all())
    return split[:limit] if limit else split


@router.get("/average-ticket", response_model=AverageTicket)
async def average_ticket_trend(history: HistoryService = Depends(get_history_service)):
    receipts = await history.list_all()
    return AverageTicket(average=round(average_ticket(receipts), 2), count=len(receipts))


@router.get("/summary", response_model=HistoryStats)
async def dashboard_summary(history: HistoryService = Depends(get_history_service)):
    """Quick stats for the dashboard header cards."""
    return history_stats(await history.list_all())

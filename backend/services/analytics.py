"""
History analytics — pure functions over a list of receipts.

Nothing here is cached; every call recomputes from the collection it is
given, so results can never go stale relative to the stored history.
"""
from calendar import month_abbr
from datetime import date
from typing import Iterable, Optional

from models.schemas import CategoryTotal, HistoryStats, MonthlyBucket, Receipt

STATS_TOP_CATEGORIES = 5
STATS_RECENT_MONTHS = 6

SORT_FIELDS = ("date", "total", "store")


def _parse_date(value: Optional[str]) -> Optional[date]:
    if not value or len(value) < 10:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def monthly_buckets(receipts: Iterable[Receipt]) -> list[MonthlyBucket]:
    """Sum totals per calendar month, oldest month first.  Undated receipts are skipped."""
    totals: dict[tuple[int, int], float] = {}
    for r in receipts:
        d = _parse_date(r.date)
        if d is None:
            continue
        key = (d.year, d.month)
        totals[key] = totals.get(key, 0.0) + r.total

    return [
        MonthlyBucket(
            period=f"{year:04d}-{month:02d}",
            year=year,
            month=month,
            label=f"{month_abbr[month]} {year}",
            total=round(total, 2),
        )
        for (year, month), total in sorted(totals.items())
    ]


def category_split(receipts: Iterable[Receipt]) -> list[CategoryTotal]:
    """Sum totals per category, largest first.

    Equal totals: the category with fewer receipts (bigger average ticket)
    comes first, then alphabetical.
    """
    totals: dict[str, float] = {}
    counts: dict[str, int] = {}
    for r in receipts:
        category = r.category or "Uncategorized"
        totals[category] = totals.get(category, 0.0) + r.total
        counts[category] = counts.get(category, 0) + 1

    rows = [
        CategoryTotal(category=cat, total=round(total, 2), count=counts[cat])
        for cat, total in totals.items()
    ]
    rows.sort(key=lambda row: (-row.total, row.count, row.category))
    return rows


def average_ticket(receipts: Iterable[Receipt]) -> float:
    totals = [r.total for r in receipts]
    if not totals:
        return 0
    return sum(totals) / len(totals)


def history_stats(receipts: list[Receipt]) -> HistoryStats:
    """Dashboard header numbers: totals, top categories, recent months."""
    return HistoryStats(
        total=round(sum(r.total for r in receipts), 2),
        count=len(receipts),
        average_ticket=round(average_ticket(receipts), 2),
        category_split=category_split(receipts)[:STATS_TOP_CATEGORIES],
        monthly_buckets=monthly_buckets(receipts)[-STATS_RECENT_MONTHS:],
    )


def filter_receipts(
    receipts: Iterable[Receipt],
    query: str = "",
    category: Optional[str] = None,
    favorites_only: bool = False,
    pinned_only: bool = False,
    sort_by: str = "date",
    order: str = "desc",
) -> list[Receipt]:
    """Search + filter + sort the history list.

    ``query`` matches (case-insensitively) against store, category and item names.
    """
    if sort_by not in SORT_FIELDS:
        raise ValueError(f"sort_by must be one of {SORT_FIELDS}")

    results = list(receipts)
    if category and category != "all":
        results = [r for r in results if r.category == category]
    if favorites_only:
        results = [r for r in results if r.favorite]
    if pinned_only:
        results = [r for r in results if r.pinned]

    q = query.strip().lower()
    if q:
        results = [
            r for r in results
            if q in " ".join([r.vendor, r.category, *(i.name for i in r.items)]).lower()
        ]

    if sort_by == "date":
        key = lambda r: _parse_date(r.date) or date.min
    elif sort_by == "total":
        key = lambda r: r.total
    else:
        key = lambda r: r.vendor.lower()
    results.sort(key=key, reverse=(order == "desc"))
    return results

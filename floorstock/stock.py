from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional, Sequence, Tuple

from .models import Category, InventoryItem, Transaction, TransactionType, to_number

ALL = "All"


@dataclass
class DashboardSummary:
    total_items: int
    low_stock_count: int
    housekeeping_items: int
    pantry_items: int
    categories: List[Tuple[str, int]] = field(default_factory=list)
    recent_issues: List[Transaction] = field(default_factory=list)
    low_stock: List[InventoryItem] = field(default_factory=list)

    @property
    def largest_category(self) -> int:
        return max((count for _, count in self.categories), default=1)


def low_stock_items(inventory: Sequence[InventoryItem]) -> List[InventoryItem]:
    return [i for i in inventory if i.is_low_stock]


def category_counts(inventory: Sequence[InventoryItem]) -> List[Tuple[str, int]]:
    counts = {}
    for item in inventory:
        key = item.category.value
        counts[key] = counts.get(key, 0) + 1
    return list(counts.items())


def newest_first(transactions: Sequence[Transaction]) -> List[Transaction]:
    return sorted(transactions, key=lambda t: t.date, reverse=True)


def dashboard_summary(inventory, transactions, recent=5, low_preview=6) -> DashboardSummary:
    low = low_stock_items(inventory)
    issues = [t for t in newest_first(transactions) if t.type == TransactionType.ISSUE]
    return DashboardSummary(
        total_items=len(inventory),
        low_stock_count=len(low),
        housekeeping_items=sum(1 for i in inventory if i.category == Category.HOUSEKEEPING),
        pantry_items=sum(1 for i in inventory if i.category == Category.PANTRY),
        categories=category_counts(inventory),
        recent_issues=issues[:recent],
        low_stock=low[:low_preview],
    )


def filter_inventory(inventory, search="", category=ALL, sort=None) -> List[InventoryItem]:
    q = (search or "").strip().lower()
    filtered = list(inventory)
    if category and category != ALL:
        filtered = [i for i in filtered if i.category.value == category]
    if q:
        filtered = [i for i in filtered if q in i.name.lower() or q in i.id.lower()]
    if sort in ("asc", "desc"):
        filtered.sort(key=lambda i: i.name.casefold(), reverse=sort == "desc")
    return filtered


def _as_date(value) -> Optional[date]:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip())


def _day_start(day: date) -> datetime:
    return datetime(day.year, day.month, day.day, tzinfo=timezone.utc)


def filter_transactions(transactions, type=ALL, start=None, end=None) -> List[Transaction]:
    """Filter by type and date range, newest first.

    ``start`` and ``end`` are dates (or ``YYYY-MM-DD`` strings); ``end`` covers
    its whole day.
    """
    start_day, end_day = _as_date(start), _as_date(end)
    result = []
    for t in transactions:
        if type and type != ALL and t.type.value != type:
            continue
        if start_day and t.date < _day_start(start_day):
            continue
        if end_day and t.date >= _day_start(end_day + timedelta(days=1)):
            continue
        result.append(t)
    return newest_first(result)


def find_item(inventory, name) -> Optional[InventoryItem]:
    wanted = (name or "").strip().lower()
    for item in inventory:
        if item.name.strip().lower() == wanted:
            return item
    return None


def parse_quantity(raw):
    """Parse a form quantity; it must be a positive number."""
    value = to_number(str(raw or "").strip(), None)
    if value is None or value <= 0:
        raise ValueError("Quantity must be a number greater than 0.")
    return value


def validate_issue(inventory, item_name, quantity) -> InventoryItem:
    item = find_item(inventory, item_name)
    if item is None:
        raise ValueError("Please select a valid item.")
    if item.quantity < quantity:
        raise ValueError(f"Insufficient stock! Only {item.quantity} {item.unit} available.")
    return item


def notes_with_attachment(notes, file_url) -> str:
    notes = (notes or "").strip()
    if not file_url:
        return notes
    return f"{notes} [File: {file_url}]".strip()

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Optional


class Category(str, enum.Enum):
    HOUSEKEEPING = "Housekeeping"
    PANTRY = "Pantry"
    STATIONERY = "Stationery"
    OTHERS = "Others"

    @classmethod
    def parse(cls, value) -> "Category":
        text = str(value or "").strip().lower()
        for category in cls:
            if category.value.lower() == text:
                return category
        return cls.OTHERS


class TransactionType(str, enum.Enum):
    ISSUE = "ISSUE"  # giving items to floors
    RECEIVE = "RECEIVE"  # buying/stocking items


class FloorLocation(str, enum.Enum):
    BASEMENT = "Basement"
    GROUND = "Ground Floor"
    FIRST = "1st Floor"
    SECOND = "2nd Floor"
    THIRD = "3rd Floor"
    FOURTH = "4th Floor"
    FIFTH = "5th Floor"
    SIXTH = "6th Floor"
    SEVENTH = "7th Floor"
    OFFICE = "Main Office"
    STORE = "Store Room"


DEFAULT_UNIT = "pcs"
DEFAULT_MIN_LEVEL = 5


def to_number(value, default=0):
    """Coerce a sheet cell into an int or float, falling back to ``default``."""
    if isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return default
    if not math.isfinite(number):
        return default
    return int(number) if number.is_integer() else number


def parse_timestamp(value) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    text = str(value or "").strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _pick(row: Mapping[str, Any], *keys, default=None):
    for key in keys:
        value = row.get(key)
        if value not in (None, ""):
            return value
    return default


def _normalize_keys(row: Mapping[str, Any]) -> dict:
    return {"".join(str(k).split()).lower(): v for k, v in row.items()}


@dataclass
class InventoryItem:
    id: str
    name: str
    category: Category = Category.OTHERS
    quantity: float = 0
    unit: str = DEFAULT_UNIT
    min_level: float = DEFAULT_MIN_LEVEL

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.min_level

    @property
    def status(self) -> str:
        return "Low Stock" if self.is_low_stock else "In Stock"

    @classmethod
    def from_row(cls, row: Mapping[str, Any], position: int) -> "InventoryItem":
        row = _normalize_keys(row)
        return cls(
            id=str(_pick(row, "id", default=position)),
            name=str(_pick(row, "name", default="")).strip(),
            category=Category.parse(row.get("category")),
            quantity=to_number(row.get("quantity")),
            unit=str(_pick(row, "unit", default=DEFAULT_UNIT)),
            min_level=to_number(_pick(row, "minlevel", default=DEFAULT_MIN_LEVEL), DEFAULT_MIN_LEVEL),
        )


@dataclass
class Transaction:
    id: str
    date: datetime
    type: TransactionType
    item_name: str
    quantity: float
    unit: str = ""
    location: str = ""
    person_name: str = ""
    notes: str = ""
    file_url: Optional[str] = None

    @property
    def is_issue(self) -> bool:
        return self.type == TransactionType.ISSUE

    @classmethod
    def from_row(cls, row: Mapping[str, Any], position: int) -> "Transaction":
        row = _normalize_keys(row)
        raw_type = str(row.get("type") or "").strip().upper()
        try:
            kind = TransactionType(raw_type)
        except ValueError:
            kind = TransactionType.ISSUE
        return cls(
            id=str(position),
            date=parse_timestamp(row.get("date")) or datetime.now(timezone.utc),
            type=kind,
            item_name=str(_pick(row, "itemname", default="")),
            quantity=to_number(row.get("quantity")),
            unit=str(_pick(row, "unit", default="")),
            location=str(_pick(row, "location", default="")),
            person_name=str(_pick(row, "personname", default="")),
            notes=str(_pick(row, "notes", default="")),
            file_url=_pick(row, "fileurl"),
        )

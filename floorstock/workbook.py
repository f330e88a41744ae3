"""Spreadsheet storage for the sheet endpoint.

The workbook holds two sheets, ``Inventory`` and ``Transactions``, each with a
bold header row. Lookups are linear scans over the rows; item names match
case-insensitively after trimming.
"""
from __future__ import annotations

import logging
import os
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Optional

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from .exceptions import SheetNotFound
from .models import to_number

logger = logging.getLogger(__name__)

INVENTORY = "Inventory"
TRANSACTIONS = "Transactions"

INVENTORY_HEADERS = ["ID", "Name", "Category", "Quantity", "Unit", "MinLevel"]
TRANSACTION_HEADERS = ["Date", "Type", "ItemName", "Quantity", "Unit", "Location", "PersonName", "Notes"]

NAME_COL = 2
QUANTITY_COL = 4
DATE_FORMAT = "dd-mmm-yyyy hh:mm"

_LAYOUT = {
    INVENTORY: (INVENTORY_HEADERS, "0EA5E9", [8, 30, 18, 12, 12, 12]),
    TRANSACTIONS: (TRANSACTION_HEADERS, "22C55E", [22, 12, 30, 12, 12, 18, 22, 30]),
}


def header_key(header) -> str:
    return "".join(str(header).split()).lower()


def _same_name(cell_value, name) -> bool:
    return str(cell_value if cell_value is not None else "").strip().lower() == str(name or "").strip().lower()


def find_item_row(ws: Worksheet, name) -> Optional[int]:
    """Return the sheet row number of the first item called ``name``."""
    for row_number in range(2, ws.max_row + 1):
        if _same_name(ws.cell(row=row_number, column=NAME_COL).value, name):
            return row_number
    return None


def next_item_id(ws: Worksheet) -> int:
    ids = [to_number(row[0], None) for row in ws.iter_rows(min_row=2, max_col=1, values_only=True)]
    return int(max([i for i in ids if i is not None], default=0)) + 1


def get_quantity(ws: Worksheet, row_number: int):
    return to_number(ws.cell(row=row_number, column=QUANTITY_COL).value)


def set_quantity(ws: Worksheet, row_number: int, quantity) -> None:
    ws.cell(row=row_number, column=QUANTITY_COL, value=quantity)


def append_item(ws: Worksheet, name, category, quantity, unit, min_level) -> int:
    item_id = next_item_id(ws)
    ws.append([item_id, name, category, quantity, unit, min_level])
    return item_id


def append_transaction(ws: Worksheet, values) -> None:
    stamp = datetime.now(timezone.utc).replace(tzinfo=None)
    ws.append([stamp] + list(values))
    ws.cell(row=ws.max_row, column=1).number_format = DATE_FORMAT


def _cell_to_json(value):
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value.isoformat(timespec="milliseconds") + "Z"
    return "" if value is None else value


class SheetStore:
    def __init__(self, path):
        self.path = path
        self._lock = threading.Lock()

    def _load(self) -> Workbook:
        if not os.path.exists(self.path):
            return Workbook()
        return load_workbook(self.path)

    def _save(self, wb: Workbook) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        wb.save(self.path)

    @contextmanager
    def edit(self):
        """Load the workbook, yield it, and save it if the block finished cleanly."""
        with self._lock:
            wb = self._load()
            yield wb
            self._save(wb)

    @contextmanager
    def read(self):
        with self._lock:
            yield self._load()

    @staticmethod
    def sheet(wb: Workbook, name) -> Worksheet:
        if name not in wb.sheetnames:
            raise SheetNotFound(name)
        return wb[name]

    def read_rows(self, name):
        with self.read() as wb:
            ws = self.sheet(wb, name)
            rows = list(ws.iter_rows(values_only=True))

        if not rows or all(cell is None for cell in rows[0]):
            return []

        headers = [header_key(h) if h is not None else "" for h in rows[0]]
        result = []
        for index, row in enumerate(rows[1:]):
            if all(cell is None for cell in row):
                continue
            record = {header: _cell_to_json(value) for header, value in zip(headers, row) if header}
            record["_rowIndex"] = index + 2
            result.append(record)
        return result

    def setup_sheets(self) -> None:
        with self.edit() as wb:
            for name, (headers, colour, widths) in _LAYOUT.items():
                if name in wb.sheetnames:
                    position = wb.sheetnames.index(name)
                    wb.remove(wb[name])
                    ws = wb.create_sheet(name, position)
                else:
                    ws = wb.create_sheet(name)
                ws.append(headers)
                for column, width in enumerate(widths, start=1):
                    cell = ws.cell(row=1, column=column)
                    cell.font = Font(bold=True, color="FFFFFF")
                    cell.fill = PatternFill("solid", fgColor=colour)
                    ws.column_dimensions[get_column_letter(column)].width = width

            for default in ("Sheet", "Sheet1"):
                if default in wb.sheetnames and len(wb.sheetnames) > 1:
                    wb.remove(wb[default])
        logger.info("Created %s and %s sheets in %s", INVENTORY, TRANSACTIONS, self.path)

    def describe(self):
        """Map each expected sheet to its data row count, or None when missing."""
        with self.read() as wb:
            return {
                name: (max(wb[name].max_row - 1, 0) if name in wb.sheetnames else None)
                for name in (INVENTORY, TRANSACTIONS)
            }

import csv
import io
from datetime import date

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

INVENTORY_HEADERS = ["ID", "Item Name", "Category", "Quantity", "Unit", "Min Level", "Status"]
REPORT_HEADERS = ["Date", "Type", "Item Name", "Quantity", "Unit", "Location", "Person", "Notes"]
PDF_HEADERS = ["Date", "Type", "Item", "Qty", "Location", "Person"]


def _stamp(today=None):
    return (today or date.today()).isoformat()


def inventory_filename(today=None):
    return f"inventory_{_stamp(today)}.csv"


def report_filename(extension, today=None):
    return f"report_{_stamp(today)}.{extension}"


def _csv(header, rows):
    out = io.StringIO()
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow(header)
    writer.writerows(rows)
    return out.getvalue()


def inventory_csv(items):
    return _csv(INVENTORY_HEADERS, [
        [i.id, i.name, i.category.value, i.quantity, i.unit, i.min_level, i.status]
        for i in items
    ])


def transactions_csv(transactions):
    return _csv(REPORT_HEADERS, [
        [t.date.date().isoformat(), t.type.value, t.item_name, t.quantity, t.unit,
         t.location, t.person_name, t.notes]
        for t in transactions
    ])


def transactions_pdf(transactions, filter_label="All", title="Inventory Report", today=None):
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4, leftMargin=14 * mm, rightMargin=14 * mm, topMargin=16 * mm)
    styles = getSampleStyleSheet()

    data = [PDF_HEADERS] + [
        [t.date.date().isoformat(), t.type.value, t.item_name, f"{t.quantity} {t.unit}".strip(),
         t.location, t.person_name]
        for t in transactions
    ]
    table = Table(data, repeatRows=1)
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#4F46E5")),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.whitesmoke),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
    ]))

    doc.build([
        Paragraph(title, styles["Title"]),
        Paragraph(f"Generated: {_stamp(today)} | Filter: {filter_label}", styles["Normal"]),
        Spacer(1, 6 * mm),
        table,
    ])
    return buffer.getvalue()

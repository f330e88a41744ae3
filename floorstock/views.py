import logging

from flask import (
    Blueprint,
    Response,
    current_app,
    flash,
    redirect,
    render_template,
    request,
    session,
    url_for,
)
from flask_login import login_required

from . import exports
from .models import Category, FloorLocation, TransactionType, to_number
from .stock import (
    ALL,
    dashboard_summary,
    filter_inventory,
    filter_transactions,
    find_item,
    notes_with_attachment,
    parse_quantity,
    validate_issue,
)

logger = logging.getLogger(__name__)

views = Blueprint("views", __name__)


def client():
    return current_app.extensions["sheet_client"]


def _download(body, filename, mimetype):
    return Response(body, mimetype=mimetype, headers={"Content-Disposition": f"attachment; filename={filename}"})


@views.before_request
@login_required
def require_login():
    pass


@views.route("/")
def dashboard():
    inventory = client().fetch_inventory()
    transactions = client().fetch_transactions()
    return render_template("dashboard.html", summary=dashboard_summary(inventory, transactions))


@views.route("/issue", methods=["GET", "POST"])
def issue():
    return _transaction_form(TransactionType.ISSUE)


@views.route("/receive", methods=["GET", "POST"])
def receive():
    return _transaction_form(TransactionType.RECEIVE)


def _transaction_form(kind):
    endpoint = "views.issue" if kind == TransactionType.ISSUE else "views.receive"
    inventory = client().fetch_inventory()

    if request.method == "POST":
        item_name = request.form.get("item_name", "").strip()
        location = request.form.get("location", "").strip()
        person_name = request.form.get("person_name", "").strip()
        notes = request.form.get("notes", "").strip()

        if not item_name or not person_name:
            flash("Item and person name are required.", "error")
            return redirect(url_for(endpoint))

        try:
            quantity = parse_quantity(request.form.get("quantity"))
            if kind == TransactionType.ISSUE:
                validate_issue(inventory, item_name, quantity)
        except ValueError as exc:
            flash(str(exc), "error")
            return redirect(url_for(endpoint, item=item_name))

        known = find_item(inventory, item_name)
        unit = request.form.get("unit", "").strip() or (known.unit if known else "")

        upload = request.files.get("attachment")
        if kind == TransactionType.RECEIVE and upload and upload.filename:
            result = client().upload_file(upload.stream, upload.filename, upload.mimetype, item_name)
            if result.success:
                notes = notes_with_attachment(notes, result.file_url)
            else:
                logger.warning("Attachment upload failed for %s; recording without it", item_name)

        extra = {}
        if kind == TransactionType.RECEIVE and known is None:
            extra["category"] = request.form.get("category") or Category.OTHERS.value
            extra["min_level"] = to_number(request.form.get("min_level"), None)

        ok = client().submit_transaction(
            kind, item_name, quantity, unit=unit, location=location,
            person_name=person_name, notes=notes, **extra
        )
        if ok:
            flash("Transaction recorded successfully!", "success")
        else:
            flash("Failed to record transaction. Check connection.", "error")
        return redirect(url_for(endpoint))

    selected = find_item(inventory, request.args.get("item", ""))
    return render_template(
        "transaction_form.html",
        kind=kind,
        is_issue=kind == TransactionType.ISSUE,
        inventory=inventory,
        selected=selected,
        locations=list(FloorLocation),
        categories=list(Category),
    )


@views.route("/inventory")
def inventory_table():
    inventory = client().fetch_inventory()
    q = request.args.get("q", "").strip()
    category = request.args.get("category", ALL).strip() or ALL
    sort = request.args.get("sort", "").strip()

    items = filter_inventory(inventory, q, category, sort)
    return render_template(
        "inventory.html",
        items=items,
        categories=list(Category),
        q=q,
        category=category,
        sort=sort,
        has_filters=bool(q) or category != ALL,
    )


@views.route("/inventory/item/<path:name>")
def item_detail(name):
    item = find_item(client().fetch_inventory(), name)
    if item is None:
        flash("Product not found.", "error")
        return redirect(url_for("views.inventory_table"))
    return render_template("item.html", item=item)


@views.route("/inventory/update", methods=["POST"])
def update_quantity():
    name = request.form.get("name", "").strip()
    raw = request.form.get("quantity", "").strip()

    if not name:
        flash("Product not found.", "error")
        return redirect(url_for("views.inventory_table"))

    quantity = to_number(raw, None) if raw else None
    if quantity is None or quantity < 0:
        flash("Quantity must be a number (0 or more).", "error")
        return redirect(url_for("views.item_detail", name=name))

    if client().update_inventory_quantity(name, quantity):
        flash("Quantity updated.", "success")
    else:
        flash("Failed to update quantity.", "error")
    return redirect(url_for("views.item_detail", name=name))


@views.route("/inventory/add", methods=["POST"])
def add_item():
    name = request.form.get("name", "").strip()
    category = Category.parse(request.form.get("category"))
    unit = request.form.get("unit", "").strip() or "pcs"

    if not name:
        flash("Name is required.", "error")
        return redirect(url_for("views.inventory_table"))

    if find_item(client().fetch_inventory(), name) is not None:
        flash("That item already exists.", "error")
        return redirect(url_for("views.inventory_table"))

    try:
        quantity = int(request.form.get("quantity", "0").strip() or 0)
        min_level = int(request.form.get("min_level", "5").strip() or 5)
        if quantity < 0 or min_level < 0:
            raise ValueError
    except ValueError:
        flash("Quantity/Min level must be whole numbers (0 or more).", "error")
        return redirect(url_for("views.inventory_table"))

    if client().add_inventory_item(name, category, quantity, unit, min_level):
        flash("Item added.", "success")
    else:
        flash("Failed to add item.", "error")
    return redirect(url_for("views.inventory_table"))


@views.route("/inventory/delete", methods=["POST"])
def delete_item():
    name = request.form.get("name", "").strip()
    if client().delete_inventory_item(name):
        flash("Item deleted.", "success")
    else:
        flash("Item not found.", "error")
    return redirect(url_for("views.inventory_table"))


@views.route("/inventory/export")
def export_inventory():
    items = filter_inventory(
        client().fetch_inventory(),
        request.args.get("q", ""),
        request.args.get("category", ALL) or ALL,
        request.args.get("sort"),
    )
    return _download(exports.inventory_csv(items), exports.inventory_filename(), "text/csv; charset=utf-8")


def _filtered_report():
    kind = request.args.get("type", ALL) or ALL
    start = request.args.get("start", "").strip()
    end = request.args.get("end", "").strip()
    try:
        rows = filter_transactions(client().fetch_transactions(), kind, start or None, end or None)
    except ValueError:
        flash("Dates must look like YYYY-MM-DD.", "error")
        rows = []
    return kind, start, end, rows


@views.route("/reports")
def reports():
    kind, start, end, rows = _filtered_report()
    return render_template("reports.html", transactions=rows, type=kind, start=start, end=end,
                           types=[ALL] + [t.value for t in TransactionType])


@views.route("/reports/export.csv")
def export_report_csv():
    _, _, _, rows = _filtered_report()
    return _download(exports.transactions_csv(rows), exports.report_filename("csv"), "text/csv; charset=utf-8")


@views.route("/reports/export.pdf")
def export_report_pdf():
    kind, _, _, rows = _filtered_report()
    return _download(exports.transactions_pdf(rows, kind), exports.report_filename("pdf"), "application/pdf")


@views.route("/settings", methods=["GET", "POST"])
def settings():
    if request.method == "POST":
        if request.form.get("reset"):
            session.pop("sheet_api_url", None)
            flash("Endpoint reset to default.", "success")
        else:
            url = request.form.get("sheet_api_url", "").strip()
            if not url.startswith(("http://", "https://")):
                flash("Endpoint URL must start with http:// or https://", "error")
                return redirect(url_for("views.settings"))
            session["sheet_api_url"] = url
            flash("Endpoint saved.", "success")
        return redirect(url_for("views.settings"))

    return render_template(
        "settings.html",
        current=session.get("sheet_api_url") or current_app.config["SHEET_API_URL"],
        default=current_app.config["SHEET_API_URL"],
    )

"""The spreadsheet web endpoint.

``GET /?sheet=<name>`` returns the rows of a sheet as JSON objects.
``POST /`` takes a JSON body (sent as ``text/plain``) and dispatches on its
``action`` field. Every POST answers with ``{"status": ..., "message": ...}``;
errors never change the HTTP status.
"""
import base64
import json
import logging
import os
import time
import uuid
from zipfile import BadZipFile

import click
from flask import Flask, current_app, jsonify, request, send_from_directory, url_for
from openpyxl.utils.exceptions import InvalidFileException
from werkzeug.exceptions import NotFound
from werkzeug.utils import secure_filename

from .config import load_config
from .exceptions import FloorstockError, ItemNotFound, SheetNotFound
from .logging_config import configure_logging
from .models import DEFAULT_MIN_LEVEL, DEFAULT_UNIT, Category, TransactionType, to_number
from .workbook import (
    INVENTORY,
    TRANSACTIONS,
    SheetStore,
    append_item,
    append_transaction,
    find_item_row,
    get_quantity,
    set_quantity,
)

logger = logging.getLogger(__name__)


def _text(body, key):
    value = body.get(key)
    return "" if value is None else str(value)


def _success(message, **extra):
    return dict(status="success", message=message, **extra)


def _error(message):
    return {"status": "error", "message": message}


def add_transaction(store, body):
    quantity = to_number(body.get("quantity"))
    try:
        with store.edit() as wb:
            tsheet = store.sheet(wb, TRANSACTIONS)
            isheet = store.sheet(wb, INVENTORY)
            _record_transaction(tsheet, isheet, body, quantity)
    except SheetNotFound:
        return _error("Sheets not found. Run setupSheets first.")
    return _success("Transaction recorded")


def _record_transaction(tsheet, isheet, body, quantity):
    append_transaction(tsheet, [
        _text(body, "type"),
        _text(body, "itemName"),
        quantity,
        _text(body, "unit"),
        _text(body, "location"),
        _text(body, "personName"),
        _text(body, "notes"),
    ])

    is_receive = body.get("type") == TransactionType.RECEIVE.value
    row = find_item_row(isheet, body.get("itemName"))
    if row is not None:
        current = get_quantity(isheet, row)
        new_qty = current + quantity if is_receive else current - quantity
        set_quantity(isheet, row, max(new_qty, 0))
    elif is_receive:
        append_item(
            isheet,
            body.get("itemName"),
            body.get("category") or Category.OTHERS.value,
            quantity,
            body.get("unit") or DEFAULT_UNIT,
            to_number(body.get("minLevel")) or DEFAULT_MIN_LEVEL,
        )


def update_inventory(store, body):
    with store.edit() as wb:
        isheet = store.sheet(wb, INVENTORY)
        row = find_item_row(isheet, body.get("itemName"))
        if row is None:
            raise ItemNotFound(body.get("itemName"))
        set_quantity(isheet, row, to_number(body.get("newQuantity")))
    return _success("Quantity updated")


def add_inventory_item(store, body):
    with store.edit() as wb:
        isheet = store.sheet(wb, INVENTORY)
        item_id = append_item(
            isheet,
            _text(body, "name"),
            body.get("category") or Category.OTHERS.value,
            to_number(body.get("quantity")),
            body.get("unit") or DEFAULT_UNIT,
            to_number(body.get("minLevel")) or DEFAULT_MIN_LEVEL,
        )
    return _success("Item added", id=item_id)


def delete_inventory_item(store, body):
    with store.edit() as wb:
        isheet = store.sheet(wb, INVENTORY)
        row = find_item_row(isheet, body.get("itemName"))
        if row is None:
            return _error("Item not found")
        isheet.delete_rows(row)
    return _success("Item deleted")


def upload_file(store, body):
    file_data = body.get("fileData")
    if not file_data:
        return _error("No file data provided")

    file_name = secure_filename(_text(body, "fileName")) or f"upload_{int(time.time() * 1000)}"
    root = current_app.config["UPLOAD_ROOT"]
    folder = root
    folder_id = secure_filename(_text(body, "folderId"))
    if folder_id and os.path.isdir(os.path.join(root, folder_id)):
        folder = os.path.join(root, folder_id)

    try:
        payload = base64.b64decode(file_data, validate=True)
        file_id = uuid.uuid4().hex
        os.makedirs(folder, exist_ok=True)
        with open(os.path.join(folder, f"{file_id}__{file_name}"), "wb") as f:
            f.write(payload)
    except (ValueError, TypeError, OSError) as exc:
        return _error(f"Upload failed: {exc}")

    return _success(
        "File uploaded successfully",
        fileUrl=url_for("serve_file", file_id=file_id, _external=True),
        fileId=file_id,
        fileName=file_name,
    )


STORAGE_ERRORS = (OSError, ValueError, InvalidFileException, BadZipFile)

ACTIONS = {
    "addTransaction": add_transaction,
    "updateInventory": update_inventory,
    "addInventoryItem": add_inventory_item,
    "deleteInventoryItem": delete_inventory_item,
    "uploadFile": upload_file,
}


def _find_upload(root, file_id):
    prefix = f"{file_id}__"
    for directory, _, files in os.walk(root):
        for name in files:
            if name.startswith(prefix):
                return directory, name
    return None


def create_endpoint_app(overrides=None):
    app = Flask(__name__)
    load_config(app, overrides)
    configure_logging(app)

    store = SheetStore(app.config["WORKBOOK_PATH"])
    app.extensions["sheet_store"] = store

    @app.get("/")
    def do_get():
        sheet_name = request.args.get("sheet") or INVENTORY
        try:
            return jsonify(store.read_rows(sheet_name))
        except FloorstockError as exc:
            return jsonify({"error": str(exc)})
        except STORAGE_ERRORS as exc:
            logger.exception("Failed to read sheet %s", sheet_name)
            return jsonify({"error": str(exc)})

    @app.post("/")
    def do_post():
        try:
            body = json.loads(request.get_data(as_text=True) or "null")
        except ValueError as exc:
            return jsonify(_error(str(exc)))
        if not isinstance(body, dict):
            return jsonify(_error("Request body must be a JSON object"))

        action = body.get("action")
        handler = ACTIONS.get(action) if isinstance(action, str) else None
        if handler is None:
            return jsonify(_error(f"Unknown action: {action}"))

        logger.info("Dispatching %s", action)
        try:
            return jsonify(handler(store, body))
        except FloorstockError as exc:
            return jsonify(_error(str(exc)))
        except STORAGE_ERRORS as exc:
            logger.exception("Action %s failed", action)
            return jsonify(_error(str(exc)))

    @app.get("/files/<file_id>")
    def serve_file(file_id):
        found = _find_upload(app.config["UPLOAD_ROOT"], secure_filename(file_id))
        if found is None:
            raise NotFound()
        directory, name = found
        return send_from_directory(os.path.abspath(directory), name)

    @app.cli.command("setup-sheets")
    def setup_sheets_command():
        """Create the Inventory and Transactions sheets (clears existing ones)."""
        store.setup_sheets()
        click.echo("Setup Complete! Inventory and Transactions sheets have been created.")

    @app.cli.command("test-setup")
    def test_setup_command():
        """Report whether the expected sheets exist."""
        click.echo("Test Results:\n")
        for name, count in store.describe().items():
            if count is None:
                click.echo(f"{name} Sheet: Not Found")
            else:
                noun = "items" if name == INVENTORY else "records"
                click.echo(f"{name} Sheet: Found ({count} {noun})")
        click.echo("\nIf any sheet is missing, run setup-sheets first.")

    return app

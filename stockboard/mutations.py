from __future__ import annotations

import logging
from typing import Any, Dict

from stockboard.audit import append_audit
from stockboard.config import Settings
from stockboard.errors import NotFoundError, StoreError, ValidationError
from stockboard.identity import EDITOR, require_role, resolve_user
from stockboard.normalize import cell_text, parse_number, resolve_columns
from stockboard.products import PRODUCT_COLUMNS
from stockboard.store import WorkbookStore


logger = logging.getLogger(__name__)

EDITABLE_NUMERIC = ("salesPrice", "qty", "market", "retail")
EDITABLE_TEXT = ("note",)


def build_updates(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Allowed fields present in the payload, normalized.

    Null values count as absent, and so do numeric values that do not parse.
    """
    updates: Dict[str, Any] = {}
    for name in EDITABLE_NUMERIC:
        number = parse_number(payload.get(name))
        if number is not None:
            updates[name] = number
    for name in EDITABLE_TEXT:
        if payload.get(name) is not None:
            updates[name] = str(payload[name])
    return updates


def update_product(
    store: WorkbookStore,
    settings: Settings,
    email: str,
    payload: Dict[str, Any],
) -> Dict[str, Any]:
    user = resolve_user(store, settings, email)
    require_role(user, EDITOR)

    payload = payload or {}
    tab = cell_text(payload.get("tab"))
    sku = cell_text(payload.get("sku"))
    if not tab or not sku:
        raise ValidationError("tab and sku are required")

    table = store.read_table(settings.products_store, tab)
    cols = resolve_columns(table.header, PRODUCT_COLUMNS)
    sku_col = cols["sku"]
    if sku_col is None:
        raise StoreError(f"SKU column not found in {tab}")

    # Linear scan: first matching row wins.
    row_number = next(
        (table.sheet_row(idx) for idx, row in enumerate(table.rows) if cell_text(row.get(sku_col)) == sku),
        None,
    )
    if row_number is None:
        raise NotFoundError(f"SKU {sku} not found in {tab}")

    updates = build_updates(payload)
    targets = {name: cols[name] or PRODUCT_COLUMNS[name][0] for name in updates}
    cells = store.set_cells(
        settings.products_store, tab, row_number, {targets[name]: value for name, value in updates.items()}
    )
    written = [name for name in updates if targets[name] in cells]

    append_audit(store, settings, actor=user.email, action="updateProduct", tab=tab, sku=sku, detail=updates)
    logger.info("%s updated %s/%s: %s", user.email, tab, sku, ", ".join(written) or "nothing")
    return {"tab": tab, "sku": sku, "updated": written}

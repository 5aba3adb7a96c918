from __future__ import annotations

from typing import Any, Dict, Set

from stockboard.audit import append_audit
from stockboard.config import Settings
from stockboard.errors import Attempt, AuthorizationError, ConfigError, ValidationError, attempt
from stockboard.normalize import cell_text, parse_bool
from stockboard.store import WorkbookStore


FAVORITE_COLUMNS = ("EMAIL", "SKU", "FAVORITE")


def _favorite_set(store: WorkbookStore, settings: Settings, email: str) -> Set[str]:
    table = store.read_table(settings.board_store, settings.favorites_table)
    email_col, sku_col, fav_col = (table.column(c) for c in FAVORITE_COLUMNS)
    if not (email_col and sku_col and fav_col):
        raise ConfigError(f"{settings.favorites_table} needs EMAIL, SKU and FAVORITE columns")
    wanted = email.lower()
    out: Set[str] = set()
    for row in table.rows:
        if cell_text(row.get(email_col)).lower() != wanted:
            continue
        sku = cell_text(row.get(sku_col))
        if sku and parse_bool(row.get(fav_col)):
            out.add(sku)
    return out


def load_favorites(store: WorkbookStore, settings: Settings, email: str) -> Attempt[Set[str]]:
    """Best-effort favorite SKUs for `email`; an unreadable table yields an unavailable Attempt."""
    email = (email or "").strip()
    if not email:
        return Attempt(value=set())
    return attempt("favorites", _favorite_set, store, settings, email)


def set_favorite(
    store: WorkbookStore,
    settings: Settings,
    email: str,
    sku: Any,
    favorite: Any,
) -> Dict[str, Any]:
    email = (email or "").strip()
    if not email:
        raise AuthorizationError("sign-in required to set favorites")
    sku = cell_text(sku)
    if not sku:
        raise ValidationError("sku is required")
    state = parse_bool(favorite)

    table = store.read_table(settings.board_store, settings.favorites_table)
    columns = {name: table.column(name) for name in FAVORITE_COLUMNS}
    missing = [name for name, col in columns.items() if col is None]
    if missing:
        raise ConfigError(f"{settings.favorites_table} is missing columns: {', '.join(missing)}")

    wanted = email.lower()
    for idx, row in enumerate(table.rows):
        if cell_text(row.get(columns["EMAIL"])).lower() == wanted and cell_text(row.get(columns["SKU"])) == sku:
            store.set_cell(settings.board_store, settings.favorites_table, table.sheet_row(idx), columns["FAVORITE"], state)
            break
    else:
        by_column = {columns["EMAIL"]: email, columns["SKU"]: sku, columns["FAVORITE"]: state}
        store.append_row(
            settings.board_store,
            settings.favorites_table,
            [by_column.get(h, None) for h in table.header],
        )

    append_audit(store, settings, actor=email, action="setFavorite", tab="", sku=sku, detail={"favorite": state})
    return {"sku": sku, "favorite": state}

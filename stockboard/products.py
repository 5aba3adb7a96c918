from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Set, Tuple

import pandas as pd

from stockboard.config import Settings, Thresholds
from stockboard.errors import ValidationError
from stockboard.favorites import load_favorites
from stockboard.normalize import cell_text, is_blank, parse_bool, parse_number, resolve_columns
from stockboard.store import Table, WorkbookStore


logger = logging.getLogger(__name__)

# Accepted header spellings per product field, highest priority first.
PRODUCT_COLUMNS: Dict[str, Tuple[str, ...]] = {
    "sku": ("SKU", "CODE", "PART NUMBER"),
    "brand": ("BRAND",),
    "series": ("SERIES",),
    "model": ("MODEL",),
    "salesPrice": ("SALES PRICE", "SALES", "SELL"),
    "qty": ("QTY", "QUANTITY", "STOCK"),
    "market": ("MARKET", "MARKET PRICE"),
    "retail": ("RETAIL", "RETAIL PRICE"),
    "guarantee": ("GUARANTEE", "WARRANTY"),
    "grntDu": ("GRNT DU", "GRNT_DU", "GUARANTEE DURATION"),
    "note": ("NOTE", "NOTES"),
}
ACTIVE_COLUMNS: Dict[str, Tuple[str, ...]] = {"active": ("Active", "ACTIVE")}

NUMERIC_FIELDS = ("salesPrice", "qty", "market", "retail")
SEARCH_FIELDS = ("sku", "brand", "series", "model")
PRODUCT_FIELDS = list(PRODUCT_COLUMNS) + ["favorite", "qtyLevel"]


@dataclass(frozen=True)
class ProductQuery:
    search: str = ""
    only_favorites: bool = False
    sort_field: Optional[str] = None
    sort_direction: str = "asc"


def normalize_query(raw: Optional[Dict[str, Any]]) -> ProductQuery:
    raw = raw or {}
    sort = raw.get("sort") or {}
    if not isinstance(sort, dict):
        sort = {}
    direction = str(sort.get("direction") or "asc").strip().lower()
    return ProductQuery(
        search=cell_text(raw.get("search")),
        only_favorites=parse_bool(raw.get("onlyFavorites", False)),
        sort_field=cell_text(sort.get("field")) or None,
        sort_direction="desc" if direction == "desc" else "asc",
    )


def qty_level(qty: Optional[float], thresholds: Thresholds) -> str:
    qty = qty or 0
    if qty >= thresholds.green:
        return "in"
    if qty >= thresholds.yellow:
        return "low"
    return "out"


def project_rows(table: Table, favorites: Set[str], thresholds: Thresholds) -> List[Dict[str, Any]]:
    """Active rows with a SKU, projected onto the product shape plus derived fields."""
    cols = resolve_columns(table.header, PRODUCT_COLUMNS)
    active_col = resolve_columns(table.header, ACTIVE_COLUMNS)["active"]

    products: List[Dict[str, Any]] = []
    for row in table.rows:
        if active_col is not None:
            flag = row.get(active_col)
            if not is_blank(flag) and not parse_bool(flag):
                continue
        product: Dict[str, Any] = {}
        for name, col in cols.items():
            value = row.get(col) if col is not None else None
            product[name] = parse_number(value) if name in NUMERIC_FIELDS else cell_text(value)
        if not product["sku"]:
            continue
        product["favorite"] = product["sku"] in favorites
        product["qtyLevel"] = qty_level(product["qty"], thresholds)
        products.append(product)
    return products


def _is_missing(value: object) -> bool:
    if isinstance(value, float):
        return pd.isna(value)
    return value is None or value == ""


def sort_products(df: pd.DataFrame, field: str, direction: str) -> pd.DataFrame:
    """Stable sort on `field`; rows without a value always come last."""
    if df.empty or field not in df.columns:
        return df
    missing = df[field].apply(_is_missing)
    present = df[~missing]
    values = present[field]
    ascending = direction != "desc"
    if values.map(lambda v: isinstance(v, (int, float)) and not isinstance(v, bool)).all():
        key = values.astype(float)
    else:
        key = values.astype(str).str.casefold() + "\x00" + values.astype(str)
    order = key.sort_values(ascending=ascending, kind="mergesort").index
    return pd.concat([present.loc[order], df[missing]])


def filter_products(products: List[Dict[str, Any]], query: ProductQuery) -> pd.DataFrame:
    df = pd.DataFrame(products, columns=PRODUCT_FIELDS, dtype=object)
    if df.empty:
        return df
    needle = query.search.lower()
    if needle:
        mask = pd.Series(False, index=df.index)
        for col in SEARCH_FIELDS:
            mask |= df[col].astype(str).str.lower().str.contains(needle, regex=False, na=False)
        df = df[mask]
    if query.only_favorites:
        df = df[df["favorite"].astype(bool)]
    if query.sort_field:
        df = sort_products(df, query.sort_field, query.sort_direction)
    return df


def query_products(
    store: WorkbookStore,
    settings: Settings,
    email: str,
    tab: Any,
    query: ProductQuery,
) -> pd.DataFrame:
    tab = cell_text(tab)
    if not tab:
        raise ValidationError("tab is required")
    table = store.read_table(settings.products_store, tab)

    favorites = load_favorites(store, settings, email)
    products = project_rows(table, favorites.value_or(set()), settings.thresholds)
    return filter_products(products, query)


def list_products(
    store: WorkbookStore,
    settings: Settings,
    email: str,
    tab: Any,
    options: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    query = normalize_query(options)
    df = query_products(store, settings, email, tab, query)
    records = df.to_dict(orient="records")
    logger.debug("listed %d products from %s", len(records), tab)
    return {"tab": tab, "count": len(records), "products": records}


def export_products_csv(
    store: WorkbookStore,
    settings: Settings,
    email: str,
    tab: Any,
    options: Optional[Dict[str, Any]] = None,
) -> str:
    df = query_products(store, settings, email, tab, normalize_query(options))
    return df.to_csv(index=False)

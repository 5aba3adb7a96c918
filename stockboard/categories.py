from __future__ import annotations

import logging
from typing import Dict, List, Tuple

from stockboard.config import Settings
from stockboard.normalize import cell_text, parse_number, resolve_columns
from stockboard.store import WorkbookStore


logger = logging.getLogger(__name__)

CATEGORY_COLUMNS: Dict[str, Tuple[str, ...]] = {
    "tab": ("TAB",),
    "title": ("TITLE",),
    "group_by": ("GROUP_BY", "GROUP BY", "GROUP"),
    "order": ("ORDER",),
}


def fallback_categories(settings: Settings) -> List[Dict[str, str]]:
    return [{"tab": tab, "title": tab, "groupBy": ""} for tab in settings.fallback_categories]


def _read_categories(store: WorkbookStore, settings: Settings) -> List[Dict[str, str]]:
    table = store.read_table(settings.board_store, settings.categories_table)
    cols = resolve_columns(table.header, CATEGORY_COLUMNS)
    if cols["tab"] is None:
        return []

    ranked = []
    for row in table.rows:
        tab = cell_text(row.get(cols["tab"]))
        if not tab:
            continue
        order = parse_number(row.get(cols["order"])) if cols["order"] else None
        title = cell_text(row.get(cols["title"])) if cols["title"] else ""
        group_by = cell_text(row.get(cols["group_by"])) if cols["group_by"] else ""
        ranked.append((order or 0, {"tab": tab, "title": title or tab, "groupBy": group_by}))
    ranked.sort(key=lambda item: item[0])
    return [cat for _, cat in ranked]


def list_categories(store: WorkbookStore, settings: Settings) -> List[Dict[str, str]]:
    """Configured categories ordered by ORDER, or the static fallback list. Never empty."""
    try:
        categories = _read_categories(store, settings)
    except Exception as exc:
        logger.warning("categories table unavailable, using fallback: %s", exc)
        return fallback_categories(settings)
    if not categories:
        return fallback_categories(settings)
    return categories

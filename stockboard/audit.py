from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

from stockboard.config import Settings
from stockboard.errors import Attempt, attempt
from stockboard.normalize import cell_text
from stockboard.store import WorkbookStore


logger = logging.getLogger(__name__)

AUDIT_FIELDS = ["timestamp", "actor", "action", "tab", "sku", "detail", "timezone"]


def _now(tz_name: str) -> datetime:
    # openpyxl refuses tz-aware datetimes; the zone travels in its own column.
    return datetime.now(ZoneInfo(tz_name)).replace(tzinfo=None, microsecond=0)


def append_audit(
    store: WorkbookStore,
    settings: Settings,
    *,
    actor: str,
    action: str,
    tab: str = "",
    sku: str = "",
    detail: Optional[Dict[str, Any]] = None,
) -> Attempt[None]:
    """Append one AUDIT_LOG row. Never raises; a failed write is logged and reported."""

    def _write() -> None:
        row = [
            _now(settings.timezone),
            actor or "-",
            action,
            tab or "",
            sku or "",
            json.dumps(detail or {}, ensure_ascii=False, sort_keys=True),
            settings.timezone,
        ]
        store.append_row(settings.board_store, settings.audit_table, row)

    result = attempt(f"audit {action}", _write)
    if result.available:
        logger.info("audit %s by %s tab=%s sku=%s", action, actor or "-", tab, sku)
    return result


def read_audit(store: WorkbookStore, settings: Settings, limit: int = 100) -> List[Dict[str, Any]]:
    """Newest-first audit entries. AUDIT_LOG columns are positional, so headers are ignored."""
    table = store.read_table(settings.board_store, settings.audit_table)
    entries: List[Dict[str, Any]] = []
    for raw in table.cells:
        values = list(raw)
        values += [None] * (len(AUDIT_FIELDS) - len(values))
        entry = dict(zip(AUDIT_FIELDS, values[: len(AUDIT_FIELDS)]))
        if entry["timestamp"] is None and not cell_text(entry["action"]):
            continue
        for key in ("actor", "action", "tab", "sku", "timezone"):
            entry[key] = cell_text(entry[key])
        if isinstance(entry["timestamp"], datetime):
            entry["timestamp"] = entry["timestamp"].isoformat()
        try:
            entry["detail"] = json.loads(entry["detail"]) if entry["detail"] else {}
        except (TypeError, ValueError):
            entry["detail"] = {"raw": cell_text(entry["detail"])}
        entries.append(entry)
    entries.reverse()
    return entries[: max(0, limit)]

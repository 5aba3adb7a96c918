from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from openpyxl import load_workbook

from stockboard.errors import StoreError


logger = logging.getLogger(__name__)

HEADER_ROW = 1
FIRST_DATA_ROW = 2


@dataclass
class Table:
    """One worksheet: trimmed header names plus header-keyed data rows."""

    name: str
    header: List[str] = field(default_factory=list)
    rows: List[Dict[str, Any]] = field(default_factory=list)
    cells: List[List[Any]] = field(default_factory=list)

    def column(self, name: str) -> Optional[str]:
        return match_column(self.header, name)

    @staticmethod
    def sheet_row(index: int) -> int:
        return FIRST_DATA_ROW + index


def match_column(header: Sequence[str], name: str) -> Optional[str]:
    """Exact-case match first, then upper-cased match to tolerate header casing drift."""
    if name in header:
        return name
    wanted = name.upper()
    for h in header:
        if h and h.upper() == wanted:
            return h
    return None


def first_formula(wb) -> Optional[str]:
    """Coordinate of the first formula cell in a writable workbook, if any."""
    for ws in wb.worksheets:
        for row in ws.iter_rows():
            for cell in row:
                if cell.data_type == "f":
                    return f"{ws.title}!{cell.coordinate}"
    return None


class WorkbookStore:
    """XLSX-backed tabular store: a store id names a workbook, a table names a sheet.

    Reads see the values cached by the last spreadsheet application that saved
    the file. openpyxl cannot recompute formulas and drops those cached values
    on save, so a workbook holding formula cells is read-only here: writes
    refuse it with a StoreError before touching the file.
    """

    def __init__(self, data_dir: Path | str):
        self.data_dir = Path(data_dir)

    def path_for(self, store_id: str) -> Path:
        return self.data_dir / f"{store_id}.xlsx"

    def _open(self, store_id: str, *, read_only: bool):
        path = self.path_for(store_id)
        if not path.exists():
            raise StoreError(f"missing store: {store_id}")
        return load_workbook(path, read_only=read_only, data_only=read_only)

    def _open_sheet_for_write(self, store_id: str, table: str):
        wb = self._open(store_id, read_only=False)
        try:
            formula = first_formula(wb)
            if formula is not None:
                raise StoreError(f"{store_id} has formula cells ({formula}); refusing to save over them")
            if table not in wb.sheetnames:
                raise StoreError(f"missing table: {table}")
        except StoreError:
            wb.close()
            raise
        return wb, wb[table]

    def read_table(self, store_id: str, table: str) -> Table:
        wb = self._open(store_id, read_only=True)
        try:
            if table not in wb.sheetnames:
                raise StoreError(f"missing table: {table}")
            values = list(wb[table].iter_rows(values_only=True))
        finally:
            wb.close()

        if not values:
            return Table(name=table)
        header = ["" if h is None else str(h).strip() for h in values[0]]
        rows: List[Dict[str, Any]] = []
        cells: List[List[Any]] = []
        for raw in values[1:]:
            cells.append(list(raw))
            row: Dict[str, Any] = {}
            for idx, name in enumerate(header):
                if not name or name in row:
                    continue
                row[name] = raw[idx] if idx < len(raw) else None
            rows.append(row)
        return Table(name=table, header=header, rows=rows, cells=cells)

    def set_cells(self, store_id: str, table: str, row: int, values: Dict[str, Any]) -> List[str]:
        """Write several cells of sheet row `row` with one load and one save.

        Returns the requested column names that were written; unknown columns
        are skipped. Nothing is saved when none of them match.
        """
        wb, ws = self._open_sheet_for_write(store_id, table)
        try:
            header = ["" if c.value is None else str(c.value).strip() for c in ws[HEADER_ROW]]
            written: List[str] = []
            for column, value in values.items():
                target = match_column(header, column)
                if target is None:
                    logger.debug("skip write to unknown column %s in %s/%s", column, store_id, table)
                    continue
                ws.cell(row=row, column=header.index(target) + 1, value=value)
                written.append(column)
            if written:
                wb.save(self.path_for(store_id))
            return written
        finally:
            wb.close()

    def set_cell(self, store_id: str, table: str, row: int, column: str, value: Any) -> bool:
        return bool(self.set_cells(store_id, table, row, {column: value}))

    def append_row(self, store_id: str, table: str, values: Sequence[Any]) -> None:
        wb, ws = self._open_sheet_for_write(store_id, table)
        try:
            ws.append(list(values))
            wb.save(self.path_for(store_id))
        finally:
            wb.close()

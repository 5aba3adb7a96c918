from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Tuple


DEFAULT_DATA_DIR = Path(__file__).resolve().parents[1] / "data"

DEFAULT_FALLBACK_CATEGORIES: Tuple[str, ...] = (
    "CPU",
    "MAINBOARD",
    "RAM",
    "VGA",
    "SSD",
    "HDD",
    "POWER",
    "CASE",
    "COOLER",
    "MONITOR",
)


@dataclass(frozen=True)
class Thresholds:
    green: float = 10.0
    yellow: float = 3.0


@dataclass(frozen=True)
class Settings:
    data_dir: Path = DEFAULT_DATA_DIR
    products_store: str = "PRODUCTS_DB"
    board_store: str = "BOARD_DB"
    users_table: str = "USERS"
    favorites_table: str = "PREFS_FAV"
    audit_table: str = "AUDIT_LOG"
    categories_table: str = "SYNC_CATEGORIES"
    thresholds: Thresholds = field(default_factory=Thresholds)
    fallback_categories: Tuple[str, ...] = DEFAULT_FALLBACK_CATEGORIES
    timezone: str = "UTC"
    identity_header: str = "X-Forwarded-Email"
    log_level: str = "INFO"


def _env(name: str, default: str) -> str:
    return str(os.environ.get(name, default) or default).strip()


def _env_float(name: str, default: float) -> float:
    raw = str(os.environ.get(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


def _split_tabs(raw: str) -> Tuple[str, ...]:
    return tuple(t.strip() for t in raw.split(",") if t.strip())


def load_settings() -> Settings:
    thresholds = Thresholds(
        green=_env_float("STOCKBOARD_QTY_GREEN", 10.0),
        yellow=_env_float("STOCKBOARD_QTY_YELLOW", 3.0),
    )
    if thresholds.yellow > thresholds.green:
        raise ValueError("STOCKBOARD_QTY_YELLOW must not exceed STOCKBOARD_QTY_GREEN")

    fallback = _split_tabs(str(os.environ.get("STOCKBOARD_FALLBACK_TABS") or ""))

    return Settings(
        data_dir=Path(_env("STOCKBOARD_DATA_DIR", str(DEFAULT_DATA_DIR))),
        products_store=_env("STOCKBOARD_PRODUCTS_STORE", "PRODUCTS_DB"),
        board_store=_env("STOCKBOARD_BOARD_STORE", "BOARD_DB"),
        users_table=_env("STOCKBOARD_USERS_TABLE", "USERS"),
        favorites_table=_env("STOCKBOARD_FAVORITES_TABLE", "PREFS_FAV"),
        audit_table=_env("STOCKBOARD_AUDIT_TABLE", "AUDIT_LOG"),
        categories_table=_env("STOCKBOARD_CATEGORIES_TABLE", "SYNC_CATEGORIES"),
        thresholds=thresholds,
        fallback_categories=fallback or DEFAULT_FALLBACK_CATEGORIES,
        timezone=_env("STOCKBOARD_TIMEZONE", "UTC"),
        identity_header=_env("STOCKBOARD_IDENTITY_HEADER", "X-Forwarded-Email"),
        log_level=_env("STOCKBOARD_LOG_LEVEL", "INFO").upper(),
    )

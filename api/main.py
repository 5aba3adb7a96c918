from __future__ import annotations

import logging
import math
from functools import lru_cache

import numpy as np
import pandas as pd
from fastapi import Depends, FastAPI, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import FavoriteModel, ProductListRequest, ProductUpdateModel
from stockboard.config import Settings, load_settings
from stockboard.errors import StockboardError, fail
from stockboard.products import export_products_csv
from stockboard.service import Dashboard


app = FastAPI(title="Stockboard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    settings = load_settings()
    logging.basicConfig(level=settings.log_level)
    return settings


def get_dashboard(settings: Settings = Depends(get_settings)) -> Dashboard:
    return Dashboard(settings)


def current_email(request: Request, settings: Settings = Depends(get_settings)) -> str:
    """Verified identity as forwarded by the authenticating proxy."""
    return str(request.headers.get(settings.identity_header) or "").strip()


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        )
    )


@app.exception_handler(RequestValidationError)
async def invalid_request(request: Request, exc: RequestValidationError):
    """Malformed bodies get the failure envelope too, not a 422."""
    problems = []
    for err in exc.errors():
        where = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        problems.append(f"{where}: {err.get('msg')}" if where else str(err.get("msg")))
    message = "invalid request: " + "; ".join(problems)
    logger.info("%s %s rejected: %s", request.method, request.url.path, message)
    return _json(fail(message))


@app.get("/health")
def health():
    return {"ok": True}


@app.get("/me")
def who_am_i(email: str = Depends(current_email), dashboard: Dashboard = Depends(get_dashboard)):
    return _json(dashboard.who_am_i(email))


@app.get("/categories")
def categories(dashboard: Dashboard = Depends(get_dashboard)):
    return _json(dashboard.get_categories())


@app.post("/products")
def products(
    body: ProductListRequest,
    email: str = Depends(current_email),
    dashboard: Dashboard = Depends(get_dashboard),
):
    options = body.options.model_dump(by_alias=True, exclude_none=True)
    return _json(dashboard.list_products(email, body.tab, options))


@app.post("/products/update")
def update_product(
    body: ProductUpdateModel,
    email: str = Depends(current_email),
    dashboard: Dashboard = Depends(get_dashboard),
):
    payload = body.model_dump(by_alias=True, exclude_unset=True)
    return _json(dashboard.update_product(email, payload))


@app.post("/favorites")
def favorites(
    body: FavoriteModel,
    email: str = Depends(current_email),
    dashboard: Dashboard = Depends(get_dashboard),
):
    return _json(dashboard.set_favorite(email, body.sku, body.favorite))


@app.get("/audit")
def audit(
    limit: int = Query(default=100, ge=1, le=1000),
    email: str = Depends(current_email),
    dashboard: Dashboard = Depends(get_dashboard),
):
    return _json(dashboard.list_audit(email, limit))


@app.get("/export/{tab}")
def export_tab(
    tab: str,
    search: str = Query(default=""),
    only_favorites: bool = Query(default=False, alias="onlyFavorites"),
    sort_field: str = Query(default="", alias="sortField"),
    sort_direction: str = Query(default="asc", alias="sortDirection"),
    email: str = Depends(current_email),
    dashboard: Dashboard = Depends(get_dashboard),
):
    options = {"search": search, "onlyFavorites": only_favorites}
    if sort_field:
        options["sort"] = {"field": sort_field, "direction": sort_direction}
    try:
        csv_text = export_products_csv(dashboard.store, dashboard.settings, email, tab, options)
    except StockboardError as exc:
        return _json(fail(str(exc)))
    except Exception as exc:
        logger.exception("export failed")
        return _json(fail(str(exc) or type(exc).__name__))
    return Response(
        content=csv_text.encode("utf-8"),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={tab}.csv"},
    )

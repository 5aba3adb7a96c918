from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from stockboard.audit import read_audit
from stockboard.categories import list_categories
from stockboard.config import Settings
from stockboard.errors import StockboardError, fail, ok
from stockboard.favorites import set_favorite
from stockboard.identity import ADMIN, require_role, resolve_user
from stockboard.mutations import update_product
from stockboard.products import list_products
from stockboard.store import WorkbookStore


logger = logging.getLogger(__name__)


class Dashboard:
    """Public operations. Every method returns the {ok, data|error} envelope and never raises."""

    def __init__(self, settings: Settings, store: Optional[WorkbookStore] = None):
        self.settings = settings
        self.store = store or WorkbookStore(settings.data_dir)

    def _run(self, name: str, fn: Callable[[], Any]) -> Dict[str, Any]:
        try:
            return ok(fn())
        except StockboardError as exc:
            logger.info("%s rejected: %s", name, exc)
            return fail(str(exc))
        except Exception as exc:
            logger.exception("%s failed", name)
            return fail(str(exc) or type(exc).__name__)

    def who_am_i(self, email: str) -> Dict[str, Any]:
        return self._run("whoAmI", lambda: resolve_user(self.store, self.settings, email).as_dict())

    def get_categories(self) -> Dict[str, Any]:
        return self._run("getCategories", lambda: list_categories(self.store, self.settings))

    def list_products(self, email: str, tab: Any, options: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self._run("listProducts", lambda: list_products(self.store, self.settings, email, tab, options))

    def update_product(self, email: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._run("updateProduct", lambda: update_product(self.store, self.settings, email, payload))

    def set_favorite(self, email: str, sku: Any, favorite: Any) -> Dict[str, Any]:
        return self._run("setFavorite", lambda: set_favorite(self.store, self.settings, email, sku, favorite))

    def list_audit(self, email: str, limit: int = 100) -> Dict[str, Any]:
        def _load():
            require_role(resolve_user(self.store, self.settings, email), ADMIN)
            return read_audit(self.store, self.settings, limit)

        return self._run("listAudit", _load)

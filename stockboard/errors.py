from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Optional, TypeVar


logger = logging.getLogger(__name__)

T = TypeVar("T")


class StockboardError(Exception):
    """Base class for failures surfaced to callers as the envelope message."""


class ValidationError(StockboardError):
    pass


class AuthorizationError(StockboardError):
    pass


class NotFoundError(StockboardError):
    pass


class StoreError(StockboardError):
    pass


class ConfigError(StockboardError):
    pass


def ok(data: Any) -> Dict[str, Any]:
    return {"ok": True, "data": data}


def fail(message: str) -> Dict[str, Any]:
    return {"ok": False, "error": message}


@dataclass(frozen=True)
class Attempt(Generic[T]):
    """Outcome of a best-effort side path: either a value or the reason it is unavailable."""

    value: Optional[T] = None
    reason: Optional[str] = None

    @property
    def available(self) -> bool:
        return self.reason is None

    def value_or(self, default: T) -> T:
        return self.value if self.available and self.value is not None else default


def attempt(label: str, fn: Callable[..., T], *args: Any, **kwargs: Any) -> Attempt[T]:
    try:
        return Attempt(value=fn(*args, **kwargs))
    except Exception as exc:
        logger.warning("%s unavailable: %s", label, exc)
        return Attempt(reason=str(exc) or type(exc).__name__)

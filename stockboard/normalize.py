from __future__ import annotations

import math
import re
from typing import Dict, Mapping, Optional, Sequence, Tuple, Union


Number = Union[int, float]

_DIGITS = str.maketrans(
    {
        **{chr(0x06F0 + i): str(i) for i in range(10)},  # Persian
        **{chr(0x0660 + i): str(i) for i in range(10)},  # Arabic-Indic
    }
)
_NON_NUMERIC = re.compile(r"[^0-9.\-]")
TRUE_TOKENS = {"1", "true", "yes", "y", "on"}


def translate_digits(text: str) -> str:
    return text.translate(_DIGITS)


def _tidy(value: float) -> Number:
    return int(value) if value.is_integer() else value


def parse_number(value: object) -> Optional[Number]:
    """Parse a sheet cell into a number; None means "no value", never zero."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        out = float(value)
        if math.isnan(out) or math.isinf(out):
            return None
        return _tidy(out)
    cleaned = _NON_NUMERIC.sub("", translate_digits(str(value)))
    if not cleaned:
        return None
    try:
        out = float(cleaned)
    except ValueError:
        return None
    if math.isnan(out) or math.isinf(out):
        return None
    return _tidy(out)


def parse_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in TRUE_TOKENS


def cell_text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    return str(value).strip()


def is_blank(value: object) -> bool:
    return cell_text(value) == ""


def resolve_columns(header: Sequence[str], aliases: Mapping[str, Tuple[str, ...]]) -> Dict[str, Optional[str]]:
    """Map each logical field to the first accepted header spelling present.

    Exact spellings win over case-insensitive matches so that a sheet carrying
    both "Active" and "ACTIVE" resolves the same way every time.
    """
    present = [h for h in header if h]
    by_upper: Dict[str, str] = {}
    for h in present:
        by_upper.setdefault(h.upper(), h)

    resolved: Dict[str, Optional[str]] = {}
    for name, spellings in aliases.items():
        match = next((s for s in spellings if s in present), None)
        if match is None:
            match = next((by_upper[s.upper()] for s in spellings if s.upper() in by_upper), None)
        resolved[name] = match
    return resolved


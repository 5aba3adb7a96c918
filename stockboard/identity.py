from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Tuple

from stockboard.config import Settings
from stockboard.errors import AuthorizationError
from stockboard.normalize import cell_text, resolve_columns
from stockboard.store import WorkbookStore


logger = logging.getLogger(__name__)

VIEWER = "viewer"
EDITOR = "editor"
ADMIN = "admin"

ROLE_RANK: Dict[str, int] = {VIEWER: 0, EDITOR: 1, ADMIN: 2}

USER_COLUMNS: Dict[str, Tuple[str, ...]] = {
    "email": ("EMAIL", "Email"),
    "role": ("ROLE", "Role"),
    "display_name": ("DISPLAY_NAME", "DISPLAY NAME", "NAME"),
    "avatar": ("AVATAR", "AVATAR_URL"),
}


@dataclass(frozen=True)
class User:
    email: str
    role: str = VIEWER
    display_name: str = ""
    avatar: str = ""

    @property
    def rank(self) -> int:
        return ROLE_RANK.get(self.role, 0)

    def as_dict(self) -> Dict[str, str]:
        return {
            "email": self.email,
            "role": self.role,
            "displayName": self.display_name,
            "avatar": self.avatar,
        }


def _normalize_role(value: object) -> str:
    role = cell_text(value).lower()
    return role if role in ROLE_RANK else VIEWER


def resolve_user(store: WorkbookStore, settings: Settings, email: str | None) -> User:
    """Look up the verified email in USERS; anything unresolvable becomes a viewer."""
    email = (email or "").strip()
    if not email:
        return User(email="")
    try:
        table = store.read_table(settings.board_store, settings.users_table)
    except Exception as exc:
        logger.warning("users table unreadable, defaulting %s to viewer: %s", email, exc)
        return User(email=email)

    cols = resolve_columns(table.header, USER_COLUMNS)
    if cols["email"] is None:
        return User(email=email)
    wanted = email.lower()
    for row in table.rows:
        if cell_text(row.get(cols["email"])).lower() != wanted:
            continue
        return User(
            email=email,
            role=_normalize_role(row.get(cols["role"])) if cols["role"] else VIEWER,
            display_name=cell_text(row.get(cols["display_name"])) if cols["display_name"] else "",
            avatar=cell_text(row.get(cols["avatar"])) if cols["avatar"] else "",
        )
    return User(email=email)


def require_role(user: User, role: str) -> None:
    if user.rank < ROLE_RANK[role]:
        raise AuthorizationError(f"{role} role required")

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional, Protocol

from fastapi import Header, HTTPException, status

from metaquery.core.config import get_settings


@dataclass
class Principal:
    user_name: str
    is_admin: bool = False


class AdminChecker(Protocol):
    def is_administrator(self, user_name: str) -> bool: ...


@dataclass
class StaticAdminChecker:
    """Administrator check backed by a fixed list of user names (``ADMIN_USERS``)."""

    admin_users: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_users(cls, users: Iterable[str]) -> "StaticAdminChecker":
        return cls(admin_users=frozenset(u.strip() for u in users if u and u.strip()))

    def is_administrator(self, user_name: str) -> bool:
        return bool(user_name) and user_name in self.admin_users


def get_admin_checker() -> StaticAdminChecker:
    return StaticAdminChecker.from_users(get_settings().admin_users)


def get_current_principal(token_user: Optional[str] = Header(default=None, alias="Token-User")) -> Principal:
    # The gateway authenticates the caller and forwards the user name
    if not token_user or not token_user.strip():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing Token-User header")
    user_name = token_user.strip()
    return Principal(user_name=user_name, is_admin=get_admin_checker().is_administrator(user_name))

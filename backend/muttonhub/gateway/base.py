# Overview: Remote data gateway interface shared by the hosted and local backends.

"""
Remote Data Gateway

WHY: Durable state, authentication and row-level security live in a remote
store. Services talk to this interface only, so the hosted backend
(Supabase) and the local SQLAlchemy store are interchangeable.

DESIGN:
- Rows are plain dicts of JSON primitives (numbers, ISO strings, nested
  dicts for embedded relations)
- Filters are (column, op, value) triples; only eq/gte/lte are needed
- update() returns the rows it changed, so callers can detect a
  conditional update that matched nothing
- Auth errors carry a message meant to be shown to the user verbatim
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, Optional

from ..time_utils import to_utc_z


class GatewayError(Exception):
    """Data access against the remote store failed."""
    pass


class AuthError(Exception):
    """Authentication failed; str(e) is safe to show to the user."""
    pass


# =============================================================================
# QUERY TERMS
# =============================================================================

FILTER_OPS = ("eq", "gte", "lte")

# Embeddable relations: name -> columns returned in the nested dict
EMBEDS = {
    "buyers": ("name", "phone"),
    "sellers": ("name", "phone"),
    "user_roles": ("role",),
    "users": ("email", "created_at", "last_sign_in_at"),
}

AUTH_SIGNED_IN = "SIGNED_IN"
AUTH_SIGNED_OUT = "SIGNED_OUT"


@dataclass(frozen=True)
class Filter:
    column: str
    op: str
    value: object


def eq(column: str, value) -> Filter:
    return Filter(column, "eq", value)


def gte(column: str, value) -> Filter:
    return Filter(column, "gte", value)


def lte(column: str, value) -> Filter:
    return Filter(column, "lte", value)


@dataclass
class Identity:
    """An authenticated account as the gateway reports it."""
    id: str
    email: Optional[str] = None
    created_at: Optional[datetime] = None
    last_sign_in_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "created_at": to_utc_z(self.created_at),
            "last_sign_in_at": to_utc_z(self.last_sign_in_at),
        }


@dataclass
class AuthSession:
    access_token: str
    identity: Identity
    refresh_token: Optional[str] = None
    expires_at: Optional[datetime] = None


AuthListener = Callable[[str, Optional[AuthSession]], None]


class DataGateway:
    """
    Base class for gateway implementations.

    Subclasses implement the data and session operations; listener
    bookkeeping for auth state changes is shared.
    """

    name = "base"

    def __init__(self):
        self._listeners: list[AuthListener] = []
        self.access_token: Optional[str] = None

    # ---- auth state ----------------------------------------------------

    def on_auth_state_change(self, listener: AuthListener) -> Callable[[], None]:
        """Subscribe to SIGNED_IN / SIGNED_OUT; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: str, session: Optional[AuthSession]) -> None:
        for listener in list(self._listeners):
            listener(event, session)

    # ---- data ----------------------------------------------------------

    def select(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: Iterable[Filter] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        embed: Optional[str] = None,
    ) -> list[dict]:
        raise NotImplementedError

    def insert(self, table: str, row: dict) -> dict:
        raise NotImplementedError

    def update(self, table: str, values: dict, *, match: dict) -> list[dict]:
        raise NotImplementedError

    def delete(self, table: str, *, match: dict) -> int:
        raise NotImplementedError

    def count(self, table: str) -> int:
        raise NotImplementedError

    def ping(self) -> int:
        """Connection test: count-only query against user_roles."""
        return self.count("user_roles")

    # ---- sessions ------------------------------------------------------

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        raise NotImplementedError

    def sign_up(self, email: str, password: str) -> Identity:
        raise NotImplementedError

    def sign_out(self, access_token: str) -> None:
        raise NotImplementedError

    def get_user(self, access_token: str) -> Optional[Identity]:
        """Identity for a token, or None when the token is invalid/expired."""
        raise NotImplementedError

    def get_session(self, access_token: str) -> Optional[AuthSession]:
        identity = self.get_user(access_token)
        if identity is None:
            return None
        return AuthSession(access_token=access_token, identity=identity)

    def current_user(self) -> Optional[Identity]:
        """Identity of the session this gateway is bound to, if any."""
        if not self.access_token:
            return None
        return self.get_user(self.access_token)

    def with_token(self, access_token: Optional[str]) -> "DataGateway":
        """
        Gateway acting on behalf of the caller's session.

        The copy shares listeners and connections with the app-wide instance.
        """
        bound = copy.copy(self)
        bound.access_token = access_token
        return bound

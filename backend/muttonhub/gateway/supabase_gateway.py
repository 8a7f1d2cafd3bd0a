# Overview: Gateway backed by the hosted Supabase project (PostgREST data API + auth).

"""
Supabase Gateway

WHY: Production state, authentication and row-level security live in a
hosted Supabase project. This adapter translates gateway calls into
supabase-py query builders and maps their errors onto GatewayError /
AuthError.

DESIGN:
- One anon client for unauthenticated calls (sign-in, sign-up, ping)
- with_token() builds a client whose PostgREST requests carry the caller's
  JWT, so row-level security applies to every data call
- Sign-in and sign-up use a throwaway client: supabase-py keeps session
  state on the client and must not leak it across requests
- Decimals are sent as strings to keep numeric precision
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Callable, Iterable, Optional

import httpx
from supabase import AuthError as SupabaseAuthError
from supabase import PostgrestAPIError, create_client

from ..time_utils import as_utc_naive, parse_iso_datetime
from .base import (
    AUTH_SIGNED_IN,
    AUTH_SIGNED_OUT,
    EMBEDS,
    FILTER_OPS,
    AuthError,
    AuthSession,
    DataGateway,
    Filter,
    GatewayError,
    Identity,
)


def _jsonable(value):
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


def _as_datetime(value) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return as_utc_naive(value)
    return parse_iso_datetime(str(value))


def _auth_message(e: Exception) -> str:
    return getattr(e, "message", None) or str(e)


def _identity(user) -> Identity:
    return Identity(
        id=str(user.id),
        email=getattr(user, "email", None),
        created_at=_as_datetime(getattr(user, "created_at", None)),
        last_sign_in_at=_as_datetime(getattr(user, "last_sign_in_at", None)),
    )


def select_clause(columns: str, embed: Optional[str]) -> str:
    """PostgREST select string, e.g. '*, buyers(name, phone)'."""
    if not embed:
        return columns
    if embed not in EMBEDS:
        raise GatewayError(f"Cannot embed {embed}")
    return f"{columns}, {embed}({', '.join(EMBEDS[embed])})"


class SupabaseGateway(DataGateway):
    name = "supabase"

    def __init__(self, url: str, key: str, *, client_factory: Callable = create_client):
        super().__init__()
        self.url = url
        self.key = key
        self._client_factory = client_factory
        self._client = None

    @property
    def client(self):
        if self._client is None:
            self._client = self._client_factory(self.url, self.key)
            if self.access_token:
                self._client.postgrest.auth(self.access_token)
        return self._client

    def with_token(self, access_token: Optional[str]) -> "SupabaseGateway":
        bound = super().with_token(access_token)
        bound._client = None
        return bound

    def _execute(self, builder):
        try:
            return builder.execute()
        except PostgrestAPIError as e:
            raise GatewayError(e.message or str(e)) from e
        except httpx.HTTPError as e:
            raise GatewayError(f"Network error: {e}") from e

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
        query = self.client.table(table).select(select_clause(columns, embed))
        for f in filters:
            if f.op not in FILTER_OPS:
                raise GatewayError(f"Unsupported filter operator: {f.op}")
            query = getattr(query, f.op)(f.column, _jsonable(f.value))
        if order_by:
            query = query.order(order_by, desc=descending)
        return list(self._execute(query).data or [])

    def insert(self, table: str, row: dict) -> dict:
        data = self._execute(self.client.table(table).insert(_jsonable(row))).data or []
        if not data:
            raise GatewayError(f"Insert into {table} returned no row")
        return data[0]

    def update(self, table: str, values: dict, *, match: dict) -> list[dict]:
        if not match:
            raise GatewayError("Refusing to write without a match")
        query = self.client.table(table).update(_jsonable(values))
        for column, value in match.items():
            query = query.eq(column, _jsonable(value))
        return list(self._execute(query).data or [])

    def delete(self, table: str, *, match: dict) -> int:
        if not match:
            raise GatewayError("Refusing to write without a match")
        query = self.client.table(table).delete()
        for column, value in match.items():
            query = query.eq(column, _jsonable(value))
        return len(self._execute(query).data or [])

    def count(self, table: str) -> int:
        response = self._execute(self.client.table(table).select("*", count="exact", head=True))
        return response.count or 0

    # ---- sessions ------------------------------------------------------

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        client = self._client_factory(self.url, self.key)
        try:
            response = client.auth.sign_in_with_password({"email": email, "password": password})
        except SupabaseAuthError as e:
            raise AuthError(_auth_message(e)) from e
        except httpx.HTTPError as e:
            raise GatewayError(f"Network error: {e}") from e

        if response.session is None or response.user is None:
            raise AuthError("Invalid login credentials")

        expires_at = None
        if getattr(response.session, "expires_at", None):
            expires_at = datetime.fromtimestamp(response.session.expires_at, timezone.utc).replace(tzinfo=None)

        session = AuthSession(
            access_token=response.session.access_token,
            refresh_token=response.session.refresh_token,
            identity=_identity(response.user),
            expires_at=expires_at,
        )
        self._emit(AUTH_SIGNED_IN, session)
        return session

    def sign_up(self, email: str, password: str) -> Identity:
        client = self._client_factory(self.url, self.key)
        try:
            response = client.auth.sign_up({"email": email, "password": password})
        except SupabaseAuthError as e:
            raise AuthError(_auth_message(e)) from e
        except httpx.HTTPError as e:
            raise GatewayError(f"Network error: {e}") from e

        if response.user is None:
            raise AuthError("Sign up did not return a user")
        return _identity(response.user)

    def sign_out(self, access_token: str) -> None:
        try:
            self.client.auth.admin.sign_out(access_token)
        except SupabaseAuthError as e:
            raise AuthError(_auth_message(e)) from e
        except httpx.HTTPError as e:
            raise GatewayError(f"Network error: {e}") from e
        self._emit(AUTH_SIGNED_OUT, None)

    def get_user(self, access_token: str) -> Optional[Identity]:
        if not access_token:
            return None
        try:
            response = self.client.auth.get_user(access_token)
        except SupabaseAuthError:
            return None
        except httpx.HTTPError as e:
            raise GatewayError(f"Network error: {e}") from e
        if response is None or response.user is None:
            return None
        return _identity(response.user)

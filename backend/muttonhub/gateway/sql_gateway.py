# Overview: Gateway backed by the local Flask-SQLAlchemy store (development, CLI bootstrap, tests).

"""
SQL Gateway

WHY: The hosted backend is the production store, but local development and
the test suite need the same contract without network access. This gateway
speaks the same dict-in/dict-out protocol over Flask-SQLAlchemy models and
issues its own bcrypt-backed sessions.

DESIGN:
- Every public call commits or rolls back on its own; there is no
  transaction spanning two gateway calls (same as the hosted REST API)
- update() is a single conditional UPDATE; callers learn whether their
  match still held from the returned rows
- Auth error messages match the hosted auth service so the UI shows the
  same text regardless of backend
"""

from __future__ import annotations

from datetime import timedelta
from typing import Iterable, Optional

from sqlalchemy import false
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..extensions import db
from ..models import (
    AuditLog,
    Buyer,
    BuyerTransaction,
    Seller,
    SellerTransaction,
    SessionToken,
    User,
    UserRole,
)
from ..time_utils import as_utc_naive, utcnow
from ..validation import ValidationError, coerce_column_value
from . import credentials
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


TABLES = {
    "buyers": Buyer,
    "sellers": Seller,
    "buyer_transactions": BuyerTransaction,
    "seller_transactions": SellerTransaction,
    "audit_logs": AuditLog,
    "user_roles": UserRole,
    "users": User,
}

# (table, embed name) -> relationship attribute on the model
EMBED_ATTRIBUTES = {
    ("buyer_transactions", "buyers"): "buyer",
    ("seller_transactions", "sellers"): "seller",
    ("audit_logs", "user_roles"): "role_assignment",
    ("user_roles", "users"): "user",
}

# Messages returned by the hosted auth service for the same failures
INVALID_CREDENTIALS = "Invalid login credentials"
ALREADY_REGISTERED = "User already registered"
INVALID_EMAIL = "Unable to validate email address: invalid format"


def _identity(user: User) -> Identity:
    return Identity(
        id=user.id,
        email=user.email,
        created_at=user.created_at,
        last_sign_in_at=user.last_sign_in_at,
    )


class SqlGateway(DataGateway):
    name = "sql"

    def __init__(
        self,
        *,
        bcrypt_rounds: int = 12,
        session_ttl: timedelta = timedelta(hours=24),
        min_password_length: int = 6,
    ):
        super().__init__()
        self.bcrypt_rounds = bcrypt_rounds
        self.session_ttl = session_ttl
        self.min_password_length = min_password_length

    # ---- helpers -------------------------------------------------------

    @staticmethod
    def _model(table: str):
        model = TABLES.get(table)
        if model is None:
            raise GatewayError(f"Unknown table: {table}")
        return model

    @staticmethod
    def _column(model, name: str):
        column = model.__table__.columns.get(name)
        if column is None:
            raise GatewayError(f"Unknown column: {model.__tablename__}.{name}")
        return column

    def _coerce(self, model, values: dict) -> dict:
        try:
            return {
                key: coerce_column_value(self._column(model, key), value)
                for key, value in values.items()
            }
        except ValidationError as e:
            raise GatewayError(str(e)) from e

    def _criteria(self, model, filters: Iterable[Filter]) -> list:
        criteria = []
        for f in filters:
            column = self._column(model, f.column)
            if f.op not in FILTER_OPS:
                raise GatewayError(f"Unsupported filter operator: {f.op}")
            try:
                value = coerce_column_value(column, f.value)
            except ValidationError:
                # No stored row can hold a value of the wrong type
                criteria.append(false())
                continue
            if f.op == "eq":
                criteria.append(column == value)
            elif f.op == "gte":
                criteria.append(column >= value)
            else:
                criteria.append(column <= value)
        return criteria

    def _match_criteria(self, model, match: dict) -> list:
        if not match:
            raise GatewayError("Refusing to write without a match")
        return self._criteria(model, [Filter(k, "eq", v) for k, v in match.items()])

    @staticmethod
    def _row(obj, table: str, columns: str, embed: Optional[str]) -> dict:
        row = obj.to_dict()
        if columns and columns.strip() != "*":
            wanted = [c.strip() for c in columns.split(",") if c.strip()]
            row = {c: row.get(c) for c in wanted}
        if embed:
            related = getattr(obj, EMBED_ATTRIBUTES[(table, embed)])
            if related is None:
                row[embed] = None
            else:
                related_row = related.to_dict()
                row[embed] = {c: related_row.get(c) for c in EMBEDS[embed]}
        return row

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
        model = self._model(table)
        if embed and (table, embed) not in EMBED_ATTRIBUTES:
            raise GatewayError(f"Cannot embed {embed} in {table}")

        criteria = self._criteria(model, filters)
        try:
            query = db.session.query(model).filter(*criteria)
            if order_by:
                column = self._column(model, order_by)
                query = query.order_by(column.desc() if descending else column.asc())
            return [self._row(obj, table, columns, embed) for obj in query.all()]
        except SQLAlchemyError as e:
            db.session.rollback()
            raise GatewayError(str(e)) from e

    def insert(self, table: str, row: dict) -> dict:
        model = self._model(table)
        values = self._coerce(model, row)
        try:
            obj = model(**values)
            db.session.add(obj)
            db.session.commit()
            return obj.to_dict()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise GatewayError(str(e)) from e

    def update(self, table: str, values: dict, *, match: dict) -> list[dict]:
        """
        UPDATE ... WHERE <match>; returns the updated rows.

        An empty list means nothing matched (row gone, or a matched column
        changed since the caller read it).
        """
        model = self._model(table)
        criteria = self._match_criteria(model, match)
        coerced = self._coerce(model, values)
        pk = model.__mapper__.primary_key[0]
        try:
            ids = [r[0] for r in db.session.query(pk).filter(*criteria).all()]
            if not ids:
                return []
            changed = (
                db.session.query(model)
                .filter(pk.in_(ids), *criteria)
                .update(coerced, synchronize_session=False)
            )
            db.session.commit()
            if not changed:
                return []
            return [obj.to_dict() for obj in db.session.query(model).filter(pk.in_(ids)).all()]
        except SQLAlchemyError as e:
            db.session.rollback()
            raise GatewayError(str(e)) from e

    def delete(self, table: str, *, match: dict) -> int:
        model = self._model(table)
        criteria = self._match_criteria(model, match)
        try:
            deleted = db.session.query(model).filter(*criteria).delete(synchronize_session=False)
            db.session.commit()
            return deleted
        except SQLAlchemyError as e:
            db.session.rollback()
            raise GatewayError(str(e)) from e

    def count(self, table: str) -> int:
        model = self._model(table)
        try:
            return db.session.query(model).count()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise GatewayError(str(e)) from e

    # ---- sessions ------------------------------------------------------

    def sign_up(self, email: str, password: str) -> Identity:
        email = (email or "").strip().lower()
        if "@" not in email:
            raise AuthError(INVALID_EMAIL)
        if len(password or "") < self.min_password_length:
            raise AuthError(f"Password should be at least {self.min_password_length} characters")

        try:
            if db.session.query(User).filter_by(email=email).first():
                raise AuthError(ALREADY_REGISTERED)
            user = User(
                email=email,
                password_hash=credentials.hash_password(password, rounds=self.bcrypt_rounds),
            )
            db.session.add(user)
            db.session.commit()
            return _identity(user)
        except IntegrityError:
            db.session.rollback()
            raise AuthError(ALREADY_REGISTERED)
        except SQLAlchemyError as e:
            db.session.rollback()
            raise GatewayError(str(e)) from e

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        email = (email or "").strip().lower()
        try:
            user = db.session.query(User).filter_by(email=email).first()
            if not user or not credentials.verify_password(password or "", user.password_hash):
                raise AuthError(INVALID_CREDENTIALS)

            token = credentials.generate_token()
            now = utcnow()
            record = SessionToken(
                user_id=user.id,
                token_hash=credentials.hash_token(token),
                created_at=now,
                expires_at=now + self.session_ttl,
                is_revoked=False,
            )
            user.last_sign_in_at = now
            db.session.add(record)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise GatewayError(str(e)) from e

        session = AuthSession(
            access_token=token,
            identity=_identity(user),
            expires_at=record.expires_at,
        )
        self._emit(AUTH_SIGNED_IN, session)
        return session

    def sign_out(self, access_token: str) -> None:
        try:
            record = (
                db.session.query(SessionToken)
                .filter_by(token_hash=credentials.hash_token(access_token or ""))
                .first()
            )
            if record and not record.is_revoked:
                record.is_revoked = True
                record.revoked_at = utcnow()
                db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise GatewayError(str(e)) from e
        self._emit(AUTH_SIGNED_OUT, None)

    def get_user(self, access_token: str) -> Optional[Identity]:
        if not access_token:
            return None
        try:
            record = (
                db.session.query(SessionToken)
                .filter_by(token_hash=credentials.hash_token(access_token), is_revoked=False)
                .first()
            )
            if not record or as_utc_naive(record.expires_at) <= utcnow():
                return None
            return _identity(record.user)
        except SQLAlchemyError as e:
            db.session.rollback()
            raise GatewayError(str(e)) from e

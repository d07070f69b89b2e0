"""SQLAlchemy-backed database connection and CRUD helpers."""

from __future__ import annotations

import json
import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING, TypedDict

from sqlalchemy import select, text, update
from sqlalchemy.exc import IntegrityError

from problemscout.db.engine import create_db_engine, create_session_factory
from problemscout.db.orm import Base, PaymentRow, ProfileRow, SearchRow
from problemscout.errors import CreditExhaustedError, InvalidInputError, ProfileNotFoundError
from problemscout.models.problem import Problem
from problemscout.models.profile import UserProfile
from problemscout.models.search import SearchRecord

if TYPE_CHECKING:
    from pathlib import Path

    from sqlalchemy import Engine
    from sqlalchemy.orm import Session, sessionmaker


class PaymentDict(TypedDict):
    payment_id: str
    user_id: str
    amount: int
    status: str
    created_at: str


class Database:
    """SQLAlchemy-backed wrapper with CRUD helpers for profiles, searches and payments."""

    def __init__(self, db_path: str | Path = ":memory:"):
        self.db_path = str(db_path)
        self._engine: Engine = create_db_engine(self.db_path)
        self._session_factory: sessionmaker[Session] = create_session_factory(self._engine)

    @property
    def engine(self) -> Engine:
        return self._engine

    def init_schema(self) -> None:
        """Create all tables via ORM metadata."""
        Base.metadata.create_all(self._engine)

    def close(self) -> None:
        self._engine.dispose()

    def check_connection(self) -> bool:
        """Verify the database is reachable. Returns True or raises."""
        with self._session_factory() as session:
            session.execute(text("SELECT 1"))
        return True

    # --- Profiles ---

    def create_profile(
        self,
        email: str,
        first_name: str = "",
        last_name: str = "",
        credits: int = 0,
    ) -> UserProfile:
        email = email.strip().lower()
        if not email:
            raise InvalidInputError("Email is required")
        with self._session_factory() as session:
            row = ProfileRow(
                id=uuid.uuid4().hex,
                email=email,
                first_name=first_name.strip(),
                last_name=last_name.strip(),
                credits=credits,
            )
            session.add(row)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise InvalidInputError(f"A profile for {email} already exists") from exc
            return self._row_to_profile(row)

    def get_profile(self, user_id: str) -> UserProfile | None:
        with self._session_factory() as session:
            row = session.get(ProfileRow, user_id)
            if row is None:
                return None
            return self._row_to_profile(row)

    def consume_credit(self, user_id: str) -> int:
        """Debit one credit and return the remaining balance.

        The decrement is a single conditional UPDATE so two concurrent runs
        can never both spend the last credit.
        """
        with self._session_factory() as session:
            remaining = self._debit(session, user_id)
            session.commit()
            return remaining

    def charge_search(self, record: SearchRecord) -> tuple[SearchRecord, int]:
        """Debit one credit from the record's owner and save the search together.

        Returns the saved record and the remaining balance. Nothing is written
        when the debit fails.
        """
        with self._session_factory() as session:
            remaining = self._debit(session, record.user_id)
            row = self._search_row(record)
            session.add(row)
            session.commit()
            return record.model_copy(update={"id": row.id}), remaining

    def grant_pro(self, user_id: str, credits: int, payment_id: str) -> UserProfile:
        with self._session_factory() as session:
            row = session.get(ProfileRow, user_id)
            if row is None:
                raise ProfileNotFoundError(f"No profile with id {user_id}")
            row.is_pro = True
            row.credits = credits
            row.payment_id = payment_id
            row.updated_at = _utcnow_str()
            session.commit()
            return self._row_to_profile(row)

    # --- Searches ---

    def save_search(self, record: SearchRecord) -> SearchRecord:
        with self._session_factory() as session:
            row = self._search_row(record)
            session.add(row)
            session.commit()
            return record.model_copy(update={"id": row.id})

    def get_search(self, search_id: int) -> SearchRecord | None:
        with self._session_factory() as session:
            row = session.get(SearchRow, search_id)
            if row is None:
                return None
            return self._row_to_search(row)

    def list_searches(self, user_id: str, limit: int = 20) -> list[SearchRecord]:
        """Most recent searches for *user_id*, newest first."""
        with self._session_factory() as session:
            stmt = (
                select(SearchRow)
                .where(SearchRow.user_id == user_id)
                .order_by(SearchRow.created_at.desc(), SearchRow.id.desc())
                .limit(limit)
            )
            rows = session.scalars(stmt).all()
            return [self._row_to_search(r) for r in rows]

    def list_searches_since(self, since: datetime) -> list[SearchRecord]:
        """All users' searches created at or after *since*, oldest first."""
        with self._session_factory() as session:
            stmt = (
                select(SearchRow)
                .where(SearchRow.created_at >= _format_dt(since))
                .order_by(SearchRow.created_at, SearchRow.id)
            )
            rows = session.scalars(stmt).all()
            return [self._row_to_search(r) for r in rows]

    # --- Payments ---

    def redeem_payment(
        self,
        payment_id: str,
        user_id: str,
        amount: int,
        status: str,
        credits: int,
    ) -> tuple[PaymentDict, bool]:
        """Record *payment_id* against *user_id* and grant Pro in one transaction.

        Returns the ledger entry that owns the payment and whether this call
        created it. When the payment id is already in the ledger nothing is
        changed and the existing entry is returned, which may belong to
        another user.
        """
        with self._session_factory() as session:
            profile = session.get(ProfileRow, user_id)
            if profile is None:
                raise ProfileNotFoundError(f"No profile with id {user_id}")
            profile.is_pro = True
            profile.credits = credits
            profile.payment_id = payment_id
            profile.updated_at = _utcnow_str()
            row = PaymentRow(payment_id=payment_id, user_id=user_id, amount=amount, status=status)
            session.add(row)
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                existing = self._payment_by_id(session, payment_id)
                if existing is None:
                    raise
                return existing, False
            return self._payment_dict(row), True

    def get_payment(self, payment_id: str) -> PaymentDict | None:
        with self._session_factory() as session:
            return self._payment_by_id(session, payment_id)

    # --- Helpers ---

    @staticmethod
    def _debit(session: Session, user_id: str) -> int:
        """Conditionally decrement one credit inside *session*; return the new balance."""
        result = session.execute(
            update(ProfileRow)
            .where(ProfileRow.id == user_id, ProfileRow.credits > 0)
            .values(credits=ProfileRow.credits - 1, updated_at=_utcnow_str())
        )
        if result.rowcount == 0:
            if session.get(ProfileRow, user_id) is None:
                raise ProfileNotFoundError(f"No profile with id {user_id}")
            raise CreditExhaustedError("No research credits remaining")
        remaining = session.scalar(select(ProfileRow.credits).where(ProfileRow.id == user_id))
        return int(remaining or 0)

    @staticmethod
    def _search_row(record: SearchRecord) -> SearchRow:
        return SearchRow(
            user_id=record.user_id,
            topic=record.topic,
            results_json=json.dumps([p.model_dump(mode="json") for p in record.results]),
            created_at=_format_dt(record.created_at),
        )

    @staticmethod
    def _payment_by_id(session: Session, payment_id: str) -> PaymentDict | None:
        row = session.scalars(select(PaymentRow).where(PaymentRow.payment_id == payment_id)).first()
        return None if row is None else Database._payment_dict(row)

    @staticmethod
    def _payment_dict(row: PaymentRow) -> PaymentDict:
        return {
            "payment_id": row.payment_id,
            "user_id": row.user_id,
            "amount": row.amount,
            "status": row.status,
            "created_at": row.created_at,
        }

    @staticmethod
    def _parse_dt(value: str) -> datetime:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))

    @staticmethod
    def _row_to_profile(row: ProfileRow) -> UserProfile:
        return UserProfile(
            id=row.id,
            first_name=row.first_name,
            last_name=row.last_name,
            email=row.email,
            credits=row.credits,
            is_pro=row.is_pro,
            payment_id=row.payment_id,
            created_at=Database._parse_dt(row.created_at),
            updated_at=Database._parse_dt(row.updated_at),
        )

    @staticmethod
    def _row_to_search(row: SearchRow) -> SearchRecord:
        return SearchRecord(
            id=row.id,
            user_id=row.user_id,
            topic=row.topic,
            results=[Problem.model_validate(p) for p in json.loads(row.results_json)],
            created_at=Database._parse_dt(row.created_at),
        )


def _format_dt(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def _utcnow_str() -> str:
    return _format_dt(datetime.now(UTC))

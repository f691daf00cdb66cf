"""Persistence layer for saved EMI quotes.

Borrowers can save a calculation under a name and compare several loan offers
side by side. Quotes are kept in a database keyed by an anonymous session
token. SQLite is the default for local development, but any
SQLAlchemy-compatible URL (PostgreSQL, MySQL) works.

The loan terms and headline figures live in typed columns; only the
period-by-period schedule is stored as JSON.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import Column, DateTime, Integer, Numeric, String, Text, create_engine, delete, select
from sqlalchemy.orm import declarative_base, sessionmaker

from emi_calc.data_models import EmiResult

logger = logging.getLogger(__name__)

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SavedQuoteModel(Base):
    __tablename__ = "saved_emi_quotes"
    __table_args__ = {"sqlite_autoincrement": True}

    # insertion order; newest quote has the highest seq
    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(32), unique=True, index=True, nullable=False)
    user_token = Column(String(64), index=True, nullable=False)
    name = Column(String(255), nullable=False)
    principal = Column(Numeric(20, 6), nullable=False)
    annual_rate = Column(Numeric(9, 4), nullable=False)
    tenure_months = Column(Integer, nullable=False)
    installment = Column(Numeric(20, 6), nullable=False)
    total_payable = Column(Numeric(24, 6), nullable=False)
    schedule_json = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)


class ScenarioStore:
    """Database-backed store of saved quotes, capped per user.

    When a user saves more than ``max_per_user`` quotes the oldest ones are
    dropped. A cap of zero or less disables trimming.
    """

    def __init__(self, url: str, *, max_per_user: int = 10) -> None:
        self._engine = create_engine(url, future=True)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False, future=True)
        self._max_per_user = max_per_user

    def list_scenarios(self, user_token: Optional[str]) -> List[Dict[str, Any]]:
        """Return the user's quotes, oldest first."""
        if not user_token:
            return []
        with self._session_factory() as session:
            rows = session.execute(
                select(SavedQuoteModel)
                .where(SavedQuoteModel.user_token == user_token)
                .order_by(SavedQuoteModel.seq.asc())
            ).scalars()
            return [self._to_dict(row) for row in rows]

    def add_scenario(self, user_token: Optional[str], scenario_id: str, name: str, result: EmiResult) -> None:
        if not user_token:
            return
        terms = result.terms
        row = SavedQuoteModel(
            id=scenario_id,
            user_token=user_token,
            name=name,
            principal=terms.principal,
            annual_rate=terms.annual_rate,
            tenure_months=terms.tenure_months,
            installment=result.installment,
            total_payable=sum((p.installment for p in result.schedule), Decimal(0)),
            schedule_json=json.dumps([p.to_dict() for p in result.schedule]),
        )
        with self._session_factory() as session:
            session.add(row)
            session.commit()
        self._trim_user(user_token)

    def remove_scenario(self, user_token: Optional[str], scenario_id: Optional[str]) -> bool:
        """Delete one of the user's quotes; ``False`` when there was none."""
        if not user_token or not scenario_id:
            return False
        with self._session_factory() as session:
            deleted = session.execute(
                delete(SavedQuoteModel).where(
                    SavedQuoteModel.user_token == user_token,
                    SavedQuoteModel.id == scenario_id,
                )
            ).rowcount
            session.commit()
        return deleted > 0

    def clear_scenarios(self, user_token: Optional[str]) -> None:
        if not user_token:
            return
        with self._session_factory() as session:
            session.execute(delete(SavedQuoteModel).where(SavedQuoteModel.user_token == user_token))
            session.commit()

    def _trim_user(self, user_token: str) -> None:
        if self._max_per_user <= 0:
            return
        with self._session_factory() as session:
            stale = session.execute(
                select(SavedQuoteModel.seq)
                .where(SavedQuoteModel.user_token == user_token)
                .order_by(SavedQuoteModel.seq.desc())
                .offset(self._max_per_user)
            ).scalars().all()
            if not stale:
                return
            session.execute(delete(SavedQuoteModel).where(SavedQuoteModel.seq.in_(stale)))
            session.commit()
        logger.info("Trimmed %d saved quotes for user %s", len(stale), user_token)

    @staticmethod
    def _to_dict(row: SavedQuoteModel) -> Dict[str, Any]:
        principal = Decimal(row.principal)
        total_payable = Decimal(row.total_payable)
        return {
            "id": row.id,
            "name": row.name,
            "terms": {
                "principal": float(principal),
                "annual_rate": float(row.annual_rate),
                "tenure_months": row.tenure_months,
            },
            "summary": {
                "principal": float(principal),
                "installment": float(row.installment),
                "tenure_months": row.tenure_months,
                "total_payable": float(total_payable),
                "total_interest": float(total_payable - principal),
            },
            "schedule": json.loads(row.schedule_json),
            "created_at": row.created_at.isoformat(),
        }


def create_store(url: str, max_per_user: int = 10) -> ScenarioStore:
    return ScenarioStore(url, max_per_user=max_per_user)

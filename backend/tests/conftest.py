"""
Shared fixtures: an in-memory SQLite database and small factories for the
rows a recalculation reads.
"""

from __future__ import annotations

from typing import Iterator, Optional

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import Base
from app.models import (
    Assumptions,
    FinancialModel,
    RevenueLineItem,
    RevenuePeriod,
)


@pytest.fixture
def engine():
    """Fresh in-memory database shared across threads (TestClient runs handlers in a pool)."""
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(test_engine, "connect")
    def _enable_fk(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def db(engine) -> Iterator[Session]:
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = factory()
    try:
        yield session
    finally:
        session.close()


# ============================================================================
# Factories
# ============================================================================


def make_model(
    db: Session,
    start_year: int = 2024,
    end_year: int = 2026,
    shares_outstanding: Optional[float] = 1_000_000,
    **kwargs,
) -> FinancialModel:
    model = FinancialModel(
        name=kwargs.pop("name", "Test Co"),
        start_year=start_year,
        end_year=end_year,
        shares_outstanding=shares_outstanding,
        **kwargs,
    )
    db.add(model)
    db.commit()
    return model


def add_line_item(db: Session, model: FinancialModel, name: str = "Subscriptions") -> RevenueLineItem:
    item = RevenueLineItem(model_id=model.id, name=name)
    db.add(item)
    db.commit()
    return item


def add_period(
    db: Session,
    item: RevenueLineItem,
    year: int,
    amount: float,
    quarter: Optional[int] = None,
    is_actual: bool = False,
) -> RevenuePeriod:
    period = RevenuePeriod(
        line_item_id=item.id,
        model_id=item.model_id,
        year=year,
        quarter=quarter,
        amount=amount,
        is_actual=is_actual,
    )
    db.add(period)
    db.commit()
    return period


def add_assumptions(db: Session, model: FinancialModel, **kwargs) -> Assumptions:
    row = Assumptions(model_id=model.id, **kwargs)
    db.add(row)
    db.commit()
    return row

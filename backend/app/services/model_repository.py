"""
model_repository.py — Database helpers for the recalculation engine.

Thin wrapper providing typed reads and writes around the model-scoped tables.
Nothing here commits; the caller owns the transaction.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional, Type, TypeVar

from sqlalchemy.orm import Session

from app.core.logging import get_logger
from app.models import (
    Assumptions,
    DcfValuation,
    FinancialModel,
    RevenueLineItem,
    RevenuePeriod,
    ScenarioRevenue,
    ValuationComparison,
)
from app.services.modeling.types import (
    Year,
    record_from_orm,
    record_to_columns,
)

logger = get_logger(__name__)

R = TypeVar("R")


class ModelRepository:
    """
    Typed helpers around one database session.
    """

    def __init__(self, db: Session):
        self._db = db

    # ------------------------------------------------------------------ #
    # Inputs
    def get_model(self, model_id: str) -> Optional[FinancialModel]:
        return self._db.get(FinancialModel, model_id)

    def list_line_items(self, model_id: str) -> List[RevenueLineItem]:
        return (
            self._db.query(RevenueLineItem)
            .filter(RevenueLineItem.model_id == model_id)
            .order_by(RevenueLineItem.sort_order, RevenueLineItem.id)
            .all()
        )

    def list_periods(self, model_id: str) -> List[RevenuePeriod]:
        return (
            self._db.query(RevenuePeriod)
            .filter(RevenuePeriod.model_id == model_id)
            .order_by(RevenuePeriod.year, RevenuePeriod.quarter, RevenuePeriod.id)
            .all()
        )

    def get_base_assumptions(self, model_id: str) -> Optional[Assumptions]:
        """Base case row (scenario_id NULL), else any row for the model."""
        rows = self._db.query(Assumptions).filter(Assumptions.model_id == model_id).all()
        for row in rows:
            if row.scenario_id is None:
                return row
        return rows[0] if rows else None

    # ------------------------------------------------------------------ #
    # Statement rows
    def actual_records(
        self, model_id: str, table: Type, record_cls: Type[R]
    ) -> Dict[Year, R]:
        """Actual rows of one statement table as typed records, by year."""
        rows = (
            self._db.query(table)
            .filter(table.model_id == model_id, table.is_actual.is_(True))
            .all()
        )
        return {row.year: record_from_orm(record_cls, row) for row in rows}

    def statement_records(self, model_id: str, table: Type, record_cls: Type[R]) -> List[R]:
        """Every stored row of one statement table, actual and projected, by year."""
        rows = (
            self._db.query(table)
            .filter(table.model_id == model_id)
            .order_by(table.year)
            .all()
        )
        return [record_from_orm(record_cls, row) for row in rows]

    def replace_projected_rows(self, model_id: str, table: Type, records: Iterable) -> int:
        """
        Delete the model's projected rows in `table` and insert `records`.
        Actual records in the input are skipped.
        """
        deleted = (
            self._db.query(table)
            .filter(table.model_id == model_id, table.is_actual.is_(False))
            .delete(synchronize_session=False)
        )
        new_rows = [
            table(model_id=model_id, **record_to_columns(r))
            for r in records
            if not r.is_actual
        ]
        self._db.add_all(new_rows)
        self._db.flush()
        logger.debug(
            "%s: replaced %d projected rows with %d", table.__tablename__, deleted, len(new_rows)
        )
        return len(new_rows)

    # ------------------------------------------------------------------ #
    # Valuation rows
    def get_dcf(self, model_id: str) -> Optional[DcfValuation]:
        return self._db.query(DcfValuation).filter(DcfValuation.model_id == model_id).one_or_none()

    def get_comparison(self, model_id: str) -> Optional[ValuationComparison]:
        return (
            self._db.query(ValuationComparison)
            .filter(ValuationComparison.model_id == model_id)
            .one_or_none()
        )

    def upsert(self, existing, table: Type, model_id: str, values: Mapping):
        """Update `existing` in place, or insert a new `table` row."""
        row = existing if existing is not None else table(model_id=model_id)
        for key, value in values.items():
            setattr(row, key, value)
        if existing is None:
            self._db.add(row)
        self._db.flush()
        return row

    # ------------------------------------------------------------------ #
    # Scenario revenue
    def list_scenario_revenue(self, model_id: str, source: str) -> Dict[Year, Dict[str, float]]:
        rows = (
            self._db.query(ScenarioRevenue)
            .filter(ScenarioRevenue.model_id == model_id, ScenarioRevenue.source == source)
            .order_by(ScenarioRevenue.year)
            .all()
        )
        out: Dict[Year, Dict[str, float]] = {}
        for row in rows:
            out.setdefault(row.year, {})[row.scenario] = row.revenue
        return out

    def replace_scenario_revenue(
        self, model_id: str, source: str, series: Mapping[Year, Mapping[str, float]]
    ) -> None:
        """Drop every row for (model, source) and write `series`."""
        (
            self._db.query(ScenarioRevenue)
            .filter(ScenarioRevenue.model_id == model_id, ScenarioRevenue.source == source)
            .delete(synchronize_session=False)
        )
        self._db.add_all(
            ScenarioRevenue(model_id=model_id, source=source, year=year, scenario=scenario, revenue=value)
            for year, by_scenario in series.items()
            for scenario, value in by_scenario.items()
        )
        self._db.flush()

    def merge_scenario_revenue(
        self, model_id: str, source: str, series: Mapping[Year, Mapping[str, float]]
    ) -> None:
        """Upsert `series` by (year, scenario); other years are kept."""
        existing = {
            (row.year, row.scenario): row
            for row in self._db.query(ScenarioRevenue).filter(
                ScenarioRevenue.model_id == model_id, ScenarioRevenue.source == source
            )
        }
        for year, by_scenario in series.items():
            for scenario, value in by_scenario.items():
                row = existing.get((year, scenario))
                if row is None:
                    self._db.add(
                        ScenarioRevenue(
                            model_id=model_id, source=source, year=year,
                            scenario=scenario, revenue=value,
                        )
                    )
                else:
                    row.revenue = value
        self._db.flush()

    # ------------------------------------------------------------------ #
    # Revenue periods
    def upsert_periods(self, model_id: str, projections: Iterable) -> Dict[str, int]:
        """
        Write projected revenue amounts: update the matching period row when one
        exists for (line item, year, quarter), insert otherwise.
        """
        existing = {
            (p.line_item_id, p.year, p.quarter or None): p
            for p in self.list_periods(model_id)
        }
        created = updated = 0
        for proj in projections:
            row = existing.get((proj.line_item_id, proj.year, proj.quarter))
            if row is None:
                self._db.add(
                    RevenuePeriod(
                        line_item_id=proj.line_item_id,
                        model_id=model_id,
                        year=proj.year,
                        quarter=proj.quarter,
                        amount=proj.amount,
                        is_actual=False,
                    )
                )
                created += 1
            else:
                row.amount = proj.amount
                row.is_actual = False
                updated += 1
        self._db.flush()
        return {"created": created, "updated": updated}

"""
revenue.py — ORM Models for Revenue Inputs

Purpose:
- RevenueLineItem: a named revenue stream belonging to a FinancialModel.
- RevenuePeriod: one amount for (line item, year, quarter). `quarter` is NULL
  for an annual amount.

Aggregation rule (see services/modeling/revenue.py):
- Quarterly rows take precedence over an annual row for the same year.

Both tables are cascade-deleted with their parent.
"""

from sqlalchemy import Boolean, Column, Float, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from app.core.database import Base
from app.models.financial_model import new_id


class RevenueLineItem(Base):
    __tablename__ = "revenue_line_items"

    id = Column(String, primary_key=True, default=new_id)
    model_id = Column(
        String, ForeignKey("financial_models.id", ondelete="CASCADE"), nullable=False
    )
    name = Column(String, nullable=False)
    sort_order = Column(Integer, nullable=False, default=0)

    model = relationship("FinancialModel", back_populates="line_items")
    periods = relationship(
        "RevenuePeriod",
        back_populates="line_item",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self):
        return f"<RevenueLineItem {self.name} | model={self.model_id}>"


class RevenuePeriod(Base):
    __tablename__ = "revenue_periods"

    id = Column(String, primary_key=True, default=new_id)
    line_item_id = Column(
        String, ForeignKey("revenue_line_items.id", ondelete="CASCADE"), nullable=False
    )
    model_id = Column(
        String, ForeignKey("financial_models.id", ondelete="CASCADE"), nullable=False
    )

    year = Column(Integer, nullable=False)
    quarter = Column(Integer, nullable=True)  # 1-4, or NULL for an annual amount
    amount = Column(Float, nullable=False, default=0)
    is_actual = Column(Boolean, nullable=False, default=False)

    line_item = relationship("RevenueLineItem", back_populates="periods")

    __table_args__ = (
        Index("idx_revenue_period_model", "model_id"),
        Index("idx_revenue_period_item_year", "line_item_id", "year", "quarter"),
    )

    def __repr__(self):
        q = f"Q{self.quarter}" if self.quarter else "FY"
        return f"<RevenuePeriod {self.line_item_id} {self.year} {q} = {self.amount}>"

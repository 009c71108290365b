"""
financial_model.py — ORM Model for Financial Models

Purpose:
- Represent one company (or tracked crypto project) scenario universe.
- Holds the year range and the model-level knobs the recalculation engine
  reads: share count, scenario multipliers, target net margin, growth decay.

Important Design Rule:
- Created and edited by the user through the API layer.
- Read-only to the recalculation engine.
"""

import datetime
import uuid

from sqlalchemy import Column, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import relationship

from app.core.database import Base


def new_id() -> str:
    return str(uuid.uuid4())


class FinancialModel(Base):
    __tablename__ = "financial_models"

    id = Column(String, primary_key=True, default=new_id)

    # Display Metadata
    name = Column(String, nullable=False)
    ticker = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    currency = Column(String, nullable=False, default="USD")

    # Projection horizon (inclusive)
    start_year = Column(Integer, nullable=False)
    end_year = Column(Integer, nullable=False)

    shares_outstanding = Column(Float, nullable=True)  # None falls back to DEFAULT_SHARES_OUTSTANDING

    # Forecasting knobs
    growth_decay_rate = Column(Float, nullable=True, default=0)
    target_net_margin = Column(Float, nullable=True)  # None disables the glide path

    # Scenario multipliers applied to growth (forecast) and DCF price (valuation)
    scenario_bull_multiplier = Column(Float, nullable=True, default=1.2)
    scenario_base_multiplier = Column(Float, nullable=True, default=1.0)
    scenario_bear_multiplier = Column(Float, nullable=True, default=0.8)

    created_at = Column(DateTime, default=datetime.datetime.utcnow)

    line_items = relationship(
        "RevenueLineItem",
        back_populates="model",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def years(self):
        """All model years in order."""
        return list(range(self.start_year, self.end_year + 1))

    def __repr__(self):
        return f"<FinancialModel {self.name} | {self.start_year}-{self.end_year}>"

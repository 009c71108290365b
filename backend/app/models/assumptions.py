"""
assumptions.py — ORM Models for Cost / Working-Capital Assumptions

Purpose:
- Assumptions: cost percentages and working-capital ratios driving the
  projected statements. The base case row has `scenario_id` NULL; it is the
  only row the recalculation engine reads.
- Scenario: named user scenarios that non-base Assumptions rows hang off.

Percent fields are fractions (0.28 == 28%).
"""

from sqlalchemy import Column, Float, ForeignKey, String
from sqlalchemy.orm import relationship

from app.core.database import Base
from app.models.financial_model import new_id


class Scenario(Base):
    __tablename__ = "scenarios"

    id = Column(String, primary_key=True, default=new_id)
    model_id = Column(
        String, ForeignKey("financial_models.id", ondelete="CASCADE"), nullable=False
    )
    name = Column(String, nullable=False)
    type = Column(String, nullable=False, default="base")  # bull / base / bear

    def __repr__(self):
        return f"<Scenario {self.name} ({self.type})>"


class Assumptions(Base):
    __tablename__ = "assumptions"

    id = Column(String, primary_key=True, default=new_id)
    model_id = Column(
        String, ForeignKey("financial_models.id", ondelete="CASCADE"), nullable=False
    )
    scenario_id = Column(
        String, ForeignKey("scenarios.id", ondelete="CASCADE"), nullable=True
    )

    # Income statement cost structure
    cogs_percent = Column(Float, nullable=False, default=0.30)
    sales_marketing_percent = Column(Float, nullable=False, default=0.20)
    rd_percent = Column(Float, nullable=False, default=0.15)
    ga_percent = Column(Float, nullable=False, default=0.10)
    depreciation_percent = Column(Float, nullable=False, default=0.01)
    tax_rate = Column(Float, nullable=False, default=0.25)

    # Balance sheet drivers
    capex_percent = Column(Float, nullable=False, default=0.05)
    ar_percent = Column(Float, nullable=False, default=0.15)
    ap_percent = Column(Float, nullable=False, default=0.15)
    initial_cash = Column(Float, nullable=False, default=100000)

    scenario = relationship("Scenario")

    def __repr__(self):
        return f"<Assumptions model={self.model_id} scenario={self.scenario_id}>"

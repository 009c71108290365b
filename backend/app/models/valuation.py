"""
valuation.py — ORM Models for Valuation Outputs

Purpose:
- DcfValuation: one row per model. Holds user-set DCF parameters (rates,
  weights, current price, debt) and the engine-computed outputs. The engine
  upserts this row, so user parameters survive every recalculation.
- ValuationComparison: one row per model. Holds P/R and PEG multiples per
  scenario and the computed price targets.
- ScenarioRevenue: year -> scenario -> revenue, queryable on its own.
    * source = "comparison": series derived by the valuation comparator
    * source = "forecast":   series produced by the forward forecaster
"""

from sqlalchemy import Column, Float, ForeignKey, Index, Integer, String, UniqueConstraint

from app.core.database import Base
from app.models.financial_model import new_id


class DcfValuation(Base):
    __tablename__ = "dcf_valuations"

    id = Column(String, primary_key=True, default=new_id)
    model_id = Column(
        String,
        ForeignKey("financial_models.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    # User-set parameters
    risk_free_rate = Column(Float, nullable=False, default=0.043)
    beta = Column(Float, nullable=False, default=1.25)
    market_return = Column(Float, nullable=False, default=0.10)
    cost_of_debt = Column(Float, nullable=False, default=0.055)
    tax_rate = Column(Float, nullable=False, default=0.25)
    equity_weight = Column(Float, nullable=False, default=0.70)
    debt_weight = Column(Float, nullable=False, default=0.30)
    long_term_growth = Column(Float, nullable=False, default=0.025)
    current_share_price = Column(Float, default=45)
    total_debt = Column(Float, default=35_000_000)

    # Engine outputs
    shares_outstanding = Column(Float, default=0)
    cost_of_equity = Column(Float, default=0)
    wacc = Column(Float, default=0)
    npv = Column(Float, default=0)
    terminal_value = Column(Float, default=0)
    terminal_value_discounted = Column(Float, default=0)
    target_equity_value = Column(Float, default=0)
    target_value = Column(Float, default=0)
    target_price_per_share = Column(Float, default=0)

    def __repr__(self):
        return f"<DcfValuation {self.model_id} | target={self.target_price_per_share}>"


class ValuationComparison(Base):
    __tablename__ = "valuation_comparisons"

    id = Column(String, primary_key=True, default=new_id)
    model_id = Column(
        String,
        ForeignKey("financial_models.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    current_share_price = Column(Float, default=0)

    # Price / revenue multiples
    pr_bull_multiple = Column(Float, default=10)
    pr_base_multiple = Column(Float, default=7.5)
    pr_bear_multiple = Column(Float, default=5)

    # PEG multiples applied to P/E
    pe_bull_peg = Column(Float, default=2)
    pe_base_peg = Column(Float, default=1.5)
    pe_bear_peg = Column(Float, default=1)

    # Computed targets
    pr_bull_target = Column(Float, default=0)
    pr_base_target = Column(Float, default=0)
    pr_bear_target = Column(Float, default=0)
    pe_bull_target = Column(Float, default=0)
    pe_base_target = Column(Float, default=0)
    pe_bear_target = Column(Float, default=0)
    dcf_bull_target = Column(Float, default=0)
    dcf_base_target = Column(Float, default=0)
    dcf_bear_target = Column(Float, default=0)
    average_target = Column(Float, default=0)
    percent_to_target = Column(Float, default=0)

    # Inputs captured at computation time
    revenue_per_share = Column(Float, default=0)
    earnings_growth = Column(Float, default=0)

    def __repr__(self):
        return f"<ValuationComparison {self.model_id} | avg={self.average_target}>"


class ScenarioRevenue(Base):
    __tablename__ = "scenario_revenues"

    id = Column(String, primary_key=True, default=new_id)
    model_id = Column(
        String, ForeignKey("financial_models.id", ondelete="CASCADE"), nullable=False
    )
    source = Column(String, nullable=False)    # "comparison" | "forecast"
    year = Column(Integer, nullable=False)
    scenario = Column(String, nullable=False)  # "bull" | "base" | "bear"
    revenue = Column(Float, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("model_id", "source", "year", "scenario", name="uq_scenario_revenue_key"),
        Index("idx_scenario_revenue_model_year", "model_id", "year"),
    )

    def __repr__(self):
        return f"<ScenarioRevenue {self.model_id} {self.source} {self.year} {self.scenario} = {self.revenue}>"

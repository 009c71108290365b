"""
statements.py — ORM Models for Annual Financial Statement Lines

Purpose:
- One row per (model, year) for each of:
    * Income statement  (income_statement_lines)
    * Balance sheet     (balance_sheet_lines)
    * Cash flow         (cash_flow_lines)
- `is_actual` marks rows sourced from real filings / entered actuals.
  Projected rows (`is_actual = False`) are owned by the recalculation engine
  and replaced on every run; actual rows are never touched by it.

Column names match the typed records in services/modeling/types.py so a
record converts to a row field-for-field.
"""

from sqlalchemy import Boolean, Column, Float, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import declared_attr

from app.core.database import Base
from app.models.financial_model import new_id


class StatementLineMixin:
    """Shared identity columns for annual statement rows."""

    id = Column(String, primary_key=True, default=new_id)

    @declared_attr
    def model_id(cls):
        return Column(
            String, ForeignKey("financial_models.id", ondelete="CASCADE"), nullable=False
        )

    year = Column(Integer, nullable=False)
    is_actual = Column(Boolean, nullable=False, default=False)

    @declared_attr
    def __table_args__(cls):
        return (UniqueConstraint("model_id", "year", name=f"uq_{cls.__tablename__}_model_year"),)

    def __repr__(self):
        kind = "actual" if self.is_actual else "projected"
        return f"<{type(self).__name__} {self.model_id} {self.year} ({kind})>"


class IncomeStatementLine(StatementLineMixin, Base):
    __tablename__ = "income_statement_lines"

    revenue = Column(Float, default=0)
    cogs = Column(Float, default=0)
    gross_profit = Column(Float, default=0)
    sales_marketing = Column(Float, default=0)
    research_development = Column(Float, default=0)
    general_admin = Column(Float, default=0)
    depreciation = Column(Float, default=0)
    total_expenses = Column(Float, default=0)
    operating_income = Column(Float, default=0)
    ebitda = Column(Float, default=0)
    other_income = Column(Float, default=0)
    pre_tax_income = Column(Float, default=0)
    income_tax = Column(Float, default=0)
    net_income = Column(Float, default=0)
    shares_outstanding = Column(Float, default=0)
    eps = Column(Float, default=0)
    non_gaap_eps = Column(Float, default=0)

    # Percentages actually applied for the year (after the glide path)
    cogs_percent = Column(Float, default=0)
    sm_percent = Column(Float, default=0)
    rd_percent = Column(Float, default=0)
    ga_percent = Column(Float, default=0)
    depreciation_percent = Column(Float, default=0)
    tax_rate = Column(Float, default=0)


class BalanceSheetLine(StatementLineMixin, Base):
    __tablename__ = "balance_sheet_lines"

    # Assets
    cash = Column(Float, default=0)
    short_term_investments = Column(Float, default=0)
    accounts_receivable = Column(Float, default=0)
    inventory = Column(Float, default=0)
    total_current_assets = Column(Float, default=0)
    equipment = Column(Float, default=0)
    depreciation_accum = Column(Float, default=0)
    capex = Column(Float, default=0)
    total_long_term_assets = Column(Float, default=0)
    total_assets = Column(Float, default=0)

    # Liabilities
    accounts_payable = Column(Float, default=0)
    short_term_debt = Column(Float, default=0)
    total_current_liabilities = Column(Float, default=0)
    long_term_debt = Column(Float, default=0)
    total_long_term_liabilities = Column(Float, default=0)
    total_liabilities = Column(Float, default=0)

    # Equity
    retained_earnings = Column(Float, default=0)
    common_shares = Column(Float, default=0)
    total_equity = Column(Float, default=0)
    total_liabilities_and_equity = Column(Float, default=0)

    # Drivers applied for the year
    ar_percent = Column(Float, default=0)
    inventory_percent = Column(Float, default=0)
    ap_percent = Column(Float, default=0)
    capex_percent = Column(Float, default=0)


class CashFlowLine(StatementLineMixin, Base):
    __tablename__ = "cash_flow_lines"

    # Operating
    net_income = Column(Float, default=0)
    depreciation_add = Column(Float, default=0)
    ar_change = Column(Float, default=0)
    inventory_change = Column(Float, default=0)
    ap_change = Column(Float, default=0)
    operating_cash_flow = Column(Float, default=0)

    # Investing
    capex = Column(Float, default=0)
    investing_cash_flow = Column(Float, default=0)

    # Financing
    short_term_debt_change = Column(Float, default=0)
    long_term_debt_change = Column(Float, default=0)
    common_shares_change = Column(Float, default=0)
    financing_cash_flow = Column(Float, default=0)

    net_cash_change = Column(Float, default=0)
    beginning_cash = Column(Float, default=0)
    ending_cash = Column(Float, default=0)
    free_cash_flow = Column(Float, default=0)

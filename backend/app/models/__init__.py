"""
ORM models. Importing this package registers every table on Base.metadata.
"""

from app.models.financial_model import FinancialModel
from app.models.revenue import RevenueLineItem, RevenuePeriod
from app.models.assumptions import Assumptions, Scenario
from app.models.statements import BalanceSheetLine, CashFlowLine, IncomeStatementLine
from app.models.valuation import DcfValuation, ScenarioRevenue, ValuationComparison

__all__ = [
    "FinancialModel",
    "RevenueLineItem",
    "RevenuePeriod",
    "Assumptions",
    "Scenario",
    "IncomeStatementLine",
    "BalanceSheetLine",
    "CashFlowLine",
    "DcfValuation",
    "ValuationComparison",
    "ScenarioRevenue",
]

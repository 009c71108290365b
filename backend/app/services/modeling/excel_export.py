"""
excel_export.py — Workbook Export of a Recalculated Model

Purpose:
- Write the persisted output of the last recalculation into an .xlsx workbook
  built in memory with xlsxwriter.
- Sheets:
    * Income Statement / Balance Sheet / Cash Flow: one column per year,
      headers suffixed "A" (actual) or "E" (projected)
    * DCF: parameters and computed outputs
    * Valuation: bull / base / bear targets per method, plus scenario revenue

This module does NOT:
- Recalculate anything. Export a model after `recalculate_model` has run;
  sheets for stages that never ran carry a note instead of numbers.
"""

from __future__ import annotations

from io import BytesIO
from typing import Any, Dict, List, Optional, Sequence, Tuple

import xlsxwriter
from sqlalchemy.orm import Session

from app.core.logging import get_logger
from app.models import BalanceSheetLine, CashFlowLine, IncomeStatementLine
from app.services.model_repository import ModelRepository
from app.services.modeling.scenarios import SCENARIOS
from app.services.modeling.types import BalanceSheetRow, CashFlowRow, IncomeStatementRow
from app.services.recalculation import ModelNotFoundError

logger = get_logger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# (label, record field, format key)
Layout = Sequence[Tuple[str, str, str]]

INCOME_STATEMENT_LAYOUT: Layout = (
    ("Revenue", "revenue", "number"),
    ("(-) COGS", "cogs", "number"),
    ("Gross Profit", "gross_profit", "total"),
    ("(-) Sales & Marketing", "sales_marketing", "number"),
    ("(-) Research & Development", "research_development", "number"),
    ("(-) General & Administrative", "general_admin", "number"),
    ("(-) Depreciation", "depreciation", "number"),
    ("Total Operating Expenses", "total_expenses", "total"),
    ("Operating Income", "operating_income", "total"),
    ("EBITDA", "ebitda", "number"),
    ("Other Income", "other_income", "number"),
    ("Pre-Tax Income", "pre_tax_income", "total"),
    ("(-) Income Tax", "income_tax", "number"),
    ("Net Income", "net_income", "total"),
    ("Shares Outstanding", "shares_outstanding", "number"),
    ("EPS", "eps", "currency"),
    ("Non-GAAP EPS", "non_gaap_eps", "currency"),
    ("COGS %", "cogs_percent", "percent"),
    ("S&M %", "sm_percent", "percent"),
    ("R&D %", "rd_percent", "percent"),
    ("G&A %", "ga_percent", "percent"),
    ("Depreciation %", "depreciation_percent", "percent"),
    ("Tax Rate", "tax_rate", "percent"),
)

BALANCE_SHEET_LAYOUT: Layout = (
    ("Cash", "cash", "number"),
    ("Short-Term Investments", "short_term_investments", "number"),
    ("Accounts Receivable", "accounts_receivable", "number"),
    ("Inventory", "inventory", "number"),
    ("Total Current Assets", "total_current_assets", "total"),
    ("Equipment", "equipment", "number"),
    ("(-) Accumulated Depreciation", "depreciation_accum", "number"),
    ("CapEx", "capex", "number"),
    ("Total Long-Term Assets", "total_long_term_assets", "total"),
    ("Total Assets", "total_assets", "total"),
    ("Accounts Payable", "accounts_payable", "number"),
    ("Short-Term Debt", "short_term_debt", "number"),
    ("Total Current Liabilities", "total_current_liabilities", "total"),
    ("Long-Term Debt", "long_term_debt", "number"),
    ("Total Long-Term Liabilities", "total_long_term_liabilities", "total"),
    ("Total Liabilities", "total_liabilities", "total"),
    ("Retained Earnings", "retained_earnings", "number"),
    ("Common Shares", "common_shares", "number"),
    ("Total Equity", "total_equity", "total"),
    ("Total Liabilities & Equity", "total_liabilities_and_equity", "total"),
)

CASH_FLOW_LAYOUT: Layout = (
    ("Net Income", "net_income", "number"),
    ("(+) Depreciation", "depreciation_add", "number"),
    ("(-) Change in AR", "ar_change", "number"),
    ("(-) Change in Inventory", "inventory_change", "number"),
    ("(+) Change in AP", "ap_change", "number"),
    ("Operating Cash Flow", "operating_cash_flow", "total"),
    ("CapEx", "capex", "number"),
    ("Investing Cash Flow", "investing_cash_flow", "total"),
    ("Change in Short-Term Debt", "short_term_debt_change", "number"),
    ("Change in Long-Term Debt", "long_term_debt_change", "number"),
    ("Change in Common Shares", "common_shares_change", "number"),
    ("Financing Cash Flow", "financing_cash_flow", "total"),
    ("Net Change in Cash", "net_cash_change", "total"),
    ("Beginning Cash", "beginning_cash", "number"),
    ("Ending Cash", "ending_cash", "number"),
    ("Free Cash Flow", "free_cash_flow", "total"),
)

DCF_LAYOUT: Layout = (
    ("Risk-Free Rate", "risk_free_rate", "percent"),
    ("Beta", "beta", "decimal"),
    ("Market Return", "market_return", "percent"),
    ("Cost of Debt", "cost_of_debt", "percent"),
    ("Tax Rate", "tax_rate", "percent"),
    ("Equity Weight", "equity_weight", "percent"),
    ("Debt Weight", "debt_weight", "percent"),
    ("Long-Term Growth", "long_term_growth", "percent"),
    ("Current Share Price", "current_share_price", "currency"),
    ("Total Debt", "total_debt", "number"),
    ("Shares Outstanding", "shares_outstanding", "number"),
    ("Cost of Equity", "cost_of_equity", "percent"),
    ("WACC", "wacc", "percent"),
    ("NPV of FCF", "npv", "number"),
    ("Terminal Value", "terminal_value", "number"),
    ("Discounted Terminal Value", "terminal_value_discounted", "number"),
    ("Enterprise Value", "target_value", "total"),
    ("Equity Value", "target_equity_value", "total"),
    ("Target Price per Share", "target_price_per_share", "currency"),
)

# method label -> (bull, base, bear) column names on ValuationComparison
VALUATION_METHODS: Tuple[Tuple[str, Tuple[str, str, str]], ...] = (
    ("Price / Revenue", ("pr_bull_target", "pr_base_target", "pr_bear_target")),
    ("PEG-based P/E", ("pe_bull_target", "pe_base_target", "pe_bear_target")),
    ("DCF", ("dcf_bull_target", "dcf_base_target", "dcf_bear_target")),
)

NOT_CALCULATED_NOTE = "Not calculated yet. Run a recalculation first."


# -----------------------------------------------------------------------------
# Formats
# -----------------------------------------------------------------------------


def _build_formats(workbook) -> Dict[str, Any]:
    return {
        "title": workbook.add_format({"bold": True, "font_size": 14}),
        "header": workbook.add_format({
            "bold": True,
            "bg_color": "#D3D3D3",
            "align": "center",
            "valign": "vcenter",
        }),
        "label": workbook.add_format({"align": "left"}),
        "bold_label": workbook.add_format({"bold": True, "align": "left"}),
        "number": workbook.add_format({"num_format": "#,##0"}),
        "total": workbook.add_format({"num_format": "#,##0", "bold": True, "top": 1}),
        "currency": workbook.add_format({"num_format": "$#,##0.00"}),
        "percent": workbook.add_format({"num_format": "0.00%"}),
        "decimal": workbook.add_format({"num_format": "0.00"}),
        "note": workbook.add_format({"italic": True, "font_color": "#808080"}),
    }


# -----------------------------------------------------------------------------
# Sheet writers
# -----------------------------------------------------------------------------


def year_header(year: int, is_actual: bool) -> str:
    return f"{year}{'A' if is_actual else 'E'}"


def write_statement_sheet(
    workbook,
    formats: Dict[str, Any],
    sheet_name: str,
    title: str,
    records: List[Any],
    layout: Layout,
) -> None:
    """One row per layout line, one column per year."""
    worksheet = workbook.add_worksheet(sheet_name)
    worksheet.write(0, 0, title, formats["title"])
    worksheet.set_column(0, 0, 32)

    if not records:
        worksheet.write(2, 0, NOT_CALCULATED_NOTE, formats["note"])
        return

    worksheet.set_column(1, len(records), 16)
    worksheet.write(2, 0, "", formats["header"])
    for col, record in enumerate(records, start=1):
        worksheet.write(2, col, year_header(record.year, record.is_actual), formats["header"])

    for row_idx, (label, field_name, fmt) in enumerate(layout, start=3):
        label_format = formats["bold_label"] if fmt == "total" else formats["label"]
        worksheet.write(row_idx, 0, label, label_format)
        for col, record in enumerate(records, start=1):
            worksheet.write_number(row_idx, col, getattr(record, field_name) or 0, formats[fmt])

    worksheet.freeze_panes(3, 1)


def write_dcf_sheet(workbook, formats: Dict[str, Any], dcf_row: Optional[Any]) -> None:
    worksheet = workbook.add_worksheet("DCF")
    worksheet.write(0, 0, "Discounted Cash Flow", formats["title"])
    worksheet.set_column(0, 0, 30)
    worksheet.set_column(1, 1, 18)

    if dcf_row is None:
        worksheet.write(2, 0, NOT_CALCULATED_NOTE, formats["note"])
        return

    for row_idx, (label, column, fmt) in enumerate(DCF_LAYOUT, start=2):
        label_format = formats["bold_label"] if fmt == "total" else formats["label"]
        worksheet.write(row_idx, 0, label, label_format)
        worksheet.write_number(row_idx, 1, getattr(dcf_row, column) or 0, formats[fmt])


def write_valuation_sheet(
    workbook,
    formats: Dict[str, Any],
    comparison_row: Optional[Any],
    scenario_revenue: Dict[str, Dict[int, Dict[str, float]]],
) -> None:
    worksheet = workbook.add_worksheet("Valuation")
    worksheet.write(0, 0, "Valuation Comparison", formats["title"])
    worksheet.set_column(0, 0, 26)
    worksheet.set_column(1, 3, 14)

    if comparison_row is None:
        worksheet.write(2, 0, NOT_CALCULATED_NOTE, formats["note"])
        return

    worksheet.write(2, 0, "Method", formats["header"])
    for col, scenario in enumerate(SCENARIOS, start=1):
        worksheet.write(2, col, scenario.title(), formats["header"])

    row_idx = 3
    for label, columns in VALUATION_METHODS:
        worksheet.write(row_idx, 0, label, formats["label"])
        for col, column in enumerate(columns, start=1):
            worksheet.write_number(row_idx, col, getattr(comparison_row, column) or 0, formats["currency"])
        row_idx += 1

    row_idx += 1
    summary = (
        ("Average Target", comparison_row.average_target, "currency"),
        ("Current Share Price", comparison_row.current_share_price, "currency"),
        ("Percent to Target", comparison_row.percent_to_target, "percent"),
        ("Revenue per Share", comparison_row.revenue_per_share, "currency"),
        ("Earnings Growth", comparison_row.earnings_growth, "percent"),
    )
    for label, value, fmt in summary:
        worksheet.write(row_idx, 0, label, formats["bold_label"])
        worksheet.write_number(row_idx, 1, value or 0, formats[fmt])
        row_idx += 1

    for source, series in scenario_revenue.items():
        if not series:
            continue
        row_idx += 1
        worksheet.write(row_idx, 0, f"Scenario Revenue ({source})", formats["header"])
        for col, scenario in enumerate(SCENARIOS, start=1):
            worksheet.write(row_idx, col, scenario.title(), formats["header"])
        row_idx += 1
        for year, by_scenario in series.items():
            worksheet.write(row_idx, 0, year, formats["label"])
            for col, scenario in enumerate(SCENARIOS, start=1):
                worksheet.write_number(row_idx, col, by_scenario.get(scenario, 0), formats["number"])
            row_idx += 1


# -----------------------------------------------------------------------------
# Entry point
# -----------------------------------------------------------------------------


def build_excel_workbook(db: Session, model_id: str) -> bytes:
    """
    Assemble the workbook for one model.

    Returns:
        bytes: .xlsx content suitable for a StreamingResponse

    Raises:
        ModelNotFoundError: If the model does not exist
    """
    repo = ModelRepository(db)
    model = repo.get_model(model_id)
    if model is None:
        raise ModelNotFoundError(f"Model not found: {model_id}")

    output = BytesIO()
    workbook = xlsxwriter.Workbook(output, {"in_memory": True})
    formats = _build_formats(workbook)

    write_statement_sheet(
        workbook, formats, "Income Statement", f"{model.name} - Income Statement",
        repo.statement_records(model_id, IncomeStatementLine, IncomeStatementRow),
        INCOME_STATEMENT_LAYOUT,
    )
    write_statement_sheet(
        workbook, formats, "Balance Sheet", f"{model.name} - Balance Sheet",
        repo.statement_records(model_id, BalanceSheetLine, BalanceSheetRow),
        BALANCE_SHEET_LAYOUT,
    )
    write_statement_sheet(
        workbook, formats, "Cash Flow", f"{model.name} - Cash Flow",
        repo.statement_records(model_id, CashFlowLine, CashFlowRow),
        CASH_FLOW_LAYOUT,
    )
    write_dcf_sheet(workbook, formats, repo.get_dcf(model_id))
    write_valuation_sheet(
        workbook,
        formats,
        repo.get_comparison(model_id),
        {
            "comparison": repo.list_scenario_revenue(model_id, "comparison"),
            "forecast": repo.list_scenario_revenue(model_id, "forecast"),
        },
    )

    workbook.close()
    logger.info("Built workbook for model %s (%d bytes)", model_id, output.tell())
    return output.getvalue()

"""
Tests for the model workbook export.
"""

from __future__ import annotations

from io import BytesIO

import pytest
from fastapi.testclient import TestClient
from openpyxl import load_workbook

from app.core.database import get_db
from app.main import app
from app.services.modeling.excel_export import XLSX_MEDIA_TYPE, build_excel_workbook, year_header
from app.services.recalculation import ModelNotFoundError, recalculate_model
from conftest import add_line_item, add_period, make_model


@pytest.fixture
def recalculated_model(db):
    model = make_model(db, name="Widget Co", start_year=2024, end_year=2025)
    item = add_line_item(db, model)
    add_period(db, item, 2024, 1_000_000)
    add_period(db, item, 2025, 1_200_000)
    recalculate_model(db, model.id)
    return model


def test_year_header_marks_actuals():
    assert year_header(2024, True) == "2024A"
    assert year_header(2025, False) == "2025E"


def test_workbook_has_one_sheet_per_output(db, recalculated_model):
    workbook = load_workbook(BytesIO(build_excel_workbook(db, recalculated_model.id)))

    assert workbook.sheetnames == ["Income Statement", "Balance Sheet", "Cash Flow", "DCF", "Valuation"]
    income = workbook["Income Statement"]
    assert income["A1"].value == "Widget Co - Income Statement"
    assert income["B3"].value == "2024E"
    assert income["C3"].value == "2025E"
    assert income["A4"].value == "Revenue"
    assert income["B4"].value == 1_000_000
    assert income["C5"].value == 336_000


def test_unrecalculated_model_gets_placeholder_sheets(db):
    model = make_model(db)
    workbook = load_workbook(BytesIO(build_excel_workbook(db, model.id)))
    assert workbook["DCF"]["A3"].value.startswith("Not calculated")
    assert workbook["Cash Flow"]["A3"].value.startswith("Not calculated")


def test_unknown_model_raises(db):
    with pytest.raises(ModelNotFoundError):
        build_excel_workbook(db, "missing")


def test_export_endpoint_streams_workbook(db, recalculated_model):
    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    try:
        client = TestClient(app)
        response = client.get(f"/api/v1/exports/{recalculated_model.id}/excel")
        missing = client.get("/api/v1/exports/missing/excel")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 200
    assert response.headers["content-type"] == XLSX_MEDIA_TYPE
    assert load_workbook(BytesIO(response.content)).sheetnames[0] == "Income Statement"
    assert missing.status_code == 404

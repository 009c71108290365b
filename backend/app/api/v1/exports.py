"""
exports.py — Model Workbook Export Endpoints (API Layer)

Purpose:
- Return the persisted statements and valuations of a model as an .xlsx
  download.
- All workbook assembly happens in services/modeling/excel_export.

This module should NOT:
- Recalculate. Call POST /models/{model_id}/recalculate first.
"""

import io

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.logging import get_logger
from app.services.modeling.excel_export import XLSX_MEDIA_TYPE, build_excel_workbook
from app.services.recalculation import ModelNotFoundError

logger = get_logger(__name__)

router = APIRouter(
    prefix="/exports",
    tags=["exports"]
)


# -----------------------------------------------------------------------------
# Endpoints
# -----------------------------------------------------------------------------

@router.get("/{model_id}/excel")
def export_excel(model_id: str, db: Session = Depends(get_db)):
    """
    GET /exports/{model_id}/excel

    Returns:
    - A downloadable workbook with Income Statement, Balance Sheet, Cash Flow,
      DCF and Valuation sheets.

    Raises:
        404: Model not found
    """
    try:
        workbook_bytes = build_excel_workbook(db, model_id)
    except ModelNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))

    filename = f"model_{model_id}.xlsx"
    return StreamingResponse(
        io.BytesIO(workbook_bytes),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )

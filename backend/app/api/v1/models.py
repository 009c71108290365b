"""
models.py — Model Recalculation API Endpoints

Purpose:
- Expose the recalculation engine over HTTP.
- Hold the per-model execution lock around every engine call so at most one
  run per model is in flight.

Endpoints:
- POST /api/v1/models/{model_id}/recalculate       - Rebuild projections + valuations
- POST /api/v1/models/{model_id}/forecast-forward  - Fill empty revenue, then rebuild
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.core.locks import ModelBusyError, model_lock
from app.core.logging import get_logger
from app.services.recalculation import (
    ForecastPreconditionError,
    ModelNotFoundError,
    forecast_forward,
    recalculate_model,
)

logger = get_logger(__name__)

router = APIRouter(
    prefix="/models",
    tags=["models"]
)

# -----------------------------------------------------------------------------
# Endpoints
# -----------------------------------------------------------------------------


@router.post("/{model_id}/recalculate")
def recalculate(model_id: str, db: Session = Depends(get_db)) -> Dict[str, Any]:
    """
    Regenerate every projected statement row, the DCF valuation and the
    valuation comparison for a model.

    Raises:
        404: Model not found
        409: Another recalculation of this model is still running
        500: Unexpected failure (nothing is committed)
    """
    try:
        with model_lock(model_id, timeout=settings.MODEL_LOCK_TIMEOUT_SECONDS):
            result = recalculate_model(db, model_id)
        return result.to_dict()
    except ModelNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except ModelBusyError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Error recalculating model %s: %s", model_id, exc)
        raise HTTPException(status_code=500, detail=f"Recalculation failed: {str(exc)}")


@router.post("/{model_id}/forecast-forward")
def forecast(model_id: str, db: Session = Depends(get_db)) -> Dict[str, Any]:
    """
    Fill empty revenue periods from historical growth trends, then run the
    full recalculation.

    Raises:
        400: Nothing to forecast (no line items, no revenue, no empty periods)
        404: Model not found
        409: Another run on this model is still in progress
        500: Unexpected failure (nothing is committed)
    """
    try:
        with model_lock(model_id, timeout=settings.MODEL_LOCK_TIMEOUT_SECONDS):
            result = forecast_forward(db, model_id)
        return result.to_dict()
    except ModelNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except ForecastPreconditionError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except ModelBusyError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Error forecasting model %s: %s", model_id, exc)
        raise HTTPException(status_code=500, detail=f"Forecast failed: {str(exc)}")

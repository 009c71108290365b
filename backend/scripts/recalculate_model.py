"""
recalculate_model.py — Run the recalculation engine for one model from the shell.

Locking:
- `model_lock` lives in this process only. It does not block, or wait for,
  another invocation of this script or an API server process recalculating
  the same model.
- Run this only against models the API is not serving, or stop the API
  first. A shared lock (e.g. a Postgres advisory lock) behind `model_lock`
  is the way to coordinate both.

Example:
    python scripts/recalculate_model.py --model-id 6f1c... --output-json outputs/model.json
    python scripts/recalculate_model.py --model-id 6f1c... --forecast-forward
    python scripts/recalculate_model.py --model-id 6f1c... --output-xlsx outputs/model.xlsx
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from app.core.database import SessionLocal, init_db
from app.core.locks import model_lock
from app.core.logging import configure_logging, get_logger
from app.services.modeling.excel_export import build_excel_workbook
from app.services.recalculation import (
    ForecastPreconditionError,
    ModelNotFoundError,
    forecast_forward,
    recalculate_model,
)

logger = get_logger(__name__)


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Recalculate projected statements and valuations for a model"
    )
    parser.add_argument(
        "--model-id",
        type=str,
        required=True,
        help="Id of the financial model to recalculate",
    )
    parser.add_argument(
        "--forecast-forward",
        action="store_true",
        help="Fill empty revenue periods from historical growth before recalculating",
    )
    parser.add_argument(
        "--output-json",
        type=str,
        default=None,
        help="Optional path to write the full result JSON",
    )
    parser.add_argument(
        "--output-xlsx",
        type=str,
        default=None,
        help="Optional path to write the model workbook after recalculating",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Override LOG_LEVEL (DEBUG shows per-stage detail)",
    )

    args = parser.parse_args()
    configure_logging(args.log_level)
    init_db()

    db = SessionLocal()
    try:
        # Process-local; see module docstring.
        with model_lock(args.model_id):
            if args.forecast_forward:
                result = forecast_forward(db, args.model_id).to_dict()
            else:
                result = recalculate_model(db, args.model_id).to_dict()
            if args.output_xlsx:
                workbook_bytes = build_excel_workbook(db, args.model_id)
    except (ModelNotFoundError, ForecastPreconditionError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        db.close()

    if args.output_json:
        output_path = Path(args.output_json)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with output_path.open("w", encoding="utf-8") as f:
            json.dump(result, f, indent=2, ensure_ascii=False)
        print(f"Wrote result to {args.output_json}")

    if args.output_xlsx:
        xlsx_path = Path(args.output_xlsx)
        xlsx_path.parent.mkdir(parents=True, exist_ok=True)
        xlsx_path.write_bytes(workbook_bytes)
        print(f"Wrote workbook to {args.output_xlsx}")

    dcf = result["dcf"]
    valuation = result["valuation"]
    print(f"\nModel {args.model_id}:")
    if args.forecast_forward:
        print(f"  Forecasted years: {result['forecasted_years']}")
        print(f"  Periods written: {result['periods_created']} new, {result['periods_updated']} updated")
    print(f"  WACC: {dcf['wacc']:.2%}")
    print(f"  DCF target price: ${dcf['target_price_per_share']:,.2f}")
    print(f"  Average target: ${valuation['average_target']:,.2f}")
    print(f"  Percent to target: {valuation['percent_to_target']:.1%}")


if __name__ == "__main__":
    main()

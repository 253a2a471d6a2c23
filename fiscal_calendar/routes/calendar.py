"""
Calendar API Routes
Month grid with the obligations due on each day, as JSON
"""
import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from fiscal_calendar.services.calendar_grid import build_grid, leading_padding, month_title
from fiscal_calendar.services.placeholder_data import get_mock_obligations

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["calendar"])


@router.get("/calendar")
async def get_calendar(
    request: Request,
    year: Optional[int] = Query(None, ge=1900, le=2999),
    month: Optional[int] = Query(None, ge=1, le=12),
):
    """Grid for the requested month (current month by default)."""
    if (year is None) != (month is None):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="year and month must be given together",
        )

    state = request.app.state
    today = state.today()
    reference = date(year, month, 1) if year and month else today

    degraded = state.store is None
    if degraded:
        obligations = get_mock_obligations(today)
    else:
        try:
            obligations = await state.store.snapshot()
        except PyMongoError as exc:
            logger.error(f"Error fetching obligations: {exc}")
            obligations = get_mock_obligations(today)
            degraded = True

    cells = build_grid(reference, obligations, today=today)
    data = {
        "year": reference.year,
        "month": reference.month,
        "title": month_title(reference),
        "degraded": degraded,
        "leading_padding": leading_padding(reference.year, reference.month),
        "cells": [
            {
                "date": cell.date_key,
                "is_current_month": cell.is_current_month,
                "is_today": cell.is_today,
                "obligations": [o.model_dump() for o in cell.obligations_for_day],
            }
            for cell in cells
        ],
    }
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content=jsonable_encoder({"success": True, "data": data}),
    )

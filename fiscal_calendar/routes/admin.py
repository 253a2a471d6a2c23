import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from fiscal_calendar.services.email_service import EmailConfigError

logger = logging.getLogger(__name__)


async def require_admin_password(
    request: Request,
    x_admin_password: Optional[str] = Header(None),
):
    """Dependency to ensure the caller knows the admin shared secret"""
    auth = request.app.state.auth
    if not x_admin_password or not auth.check_admin_password(x_admin_password):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )


router = APIRouter(
    prefix="/admin",
    tags=["Admin"]
)


@router.post("/reminders/dispatch", dependencies=[Depends(require_admin_password)])
async def dispatch_reminders(
    request: Request,
    day: Optional[date] = Query(None, description="Reference day; reminders go out for the day after"),
):
    reminders = request.app.state.reminders
    if reminders is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Backend not configured",
        )
    try:
        result = await reminders.dispatch_due_reminders(day or request.app.state.today())
    except EmailConfigError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    except PyMongoError as exc:
        logger.error(f"Error dispatching reminders: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to dispatch reminders",
        ) from exc
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content=jsonable_encoder({"success": True, "data": result}),
    )

"""
View Session Routes
Page load, navigation and user actions for one visitor's page
"""
import logging

from fastapi import APIRouter, Depends, Form, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import HTMLResponse, JSONResponse

from fiscal_calendar.models.obligation import ObligationFields
from fiscal_calendar.services.auth_service import AuthenticationError
from fiscal_calendar.views.app_view import AppView, InvalidTransition, View
from fiscal_calendar.views.registry import ViewSessionRegistry
from fiscal_calendar.views.render import render_view

logger = logging.getLogger(__name__)

router = APIRouter(tags=["pages"])


class ViewSessionExpired(Exception):
    def __init__(self, sid: str):
        super().__init__(sid)
        self.sid = sid


def get_registry(request: Request) -> ViewSessionRegistry:
    return request.app.state.registry


async def get_view(
    request: Request,
    sid: str,
    registry: ViewSessionRegistry = Depends(get_registry),
) -> AppView:
    """Mounted view for `sid`; an expired anonymous session closes it."""
    view = registry.get(sid)
    if view is None:
        raise ViewSessionExpired(sid)
    if view.session is not None:
        try:
            request.app.state.auth.verify(view.session.token)
        except AuthenticationError as exc:
            logger.info(f"Closing view session {sid}: {exc}")
            registry.close(sid)
            raise ViewSessionExpired(sid) from exc
    return view


async def require_admin_view(view: AppView = Depends(get_view)) -> AppView:
    """Dependency to ensure the page is showing the admin panel"""
    if view.current_view != View.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return view


@router.get("/", response_class=HTMLResponse)
async def index(request: Request, registry: ViewSessionRegistry = Depends(get_registry)):
    """Every page load starts a new view session on the calendar."""
    sid, view = await registry.open()
    return render_view(request, sid, view)


@router.get("/sessions/{sid}/state")
async def get_session_state(view: AppView = Depends(get_view)):
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content=jsonable_encoder({"success": True, "data": view.to_dict()}),
    )


@router.delete("/sessions/{sid}")
async def close_session(sid: str, registry: ViewSessionRegistry = Depends(get_registry)):
    if not registry.close(sid):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="View session not found",
        )
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={"success": True, "message": "View session closed"},
    )


@router.post("/sessions/{sid}/navigate/{action}", response_class=HTMLResponse)
async def navigate(request: Request, sid: str, action: str, view: AppView = Depends(get_view)):
    try:
        view.navigate(action)
    except InvalidTransition as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return render_view(request, sid, view)


@router.post("/sessions/{sid}/login", response_class=HTMLResponse)
async def login(
    request: Request,
    sid: str,
    password: str = Form(""),
    view: AppView = Depends(get_view),
):
    try:
        view.login(password)
    except InvalidTransition as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return render_view(request, sid, view)


@router.post("/sessions/{sid}/month/{direction}", response_class=HTMLResponse)
async def change_month(request: Request, sid: str, direction: str, view: AppView = Depends(get_view)):
    moves = {
        "prev": view.calendar.prev_month,
        "next": view.calendar.next_month,
        "today": view.calendar.go_to_today,
    }
    if direction not in moves:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown month direction: {direction}",
        )
    moves[direction]()
    return render_view(request, sid, view)


@router.post("/sessions/{sid}/subscribe", response_class=HTMLResponse)
async def subscribe(
    request: Request,
    sid: str,
    email: str = Form(""),
    view: AppView = Depends(get_view),
):
    await view.subscribe_email(email.strip())
    return render_view(request, sid, view)


@router.post("/sessions/{sid}/admin/obligations", response_class=HTMLResponse)
async def submit_obligation(
    request: Request,
    sid: str,
    title: str = Form(""),
    date: str = Form(""),
    sphere: str = Form("Federal"),
    view: AppView = Depends(require_admin_view),
):
    await view.admin.submit(ObligationFields(title=title.strip(), date=date.strip(), sphere=sphere))
    return render_view(request, sid, view)


@router.post("/sessions/{sid}/admin/obligations/{obligation_id}/edit", response_class=HTMLResponse)
async def edit_obligation(
    request: Request,
    sid: str,
    obligation_id: str,
    view: AppView = Depends(require_admin_view),
):
    obligation = view.find_obligation(obligation_id)
    if obligation is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Obligation not found",
        )
    view.admin.start_edit(obligation)
    return render_view(request, sid, view)


@router.post("/sessions/{sid}/admin/cancel-edit", response_class=HTMLResponse)
async def cancel_edit(request: Request, sid: str, view: AppView = Depends(require_admin_view)):
    view.admin.cancel_edit()
    return render_view(request, sid, view)


@router.post("/sessions/{sid}/admin/obligations/{obligation_id}/delete", response_class=HTMLResponse)
async def request_delete(
    request: Request,
    sid: str,
    obligation_id: str,
    view: AppView = Depends(require_admin_view),
):
    """Opens the confirmation modal; nothing is deleted yet."""
    view.admin.request_delete(obligation_id)
    return render_view(request, sid, view)


@router.post("/sessions/{sid}/admin/confirm-delete", response_class=HTMLResponse)
async def confirm_delete(request: Request, sid: str, view: AppView = Depends(require_admin_view)):
    await view.admin.confirm_delete()
    return render_view(request, sid, view)


@router.post("/sessions/{sid}/admin/cancel-delete", response_class=HTMLResponse)
async def cancel_delete(request: Request, sid: str, view: AppView = Depends(require_admin_view)):
    view.admin.cancel_delete()
    return render_view(request, sid, view)

from pathlib import Path

from fastapi import Request
from fastapi.templating import Jinja2Templates

from fiscal_calendar.services.calendar_grid import (
    WEEK_DAYS,
    format_date_br,
    sphere_color,
    sphere_text_color,
    weeks,
)
from fiscal_calendar.models.obligation import SPHERES
from fiscal_calendar.views.app_view import AppView, View

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.globals.update(
    sphere_color=sphere_color,
    sphere_text_color=sphere_text_color,
    format_date_br=format_date_br,
    week_days=WEEK_DAYS,
    spheres=SPHERES,
)

_TEMPLATES = {
    View.CALENDAR: "calendar.html",
    View.LOGIN: "login.html",
    View.ADMIN: "admin.html",
}


def render_view(request: Request, sid: str, app_view: AppView):
    current = app_view.current_view
    context = {"sid": sid, "app": app_view}
    if current == View.CALENDAR:
        context["weeks"] = weeks(app_view.calendar.grid(app_view.obligations))
    return templates.TemplateResponse(request, _TEMPLATES[current], context)

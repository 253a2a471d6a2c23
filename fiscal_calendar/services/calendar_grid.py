"""
Calendar Grid Builder
Derives the month grid shown on the public page and bins obligations into days.
"""
import calendar
from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Optional

from fiscal_calendar.models.calendar import DayCell
from fiscal_calendar.models.obligation import Obligation

WEEK_DAYS = ["Dom", "Seg", "Ter", "Qua", "Qui", "Sex", "Sáb"]

MONTH_NAMES = [
    "janeiro", "fevereiro", "março", "abril", "maio", "junho",
    "julho", "agosto", "setembro", "outubro", "novembro", "dezembro",
]

_SPHERE_COLORS = {
    "federal": "bg-blue-500",
    "estadual": "bg-green-500",
    "municipal": "bg-yellow-500",
}
_SPHERE_TEXT_COLORS = {
    "federal": "text-blue-600",
    "estadual": "text-green-600",
    "municipal": "text-yellow-600",
}

# 6: Sunday
_GRID = calendar.Calendar(firstweekday=calendar.SUNDAY)


def date_key(day: date) -> str:
    return day.isoformat()


def leading_padding(year: int, month: int) -> int:
    """Number of previous-month cells before the 1st (Sunday = 0)."""
    return (date(year, month, 1).weekday() + 1) % 7


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def build_grid(
    month_reference: date,
    obligations: Iterable[Obligation],
    today: date,
) -> List[DayCell]:
    """
    Build the full display grid for the month of `month_reference`.

    The result covers complete Sunday-first weeks, so it includes padding days
    from the adjacent months. Padding cells never carry obligations. Days of the
    viewed month get every obligation whose `date` string equals the cell's
    YYYY-MM-DD string; dates are compared as text so no time zone can shift them.
    `today` is the caller's local date in the configured zone.
    """
    year, month = month_reference.year, month_reference.month

    by_date: Dict[str, List[Obligation]] = defaultdict(list)
    for obligation in obligations:
        by_date[obligation.date].append(obligation)

    cells: List[DayCell] = []
    for day in _GRID.itermonthdates(year, month):
        if day.month != month:
            cells.append(DayCell(date=day, is_current_month=False))
            continue
        cells.append(
            DayCell(
                date=day,
                is_current_month=True,
                is_today=day == today,
                obligations_for_day=list(by_date.get(date_key(day), [])),
            )
        )
    return cells


def weeks(cells: List[DayCell]) -> List[List[DayCell]]:
    return [cells[i:i + 7] for i in range(0, len(cells), 7)]


def shift_month(reference: date, delta: int) -> date:
    """First day of the month `delta` months away from `reference`."""
    index = reference.year * 12 + (reference.month - 1) + delta
    return date(index // 12, index % 12 + 1, 1)


def month_title(reference: date) -> str:
    return f"{MONTH_NAMES[reference.month - 1].capitalize()} {reference.year}"


def sphere_color(sphere: Optional[str] = "") -> str:
    return _SPHERE_COLORS.get(str(sphere or "").lower(), "bg-gray-500")


def sphere_text_color(sphere: Optional[str] = "") -> str:
    return _SPHERE_TEXT_COLORS.get(str(sphere or "").lower(), "text-gray-600")


def format_date_br(value: str) -> str:
    """'2024-03-10' -> '10/03/2024'; anything else is returned untouched."""
    parts = (value or "").split("-")
    if len(parts) != 3:
        return value
    year, month, day = parts
    return f"{day}/{month}/{year}"

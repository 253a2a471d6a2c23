"""Derived calendar grid cells."""
import datetime as dt
from typing import List
from pydantic import BaseModel, Field

from fiscal_calendar.models.obligation import Obligation


class DayCell(BaseModel):
    """One cell of the month grid. Never persisted."""
    date: dt.date
    is_current_month: bool
    is_today: bool = False
    obligations_for_day: List[Obligation] = Field(default_factory=list)

    @property
    def date_key(self) -> str:
        return self.date.isoformat()

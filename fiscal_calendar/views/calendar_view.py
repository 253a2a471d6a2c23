"""Public calendar page: month navigation and the e-mail subscription form."""
from datetime import date
from typing import Callable, Iterable, List

from pydantic import BaseModel

from fiscal_calendar.models.calendar import DayCell
from fiscal_calendar.models.obligation import Obligation
from fiscal_calendar.services.calendar_grid import build_grid, month_title, shift_month
from fiscal_calendar.services.subscription_service import SubscriptionService

SUBSCRIBING = "Inscrevendo..."


class SubscriptionStatus(BaseModel):
    loading: bool = False
    message: str = ""
    is_error: bool = False


class CalendarView:
    def __init__(self, today: Callable[[], date]):
        self._today = today
        self.current_date: date = today()
        self.email = ""
        self.subscription_status = SubscriptionStatus()

    @property
    def title(self) -> str:
        return month_title(self.current_date)

    def prev_month(self) -> None:
        self.current_date = shift_month(self.current_date, -1)

    def next_month(self) -> None:
        self.current_date = shift_month(self.current_date, 1)

    def go_to_today(self) -> None:
        self.current_date = self._today()

    def grid(self, obligations: Iterable[Obligation]) -> List[DayCell]:
        return build_grid(self.current_date, obligations, today=self._today())

    async def submit_subscription(
        self,
        service: SubscriptionService,
        email: str,
        enabled: bool = True,
    ) -> SubscriptionStatus:
        """
        Subscribe `email`. While the page is degraded the form is disabled and
        submitting does nothing.
        """
        self.email = email
        if not enabled or self.subscription_status.loading:
            return self.subscription_status

        self.subscription_status = SubscriptionStatus(loading=True, message=SUBSCRIBING)
        result = await service.subscribe(email)
        self.subscription_status = SubscriptionStatus(
            loading=False,
            message=result.message,
            is_error=not result.success,
        )
        if result.success:
            self.email = ""
        return self.subscription_status

"""
Reminders Service
E-mails every subscriber the obligations that fall due tomorrow
"""
import asyncio
import html
import logging
from datetime import date, timedelta
from typing import Any, Dict, List

from fiscal_calendar.config import Settings
from fiscal_calendar.models.obligation import Obligation
from fiscal_calendar.services.calendar_grid import date_key, format_date_br
from fiscal_calendar.services.email_service import EmailConfigError, email_configured, send_email
from fiscal_calendar.services.obligation_store import ObligationStore
from fiscal_calendar.services.subscription_service import SubscriptionService

logger = logging.getLogger(__name__)


def render_reminder(obligations: List[Obligation], due: date) -> str:
    items = "".join(
        f"<li><strong>{html.escape(o.title)}</strong> ({html.escape(o.sphere or '')})</li>"
        for o in obligations
    )
    return (
        f"<p>Obrigações com vencimento amanhã, {format_date_br(date_key(due))}:</p>"
        f"<ul>{items}</ul>"
    )


class RemindersService:
    """
    Sends the day-before reminder promised on the public page.
    One e-mail per subscriber lists every obligation due the next day.
    """

    def __init__(self, settings: Settings, store: ObligationStore, subscriptions: SubscriptionService):
        self.settings = settings
        self.store = store
        self.subscriptions = subscriptions

    async def due_tomorrow(self, today: date) -> List[Obligation]:
        key = date_key(today + timedelta(days=1))
        obligations = await self.store.snapshot()
        return [o for o in obligations if o.date == key]

    async def dispatch_due_reminders(self, today: date) -> Dict[str, Any]:
        if not email_configured(self.settings):
            raise EmailConfigError("SMTP email config missing")

        due = await self.due_tomorrow(today)
        result = {"due": len(due), "sent": 0, "failed": 0}
        if not due:
            return result

        subject = "Lembrete: obrigações fiscais vencem amanhã"
        body = render_reminder(due, today + timedelta(days=1))

        for subscriber in await self.subscriptions.list_subscribers():
            try:
                await asyncio.to_thread(send_email, self.settings, subscriber.email, subject, body)
                result["sent"] += 1
            except RuntimeError as exc:
                logger.error(f"Error sending reminder to {subscriber.email}: {exc}")
                result["failed"] += 1
        return result

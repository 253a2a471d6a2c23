"""
App View
One visitor's page: the calendar/login/admin state machine and the live
obligation feed behind it.
"""
import logging
from datetime import date
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from fiscal_calendar.models.obligation import Obligation
from fiscal_calendar.services.auth_service import AnonymousAuthService, AnonymousSession, AuthenticationError
from fiscal_calendar.services.obligation_store import ObligationStore
from fiscal_calendar.services.placeholder_data import get_mock_obligations
from fiscal_calendar.services.subscription_service import SubscriptionService
from fiscal_calendar.views.admin_panel import AdminPanel
from fiscal_calendar.views.calendar_view import CalendarView, SubscriptionStatus
from fiscal_calendar.views.login_panel import LoginPanel

logger = logging.getLogger(__name__)

CONFIG_ERROR = "Falha na configuração do backend. Não foi possível conectar ao banco de dados."
AUTH_ERROR = "Não foi possível autenticar com o serviço."
READ_ERROR = "Não foi possível carregar os dados. Verifique as permissões de acesso ao banco de dados."


class View(str, Enum):
    CALENDAR = "calendar"
    LOGIN = "login"
    ADMIN = "admin"


class InvalidTransition(ValueError):
    pass


_TRANSITIONS = {
    ("open_login", View.CALENDAR): View.LOGIN,
    ("back", View.LOGIN): View.CALENDAR,
    ("view_calendar", View.ADMIN): View.CALENDAR,
}


class AppView:
    """
    Lifecycle: `mount()` signs in anonymously and only then opens the
    obligation subscription; `teardown()` cancels the subscription so no
    snapshot reaches a discarded view.

    `store` is None when no backend is configured, which puts the page in
    demo mode with placeholder obligations.
    """

    def __init__(
        self,
        *,
        store: Optional[ObligationStore],
        subscriptions: SubscriptionService,
        auth: AnonymousAuthService,
        today: Callable[[], date],
    ):
        self.store = store
        self.subscriptions = subscriptions
        self.auth = auth
        self._today = today

        self.view = View.CALENDAR
        self.is_admin_authenticated = False
        self.obligations: List[Obligation] = []
        self.loading = True
        self.error: Optional[str] = None
        self.auth_ready = False
        self.session: Optional[AnonymousSession] = None

        self.calendar = CalendarView(today)
        self.login_panel = LoginPanel(auth.check_admin_password)
        self.admin = AdminPanel(store)

        self._unsubscribe: Optional[Callable[[], None]] = None

    async def mount(self) -> None:
        self._bootstrap_auth()
        await self._open_feed()

    def teardown(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _bootstrap_auth(self) -> None:
        if self.store is not None:
            try:
                self.session = self.auth.sign_in_anonymously()
            except AuthenticationError as exc:
                logger.error(f"Anonymous sign-in failed: {exc}")
                self.error = AUTH_ERROR
        self.auth_ready = True

    async def _open_feed(self) -> None:
        if not self.auth_ready:
            return
        if self.store is None:
            self.error = CONFIG_ERROR
            self.loading = False
            self.obligations = get_mock_obligations(self._today())
            return
        self._unsubscribe = await self.store.subscribe(self._on_snapshot, self._on_feed_error)

    def _on_snapshot(self, obligations: List[Obligation]) -> None:
        self.obligations = obligations
        self.error = None
        self.loading = False

    def _on_feed_error(self, exc: Exception) -> None:
        logger.error(f"Error fetching obligations: {exc}")
        self.error = READ_ERROR
        self.obligations = get_mock_obligations(self._today())
        self.loading = False

    @property
    def degraded(self) -> bool:
        return self.error is not None

    @property
    def current_view(self) -> View:
        if self.error and not self.loading:
            return View.CALENDAR
        if self.view == View.ADMIN and self.is_admin_authenticated:
            return View.ADMIN
        if self.view == View.LOGIN:
            return View.LOGIN
        return View.CALENDAR

    def navigate(self, action: str) -> View:
        target = _TRANSITIONS.get((action, self.current_view))
        if target is None:
            raise InvalidTransition(f"'{action}' is not available from the {self.current_view.value} view")
        self.view = target
        return self.current_view

    def login(self, password: str) -> bool:
        if self.current_view != View.LOGIN:
            raise InvalidTransition("login is only available from the login view")
        if not self.login_panel.submit(password):
            return False
        self.is_admin_authenticated = True
        self.view = View.ADMIN
        return True

    async def subscribe_email(self, email: str) -> SubscriptionStatus:
        return await self.calendar.submit_subscription(
            self.subscriptions, email, enabled=not self.degraded
        )

    def find_obligation(self, obligation_id: str) -> Optional[Obligation]:
        return next((o for o in self.obligations if o.id == obligation_id), None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "view": self.current_view.value,
            "is_admin_authenticated": self.is_admin_authenticated,
            "loading": self.loading,
            "error": self.error,
            "degraded": self.degraded,
            "month": {
                "year": self.calendar.current_date.year,
                "month": self.calendar.current_date.month,
                "title": self.calendar.title,
            },
            "obligations": [o.model_dump() for o in self.obligations],
            "subscription": self.calendar.subscription_status.model_dump(),
            "admin": {
                "form": self.admin.form.model_dump(),
                "editing_id": self.admin.editing_id,
                "confirm_delete_id": self.admin.modal.target_id if self.admin.modal else None,
                "notice": self.admin.notice,
            },
            "login_error": self.login_panel.error,
        }

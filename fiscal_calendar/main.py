# fiscal_calendar/main.py
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse
from dotenv import load_dotenv
from pymongo.errors import PyMongoError

# load .env before settings are read
load_dotenv()

from fiscal_calendar.config import Settings, get_settings, local_today
from fiscal_calendar.db import Database
from fiscal_calendar.routes.admin import router as admin_router
from fiscal_calendar.routes.calendar import router as calendar_router
from fiscal_calendar.routes.sessions import ViewSessionExpired, router as sessions_router
from fiscal_calendar.services.auth_service import AnonymousAuthService
from fiscal_calendar.services.obligation_store import ObligationStore
from fiscal_calendar.services.reminders_service import RemindersService
from fiscal_calendar.services.subscription_service import SubscriptionService
from fiscal_calendar.views.app_view import AppView
from fiscal_calendar.views.registry import ViewSessionRegistry

logger = logging.getLogger(__name__)


def _connect(settings: Settings) -> Optional[Database]:
    backend = settings.backend
    if backend is None:
        logger.warning("No valid backend configured (MONGO_URI / MONGO_DB_NAME); serving demo data")
        return None
    try:
        return Database.connect(backend, settings.app_id)
    except PyMongoError as exc:
        logger.error(f"Invalid backend configuration: {exc}; serving demo data")
        return None


def create_app(settings: Optional[Settings] = None, database=None) -> FastAPI:
    """
    Build the application. `database` overrides the connection made from
    `settings`; anything exposing `obligations`, `subscribers` and `close()`
    works.
    """
    settings = settings or get_settings()
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    app = FastAPI(
        title=settings.app_name,
        description="Calendário de obrigações fiscais com lembretes por e-mail",
        version=settings.app_version,
    )

    # CORS - tighten in production
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(sessions_router)
    app.include_router(calendar_router)
    app.include_router(admin_router)

    app.state.settings = settings
    app.state.today = lambda: local_today(settings)
    app.state.auth = AnonymousAuthService(settings)
    app.state.database = None
    app.state.store = None
    app.state.subscriptions = SubscriptionService(None)
    app.state.reminders = None
    app.state.registry = None

    @app.on_event("startup")
    async def on_startup():
        db = database if database is not None else _connect(settings)
        store = ObligationStore(db.obligations) if db is not None else None
        subscriptions = SubscriptionService(db.subscribers if db is not None else None)

        app.state.database = db
        app.state.store = store
        app.state.subscriptions = subscriptions
        app.state.reminders = RemindersService(settings, store, subscriptions) if store is not None else None
        app.state.registry = ViewSessionRegistry(
            lambda: AppView(
                store=store,
                subscriptions=subscriptions,
                auth=app.state.auth,
                today=app.state.today,
            ),
            idle_seconds=settings.session_idle_minutes * 60,
        )

    @app.on_event("shutdown")
    async def on_shutdown():
        if app.state.registry is not None:
            app.state.registry.close_all()
        if app.state.store is not None:
            app.state.store.close()
        if app.state.database is not None:
            app.state.database.close()

    @app.exception_handler(ViewSessionExpired)
    async def on_view_session_expired(request: Request, exc: ViewSessionExpired):
        return RedirectResponse("/", status_code=303)

    @app.get("/health")
    async def health():
        """Health endpoint"""
        return {
            "message": f"Welcome to {settings.app_name}",
            "status": "running",
            "version": settings.app_version,
            "mode": "live" if app.state.store is not None else "demo",
        }

    return app


app = create_app()

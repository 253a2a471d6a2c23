from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo
from jose import jwt


class BackendConfig(BaseModel):
    """Connection descriptor for the document database."""
    mongo_uri: str
    mongo_db_name: str


class Settings(BaseSettings):
    app_name: str = "Calendário Fiscal"
    app_version: str = "1.0.0"
    debug: bool = False

    app_id: str = "default-app-id"

    # Backend connection descriptor; absent means demo mode
    mongo_uri: Optional[str] = None
    mongo_db_name: Optional[str] = None

    # Shared secret for the admin panel (plaintext comparison)
    admin_password: str = "admin123"

    # Anonymous sessions
    session_secret_key: Optional[str] = "change-me"
    session_algorithm: str = "HS256"
    session_expire_minutes: int = 60 * 12
    session_idle_minutes: int = 30

    timezone: str = "America/Sao_Paulo"

    # SMTP
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_from_email: Optional[str] = None
    smtp_from_name: str = "Calendário Fiscal"

    allowed_origins: str = "*"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def backend(self) -> Optional[BackendConfig]:
        """
        Returns the backend descriptor, or None when it is missing or unusable.
        None puts the application in demo mode.
        """
        uri = (self.mongo_uri or "").strip()
        db_name = (self.mongo_db_name or "").strip()
        if not uri or not db_name:
            return None
        if not uri.startswith(("mongodb://", "mongodb+srv://")):
            return None
        return BackendConfig(mongo_uri=uri, mongo_db_name=db_name)

    @property
    def cors_origins(self) -> list[str]:
        if self.allowed_origins == "*":
            return ["*"]
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]


def get_settings() -> Settings:
    return Settings()


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def local_today(settings: Settings) -> date:
    """Current calendar date in the configured time zone."""
    return datetime.now(ZoneInfo(settings.timezone)).date()


def create_session_token(
    settings: Settings,
    data: Dict[str, Any],
    expires_delta: Optional[timedelta] = None,
) -> str:
    to_encode = data.copy()
    now = _now_utc()
    expire = now + (expires_delta or timedelta(minutes=settings.session_expire_minutes))
    to_encode.update({"iat": now, "exp": expire, "type": "anonymous"})
    return jwt.encode(to_encode, settings.session_secret_key, algorithm=settings.session_algorithm)

"""
Anonymous Auth Service
Issues the per-visitor anonymous session and checks the admin password
"""
import logging
from typing import Optional
from uuid import uuid4

from jose import JOSEError, JWTError, jwt
from pydantic import BaseModel

from fiscal_calendar.config import Settings, create_session_token

logger = logging.getLogger(__name__)


class AuthenticationError(Exception):
    pass


class AnonymousSession(BaseModel):
    uid: str
    token: str


class AnonymousAuthService:
    def __init__(self, settings: Settings):
        self.settings = settings

    def sign_in_anonymously(self) -> AnonymousSession:
        if not self.settings.session_secret_key:
            raise AuthenticationError("SESSION_SECRET_KEY must be set to issue sessions")
        uid = str(uuid4())
        try:
            token = create_session_token(self.settings, {"sub": uid})
        except JOSEError as exc:
            raise AuthenticationError(f"Failed to sign anonymous session: {exc}") from exc
        logger.debug(f"Issued anonymous session {uid}")
        return AnonymousSession(uid=uid, token=token)

    def verify(self, token: str) -> str:
        """Returns the session uid carried by a valid anonymous token."""
        try:
            payload = jwt.decode(
                token,
                self.settings.session_secret_key,
                algorithms=[self.settings.session_algorithm],
            )
        except JWTError as exc:
            raise AuthenticationError("Invalid or expired session") from exc
        uid: Optional[str] = payload.get("sub")
        if payload.get("type") != "anonymous" or not uid:
            raise AuthenticationError("Invalid session payload")
        return uid

    def check_admin_password(self, password: str) -> bool:
        # Plain shared-secret comparison, nothing server-enforced beyond this.
        return password == self.settings.admin_password

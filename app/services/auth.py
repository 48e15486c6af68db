"""
Authentication service - Admin login, logout and password reset.
"""
import re
import logging
from typing import Optional

from ..models.session import AdminSession, SessionStore, session_store
from .api_client import BackendClient
from .errors import BackendError, FormValidationError

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(
    r'^(([^<>()\[\]/.,;:\s@"]+(\.[^<>()\[\]/.,;:\s@"]+)*)|(".+"))@'
    r'((\[[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}\])|(([a-zA-Z\-0-9]+\.)+[a-zA-Z]{2,}))$'
)
MIN_PASSWORD_LENGTH = 6


def validate_email(email: Optional[str]) -> bool:
    return bool(EMAIL_PATTERN.match(str(email or "").lower()))


def validate_password(password: Optional[str]) -> bool:
    return len(password or "") >= MIN_PASSWORD_LENGTH


def normalize_email(email: Optional[str]) -> str:
    return (email or "").lower().strip()


class AuthService:
    """Exchanges admin credentials for a backend token held in a console session."""

    def __init__(self, client: BackendClient, store: Optional[SessionStore] = None):
        self.client = client
        self.store = store or session_store

    async def login(self, email: str, password: str) -> tuple[AdminSession, str]:
        """Log in and open a session. Returns the session and the backend's message."""
        email = normalize_email(email)
        if not validate_email(email):
            raise FormValidationError(["Please enter a valid email address"])
        if not validate_password(password):
            raise FormValidationError([f"Password must be at least {MIN_PASSWORD_LENGTH} characters"])

        body = await self.client.post(
            "/api/admin-users/login",
            json={"email": email, "password": password},
            auth=False
        )
        data = body.get("data") or {}
        token = data.get("token")
        if not token:
            raise BackendError(502, "Login response did not include a token")

        session = self.store.create(token=token, admin=data.get("admin"))
        logger.info(f"Admin {email} logged in as {session.role}")
        return session, body.get("message") or "Login successful"

    async def forgot_password(self, email: str) -> str:
        """Ask the backend to send a password reset email."""
        email = normalize_email(email)
        if not validate_email(email):
            raise FormValidationError(["Please enter a valid email address"])
        body = await self.client.post("/api/auth/forgot", json={"Email": email}, auth=False)
        return body.get("message") or "Password reset instructions sent"

    def logout(self, session_id: str):
        self.store.delete(session_id)

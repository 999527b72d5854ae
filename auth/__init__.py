"""Session validation for the billing API."""

from auth.exceptions import (
    AuthError,
    InvalidTokenError,
    SessionExpiredError,
)
from auth.types import Session, SessionValidator
from auth.security_middleware import AuthMiddleware, SESSION_COOKIE

"""Security middleware for FastAPI - session validation and owner context."""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from auth.exceptions import InvalidTokenError, SessionExpiredError
from auth.types import SessionValidator
from api.base import error_response, ErrorCodes
from utils.owner_context import set_current_owner_id, clear_current_owner_id

SESSION_COOKIE = "session_token"


def _unauthorized(code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=401,
        content=error_response(code, message).model_dump(mode="json"),
    )


class AuthMiddleware(BaseHTTPMiddleware):
    """Validates the session cookie and scopes the request to its owner.

    For protected routes:
    1. Reads the token from the 'session_token' cookie
    2. Resolves it through the SessionValidator
    3. Sets owner_id in request.state and the owner context (for RLS)
    4. Clears the context after the request completes

    Public paths bypass authentication entirely.
    """

    PUBLIC_PATHS = [
        "/health",
        "/docs",
        "/openapi.json",
    ]

    def __init__(self, app, session_validator: SessionValidator):
        super().__init__(app)
        self._sessions = session_validator

    def _is_public_path(self, path: str) -> bool:
        return any(path == public or path.startswith(public + "/") for public in self.PUBLIC_PATHS)

    async def dispatch(self, request: Request, call_next):
        if self._is_public_path(request.url.path):
            return await call_next(request)

        token = request.cookies.get(SESSION_COOKIE)
        if not token:
            return _unauthorized(ErrorCodes.NOT_AUTHENTICATED, "Authentication required")

        try:
            session = self._sessions.validate_session(token)
        except SessionExpiredError:
            return _unauthorized(ErrorCodes.SESSION_EXPIRED, "Session has expired")
        except InvalidTokenError:
            return _unauthorized(ErrorCodes.NOT_AUTHENTICATED, "Invalid session")

        set_current_owner_id(session.owner_id)
        request.state.owner_id = session.owner_id
        request.state.session = session

        try:
            return await call_next(request)
        finally:
            clear_current_owner_id()

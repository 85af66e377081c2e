"""FastAPI dependency injection functions."""

from dataclasses import dataclass, field
from typing import Annotated, Any
from uuid import UUID

from fastapi import Depends, Header, HTTPException, Request, status

from src.api.middleware.auth import AuthError, AuthErrorCode, decode_jwt
from src.api.middleware.error_handler import AuthorizationError, RateLimitError
from src.core.config import get_settings
from src.core.rate_limiter import get_rate_limiter
from src.schemas.auth import UserContext
from src.services.admin_service import AdminService
from src.services.profile_service import ProfileService


@dataclass
class SessionContext:
    """Everything known about the signed-in user for one request or socket.

    Built explicitly after token validation and passed to whoever needs
    it; nothing about the session lives in module state.
    """

    user: UserContext
    access_token: str
    profile: dict[str, Any] | None = None
    role: str | None = None
    university: dict[str, Any] | None = field(default=None)

    @property
    def user_id(self) -> UUID:
        return self.user.user_id

    @property
    def university_id(self) -> str | None:
        if self.profile and self.profile.get("university_id"):
            return str(self.profile["university_id"])
        return None

    @property
    def profile_summary(self) -> dict[str, Any] | None:
        """Display projection of the user's own profile."""
        if not self.profile:
            return None
        return {
            "id": self.profile.get("id"),
            "full_name": self.profile.get("full_name"),
            "avatar_url": self.profile.get("avatar_url"),
            "is_verified": self.profile.get("is_verified"),
        }


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def extract_bearer_token(authorization: str) -> str:
    """Extract the token from a "Bearer <token>" header value.

    Raises:
        HTTPException: 401 if the header is missing or malformed.
    """
    if not authorization:
        raise _unauthorized("Authorization header required")

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise _unauthorized("Invalid authorization header format. Expected: Bearer <token>")

    return parts[1]


def authenticate_token(token: str) -> UserContext:
    """Validate an access token and return the user it belongs to.

    Raises:
        HTTPException: 401 if the token is invalid or expired.
    """
    try:
        payload = decode_jwt(token)
        return payload.to_user_context()
    except AuthError as e:
        if e.code == AuthErrorCode.TOKEN_EXPIRED:
            raise _unauthorized("Token has expired") from e
        raise _unauthorized(e.message) from e


async def get_bearer_token(
    authorization: Annotated[str, Header(description="Bearer token")] = "",
) -> str:
    return extract_bearer_token(authorization)


async def get_current_user(
    authorization: Annotated[str, Header(description="Bearer token")] = "",
) -> UserContext:
    """The caller of a protected route; 401 when the bearer token is missing or invalid."""
    return authenticate_token(extract_bearer_token(authorization))


CurrentUser = Annotated[UserContext, Depends(get_current_user)]
BearerToken = Annotated[str, Depends(get_bearer_token)]


async def build_session_context(user: UserContext, access_token: str) -> SessionContext:
    """Load the profile, role and university of an authenticated user."""
    profile = await ProfileService().get_session_profile(user.user_id)
    if not profile:
        return SessionContext(user=user, access_token=access_token)

    return SessionContext(
        user=user,
        access_token=access_token,
        profile=profile,
        role=profile.get("role"),
        university=profile.get("university"),
    )


async def get_session_context(user: CurrentUser, token: BearerToken) -> SessionContext:
    return await build_session_context(user, token)


CurrentSession = Annotated[SessionContext, Depends(get_session_context)]


async def require_admin(session: CurrentSession) -> SessionContext:
    """Allow only users holding the admin role.

    Raises:
        AuthorizationError: 403 for everyone else.
    """
    if not await AdminService().is_admin(session.user_id):
        raise AuthorizationError("You do not have permission to access this page")
    return session


AdminSession = Annotated[SessionContext, Depends(require_admin)]


# Rate limiting


async def enforce_rate_limit(key: str, max_requests: int, message: str) -> None:
    """Record one request for key and raise once the window is full.

    Raises:
        RateLimitError: If the key has exceeded max_requests in the window.
    """
    settings = get_settings()
    allowed, _remaining, retry_after = await get_rate_limiter().check_and_increment(
        key,
        max_requests=max_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
    if not allowed:
        raise RateLimitError(message=message, retry_after=retry_after)


async def check_message_rate_limit(user: CurrentUser) -> None:
    """Limit how fast one user can send messages."""
    await enforce_rate_limit(
        f"message:{user.user_id}",
        get_settings().rate_limit_message_requests,
        "Rate limit exceeded. Please wait before sending more messages.",
    )


async def check_form_rate_limit(request: Request) -> None:
    """Limit public form submissions per client address."""
    client_host = request.client.host if request.client else "unknown"
    await enforce_rate_limit(
        f"form:{client_host}",
        get_settings().rate_limit_form_requests,
        "Too many submissions. Please try again later.",
    )


MessageRateLimit = Annotated[None, Depends(check_message_rate_limit)]
FormRateLimit = Annotated[None, Depends(check_form_rate_limit)]

"""Email/password accounts through Supabase Auth."""

import logging
from typing import Any, Callable

from src.api.middleware.error_handler import ValidationError
from src.core.config import get_settings
from src.core.supabase import create_auth_client
from src.schemas.auth import SignupRequest

logger = logging.getLogger(__name__)

ALREADY_REGISTERED_MESSAGE = "This email is already registered. Please sign in instead."
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password. Please try again."
PASSWORD_RESET_MESSAGE = "If an account exists with this email, a password reset link has been sent."
DEFAULT_EXPIRES_IN = 3600

_FRIENDLY_MESSAGES = {
    "already registered": ALREADY_REGISTERED_MESSAGE,
    "invalid login credentials": INVALID_CREDENTIALS_MESSAGE,
}


def friendly_auth_message(error_msg: str) -> str:
    """Replace the Supabase Auth errors users commonly hit; pass the rest through."""
    lowered = error_msg.lower()
    for fragment, friendly in _FRIENDLY_MESSAGES.items():
        if fragment in lowered:
            return friendly
    return error_msg


def _tokens(session: Any) -> dict[str, Any]:
    return {
        "access_token": session.access_token,
        "refresh_token": session.refresh_token,
        "expires_in": session.expires_in or DEFAULT_EXPIRES_IN,
    }


class AuthService:
    """Signup, login and session upkeep.

    Each instance owns a fresh auth client: set_session() rewrites the
    client's Authorization header, which must never happen on the shared
    database client.
    """

    def __init__(self, client: Any | None = None) -> None:
        self.client = client or create_auth_client()
        self.settings = get_settings()

    def _call(self, action: str, fn: Callable[[], Any], message: str | None = None) -> Any:
        try:
            return fn()
        except Exception as e:
            logger.error("%s failed: %s", action, e)
            raise ValidationError(message or friendly_auth_message(str(e))) from e

    async def signup(self, data: SignupRequest) -> dict[str, Any]:
        """Create the account.

        Name, university and role go in the user metadata, from which the
        database trigger creates the profile and role rows. ``email_sent``
        is true when Supabase withheld the session pending confirmation.
        """
        email = data.email.strip()
        metadata = {
            "full_name": data.full_name.strip(),
            "university_id": str(data.university_id),
            "role": data.role.value,
        }
        response = self._call(
            "Signup",
            lambda: self.client.auth.sign_up(
                {
                    "email": email,
                    "password": data.password,
                    "options": {"email_redirect_to": self.settings.auth_redirect_url, "data": metadata},
                }
            ),
        )
        if not response.user:
            raise ValidationError("Failed to create account.")

        logger.info("Account created for %s", response.user.id)
        return {
            "user_id": str(response.user.id),
            "email": response.user.email or email,
            "email_sent": response.session is None,
            "message": "Your account has been created successfully.",
        }

    async def login(self, email: str, password: str) -> dict[str, Any]:
        response = self._call(
            "Login",
            lambda: self.client.auth.sign_in_with_password({"email": email, "password": password}),
        )
        if not response.user or not response.session:
            raise ValidationError("Login failed: No session created")

        logger.info("Signed in %s", response.user.id)
        return {
            **_tokens(response.session),
            "user_id": str(response.user.id),
            "email": response.user.email or email,
        }

    async def logout(self, access_token: str) -> dict[str, Any]:
        """Revoke the session. Errors are only logged; the client forgets its tokens anyway."""
        try:
            self.client.auth.set_session(access_token, "")
            self.client.auth.sign_out()
        except Exception as e:
            logger.warning("Sign out failed: %s", e)
        return {"message": "Logged out successfully"}

    async def refresh_token(self, refresh_token: str) -> dict[str, Any]:
        response = self._call(
            "Token refresh",
            lambda: self.client.auth.refresh_session(refresh_token),
            message="Invalid or expired refresh token",
        )
        if not response.session:
            raise ValidationError("Failed to refresh token")
        return _tokens(response.session)

    async def request_password_reset(self, email: str) -> dict[str, Any]:
        """Mail a reset link. The answer is the same whether or not the account exists."""
        try:
            self.client.auth.reset_password_for_email(
                email,
                options={"redirect_to": f"{self.settings.auth_redirect_url}/reset-password"},
            )
        except Exception as e:
            logger.warning("Password reset for %s failed: %s", email, e)
        return {"email_sent": True, "message": PASSWORD_RESET_MESSAGE}

    async def resend_verification_email(self, email: str) -> dict[str, Any]:
        self._call(
            "Confirmation resend",
            lambda: self.client.auth.resend(
                {
                    "type": "signup",
                    "email": email,
                    "options": {"email_redirect_to": self.settings.auth_redirect_url},
                }
            ),
        )
        logger.info("Confirmation email resent to %s", email)
        return {"email_sent": True, "message": "Verification email sent. Please check your inbox."}

"""Access token claims, the signed-in user, and the email/password flows."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from src.models.profile import AppRole


class UserContext(BaseModel):
    """The caller as far as the access token tells us.

    Profile data (university, name) is loaded separately into a SessionContext.
    """

    model_config = ConfigDict(from_attributes=True)

    user_id: UUID = Field(description="auth.users id")
    email: str | None = Field(default=None, description="Email claim")
    role: str | None = Field(default=None, description="Postgres role claim, normally 'authenticated'")


class TokenPayload(BaseModel):
    """Claims of a Supabase access token."""

    model_config = ConfigDict(from_attributes=True)

    sub: str = Field(description="auth.users id")
    email: str | None = Field(default=None)
    role: str | None = Field(default=None)
    exp: int = Field(description="Expiry, unix seconds")
    iat: int = Field(description="Issued at, unix seconds")
    aud: str | list[str] | None = Field(default=None)
    iss: str | None = Field(default=None)

    def to_user_context(self) -> UserContext:
        return UserContext(user_id=UUID(self.sub), email=self.email, role=self.role)


class AuthenticatedResponse(BaseModel):
    authenticated: bool = True
    user_id: str
    email: str | None = None
    role: str | None = None


class SignupRequest(BaseModel):
    """Signup form: a student or staff member of one university."""

    email: str = Field(..., min_length=3, max_length=255, description="Campus or personal email")
    password: str = Field(..., min_length=6, max_length=100, description="At least 6 characters")
    full_name: str = Field(..., min_length=1, max_length=255, description="Name shown on the profile")
    university_id: UUID = Field(..., description="University the account joins")
    role: AppRole = Field(default=AppRole.STUDENT, description="Community role chosen at signup")


class SignupResponse(BaseModel):
    user_id: str
    email: str
    message: str = Field(description="Next step shown to the user")
    email_sent: bool = Field(description="Whether a confirmation email went out")


class LoginRequest(BaseModel):
    email: str
    password: str


class LoginResponse(BaseModel):
    """Session issued by Supabase Auth."""

    access_token: str
    refresh_token: str | None = None
    user_id: str
    email: str
    expires_in: int = Field(description="Access token lifetime in seconds")


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class RefreshTokenResponse(BaseModel):
    access_token: str
    refresh_token: str | None = Field(default=None, description="Rotated refresh token, when issued")
    expires_in: int


class EmailRequest(BaseModel):
    """Password reset and confirmation resend take just an address."""

    email: str = Field(..., min_length=3, max_length=255)


class AuthMessageResponse(BaseModel):
    message: str
    email_sent: bool | None = None

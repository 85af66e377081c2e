"""Account routes: signup, login, token refresh and email flows.

Auth failures answer with FastAPI's plain ``{"detail": ...}`` body, which
the sign-in form shows directly.
"""

from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import APIRouter, HTTPException, status

from src.api.deps import BearerToken, FormRateLimit
from src.api.middleware.error_handler import ValidationError
from src.schemas.auth import (
    AuthMessageResponse,
    EmailRequest,
    LoginRequest,
    LoginResponse,
    RefreshTokenRequest,
    RefreshTokenResponse,
    SignupRequest,
    SignupResponse,
)
from src.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


@contextmanager
def rejected_as(status_code: int) -> Iterator[None]:
    try:
        yield
    except ValidationError as e:
        raise HTTPException(status_code=status_code, detail=e.message) from e


@router.post(
    "/signup",
    response_model=SignupResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create account",
    description="Create a student, staff or partner account for a university. 400 carries the reason.",
)
async def signup(data: SignupRequest, _rate_limit: FormRateLimit) -> SignupResponse:
    with rejected_as(status.HTTP_400_BAD_REQUEST):
        return SignupResponse(**await AuthService().signup(data))


@router.post("/login", response_model=LoginResponse, summary="Sign in")
async def login(data: LoginRequest) -> LoginResponse:
    with rejected_as(status.HTTP_401_UNAUTHORIZED):
        return LoginResponse(**await AuthService().login(email=data.email, password=data.password))


@router.post("/logout", response_model=AuthMessageResponse, summary="Sign out")
async def logout(token: BearerToken) -> AuthMessageResponse:
    return AuthMessageResponse(**await AuthService().logout(token))


@router.post("/refresh", response_model=RefreshTokenResponse, summary="Refresh access token")
async def refresh_token(data: RefreshTokenRequest) -> RefreshTokenResponse:
    with rejected_as(status.HTTP_401_UNAUTHORIZED):
        return RefreshTokenResponse(**await AuthService().refresh_token(data.refresh_token))


@router.post(
    "/password-reset",
    response_model=AuthMessageResponse,
    summary="Request password reset",
    description="Mail a reset link. The answer does not reveal whether the email has an account.",
)
async def request_password_reset(data: EmailRequest, _rate_limit: FormRateLimit) -> AuthMessageResponse:
    return AuthMessageResponse(**await AuthService().request_password_reset(data.email))


@router.post("/resend-verification", response_model=AuthMessageResponse, summary="Resend confirmation email")
async def resend_verification(data: EmailRequest, _rate_limit: FormRateLimit) -> AuthMessageResponse:
    with rejected_as(status.HTTP_400_BAD_REQUEST):
        return AuthMessageResponse(**await AuthService().resend_verification_email(data.email))

"""Authentication endpoints."""

from fastapi import APIRouter
from starlette.requests import Request

from src.identity.api.dependencies import (
    AuthServiceDep,
    CurrentAccount,
    EmailVerificationServiceDep,
    PasswordServiceDep,
    RefreshToken,
    RegistrationServiceDep,
    SessionServiceDep,
    UserServiceDep,
)
from src.identity.core.rate_limit import (
    EMAIL_LIMIT,
    LOGIN_LIMIT,
    REFRESH_LIMIT,
    REGISTER_LIMIT,
    limiter,
)
from src.identity.schemas import (
    AccountRead,
    ApiResponse,
    AuthResult,
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResendVerificationRequest,
    ResetPasswordRequest,
    TokenPair,
    UpdateProfileRequest,
    VerifyEmailRequest,
)

router = APIRouter(prefix="/auth", tags=["auth"])


def client_info(request: Request) -> tuple[str | None, str | None]:
    """User agent and client IP recorded on new sessions."""
    user_agent = request.headers.get("user-agent")
    ip_address = request.client.host if request.client else None
    return user_agent, ip_address


@router.post("/register", response_model=ApiResponse[None])
@limiter.limit(REGISTER_LIMIT)
async def register(
    request: Request, data: RegisterRequest, service: RegistrationServiceDep
) -> ApiResponse[None]:
    """Create an unverified account and send the verification email."""
    await service.register(
        full_name=data.full_name,
        email=data.email,
        phone=data.phone,
        password=data.password,
        redirect_url=data.redirect_url,
    )
    return ApiResponse[None](
        msg="User registered successfully. Please check your email for verification."
    )


@router.post("/verify-email", response_model=ApiResponse[AuthResult])
async def verify_email(
    request: Request,
    data: VerifyEmailRequest,
    service: EmailVerificationServiceDep,
    session_service: SessionServiceDep,
) -> ApiResponse[AuthResult]:
    """Consume a verification token. Newly verified accounts also get tokens."""
    account, is_newly_verified = await service.verify_email(data.token)

    tokens = None
    if is_newly_verified:
        user_agent, ip_address = client_info(request)
        tokens = await session_service.issue_token_pair(account, user_agent, ip_address)

    return ApiResponse[AuthResult](
        msg="Email verified successfully",
        data=AuthResult(user=AccountRead.from_account(account), tokens=tokens),
    )


@router.post("/resend-verification", response_model=ApiResponse[None])
@limiter.limit(EMAIL_LIMIT)
async def resend_verification(
    request: Request, data: ResendVerificationRequest, service: EmailVerificationServiceDep
) -> ApiResponse[None]:
    """Always answers the same way so it cannot be used to probe accounts."""
    await service.resend_verification(data.email, data.redirect_url)
    return ApiResponse[None](
        msg="If an account exists with this email, a verification link has been sent"
    )


@router.post("/login", response_model=ApiResponse[AuthResult])
@limiter.limit(LOGIN_LIMIT)
async def login(
    request: Request, data: LoginRequest, service: AuthServiceDep
) -> ApiResponse[AuthResult]:
    user_agent, ip_address = client_info(request)
    account, tokens = await service.login(data.email, data.password, user_agent, ip_address)
    return ApiResponse[AuthResult](
        msg="Login successful",
        data=AuthResult(user=AccountRead.from_account(account), tokens=tokens),
    )


@router.post("/refresh-token", response_model=ApiResponse[dict[str, TokenPair]])
@limiter.limit(REFRESH_LIMIT)
async def refresh(
    request: Request, refresh_token: RefreshToken, service: AuthServiceDep
) -> ApiResponse[dict[str, TokenPair]]:
    """Rotate the refresh token: the old one stops working immediately."""
    user_agent, ip_address = client_info(request)
    tokens = await service.refresh(refresh_token, user_agent, ip_address)
    return ApiResponse[dict[str, TokenPair]](
        msg="Token refreshed successfully", data={"tokens": tokens}
    )


@router.get("/profile", response_model=ApiResponse[AccountRead])
async def get_profile(account: CurrentAccount) -> ApiResponse[AccountRead]:
    return ApiResponse[AccountRead](
        msg="Profile retrieved successfully", data=AccountRead.from_account(account)
    )


@router.patch("/profile", response_model=ApiResponse[AccountRead])
async def update_profile(
    data: UpdateProfileRequest, account: CurrentAccount, service: UserServiceDep
) -> ApiResponse[AccountRead]:
    updated, message = await service.update_profile(account, data)
    return ApiResponse[AccountRead](msg=message, data=AccountRead.from_account(updated))


@router.post("/forgot-password", response_model=ApiResponse[None])
@limiter.limit(EMAIL_LIMIT)
async def forgot_password(
    request: Request, data: ForgotPasswordRequest, service: PasswordServiceDep
) -> ApiResponse[None]:
    """Always answers the same way so it cannot be used to probe accounts."""
    await service.forgot_password(data.email, data.redirect_url)
    return ApiResponse[None](
        msg="If an account with that email exists, a password reset link has been sent"
    )


@router.post("/reset-password", response_model=ApiResponse[None])
async def reset_password(
    data: ResetPasswordRequest, service: PasswordServiceDep
) -> ApiResponse[None]:
    await service.reset_password(data.token, data.password)
    return ApiResponse[None](
        msg="Password reset successful. Please login with your new password."
    )


@router.post("/logout", response_model=ApiResponse[None])
async def logout(
    account: CurrentAccount, refresh_token: RefreshToken, service: AuthServiceDep
) -> ApiResponse[None]:
    """Revoke only the session behind the presented refresh token."""
    await service.logout(account, refresh_token)
    return ApiResponse[None](msg="Logout successful")


@router.post("/logout-all", response_model=ApiResponse[None])
async def logout_all(account: CurrentAccount, service: AuthServiceDep) -> ApiResponse[None]:
    await service.logout_all(account)
    return ApiResponse[None](msg="Logged out from all devices successfully")

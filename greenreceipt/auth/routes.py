"""Authentication API routes."""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from greenreceipt.config import config
from greenreceipt.i18n import Language, get_language, translate

from .dependencies import CurrentUser, get_auth_service, get_current_user
from .rate_limit import (
    check_login_rate_limit,
    check_refresh_rate_limit,
    check_signup_rate_limit,
    reset_login_rate_limit,
)
from .schemas import (
    MERCHANT,
    ChangePasswordRequest,
    CustomerProfileUpdate,
    CustomerSignupRequest,
    LoginRequest,
    MerchantProfileUpdate,
    MerchantSignupRequest,
    MessageResponse,
    RefreshResponse,
    RefreshTokenRequest,
    SessionResponse,
    TokenResponse,
)
from .service import AuthService, IssuedTokens

router = APIRouter(prefix="/api/auth", tags=["auth"])

REFRESH_COOKIE = "refreshToken"


def _cookie_options() -> dict[str, Any]:
    # Cross-site SPA deployments need SameSite=None, which browsers only accept with Secure.
    production = config.is_production
    return {
        "httponly": True,
        "secure": production,
        "samesite": "none" if production else "lax",
        "path": "/",
    }


def _set_refresh_cookie(response: Response, issued: IssuedTokens) -> None:
    response.set_cookie(
        REFRESH_COOKIE,
        issued.refresh_token,
        max_age=issued.body.refresh_expires_in,
        **_cookie_options(),
    )


def _clear_refresh_cookie(response: Response) -> None:
    response.delete_cookie(REFRESH_COOKIE, **_cookie_options())


def enforce_allowed_origin(request: Request, language: Language = Depends(get_language)) -> None:
    """Reject cookie-bearing calls from browser origins we do not serve."""
    origin = request.headers.get("origin")
    if origin and origin not in config.ALLOWED_ORIGINS:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"message": translate("forbidden_origin", language), "code": "FORBIDDEN_ORIGIN"},
        )


def _presented_refresh_token(request: Request, body: Optional[RefreshTokenRequest]) -> Optional[str]:
    # Cookie first, body for clients without cookie support.
    return request.cookies.get(REFRESH_COOKIE) or (body.refresh_token if body else None)


# =============================================================================
# Signup / Login
# =============================================================================


@router.post(
    "/signup/customer",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(check_signup_rate_limit)],
)
async def signup_customer(
    request_body: CustomerSignupRequest,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    """
    Create a customer account.

    Returns an access token and sets the refresh cookie.
    """
    issued = await auth_service.signup_customer(request_body)
    _set_refresh_cookie(response, issued)
    return issued.body


@router.post(
    "/signup/merchant",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(check_signup_rate_limit)],
)
async def signup_merchant(
    request_body: MerchantSignupRequest,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    """Create a merchant account; a unique merchant code is assigned."""
    issued = await auth_service.signup_merchant(request_body)
    _set_refresh_cookie(response, issued)
    return issued.body


@router.post("/login", response_model=TokenResponse, dependencies=[Depends(check_login_rate_limit)])
async def login(
    request_body: LoginRequest,
    request: Request,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    """
    Login with email and password through the customer or merchant portal.

    Rate limited per client IP; the counter resets on success.
    """
    issued = await auth_service.login(request_body)
    reset_login_rate_limit(request)
    _set_refresh_cookie(response, issued)
    return issued.body


# =============================================================================
# Sessions
# =============================================================================


@router.post(
    "/refresh",
    response_model=RefreshResponse,
    dependencies=[Depends(check_refresh_rate_limit), Depends(enforce_allowed_origin)],
)
async def refresh(
    request: Request,
    response: Response,
    request_body: Optional[RefreshTokenRequest] = Body(default=None),
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Issue a new access token from the refresh cookie (or body).

    The refresh token is rotated; a rejected token also clears the cookie.
    """
    token = _presented_refresh_token(request, request_body)
    try:
        issued = await auth_service.refresh(token)
    except HTTPException as e:
        if e.status_code != status.HTTP_401_UNAUTHORIZED or not token:
            raise
        rejected = JSONResponse(status_code=e.status_code, content={"detail": e.detail})
        _clear_refresh_cookie(rejected)
        return rejected

    _set_refresh_cookie(response, issued)
    return issued.body


@router.post("/logout", response_model=MessageResponse, dependencies=[Depends(enforce_allowed_origin)])
async def logout(
    request: Request,
    response: Response,
    request_body: Optional[RefreshTokenRequest] = Body(default=None),
    auth_service: AuthService = Depends(get_auth_service),
    language: Language = Depends(get_language),
) -> MessageResponse:
    """
    Logout by forgetting the refresh token.

    Idempotent; the access token stays valid until it expires.
    """
    await auth_service.logout(_presented_refresh_token(request, request_body))
    _clear_refresh_cookie(response)
    return MessageResponse(message=translate("logged_out", language))


@router.post("/logout-all", response_model=MessageResponse)
async def logout_all(
    response: Response,
    user: CurrentUser = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
    language: Language = Depends(get_language),
) -> MessageResponse:
    """End every session of the caller on every device."""
    await auth_service.logout_all(user.role, user.id)
    _clear_refresh_cookie(response)
    return MessageResponse(message=translate("logged_out_all", language))


@router.get("/session", response_model=SessionResponse)
async def get_session(
    user: CurrentUser = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
) -> SessionResponse:
    return await auth_service.get_session(user.role, user.id)


# =============================================================================
# Profile
# =============================================================================


@router.get("/me")
async def get_me(
    user: CurrentUser = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
) -> dict:
    """Get the caller's profile."""
    return await auth_service.get_profile(user.role, user.id)


@router.patch("/me")
async def update_me(
    request_body: dict = Body(...),
    user: CurrentUser = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
) -> dict:
    """Update the caller's profile; accepted fields depend on the role."""
    model = MerchantProfileUpdate if user.role == MERCHANT else CustomerProfileUpdate
    try:
        update = model.model_validate(request_body)
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False))
    return await auth_service.update_profile(user.role, user.id, update)


@router.delete("/me", response_model=MessageResponse)
async def delete_me(
    response: Response,
    user: CurrentUser = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
    language: Language = Depends(get_language),
) -> MessageResponse:
    await auth_service.delete_account(user.role, user.id)
    _clear_refresh_cookie(response)
    return MessageResponse(message=translate("account_deleted", language))


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    request_body: ChangePasswordRequest,
    response: Response,
    user: CurrentUser = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
    language: Language = Depends(get_language),
) -> MessageResponse:
    """Change the password; every existing session is ended."""
    await auth_service.change_password(user.role, user.id, request_body)
    _clear_refresh_cookie(response)
    return MessageResponse(message=translate("password_changed", language))

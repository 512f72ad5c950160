"""Authentication service - business logic for accounts and sessions."""

import hmac
from typing import NamedTuple, Optional

from fastapi import HTTPException, status
from loguru import logger
from pymongo.errors import DuplicateKeyError

from greenreceipt.i18n import Language, translate
from greenreceipt.utils.timezone import ensure_utc, now_utc

from .jwt_handler import TOKEN_EXPIRED, JWTHandler, hash_token
from .password import hash_password, verify_password
from .repository import AccountRepository
from .schemas import (
    CUSTOMER,
    DEFAULT_BRAND_COLOR,
    DEFAULT_CURRENCY,
    DEFAULT_RECEIPT_FOOTER,
    MERCHANT,
    ChangePasswordRequest,
    CustomerProfileUpdate,
    CustomerSignupRequest,
    LoginRequest,
    MerchantAddress,
    MerchantProfileUpdate,
    MerchantSignupRequest,
    RefreshResponse,
    SessionResponse,
    TokenResponse,
    default_operating_hours,
)


class IssuedTokens(NamedTuple):
    """A response body plus the refresh token the router puts in a cookie."""

    body: TokenResponse | RefreshResponse
    refresh_token: str


def session_user(account: dict) -> dict:
    """The compact account summary embedded in login and session responses."""
    if account.get("role") == MERCHANT:
        return {
            "id": str(account["_id"]),
            "shopName": account.get("shopName", ""),
            "email": account["email"],
            "merchantCode": account.get("merchantCode"),
            "isProfileComplete": account.get("isProfileComplete", False),
        }
    return {
        "id": str(account["_id"]),
        "name": account.get("name"),
        "email": account["email"],
    }


def profile_view(account: dict) -> dict:
    """Full profile as returned by ``GET /me``."""
    if account.get("role") == MERCHANT:
        return {
            "id": str(account["_id"]),
            "role": MERCHANT,
            "shopName": account.get("shopName", ""),
            "ownerName": account.get("ownerName"),
            "email": account["email"],
            "phone": account.get("phone"),
            "address": account.get("address"),
            "addressLine": account.get("addressLine"),
            "businessCategory": account.get("businessCategory"),
            "businessDescription": account.get("businessDescription"),
            "operatingHours": account.get("operatingHours") or [],
            "receiptHeader": account.get("receiptHeader") or "",
            "receiptFooter": account.get("receiptFooter") or DEFAULT_RECEIPT_FOOTER,
            "brandColor": account.get("brandColor") or DEFAULT_BRAND_COLOR,
            "currency": account.get("currency") or DEFAULT_CURRENCY,
            "merchantCode": account.get("merchantCode"),
            "logoUrl": account.get("logoUrl"),
            "isVerified": account.get("isVerified", False),
            "isProfileComplete": account.get("isProfileComplete", False),
            "onboardingStep": account.get("onboardingStep", 0),
            "createdAt": account.get("createdAt"),
            "updatedAt": account.get("updatedAt"),
        }
    return {
        "id": str(account["_id"]),
        "role": CUSTOMER,
        "name": account.get("name"),
        "email": account["email"],
        "phone": account.get("phone"),
        "address": account.get("address"),
        "isVerified": account.get("isVerified", False),
        "createdAt": account.get("createdAt"),
        "updatedAt": account.get("updatedAt"),
    }


class AuthService:
    """Service class for authentication operations."""

    def __init__(
        self,
        repository: AccountRepository,
        jwt_handler: Optional[JWTHandler] = None,
        language: Language = Language.ENGLISH,
    ):
        """
        Initialize the auth service.

        Args:
            repository: AccountRepository instance for database operations
            jwt_handler: JWTHandler instance (optional, creates default if not provided)
            language: Language used for error messages
        """
        self.repo = repository
        self.jwt = jwt_handler or JWTHandler()
        self.language = language

    def _error(
        self,
        status_code: int,
        key: str,
        code: Optional[str] = None,
        actual_role: Optional[str] = None,
    ) -> HTTPException:
        if actual_role:
            message = translate(key, self.language, actual_role=actual_role)
        else:
            message = translate(key, self.language)
        if code is None:
            return HTTPException(status_code=status_code, detail=message)
        detail = {"message": message, "code": code}
        if actual_role:
            detail["actualRole"] = actual_role
        return HTTPException(status_code=status_code, detail=detail)

    async def _issue_tokens(self, account: dict) -> IssuedTokens:
        account_id = str(account["_id"])
        role = account["role"]
        version = account.get("tokenVersion", 0)

        access_token = self.jwt.create_access_token(account_id, role, version)
        refresh_token, expires_at = self.jwt.create_refresh_token(account_id, role, version)
        await self.repo.save_refresh_token(role, account_id, refresh_token, expires_at)

        body = TokenResponse(
            access_token=access_token,
            expires_in=self.jwt.get_token_expiry_seconds(),
            refresh_expires_in=self.jwt.get_refresh_expiry_seconds(),
            role=role,
            user=session_user(account),
        )
        return IssuedTokens(body, refresh_token)

    async def _ensure_signup_allowed(self, email: str, password: str, confirm: Optional[str]) -> None:
        if confirm is not None and password != confirm:
            raise self._error(status.HTTP_400_BAD_REQUEST, "passwords_mismatch")
        if await self.repo.email_in_use(email):
            raise self._error(status.HTTP_409_CONFLICT, "email_in_use")

    # =========================================================================
    # Signup / Login
    # =========================================================================

    async def signup_customer(self, request: CustomerSignupRequest) -> IssuedTokens:
        """
        Create a customer account and open a session.

        Raises:
            HTTPException: 400 on password mismatch, 409 if the email is taken
        """
        await self._ensure_signup_allowed(request.email, request.password, request.confirm_password)
        try:
            account = await self.repo.create_customer({
                "name": request.name,
                "email": request.email,
                "passwordHash": hash_password(request.password),
                "role": CUSTOMER,
                "isVerified": True,
                "isEmailVerified": True,
                "tokenVersion": 0,
            })
        except DuplicateKeyError:
            raise self._error(status.HTTP_409_CONFLICT, "email_in_use")
        return await self._issue_tokens(account)

    async def signup_merchant(self, request: MerchantSignupRequest) -> IssuedTokens:
        """Create a merchant account with shop defaults and open a session."""
        await self._ensure_signup_allowed(request.email, request.password, request.confirm_password)
        try:
            account = await self.repo.create_merchant({
                "shopName": request.shop_name,
                "email": request.email,
                "passwordHash": hash_password(request.password),
                "role": MERCHANT,
                "isVerified": True,
                "isEmailVerified": True,
                "isProfileComplete": False,
                "onboardingStep": 0,
                "address": MerchantAddress().to_document(),
                "operatingHours": default_operating_hours(),
                "receiptHeader": "",
                "receiptFooter": DEFAULT_RECEIPT_FOOTER,
                "brandColor": DEFAULT_BRAND_COLOR,
                "currency": DEFAULT_CURRENCY,
                "tokenVersion": 0,
            })
        except DuplicateKeyError:
            raise self._error(status.HTTP_409_CONFLICT, "email_in_use")
        return await self._issue_tokens(account)

    async def login(self, request: LoginRequest) -> IssuedTokens:
        """
        Authenticate against the portal named by ``request.role``.

        Raises:
            HTTPException: 403 ROLE_MISMATCH when the email belongs to the
                other portal, 401 on bad credentials, 403 EMAIL_NOT_VERIFIED
        """
        account = await self.repo.get_by_email(request.role, request.email)

        if not account:
            other_role = MERCHANT if request.role == CUSTOMER else CUSTOMER
            if await self.repo.get_by_email(other_role, request.email):
                raise self._error(
                    status.HTTP_403_FORBIDDEN, "role_mismatch", "ROLE_MISMATCH", actual_role=other_role
                )
            raise self._error(status.HTTP_401_UNAUTHORIZED, "invalid_credentials")

        if not verify_password(request.password, account.get("passwordHash")):
            raise self._error(status.HTTP_401_UNAUTHORIZED, "invalid_credentials")

        if account.get("isEmailVerified") is False and account.get("isVerified") is False:
            raise self._error(status.HTTP_403_FORBIDDEN, "email_not_verified", "EMAIL_NOT_VERIFIED")

        logger.info(f"Login: role={account['role']} id={account['_id']}")
        return await self._issue_tokens(account)

    # =========================================================================
    # Sessions
    # =========================================================================

    async def refresh(self, refresh_token: Optional[str]) -> IssuedTokens:
        """
        Exchange a refresh token for a new access token, rotating the refresh token.

        Every rejection carries a ``code`` the client uses to decide whether
        to send the user back to the login page.
        """
        if not refresh_token:
            raise self._error(status.HTTP_401_UNAUTHORIZED, "no_refresh_token", "NO_REFRESH_TOKEN")

        payload, reason = self.jwt.decode_token(refresh_token, "refresh")
        if payload is None:
            if reason == TOKEN_EXPIRED:
                raise self._error(status.HTTP_401_UNAUTHORIZED, "refresh_token_expired", "REFRESH_TOKEN_EXPIRED")
            raise self._error(status.HTTP_401_UNAUTHORIZED, "invalid_refresh_token", "INVALID_REFRESH_TOKEN")

        role = MERCHANT if payload.get("role") == MERCHANT else CUSTOMER
        account_id = payload["sub"]
        account = await self.repo.get_by_id(role, account_id)
        if not account:
            raise self._error(status.HTTP_401_UNAUTHORIZED, "account_not_found", "ACCOUNT_NOT_FOUND")

        stored_hash = account.get("refreshTokenHash")
        stored_expiry = account.get("refreshTokenExpiry")
        if not stored_hash or not stored_expiry:
            raise self._error(status.HTTP_401_UNAUTHORIZED, "session_expired", "SESSION_EXPIRED")

        if ensure_utc(stored_expiry) < now_utc():
            await self.repo.clear_refresh_token(role, account_id)
            raise self._error(status.HTTP_401_UNAUTHORIZED, "session_expired", "SESSION_EXPIRED")

        if payload.get("tv", 0) != account.get("tokenVersion", 0):
            await self.repo.clear_refresh_token(role, account_id)
            raise self._error(status.HTTP_401_UNAUTHORIZED, "session_invalidated", "SESSION_INVALIDATED")

        if not hmac.compare_digest(hash_token(refresh_token), stored_hash):
            logger.warning(f"Refresh token reuse detected: role={role} id={account_id}")
            await self.repo.clear_refresh_token(role, account_id)
            raise self._error(status.HTTP_401_UNAUTHORIZED, "invalid_session", "INVALID_SESSION")

        issued = await self._issue_tokens(account)
        body = RefreshResponse(
            access_token=issued.body.access_token,
            expires_in=issued.body.expires_in,
            refresh_expires_in=issued.body.refresh_expires_in,
            role=role,
        )
        return IssuedTokens(body, issued.refresh_token)

    async def logout(self, refresh_token: Optional[str]) -> None:
        """
        Forget the stored refresh token, if the presented one decodes.

        Always succeeds: a missing or bad token means there is nothing to end.
        """
        if not refresh_token:
            return
        payload = self.jwt.validate_refresh_token(refresh_token)
        if payload is None:
            return
        role = MERCHANT if payload.get("role") == MERCHANT else CUSTOMER
        await self.repo.clear_refresh_token(role, payload["sub"])
        logger.info(f"Logout: role={role} id={payload['sub']}")

    async def logout_all(self, role: str, account_id: str) -> None:
        if not await self.repo.revoke_all_sessions(role, account_id):
            raise self._error(status.HTTP_404_NOT_FOUND, "account_not_found")

    async def get_session(self, role: str, account_id: str) -> SessionResponse:
        account = await self._get_account(role, account_id)
        return SessionResponse(valid=True, role=account["role"], user=session_user(account))

    # =========================================================================
    # Profile
    # =========================================================================

    async def _get_account(self, role: str, account_id: str) -> dict:
        account = await self.repo.get_by_id(role, account_id)
        if not account:
            raise self._error(status.HTTP_404_NOT_FOUND, "account_not_found")
        return account

    async def get_profile(self, role: str, account_id: str) -> dict:
        return profile_view(await self._get_account(role, account_id))

    async def update_profile(
        self,
        role: str,
        account_id: str,
        request: CustomerProfileUpdate | MerchantProfileUpdate,
    ) -> dict:
        """
        Apply the provided profile fields.

        Raises:
            HTTPException: 400 when nothing was provided, 409 when the new
                email belongs to another account
        """
        fields = request.model_dump(by_alias=True, exclude_none=True)
        if not fields:
            raise self._error(status.HTTP_400_BAD_REQUEST, "no_profile_fields")

        email = fields.get("email")
        if email:
            email = email.strip().lower()
            if await self.repo.email_in_use(email, exclude_id=account_id):
                raise self._error(status.HTTP_409_CONFLICT, "email_in_use")
            fields["email"] = email

        try:
            account = await self.repo.update_profile(role, account_id, fields)
        except DuplicateKeyError:
            raise self._error(status.HTTP_409_CONFLICT, "email_in_use")
        if not account:
            raise self._error(status.HTTP_404_NOT_FOUND, "account_not_found")

        logger.info(f"Profile updated: role={role} id={account_id} fields={sorted(fields)}")
        return profile_view(account)

    async def change_password(self, role: str, account_id: str, request: ChangePasswordRequest) -> None:
        """Verify the current password, store the new one and end all sessions."""
        account = await self._get_account(role, account_id)
        if not verify_password(request.current_password, account.get("passwordHash")):
            raise self._error(status.HTTP_400_BAD_REQUEST, "current_password_incorrect")
        await self.repo.update_password(role, account_id, hash_password(request.new_password))

    async def delete_account(self, role: str, account_id: str) -> None:
        if not await self.repo.delete_account(role, account_id):
            raise self._error(status.HTTP_404_NOT_FOUND, "account_not_found")

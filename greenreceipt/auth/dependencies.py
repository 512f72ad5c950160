"""FastAPI dependencies for authentication."""

from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pymongo.database import Database

from greenreceipt.db import get_database
from greenreceipt.i18n import Language, get_language, translate

from .jwt_handler import TOKEN_EXPIRED, JWTHandler
from .repository import AccountRepository
from .service import AuthService

# auto_error=False so a missing header yields our own TOKEN_MISSING body
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    """Identity carried by a valid access token."""

    id: str
    role: str
    token_version: int = 0


@lru_cache(maxsize=1)
def get_jwt_handler() -> JWTHandler:
    """Process-wide JWT handler built from configuration."""
    return JWTHandler()


def get_account_repository(db: Database = Depends(get_database)) -> AccountRepository:
    return AccountRepository(db)


def get_auth_service(
    repository: AccountRepository = Depends(get_account_repository),
    jwt_handler: JWTHandler = Depends(get_jwt_handler),
    language: Language = Depends(get_language),
) -> AuthService:
    return AuthService(repository, jwt_handler, language)


def _unauthorized(key: str, code: str, language: Language) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"message": translate(key, language), "code": code},
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    jwt_handler: JWTHandler = Depends(get_jwt_handler),
    language: Language = Depends(get_language),
) -> CurrentUser:
    """
    Resolve the caller from the ``Authorization: Bearer`` access token.

    Raises 401 with code ``TOKEN_MISSING``, ``TOKEN_EXPIRED`` or
    ``TOKEN_INVALID``.
    """
    if credentials is None or not credentials.credentials:
        raise _unauthorized("token_missing", "TOKEN_MISSING", language)

    payload, reason = jwt_handler.decode_token(credentials.credentials, "access")
    if payload is None:
        if reason == TOKEN_EXPIRED:
            raise _unauthorized("token_expired", "TOKEN_EXPIRED", language)
        raise _unauthorized("token_invalid", "TOKEN_INVALID", language)

    return CurrentUser(id=payload["sub"], role=payload.get("role", ""), token_version=payload.get("tv", 0))


def require_role(*roles: str) -> Callable[..., CurrentUser]:
    """Build a dependency that admits only callers with one of ``roles``."""

    def _require_role(
        user: CurrentUser = Depends(get_current_user),
        language: Language = Depends(get_language),
    ) -> CurrentUser:
        if user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"message": translate("forbidden", language), "code": "FORBIDDEN"},
            )
        return user

    return _require_role

"""Accounts, sessions and role guards for customers and merchants."""

from .dependencies import (
    CurrentUser,
    get_account_repository,
    get_auth_service,
    get_current_user,
    get_jwt_handler,
    require_role,
)
from .jwt_handler import JWTHandler, hash_token
from .password import hash_password, verify_password
from .repository import AccountRepository
from .routes import router as auth_router
from .schemas import CUSTOMER, MERCHANT
from .service import AuthService

__all__ = [
    # Router
    "auth_router",
    # Core
    "JWTHandler",
    "hash_token",
    "hash_password",
    "verify_password",
    "AuthService",
    "AccountRepository",
    "CUSTOMER",
    "MERCHANT",
    # Dependencies
    "CurrentUser",
    "get_jwt_handler",
    "get_account_repository",
    "get_auth_service",
    "get_current_user",
    "require_role",
]

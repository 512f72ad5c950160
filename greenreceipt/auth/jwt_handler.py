"""JWT token creation and validation."""

import hashlib
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from loguru import logger

from greenreceipt.config import config

TOKEN_EXPIRED = "expired"
TOKEN_INVALID = "invalid"


def hash_token(token: str) -> str:
    """SHA-256 hex digest used to store refresh tokens at rest."""
    return hashlib.sha256(token.encode()).hexdigest()


class JWTHandler:
    """Signs access and refresh tokens with separate secrets."""

    def __init__(
        self,
        secret_key: Optional[str] = None,
        refresh_secret_key: Optional[str] = None,
        algorithm: Optional[str] = None,
        access_token_expire_minutes: Optional[int] = None,
        refresh_token_expire_days: Optional[int] = None,
    ):
        self.secret_key = secret_key or config.JWT_SECRET_KEY
        self.refresh_secret_key = refresh_secret_key or config.REFRESH_TOKEN_SECRET or (
            f"{self.secret_key}_refresh" if self.secret_key else None
        )
        self.algorithm = algorithm or config.JWT_ALGORITHM
        self.access_token_expire_minutes = access_token_expire_minutes or config.ACCESS_TOKEN_EXPIRE_MINUTES
        self.refresh_token_expire_days = refresh_token_expire_days or config.REFRESH_TOKEN_EXPIRE_DAYS

        if not self.secret_key:
            logger.warning("JWT_SECRET_KEY not configured - authentication will not work")

    def _payload(self, account_id: str, role: str, token_version: int, token_type: str) -> dict:
        return {
            "sub": account_id,
            "role": role,
            "tv": token_version,
            "type": token_type,
            "iat": datetime.now(timezone.utc),
        }

    def create_access_token(self, account_id: str, role: str, token_version: int = 0) -> str:
        """
        Create a short-lived access token.

        Args:
            account_id: Customer or merchant id
            role: ``customer`` or ``merchant``
            token_version: The account's current session generation

        Returns:
            Encoded JWT access token
        """
        payload = self._payload(account_id, role, token_version, "access")
        payload["exp"] = payload["iat"] + timedelta(minutes=self.access_token_expire_minutes)
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def create_refresh_token(self, account_id: str, role: str, token_version: int = 0) -> tuple[str, datetime]:
        """
        Create a long-lived refresh token.

        Returns:
            Tuple of (encoded JWT refresh token, expiration datetime)
        """
        payload = self._payload(account_id, role, token_version, "refresh")
        expires_at = payload["iat"] + timedelta(days=self.refresh_token_expire_days)
        payload["exp"] = expires_at
        token = jwt.encode(payload, self.refresh_secret_key, algorithm=self.algorithm)
        return token, expires_at

    def decode_token(self, token: str, token_type: str = "access") -> tuple[Optional[dict], Optional[str]]:
        """
        Decode a token of the given type.

        Returns:
            ``(payload, None)`` when valid, otherwise ``(None, reason)`` where
            reason is ``TOKEN_EXPIRED`` or ``TOKEN_INVALID``.
        """
        secret = self.refresh_secret_key if token_type == "refresh" else self.secret_key
        try:
            payload = jwt.decode(token, secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            logger.info(f"{token_type.capitalize()} token has expired")
            return None, TOKEN_EXPIRED
        except jwt.InvalidTokenError as e:
            logger.info(f"Invalid {token_type} token: {e}")
            return None, TOKEN_INVALID

        if payload.get("type") != token_type or not payload.get("sub"):
            return None, TOKEN_INVALID
        return payload, None

    def validate_access_token(self, token: str) -> Optional[dict]:
        payload, _ = self.decode_token(token, "access")
        return payload

    def validate_refresh_token(self, token: str) -> Optional[dict]:
        payload, _ = self.decode_token(token, "refresh")
        return payload

    def get_token_expiry_seconds(self) -> int:
        """Get the access token expiry time in seconds."""
        return self.access_token_expire_minutes * 60

    def get_refresh_expiry_seconds(self) -> int:
        return self.refresh_token_expire_days * 24 * 60 * 60

"""Account repository for customer and merchant documents."""

import secrets
import string
from datetime import datetime, timezone
from typing import Optional

import anyio
from loguru import logger
from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from greenreceipt.db import maybe_object_id

from .jwt_handler import hash_token
from .schemas import MERCHANT

MERCHANT_CODE_ALPHABET = string.ascii_uppercase + string.digits
MERCHANT_CODE_LENGTH = 6
MERCHANT_CODE_ATTEMPTS = 10


def generate_merchant_code() -> str:
    return "".join(secrets.choice(MERCHANT_CODE_ALPHABET) for _ in range(MERCHANT_CODE_LENGTH))


class AccountRepository:
    """Repository for account and session operations.

    Customers live in ``users`` and merchants in ``merchants``; every method
    takes the role to pick the collection.
    """

    def __init__(self, db: Database):
        self.db = db
        self.users = db["users"]
        self.merchants = db["merchants"]

    def _collection(self, role: str):
        return self.merchants if role == MERCHANT else self.users

    # =========================================================================
    # Lookups
    # =========================================================================

    async def get_by_email(self, role: str, email: str) -> Optional[dict]:
        collection = self._collection(role)
        return await anyio.to_thread.run_sync(lambda: collection.find_one({"email": email}))

    async def get_by_id(self, role: str, account_id: str) -> Optional[dict]:
        oid = maybe_object_id(account_id)
        if oid is None:
            return None
        collection = self._collection(role)
        return await anyio.to_thread.run_sync(lambda: collection.find_one({"_id": oid}))

    async def get_merchant_by_code(self, merchant_code: str) -> Optional[dict]:
        code = merchant_code.strip().upper()
        return await anyio.to_thread.run_sync(lambda: self.merchants.find_one({"merchantCode": code}))

    async def email_in_use(self, email: str, exclude_id: Optional[str] = None) -> bool:
        """True when any customer or merchant (other than ``exclude_id``) owns the email."""
        query: dict = {"email": email}
        oid = maybe_object_id(exclude_id)
        if oid is not None:
            query["_id"] = {"$ne": oid}

        def _check() -> bool:
            return (
                self.users.count_documents(query, limit=1) > 0
                or self.merchants.count_documents(query, limit=1) > 0
            )

        return await anyio.to_thread.run_sync(_check)

    # =========================================================================
    # Creation
    # =========================================================================

    async def create_customer(self, document: dict) -> dict:
        now = datetime.now(timezone.utc)
        document = {**document, "createdAt": now, "updatedAt": now}
        result = await anyio.to_thread.run_sync(lambda: self.users.insert_one(document))
        document["_id"] = result.inserted_id
        logger.info(f"Customer created: {result.inserted_id}")
        return document

    async def create_merchant(self, document: dict) -> dict:
        """
        Insert a merchant with a freshly generated unique ``merchantCode``.

        Code collisions hit the unique index and are retried with a new code;
        a duplicate e-mail is re-raised to the caller.
        """
        now = datetime.now(timezone.utc)

        def _insert() -> dict:
            for _ in range(MERCHANT_CODE_ATTEMPTS):
                candidate = {
                    **document,
                    "merchantCode": generate_merchant_code(),
                    "createdAt": now,
                    "updatedAt": now,
                }
                try:
                    result = self.merchants.insert_one(candidate)
                except DuplicateKeyError as e:
                    if "merchantCode" in str(e.details or e):
                        continue
                    raise
                candidate["_id"] = result.inserted_id
                return candidate
            raise RuntimeError("Could not generate a unique merchant code")

        merchant = await anyio.to_thread.run_sync(_insert)
        logger.info(f"Merchant created: {merchant['_id']} code={merchant['merchantCode']}")
        return merchant

    # =========================================================================
    # Updates
    # =========================================================================

    async def update_profile(self, role: str, account_id: str, fields: dict) -> Optional[dict]:
        oid = maybe_object_id(account_id)
        if oid is None:
            return None
        collection = self._collection(role)
        update = {"$set": {**fields, "updatedAt": datetime.now(timezone.utc)}}
        return await anyio.to_thread.run_sync(
            lambda: collection.find_one_and_update(
                {"_id": oid}, update, return_document=ReturnDocument.AFTER
            )
        )

    async def update_password(self, role: str, account_id: str, password_hash: str) -> bool:
        """Store a new hash and end every existing session."""
        collection = self._collection(role)
        result = await anyio.to_thread.run_sync(
            lambda: collection.update_one(
                {"_id": maybe_object_id(account_id)},
                {
                    "$set": {"passwordHash": password_hash, "updatedAt": datetime.now(timezone.utc)},
                    "$inc": {"tokenVersion": 1},
                    "$unset": {"refreshTokenHash": "", "refreshTokenExpiry": ""},
                },
            )
        )
        logger.info(f"Password updated for {role}: {account_id}")
        return result.matched_count > 0

    async def delete_account(self, role: str, account_id: str) -> bool:
        oid = maybe_object_id(account_id)
        if oid is None:
            return False
        collection = self._collection(role)
        result = await anyio.to_thread.run_sync(lambda: collection.delete_one({"_id": oid}))
        if result.deleted_count:
            logger.info(f"Account deleted: {role} {account_id}")
        return result.deleted_count > 0

    # =========================================================================
    # Refresh Token Operations
    # =========================================================================

    async def save_refresh_token(self, role: str, account_id: str, token: str, expires_at: datetime) -> None:
        """Persist the hash of the current refresh token and stamp the login time."""
        collection = self._collection(role)
        now = datetime.now(timezone.utc)
        await anyio.to_thread.run_sync(
            lambda: collection.update_one(
                {"_id": maybe_object_id(account_id)},
                {
                    "$set": {
                        "refreshTokenHash": hash_token(token),
                        "refreshTokenExpiry": expires_at,
                        "lastLoginAt": now,
                    }
                },
            )
        )

    async def clear_refresh_token(self, role: str, account_id: str) -> None:
        collection = self._collection(role)
        await anyio.to_thread.run_sync(
            lambda: collection.update_one(
                {"_id": maybe_object_id(account_id)},
                {"$unset": {"refreshTokenHash": "", "refreshTokenExpiry": ""}},
            )
        )

    async def revoke_all_sessions(self, role: str, account_id: str) -> bool:
        """Bump ``tokenVersion`` so every outstanding refresh token stops working."""
        collection = self._collection(role)
        result = await anyio.to_thread.run_sync(
            lambda: collection.update_one(
                {"_id": maybe_object_id(account_id)},
                {
                    "$inc": {"tokenVersion": 1},
                    "$unset": {"refreshTokenHash": "", "refreshTokenExpiry": ""},
                },
            )
        )
        logger.info(f"All sessions revoked: {role} {account_id}")
        return result.matched_count > 0

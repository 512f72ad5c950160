"""Receipt service - issuing, claiming and managing receipts."""

from typing import Any, Optional

from fastapi import HTTPException, status
from loguru import logger

from greenreceipt.analytics.cache import AnalyticsCache
from greenreceipt.auth import CUSTOMER, MERCHANT, AccountRepository, CurrentUser
from greenreceipt.catalog import CatalogRepository
from greenreceipt.db import serialize_document, to_object_id
from greenreceipt.i18n import Language, translate
from greenreceipt.utils.timezone import format_ist_date, format_ist_time, now_utc

from .ingestion import apply_catalog, normalize_receipt_payload
from .models import NormalizedReceipt
from .repository import ReceiptRepository
from .schemas import MarkPaidRequest, ReceiptUpdate

OWNER_FIELDS = {CUSTOMER: "userId", MERCHANT: "merchantId"}


def receipt_view(receipt: dict) -> dict:
    """Serialize a receipt and add its IST display date and time."""
    view = serialize_document(receipt)
    view["displayDate"] = format_ist_date(receipt.get("transactionDate"))
    view["displayTime"] = format_ist_time(receipt.get("transactionDate"))
    return view


def merchant_snapshot(merchant: dict) -> dict:
    return {
        "shopName": merchant.get("shopName"),
        "businessCategory": merchant.get("businessCategory"),
        "merchantCode": merchant.get("merchantCode"),
    }


def customer_snapshot(customer: dict) -> dict:
    return {"name": customer.get("name"), "email": customer.get("email")}


def paid_at_change(receipt: dict, new_status: str) -> dict:
    """``paidAt`` update for a status change; empty when the payment state holds."""
    was_paid = receipt.get("status") == "completed"
    if new_status == "completed" and not was_paid:
        return {"paidAt": now_utc()}
    if new_status == "pending" and was_paid:
        return {"paidAt": None}
    return {}


class ReceiptService:
    """Service class for receipt operations."""

    def __init__(
        self,
        repository: ReceiptRepository,
        accounts: AccountRepository,
        catalog: CatalogRepository,
        cache: AnalyticsCache,
        language: Language = Language.ENGLISH,
    ):
        self.repo = repository
        self.accounts = accounts
        self.catalog = catalog
        self.cache = cache
        self.language = language

    def _error(self, status_code: int, key: str) -> HTTPException:
        return HTTPException(status_code=status_code, detail=translate(key, self.language))

    def _invalidate(self, receipt: dict) -> None:
        self.cache.invalidate(CUSTOMER, receipt.get("userId"))
        self.cache.invalidate(MERCHANT, receipt.get("merchantId"))

    @staticmethod
    def _is_owner(user: CurrentUser, receipt: dict) -> bool:
        owner = receipt.get(OWNER_FIELDS.get(user.role, ""))
        return owner is not None and str(owner) == user.id

    async def _require_account(self, role: str, account_id: str) -> dict:
        account = await self.accounts.get_by_id(role, account_id)
        if not account:
            raise self._error(status.HTTP_404_NOT_FOUND, "account_not_found")
        return account

    async def _require_receipt(self, receipt_id: str) -> dict:
        receipt = await self.repo.get(to_object_id(receipt_id))
        if not receipt:
            raise self._error(status.HTTP_404_NOT_FOUND, "receipt_not_found")
        return receipt

    async def _require_owned(self, user: CurrentUser, receipt_id: str) -> dict:
        receipt = await self._require_receipt(receipt_id)
        if not self._is_owner(user, receipt):
            raise self._error(status.HTTP_403_FORBIDDEN, "receipt_forbidden")
        return receipt

    # =========================================================================
    # Create
    # =========================================================================

    async def _resolve_merchant(self, normalized: NormalizedReceipt) -> Optional[dict]:
        merchant = None
        if normalized.merchant_id:
            merchant = await self.accounts.get_by_id(MERCHANT, normalized.merchant_id)
        if merchant is None and normalized.merchant_code:
            merchant = await self.accounts.get_merchant_by_code(normalized.merchant_code)
        return merchant

    def _build_document(
        self, normalized: NormalizedReceipt, merchant: Optional[dict], customer: Optional[dict]
    ) -> dict:
        document = normalized.to_document()
        document.pop("merchantName", None)
        for line in document["items"]:
            if line.get("itemId"):
                line["itemId"] = to_object_id(line["itemId"])

        if merchant is not None:
            snapshot = merchant_snapshot(merchant)
            document["merchantId"] = merchant["_id"]
            document["merchantCode"] = merchant.get("merchantCode")
            document["footer"] = normalized.footer or merchant.get("receiptFooter")
        else:
            snapshot = {
                "shopName": normalized.merchant_name,
                "businessCategory": None,
                "merchantCode": normalized.merchant_code,
            }
            document["merchantId"] = None
        document["merchantSnapshot"] = snapshot

        document["userId"] = customer["_id"] if customer else None
        document["customerSnapshot"] = customer_snapshot(customer) if customer else None
        document["paidAt"] = normalized.transaction_date if normalized.status == "completed" else None
        return document

    async def create_receipt(self, user: CurrentUser, payload: Any) -> dict:
        """
        Issue a receipt from a QR, upload or manual payload.

        A merchant caller issues the receipt from their shop and may link a
        customer with ``userId``. A customer caller records a receipt for
        themselves; the merchant is looked up by id, then by code, and is
        kept as an unregistered shop name when neither resolves.

        Raises:
            ReceiptPayloadError: if the payload fails normalization
            HTTPException: 400 for an unknown linked customer or a missing
                merchant name, 404 if the caller's account is gone
        """
        normalized = normalize_receipt_payload(payload)

        if user.role == MERCHANT:
            merchant = await self._require_account(MERCHANT, user.id)
            customer = None
            if normalized.user_id:
                customer = await self.accounts.get_by_id(CUSTOMER, normalized.user_id)
                if not customer:
                    raise self._error(status.HTTP_400_BAD_REQUEST, "customer_not_found")
        else:
            customer = await self._require_account(CUSTOMER, user.id)
            merchant = await self._resolve_merchant(normalized)
            if merchant is None and not normalized.merchant_name:
                raise self._error(status.HTTP_400_BAD_REQUEST, "merchant_name_required")

        if merchant is not None:
            normalized = apply_catalog(normalized, await self.catalog.list_active_items(merchant["_id"]))

        receipt = await self.repo.create(self._build_document(normalized, merchant, customer))
        mismatches = sum(1 for line in normalized.items if line.price_mismatch)
        if mismatches:
            logger.warning(f"Receipt {receipt['_id']} has {mismatches} line(s) priced off catalog")
        self._invalidate(receipt)
        return receipt_view(receipt)

    # =========================================================================
    # Read
    # =========================================================================

    async def list_receipts(self, user: CurrentUser, page: int = 1, limit: int = 50) -> dict:
        skip = (page - 1) * limit
        receipts, total = await self.repo.list_for_owner(
            OWNER_FIELDS[user.role], to_object_id(user.id), skip=skip, limit=limit
        )
        return {
            "receipts": [receipt_view(receipt) for receipt in receipts],
            "page": page,
            "limit": limit,
            "total": total,
            "hasMore": skip + len(receipts) < total,
        }

    async def get_receipt(self, user: CurrentUser, receipt_id: str) -> dict:
        return receipt_view(await self._require_owned(user, receipt_id))

    # =========================================================================
    # Mutations
    # =========================================================================

    async def claim_receipt(self, user: CurrentUser, receipt_id: str) -> dict:
        """
        Attach an unclaimed receipt to the calling customer.

        Claiming a receipt the caller already holds is a no-op.

        Raises:
            HTTPException: 404 unknown, 400 void, 409 claimed by someone else
        """
        receipt = await self._require_receipt(receipt_id)
        owner = receipt.get("userId")
        if owner is not None and str(owner) == user.id:
            return receipt_view(receipt)
        if receipt.get("status") == "void":
            raise self._error(status.HTTP_400_BAD_REQUEST, "receipt_void")
        if owner is not None:
            raise self._error(status.HTTP_409_CONFLICT, "receipt_already_claimed")

        customer = await self._require_account(CUSTOMER, user.id)
        claimed = await self.repo.claim(receipt["_id"], customer["_id"], customer_snapshot(customer))
        if claimed is None:
            raise self._error(status.HTTP_409_CONFLICT, "receipt_already_claimed")

        logger.info(f"Receipt claimed: {receipt_id} user={user.id}")
        self._invalidate(claimed)
        return receipt_view(claimed)

    async def mark_paid(self, user: CurrentUser, receipt_id: str, request: MarkPaidRequest) -> dict:
        receipt = await self._require_owned(user, receipt_id)
        if receipt.get("status") == "void":
            raise self._error(status.HTTP_400_BAD_REQUEST, "receipt_void")

        fields: dict = {"status": "completed", **paid_at_change(receipt, "completed")}
        if request.payment_method:
            fields["paymentMethod"] = request.payment_method
        updated = await self.repo.update(receipt["_id"], fields)
        if not updated:
            raise self._error(status.HTTP_404_NOT_FOUND, "receipt_not_found")
        self._invalidate(updated)
        return receipt_view(updated)

    async def update_receipt(self, user: CurrentUser, receipt_id: str, request: ReceiptUpdate) -> dict:
        fields = request.model_dump(by_alias=True, exclude_none=True)
        if not fields:
            raise self._error(status.HTTP_400_BAD_REQUEST, "no_update_fields")

        receipt = await self._require_owned(user, receipt_id)
        if "status" in fields:
            fields.update(paid_at_change(receipt, fields["status"]))
        updated = await self.repo.update(receipt["_id"], fields)
        if not updated:
            raise self._error(status.HTTP_404_NOT_FOUND, "receipt_not_found")
        self._invalidate(updated)
        return receipt_view(updated)

    async def delete_receipt(self, user: CurrentUser, receipt_id: str) -> None:
        receipt = await self._require_owned(user, receipt_id)
        if not await self.repo.delete(receipt["_id"]):
            raise self._error(status.HTTP_404_NOT_FOUND, "receipt_not_found")
        logger.info(f"Receipt deleted: {receipt_id} by {user.role}={user.id}")
        self._invalidate(receipt)

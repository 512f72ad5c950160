"""Analytics routes."""

from fastapi import APIRouter, Depends, Query

from greenreceipt.auth import CUSTOMER, MERCHANT, CurrentUser, require_role

from .dependencies import get_analytics_service
from .service import AnalyticsService

router = APIRouter(prefix="/api/analytics", tags=["analytics"])


@router.get("/customer")
async def get_customer_analytics(
    refresh: bool = Query(default=False),
    user: CurrentUser = Depends(require_role(CUSTOMER)),
    service: AnalyticsService = Depends(get_analytics_service),
) -> dict:
    """
    Spending summary, categories, merchants, trends and top items.

    Results are cached for a few minutes; ``?refresh=true`` recomputes them.
    """
    return await service.customer(user.id, refresh=refresh)


@router.get("/merchant")
async def get_merchant_analytics(
    refresh: bool = Query(default=False),
    user: CurrentUser = Depends(require_role(MERCHANT)),
    service: AnalyticsService = Depends(get_analytics_service),
) -> dict:
    """Sales summary, peak-time insights, customers, trends and best sellers."""
    return await service.merchant(user.id, refresh=refresh)
